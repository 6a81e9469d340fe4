"""Tests for the native Poseidon permutation."""

import numpy as np
import pytest

from primitives.field import FF, Fr, P
from primitives.poseidon import (
    CAPACITY_TAG,
    MDS,
    PARTIAL_ROUNDS,
    ROUND_CONSTANTS,
    TOTAL_ROUNDS,
    WIDTH,
    is_full_round,
    permute,
    poseidon_hash,
)


class TestParameters:
    """Round schedule and constants."""

    def test_round_schedule(self) -> None:
        full = [r for r in range(TOTAL_ROUNDS) if is_full_round(r)]
        assert len(full) == 8
        assert full == [0, 1, 2, 3, 61, 62, 63, 64]
        assert TOTAL_ROUNDS - len(full) == PARTIAL_ROUNDS

    def test_round_constants_shape(self) -> None:
        assert len(ROUND_CONSTANTS) == TOTAL_ROUNDS
        assert all(len(row) == WIDTH for row in ROUND_CONSTANTS)
        assert all(0 <= int(c) < P for row in ROUND_CONSTANTS for c in row)

    def test_mds_is_cauchy_and_invertible(self) -> None:
        assert MDS[0][0] == FF(WIDTH) ** -1
        assert MDS[1][2] * FF(1 + WIDTH + 2) == 1
        assert np.linalg.det(MDS) != 0


class TestHash:
    """Two-to-one hashing."""

    def test_deterministic(self) -> None:
        assert poseidon_hash(1, 2) == poseidon_hash(1, 2)

    def test_returns_fr(self) -> None:
        assert isinstance(poseidon_hash(0, 0), Fr)

    def test_order_matters(self) -> None:
        assert poseidon_hash(1, 2) != poseidon_hash(2, 1)

    def test_accepts_fr_inputs(self) -> None:
        assert poseidon_hash(Fr(3), Fr(4)) == poseidon_hash(3, 4)

    def test_output_is_state_word_one(self) -> None:
        assert int(poseidon_hash(5, 6)) == permute([CAPACITY_TAG, 5, 6])[1]

    def test_permute_checks_width(self) -> None:
        with pytest.raises(AssertionError):
            permute([1, 2])

"""Tests for the BN254 scalar field helpers."""

import numpy as np
import pytest
from py_ecc.bn128 import curve_order

from primitives.field import (
    DELTA,
    FF,
    GENERATOR,
    P,
    ROOT_OF_UNITY,
    TWO_ADICITY,
    Fr,
    batch_inverse,
    fe_array,
    from_bytes,
    get_omega,
    get_omega_inv,
    is_canonical,
    powers,
    to_bytes,
)


class TestConstants:
    """Roots of unity and coset generators."""

    def test_modulus_is_bn254_scalar_field(self) -> None:
        assert P == curve_order
        assert P.bit_length() == 254
        assert FF.order == P

    def test_root_of_unity_order(self) -> None:
        assert ROOT_OF_UNITY ** (1 << TWO_ADICITY) == 1
        assert ROOT_OF_UNITY ** (1 << (TWO_ADICITY - 1)) == FF(P - 1)

    @pytest.mark.parametrize("n_bits", [1, 4, 8, 11])
    def test_get_omega_is_primitive(self, n_bits: int) -> None:
        w = get_omega(n_bits)
        assert w ** (1 << n_bits) == 1
        assert w ** (1 << (n_bits - 1)) == FF(P - 1)
        assert w * get_omega_inv(n_bits) == 1

    def test_delta_is_outside_two_adic_subgroup(self) -> None:
        assert DELTA ** (1 << TWO_ADICITY) != 1
        assert FF(GENERATOR) ** ((P - 1) // 2) == FF(P - 1)

    def test_omega_beyond_two_adicity(self) -> None:
        with pytest.raises(AssertionError):
            get_omega(TWO_ADICITY + 1)


class TestScalars:
    """Canonical checks and byte encodings."""

    @pytest.mark.parametrize("value,expected", [
        (0, True),
        (P - 1, True),
        (P, False),
        (-1, False),
        (True, False),
        (1.0, False),
        (None, False),
        ("3", False),
    ])
    def test_is_canonical(self, value, expected: bool) -> None:
        assert is_canonical(value) is expected

    def test_field_scalars_are_canonical(self) -> None:
        assert is_canonical(FF(P - 1))
        assert not is_canonical(FF([1, 2]))

    def test_fr_is_canonical_and_hashable(self) -> None:
        a = Fr(5)
        assert is_canonical(a)
        assert {a: "x"}[Fr(5)] == "x"
        assert int(Fr(P + 3)) == 3

    def test_bytes_encoding(self) -> None:
        value = 0x1234
        encoded = to_bytes(value)
        assert len(encoded) == 32
        assert from_bytes(encoded) == value
        assert to_bytes(FF(value)) == encoded

    def test_from_bytes_rejects_non_canonical(self) -> None:
        with pytest.raises(ValueError):
            from_bytes(P.to_bytes(32, "big"))


class TestArrays:
    """Vectorised helpers."""

    def test_fe_array_reduces(self) -> None:
        values = fe_array([1, P + 2, Fr(3)])
        assert isinstance(values, FF)
        assert values.tolist() == [1, 2, 3]

    def test_powers(self) -> None:
        assert powers(3, 5).tolist() == [1, 3, 9, 27, 81]
        assert powers(2, 3, start=5).tolist() == [5, 10, 20]
        assert len(powers(2, 0)) == 0

    def test_batch_inverse_empty(self) -> None:
        assert len(batch_inverse(FF.Zeros(0))) == 0

    def test_batch_inverse_single(self) -> None:
        assert batch_inverse(FF([4])) * FF(4) == 1

    def test_batch_inverse_matches_reciprocal(self) -> None:
        vals = FF([i * 7 + 13 for i in range(50)])
        results = batch_inverse(vals)
        assert isinstance(results, FF)
        assert np.array_equal(results, np.reciprocal(vals))
        assert np.all(results * vals == 1)

    def test_batch_inverse_zero_raises(self) -> None:
        with pytest.raises(ZeroDivisionError):
            batch_inverse(FF([1, 0, 2]))

"""Tests for FRI folding."""

from random import Random

import numpy as np
import pytest

from primitives.field import FF, P
from primitives.merkle_tree import MerkleTree
from primitives.ntt import NTT
from primitives.polynomial import evaluate
from protocol.fri import FRI

N_BITS_EXT = 6


def _layer0(degree: int, seed: int = 1) -> FF:
    """Evaluations of a random degree < ``degree`` polynomial on the layer-0 coset."""
    r = Random(seed)
    coeffs = [r.randrange(P) for _ in range(degree)] + [0] * ((1 << N_BITS_EXT) - degree)
    return NTT(1 << N_BITS_EXT).coset_ntt(FF(coeffs))


class TestFold:

    def test_verify_fold_matches_fold(self) -> None:
        pol = _layer0(16)
        beta = FF(987654321)
        folded = FRI.fold(0, pol, beta, N_BITS_EXT)
        half = len(pol) // 2
        for idx in range(half):
            assert FRI.verify_fold(0, int(pol[idx]), int(pol[idx + half]), beta, idx, N_BITS_EXT) == folded[idx]

    @pytest.mark.parametrize("layer", [0, 1, 2])
    def test_fold_halves_degree(self, layer: int) -> None:
        pol = _layer0(32)
        beta = FF(31337)
        for i in range(layer):
            pol = FRI.fold(i, pol, beta, N_BITS_EXT)
        bound = 32 >> layer
        folded = FRI.fold(layer, pol, beta, N_BITS_EXT)
        shift, _ = FRI.domain(layer + 1, N_BITS_EXT)
        coeffs = NTT(len(folded)).coset_intt(folded, shift)
        assert np.all(coeffs[bound // 2:] == 0), f"layer {layer + 1} exceeds degree {bound // 2}"

    def test_final_polynomial_reproduces_layer(self) -> None:
        pol = _layer0(8)
        beta = FF(5)
        for i in range(2):
            pol = FRI.fold(i, pol, beta, N_BITS_EXT)
        final = FRI.final_polynomial(2, pol, N_BITS_EXT, 2)
        shift, w = FRI.domain(2, N_BITS_EXT)
        for j in range(len(pol)):
            assert evaluate(final, shift * w ** j) == pol[j]


class TestMerkelize:

    def test_leaf_pairs_opposite_points(self) -> None:
        pol = _layer0(16)
        tree = FRI.merkelize(pol)
        assert isinstance(tree, MerkleTree)
        assert tree.height == len(pol) // 2
        proof = tree.get_query_proof(3)
        assert proof.v == [int(pol[3]), int(pol[3 + len(pol) // 2])]

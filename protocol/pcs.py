"""Polynomial commitments: low-degree extension plus a Merkle tree over paired rows.

A batch of polynomials is extended to the coset SHIFT * <omega_N> (N = n * blowup)
and committed row-wise. Leaf i holds every polynomial at x_i followed by every
polynomial at x_{i + N/2} = -x_i, so one opening serves both halves of a FRI fold.
"""

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from primitives.field import FF
from primitives.merkle_tree import MerkleTree, QueryProof
from primitives.ntt import NTT
from primitives.polynomial import evaluate
from protocol.params import SetupParams


@dataclass
class PolyCommitment:
    """Coefficients, LDE evaluations and Merkle tree of a batch of polynomials."""
    coeffs: List[FF]
    lde: List[FF]
    tree: MerkleTree

    @property
    def root(self) -> bytes:
        return self.tree.get_root()

    def evaluate(self, index: int, point) -> FF:
        return evaluate(self.coeffs[index], point)

    def open(self, idx: int) -> QueryProof:
        return self.tree.get_query_proof(idx)


def merkle_leaves(lde: Sequence[FF]) -> List[List[int]]:
    """Pair row i with row i + N/2 across all polynomials."""
    matrix = np.array([FF(column).tolist() for column in lde], dtype=object)
    half = matrix.shape[1] // 2
    return np.concatenate([matrix[:, :half], matrix[:, half:]], axis=0).T.tolist()


def commit_coefficients(coeffs: Sequence[np.ndarray], params: SetupParams) -> PolyCommitment:
    """Commit polynomials given by (at most n_ext) coefficients."""
    ntt = NTT(params.n_ext)
    lde = []
    for c in coeffs:
        assert len(c) <= params.n_ext
        padded = FF.Zeros(params.n_ext)
        padded[:len(c)] = c
        lde.append(ntt.coset_ntt(padded))
    return PolyCommitment(coeffs=[FF(c) for c in coeffs], lde=lde, tree=MerkleTree(merkle_leaves(lde)))


def commit_evaluations(columns: Sequence[np.ndarray], params: SetupParams) -> PolyCommitment:
    """Commit columns given by their n values on <omega>."""
    ntt = NTT(params.n)
    return commit_coefficients([ntt.intt(col) for col in columns], params)


def split_leaf(values: Sequence[int], n_polys: int):
    """Split an opened leaf into (values at x_i, values at -x_i)."""
    return list(values[:n_polys]), list(values[n_polys:])

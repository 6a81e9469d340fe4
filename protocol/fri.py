"""FRI folding protocol (radix 2).

Layer i lives on the coset s_i * <w_i> with s_i = SHIFT^(2^i) and |<w_i>| = N / 2^i.
Points j and j + N_i/2 are negatives of each other, so with f(x) = g(x^2) + x h(x^2):

    fold(f)(x^2) = (f(x) + f(-x)) / 2 + beta * (f(x) - f(-x)) / (2x)

and index j of layer i + 1 is the square of index j (and j + N_i/2) of layer i.
"""

from typing import List, Tuple

import numpy as np

from primitives.field import FF, SHIFT, get_omega, powers
from primitives.merkle_tree import MerkleTree
from primitives.ntt import NTT

# --- Type Aliases ---

EvalPoly = np.ndarray  # FF array: a polynomial in evaluation form on a layer's coset

INV_TWO = FF(2) ** -1


class FRI:
    """FRI protocol: folding, commitment, and verification."""

    @staticmethod
    def domain(layer: int, n_bits_ext: int) -> Tuple[FF, FF]:
        """(shift, generator) of the coset layer `layer` lives on."""
        return SHIFT ** (1 << layer), get_omega(n_bits_ext - layer)

    @staticmethod
    def fold(layer: int, pol: EvalPoly, challenge, n_bits_ext: int) -> EvalPoly:
        """Fold polynomial of layer `layer` by 2 using challenge."""
        half = len(pol) // 2
        shift, w = FRI.domain(layer, n_bits_ext)
        inv_x = powers(w ** -1, half, start=shift ** -1)
        lo, hi = pol[:half], pol[half:]
        return ((lo + hi) + FF(int(challenge)) * (lo - hi) * inv_x) * INV_TWO

    @staticmethod
    def merkelize(pol: EvalPoly) -> MerkleTree:
        """Commit to FRI layer; leaf j holds (f(x_j), f(-x_j))."""
        half = len(pol) // 2
        values = FF(pol).tolist()
        return MerkleTree([[values[j], values[j + half]] for j in range(half)])

    @staticmethod
    def verify_fold(layer: int, lo, hi, challenge, idx: int, n_bits_ext: int) -> FF:
        """Fold one opened pair (f(x_idx), f(-x_idx)) into the next layer's value at idx."""
        shift, w = FRI.domain(layer, n_bits_ext)
        x = shift * w ** idx
        lo, hi = FF(int(lo)), FF(int(hi))
        even = lo + hi
        odd = (lo - hi) / x
        return (even + FF(int(challenge)) * odd) * INV_TWO

    @staticmethod
    def final_polynomial(layer: int, pol: EvalPoly, n_bits_ext: int, length: int) -> List[int]:
        """Coefficients of the last layer, truncated to the claimed degree bound."""
        shift, _ = FRI.domain(layer, n_bits_ext)
        coeffs = NTT(len(pol)).coset_intt(pol, shift)
        return [int(c) for c in coeffs[:length]]

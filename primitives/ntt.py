"""Number Theoretic Transform over the BN254 scalar field."""

from functools import lru_cache
from typing import List

import numpy as np

from primitives.field import FF, SHIFT, get_omega, get_omega_inv, powers

# --- NTT Engine ---


class NTT:
    """NTT engine for polynomial operations over Fr."""

    def __init__(self, domain_size: int) -> None:
        """Initialize NTT engine for given domain size."""
        assert domain_size > 0, "Domain size must be positive"
        assert (domain_size & (domain_size - 1)) == 0, "Domain size must be power of 2"

        self.n = domain_size
        self.n_bits = _log2(domain_size)
        self.n_inv = FF(domain_size) ** -1

    def ntt(self, coeffs: np.ndarray) -> FF:
        """Forward NTT: coefficients -> evaluations on <omega>."""
        assert len(coeffs) == self.n, f"expected {self.n} coefficients, got {len(coeffs)}"
        return _transform(FF(coeffs), _twiddles(self.n_bits, False))

    def intt(self, evals: np.ndarray) -> FF:
        """Inverse NTT: evaluations on <omega> -> coefficients."""
        assert len(evals) == self.n, f"expected {self.n} evaluations, got {len(evals)}"
        return _transform(FF(evals), _twiddles(self.n_bits, True)) * self.n_inv

    def coset_ntt(self, coeffs: np.ndarray, shift=SHIFT) -> FF:
        """Evaluate on the coset shift * <omega>."""
        return self.ntt(FF(coeffs) * powers(shift, self.n))

    def coset_intt(self, evals: np.ndarray, shift=SHIFT) -> FF:
        """Interpolate from evaluations on shift * <omega>."""
        return self.intt(evals) * powers(FF(int(shift)) ** -1, self.n)

    def extend_pol(self, src: np.ndarray, n_extended: int) -> FF:
        """Extend polynomial from domain n to the coset of size n_extended via zero-padding."""
        assert n_extended >= self.n, "Extended size must be >= original size"
        assert n_extended % self.n == 0, "Extended size must be multiple of original size"

        # Zero-pad to extended size
        padded = FF.Zeros(n_extended)
        padded[:self.n] = self.intt(src)
        return NTT(n_extended).coset_ntt(padded)


# --- Helpers ---

def _transform(values: FF, stage_twiddles: List[FF]) -> FF:
    """Iterative radix-2 Cooley-Tukey on an FF array."""
    n = len(values)
    a = values[_bit_reverse(n)]
    m = 1
    for twiddles in stage_twiddles:
        blocks = a.reshape(-1, 2 * m)
        even = blocks[:, :m]
        odd = blocks[:, m:] * twiddles
        a = np.concatenate([even + odd, even - odd], axis=1).reshape(n)
        m *= 2
    return a


@lru_cache(maxsize=None)
def _twiddles(n_bits: int, inverse: bool) -> List[FF]:
    """Per-stage twiddle rows: stage s uses powers of the 2^(s+1)-th root."""
    omega = get_omega_inv(n_bits) if inverse else get_omega(n_bits)
    n = 1 << n_bits
    stages = []
    m = 1
    while m < n:
        stages.append(powers(omega ** (n // (2 * m)), m))
        m *= 2
    return stages


@lru_cache(maxsize=None)
def _bit_reverse(n: int) -> np.ndarray:
    n_bits = _log2(n)
    return np.array([int(format(i, f"0{n_bits}b")[::-1], 2) if n_bits else 0 for i in range(n)])


def _log2(size: int) -> int:
    """Compute log2 of size (must be power of 2)."""
    assert size != 0
    res = 0
    while size != 1:
        size >>= 1
        res += 1
    return res

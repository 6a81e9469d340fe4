"""Abstract polynomial operations.

This module provides protocol-level polynomial operations without exposing
implementation details like NTT/INTT. The protocol layer should use these
abstractions rather than directly invoking NTT primitives.
"""

from typing import Sequence

import numpy as np

from primitives.field import FF, SHIFT, get_omega, powers
from primitives.ntt import NTT, _log2


def to_coefficients(evaluations: np.ndarray, domain_size: int) -> FF:
    """Convert polynomial from evaluation form (on <omega_n>) to coefficient form."""
    return NTT(domain_size).intt(evaluations)


def to_evaluations(coefficients: np.ndarray, domain_size: int) -> FF:
    """Convert polynomial from coefficient form to evaluation form (on <omega_n>)."""
    return NTT(domain_size).ntt(coefficients)


def extend_to_domain(evaluations: np.ndarray, original_size: int, extended_size: int) -> FF:
    """Low-degree extension from <omega_n> to the coset SHIFT * <omega_N>."""
    return NTT(original_size).extend_pol(evaluations, extended_size)


def coset_to_coefficients(evaluations: np.ndarray, domain_size: int, shift=SHIFT) -> FF:
    """Interpolate a polynomial from its values on shift * <omega_n>."""
    return NTT(domain_size).coset_intt(evaluations, shift)


def coset_points(domain_size: int, shift=SHIFT) -> FF:
    """The evaluation domain shift * omega^i, i in [0, domain_size)."""
    return powers(get_omega(_log2(domain_size)), domain_size, start=shift)


def evaluate(coefficients: Sequence[int], x) -> FF:
    """Horner evaluation at a single point."""
    x = FF(int(x))
    acc = FF(0)
    for c in FF(coefficients)[::-1]:
        acc = acc * x + c
    return acc


def lagrange_evaluation(n_bits: int, i: int, z) -> FF:
    """L_i(z) for the size-2^n_bits subgroup: omega^i (z^n - 1) / (n (z - omega^i))."""
    n = 1 << n_bits
    z = FF(int(z))
    w_i = get_omega(n_bits) ** i
    return w_i * (z ** n - FF(1)) / (FF(n) * (z - w_i))

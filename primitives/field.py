"""BN254 scalar field Fr.

Every circuit quantity (bid values, bounds, secrets, hashes, tree nodes) and every
protocol value (challenges, polynomial coefficients, openings) lives in the scalar
field of BN254. Uses galois for all field arithmetic: FF is the field type and
backend columns are FF arrays. ``Fr`` (py_ecc's FQ over ``curve_order``) is the
value type handed across API boundaries.
"""

from typing import Iterable

import galois
import numpy as np
from py_ecc.bn128 import curve_order
from py_ecc.fields.field_elements import FQ

# --- Field Construction ---

P = curve_order
"""Scalar field modulus r = 21888242871839275222246405745257495808001...617."""

FIELD_BYTES = 32

GENERATOR = 7
"""Multiplicative generator. Also the coset shift of the low-degree extension."""

FF = galois.GF(P, primitive_element=GENERATOR, verify=False)
"""Prime field GF(r)."""


class Fr(FQ):
    """Element of the BN254 scalar field."""

    field_modulus = curve_order

    def __hash__(self) -> int:
        return hash(self.n)


# --- Roots of Unity ---

TWO_ADICITY = 28

assert FF(GENERATOR) ** ((P - 1) // 2) == FF(P - 1), "generator must be a quadratic non-residue"

_ODD_FACTOR = (P - 1) >> TWO_ADICITY
assert _ODD_FACTOR & 1 == 1

ROOT_OF_UNITY = FF(GENERATOR) ** _ODD_FACTOR
"""Primitive 2^28-th root of unity."""

DELTA = FF(GENERATOR) ** (1 << TWO_ADICITY)
"""Generator of the odd-order subgroup; delta^i * H are disjoint cosets of H."""

# Domain shift for coset LDE
SHIFT = FF(GENERATOR)


def get_omega(n_bits: int) -> FF:
    """Return primitive 2^n_bits-th root of unity."""
    assert 0 <= n_bits <= TWO_ADICITY, f"no 2^{n_bits}-th root of unity in Fr"
    return ROOT_OF_UNITY ** (1 << (TWO_ADICITY - n_bits))


def get_omega_inv(n_bits: int) -> FF:
    """Return inverse of primitive 2^n_bits-th root of unity."""
    return get_omega(n_bits) ** -1


# --- Scalar Helpers ---

def is_canonical(value: object) -> bool:
    """True if value is an Fr, an FF element or an int in [0, P). Booleans are not field elements."""
    if isinstance(value, FQ):
        return value.field_modulus == P
    if isinstance(value, FF):
        return value.ndim == 0
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < P


def to_bytes(value) -> bytes:
    """Encode a field element as 32 big-endian bytes."""
    return (int(value) % P).to_bytes(FIELD_BYTES, "big")


def from_bytes(data: bytes) -> int:
    """Decode 32 big-endian bytes, rejecting non-canonical encodings."""
    assert len(data) == FIELD_BYTES
    value = int.from_bytes(data, "big")
    if value >= P:
        raise ValueError("non-canonical field element encoding")
    return value


# --- Array Helpers ---

def fe_array(values: Iterable) -> FF:
    """FF array from ints (reduced mod P), Fr or FF elements."""
    return FF([int(v) % P for v in values])


def powers(base, n: int, start=1) -> FF:
    """[start, start*base, start*base^2, ...] of length n."""
    out = FF.Zeros(n)
    if n == 0:
        return out
    base_ff = FF(int(base))
    out[0] = FF(int(start))
    for i in range(1, n):
        out[i] = out[i - 1] * base_ff
    return out


# --- Montgomery Batch Inversion ---

def batch_inverse(values):
    """Montgomery batch inversion for any galois array.

    Converts N field inversions into 3N-3 multiplications + 1 inversion.

    Algorithm:
    1. Forward pass: Compute prefix products cumprods[i] = a[0] * a[1] * ... * a[i]
    2. Single inversion: inv_total = cumprods[N-1]^(-1)
    3. Backward pass: Extract individual inverses using cumprods

    Args:
        values: FieldArray to invert (must all be non-zero)

    Returns:
        FieldArray where result[i] = values[i]^(-1)

    Raises:
        ZeroDivisionError: If any element is zero
    """
    n = len(values)
    if n == 0:
        return values
    if n == 1:
        return values ** -1

    field_type = type(values)

    # Forward pass: prefix products in one ufunc call
    cumprods = np.multiply.accumulate(values)

    # Single inversion of the total product
    z = cumprods[n - 1] ** -1

    # Backward pass: extract individual inverses
    results = field_type.Zeros(n)
    for i in range(n - 1, 0, -1):
        results[i] = z * cumprods[i - 1]
        z = z * values[i]
    results[0] = z

    return results

"""Poseidon permutation over Fr (width 3, rate 2, x^5 S-box).

Parameters are fixed once for every circuit that hashes:

* width t = 3 (capacity 1, rate 2), S-box x^5
* 8 full rounds (4 before and 4 after the partial rounds), 57 partial rounds
* round constants rc[r][i] = SHA-256("bidproof/poseidon/t3/rc" || r:u16 || i:u8) mod p
* MDS = Cauchy matrix M[i][j] = 1 / (x_i + y_j), x_i = i, y_j = t + j
* two-to-one hashing seeds the capacity with the length tag 2 << 64 and
  outputs state word 1

The round schedule matches the BN254 P128Pow5T3 instance; the constants are
generated here rather than by the Grain LFSR, so digests are not interchangeable
with other Poseidon deployments.
"""

import hashlib
from typing import List, Sequence

from primitives.field import FF, Fr, P

# --- Parameters ---

WIDTH = 3
RATE = 2
ALPHA = 5
FULL_ROUNDS = 8
PARTIAL_ROUNDS = 57
TOTAL_ROUNDS = FULL_ROUNDS + PARTIAL_ROUNDS
HALF_FULL_ROUNDS = FULL_ROUNDS // 2

CAPACITY_TAG = RATE << 64
"""Capacity initialiser for constant-length input of two elements."""

_RC_DOMAIN = b"bidproof/poseidon/t3/rc"


def _round_constant(r: int, i: int) -> int:
    digest = hashlib.sha256(_RC_DOMAIN + r.to_bytes(2, "big") + i.to_bytes(1, "big")).digest()
    return int.from_bytes(digest, "big") % P


ROUND_CONSTANTS = FF([[_round_constant(r, i) for i in range(WIDTH)] for r in range(TOTAL_ROUNDS)])

MDS = FF([[i + WIDTH + j for j in range(WIDTH)] for i in range(WIDTH)]) ** -1


# --- Permutation ---

def is_full_round(r: int) -> bool:
    return r < HALF_FULL_ROUNDS or r >= HALF_FULL_ROUNDS + PARTIAL_ROUNDS


def round_function(state: Sequence, r: int) -> FF:
    """One round: add constants, S-box (all words or word 0), MDS mix."""
    s = FF([int(x) for x in state]) + ROUND_CONSTANTS[r]
    if is_full_round(r):
        s = s ** ALPHA
    else:
        s[0] = s[0] ** ALPHA
    return MDS @ s


def permute(state: Sequence) -> List[int]:
    assert len(state) == WIDTH, f"Poseidon state must have {WIDTH} words"
    s = FF([int(x) % P for x in state])
    for r in range(TOTAL_ROUNDS):
        s = round_function(s, r)
    return [int(x) for x in s]


def poseidon_hash(left, right) -> Fr:
    """Two-to-one hash used for commitments, nullifiers and Merkle nodes."""
    return Fr(permute([CAPACITY_TAG, int(left), int(right)])[1])

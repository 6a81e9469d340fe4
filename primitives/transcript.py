"""
Fiat-Shamir transcript implementation using a SHA-256 hash chain.

This module implements challenge generation for non-interactive proofs. Absorbed
data accumulates in a pending buffer; every squeeze folds the buffer into the
running state as state = sha256(state || pending) and reads the challenge from
the new state.
"""

import hashlib
from typing import List, Sequence

from primitives.field import FF, P, to_bytes

TRANSCRIPT_DOMAIN = b"bidproof.transcript.v1"
NONCE_BYTES = 8

# --- Type Aliases ---

Challenge = FF
Hash = bytes


class Transcript:
    """
    Fiat-Shamir transcript over a SHA-256 hash chain.

    Attributes:
        state: Current 32-byte chaining value
        pending: Encoded data absorbed since the last squeeze
    """

    def __init__(self, domain: bytes = TRANSCRIPT_DOMAIN) -> None:
        self.state = hashlib.sha256(domain).digest()
        self.pending = bytearray()

    def put(self, input_data: Sequence[int]) -> None:
        """Absorb field elements (32-byte big-endian each)."""
        for elem in input_data:
            self.pending += to_bytes(elem)

    def put_hash(self, digest: Hash) -> None:
        """Absorb a Merkle root or other 32-byte digest."""
        assert len(digest) == 32
        self.pending += digest

    def _update_state(self) -> bytes:
        self.state = hashlib.sha256(self.state + bytes(self.pending)).digest()
        self.pending = bytearray()
        return self.state

    def get_challenge(self) -> Challenge:
        """Squeeze one field element."""
        return FF(int.from_bytes(self._update_state(), "big") % P)

    def get_state(self) -> bytes:
        """Flush pending input and return the chaining value."""
        if self.pending:
            self._update_state()
        return self.state

    def get_permutations(self, n: int, n_bits: int) -> List[int]:
        """Squeeze n query indices in [0, 2^n_bits)."""
        mask = (1 << n_bits) - 1
        return [int.from_bytes(self._update_state(), "big") & mask for _ in range(n)]

    # --- Proof of work ---

    def grind(self, pow_bits: int) -> int:
        """Find the smallest nonce whose hash with the current state has pow_bits leading zeros."""
        seed = self.get_state()
        nonce = 0
        while not _check_pow(seed, nonce, pow_bits):
            nonce += 1
        return nonce

    def verify_grinding(self, nonce: int, pow_bits: int) -> bool:
        if not 0 <= nonce < (1 << (8 * NONCE_BYTES)):
            return False
        return _check_pow(self.get_state(), nonce, pow_bits)


def _check_pow(seed: bytes, nonce: int, pow_bits: int) -> bool:
    digest = hashlib.sha256(seed + nonce.to_bytes(NONCE_BYTES, "big")).digest()
    return int.from_bytes(digest, "big") >> (256 - pow_bits) == 0 if pow_bits else True

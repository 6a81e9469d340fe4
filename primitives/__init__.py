"""Primitives - Low-level cryptographic and mathematical building blocks."""

from primitives.field import (
    DELTA,
    Fr,
    GENERATOR,
    P,
    SHIFT,
    batch_inverse,
    get_omega,
    get_omega_inv,
)
from primitives.merkle_tree import (
    HASH_SIZE,
    LeafData,
    MerkleRoot,
    MerkleTree,
    QueryProof,
)
from primitives.ntt import NTT
from primitives.poseidon import poseidon_hash
from primitives.transcript import (
    Challenge,
    Hash,
    Transcript,
)

__all__ = [
    # Field
    "Fr",
    "P",
    "GENERATOR",
    "DELTA",
    "SHIFT",
    "get_omega",
    "get_omega_inv",
    "batch_inverse",
    # NTT
    "NTT",
    # Merkle Tree
    "MerkleTree",
    "MerkleRoot",
    "QueryProof",
    "LeafData",
    "HASH_SIZE",
    # Transcript
    "Transcript",
    "Hash",
    "Challenge",
    # Hash
    "poseidon_hash",
]

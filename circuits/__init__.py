"""Circuits - the closed set of attestation circuits."""

from circuits.merkle import MerkleMembership, PoseidonMerkleTree, k_for_depth, merkle_root
from circuits.nullifier import NullifierCircuit, commitment_of, nullifier_of
from circuits.poseidon_chip import HASH_ROWS, PoseidonChip, PoseidonConfig
from circuits.range_proof import RangeProof

CIRCUITS = {
    RangeProof.name: RangeProof,
    NullifierCircuit.name: NullifierCircuit,
    MerkleMembership.name: MerkleMembership,
}
"""Circuit variants by name."""

__all__ = [
    "CIRCUITS",
    # Range
    "RangeProof",
    # Nullifier
    "NullifierCircuit",
    "commitment_of",
    "nullifier_of",
    # Merkle
    "MerkleMembership",
    "PoseidonMerkleTree",
    "merkle_root",
    "k_for_depth",
    # Poseidon
    "PoseidonChip",
    "PoseidonConfig",
    "HASH_ROWS",
]

"""Binary Merkle tree commitment using SHA-256."""

import hashlib
from dataclasses import dataclass, field
from typing import List, Sequence

from primitives.field import to_bytes

# --- Constants ---

HASH_SIZE = 32
LEAF_PREFIX = b"\x00"
NODE_PREFIX = b"\x01"

# --- Type Aliases ---

MerkleRoot = bytes
LeafData = List[int]


# --- Hashing ---

def hash_leaf(values: Sequence[int]) -> bytes:
    """Leaf digest: domain-separated hash of the 32-byte field encodings."""
    return hashlib.sha256(LEAF_PREFIX + b"".join(to_bytes(v) for v in values)).digest()


def hash_node(left: bytes, right: bytes) -> bytes:
    return hashlib.sha256(NODE_PREFIX + left + right).digest()


# --- Data Classes ---

@dataclass
class QueryProof:
    """Query proof containing leaf values and Merkle authentication path.

    Attributes:
        v: Leaf values at query index, one field element per committed column entry
        mp: Merkle path - sibling hashes per level, from leaf to root
    """
    v: List[int] = field(default_factory=list)
    mp: List[bytes] = field(default_factory=list)


# --- Merkle Tree ---

class MerkleTree:
    """Binary SHA-256 Merkle tree over rows of field elements."""

    def __init__(self, leaves: Sequence[LeafData]) -> None:
        height = len(leaves)
        if height == 0 or height & (height - 1):
            raise ValueError(f"leaf count must be a power of 2, got {height}")

        self.leaves = [list(leaf) for leaf in leaves]
        self.layers: List[List[bytes]] = [[hash_leaf(leaf) for leaf in self.leaves]]
        while len(self.layers[-1]) > 1:
            prev = self.layers[-1]
            self.layers.append([hash_node(prev[i], prev[i + 1]) for i in range(0, len(prev), 2)])

    @property
    def height(self) -> int:
        return len(self.leaves)

    def get_root(self) -> MerkleRoot:
        return self.layers[-1][0]

    def get_query_proof(self, idx: int) -> QueryProof:
        """Generate query proof (values + authentication path) for leaf idx."""
        if not 0 <= idx < self.height:
            raise ValueError(f"Query index {idx} out of range [0, {self.height})")
        path = []
        pos = idx
        for layer in self.layers[:-1]:
            path.append(layer[pos ^ 1])
            pos >>= 1
        return QueryProof(v=list(self.leaves[idx]), mp=path)

    @staticmethod
    def verify_query_proof(root: MerkleRoot, idx: int, proof: QueryProof) -> bool:
        """Recompute the root from a leaf opening; the path length fixes the tree height."""
        if idx < 0 or idx >= (1 << len(proof.mp)):
            return False
        node = hash_leaf(proof.v)
        pos = idx
        for sibling in proof.mp:
            node = hash_node(sibling, node) if pos & 1 else hash_node(node, sibling)
            pos >>= 1
        return node == root

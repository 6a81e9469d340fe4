"""Tests for the SHA-256 commitment tree."""

import pytest

from primitives.merkle_tree import MerkleTree, hash_leaf, hash_node


def _leaves(n: int):
    return [[i, i * i + 1] for i in range(n)]


class TestMerkleTree:
    """Commitment and opening."""

    def test_single_leaf_root_is_leaf_hash(self) -> None:
        tree = MerkleTree([[5, 6]])
        assert tree.get_root() == hash_leaf([5, 6])

    def test_two_leaf_root(self) -> None:
        tree = MerkleTree(_leaves(2))
        assert tree.get_root() == hash_node(hash_leaf([0, 1]), hash_leaf([1, 2]))

    @pytest.mark.parametrize("n", [0, 3, 6])
    def test_rejects_non_power_of_two(self, n: int) -> None:
        with pytest.raises(ValueError):
            MerkleTree(_leaves(n))

    def test_leaf_and_node_hashes_are_domain_separated(self) -> None:
        left, right = hash_leaf([1]), hash_leaf([2])
        assert hash_leaf([1, 2]) != hash_node(left, right)

    @pytest.mark.parametrize("idx", [0, 5, 15])
    def test_query_proof_verifies(self, idx: int) -> None:
        tree = MerkleTree(_leaves(16))
        proof = tree.get_query_proof(idx)
        assert proof.v == _leaves(16)[idx]
        assert len(proof.mp) == 4
        assert MerkleTree.verify_query_proof(tree.get_root(), idx, proof)

    def test_tampered_value_rejected(self) -> None:
        tree = MerkleTree(_leaves(8))
        proof = tree.get_query_proof(3)
        proof.v[0] += 1
        assert not MerkleTree.verify_query_proof(tree.get_root(), 3, proof)

    def test_wrong_index_rejected(self) -> None:
        tree = MerkleTree(_leaves(8))
        proof = tree.get_query_proof(3)
        assert not MerkleTree.verify_query_proof(tree.get_root(), 2, proof)
        assert not MerkleTree.verify_query_proof(tree.get_root(), 8, proof)

    def test_query_out_of_range(self) -> None:
        tree = MerkleTree(_leaves(4))
        with pytest.raises(ValueError):
            tree.get_query_proof(4)

"""Tests for the Poseidon Merkle tree and the membership circuit."""

import pytest

from circuits import MerkleMembership, PoseidonMerkleTree, k_for_depth, merkle_root
from primitives.field import P
from primitives.poseidon import poseidon_hash
from protocol.errors import ConfigurationError, WitnessError
from protocol.pipeline import prove, verify


class TestTree:

    def test_root_of_two_leaves(self) -> None:
        assert PoseidonMerkleTree([1, 2]).root == poseidon_hash(1, 2)

    def test_padding(self) -> None:
        tree = PoseidonMerkleTree([1, 2, 3])
        assert tree.depth == 2
        assert tree.leaf(3) == 0
        assert PoseidonMerkleTree([9]).depth == 1

    @pytest.mark.parametrize("index", range(4))
    def test_path_reaches_root(self, merkle_tree, index: int) -> None:
        siblings, directions = merkle_tree.path(index)
        assert directions == [index & 1, (index >> 1) & 1]
        assert merkle_root(merkle_tree.leaf(index), siblings, directions) == merkle_tree.root

    def test_bad_leaves(self) -> None:
        with pytest.raises(ConfigurationError):
            PoseidonMerkleTree([])
        with pytest.raises(WitnessError):
            PoseidonMerkleTree([1, P])

    def test_path_index_out_of_range(self, merkle_tree) -> None:
        with pytest.raises(ConfigurationError):
            merkle_tree.path(4)

    def test_k_for_depth(self) -> None:
        assert k_for_depth(1) == 7
        assert k_for_depth(2) == 8
        assert k_for_depth(3) == 9


class TestBuild:

    def test_length_mismatch(self) -> None:
        with pytest.raises(ConfigurationError):
            MerkleMembership.build(1, [2, 3], [0])
        with pytest.raises(ConfigurationError):
            MerkleMembership(leaf=1, siblings=[2, 3], directions=[0])

    def test_depth_mismatch(self) -> None:
        with pytest.raises(ConfigurationError):
            MerkleMembership.build(1, [2, 3], [0, 1], depth=3)

    def test_empty_path(self) -> None:
        with pytest.raises(ConfigurationError):
            MerkleMembership.build(1, [], [])

    @pytest.mark.parametrize("directions", [[2, 0], [0, -1], [0, "1"]])
    def test_non_boolean_direction(self, directions) -> None:
        with pytest.raises(WitnessError):
            MerkleMembership.build(1, [2, 3], directions)

    def test_non_field_sibling(self) -> None:
        with pytest.raises(WitnessError):
            MerkleMembership.build(1, [2, P], [0, 1])

    def test_default_root_is_computed(self) -> None:
        circuit = MerkleMembership.build(1, [2, 3], [1, 0])
        assert circuit.instances() == [merkle_root(1, [2, 3], [1, 0])]
        assert circuit.k() == 8


class TestProofs:

    @pytest.mark.parametrize("index", [0, 3])
    def test_member_accepted(self, merkle_tree, merkle_keys, rng, index: int) -> None:
        pk, vk = merkle_keys
        siblings, directions = merkle_tree.path(index)
        circuit = MerkleMembership.build(merkle_tree.leaf(index), siblings, directions, depth=merkle_tree.depth)
        proof = prove(pk, circuit, rng)
        assert verify(vk, [merkle_tree.root], proof)

    def test_wrong_root_rejected(self, merkle_tree, merkle_keys, rng) -> None:
        pk, vk = merkle_keys
        siblings, directions = merkle_tree.path(1)
        proof = prove(pk, MerkleMembership.build(merkle_tree.leaf(1), siblings, directions), rng)
        assert not verify(vk, [int(merkle_tree.root) ^ 1], proof)

    def test_flipped_direction_rejected(self, merkle_tree, merkle_keys, rng) -> None:
        pk, vk = merkle_keys
        siblings, directions = merkle_tree.path(2)
        flipped = [1 - directions[0]] + directions[1:]
        circuit = MerkleMembership.build(merkle_tree.leaf(2), siblings, flipped, root=merkle_tree.root)
        proof = prove(pk, circuit, rng)
        assert not verify(vk, [merkle_tree.root], proof)

    def test_non_member_rejected(self, merkle_tree, merkle_keys, rng) -> None:
        pk, vk = merkle_keys
        siblings, directions = merkle_tree.path(0)
        circuit = MerkleMembership.build(999, siblings, directions, root=merkle_tree.root)
        proof = prove(pk, circuit, rng)
        assert not verify(vk, [merkle_tree.root], proof)

"""
Pytest configuration: repository root on sys.path and session-wide keys.

Key generation commits every fixed column, so keys are built once per session
and shared read-only, like setup parameters in production.
"""

import sys
from pathlib import Path

# Add the repository root to the path so absolute imports work
# (tests/ is inside the repository, so parent is the root)
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from random import Random

import pytest

from circuits import MerkleMembership, NullifierCircuit, PoseidonMerkleTree, RangeProof
from protocol.pipeline import describe, keygen, setup


@pytest.fixture(scope="session")
def range_keys():
    circuit = RangeProof(value=0, min=0, max=0)
    return keygen(setup(circuit.k()), describe(circuit))


@pytest.fixture(scope="session")
def nullifier_keys():
    circuit = NullifierCircuit.build(0, 0, 0, 0, 0)
    return keygen(setup(circuit.k), describe(circuit))


@pytest.fixture(scope="session")
def merkle_tree() -> PoseidonMerkleTree:
    return PoseidonMerkleTree([101, 202, 303, 404])


@pytest.fixture(scope="session")
def merkle_keys(merkle_tree):
    depth = merkle_tree.depth
    circuit = MerkleMembership(leaf=0, siblings=[0] * depth, directions=[0] * depth, root=0)
    return keygen(setup(circuit.k()), describe(circuit))


@pytest.fixture
def rng() -> Random:
    """Deterministic blinding for reproducible proofs."""
    return Random(0xB1D)

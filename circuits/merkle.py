"""Merkle membership: a secret leaf belongs to a Poseidon Merkle tree.

Public instances: ``[root]``.

Each level occupies one Poseidon region. Row 0 of the region carries the current
node, its sibling and the direction bit next to the hash input, and the
``merkle swap`` gate orders the pair before hashing:

    d * (1 - d) = 0
    left  = cur + d * (sib - cur)
    right = sib + d * (cur - sib)

Direction 0 means the current node is the left child. The digest of each level is
copy-constrained into the next level's current node; the last one is the root.
"""

from dataclasses import dataclass, replace
from typing import ClassVar, List, Optional, Sequence, Tuple

from circuits.poseidon_chip import HASH_ROWS, PoseidonChip, PoseidonConfig
from primitives.field import FF, Fr, is_canonical
from primitives.poseidon import poseidon_hash
from protocol.circuit import Circuit
from protocol.constraint_system import ConstraintSystem
from protocol.errors import ConfigurationError, WitnessError
from protocol.expressions import Column, Selector
from protocol.layouter import Layouter
from protocol.params import min_k


def _ordered(cur: int, sib: int, direction: int) -> Tuple[int, int]:
    cur, sib, d = FF(cur), FF(sib), FF(direction)
    return int(cur + d * (sib - cur)), int(sib + d * (cur - sib))


def merkle_root(leaf, siblings: Sequence, directions: Sequence) -> Fr:
    """Root reached from ``leaf`` along a path, computed natively."""
    node = int(leaf)
    for sib, d in zip(siblings, directions):
        node = int(poseidon_hash(*_ordered(node, int(sib), int(d))))
    return Fr(node)


def k_for_depth(depth: int) -> int:
    """Smallest k whose usable rows hold a path of this depth."""
    return min_k(depth * HASH_ROWS)


class PoseidonMerkleTree:
    """Application-side Poseidon Merkle tree; leaves are padded with zeros to a power of two."""

    def __init__(self, leaves: Sequence) -> None:
        if not leaves:
            raise ConfigurationError("a Merkle tree needs at least one leaf")
        width = 1
        while width < max(len(leaves), 2):
            width *= 2
        for v in leaves:
            if not is_canonical(v):
                raise WitnessError(f"leaf {v!r} is not a field element")
        level = [int(v) for v in leaves] + [0] * (width - len(leaves))
        self.layers: List[List[int]] = [level]
        while len(level) > 1:
            level = [int(poseidon_hash(level[i], level[i + 1])) for i in range(0, len(level), 2)]
            self.layers.append(level)

    @property
    def depth(self) -> int:
        return len(self.layers) - 1

    @property
    def root(self) -> Fr:
        return Fr(self.layers[-1][0])

    def leaf(self, index: int) -> int:
        return self.layers[0][index]

    def path(self, index: int) -> Tuple[List[int], List[int]]:
        """(siblings, directions) from leaf ``index`` up to the root."""
        if not 0 <= index < len(self.layers[0]):
            raise ConfigurationError(f"leaf index {index} out of range [0, {len(self.layers[0])})")
        siblings, directions = [], []
        for level in self.layers[:-1]:
            siblings.append(level[index ^ 1])
            directions.append(index & 1)
            index >>= 1
        return siblings, directions


@dataclass(frozen=True)
class MerkleConfig:
    poseidon: PoseidonConfig
    cur: Column
    sibling: Column
    direction: Column
    instance: Column
    q_swap: Selector


@dataclass
class MerkleMembership(Circuit):
    """Membership of a private leaf under a public root.

    The raw constructor keeps whatever directions it is given, so a non-boolean
    direction reaches the ``merkle swap`` gate. ``build`` validates.
    """
    leaf: int
    siblings: List[int]
    directions: List[int]
    root: Optional[int] = None

    name: ClassVar[str] = "merkle_membership"

    def __post_init__(self) -> None:
        if len(self.siblings) != len(self.directions):
            raise ConfigurationError(
                f"{len(self.siblings)} siblings but {len(self.directions)} direction bits")
        if not self.siblings:
            raise ConfigurationError("Merkle path must have at least one level")

    @classmethod
    def build(cls, leaf, siblings: Sequence, directions: Sequence, depth: Optional[int] = None,
              root=None) -> "MerkleMembership":
        """Validated constructor.

        Raises:
            ConfigurationError: path lengths differ from each other or from ``depth``
            WitnessError: a value that is not a field element, or a non-boolean direction
        """
        siblings, directions = list(siblings), list(directions)
        if len(siblings) != len(directions):
            raise ConfigurationError(f"{len(siblings)} siblings but {len(directions)} direction bits")
        if depth is not None and len(siblings) != depth:
            raise ConfigurationError(f"path of length {len(siblings)} for a depth-{depth} tree")
        for label, v in [("leaf", leaf)] + [("sibling", s) for s in siblings]:
            if not is_canonical(v):
                raise WitnessError(f"{label} ({v!r}) is not a field element")
        for d in directions:
            if not _is_bit(d):
                raise WitnessError(f"direction {d!r} is not a bit")
        if root is not None and not is_canonical(root):
            raise WitnessError(f"root ({root!r}) is not a field element")
        return cls(leaf=int(leaf), siblings=[int(s) for s in siblings], directions=[int(d) for d in directions],
                   root=None if root is None else int(root))

    @property
    def depth(self) -> int:
        return len(self.siblings)

    def k(self) -> int:
        return k_for_depth(self.depth)

    def claimed_root(self) -> int:
        if self.root is not None:
            return int(self.root)
        return int(merkle_root(self.leaf, self.siblings, self.directions))

    # --- Circuit interface ---

    def configure(self, meta: ConstraintSystem) -> MerkleConfig:
        poseidon = PoseidonChip.configure(meta)
        cur, sibling, direction = meta.advice_column(), meta.advice_column(), meta.advice_column()
        instance = meta.instance_column()
        meta.enable_equality(cur)
        meta.enable_equality(instance)
        q_swap = meta.selector()

        _, left, right = (c.cur() for c in poseidon.state)
        q, c, s, d = q_swap.query(), cur.cur(), sibling.cur(), direction.cur()
        meta.create_gate("merkle swap", [
            q * d * (1 - d),
            q * (left - (c + d * (s - c))),
            q * (right - (s + d * (c - s))),
        ])
        return MerkleConfig(poseidon=poseidon, cur=cur, sibling=sibling, direction=direction,
                            instance=instance, q_swap=q_swap)

    def synthesize(self, config: MerkleConfig, layouter: Layouter) -> None:
        chip = PoseidonChip(config.poseidon)
        node = self.leaf
        digest = None
        for level, (sib, d) in enumerate(zip(self.siblings, self.directions)):
            with layouter.region(f"merkle level {level}") as region:
                region.enable_selector(config.q_swap, 0)
                cur = region.assign_advice(config.cur, 0, node)
                region.assign_advice(config.sibling, 0, sib)
                region.assign_advice(config.direction, 0, d)
                if digest is not None:
                    region.constrain_equal(digest, cur)
                left, right = _ordered(cur.value, int(sib), int(d))
                digest = chip.assign_permutation(region, 0, left, right).output
            node = digest.value
        layouter.constrain_instance(digest, config.instance, 0)

    def instances(self) -> List[Fr]:
        return [Fr(self.claimed_root())]

    def without_witnesses(self) -> "MerkleMembership":
        return replace(self, leaf=0, siblings=[0] * self.depth, directions=[0] * self.depth, root=0)


def _is_bit(d) -> bool:
    return (isinstance(d, bool) or is_canonical(d)) and int(d) in (0, 1)

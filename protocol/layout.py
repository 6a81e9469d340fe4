"""Commitment layout: which polynomials live in which Merkle tree, and which are opened.

Polynomials are identified by ``PolyId`` tuples:

    ("fixed", i)     fixed column i (selectors and lookup tables included)
    ("sigma", c)     permutation polynomial of equality column c
    ("advice", i)    advice column i
    ("mult", l)      multiplicities of lookup l
    ("z", 0)         permutation grand product; ("z", j), j > 0, partial products
    ("phi", l)       logUp running sum of lookup l
    ("quotient", i)  quotient piece i
    ("instance", i)  instance column i, never committed (the verifier interpolates it)
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

from protocol.constraint_system import ConstraintSystem
from protocol.expressions import ColumnKind

PolyId = Tuple[str, int]
Opening = Tuple[PolyId, int]

TREES = ("fixed", "advice", "aux", "quotient")


@dataclass(frozen=True)
class TraceLayout:
    """Tree membership and the ordered list of openings at zeta * omega^rotation."""
    trees: Dict[str, Tuple[PolyId, ...]]
    openings: Tuple[Opening, ...]
    chunk_sizes: Tuple[int, ...]
    quotient_pieces: int

    @classmethod
    def from_cs(cls, cs: ConstraintSystem, quotient_pieces: int) -> "TraceLayout":
        chunks = cs.permutation_chunks()
        trees = {
            "fixed": tuple([("fixed", i) for i in range(cs.num_fixed)]
                           + [("sigma", c) for c in range(len(cs.equality))]),
            "advice": tuple([("advice", i) for i in range(cs.num_advice)]
                            + [("mult", l) for l in range(len(cs.lookups))]),
            "aux": tuple([("z", j) for j in range(len(chunks))]
                         + [("phi", l) for l in range(len(cs.lookups))]),
            "quotient": tuple(("quotient", i) for i in range(quotient_pieces)),
        }

        wanted = set()
        for gate in cs.gates:
            for constraint in gate.constraints:
                wanted |= {(q.column.poly_id, q.rotation) for q in constraint.queries()}
        for c, column in enumerate(cs.equality):
            wanted.add((column.poly_id, 0))
            wanted.add((("sigma", c), 0))
        for j in range(len(chunks)):
            wanted.add((("z", j), 0))
        if chunks:
            wanted.add((("z", 0), 1))
        for l, lookup in enumerate(cs.lookups):
            wanted |= {(q.column.poly_id, q.rotation) for q in lookup.input.queries()}
            wanted |= {(lookup.table.poly_id, 0), (("mult", l), 0), (("phi", l), 0), (("phi", l), 1)}
        for i in range(quotient_pieces):
            wanted.add((("quotient", i), 0))

        position = {pid: (t, p) for t, name in enumerate(TREES) for p, pid in enumerate(trees[name])}
        openings = sorted((o for o in wanted if o[0][0] != ColumnKind.INSTANCE.value),
                          key=lambda o: (position[o[0]], o[1]))
        return cls(trees=trees, openings=tuple(openings),
                   chunk_sizes=tuple(len(c) for c in chunks), quotient_pieces=quotient_pieces)

    def tree_polys(self, tree: str) -> Tuple[PolyId, ...]:
        return self.trees[tree]

    def rotations(self) -> List[int]:
        return sorted({rot for _, rot in self.openings})

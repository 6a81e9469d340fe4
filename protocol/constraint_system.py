"""Constraint system: column allocation, gates, lookups, equality.

A ConstraintSystem is filled by a circuit's ``configure`` and then frozen. The
frozen system is part of the circuit's ConstraintDescriptor and of the verifying
key; every configuration mistake raises ConfigurationError here, before any
synthesis or proving.
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from protocol.errors import ConfigurationError
from protocol.expressions import Column, ColumnKind, Expression, Selector, from_json

PERMUTATION_CHUNK_SIZE = 4
"""Equality columns per grand-product chunk; chunk constraints have degree chunk + 2."""


@dataclass(frozen=True)
class Gate:
    """Named list of expressions that must vanish on every usable row."""
    name: str
    constraints: Tuple[Expression, ...]

    def degree(self) -> int:
        return max(c.degree() for c in self.constraints)


@dataclass(frozen=True)
class Lookup:
    """On every usable row, ``input`` evaluates to some value of ``table``."""
    name: str
    input: Expression
    table: Column

    def degree(self) -> int:
        # l_active * (phi' - phi) * (theta - input) * (theta - table)
        return self.input.degree() + 3


class ConstraintSystem:
    """Columns, selectors, gates and lookups of one circuit shape."""

    def __init__(self) -> None:
        self.num_advice = 0
        self.num_fixed = 0
        self.num_instance = 0
        self.selectors: List[Column] = []
        self.table_columns: List[Column] = []
        self.equality: List[Column] = []
        self.gates: List[Gate] = []
        self.lookups: List[Lookup] = []
        self._frozen = False

    # --- Allocation ---

    def advice_column(self) -> Column:
        self._check_mutable()
        self.num_advice += 1
        return Column(ColumnKind.ADVICE, self.num_advice - 1)

    def fixed_column(self) -> Column:
        self._check_mutable()
        self.num_fixed += 1
        return Column(ColumnKind.FIXED, self.num_fixed - 1)

    def instance_column(self) -> Column:
        self._check_mutable()
        self.num_instance += 1
        return Column(ColumnKind.INSTANCE, self.num_instance - 1)

    def selector(self) -> Selector:
        column = self.fixed_column()
        self.selectors.append(column)
        return Selector(column)

    def lookup_table_column(self) -> Column:
        column = self.fixed_column()
        self.table_columns.append(column)
        return column

    def enable_equality(self, column: Column) -> None:
        self._check_mutable()
        self._check_declared(column)
        if column not in self.equality:
            self.equality.append(column)

    # --- Constraints ---

    def create_gate(self, name: str, constraints: Sequence[Expression]) -> Gate:
        self._check_mutable()
        constraints = tuple(constraints)
        if not constraints:
            raise ConfigurationError(f"gate {name!r} has no constraints")
        for c in constraints:
            if not isinstance(c, Expression):
                raise ConfigurationError(f"gate {name!r}: constraint {c!r} is not an expression")
            for q in c.queries():
                self._check_declared(q.column)
        gate = Gate(name, constraints)
        self.gates.append(gate)
        return gate

    def lookup(self, name: str, input_expression: Expression, table: Column) -> Lookup:
        self._check_mutable()
        if not isinstance(input_expression, Expression):
            raise ConfigurationError(f"lookup {name!r}: input is not an expression")
        for q in input_expression.queries():
            self._check_declared(q.column)
        if table not in self.table_columns:
            raise ConfigurationError(f"lookup {name!r}: {table} is not a lookup table column")
        lookup = Lookup(name, input_expression, table)
        self.lookups.append(lookup)
        return lookup

    def freeze(self) -> "ConstraintSystem":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # --- Derived shape ---

    def is_selector(self, column: Column) -> bool:
        return column in self.selectors

    def permutation_chunks(self) -> List[List[Column]]:
        """Equality columns split into grand-product chunks."""
        return [self.equality[i:i + PERMUTATION_CHUNK_SIZE]
                for i in range(0, len(self.equality), PERMUTATION_CHUNK_SIZE)]

    def degree(self) -> int:
        """Maximum degree of any constraint the prover divides by the vanishing polynomial."""
        degrees = [2]
        degrees += [g.degree() for g in self.gates]
        degrees += [lk.degree() for lk in self.lookups]
        degrees += [len(chunk) + 2 for chunk in self.permutation_chunks()]
        return max(degrees)

    def columns_of(self, kind: ColumnKind) -> List[Column]:
        count = {ColumnKind.ADVICE: self.num_advice,
                 ColumnKind.FIXED: self.num_fixed,
                 ColumnKind.INSTANCE: self.num_instance}[kind]
        return [Column(kind, i) for i in range(count)]

    # --- Validation ---

    def _check_mutable(self) -> None:
        if self._frozen:
            raise ConfigurationError("constraint system is frozen after configuration")

    def _check_declared(self, column: Column) -> None:
        count = {ColumnKind.ADVICE: self.num_advice,
                 ColumnKind.FIXED: self.num_fixed,
                 ColumnKind.INSTANCE: self.num_instance}[column.kind]
        if not 0 <= column.index < count:
            raise ConfigurationError(f"column {column} was not declared by this constraint system")

    # --- Serialization ---

    def to_json(self) -> Dict:
        return {
            "num_advice": self.num_advice,
            "num_fixed": self.num_fixed,
            "num_instance": self.num_instance,
            "selectors": [c.index for c in self.selectors],
            "table_columns": [c.index for c in self.table_columns],
            "equality": [[c.kind.value, c.index] for c in self.equality],
            "gates": [{"name": g.name, "constraints": [c.to_json() for c in g.constraints]}
                      for g in self.gates],
            "lookups": [{"name": lk.name, "input": lk.input.to_json(), "table": lk.table.index}
                        for lk in self.lookups],
        }

    @classmethod
    def from_json(cls, data: Dict) -> "ConstraintSystem":
        cs = cls()
        cs.num_advice = int(data["num_advice"])
        cs.num_fixed = int(data["num_fixed"])
        cs.num_instance = int(data["num_instance"])
        cs.selectors = [Column(ColumnKind.FIXED, i) for i in data["selectors"]]
        cs.table_columns = [Column(ColumnKind.FIXED, i) for i in data["table_columns"]]
        cs.equality = [Column(ColumnKind(kind), i) for kind, i in data["equality"]]
        cs.gates = [Gate(g["name"], tuple(from_json(c) for c in g["constraints"]))
                    for g in data["gates"]]
        cs.lookups = [Lookup(lk["name"], from_json(lk["input"]), Column(ColumnKind.FIXED, lk["table"]))
                      for lk in data["lookups"]]
        return cs.freeze()

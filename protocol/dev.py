"""Mock prover: evaluate every constraint against concrete witness values.

Debug mode only. It localizes failures to a gate, constraint and row instead of
producing a proof that merely fails to verify.
"""

from dataclasses import dataclass
from typing import Dict, List

import numpy as np

from primitives.field import FF
from protocol.circuit import Circuit, synthesize
from protocol.errors import BackendFailure, ConstraintUnsatisfied
from protocol.evaluation import ProverConstraintContext
from protocol.layout import PolyId
from protocol.params import SetupParams


@dataclass(frozen=True)
class VerifyFailure:
    """One violated constraint."""
    kind: str
    name: str
    row: int
    detail: str = ""

    def __str__(self) -> str:
        suffix = f" ({self.detail})" if self.detail else ""
        return f"{self.kind} {self.name!r} not satisfied at row {self.row}{suffix}"


class MockProver:
    """Row-by-row constraint checker over a synthesized circuit."""

    def __init__(self, k: int, circuit: Circuit) -> None:
        params = SetupParams(k).validate()
        descriptor, witness = synthesize(circuit)
        if descriptor.rows > params.usable_rows:
            raise BackendFailure(
                f"{descriptor.name} needs {descriptor.rows} rows but k={k} provides {params.usable_rows}")
        self.k = k
        self.usable_rows = params.usable_rows
        self.descriptor = descriptor
        self.cs = descriptor.cs
        self.n = params.n

        n = params.n
        columns: Dict[PolyId, FF] = {}
        for i in range(self.cs.num_advice):
            col = FF.Zeros(n)
            for row, value in witness.advice.get(i, {}).items():
                col[row] = FF(value)
            columns[("advice", i)] = col
        for i, assigned in enumerate(descriptor.fixed):
            col = FF.Zeros(n)
            for row, value in assigned:
                col[row] = FF(value)
            columns[("fixed", i)] = col
        for i, values in enumerate(witness.instances):
            col = FF.Zeros(n)
            for row, value in enumerate(values):
                col[row] = FF(int(value))
            columns[("instance", i)] = col
        self.columns = columns
        self._ctx = ProverConstraintContext(columns, 1, None, {}, {})

    @classmethod
    def run(cls, k: int, circuit: Circuit) -> "MockProver":
        return cls(k, circuit)

    def _cell(self, ref) -> int:
        kind, index, row = ref
        return int(self.columns[(kind, index)][row])

    def verify(self) -> List[VerifyFailure]:
        """Every failure across gates, lookups and copy constraints."""
        failures: List[VerifyFailure] = []
        u = self.usable_rows

        for gate in self.cs.gates:
            for c, constraint in enumerate(gate.constraints):
                values = constraint.evaluate(self._ctx)
                if values.ndim == 0:
                    values = FF.Ones(self.n) * values
                for row in np.flatnonzero(values[:u] != 0):
                    failures.append(VerifyFailure("gate", gate.name, int(row), f"constraint {c}"))

        for lookup in self.cs.lookups:
            table = {int(v) for v in self.columns[lookup.table.poly_id][:u]}
            inputs = lookup.input.evaluate(self._ctx)
            for row in range(u):
                value = int(inputs[row]) if inputs.ndim else int(inputs)
                if value not in table:
                    failures.append(VerifyFailure("lookup", lookup.name, row, f"value {value:#x} not in table"))

        for left, right in self.descriptor.copies:
            if self._cell(left) != self._cell(right):
                failures.append(VerifyFailure(
                    "copy", f"{left[0]}[{left[1]}] == {right[0]}[{right[1]}]", left[2],
                    f"{self._cell(left):#x} != {self._cell(right):#x} (row {right[2]})"))
        return failures

    def assert_satisfied(self) -> None:
        failures = self.verify()
        if failures:
            raise ConstraintUnsatisfied(failures)

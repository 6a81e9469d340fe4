"""Witness synthesizer: regions, cell assignment and deferred equality bindings.

Synthesis runs a circuit's ``synthesize`` against a Layouter. Regions are opened
as context managers and stacked one after another (a single-pass floor planner);
copy constraints and instance bindings are accumulated while regions are filled
and applied to the Assembly only when the whole pass completes:

    with Layouter(assembly) as layouter:
        with layouter.region("range check") as region:
            value = region.assign_advice(config.value, 0, 42)
        layouter.constrain_instance(value, config.instance, 2)
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Tuple

from primitives.field import is_canonical
from protocol.constraint_system import ConstraintSystem
from protocol.errors import ConfigurationError, WitnessError
from protocol.expressions import Column, ColumnKind, Selector

CellRef = Tuple[str, int, int]
"""(column kind, column index, row)."""


@dataclass(frozen=True)
class Cell:
    """Handle to an assigned cell; ``value`` is the assigned field element."""
    column: Column
    row: int
    value: int

    @property
    def ref(self) -> CellRef:
        return (self.column.kind.value, self.column.index, self.row)


@dataclass
class Assembly:
    """Everything a synthesis pass writes into the table."""
    cs: ConstraintSystem
    advice: Dict[int, Dict[int, int]] = field(default_factory=dict)
    fixed: Dict[int, Dict[int, int]] = field(default_factory=dict)
    copies: List[Tuple[CellRef, CellRef]] = field(default_factory=list)
    instance_bindings: Dict[int, Dict[int, CellRef]] = field(default_factory=dict)
    rows: int = 0

    def assign(self, column: Column, row: int, value, annotation: str = "") -> int:
        if column.kind == ColumnKind.INSTANCE:
            raise ConfigurationError(f"{annotation}: instance cells are bound with constrain_instance")
        self.cs._check_declared(column)
        if row < 0:
            raise ConfigurationError(f"{annotation}: negative row {row}")
        if value is None:
            raise WitnessError(f"{annotation}: missing witness value for {column} row {row}")
        if not is_canonical(value):
            raise WitnessError(f"{annotation}: {value!r} is not a field element in {column} row {row}")
        value = int(value)
        cells = (self.advice if column.kind == ColumnKind.ADVICE else self.fixed).setdefault(column.index, {})
        if row in cells and cells[row] != value:
            raise ConfigurationError(f"{annotation}: {column} row {row} assigned twice")
        cells[row] = value
        self.rows = max(self.rows, row + 1)
        return value

    def copy(self, left: Cell, right: Cell) -> None:
        for cell in (left, right):
            if cell.column not in self.cs.equality:
                raise ConfigurationError(f"column {cell.column} is not equality-enabled")
        self.copies.append((left.ref, right.ref))

    def bind_instance(self, cell: Cell, column: Column, row: int) -> None:
        if column.kind != ColumnKind.INSTANCE:
            raise ConfigurationError(f"{column} is not an instance column")
        self.cs._check_declared(column)
        for col in (cell.column, column):
            if col not in self.cs.equality:
                raise ConfigurationError(f"column {col} is not equality-enabled")
        bound = self.instance_bindings.setdefault(column.index, {})
        if row in bound:
            raise ConfigurationError(f"instance row {row} of {column} bound twice")
        bound[row] = cell.ref
        self.copies.append((cell.ref, (ColumnKind.INSTANCE.value, column.index, row)))

    def instance_lengths(self) -> List[int]:
        """Public values per instance column; bound rows must be contiguous from 0."""
        lengths = []
        for col in self.cs.columns_of(ColumnKind.INSTANCE):
            rows = sorted(self.instance_bindings.get(col.index, {}))
            if rows != list(range(len(rows))):
                raise ConfigurationError(f"instance rows of {col} are not contiguous: {rows}")
            lengths.append(len(rows))
        return lengths


class Region:
    """Rows [start, start + height) of one sub-claim."""

    def __init__(self, layouter: "Layouter", name: str, start: int) -> None:
        self.layouter = layouter
        self.name = name
        self.start = start
        self.height = 0

    def _row(self, offset: int) -> int:
        if offset < 0:
            raise ConfigurationError(f"region {self.name!r}: negative offset {offset}")
        self.height = max(self.height, offset + 1)
        return self.start + offset

    def assign_advice(self, column: Column, offset: int, value) -> Cell:
        if column.kind != ColumnKind.ADVICE:
            raise ConfigurationError(f"region {self.name!r}: {column} is not an advice column")
        row = self._row(offset)
        value = self.layouter.assembly.assign(column, row, value, self.name)
        return Cell(column, row, value)

    def assign_fixed(self, column: Column, offset: int, value) -> Cell:
        cs = self.layouter.assembly.cs
        if column.kind != ColumnKind.FIXED or cs.is_selector(column) or column in cs.table_columns:
            raise ConfigurationError(f"region {self.name!r}: {column} is not a plain fixed column")
        row = self._row(offset)
        value = self.layouter.assembly.assign(column, row, value, self.name)
        return Cell(column, row, value)

    def enable_selector(self, selector: Selector, offset: int) -> None:
        if not self.layouter.assembly.cs.is_selector(selector.column):
            raise ConfigurationError(f"region {self.name!r}: {selector.column} is not a selector")
        self.layouter.assembly.assign(selector.column, self._row(offset), 1, self.name)

    def constrain_equal(self, left: Cell, right: Cell) -> None:
        self.layouter._defer(lambda asm: asm.copy(left, right))


class TableRegion:
    """Assigns lookup-table columns from row 0, independent of the region cursor."""

    def __init__(self, assembly: Assembly, name: str) -> None:
        self.assembly = assembly
        self.name = name

    def assign_cell(self, column: Column, row: int, value) -> None:
        if column not in self.assembly.cs.table_columns:
            raise ConfigurationError(f"table {self.name!r}: {column} is not a lookup table column")
        self.assembly.assign(column, row, value, self.name)


class Layouter:
    """Stacks regions and defers equality bindings until the pass completes."""

    def __init__(self, assembly: Assembly) -> None:
        self.assembly = assembly
        self.cursor = 0
        self._pending: List = []

    def __enter__(self) -> "Layouter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.finalize()

    @contextmanager
    def region(self, name: str) -> Iterator[Region]:
        region = Region(self, name, self.cursor)
        yield region
        self.cursor += region.height

    @contextmanager
    def assign_table(self, name: str) -> Iterator[TableRegion]:
        yield TableRegion(self.assembly, name)

    def constrain_instance(self, cell: Cell, column: Column, row: int) -> None:
        self._defer(lambda asm: asm.bind_instance(cell, column, row))

    def _defer(self, binding) -> None:
        self._pending.append(binding)

    def finalize(self) -> None:
        """Apply every deferred copy constraint and instance binding."""
        pending, self._pending = self._pending, []
        for binding in pending:
            binding(self.assembly)
        self.assembly.rows = max(self.assembly.rows, self.cursor)

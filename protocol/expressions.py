"""Polynomial constraint expressions over queried columns.

Gates and lookup inputs are trees of ``Constant``, ``Query`` (a column read at a
row rotation), ``Sum``, ``Product`` and ``Negated`` nodes, built with ordinary
Python operators:

    s = meta.selector()
    a, b = meta.advice_column(), meta.advice_column()
    gate = s.query() * (a.cur() * b.cur() - a.next())

Evaluation is delegated to a ConstraintContext, so the same tree is evaluated
over whole LDE arrays by the prover and over opened scalars by the verifier.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, List, Tuple, Union

from primitives.field import FF, P, is_canonical


class ColumnKind(Enum):
    ADVICE = "advice"
    FIXED = "fixed"
    INSTANCE = "instance"


@dataclass(frozen=True)
class Column:
    """A column of the table, identified by kind and index."""
    kind: ColumnKind
    index: int

    def query(self, rotation: int = 0) -> "Query":
        return Query(self, rotation)

    def cur(self) -> "Query":
        return Query(self, 0)

    def next(self) -> "Query":
        return Query(self, 1)

    def prev(self) -> "Query":
        return Query(self, -1)

    @property
    def poly_id(self) -> Tuple[str, int]:
        return (self.kind.value, self.index)

    def __str__(self) -> str:
        return f"{self.kind.value}[{self.index}]"


@dataclass(frozen=True)
class Selector:
    """Boolean fixed column toggling gates on the rows where it is enabled."""
    column: Column

    def query(self) -> "Query":
        return Query(self.column, 0)


# --- Expression tree ---

class Expression:
    """Base class; operators build new trees."""

    def __add__(self, other):
        other = _lift(other)
        return NotImplemented if other is None else Sum(self, other)

    def __radd__(self, other):
        other = _lift(other)
        return NotImplemented if other is None else Sum(other, self)

    def __sub__(self, other):
        other = _lift(other)
        return NotImplemented if other is None else Sum(self, Negated(other))

    def __rsub__(self, other):
        other = _lift(other)
        return NotImplemented if other is None else Sum(other, Negated(self))

    def __mul__(self, other):
        other = _lift(other)
        return NotImplemented if other is None else Product(self, other)

    def __rmul__(self, other):
        other = _lift(other)
        return NotImplemented if other is None else Product(other, self)

    def __neg__(self):
        return Negated(self)

    def degree(self) -> int:
        raise NotImplementedError

    def queries(self) -> FrozenSet["Query"]:
        raise NotImplementedError

    def evaluate(self, ctx):
        raise NotImplementedError

    def to_json(self) -> list:
        raise NotImplementedError


@dataclass(frozen=True, eq=True)
class Constant(Expression):
    value: int

    def degree(self) -> int:
        return 0

    def queries(self) -> FrozenSet["Query"]:
        return frozenset()

    def evaluate(self, ctx):
        return FF(self.value)

    def to_json(self) -> list:
        return ["const", hex(self.value)]


@dataclass(frozen=True, eq=True)
class Query(Expression):
    column: Column
    rotation: int = 0

    def degree(self) -> int:
        return 1

    def queries(self) -> FrozenSet["Query"]:
        return frozenset([self])

    def evaluate(self, ctx):
        return ctx.poly(self.column.poly_id, self.rotation)

    def to_json(self) -> list:
        return ["query", self.column.kind.value, self.column.index, self.rotation]


@dataclass(frozen=True, eq=True)
class Sum(Expression):
    left: Expression
    right: Expression

    def degree(self) -> int:
        return max(self.left.degree(), self.right.degree())

    def queries(self) -> FrozenSet["Query"]:
        return self.left.queries() | self.right.queries()

    def evaluate(self, ctx):
        return self.left.evaluate(ctx) + self.right.evaluate(ctx)

    def to_json(self) -> list:
        return ["sum", self.left.to_json(), self.right.to_json()]


@dataclass(frozen=True, eq=True)
class Product(Expression):
    left: Expression
    right: Expression

    def degree(self) -> int:
        return self.left.degree() + self.right.degree()

    def queries(self) -> FrozenSet["Query"]:
        return self.left.queries() | self.right.queries()

    def evaluate(self, ctx):
        return self.left.evaluate(ctx) * self.right.evaluate(ctx)

    def to_json(self) -> list:
        return ["prod", self.left.to_json(), self.right.to_json()]


@dataclass(frozen=True, eq=True)
class Negated(Expression):
    inner: Expression

    def degree(self) -> int:
        return self.inner.degree()

    def queries(self) -> FrozenSet["Query"]:
        return self.inner.queries()

    def evaluate(self, ctx):
        return -self.inner.evaluate(ctx)

    def to_json(self) -> list:
        return ["neg", self.inner.to_json()]


def _lift(value) -> Union[Expression, None]:
    if isinstance(value, Expression):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return Constant(value % P)
    if is_canonical(value):
        return Constant(int(value))
    return None


def constant(value: int) -> Constant:
    return Constant(int(value) % P)


def from_json(data: List) -> Expression:
    """Rebuild an expression tree from its ``to_json`` form."""
    tag = data[0]
    if tag == "const":
        return Constant(int(data[1], 16))
    if tag == "query":
        return Query(Column(ColumnKind(data[1]), int(data[2])), int(data[3]))
    if tag == "sum":
        return Sum(from_json(data[1]), from_json(data[2]))
    if tag == "prod":
        return Product(from_json(data[1]), from_json(data[2]))
    if tag == "neg":
        return Negated(from_json(data[1]))
    raise ValueError(f"unknown expression tag {tag!r}")

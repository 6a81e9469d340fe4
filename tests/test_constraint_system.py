"""Tests for constraint expressions and the constraint system builder."""

import pytest

from primitives.field import FF, P
from protocol.constraint_system import ConstraintSystem, PERMUTATION_CHUNK_SIZE
from protocol.errors import ConfigurationError
from protocol.expressions import Column, ColumnKind, Constant, from_json


class _Scalars:
    """Evaluation context over field scalars keyed by (poly id, rotation)."""

    def __init__(self, values) -> None:
        self.values = values

    def poly(self, pid, rotation):
        return self.values[(pid, rotation)]


class TestExpressions:
    """Operator lifting, degree and evaluation."""

    def test_degree(self) -> None:
        meta = ConstraintSystem()
        s = meta.selector()
        a, b = meta.advice_column(), meta.advice_column()
        assert (s.query() * (a.cur() * b.cur() - a.next())).degree() == 3
        assert (a.cur() + 5).degree() == 1
        assert Constant(3).degree() == 0

    def test_queries_collect_rotations(self) -> None:
        meta = ConstraintSystem()
        a = meta.advice_column()
        expr = a.cur() * a.next() + a.prev()
        assert {q.rotation for q in expr.queries()} == {-1, 0, 1}

    def test_int_operands_are_reduced(self) -> None:
        meta = ConstraintSystem()
        a = meta.advice_column()
        expr = a.cur() + (-1)
        assert expr.right == Constant(P - 1)

    def test_bool_operand_not_lifted(self) -> None:
        meta = ConstraintSystem()
        a = meta.advice_column()
        with pytest.raises(TypeError):
            a.cur() + True

    def test_evaluate(self) -> None:
        meta = ConstraintSystem()
        a, b = meta.advice_column(), meta.advice_column()
        expr = 1 - a.cur() * b.next()
        ctx = _Scalars({(a.poly_id, 0): FF(3), (b.poly_id, 1): FF(5)})
        assert expr.evaluate(ctx) == (1 - 15) % P

    def test_json_form_rebuilds_same_tree(self) -> None:
        meta = ConstraintSystem()
        s = meta.selector()
        a = meta.advice_column()
        expr = s.query() * (a.cur() - 7 * a.next()) + (-a.prev())
        assert from_json(expr.to_json()) == expr

    def test_unknown_json_tag(self) -> None:
        with pytest.raises(ValueError):
            from_json(["pow", 2])


class TestConstraintSystem:
    """Configuration-time validation."""

    def test_columns_are_numbered_per_kind(self) -> None:
        meta = ConstraintSystem()
        assert meta.advice_column() == Column(ColumnKind.ADVICE, 0)
        assert meta.fixed_column() == Column(ColumnKind.FIXED, 0)
        s = meta.selector()
        assert s.column == Column(ColumnKind.FIXED, 1)
        assert meta.is_selector(s.column)
        assert meta.instance_column() == Column(ColumnKind.INSTANCE, 0)

    def test_frozen_rejects_changes(self) -> None:
        meta = ConstraintSystem()
        a = meta.advice_column()
        meta.freeze()
        with pytest.raises(ConfigurationError):
            meta.advice_column()
        with pytest.raises(ConfigurationError):
            meta.create_gate("late", [a.cur()])

    def test_undeclared_column_rejected(self) -> None:
        meta = ConstraintSystem()
        stray = Column(ColumnKind.ADVICE, 3)
        with pytest.raises(ConfigurationError):
            meta.enable_equality(stray)
        with pytest.raises(ConfigurationError):
            meta.create_gate("stray", [stray.cur()])

    def test_empty_gate_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            ConstraintSystem().create_gate("empty", [])

    def test_non_expression_constraint_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            ConstraintSystem().create_gate("literal", [5])

    def test_lookup_needs_table_column(self) -> None:
        meta = ConstraintSystem()
        a = meta.advice_column()
        plain = meta.fixed_column()
        with pytest.raises(ConfigurationError):
            meta.lookup("bad", a.cur(), plain)
        table = meta.lookup_table_column()
        lookup = meta.lookup("good", a.cur(), table)
        assert lookup.degree() == 4

    def test_enable_equality_is_idempotent(self) -> None:
        meta = ConstraintSystem()
        a = meta.advice_column()
        meta.enable_equality(a)
        meta.enable_equality(a)
        assert meta.equality == [a]

    def test_degree_accounts_for_permutation_chunks(self) -> None:
        meta = ConstraintSystem()
        for _ in range(PERMUTATION_CHUNK_SIZE + 1):
            meta.enable_equality(meta.advice_column())
        assert len(meta.permutation_chunks()) == 2
        assert meta.degree() == PERMUTATION_CHUNK_SIZE + 2

    def test_json_roundtrip(self) -> None:
        meta = ConstraintSystem()
        s = meta.selector()
        a = meta.advice_column()
        table = meta.lookup_table_column()
        inst = meta.instance_column()
        meta.enable_equality(a)
        meta.enable_equality(inst)
        meta.create_gate("double", [s.query() * (a.next() - 2 * a.cur())])
        meta.lookup("small", s.query() * a.cur(), table)
        restored = ConstraintSystem.from_json(meta.freeze().to_json())
        assert restored.frozen
        assert restored.to_json() == meta.to_json()
        assert restored.degree() == meta.degree()

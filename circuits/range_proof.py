"""Range proof: a committed bid lies within a public interval.

Public instances, in order: ``[min, max, value]``.

The circuit proves ``min <= value <= max`` over the integers by showing that both
differences ``value - min`` and ``max - value`` are below 2^bits. Each difference
is decomposed as a running sum down its own advice column,

    z_0 = diff,   z_{i+1} = (z_i - limb_i) / 2^B,   limb_i = z_i - 2^B z_{i+1}

with every limb looked up in a [0, 2^B) table and the last z forced to zero. A
difference that wrapped around the field (value < min, say) has no such
decomposition, so the claim is unprovable.

The argument holds only while min, max and value are themselves below 2^bits, so
the verifying key records that bound and verification refuses larger instances.
"""

from dataclasses import dataclass, replace
from typing import ClassVar, List, Tuple

from primitives.field import FF, Fr
from protocol.circuit import Circuit
from protocol.constraint_system import ConstraintSystem
from protocol.errors import ConfigurationError, WitnessError
from protocol.expressions import Column, Selector
from protocol.layouter import Layouter
from protocol.params import min_k

DEFAULT_BITS = 64
DEFAULT_LOOKUP_BITS = 4


@dataclass(frozen=True)
class RangeConfig:
    min: Column
    max: Column
    value: Column
    diff_min: Column
    diff_max: Column
    instance: Column
    table: Column
    q_range: Selector
    q_decompose: Selector
    q_terminal: Selector


@dataclass
class RangeProof(Circuit):
    """``min <= value <= max`` for public min, max and value.

    The raw constructor performs no semantic check, so a false claim within the
    bit bound can be synthesized (and fails to verify). Values of 2^bits or more
    are refused with WitnessError by ``prove`` and ``verify``. Use
    ``RangeProof.new`` for validated input.
    """
    value: int
    min: int
    max: int
    bits: int = DEFAULT_BITS
    lookup_bits: int = DEFAULT_LOOKUP_BITS

    name: ClassVar[str] = "range_proof"

    @classmethod
    def new(cls, value: int, min: int, max: int, bits: int = DEFAULT_BITS,
            lookup_bits: int = DEFAULT_LOOKUP_BITS) -> "RangeProof":
        """Validated constructor; rejects a false claim before any synthesis."""
        _check_bounded("value", value, bits)
        _check_bounded("min", min, bits)
        _check_bounded("max", max, bits)
        if value < min:
            raise WitnessError(f"value {value} is below min {min}")
        if value > max:
            raise WitnessError(f"value {value} is above max {max}")
        return cls(value=value, min=min, max=max, bits=bits, lookup_bits=lookup_bits)

    @staticmethod
    def public_instances(min: int, max: int, value: int, bits: int = DEFAULT_BITS) -> List[Fr]:
        """Verifier-side instance vector in the circuit's order."""
        for label, v in (("min", min), ("max", max), ("value", value)):
            _check_bounded(label, v, bits)
        return [Fr(min), Fr(max), Fr(value)]

    @property
    def limbs(self) -> int:
        return self.bits // self.lookup_bits

    def rows(self) -> int:
        return max(self.limbs + 1, 1 << self.lookup_bits)

    def k(self) -> int:
        """Smallest domain the circuit fits into."""
        return min_k(self.rows())

    def instance_bounds(self) -> Tuple[int, ...]:
        """min, max and value must each fit in ``bits`` bits."""
        return (self.bits,) * 3

    # --- Circuit interface ---

    def configure(self, meta: ConstraintSystem) -> RangeConfig:
        if self.lookup_bits <= 0 or self.bits <= 0 or self.bits % self.lookup_bits:
            raise ConfigurationError(
                f"bits={self.bits} must be a positive multiple of lookup_bits={self.lookup_bits}")
        if self.bits > 253:
            raise ConfigurationError(f"bits={self.bits} does not fit below the field modulus")

        config = RangeConfig(
            min=meta.advice_column(),
            max=meta.advice_column(),
            value=meta.advice_column(),
            diff_min=meta.advice_column(),
            diff_max=meta.advice_column(),
            instance=meta.instance_column(),
            table=meta.lookup_table_column(),
            q_range=meta.selector(),
            q_decompose=meta.selector(),
            q_terminal=meta.selector(),
        )
        for column in (config.min, config.max, config.value, config.instance):
            meta.enable_equality(column)

        q = config.q_range.query()
        meta.create_gate("range difference", [
            q * (config.diff_min.cur() - (config.value.cur() - config.min.cur())),
            q * (config.diff_max.cur() - (config.max.cur() - config.value.cur())),
        ])

        q = config.q_terminal.query()
        meta.create_gate("decomposition terminates", [q * config.diff_min.cur(), q * config.diff_max.cur()])

        radix = 1 << self.lookup_bits
        q = config.q_decompose.query()
        for label, column in (("diff_min", config.diff_min), ("diff_max", config.diff_max)):
            meta.lookup(f"{label} limb", q * (column.cur() - radix * column.next()), config.table)
        return config

    def synthesize(self, config: RangeConfig, layouter: Layouter) -> None:
        with layouter.assign_table("range table") as table:
            for v in range(1 << self.lookup_bits):
                table.assign_cell(config.table, v, v)

        with layouter.region("range check") as region:
            region.enable_selector(config.q_range, 0)
            min_cell = region.assign_advice(config.min, 0, self.min)
            max_cell = region.assign_advice(config.max, 0, self.max)
            value_cell = region.assign_advice(config.value, 0, self.value)

            diffs = ((config.diff_min, int(FF(value_cell.value) - FF(min_cell.value))),
                     (config.diff_max, int(FF(max_cell.value) - FF(value_cell.value))))
            mask = (1 << self.lookup_bits) - 1
            for column, z in diffs:
                for i in range(self.limbs):
                    region.assign_advice(column, i, z)
                    z = (z - (z & mask)) >> self.lookup_bits
                region.assign_advice(column, self.limbs, z)
            for i in range(self.limbs):
                region.enable_selector(config.q_decompose, i)
            region.enable_selector(config.q_terminal, self.limbs)

        layouter.constrain_instance(min_cell, config.instance, 0)
        layouter.constrain_instance(max_cell, config.instance, 1)
        layouter.constrain_instance(value_cell, config.instance, 2)

    def instances(self) -> List[Fr]:
        return [Fr(self.min), Fr(self.max), Fr(self.value)]

    def without_witnesses(self) -> "RangeProof":
        return replace(self, value=0, min=0, max=0)


def _check_bounded(label: str, v, bits: int) -> None:
    if not isinstance(v, int) or isinstance(v, bool):
        raise WitnessError(f"{label} must be an integer, got {v!r}")
    if not 0 <= v < (1 << bits):
        raise WitnessError(f"{label}={v} is outside [0, 2^{bits})")

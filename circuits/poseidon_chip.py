"""Poseidon chip: the width-3 permutation laid out one round per row.

Row r of a hash region holds the state before round r, row 65 the final state.
Two gates move the state from row r to row r + 1:

    full round     next_i = sum_j M[i][j] * (cur_j + rc_j)^5
    partial round  next_i = M[i][0] * (cur_0 + rc_0)^5 + sum_{j>0} M[i][j] * (cur_j + rc_j)

and a third pins the capacity word of row 0 to the length tag. The digest is
word 1 of the final row, matching ``primitives.poseidon.poseidon_hash``.
"""

from dataclasses import dataclass
from typing import List, Tuple, Union

from primitives.poseidon import (
    CAPACITY_TAG,
    MDS,
    ROUND_CONSTANTS,
    TOTAL_ROUNDS,
    WIDTH,
    is_full_round,
    round_function,
)
from protocol.constraint_system import ConstraintSystem
from protocol.expressions import Column, Expression, Selector
from protocol.layouter import Cell, Layouter, Region

HASH_ROWS = TOTAL_ROUNDS + 1


@dataclass(frozen=True)
class PoseidonConfig:
    state: Tuple[Column, ...]
    round_constants: Tuple[Column, ...]
    q_full: Selector
    q_partial: Selector
    q_init: Selector


@dataclass(frozen=True)
class PoseidonAssignment:
    """Cells of one hash: the input row and the digest."""
    inputs: Tuple[Cell, ...]
    output: Cell


def _pow5(e: Expression) -> Expression:
    sq = e * e
    return sq * sq * e


def _mix(row: int, words: List[Expression]) -> Expression:
    acc = int(MDS[row][0]) * words[0]
    for j in range(1, WIDTH):
        acc = acc + int(MDS[row][j]) * words[j]
    return acc


class PoseidonChip:
    """Assigns Poseidon permutations into regions of a circuit."""

    def __init__(self, config: PoseidonConfig) -> None:
        self.config = config

    @staticmethod
    def configure(meta: ConstraintSystem) -> PoseidonConfig:
        state = tuple(meta.advice_column() for _ in range(WIDTH))
        for column in state:
            meta.enable_equality(column)
        rc = tuple(meta.fixed_column() for _ in range(WIDTH))
        q_full, q_partial, q_init = meta.selector(), meta.selector(), meta.selector()

        added = [state[i].cur() + rc[i].cur() for i in range(WIDTH)]
        sboxed = [_pow5(a) for a in added]
        partial = [sboxed[0]] + added[1:]

        meta.create_gate("poseidon full round", [
            q_full.query() * (state[i].next() - _mix(i, sboxed)) for i in range(WIDTH)
        ])
        meta.create_gate("poseidon partial round", [
            q_partial.query() * (state[i].next() - _mix(i, partial)) for i in range(WIDTH)
        ])
        meta.create_gate("poseidon capacity", [q_init.query() * (state[0].cur() - CAPACITY_TAG)])
        return PoseidonConfig(state=state, round_constants=rc, q_full=q_full, q_partial=q_partial, q_init=q_init)

    def assign_permutation(self, region: Region, offset: int, left: int, right: int) -> PoseidonAssignment:
        """Lay out hash(left, right) on rows [offset, offset + HASH_ROWS) of the region."""
        config = self.config
        state = [CAPACITY_TAG, left, right]
        region.enable_selector(config.q_init, offset)
        inputs = tuple(region.assign_advice(col, offset, v) for col, v in zip(config.state, state))

        cells = inputs
        for r in range(TOTAL_ROUNDS):
            region.enable_selector(config.q_full if is_full_round(r) else config.q_partial, offset + r)
            for column, c in zip(config.round_constants, ROUND_CONSTANTS[r]):
                region.assign_fixed(column, offset + r, c)
            state = round_function(state, r)
            cells = tuple(region.assign_advice(col, offset + r + 1, v) for col, v in zip(config.state, state))
        return PoseidonAssignment(inputs=inputs, output=cells[1])

    def hash(self, layouter: Layouter, name: str, left: Union[int, Cell], right: Union[int, Cell]) -> PoseidonAssignment:
        """Hash two values in a region of its own; Cell inputs are copy-constrained into it."""
        with layouter.region(name) as region:
            assignment = self.assign_permutation(region, 0, _value(left), _value(right))
            for given, cell in zip((left, right), assignment.inputs[1:]):
                if isinstance(given, Cell):
                    region.constrain_equal(given, cell)
        return assignment


def _value(x: Union[int, Cell]) -> int:
    return x.value if isinstance(x, Cell) else x

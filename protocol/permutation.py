"""Permutation argument for equality constraints.

Copy constraints partition the cells of the equality-enabled columns into cycles.
Keygen encodes the cycles as sigma polynomials, sigma_c(omega^r) = delta^c' omega^r'
where (c', r') is the next cell of (c, r)'s cycle. The prover shows with a grand
product over usable rows that the multiset {v + beta * id + gamma} equals
{v + beta * sigma + gamma}; the product is split into chunks of equality columns
carried by partial-product columns so each constraint stays at degree chunk + 2.
"""

from typing import Dict, List, Sequence, Tuple

import numpy as np

from primitives.field import DELTA, FF, batch_inverse, powers
from protocol.errors import ConfigurationError
from protocol.expressions import Column, ColumnKind
from protocol.layouter import CellRef

Position = Tuple[int, int]
"""(equality column position, row)."""


def build_cycles(
    columns: Sequence[Column],
    copies: Sequence[Tuple[CellRef, CellRef]],
) -> Dict[Position, Position]:
    """Return the non-identity part of the permutation mapping.

    Cycles are merged pairwise; the smaller cycle is relabelled into the larger
    one and the two cycles are spliced by swapping successors.
    """
    position = {(c.kind.value, c.index): i for i, c in enumerate(columns)}
    mapping: Dict[Position, Position] = {}
    aux: Dict[Position, Position] = {}
    sizes: Dict[Position, int] = {}

    def locate(ref: CellRef) -> Position:
        kind, index, row = ref
        if (kind, index) not in position:
            raise ConfigurationError(f"copy constraint on {kind}[{index}], which is not equality-enabled")
        return (position[(kind, index)], row)

    for left_ref, right_ref in copies:
        left, right = locate(left_ref), locate(right_ref)
        left_cycle = aux.get(left, left)
        right_cycle = aux.get(right, right)
        if left_cycle == right_cycle:
            continue
        if sizes.get(left_cycle, 1) < sizes.get(right_cycle, 1):
            left, right = right, left
            left_cycle, right_cycle = right_cycle, left_cycle

        sizes[left_cycle] = sizes.get(left_cycle, 1) + sizes.get(right_cycle, 1)
        cell = right
        while True:
            aux[cell] = left_cycle
            cell = mapping.get(cell, cell)
            if cell == right:
                break

        left_next = mapping.get(left, left)
        mapping[left] = mapping.get(right, right)
        mapping[right] = left_next
    return mapping


def sigma_values(n_columns: int, n: int, omega, mapping: Dict[Position, Position]) -> List[FF]:
    """Evaluations of sigma_c on <omega>, one FF array per equality column."""
    omega_pows = powers(omega, n)
    delta_pows = powers(DELTA, n_columns)
    sigmas = [omega_pows * delta_pows[c] for c in range(n_columns)]
    for (c, row), (c_next, row_next) in mapping.items():
        sigmas[c][row] = delta_pows[c_next] * omega_pows[row_next]
    return sigmas


def grand_product(
    values: Sequence[FF],
    sigmas: Sequence[FF],
    chunk_sizes: Sequence[int],
    beta: FF,
    gamma: FF,
    omega,
    usable_rows: int,
) -> Tuple[FF, List[FF]]:
    """Grand product Z_0 and partial products P_1..P_{m-1} on rows [0, usable_rows].

    Z_0(0) = 1 and, for r < usable_rows,
        P_j(r)   = Z_0(r) * prod_{i<j} ratio_i(r)
        Z_0(r+1) = Z_0(r) * prod_i ratio_i(r)
    with ratio_i the chunk's prod (v + beta*delta^c*x + gamma) / prod (v + beta*sigma + gamma).
    Rows past usable_rows are left zero for the prover to blind.
    """
    u = usable_rows
    n = len(values[0])
    x = powers(omega, u)
    delta_pows = powers(DELTA, len(values))

    ratios = []
    c = 0
    for size in chunk_sizes:
        num = FF.Ones(u)
        den = FF.Ones(u)
        for _ in range(size):
            v = values[c][:u]
            num = num * (v + beta * delta_pows[c] * x + gamma)
            den = den * (v + beta * sigmas[c][:u] + gamma)
            c += 1
        ratios.append(num * batch_inverse(den))

    # Running product through the chunks of each row, in row-major order
    steps = np.stack(ratios, axis=1).reshape(-1)
    running = np.multiply.accumulate(steps).reshape(u, len(ratios))

    z = FF.Zeros(n)
    partials = [FF.Zeros(n) for _ in range(len(chunk_sizes) - 1)]
    z[0] = FF(1)
    z[1:u + 1] = running[:, -1]
    for j in range(1, len(ratios)):
        partials[j - 1][:u] = running[:, j - 1]
    return z, partials

"""logUp lookup argument.

For each lookup the prover commits a multiplicity column m (how often each table
row is used) and a running sum

    phi(0) = 0,  phi(r+1) = phi(r) + 1/(theta - e(r)) - m(r)/(theta - t(r))

over usable rows. The sum returns to zero at the last row exactly when every
input value e(r) appears in the table t (with overwhelming probability over theta).
"""

from typing import Dict, Tuple

import numpy as np

from primitives.field import FF, batch_inverse


def multiplicities(inputs: FF, table: FF, usable_rows: int) -> Tuple[FF, bool]:
    """Multiplicity column over the table's usable rows.

    Each input value is counted at the first table row holding it. Returns the
    column and whether every input value was found.
    """
    first_row: Dict[int, int] = {}
    for row in range(usable_rows):
        first_row.setdefault(int(table[row]), row)

    counts = [0] * len(table)
    complete = True
    for row in range(usable_rows):
        target = first_row.get(int(inputs[row]))
        if target is None:
            complete = False
            continue
        counts[target] += 1
    return FF(counts), complete


def running_sum(
    inputs: FF,
    table: FF,
    m: FF,
    theta: FF,
    usable_rows: int,
) -> FF:
    """phi on rows [0, usable_rows]; rows past usable_rows are left zero for blinding."""
    u = usable_rows
    inv_e = batch_inverse(theta - inputs[:u])
    inv_t = batch_inverse(theta - table[:u])
    steps = inv_e - m[:u] * inv_t

    phi = FF.Zeros(len(inputs))
    phi[1:u + 1] = np.add.accumulate(steps)
    return phi

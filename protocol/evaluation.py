"""Constraint evaluation for prover and verifier.

ConstraintContext provides a uniform interface for constraint evaluation that works
for both prover (returns arrays over the LDE domain) and verifier (returns scalars at
zeta). The same constraint code runs in both contexts:

    combined = combine_constraints(ProverConstraintContext(...), cs, chunk_sizes, y)
    combined = combine_constraints(VerifierConstraintContext(...), cs, chunk_sizes, y)
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterator, Optional, Sequence

import numpy as np

from primitives.field import DELTA, FF, get_omega
from primitives.polynomial import lagrange_evaluation
from protocol.constraint_system import ConstraintSystem
from protocol.layout import PolyId


class ConstraintContext(ABC):
    """Uniform interface for constraint evaluation - works for prover and verifier."""

    @abstractmethod
    def poly(self, poly_id: PolyId, rotation: int = 0) -> FF:
        """Polynomial at x * omega^rotation.

        Returns:
            Prover: FF array over the evaluation domain, rotated by rotation * extend
            Verifier: FF scalar, the evaluation at zeta * omega^rotation
        """

    @abstractmethod
    def x(self) -> FF:
        """The evaluation point(s)."""

    @abstractmethod
    def l0(self) -> FF:
        """Lagrange polynomial of row 0."""

    @abstractmethod
    def l_last(self) -> FF:
        """Lagrange polynomial of the last usable row."""

    @abstractmethod
    def l_active(self) -> FF:
        """1 on usable rows, 0 on the last row and on blinding rows."""

    @abstractmethod
    def challenge(self, name: str) -> FF:
        """Fiat-Shamir challenge (always scalar)."""


class ProverConstraintContext(ConstraintContext):
    """Prover implementation - returns polynomial arrays.

    With ``extend == 1`` and arrays over <omega> this is also the row-by-row
    context used by the mock prover.
    """

    def __init__(
        self,
        polys: Dict[PolyId, FF],
        extend: int,
        x: Optional[FF],
        selectors: Dict[str, FF],
        challenges: Dict[str, FF],
    ) -> None:
        self._polys = polys
        self._extend = extend
        self._x = x
        self._selectors = selectors
        self._challenges = challenges

    def poly(self, poly_id: PolyId, rotation: int = 0) -> FF:
        values = self._polys[poly_id]
        if rotation == 0:
            return values
        # On extended domain, row offset is multiplied by extend factor
        n = len(values)
        return values[(np.arange(n) + rotation * self._extend) % n]

    def x(self) -> FF:
        return self._x

    def l0(self) -> FF:
        return self._selectors["l0"]

    def l_last(self) -> FF:
        return self._selectors["l_last"]

    def l_active(self) -> FF:
        return self._selectors["l_active"]

    def challenge(self, name: str) -> FF:
        return self._challenges.get(name, FF(0))


class VerifierConstraintContext(ConstraintContext):
    """Verifier implementation - returns scalar evaluations.

    Committed polynomials come from the proof's openings. Instance columns and the
    Lagrange selectors are evaluated directly at zeta from public data.
    """

    def __init__(
        self,
        evals: Dict[tuple, FF],
        zeta: FF,
        k: int,
        usable_rows: int,
        instances: Sequence[Sequence[int]],
        challenges: Dict[str, FF],
    ) -> None:
        self._evals = evals
        self._zeta = zeta
        self._k = k
        self._n = 1 << k
        self._omega = get_omega(k)
        self._u = usable_rows
        self._instances = instances
        self._challenges = challenges
        self._cache: Dict[tuple, FF] = {}

    def _lagrange(self, i: int, rotation: int = 0) -> FF:
        key = ("L", i, rotation)
        if key not in self._cache:
            self._cache[key] = lagrange_evaluation(self._k, i, self._zeta * self._omega ** rotation)
        return self._cache[key]

    def poly(self, poly_id: PolyId, rotation: int = 0) -> FF:
        if poly_id[0] == "instance":
            key = ("instance", poly_id[1], rotation)
            if key not in self._cache:
                acc = FF(0)
                for i, v in enumerate(self._instances[poly_id[1]]):
                    acc = acc + FF(int(v)) * self._lagrange(i, rotation)
                self._cache[key] = acc
            return self._cache[key]
        return self._evals[(poly_id, rotation)]

    def x(self) -> FF:
        return self._zeta

    def l0(self) -> FF:
        return self._lagrange(0)

    def l_last(self) -> FF:
        return self._lagrange(self._u)

    def l_active(self) -> FF:
        blind = FF(0)
        for i in range(self._u, self._n):
            blind = blind + self._lagrange(i)
        return FF(1) - blind

    def challenge(self, name: str) -> FF:
        return self._challenges[name]


# --- Constraint list ---

def constraint_terms(ctx: ConstraintContext, cs: ConstraintSystem, chunk_sizes: Sequence[int]) -> Iterator:
    """Every polynomial that must vanish on <omega>, in a fixed order."""
    l0, l_last, l_active = ctx.l0(), ctx.l_last(), ctx.l_active()
    one = FF(1)

    # Custom gates carry their own selectors
    for gate in cs.gates:
        for constraint in gate.constraints:
            yield constraint.evaluate(ctx)

    # Permutation: Z_0 starts and ends at 1, each chunk links Z_in to Z_out
    if chunk_sizes:
        beta, gamma = ctx.challenge("beta"), ctx.challenge("gamma")
        x = ctx.x()
        z0 = ctx.poly(("z", 0))
        yield l0 * (one - z0)
        yield l_last * (z0 - one)
        c = 0
        for j, size in enumerate(chunk_sizes):
            z_in = ctx.poly(("z", j))
            z_out = ctx.poly(("z", j + 1)) if j + 1 < len(chunk_sizes) else ctx.poly(("z", 0), 1)
            num, den = one, one
            for _ in range(size):
                v = ctx.poly(cs.equality[c].poly_id)
                num = num * (v + beta * DELTA ** c * x + gamma)
                den = den * (v + beta * ctx.poly(("sigma", c)) + gamma)
                c += 1
            yield l_active * (z_out * den - z_in * num)

    # Lookups: phi starts and ends at 0 and steps by 1/(theta - e) - m/(theta - t)
    theta = ctx.challenge("theta")
    for l, lookup in enumerate(cs.lookups):
        phi, phi_next = ctx.poly(("phi", l)), ctx.poly(("phi", l), 1)
        e = lookup.input.evaluate(ctx)
        t = ctx.poly(lookup.table.poly_id)
        m = ctx.poly(("mult", l))
        yield l0 * phi
        yield l_last * phi
        a = theta - e
        b = theta - t
        yield l_active * ((phi_next - phi) * a * b - b + m * a)


def combine_constraints(ctx: ConstraintContext, cs: ConstraintSystem, chunk_sizes: Sequence[int], y: FF) -> FF:
    """Random linear combination sum_i y^(T-1-i) * c_i (Horner order)."""
    acc = FF(0)
    for term in constraint_terms(ctx, cs, chunk_sizes):
        acc = acc * y + term
    return acc

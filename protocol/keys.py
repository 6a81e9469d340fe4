"""Proving and verifying keys.

The verifying key binds a circuit shape to the setup parameters: it carries the
frozen constraint system, the instance layout, the Merkle root of the fixed and
permutation polynomials and a digest of all of it. The proving key is the
verifying key plus the fixed/permutation values and the precomputed
low-degree extensions the prover needs.
"""

import hashlib
import json
from dataclasses import dataclass, field
from functools import cached_property
from typing import Dict, List, Tuple

import numpy as np

from primitives.field import FF, fe_array
from primitives.polynomial import coset_points, extend_to_domain
from protocol.circuit import ConstraintDescriptor
from protocol.constraint_system import ConstraintSystem
from protocol.errors import BackendFailure, ConfigurationError
from protocol.layout import TraceLayout
from protocol.params import SetupParams
from protocol.pcs import PolyCommitment, commit_evaluations
from protocol.permutation import build_cycles, sigma_values


@dataclass
class VerifyingKey:
    """Everything verification needs; a strict subset of the proving key."""
    name: str
    params: SetupParams
    cs: ConstraintSystem
    instance_lengths: Tuple[int, ...]
    rows: int
    descriptor_digest: str
    fixed_root: bytes
    instance_bounds: Tuple[int, ...] = ()

    @cached_property
    def layout(self) -> TraceLayout:
        return TraceLayout.from_cs(self.cs, max(self.cs.degree() - 1, 1))

    @property
    def num_instances(self) -> int:
        return sum(self.instance_lengths)

    def to_json(self) -> Dict:
        return {
            "name": self.name,
            "params": self.params.to_json(),
            "cs": self.cs.to_json(),
            "instance_lengths": list(self.instance_lengths),
            "rows": self.rows,
            "descriptor_digest": self.descriptor_digest,
            "fixed_root": self.fixed_root.hex(),
            "instance_bounds": list(self.instance_bounds),
        }

    @classmethod
    def from_json(cls, data: Dict) -> "VerifyingKey":
        return cls(
            name=str(data["name"]),
            params=SetupParams.from_json(data["params"]),
            cs=ConstraintSystem.from_json(data["cs"]),
            instance_lengths=tuple(int(x) for x in data["instance_lengths"]),
            rows=int(data["rows"]),
            descriptor_digest=str(data["descriptor_digest"]),
            fixed_root=bytes.fromhex(data["fixed_root"]),
            instance_bounds=tuple(int(x) for x in data["instance_bounds"]),
        )

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_json(), sort_keys=True, separators=(",", ":")).encode()

    @classmethod
    def from_bytes(cls, data: bytes) -> "VerifyingKey":
        try:
            return cls.from_json(json.loads(data))
        except (ValueError, KeyError, TypeError, IndexError) as e:
            raise ConfigurationError(f"invalid verifying key: {e}") from e

    def digest(self) -> bytes:
        """SHA-256 of the canonical encoding; the first value absorbed by every transcript."""
        return hashlib.sha256(self.to_bytes()).digest()


@dataclass
class ProvingKey:
    """Verifying key plus fixed and permutation values on <omega>."""
    vk: VerifyingKey
    fixed_values: List[FF]
    sigma_values: List[FF]
    fixed: PolyCommitment = field(repr=False, default=None)

    def __post_init__(self) -> None:
        if self.fixed is None:
            self.fixed = commit_evaluations(self.fixed_values + self.sigma_values, self.vk.params)

    @property
    def params(self) -> SetupParams:
        return self.vk.params

    @cached_property
    def x_ext(self) -> FF:
        """Points of the LDE coset."""
        return coset_points(self.params.n_ext)

    @cached_property
    def lagrange_lde(self) -> Dict[str, FF]:
        """l0, l_last and l_active on the LDE coset."""
        n, u = self.params.n, self.params.usable_rows
        l0 = FF.Zeros(n)
        l0[0] = FF(1)
        l_last = FF.Zeros(n)
        l_last[u] = FF(1)
        l_active = FF.Zeros(n)
        l_active[:u] = FF(1)
        n_ext = self.params.n_ext
        return {"l0": extend_to_domain(l0, n, n_ext),
                "l_last": extend_to_domain(l_last, n, n_ext),
                "l_active": extend_to_domain(l_active, n, n_ext)}

    @cached_property
    def zh_inv(self) -> FF:
        """1 / (x^n - 1) on the LDE coset; x^n takes only `extend` distinct values."""
        params = self.params
        inverses = (self.x_ext[:params.extend] ** params.n - FF(1)) ** -1
        return inverses[np.arange(params.n_ext) % params.extend]

    # --- Serialization ---

    def to_bytes(self) -> bytes:
        data = {
            "vk": self.vk.to_json(),
            "fixed": [[hex(int(v)) for v in col] for col in self.fixed_values],
            "sigma": [[hex(int(v)) for v in col] for col in self.sigma_values],
        }
        return json.dumps(data, sort_keys=True, separators=(",", ":")).encode()

    @classmethod
    def from_bytes(cls, data: bytes) -> "ProvingKey":
        try:
            raw = json.loads(data)
            vk = VerifyingKey.from_json(raw["vk"])
            fixed = [fe_array(int(v, 16) for v in col) for col in raw["fixed"]]
            sigma = [fe_array(int(v, 16) for v in col) for col in raw["sigma"]]
        except (ValueError, KeyError, TypeError, IndexError) as e:
            raise ConfigurationError(f"invalid proving key: {e}") from e
        n = vk.params.n
        if (len(fixed) != vk.cs.num_fixed or len(sigma) != len(vk.cs.equality)
                or any(len(col) != n for col in fixed + sigma)):
            raise ConfigurationError("proving key columns do not match its verifying key")
        pk = cls(vk=vk, fixed_values=fixed, sigma_values=sigma)
        if pk.fixed.root != vk.fixed_root:
            raise ConfigurationError("proving key values do not match the committed fixed root")
        return pk


def keygen(params: SetupParams, descriptor: ConstraintDescriptor) -> Tuple[ProvingKey, VerifyingKey]:
    """Derive (pk, vk) deterministically from the setup parameters and the circuit shape."""
    if not isinstance(descriptor, ConstraintDescriptor):
        raise ConfigurationError(f"{descriptor!r} is not a constraint descriptor")
    params.validate()
    cs = descriptor.cs

    if descriptor.rows > params.usable_rows:
        raise BackendFailure(
            f"{descriptor.name} needs {descriptor.rows} rows but k={params.k} provides {params.usable_rows}")
    if cs.degree() > params.max_degree:
        raise ConfigurationError(
            f"{descriptor.name} has constraint degree {cs.degree()}, backend supports {params.max_degree}")
    if cs.num_advice == 0:
        raise ConfigurationError(f"{descriptor.name} declares no advice columns")
    if descriptor.num_instances == 0:
        raise ConfigurationError(f"{descriptor.name} binds no public instance")

    n = params.n
    fixed_values = []
    for assigned in descriptor.fixed:
        column = FF.Zeros(n)
        for row, value in assigned:
            column[row] = value
        fixed_values.append(column)

    mapping = build_cycles(cs.equality, descriptor.copies)
    sigmas = sigma_values(len(cs.equality), n, params.omega, mapping)

    fixed = commit_evaluations(fixed_values + sigmas, params)
    vk = VerifyingKey(
        name=descriptor.name,
        params=params,
        cs=cs,
        instance_lengths=tuple(descriptor.instance_lengths),
        rows=descriptor.rows,
        descriptor_digest=descriptor.digest(),
        fixed_root=fixed.root,
        instance_bounds=tuple(descriptor.instance_bounds),
    )
    return ProvingKey(vk=vk, fixed_values=fixed_values, sigma_values=sigmas, fixed=fixed), vk

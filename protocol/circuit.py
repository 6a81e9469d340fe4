"""Circuit capability interface and the immutable Constraint Descriptor.

A circuit variant supplies ``configure`` (declare columns, selectors, gates),
``synthesize`` (fill regions, bind public cells) and ``instances`` (the public
vector in its fixed order). ``describe`` runs both against a witness-free copy of
the circuit and freezes the result into a ConstraintDescriptor, the shape that
key generation consumes and that every proof of the variant shares.
"""

import hashlib
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from primitives.field import is_canonical
from protocol.constraint_system import ConstraintSystem
from protocol.errors import ConfigurationError, WitnessError
from protocol.layouter import Assembly, CellRef, Layouter


class Circuit(ABC):
    """Common interface of the closed set of circuit variants."""

    name: str = "circuit"

    @abstractmethod
    def configure(self, meta: ConstraintSystem) -> Any:
        """Declare columns, selectors, gates and lookups; return the config."""

    @abstractmethod
    def synthesize(self, config: Any, layouter: Layouter) -> None:
        """Assign every cell and bind the public cells to instance rows."""

    @abstractmethod
    def instances(self) -> List:
        """Public instance vector, in the order the bindings were created."""

    @abstractmethod
    def without_witnesses(self) -> "Circuit":
        """Same shape with placeholder witness values, used for key generation."""

    def required_k(self) -> Optional[int]:
        """Degree bound this instance must be proved at, if it fixes one."""
        return None

    def instance_bounds(self) -> Optional[Tuple[int, ...]]:
        """Bit width each public instance must fit in, enforced when proving and verifying."""
        return None


@dataclass(frozen=True)
class ConstraintDescriptor:
    """Immutable shape of one circuit variant, independent of witness values."""
    name: str
    cs: ConstraintSystem
    config: Any
    fixed: Tuple[Tuple[Tuple[int, int], ...], ...]
    copies: Tuple[Tuple[CellRef, CellRef], ...]
    instance_lengths: Tuple[int, ...]
    rows: int
    instance_bounds: Tuple[int, ...] = ()

    @property
    def num_instances(self) -> int:
        return sum(self.instance_lengths)

    def to_json(self) -> Dict:
        return {
            "name": self.name,
            "cs": self.cs.to_json(),
            "fixed": [[[row, hex(v)] for row, v in col] for col in self.fixed],
            "copies": [[list(a), list(b)] for a, b in self.copies],
            "instance_lengths": list(self.instance_lengths),
            "rows": self.rows,
            "instance_bounds": list(self.instance_bounds),
        }

    def digest(self) -> str:
        """Hex SHA-256 of the canonical JSON form; equal shapes have equal digests."""
        encoded = json.dumps(self.to_json(), sort_keys=True, separators=(",", ":")).encode()
        return hashlib.sha256(encoded).hexdigest()


@dataclass(frozen=True)
class Witness:
    """Advice assignments and public values of one circuit instance."""
    advice: Dict[int, Dict[int, int]]
    instances: Tuple[Tuple[int, ...], ...]


def configure(circuit: Circuit) -> Tuple[ConstraintSystem, Any]:
    meta = ConstraintSystem()
    config = circuit.configure(meta)
    return meta.freeze(), config


def _run(circuit: Circuit, cs: ConstraintSystem, config: Any) -> Assembly:
    assembly = Assembly(cs)
    with Layouter(assembly) as layouter:
        circuit.synthesize(config, layouter)
    return assembly


def _descriptor(circuit: Circuit, cs: ConstraintSystem, config: Any, assembly: Assembly) -> ConstraintDescriptor:
    fixed = tuple(tuple(sorted(assembly.fixed.get(i, {}).items())) for i in range(cs.num_fixed))
    lengths = tuple(assembly.instance_lengths())
    bounds = tuple(circuit.instance_bounds() or ())
    if bounds and len(bounds) != sum(lengths):
        raise ConfigurationError(
            f"{circuit.name}: {len(bounds)} instance bounds for {sum(lengths)} bound instance rows")
    return ConstraintDescriptor(
        name=circuit.name,
        cs=cs,
        config=config,
        fixed=fixed,
        copies=tuple(assembly.copies),
        instance_lengths=lengths,
        rows=assembly.rows,
        instance_bounds=bounds,
    )


def check_instance_bounds(bounds: Sequence[int], public: Sequence) -> None:
    """Raise WitnessError unless public[i] < 2^bounds[i] for every bounded instance."""
    for i, (bits, value) in enumerate(zip(bounds, public)):
        if int(value) >> bits:
            raise WitnessError(f"public instance {i} ({int(value)}) is outside [0, 2^{bits})")


def describe(circuit: Circuit) -> ConstraintDescriptor:
    """Build the Constraint Descriptor of a circuit's shape."""
    if not isinstance(circuit, Circuit):
        raise ConfigurationError(f"{circuit!r} is not a circuit variant")
    shape = circuit.without_witnesses()
    cs, config = configure(shape)
    return _descriptor(shape, cs, config, _run(shape, cs, config))


def synthesize(circuit: Circuit) -> Tuple[ConstraintDescriptor, Witness]:
    """Run a full synthesis pass and collect the witness alongside the shape."""
    if not isinstance(circuit, Circuit):
        raise ConfigurationError(f"{circuit!r} is not a circuit variant")
    cs, config = configure(circuit)
    assembly = _run(circuit, cs, config)
    descriptor = _descriptor(circuit, cs, config, assembly)

    public = list(circuit.instances())
    if len(public) != descriptor.num_instances:
        raise WitnessError(
            f"{circuit.name}: {len(public)} public values for {descriptor.num_instances} bound instance rows")
    for i, value in enumerate(public):
        if not is_canonical(value):
            raise WitnessError(f"{circuit.name}: public value {i} ({value!r}) is not a field element")
    check_instance_bounds(descriptor.instance_bounds, public)

    instances = []
    offset = 0
    for length in descriptor.instance_lengths:
        instances.append(tuple(int(v) for v in public[offset:offset + length]))
        offset += length
    return descriptor, Witness(advice=assembly.advice, instances=tuple(instances))

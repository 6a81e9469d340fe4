"""Proof pipeline: setup -> keygen -> prove -> verify -> export_verifier.

Each stage is a pure function of its inputs except ``prove``, whose blinding
rows are random. Parameters and keys are immutable once created and are passed
explicitly; nothing is cached at module level.
"""

from random import Random
from typing import List, Optional, Sequence, Tuple

from primitives.field import is_canonical
from protocol.circuit import Circuit, check_instance_bounds, describe, synthesize
from protocol.errors import BackendFailure, ConfigurationError, WitnessError
from protocol.keys import ProvingKey, VerifyingKey, keygen as _keygen
from protocol.params import SetupParams, setup as _setup
from protocol.proof import Proof
from protocol.prover import gen_proof
from protocol.solidity import render_verifier
from protocol.verifier import verify_proof

__all__ = ["setup", "describe", "keygen", "prove", "verify", "export_verifier"]


def setup(k: int) -> SetupParams:
    """Setup parameters for circuits of up to 2^k rows."""
    return _setup(k)


def keygen(params: SetupParams, descriptor) -> Tuple[ProvingKey, VerifyingKey]:
    """Proving and verifying key for a circuit shape.

    Accepts a ConstraintDescriptor or a circuit instance (whose shape is described first).
    """
    if isinstance(descriptor, Circuit):
        descriptor = describe(descriptor)
    if not isinstance(params, SetupParams):
        raise ConfigurationError(f"{params!r} are not setup parameters")
    return _keygen(params, descriptor)


def prove(pk: ProvingKey, circuit: Circuit, rng: Optional[Random] = None) -> bytes:
    """Synthesize the circuit and prove it against the key's shape."""
    if not isinstance(pk, ProvingKey):
        raise ConfigurationError(f"{pk!r} is not a proving key")
    required = circuit.required_k() if isinstance(circuit, Circuit) else None
    if required is not None and required != pk.params.k:
        raise BackendFailure(f"{circuit.name} requires k={required}, proving key was generated for k={pk.params.k}")

    descriptor, witness = synthesize(circuit)
    if descriptor.digest() != pk.vk.descriptor_digest:
        raise ConfigurationError(
            f"{descriptor.name} shape does not match the proving key for {pk.vk.name}")
    return gen_proof(pk, witness, rng).to_bytes()


def verify(vk: VerifyingKey, public_instances: Sequence, proof: bytes) -> bool:
    """Accept (True) or reject (False) a proof for the given public instances.

    Raises:
        ConfigurationError: wrong number of public instances for this key
        WitnessError: a public instance is not a field element, or exceeds the bit
            bound the key records for it
        ProofDecodeError: proof bytes not produced by the serializer
    """
    if not isinstance(vk, VerifyingKey):
        raise ConfigurationError(f"{vk!r} is not a verifying key")
    public = list(public_instances)
    if len(public) != vk.num_instances:
        raise ConfigurationError(f"{vk.name} expects {vk.num_instances} public instances, got {len(public)}")
    for i, value in enumerate(public):
        if not is_canonical(value):
            raise WitnessError(f"public instance {i} ({value!r}) is not a field element")
    check_instance_bounds(vk.instance_bounds, public)

    decoded = Proof.from_bytes(proof)
    columns: List[List[int]] = []
    offset = 0
    for length in vk.instance_lengths:
        columns.append([int(v) for v in public[offset:offset + length]])
        offset += length
    return verify_proof(vk, columns, decoded)


def export_verifier(vk: VerifyingKey) -> bytes:
    """On-chain verifier artifact (Solidity source) for a verifying key."""
    if not isinstance(vk, VerifyingKey):
        raise ConfigurationError(f"{vk!r} is not a verifying key")
    return render_verifier(vk).encode("utf-8")

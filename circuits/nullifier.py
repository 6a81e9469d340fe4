"""Nullifier: one secret binds a public commitment to a public nullifier.

Public instances, in order: ``[commitment, nullifier, external_nullifier]``.

    commitment = Poseidon(secret, nonce)
    nullifier  = Poseidon(secret, external_nullifier)

The secret cell of the first hash is copy-constrained into the second, so both
digests are over the same secret. Reusing the secret under the same external
nullifier reproduces the nullifier, which is how double submission is detected.
"""

from dataclasses import dataclass, replace
from typing import ClassVar, List

from circuits.poseidon_chip import HASH_ROWS, PoseidonChip, PoseidonConfig
from primitives.field import Fr, is_canonical
from primitives.poseidon import poseidon_hash
from protocol.circuit import Circuit
from protocol.constraint_system import ConstraintSystem
from protocol.errors import ConfigurationError, WitnessError
from protocol.expressions import Column
from protocol.layouter import Layouter
from protocol.params import MAX_K, min_k

ROWS = 2 * HASH_ROWS + 1
DEFAULT_K = min_k(ROWS)
DEFAULT_LOOKUP_BITS = 4


def commitment_of(secret, nonce) -> Fr:
    return poseidon_hash(secret, nonce)


def nullifier_of(secret, external_nullifier) -> Fr:
    return poseidon_hash(secret, external_nullifier)


@dataclass(frozen=True)
class NullifierConfig:
    poseidon: PoseidonConfig
    instance: Column


@dataclass
class NullifierCircuit(Circuit):
    """Knowledge of (secret, nonce) behind a commitment and its nullifier."""
    secret: int
    nonce: int
    external_nullifier: int
    commitment: int
    nullifier: int
    k: int = DEFAULT_K
    lookup_bits: int = DEFAULT_LOOKUP_BITS

    name: ClassVar[str] = "nullifier"

    @classmethod
    def build(cls, secret, nonce, external_nullifier, commitment, nullifier,
              k: int = DEFAULT_K, lookup_bits: int = DEFAULT_LOOKUP_BITS) -> "NullifierCircuit":
        """Circuit for the given values.

        ``lookup_bits`` is validated and stored for signature compatibility with the
        other circuit builders only. The nullifier circuit has no lookups, so it does
        not affect the circuit shape or the verifying key.

        Raises:
            ConfigurationError: lookup_bits outside (0, k) or k outside the supported range
            WitnessError: a value that is not a field element

        A commitment or nullifier that does not match the secret is accepted here;
        the proof produced from it does not verify.
        """
        if not isinstance(k, int) or not min_k(ROWS) <= k <= MAX_K:
            raise ConfigurationError(f"nullifier circuit needs {min_k(ROWS)} <= k <= {MAX_K}, got {k!r}")
        if not isinstance(lookup_bits, int) or not 0 < lookup_bits < k:
            raise ConfigurationError(f"lookup_bits must satisfy 0 < lookup_bits < k={k}, got {lookup_bits!r}")
        values = {"secret": secret, "nonce": nonce, "external_nullifier": external_nullifier,
                  "commitment": commitment, "nullifier": nullifier}
        for label, v in values.items():
            if not is_canonical(v):
                raise WitnessError(f"{label} ({v!r}) is not a field element")
        return cls(**{label: int(v) for label, v in values.items()}, k=k, lookup_bits=lookup_bits)

    @classmethod
    def honest(cls, secret, nonce, external_nullifier, **kwargs) -> "NullifierCircuit":
        """Circuit whose public values are computed from the secret."""
        return cls.build(secret, nonce, external_nullifier,
                         commitment_of(secret, nonce), nullifier_of(secret, external_nullifier), **kwargs)

    # --- Circuit interface ---

    def required_k(self) -> int:
        return self.k

    def configure(self, meta: ConstraintSystem) -> NullifierConfig:
        poseidon = PoseidonChip.configure(meta)
        instance = meta.instance_column()
        meta.enable_equality(instance)
        return NullifierConfig(poseidon=poseidon, instance=instance)

    def synthesize(self, config: NullifierConfig, layouter: Layouter) -> None:
        chip = PoseidonChip(config.poseidon)
        commitment_hash = chip.hash(layouter, "commitment hash", self.secret, self.nonce)
        secret = commitment_hash.inputs[1]
        nullifier_hash = chip.hash(layouter, "nullifier hash", secret, self.external_nullifier)

        # Public row: claimed commitment, claimed nullifier, external nullifier
        s0, s1, s2 = config.poseidon.state
        with layouter.region("io") as region:
            commitment = region.assign_advice(s0, 0, self.commitment)
            nullifier = region.assign_advice(s1, 0, self.nullifier)
            external = region.assign_advice(s2, 0, self.external_nullifier)
            region.constrain_equal(commitment_hash.output, commitment)
            region.constrain_equal(nullifier_hash.output, nullifier)
            region.constrain_equal(nullifier_hash.inputs[2], external)

        layouter.constrain_instance(commitment, config.instance, 0)
        layouter.constrain_instance(nullifier, config.instance, 1)
        layouter.constrain_instance(external, config.instance, 2)

    def instances(self) -> List[Fr]:
        return [Fr(self.commitment), Fr(self.nullifier), Fr(self.external_nullifier)]

    def without_witnesses(self) -> "NullifierCircuit":
        return replace(self, secret=0, nonce=0, external_nullifier=0, commitment=0, nullifier=0)

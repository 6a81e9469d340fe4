"""Protocol - constraint layer, proving backend and proof pipeline."""

from protocol.circuit import Circuit, ConstraintDescriptor, Witness, describe, synthesize
from protocol.constraint_system import ConstraintSystem, Gate, Lookup
from protocol.dev import MockProver, VerifyFailure
from protocol.errors import (
    BackendFailure,
    ConfigurationError,
    ConstraintUnsatisfied,
    ProofDecodeError,
    ProofSystemError,
    WitnessError,
)
from protocol.expressions import Column, ColumnKind, Expression, Selector, constant
from protocol.fri import FRI
from protocol.keys import ProvingKey, VerifyingKey
from protocol.layouter import Cell, Layouter, Region
from protocol.params import SetupParams
from protocol.pipeline import export_verifier, keygen, prove, setup, verify
from protocol.proof import Proof
from protocol.prover import gen_proof
from protocol.verifier import verify_proof

__all__ = [
    # Constraint layer
    "Circuit",
    "Column",
    "ColumnKind",
    "ConstraintDescriptor",
    "ConstraintSystem",
    "Expression",
    "Gate",
    "Lookup",
    "Selector",
    "constant",
    "describe",
    "synthesize",
    "Witness",
    # Synthesis
    "Cell",
    "Layouter",
    "Region",
    # Pipeline
    "SetupParams",
    "ProvingKey",
    "VerifyingKey",
    "setup",
    "keygen",
    "prove",
    "verify",
    "export_verifier",
    # Backend
    "FRI",
    "Proof",
    "gen_proof",
    "verify_proof",
    # Debugging
    "MockProver",
    "VerifyFailure",
    # Errors
    "ProofSystemError",
    "ConfigurationError",
    "WitnessError",
    "ConstraintUnsatisfied",
    "ProofDecodeError",
    "BackendFailure",
]

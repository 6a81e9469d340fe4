"""Error taxonomy of the proof pipeline.

Verification rejection is not an error: ``verify`` returns False.
"""


class ProofSystemError(Exception):
    """Base class for every failure raised by the pipeline."""


class ConfigurationError(ProofSystemError, ValueError):
    """Bad column/gate wiring, mismatched path lengths, invalid circuit parameters."""


class WitnessError(ProofSystemError, ValueError):
    """Missing or out-of-field witness or public value."""


class ConstraintUnsatisfied(ProofSystemError):
    """Raised by the mock prover only; carries the list of failures."""

    def __init__(self, failures) -> None:
        self.failures = list(failures)
        lines = "\n".join(f"  {f}" for f in self.failures[:10])
        more = f"\n  ... {len(self.failures) - 10} more" if len(self.failures) > 10 else ""
        super().__init__(f"{len(self.failures)} constraint(s) not satisfied:\n{lines}{more}")


class ProofDecodeError(ProofSystemError, ValueError):
    """Proof bytes that were not produced by the proof serializer."""


class BackendFailure(ProofSystemError, RuntimeError):
    """Parameter/key size mismatch or unsupported degree."""

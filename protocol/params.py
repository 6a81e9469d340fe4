"""Setup parameters.

The backend is transparent: parameters are a pure function of the degree bound k
(plus fixed protocol constants) and carry no secret. One SetupParams instance is
shared read-only by every circuit whose rows fit into ``usable_rows``.
"""

import json
from dataclasses import asdict, dataclass

from primitives.field import FF, TWO_ADICITY, get_omega
from protocol.errors import BackendFailure, ConfigurationError

MIN_K = 7
MAX_K = 24


@dataclass(frozen=True)
class SetupParams:
    """Domain and FRI configuration for circuits of up to 2^k rows.

    Attributes:
        k: log2 of the number of rows
        blowup_bits: log2 of the Reed-Solomon blowup; bounds constraint degree to 2^blowup_bits
        n_queries: FRI query repetitions
        pow_bits: proof-of-work grinding bits
        final_poly_bits: log2 of the final FRI polynomial length
    """
    k: int
    blowup_bits: int = 3
    n_queries: int = 28
    pow_bits: int = 8
    final_poly_bits: int = 3

    @property
    def n(self) -> int:
        return 1 << self.k

    @property
    def n_ext_bits(self) -> int:
        return self.k + self.blowup_bits

    @property
    def n_ext(self) -> int:
        return 1 << self.n_ext_bits

    @property
    def extend(self) -> int:
        return 1 << self.blowup_bits

    @property
    def omega(self) -> FF:
        return get_omega(self.k)

    @property
    def blinding_rows(self) -> int:
        # Each query opens two LDE points per column, plus up to two openings at zeta
        return 2 * self.n_queries + 4

    @property
    def usable_rows(self) -> int:
        """Rows available to circuits; row ``usable_rows`` is the permutation's last row."""
        return self.n - self.blinding_rows - 1

    @property
    def max_degree(self) -> int:
        return 1 << self.blowup_bits

    @property
    def fri_rounds(self) -> int:
        return self.k - self.final_poly_bits

    @property
    def final_poly_len(self) -> int:
        return 1 << self.final_poly_bits

    def validate(self) -> "SetupParams":
        if not MIN_K <= self.k <= MAX_K:
            raise BackendFailure(f"unsupported degree k={self.k}; supported range is [{MIN_K}, {MAX_K}]")
        if self.n_ext_bits > TWO_ADICITY:
            raise BackendFailure(f"k + blowup_bits = {self.n_ext_bits} exceeds the field's two-adicity")
        if not 1 <= self.blowup_bits <= 4:
            raise BackendFailure(f"unsupported blowup_bits={self.blowup_bits}")
        if not 0 <= self.final_poly_bits < self.k or self.n_queries < 1 or not 0 <= self.pow_bits <= 32:
            raise BackendFailure("invalid FRI configuration")
        if self.usable_rows < 1:
            raise BackendFailure(f"k={self.k} leaves no usable rows after {self.blinding_rows} blinding rows")
        return self

    # --- Serialization ---

    def to_json(self) -> dict:
        return asdict(self)

    @classmethod
    def from_json(cls, data: dict) -> "SetupParams":
        return cls(**{key: int(data[key]) for key in
                      ("k", "blowup_bits", "n_queries", "pow_bits", "final_poly_bits")}).validate()

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_json(), sort_keys=True).encode()

    @classmethod
    def from_bytes(cls, data: bytes) -> "SetupParams":
        try:
            return cls.from_json(json.loads(data))
        except (ValueError, KeyError, TypeError) as e:
            raise ConfigurationError(f"invalid setup parameters: {e}") from e


def setup(k: int) -> SetupParams:
    """Setup parameters for 2^k rows."""
    if not isinstance(k, int) or isinstance(k, bool):
        raise ConfigurationError(f"k must be an integer, got {k!r}")
    return SetupParams(k).validate()


def min_k(rows: int) -> int:
    """Smallest supported k whose usable rows hold ``rows`` rows."""
    for k in range(MIN_K, MAX_K + 1):
        if SetupParams(k).usable_rows >= rows:
            return k
    raise BackendFailure(f"{rows} rows exceed the largest supported domain (k={MAX_K})")

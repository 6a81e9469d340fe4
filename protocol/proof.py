"""Proof data structures and serialization.

Binary layout: a sequence of 32-byte big-endian words (the EVM calldata word size).

    MAGIC
    advice_root, aux_root, quotient_root
    n_evals, evals...
    n_fri_roots, fri_roots...
    n_final, final_pol...
    nonce
    n_queries, then per query:
        n_openings, then per opening: n_values, values..., n_path, path...

Openings per query are [fixed, advice, aux, quotient, fri_1, ..., fri_{R-1}].
"""

from dataclasses import dataclass, field

from primitives.field import FIELD_BYTES, P
from primitives.merkle_tree import QueryProof
from protocol.errors import ProofDecodeError

MAGIC = b"bidproof/plonk-fri/v1".ljust(FIELD_BYTES, b"\x00")
MAX_COUNT = 1 << 16

# --- Type Aliases ---
Hash = bytes


# --- Proof Data Structures ---

@dataclass
class Proof:
    """Complete proof for one circuit instance.

    Attributes:
        advice_root: Commitment to advice columns and lookup multiplicities
        aux_root: Commitment to permutation products and lookup running sums
        quotient_root: Commitment to the quotient pieces
        evals: Openings at zeta * omega^rotation, in the verifying key's opening order
        fri_roots: Commitments to FRI layers 1..R-1
        final_pol: Coefficients of the last FRI layer
        nonce: Proof-of-work grinding nonce
        queries: Per query index, Merkle openings of every tree then every FRI layer
    """
    advice_root: Hash = b""
    aux_root: Hash = b""
    quotient_root: Hash = b""
    evals: list[int] = field(default_factory=list)
    fri_roots: list[Hash] = field(default_factory=list)
    final_pol: list[int] = field(default_factory=list)
    nonce: int = 0
    queries: list[list[QueryProof]] = field(default_factory=list)

    # --- Serialization ---

    def to_bytes(self) -> bytes:
        words = [MAGIC, self.advice_root, self.aux_root, self.quotient_root]
        words.append(_int_word(len(self.evals)))
        words += [_int_word(v) for v in self.evals]
        words.append(_int_word(len(self.fri_roots)))
        words += list(self.fri_roots)
        words.append(_int_word(len(self.final_pol)))
        words += [_int_word(v) for v in self.final_pol]
        words.append(_int_word(self.nonce))
        words.append(_int_word(len(self.queries)))
        for openings in self.queries:
            words.append(_int_word(len(openings)))
            for opening in openings:
                words.append(_int_word(len(opening.v)))
                words += [_int_word(v) for v in opening.v]
                words.append(_int_word(len(opening.mp)))
                words += list(opening.mp)
        assert all(len(w) == FIELD_BYTES for w in words)
        return b"".join(words)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Proof":
        """Parse proof bytes; anything the serializer could not have produced raises ProofDecodeError."""
        if not isinstance(data, (bytes, bytearray)):
            raise ProofDecodeError(f"proof must be bytes, got {type(data).__name__}")
        reader = _WordReader(bytes(data))
        if reader.word() != MAGIC:
            raise ProofDecodeError("bad proof magic")
        proof = cls()
        proof.advice_root = reader.word()
        proof.aux_root = reader.word()
        proof.quotient_root = reader.word()
        proof.evals = [reader.field() for _ in range(reader.count())]
        proof.fri_roots = [reader.word() for _ in range(reader.count())]
        proof.final_pol = [reader.field() for _ in range(reader.count())]
        proof.nonce = reader.integer()
        for _ in range(reader.count()):
            openings = []
            for _ in range(reader.count()):
                values = [reader.field() for _ in range(reader.count())]
                path = [reader.word() for _ in range(reader.count())]
                openings.append(QueryProof(v=values, mp=path))
            proof.queries.append(openings)
        if not reader.done():
            raise ProofDecodeError("trailing bytes after proof")
        return proof


# --- Helpers ---

def _int_word(value: int) -> bytes:
    return int(value).to_bytes(FIELD_BYTES, "big")


class _WordReader:
    def __init__(self, data: bytes) -> None:
        if len(data) % FIELD_BYTES:
            raise ProofDecodeError(f"proof length {len(data)} is not a multiple of {FIELD_BYTES}")
        self.data = data
        self.pos = 0

    def word(self) -> bytes:
        if self.pos + FIELD_BYTES > len(self.data):
            raise ProofDecodeError("truncated proof")
        out = self.data[self.pos:self.pos + FIELD_BYTES]
        self.pos += FIELD_BYTES
        return out

    def integer(self) -> int:
        return int.from_bytes(self.word(), "big")

    def field(self) -> int:
        value = self.integer()
        if value >= P:
            raise ProofDecodeError("non-canonical field element in proof")
        return value

    def count(self) -> int:
        value = self.integer()
        if value > MAX_COUNT:
            raise ProofDecodeError(f"implausible length prefix {value}")
        return value

    def done(self) -> bool:
        return self.pos == len(self.data)

"""Tests for the Fiat-Shamir transcript."""

from primitives.field import FF, P
from primitives.transcript import Transcript


def _transcript(*values: int) -> Transcript:
    t = Transcript()
    t.put(list(values))
    return t


class TestTranscript:
    """Challenge derivation."""

    def test_deterministic(self) -> None:
        assert _transcript(1, 2, 3).get_challenge() == _transcript(1, 2, 3).get_challenge()

    def test_binds_every_input(self) -> None:
        base = _transcript(1, 2, 3).get_challenge()
        assert _transcript(1, 2, 4).get_challenge() != base
        assert _transcript(3, 2, 1).get_challenge() != base

    def test_successive_challenges_differ(self) -> None:
        t = _transcript(9)
        first = t.get_challenge()
        second = t.get_challenge()
        assert first != second
        assert isinstance(first, FF) and first.ndim == 0
        assert 0 <= int(first) < P and 0 <= int(second) < P

    def test_domain_separation(self) -> None:
        other = Transcript(b"another.domain")
        other.put([1, 2, 3])
        assert other.get_challenge() != _transcript(1, 2, 3).get_challenge()

    def test_put_hash_absorbs_digest(self) -> None:
        a, b = Transcript(), Transcript()
        a.put_hash(b"\x11" * 32)
        b.put_hash(b"\x22" * 32)
        assert a.get_challenge() != b.get_challenge()

    def test_permutations_in_range(self) -> None:
        indices = _transcript(5).get_permutations(40, 6)
        assert len(indices) == 40
        assert all(0 <= i < 64 for i in indices)


class TestGrinding:
    """Proof-of-work nonce search and check."""

    def test_grind_then_verify(self) -> None:
        nonce = _transcript(42).grind(8)
        assert _transcript(42).verify_grinding(nonce, 8)

    def test_grind_returns_smallest_nonce(self) -> None:
        nonce = _transcript(42).grind(8)
        for smaller in range(nonce):
            assert not _transcript(42).verify_grinding(smaller, 8)

    def test_zero_bits_accepts_any_nonce(self) -> None:
        assert _transcript(1).grind(0) == 0
        assert _transcript(1).verify_grinding(12345, 0)

    def test_out_of_range_nonce_rejected(self) -> None:
        assert not _transcript(1).verify_grinding(-1, 0)
        assert not _transcript(1).verify_grinding(1 << 64, 0)

"""Tests for the bidproof command line."""

import pytest

from cli import EXIT_DECODE, EXIT_OK, EXIT_REJECTED, EXIT_USAGE, main, parse_field, parse_list
from primitives.field import P


@pytest.fixture(scope="module")
def workdir(tmp_path_factory):
    path = tmp_path_factory.mktemp("bidproof")
    assert main(["keygen", "--circuit", "range_proof", "-o", str(path / "keys")]) == EXIT_OK
    return path


@pytest.fixture(scope="module")
def range_proof_file(workdir):
    out = workdir / "range.proof"
    code = main(["prove-range", "--pk", str(workdir / "keys" / "range_proof.pk"),
                 "--value", "50", "--min", "10", "--max", "0x64", "-o", str(out)])
    assert code == EXIT_OK
    return out


def _verify(workdir, proof, *instances: str) -> int:
    return main(["verify", "--vk", str(workdir / "keys" / "range_proof.vk"),
                 "--proof", str(proof), "--instances", *instances])


class TestParsing:

    def test_parse_field(self) -> None:
        assert parse_field("42") == 42
        assert parse_field("0x2a") == 42

    def test_parse_list(self) -> None:
        assert parse_list("1,0x2, 3,") == [1, 2, 3]


class TestCommands:

    def test_check(self, capsys) -> None:
        assert main(["check"]) == EXIT_OK
        out = capsys.readouterr().out
        for name in ("range_proof", "nullifier", "merkle_membership"):
            assert name in out

    def test_setup(self, tmp_path) -> None:
        out = tmp_path / "params.json"
        assert main(["setup", "-k", "9", "-o", str(out)]) == EXIT_OK
        assert b'"k": 9' in out.read_bytes()

    def test_setup_unsupported_k(self, tmp_path, capsys) -> None:
        assert main(["setup", "-k", "3", "-o", str(tmp_path / "p.json")]) == EXIT_USAGE
        assert capsys.readouterr().err.startswith("ERROR:")

    def test_keygen_writes_keys(self, workdir) -> None:
        assert (workdir / "keys" / "range_proof.pk").exists()
        assert (workdir / "keys" / "range_proof.vk").exists()

    def test_verify_accepts(self, workdir, range_proof_file) -> None:
        assert _verify(workdir, range_proof_file, "10", "100", "50") == EXIT_OK

    def test_verify_rejects(self, workdir, range_proof_file) -> None:
        assert _verify(workdir, range_proof_file, "10", "100", "51") == EXIT_REJECTED

    def test_verify_wrong_instance_count(self, workdir, range_proof_file) -> None:
        assert _verify(workdir, range_proof_file, "10", "100") == EXIT_USAGE

    def test_verify_out_of_bound_instance(self, workdir, range_proof_file, capsys) -> None:
        assert _verify(workdir, range_proof_file, str(P - 5), "100", "3") == EXIT_USAGE
        assert "outside" in capsys.readouterr().err

    def test_verify_garbage_proof(self, workdir) -> None:
        garbage = workdir / "garbage.proof"
        garbage.write_bytes(b"\x01" * 33)
        assert _verify(workdir, garbage, "10", "100", "50") == EXIT_DECODE

    def test_prove_out_of_range(self, workdir, tmp_path) -> None:
        code = main(["prove-range", "--pk", str(workdir / "keys" / "range_proof.pk"),
                     "--value", "5", "--min", "10", "--max", "100", "-o", str(tmp_path / "bad.proof")])
        assert code == EXIT_USAGE
        assert not (tmp_path / "bad.proof").exists()

    def test_missing_key_file(self, tmp_path) -> None:
        code = main(["prove-range", "--pk", str(tmp_path / "absent.pk"),
                     "--value", "5", "--min", "1", "--max", "10", "-o", str(tmp_path / "x.proof")])
        assert code == EXIT_USAGE

    def test_gen_solidity_from_vk(self, workdir) -> None:
        out = workdir / "RangeVerifier.sol"
        code = main(["gen-solidity", "--circuit", "range_proof",
                     "--vk", str(workdir / "keys" / "range_proof.vk"), "-o", str(out)])
        assert code == EXIT_OK
        source = out.read_text()
        assert "contract RangeProofVerifier" in source
        assert "instances[0] >> 64 != 0" in source

"""End-to-end tests of setup, keygen, prove, verify and export_verifier."""

from dataclasses import dataclass, replace
from typing import ClassVar

import pytest

from circuits import MerkleMembership, NullifierCircuit, RangeProof
from primitives.field import FF, P
from protocol.circuit import Circuit
from protocol.errors import BackendFailure, ConfigurationError, ProofDecodeError, WitnessError
from protocol.keys import ProvingKey, VerifyingKey
from protocol.params import MAX_K, MIN_K, SetupParams, min_k
from protocol.pipeline import describe, export_verifier, keygen, prove, setup, verify
from protocol.proof import Proof


@dataclass
class PowerCircuit(Circuit):
    """Public y = x^exponent for private x; one gate on one row."""
    x: int
    exponent: int = 3
    bind: bool = True

    name: ClassVar[str] = "power"

    def configure(self, meta):
        a = meta.advice_column()
        inst = meta.instance_column()
        q = meta.selector()
        meta.enable_equality(a)
        meta.enable_equality(inst)
        expr = a.cur()
        for _ in range(self.exponent - 1):
            expr = expr * a.cur()
        meta.create_gate("power", [q.query() * (expr - a.next())])
        return a, inst, q

    def synthesize(self, config, layouter) -> None:
        a, inst, q = config
        with layouter.region("power") as region:
            region.enable_selector(q, 0)
            region.assign_advice(a, 0, self.x)
            out = region.assign_advice(a, 1, FF(self.x) ** self.exponent)
        if self.bind:
            layouter.constrain_instance(out, inst, 0)

    def instances(self):
        return [int(FF(self.x) ** self.exponent)] if self.bind else []

    def without_witnesses(self) -> "PowerCircuit":
        return replace(self, x=0)


@pytest.fixture(scope="module")
def power_keys():
    return keygen(setup(MIN_K), PowerCircuit(x=0))


class TestSetup:

    def test_parameters(self) -> None:
        params = setup(8)
        assert params.n == 256
        assert params.n_ext == 2048
        assert params.usable_rows == 256 - params.blinding_rows - 1
        assert params.max_degree == 8

    @pytest.mark.parametrize("k", [MIN_K - 1, MAX_K + 1])
    def test_unsupported_k(self, k: int) -> None:
        with pytest.raises(BackendFailure):
            setup(k)

    @pytest.mark.parametrize("k", ["8", 8.0, True])
    def test_k_must_be_int(self, k) -> None:
        with pytest.raises(ConfigurationError):
            setup(k)

    def test_params_bytes_roundtrip(self) -> None:
        params = setup(9)
        assert SetupParams.from_bytes(params.to_bytes()) == params
        with pytest.raises(ConfigurationError):
            SetupParams.from_bytes(b"{}")

    def test_min_k(self) -> None:
        assert min_k(1) == MIN_K
        assert min_k(SetupParams(8).usable_rows) == 8
        assert min_k(SetupParams(8).usable_rows + 1) == 9
        with pytest.raises(BackendFailure):
            min_k(1 << MAX_K)


class TestKeygen:

    def test_deterministic(self) -> None:
        shape = describe(RangeProof(value=0, min=0, max=0))
        pk1, vk1 = keygen(setup(7), shape)
        pk2, vk2 = keygen(setup(7), shape)
        assert vk1.to_bytes() == vk2.to_bytes()
        assert pk1.to_bytes() == pk2.to_bytes()

    def test_describe_ignores_witness(self) -> None:
        assert describe(RangeProof.new(50, 10, 100)).digest() == describe(RangeProof.new(1, 0, 2)).digest()
        assert describe(RangeProof.new(50, 10, 100)).digest() != describe(RangeProof.new(50, 10, 100, bits=32)).digest()

    def test_rows_exceed_domain(self) -> None:
        with pytest.raises(BackendFailure):
            keygen(setup(7), NullifierCircuit.build(0, 0, 0, 0, 0))
        with pytest.raises(BackendFailure):
            keygen(setup(8), MerkleMembership(leaf=0, siblings=[0] * 3, directions=[0] * 3))

    def test_degree_too_high(self) -> None:
        with pytest.raises(ConfigurationError):
            keygen(setup(MIN_K), PowerCircuit(x=0, exponent=8))

    def test_no_public_instance(self) -> None:
        with pytest.raises(ConfigurationError):
            keygen(setup(MIN_K), PowerCircuit(x=0, bind=False))

    def test_not_setup_params(self) -> None:
        with pytest.raises(ConfigurationError):
            keygen(7, PowerCircuit(x=0))

    def test_key_bytes_roundtrip(self, power_keys) -> None:
        pk, vk = power_keys
        assert VerifyingKey.from_bytes(vk.to_bytes()).digest() == vk.digest()
        assert ProvingKey.from_bytes(pk.to_bytes()).fixed.root == vk.fixed_root
        with pytest.raises(ConfigurationError):
            VerifyingKey.from_bytes(b"not a key")


class TestProveVerify:

    def test_accepts(self, power_keys, rng) -> None:
        pk, vk = power_keys
        proof = prove(pk, PowerCircuit(x=5), rng)
        assert verify(vk, [125], proof)

    def test_rejects_wrong_public_value(self, power_keys, rng) -> None:
        pk, vk = power_keys
        proof = prove(pk, PowerCircuit(x=5), rng)
        assert not verify(vk, [126], proof)

    def test_reloaded_keys(self, power_keys, rng) -> None:
        pk, vk = power_keys
        proof = prove(ProvingKey.from_bytes(pk.to_bytes()), PowerCircuit(x=3), rng)
        assert verify(VerifyingKey.from_bytes(vk.to_bytes()), [27], proof)

    def test_keys_from_separate_keygen_runs(self, rng) -> None:
        pk1, _ = keygen(setup(MIN_K), PowerCircuit(x=0))
        _, vk2 = keygen(setup(MIN_K), PowerCircuit(x=0))
        proof = prove(pk1, PowerCircuit(x=6), rng)
        assert verify(vk2, [216], proof)
        assert not verify(vk2, [215], proof)

    def test_proofs_are_blinded(self, power_keys) -> None:
        pk, _ = power_keys
        assert prove(pk, PowerCircuit(x=2)) != prove(pk, PowerCircuit(x=2))

    def test_shape_mismatch(self, power_keys) -> None:
        pk, _ = power_keys
        with pytest.raises(ConfigurationError):
            prove(pk, PowerCircuit(x=2, exponent=2))

    def test_required_k_mismatch(self, nullifier_keys) -> None:
        pk, _ = nullifier_keys
        with pytest.raises(BackendFailure):
            prove(pk, NullifierCircuit.honest(1, 2, 3, k=9))

    def test_not_a_proving_key(self) -> None:
        with pytest.raises(ConfigurationError):
            prove(None, PowerCircuit(x=2))

    def test_instance_count(self, power_keys, rng) -> None:
        pk, vk = power_keys
        proof = prove(pk, PowerCircuit(x=5), rng)
        with pytest.raises(ConfigurationError):
            verify(vk, [], proof)
        with pytest.raises(ConfigurationError):
            verify(vk, [125, 0], proof)

    @pytest.mark.parametrize("value", [P, -1, "125", None])
    def test_non_field_instance(self, power_keys, value) -> None:
        _, vk = power_keys
        with pytest.raises(WitnessError):
            verify(vk, [value], b"")


class TestProofEncoding:

    @pytest.fixture(scope="class")
    def proof(self, power_keys) -> bytes:
        pk, _ = power_keys
        return prove(pk, PowerCircuit(x=4))

    def test_roundtrip(self, proof: bytes) -> None:
        assert Proof.from_bytes(proof).to_bytes() == proof
        assert len(proof) % 32 == 0

    @pytest.mark.parametrize("mangle", [
        lambda p: p[:-32],
        lambda p: p + b"\x00" * 32,
        lambda p: p[:-1],
        lambda p: b"\x00" * 64,
        lambda p: b"",
        lambda p: p.hex(),
    ], ids=["truncated", "trailing", "unaligned", "bad-magic", "empty", "not-bytes"])
    def test_undecodable(self, power_keys, proof: bytes, mangle) -> None:
        _, vk = power_keys
        with pytest.raises(ProofDecodeError):
            verify(vk, [64], mangle(proof))

    def test_non_canonical_word(self, power_keys, proof: bytes) -> None:
        _, vk = power_keys
        decoded = Proof.from_bytes(proof)
        # first evaluation word sits after magic, three roots and the count
        offset = 5 * 32
        mangled = proof[:offset] + P.to_bytes(32, "big") + proof[offset + 32:]
        assert decoded.evals
        with pytest.raises(ProofDecodeError):
            verify(vk, [64], mangled)

    def test_tampered_commitment_rejected(self, power_keys, proof: bytes) -> None:
        _, vk = power_keys
        tampered = bytearray(proof)
        tampered[32] ^= 1
        assert verify(vk, [64], proof)
        assert not verify(vk, [64], bytes(tampered))

    def test_other_shape_rejected(self, range_keys, power_keys, proof: bytes) -> None:
        _, range_vk = range_keys
        assert not verify(range_vk, [0, 0, 64], proof)


class TestExportVerifier:

    def test_deterministic(self, range_keys) -> None:
        _, vk = range_keys
        first = export_verifier(vk)
        assert first == export_verifier(vk)
        assert first == export_verifier(VerifyingKey.from_bytes(vk.to_bytes()))

    def test_contract_binds_key(self, range_keys) -> None:
        _, vk = range_keys
        source = export_verifier(vk).decode()
        assert "pragma solidity ^0.8.19;" in source
        assert "contract RangeProofVerifier" in source
        assert vk.digest().hex() in source
        assert vk.fixed_root.hex() in source
        assert vk.descriptor_digest in source
        assert "function verify(uint256[] calldata instances, bytes calldata proof)" in source

    def test_distinct_per_circuit(self, range_keys, nullifier_keys, merkle_keys) -> None:
        artifacts = {export_verifier(vk) for _, vk in (range_keys, nullifier_keys, merkle_keys)}
        assert len(artifacts) == 3

    def test_not_a_verifying_key(self) -> None:
        with pytest.raises(ConfigurationError):
            export_verifier(b"vk")

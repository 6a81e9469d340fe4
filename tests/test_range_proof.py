"""Tests for the range proof circuit."""

import pytest

from circuits import RangeProof
from primitives.field import Fr, P
from protocol.errors import ConfigurationError, WitnessError
from protocol.pipeline import describe, prove, verify


class TestConstruction:

    def test_default_shape(self) -> None:
        circuit = RangeProof.new(50, 10, 100)
        assert circuit.limbs == 16
        assert circuit.rows() == 17
        assert circuit.k() == 7
        assert circuit.instances() == [Fr(10), Fr(100), Fr(50)]

    @pytest.mark.parametrize("value,lo,hi", [(5, 10, 100), (101, 10, 100), (1, 2, 1)])
    def test_false_claim_rejected(self, value: int, lo: int, hi: int) -> None:
        with pytest.raises(WitnessError):
            RangeProof.new(value, lo, hi)

    @pytest.mark.parametrize("value", [-1, 1 << 64, True, "50"])
    def test_value_outside_bit_range(self, value) -> None:
        with pytest.raises(WitnessError):
            RangeProof.new(value, 0, 100)

    def test_public_instances_order(self) -> None:
        assert RangeProof.public_instances(10, 100, 50) == [Fr(10), Fr(100), Fr(50)]
        with pytest.raises(WitnessError):
            RangeProof.public_instances(10, 1 << 64, 50)

    @pytest.mark.parametrize("bits,lookup_bits", [(63, 4), (64, 0), (256, 4)])
    def test_bad_decomposition_parameters(self, bits: int, lookup_bits: int) -> None:
        with pytest.raises(ConfigurationError):
            describe(RangeProof(value=0, min=0, max=0, bits=bits, lookup_bits=lookup_bits))

    def test_descriptor(self) -> None:
        descriptor = describe(RangeProof(value=0, min=0, max=0))
        assert descriptor.name == "range_proof"
        assert descriptor.instance_lengths == (3,)
        assert [lk.name for lk in descriptor.cs.lookups] == ["diff_min limb", "diff_max limb"]

    def test_instances_bounded_by_bit_width(self) -> None:
        assert describe(RangeProof(value=0, min=0, max=0)).instance_bounds == (64, 64, 64)
        assert describe(RangeProof(value=0, min=0, max=0, bits=32)).instance_bounds == (32, 32, 32)


class TestProofs:

    @pytest.mark.parametrize("value", [10, 50, 100])
    def test_in_range_accepted(self, range_keys, rng, value: int) -> None:
        pk, vk = range_keys
        proof = prove(pk, RangeProof.new(value, 10, 100), rng)
        assert verify(vk, RangeProof.public_instances(10, 100, value), proof)

    def test_full_64_bit_interval(self, range_keys, rng) -> None:
        pk, vk = range_keys
        top = (1 << 64) - 1
        proof = prove(pk, RangeProof.new(top, 0, top), rng)
        assert verify(vk, [0, top, top], proof)

    @pytest.mark.parametrize("value", [5, 101])
    def test_out_of_range_proof_rejected(self, range_keys, rng, value: int) -> None:
        pk, vk = range_keys
        proof = prove(pk, RangeProof(value=value, min=10, max=100), rng)
        assert not verify(vk, [10, 100, value], proof)

    def test_instances_are_ordered(self, range_keys, rng) -> None:
        pk, vk = range_keys
        proof = prove(pk, RangeProof.new(50, 10, 100), rng)
        assert verify(vk, [10, 100, 50], proof)
        assert not verify(vk, [100, 10, 50], proof)
        assert not verify(vk, [10, 100, 51], proof)

    def test_vk_records_instance_bounds(self, range_keys) -> None:
        _, vk = range_keys
        assert vk.instance_bounds == (64, 64, 64)

    def test_wrapped_bound_refused_at_prove(self, range_keys, rng) -> None:
        # value - min wraps to a small field element when min is near P
        pk, _ = range_keys
        with pytest.raises(WitnessError):
            prove(pk, RangeProof(value=3, min=P - 5, max=100), rng)

    @pytest.mark.parametrize("instances", [
        [P - 5, 100, 3],
        [10, 1 << 64, 50],
        [10, 100, P - 1],
    ])
    def test_wrapped_bound_refused_at_verify(self, range_keys, rng, instances) -> None:
        pk, vk = range_keys
        proof = prove(pk, RangeProof.new(50, 10, 100), rng)
        with pytest.raises(WitnessError):
            verify(vk, instances, proof)

#!/usr/bin/env python3
"""
Command line front end for the attestation circuits.

Usage:
    bidproof check
    bidproof setup -k 8 --output params.json
    bidproof keygen --circuit range_proof --output keys/
    bidproof prove-range --pk keys/range_proof.pk --value 50 --min 10 --max 100 --output range.proof
    bidproof prove-nullifier --pk keys/nullifier.pk --secret 7 --nonce 11 --external-nullifier 3 --output n.proof
    bidproof prove-merkle --pk keys/merkle_membership.pk --leaf 5 --siblings 1,2 --directions 0,1 --output m.proof
    bidproof verify --vk keys/range_proof.vk --proof range.proof --instances 10 100 50
    bidproof gen-solidity --circuit nullifier --output NullifierVerifier.sol

Exit codes: 0 success or accepted proof, 1 rejected proof, 2 configuration or
witness error, 3 undecodable proof.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from circuits import CIRCUITS, MerkleMembership, NullifierCircuit, RangeProof, k_for_depth
from circuits.nullifier import DEFAULT_K as NULLIFIER_K
from protocol.circuit import Circuit
from protocol.errors import BackendFailure, ConfigurationError, ProofDecodeError, WitnessError
from protocol.keys import ProvingKey, VerifyingKey
from protocol.pipeline import describe, export_verifier, keygen, prove, setup, verify

EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_USAGE = 2
EXIT_DECODE = 3

DEFAULT_DEPTH = 2


def parse_field(text: str) -> int:
    """Decimal or 0x-prefixed integer."""
    try:
        return int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}")


def parse_list(text: str) -> List[int]:
    return [parse_field(part) for part in text.split(",") if part.strip()]


# --- Circuit shapes ---

def template(name: str, depth: int) -> Circuit:
    """Witness-free instance of a circuit variant, used for key generation."""
    if name == RangeProof.name:
        return RangeProof(value=0, min=0, max=0)
    if name == NullifierCircuit.name:
        return NullifierCircuit.build(0, 0, 0, 0, 0)
    if name == MerkleMembership.name:
        return MerkleMembership(leaf=0, siblings=[0] * depth, directions=[0] * depth, root=0)
    raise ConfigurationError(f"unknown circuit {name!r}; expected one of {sorted(CIRCUITS)}")


def default_k(name: str, depth: int) -> int:
    if name == RangeProof.name:
        return RangeProof(value=0, min=0, max=0).k()
    if name == NullifierCircuit.name:
        return NULLIFIER_K
    return k_for_depth(depth)


def _keys(args: argparse.Namespace):
    k = args.k if args.k is not None else default_k(args.circuit, args.depth)
    print(f"  k = {k} (circuit size = 2^k = {1 << k} rows)")
    params = setup(k)
    return keygen(params, describe(template(args.circuit, args.depth)))


# --- Commands ---

def cmd_check(args: argparse.Namespace) -> int:
    for name in sorted(CIRCUITS):
        descriptor = describe(template(name, DEFAULT_DEPTH))
        print(f"  - {name}: {descriptor.rows} rows, degree {descriptor.cs.degree()}, "
              f"{descriptor.num_instances} public instances")
    print("Circuit compilation check passed!")
    return EXIT_OK


def cmd_setup(args: argparse.Namespace) -> int:
    params = setup(args.k)
    Path(args.output).write_bytes(params.to_bytes())
    print(f"Setup parameters for k = {params.k} ({params.usable_rows} usable rows) written to: {args.output}")
    return EXIT_OK


def cmd_keygen(args: argparse.Namespace) -> int:
    print(f"Generating proving and verification keys for {args.circuit}...")
    pk, vk = _keys(args)
    out = Path(args.output)
    out.mkdir(parents=True, exist_ok=True)
    (out / f"{args.circuit}.pk").write_bytes(pk.to_bytes())
    (out / f"{args.circuit}.vk").write_bytes(vk.to_bytes())
    print(f"Proving key written to: {out / f'{args.circuit}.pk'}")
    print(f"Verification key written to: {out / f'{args.circuit}.vk'}")
    return EXIT_OK


def _load_pk(args: argparse.Namespace) -> ProvingKey:
    return ProvingKey.from_bytes(Path(args.pk).read_bytes())


def _prove(args: argparse.Namespace, pk: ProvingKey, circuit: Circuit) -> int:
    proof = prove(pk, circuit)
    Path(args.output).write_bytes(proof)
    print(f"Proof ({len(proof)} bytes) written to: {args.output}")
    print("Public instances: " + " ".join(hex(int(v)) for v in circuit.instances()))
    return EXIT_OK


def cmd_prove_range(args: argparse.Namespace) -> int:
    circuit = RangeProof.new(args.value, args.min, args.max)
    return _prove(args, _load_pk(args), circuit)


def cmd_prove_nullifier(args: argparse.Namespace) -> int:
    pk = _load_pk(args)
    circuit = NullifierCircuit.honest(args.secret, args.nonce, args.external_nullifier, k=pk.params.k)
    return _prove(args, pk, circuit)


def cmd_prove_merkle(args: argparse.Namespace) -> int:
    circuit = MerkleMembership.build(args.leaf, args.siblings, args.directions)
    return _prove(args, _load_pk(args), circuit)


def cmd_verify(args: argparse.Namespace) -> int:
    vk = VerifyingKey.from_bytes(Path(args.vk).read_bytes())
    accepted = verify(vk, args.instances, Path(args.proof).read_bytes())
    print("Proof accepted" if accepted else "Proof rejected")
    return EXIT_OK if accepted else EXIT_REJECTED


def cmd_gen_solidity(args: argparse.Namespace) -> int:
    print(f"Generating {args.circuit} Solidity verifier...")
    if args.vk:
        vk = VerifyingKey.from_bytes(Path(args.vk).read_bytes())
    else:
        _, vk = _keys(args)
    Path(args.output).write_bytes(export_verifier(vk))
    print(f"Solidity contract written to: {args.output}")
    return EXIT_OK


# --- Entry point ---

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bidproof",
        description="Zero-knowledge attestations for confidential bidding",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("check", help="Configure every circuit and report its shape").set_defaults(func=cmd_check)

    p = sub.add_parser("setup", help="Write setup parameters")
    p.add_argument("-k", type=int, required=True, help="log2 of the number of rows")
    p.add_argument("-o", "--output", default="params.json", help="Output file")
    p.set_defaults(func=cmd_setup)

    for command, func, help_text in (("keygen", cmd_keygen, "Write proving and verification keys"),
                                     ("gen-solidity", cmd_gen_solidity, "Write a Solidity verifier contract")):
        p = sub.add_parser(command, help=help_text)
        p.add_argument("--circuit", choices=sorted(CIRCUITS), required=True)
        p.add_argument("-k", type=int, default=None, help="log2 of the number of rows (default: smallest fit)")
        p.add_argument("--depth", type=int, default=DEFAULT_DEPTH, help="Merkle path length")
        p.set_defaults(func=func)
    sub.choices["keygen"].add_argument("-o", "--output", default="keys", help="Output directory")
    sub.choices["gen-solidity"].add_argument("-o", "--output", default="Verifier.sol", help="Output file")
    sub.choices["gen-solidity"].add_argument("--vk", help="Existing verification key (skips keygen)")

    p = sub.add_parser("prove-range", help="Prove min <= value <= max")
    p.add_argument("--pk", required=True)
    p.add_argument("--value", type=parse_field, required=True)
    p.add_argument("--min", type=parse_field, required=True)
    p.add_argument("--max", type=parse_field, required=True)
    p.add_argument("-o", "--output", default="range.proof")
    p.set_defaults(func=cmd_prove_range)

    p = sub.add_parser("prove-nullifier", help="Prove a commitment and its nullifier share a secret")
    p.add_argument("--pk", required=True)
    p.add_argument("--secret", type=parse_field, required=True)
    p.add_argument("--nonce", type=parse_field, required=True)
    p.add_argument("--external-nullifier", type=parse_field, required=True)
    p.add_argument("-o", "--output", default="nullifier.proof")
    p.set_defaults(func=cmd_prove_nullifier)

    p = sub.add_parser("prove-merkle", help="Prove membership of a leaf under a root")
    p.add_argument("--pk", required=True)
    p.add_argument("--leaf", type=parse_field, required=True)
    p.add_argument("--siblings", type=parse_list, required=True, help="Comma-separated sibling nodes")
    p.add_argument("--directions", type=parse_list, required=True, help="Comma-separated direction bits")
    p.add_argument("-o", "--output", default="merkle.proof")
    p.set_defaults(func=cmd_prove_merkle)

    p = sub.add_parser("verify", help="Verify a proof against public instances")
    p.add_argument("--vk", required=True)
    p.add_argument("--proof", required=True)
    p.add_argument("--instances", type=parse_field, nargs="*", default=[])
    p.set_defaults(func=cmd_verify)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except ProofDecodeError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_DECODE
    except (ConfigurationError, WitnessError, BackendFailure, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())

"""Solidity verifier generation.

The contract re-runs ``verifier.verify_proof`` on chain for one verifying key:
shape checks, the SHA-256 transcript, proof of work, the evaluation check, the
Merkle openings, the DEEP composition and FRI folding. Everything that depends on
the circuit (opening order, tree widths, proof offsets, instance queries and the
constraint polynomial) is rendered into the source, so the output is a pure
function of the verifying key.

Constraint expressions are lowered to ``addmod``/``mulmod`` calls over two
memory arrays: ``ev`` (the proof's openings, in opening order) and ``iv``
(instance columns evaluated at zeta * omega^rotation).
"""

import hashlib
import re
from string import Template
from typing import Dict, List, Tuple

from primitives.field import DELTA, FF, P, SHIFT, get_omega
from primitives.transcript import TRANSCRIPT_DOMAIN
from protocol.expressions import ColumnKind, Constant, Expression, Negated, Product, Query, Sum
from protocol.keys import VerifyingKey
from protocol.layout import TREES, PolyId
from protocol.proof import MAGIC

SOLIDITY_VERSION = "^0.8.19"
INDENT = "        "


def contract_name(name: str) -> str:
    """CamelCase contract identifier for a circuit name."""
    parts = [p for p in re.split(r"[^0-9A-Za-z]+", name) if p]
    ident = "".join(p[:1].upper() + p[1:] for p in parts) or "Circuit"
    if ident[0].isdigit():
        ident = "C" + ident
    return ident + "Verifier"


# --- Expression lowering ---

class _Lowering:
    """Renders constraint expressions as Solidity arithmetic over ``ev``/``iv``."""

    def __init__(self, vk: VerifyingKey) -> None:
        layout = vk.layout
        self.vk = vk
        self.openings: Dict[Tuple[PolyId, int], int] = {o: k for k, o in enumerate(layout.openings)}
        self.instance_queries: Dict[Tuple[int, int], int] = {}

        queries = set()
        for gate in vk.cs.gates:
            for constraint in gate.constraints:
                queries |= constraint.queries()
        for lookup in vk.cs.lookups:
            queries |= lookup.input.queries()
        instance = {(q.column.index, q.rotation) for q in queries if q.column.kind == ColumnKind.INSTANCE}
        instance |= {(c.index, 0) for c in vk.cs.equality if c.kind == ColumnKind.INSTANCE}
        for key in sorted(instance):
            self.instance_queries[key] = len(self.instance_queries)

    def poly(self, pid: PolyId, rotation: int = 0) -> str:
        if pid[0] == ColumnKind.INSTANCE.value:
            return f"iv[{self.instance_queries[(pid[1], rotation)]}]"
        return f"ev[{self.openings[(pid, rotation)]}]"

    def expr(self, e: Expression) -> str:
        if isinstance(e, Constant):
            return _uint(e.value)
        if isinstance(e, Query):
            return self.poly(e.column.poly_id, e.rotation)
        if isinstance(e, Sum):
            return f"addmod({self.expr(e.left)}, {self.expr(e.right)}, R)"
        if isinstance(e, Product):
            return f"mulmod({self.expr(e.left)}, {self.expr(e.right)}, R)"
        if isinstance(e, Negated):
            return f"_neg({self.expr(e.inner)})"
        raise TypeError(f"cannot lower {type(e).__name__}")

    # --- Generated sections ---

    def constraint_lines(self) -> List[str]:
        """Horner accumulation of every constraint term, in verifier order."""
        cs = self.vk.cs
        chunk_sizes = self.vk.layout.chunk_sizes
        lines = []

        for gate in cs.gates:
            for i, constraint in enumerate(gate.constraints):
                lines.append(f"// gate {gate.name!r} constraint {i}")
                lines.append(f"acc = _fold(acc, c.y, {self.expr(constraint)});")

        if chunk_sizes:
            z0 = self.poly(("z", 0))
            lines.append("// permutation")
            lines.append(f"acc = _fold(acc, c.y, mulmod(c.l0, _sub(1, {z0}), R));")
            lines.append(f"acc = _fold(acc, c.y, mulmod(c.lLast, _sub({z0}, 1), R));")
            col = 0
            for j, size in enumerate(chunk_sizes):
                z_in = self.poly(("z", j))
                z_out = self.poly(("z", j + 1)) if j + 1 < len(chunk_sizes) else self.poly(("z", 0), 1)
                lines.append("{")
                lines.append("    uint256 num = 1;")
                lines.append("    uint256 den = 1;")
                for _ in range(size):
                    v = self.poly(cs.equality[col].poly_id)
                    shift = _uint(DELTA ** col)
                    sigma = self.poly(("sigma", col))
                    lines.append(f"    num = mulmod(num, addmod(addmod({v}, mulmod(c.beta, mulmod({shift}, c.zeta, R), R), R),"
                                 f" c.gamma, R), R);")
                    lines.append(f"    den = mulmod(den, addmod(addmod({v}, mulmod(c.beta, {sigma}, R), R), c.gamma, R), R);")
                    col += 1
                lines.append(f"    acc = _fold(acc, c.y, mulmod(c.lActive, _sub(mulmod({z_out}, den, R), mulmod({z_in}, num, R)), R));")
                lines.append("}")

        for l, lookup in enumerate(cs.lookups):
            phi, phi_next = self.poly(("phi", l)), self.poly(("phi", l), 1)
            lines.append(f"// lookup {lookup.name!r}")
            lines.append("{")
            lines.append(f"    uint256 a = _sub(c.theta, {self.expr(lookup.input)});")
            lines.append(f"    uint256 b = _sub(c.theta, {self.poly(lookup.table.poly_id)});")
            lines.append(f"    acc = _fold(acc, c.y, mulmod(c.l0, {phi}, R));")
            lines.append(f"    acc = _fold(acc, c.y, mulmod(c.lLast, {phi}, R));")
            lines.append(f"    acc = _fold(acc, c.y, mulmod(c.lActive, addmod(_sub(mulmod(mulmod(_sub({phi_next}, {phi}), a, R),"
                         f" b, R), b), mulmod({self.poly(('mult', l))}, a, R), R), R));")
            lines.append("}")
        return lines

    def instance_lines(self) -> List[str]:
        params = self.vk.params
        offsets = [sum(self.vk.instance_lengths[:i]) for i in range(len(self.vk.instance_lengths))]
        lines = []
        for (column, rotation), j in self.instance_queries.items():
            w = _uint(params.omega ** (rotation % params.n))
            lines.append(f"iv[{j}] = _instanceEval(instances, {offsets[column]}, "
                         f"{self.vk.instance_lengths[column]}, mulmod(zeta, {w}, R));")
        return lines

    def quotient_lines(self) -> List[str]:
        pieces = self.vk.layout.quotient_pieces
        return [f"quotient = addmod(mulmod(quotient, zetaN, R), {self.poly(('quotient', i))}, R);"
                for i in reversed(range(pieces))]

    def point_lines(self) -> List[str]:
        params = self.vk.params
        return [f"points[{slot}] = mulmod(zeta, {_uint(params.omega ** (rot % params.n))}, R);"
                for slot, rot in enumerate(self.vk.layout.rotations())]

    def opening_map(self) -> str:
        """Per opening: tree (1 byte), column within the tree (2 bytes), rotation slot (1 byte)."""
        layout = self.vk.layout
        slots = {rot: s for s, rot in enumerate(layout.rotations())}
        out = bytearray()
        for pid, rot in layout.openings:
            tree = next(t for t, name in enumerate(TREES) if pid in layout.tree_polys(name))
            column = layout.tree_polys(TREES[tree]).index(pid)
            out += bytes([tree]) + column.to_bytes(2, "big") + bytes([slots[rot]])
        return out.hex()


# --- Proof offsets ---

def _proof_offsets(vk: VerifyingKey) -> Dict[str, int]:
    """Word offsets of every section of a well-formed proof for this key."""
    params = vk.params
    layout = vk.layout
    n_evals = len(layout.openings)
    fri_roots = params.fri_rounds - 1
    off = {"EVALS_AT": 5}
    off["FRI_COUNT_AT"] = off["EVALS_AT"] + n_evals
    off["FRI_ROOTS_AT"] = off["FRI_COUNT_AT"] + 1
    off["FINAL_COUNT_AT"] = off["FRI_ROOTS_AT"] + fri_roots
    off["FINAL_AT"] = off["FINAL_COUNT_AT"] + 1
    off["NONCE_AT"] = off["FINAL_AT"] + params.final_poly_len
    off["QUERY_COUNT_AT"] = off["NONCE_AT"] + 1
    off["QUERIES_AT"] = off["QUERY_COUNT_AT"] + 1

    depth = params.n_ext_bits - 1
    words = 1
    for tree in TREES:
        words += 2 + 2 * len(layout.tree_polys(tree)) + depth
    for layer in range(1, params.fri_rounds):
        words += 4 + (params.n_ext_bits - layer - 1)
    off["QUERY_WORDS"] = words
    off["PROOF_WORDS"] = off["QUERIES_AT"] + params.n_queries * words
    return off


def _uint(value: int) -> str:
    value = int(value) % P
    return str(value) if value < 1 << 16 else f"0x{value:064x}"


def _bytes32(data: bytes) -> str:
    return "0x" + data.hex()


def _block(lines: List[str]) -> str:
    return "\n".join(INDENT + line for line in lines) if lines else INDENT + "// none"


def render_verifier(vk: VerifyingKey) -> str:
    """Solidity source of a standalone verifier contract for ``vk``."""
    params = vk.params
    layout = vk.layout
    lowering = _Lowering(vk)
    offsets = _proof_offsets(vk)
    widths = {tree: len(layout.tree_polys(tree)) for tree in TREES}

    return _CONTRACT.substitute(
        version=SOLIDITY_VERSION,
        contract=contract_name(vk.name),
        name=vk.name,
        descriptor_digest=vk.descriptor_digest,
        modulus=str(P),
        vk_digest=_bytes32(vk.digest()),
        fixed_root=_bytes32(vk.fixed_root),
        magic=_bytes32(MAGIC),
        transcript_init=_bytes32(hashlib.sha256(TRANSCRIPT_DOMAIN).digest()),
        k=params.k,
        n=params.n,
        usable_rows=params.usable_rows,
        omega=_uint(params.omega),
        n_ext_bits=params.n_ext_bits,
        omega_ext=_uint(get_omega(params.n_ext_bits)),
        shift=_uint(SHIFT),
        inv_two=_uint(FF(2) ** -1),
        n_queries=params.n_queries,
        pow_bits=params.pow_bits,
        fri_rounds=params.fri_rounds,
        final_len=params.final_poly_len,
        n_instances=vk.num_instances,
        n_evals=len(layout.openings),
        n_rotations=len(layout.rotations()),
        n_instance_queries=len(lowering.instance_queries),
        w_fixed=widths["fixed"],
        w_advice=widths["advice"],
        w_aux=widths["aux"],
        w_quotient=widths["quotient"],
        openings=lowering.opening_map(),
        offsets="\n".join(f"    uint256 internal constant {key} = {value};" for key, value in offsets.items()),
        constraints=_block(lowering.constraint_lines()),
        instance_evals=_block(lowering.instance_lines()),
        quotient=_block(lowering.quotient_lines()),
        points=_block(lowering.point_lines()),
        instance_bounds=_block([f"if (instances[{i}] >> {bits} != 0) return false;"
                                for i, bits in enumerate(vk.instance_bounds)]),
    )


_CONTRACT = Template("""\
// SPDX-License-Identifier: MIT
// Generated by bidproof gen-solidity. Do not edit.
pragma solidity $version;

/// @title $contract
/// @notice Verifies PLONKish / FRI proofs of the `$name` circuit.
/// @dev Circuit shape digest: $descriptor_digest
contract $contract {
    uint256 internal constant R = $modulus;
    uint256 internal constant INV_TWO = $inv_two;

    bytes32 internal constant VK_DIGEST = $vk_digest;
    bytes32 internal constant FIXED_ROOT = $fixed_root;
    bytes32 internal constant MAGIC = $magic;
    bytes32 internal constant TRANSCRIPT_INIT = $transcript_init;

    uint256 internal constant K = $k;
    uint256 internal constant N = $n;
    uint256 internal constant USABLE_ROWS = $usable_rows;
    uint256 internal constant OMEGA = $omega;
    uint256 internal constant N_EXT_BITS = $n_ext_bits;
    uint256 internal constant OMEGA_EXT = $omega_ext;
    uint256 internal constant SHIFT = $shift;
    uint256 internal constant N_QUERIES = $n_queries;
    uint256 internal constant POW_BITS = $pow_bits;
    uint256 internal constant FRI_ROUNDS = $fri_rounds;
    uint256 internal constant FINAL_LEN = $final_len;

    uint256 internal constant N_INSTANCES = $n_instances;
    uint256 internal constant N_EVALS = $n_evals;
    uint256 internal constant N_ROTATIONS = $n_rotations;
    uint256 internal constant N_INSTANCE_QUERIES = $n_instance_queries;

    // Committed polynomials per tree
    uint256 internal constant W_FIXED = $w_fixed;
    uint256 internal constant W_ADVICE = $w_advice;
    uint256 internal constant W_AUX = $w_aux;
    uint256 internal constant W_QUOTIENT = $w_quotient;

    // Proof layout, in 32-byte words
$offsets

    // Per opening: tree (1 byte), column (2 bytes), rotation slot (1 byte)
    bytes internal constant OPENINGS = hex"$openings";

    struct Challenges {
        uint256 beta;
        uint256 gamma;
        uint256 theta;
        uint256 y;
        uint256 zeta;
        uint256 alpha;
        uint256 l0;
        uint256 lLast;
        uint256 lActive;
    }

    struct Transcript {
        bytes32 state;
        bytes pending;
    }

    function verify(uint256[] calldata instances, bytes calldata proof) external view returns (bool) {
        if (instances.length != N_INSTANCES) return false;
        for (uint256 i = 0; i < instances.length; i++) {
            if (instances[i] >= R) return false;
        }
$instance_bounds
        if (!_checkShape(proof)) return false;

        Transcript memory t = Transcript(TRANSCRIPT_INIT, "");
        _absorbHash(t, VK_DIGEST);
        for (uint256 i = 0; i < instances.length; i++) {
            _absorb(t, instances[i]);
        }

        Challenges memory c;
        _absorbHash(t, bytes32(_word(proof, 1)));
        c.beta = _challenge(t);
        c.gamma = _challenge(t);
        c.theta = _challenge(t);
        _absorbHash(t, bytes32(_word(proof, 2)));
        c.y = _challenge(t);
        _absorbHash(t, bytes32(_word(proof, 3)));
        c.zeta = _challenge(t);

        uint256[] memory ev = new uint256[](N_EVALS);
        for (uint256 k = 0; k < N_EVALS; k++) {
            ev[k] = _word(proof, EVALS_AT + k);
            _absorb(t, ev[k]);
        }
        c.alpha = _challenge(t);

        uint256[] memory fri = new uint256[](FRI_ROUNDS);
        fri[0] = _challenge(t);
        for (uint256 l = 1; l < FRI_ROUNDS; l++) {
            _absorbHash(t, bytes32(_word(proof, FRI_ROOTS_AT + l - 1)));
            fri[l] = _challenge(t);
        }
        for (uint256 i = 0; i < FINAL_LEN; i++) {
            _absorb(t, _word(proof, FINAL_AT + i));
        }

        uint256 nonce = _word(proof, NONCE_AT);
        if (!_checkPow(_flush(t), nonce)) return false;
        _absorb(t, nonce);

        if (!_checkEvaluations(instances, ev, c)) return false;

        uint256[] memory points = _points(c.zeta);
        for (uint256 q = 0; q < N_QUERIES; q++) {
            uint256 idx = uint256(_squeeze(t)) & ((1 << (N_EXT_BITS - 1)) - 1);
            if (!_checkQuery(proof, QUERIES_AT + q * QUERY_WORDS + 1, idx, ev, c.alpha, fri, points)) return false;
        }
        return true;
    }

    // --- Proof shape ---

    function _checkShape(bytes calldata proof) private pure returns (bool) {
        if (proof.length != PROOF_WORDS * 32) return false;
        if (bytes32(_word(proof, 0)) != MAGIC) return false;
        if (_word(proof, 4) != N_EVALS || _word(proof, FRI_COUNT_AT) != FRI_ROUNDS - 1) return false;
        if (_word(proof, FINAL_COUNT_AT) != FINAL_LEN || _word(proof, QUERY_COUNT_AT) != N_QUERIES) return false;
        if (!_canonical(proof, EVALS_AT, N_EVALS) || !_canonical(proof, FINAL_AT, FINAL_LEN)) return false;

        for (uint256 q = 0; q < N_QUERIES; q++) {
            uint256 pos = QUERIES_AT + q * QUERY_WORDS;
            if (_word(proof, pos) != 3 + FRI_ROUNDS) return false;
            pos += 1;
            for (uint256 tr = 0; tr < 4; tr++) {
                uint256 w = _treeWidth(tr);
                if (_word(proof, pos) != 2 * w || !_canonical(proof, pos + 1, 2 * w)) return false;
                pos += 1 + 2 * w;
                if (_word(proof, pos) != N_EXT_BITS - 1) return false;
                pos += N_EXT_BITS;
            }
            for (uint256 l = 1; l < FRI_ROUNDS; l++) {
                if (_word(proof, pos) != 2 || !_canonical(proof, pos + 1, 2)) return false;
                pos += 3;
                if (_word(proof, pos) != N_EXT_BITS - l - 1) return false;
                pos += N_EXT_BITS - l;
            }
        }
        return true;
    }

    function _canonical(bytes calldata proof, uint256 start, uint256 count) private pure returns (bool) {
        for (uint256 i = 0; i < count; i++) {
            if (_word(proof, start + i) >= R) return false;
        }
        return true;
    }

    function _treeWidth(uint256 tr) private pure returns (uint256) {
        if (tr == 0) return W_FIXED;
        if (tr == 1) return W_ADVICE;
        if (tr == 2) return W_AUX;
        return W_QUOTIENT;
    }

    // --- Evaluation check ---

    function _checkEvaluations(uint256[] calldata instances, uint256[] memory ev, Challenges memory c)
        private
        view
        returns (bool)
    {
        c.l0 = _lagrange(0, c.zeta);
        c.lLast = _lagrange(USABLE_ROWS, c.zeta);
        uint256 blind = 0;
        for (uint256 i = USABLE_ROWS; i < N; i++) {
            blind = addmod(blind, _lagrange(i, c.zeta), R);
        }
        c.lActive = _sub(1, blind);

        uint256[] memory iv = _instanceEvals(instances, c.zeta);
        uint256 combined = _constraints(ev, iv, c);

        uint256 zetaN = _expmod(c.zeta, N);
        uint256 quotient = 0;
$quotient
        return combined == mulmod(quotient, _sub(zetaN, 1), R);
    }

    function _constraints(uint256[] memory ev, uint256[] memory iv, Challenges memory c)
        private
        pure
        returns (uint256 acc)
    {
$constraints
    }

    function _instanceEvals(uint256[] calldata instances, uint256 zeta) private view returns (uint256[] memory iv) {
        iv = new uint256[](N_INSTANCE_QUERIES);
$instance_evals
    }

    function _instanceEval(uint256[] calldata instances, uint256 offset, uint256 len, uint256 z)
        private
        view
        returns (uint256 acc)
    {
        for (uint256 i = 0; i < len; i++) {
            acc = addmod(acc, mulmod(instances[offset + i], _lagrange(i, z), R), R);
        }
    }

    function _lagrange(uint256 i, uint256 z) private view returns (uint256) {
        uint256 wi = _expmod(OMEGA, i);
        uint256 num = mulmod(wi, _sub(_expmod(z, N), 1), R);
        return mulmod(num, _inv(mulmod(N, _sub(z, wi), R)), R);
    }

    // --- Queries ---

    function _points(uint256 zeta) private pure returns (uint256[] memory points) {
        points = new uint256[](N_ROTATIONS);
$points
    }

    function _checkQuery(
        bytes calldata proof,
        uint256 pos,
        uint256 idx,
        uint256[] memory ev,
        uint256 alpha,
        uint256[] memory fri,
        uint256[] memory points
    ) private view returns (bool) {
        uint256[4] memory at;
        for (uint256 tr = 0; tr < 4; tr++) {
            uint256 w = _treeWidth(tr);
            at[tr] = pos + 1;
            bytes32 leaf = _leafHash(proof, pos + 1, 2 * w);
            pos += 2 + 2 * w;
            if (_merkleRoot(leaf, proof, pos, N_EXT_BITS - 1, idx) != _treeRoot(proof, tr)) return false;
            pos += N_EXT_BITS - 1;
        }

        uint256 x = mulmod(SHIFT, _expmod(OMEGA_EXT, idx), R);
        (uint256 lo, uint256 hi) = _deep(proof, at, ev, alpha, x, points);
        return _checkFri(proof, pos, idx, _foldPair(lo, hi, fri[0], x), fri);
    }

    function _treeRoot(bytes calldata proof, uint256 tr) private pure returns (bytes32) {
        return tr == 0 ? FIXED_ROOT : bytes32(_word(proof, tr));
    }

    function _deep(
        bytes calldata proof,
        uint256[4] memory at,
        uint256[] memory ev,
        uint256 alpha,
        uint256 x,
        uint256[] memory points
    ) private view returns (uint256 lo, uint256 hi) {
        uint256[] memory invLo = new uint256[](N_ROTATIONS);
        uint256[] memory invHi = new uint256[](N_ROTATIONS);
        for (uint256 s = 0; s < N_ROTATIONS; s++) {
            invLo[s] = _inv(_sub(x, points[s]));
            invHi[s] = _inv(_sub(_neg(x), points[s]));
        }
        bytes memory openings = OPENINGS;
        uint256 a = 1;
        for (uint256 k = 0; k < N_EVALS; k++) {
            uint256 tr = uint8(openings[4 * k]);
            uint256 col = (uint256(uint8(openings[4 * k + 1])) << 8) | uint8(openings[4 * k + 2]);
            uint256 slot = uint8(openings[4 * k + 3]);
            uint256 vLo = _word(proof, at[tr] + col);
            uint256 vHi = _word(proof, at[tr] + _treeWidth(tr) + col);
            lo = addmod(lo, mulmod(a, mulmod(_sub(vLo, ev[k]), invLo[slot], R), R), R);
            hi = addmod(hi, mulmod(a, mulmod(_sub(vHi, ev[k]), invHi[slot], R), R), R);
            a = mulmod(a, alpha, R);
        }
    }

    function _checkFri(bytes calldata proof, uint256 pos, uint256 idx, uint256 value, uint256[] memory fri)
        private
        view
        returns (bool)
    {
        uint256 s = mulmod(SHIFT, SHIFT, R);
        uint256 w = mulmod(OMEGA_EXT, OMEGA_EXT, R);
        uint256 half = 1 << (N_EXT_BITS - 1);
        for (uint256 l = 1; l < FRI_ROUNDS; l++) {
            half >>= 1;
            uint256 leafIdx = idx % half;
            uint256 lo = _word(proof, pos + 1);
            uint256 hi = _word(proof, pos + 2);
            bytes32 leaf = _leafHash(proof, pos + 1, 2);
            pos += 4;
            bytes32 root = bytes32(_word(proof, FRI_ROOTS_AT + l - 1));
            if (_merkleRoot(leaf, proof, pos, N_EXT_BITS - l - 1, leafIdx) != root) return false;
            pos += N_EXT_BITS - l - 1;
            if ((idx >= half ? hi : lo) != value) return false;
            value = _foldPair(lo, hi, fri[l], mulmod(s, _expmod(w, leafIdx), R));
            idx = leafIdx;
            s = mulmod(s, s, R);
            w = mulmod(w, w, R);
        }

        uint256 xf = mulmod(s, _expmod(w, idx), R);
        uint256 acc = 0;
        for (uint256 i = FINAL_LEN; i > 0; i--) {
            acc = addmod(mulmod(acc, xf, R), _word(proof, FINAL_AT + i - 1), R);
        }
        return acc == value;
    }

    function _foldPair(uint256 lo, uint256 hi, uint256 beta, uint256 x) private view returns (uint256) {
        uint256 odd = mulmod(_sub(lo, hi), _inv(x), R);
        return mulmod(addmod(addmod(lo, hi, R), mulmod(beta, odd, R), R), INV_TWO, R);
    }

    // --- Merkle ---

    function _leafHash(bytes calldata proof, uint256 start, uint256 count) private pure returns (bytes32) {
        return sha256(abi.encodePacked(bytes1(0x00), proof[start * 32:(start + count) * 32]));
    }

    function _merkleRoot(bytes32 leaf, bytes calldata proof, uint256 pathAt, uint256 depth, uint256 idx)
        private
        pure
        returns (bytes32 node)
    {
        node = leaf;
        for (uint256 i = 0; i < depth; i++) {
            bytes32 sibling = bytes32(_word(proof, pathAt + i));
            node = idx & 1 == 1
                ? sha256(abi.encodePacked(bytes1(0x01), sibling, node))
                : sha256(abi.encodePacked(bytes1(0x01), node, sibling));
            idx >>= 1;
        }
    }

    // --- Transcript ---

    function _absorb(Transcript memory t, uint256 value) private pure {
        t.pending = abi.encodePacked(t.pending, value);
    }

    function _absorbHash(Transcript memory t, bytes32 digest) private pure {
        t.pending = abi.encodePacked(t.pending, digest);
    }

    function _squeeze(Transcript memory t) private pure returns (bytes32) {
        t.state = sha256(abi.encodePacked(t.state, t.pending));
        t.pending = "";
        return t.state;
    }

    function _challenge(Transcript memory t) private pure returns (uint256) {
        return uint256(_squeeze(t)) % R;
    }

    function _flush(Transcript memory t) private pure returns (bytes32) {
        if (t.pending.length > 0) _squeeze(t);
        return t.state;
    }

    function _checkPow(bytes32 seed, uint256 nonce) private pure returns (bool) {
        if (nonce >> 64 != 0) return false;
        if (POW_BITS == 0) return true;
        return uint256(sha256(abi.encodePacked(seed, uint64(nonce)))) >> (256 - POW_BITS) == 0;
    }

    // --- Field ---

    function _word(bytes calldata proof, uint256 i) private pure returns (uint256 value) {
        assembly {
            value := calldataload(add(proof.offset, mul(i, 32)))
        }
    }

    function _fold(uint256 acc, uint256 y, uint256 term) private pure returns (uint256) {
        return addmod(mulmod(acc, y, R), term, R);
    }

    function _neg(uint256 a) private pure returns (uint256) {
        return a == 0 ? 0 : R - a;
    }

    function _sub(uint256 a, uint256 b) private pure returns (uint256) {
        return addmod(a, R - b, R);
    }

    function _inv(uint256 a) private view returns (uint256) {
        return _expmod(a, R - 2);
    }

    function _expmod(uint256 base, uint256 exponent) private view returns (uint256 result) {
        assembly {
            let p := mload(0x40)
            mstore(p, 0x20)
            mstore(add(p, 0x20), 0x20)
            mstore(add(p, 0x40), 0x20)
            mstore(add(p, 0x60), base)
            mstore(add(p, 0x80), exponent)
            mstore(add(p, 0xa0), R)
            if iszero(staticcall(gas(), 0x05, p, 0xc0, p, 0x20)) {
                revert(0, 0)
            }
            result := mload(p)
        }
    }
}
""")

"""Proof verification.

The verifier checks that a proof demonstrates a table satisfying the circuit's
gates, copy constraints and lookups, for the supplied public instances.

Verification consists of several phases:
1. Fiat-Shamir transcript reconstruction - Re-derive all random challenges from proof commitments
2. Proof-of-work verification - Check the prover performed required computational work
3. Evaluation check - Verify C(zeta) = t(zeta) * Z_H(zeta) where t is the committed quotient
4. FRI verification - Check low-degree of the DEEP composition polynomial
5. Merkle tree verification - Verify all polynomial commitments are consistent

Every failed check prints an ``ERROR:`` line and returns False; rejection is a
result, not an exception.
"""

from typing import Dict, List, Sequence, Tuple

from primitives.field import FF, SHIFT, get_omega
from primitives.merkle_tree import MerkleTree
from primitives.polynomial import evaluate
from primitives.transcript import Transcript
from protocol.evaluation import VerifierConstraintContext, combine_constraints
from protocol.fri import FRI
from protocol.keys import VerifyingKey
from protocol.layout import TREES, PolyId
from protocol.pcs import split_leaf
from protocol.proof import Proof


# --- Main Entry Point ---

def verify_proof(vk: VerifyingKey, instances: Sequence[Sequence[int]], proof: Proof) -> bool:
    """Verify a decoded proof.

    Args:
        vk: Verifying key of the circuit shape
        instances: Public values per instance column (canonical ints)
        proof: Decoded proof

    Returns:
        True if proof is valid, False otherwise
    """
    params = vk.params
    layout = vk.layout
    cs = vk.cs
    n_ext = params.n_ext
    half = n_ext // 2
    tree_sizes = {tree: len(layout.tree_polys(tree)) for tree in TREES}

    # --- Shape checks ---
    # A proof for another shape or parameter set is rejected before any hashing.
    if len(proof.evals) != len(layout.openings):
        print("ERROR: number of evaluations does not match the verifying key")
        return False
    if len(proof.fri_roots) != params.fri_rounds - 1 or len(proof.final_pol) != params.final_poly_len:
        print("ERROR: FRI layer count does not match the verifying key")
        return False
    if len(proof.queries) != params.n_queries:
        print("ERROR: number of queries does not match the verifying key")
        return False
    for openings in proof.queries:
        if len(openings) != len(TREES) + len(proof.fri_roots):
            print("ERROR: query opening count does not match the verifying key")
            return False
        for tree, opening in zip(TREES, openings):
            if len(opening.v) != 2 * tree_sizes[tree]:
                print(f"ERROR: {tree} opening has wrong width")
                return False
        for opening in openings[len(TREES):]:
            if len(opening.v) != 2:
                print("ERROR: FRI opening has wrong width")
                return False

    # --- Reconstruct Fiat-Shamir transcript ---
    # Re-derive all random challenges by hashing proof commitments in the same order as prover.
    transcript = Transcript()
    transcript.put_hash(vk.digest())
    transcript.put([v for column in instances for v in column])
    transcript.put_hash(proof.advice_root)
    beta = transcript.get_challenge()
    gamma = transcript.get_challenge()
    theta = transcript.get_challenge()
    transcript.put_hash(proof.aux_root)
    y = transcript.get_challenge()
    transcript.put_hash(proof.quotient_root)
    zeta = transcript.get_challenge()
    transcript.put(proof.evals)
    alpha = transcript.get_challenge()

    fri_challenges = [transcript.get_challenge()]
    for root in proof.fri_roots:
        transcript.put_hash(root)
        fri_challenges.append(transcript.get_challenge())
    transcript.put(proof.final_pol)

    # --- Verify proof-of-work ---
    if not transcript.verify_grinding(proof.nonce, params.pow_bits):
        print("ERROR: PoW verification failed")
        return False
    transcript.put([proof.nonce])
    fri_queries = transcript.get_permutations(params.n_queries, params.n_ext_bits - 1)

    # --- Evaluation check ---
    # The combined constraint at zeta must equal the reconstructed quotient times Z_H(zeta).
    evals: Dict[Tuple[PolyId, int], FF] = {key: FF(v) for key, v in zip(layout.openings, proof.evals)}
    challenges = {"beta": beta, "gamma": gamma, "theta": theta}
    ctx = VerifierConstraintContext(evals, zeta, params.k, params.usable_rows, instances, challenges)
    combined = combine_constraints(ctx, cs, layout.chunk_sizes, y)

    zeta_n = zeta ** params.n
    quotient = FF(0)
    for i in reversed(range(layout.quotient_pieces)):
        quotient = quotient * zeta_n + evals[(("quotient", i), 0)]
    if combined != quotient * (zeta_n - FF(1)):
        print("ERROR: Evaluations verification failed")
        return False

    # --- Verify queries ---
    points = {rot: zeta * params.omega ** rot for rot in layout.rotations()}
    omega_ext = get_omega(params.n_ext_bits)
    roots = {"fixed": vk.fixed_root, "advice": proof.advice_root,
             "aux": proof.aux_root, "quotient": proof.quotient_root}

    for q, openings in zip(fri_queries, proof.queries):
        # Merkle openings of every committed tree at leaf q
        for tree, opening in zip(TREES, openings):
            if not MerkleTree.verify_query_proof(roots[tree], q, opening) or len(opening.mp) != params.n_ext_bits - 1:
                print(f"ERROR: Merkle verification failed for {tree} tree at query {q}")
                return False

        # DEEP composition at x_q and -x_q from the opened values
        x = SHIFT * omega_ext ** q
        values = {}
        for tree, opening in zip(TREES, openings):
            at_x, at_neg_x = split_leaf(opening.v, tree_sizes[tree])
            for pid, a, b in zip(layout.tree_polys(tree), at_x, at_neg_x):
                values[pid] = (a, b)
        lo = _deep_value(layout.openings, proof.evals, values, 0, x, points, alpha)
        hi = _deep_value(layout.openings, proof.evals, values, 1, -x, points, alpha)

        # FRI folding consistency down to the final polynomial
        value = FRI.verify_fold(0, lo, hi, fri_challenges[0], q, params.n_ext_bits)
        idx = q
        for layer, opening in enumerate(openings[len(TREES):], start=1):
            layer_half = (n_ext >> layer) // 2
            leaf = idx % layer_half
            if not MerkleTree.verify_query_proof(proof.fri_roots[layer - 1], leaf, opening) \
                    or len(opening.mp) != params.n_ext_bits - layer - 1:
                print(f"ERROR: Merkle verification failed for FRI layer {layer} at query {q}")
                return False
            if FF(opening.v[1 if idx >= layer_half else 0]) != value:
                print(f"ERROR: FRI fold consistency failed at layer {layer}, query {q}")
                return False
            value = FRI.verify_fold(layer, opening.v[0], opening.v[1], fri_challenges[layer], leaf,
                                    params.n_ext_bits)
            idx = leaf

        shift, w = FRI.domain(params.fri_rounds, params.n_ext_bits)
        if evaluate(proof.final_pol, shift * w ** idx) != value:
            print(f"ERROR: FRI final polynomial check failed at query {q}")
            return False

    return True


def _deep_value(
    openings: Sequence[Tuple[PolyId, int]],
    evals: List[int],
    values: Dict[PolyId, Tuple[int, int]],
    side: int,
    x: FF,
    points: Dict[int, FF],
    alpha: FF,
) -> FF:
    """sum_k alpha^k (f_k(x) - v_k) / (x - z_k) at one queried point."""
    inv_den = {rot: (x - point) ** -1 for rot, point in points.items()}
    acc = FF(0)
    alpha_pow = FF(1)
    for (pid, rot), value in zip(openings, evals):
        acc = acc + alpha_pow * (FF(values[pid][side]) - FF(value)) * inv_den[rot]
        alpha_pow = alpha_pow * alpha
    return acc

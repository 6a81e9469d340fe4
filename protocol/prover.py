"""Top-level proof generation."""

import secrets
from random import Random
from typing import Dict, List, Optional, Tuple

from primitives.field import FF, P, batch_inverse
from primitives.polynomial import coset_to_coefficients, extend_to_domain
from primitives.transcript import Transcript
from protocol.circuit import Witness
from protocol.evaluation import ProverConstraintContext, combine_constraints
from protocol.fri import FRI
from protocol.keys import ProvingKey
from protocol.layout import TREES, PolyId
from protocol.lookup import multiplicities, running_sum
from protocol.pcs import PolyCommitment, commit_coefficients, commit_evaluations
from protocol.permutation import grand_product
from protocol.proof import Proof

# --- Helper Functions ---

def _blind(column: FF, start: int, rng: Random) -> None:
    """Overwrite rows [start, n) with uniformly random field elements."""
    for row in range(start, len(column)):
        column[row] = FF(rng.randrange(P))


def _as_column(value: FF, n: int) -> FF:
    """Broadcast a constant expression value to a full column."""
    if value.ndim:
        return value
    return FF.Ones(n) * value


def _positions(pk: ProvingKey) -> Dict[PolyId, Tuple[str, int]]:
    return {pid: (tree, i) for tree in TREES for i, pid in enumerate(pk.vk.layout.tree_polys(tree))}


# --- Main Entry Point ---

def gen_proof(pk: ProvingKey, witness: Witness, rng: Optional[Random] = None) -> Proof:
    """Generate a proof for a synthesized witness.

    Args:
        pk: Proving key of the circuit shape the witness was synthesized for
        witness: Advice assignments and public values
        rng: Source of blinding randomness (default: secrets.SystemRandom)

    Returns:
        Proof object. An unsatisfied witness still yields a proof; it does not verify.
    """
    rng = rng or secrets.SystemRandom()
    vk = pk.vk
    params = pk.params
    cs = vk.cs
    layout = vk.layout

    # n rows on <omega>; rows [u, n) are reserved for blinding, row u is the "last" row
    n = params.n
    u = params.usable_rows
    n_ext = params.n_ext

    # === INITIALIZATION: transcript bound to the key and the public inputs ===
    # The verifying key digest commits to the full circuit shape, so a proof for one
    # shape can never be replayed against another.
    transcript = Transcript()
    transcript.put_hash(vk.digest())
    transcript.put([v for column in witness.instances for v in column])

    # === STAGE 1: Advice columns and lookup multiplicities ===
    advice = []
    for i in range(cs.num_advice):
        column = FF.Zeros(n)
        for row, value in witness.advice.get(i, {}).items():
            column[row] = FF(value)
        _blind(column, u, rng)
        advice.append(column)

    instance = []
    for values in witness.instances:
        column = FF.Zeros(n)
        for row, value in enumerate(values):
            column[row] = FF(int(value))
        instance.append(column)

    # Row-wise view used to evaluate lookup inputs on <omega>
    base: Dict[PolyId, FF] = {}
    base.update({("advice", i): col for i, col in enumerate(advice)})
    base.update({("fixed", i): col for i, col in enumerate(pk.fixed_values)})
    base.update({("instance", i): col for i, col in enumerate(instance)})
    base_ctx = ProverConstraintContext(base, 1, None, {}, {})

    lookup_inputs = []
    mults = []
    for lookup in cs.lookups:
        inputs = _as_column(lookup.input.evaluate(base_ctx), n)
        m, _ = multiplicities(inputs, pk.fixed_values[lookup.table.index], u)
        _blind(m, u, rng)
        lookup_inputs.append(inputs)
        mults.append(m)

    advice_commit = commit_evaluations(advice + mults, params)
    transcript.put_hash(advice_commit.root)
    beta = transcript.get_challenge()
    gamma = transcript.get_challenge()
    theta = transcript.get_challenge()

    # === STAGE 2: Permutation products and lookup running sums ===
    # Z_0 accumulates the copy-constraint grand product; partial products split it
    # into chunks so each constraint stays within the degree bound.
    eq_values = [base[column.poly_id] for column in cs.equality]
    z, partials = grand_product(eq_values, pk.sigma_values, layout.chunk_sizes,
                                beta, gamma, params.omega, u)
    _blind(z, u + 1, rng)
    for column in partials:
        _blind(column, u, rng)

    phis = []
    for l, lookup in enumerate(cs.lookups):
        phi = running_sum(lookup_inputs[l], pk.fixed_values[lookup.table.index], mults[l], theta, u)
        _blind(phi, u + 1, rng)
        phis.append(phi)

    aux_commit = commit_evaluations([z] + partials + phis, params)
    transcript.put_hash(aux_commit.root)
    y = transcript.get_challenge()

    # === STAGE 3: Quotient polynomial ===
    # Every constraint, combined with powers of y, must vanish on <omega>; dividing by
    # Z_H(x) = x^n - 1 on the LDE coset gives the quotient's evaluations.
    commits: Dict[str, PolyCommitment] = {"fixed": pk.fixed, "advice": advice_commit, "aux": aux_commit}
    polys: Dict[PolyId, FF] = {}
    for tree, commit in commits.items():
        polys.update(zip(layout.tree_polys(tree), commit.lde))
    for i, column in enumerate(instance):
        polys[("instance", i)] = extend_to_domain(column, n, n_ext)

    challenges = {"beta": beta, "gamma": gamma, "theta": theta}
    ctx = ProverConstraintContext(polys, params.extend, pk.x_ext, pk.lagrange_lde, challenges)
    numerator = combine_constraints(ctx, cs, layout.chunk_sizes, y)
    quotient = _as_column(numerator, n_ext) * pk.zh_inv

    # t(X) = sum_i X^(i*n) t_i(X) with deg t_i < n
    coeffs = coset_to_coefficients(quotient, n_ext)
    pieces = [coeffs[i * n:(i + 1) * n] for i in range(layout.quotient_pieces)]
    commits["quotient"] = commit_coefficients(pieces, params)
    transcript.put_hash(commits["quotient"].root)
    zeta = transcript.get_challenge()

    # === STAGE 4: Openings at zeta * omega^rotation ===
    positions = _positions(pk)
    points = {rot: zeta * params.omega ** rot for rot in layout.rotations()}
    evals = []
    for pid, rot in layout.openings:
        tree, idx = positions[pid]
        evals.append(int(commits[tree].evaluate(idx, points[rot])))
    transcript.put(evals)
    alpha = transcript.get_challenge()

    # === STAGE 5: DEEP composition ===
    # F(x) = sum_k alpha^k (f_k(x) - v_k) / (x - z_k) is a polynomial iff every
    # claimed opening is correct; FRI then shows F has low degree.
    inv_den = {rot: batch_inverse(pk.x_ext - point) for rot, point in points.items()}
    deep = FF.Zeros(n_ext)
    alpha_pow = FF(1)
    for (pid, rot), value in zip(layout.openings, evals):
        tree, idx = positions[pid]
        deep = deep + alpha_pow * (commits[tree].lde[idx] - FF(value)) * inv_den[rot]
        alpha_pow = alpha_pow * alpha

    # === STAGE 6: FRI commit phase ===
    layers: List[FF] = [deep]
    fri_trees = []
    fri_challenge = transcript.get_challenge()
    for layer in range(params.fri_rounds):
        folded = FRI.fold(layer, layers[-1], fri_challenge, params.n_ext_bits)
        layers.append(folded)
        if layer + 1 < params.fri_rounds:
            tree = FRI.merkelize(folded)
            fri_trees.append(tree)
            transcript.put_hash(tree.get_root())
            fri_challenge = transcript.get_challenge()

    final_pol = FRI.final_polynomial(params.fri_rounds, layers[-1], params.n_ext_bits, params.final_poly_len)
    transcript.put(final_pol)

    # === STAGE 7: Proof of work and queries ===
    nonce = transcript.grind(params.pow_bits)
    transcript.put([nonce])
    fri_queries = transcript.get_permutations(params.n_queries, params.n_ext_bits - 1)

    queries = []
    for q in fri_queries:
        openings = [commits[tree].open(q) for tree in TREES]
        idx = q
        for layer, tree in enumerate(fri_trees, start=1):
            idx %= (n_ext >> layer) // 2
            openings.append(tree.get_query_proof(idx))
        queries.append(openings)

    return Proof(
        advice_root=advice_commit.root,
        aux_root=aux_commit.root,
        quotient_root=commits["quotient"].root,
        evals=evals,
        fri_roots=[tree.get_root() for tree in fri_trees],
        final_pol=final_pol,
        nonce=nonce,
        queries=queries,
    )

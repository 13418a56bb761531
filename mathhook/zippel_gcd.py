#!/usr/bin/env python3
#
#   Multivariate GCD over Z: modular images in every prime, Brown's dense or Zippel's sparse interpolation
#   for the images, one variable at a time
#

import logging
import random
from functools import partial, reduce
from itertools import islice
from math import isqrt
from typing import Dict, List, Optional, Tuple

import numpy as np

from mathhook.basic_types import GF, FieldElement, gcd
from mathhook.config import MultivariateGcdConfig
from mathhook.content import content_and_primitive
from mathhook.crt import CRTReconstructor
from mathhook.errors import MaxIterationsExceeded
from mathhook.interpolation import lagrange_interpolate, solve_shifted_transposed_vandermonde
from mathhook.modular_gcd import GcdResult
from mathhook.poly_zp import PolyZp
from mathhook.primes import PointSelector, PrimeSelector, Trial, TrialHistory
from mathhook.sparsity import SparsityAnalyzer, Strategy, degree_vector
from mathhook.trial_division import TrialDivisionVerifier, exact_divide_mod_p
from mathhook.trials import run_trials

logger = logging.getLogger(__name__)

Terms = Dict[Tuple[int, ...], int]

########################################################################################################################
#   Term map helpers
########################################################################################################################

def _permute(terms : Terms, order : List[int]) -> Terms:
    return { tuple(m[i] for i in order) : c for m,c in terms.items() }

def _inverse_order(order : List[int]) -> List[int]:
    inv = [0] * len(order)
    for j,i in enumerate(order):
        inv[i] = j
    return inv

def _scale(terms : Terms, k : int) -> Terms:
    return { m : c * k for m,c in terms.items() }

def _reduce(terms : Terms, p : int) -> Terms:
    return { m : c % p for m,c in terms.items() if c % p != 0 }

def _monic(terms : Terms, p : int) -> Terms:
    """
    Scale so the lex leading coefficient is 1
    """
    inv = pow(terms[max(terms)], -1, p)
    return { m : c * inv % p for m,c in terms.items() }

def _normalize_sign(terms : Terms) -> Terms:
    if terms and terms[max(terms)] < 0:
        return _scale(terms, -1)
    return terms

def _norm_bound(terms : Terms) -> int:
    return isqrt(sum(c * c for c in terms.values())) + 1

def _split_last(terms : Terms, p : int) -> Dict[Tuple[int, ...], PolyZp]:
    """
    View a polynomial in x_0 .. x_k as a polynomial in x_0 .. x_{k-1} with coefficients in GF(p)[x_k]
    """
    split = {}
    for m,c in terms.items():
        split.setdefault(m[:-1], {})[m[-1]] = c
    return { rest : PolyZp.from_coeffs([cs.get(i, 0) for i in range(max(cs) + 1)], p) for rest,cs in split.items() }

def _join_last(split : Dict[Tuple[int, ...], PolyZp]) -> Terms:
    out = {}
    for rest,poly in split.items():
        for i,c in enumerate(poly.coefficients()):
            if c != 0:
                out[rest + (i,)] = c
    return out

def _evaluate_last(split : Dict[Tuple[int, ...], PolyZp], a : FieldElement) -> Terms:
    out = {}
    for rest,poly in split.items():
        v = poly.evaluate(a)
        if not v.is_zero():
            out[rest] = v.value
    return out

def _embed(c : PolyZp, n_vars : int) -> Terms:
    return { (0,) * (n_vars - 1) + (i,) : v for i,v in enumerate(c.coefficients()) if v != 0 }

def _is_constant(terms : Terms) -> bool:
    return all(all(e == 0 for e in m) for m in terms)

########################################################################################################################
#   Sparse (Zippel) images
########################################################################################################################

def _monomial_value(exps, point, p : int) -> int:
    v = 1
    for x,e in zip(point, exps):
        v = v * pow(x, e, p) % p
    return v

def _evaluate_rest(terms : Terms, point, p : int) -> PolyZp:
    """
    Substitute x_1 .. x_k = point, leaving a polynomial in x_0
    """
    coeffs = {}
    for m,c in terms.items():
        v = c * _monomial_value(m[1:], point, p) % p
        coeffs[m[0]] = (coeffs.get(m[0], 0) + v) % p
    return PolyZp.from_coeffs([coeffs.get(d, 0) for d in range(max(coeffs) + 1)], p)

def single_term_lead(skeleton : Terms) -> bool:
    """
    Whether the coefficient of the top power of x_0 is a single monomial, which fixes the scaling of univariate images
    """
    top = max(m[0] for m in skeleton)
    return sum(1 for m in skeleton if m[0] == top) == 1

def sparse_image(f : Terms, g : Terms, skeleton : Terms, field : GF, rng : random.Random) -> Optional[Terms]:
    """
    Lex-monic GCD of f and g mod p, assuming its monomials are those of the skeleton. Coefficients are recovered from
    univariate GCDs in x_0 at successive powers of a random point. Returns None when the assumption is
    contradicted.
    """
    p = field.p
    groups = {}
    for m in skeleton:
        groups.setdefault(m[0], []).append(m[1:])
    D = max(groups)
    assert len(groups[D]) == 1
    n_eqs = max(len(rs) for rs in groups.values())

    betas = [field.rand_elem(rng, min=1).value for _ in range(len(groups[D][0]))]
    values = { d : [_monomial_value(r, betas, p) for r in rs] for d,rs in groups.items() }
    if any(len(set(vs)) != len(vs) for vs in values.values()):
        logger.debug("monomial values collide at %s", betas)
        return None
    lam = values[D][0]

    # one equation per unknown plus one to check
    ws = []
    for i in range(1, n_eqs + 2):
        point = [pow(b, i, p) for b in betas]
        w = _evaluate_rest(f, point, p).gcd(_evaluate_rest(g, point, p))
        if w.degree() != D:
            logger.debug("univariate image has degree %s, expected %d", w.degree(), D)
            return None
        if any(not w.coeff(d).is_zero() for d in range(D + 1) if d not in groups):
            logger.debug("univariate image has terms outside the skeleton")
            return None
        ws.append(w.scalar_mul(pow(lam, i, p)))

    out = {}
    for d,rs in groups.items():
        vs = [field(v) for v in values[d]]
        cs = solve_shifted_transposed_vandermonde(vs, [ws[i].coeff(d) for i in range(len(vs))])
        for i in range(len(vs), n_eqs + 1):
            predicted = sum((c * v ** (i + 1) for c,v in zip(cs, vs)), field.zero())
            if predicted != ws[i].coeff(d):
                logger.debug("sparse image fails its check at power %d", i + 1)
                return None
        for r,c in zip(rs, cs):
            if not c.is_zero():
                out[(d,) + r] = c.value
    return out

########################################################################################################################
#   GCD mod p
########################################################################################################################

class ModularContext:
    """
    Everything one prime's computation needs
    """

    def __init__(self, p : int, config : MultivariateGcdConfig, rng : Optional[random.Random] = None):
        self.p = p
        self.field = GF(p)
        self.config = config
        self.rng = rng or random.Random()
        self.analyzer = SparsityAnalyzer(config.sparsity_threshold)

def univariate_gcd_mod_p(f : Terms, g : Terms, p : int) -> Terms:
    f = PolyZp.from_coeffs([f.get((i,), 0) for i in range(max(m[0] for m in f) + 1)], p)
    g = PolyZp.from_coeffs([g.get((i,), 0) for i in range(max(m[0] for m in g) + 1)], p)
    return { (i,) : c for i,c in enumerate(f.gcd(g).coefficients()) if c != 0 }

def _peel(f : Terms, g : Terms, ctx : ModularContext):
    """
    GCD of f and g mod p by eliminating their last variable x_k. Yields (f_a, g_a) whenever a GCD in one fewer
    variable is needed and expects it, lex-monic or None, to be sent back. Returns the lex-monic GCD, or None if
    the point budget ran out.
    """
    p, field = ctx.p, ctx.field
    n = len(next(iter(f)))

    fs = _split_last(f, p)
    gs = _split_last(g, p)

    # content in GF(p)[x_k]
    cont_f = reduce(PolyZp.gcd, fs.values())
    cont_g = reduce(PolyZp.gcd, gs.values())
    c = cont_f.gcd(cont_g)
    fs = { r : h // cont_f for r,h in fs.items() }
    gs = { r : h // cont_g for r,h in gs.items() }

    mon0 = (0,) * (n - 1)
    if set(fs) == { mon0 } or set(gs) == { mon0 }:
        return _embed(c, n)

    gamma = fs[max(fs)].gcd(gs[max(gs)])
    deg_k = min(max(h.degree() for h in fs.values()), max(h.degree() for h in gs.values()))
    bound = deg_k + gamma.degree()

    use_sparse = ctx.config.use_sparse and n - 1 >= 2 and \
        ctx.analyzer.choose_strategy(f, g) is Strategy.SPARSE

    points = PointSelector(field, ctx.rng)
    history = TrialHistory()
    xs, images = [], []
    skeleton = None

    for _ in range(ctx.config.max_eval_points):
        a = points.select_point(gamma)
        if a is None:
            logger.debug("GF(%d) has no evaluation points left", p)
            break
        f_a = _evaluate_last(fs, a)
        g_a = _evaluate_last(gs, a)

        image = None
        if use_sparse and skeleton is not None:
            image = sparse_image(f_a, g_a, skeleton, field, ctx.rng)
            if image is None:
                logger.debug("sparse image at %s failed, computing it densely", a)
        if image is None:
            image = yield f_a, g_a
        if image is None:
            continue

        if _is_constant(image):
            return _embed(c, n)

        signal = history.record(a.value, max(image))
        if signal is Trial.UNLUCKY:
            continue
        if signal is Trial.RESTART:
            xs, images = [], []
            skeleton = None

        if skeleton is None:
            skeleton = image
            if use_sparse and not single_term_lead(skeleton):
                logger.debug("leading coefficient of %s is not a monomial, using dense images", skeleton)
                use_sparse = False

        xs.append(a)
        images.append(_scale(image, gamma(a).value))
        if len(xs) <= bound:
            continue

        H = {}
        for rest in set().union(*images):
            h = lagrange_interpolate(xs, [im.get(rest, 0) for im in images], field)
            if not h.is_zero():
                H[rest] = h
        cont = reduce(PolyZp.gcd, H.values())
        H = { r : h // cont for r,h in H.items() }

        candidate = _join_last(H)
        if exact_divide_mod_p(f, candidate, p) is not None and exact_divide_mod_p(g, candidate, p) is not None:
            return _monic(_join_last({ r : h * c for r,h in H.items() }), p)

        logger.debug("interpolated candidate in %d variables does not divide mod %d", n, p)
        xs, images = [], []
        use_sparse = False

    logger.debug("no GCD mod %d within %d points", p, ctx.config.max_eval_points)
    return None

def gcd_mod_p(f : Terms, g : Terms, ctx : ModularContext) -> Optional[Terms]:
    """
    Lex-monic GCD of two non-zero polynomials mod p. Variables are peeled from last to first by a stack of _peel
    frames so that the depth of the computation never reaches Python's recursion limit.
    """
    if len(next(iter(f))) == 1:
        return univariate_gcd_mod_p(f, g, ctx.p)

    stack = [_peel(f, g, ctx)]
    reply = None
    while True:
        try:
            f_a, g_a = stack[-1].send(reply)
        except StopIteration as done:
            stack.pop()
            reply = done.value
            if len(stack) == 0:
                return reply
            continue

        if len(next(iter(f_a))) == 1:
            reply = univariate_gcd_mod_p(f_a, g_a, ctx.p)
            continue
        if len(stack) >= ctx.config.max_variables:
            raise MaxIterationsExceeded("variable peeling", ctx.config.max_variables)
        stack.append(_peel(f_a, g_a, ctx))
        reply = None

def _image_mod_p(f : Terms, g : Terms, config : MultivariateGcdConfig, p : int) -> Optional[Terms]:
    rng = random.Random(None if config.seed is None else config.seed * 1_000_003 + p)
    return gcd_mod_p(_reduce(f, p), _reduce(g, p), ModularContext(p, config, rng))

########################################################################################################################
#   GCD over Z
########################################################################################################################

def multivariate_gcd(f : Terms, g : Terms, n_vars : int, config : Optional[MultivariateGcdConfig] = None) -> GcdResult:
    """
    GCD of two integer polynomials in n_vars variables with its cofactors, as maps from exponent tuples to
    coefficients. The GCD has a positive lex leading coefficient.
    """
    config = config or MultivariateGcdConfig()
    mon0 = (0,) * n_vars
    f = { m : c for m,c in f.items() if c != 0 }
    g = { m : c for m,c in g.items() if c != 0 }

    if len(f) == 0 and len(g) == 0:
        return GcdResult({}, {}, {})
    if len(f) == 0:
        return GcdResult(_normalize_sign(g), {}, { mon0 : -1 if g[max(g)] < 0 else 1 })
    if len(g) == 0:
        return GcdResult(_normalize_sign(f), { mon0 : -1 if f[max(f)] < 0 else 1 }, {})

    if n_vars > config.max_variables:
        raise MaxIterationsExceeded("variable peeling", config.max_variables)

    cf, pf = content_and_primitive(f)
    cg, pg = content_and_primitive(g)
    c = gcd(cf, cg)

    min_deg = np.minimum(degree_vector(pf, n_vars), degree_vector(pg, n_vars))
    if config.enable_variable_reordering:
        # the variable of highest degree becomes the main variable x_0
        order = sorted(range(n_vars), key=lambda i: (-int(min_deg[i]), i))
    else:
        order = list(range(n_vars))
    inv = _inverse_order(order)

    def finish(h, q_f, q_g):
        h, q_f, q_g = (_permute(t, inv) for t in (h, q_f, q_g))
        # the sign is fixed in the caller's variable order
        if h[max(h)] < 0:
            h, q_f, q_g = _scale(h, -1), _scale(q_f, -1), _scale(q_g, -1)
        return GcdResult(_scale(h, c), _scale(q_f, cf // c), _scale(q_g, cg // c))

    pf = _permute(pf, order)
    pg = _permute(pg, order)

    if _is_constant(pf) or _is_constant(pg):
        return finish({ mon0 : 1 }, pf, pg)

    lc_f = pf[max(pf)]
    lc_g = pg[max(pg)]
    gamma = gcd(lc_f, lc_g)
    # heuristic, a candidate reconstructed too early fails trial division
    bound = gamma * 2**int(min_deg.sum()) * min(_norm_bound(pf), _norm_bound(pg))

    selector = PrimeSelector(config.primes, config.starting_prime_idx)
    primes = islice(selector.iter_primes(lc_f, lc_g, config.excluded_primes), config.max_iterations)

    history = TrialHistory()
    crt = CRTReconstructor()
    verifier = TrialDivisionVerifier()
    previous = None
    matches = 0

    for p,image in run_trials(partial(_image_mod_p, pf, pg, config), primes, config.workers):
        if image is None:
            logger.debug("no image mod %d", p)
            continue
        if _is_constant(image):
            logger.debug("image mod %d is constant, inputs are coprime", p)
            return finish({ mon0 : 1 }, pf, pg)

        signal = history.record(p, max(image))
        if signal is Trial.UNLUCKY:
            continue
        if signal is Trial.RESTART:
            crt.reset()
            previous = None
            matches = 0

        candidate = crt.combine(_scale(image, gamma), p)
        matches = matches + 1 if candidate == previous else 1
        previous = candidate

        if matches < config.stability_threshold or crt.modulus <= 2 * bound:
            continue

        h = content_and_primitive(candidate)[1]
        quotients = verifier.verify(h, pf, pg)
        if quotients is None:
            logger.debug("trial division failed mod %d, continuing", p)
            matches = 0
            continue

        return finish(h, *quotients)

    logger.debug("multivariate GCD gave up after %d primes, discarded as unlucky: %s", len(history.entries),
                 history.unlucky())
    raise MaxIterationsExceeded("multivariate modular GCD", config.max_iterations)

########################################################################################################################
#   Unit Tests
########################################################################################################################

import unittest

from mathhook.primes import LARGE_PRIMES

def _mul(a : Terms, b : Terms) -> Terms:
    out = {}
    for ma,ca in a.items():
        for mb,cb in b.items():
            m = tuple(x + y for x,y in zip(ma, mb))
            out[m] = out.get(m, 0) + ca * cb
    return { m : c for m,c in out.items() if c != 0 }

class TestHelpers(unittest.TestCase):

    def test_split_join(self):
        p = 101
        f = { (2, 1) : 3, (2, 0) : 1, (0, 4) : 100 }
        split = _split_last(f, p)
        self.assertEqual(split[(2,)], PolyZp.from_coeffs([1, 3], p))
        self.assertEqual(split[(0,)], PolyZp.from_coeffs([0, 0, 0, 0, 100], p))
        self.assertEqual(_join_last(split), f)
        self.assertEqual(_evaluate_last(split, FieldElement(1, p)), { (2,) : 4, (0,) : 100 })

    def test_permute(self):
        f = { (1, 2, 3) : 5 }
        order = [2, 0, 1]
        self.assertEqual(_permute(f, order), { (3, 1, 2) : 5 })
        self.assertEqual(_permute(_permute(f, order), _inverse_order(order)), f)

    def test_single_term_lead(self):
        self.assertTrue(single_term_lead({ (2, 1) : 1, (0, 3) : 4 }))
        self.assertFalse(single_term_lead({ (2, 1) : 1, (2, 0) : 4 }))

class TestGcdModP(unittest.TestCase):

    def test_sparse_image(self):
        p = 2147483647
        field = GF(p)
        # x^2 y + 3 y^2 + 5, already lex-monic
        G = { (2, 1) : 1, (0, 2) : 3, (0, 0) : 5 }
        f = _reduce(_mul(G, { (1, 0) : 1, (0, 1) : 1, (0, 0) : 1 }), p)
        g = _reduce(_mul(G, { (2, 0) : 1, (0, 2) : -1 }), p)
        self.assertEqual(sparse_image(f, g, G, field, random.Random(4)), G)

    def test_sparse_image_wrong_skeleton(self):
        p = 2147483647
        field = GF(p)
        G = { (1, 1) : 1, (0, 0) : 1 }
        f = _reduce(_mul(G, { (1, 0) : 1, (0, 0) : 2 }), p)
        g = _reduce(_mul(G, { (1, 0) : 1, (0, 0) : -2 }), p)
        # the skeleton puts y^2 on x where the GCD has y
        self.assertIsNone(sparse_image(f, g, { (1, 2) : 1, (0, 0) : 1 }, field, random.Random(1)))

    def test_peeling(self):
        p = 65521
        config = MultivariateGcdConfig(seed=3)
        # (x + y z)(x - z + 1) and (x + y z)(y + 2)
        G = { (1, 0, 0) : 1, (0, 1, 1) : 1 }
        f = _reduce(_mul(G, { (1, 0, 0) : 1, (0, 0, 1) : -1, (0, 0, 0) : 1 }), p)
        g = _reduce(_mul(G, { (0, 1, 0) : 1, (0, 0, 0) : 2 }), p)
        self.assertEqual(gcd_mod_p(f, g, ModularContext(p, config, random.Random(0))), G)

    def test_depth_limit(self):
        config = MultivariateGcdConfig(max_variables=1)
        f = { (1, 1, 1) : 1, (0, 0, 0) : 1 }
        g = { (1, 1, 1) : 1, (0, 0, 0) : 2 }
        with self.assertRaises(MaxIterationsExceeded):
            gcd_mod_p(f, g, ModularContext(101, config, random.Random(0)))

class TestMultivariateGcd(unittest.TestCase):

    def test_monomial_factor(self):
        # gcd(x y, x y + x) = x
        res = multivariate_gcd({ (1, 1) : 1 }, { (1, 1) : 1, (1, 0) : 1 }, 2)
        self.assertEqual(res, GcdResult({ (1, 0) : 1 }, { (0, 1) : 1 }, { (0, 1) : 1, (0, 0) : 1 }))

    def test_coprime(self):
        res = multivariate_gcd({ (1, 0) : 1, (0, 1) : 1 }, { (1, 0) : 1, (0, 1) : -1 }, 2)
        self.assertEqual(res.gcd, { (0, 0) : 1 })
        self.assertEqual(res.cofactor_g, { (1, 0) : 1, (0, 1) : -1 })

    def test_content(self):
        # gcd(2 x y + 2 x, 4 x^2) = 2 x
        res = multivariate_gcd({ (1, 1) : 2, (1, 0) : 2 }, { (2, 0) : 4 }, 2)
        self.assertEqual(res, GcdResult({ (1, 0) : 2 }, { (0, 1) : 1, (0, 0) : 1 }, { (1, 0) : 2 }))

    def test_zero_and_constant(self):
        g = { (1, 0) : -3, (0, 1) : 6 }
        self.assertEqual(multivariate_gcd({}, {}, 2), GcdResult({}, {}, {}))
        self.assertEqual(multivariate_gcd({}, g, 2), GcdResult({ (1, 0) : 3, (0, 1) : -6 }, {}, { (0, 0) : -1 }))
        self.assertEqual(multivariate_gcd({ (0, 0) : 4 }, g, 2),
                         GcdResult({ (0, 0) : 1 }, { (0, 0) : 4 }, g))
        self.assertEqual(multivariate_gcd({ (0, 0) : 4 }, g, 2, MultivariateGcdConfig(seed=0)).gcd, { (0, 0) : 1 })

    def test_three_variables(self):
        G = { (1, 0, 0) : 1, (0, 1, 0) : 1, (0, 0, 1) : 1 }
        a = { (1, 0, 0) : 1, (0, 1, 0) : -1 }
        b = { (1, 0, 0) : 1, (0, 0, 1) : 1, (0, 0, 0) : 2 }
        res = multivariate_gcd(_mul(G, a), _mul(G, b), 3)
        self.assertEqual(res, GcdResult(G, a, b))

    def test_reordering_and_signs(self):
        # -(y^3 x + 2)(x - y) and (y^3 x + 2)(x + y + 1), y has the larger degree
        G = { (1, 3) : 1, (0, 0) : 2 }
        f = _mul(G, { (1, 0) : -1, (0, 1) : 1 })
        g = _mul(G, { (1, 0) : 1, (0, 1) : 1, (0, 0) : 1 })
        for reorder in (True, False):
            config = MultivariateGcdConfig(enable_variable_reordering=reorder)
            res = multivariate_gcd(f, g, 2, config)
            self.assertEqual(res.gcd, G)
            self.assertEqual(_mul(res.gcd, res.cofactor_f), f)
            self.assertEqual(_mul(res.gcd, res.cofactor_g), g)

    def test_sparse_matches_dense(self):
        G = { (2, 3, 0) : 1, (0, 1, 5) : 7, (0, 0, 1) : -3, (0, 0, 0) : 1 }
        a = { (1, 0, 0) : 1, (0, 2, 1) : 1, (0, 0, 0) : 2 }
        b = { (2, 0, 0) : 1, (0, 0, 3) : -1, (0, 1, 0) : 1 }
        f, g = _mul(G, a), _mul(G, b)
        results = []
        for use_sparse in (True, False):
            config = MultivariateGcdConfig(use_sparse=use_sparse, seed=11)
            results.append(multivariate_gcd(f, g, 3, config))
        self.assertEqual(results[0], results[1])
        self.assertEqual(results[0].gcd, _normalize_sign(G))
        self.assertEqual(_mul(results[0].gcd, results[0].cofactor_f), f)

    def test_parallel(self):
        G = { (1, 1) : 2, (0, 0) : -1 }
        f = _mul(G, { (1, 0) : 1, (0, 0) : 1 })
        g = _mul(G, { (0, 1) : 3, (0, 0) : 1 })
        self.assertEqual(multivariate_gcd(f, g, 2, MultivariateGcdConfig(workers=3)).gcd, G)

    def test_iteration_limit(self):
        f = { (1, 1) : 1, (0, 0) : 1 }
        g = { (1, 1) : 1, (1, 0) : 1, (0, 1) : 1, (0, 0) : 1 }
        with self.assertRaises(MaxIterationsExceeded):
            multivariate_gcd(_mul(f, f), _mul(f, g), 2, MultivariateGcdConfig(max_iterations=1))
        with self.assertRaises(MaxIterationsExceeded):
            multivariate_gcd(f, g, 2, MultivariateGcdConfig(max_variables=1))

    def test_excluded_primes(self):
        G = { (1, 1) : 2, (0, 0) : -1 }
        f = _mul(G, { (1, 0) : 1, (0, 0) : 1 })
        g = _mul(G, { (0, 1) : 3, (0, 0) : 1 })
        config = MultivariateGcdConfig(excluded_primes=(LARGE_PRIMES[0],), seed=3)
        with self.assertLogs("mathhook.primes", level="DEBUG") as logs:
            res = multivariate_gcd(f, g, 2, config)
        self.assertEqual(res.gcd, G)
        self.assertTrue(any(f"excluded prime {LARGE_PRIMES[0]}" in line for line in logs.output))

#!/usr/bin/env python3
#
#   Univariate GCD over Z by modular images and Chinese remaindering
#

import logging
from functools import partial
from itertools import islice
from math import isqrt
from typing import List, NamedTuple, Optional

from mathhook.basic_types import gcd
from mathhook.config import ModularGcdConfig
from mathhook.content import content_and_primitive, extract_content, primitive_part
from mathhook.crt import CRTReconstructor
from mathhook.errors import MaxIterationsExceeded
from mathhook.poly_zp import PolyZp
from mathhook.primes import PrimeSelector, Trial, TrialHistory
from mathhook.trial_division import TrialDivisionVerifier, trim
from mathhook.trials import run_trials

logger = logging.getLogger(__name__)

class GcdResult(NamedTuple):
    gcd : object
    cofactor_f : object
    cofactor_g : object

def univariate_image(f : List[int], g : List[int], p : int) -> PolyZp:
    """
    Monic GCD of f and g reduced mod p
    """
    return PolyZp.from_coeffs(f, p).gcd(PolyZp.from_coeffs(g, p))

def coefficient_bound(pf : List[int], pg : List[int], gamma : int) -> int:
    """
    Bound on the coefficients of the GCD scaled to leading coefficient gamma, from Mignotte's bound on factors
    """
    d = min(len(pf), len(pg)) - 1
    norm = min(isqrt(sum(c * c for c in pf)) + 1, isqrt(sum(c * c for c in pg)) + 1)
    return abs(gamma) * 2**d * norm

def normalize_sign(coeffs : List[int]) -> List[int]:
    if coeffs and coeffs[-1] < 0:
        return [-c for c in coeffs]
    return coeffs

def _sign(coeffs : List[int]) -> int:
    return -1 if coeffs[-1] < 0 else 1

def modular_gcd_univariate(f : List[int], g : List[int], config : Optional[ModularGcdConfig] = None) -> GcdResult:
    """
    GCD of two dense integer polynomials with its cofactors. The GCD has a positive leading coefficient, the
    cofactors carry the signs of the inputs.
    """
    config = config or ModularGcdConfig()
    f = trim(list(f))
    g = trim(list(g))

    if len(f) == 0 and len(g) == 0:
        return GcdResult([], [], [])
    if len(f) == 0:
        return GcdResult(normalize_sign(g), [], [_sign(g)])
    if len(g) == 0:
        return GcdResult(normalize_sign(f), [_sign(f)], [])

    cf, pf = content_and_primitive(f)
    cg, pg = content_and_primitive(g)
    c = gcd(cf, cg)

    def finish(h, q_f, q_g):
        return GcdResult([c * x for x in h], [cf // c * x for x in q_f], [cg // c * x for x in q_g])

    if len(f) == 1 or len(g) == 1:
        return finish([1], pf, pg)

    gamma = gcd(pf[-1], pg[-1])
    bound = coefficient_bound(pf, pg, gamma)

    selector = PrimeSelector(config.primes, config.starting_prime_idx)
    primes = islice(selector.iter_primes(pf[-1], pg[-1], config.excluded_primes), config.max_iterations)

    history = TrialHistory()
    crt = CRTReconstructor()
    verifier = TrialDivisionVerifier()
    previous = None
    matches = 0

    for p,image in run_trials(partial(univariate_image, pf, pg), primes, config.workers):
        d = image.degree()

        if d == 0:
            # p divides neither leading coefficient, so deg gcd over Z <= deg gcd mod p
            logger.debug("image mod %d is constant, inputs are coprime", p)
            return finish([1], pf, pg)

        signal = history.record(p, d)
        if signal is Trial.UNLUCKY:
            continue
        if signal is Trial.RESTART:
            crt.reset()
            previous = None
            matches = 0

        candidate = crt.combine(dict(enumerate(image.scalar_mul(gamma).coefficients())), p)
        matches = matches + 1 if candidate == previous else 1
        previous = candidate

        if matches < config.stability_threshold or crt.modulus <= 2 * bound:
            continue
        logger.debug("candidate stable after %d primes, modulus %d", len(history.accepted()), crt.modulus)

        h = normalize_sign(primitive_part([candidate.get(i, 0) for i in range(d + 1)]))
        quotients = verifier.verify(h, pf, pg)
        if quotients is None:
            logger.debug("trial division failed mod %d, continuing", p)
            matches = 0
            continue

        return finish(h, *quotients)

    logger.debug("univariate modular GCD gave up after %d primes, discarded as unlucky: %s", len(history.entries),
                 history.unlucky())
    raise MaxIterationsExceeded("univariate modular GCD", config.max_iterations)

########################################################################################################################
#   Unit Tests
########################################################################################################################

import random
import unittest

from mathhook.trial_division import exact_divide_dense

def _mul(a, b):
    if not a or not b:
        return []
    out = [0] * (len(a) + len(b) - 1)
    for i,ai in enumerate(a):
        for j,bj in enumerate(b):
            out[i + j] += ai * bj
    return trim(out)

class TestModularGcd(unittest.TestCase):

    def test_common_factor(self):
        # gcd(x^2 - 1, x^2 - 2x + 1) = x - 1
        res = modular_gcd_univariate([-1, 0, 1], [1, -2, 1])
        self.assertEqual(res, GcdResult([-1, 1], [1, 1], [-1, 1]))

    def test_content(self):
        # gcd(6x + 12, 4x + 8) = 2x + 4
        self.assertEqual(modular_gcd_univariate([12, 6], [8, 4]).gcd, [4, 2])
        # gcd(2x + 4, 2) = 2
        self.assertEqual(modular_gcd_univariate([4, 2], [2]), GcdResult([2], [2, 1], [1]))

    def test_coprime(self):
        res = modular_gcd_univariate([1, 0, 1], [-1, 1])
        self.assertEqual(res, GcdResult([1], [1, 0, 1], [-1, 1]))
        self.assertEqual(modular_gcd_univariate([3, 3], [0, 2]).gcd, [1])

    def test_zero(self):
        self.assertEqual(modular_gcd_univariate([], []), GcdResult([], [], []))
        self.assertEqual(modular_gcd_univariate([], [2, -4]), GcdResult([-2, 4], [], [-1]))
        self.assertEqual(modular_gcd_univariate([0, 0, 3], []), GcdResult([0, 0, 3], [1], []))

    def test_signs(self):
        # -(x - 1)(x + 2) and (x - 1)(x + 5)
        res = modular_gcd_univariate([2, -1, -1], [-5, 4, 1])
        self.assertEqual(res.gcd, [-1, 1])
        self.assertEqual(res.cofactor_f, [-2, -1])
        self.assertEqual(res.cofactor_g, [5, 1])

    def test_unlucky_prime(self):
        # (x - 1)(x - 3) and (x - 1)(x - 8) agree mod 5
        config = ModularGcdConfig(primes=(5, 7, 11, 13))
        with self.assertLogs("mathhook.primes", level="DEBUG") as logs:
            res = modular_gcd_univariate([3, -4, 1], [8, -9, 1], config)
        self.assertEqual(res.gcd, [-1, 1])
        self.assertTrue(any("restarting" in line for line in logs.output))

    def test_excluded_primes(self):
        config = ModularGcdConfig(primes=(5, 7, 11, 13), excluded_primes=(5,))
        with self.assertLogs("mathhook.primes", level="DEBUG") as logs:
            res = modular_gcd_univariate([3, -4, 1], [8, -9, 1], config)
        self.assertEqual(res.gcd, [-1, 1])
        self.assertTrue(any("excluded prime 5" in line for line in logs.output))
        self.assertFalse(any("restarting" in line for line in logs.output))

    def test_iteration_limit(self):
        config = ModularGcdConfig(max_iterations=1)
        with self.assertRaises(MaxIterationsExceeded) as ctx:
            modular_gcd_univariate([-2, 1, 1], [-3, 2, 1], config)
        self.assertEqual(ctx.exception.limit, 1)

        # 5 is discarded once 7 shows the lower degree, then the budget runs out
        config = ModularGcdConfig(primes=(5, 7), max_iterations=2)
        with self.assertLogs("mathhook.modular_gcd", level="DEBUG") as logs:
            with self.assertRaises(MaxIterationsExceeded):
                modular_gcd_univariate([3, -4, 1], [8, -9, 1], config)
        self.assertIn("discarded as unlucky: [5]", logs.output[-1])

    def test_scaling(self):
        rng = random.Random(77)
        for _ in range(20):
            h = [rng.randint(-9, 9) for _ in range(rng.randint(0, 3))] + [rng.randint(1, 5)]
            a = [rng.randint(-9, 9) for _ in range(rng.randint(0, 3))] + [rng.randint(1, 5)]
            b = [rng.randint(-9, 9) for _ in range(rng.randint(0, 3))] + [rng.randint(1, 5)]
            k1 = rng.choice([-1, 1]) * rng.randint(1, 40)
            k2 = rng.choice([-1, 1]) * rng.randint(1, 40)
            f, g = _mul(h, a), _mul(h, b)
            base = modular_gcd_univariate(f, g).gcd
            scaled = modular_gcd_univariate([k1 * c for c in f], [k2 * c for c in g]).gcd
            # scaling an input only changes the content of the GCD
            self.assertEqual(primitive_part(scaled), primitive_part(base))

    def test_coefficient_growth(self):
        # large coefficients need several primes before the bound is passed
        h = [-(3**40), 0, 7**25]
        a = [5, 1, 0, 2]
        b = [-11, 4]
        res = modular_gcd_univariate(_mul(h, a), _mul(h, b))
        self.assertEqual(res.gcd, h)
        self.assertEqual(res.cofactor_f, a)
        self.assertEqual(res.cofactor_g, b)

    def test_random(self):
        rng = random.Random(1234)
        for workers in (1, 3):
            config = ModularGcdConfig(workers=workers)
            for _ in range(10):
                h = [rng.randint(-20, 20) for _ in range(rng.randint(1, 4))] + [rng.randint(1, 9)]
                h = primitive_part(h)
                a = [rng.randint(-20, 20) for _ in range(rng.randint(0, 4))] + [rng.randint(1, 9)]
                b = [rng.randint(-20, 20) for _ in range(rng.randint(0, 4))] + [rng.randint(1, 9)]
                f, g = _mul(h, a), _mul(h, b)
                res = modular_gcd_univariate(f, g, config)
                self.assertIsNotNone(exact_divide_dense(res.gcd, h))
                self.assertEqual(_mul(res.gcd, res.cofactor_f), f)
                self.assertEqual(_mul(res.gcd, res.cofactor_g), g)
                self.assertGreater(res.gcd[-1], 0)
                self.assertEqual(extract_content(res.gcd), gcd(extract_content(f), extract_content(g)))

#!/usr/bin/env python3
#
#   GCD, LCM and division of integer polynomials
#

import logging
from dataclasses import fields
from typing import Optional

from mathhook.basic_types import Polynomial, gcd
from mathhook.bridge import (ConstantPair, MultivariatePair, UnivariatePair, classify, coefficients_to_expression,
                             common_ring, expression_to_coefficients, lift_terms)
from mathhook.config import ModularGcdConfig, MultivariateGcdConfig
from mathhook.content import extract_content
from mathhook.errors import DivisionByZero, NotPolynomial
from mathhook.modular_gcd import GcdResult, modular_gcd_univariate
from mathhook.trial_division import divide_dense, pseudo_div_rem
from mathhook.zippel_gcd import multivariate_gcd

logger = logging.getLogger(__name__)

def _multivariate_config(config : Optional[ModularGcdConfig]) -> Optional[MultivariateGcdConfig]:
    if config is None or isinstance(config, MultivariateGcdConfig):
        return config
    return MultivariateGcdConfig(**{ f.name : getattr(config, f.name) for f in fields(config) })

class _Operands:
    """
    Two expressions brought into a common ring and classified
    """

    def __init__(self, f, g):
        self.as_int = isinstance(f, int) and isinstance(g, int)
        self.ring = common_ring(f, g)
        self.n_vars = self.ring.n_vars
        self.pair = classify(expression_to_coefficients(f, self.ring.var_names),
                             expression_to_coefficients(g, self.ring.var_names), self.n_vars)

    def output(self, value):
        """
        Converts a result of the classified representation back to the caller's type
        """
        terms = lift_terms(self.pair, value, self.n_vars)
        if self.as_int:
            return terms.get((), 0)
        return coefficients_to_expression(terms, self.ring.var_names)

def _constant_cofactors(a : int, b : int) -> GcdResult:
    h = gcd(a, b)
    if h == 0:
        return GcdResult(0, 0, 0)
    return GcdResult(h, a // h, b // h)

def cofactors(f, g, config : Optional[ModularGcdConfig] = None) -> GcdResult:
    """
    (gcd(f, g), f / gcd, g / gcd). The GCD has a positive leading coefficient in lex order.
    """
    ops = _Operands(f, g)
    pair = ops.pair

    if isinstance(pair, ConstantPair):
        result = _constant_cofactors(pair.f, pair.g)
    elif isinstance(pair, UnivariatePair):
        result = modular_gcd_univariate(pair.f_coeffs, pair.g_coeffs, config)
    else:
        assert isinstance(pair, MultivariatePair)
        logger.debug("multivariate GCD in %d variables", pair.num_vars)
        result = multivariate_gcd(pair.f_terms, pair.g_terms, pair.num_vars, _multivariate_config(config))

    return GcdResult(*(ops.output(v) for v in result))

def polynomial_gcd(f, g, config : Optional[ModularGcdConfig] = None):
    return cofactors(f, g, config).gcd

def polynomial_lcm(f, g, config : Optional[ModularGcdConfig] = None):
    """
    f * g / gcd(f, g) with a positive leading coefficient
    """
    h, q_f, q_g = cofactors(f, g, config)
    if h == 0:
        raise DivisionByZero("lcm(0, 0) is undefined")
    lcm = h * q_f * q_g
    if isinstance(lcm, int):
        return abs(lcm)
    if not lcm.is_zero() and lcm.leading_coeff() < 0:
        lcm = -lcm
    return lcm

def are_coprime(f, g, config : Optional[ModularGcdConfig] = None) -> bool:
    h = polynomial_gcd(f, g, config)
    if isinstance(h, int):
        return h != 0
    return h.is_constant() and not h.is_zero()

def _dense_operands(f, g):
    ops = _Operands(f, g)
    pair = ops.pair

    if isinstance(pair, MultivariatePair):
        raise ValueError("polynomial division needs operands in at most one variable")
    if isinstance(pair, ConstantPair):
        return ops, [pair.f] if pair.f else [], [pair.g] if pair.g else []
    return ops, pair.f_coeffs, pair.g_coeffs

def _dense_output(ops, coeffs):
    if isinstance(ops.pair, ConstantPair):
        return ops.output(coeffs[0] if coeffs else 0)
    return ops.output(coeffs)

def polynomial_div(f, g):
    """
    Long division of univariate integer polynomials, (q, r) with f = q * g + r. Division stops early when the leading
    coefficient of g does not divide that of the remainder, see polynomial_pseudo_div for a remainder of lower degree.
    """
    ops, a, b = _dense_operands(f, g)
    q, r = divide_dense(a, b)
    return _dense_output(ops, q), _dense_output(ops, r)

def polynomial_quo(f, g):
    return polynomial_div(f, g)[0]

def polynomial_rem(f, g):
    return polynomial_div(f, g)[1]

def polynomial_pseudo_div(f, g):
    """
    Pseudo-division of univariate integer polynomials, (q, r, m) with m * f = q * g + r, deg(r) < deg(g) and m an
    integer power of the leading coefficient of g
    """
    ops, a, b = _dense_operands(f, g)
    q, r, m = pseudo_div_rem(a, b)
    return _dense_output(ops, q), _dense_output(ops, r), m

def factor_gcd(f):
    """
    GCD of the terms of f: the content times the largest power product dividing every term, with a positive
    coefficient. An integer or a single term is its own term GCD.
    """
    if isinstance(f, bool) or not isinstance(f, (int, Polynomial)):
        raise NotPolynomial(f)
    if isinstance(f, int):
        return f
    terms = expression_to_coefficients(f, f.ring.var_names)
    if len(terms) < 2:
        return f
    lowest = tuple(min(degs) for degs in zip(*terms))
    return coefficients_to_expression({ lowest : extract_content(terms) }, f.ring.var_names)

########################################################################################################################
#   Unit Tests
########################################################################################################################

import random
import unittest

from mathhook.basic_types import ZZ, PolynomialRing
from mathhook.content import primitive_part

class TestGcdOps(unittest.TestCase):

    def setUp(self):
        self.R = PolynomialRing(ZZ, ["x", "y", "z"])
        self.x, self.y, self.z = self.R.variables()

    def test_univariate(self):
        x = self.x
        h, cf, cg = cofactors(x**2 - 1, x**2 - 2*x + 1)
        self.assertEqual(h, x - 1)
        self.assertEqual(cf, x + 1)
        self.assertEqual(cg, x - 1)
        self.assertEqual(h.ring, self.R)

    def test_multivariate(self):
        x, y = self.x, self.y
        self.assertEqual(polynomial_gcd(x*y, x*y + x), x)
        G = x*y + self.z**2 + 3
        self.assertEqual(polynomial_gcd(G * (x - y), G * (x + 2*y + 1)), G)

    def test_content(self):
        x = self.x
        self.assertEqual(polynomial_gcd(6*x + 12, 4*x + 8), 2*x + 4)
        self.assertEqual(polynomial_gcd(2*x + 4, 6), 2)

    def test_integers(self):
        self.assertEqual(polynomial_gcd(12, -18), 6)
        self.assertEqual(cofactors(12, -18), GcdResult(6, 2, -3))
        self.assertEqual(cofactors(0, 0), GcdResult(0, 0, 0))
        self.assertIsInstance(polynomial_gcd(12, 18), int)

    def test_zero(self):
        x = self.x
        self.assertEqual(polynomial_gcd(0, 1 - x), x - 1)
        self.assertEqual(polynomial_gcd(self.R(0), self.R(0)), 0)
        self.assertEqual(polynomial_gcd(0, -3 * self.x * self.y), 3 * self.x * self.y)

    def test_mixed_rings(self):
        S = PolynomialRing(ZZ, ["w", "x"])
        w, x2 = S.variables()
        h = polynomial_gcd(self.x * self.y, x2**2 * w)
        self.assertEqual(h.ring.var_names, ["x", "y", "z", "w"])
        self.assertEqual(h.terms, { (1, 0, 0, 0) : 1 })
        self.assertEqual(polynomial_lcm(self.x, w),
                         coefficients_to_expression({ (1, 0, 0, 1) : 1 }, h.ring.var_names))

    def test_lcm(self):
        x = self.x
        self.assertEqual(polynomial_lcm(x**2 - 1, x**2 - 2*x + 1), (x + 1) * (x - 1)**2)
        self.assertEqual(polynomial_lcm(-x, x + 1), x**2 + x)
        self.assertEqual(polynomial_lcm(4, -6), 12)
        self.assertEqual(polynomial_lcm(0, x + 1), 0)
        with self.assertRaises(DivisionByZero):
            polynomial_lcm(0, 0)

    def test_coprime(self):
        x, y = self.x, self.y
        self.assertTrue(are_coprime(x + 1, x - 1))
        self.assertTrue(are_coprime(x + y, x - y))
        self.assertFalse(are_coprime(x*y, x))
        self.assertFalse(are_coprime(0, 0))
        self.assertTrue(are_coprime(0, -1))

    def test_div(self):
        x = self.x
        q, r = polynomial_div(x**3 - 1, x - 1)
        self.assertEqual(q, x**2 + x + 1)
        self.assertTrue(r.is_zero())
        q, r = polynomial_div(x**2 + 3, x + 1)
        self.assertEqual((q, r), (x - 1, 4))
        self.assertEqual(polynomial_div(7, 2), (0, 7))
        self.assertEqual(polynomial_div(8, -2), (-4, 0))
        with self.assertRaises(DivisionByZero):
            polynomial_div(x, 0)
        with self.assertRaises(ValueError):
            polynomial_div(self.x * self.y, self.x)

    def test_pseudo_div(self):
        x = self.x
        # 2 does not divide 1, plain division makes no progress
        self.assertEqual(polynomial_div(x**2 + 1, 2*x + 1), (0, x**2 + 1))
        q, r, m = polynomial_pseudo_div(x**2 + 1, 2*x + 1)
        self.assertEqual((q, r, m), (2*x - 1, 5, 4))
        self.assertEqual(m * (x**2 + 1), q * (2*x + 1) + r)
        self.assertEqual(polynomial_pseudo_div(7, 2), (7, 0, 2))
        with self.assertRaises(DivisionByZero):
            polynomial_pseudo_div(x, 0)
        with self.assertRaises(ValueError):
            polynomial_pseudo_div(self.x * self.y, self.y)

    def test_quo_rem(self):
        x = self.x
        self.assertEqual(polynomial_quo(x**2 - 1, x - 1), x + 1)
        self.assertEqual(polynomial_rem(x**2 + 1, x - 1), 2)
        self.assertTrue(polynomial_rem(x**3 - 1, x - 1).is_zero())
        self.assertEqual(polynomial_quo(8, -4), -2)
        with self.assertRaises(ValueError):
            polynomial_rem(self.x * self.y, self.x)

    def test_factor_gcd(self):
        x, y = self.x, self.y
        self.assertEqual(factor_gcd(6*x**2*y + 4*x*y**3), 2*x*y)
        self.assertEqual(factor_gcd(-3*x**2 - 6*x), 3*x)
        self.assertEqual(factor_gcd(x + 1), 1)
        self.assertEqual(factor_gcd(-4*x*y), -4*x*y)
        self.assertEqual(factor_gcd(12), 12)
        with self.assertRaises(NotPolynomial):
            factor_gcd(2.5)

    def _random_poly(self, rng, n_terms, max_deg):
        terms = {}
        for _ in range(n_terms):
            m = tuple(rng.randint(0, max_deg) for _ in range(self.R.n_vars))
            terms[m] = rng.choice([-1, 1]) * rng.randint(1, 9)
        return coefficients_to_expression(terms, self.R.var_names)

    def test_scaling_and_lcm(self):
        rng = random.Random(2024)
        names = self.R.var_names
        for _ in range(15):
            h = self._random_poly(rng, 3, 2)
            f = h * self._random_poly(rng, 2, 2)
            g = h * self._random_poly(rng, 2, 2)
            k1 = rng.choice([-1, 1]) * rng.randint(1, 30)
            k2 = rng.choice([-1, 1]) * rng.randint(1, 30)

            base = polynomial_gcd(f, g)
            scaled = polynomial_gcd(k1 * f, k2 * g)
            # scaling an input only changes the content of the GCD
            self.assertEqual(primitive_part(expression_to_coefficients(scaled, names)),
                             primitive_part(expression_to_coefficients(base, names)))

            lcm = polynomial_lcm(f, g)
            self.assertIn(lcm * base, (f * g, -(f * g)))

    def test_not_polynomial(self):
        with self.assertRaises(NotPolynomial):
            polynomial_gcd(1.5, self.x)
        with self.assertRaises(NotPolynomial):
            polynomial_gcd("x", 2)

    def test_config(self):
        x, y = self.x, self.y
        config = ModularGcdConfig(seed=5, workers=2)
        self.assertEqual(polynomial_gcd(x*y + y, x*y - x*y**2 + y, config), y)

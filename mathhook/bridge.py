#!/usr/bin/env python3
#
#   Conversion between host polynomials and the coefficient forms used by the GCD algorithms
#

from typing import Dict, List, NamedTuple, Sequence, Tuple, Union

from mathhook.basic_types import ZZ, Polynomial, PolynomialRing
from mathhook.errors import NotPolynomial

Terms = Dict[Tuple[int, ...], int]

def _check(expr):
    # bool is an int but not a polynomial
    if isinstance(expr, bool) or not isinstance(expr, (int, Polynomial)):
        raise NotPolynomial(expr)
    if isinstance(expr, Polynomial) and expr.ring.coeff_ring != ZZ:
        raise NotPolynomial(expr)

def common_ring(f, g) -> PolynomialRing:
    """
    Integer polynomial ring in the variables of f followed by those of g not already present
    """
    _check(f)
    _check(g)
    names = []
    for expr in (f, g):
        if isinstance(expr, Polynomial):
            names.extend(name for name in expr.ring.var_names if name not in names)
    return PolynomialRing(ZZ, names)

def expression_to_coefficients(expr, var_names : Sequence[str]) -> Terms:
    _check(expr)
    n = len(var_names)
    if isinstance(expr, int):
        return { (0,) * n : expr } if expr != 0 else {}
    try:
        embedded = PolynomialRing(ZZ, var_names)(expr)
    except ValueError:
        raise NotPolynomial(expr) from None
    return dict(embedded.terms)

def coefficients_to_expression(terms : Terms, var_names : Sequence[str]) -> Polynomial:
    return Polynomial(PolynomialRing(ZZ, var_names), terms)

########################################################################################################################
#   Classification
########################################################################################################################

class ConstantPair(NamedTuple):
    f : int
    g : int

class UnivariatePair(NamedTuple):
    f_coeffs : List[int]
    g_coeffs : List[int]
    # index of the only variable present
    var : int

class MultivariatePair(NamedTuple):
    f_terms : Terms
    g_terms : Terms
    # indices of the variables present, the terms are restricted to these
    variables : Tuple[int, ...]

    @property
    def num_vars(self):
        return len(self.variables)

OperandPair = Union[ConstantPair, UnivariatePair, MultivariatePair]

def dense_from_terms(terms : Terms, var : int) -> List[int]:
    if len(terms) == 0:
        return []
    coeffs = [0] * (max(m[var] for m in terms) + 1)
    for m,c in terms.items():
        coeffs[m[var]] += c
    return coeffs

def terms_from_dense(coeffs : List[int], var : int, n_vars : int) -> Terms:
    out = {}
    for i,c in enumerate(coeffs):
        if c != 0:
            m = [0] * n_vars
            m[var] = i
            out[tuple(m)] = c
    return out

def classify(tf : Terms, tg : Terms, n_vars : int) -> OperandPair:
    """
    Chooses the algorithm by the number of variables the operands actually depend on
    """
    present = tuple(i for i in range(n_vars) if any(m[i] != 0 for m in tf) or any(m[i] != 0 for m in tg))
    mon0 = (0,) * n_vars

    if len(present) == 0:
        return ConstantPair(tf.get(mon0, 0), tg.get(mon0, 0))
    if len(present) == 1:
        return UnivariatePair(dense_from_terms(tf, present[0]), dense_from_terms(tg, present[0]), present[0])
    restrict = lambda terms: { tuple(m[i] for i in present) : c for m,c in terms.items() }
    return MultivariatePair(restrict(tf), restrict(tg), present)

def lift_terms(pair : OperandPair, terms, n_vars : int) -> Terms:
    """
    Back from the representation of a classified pair to terms in all n_vars variables
    """
    mon0 = (0,) * n_vars
    if isinstance(pair, ConstantPair):
        return { mon0 : terms } if terms != 0 else {}
    if isinstance(pair, UnivariatePair):
        return terms_from_dense(terms, pair.var, n_vars)
    out = {}
    for m,c in terms.items():
        full = [0] * n_vars
        for i,e in zip(pair.variables, m):
            full[i] = e
        out[tuple(full)] = c
    return out

########################################################################################################################
#   Unit Tests
########################################################################################################################

import unittest

from mathhook.basic_types import GF

class TestBridge(unittest.TestCase):

    def setUp(self):
        self.R = PolynomialRing(ZZ, ["x", "y"])
        self.x, self.y = self.R.variables()

    def test_round_trip(self):
        f = self.x**2 * self.y - 2 * self.y + 4
        terms = expression_to_coefficients(f, ["x", "y"])
        self.assertEqual(terms, { (2, 1) : 1, (0, 1) : -2, (0, 0) : 4 })
        self.assertEqual(coefficients_to_expression(terms, ["x", "y"]), f)
        # reordered variables
        self.assertEqual(expression_to_coefficients(f, ["y", "x"]), { (1, 2) : 1, (1, 0) : -2, (0, 0) : 4 })
        self.assertEqual(expression_to_coefficients(7, ["x"]), { (0,) : 7 })
        self.assertEqual(expression_to_coefficients(0, ["x"]), {})

    def test_not_polynomial(self):
        for bad in (1.5, "x", True, None):
            with self.assertRaises(NotPolynomial):
                expression_to_coefficients(bad, ["x"])
        with self.assertRaises(NotPolynomial):
            expression_to_coefficients(self.y, ["x"])
        Rp = PolynomialRing(GF(7), ["x"])
        with self.assertRaises(NotPolynomial):
            expression_to_coefficients(Rp.variables()[0], ["x"])

    def test_common_ring(self):
        S = PolynomialRing(ZZ, ["z", "x"])
        z, _ = S.variables()
        self.assertEqual(common_ring(self.x, z).var_names, ["x", "y", "z"])
        self.assertEqual(common_ring(3, 4).var_names, [])
        self.assertEqual(common_ring(3, z).var_names, ["z", "x"])

    def test_classify(self):
        self.assertEqual(classify({ (0, 0) : 6 }, {}, 2), ConstantPair(6, 0))
        pair = classify({ (0, 2) : 1, (0, 0) : -1 }, { (0, 1) : 3 }, 2)
        self.assertEqual(pair, UnivariatePair([-1, 0, 1], [0, 3], 1))
        self.assertEqual(lift_terms(pair, [2, 1], 2), { (0, 0) : 2, (0, 1) : 1 })
        pair = classify({ (1, 0, 1) : 1 }, { (0, 0, 2) : 1 }, 3)
        self.assertIsInstance(pair, MultivariatePair)
        self.assertEqual(pair.variables, (0, 2))
        self.assertEqual(pair.num_vars, 2)
        self.assertEqual(pair.f_terms, { (1, 1) : 1 })
        self.assertEqual(lift_terms(pair, { (0, 1) : 5 }, 3), { (0, 0, 1) : 5 })

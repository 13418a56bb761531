#!/usr/bin/env python3
#
#   Exact polynomial division, used to verify GCD candidates
#

import logging
from typing import Dict, List, Optional, Tuple

from mathhook.errors import DivisionByZero

logger = logging.getLogger(__name__)

Terms = Dict[Tuple[int, ...], int]

def trim(coeffs : List[int]) -> List[int]:
    while coeffs and coeffs[-1] == 0:
        coeffs.pop()
    return coeffs

def _divides(m1, m2):
    return all(a <= b for a,b in zip(m1, m2))

def _exact_divide(dividend : Terms, divisor : Terms, divide_coeff, p : Optional[int] = None) -> Optional[Terms]:
    """
    Lex-order division, the leading term of the remainder must be divisible by the divisor's leading term at every
    step. divide_coeff(a, b) returns a / b or None if it does not exist. With p set the remainder is kept reduced.
    """
    if len(divisor) == 0:
        raise DivisionByZero("division by the zero polynomial")

    lm_g = max(divisor)
    lc_g = divisor[lm_g]
    r = dict(dividend)
    q = {}

    while r:
        lm = max(r)
        if not _divides(lm_g, lm):
            return None
        c = divide_coeff(r[lm], lc_g)
        if c is None:
            return None

        shift = tuple(a - b for a,b in zip(lm, lm_g))
        q[shift] = c
        for m,cg in divisor.items():
            k = tuple(a + b for a,b in zip(shift, m))
            v = r.get(k, 0) - c * cg
            if p is not None:
                v %= p
            if v == 0:
                r.pop(k, None)
            else:
                r[k] = v

    return q

def exact_divide(dividend : Terms, divisor : Terms) -> Optional[Terms]:
    """
    Quotient of two multivariate integer polynomials if the division is exact, otherwise None
    """
    def divide_coeff(a, b):
        c, rem = divmod(a, b)
        return None if rem else c

    return _exact_divide(dividend, divisor, divide_coeff)

def exact_divide_mod_p(dividend : Terms, divisor : Terms, p : int) -> Optional[Terms]:
    """
    Same as exact_divide with coefficients in GF(p), given as integers in [0, p)
    """
    divisor = { m : c % p for m,c in divisor.items() if c % p != 0 }
    if len(divisor) == 0:
        raise DivisionByZero("division by the zero polynomial")
    inv = pow(divisor[max(divisor)], -1, p)

    return _exact_divide({ m : c % p for m,c in dividend.items() if c % p != 0 }, divisor,
                         lambda a, b: a * inv % p, p)

def divide_dense(f : List[int], g : List[int]) -> Tuple[List[int], List[int]]:
    """
    Integer long division of dense univariate polynomials. Stops early once the leading coefficient of the remainder
    is not divisible by that of g, so f = q * g + r always holds but deg(r) < deg(g) only when lc(g) divides enough.
    """
    g = trim(list(g))
    if len(g) == 0:
        raise DivisionByZero("division by the zero polynomial")

    r = trim(list(f))
    q = [0] * max(len(r) - len(g) + 1, 0)

    while len(r) >= len(g):
        c, rem = divmod(r[-1], g[-1])
        if rem:
            break
        shift = len(r) - len(g)
        q[shift] = c
        for i,gi in enumerate(g):
            r[shift + i] -= c * gi
        trim(r)

    return trim(q), r

def pseudo_div_rem(f : List[int], g : List[int]) -> Tuple[List[int], List[int], int]:
    """
    Pseudo-division of dense integer polynomials, (q, r, m) with m * f = q * g + r and deg(r) < deg(g). m is
    lc(g)^(deg f - deg g + 1), or 1 when deg f < deg g.
    """
    g = trim(list(g))
    if len(g) == 0:
        raise DivisionByZero("division by the zero polynomial")

    r = trim(list(f))
    if len(r) < len(g):
        return [], r, 1

    lc = g[-1]
    d = len(g) - 1
    q = [0] * (len(r) - d)
    m = 1

    for i in reversed(range(len(q))):
        r = [c * lc for c in r]
        q = [c * lc for c in q]
        m *= lc
        # exact, r[i + d] was just scaled by lc
        c = r[i + d] // lc
        q[i] = c
        for j,gj in enumerate(g):
            r[i + j] -= c * gj

    return trim(q), trim(r), m

def exact_divide_dense(f : List[int], g : List[int]) -> Optional[List[int]]:
    q, r = divide_dense(f, g)
    return None if r else q

class TrialDivisionVerifier:
    """
    Confirms a GCD candidate by dividing both inputs. Dense lists and sparse dicts are both accepted.
    """

    def verify(self, candidate, f, g):
        divide = exact_divide if isinstance(candidate, dict) else exact_divide_dense
        q_f = divide(f, candidate)
        if q_f is None:
            logger.debug("candidate %s does not divide %s", candidate, f)
            return None
        q_g = divide(g, candidate)
        if q_g is None:
            logger.debug("candidate %s does not divide %s", candidate, g)
            return None
        return q_f, q_g

########################################################################################################################
#   Unit Tests
########################################################################################################################

import random
import unittest

def _mul_terms(a : Terms, b : Terms) -> Terms:
    out = {}
    for ma,ca in a.items():
        for mb,cb in b.items():
            m = tuple(x + y for x,y in zip(ma, mb))
            out[m] = out.get(m, 0) + ca * cb
    return { m : c for m,c in out.items() if c != 0 }

def _mul_dense(a : List[int], b : List[int]) -> List[int]:
    if not a or not b:
        return []
    out = [0] * (len(a) + len(b) - 1)
    for i,ai in enumerate(a):
        for j,bj in enumerate(b):
            out[i + j] += ai * bj
    return trim(out)

class TestTrialDivision(unittest.TestCase):

    def test_dense(self):
        # x^3 - 1 = (x - 1)(x^2 + x + 1)
        self.assertEqual(exact_divide_dense([-1, 0, 0, 1], [-1, 1]), [1, 1, 1])
        self.assertIsNone(exact_divide_dense([1, 0, 1], [-1, 1]))
        self.assertIsNone(exact_divide_dense([1, 3], [0, 2]))
        self.assertEqual(exact_divide_dense([], [5, 1]), [])

    def test_divide_dense(self):
        rng = random.Random(3)
        for _ in range(50):
            f = trim([rng.randint(-9, 9) for _ in range(rng.randint(0, 7))])
            g = trim([rng.randint(-9, 9) for _ in range(rng.randint(0, 3))] + [rng.choice([-1, 1])])
            q, r = divide_dense(f, g)
            # monic divisors always finish the division
            self.assertTrue(len(r) < len(g))
            recomposed = _mul_dense(q, g)
            n = max(len(recomposed), len(r))
            self.assertEqual(trim([(recomposed + [0] * n)[i] + (r + [0] * n)[i] for i in range(n)]), f)

    def test_divide_dense_stops(self):
        q, r = divide_dense([1, 0, 3], [0, 2])
        self.assertEqual((q, r), ([], [1, 0, 3]))
        with self.assertRaises(DivisionByZero):
            divide_dense([1], [0, 0])

    def test_pseudo_div_rem(self):
        # 4 (x^2 + 1) = (2x - 1)(2x + 1) + 5
        self.assertEqual(pseudo_div_rem([1, 0, 1], [1, 2]), ([-1, 2], [5], 4))
        self.assertEqual(pseudo_div_rem([3, 1], [0, 0, 2]), ([], [3, 1], 1))
        self.assertEqual(pseudo_div_rem([], [1, 2]), ([], [], 1))
        with self.assertRaises(DivisionByZero):
            pseudo_div_rem([1, 1], [])

        rng = random.Random(5)
        for _ in range(50):
            f = trim([rng.randint(-9, 9) for _ in range(rng.randint(0, 7))])
            g = trim([rng.randint(-9, 9) for _ in range(rng.randint(0, 3))] + [rng.choice([-4, -3, 2, 5])])
            q, r, m = pseudo_div_rem(f, g)
            self.assertTrue(len(r) < len(g))
            if len(f) >= len(g):
                self.assertEqual(m, g[-1] ** (len(f) - len(g) + 1))
            recomposed = _mul_dense(q, g)
            n = max(len(recomposed), len(r), len(f))
            lhs = trim([m * c for c in f])
            self.assertEqual(trim([(recomposed + [0] * n)[i] + (r + [0] * n)[i] for i in range(n)]), lhs)

    def test_sparse(self):
        rng = random.Random(9)
        for _ in range(30):
            a = { (rng.randint(0, 3), rng.randint(0, 3)) : rng.randint(-5, 5) or 1 for _ in range(4) }
            b = { (rng.randint(0, 2), rng.randint(0, 2)) : rng.randint(-5, 5) or 1 for _ in range(3) }
            ab = _mul_terms(a, b)
            self.assertEqual(exact_divide(ab, b), a)
            self.assertEqual(exact_divide_mod_p(ab, b, 101), { m : c % 101 for m,c in a.items() })

    def test_sparse_inexact(self):
        # x y + x is not divisible by x + y
        self.assertIsNone(exact_divide({ (1, 1) : 1, (1, 0) : 1 }, { (1, 0) : 1, (0, 1) : 1 }))
        # 2x is not divisible by 3x over Z but is mod 7
        self.assertIsNone(exact_divide({ (1,) : 2 }, { (1,) : 3 }))
        self.assertEqual(exact_divide_mod_p({ (1,) : 2 }, { (1,) : 3 }, 7), { (0,) : 3 })
        with self.assertRaises(DivisionByZero):
            exact_divide({ (1,) : 1 }, {})

    def test_verifier(self):
        v = TrialDivisionVerifier()
        # x^2 - 1 and x^2 - 2x + 1 share x - 1
        self.assertEqual(v.verify([-1, 1], [-1, 0, 1], [1, -2, 1]), ([1, 1], [-1, 1]))
        self.assertIsNone(v.verify([1, 1], [-1, 0, 1], [1, -2, 1]))
        self.assertEqual(v.verify({ (1, 0) : 1 }, { (1, 1) : 1 }, { (1, 1) : 1, (1, 0) : 1 }),
                         ({ (0, 1) : 1 }, { (0, 1) : 1, (0, 0) : 1 }))

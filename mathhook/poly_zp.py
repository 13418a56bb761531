#!/usr/bin/env python3
#
#   Dense univariate polynomials over GF(p)
#

from typing import List, Optional, Union

from mathhook.basic_types import FieldElement
from mathhook.errors import DivisionByZero

class PolyZp:
    """
    Polynomial in GF(p)[x] stored as coefficients indexed by degree, with no trailing zeros. The zero polynomial has
    an empty coefficient list.
    """

    __slots__ = ("coeffs", "p")

    def __init__(self, coeffs : List[FieldElement], p : int):
        assert all(c.modulus == p for c in coeffs) , "Coefficients must share the polynomial's modulus"
        self.p = p
        self.coeffs = list(coeffs)
        self.trim()

    def trim(self):
        while self.coeffs and self.coeffs[-1].is_zero():
            self.coeffs.pop()

    @staticmethod
    def from_coeffs(raw : List[int], p : int):
        return PolyZp([FieldElement(c, p) for c in raw], p)

    @staticmethod
    def zero(p : int):
        return PolyZp([], p)

    @staticmethod
    def constant(c : int, p : int):
        return PolyZp([FieldElement(c, p)], p)

    @staticmethod
    def x(p : int):
        return PolyZp.from_coeffs([0, 1], p)

    def degree(self) -> Optional[int]:
        if not self.coeffs:
            return None
        return len(self.coeffs) - 1

    def is_zero(self):
        return not self.coeffs

    def is_constant(self):
        return len(self.coeffs) <= 1

    def is_one(self):
        return len(self.coeffs) == 1 and self.coeffs[0].is_one()

    def coefficients(self) -> List[int]:
        return [c.value for c in self.coeffs]

    def coeff(self, i : int) -> FieldElement:
        if i < len(self.coeffs):
            return self.coeffs[i]
        return FieldElement(0, self.p)

    def leading_coeff(self) -> Optional[FieldElement]:
        if not self.coeffs:
            return None
        return self.coeffs[-1]

    def __repr__(self):
        return f"PolyZp({self.coefficients()}, {self.p})"

    def __str__(self):
        if self.is_zero():
            return "0"
        terms = []
        for i in reversed(range(len(self.coeffs))):
            c = self.coeffs[i].value
            if c == 0:
                continue
            if i == 0:
                terms.append(f"{c}")
            elif c == 1:
                terms.append("x" if i == 1 else f"x^{{{i}}}")
            else:
                terms.append(f"{c} x" if i == 1 else f"{c} x^{{{i}}}")
        return " + ".join(terms)

    def __eq__(self, other):
        if not isinstance(other, PolyZp):
            return NotImplemented
        return self.p == other.p and self.coeffs == other.coeffs

    def __hash__(self):
        return hash((self.p, tuple(self.coefficients())))

    def cvt_other(self, other):
        if isinstance(other, (int, FieldElement)):
            return PolyZp([FieldElement(int(other), self.p)], self.p)
        assert isinstance(other, PolyZp) and other.p == self.p , "Polynomials must share a modulus"
        return other

    def add(self, other):
        other = self.cvt_other(other)
        n = max(len(self.coeffs), len(other.coeffs))
        return PolyZp([self.coeff(i) + other.coeff(i) for i in range(n)], self.p)

    def sub(self, other):
        other = self.cvt_other(other)
        n = max(len(self.coeffs), len(other.coeffs))
        return PolyZp([self.coeff(i) - other.coeff(i) for i in range(n)], self.p)

    def neg(self):
        return PolyZp([-c for c in self.coeffs], self.p)

    def mul(self, other):
        other = self.cvt_other(other)
        if self.is_zero() or other.is_zero():
            return PolyZp.zero(self.p)
        # schoolbook, accumulating in the integers and reducing once per coefficient
        a = self.coefficients()
        b = other.coefficients()
        out = [0] * (len(a) + len(b) - 1)
        for i,ai in enumerate(a):
            if ai == 0:
                continue
            for j,bj in enumerate(b):
                out[i + j] += ai * bj
        return PolyZp.from_coeffs(out, self.p)

    def scalar_mul(self, c : Union[int, FieldElement]):
        c = FieldElement(int(c), self.p)
        return PolyZp([ci * c for ci in self.coeffs], self.p)

    def shift(self, n : int):
        """
        Multiply by x^n
        """
        if self.is_zero():
            return self
        return PolyZp([FieldElement(0, self.p)] * n + self.coeffs, self.p)

    __add__ = add
    __radd__ = add
    __sub__ = sub
    __mul__ = mul
    __rmul__ = mul
    __neg__ = neg

    def __rsub__(self, other):
        return self.cvt_other(other).sub(self)

    def evaluate(self, x : Union[int, FieldElement]) -> FieldElement:
        x = FieldElement(int(x), self.p)
        r = FieldElement(0, self.p)
        for c in reversed(self.coeffs):
            r = r * x + c
        return r

    __call__ = evaluate

    def make_monic(self):
        if self.is_zero():
            return self
        return self.scalar_mul(self.leading_coeff().inverse())

    def div_rem(self, divisor):
        """
        Long division, returns (q, r) with self = divisor * q + r and deg(r) < deg(divisor)
        """
        divisor = self.cvt_other(divisor)
        if divisor.is_zero():
            raise DivisionByZero("polynomial division by the zero polynomial")

        r = list(self.coeffs)
        d = len(divisor.coeffs) - 1
        if len(r) - 1 < d:
            return PolyZp.zero(self.p), PolyZp(r, self.p)

        # the leading coefficient is always invertible since GF(p) has no zero divisors
        inv_lc = divisor.leading_coeff().inverse()
        q = [FieldElement(0, self.p)] * (len(r) - d)

        for i in reversed(range(len(q))):
            c = r[i + d] * inv_lc
            q[i] = c
            if c.is_zero():
                continue
            for j,dj in enumerate(divisor.coeffs):
                r[i + j] = r[i + j] - c * dj

        return PolyZp(q, self.p), PolyZp(r[:d], self.p)

    def __floordiv__(self, other):
        return self.div_rem(other)[0]

    def __mod__(self, other):
        return self.div_rem(other)[1]

    def gcd(self, other):
        """
        Monic GCD by the Euclidean algorithm, monic so that images under different primes are comparable
        """
        f,g = self, self.cvt_other(other)
        while not g.is_zero():
            f,g = g, f % g
        return f.make_monic()

    def extended_gcd(self, other):
        """
        Returns (g, s, t) with g = s * self + t * other and g monic
        """
        other = self.cvt_other(other)
        one = PolyZp.constant(1, self.p)
        zero = PolyZp.zero(self.p)

        r0, r1 = self, other
        s0, s1 = one, zero
        t0, t1 = zero, one

        while not r1.is_zero():
            q, r = r0.div_rem(r1)
            r0, r1 = r1, r
            s0, s1 = s1, s0 - q * s1
            t0, t1 = t1, t0 - q * t1

        if r0.is_zero():
            return zero, zero, zero

        inv = r0.leading_coeff().inverse()
        return r0.scalar_mul(inv), s0.scalar_mul(inv), t0.scalar_mul(inv)

########################################################################################################################
#   Unit Tests
########################################################################################################################

import random
import unittest

class TestPolyZp(unittest.TestCase):

    def test_from_coeffs(self):
        f = PolyZp.from_coeffs([10, -1, 7, 0, 14], 7)
        self.assertEqual(f.coefficients(), [3, 6])
        self.assertEqual(f.degree(), 1)
        self.assertIsNone(PolyZp.from_coeffs([0, 7, 14], 7).degree())
        self.assertTrue(PolyZp.zero(5).is_zero())

    def test_arith(self):
        p = 13
        f = PolyZp.from_coeffs([1, 2, 3], p)
        g = PolyZp.from_coeffs([5, 0, 10, 1], p)
        self.assertEqual((f + g).coefficients(), [6, 2, 0, 1])
        self.assertEqual((f - f).degree(), None)
        self.assertEqual((f * g).coefficients(), [5, 10, 25 % p, 21 % p, 32 % p, 3])
        self.assertEqual(f.scalar_mul(2).coefficients(), [2, 4, 6])
        self.assertEqual(PolyZp.x(p).shift(2).coefficients(), [0, 0, 0, 1])
        self.assertEqual((-f).coefficients(), [12, 11, 10])

    def test_evaluate(self):
        f = PolyZp.from_coeffs([1, 2, 3], 101)
        self.assertEqual(f.evaluate(5), 1 + 10 + 75)
        self.assertEqual(f(0), 1)

    def test_div_rem(self):
        rng = random.Random(7)
        for p in (2, 3, 7, 65521):
            for _ in range(50):
                f = PolyZp.from_coeffs([rng.randint(0, p - 1) for _ in range(rng.randint(0, 9))], p)
                # divisors need not be monic
                lc = rng.randint(1, p - 1)
                g = PolyZp.from_coeffs([rng.randint(0, p - 1) for _ in range(rng.randint(1, 6))] + [lc], p)
                q, r = f.div_rem(g)
                self.assertEqual(g * q + r, f)
                self.assertTrue(r.is_zero() or r.degree() < g.degree())

        # x^2 + 1 = (3x + 1)(5x + 3) + 5 mod 7
        q, r = PolyZp.from_coeffs([1, 0, 1], 7).div_rem(PolyZp.from_coeffs([1, 3], 7))
        self.assertEqual((q.coefficients(), r.coefficients()), ([3, 5], [5]))

    def test_exact_division(self):
        # x^3 - 1 = (x - 1)(x^2 + x + 1)
        p = 2147483647
        f = PolyZp.from_coeffs([-1, 0, 0, 1], p)
        g = PolyZp.from_coeffs([-1, 1], p)
        q, r = f.div_rem(g)
        self.assertEqual(q, PolyZp.from_coeffs([1, 1, 1], p))
        self.assertTrue(r.is_zero())

    def test_div_by_zero(self):
        with self.assertRaises(DivisionByZero):
            PolyZp.from_coeffs([1, 1], 7).div_rem(PolyZp.zero(7))

    def test_gcd(self):
        p = 65521
        # (x - 1)(x + 1) and (x - 1)^2
        f = PolyZp.from_coeffs([-1, 0, 1], p)
        g = PolyZp.from_coeffs([1, -2, 1], p)
        self.assertEqual(f.gcd(g), PolyZp.from_coeffs([-1, 1], p))
        # monic even for non-monic common factors
        self.assertEqual(f.scalar_mul(5).gcd(g.scalar_mul(3)), PolyZp.from_coeffs([-1, 1], p))
        self.assertTrue(PolyZp.from_coeffs([1, 1], p).gcd(PolyZp.from_coeffs([2, 1], p)).is_one())
        self.assertTrue(PolyZp.zero(p).gcd(PolyZp.zero(p)).is_zero())
        self.assertEqual(PolyZp.zero(p).gcd(g.scalar_mul(4)), g)

    def test_extended_gcd(self):
        rng = random.Random(11)
        p = 10007
        for _ in range(30):
            f = PolyZp.from_coeffs([rng.randint(0, p - 1) for _ in range(rng.randint(1, 8))], p)
            g = PolyZp.from_coeffs([rng.randint(0, p - 1) for _ in range(rng.randint(1, 8))], p)
            d, s, t = f.extended_gcd(g)
            self.assertEqual(s * f + t * g, d)
            self.assertEqual(d, f.gcd(g))

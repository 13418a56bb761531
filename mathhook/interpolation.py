#!/usr/bin/env python3
#
#   Dense univariate interpolation and the transposed Vandermonde solver used by sparse interpolation
#

from typing import List, Sequence

from mathhook.basic_types import GF, FieldElement
from mathhook.errors import DivisionByZero
from mathhook.poly_zp import PolyZp

def newton_coefficients(xs : Sequence[FieldElement], ys : Sequence[FieldElement]) -> List[FieldElement]:
    """
    Divided differences [y_0], [y_0, y_1], ... of the points
    """
    diffs = list(ys)
    n = len(xs)
    for level in range(1, n):
        for i in reversed(range(level, n)):
            dx = xs[i] - xs[i - level]
            if dx.is_zero():
                raise DivisionByZero(f"repeated interpolation node {xs[i]}")
            diffs[i] = (diffs[i] - diffs[i - 1]) / dx
    return diffs

def lagrange_interpolate(xs : Sequence[FieldElement], ys : Sequence[FieldElement], field : GF) -> PolyZp:
    """
    The unique polynomial of degree < len(xs) with P(xs[i]) = ys[i], built in Newton form and expanded.
    Nodes must be distinct.
    """
    assert len(xs) == len(ys)
    p = field.p
    if len(xs) == 0:
        return PolyZp.zero(p)

    xs = [field(x) for x in xs]
    cs = newton_coefficients(xs, [field(y) for y in ys])

    result = PolyZp([cs[-1]], p)
    for i in reversed(range(len(cs) - 1)):
        # result * (x - xs[i]) + cs[i]
        result = result.shift(1) - result.scalar_mul(xs[i]) + PolyZp([cs[i]], p)
    return result

def solve_shifted_transposed_vandermonde(vs : Sequence[FieldElement], fs : Sequence[FieldElement]):
    """
    Solves sum_j c_j v_j^(i+1) = f_i for i = 0 .. n-1. The v_j must be distinct and non-zero.

    With M(z) = prod_j (z - v_j) and M_j = M / (z - v_j), weighting the equations by the coefficients of M_j gives
    sum_i M_j[i] f_i = c_j v_j M_j(v_j), since M_j vanishes at every other node.
    """
    if len(vs) == 0:
        return []
    if any(v.is_zero() for v in vs) or len(set(vs)) != len(vs):
        raise DivisionByZero("singular Vandermonde system")

    p = vs[0].modulus
    one = FieldElement(1, p)
    master = PolyZp.constant(1, p)
    for v in vs:
        master = master * PolyZp([-v, one], p)

    result = []
    for v in vs:
        m_j = master // PolyZp([-v, one], p)
        s = sum((a * f for a,f in zip(m_j.coeffs, fs)), FieldElement(0, p))
        result.append(s / (m_j(v) * v))
    return result

########################################################################################################################
#   Unit Tests
########################################################################################################################

import random
import unittest

class TestInterpolation(unittest.TestCase):

    def test_recovers_polynomial(self):
        rng = random.Random(17)
        for p in (7, 101, 2147483647):
            field = GF(p)
            for deg in range(6):
                if deg + 1 > p:
                    continue
                f = PolyZp.from_coeffs([rng.randint(0, p - 1) for _ in range(deg)] + [rng.randint(1, p - 1)], p)
                xs = field.rand_elems(deg + 1, rng)
                ys = [f(x) for x in xs]
                self.assertEqual(lagrange_interpolate(xs, ys, field), f)

    def test_constant_and_empty(self):
        field = GF(13)
        self.assertEqual(lagrange_interpolate([field(4)], [field(9)], field), PolyZp.constant(9, 13))
        self.assertTrue(lagrange_interpolate([], [], field).is_zero())

    def test_repeated_node(self):
        field = GF(13)
        with self.assertRaises(DivisionByZero):
            lagrange_interpolate([field(1), field(1)], [field(2), field(3)], field)

class TestVandermonde(unittest.TestCase):

    def test_solve(self):
        field = GF(101)
        # 5 * 2 + 7 * 3 = 31 and 5 * 4 + 7 * 9 = 83
        self.assertEqual(solve_shifted_transposed_vandermonde([field(2), field(3)], [field(31), field(83)]),
                         [field(5), field(7)])

        rng = random.Random(23)
        field = GF(65521)
        for n in range(1, 8):
            vs = field.rand_elems(n, rng, min=1)
            cs = [field.rand_elem(rng) for _ in range(n)]
            fs = [sum((c * v ** (i + 1) for c,v in zip(cs, vs)), field.zero()) for i in range(n)]
            self.assertEqual(solve_shifted_transposed_vandermonde(vs, fs), cs)

    def test_singular(self):
        field = GF(101)
        self.assertEqual(solve_shifted_transposed_vandermonde([], []), [])
        with self.assertRaises(DivisionByZero):
            solve_shifted_transposed_vandermonde([field(0)], [field(1)])
        with self.assertRaises(DivisionByZero):
            solve_shifted_transposed_vandermonde([field(3), field(3)], [field(1), field(2)])

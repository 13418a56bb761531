#!/usr/bin/env python3
#
#   Content and primitive part of integer polynomials
#

from functools import reduce
from typing import Dict, List, Tuple, Union

from mathhook.basic_types import gcd

# dense little-endian coefficient lists or sparse exponent maps
Coefficients = Union[List[int], Dict[Tuple[int, ...], int]]

def _values(coeffs : Coefficients):
    return coeffs.values() if isinstance(coeffs, dict) else coeffs

def extract_content(coeffs : Coefficients) -> int:
    """
    Non-negative GCD of the coefficients, 0 for the zero polynomial
    """
    return reduce(gcd, (c for c in _values(coeffs) if c != 0), 0)

def primitive_part(coeffs : Coefficients) -> Coefficients:
    return content_and_primitive(coeffs)[1]

def content_and_primitive(coeffs : Coefficients):
    """
    (c, pp) with c * pp == coeffs; pp keeps the sign of the input
    """
    c = extract_content(coeffs)
    if c == 0:
        return 0, type(coeffs)()
    if isinstance(coeffs, dict):
        return c, { m : v // c for m,v in coeffs.items() if v != 0 }
    return c, [v // c for v in coeffs]

########################################################################################################################
#   Unit Tests
########################################################################################################################

import random
import unittest

class TestContent(unittest.TestCase):

    def test_dense(self):
        # 2x + 4
        self.assertEqual(extract_content([4, 2]), 2)
        self.assertEqual(primitive_part([4, 2]), [2, 1])
        self.assertEqual(content_and_primitive([-6, 0, -9]), (3, [-2, 0, -3]))

    def test_sparse(self):
        f = { (2, 1) : 6, (0, 0) : -10 }
        self.assertEqual(extract_content(f), 2)
        self.assertEqual(primitive_part(f), { (2, 1) : 3, (0, 0) : -5 })

    def test_zero(self):
        self.assertEqual(extract_content([]), 0)
        self.assertEqual(content_and_primitive({}), (0, {}))
        self.assertEqual(primitive_part([]), [])

    def test_properties(self):
        rng = random.Random(5)
        for _ in range(100):
            f = [rng.randint(-50, 50) * 6 for _ in range(rng.randint(1, 6))]
            if all(v == 0 for v in f):
                continue
            c, pp = content_and_primitive(f)
            self.assertGreater(c, 0)
            self.assertEqual([c * v for v in pp], f)
            self.assertEqual(extract_content(pp), 1)

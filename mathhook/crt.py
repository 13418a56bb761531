#!/usr/bin/env python3
#
#   Chinese remaindering of polynomial coefficients
#

from typing import Dict, Hashable

from mathhook.basic_types import xgcd
from mathhook.errors import DivisionByZero

def symmetric_mod(a : int, m : int) -> int:
    """
    Representative of a mod m in (-m/2, m/2]
    """
    r = a % m
    return r - m if r > m // 2 else r

def crt_combine(r1 : int, m1 : int, r2 : int, m2 : int) -> int:
    """
    The unique x in [0, m1 * m2) with x = r1 mod m1 and x = r2 mod m2, for coprime m1, m2
    """
    g, inv, _ = xgcd(m1 % m2, m2)
    if g != 1:
        raise DivisionByZero(f"moduli {m1} and {m2} are not coprime")
    t = (r2 - r1) * inv % m2
    return (r1 + m1 * t) % (m1 * m2)

class CRTReconstructor:
    """
    Accumulates images of one polynomial under successive primes. Coefficients are keyed by degree or monomial, a key
    missing from an image stands for a zero coefficient.
    """

    def __init__(self):
        self.reset()

    def reset(self):
        self.modulus = 1
        self.coeffs : Dict[Hashable, int] = {}

    def combine(self, residues : Dict[Hashable, int], p : int) -> Dict[Hashable, int]:
        """
        Fold in an image mod p and return the current candidate with symmetric coefficients
        """
        if self.modulus == 1:
            self.coeffs = { k : v % p for k,v in residues.items() }
        else:
            keys = set(self.coeffs) | set(residues)
            self.coeffs = { k : crt_combine(self.coeffs.get(k, 0), self.modulus, residues.get(k, 0) % p, p) \
                for k in keys }
        self.modulus *= p
        return self.candidate()

    def candidate(self) -> Dict[Hashable, int]:
        out = {}
        for k,v in self.coeffs.items():
            v = symmetric_mod(v, self.modulus)
            if v != 0:
                out[k] = v
        return out

########################################################################################################################
#   Unit Tests
########################################################################################################################

import unittest

class TestCRT(unittest.TestCase):

    def test_symmetric(self):
        self.assertEqual(symmetric_mod(6, 7), -1)
        self.assertEqual(symmetric_mod(3, 7), 3)
        self.assertEqual(symmetric_mod(5, 10), 5)
        self.assertEqual(symmetric_mod(-5, 10), 5)

    def test_combine(self):
        self.assertEqual(crt_combine(3, 7, 5, 11), 38)
        for x in range(7 * 11):
            self.assertEqual(crt_combine(x % 7, 7, x % 11, 11), x)

    def test_not_coprime(self):
        with self.assertRaises(DivisionByZero):
            crt_combine(1, 6, 1, 9)

    def test_reconstructor(self):
        # 100 x^2 - 57 x + 3 recovered from two primes
        f = { 2 : 100, 1 : -57, 0 : 3 }
        crt = CRTReconstructor()
        first = crt.combine({ k : v % 13 for k,v in f.items() }, 13)
        self.assertNotEqual(first, f)
        self.assertEqual(crt.combine({ k : v % 17 for k,v in f.items() }, 17), f)
        self.assertEqual(crt.modulus, 13 * 17)

    def test_missing_keys(self):
        crt = CRTReconstructor()
        crt.combine({ 0 : 1, 1 : 2 }, 7)
        # coefficient 1 vanishes mod 11 and must still be combined as zero
        self.assertEqual(crt.combine({ 0 : 1 }, 11), { 0 : 1, 1 : -33 })
        crt.reset()
        self.assertEqual(crt.modulus, 1)
        self.assertEqual(crt.candidate(), {})

#!/usr/bin/env python3
#
#   Prime and evaluation point selection, unlucky trial detection
#

import logging
import random
from enum import Enum
from typing import Iterator, List, Optional, Sequence

from mathhook.basic_types import GF, FieldElement

logger = logging.getLogger(__name__)

_MR_BASES = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37)

def is_prime(n : int) -> bool:
    """
    Miller-Rabin with the first 12 primes as bases, deterministic for n < 3.3 * 10^24
    """
    if n < 2:
        return False
    for b in _MR_BASES:
        if n % b == 0:
            return n == b

    d, s = n - 1, 0
    while d % 2 == 0:
        d //= 2
        s += 1

    for a in _MR_BASES:
        x = pow(a, d, n)
        if x == 1 or x == n - 1:
            continue
        for _ in range(s - 1):
            x = x * x % n
            if x == n - 1:
                break
        else:
            return False
    return True

def primes_below(n : int, count : int) -> List[int]:
    """
    The `count` largest primes strictly below n, descending. Fewer if there are not enough.
    """
    out = []
    c = n - 1
    while c >= 2 and len(out) < count:
        if is_prime(c):
            out.append(c)
        c -= 1
    return out

# The 64 largest primes below 2^31, so products of two residues fit in 62 bits
LARGE_PRIMES = tuple(primes_below(2**31, 64))

########################################################################################################################
#   Prime selection
########################################################################################################################

class PrimeSelector:
    """
    Walks a prime table, skipping primes that divide either leading coefficient. Once the table is used up the search
    continues downward from its smallest prime; those extra primes are kept on this selector only.
    """

    def __init__(self, primes : Sequence[int] = LARGE_PRIMES, start : int = 0):
        assert len(primes) > 0
        self.primes = list(primes)
        self.idx = start

    def _prime_at(self, i : int) -> Optional[int]:
        while i >= len(self.primes):
            more = primes_below(min(self.primes), 1)
            if len(more) == 0:
                return None
            self.primes.append(more[0])
        return self.primes[i]

    def select_prime(self, lc_f : int, lc_g : int, excluded = ()) -> Optional[int]:
        while True:
            p = self._prime_at(self.idx)
            if p is None:
                logger.debug("prime supply exhausted after %d primes", self.idx)
                return None
            self.idx += 1
            if p in excluded:
                logger.debug("skipping excluded prime %d", p)
                continue
            if lc_f % p == 0 or lc_g % p == 0:
                logger.debug("skipping prime %d, divides a leading coefficient", p)
                continue
            return p

    def iter_primes(self, lc_f : int, lc_g : int, excluded = ()) -> Iterator[int]:
        while True:
            p = self.select_prime(lc_f, lc_g, excluded)
            if p is None:
                return
            yield p

########################################################################################################################
#   Evaluation point selection
########################################################################################################################

class PointSelector:
    """
    Hands out distinct elements of GF(p) that are not roots of a given polynomial
    """

    # random draws before falling back to a linear scan of what is left
    MAX_DRAWS = 64

    def __init__(self, field : GF, rng : Optional[random.Random] = None):
        self.field = field
        self.rng = rng or random.Random()
        self.used = set()

    def _ok(self, a, avoid):
        return avoid is None or not avoid.evaluate(a).is_zero()

    def select_point(self, avoid = None) -> Optional[FieldElement]:
        p = self.field.p
        if len(self.used) >= p:
            return None

        for _ in range(self.MAX_DRAWS):
            a = self.field.rand_elem(self.rng)
            if a.value in self.used:
                continue
            self.used.add(a.value)
            if self._ok(a, avoid):
                return a

        for v in range(p):
            if v in self.used:
                continue
            self.used.add(v)
            a = self.field(v)
            if self._ok(a, avoid):
                return a
        return None

########################################################################################################################
#   Trial history
########################################################################################################################

class Trial(Enum):
    ACCEPT = "accept"
    # lower degree than anything seen, accumulated images must be discarded
    RESTART = "restart"
    # higher degree than the running minimum, the image is dropped
    UNLUCKY = "unlucky"

class TrialHistory:
    """
    Ordered record of consumed primes or points with the degree of the image each produced. Degrees are ints for
    univariate images and lex leading monomials (tuples) for multivariate ones; both compare with < and >.
    """

    def __init__(self):
        self.entries = []
        self.min_degree = None

    def record(self, trial, degree) -> Trial:
        self.entries.append((trial, degree))

        if self.min_degree is None:
            self.min_degree = degree
            return Trial.ACCEPT
        if degree < self.min_degree:
            logger.debug("trial %s: degree %s below %s, restarting", trial, degree, self.min_degree)
            self.min_degree = degree
            return Trial.RESTART
        if degree > self.min_degree:
            logger.debug("trial %s: degree %s above %s, unlucky", trial, degree, self.min_degree)
            return Trial.UNLUCKY
        return Trial.ACCEPT

    def accepted(self):
        return [t for t,d in self.entries if d == self.min_degree]

    def unlucky(self):
        return [t for t,d in self.entries if d != self.min_degree]

    def reset(self):
        self.entries = []
        self.min_degree = None

########################################################################################################################
#   Unit Tests
########################################################################################################################

import unittest

from mathhook.poly_zp import PolyZp

class TestPrimes(unittest.TestCase):

    def test_is_prime(self):
        small = [n for n in range(100) if is_prime(n)]
        self.assertEqual(small, [2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41, 43, 47, 53, 59, 61, 67, 71, 73, 79,
                                 83, 89, 97])
        self.assertTrue(is_prime(2147483647))
        self.assertFalse(is_prime(2147483647 * 3))
        # strong pseudoprime to bases 2, 3, 5, 7
        self.assertFalse(is_prime(3215031751))

    def test_large_primes(self):
        self.assertEqual(len(LARGE_PRIMES), 64)
        self.assertEqual(LARGE_PRIMES[0], 2147483647)
        self.assertEqual(list(LARGE_PRIMES), sorted(LARGE_PRIMES, reverse=True))
        self.assertTrue(all(p < 2**31 for p in LARGE_PRIMES))

    def test_select_skips_divisors(self):
        sel = PrimeSelector([13, 11, 7, 5])
        # 13 divides lc_f, 11 divides lc_g
        self.assertEqual(sel.select_prime(26, 22), 7)
        self.assertEqual(sel.select_prime(26, 22, excluded=(5,)), 3)

    def test_iter_extends_then_stops(self):
        sel = PrimeSelector([7])
        self.assertEqual(list(sel.iter_primes(1, 1)), [7, 5, 3, 2])
        self.assertEqual(list(PrimeSelector([7]).iter_primes(3, 1)), [7, 5, 2])

    def test_start(self):
        sel = PrimeSelector(start=2)
        self.assertEqual(sel.select_prime(1, 1), LARGE_PRIMES[2])

class TestPointSelector(unittest.TestCase):

    def test_avoids_roots_and_repeats(self):
        p = 11
        # (x - 1)(x - 2)
        avoid = PolyZp.from_coeffs([2, -3, 1], p)
        sel = PointSelector(GF(p), random.Random(3))
        seen = []
        while True:
            a = sel.select_point(avoid)
            if a is None:
                break
            seen.append(a.value)
        self.assertEqual(sorted(seen), [0, 3, 4, 5, 6, 7, 8, 9, 10])

    def test_exhaustion(self):
        sel = PointSelector(GF(2), random.Random(0))
        self.assertIsNotNone(sel.select_point())
        self.assertIsNotNone(sel.select_point())
        self.assertIsNone(sel.select_point())

class TestTrialHistory(unittest.TestCase):

    def test_signals(self):
        h = TrialHistory()
        self.assertEqual(h.record(5, 2), Trial.ACCEPT)
        self.assertEqual(h.record(7, 1), Trial.RESTART)
        self.assertEqual(h.record(11, 2), Trial.UNLUCKY)
        self.assertEqual(h.record(13, 1), Trial.ACCEPT)
        self.assertEqual(h.accepted(), [7, 13])
        self.assertEqual(h.unlucky(), [5, 11])

    def test_monomial_degrees(self):
        h = TrialHistory()
        self.assertEqual(h.record(0, (1, 2)), Trial.ACCEPT)
        self.assertEqual(h.record(1, (2, 0)), Trial.UNLUCKY)
        self.assertEqual(h.record(2, (1, 0)), Trial.RESTART)

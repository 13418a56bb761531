#!/usr/bin/env python3
#
#   Deciding between dense and sparse interpolation
#

import logging
import math
from enum import Enum
from typing import Dict, Iterable, Tuple

import numpy as np

from mathhook.config import SPARSITY_THRESHOLD

logger = logging.getLogger(__name__)

class Strategy(Enum):
    DENSE = "dense"
    SPARSE = "sparse"

def exponent_matrix(monomials : Iterable[Tuple[int, ...]], n_vars : int) -> np.ndarray:
    """
    One row per monomial, one column per variable
    """
    rows = list(monomials)
    if len(rows) == 0:
        return np.zeros((0, n_vars), dtype=np.int64)
    return np.array(rows, dtype=np.int64).reshape(len(rows), n_vars)

def degree_vector(terms : Dict[Tuple[int, ...], object], n_vars : int) -> np.ndarray:
    """
    Degree of the polynomial in each variable, zeros for the zero polynomial
    """
    exps = exponent_matrix(terms.keys(), n_vars)
    if exps.shape[0] == 0:
        return np.zeros(n_vars, dtype=np.int64)
    return exps.max(axis=0)

class SparsityAnalyzer:
    def __init__(self, threshold : float = SPARSITY_THRESHOLD):
        self.threshold = threshold

    def density(self, terms : Dict[Tuple[int, ...], object]) -> float:
        """
        Number of terms over the number of monomials in the degree box of the polynomial
        """
        if len(terms) == 0:
            return 0.0
        n_vars = len(next(iter(terms)))
        box = math.prod(int(d) + 1 for d in degree_vector(terms, n_vars))
        return len(terms) / box

    def is_sparse(self, terms) -> bool:
        return self.density(terms) < self.threshold

    def choose_strategy(self, *polys) -> Strategy:
        densities = [self.density(t) for t in polys]
        strategy = Strategy.SPARSE if all(d < self.threshold for d in densities) else Strategy.DENSE
        logger.debug("densities %s, using %s interpolation", densities, strategy.value)
        return strategy

########################################################################################################################
#   Unit Tests
########################################################################################################################

import unittest

class TestSparsity(unittest.TestCase):

    def test_degree_vector(self):
        terms = { (2, 0, 1) : 1, (0, 3, 0) : 5, (1, 1, 1) : -2 }
        self.assertEqual(degree_vector(terms, 3).tolist(), [2, 3, 1])
        self.assertEqual(degree_vector({}, 2).tolist(), [0, 0])

    def test_density(self):
        an = SparsityAnalyzer()
        # x^2 y + 1 : 2 terms in a 3 x 2 box
        self.assertAlmostEqual(an.density({ (2, 1) : 1, (0, 0) : 1 }), 2 / 6)
        # dense bivariate of degree 1 in each variable
        dense = { (1, 1) : 1, (1, 0) : 2, (0, 1) : 3, (0, 0) : 4 }
        self.assertEqual(an.density(dense), 1.0)
        self.assertFalse(an.is_sparse(dense))
        self.assertEqual(an.density({}), 0.0)

    def test_strategy(self):
        an = SparsityAnalyzer(0.3)
        sparse = { (9, 0, 0) : 1, (0, 9, 0) : 1, (0, 0, 9) : 1 }
        dense = { (1, 0) : 1, (0, 0) : 1 }
        self.assertTrue(an.is_sparse(sparse))
        self.assertEqual(an.choose_strategy(sparse, sparse), Strategy.SPARSE)
        self.assertEqual(an.choose_strategy(sparse, dense), Strategy.DENSE)

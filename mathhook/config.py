#!/usr/bin/env python3
#
#   Tunables for the modular GCD algorithms
#

from dataclasses import dataclass
from typing import Optional, Tuple

from mathhook.primes import LARGE_PRIMES

# Primes tried by one CRT reconstruction before giving up
MAX_CRT_ITERATIONS = 64
# Evaluation points tried per eliminated variable, per prime
MAX_EVALUATION_POINTS = 128
# Consecutive identical reconstructions required before trial division
STABILITY_THRESHOLD = 2
# Fraction of non-zero terms below which sparse interpolation is used
SPARSITY_THRESHOLD = 0.3
# Deepest variable peeling allowed
MAX_VARIABLES = 32

@dataclass
class ModularGcdConfig:
    max_iterations : int = MAX_CRT_ITERATIONS
    stability_threshold : int = STABILITY_THRESHOLD
    starting_prime_idx : int = 0
    primes : Tuple[int, ...] = LARGE_PRIMES
    # >1 computes independent prime trials on a thread pool
    workers : int = 1
    # seeds evaluation point selection, None draws fresh randomness
    seed : Optional[int] = None
    # never used as moduli, on top of the primes dividing a leading coefficient
    excluded_primes : Tuple[int, ...] = ()

    def __post_init__(self):
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be positive")
        if self.stability_threshold < 1:
            raise ValueError("stability_threshold must be positive")
        if self.workers < 1:
            raise ValueError("workers must be positive")

@dataclass
class MultivariateGcdConfig(ModularGcdConfig):
    max_eval_points : int = MAX_EVALUATION_POINTS
    use_sparse : bool = True
    sparsity_threshold : float = SPARSITY_THRESHOLD
    max_variables : int = MAX_VARIABLES
    enable_variable_reordering : bool = True

    def __post_init__(self):
        super().__post_init__()
        if self.max_eval_points < 1:
            raise ValueError("max_eval_points must be positive")
        if not 0.0 <= self.sparsity_threshold <= 1.0:
            raise ValueError("sparsity_threshold must lie in [0, 1]")

########################################################################################################################
#   Unit Tests
########################################################################################################################

import unittest

class TestConfig(unittest.TestCase):

    def test_defaults(self):
        config = MultivariateGcdConfig()
        self.assertEqual(config.stability_threshold, 2)
        self.assertEqual(config.max_iterations, MAX_CRT_ITERATIONS)
        self.assertTrue(config.use_sparse)
        self.assertEqual(config.primes[0], 2147483647)
        self.assertEqual(config.excluded_primes, ())

    def test_validation(self):
        with self.assertRaises(ValueError):
            ModularGcdConfig(max_iterations=0)
        with self.assertRaises(ValueError):
            MultivariateGcdConfig(sparsity_threshold=1.5)

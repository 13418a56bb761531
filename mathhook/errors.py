#!/usr/bin/env python3
#
#   Errors raised across the polynomial GCD boundary
#

class PolynomialError(ArithmeticError):
    """
    Base class for every error that can escape a GCD computation
    """

class NotPolynomial(PolynomialError, TypeError):
    def __init__(self, expr):
        super().__init__(f"{expr!r} is not a polynomial with integer coefficients")
        self.expr = expr

class DivisionByZero(PolynomialError, ZeroDivisionError):
    def __init__(self, what : str = "division by zero"):
        super().__init__(what)

class MaxIterationsExceeded(PolynomialError):
    """
    A retry loop ran out of primes or evaluation points before producing a verified result
    """

    def __init__(self, operation : str, limit : int):
        super().__init__(f"{operation} did not converge within {limit} iterations")
        self.operation = operation
        self.limit = limit

########################################################################################################################
#   Unit Tests
########################################################################################################################

import unittest

class TestErrors(unittest.TestCase):

    def test_hierarchy(self):
        self.assertTrue(issubclass(DivisionByZero, ZeroDivisionError))
        self.assertTrue(issubclass(NotPolynomial, TypeError))
        self.assertTrue(issubclass(MaxIterationsExceeded, PolynomialError))

    def test_fields(self):
        e = MaxIterationsExceeded("univariate modular GCD", 5)
        self.assertEqual(e.operation, "univariate modular GCD")
        self.assertEqual(e.limit, 5)
        self.assertEqual(NotPolynomial(1.5).expr, 1.5)

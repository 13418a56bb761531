#!/usr/bin/env python3
#
#   Modular polynomial GCD over the integers
#

from mathhook.basic_types import GF, ZZ, FieldElement, Polynomial, PolynomialRing
from mathhook.config import ModularGcdConfig, MultivariateGcdConfig
from mathhook.errors import DivisionByZero, MaxIterationsExceeded, NotPolynomial, PolynomialError
from mathhook.gcd_ops import (are_coprime, cofactors, factor_gcd, polynomial_div, polynomial_gcd, polynomial_lcm,
                              polynomial_pseudo_div, polynomial_quo, polynomial_rem)
from mathhook.modular_gcd import GcdResult, modular_gcd_univariate
from mathhook.poly_zp import PolyZp
from mathhook.zippel_gcd import multivariate_gcd

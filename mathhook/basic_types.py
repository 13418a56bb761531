#!/usr/bin/env python3

import operator
import random
from functools import reduce
from typing import Dict, List, Optional, Tuple, Union

from mathhook.errors import DivisionByZero

def prod(l, start=1):
    return reduce(operator.mul, l, start)

########################################################################################################################
#   Integer Arithmetic
########################################################################################################################

def gcd(a, b):
    while b != 0:
        a %= b
        a,b = b,a
    return abs(a)

def xgcd(a, b):
    prevx, x = 1, 0
    prevy, y = 0, 1
    while b != 0:
        q, r = divmod(a, b)
        x, prevx = prevx - q * x, x
        y, prevy = prevy - q * y, y
        a, b = b, r
    return a, prevx, prevy

########################################################################################################################
#   Prime Field Arithmetic
########################################################################################################################

class FieldElement:
    """
    Element of GF(p), always held in canonical form 0 <= value < modulus
    """

    __slots__ = ("value", "modulus")

    def __init__(self, value : int, modulus : int):
        assert modulus > 1 , "modulus must be > 1"
        self.modulus = modulus
        self.value = value % modulus

    def __str__(self):
        return str(self.value)

    def __repr__(self):
        return f"FieldElement({self.value}, {self.modulus})"

    def __hash__(self):
        return hash((self.value, self.modulus))

    def __int__(self):
        return self.value

    def __bool__(self):
        return self.value != 0

    def cvt_other(self, other):
        if isinstance(other, int):
            return FieldElement(other, self.modulus)
        assert isinstance(other, FieldElement) , f"Cannot combine {type(self)} and {type(other)}"
        assert self.modulus == other.modulus , "Field elements must share a modulus"
        return other

    def is_zero(self):
        return self.value == 0

    def is_one(self):
        return self.value == 1

    def add(self, other):
        other = self.cvt_other(other)
        r = self.value + other.value
        if r >= self.modulus:
            r -= self.modulus
        return FieldElement(r, self.modulus)

    def sub(self, other):
        other = self.cvt_other(other)
        r = self.value - other.value
        if r < 0:
            r += self.modulus
        return FieldElement(r, self.modulus)

    def mul(self, other):
        other = self.cvt_other(other)
        return FieldElement(self.value * other.value, self.modulus)

    def div(self, other):
        other = self.cvt_other(other)
        return self.mul(other.inverse())

    def neg(self):
        return FieldElement(self.modulus - self.value, self.modulus)

    def inverse(self):
        """
        Multiplicative inverse by the extended Euclidean algorithm
        """
        if self.value == 0:
            raise DivisionByZero(f"0 has no inverse modulo {self.modulus}")
        g,x,_ = xgcd(self.value, self.modulus)
        assert g == 1 , "modulus must be prime"
        return FieldElement(x, self.modulus)

    def to_symmetric(self):
        """
        Representative in (-p/2, p/2]
        """
        if self.value > self.modulus // 2:
            return self.value - self.modulus
        return self.value

    __add__ = add
    __radd__ = add
    __sub__ = sub
    __mul__ = mul
    __rmul__ = mul
    __truediv__ = div
    __neg__ = neg
    __invert__ = inverse

    def __rsub__(self, other):
        return self.cvt_other(other).sub(self)

    def __rtruediv__(self, other):
        return self.cvt_other(other).div(self)

    def __pow__(self, other):
        assert isinstance(other, int)
        if other < 0:
            return self.inverse() ** -other
        return FieldElement(pow(self.value, other, self.modulus), self.modulus)

    def __eq__(self, other):
        if isinstance(other, FieldElement):
            return self.modulus == other.modulus and self.value == other.value
        elif isinstance(other, int):
            # Test equality mod p
            return self.value == other % self.modulus
        return NotImplemented

########################################################################################################################
#   Coefficient Rings
########################################################################################################################

class CoefficientRing:
    def zero(self):
        return self(0)

    def one(self):
        return self(1)

class IntegerRing(CoefficientRing):
    def __call__(self, arg):
        if isinstance(arg, int):
            return int(arg)
        raise ValueError(f"{arg!r} cannot be a member of the integers")

    def __eq__(self, other):
        return isinstance(other, IntegerRing)

    def __hash__(self):
        return hash("ZZ")

    def __repr__(self):
        return "ZZ"

    def __str__(self):
        return "The Integers"

ZZ = IntegerRing()

class GF(CoefficientRing):
    def __init__(self, p : int):
        assert p > 1
        self.p = p

    def __repr__(self):
        return f"GF({self.p})"

    def __str__(self):
        return repr(self)

    def __eq__(self, other):
        if isinstance(other, GF):
            return self.p == other.p
        return False

    def __hash__(self):
        return hash(("GF", self.p))

    def __call__(self, arg : Union[FieldElement, int]):
        if isinstance(arg, FieldElement):
            return arg if arg.modulus == self.p else FieldElement(arg.value, self.p)
        elif isinstance(arg, int):
            return FieldElement(arg, self.p)
        raise ValueError(f"{arg!r} cannot be a member of a prime field")

    def rand_elem(self, rng : Optional[random.Random] = None, min : int = 0):
        rng = rng or random
        return FieldElement(rng.randint(min, self.p - 1), self.p)

    def rand_elems(self, num : int, rng : Optional[random.Random] = None, min : int = 0):
        rng = rng or random
        return [FieldElement(x, self.p) for x in rng.sample(range(min, self.p), num)]

########################################################################################################################
#   Polynomial Rings
########################################################################################################################

Exponents = Tuple[int, ...]

class PolynomialRing:
    def __init__(self, coeff_ring : CoefficientRing, var_names : List[str]):
        self.coeff_ring = coeff_ring
        self.var_names = list(var_names)
        self.n_vars = len(self.var_names)
        assert len(set(self.var_names)) == self.n_vars , "Variable names must be distinct"
        self.mon0 = (0,) * self.n_vars

    def __call__(self, element):
        if isinstance(element, Polynomial):
            if element.ring == self:
                return element
            # re-embed by variable name
            terms = {}
            for degs,coeff in element.terms.items():
                new_degs = [0] * self.n_vars
                for name,d in zip(element.ring.var_names, degs):
                    if d == 0:
                        continue
                    if name not in self.var_names:
                        raise ValueError(f"{name} is not a variable of {self}")
                    new_degs[self.var_names.index(name)] = d
                terms[tuple(new_degs)] = self.coeff_ring(coeff)
            return Polynomial(self, terms)
        return Polynomial(self, {self.mon0 : self.coeff_ring(element)})

    def __eq__(self, other):
        if not isinstance(other, PolynomialRing):
            return False
        return self.coeff_ring == other.coeff_ring and self.var_names == other.var_names

    def __hash__(self):
        return hash((self.coeff_ring, tuple(self.var_names)))

    def index(self, name : str):
        return self.var_names.index(name)

    def variables(self):
        variables = []
        for i in range(self.n_vars):
            degrees = [0] * self.n_vars
            degrees[i] = 1
            variables.append(Polynomial(self, {tuple(degrees) : self.coeff_ring(1)}))
        return tuple(variables)

    def __str__(self):
        return f"Polynomial Ring in {self.n_vars} variable(s) {self.var_names} over {self.coeff_ring}"

    def __repr__(self) -> str:
        return f"PolynomialRing({repr(self.coeff_ring)}, {repr(self.var_names)})"

########################################################################################################################
#   Polynomial
########################################################################################################################

def monomial_str(ring : PolynomialRing, degrees : Exponents):
    if all(deg == 0 for deg in degrees):
        return "1"
    return " ".join([f"{name}^{{{degree}}}" if degree != 1 else f"{name}" \
        for name,degree in zip(ring.var_names, degrees) if degree != 0])

class Polynomial:
    """
    Sparse polynomial, a map from exponent tuples to non-zero coefficients
    """

    def __init__(self, ring : PolynomialRing, terms : Dict[Exponents, object]):
        self.ring = ring
        zero = ring.coeff_ring.zero()
        self.terms = {}
        for degs,coeff in terms.items():
            degs = tuple(degs)
            assert len(degs) == ring.n_vars , "Degrees should match number of variables"
            assert all(d >= 0 for d in degs) , f"Degrees should be nonnegative, got {degs}"
            coeff = ring.coeff_ring(coeff)
            if coeff != zero:
                self.terms[degs] = coeff

    @staticmethod
    def ZERO(ring):
        return Polynomial(ring, {})

    def __hash__(self):
        return hash(frozenset(self.terms.items()))

    def monomials(self):
        """
        Exponent tuples in decreasing lex order
        """
        return sorted(self.terms, reverse=True)

    def __getitem__(self, key):
        if isinstance(key, int):
            key = (key,)
        return self.terms.get(tuple(key), self.ring.coeff_ring.zero())

    def __str__(self):
        if self.is_zero():
            return "0"
        terms = []
        for degs in self.monomials():
            coeff = self.terms[degs]
            if all(d == 0 for d in degs):
                terms.append(f"{coeff}")
            elif coeff == 1:
                terms.append(monomial_str(self.ring, degs))
            elif coeff == -1:
                terms.append(f"-{monomial_str(self.ring, degs)}")
            else:
                terms.append(f"{coeff} {monomial_str(self.ring, degs)}")
        return " + ".join(terms)

    def __repr__(self):
        return f"Polynomial({repr(self.ring)}, {repr(self.terms)})"

    def __call__(self, x):
        if not isinstance(x, (tuple, list)):
            x = (x,)
        assert len(x) == self.ring.n_vars
        return sum((c * prod(xi ** d for xi,d in zip(x, degs)) for degs,c in self.terms.items()),
                   self.ring.coeff_ring.zero())

    def cvt_other(self, other):
        if not isinstance(other, Polynomial):
            other = self.ring(other)
        assert self.ring == other.ring , "Polynomial rings should match"
        return other

    def __add__(self, other):
        other = self.cvt_other(other)
        terms = dict(self.terms)
        for degs,c in other.terms.items():
            terms[degs] = terms.get(degs, 0) + c
        return Polynomial(self.ring, terms)

    def __radd__(self, other):
        return self.__add__(other)

    def __neg__(self):
        return Polynomial(self.ring, {degs : -c for degs,c in self.terms.items()})

    def __sub__(self, other):
        return self + (-self.cvt_other(other))

    def __rsub__(self, other):
        return self.cvt_other(other) - self

    def __mul__(self, other):
        other = self.cvt_other(other)
        terms = {}
        for d1,c1 in self.terms.items():
            for d2,c2 in other.terms.items():
                degs = tuple(a + b for a,b in zip(d1, d2))
                terms[degs] = terms.get(degs, 0) + c1 * c2
        return Polynomial(self.ring, terms)

    def __rmul__(self, other):
        # Polynomial rings are commutative
        return self * other

    def __pow__(self, power : int):
        assert isinstance(power, int) and power >= 0
        p = self.ring(1)
        base = self
        # exponentiation by squaring
        while power > 0:
            if power % 2 == 1:
                p *= base
            base *= base
            power //= 2
        return p

    def __eq__(self, other):
        if isinstance(other, int):
            other = self.ring(other)
        if not isinstance(other, Polynomial):
            return NotImplemented
        return self.ring == other.ring and self.terms == other.terms

    def is_zero(self):
        return len(self.terms) == 0

    def is_constant(self):
        return all(degs == self.ring.mon0 for degs in self.terms)

    def leading_monomial(self):
        """
        Largest exponent tuple in lex order, the first variable being most significant
        """
        if self.is_zero():
            return self.ring.mon0
        return max(self.terms)

    def leading_coeff(self):
        if self.is_zero():
            return self.ring.coeff_ring.zero()
        return self.terms[self.leading_monomial()]

    def degree(self):
        # total degree, -1 for the zero polynomial
        if self.is_zero():
            return -1
        return max(sum(degs) for degs in self.terms)

    def degree_in(self, var):
        if isinstance(var, str):
            var = self.ring.index(var)
        return max((degs[var] for degs in self.terms), default=0)

    def variables_present(self):
        """
        Indices of the variables this polynomial actually depends on
        """
        return [i for i in range(self.ring.n_vars) if any(degs[i] != 0 for degs in self.terms)]

########################################################################################################################
#   Unit Tests
########################################################################################################################

import unittest

class TestGCD(unittest.TestCase):

    def test_gcd(self):
        self.assertEqual(gcd(4, 3), 1)
        self.assertEqual(gcd(12, 3), 3)
        self.assertEqual(gcd(21, 9), 3)
        self.assertEqual(gcd(0, 5), 5)
        self.assertEqual(gcd(0, 0), 0)
        self.assertEqual(gcd(1, -2), gcd(1, 2))
        self.assertEqual(gcd(-12, -18), 6)

    def test_xgcd(self):
        self.assertEqual(xgcd(30, 18), (6, -1, 2))
        self.assertEqual(xgcd(18, 30), (6, 2, -1))
        for a,b in ((240, 46), (17, 5), (1, 99)):
            g,x,y = xgcd(a, b)
            self.assertEqual(a * x + b * y, g)

class TestFieldElement(unittest.TestCase):

    def test_canonical(self):
        self.assertEqual(FieldElement(10, 7).value, 3)
        self.assertEqual(FieldElement(-3, 7).value, 4)
        self.assertEqual(FieldElement(-14, 7).value, 0)

    def test_addition(self):
        rng = random.Random(1)
        for p in (2, 3, 7, 65521, 2147483647):
            for _ in range(200):
                a = rng.randint(-10**6, 10**6)
                b = rng.randint(-10**6, 10**6)
                self.assertEqual(FieldElement(a, p) + FieldElement(b, p), FieldElement((a + b) % p, p))

    def test_subtraction(self):
        rng = random.Random(2)
        for _ in range(500):
            p = rng.choice((3, 5, 7, 65521))
            a = rng.randint(0, p - 1)
            b = rng.randint(0, p - 1)
            r = FieldElement(a, p) - FieldElement(b, p)
            self.assertEqual(r, (a - b) % p)
            self.assertTrue(0 <= r.value < p)

    def test_multiplication(self):
        rng = random.Random(3)
        for _ in range(500):
            p = rng.choice((3, 5, 7, 65521))
            a = rng.randint(0, 10**5)
            b = rng.randint(0, 10**5)
            self.assertEqual(FieldElement(a, p) * FieldElement(b, p), (a * b) % p)

    def test_inversion(self):
        self.assertEqual(FieldElement(5, 7).inverse(), FieldElement(3, 7))
        for p in (7, 65521, 2147483647):
            for a in (1, 2, 3, p - 1, p // 2):
                x = FieldElement(a, p)
                self.assertEqual(x * x.inverse(), FieldElement(1, p))
                self.assertEqual(~~x, x)

    def test_inverse_of_zero(self):
        with self.assertRaises(DivisionByZero):
            FieldElement(0, 7).inverse()
        with self.assertRaises(ZeroDivisionError):
            FieldElement(3, 7) / FieldElement(14, 7)

    def test_division(self):
        x1 = FieldElement(4, 65521)
        x2 = FieldElement(9, 65521)
        self.assertEqual(x1.div(x2), x1 * x2.inverse())
        self.assertEqual((x1 / x2) * x2, x1)

    def test_symmetric(self):
        self.assertEqual(FieldElement(6, 7).to_symmetric(), -1)
        self.assertEqual(FieldElement(3, 7).to_symmetric(), 3)
        self.assertEqual(FieldElement(4, 7).to_symmetric(), -3)

    def test_negation_and_power(self):
        self.assertEqual(-FieldElement(3, 7), 4)
        self.assertEqual(-FieldElement(0, 7), 0)
        self.assertEqual(FieldElement(2, 7) ** 3, 1)
        self.assertEqual(FieldElement(3, 7) ** -1, FieldElement(5, 7))

    def test_mixed_moduli(self):
        with self.assertRaises(AssertionError):
            FieldElement(1, 7) + FieldElement(1, 11)

class TestPolynomial(unittest.TestCase):

    def setUp(self):
        self.R = PolynomialRing(ZZ, ["x", "y"])
        self.x, self.y = self.R.variables()

    def test_arith(self):
        x, y = self.x, self.y
        p = (x + 1) * (x - 1)
        self.assertEqual(p, x**2 - 1)
        self.assertEqual((x + y)**2, x**2 + 2*x*y + y**2)
        self.assertEqual(x - x, 0)
        self.assertTrue((x - x).is_zero())

    def test_leading(self):
        x, y = self.x, self.y
        p = 3*x*y**2 - 5*x**2 + y**7
        self.assertEqual(p.leading_monomial(), (2, 0))
        self.assertEqual(p.leading_coeff(), -5)
        self.assertEqual(p.degree(), 7)
        self.assertEqual(p.degree_in("y"), 7)
        self.assertEqual(p.variables_present(), [0, 1])

    def test_eval_and_str(self):
        x, y = self.x, self.y
        p = x**2*y - 2*y + 4
        self.assertEqual(p((2, 3)), 12 - 6 + 4)
        self.assertEqual(str(x**2*y - 2*y + 4), "x^{2} y + -2 y + 4")
        self.assertEqual(str(self.R(0)), "0")

    def test_reembed(self):
        S = PolynomialRing(ZZ, ["y", "x", "z"])
        p = self.x**2 + 3*self.y
        q = S(p)
        self.assertEqual(q.terms, {(0, 2, 0) : 1, (1, 0, 0) : 3})

    def test_integer_coefficients_only(self):
        with self.assertRaises(ValueError):
            self.R(1.5)

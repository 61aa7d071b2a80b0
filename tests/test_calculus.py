"""Unit tests for differentiation, integration, summation and product."""

import math
import unittest
from unittest import mock

from calculus import (
    ConstantAllocator, definite_integral, derivative_at, differentiate,
    index_range, indefinite_integral, integrate, numeric_integral, product,
    product_of, sum_of, summation,
)
from expr import (
    Abs, E, Fraction, Integer, Log, ONE, Perm, Power, Product, Sum, Trig, Variable, ZERO,
)
from parser import parse_text
from results import MalformedExpressionError

X = Variable("x")
I = Variable("i")


class TestDifferentiation(unittest.TestCase):
    """Test symbolic derivatives."""

    def test_power_rule(self):
        self.assertEqual(differentiate(parse_text("x^3"), "x"), Product((Integer(3), Power(X, Integer(2)))))

    def test_constant_factor(self):
        self.assertEqual(differentiate(parse_text("3x^2"), "x"), Product((Integer(6), X)))

    def test_other_variables_are_constants(self):
        self.assertEqual(differentiate(parse_text("xy"), "x"), Variable("y"))
        self.assertEqual(differentiate(parse_text("y^2"), "x"), ZERO)

    def test_trig(self):
        self.assertEqual(differentiate(parse_text("sin(x)"), "x"), Trig("cos", X))

    def test_natural_log(self):
        self.assertEqual(differentiate(parse_text("ln(x)"), "x"), Power(X, Integer(-1)))

    def test_exponential(self):
        d = differentiate(parse_text("e^x"), "x")
        self.assertEqual(d, Power(E, X))

    def test_unsupported(self):
        self.assertIsNone(differentiate(Perm(X, Integer(2)), "x"))

    def test_derivative_at_point(self):
        self.assertEqual(derivative_at(parse_text("x^2"), "x", Integer(2)), Integer(4))

    def test_multivariable_point(self):
        d = differentiate(parse_text("xy+yz+x^2z"), "x")
        for name, value in (("x", 2), ("y", 3), ("z", 5)):
            d = d.substitute(name, Integer(value))
        self.assertEqual(d.simplify(), Integer(23))


class TestIntegration(unittest.TestCase):
    """Test antiderivatives and definite integrals."""

    def test_polynomial(self):
        self.assertEqual(integrate(X, "x"), Product((Fraction(1, 2), Power(X, Integer(2)))))

    def test_constant(self):
        self.assertEqual(integrate(Integer(3), "x"), Product((Integer(3), X)))

    def test_cos(self):
        self.assertEqual(integrate(Trig("cos", X), "x"), Trig("sin", X))

    def test_reciprocal(self):
        self.assertEqual(integrate(parse_text("1/x"), "x"), Log(E, Abs(X)))

    def test_exponential_of_linear(self):
        f = integrate(parse_text("e^(2x)"), "x")
        self.assertAlmostEqual(float(f.to_float({"x": 0.0})), 0.5)

    def test_no_rule(self):
        self.assertIsNone(integrate(parse_text("x^x"), "x"))

    def test_indefinite_adds_fresh_constant(self):
        allocator = ConstantAllocator()
        first = indefinite_integral(X, "x", allocator)
        second = indefinite_integral(X, "x", allocator)
        self.assertIn("c0", first.free_variables())
        self.assertIn("c1", second.free_variables())

    def test_definite(self):
        e = parse_text("x^2+2x")
        self.assertEqual(definite_integral(e, "x", ZERO, ONE), Fraction(4, 3))

    def test_definite_reversed(self):
        self.assertEqual(definite_integral(X, "x", ONE, ZERO), Fraction(-1, 2))

    def test_definite_without_antiderivative(self):
        self.assertIsNone(definite_integral(parse_text("x^x"), "x", ONE, Integer(2)))

    def test_simpson(self):
        value = numeric_integral(parse_text("x^2"), "x", ZERO, ONE)
        self.assertAlmostEqual(value, 1 / 3, places=9)

    def test_simpson_reversed_bounds(self):
        value = numeric_integral(parse_text("sin(x)"), "x", parse_text("pi"), ZERO)
        self.assertAlmostEqual(value, -2.0, places=6)


class TestConstantAllocator(unittest.TestCase):
    """Test integration-constant naming."""

    def test_sequence_and_reset(self):
        allocator = ConstantAllocator()
        self.assertEqual(allocator.next(), Variable("c0"))
        self.assertEqual(allocator.next(), Variable("c1"))
        allocator.reset()
        self.assertEqual(allocator.next(), Variable("c0"))


class TestSummationAndProduct(unittest.TestCase):
    """Test enumeration over integer ranges."""

    def test_summation(self):
        self.assertEqual(summation(I, "i", ONE, Integer(100)), Integer(5050))

    def test_symbolic_body(self):
        body = parse_text("xy/2")
        self.assertEqual(summation(body, "x", Integer(2), Integer(3)),
                         Product((Fraction(5, 2), Variable("y"))))

    def test_product(self):
        self.assertEqual(product(I, "i", ONE, Integer(5)), Integer(120))

    def test_empty_range(self):
        self.assertEqual(summation(I, "i", Integer(3), ONE), ZERO)
        self.assertEqual(product(I, "i", Integer(3), ONE), ONE)

    def test_non_integer_bounds_give_identity(self):
        self.assertEqual(summation(I, "i", Fraction(1, 2), Integer(3)), ZERO)
        self.assertEqual(product(I, "i", Fraction(1, 2), Integer(3)), ONE)

    def test_range_limit(self):
        with mock.patch("config.MAX_ENUMERATION_TERMS", 10):
            with self.assertRaises(MalformedExpressionError):
                summation(I, "i", ONE, Integer(11))
            self.assertEqual(summation(I, "i", ONE, Integer(10)), Integer(55))

    def test_summation_of_reciprocals(self):
        value = summation(parse_text("1/i"), "i", ONE, Integer(3))
        self.assertEqual(value, Fraction(11, 6))
        self.assertFalse(math.isinf(value.numeric()))

    def test_index_range(self):
        self.assertEqual(list(index_range(Integer(-1), Integer(2))), [-1, 0, 1, 2])
        self.assertEqual(len(index_range(X, Integer(2))), 0)

    def test_combining_values(self):
        self.assertEqual(sum_of([]), ZERO)
        self.assertEqual(product_of([]), ONE)
        self.assertEqual(sum_of([X, X, ONE]), Sum((Product((Integer(2), X)), ONE)))


if __name__ == "__main__":
    unittest.main()

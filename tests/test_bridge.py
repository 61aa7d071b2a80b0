"""Unit tests for node-tree conversion and rendering."""

import unittest

from bridge import Converter, convert, to_math_node
from calculus import ConstantAllocator
from expr import (
    Fraction, Integer, MINUS_ONE, PI, Power, Product, Root, Sum, Trig, Variable,
)
from formatting import FormatConfig, NumberFormat
from nodes import (
    AnsNode, CombinationNode, ConstantNode, DerivativeNode, ExponentNode,
    FractionNode, IntegralNode, LiteralNode, LogNode, ParenthesisNode,
    PermutationNode, ProductNode, RootNode, SummationNode, TrigNode,
    nodes_to_text,
)
from results import MalformedExpressionError

X = Variable("x")
CFG = FormatConfig()


def lit(text):
    return [LiteralNode(text)]


class TestConvertStructuredNodes(unittest.TestCase):
    """Test conversion of editor nodes into expressions."""

    def test_fraction_node(self):
        self.assertEqual(convert([FractionNode(lit("1"), lit("3"))]), Fraction(1, 3))

    def test_exponent_with_implicit_product(self):
        nodes = [LiteralNode("3"), ExponentNode(lit("x"), lit("2"))]
        self.assertEqual(convert(nodes), Product((Integer(3), Power(X, Integer(2)))))

    def test_parenthesis_node(self):
        nodes = [LiteralNode("2"), ParenthesisNode(lit("1+x"))]
        self.assertEqual(convert(nodes), Sum((Integer(2), Product((Integer(2), X)))))

    def test_root_with_index(self):
        self.assertEqual(convert([RootNode(lit("27"), lit("3"), False)]), Integer(3))
        self.assertEqual(convert([RootNode(lit("8"), [], True)]), Product((Integer(2), Root(Integer(2)))))

    def test_log_nodes(self):
        self.assertEqual(convert([LogNode(lit("8"), lit("2"), False)]), Integer(3))
        self.assertEqual(convert([LogNode(lit("1000"), [], False)]), Integer(3))

    def test_trig_node(self):
        self.assertEqual(convert([TrigNode("cos", [ConstantNode("π")])]), MINUS_ONE)
        self.assertEqual(convert([TrigNode("abs", lit("-4"))]), Integer(4))

    def test_unknown_trig_function(self):
        with self.assertRaises(MalformedExpressionError):
            convert([TrigNode("foo", lit("1"))])

    def test_counting_nodes(self):
        self.assertEqual(convert([PermutationNode(lit("5"), lit("2"))]), Integer(20))
        self.assertEqual(convert([CombinationNode(lit("5"), lit("2"))]), Integer(10))

    def test_constants(self):
        self.assertEqual(convert([ConstantNode("π")]), PI)
        with self.assertRaises(MalformedExpressionError):
            convert([ConstantNode("?")])

    def test_ans_node(self):
        nodes = [AnsNode(lit("1")), LiteralNode("+1")]
        self.assertEqual(convert(nodes, {1: Integer(41)}), Integer(42))
        self.assertEqual(convert([AnsNode(lit("2"))]), Variable("ans2"))

    def test_empty_slot(self):
        with self.assertRaises(MalformedExpressionError):
            convert([FractionNode(lit("1"), [])])


class TestConvertCalculusNodes(unittest.TestCase):
    """Test derivative, integral, summation and product nodes."""

    def test_derivative(self):
        node = DerivativeNode(lit("x"), [], lit("3x^2"))
        self.assertEqual(convert([node]), Product((Integer(6), X)))

    def test_derivative_default_variable_and_point(self):
        node = DerivativeNode([], lit("2"), lit("x^2"))
        self.assertEqual(convert([node]), Integer(4))

    def test_definite_integral(self):
        node = IntegralNode(lit("x"), lit("0"), lit("1"), lit("x^2+2x"))
        self.assertEqual(convert([node]), Fraction(4, 3))

    def test_reversed_bounds(self):
        node = IntegralNode(lit("x"), lit("1"), lit("0"), lit("x"))
        self.assertEqual(convert([node]), Fraction(-1, 2))

    def test_one_bound_is_malformed(self):
        with self.assertRaises(MalformedExpressionError):
            convert([IntegralNode(lit("x"), lit("0"), [], lit("x"))])

    def test_indefinite_integral_constants(self):
        node = IntegralNode(lit("x"), [], [], lit("x"))
        expected = Sum((Product((Fraction(1, 2), Power(X, Integer(2)))), Variable("c0")))
        self.assertEqual(convert([node]), expected)

    def test_constants_are_call_scoped(self):
        allocator = ConstantAllocator()
        converter = Converter(None, allocator)
        first = IntegralNode(lit("x"), [], [], lit("1"))
        second = IntegralNode(lit("x"), [], [], lit("1"))
        e = converter.convert([first, LiteralNode("+"), second])
        self.assertEqual(e.free_variables(), {"x", "c0", "c1"})
        self.assertEqual(allocator.count, 2)

    def test_numeric_fallback_is_inexact(self):
        converter = Converter()
        node = IntegralNode(lit("x"), lit("1"), lit("2"), lit("x^x"))
        value = converter.convert([node])
        self.assertTrue(converter.inexact)
        self.assertAlmostEqual(value.numeric(), 2.0504462, places=5)

    def test_summation(self):
        node = SummationNode(lit("i"), lit("1"), lit("3"), lit("iy+z"))
        expected = Sum((Product((Integer(6), Variable("y"))), Product((Integer(3), Variable("z")))))
        self.assertEqual(convert([node]), expected)

    def test_product(self):
        node = ProductNode(lit("i"), lit("1"), lit("5"), lit("i"))
        self.assertEqual(convert([node]), Integer(120))

    def test_nested_loops_shadow_the_index(self):
        inner = SummationNode(lit("i"), lit("1"), lit("3"), lit("i"))
        outer = SummationNode(lit("i"), lit("1"), lit("2"), [inner])
        self.assertEqual(convert([outer]), Integer(12))

    def test_inner_bound_reads_outer_index(self):
        inner = SummationNode(lit("j"), lit("1"), lit("i"), lit("j"))
        outer = SummationNode(lit("i"), lit("1"), lit("3"), [inner])
        self.assertEqual(convert([outer]), Integer(10))

    def test_inner_product_bound_reads_outer_index(self):
        inner = ProductNode(lit("j"), lit("1"), lit("i"), lit("j"))
        outer = SummationNode(lit("i"), lit("1"), lit("3"), [inner])
        # 1! + 2! + 3!
        self.assertEqual(convert([outer]), Integer(9))

    def test_outer_index_outside_the_inner_loop(self):
        inner = SummationNode(lit("j"), lit("1"), lit("2"), lit("j"))
        outer = SummationNode(lit("i"), lit("1"), lit("2"), [LiteralNode("i"), inner])
        # i*(1+2) for i = 1, 2
        self.assertEqual(convert([outer]), Integer(9))

    def test_empty_index_defaults_to_x(self):
        self.assertEqual(convert([SummationNode([], lit("1"), lit("3"), lit("x"))]), Integer(6))
        self.assertEqual(convert([ProductNode(lit(" "), lit("1"), lit("3"), lit("x"))]), Integer(6))


class TestRender(unittest.TestCase):
    """Test rendering expressions back into node trees."""

    def render(self, e, cfg=CFG):
        return nodes_to_text(to_math_node(e, cfg))

    def test_integer_grouping(self):
        self.assertEqual(self.render(Integer(1234567), FormatConfig(NumberFormat.PLAIN)), "1,234,567")

    def test_fractions(self):
        self.assertEqual(self.render(Fraction(5, 6)), "5/6")
        self.assertEqual(self.render(Fraction(-1, 2)), "-1/2")
        self.assertEqual(self.render(Fraction(1, 0)), "∞")

    def test_fraction_node_shape(self):
        nodes = to_math_node(Fraction(-1, 2), CFG)
        self.assertEqual(nodes[0], LiteralNode("-"))
        self.assertIsInstance(nodes[1], FractionNode)

    def test_coefficient_and_root(self):
        self.assertEqual(self.render(Product((Integer(2), Root(Integer(2))))), "2√2")

    def test_rational_coefficient_becomes_fraction(self):
        e = Product((Fraction(1, 2), Power(X, Integer(2))))
        nodes = to_math_node(e, CFG)
        self.assertEqual(len(nodes), 1)
        self.assertIsInstance(nodes[0], FractionNode)
        self.assertEqual(self.render(e), "(x^2)/2")

    def test_negative_power(self):
        self.assertEqual(self.render(Power(X, MINUS_ONE)), "1/x")

    def test_sum_signs(self):
        self.assertEqual(self.render(Sum((X, MINUS_ONE))), "x-1")
        self.assertEqual(self.render(Sum((X, Product((Integer(-3), Variable("y")))))), "x-3y")

    def test_function_factors_are_separated(self):
        e = Product((Trig("cos", X), Trig("sin", X)))
        self.assertEqual(self.render(e), "cos(x)·sin(x)")

    def test_constant_node(self):
        self.assertEqual(to_math_node(PI, CFG), [ConstantNode("π")])


if __name__ == "__main__":
    unittest.main()

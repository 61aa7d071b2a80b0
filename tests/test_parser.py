"""Unit tests for the literal tokenizer and shunting-yard parser."""

import unittest

from expr import E, Fraction, Integer, Log, MINUS_ONE, PI, Product, Root, Sum, Variable
from parser import parse_text, parse_tokens, to_rpn, tokenize_literal
from results import MalformedExpressionError

X = Variable("x")


class TestTokenizer(unittest.TestCase):
    """Test splitting literal text into tokens."""

    def test_token_kinds(self):
        kinds = [t.kind for t in tokenize_literal("2x+1")]
        self.assertEqual(kinds, ["NUM", "EXPR", "+", "NUM"])

    def test_function_needs_parenthesis(self):
        kinds = [t.kind for t in tokenize_literal("sin(x)")]
        self.assertEqual(kinds, ["FUNC", "(", "EXPR", ")"])

    def test_unicode_operators(self):
        kinds = [t.kind for t in tokenize_literal("2×3−4÷5")]
        self.assertEqual(kinds, ["NUM", "*", "NUM", "-", "NUM", "/", "NUM"])

    def test_degree_sign(self):
        kinds = [t.kind for t in tokenize_literal("30°")]
        self.assertEqual(kinds, ["NUM", "DEG"])

    def test_unexpected_character(self):
        with self.assertRaises(MalformedExpressionError):
            tokenize_literal("2 $ 3")


class TestShuntingYard(unittest.TestCase):
    """Test precedence and associativity."""

    def test_rpn_order(self):
        rpn = [t.lex for t in to_rpn(tokenize_literal("1+2*3"))]
        self.assertEqual(rpn, ["1", "2", "3", "*", "+"])

    def test_chains_build_one_node(self):
        y, z = Variable("y"), Variable("z")
        self.assertEqual(parse_tokens(tokenize_literal("x+y-z")),
                         Sum((X, y, Product((MINUS_ONE, z)))))
        self.assertEqual(parse_tokens(tokenize_literal("x*y*z")), Product((X, y, z)))
        self.assertEqual(parse_text("1" + "+1" * 1500), Integer(1501))

    def test_precedence(self):
        self.assertEqual(parse_text("2+3*4"), Integer(14))

    def test_power_is_right_associative(self):
        self.assertEqual(parse_text("2^3^2"), Integer(512))

    def test_left_associative_minus_and_divide(self):
        self.assertEqual(parse_text("5-2-1"), Integer(2))
        self.assertEqual(parse_text("8/2/2"), Integer(2))

    def test_unary_minus_binds_looser_than_power(self):
        self.assertEqual(parse_text("-2^2"), Integer(-4))
        self.assertEqual(parse_text("2*-3"), Integer(-6))

    def test_mismatched_parentheses(self):
        with self.assertRaises(MalformedExpressionError):
            parse_text("2*)")
        with self.assertRaises(MalformedExpressionError):
            parse_text("(1+2")

    def test_missing_operand(self):
        with self.assertRaises(MalformedExpressionError):
            parse_text("2*")


class TestParseText(unittest.TestCase):
    """Test whole-line parsing into simplified expressions."""

    def test_implicit_multiplication(self):
        self.assertEqual(parse_text("2x"), Product((Integer(2), X)))
        self.assertEqual(parse_text("2(3+4)"), Integer(14))
        self.assertEqual(parse_text("(1+1)(2+3)"), Integer(10))
        self.assertEqual(parse_text("2pi"), Product((Integer(2), PI)))

    def test_decimals_are_exact(self):
        self.assertEqual(parse_text("0.1+0.2"), Fraction(3, 10))
        self.assertEqual(parse_text("1ᴇ3"), Integer(1000))

    def test_degrees(self):
        self.assertEqual(parse_text("sin(30°)"), Fraction(1, 2))

    def test_text_functions(self):
        self.assertEqual(parse_text("sqrt(8)"), Product((Integer(2), Root(Integer(2)))))
        self.assertEqual(parse_text("ln(e)"), Integer(1))
        self.assertEqual(parse_text("log(100)"), Integer(2))
        self.assertEqual(parse_text("ln(x)"), Log(E, X))

    def test_ans_references(self):
        self.assertEqual(parse_text("ans0*4", {0: Integer(3)}), Integer(12))
        self.assertEqual(parse_text("ans5"), Variable("ans5"))

    def test_cancellation(self):
        self.assertEqual(parse_text("x-x"), Integer(0))


if __name__ == "__main__":
    unittest.main()

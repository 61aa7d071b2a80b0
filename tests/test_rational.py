"""Unit tests for exact rational arithmetic and integer root helpers."""

import unittest

from rational import Rational, integer_log, integer_root, perfect_power_split


class TestRational(unittest.TestCase):
    """Test Rational arithmetic and predicates."""

    def test_addition_reduces(self):
        self.assertEqual(Rational(1, 2) + Rational(1, 3), Rational(5, 6))

    def test_mixed_int_arithmetic(self):
        self.assertEqual(Rational(3, 4) * 4, Rational(3))
        self.assertEqual(Rational(1, 2) - 1, Rational(-1, 2))

    def test_division_by_zero_raises(self):
        with self.assertRaises(ZeroDivisionError):
            Rational(1) / Rational(0)

    def test_negative_power(self):
        self.assertEqual(Rational(2, 3) ** -2, Rational(9, 4))

    def test_from_decimal_is_exact(self):
        self.assertEqual(Rational.from_decimal("0.1"), Rational(1, 10))
        self.assertEqual(Rational.from_decimal("1.5e3"), Rational(1500))
        self.assertEqual(Rational.from_decimal(".25"), Rational(1, 4))

    def test_predicates(self):
        r = Rational(-6, 3)
        self.assertTrue(r.is_int())
        self.assertTrue(r.is_negative())
        self.assertEqual(r.to_int(), -2)
        self.assertFalse(Rational(1, 2).is_int())

    def test_to_string(self):
        self.assertEqual(Rational(4, 6).to_string(), "2/3")
        self.assertEqual(Rational(10, 5).to_string(), "2")

    def test_hash_matches_equality(self):
        self.assertEqual(len({Rational(1, 2), Rational(2, 4)}), 1)


class TestIntegerHelpers(unittest.TestCase):
    """Test integer_root, perfect_power_split and integer_log."""

    def test_integer_root_floor(self):
        self.assertEqual(integer_root(27, 3), 3)
        self.assertEqual(integer_root(26, 3), 2)
        self.assertEqual(integer_root(10 ** 40, 2), 10 ** 20)

    def test_perfect_power_split(self):
        self.assertEqual(perfect_power_split(8, 2), (2, 2))
        self.assertEqual(perfect_power_split(72, 2), (6, 2))
        self.assertEqual(perfect_power_split(64, 3), (4, 1))

    def test_integer_log(self):
        self.assertEqual(integer_log(1000, 10), 3)
        self.assertEqual(integer_log(1, 10), 0)
        self.assertIsNone(integer_log(12, 10))


if __name__ == "__main__":
    unittest.main()

"""Unit tests for number formatting."""

import math
import unittest
from unittest import mock

from formatting import FormatConfig, NumberFormat, format_integer, format_number

AUTO = FormatConfig()
PLAIN = FormatConfig(NumberFormat.PLAIN, 10)
SCI = FormatConfig(NumberFormat.SCIENTIFIC, 10)


class TestFormatInteger(unittest.TestCase):
    """Test exact integer formatting."""

    def test_automatic(self):
        self.assertEqual(format_integer(123456, AUTO), "123456")
        self.assertEqual(format_integer(1234567, AUTO), "1.234567E6")

    def test_plain_groups_digits(self):
        self.assertEqual(format_integer(-1234567, PLAIN), "-1,234,567")

    def test_scientific_rounding_carries(self):
        self.assertEqual(format_integer(9999999, FormatConfig(NumberFormat.SCIENTIFIC, 2)), "1E7")

    def test_large_integer_stays_exact(self):
        self.assertEqual(format_integer(10 ** 30 + 1, SCI), "1E30")

    def test_zero(self):
        self.assertEqual(format_integer(0, SCI), "0")

    def test_million_in_each_mode(self):
        self.assertEqual(format_integer(1000000, AUTO), "1E6")
        self.assertEqual(format_integer(1000000, PLAIN), "1,000,000")
        self.assertEqual(format_integer(129999, FormatConfig(NumberFormat.SCIENTIFIC, 2)), "1.3E5")

    def test_fraction_parts_keep_exact_digits(self):
        self.assertEqual(format_integer(10000000, AUTO, whole=False), "10000000")
        self.assertEqual(format_integer(12345678, SCI, whole=False), "12345678")
        self.assertEqual(format_integer(10 ** 15, FormatConfig(NumberFormat.AUTOMATIC, 2), whole=False), "1E15")


class TestFormatNumber(unittest.TestCase):
    """Test decimal approximations."""

    def test_trailing_zeros_stripped(self):
        self.assertEqual(format_number(0.5, AUTO), "0.5")

    def test_precision(self):
        self.assertEqual(format_number(1 / 3, FormatConfig(NumberFormat.AUTOMATIC, 4)), "0.3333")

    def test_plain_grouping(self):
        self.assertEqual(format_number(1234567.5, FormatConfig(NumberFormat.PLAIN, 2)), "1,234,567.5")

    def test_small_values_switch_to_scientific(self):
        self.assertEqual(format_number(1.5e-7, AUTO), "1.5E-7")

    def test_special_values(self):
        self.assertEqual(format_number(math.nan, AUTO), "")
        self.assertEqual(format_number(math.inf, AUTO), "∞")
        self.assertEqual(format_number(-math.inf, AUTO), "-∞")
        self.assertEqual(format_number(0.0, SCI), "0")

    def test_integral_float(self):
        self.assertEqual(format_number(42.0, AUTO), "42")

    def test_whole_scientific_mantissa_has_no_point(self):
        sci2 = FormatConfig(NumberFormat.SCIENTIFIC, 2)
        self.assertEqual(format_number(300000.1, sci2), "3E5")
        self.assertEqual(format_number(0.1 + 0.2, sci2), "3E-1")
        self.assertEqual(format_number(7.0001, sci2), "7E0")
        self.assertEqual(format_number(123456.7, sci2), "1.23E5")

    def test_rounding_up_to_the_scientific_range(self):
        auto2 = FormatConfig(NumberFormat.AUTOMATIC, 2)
        self.assertEqual(format_number(999999.999, auto2), "1E6")
        self.assertEqual(format_number(999999.5, FormatConfig(NumberFormat.AUTOMATIC, 4)), "999999.5")


class TestFormatConfig(unittest.TestCase):
    """Test configuration from the environment."""

    def test_from_env(self):
        with mock.patch("config.NUMBER_FORMAT", "Scientific"), mock.patch("config.PRECISION", 3):
            self.assertEqual(FormatConfig.from_env(), FormatConfig(NumberFormat.SCIENTIFIC, 3))

    def test_unknown_mode_falls_back(self):
        with mock.patch("config.NUMBER_FORMAT", "fancy"):
            self.assertIs(FormatConfig.from_env().number_format, NumberFormat.AUTOMATIC)


if __name__ == "__main__":
    unittest.main()

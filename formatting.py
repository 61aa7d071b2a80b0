"""
Number formatting for exact and approximate results.

Three modes are supported:
- plain: never scientific, integer part comma-grouped
- automatic: plain without grouping, scientific below 1e-6 or from 1e6 upward
- scientific: always scientific except for zero

Mantissas carry `precision` digits after the decimal point with trailing zeros
stripped; rounding carries into the exponent (9999999 -> 1E7).
"""
from __future__ import annotations
import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np

import config


class NumberFormat(Enum):
    PLAIN = "plain"
    AUTOMATIC = "automatic"
    SCIENTIFIC = "scientific"


@dataclass(frozen=True)
class FormatConfig:
    """Immutable formatting settings passed through every evaluate/format call."""
    number_format: NumberFormat = NumberFormat.AUTOMATIC
    precision: int = 10

    @staticmethod
    def from_env() -> "FormatConfig":
        try:
            mode = NumberFormat(config.NUMBER_FORMAT.lower())
        except ValueError:
            mode = NumberFormat.AUTOMATIC
        return FormatConfig(mode, max(0, config.PRECISION))


def _group(digits: str) -> str:
    """Comma-group a run of integer digits ("1234567" -> "1,234,567")."""
    return f"{int(digits):,}"


def _round_digits(digits: str, keep: int) -> Tuple[str, bool]:
    """Round a digit string to `keep` digits, half up.

    Returns:
        (rounded digits, carried) where carried means the result gained a digit
    """
    if len(digits) <= keep:
        return digits, False
    head = int(digits[:keep])
    if digits[keep] >= "5":
        head += 1
    rounded = str(head).rjust(keep, "0")
    if len(rounded) > keep:
        return rounded[:keep], True
    return rounded, False


def _mantissa(digits: str) -> str:
    frac = digits[1:].rstrip("0")
    return digits[0] + ("." + frac if frac else "")


def _scientific_int(value: int, precision: int) -> str:
    sign = "-" if value < 0 else ""
    digits = str(abs(value))
    exponent = len(digits) - 1
    rounded, carried = _round_digits(digits, precision + 1)
    if carried:
        exponent += 1
    return f"{sign}{_mantissa(rounded)}E{exponent}"


def format_integer(value: int, cfg: FormatConfig, whole: bool = True) -> str:
    """Format an arbitrary-precision integer without going through float.

    Only a standalone whole number follows the display mode. Fraction parts
    and coefficients (whole=False) keep every digit below EXACT_DIGITS_LIMIT.
    """
    if value == 0:
        return "0"
    if not whole:
        if abs(value) >= config.EXACT_DIGITS_LIMIT:
            return _scientific_int(value, cfg.precision)
        return str(value)
    if cfg.number_format is NumberFormat.PLAIN:
        return f"{value:,}"
    if cfg.number_format is NumberFormat.SCIENTIFIC:
        return _scientific_int(value, cfg.precision)
    if abs(value) >= config.SCIENTIFIC_UPPER:
        return _scientific_int(value, cfg.precision)
    return str(value)


def _scientific_float(value: float, precision: int) -> str:
    text = np.format_float_scientific(
        value, precision=precision, unique=False, trim="-", exp_digits=1
    )
    mantissa, exponent = text.split("e")
    if "." in mantissa:
        mantissa = mantissa.rstrip("0").rstrip(".")
    return f"{mantissa}E{int(exponent)}"


def format_number(value: float, cfg: FormatConfig) -> str:
    """Format a decimal approximation.

    Args:
        value: numeric value, possibly infinite or NaN
        cfg: formatting settings

    Returns:
        Display string; "" for NaN, "∞"/"-∞" for infinities
    """
    if math.isnan(value):
        return ""
    if math.isinf(value):
        return "∞" if value > 0 else "-∞"
    if value == 0:
        return "0"
    if float(value).is_integer() and abs(value) < 2 ** 53:
        return format_integer(int(value), cfg)

    automatic = cfg.number_format is NumberFormat.AUTOMATIC
    if cfg.number_format is NumberFormat.SCIENTIFIC or (automatic and abs(value) < config.SCIENTIFIC_LOWER):
        return _scientific_float(value, cfg.precision)

    text = np.format_float_positional(
        value, precision=cfg.precision, unique=False, fractional=True, trim="-"
    )
    # the range check uses the rounded value, 999999.999 may round up to 1E6
    if automatic and abs(float(text)) >= config.SCIENTIFIC_UPPER:
        return _scientific_float(value, cfg.precision)
    if text in ("-0", "0", "-0.", "0."):
        return "0"
    if cfg.number_format is NumberFormat.PLAIN:
        sign = "-" if text.startswith("-") else ""
        whole, _, frac = text.lstrip("-").partition(".")
        grouped = _group(whole)
        return f"{sign}{grouped}.{frac}" if frac else f"{sign}{grouped}"
    return text

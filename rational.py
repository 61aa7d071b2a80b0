from __future__ import annotations
from fractions import Fraction
from typing import Optional, Tuple

class Rational:
	__slots__ = ("_f",)
	def __init__(self, num: int | Fraction, den: int | None = None) -> None:
		if isinstance(num, Fraction):
			self._f = num
		else:
			self._f = Fraction(num, 1 if den is None else den)
	@staticmethod
	def from_decimal(text: str) -> Rational:
		"""Read a decimal or scientific literal ("0.1", "1.5e3", ".25") exactly."""
		return Rational(Fraction(text))
	def __add__(self, other: Rational | int) -> Rational:
		if isinstance(other, Rational):
			return Rational(self._f + other._f)
		return Rational(self._f + other)
	def __sub__(self, other: Rational | int) -> Rational:
		if isinstance(other, Rational):
			return Rational(self._f - other._f)
		return Rational(self._f - other)
	def __mul__(self, other: Rational | int) -> Rational:
		if isinstance(other, Rational):
			return Rational(self._f * other._f)
		return Rational(self._f * other)
	def __truediv__(self, other: Rational | int) -> Rational:
		if isinstance(other, Rational):
			if other._f == 0:
				raise ZeroDivisionError("division by zero")
			return Rational(self._f / other._f)
		if other == 0:
			raise ZeroDivisionError("division by zero")
		return Rational(self._f / other)
	def __neg__(self) -> Rational:
		return Rational(-self._f)
	def __abs__(self) -> Rational:
		return Rational(abs(self._f))
	def __pow__(self, exp: int) -> Rational:
		if exp == 0:
			return Rational(1,1)
		if exp < 0 and self._f == 0:
			raise ZeroDivisionError("zero to a negative power")
		return Rational(self._f ** exp)
	def __eq__(self, other: object) -> bool:
		if isinstance(other, int):
			return self._f == other
		if not isinstance(other, Rational):
			return False
		return self._f == other._f
	def __hash__(self) -> int:
		return hash(self._f)
	def __lt__(self, other: Rational) -> bool:
		return self._f < other._f
	def __le__(self, other: Rational) -> bool:
		return self._f <= other._f
	def __gt__(self, other: Rational) -> bool:
		return self._f > other._f
	def __ge__(self, other: Rational) -> bool:
		return self._f >= other._f
	def __float__(self) -> float:
		return self._f.numerator / self._f.denominator
	def is_zero(self) -> bool:
		return self._f == 0
	def is_one(self) -> bool:
		return self._f == 1
	def is_negative(self) -> bool:
		return self._f < 0
	def is_int(self) -> bool:
		return self._f.denominator == 1
	def to_int(self) -> int:
		return self._f.numerator // self._f.denominator
	def numerator(self) -> int:
		return self._f.numerator
	def denominator(self) -> int:
		return self._f.denominator
	def reciprocal(self) -> Rational:
		return Rational(1,1) / self
	def to_string(self) -> str:
		if self._f.denominator == 1:
			return str(self._f.numerator)
		return f"{self._f.numerator}/{self._f.denominator}"
	def __str__(self) -> str:
		return self.to_string()
	def __repr__(self) -> str:
		return f"Rational({self.to_string()})"

ZERO = Rational(0)
ONE = Rational(1)

def integer_root(n: int, k: int) -> int:
	"""Largest r >= 0 with r**k <= n, for n >= 0."""
	if n < 2:
		return n
	# integer Newton iteration, starting above the root
	r = 1 << ((n.bit_length() + k - 1) // k)
	while True:
		s = ((k - 1) * r + n // r ** (k - 1)) // k
		if s >= r:
			return r
		r = s

def perfect_power_split(n: int, k: int) -> Tuple[int, int]:
	"""Split n >= 1 into (outer, inner) with n == outer**k * inner and inner k-th power free.

	Args:
		n: positive integer radicand
		k: root degree (>= 2)

	Returns:
		(outer, inner) pair, e.g. (2, 2) for n=8, k=2
	"""
	outer, inner = 1, n
	p = 2
	while p < 100000 and p ** k <= inner:
		pk = p ** k
		while inner % pk == 0:
			inner //= pk
			outer *= p
		p += 1 if p == 2 else 2
	# whatever is left may itself be a perfect power of a large prime
	r = integer_root(inner, k)
	if r > 1 and r ** k == inner:
		outer *= r
		inner = 1
	return outer, inner

def integer_log(value: int, base: int) -> Optional[int]:
	"""Exact k with base**k == value, or None."""
	if base < 2 or value < 1:
		return None
	k = 0
	while value % base == 0:
		value //= base
		k += 1
	return k if value == 1 else None

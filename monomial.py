from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List
from rational import Rational
from expr import Expr, Integer, Power, Product, Variable, from_rational

@dataclass(order=False)
class Monomial:
	"""coeff · x1^e1 · x2^e2 … with a rational coefficient and non-negative integer exponents."""
	coeff: Rational = field(default_factory=lambda: Rational(0,1))
	vars: Dict[str,int] = field(default_factory=dict)
	def coefficient(self) -> Rational:
		return self.coeff
	def degree(self) -> int:
		return sum(self.vars.values())
	def degree_var(self, var: str) -> int:
		return self.vars.get(var, 0)
	def is_constant(self) -> bool:
		return self.degree() == 0
	def is_zero(self) -> bool:
		return self.coeff.is_zero()
	def key(self) -> tuple:
		return tuple(sorted((v, e) for v, e in self.vars.items() if e != 0))
	def variables(self) -> List[str]:
		return [v for v, e in self.vars.items() if e != 0]
	def scale(self, r: Rational) -> Monomial:
		return Monomial(self.coeff * r, dict(self.vars))
	def times(self, other: Monomial) -> Monomial:
		v = dict(self.vars)
		for k,e in other.vars.items():
			v[k] = v.get(k,0) + e
		return Monomial(self.coeff * other.coeff, v)
	def __neg__(self) -> Monomial:
		return Monomial(-self.coeff, dict(self.vars))
	def without(self, var: str) -> Monomial:
		"""Same monomial with var's factor dropped (used to read coefficients)."""
		v = dict(self.vars)
		v.pop(var, None)
		return Monomial(self.coeff, v)
	def to_expr(self) -> Expr:
		factors: List[Expr] = [from_rational(self.coeff)]
		for name, exp in sorted(self.vars.items()):
			if exp == 1:
				factors.append(Variable(name))
			elif exp > 1:
				factors.append(Power(Variable(name), Integer(exp)))
		return Product(tuple(factors)).simplify()
	def __lt__(self, other: Monomial) -> bool:
		# higher total degree first, then by variable names
		a, b = self.degree(), other.degree()
		if a != b:
			return a > b
		return self.key() < other.key()
	def to_string(self) -> str:
		if not self.variables():
			return self.coeff.to_string()
		sign = "-" if self.coeff.is_negative() else ""
		abs_coeff = abs(self.coeff)
		coeff_part = "" if abs_coeff.is_one() else abs_coeff.to_string()
		vars_part = ""
		for name, exp in self.key():
			vars_part += name if exp == 1 else f"{name}^{exp}"
		return f"{sign}{coeff_part}{vars_part}"
	def __str__(self) -> str:
		return self.to_string()

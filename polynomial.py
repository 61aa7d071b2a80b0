from __future__ import annotations
from typing import Dict, List, Optional, Tuple, Iterable
from dataclasses import dataclass, field

import config
from expr import Div, Expr, Power, Product, Sum, Variable, ZERO
from monomial import Monomial
from rational import Rational


class NotPolynomialError(ValueError):
    """Raised while reading an Expr that has no polynomial view."""


@dataclass
class Polynomial:
    terms: List[Monomial] = field(default_factory=list)

    def __post_init__(self):
        self.normalize()

    @staticmethod
    def from_monomials(monoms: Iterable[Monomial]) -> "Polynomial":
        p = Polynomial([])
        p.terms = list(monoms)
        p.normalize()
        return p

    @staticmethod
    def constant(r: Rational) -> "Polynomial":
        return Polynomial([Monomial(r, {})])

    @staticmethod
    def variable(name: str) -> "Polynomial":
        return Polynomial([Monomial(Rational(1, 1), {name: 1})])

    @staticmethod
    def from_expr(e: Expr) -> Optional["Polynomial"]:
        """Expand an expression into a polynomial with rational coefficients.

        Args:
            e: expression (simplified or not)

        Returns:
            The expanded polynomial, or None when e uses anything beyond
            + - * and non-negative integer powers of variables.
        """
        try:
            return Polynomial._read(e)
        except NotPolynomialError:
            return None

    @staticmethod
    def _read(e: Expr) -> "Polynomial":
        r = e.as_rational()
        if r is not None:
            return Polynomial.constant(r)
        if isinstance(e, Variable):
            return Polynomial.variable(e.name)
        if isinstance(e, Sum):
            total = Polynomial([])
            for t in e.terms:
                total = total + Polynomial._read(t)
            return total
        if isinstance(e, Product):
            result = Polynomial.constant(Rational(1, 1))
            for f in e.factors:
                result = result * Polynomial._read(f)
            return result
        if isinstance(e, Power):
            n = e.exponent.simplify().as_rational()
            if n is None or not n.is_int() or n.is_negative():
                raise NotPolynomialError(str(e))
            if n.to_int() > config.MAX_INTEGER_POWER:
                raise NotPolynomialError(str(e))
            return Polynomial._read(e.base).pow(n.to_int())
        if isinstance(e, Div):
            d = e.denominator.simplify().as_rational()
            if d is None or d.is_zero():
                raise NotPolynomialError(str(e))
            return Polynomial._read(e.numerator).scalar_mul(d.reciprocal())
        raise NotPolynomialError(str(e))

    def normalize(self) -> None:
        # combine like terms
        acc: Dict[Tuple[Tuple[str, int], ...], Rational] = {}
        for m in self.terms:
            vm = m.key()
            acc[vm] = acc.get(vm, Rational(0, 1)) + m.coefficient()
        new_terms: List[Monomial] = []
        for vm, c in acc.items():
            if not c.is_zero():
                new_terms.append(Monomial(c, dict(vm)))
        new_terms.sort()
        self.terms = new_terms

    def is_zero(self) -> bool:
        return len(self.terms) == 0

    def is_constant(self) -> bool:
        return all(m.is_constant() for m in self.terms)

    def variables(self) -> List[str]:
        names = set()
        for m in self.terms:
            names.update(m.variables())
        return sorted(names)

    def is_univariate(self, var: str) -> bool:
        """Check if polynomial is univariate in the given variable (no other variables)."""
        return all(v == var for v in self.variables())

    def to_univariate_coeffs(self, var: str) -> list[Rational]:
        """Convert univariate polynomial to coefficient list [a0, a1, ..., an] where
        poly = a0 + a1*x + ... + an*x^n. Returns empty list if not univariate."""
        if not self.is_univariate(var):
            return []
        deg = max(self.degree_var(var), 0)
        coeffs = [Rational(0, 1)] * (deg + 1)
        for m in self.terms:
            exp = m.degree_var(var)
            coeffs[exp] = coeffs[exp] + m.coefficient()
        return coeffs

    def linear_coefficients(self, variables: List[str]) -> Optional[Tuple[List[Rational], Rational]]:
        """Read a1*v1 + ... + an*vn + c as ([a1..an], c); None when not linear in them."""
        coeffs = {v: Rational(0, 1) for v in variables}
        constant = Rational(0, 1)
        for m in self.terms:
            if m.degree() == 0:
                constant = constant + m.coefficient()
                continue
            names = m.variables()
            if m.degree() != 1 or names[0] not in coeffs:
                return None
            coeffs[names[0]] = coeffs[names[0]] + m.coefficient()
        return [coeffs[v] for v in variables], constant

    def degree(self) -> int:
        return max((m.degree() for m in self.terms), default=0)

    def degree_var(self, var: str) -> int:
        deg = -1
        for m in self.terms:
            deg = max(deg, m.degree_var(var))
        return deg

    def __add__(self, rhs: "Polynomial") -> "Polynomial":
        return Polynomial.from_monomials(self.terms + rhs.terms)

    def __sub__(self, rhs: "Polynomial") -> "Polynomial":
        return Polynomial.from_monomials(self.terms + [-m for m in rhs.terms])

    def __mul__(self, rhs: "Polynomial") -> "Polynomial":
        prods: List[Monomial] = []
        for a in self.terms:
            for b in rhs.terms:
                prods.append(a.times(b))
        return Polynomial.from_monomials(prods)

    def scalar_mul(self, r: Rational) -> "Polynomial":
        return Polynomial.from_monomials([m.scale(r) for m in self.terms])

    def pow(self, exp: int) -> "Polynomial":
        result = Polynomial.constant(Rational(1, 1))
        base = self
        # square-and-multiply keeps expansion of (a+b)^n cheap
        while exp > 0:
            if exp & 1:
                result = result * base
            base = base * base
            exp >>= 1
        return result

    def eval(self, env: Dict[str, Rational]) -> Rational:
        total = Rational(0, 1)
        for m in self.terms:
            r = m.coefficient()
            for var, exp in m.vars.items():
                if var not in env:
                    raise KeyError(f"Variable '{var}' not in env")
                r = r * (env[var] ** exp)
            total = total + r
        return total

    def to_expr(self) -> Expr:
        if self.is_zero():
            return ZERO
        return Sum(tuple(m.to_expr() for m in self.terms)).simplify()

    def to_string(self) -> str:
        if len(self.terms) == 0:
            return "0"
        parts: List[str] = []
        for idx, m in enumerate(self.terms):
            s = m.to_string()
            if s.startswith("-"):
                parts.append(f"-{s[1:]}" if idx == 0 else f" - {s[1:]}")
            else:
                parts.append(s if idx == 0 else f" + {s}")
        return "".join(parts)

    def __str__(self) -> str:
        return self.to_string()

"""
Expression Model and Simplifier

Immutable expression variants with per-variant simplification rules. Every
simplify() call returns a new canonical value; inputs are never mutated.

Canonical form in short:
- Sums are flat; like terms (same coefficient-free base) are combined and keep
  the position of their first occurrence.
- Products are flat; one leading rational coefficient, then roots, then the
  remaining factors ordered by their text. Equal bases merge into powers.
- Roots carry a radicand with no perfect power of their degree left in it.
- Numeric evaluation goes through numpy so that 1/0 and 0/0 give inf and nan.
"""
from __future__ import annotations
import math
from dataclasses import dataclass
from fractions import Fraction as _PyFraction
from typing import Dict, List, Optional, Set, Tuple, Union

import numpy as np

import config
from rational import Rational, integer_log, perfect_power_split
from results import UnboundVariableError

_R0 = Rational(0)
_R1 = Rational(1)

ExprLike = Union["Expr", int, Rational]


def to_expr(value: ExprLike) -> "Expr":
    if isinstance(value, Expr):
        return value
    if isinstance(value, Rational):
        return from_rational(value)
    if isinstance(value, bool):
        raise TypeError("bool is not an expression")
    if isinstance(value, int):
        return Integer(value)
    raise TypeError(f"cannot convert {type(value).__name__} to an expression")


def from_rational(r: Rational) -> "Expr":
    if r.is_int():
        return Integer(r.to_int())
    return Fraction(r.numerator(), r.denominator())


class Expr:
    """Base of the closed set of expression variants."""

    # Structure

    def children(self) -> Tuple["Expr", ...]:
        return ()

    def with_children(self, children: Tuple["Expr", ...]) -> "Expr":
        return self

    def simplify(self) -> "Expr":
        raise NotImplementedError

    # Numeric value

    def to_float(self, env: Optional[Dict[str, float]] = None) -> np.float64:
        raise NotImplementedError

    def numeric(self) -> float:
        """Float value with inf/nan propagation; raises UnboundVariableError for free variables."""
        with np.errstate(all="ignore"):
            return float(self.to_float())

    # Like-term support

    def as_rational(self) -> Optional[Rational]:
        return None

    def coefficient(self) -> Rational:
        return _R1

    def base_expr(self) -> "Expr":
        return self

    def signature(self) -> "Expr":
        """Structural key used to detect like terms; ignores the numeric coefficient."""
        return self.base_expr()

    @property
    def is_rational(self) -> bool:
        return self.as_rational() is not None

    @property
    def is_integer(self) -> bool:
        r = self.as_rational()
        return r is not None and r.is_int()

    @property
    def is_zero(self) -> bool:
        r = self.as_rational()
        return r is not None and r.is_zero()

    @property
    def is_one(self) -> bool:
        r = self.as_rational()
        return r is not None and r.is_one()

    def is_negative_term(self) -> bool:
        return self.coefficient().is_negative()

    def negate(self) -> "Expr":
        return Product((MINUS_ONE, self)).simplify()

    # Variables

    def free_variables(self) -> Set[str]:
        out: Set[str] = set()
        for c in self.children():
            out |= c.free_variables()
        return out

    def depends_on(self, name: str) -> bool:
        return any(c.depends_on(name) for c in self.children())

    def substitute(self, name: str, value: "Expr") -> "Expr":
        kids = self.children()
        if not kids:
            return self
        return self.with_children(tuple(k.substitute(name, value) for k in kids))

    def structurally_equals(self, other: "Expr") -> bool:
        return self == other

    def sort_key(self) -> str:
        return str(self)

    # Builders (unsimplified)

    def __add__(self, other: ExprLike) -> "Expr":
        return Sum((self, to_expr(other)))

    def __radd__(self, other: ExprLike) -> "Expr":
        return Sum((to_expr(other), self))

    def __sub__(self, other: ExprLike) -> "Expr":
        return Sum((self, Product((MINUS_ONE, to_expr(other)))))

    def __mul__(self, other: ExprLike) -> "Expr":
        return Product((self, to_expr(other)))

    def __rmul__(self, other: ExprLike) -> "Expr":
        return Product((to_expr(other), self))

    def __truediv__(self, other: ExprLike) -> "Expr":
        return Div(self, to_expr(other))

    def __pow__(self, other: ExprLike) -> "Expr":
        return Power(self, to_expr(other))

    def __neg__(self) -> "Expr":
        return Product((MINUS_ONE, self))

    # Rendering precedence: 1 sum, 2 product/quotient, 3 negative atom, 4 power, 5 atom
    precedence = 5


def _wrap(e: Expr, min_prec: int) -> str:
    s = str(e)
    return f"({s})" if e.precedence < min_prec else s


# ---------------------------------------------------------------------------
# Numbers, constants and variables
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Integer(Expr):
    value: int

    def simplify(self) -> Expr:
        return self

    def to_float(self, env: Optional[Dict[str, float]] = None) -> np.float64:
        try:
            return np.float64(self.value)
        except OverflowError:
            return np.float64(math.inf if self.value > 0 else -math.inf)

    def as_rational(self) -> Optional[Rational]:
        return Rational(self.value)

    def coefficient(self) -> Rational:
        return Rational(self.value)

    def base_expr(self) -> Expr:
        return ONE

    def depends_on(self, name: str) -> bool:
        return False

    @property
    def precedence(self) -> int:
        return 3 if self.value < 0 else 5

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Fraction(Expr):
    """numerator/denominator, stored reduced with a positive denominator.

    A zero denominator is kept (as 1/0, -1/0 or 0/0) so that division by zero
    propagates to an infinite or undefined numeric value.
    """
    numerator: int
    denominator: int

    def __post_init__(self) -> None:
        n, d = self.numerator, self.denominator
        if d == 0:
            object.__setattr__(self, "numerator", (n > 0) - (n < 0))
            return
        if d < 0:
            n, d = -n, -d
        g = math.gcd(n, d)
        if g > 1:
            n, d = n // g, d // g
        object.__setattr__(self, "numerator", n)
        object.__setattr__(self, "denominator", d)

    def simplify(self) -> Expr:
        if self.denominator == 0:
            return self
        if self.numerator == 0:
            return ZERO
        if self.denominator == 1:
            return Integer(self.numerator)
        return self

    def to_float(self, env: Optional[Dict[str, float]] = None) -> np.float64:
        if self.denominator == 0:
            return np.float64(self.numerator) / np.float64(0.0)
        try:
            return np.float64(float(_PyFraction(self.numerator, self.denominator)))
        except OverflowError:
            return np.float64(math.inf if self.numerator > 0 else -math.inf)

    def as_rational(self) -> Optional[Rational]:
        if self.denominator == 0:
            return None
        return Rational(self.numerator, self.denominator)

    def coefficient(self) -> Rational:
        r = self.as_rational()
        return _R1 if r is None else r

    def base_expr(self) -> Expr:
        return self if self.denominator == 0 else ONE

    def depends_on(self, name: str) -> bool:
        return False

    @property
    def precedence(self) -> int:
        return 2

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"


CONSTANT_VALUES: Dict[str, float] = {
    "π": math.pi,
    "e": math.e,
    "φ": (1 + math.sqrt(5)) / 2,
    "ε₀": 8.8541878128e-12,   # vacuum permittivity, F/m
    "μ₀": 1.25663706212e-6,   # vacuum permeability, H/m
    "c₀": 299792458.0,        # speed of light, m/s
    "e⁻": 1.602176634e-19,    # elementary charge, C
}


@dataclass(frozen=True)
class Constant(Expr):
    symbol: str

    def __post_init__(self) -> None:
        if self.symbol not in CONSTANT_VALUES:
            raise ValueError(f"unknown constant {self.symbol!r}")

    def simplify(self) -> Expr:
        return self

    def to_float(self, env: Optional[Dict[str, float]] = None) -> np.float64:
        return np.float64(CONSTANT_VALUES[self.symbol])

    def depends_on(self, name: str) -> bool:
        return False

    def __str__(self) -> str:
        return self.symbol


@dataclass(frozen=True)
class Variable(Expr):
    name: str

    def simplify(self) -> Expr:
        return self

    def to_float(self, env: Optional[Dict[str, float]] = None) -> np.float64:
        if env is not None and self.name in env:
            return np.float64(env[self.name])
        raise UnboundVariableError(self.name)

    def free_variables(self) -> Set[str]:
        return {self.name}

    def depends_on(self, name: str) -> bool:
        return self.name == name

    def substitute(self, name: str, value: Expr) -> Expr:
        return value if self.name == name else self

    def __str__(self) -> str:
        return self.name


ZERO = Integer(0)
ONE = Integer(1)
TWO = Integer(2)
MINUS_ONE = Integer(-1)
HALF = Fraction(1, 2)
PI = Constant("π")
E = Constant("e")


def _coerce_all(items) -> Tuple[Expr, ...]:
    return tuple(to_expr(i) for i in items)


def _scale(c: Rational, base: Expr) -> Expr:
    """c·base for a canonical coefficient-free base."""
    if base == ONE:
        return from_rational(c)
    if c.is_one():
        return base
    if isinstance(base, Product):
        return Product((from_rational(c),) + base.factors)
    return Product((from_rational(c), base))


# ---------------------------------------------------------------------------
# Sum
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Sum(Expr):
    terms: Tuple[Expr, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "terms", _coerce_all(self.terms))

    def children(self) -> Tuple[Expr, ...]:
        return self.terms

    def with_children(self, children: Tuple[Expr, ...]) -> Expr:
        return Sum(children)

    def simplify(self) -> Expr:
        flat: List[Expr] = []
        for t in self.terms:
            s = t.simplify()
            if isinstance(s, Sum):
                flat.extend(s.terms)
            elif not s.is_zero:
                flat.append(s)

        # group by signature; dict order keeps each group's first occurrence
        acc: Dict[Expr, Rational] = {}
        for t in flat:
            key = t.signature()
            acc[key] = acc.get(key, _R0) + t.coefficient()

        out: List[Expr] = []
        for base, c in acc.items():
            if c.is_zero():
                continue
            out.append(_scale(c, base))
        if not out:
            return ZERO
        if len(out) == 1:
            return out[0]
        return Sum(tuple(out))

    def to_float(self, env: Optional[Dict[str, float]] = None) -> np.float64:
        total = np.float64(0.0)
        for t in self.terms:
            total = total + t.to_float(env)
        return total

    precedence = 1

    def __str__(self) -> str:
        parts: List[str] = []
        for idx, t in enumerate(self.terms):
            if idx > 0 and t.is_negative_term():
                parts.append(f" - {_wrap(t.negate(), 2)}")
            elif idx > 0:
                parts.append(f" + {t}")
            else:
                parts.append(str(t))
        return "".join(parts)


# ---------------------------------------------------------------------------
# Product
# ---------------------------------------------------------------------------

def _base_and_exponent(f: Expr) -> Tuple[Expr, Expr]:
    """View a factor as base^exponent for equal-base merging."""
    if isinstance(f, Root):
        r = f.radicand
        if isinstance(r, Power) and r.exponent.is_integer:
            k = r.exponent.as_rational().to_int()
            return r.base, Fraction(k, f.degree).simplify()
        return r, Fraction(1, f.degree)
    if isinstance(f, Power):
        if isinstance(f.base, Root) and not f.base.radicand.is_rational:
            inner, inner_exp = _base_and_exponent(f.base)
            return inner, Product((inner_exp, f.exponent)).simplify()
        return f.base, f.exponent
    return f, ONE


def _factor_order(f: Expr) -> Tuple[int, str]:
    return (0 if isinstance(f, Root) else 1, f.sort_key())


@dataclass(frozen=True)
class Product(Expr):
    factors: Tuple[Expr, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "factors", _coerce_all(self.factors))

    def children(self) -> Tuple[Expr, ...]:
        return self.factors

    def with_children(self, children: Tuple[Expr, ...]) -> Expr:
        return Product(children)

    def simplify(self) -> Expr:
        flat: List[Expr] = []
        for f in self.factors:
            s = f.simplify()
            if isinstance(s, Product):
                flat.extend(s.factors)
            else:
                flat.append(s)

        coeff = _R1
        others: List[Expr] = []
        for f in flat:
            r = f.as_rational()
            if r is None:
                others.append(f)
            elif r.is_zero():
                return ZERO
            else:
                coeff = coeff * r

        # roots over rationals with the same degree share one radical
        roots: Dict[int, Rational] = {}
        rest: List[Expr] = []
        for f in others:
            if isinstance(f, Root) and f.radicand.is_rational and (
                f.degree % 2 == 1 or not f.radicand.as_rational().is_negative()
            ):
                roots[f.degree] = roots.get(f.degree, _R1) * f.radicand.as_rational()
            else:
                rest.append(f)

        powers: Dict[Expr, Expr] = {}
        for f in rest:
            b, e = _base_and_exponent(f)
            if b in powers:
                powers[b] = Sum((powers[b], e)).simplify()
            else:
                powers[b] = e

        merged: List[Expr] = [Root(from_rational(r), d).simplify() for d, r in roots.items()]
        for b, e in powers.items():
            if e.is_zero:
                continue
            merged.append(b if e.is_one else Power(b, e).simplify())

        final: List[Expr] = []
        again = False
        for f in merged:
            r = f.as_rational()
            if r is not None:
                if r.is_zero():
                    return ZERO
                coeff = coeff * r
            else:
                again = again or isinstance(f, Product)
                final.append(f)
        if again:
            return Product((from_rational(coeff),) + tuple(final)).simplify()

        if not final:
            return from_rational(coeff)
        if len(final) == 1 and isinstance(final[0], Sum) and not coeff.is_one():
            # c·(a + b) = c·a + c·b
            c = from_rational(coeff)
            return Sum(tuple(Product((c, t)) for t in final[0].terms)).simplify()
        final.sort(key=_factor_order)
        if coeff.is_one():
            return final[0] if len(final) == 1 else Product(tuple(final))
        return Product((from_rational(coeff),) + tuple(final))

    def to_float(self, env: Optional[Dict[str, float]] = None) -> np.float64:
        total = np.float64(1.0)
        for f in self.factors:
            total = total * f.to_float(env)
        return total

    def coefficient(self) -> Rational:
        if self.factors:
            r = self.factors[0].as_rational()
            if r is not None:
                return r
        return _R1

    def base_expr(self) -> Expr:
        if self.factors and self.factors[0].is_rational:
            rest = self.factors[1:]
            if not rest:
                return ONE
            return rest[0] if len(rest) == 1 else Product(rest)
        return self

    def negate(self) -> Expr:
        return _scale(-self.coefficient(), self.base_expr())

    @property
    def precedence(self) -> int:
        return 2

    def __str__(self) -> str:
        c = self.coefficient()
        base = self.base_expr()
        factors = base.factors if isinstance(base, Product) else (base,)
        body = "*".join(_wrap(f, 3) for f in factors)
        if c.is_one():
            return body
        if c == -1:
            return f"-{body}"
        coeff = c.to_string() if c.is_int() else f"({c.to_string()})"
        return f"{coeff}*{body}"


# ---------------------------------------------------------------------------
# Power and Root
# ---------------------------------------------------------------------------

def _root_power(root: "Root", n: int) -> Expr:
    """Root(a, d)^n for an integer n, rationalizing negative powers of rational radicands."""
    if n > 0:
        return Root(Power(root.radicand, Integer(n)), root.degree).simplify()
    m = -n
    a = root.radicand.as_rational()
    if a is not None and a > _R0 and m * (root.degree - 1) <= config.MAX_INTEGER_POWER:
        # a^(-m/d) = a^(-m) · root(a^(m(d-1)), d)
        outside = from_rational(_R1 / (a ** m))
        inside = Root(from_rational(a ** (m * (root.degree - 1))), root.degree)
        return Product((outside, inside)).simplify()
    return Power(root, Integer(n))


@dataclass(frozen=True)
class Power(Expr):
    base: Expr
    exponent: Expr

    def __post_init__(self) -> None:
        object.__setattr__(self, "base", to_expr(self.base))
        object.__setattr__(self, "exponent", to_expr(self.exponent))

    def children(self) -> Tuple[Expr, ...]:
        return (self.base, self.exponent)

    def with_children(self, children: Tuple[Expr, ...]) -> Expr:
        return Power(children[0], children[1])

    def simplify(self) -> Expr:
        b = self.base.simplify()
        e = self.exponent.simplify()
        er = e.as_rational()
        br = b.as_rational()

        if er is not None:
            if er.is_zero():
                return ONE
            if er.is_one():
                return b
        if br is not None:
            if br.is_one():
                return ONE
            if br.is_zero():
                if er is None:
                    return Power(b, e)
                # 0^negative propagates as an infinite value
                return ZERO if er > _R0 else Fraction(1, 0)
            if er is not None and er.is_int():
                n = er.to_int()
                if abs(n) <= config.MAX_INTEGER_POWER:
                    return from_rational(br ** n)
                return Power(b, e)

        if er is not None and not er.is_int():
            # a^(p/q) = root(a^p, q)
            p, q = er.numerator(), er.denominator()
            if abs(p) > config.MAX_INTEGER_POWER:
                return Power(b, e)
            if p > 0:
                return Root(Power(b, Integer(p)), q).simplify()
            return Power(Root(Power(b, Integer(-p)), q), MINUS_ONE).simplify()

        if er is not None:
            n = er.to_int()
            if isinstance(b, Power):
                return Power(b.base, Product((b.exponent, e))).simplify()
            if isinstance(b, Product):
                return Product(tuple(Power(f, e) for f in b.factors)).simplify()
            if isinstance(b, Root):
                return _root_power(b, n)
            if isinstance(b, Div):
                return Product((Power(b.numerator, e), Power(b.denominator, Integer(-n)))).simplify()
        return Power(b, e)

    def to_float(self, env: Optional[Dict[str, float]] = None) -> np.float64:
        base = self.base.to_float(env)
        exponent = self.exponent.to_float(env)
        if base < 0 and self.exponent.is_rational:
            # odd-denominator rational powers of negatives stay real
            r = self.exponent.as_rational()
            if r.denominator() % 2 == 1:
                value = np.power(-base, exponent)
                return -value if r.numerator() % 2 == 1 else value
        return np.power(base, exponent)

    precedence = 4

    def __str__(self) -> str:
        return f"{_wrap(self.base, 5)}^{_wrap(self.exponent, 5)}"


def _extract_root(value: Rational, n: int) -> Tuple[Rational, int]:
    """Split root(value, n) into outer · root(inner, n) with an integer inner radicand."""
    a, b = value.numerator(), value.denominator()
    radicand = a * b ** (n - 1)
    outer, inner = perfect_power_split(abs(radicand), n)
    if radicand < 0:
        if n % 2 == 1:
            outer = -outer
        else:
            inner = -inner
    return Rational(outer, b), inner


@dataclass(frozen=True)
class Root(Expr):
    radicand: Expr
    degree: int = 2

    def __post_init__(self) -> None:
        object.__setattr__(self, "radicand", to_expr(self.radicand))
        if self.degree < 1:
            raise ValueError("root degree must be positive")

    def children(self) -> Tuple[Expr, ...]:
        return (self.radicand,)

    def with_children(self, children: Tuple[Expr, ...]) -> Expr:
        return Root(children[0], self.degree)

    def simplify(self) -> Expr:
        r = self.radicand.simplify()
        n = self.degree
        if n == 1:
            return r
        rr = r.as_rational()
        if rr is not None:
            if rr.is_zero():
                return ZERO
            if rr.is_one():
                return ONE
            outer, inner = _extract_root(rr, n)
            if inner == 1:
                return from_rational(outer)
            root = Root(Integer(inner), n)
            if outer.is_one():
                return root
            return Product((from_rational(outer), root))
        if isinstance(r, Root):
            return Root(r.radicand, n * r.degree).simplify()
        if isinstance(r, Power) and r.exponent.is_integer:
            k = r.exponent.as_rational().to_int()
            if k % n == 0:
                return Power(r.base, Integer(k // n)).simplify()
        if isinstance(r, Product):
            c = r.coefficient()
            if not c.is_one():
                outer, inner = _extract_root(c, n)
                if not outer.is_one():
                    inside = Product((Integer(inner), r.base_expr())).simplify()
                    return Product((from_rational(outer), Root(inside, n))).simplify()
        return Root(r, n)

    def to_float(self, env: Optional[Dict[str, float]] = None) -> np.float64:
        value = self.radicand.to_float(env)
        if value < 0 and self.degree % 2 == 1:
            return -np.power(-value, 1.0 / self.degree)
        return np.power(value, 1.0 / self.degree)

    def __str__(self) -> str:
        inner = _wrap(self.radicand, 5)
        if self.degree == 2:
            return f"√{inner}"
        if self.degree == 3:
            return f"∛{inner}"
        return f"root({self.radicand}, {self.degree})"


# ---------------------------------------------------------------------------
# Log, Trig, Abs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Log(Expr):
    base: Expr
    argument: Expr

    def __post_init__(self) -> None:
        object.__setattr__(self, "base", to_expr(self.base))
        object.__setattr__(self, "argument", to_expr(self.argument))

    @staticmethod
    def ln(argument: ExprLike) -> "Log":
        return Log(E, to_expr(argument))

    @property
    def is_natural(self) -> bool:
        return self.base == E

    def children(self) -> Tuple[Expr, ...]:
        return (self.base, self.argument)

    def with_children(self, children: Tuple[Expr, ...]) -> Expr:
        return Log(children[0], children[1])

    def simplify(self) -> Expr:
        b = self.base.simplify()
        a = self.argument.simplify()
        ar = a.as_rational()
        br = b.as_rational()
        if ar is not None and ar.is_one():
            return ZERO
        if a == b:
            return ONE
        if isinstance(a, Power) and a.base == b:
            return a.exponent
        if isinstance(a, Root) and a.radicand == b:
            return Fraction(1, a.degree)
        if ar is not None and br is not None and ar > _R0 and br.is_int():
            base = br.to_int()
            if ar.is_int():
                k = integer_log(ar.to_int(), base)
                if k is not None:
                    return Integer(k)
            elif ar.numerator() == 1:
                k = integer_log(ar.denominator(), base)
                if k is not None:
                    return Integer(-k)
        return Log(b, a)

    def to_float(self, env: Optional[Dict[str, float]] = None) -> np.float64:
        argument = self.argument.to_float(env)
        if self.is_natural:
            return np.log(argument)
        return np.log(argument) / np.log(self.base.to_float(env))

    def __str__(self) -> str:
        if self.is_natural:
            return f"ln({self.argument})"
        if self.base == Integer(10):
            return f"log({self.argument})"
        return f"log_{_wrap(self.base, 5)}({self.argument})"


TRIG_FUNCTIONS = (
    "sin", "cos", "tan", "asin", "acos", "atan",
    "sinh", "cosh", "tanh", "asinh", "acosh", "atanh",
)

_NUMPY_TRIG = {
    "sin": np.sin, "cos": np.cos, "tan": np.tan,
    "asin": np.arcsin, "acos": np.arccos, "atan": np.arctan,
    "sinh": np.sinh, "cosh": np.cosh, "tanh": np.tanh,
    "asinh": np.arcsinh, "acosh": np.arccosh, "atanh": np.arctanh,
}


def _pi_multiple(e: Expr) -> Optional[Rational]:
    """r when e is r·π."""
    if e.is_zero:
        return _R0
    if e == PI:
        return _R1
    if isinstance(e, Product) and e.base_expr() == PI:
        return e.coefficient()
    return None


def _pi_times(r: Rational) -> Expr:
    return Product((from_rational(r), PI)).simplify()


# sin(kπ/12) for k in 0..6, where defined exactly
_SIN_TWELFTHS: Dict[int, Expr] = {
    0: ZERO,
    2: HALF,
    3: Product((HALF, Root(TWO, 2))),
    4: Product((HALF, Root(Integer(3), 2))),
    6: ONE,
}


def _sin_twelfths(k: int) -> Optional[Expr]:
    k %= 24
    if k > 12:
        v = _sin_twelfths(k - 12)
        return None if v is None else v.negate()
    if k > 6:
        k = 12 - k
    return _SIN_TWELFTHS.get(k)


def _exact_circular(func: str, turns: Rational) -> Optional[Expr]:
    """sin/cos/tan at turns·π for denominators 1, 2, 3, 4 and 6."""
    if 12 % turns.denominator() != 0 or turns.denominator() == 12:
        return None
    k = (turns * 12).to_int()
    sin_v = _sin_twelfths(k)
    cos_v = _sin_twelfths(k + 6)
    if func == "sin":
        return sin_v
    if func == "cos":
        return cos_v
    if sin_v is None or cos_v is None:
        return None
    if cos_v.is_zero:
        return Fraction(1, 0)
    return Div(sin_v, cos_v).simplify()


_INVERSE_VALUES: Dict[str, Dict[Rational, Rational]] = {
    # argument -> multiple of π
    "asin": {Rational(0): Rational(0), Rational(1, 2): Rational(1, 6), Rational(-1, 2): Rational(-1, 6),
             Rational(1): Rational(1, 2), Rational(-1): Rational(-1, 2)},
    "acos": {Rational(1): Rational(0), Rational(1, 2): Rational(1, 3), Rational(0): Rational(1, 2),
             Rational(-1, 2): Rational(2, 3), Rational(-1): Rational(1)},
    "atan": {Rational(0): Rational(0), Rational(1): Rational(1, 4), Rational(-1): Rational(-1, 4)},
}

_HYPERBOLIC_AT_ZERO = {"sinh": ZERO, "cosh": ONE, "tanh": ZERO, "asinh": ZERO, "atanh": ZERO}


@dataclass(frozen=True)
class Trig(Expr):
    function: str
    argument: Expr

    def __post_init__(self) -> None:
        if self.function not in TRIG_FUNCTIONS:
            raise ValueError(f"unknown function {self.function!r}")
        object.__setattr__(self, "argument", to_expr(self.argument))

    def children(self) -> Tuple[Expr, ...]:
        return (self.argument,)

    def with_children(self, children: Tuple[Expr, ...]) -> Expr:
        return Trig(self.function, children[0])

    def simplify(self) -> Expr:
        a = self.argument.simplify()
        fn = self.function
        if fn in ("sin", "cos", "tan"):
            turns = _pi_multiple(a)
            if turns is not None:
                exact = _exact_circular(fn, turns)
                if exact is not None:
                    return exact
        ar = a.as_rational()
        if ar is not None:
            table = _INVERSE_VALUES.get(fn)
            if table is not None and ar in table:
                return _pi_times(table[ar])
            if ar.is_zero() and fn in _HYPERBOLIC_AT_ZERO:
                return _HYPERBOLIC_AT_ZERO[fn]
            if fn == "acosh" and ar.is_one():
                return ZERO
        return Trig(fn, a)

    def to_float(self, env: Optional[Dict[str, float]] = None) -> np.float64:
        return _NUMPY_TRIG[self.function](self.argument.to_float(env))

    def __str__(self) -> str:
        return f"{self.function}({self.argument})"


@dataclass(frozen=True)
class Abs(Expr):
    inner: Expr

    def __post_init__(self) -> None:
        object.__setattr__(self, "inner", to_expr(self.inner))

    def children(self) -> Tuple[Expr, ...]:
        return (self.inner,)

    def with_children(self, children: Tuple[Expr, ...]) -> Expr:
        return Abs(children[0])

    def simplify(self) -> Expr:
        x = self.inner.simplify()
        r = x.as_rational()
        if r is not None:
            return from_rational(abs(r))
        if isinstance(x, Abs):
            return x
        if isinstance(x, Constant):
            return x
        if isinstance(x, Root) and x.radicand.as_rational() is not None and x.radicand.as_rational() > _R0:
            return x
        if isinstance(x, Product) and x.factors[0].is_rational:
            c = abs(x.coefficient())
            return Product((from_rational(c), Abs(x.base_expr()))).simplify()
        return Abs(x)

    def to_float(self, env: Optional[Dict[str, float]] = None) -> np.float64:
        return np.abs(self.inner.to_float(env))

    def __str__(self) -> str:
        return f"|{self.inner}|"


# ---------------------------------------------------------------------------
# Div
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Div(Expr):
    numerator: Expr
    denominator: Expr

    def __post_init__(self) -> None:
        object.__setattr__(self, "numerator", to_expr(self.numerator))
        object.__setattr__(self, "denominator", to_expr(self.denominator))

    def children(self) -> Tuple[Expr, ...]:
        return (self.numerator, self.denominator)

    def with_children(self, children: Tuple[Expr, ...]) -> Expr:
        return Div(children[0], children[1])

    def simplify(self) -> Expr:
        n = self.numerator.simplify()
        d = self.denominator.simplify()
        nr = n.as_rational()
        dr = d.as_rational()

        if dr is not None and dr.is_zero():
            if nr is not None:
                # x/0 -> ±inf, 0/0 -> undefined
                return Fraction(nr.numerator(), 0)
            return Div(n, d)
        if nr is not None and nr.is_zero():
            return ZERO
        if dr is not None:
            if nr is not None:
                return from_rational(nr / dr)
            if dr.is_one():
                return n
            if isinstance(n, Sum):
                return Sum(tuple(Div(t, d) for t in n.terms)).simplify()
            return Product((from_rational(dr.reciprocal()), n)).simplify()
        if n == d:
            return ONE
        if isinstance(n, Root) and isinstance(d, Root) and n.degree == d.degree:
            return Root(Div(n.radicand, d.radicand), n.degree).simplify()
        if isinstance(n, Div):
            return Div(n.numerator, Product((n.denominator, d))).simplify()
        if isinstance(d, Div):
            return Div(Product((n, d.denominator)), d.numerator).simplify()
        if isinstance(n, Sum):
            return Sum(tuple(Div(t, d) for t in n.terms)).simplify()
        if not isinstance(d, Sum):
            # monomial denominators become negative powers so equal bases cancel
            return Product((n, Power(d, MINUS_ONE))).simplify()
        return Div(n, d)

    def to_float(self, env: Optional[Dict[str, float]] = None) -> np.float64:
        return np.float64(self.numerator.to_float(env)) / np.float64(self.denominator.to_float(env))

    @property
    def precedence(self) -> int:
        return 2

    def __str__(self) -> str:
        return f"{_wrap(self.numerator, 3)}/{_wrap(self.denominator, 4)}"


# ---------------------------------------------------------------------------
# Permutations and combinations
# ---------------------------------------------------------------------------

def _count_args(n: Expr, r: Expr) -> Optional[Tuple[int, int]]:
    if not (n.is_integer and r.is_integer):
        return None
    ni, ri = n.as_rational().to_int(), r.as_rational().to_int()
    if 0 <= ri <= ni:
        return ni, ri
    return None


def _gamma_count(n: float, r: float, choose: bool) -> np.float64:
    if n < 0 or r < 0 or r > n:
        return np.float64(math.nan)
    value = math.gamma(n + 1) / math.gamma(n - r + 1)
    if choose:
        value /= math.gamma(r + 1)
    return np.float64(value)


@dataclass(frozen=True)
class Perm(Expr):
    n: Expr
    r: Expr

    def __post_init__(self) -> None:
        object.__setattr__(self, "n", to_expr(self.n))
        object.__setattr__(self, "r", to_expr(self.r))

    def children(self) -> Tuple[Expr, ...]:
        return (self.n, self.r)

    def with_children(self, children: Tuple[Expr, ...]) -> Expr:
        return Perm(children[0], children[1])

    def simplify(self) -> Expr:
        n, r = self.n.simplify(), self.r.simplify()
        args = _count_args(n, r)
        if args is not None:
            return Integer(math.perm(*args))
        return Perm(n, r)

    def to_float(self, env: Optional[Dict[str, float]] = None) -> np.float64:
        return _gamma_count(float(self.n.to_float(env)), float(self.r.to_float(env)), choose=False)

    def __str__(self) -> str:
        return f"P({self.n}, {self.r})"


@dataclass(frozen=True)
class Comb(Expr):
    n: Expr
    r: Expr

    def __post_init__(self) -> None:
        object.__setattr__(self, "n", to_expr(self.n))
        object.__setattr__(self, "r", to_expr(self.r))

    def children(self) -> Tuple[Expr, ...]:
        return (self.n, self.r)

    def with_children(self, children: Tuple[Expr, ...]) -> Expr:
        return Comb(children[0], children[1])

    def simplify(self) -> Expr:
        n, r = self.n.simplify(), self.r.simplify()
        args = _count_args(n, r)
        if args is not None:
            return Integer(math.comb(*args))
        return Comb(n, r)

    def to_float(self, env: Optional[Dict[str, float]] = None) -> np.float64:
        return _gamma_count(float(self.n.to_float(env)), float(self.r.to_float(env)), choose=True)

    def __str__(self) -> str:
        return f"C({self.n}, {self.r})"

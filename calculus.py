"""
Calculus Operators

Symbolic differentiation (structural recursion over the Expr variants),
rule-based integration with call-scoped integration constants, finite
summation/product by enumeration, and a numpy Simpson fallback for definite
integrals that have no closed form here.

Unsupported forms yield None rather than raising, so the caller can decide
between "unavailable" and a numeric fallback.
"""
from __future__ import annotations
from typing import List, Optional

import numpy as np

import config
from expr import (
    Abs, Comb, Div, E, Expr, Fraction, Integer, Log, Perm, Power,
    Product, Root, Sum, Trig, Variable, MINUS_ONE, ONE, TWO, ZERO,
)
from logging_config import get_logger
from polynomial import Polynomial
from results import MalformedExpressionError

logger = get_logger("calculus")


class ConstantAllocator:
    """Hands out integration constants c0, c1, … for one evaluate() call."""

    def __init__(self, prefix: str = "c"):
        self.prefix = prefix
        self.count = 0

    def next(self) -> Variable:
        name = f"{self.prefix}{self.count}"
        self.count += 1
        return Variable(name)

    def reset(self) -> None:
        self.count = 0


class _Unsupported(Exception):
    pass


# ---------------------------------------------------------------------------
# Differentiation
# ---------------------------------------------------------------------------

def differentiate(e: Expr, var: str) -> Optional[Expr]:
    """d/d(var) of e, simplified; None when some sub-expression has no rule.

    Other variables are independent symbols and differentiate to 0.
    """
    try:
        return _d(e.simplify(), var).simplify()
    except _Unsupported as exc:
        logger.debug("no derivative rule for %s", exc)
        return None


def _ln(u: Expr) -> Expr:
    return Log(E, u)


def _d(e: Expr, var: str) -> Expr:
    if not e.depends_on(var):
        return ZERO
    if isinstance(e, Variable):
        return ONE
    if isinstance(e, Sum):
        return Sum(tuple(_d(t, var) for t in e.terms))
    if isinstance(e, Product):
        # generalized product rule
        terms: List[Expr] = []
        for i, f in enumerate(e.factors):
            if not f.depends_on(var):
                continue
            rest = e.factors[:i] + e.factors[i + 1:]
            terms.append(Product(rest + (_d(f, var),)))
        return Sum(tuple(terms))
    if isinstance(e, Power):
        return _d_power(e.base, e.exponent, var)
    if isinstance(e, Root):
        return _d_power(e.radicand, Fraction(1, e.degree), var)
    if isinstance(e, Div):
        n, d = e.numerator, e.denominator
        top = Sum((Product((_d(n, var), d)), Product((MINUS_ONE, n, _d(d, var)))))
        return Div(top, Power(d, TWO))
    if isinstance(e, Log):
        if e.base.depends_on(var):
            return _d(Div(_ln(e.argument), _ln(e.base)), var)
        du = _d(e.argument, var)
        if e.is_natural:
            return Div(du, e.argument)
        return Div(du, Product((e.argument, _ln(e.base))))
    if isinstance(e, Trig):
        return Product((_d_trig(e.function, e.argument), _d(e.argument, var)))
    if isinstance(e, Abs):
        u = e.inner
        return Product((Div(u, Abs(u)), _d(u, var)))
    if isinstance(e, (Perm, Comb)):
        raise _Unsupported(str(e))
    raise _Unsupported(str(e))


def _d_power(base: Expr, exponent: Expr, var: str) -> Expr:
    base_dep = base.depends_on(var)
    exp_dep = exponent.depends_on(var)
    if not exp_dep:
        # n·b^(n-1)·b'
        return Product((exponent, Power(base, Sum((exponent, MINUS_ONE))), _d(base, var)))
    if not base_dep:
        # b^u·ln(b)·u'
        return Product((Power(base, exponent), _ln(base), _d(exponent, var)))
    # b^u·(u'·ln b + u·b'/b)
    inner = Sum((
        Product((_d(exponent, var), _ln(base))),
        Div(Product((exponent, _d(base, var))), base),
    ))
    return Product((Power(base, exponent), inner))


def _d_trig(fn: str, u: Expr) -> Expr:
    """Outer derivative of fn at u (the chain factor u' is applied by the caller)."""
    if fn == "sin":
        return Trig("cos", u)
    if fn == "cos":
        return Product((MINUS_ONE, Trig("sin", u)))
    if fn == "tan":
        return Power(Trig("cos", u), Integer(-2))
    if fn == "asin":
        return Power(Sum((ONE, Product((MINUS_ONE, Power(u, TWO))))), Fraction(-1, 2))
    if fn == "acos":
        return Product((MINUS_ONE, Power(Sum((ONE, Product((MINUS_ONE, Power(u, TWO))))), Fraction(-1, 2))))
    if fn == "atan":
        return Power(Sum((ONE, Power(u, TWO))), MINUS_ONE)
    if fn == "sinh":
        return Trig("cosh", u)
    if fn == "cosh":
        return Trig("sinh", u)
    if fn == "tanh":
        return Power(Trig("cosh", u), Integer(-2))
    if fn == "asinh":
        return Power(Sum((Power(u, TWO), ONE)), Fraction(-1, 2))
    if fn == "acosh":
        return Power(Sum((Power(u, TWO), MINUS_ONE)), Fraction(-1, 2))
    if fn == "atanh":
        return Power(Sum((ONE, Product((MINUS_ONE, Power(u, TWO))))), MINUS_ONE)
    raise _Unsupported(fn)


def derivative_at(e: Expr, var: str, at: Optional[Expr] = None) -> Optional[Expr]:
    """Derivative of e, evaluated at var = at when a point is given."""
    derivative = differentiate(e, var)
    if derivative is None or at is None:
        return derivative
    return derivative.substitute(var, at).simplify()


# ---------------------------------------------------------------------------
# Integration
# ---------------------------------------------------------------------------

def _slope(u: Expr, var: str) -> Optional[Expr]:
    """a when u = a·var + b with a constant and non-zero."""
    du = differentiate(u, var)
    if du is None or du.is_zero or du.depends_on(var):
        return None
    return du


def integrate(e: Expr, var: str) -> Optional[Expr]:
    """Antiderivative of e with respect to var, without a constant of integration."""
    e = e.simplify()
    result = _integrate(e, var)
    if result is None:
        logger.debug("no antiderivative rule for %s", e)
        return None
    return result.simplify()


def _integrate(e: Expr, var: str) -> Optional[Expr]:
    x = Variable(var)
    if not e.depends_on(var):
        return Product((e, x))
    if isinstance(e, Sum):
        parts: List[Expr] = []
        for t in e.terms:
            part = _integrate(t, var)
            if part is None:
                return None
            parts.append(part)
        return Sum(tuple(parts))

    poly = Polynomial.from_expr(e)
    if poly is not None:
        return _integrate_polynomial(poly, var)

    if isinstance(e, Product):
        const = tuple(f for f in e.factors if not f.depends_on(var))
        dep = tuple(f for f in e.factors if f.depends_on(var))
        if const:
            body = dep[0] if len(dep) == 1 else Product(dep)
            inner = _integrate(body.simplify(), var)
            return None if inner is None else Product(const + (inner,))
        return _log_derivative(e, var)
    if isinstance(e, Power):
        return _integrate_power(e.base, e.exponent, var)
    if isinstance(e, Root):
        return _integrate_power(e.radicand, Fraction(1, e.degree), var)
    if isinstance(e, Div):
        if not e.numerator.depends_on(var):
            a = _slope(e.denominator, var)
            if a is not None:
                return Div(Product((e.numerator, _ln(Abs(e.denominator)))), a)
        return _log_derivative(e, var)
    if isinstance(e, Trig):
        return _integrate_trig(e.function, e.argument, var)
    if isinstance(e, Log) and e.is_natural:
        # ∫ln(u) = (u·ln u - u)/a for linear u
        u = e.argument
        a = _slope(u, var)
        if a is not None:
            return Div(Sum((Product((u, _ln(u))), Product((MINUS_ONE, u)))), a)
    return None


def _integrate_polynomial(poly: Polynomial, var: str) -> Expr:
    terms: List[Expr] = []
    for m in poly.terms:
        n = m.degree_var(var)
        raised = m.without(var).to_expr()
        terms.append(Product((Fraction(1, n + 1), raised, Power(Variable(var), Integer(n + 1)))))
    return Sum(tuple(terms))


def _integrate_power(base: Expr, exponent: Expr, var: str) -> Optional[Expr]:
    if not exponent.depends_on(var):
        a = _slope(base, var)
        if a is None:
            return None
        if exponent == MINUS_ONE:
            return Div(_ln(Abs(base)), a)
        raised = Sum((exponent, ONE))
        return Div(Power(base, raised), Product((a, raised)))
    if not base.depends_on(var):
        a = _slope(exponent, var)
        if a is None:
            return None
        if base == E:
            return Div(Power(base, exponent), a)
        return Div(Power(base, exponent), Product((a, _ln(base))))
    return None


def _integrate_trig(fn: str, u: Expr, var: str) -> Optional[Expr]:
    a = _slope(u, var)
    if a is None:
        return None
    if fn == "sin":
        out: Expr = Product((MINUS_ONE, Trig("cos", u)))
    elif fn == "cos":
        out = Trig("sin", u)
    elif fn == "tan":
        out = Product((MINUS_ONE, _ln(Abs(Trig("cos", u)))))
    elif fn == "sinh":
        out = Trig("cosh", u)
    elif fn == "cosh":
        out = Trig("sinh", u)
    elif fn == "tanh":
        out = _ln(Trig("cosh", u))
    else:
        return None
    return Div(out, a)


def _log_derivative(e: Expr, var: str) -> Optional[Expr]:
    """∫c·u'/u = c·ln|u| when e has that shape."""
    if isinstance(e, Div):
        u, rest = e.denominator, e.numerator
    elif isinstance(e, Product):
        inverse = [f for f in e.factors if isinstance(f, Power) and f.exponent == MINUS_ONE]
        if len(inverse) != 1:
            return None
        u = inverse[0].base
        rest = Product(tuple(f for f in e.factors if f is not inverse[0])).simplify()
    else:
        return None
    du = differentiate(u, var)
    if du is None or du.is_zero:
        return None
    ratio = Div(rest, du).simplify()
    if ratio.depends_on(var):
        return None
    return Product((ratio, _ln(Abs(u))))


def indefinite_integral(e: Expr, var: str, allocator: ConstantAllocator) -> Optional[Expr]:
    """∫e d(var) plus the next integration constant from allocator."""
    antiderivative = integrate(e, var)
    if antiderivative is None:
        return None
    return Sum((antiderivative, allocator.next())).simplify()


def definite_integral(e: Expr, var: str, lower: Expr, upper: Expr) -> Optional[Expr]:
    """Exact F(upper) - F(lower), or None when there is no antiderivative."""
    antiderivative = integrate(e, var)
    if antiderivative is None:
        return None
    high = antiderivative.substitute(var, upper)
    low = antiderivative.substitute(var, lower)
    return Sum((high, Product((MINUS_ONE, low)))).simplify()


def numeric_integral(e: Expr, var: str, lower: Expr, upper: Expr,
                     intervals: Optional[int] = None) -> float:
    """Composite Simpson rule on a numpy.linspace grid; reversed bounds negate."""
    n = config.QUADRATURE_INTERVALS if intervals is None else intervals
    n = max(2, n + (n % 2))
    a, b = lower.numeric(), upper.numeric()
    grid = np.linspace(a, b, n + 1)
    with np.errstate(all="ignore"):
        y = np.array([e.to_float({var: float(t)}) for t in grid], dtype=np.float64)
        h = (b - a) / n
        total = y[0] + y[-1] + 4.0 * y[1:-1:2].sum() + 2.0 * y[2:-1:2].sum()
    return float(total * h / 3.0)


# ---------------------------------------------------------------------------
# Summation and product
# ---------------------------------------------------------------------------

def _integer_bounds(lower: Expr, upper: Expr) -> Optional[tuple]:
    lo, hi = lower.simplify(), upper.simplify()
    if not (lo.is_integer and hi.is_integer):
        return None
    return lo.as_rational().to_int(), hi.as_rational().to_int()


def index_range(lower: Expr, upper: Expr) -> range:
    """Indices lower..upper inclusive.

    Non-integer bounds give an empty range. Ranges longer than
    MAX_ENUMERATION_TERMS raise MalformedExpressionError.
    """
    bounds = _integer_bounds(lower, upper)
    if bounds is None:
        logger.debug("non-integer bounds %s..%s, using the identity", lower, upper)
        return range(0)
    lo, hi = bounds
    count = hi - lo + 1
    if count > config.MAX_ENUMERATION_TERMS:
        logger.warning("range of %d terms exceeds limit %d", count, config.MAX_ENUMERATION_TERMS)
        raise MalformedExpressionError(f"range {lo}..{hi} is too large to enumerate")
    return range(lo, hi + 1)


def sum_of(terms: List[Expr]) -> Expr:
    return Sum(tuple(terms)).simplify() if terms else ZERO


def product_of(factors: List[Expr]) -> Expr:
    return Product(tuple(factors)).simplify() if factors else ONE


def summation(body: Expr, var: str, lower: Expr, upper: Expr) -> Expr:
    """Σ body for var = lower..upper (inclusive); 0 for an empty or non-integer range."""
    return sum_of([body.substitute(var, Integer(k)) for k in index_range(lower, upper)])


def product(body: Expr, var: str, lower: Expr, upper: Expr) -> Expr:
    """Π body for var = lower..upper (inclusive); 1 for an empty or non-integer range."""
    return product_of([body.substitute(var, Integer(k)) for k in index_range(lower, upper)])

"""
Node Bridge

Converts the editor's node tree into expressions (evaluating derivative,
integral, summation and product nodes on the way) and renders expressions
back into node trees for display.
"""
from __future__ import annotations
from contextlib import contextmanager
from fractions import Fraction as _PyFraction
from functools import singledispatch, singledispatchmethod
import math
from typing import Dict, List, Optional

import config
from calculus import (
    ConstantAllocator, definite_integral, derivative_at, index_range,
    indefinite_integral, numeric_integral, product, product_of, sum_of, summation,
)
from edag import check_depth
from expr import (
    Abs, Comb, Constant, Div, E, Expr, Fraction, Integer, Log, Perm, PI, Power,
    Product, Root, Sum, Trig, Variable, TRIG_FUNCTIONS, from_rational,
)
from formatting import FormatConfig, format_integer
from logging_config import get_logger
from nodes import (
    AnsNode, CombinationNode, ConstantNode, DerivativeNode, ExponentNode,
    FractionNode, IntegralNode, LiteralNode, LogNode, MathNode, NewlineNode,
    ParenthesisNode, PermutationNode, ProductNode, RootNode, SummationNode,
    TrigNode, is_blank, literal_text, walk,
)
from parser import Tok, parse_tokens, tokenize_literal
from rational import Rational
from results import DepthLimitError, MalformedExpressionError

logger = get_logger("bridge")

_CONSTANT_ALIASES: Dict[str, Expr] = {
    "π": PI,
    "pi": PI,
    "e": E,
    "µ₀": Constant("μ₀"),
}


class Converter:
    """Node tree -> Expr for one evaluate() call.

    Holds the call-scoped state: ans bindings, the integration-constant
    allocator, and whether a numeric fallback made the value inexact.
    """

    def __init__(self, ans_bindings: Optional[Dict[int, Expr]] = None,
                 allocator: Optional[ConstantAllocator] = None):
        self.ans_bindings = ans_bindings or {}
        self.allocator = allocator or ConstantAllocator()
        self.inexact = False
        self._depth = 0
        self._bound: Dict[str, Expr] = {}  # loop indices fixed by enclosing loops

    def convert(self, nodes: List[MathNode]) -> Expr:
        """Convert one slot (a list of sibling nodes) into a simplified Expr."""
        if is_blank(nodes):
            raise MalformedExpressionError("empty slot")
        self._depth += 1
        try:
            if self._depth > config.MAX_EXPRESSION_DEPTH:
                logger.warning("node nesting exceeds %d", config.MAX_EXPRESSION_DEPTH)
                raise DepthLimitError(f"node nesting exceeds {config.MAX_EXPRESSION_DEPTH}")
            parsed = parse_tokens(self._tokens(nodes))
            for name, value in self._bound.items():
                parsed = parsed.substitute(name, value)
            check_depth(parsed)
            return parsed.simplify()
        finally:
            self._depth -= 1

    def _tokens(self, nodes: List[MathNode]) -> List[Tok]:
        toks: List[Tok] = []
        for node in nodes:
            if isinstance(node, LiteralNode):
                toks.extend(tokenize_literal(node.text, self.ans_bindings))
            elif isinstance(node, ParenthesisNode):
                toks.append(Tok("(", "("))
                toks.extend(self._tokens(node.content))
                toks.append(Tok(")", ")"))
            else:
                toks.append(Tok("EXPR", type(node).__name__, self.node_expr(node)))
        return toks

    @singledispatchmethod
    def node_expr(self, node: MathNode) -> Expr:
        raise MalformedExpressionError(f"cannot convert {type(node).__name__}")

    @node_expr.register
    def _(self, node: NewlineNode) -> Expr:
        raise MalformedExpressionError("line break inside an expression")

    @node_expr.register
    def _(self, node: FractionNode) -> Expr:
        return Div(self.convert(node.numerator), self.convert(node.denominator))

    @node_expr.register
    def _(self, node: ExponentNode) -> Expr:
        return Power(self.convert(node.base), self.convert(node.power))

    @node_expr.register
    def _(self, node: TrigNode) -> Expr:
        argument = self.convert(node.argument)
        if node.function == "abs":
            return Abs(argument)
        if node.function not in TRIG_FUNCTIONS:
            raise MalformedExpressionError(f"unknown function {node.function!r}")
        return Trig(node.function, argument)

    @node_expr.register
    def _(self, node: RootNode) -> Expr:
        radicand = self.convert(node.radicand)
        if node.is_square_root or is_blank(node.index):
            return Root(radicand, 2)
        index = self.convert(node.index)
        if index.is_integer and index.as_rational().to_int() >= 2:
            return Root(radicand, index.as_rational().to_int())
        return Power(radicand, Div(Integer(1), index))

    @node_expr.register
    def _(self, node: LogNode) -> Expr:
        argument = self.convert(node.argument)
        if node.is_natural_log:
            return Log(E, argument)
        if is_blank(node.base):
            return Log(Integer(10), argument)
        return Log(self.convert(node.base), argument)

    @node_expr.register
    def _(self, node: PermutationNode) -> Expr:
        return Perm(self.convert(node.n), self.convert(node.r))

    @node_expr.register
    def _(self, node: CombinationNode) -> Expr:
        return Comb(self.convert(node.n), self.convert(node.r))

    @node_expr.register
    def _(self, node: AnsNode) -> Expr:
        text = literal_text(node.index)
        if not text.isdigit():
            raise MalformedExpressionError(f"bad ans index {text!r}")
        index = int(text)
        bound = self.ans_bindings.get(index)
        return bound if bound is not None else Variable(f"ans{index}")

    @node_expr.register
    def _(self, node: ConstantNode) -> Expr:
        if node.constant in _CONSTANT_ALIASES:
            return _CONSTANT_ALIASES[node.constant]
        try:
            return Constant(node.constant)
        except ValueError:
            raise MalformedExpressionError(f"unknown constant {node.constant!r}")

    @node_expr.register
    def _(self, node: DerivativeNode) -> Expr:
        var = literal_text(node.variable) or config.DEFAULT_VARIABLE
        with self._binding(var, None):
            body = self.convert(node.body)
        at = None if is_blank(node.at) else self.convert(node.at)
        result = derivative_at(body, var, at)
        if result is None:
            raise MalformedExpressionError(f"no derivative for {body}")
        return result

    @node_expr.register
    def _(self, node: IntegralNode) -> Expr:
        var = literal_text(node.variable) or config.DEFAULT_VARIABLE
        no_lower, no_upper = is_blank(node.lower), is_blank(node.upper)
        if no_lower != no_upper:
            raise MalformedExpressionError("integral needs both bounds or neither")
        with self._binding(var, None):
            body = self.convert(node.body)
        if no_lower:
            result = indefinite_integral(body, var, self.allocator)
            if result is None:
                raise MalformedExpressionError(f"no antiderivative for {body}")
            return result
        lower, upper = self.convert(node.lower), self.convert(node.upper)
        exact = definite_integral(body, var, lower, upper)
        if exact is not None:
            return exact
        if lower.free_variables() or upper.free_variables() or body.free_variables() - {var}:
            raise MalformedExpressionError(f"no antiderivative for {body}")
        logger.warning("no closed form for %s, using Simpson quadrature", body)
        value = numeric_integral(body, var, lower, upper)
        if not math.isfinite(value):
            raise MalformedExpressionError(f"integral of {body} does not converge")
        self.inexact = True
        return from_rational(Rational(_PyFraction(value)))

    @node_expr.register
    def _(self, node: SummationNode) -> Expr:
        return self._loop(node, summation, sum_of)

    @node_expr.register
    def _(self, node: ProductNode) -> Expr:
        return self._loop(node, product, product_of)

    def _loop(self, node, enumerate_body, combine) -> Expr:
        var = literal_text(node.variable) or config.DEFAULT_VARIABLE
        lower, upper = self.convert(node.lower), self.convert(node.upper)
        if not any(isinstance(n, (SummationNode, ProductNode)) for n in walk(node.body)):
            with self._binding(var, None):
                body = self.convert(node.body)
            return enumerate_body(body, var, lower, upper)
        # inner bounds may read this index, so the body is converted once per value
        values: List[Expr] = []
        for k in index_range(lower, upper):
            with self._binding(var, Integer(k)):
                values.append(self.convert(node.body))
        return combine(values)

    @contextmanager
    def _binding(self, var: str, value: Optional[Expr]):
        """Bind var to value, or hide an outer binding when value is None."""
        outer = self._bound.pop(var, None)
        if value is not None:
            self._bound[var] = value
        try:
            yield
        finally:
            self._bound.pop(var, None)
            if outer is not None:
                self._bound[var] = outer


def convert(nodes: List[MathNode], ans_bindings: Optional[Dict[int, Expr]] = None,
            allocator: Optional[ConstantAllocator] = None) -> Expr:
    """Convert a node list into a simplified Expr (raises EngineError subclasses)."""
    return Converter(ans_bindings, allocator).convert(nodes)


# =====================
# Expr -> node tree
# =====================

def _lit(text: str) -> LiteralNode:
    return LiteralNode(text)


_FUNCTION_LIKE = (Trig, Log, Abs, Perm, Comb, Sum)


def _starts_numeric(e: Expr) -> bool:
    while isinstance(e, Power):
        e = e.base
    return e.is_rational


def _render_factors(coeff: int, factors: List[Expr], cfg: FormatConfig) -> List[MathNode]:
    out: List[MathNode] = []
    if coeff != 1 or not factors:
        out.append(_lit(format_integer(coeff, cfg, whole=False)))
    prev: Optional[Expr] = None
    for f in factors:
        if out and (
            _starts_numeric(f)
            or (prev is not None and isinstance(prev, _FUNCTION_LIKE) and isinstance(f, _FUNCTION_LIKE))
        ):
            out.append(_lit("·"))
        if isinstance(f, (Sum, Div)):
            out.append(ParenthesisNode(to_math_node(f, cfg)))
        else:
            out.extend(to_math_node(f, cfg))
        prev = f
    return out


def _split_denominator(factors: List[Expr]):
    top: List[Expr] = []
    bottom: List[Expr] = []
    for f in factors:
        if isinstance(f, Power) and f.exponent.is_rational and f.exponent.as_rational().is_negative():
            bottom.append(Power(f.base, from_rational(-f.exponent.as_rational())).simplify())
        else:
            top.append(f)
    return top, bottom


def _wrap_base(e: Expr, cfg: FormatConfig) -> List[MathNode]:
    nodes = to_math_node(e, cfg)
    if isinstance(e, (Sum, Product, Div, Fraction, Power)) or (e.is_rational and e.as_rational().is_negative()):
        return [ParenthesisNode(nodes)]
    return nodes


@singledispatch
def to_math_node(expr: Expr, cfg: FormatConfig) -> List[MathNode]:
    """Render an expression as editor nodes."""
    raise TypeError(f"cannot render {type(expr).__name__}")


@to_math_node.register
def _(expr: Integer, cfg: FormatConfig) -> List[MathNode]:
    return [_lit(format_integer(expr.value, cfg))]


@to_math_node.register
def _(expr: Fraction, cfg: FormatConfig) -> List[MathNode]:
    if expr.denominator == 0 and expr.numerator != 0:
        return [_lit("∞" if expr.numerator > 0 else "-∞")]
    frac = FractionNode(
        [_lit(format_integer(abs(expr.numerator), cfg, whole=False))],
        [_lit(format_integer(expr.denominator, cfg, whole=False))],
    )
    return [_lit("-"), frac] if expr.numerator < 0 else [frac]


@to_math_node.register
def _(expr: Constant, cfg: FormatConfig) -> List[MathNode]:
    return [ConstantNode(expr.symbol)]


@to_math_node.register
def _(expr: Variable, cfg: FormatConfig) -> List[MathNode]:
    return [_lit(expr.name)]


@to_math_node.register
def _(expr: Sum, cfg: FormatConfig) -> List[MathNode]:
    out: List[MathNode] = []
    for idx, term in enumerate(expr.terms):
        if idx > 0 and term.is_negative_term():
            out.append(_lit("-"))
            out.extend(to_math_node(term.negate(), cfg))
        else:
            if idx > 0:
                out.append(_lit("+"))
            out.extend(to_math_node(term, cfg))
    return out


@to_math_node.register
def _(expr: Product, cfg: FormatConfig) -> List[MathNode]:
    c = expr.coefficient()
    base = expr.base_expr()
    factors = list(base.factors) if isinstance(base, Product) else [base]
    top, bottom = _split_denominator(factors)
    sign: List[MathNode] = [_lit("-")] if c.is_negative() else []
    num, den = abs(c.numerator()), c.denominator()
    if bottom or den != 1:
        frac = FractionNode(_render_factors(num, top, cfg), _render_factors(den, bottom, cfg))
        return sign + [frac]
    return sign + _render_factors(num, top, cfg)


@to_math_node.register
def _(expr: Power, cfg: FormatConfig) -> List[MathNode]:
    r = expr.exponent.as_rational()
    if r is not None and r.is_negative():
        flipped = Power(expr.base, from_rational(-r)).simplify()
        return [FractionNode([_lit("1")], to_math_node(flipped, cfg))]
    return [ExponentNode(_wrap_base(expr.base, cfg), to_math_node(expr.exponent, cfg))]


@to_math_node.register
def _(expr: Root, cfg: FormatConfig) -> List[MathNode]:
    index: List[MathNode] = [] if expr.degree == 2 else [_lit(str(expr.degree))]
    return [RootNode(to_math_node(expr.radicand, cfg), index, expr.degree == 2)]


@to_math_node.register
def _(expr: Log, cfg: FormatConfig) -> List[MathNode]:
    argument = to_math_node(expr.argument, cfg)
    if expr.is_natural:
        return [LogNode(argument, [], True)]
    if expr.base == Integer(10):
        return [LogNode(argument, [], False)]
    return [LogNode(argument, to_math_node(expr.base, cfg), False)]


@to_math_node.register
def _(expr: Trig, cfg: FormatConfig) -> List[MathNode]:
    return [TrigNode(expr.function, to_math_node(expr.argument, cfg))]


@to_math_node.register
def _(expr: Abs, cfg: FormatConfig) -> List[MathNode]:
    return [TrigNode("abs", to_math_node(expr.inner, cfg))]


@to_math_node.register
def _(expr: Div, cfg: FormatConfig) -> List[MathNode]:
    return [FractionNode(to_math_node(expr.numerator, cfg), to_math_node(expr.denominator, cfg))]


@to_math_node.register
def _(expr: Perm, cfg: FormatConfig) -> List[MathNode]:
    return [PermutationNode(to_math_node(expr.n, cfg), to_math_node(expr.r, cfg))]


@to_math_node.register
def _(expr: Comb, cfg: FormatConfig) -> List[MathNode]:
    return [CombinationNode(to_math_node(expr.n, cfg), to_math_node(expr.r, cfg))]

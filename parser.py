from __future__ import annotations
import re
from typing import Dict, List, Optional, Tuple

from expr import (
    Abs, Constant, Div, E, Expr, Fraction, Integer, Log, PI, Power, Product,
    Root, Sum, Trig, Variable, TRIG_FUNCTIONS, MINUS_ONE, from_rational,
)
from rational import Rational
from results import MalformedExpressionError

# =====================
# Literal tokenizer
# =====================

# Token kinds:
#   NUM   exact number read from text
#   EXPR  already-built expression (structured node, constant, variable, ans)
#   FUNC  function name written as text, always followed by "("
#   DEG   postfix degree sign
#   + - * / ^ ( )  and NEG for unary minus


class Tok:
    def __init__(self, kind: str, lex: str = "", value: Optional[Expr] = None):
        self.kind, self.lex, self.value = kind, lex, value

    def __repr__(self) -> str:
        return f"Tok({self.kind!r}, {self.lex!r})"


_NORMALIZE = str.maketrans({"·": "*", "×": "*", "−": "-", "÷": "/", "ᴇ": "e"})

_NUMBER = re.compile(r"(\d+\.?\d*|\.\d+)([eE][+\-]?\d+)?")
_ANS = re.compile(r"ans(\d+)")

TEXT_FUNCTIONS = tuple(
    sorted(TRIG_FUNCTIONS + ("ln", "log", "sqrt", "abs"), key=len, reverse=True)
)
_FUNCTION = re.compile(r"(" + "|".join(TEXT_FUNCTIONS) + r")\s*\(")

# multi-character symbols are matched before single letters
_SYMBOLS: Dict[str, Expr] = {
    "ε₀": Constant("ε₀"),
    "μ₀": Constant("μ₀"),
    "µ₀": Constant("μ₀"),
    "c₀": Constant("c₀"),
    "e⁻": Constant("e⁻"),
    "pi": PI,
    "π": PI,
    "φ": Constant("φ"),
}


def tokenize_literal(text: str, ans_bindings: Optional[Dict[int, Expr]] = None) -> List[Tok]:
    """Split the text of one literal node into tokens.

    Numbers are read exactly (0.1 is 1/10); letter runs become single-letter
    variables except for ans<digits>, pi, rad and function names followed by "(".
    """
    s = text.translate(_NORMALIZE)
    i, n = 0, len(s)
    toks: List[Tok] = []
    while i < n:
        c = s[i]
        if c.isspace():
            i += 1
            continue
        if c in "+-*/^()":
            toks.append(Tok(c, c))
            i += 1
            continue
        if c == "°":
            toks.append(Tok("DEG", c))
            i += 1
            continue
        m = _NUMBER.match(s, i)
        if m:
            toks.append(Tok("NUM", m.group(0), from_rational(Rational.from_decimal(m.group(0)))))
            i = m.end()
            continue
        symbol = next((k for k in _SYMBOLS if s.startswith(k, i)), None)
        if symbol is not None:
            toks.append(Tok("EXPR", symbol, _SYMBOLS[symbol]))
            i += len(symbol)
            continue
        m = _ANS.match(s, i)
        if m:
            index = int(m.group(1))
            bound = (ans_bindings or {}).get(index)
            toks.append(Tok("EXPR", m.group(0), bound if bound is not None else Variable(f"ans{index}")))
            i = m.end()
            continue
        if s.startswith("rad", i):
            i += 3
            continue
        m = _FUNCTION.match(s, i)
        if m:
            toks.append(Tok("FUNC", m.group(1)))
            i = m.end(1)
            continue
        if c.isalpha():
            toks.append(Tok("EXPR", c, E if c == "e" else Variable(c)))
            i += 1
            continue
        raise MalformedExpressionError(f"unexpected character {c!r}")
    return toks


# =====================
# Shunting-yard over tokens
# =====================

_OPERANDS_LEFT = ("NUM", "EXPR", ")", "DEG")
_OPERANDS_RIGHT = ("NUM", "EXPR", "(", "FUNC")
_AFTER_OPERATOR = ("+", "-", "*", "/", "^", "(", "NEG")

_prec = {"NEG": 3, "^": 4, "*": 2, "/": 2, "+": 1, "-": 1}
_right_assoc = {"NEG", "^"}


def _prepare(toks: List[Tok]) -> List[Tok]:
    """Insert implicit multiplication and mark unary signs."""
    out: List[Tok] = []
    prev: Optional[Tok] = None
    for t in toks:
        if t.kind in ("-", "+") and (prev is None or prev.kind in _AFTER_OPERATOR):
            if t.kind == "+":
                continue  # unary plus
            t = Tok("NEG", "-")
        elif prev is not None and prev.kind in _OPERANDS_LEFT and t.kind in _OPERANDS_RIGHT:
            out.append(Tok("*", "*"))
        out.append(t)
        prev = t
    return out


def to_rpn(toks: List[Tok]) -> List[Tok]:
    out: List[Tok] = []
    op: List[Tok] = []
    for t in _prepare(toks):
        if t.kind in ("NUM", "EXPR", "DEG"):
            # the degree sign is postfix and binds tighter than anything
            out.append(t)
        elif t.kind == "FUNC":
            op.append(t)
        elif t.kind == "NEG":
            # prefix: nothing to its left to reduce
            op.append(t)
        elif t.kind in _prec:
            while (
                op
                and op[-1].kind not in ("(", "FUNC")
                and (
                    (t.kind in _right_assoc and _prec[t.kind] < _prec[op[-1].kind])
                    or (t.kind not in _right_assoc and _prec[t.kind] <= _prec[op[-1].kind])
                )
            ):
                out.append(op.pop())
            op.append(t)
        elif t.kind == "(":
            op.append(t)
        elif t.kind == ")":
            while op and op[-1].kind != "(":
                out.append(op.pop())
            if not op:
                raise MalformedExpressionError("mismatched parentheses")
            op.pop()
            if op and op[-1].kind == "FUNC":
                out.append(op.pop())
        else:
            raise MalformedExpressionError(f"unknown token {t.kind}")
    while op:
        if op[-1].kind in ("(", "FUNC"):
            raise MalformedExpressionError("mismatched parentheses")
        out.append(op.pop())
    return out


def _apply_function(name: str, arg: Expr) -> Expr:
    if name == "ln":
        return Log(E, arg)
    if name == "log":
        return Log(Integer(10), arg)
    if name == "sqrt":
        return Root(arg, 2)
    if name == "abs":
        return Abs(arg)
    return Trig(name, arg)


def _operands(e: Expr, kind: type) -> Tuple[Expr, ...]:
    if type(e) is kind:
        return e.children()
    return (e,)


def build_expr(rpn: List[Tok]) -> Expr:
    """Turn an RPN token list into an (unsimplified) expression tree."""
    stack: List[Expr] = []
    for t in rpn:
        if t.kind in ("NUM", "EXPR"):
            stack.append(t.value)
        elif t.kind == "DEG":
            if not stack:
                raise MalformedExpressionError("degree sign without a value")
            stack.append(Product((stack.pop(), Fraction(1, 180), PI)))
        elif t.kind == "NEG":
            if not stack:
                raise MalformedExpressionError("minus without an operand")
            stack.append(Product((MINUS_ONE, stack.pop())))
        elif t.kind in ("+", "-", "*", "/", "^"):
            if len(stack) < 2:
                raise MalformedExpressionError(f"operator {t.kind} is missing an operand")
            b = stack.pop()
            a = stack.pop()
            # left-associative chains extend one node so a long flat input stays shallow
            if t.kind == "+":
                stack.append(Sum(_operands(a, Sum) + (b,)))
            elif t.kind == "-":
                stack.append(Sum(_operands(a, Sum) + (Product((MINUS_ONE, b)),)))
            elif t.kind == "*":
                stack.append(Product(_operands(a, Product) + (b,)))
            elif t.kind == "/":
                stack.append(Div(a, b))
            else:
                stack.append(Power(a, b))
        elif t.kind == "FUNC":
            if not stack:
                raise MalformedExpressionError(f"{t.lex} is missing its argument")
            stack.append(_apply_function(t.lex, stack.pop()))
        else:
            raise MalformedExpressionError(f"unknown token {t.kind}")
    if len(stack) != 1:
        raise MalformedExpressionError("invalid expression")
    return stack[-1]


def parse_tokens(toks: List[Tok]) -> Expr:
    if not toks:
        raise MalformedExpressionError("empty expression")
    return build_expr(to_rpn(toks))


def parse_text(text: str, ans_bindings: Optional[Dict[int, Expr]] = None) -> Expr:
    """Parse one line of calculator text into a simplified expression."""
    return parse_tokens(tokenize_literal(text, ans_bindings)).simplify()

"""
Exact Math Engine

Top-level entry point: takes an editor node tree, routes it to the
simplifier or the equation solver, and returns an ExactResult. Nothing
raised inside the engine crosses this boundary.
"""
from __future__ import annotations
import math
import re
from typing import Dict, List, Optional, Tuple

from bridge import Converter, to_math_node
from calculus import ConstantAllocator
from edag import check_depth
from expr import Expr
from formatting import FormatConfig, format_number
from logging_config import get_logger
from nodes import (
    AnsNode, CombinationNode, DerivativeNode, ExponentNode, FractionNode,
    IntegralNode, LiteralNode, LogNode, MathNode, NewlineNode, ParenthesisNode,
    PermutationNode, ProductNode, RootNode, SummationNode, TrigNode, is_blank,
)
from results import EngineError, ExactResult, MalformedExpressionError, UnboundVariableError
from solver import Solution, SymbolicSolver

logger = get_logger("engine")

_NORMALIZE = str.maketrans({"·": "*", "×": "*", "−": "-", "÷": "/"})
_TRAILING_OPERATOR = re.compile(r"[+\-*/^(]$")
_LEADING_OPERATOR = re.compile(r"^[*/^]")
_DOUBLE_OPERATOR = re.compile(r"[+\-*/^][*/^]|[+\-*/^]\)|\([*/^]")


def normalize_nodes(nodes: List[MathNode]) -> List[MathNode]:
    """Split literal text at "=" and "\\n" so equations and lines are separate nodes."""
    out: List[MathNode] = []
    for node in nodes:
        if not isinstance(node, LiteralNode) or not re.search(r"[=\n]", node.text):
            out.append(node)
            continue
        for piece in re.split(r"([=\n])", node.text):
            if piece == "\n":
                out.append(NewlineNode())
            elif piece == "=":
                out.append(LiteralNode("="))
            elif piece:
                out.append(LiteralNode(piece))
    return out


def split_lines(nodes: List[MathNode]) -> List[List[MathNode]]:
    lines: List[List[MathNode]] = [[]]
    for node in nodes:
        if isinstance(node, NewlineNode):
            lines.append([])
        else:
            lines[-1].append(node)
    return [line for line in lines if not is_blank(line)]


def split_equation(line: List[MathNode]) -> List[List[MathNode]]:
    sides: List[List[MathNode]] = [[]]
    for node in line:
        if isinstance(node, LiteralNode) and node.text.strip() == "=":
            sides.append([])
        else:
            sides[-1].append(node)
    return sides


def _required_slots(node: MathNode) -> List[List[MathNode]]:
    if isinstance(node, FractionNode):
        return [node.numerator, node.denominator]
    if isinstance(node, ExponentNode):
        return [node.base, node.power]
    if isinstance(node, TrigNode):
        return [node.argument]
    if isinstance(node, RootNode):
        return [node.radicand]
    if isinstance(node, LogNode):
        return [node.argument]
    if isinstance(node, (PermutationNode, CombinationNode)):
        return [node.n, node.r]
    if isinstance(node, DerivativeNode):
        return [node.body]
    if isinstance(node, IntegralNode):
        return [node.body]
    if isinstance(node, (SummationNode, ProductNode)):
        return [node.lower, node.upper, node.body]
    if isinstance(node, AnsNode):
        return [node.index]
    if isinstance(node, ParenthesisNode):
        return [node.content]
    return []


def _shape(nodes: List[MathNode]) -> str:
    """Operator skeleton of a slot: literal text kept, every structured node becomes "#"."""
    parts: List[str] = []
    for node in nodes:
        if isinstance(node, LiteralNode):
            parts.append(node.text.translate(_NORMALIZE))
        elif isinstance(node, ParenthesisNode):
            parts.append(f"({_shape(node.content)})")
        elif isinstance(node, NewlineNode):
            parts.append("\n")
        else:
            parts.append("#")
    return "".join(parts)


def _incomplete_text(text: str) -> bool:
    for line in text.split("\n"):
        if not line.strip():
            continue
        for side in line.split("="):
            side = re.sub(r"\s+", "", side)
            if not side or side == "()" or "()" in side:
                return True
            if _TRAILING_OPERATOR.search(side) or _LEADING_OPERATOR.search(side):
                return True
            if _DOUBLE_OPERATOR.search(side):
                return True
    return False


def is_incomplete(nodes: List[MathNode]) -> bool:
    """True for input still being typed: dangling operators or empty required slots."""
    if _incomplete_text(_shape(nodes)):
        return True
    for node in nodes:
        for slot in _required_slots(node):
            if is_blank(slot) or is_incomplete(slot):
                return True
    return False


class ExactMathEngine:
    """Evaluates node trees exactly under one formatting configuration."""

    def __init__(self, config: Optional[FormatConfig] = None):
        self.config = config or FormatConfig.from_env()
        self.solver = SymbolicSolver()

    def evaluate(self, nodes: List[MathNode], ans_bindings: Optional[Dict[int, Expr]] = None,
                 config: Optional[FormatConfig] = None) -> ExactResult:
        """Evaluate one input.

        Args:
            nodes: editor node tree of the input
            ans_bindings: earlier results by cell index, for ans references
            config: formatting override for this call

        Returns:
            ExactResult; empty for blank, incomplete or malformed input
        """
        cfg = config or self.config
        try:
            return self._evaluate(nodes, ans_bindings, cfg)
        except EngineError as exc:
            logger.debug("empty result (%s): %s", exc.code, exc.message)
            return ExactResult.empty()
        except Exception as exc:
            logger.error("evaluation failed: %s", exc, exc_info=True)
            return ExactResult.failure(str(exc))

    def _evaluate(self, nodes: List[MathNode], ans_bindings: Optional[Dict[int, Expr]],
                  cfg: FormatConfig) -> ExactResult:
        if is_blank(nodes):
            return ExactResult.empty()
        nodes = normalize_nodes(nodes)
        if is_incomplete(nodes):
            logger.debug("incomplete input")
            return ExactResult.empty()

        # integration constants restart at c0 for every call
        converter = Converter(ans_bindings, ConstantAllocator())
        lines = split_lines(nodes)
        if not lines:
            return ExactResult.empty()

        if len(lines) > 1:
            if any(len(split_equation(line)) > 1 for line in lines):
                logger.debug("solving a system of %d lines", len(lines))
                equations = [self._equation(converter, line) for line in lines]
                return self._solution_result(self.solver.solve_lines(equations), cfg)
            lines = lines[:1]

        line = lines[0]
        if len(split_equation(line)) > 1:
            logger.debug("solving a single equation")
            equation = self._equation(converter, line)
            return self._solution_result(self.solver.solve_lines([equation]), cfg)

        expr = converter.convert(line)
        check_depth(expr)
        return self._expression_result(expr, converter.inexact, cfg)

    def _equation(self, converter: Converter, line: List[MathNode]) -> Tuple[Expr, Expr]:
        sides = split_equation(line)
        if len(sides) != 2:
            raise MalformedExpressionError("a line holds more than one '='")
        lhs, rhs = converter.convert(sides[0]), converter.convert(sides[1])
        check_depth(lhs)
        check_depth(rhs)
        return lhs, rhs

    @staticmethod
    def _numeric(expr: Expr) -> Optional[float]:
        try:
            return expr.numeric()
        except UnboundVariableError:
            return None

    def _expression_result(self, expr: Expr, inexact: bool, cfg: FormatConfig) -> ExactResult:
        value = self._numeric(expr)
        if value is not None and math.isnan(value):
            logger.debug("undefined value for %s", expr)
            return ExactResult.empty()
        if value is not None and math.isinf(value):
            nodes: List[MathNode] = [LiteralNode("∞" if value > 0 else "-∞")]
        elif inexact:
            nodes = [LiteralNode(format_number(value, cfg))]
        else:
            nodes = to_math_node(expr, cfg)
        return ExactResult(expr=expr, math_nodes=nodes, numerical=value, is_exact=not inexact)

    def _solution_result(self, solutions: Optional[List[Solution]], cfg: FormatConfig) -> ExactResult:
        if solutions is None:
            return ExactResult.no_solution()
        nodes: List[MathNode] = []
        for idx, solution in enumerate(solutions):
            if idx > 0:
                nodes.append(NewlineNode())
            nodes.append(LiteralNode(f"{solution.variable} = "))
            nodes.extend(to_math_node(solution.value, cfg))
        if len(solutions) == 1:
            value = solutions[0].value
            return ExactResult(expr=value, math_nodes=nodes, numerical=self._numeric(value),
                               solutions=solutions)
        return ExactResult(math_nodes=nodes, solutions=solutions)


_default_engine = ExactMathEngine()


def evaluate(nodes: List[MathNode], ans_bindings: Optional[Dict[int, Expr]] = None,
             config: Optional[FormatConfig] = None) -> ExactResult:
    return _default_engine.evaluate(nodes, ans_bindings, config)

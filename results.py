"""Result dataclass and error types returned by the exact engine."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Optional

from formatting import FormatConfig, format_number
from nodes import MathNode, nodes_to_text

if TYPE_CHECKING:
    from expr import Expr
    from solver import Solution


class EngineError(Exception):
    """Base class of errors raised inside the engine."""

    def __init__(self, message: str, code: str = "ENGINE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class MalformedExpressionError(EngineError):
    """Raised when the node tree cannot be read as an expression."""

    def __init__(self, message: str, code: str = "MALFORMED"):
        super().__init__(message, code)


class DepthLimitError(EngineError):
    """Raised when an expression nests deeper than MAX_EXPRESSION_DEPTH."""

    def __init__(self, message: str, code: str = "DEPTH_LIMIT"):
        super().__init__(message, code)


class UnboundVariableError(EngineError):
    """Raised when a numeric value is requested for a free variable."""

    def __init__(self, name: str, code: str = "UNBOUND_VARIABLE"):
        self.name = name
        super().__init__(f"variable '{name}' has no numeric value", code)


@dataclass
class ExactResult:
    """Outcome of one evaluate() call."""

    expr: Optional["Expr"] = None
    math_nodes: Optional[List[MathNode]] = None
    numerical: Optional[float] = None
    solutions: List["Solution"] = field(default_factory=list)
    is_empty: bool = False
    is_exact: bool = True
    unsolvable: bool = False
    error: Optional[str] = None

    @staticmethod
    def empty() -> "ExactResult":
        """No input, malformed input, or nothing to show."""
        return ExactResult(is_empty=True)

    @staticmethod
    def no_solution() -> "ExactResult":
        """Recognized equation that cannot be solved (distinct from malformed input)."""
        return ExactResult(is_empty=True, unsolvable=True)

    @staticmethod
    def failure(message: str) -> "ExactResult":
        """Unexpected internal failure; the host shows nothing but may log the message."""
        return ExactResult(is_empty=True, error=message)

    @property
    def text(self) -> str:
        if self.math_nodes is None:
            return ""
        return nodes_to_text(self.math_nodes)

    @property
    def is_infinite(self) -> bool:
        return self.numerical is not None and math.isinf(self.numerical)

    def approximation(self, config: Optional[FormatConfig] = None) -> str:
        """Decimal approximation formatted under config ("" when there is none)."""
        if self.numerical is None:
            return ""
        return format_number(self.numerical, config or FormatConfig.from_env())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"empty": self.is_empty}
        if self.expr is not None:
            result_dict["expr"] = str(self.expr)
        if self.math_nodes is not None:
            result_dict["text"] = self.text
        if self.numerical is not None:
            result_dict["numerical"] = self.numerical
        if self.solutions:
            result_dict["solutions"] = [str(s) for s in self.solutions]
        if self.error is not None:
            result_dict["error"] = self.error
        if self.unsolvable:
            result_dict["unsolvable"] = True
        result_dict["exact"] = self.is_exact
        return result_dict

    def __repr__(self) -> str:
        if self.is_empty:
            if self.error is not None:
                return f"ExactResult(empty=True, error={self.error!r})"
            if self.unsolvable:
                return "ExactResult(empty=True, unsolvable=True)"
            return "ExactResult(empty=True)"
        parts = []
        if self.expr is not None:
            parts.append(f"expr={str(self.expr)!r}")
        if self.math_nodes is not None:
            parts.append(f"text={self.text!r}")
        if self.numerical is not None:
            parts.append(f"numerical={self.numerical!r}")
        if self.solutions:
            parts.append(f"solutions={[str(s) for s in self.solutions]!r}")
        return f"ExactResult({', '.join(parts)})"

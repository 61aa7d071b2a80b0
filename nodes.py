"""
Structural node tree exchanged with the expression editor.

Every node owns lists of child nodes rather than raw text; only LiteralNode
carries text. The engine reads these trees and answers with trees of the same
shape for re-rendering.
"""
from __future__ import annotations
import re
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Iterator, List


class MathNode:
    """Base class of all editor nodes."""
    pass


@dataclass
class LiteralNode(MathNode):
    text: str = ""


@dataclass
class FractionNode(MathNode):
    numerator: List[MathNode] = field(default_factory=list)
    denominator: List[MathNode] = field(default_factory=list)


@dataclass
class ExponentNode(MathNode):
    base: List[MathNode] = field(default_factory=list)
    power: List[MathNode] = field(default_factory=list)


@dataclass
class ParenthesisNode(MathNode):
    content: List[MathNode] = field(default_factory=list)


@dataclass
class TrigNode(MathNode):
    function: str = "sin"
    argument: List[MathNode] = field(default_factory=list)


@dataclass
class RootNode(MathNode):
    radicand: List[MathNode] = field(default_factory=list)
    index: List[MathNode] = field(default_factory=list)
    is_square_root: bool = True


@dataclass
class LogNode(MathNode):
    argument: List[MathNode] = field(default_factory=list)
    base: List[MathNode] = field(default_factory=list)
    is_natural_log: bool = False


@dataclass
class PermutationNode(MathNode):
    n: List[MathNode] = field(default_factory=list)
    r: List[MathNode] = field(default_factory=list)


@dataclass
class CombinationNode(MathNode):
    n: List[MathNode] = field(default_factory=list)
    r: List[MathNode] = field(default_factory=list)


@dataclass
class DerivativeNode(MathNode):
    variable: List[MathNode] = field(default_factory=list)
    at: List[MathNode] = field(default_factory=list)
    body: List[MathNode] = field(default_factory=list)


@dataclass
class IntegralNode(MathNode):
    variable: List[MathNode] = field(default_factory=list)
    lower: List[MathNode] = field(default_factory=list)
    upper: List[MathNode] = field(default_factory=list)
    body: List[MathNode] = field(default_factory=list)


@dataclass
class SummationNode(MathNode):
    variable: List[MathNode] = field(default_factory=list)
    lower: List[MathNode] = field(default_factory=list)
    upper: List[MathNode] = field(default_factory=list)
    body: List[MathNode] = field(default_factory=list)


@dataclass
class ProductNode(MathNode):
    variable: List[MathNode] = field(default_factory=list)
    lower: List[MathNode] = field(default_factory=list)
    upper: List[MathNode] = field(default_factory=list)
    body: List[MathNode] = field(default_factory=list)


@dataclass
class AnsNode(MathNode):
    index: List[MathNode] = field(default_factory=list)


@dataclass
class ConstantNode(MathNode):
    constant: str = ""


@dataclass
class NewlineNode(MathNode):
    pass


def is_blank(nodes: List[MathNode]) -> bool:
    """True when a slot holds nothing but empty or whitespace literals."""
    for node in nodes:
        if isinstance(node, LiteralNode):
            if node.text.strip():
                return False
        elif isinstance(node, NewlineNode):
            continue
        else:
            return False
    return True


def literal_text(nodes: List[MathNode]) -> str:
    """Concatenated text of the literal nodes in a slot (for names and indices)."""
    return "".join(n.text for n in nodes if isinstance(n, LiteralNode)).strip()


def walk(nodes: List[MathNode]) -> Iterator[MathNode]:
    """Every node of a slot and of the slots nested inside it, depth first."""
    stack = list(reversed(nodes))
    while stack:
        node = stack.pop()
        yield node
        for f in reversed(fields(node) if is_dataclass(node) else ()):
            slot = getattr(node, f.name)
            if isinstance(slot, list):
                stack.extend(reversed(slot))


_ATOMIC = re.compile(r"^-?[\w.,π√φ∞ᴇ₀⁻εμµ]+$")


def _wrap(text: str) -> str:
    if _ATOMIC.match(text) or (text.startswith("(") and text.endswith(")")):
        return text
    return f"({text})"


def nodes_to_text(nodes: List[MathNode]) -> str:
    """Render a node tree as a single line of text."""
    parts: List[str] = []
    for node in nodes:
        if isinstance(node, LiteralNode):
            parts.append(node.text)
        elif isinstance(node, FractionNode):
            parts.append(f"{_wrap(nodes_to_text(node.numerator))}/{_wrap(nodes_to_text(node.denominator))}")
        elif isinstance(node, ExponentNode):
            parts.append(f"{_wrap(nodes_to_text(node.base))}^{_wrap(nodes_to_text(node.power))}")
        elif isinstance(node, ParenthesisNode):
            parts.append(f"({nodes_to_text(node.content)})")
        elif isinstance(node, TrigNode):
            if node.function == "abs":
                parts.append(f"|{nodes_to_text(node.argument)}|")
            else:
                parts.append(f"{node.function}({nodes_to_text(node.argument)})")
        elif isinstance(node, RootNode):
            radicand = _wrap(nodes_to_text(node.radicand))
            if node.is_square_root or is_blank(node.index):
                parts.append(f"√{radicand}")
            else:
                parts.append(f"{nodes_to_text(node.index)}√{radicand}")
        elif isinstance(node, LogNode):
            argument = nodes_to_text(node.argument)
            if node.is_natural_log:
                parts.append(f"ln({argument})")
            elif is_blank(node.base):
                parts.append(f"log({argument})")
            else:
                parts.append(f"log_{_wrap(nodes_to_text(node.base))}({argument})")
        elif isinstance(node, PermutationNode):
            parts.append(f"P({nodes_to_text(node.n)},{nodes_to_text(node.r)})")
        elif isinstance(node, CombinationNode):
            parts.append(f"C({nodes_to_text(node.n)},{nodes_to_text(node.r)})")
        elif isinstance(node, DerivativeNode):
            var = literal_text(node.variable) or "x"
            text = f"d/d{var}({nodes_to_text(node.body)})"
            if not is_blank(node.at):
                text += f"|{var}={nodes_to_text(node.at)}"
            parts.append(text)
        elif isinstance(node, IntegralNode):
            var = literal_text(node.variable) or "x"
            bounds = ""
            if not is_blank(node.lower) or not is_blank(node.upper):
                bounds = f"[{nodes_to_text(node.lower)},{nodes_to_text(node.upper)}]"
            parts.append(f"∫{bounds}({nodes_to_text(node.body)})d{var}")
        elif isinstance(node, (SummationNode, ProductNode)):
            symbol = "Σ" if isinstance(node, SummationNode) else "Π"
            var = literal_text(node.variable)
            parts.append(
                f"{symbol}[{var}={nodes_to_text(node.lower)},{nodes_to_text(node.upper)}]({nodes_to_text(node.body)})"
            )
        elif isinstance(node, AnsNode):
            parts.append(f"ans{literal_text(node.index)}")
        elif isinstance(node, ConstantNode):
            parts.append(node.constant)
        elif isinstance(node, NewlineNode):
            parts.append("\n")
        else:
            raise TypeError(f"unknown node {type(node).__name__}")
    return "".join(parts)

from __future__ import annotations
import networkx as nx
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import config
from expr import Expr, Variable
from logging_config import get_logger
from results import DepthLimitError

logger = get_logger("edag")

# Expression DAG over networkx.DiGraph: structurally equal subtrees share one node
@dataclass
class Node:
	kind: str  # variant class name
	label: str
	children: List[str] = field(default_factory=list)  # ordered child node ids

class ExprGraph:
	def __init__(self, expr: Optional[Expr] = None) -> None:
		self.g = nx.DiGraph()
		self.root: Optional[str] = None
		self._id = 0
		self._ids: Dict[Expr, str] = {}
		if expr is not None:
			self.build(expr)
	def _nid(self) -> str:
		self._id += 1
		return f"n{self._id}"
	def build(self, expr: Expr) -> str:
		"""Add expr (and its subtrees) to the graph; edges run parent -> child."""
		# explicit stack so very deep trees do not hit the recursion limit
		stack: List[tuple] = [(expr, False)]
		while stack:
			e, expanded = stack.pop()
			if e in self._ids:
				continue
			kids = e.children()
			if not expanded and kids:
				stack.append((e, True))
				stack.extend((k, False) for k in kids if k not in self._ids)
				continue
			nid = self._nid()
			label = e.name if isinstance(e, Variable) else (str(e) if not kids else type(e).__name__)
			child_ids = [self._ids[k] for k in kids]
			self.g.add_node(nid, data=Node(type(e).__name__, label, child_ids))
			for cid in child_ids:
				self.g.add_edge(nid, cid)
			self._ids[e] = nid
		self.root = self._ids[expr]
		return self.root
	def depth(self) -> int:
		"""Number of nodes on the longest root-to-leaf path."""
		if self.root is None:
			return 0
		return nx.dag_longest_path_length(self.g) + 1
	def node_count(self) -> int:
		return self.g.number_of_nodes()

def check_depth(expr: Expr, limit: Optional[int] = None) -> int:
	"""Depth of expr; raises DepthLimitError past the configured limit."""
	limit = config.MAX_EXPRESSION_DEPTH if limit is None else limit
	graph = ExprGraph(expr)
	depth = graph.depth()
	if depth > limit:
		logger.warning("expression depth %d (%d shared nodes) exceeds limit %d", depth, graph.node_count(), limit)
		raise DepthLimitError(f"expression depth {depth} exceeds {limit}")
	return depth

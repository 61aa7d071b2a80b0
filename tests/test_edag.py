"""Unit tests for the shared-subtree expression graph and the depth guard."""

import unittest

from edag import ExprGraph, check_depth
from expr import Abs, Integer, Product, Sum, Variable
from results import DepthLimitError

X = Variable("x")
Y = Variable("y")


def nested_abs(levels):
    e = X
    for _ in range(levels):
        e = Abs(e)
    return e


class TestExprGraph(unittest.TestCase):
    """Test graph construction over networkx."""

    def test_equal_subtrees_share_a_node(self):
        graph = ExprGraph(Sum((X, X)))
        self.assertEqual(graph.node_count(), 2)
        self.assertEqual(graph.depth(), 2)

    def test_shared_composite_subtree(self):
        inner = Product((Integer(2), X))
        graph = ExprGraph(Sum((inner, Abs(inner))))
        # Sum, Abs, Product, 2, x
        self.assertEqual(graph.node_count(), 5)
        self.assertEqual(graph.depth(), 4)

    def test_distinct_leaves_each_get_a_node(self):
        graph = ExprGraph(Sum((X, Product((Integer(2), Y)))))
        # Sum, Product, x, 2, y
        self.assertEqual(graph.node_count(), 5)
        self.assertEqual(graph.depth(), 3)

    def test_empty_graph(self):
        self.assertEqual(ExprGraph().depth(), 0)


class TestDepthGuard(unittest.TestCase):
    """Test check_depth."""

    def test_within_limit(self):
        self.assertEqual(check_depth(nested_abs(10)), 11)

    def test_over_limit(self):
        with self.assertRaises(DepthLimitError):
            check_depth(nested_abs(10), limit=5)

    def test_wide_sum_is_shallow(self):
        wide = Sum(tuple(Variable(f"v{k}") for k in range(1500)))
        self.assertEqual(check_depth(wide), 2)


if __name__ == "__main__":
    unittest.main()

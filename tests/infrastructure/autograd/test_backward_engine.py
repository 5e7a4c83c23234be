import unittest

import numpy as np

from numstride.domain import GradientPreconditionError, GraphCycleError
from numstride.infrastructure.autograd import (
    BackEdge,
    ComputeGraph,
    Context,
    Node,
    backward,
    constant,
    variable,
)
from numstride.infrastructure.autograd._functions import Identity
from numstride.infrastructure.tensor import TensorManager


class TestBackwardEngine(unittest.TestCase):
    def setUp(self):
        self.of = TensorManager(workers=1).of_double()

    def scalar(self, value: float, requires_grad: bool = True) -> Node:
        return variable(self.of.scalar(value), requires_grad=requires_grad)

    def test_scalar_chain(self):
        x = self.scalar(3.0)
        y = x * x
        y.seed_grad(1.0)
        y.backward()
        self.assertEqual(x.grad.item(), 6.0)

    def test_diamond_accumulates(self):
        for value in (1.0, 2.5, -3.0):
            with self.subTest(x=value):
                x = self.scalar(value)
                a = x + x
                b = a * a
                b.seed_grad()
                backward(b)
                self.assertAlmostEqual(x.grad.item(), 8.0 * value)
                self.assertAlmostEqual(a.grad.item(), 4.0 * value)

    def test_shared_subexpression_in_vector_graph(self):
        x = variable(self.of.from_array([1.0, 2.0, 3.0]))
        y = (x * x + x.exp()).sum()
        y.seed_grad()
        y.backward()
        expected = 2.0 * np.array([1.0, 2.0, 3.0]) + np.exp([1.0, 2.0, 3.0])
        np.testing.assert_allclose(x.grad.to_numpy(), expected)

    def test_constant_leaf_gets_no_gradient(self):
        x = self.scalar(2.0)
        c = self.scalar(5.0, requires_grad=False)
        y = x * c
        y.seed_grad()
        y.backward()
        self.assertEqual(x.grad.item(), 5.0)
        self.assertIsNone(c.grad)

    def test_pure_constant_branch_is_pruned(self):
        x = self.scalar(2.0)
        c = constant(self.of.scalar(3.0))
        k = c.exp()
        y = x * k
        y.seed_grad()
        graph = backward(y)
        self.assertIsNone(c.grad)
        self.assertIsNone(k.grad)
        self.assertFalse(graph.needs_grad[graph.index(c)])
        self.assertTrue(graph.needs_grad[graph.index(y)])

    def test_python_scalars_are_constants(self):
        x = self.scalar(4.0)
        y = 2.0 * x - 1.0
        y.seed_grad()
        y.backward()
        self.assertEqual(y.value.item(), 7.0)
        self.assertEqual(x.grad.item(), 2.0)

    def test_missing_seed(self):
        x = self.scalar(1.0)
        y = x * x
        with self.assertRaises(GradientPreconditionError) as cm:
            y.backward()
        self.assertEqual(cm.exception.node, y.name)
        self.assertIsNone(cm.exception.actual)

    def test_seed_shape_mismatch(self):
        x = variable(self.of.from_array([1.0, 2.0]))
        y = x * x
        y._grad = self.of.scalar(1.0)
        with self.assertRaises(GradientPreconditionError) as cm:
            y.backward()
        self.assertEqual(cm.exception.expected, y.shape)

    def test_cycle_detected(self):
        x = self.scalar(1.0)
        a = x.identity()
        b = a.identity()
        a.back_edges.append(BackEdge(b, Identity, Context(parents=(b,)), 0))
        b.seed_grad()
        with self.assertRaises(GraphCycleError):
            b.backward()

    def test_self_loop_detected(self):
        x = self.scalar(1.0)
        x.back_edges.append(BackEdge(x, Identity, Context(parents=(x,)), 0))
        x.seed_grad()
        with self.assertRaises(GraphCycleError):
            x.backward()

    def test_edges_dropped_after_backward(self):
        x = self.scalar(3.0)
        y = x * x
        y.seed_grad()
        y.backward()
        self.assertEqual(y.back_edges, [])

    def test_retain_graph_allows_second_pass(self):
        x = self.scalar(3.0)
        y = x * x
        y.seed_grad()
        y.backward(retain_graph=True)
        self.assertEqual(len(y.back_edges), 2)
        y.backward()
        self.assertEqual(x.grad.item(), 12.0)

    def test_zero_grad(self):
        x = self.scalar(3.0)
        y = x * x
        y.seed_grad()
        y.backward()
        x.zero_grad()
        self.assertIsNone(x.grad)

    def test_topological_order_is_root_first(self):
        x = self.scalar(1.0)
        a = x.sin()
        b = x.cos()
        y = a * b
        y.seed_grad()
        graph = ComputeGraph(y)
        order = [graph.nodes[i] for i in graph.order]
        self.assertIs(order[0], y)
        self.assertIs(order[-1], x)
        for idx, node in enumerate(order):
            for consumer in graph.successors[graph.index(node)]:
                self.assertLess(order.index(graph.nodes[consumer]), idx)

    def test_deep_chain_does_not_recurse(self):
        x = self.scalar(1.0)
        y = x
        for _ in range(3000):
            y = y.identity()
        y.seed_grad()
        y.backward()
        self.assertEqual(x.grad.item(), 1.0)


if __name__ == "__main__":
    unittest.main()

import unittest
from typing import Callable

import numpy as np

from numstride.domain import ShapeError
from numstride.infrastructure.autograd import Node, variable
from numstride.infrastructure.autograd._functions import _reduce_to
from numstride.infrastructure.tensor import TensorManager

EPS = 1e-6


class TestDifferentiableFunctions(unittest.TestCase):
    """Analytic gradients against central finite differences of a scalar loss."""

    def setUp(self):
        self.of = TensorManager(workers=1).of_double()
        self.rng = np.random.default_rng(21)

    def check_gradients(self, fn: Callable[..., Node], *arrays: np.ndarray) -> None:
        nodes = [variable(self.of.from_array(a)) for a in arrays]
        loss = fn(*nodes).sum()
        loss.seed_grad()
        loss.backward()

        for k, base in enumerate(arrays):
            numeric = np.zeros_like(base)
            for idx in np.ndindex(base.shape):
                plus = [a.copy() for a in arrays]
                minus = [a.copy() for a in arrays]
                plus[k][idx] += EPS
                minus[k][idx] -= EPS
                f_plus = fn(*[variable(self.of.from_array(a)) for a in plus]).value.sum()
                f_minus = fn(*[variable(self.of.from_array(a)) for a in minus]).value.sum()
                numeric[idx] = (f_plus - f_minus) / (2 * EPS)
            np.testing.assert_allclose(
                nodes[k].grad.to_numpy(), numeric, rtol=1e-5, atol=1e-6
            )

    def positive(self, *shape):
        return self.rng.random(shape) + 0.5

    def test_elementwise_binary(self):
        a, b = self.positive(2, 3), self.positive(2, 3)
        self.check_gradients(lambda x, y: x + y, a, b)
        self.check_gradients(lambda x, y: x - y, a, b)
        self.check_gradients(lambda x, y: x * y, a, b)
        self.check_gradients(lambda x, y: x / y, a, b)

    def test_rank_zero_operand_is_broadcast(self):
        a, s = self.positive(2, 3), np.array(1.7)
        self.check_gradients(lambda x, y: x * y, a, s)
        self.check_gradients(lambda x, y: y / x, a, s)
        self.check_gradients(lambda x, y: y - x, a, s)

    def test_unary(self):
        a = self.positive(3, 2)
        for name in ("neg", "exp", "log", "sqr", "sqrt", "sin", "cos", "tanh", "sigmoid"):
            with self.subTest(op=name):
                self.check_gradients(lambda x: getattr(x, name)(), a)
        self.check_gradients(lambda x: x.pow(2.5), a)
        self.check_gradients(lambda x: x ** 3, a)

    def test_reductions(self):
        a = self.positive(3, 4)
        self.check_gradients(lambda x: x.sum(0), a)
        self.check_gradients(lambda x: x.sum(1), a)
        self.check_gradients(lambda x: x.mean(), a)
        self.check_gradients(lambda x: x.mean(-1).sqr(), a)

    def test_products(self):
        m, v, w = self.positive(3, 4), self.positive(4), self.positive(4)
        self.check_gradients(lambda x, y: x.vdot(y), v, w)
        self.check_gradients(lambda x, y: x.mv(y), m, v)
        self.check_gradients(lambda x, y: x.mm(y), m, self.positive(4, 2))
        self.check_gradients(lambda x, y: (x @ y).sqr(), m, v)

    def test_shape_functions(self):
        a = self.positive(2, 6)
        self.check_gradients(lambda x: x.reshape((3, 4)).sin(), a)
        self.check_gradients(lambda x: x.t().mm(x), a)
        self.check_gradients(lambda x: x.narrow(1, 2, 5).exp(), a)

    def test_split(self):
        a = self.positive(2, 6)

        def fn(x):
            left, right = x.split(1, 0, 2)
            return left.sum(1) * right.sum(1)

        self.check_gradients(fn, a)
        with self.assertRaises(ShapeError):
            variable(self.of.from_array(a)).split(1, 4, 2)

    def test_softmax_family(self):
        a = self.positive(3, 4)
        self.check_gradients(lambda x: x.softmax(1).sqr(), a)
        self.check_gradients(lambda x: x.softmax().sqr(), a)
        self.check_gradients(lambda x: x.logsoftmax(0).sqr(), a)

    def test_std_and_standardize(self):
        a = self.positive(3, 5)
        self.check_gradients(lambda x: x.std(1), a)
        self.check_gradients(lambda x: x.std(), a)
        self.check_gradients(lambda x: x.std(0, ddof=1), a)
        self.check_gradients(lambda x: x.standardize(1).sin(), a)
        self.check_gradients(lambda x: x.standardize().sin(), a)

    def test_threshold_and_smoothed_log(self):
        a = self.positive(4, 3)
        self.check_gradients(lambda x: x.maximum(1.0).sqr(), a)
        self.check_gradients(lambda x: (x - 1.0).relu(), a)
        self.check_gradients(lambda x: x.log(0.1), a)

    def test_batched_vector_matrix(self):
        v, m = self.positive(2, 3), self.positive(2, 3, 4)
        self.check_gradients(lambda x, y: x.bvtm(y).sqr(), v, m)

    def test_std_needs_enough_elements(self):
        x = variable(self.of.from_array([[1.0], [2.0]]))
        with self.assertRaises(ShapeError):
            x.std(1, ddof=1)

    def test_unreducible_gradient_shape(self):
        with self.assertRaises(ShapeError):
            _reduce_to(self.of.zeros((2, 3)), (3,))

    def test_forward_values(self):
        x = variable(self.of.from_array([[1.0, 2.0], [3.0, 4.0]]))
        np.testing.assert_allclose((x.t() @ x).value.to_numpy(), [[10, 14], [14, 20]])
        self.assertEqual(x.sum().value.rank, 0)
        self.assertEqual(x.sum().value.item(), 10.0)


if __name__ == "__main__":
    unittest.main()

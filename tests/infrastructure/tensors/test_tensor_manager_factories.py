import unittest

import numpy as np

from numstride.domain import DType, Order, ShapeError
from numstride.infrastructure import config_context
from numstride.infrastructure.tensor import TensorManager, default_manager


class TestFactories(unittest.TestCase):
    def setUp(self):
        self.tm = TensorManager(workers=1)
        self.of = self.tm.of_double()

    def test_eye(self):
        np.testing.assert_array_equal(self.of.eye(3).to_numpy(), np.eye(3))

    def test_seq_values_independent_of_order(self):
        c = self.of.seq((2, 3), Order.C)
        f = self.of.seq((2, 3), Order.F)
        self.assertTrue(f.layout.is_f_ordered())
        np.testing.assert_array_equal(c.to_numpy(), f.to_numpy())
        np.testing.assert_array_equal(c.to_numpy(), np.arange(6).reshape(2, 3))

    def test_random_is_reproducible(self):
        a = self.of.random((3, 4), 123)
        b = self.of.random((3, 4), 123)
        self.assertTrue(a.deep_equals(b))
        vals = a.to_numpy()
        self.assertTrue(np.all((vals >= 0.0) & (vals < 1.0)))

    def test_random_accepts_generator(self):
        rng = np.random.default_rng(5)
        a = self.of.random((4,), rng)
        b = self.of.random((4,), rng)
        self.assertFalse(a.deep_equals(b))

    def test_default_order_from_config(self):
        with config_context(default_order=Order.F):
            t = self.of.zeros((2, 3))
        self.assertTrue(t.layout.is_f_ordered())
        self.assertFalse(t.layout.is_c_ordered())

    def test_stride_wraps_without_copy(self):
        buffer = np.arange(10, dtype=np.float64)
        t = self.of.stride((2, 2), 1, (4, 2), buffer)
        np.testing.assert_array_equal(t.to_numpy(), [[1, 3], [5, 7]])
        t.set(-1.0, 0, 0)
        self.assertEqual(buffer[1], -1.0)

    def test_stride_copies_foreign_buffer(self):
        buffer = np.arange(4, dtype=np.float32)
        t = self.of.stride((4,), 0, (1,), buffer)
        t.set(9.0, 0)
        self.assertEqual(buffer[0], 0.0)

    def test_wrap(self):
        buffer = np.arange(6, dtype=np.float64)
        t = self.of.wrap(buffer, (2, 3))
        np.testing.assert_array_equal(t.to_numpy(), buffer.reshape(2, 3))
        self.assertEqual(self.of.wrap(buffer).dims, (6,))
        with self.assertRaises(ShapeError):
            self.of.wrap(buffer, (4, 2))

    def test_from_array_copies(self):
        src = np.ones((2, 2))
        t = self.of.from_array(src)
        src[0, 0] = 5.0
        self.assertEqual(t.get(0, 0), 1.0)


class TestJoins(unittest.TestCase):
    def setUp(self):
        self.tm = TensorManager(workers=1)
        self.of = self.tm.of_double()
        self.a = self.of.seq((2, 3))
        self.b = self.of.full((1, 3), 9.0)

    def test_concat(self):
        out = self.of.concat(0, [self.a, self.b])
        expected = np.concatenate([self.a.to_numpy(), self.b.to_numpy()], axis=0)
        np.testing.assert_array_equal(out.to_numpy(), expected)

    def test_concat_rejects_mismatched_dims(self):
        with self.assertRaises(ShapeError):
            self.of.concat(1, [self.a, self.b])
        with self.assertRaises(ShapeError):
            self.of.concat(0, [])
        with self.assertRaises(ShapeError):
            self.of.concat(0, [self.a, self.of.zeros((3,))])

    def test_stack(self):
        out = self.of.stack(1, [self.a, self.a.mul(2.0)])
        expected = np.stack([self.a.to_numpy(), 2.0 * self.a.to_numpy()], axis=1)
        self.assertEqual(out.dims, (2, 2, 3))
        np.testing.assert_array_equal(out.to_numpy(), expected)

    def test_stack_rejects_mismatched_shapes(self):
        with self.assertRaises(ShapeError):
            self.of.stack(0, [self.a, self.b])
        with self.assertRaises(ShapeError):
            self.of.stack(3, [self.a, self.a])

    def test_manager_level_joins_use_first_dtype(self):
        f = self.tm.of_float().seq((2, 3))
        out = self.tm.concat(0, [f, f])
        self.assertIs(out.dtype, DType.FLOAT)
        self.assertEqual(out.dims, (4, 3))
        self.assertEqual(self.tm.stack(0, [f, f]).dims, (2, 2, 3))


class TestManagerLifecycle(unittest.TestCase):
    def test_default_manager_is_shared(self):
        self.assertIs(default_manager(), default_manager())

    def test_context_manager_closes_pool(self):
        with TensorManager(workers=2, parallel_threshold=1) as tm:
            t = tm.of_double().seq((8, 8))
            t.exp_()
        # the pool restarts lazily after close
        t.exp_()
        self.assertEqual(tm.workers, 2)


if __name__ == "__main__":
    unittest.main()

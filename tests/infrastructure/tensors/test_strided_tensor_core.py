import unittest

import numpy as np

from numstride.domain import DType, IndexOutOfRangeError, Order, Shape, ShapeError
from numstride.infrastructure.tensor import Storage, TensorManager


class TestTensorConstruction(unittest.TestCase):
    def setUp(self):
        self.tm = TensorManager(workers=1)
        self.of = self.tm.of_double()

    def test_zeros_shape_and_dtype(self):
        t = self.of.zeros((2, 3))
        self.assertEqual(t.shape, Shape.of(2, 3))
        self.assertEqual(t.rank, 2)
        self.assertEqual(t.size, 6)
        self.assertIs(t.dtype, DType.DOUBLE)
        np.testing.assert_array_equal(t.to_numpy(), np.zeros((2, 3)))

    def test_float_factory(self):
        t = self.tm.of_float().full((2, 2), 1.5)
        self.assertIs(t.dtype, DType.FLOAT)
        self.assertEqual(t.to_numpy().dtype, np.float32)
        np.testing.assert_array_equal(t.to_numpy(), np.full((2, 2), 1.5, dtype=np.float32))

    def test_of_type_parses_names(self):
        self.assertIs(self.tm.of_type("float").dtype, DType.FLOAT)
        self.assertIs(self.tm.of_type(np.float64).dtype, DType.DOUBLE)

    def test_scalar(self):
        t = self.of.scalar(4.0)
        self.assertEqual(t.rank, 0)
        self.assertEqual(t.item(), 4.0)

    def test_layout_outside_storage_rejected(self):
        with self.assertRaises(ShapeError):
            self.of.stride((2, 3), 1, (3, 1), np.zeros(6))

    def test_storage_requires_contiguous_buffer(self):
        with self.assertRaises(ValueError):
            Storage(DType.DOUBLE, np.zeros((2, 2)))
        with self.assertRaises(TypeError):
            Storage(DType.DOUBLE, np.zeros(4, dtype=np.float32))


class TestTensorElementAccess(unittest.TestCase):
    def setUp(self):
        self.of = TensorManager(workers=1).of_double()

    def test_get_set_inc(self):
        t = self.of.zeros((2, 3))
        t.set(5.0, 1, 2)
        t.inc(2.0, 1, 2)
        self.assertEqual(t.get(1, 2), 7.0)
        self.assertEqual(t.to_numpy()[1, 2], 7.0)

    def test_pointer_follows_layout(self):
        c = self.of.zeros((2, 3), Order.C)
        f = self.of.zeros((2, 3), Order.F)
        self.assertEqual(c.pointer(1, 2), 5)
        self.assertEqual(f.pointer(1, 2), 5)
        self.assertEqual(c.pointer(1, 0), 3)
        self.assertEqual(f.pointer(1, 0), 1)

    def test_pointer_access(self):
        t = self.of.seq((2, 3))
        p = t.pointer(1, 1)
        self.assertEqual(t.ptr_get(p), 4.0)
        t.ptr_set(p, 10.0)
        t.ptr_inc(p, 1.0)
        self.assertEqual(t.get(1, 1), 11.0)

    def test_index_out_of_range(self):
        t = self.of.zeros((2, 3))
        with self.assertRaises(IndexOutOfRangeError):
            t.get(2, 0)
        with self.assertRaises(IndexOutOfRangeError):
            t.get(0, -1)

    def test_index_out_of_range_is_index_error(self):
        with self.assertRaises(IndexError):
            self.of.zeros((2,)).get(5)

    def test_index_rank_mismatch(self):
        with self.assertRaises(ShapeError):
            self.of.zeros((2, 3)).get(1)

    def test_item_requires_single_element(self):
        self.assertEqual(self.of.full((1, 1), 3.0).item(), 3.0)
        with self.assertRaises(ShapeError):
            self.of.zeros((2,)).item()

    def test_numpy_protocol(self):
        t = self.of.seq((2, 2))
        np.testing.assert_array_equal(np.asarray(t), [[0.0, 1.0], [2.0, 3.0]])

    def test_views_share_storage_and_copies_do_not(self):
        t = self.of.seq((3, 3))
        view = t.narrow(0, 1, 2)
        copy = t.copy()
        self.assertTrue(view.shares_storage(t))
        self.assertFalse(copy.shares_storage(t))
        view.set(-1.0, 0, 0)
        self.assertEqual(t.get(1, 0), -1.0)
        self.assertEqual(copy.get(1, 0), 3.0)


class TestTensorCopyAndEquality(unittest.TestCase):
    def setUp(self):
        self.of = TensorManager(workers=1).of_double()

    def test_copy_in_f_order(self):
        t = self.of.seq((2, 3))
        f = t.copy(Order.F)
        self.assertTrue(f.layout.is_f_ordered())
        self.assertTrue(f.deep_equals(t))

    def test_copy_storage_order_keeps_f(self):
        f = self.of.seq((2, 3), Order.F)
        self.assertTrue(f.copy(Order.S).layout.is_f_ordered())

    def test_deep_equals(self):
        a = self.of.seq((2, 2))
        b = self.of.seq((2, 2))
        self.assertTrue(a.deep_equals(b))
        b.inc(1e-3, 0, 0)
        self.assertFalse(a.deep_equals(b))
        self.assertTrue(a.deep_equals(b, tol=1e-2))
        self.assertFalse(a.deep_equals(self.of.seq((4,))))

    def test_deep_equals_nan(self):
        a = self.of.full((2,), float("nan"))
        self.assertTrue(a.deep_equals(a.copy()))

    def test_assign(self):
        t = self.of.zeros((2, 2))
        t.assign_(self.of.seq((2, 2)))
        np.testing.assert_array_equal(t.to_numpy(), [[0, 1], [2, 3]])
        with self.assertRaises(ShapeError):
            t.assign_(self.of.zeros((3,)))

    def test_cast(self):
        src = self.of.seq((2, 2))
        t = src.manager.of_float().cast(src)
        self.assertIs(t.dtype, DType.FLOAT)
        np.testing.assert_allclose(t.to_numpy(), [[0, 1], [2, 3]])


if __name__ == "__main__":
    unittest.main()

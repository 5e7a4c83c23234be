import unittest

from numstride.domain import Order, ShapeError, StrideLayout


class TestStrideLayoutConstruction(unittest.TestCase):
    def test_dense_strides(self):
        self.assertEqual(StrideLayout.dense_strides((2, 3, 4), Order.C), (12, 4, 1))
        self.assertEqual(StrideLayout.dense_strides((2, 3, 4), Order.F), (1, 2, 6))

    def test_rank_mismatch(self):
        with self.assertRaises(ShapeError):
            StrideLayout((2, 3), 0, (1,))

    def test_negative_offset(self):
        with self.assertRaises(ShapeError):
            StrideLayout((2, 3), -1, (3, 1))

    def test_ordering_flags(self):
        c = StrideLayout.of_dense((2, 3), 0, Order.C)
        f = StrideLayout.of_dense((2, 3), 0, Order.F)
        self.assertTrue(c.is_c_ordered())
        self.assertFalse(c.is_f_ordered())
        self.assertTrue(f.is_f_ordered())
        self.assertTrue(c.is_dense())
        self.assertTrue(f.is_dense())
        self.assertIs(c.storage_fast_order(), Order.C)
        self.assertIs(f.storage_fast_order(), Order.F)

    def test_non_canonical_layout(self):
        layout = StrideLayout((2, 3, 4), 0, (4, 8, 1))
        self.assertFalse(layout.is_c_ordered())
        self.assertFalse(layout.is_f_ordered())
        self.assertIs(layout.storage_fast_order(), Order.S)

    def test_unit_axes_do_not_break_ordering(self):
        row = StrideLayout((1, 3), 5, (7, 1))
        self.assertTrue(row.is_c_ordered())
        self.assertTrue(row.is_c_dense())
        self.assertTrue(row.is_dense())

        col = StrideLayout((3, 1), 0, (1, 9))
        self.assertTrue(col.is_dense())
        self.assertTrue(col.is_f_dense())

        gapped = StrideLayout((1, 3), 0, (7, 2))
        self.assertTrue(gapped.is_c_ordered())
        self.assertFalse(gapped.is_dense())

    def test_equality(self):
        a = StrideLayout((2, 3), 1, (3, 1))
        self.assertEqual(a, StrideLayout.of((2, 3), 1, (3, 1)))
        self.assertNotEqual(a, StrideLayout((2, 3), 0, (3, 1)))
        self.assertEqual(hash(a), hash(StrideLayout((2, 3), 1, (3, 1))))


class TestStrideLayoutPointers(unittest.TestCase):
    def test_pointer(self):
        layout = StrideLayout((2, 3), 5, (3, 1))
        self.assertEqual(layout.pointer((1, 2)), 5 + 3 + 2)

    def test_index_inverts_pointer(self):
        for order in (Order.C, Order.F):
            layout = StrideLayout.of_dense((3, 4, 2), 7, order)
            for i in range(3):
                for j in range(4):
                    for k in range(2):
                        self.assertEqual(layout.index(layout.pointer((i, j, k))), (i, j, k))

    def test_index_unaddressed_pointer(self):
        layout = StrideLayout((2, 2), 0, (4, 2))
        with self.assertRaises(ShapeError):
            layout.index(1)

    def test_max_pointer(self):
        layout = StrideLayout((2, 3), 4, (3, 1))
        self.assertEqual(layout.max_pointer(), 4 + 3 + 2)

    def test_loop_layout_merges_dense_axes(self):
        layout = StrideLayout.of_dense((2, 3, 4), 0, Order.C)
        self.assertEqual(layout.loop_layout(Order.C), ((24,), (1,)))
        self.assertEqual(layout.loop_layout(Order.C, compact=False), ((4, 3, 2), (1, 4, 12)))

    def test_loop_layout_f_on_c_storage(self):
        layout = StrideLayout.of_dense((2, 3), 0, Order.C)
        self.assertEqual(layout.loop_layout(Order.F), ((2, 3), (3, 1)))

    def test_loop_layout_drops_unit_axes(self):
        layout = StrideLayout((2, 1, 3), 0, (3, 100, 1))
        self.assertEqual(layout.loop_layout(Order.C), ((6,), (1,)))


class TestStrideLayoutViews(unittest.TestCase):
    def setUp(self):
        self.layout = StrideLayout.of_dense((2, 3, 4), 0, Order.C)

    def test_revert(self):
        r = self.layout.revert()
        self.assertEqual(r.dims, (4, 3, 2))
        self.assertEqual(r.strides, (1, 4, 12))
        self.assertTrue(r.is_f_ordered())

    def test_squeeze_all_and_axis(self):
        layout = StrideLayout((1, 3, 1), 0, (3, 1, 1))
        self.assertEqual(layout.squeeze().dims, (3,))
        self.assertEqual(layout.squeeze(0).dims, (3, 1))
        self.assertIs(layout.squeeze(1), layout)

    def test_unsqueeze_keeps_c_ordering(self):
        for axis in range(4):
            u = self.layout.unsqueeze(axis)
            self.assertEqual(u.rank, 4)
            self.assertEqual(u.dim(axis), 1)
            self.assertTrue(u.is_c_ordered())

    def test_unsqueeze_out_of_range(self):
        with self.assertRaises(ShapeError):
            self.layout.unsqueeze(5)

    def test_move_and_swap_axis(self):
        moved = self.layout.move_axis(0, 2)
        self.assertEqual(moved.dims, (3, 4, 2))
        self.assertEqual(moved.strides, (4, 1, 12))
        swapped = self.layout.swap_axis(0, 2)
        self.assertEqual(swapped.dims, (4, 3, 2))
        self.assertEqual(swapped.strides, (1, 4, 12))

    def test_narrow(self):
        n = self.layout.narrow(1, 1, 3)
        self.assertEqual(n.dims, (2, 2, 4))
        self.assertEqual(n.offset, 4)
        self.assertEqual(n.strides, self.layout.strides)

    def test_narrow_without_keepdim(self):
        n = self.layout.narrow(1, 2, 3, keepdim=False)
        self.assertEqual(n.dims, (2, 4))
        self.assertEqual(n.offset, 8)

    def test_narrow_invalid_range(self):
        with self.assertRaises(ShapeError):
            self.layout.narrow(1, 2, 1)
        with self.assertRaises(ShapeError):
            self.layout.narrow(1, 0, 4)

    def test_narrow_all(self):
        n = self.layout.narrow_all((1, 1, 2), (2, 3, 4))
        self.assertEqual(n.dims, (1, 2, 2))
        self.assertEqual(n.offset, 12 + 4 + 2)

    def test_permute(self):
        p = self.layout.permute((2, 0, 1))
        self.assertEqual(p.dims, (4, 2, 3))
        self.assertEqual(p.strides, (1, 12, 4))
        with self.assertRaises(ShapeError):
            self.layout.permute((0, 0, 1))


if __name__ == "__main__":
    unittest.main()

import unittest

from numstride.domain import DType, IndexOutOfRangeError, Order, Shape, ShapeError


class TestShapeConstruction(unittest.TestCase):
    def test_of_accepts_varargs_sequence_and_shape(self):
        a = Shape.of(2, 3)
        self.assertEqual(a, Shape.of((2, 3)))
        self.assertEqual(a, Shape.of([2, 3]))
        self.assertIs(Shape.of(a), a)

    def test_scalar_shape(self):
        s = Shape.scalar()
        self.assertEqual(s.rank, 0)
        self.assertEqual(s.size, 1)
        self.assertEqual(s.dims, ())

    def test_size_is_product(self):
        self.assertEqual(Shape.of(2, 3, 4).size, 24)
        self.assertEqual(Shape.of(2, 0, 4).size, 0)

    def test_negative_dimension_rejected(self):
        with self.assertRaises(ShapeError):
            Shape.of(2, -1)

    def test_non_integer_dimension_rejected(self):
        with self.assertRaises(ShapeError):
            Shape.of(2.5, 3)

    def test_equality_and_hash(self):
        self.assertEqual(Shape.of(2, 3), (2, 3))
        self.assertNotEqual(Shape.of(2, 3), Shape.of(3, 2))
        self.assertEqual(hash(Shape.of(2, 3)), hash(Shape.of([2, 3])))
        self.assertEqual(len({Shape.of(2, 3), Shape.of((2, 3))}), 1)

    def test_repr(self):
        self.assertEqual(repr(Shape.of(2, 3)), "Shape[2, 3]")


class TestShapeAxes(unittest.TestCase):
    def test_negative_axis_normalized(self):
        s = Shape.of(2, 3, 4)
        self.assertEqual(s.axis(-1), 2)
        self.assertEqual(s.dim(-1), 4)

    def test_axis_out_of_range(self):
        with self.assertRaises(ShapeError):
            Shape.of(2, 3).axis(2)
        with self.assertRaises(ShapeError):
            Shape.of(2, 3).axis(-3)

    def test_unit_dim_count(self):
        self.assertEqual(Shape.of(1, 3, 1).unit_dim_count(), 2)


class TestShapePositions(unittest.TestCase):
    def test_c_position(self):
        s = Shape.of(2, 3, 4)
        self.assertEqual(s.position(Order.C, (1, 2, 3)), 1 * 12 + 2 * 4 + 3)

    def test_f_position(self):
        s = Shape.of(2, 3, 4)
        self.assertEqual(s.position(Order.F, (1, 2, 3)), 1 + 2 * 2 + 3 * 6)

    def test_index_inverts_position(self):
        s = Shape.of(3, 4, 2)
        for order in (Order.C, Order.F):
            for pos in range(s.size):
                self.assertEqual(s.position(order, s.index(order, pos)), pos)

    def test_position_out_of_range_index(self):
        with self.assertRaises(IndexOutOfRangeError):
            Shape.of(2, 3).position(Order.C, (2, 0))

    def test_position_rank_mismatch(self):
        with self.assertRaises(ShapeError):
            Shape.of(2, 3).position(Order.C, (1,))

    def test_index_out_of_range_position(self):
        with self.assertRaises(ShapeError):
            Shape.of(2, 3).index(Order.C, 6)

    def test_storage_order_not_allowed(self):
        with self.assertRaises(ValueError):
            Shape.of(2, 3).position(Order.S, (0, 0))


class TestOrderAndDType(unittest.TestCase):
    def test_order_parse(self):
        self.assertIs(Order.parse("c"), Order.C)
        self.assertIs(Order.parse(" F "), Order.F)
        with self.assertRaises(ValueError):
            Order.parse("x")

    def test_auto_fc(self):
        self.assertIs(Order.auto_fc(Order.S), Order.C)
        self.assertIs(Order.auto_fc(None, Order.F), Order.F)
        self.assertIs(Order.auto_fc(Order.F, Order.C), Order.F)

    def test_dtype_parse(self):
        self.assertIs(DType.parse("double"), DType.DOUBLE)
        self.assertIs(DType.parse("float32"), DType.FLOAT)
        self.assertIs(DType.parse(DType.FLOAT), DType.FLOAT)
        self.assertEqual(DType.DOUBLE.byte_count, 8)
        with self.assertRaises(ValueError):
            DType.parse("int8")


if __name__ == "__main__":
    unittest.main()

import unittest

import numpy as np

from numstride.domain import ShapeError, SingularMatrixError
from numstride.infrastructure.decomposition import LUDecomposition, LUMethod
from numstride.infrastructure.tensor import TensorManager


class TestLUDecomposition(unittest.TestCase):
    def setUp(self):
        self.of = TensorManager(workers=1).of_double()
        rng = np.random.default_rng(3)
        self.a_np = rng.random((5, 5)) - 0.5
        self.a = self.of.from_array(self.a_np)

    def check_factors(self, a_np: np.ndarray, lu: LUDecomposition) -> None:
        lower = lu.l().to_numpy()
        upper = lu.u().to_numpy()
        np.testing.assert_allclose(np.diag(lower), np.ones(a_np.shape[1]))
        np.testing.assert_allclose(upper, np.triu(upper))
        np.testing.assert_allclose(a_np[lu.pivots()], lower @ upper, atol=1e-12)

    def test_factors_reconstruct_permuted_input(self):
        for method in LUMethod:
            with self.subTest(method=method):
                self.check_factors(self.a_np, LUDecomposition(self.a, method))

    def test_methods_agree(self):
        crout = LUDecomposition(self.a, LUMethod.CROUT)
        gauss = LUDecomposition(self.a, LUMethod.GAUSSIAN_ELIMINATION)
        self.assertEqual(crout.pivots(), gauss.pivots())
        self.assertEqual(crout.pivot_sign, gauss.pivot_sign)
        np.testing.assert_allclose(crout.u().to_numpy(), gauss.u().to_numpy(), atol=1e-12)

    def test_tall_matrix(self):
        tall = np.random.default_rng(4).random((6, 3))
        for method in LUMethod:
            lu = LUDecomposition(self.of.from_array(tall), method)
            self.assertEqual(lu.l().dims, (6, 3))
            self.assertEqual(lu.u().dims, (3, 3))
            self.check_factors(tall, lu)

    def test_wide_matrix_rejected(self):
        with self.assertRaises(ShapeError):
            LUDecomposition(self.of.zeros((2, 3)))

    def test_det(self):
        for method in LUMethod:
            lu = LUDecomposition(self.a, method)
            self.assertAlmostEqual(lu.det(), np.linalg.det(self.a_np), places=12)

    def test_det_sign_follows_row_swaps(self):
        p = self.of.from_array([[0.0, 1.0], [1.0, 0.0]])
        lu = p.lu()
        self.assertEqual(lu.pivot_sign, -1)
        self.assertEqual(lu.det(), -1.0)

    def test_det_of_singular_matrix_is_zero(self):
        singular = self.of.from_array([[1.0, 2.0], [2.0, 4.0]])
        for method in LUMethod:
            lu = LUDecomposition(singular, method)
            self.assertFalse(lu.is_non_singular())
            self.assertEqual(lu.det(), 0.0)

    def test_det_requires_square(self):
        with self.assertRaises(ShapeError):
            LUDecomposition(self.of.zeros((3, 2))).det()

    def test_solve(self):
        b = np.arange(10, dtype=np.float64).reshape(5, 2)
        for method in LUMethod:
            lu = LUDecomposition(self.a, method)
            x = lu.solve(self.of.from_array(b))
            np.testing.assert_allclose(self.a_np @ x.to_numpy(), b, atol=1e-10)
            xv = lu.solve(self.of.from_array(b[:, 0]))
            self.assertEqual(xv.rank, 1)
            np.testing.assert_allclose(self.a_np @ xv.to_numpy(), b[:, 0], atol=1e-10)

    def test_inverse(self):
        inv = LUDecomposition(self.a).inverse()
        np.testing.assert_allclose(inv.to_numpy() @ self.a_np, np.eye(5), atol=1e-10)

    def test_solve_singular_raises(self):
        lu = LUDecomposition(self.of.from_array([[1.0, 2.0], [2.0, 4.0]]))
        with self.assertRaises(SingularMatrixError):
            lu.solve(self.of.zeros((2,)))

    def test_solve_row_mismatch(self):
        with self.assertRaises(ShapeError):
            LUDecomposition(self.a).solve(self.of.zeros((4,)))

    def test_input_not_modified(self):
        before = self.a.to_numpy()
        LUDecomposition(self.a, LUMethod.GAUSSIAN_ELIMINATION)
        np.testing.assert_array_equal(self.a.to_numpy(), before)


if __name__ == "__main__":
    unittest.main()

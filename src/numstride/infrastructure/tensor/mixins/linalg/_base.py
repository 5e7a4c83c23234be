"""
Linear algebra mixin: dot products, matrix-vector and matrix-matrix products
(plain and batched over a leading axis), traces, diagonals and symmetry checks.

Matrix products are the most expensive kernels in the engine. ``mm`` splits
the output by row blocks over the manager's worker pool when the output is
large enough; each worker multiplies its block of rows of the left operand by
the whole right operand and writes a disjoint slice of the result.
"""

from __future__ import annotations

from abc import ABC
from typing import Optional

import numpy as np

from .....domain._errors import ShapeError
from .....domain._order import Order
from .....domain._tensor import ITensor
from ...._config import get_config


def _require_rank(t: "ITensor", rank: int, op: str) -> None:
    if t.rank != rank:
        raise ShapeError(
            f"{op} requires a rank-{rank} operand, got shape {t.shape}.", t.shape
        )


class TensorMixinLinalg(ABC):
    """
    Mixin providing vector and matrix products.
    """

    def vdot(self, other: "ITensor") -> float:
        """
        Inner product of two vectors of equal length.

        Raises
        ------
        ShapeError
            If either operand is not rank-1 or the lengths differ.
        """
        _require_rank(self, 1, "vdot")
        _require_rank(other, 1, "vdot")
        if self.size != other.size:
            raise ShapeError(
                f"vdot: vectors of different lengths {self.shape} and {other.shape}.",
                self.shape,
                other.shape,
            )
        return float(np.dot(self._view(), other._view()))

    def mv(self, vector: "ITensor") -> "ITensor":
        """
        Matrix-vector product: ``(m, n) x (n,) -> (m,)``.
        """
        _require_rank(self, 2, "mv")
        _require_rank(vector, 1, "mv")
        if self.dim(1) != vector.dim(0):
            raise ShapeError(
                f"mv: incompatible shapes {self.shape} and {vector.shape}.",
                self.shape,
                vector.shape,
            )
        return self._of().from_array(self._view() @ vector._view())

    def mm(self, other: "ITensor", order: Optional[Order] = Order.C) -> "ITensor":
        """
        Matrix product ``(m, k) x (k, n) -> (m, n)``.

        Parameters
        ----------
        other : ITensor
            Right operand, rank 2.
        order : Order, optional
            Storage order of the result.

        Raises
        ------
        ShapeError
            If either operand is not a matrix or the inner dimensions differ.
        """
        _require_rank(self, 2, "mm")
        _require_rank(other, 2, "mm")
        if self.dim(1) != other.dim(0):
            raise ShapeError(
                f"mm: incompatible shapes {self.shape} and {other.shape}.",
                self.shape,
                other.shape,
            )
        m, n = self.dim(0), other.dim(1)
        out = self._of().zeros((m, n), Order.auto_fc(order))
        a, b, c = self._view(), other._view(), out._view()

        def run(start: int, end: int) -> None:
            c[start:end] = a[start:end] @ b

        self.manager.executor.run_rows(m, m * n * max(self.dim(1), 1), run)
        return out

    def matmul(self, other: "ITensor") -> "ITensor":
        """
        Product dispatched on operand ranks.

        - vector x vector: rank-0 tensor holding the inner product,
        - matrix x vector: `mv`,
        - vector x matrix: ``other.t().mv(self)``,
        - matrix x matrix: `mm`.
        """
        ranks = (self.rank, other.rank)
        if ranks == (1, 1):
            return self._of().scalar(self.vdot(other))
        if ranks == (2, 1):
            return self.mv(other)
        if ranks == (1, 2):
            return other.t().mv(self)
        if ranks == (2, 2):
            return self.mm(other)
        raise ShapeError(
            f"matmul is defined for rank 1 and 2 operands, got {self.shape} and "
            f"{other.shape}.",
            self.shape,
            other.shape,
        )

    def outer(self, other: "ITensor") -> "ITensor":
        """Outer product of two vectors: ``(m,) x (n,) -> (m, n)``."""
        _require_rank(self, 1, "outer")
        _require_rank(other, 1, "outer")
        return self._of().from_array(np.outer(self._view(), other._view()))

    def bmm(self, other: "ITensor", order: Optional[Order] = None) -> "ITensor":
        """
        Batched matrix product: ``(b, m, k) x (b, k, n) -> (b, m, n)``.

        Batches are split across workers like the rows of `mm`.
        """
        _require_rank(self, 3, "bmm")
        _require_rank(other, 3, "bmm")
        b, m, k = self.dims
        if other.dim(0) != b or other.dim(1) != k:
            raise ShapeError(
                f"bmm: incompatible shapes {self.shape} and {other.shape}.",
                self.shape,
                other.shape,
            )
        n = other.dim(2)
        out = self._of().zeros((b, m, n), Order.auto_fc(order))
        a, c, r = self._view(), other._view(), out._view()

        def run(start: int, end: int) -> None:
            np.matmul(a[start:end], c[start:end], out=r[start:end])

        self.manager.executor.run_rows(b, b * m * n * max(k, 1), run)
        return out

    def bmv(self, other: "ITensor") -> "ITensor":
        """Batched matrix-vector product: ``(b, m, k) x (b, k) -> (b, m)``."""
        _require_rank(self, 3, "bmv")
        _require_rank(other, 2, "bmv")
        if other.dims != (self.dim(0), self.dim(2)):
            raise ShapeError(
                f"bmv: incompatible shapes {self.shape} and {other.shape}.",
                self.shape,
                other.shape,
            )
        values = np.einsum("bmk,bk->bm", self._view(), other._view())
        return self._of().from_array(values)

    def bvtm(self, other: "ITensor") -> "ITensor":
        """
        Batched vector-transpose times matrix: ``(b, k) x (b, k, n) -> (b, n)``.

        Row ``i`` of the result is ``self[i] @ other[i]``.
        """
        _require_rank(self, 2, "bvtm")
        _require_rank(other, 3, "bvtm")
        if other.dim(0) != self.dim(0) or other.dim(1) != self.dim(1):
            raise ShapeError(
                f"bvtm: incompatible shapes {self.shape} and {other.shape}.",
                self.shape,
                other.shape,
            )
        values = np.einsum("bk,bkn->bn", self._view(), other._view())
        return self._of().from_array(values)

    def trace(self) -> float:
        """Sum of the main diagonal of a matrix."""
        _require_rank(self, 2, "trace")
        return float(np.trace(self._view()))

    def diag(self) -> "ITensor":
        """
        Diagonal helper (copy).

        A vector becomes a square matrix with the vector on its diagonal; a
        matrix yields the vector of its main diagonal.
        """
        if self.rank not in (1, 2):
            raise ShapeError(
                f"diag requires a rank 1 or 2 operand, got shape {self.shape}.",
                self.shape,
            )
        return self._of().from_array(np.diag(self._view()))

    def is_symmetric(self, tol: Optional[float] = None) -> bool:
        """Whether the tensor is a square matrix equal to its transpose."""
        if self.rank != 2 or self.dim(0) != self.dim(1):
            return False
        if tol is None:
            tol = get_config().equality_tolerance
        view = self._view()
        return bool(np.allclose(view, view.T, rtol=0.0, atol=tol, equal_nan=True))

    # ------------------------------------------------------------------
    # decompositions
    # ------------------------------------------------------------------
    def cholesky(self, side=None):
        """Cholesky factorization of this matrix; see `CholeskyDecomposition`."""
        from ....decomposition import CholeskyDecomposition, CholeskySide

        return CholeskyDecomposition(self, side or CholeskySide.LEFT)

    def lu(self, method=None):
        """LU factorization with partial pivoting; see `LUDecomposition`."""
        from ....decomposition import LUDecomposition, LUMethod

        return LUDecomposition(self, method or LUMethod.CROUT)

    def qr(self):
        """Householder QR factorization; see `QRDecomposition`."""
        from ....decomposition import QRDecomposition

        return QRDecomposition(self)

"""
QR decomposition by Householder reflections: ``A = Q R``.

For an ``m x n`` matrix with ``m >= n``, ``Q`` is ``m x n`` with orthonormal
columns and ``R`` is ``n x n`` upper triangular. The reflectors are stored in
the lower trapezoid of a packed working matrix and are available via `h()`.
`solve` returns the least squares solution of ``A X = B``.
"""

from __future__ import annotations

import logging

import numpy as np

from ...domain._errors import RankDeficientError, ShapeError
from ..tensor import Tensor
from ._base import MatrixDecomposition

logger = logging.getLogger(__name__)


class QRDecomposition(MatrixDecomposition):
    """
    Householder QR factorization.

    Parameters
    ----------
    ref : Tensor
        Matrix with ``rows >= cols``.

    Raises
    ------
    ShapeError
        If `ref` is not a matrix or has fewer rows than columns.
    """

    def __init__(self, ref: Tensor) -> None:
        super().__init__(ref)
        if self.rows < self.cols:
            raise ShapeError(
                "For QR decomposition, number of rows must be greater or equal "
                f"with number of columns, got {ref.shape}.",
                ref.shape,
            )
        self._qr = self._matrix()
        self._rdiag = np.zeros(self.cols, dtype=self._np_dtype)
        self._factorize()
        logger.debug("QR of %s matrix: full_rank=%s", ref.shape, self.is_full_rank())

    def _factorize(self) -> None:
        qr = self._qr
        for k in range(self.cols):
            nrm = float(np.linalg.norm(qr[k:, k]))
            if nrm != 0.0:
                if qr[k, k] < 0:
                    nrm = -nrm
                qr[k:, k] /= nrm
                qr[k, k] += 1.0
                # apply the reflector to the remaining columns
                s = -(qr[k:, k] @ qr[k:, k + 1 :]) / qr[k, k]
                qr[k:, k + 1 :] += np.outer(qr[k:, k], s)
            self._rdiag[k] = -nrm

    def is_full_rank(self) -> bool:
        """Whether every diagonal element of ``R`` is non-zero."""
        return bool(np.all(self._rdiag != 0.0))

    def h(self) -> Tensor:
        """Householder vectors: lower trapezoidal ``rows x cols`` matrix."""
        return self._tensor(np.tril(self._qr))

    def r(self) -> Tensor:
        """Upper triangular factor, ``cols x cols``."""
        n = self.cols
        upper = np.triu(self._qr[:n, :n], 1)
        upper[np.arange(n), np.arange(n)] = self._rdiag
        return self._tensor(upper)

    def q(self) -> Tensor:
        """Factor with orthonormal columns, ``rows x cols``."""
        qr = self._qr
        m, n = qr.shape
        q = np.zeros((m, n), dtype=self._np_dtype)
        for k in range(n - 1, -1, -1):
            q[k, k] = 1.0
            if qr[k, k] != 0.0:
                s = -(qr[k:, k] @ q[k:, k:]) / qr[k, k]
                q[k:, k:] += np.outer(qr[k:, k], s)
        return self._tensor(q)

    def solve(self, b: Tensor) -> Tensor:
        """
        Least squares solution of ``A X = b``.

        Parameters
        ----------
        b : Tensor
            Vector of length m or matrix with m rows.

        Returns
        -------
        Tensor
            ``n``-vector or ``n x k`` matrix minimizing ``||A X - b||``.

        Raises
        ------
        ShapeError
            If the rows of `b` do not match.
        RankDeficientError
            If `is_full_rank()` is False.
        """
        x, vector = self._rhs(b, self.rows)
        if not self.is_full_rank():
            zero = [int(i) for i in np.flatnonzero(self._rdiag == 0.0)]
            raise RankDeficientError(self._ref.shape, zero)
        qr = self._qr
        n = self.cols
        # Y = Q^T B
        for k in range(n):
            s = -(qr[k:, k] @ x[k:]) / qr[k, k]
            x[k:] += np.outer(qr[k:, k], s)
        # R X = Y
        for k in range(n - 1, -1, -1):
            x[k] /= self._rdiag[k]
            x[:k] -= np.outer(qr[:k, k], x[k])
        return self._solution(x[:n], vector)

    def inverse(self) -> Tensor:
        """
        Inverse of a square matrix, or the least squares pseudo-inverse
        (``cols x rows``) of a tall one.
        """
        return self.solve(self._of.eye(self.rows))

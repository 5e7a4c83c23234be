"""
LU decomposition with partial (row) pivoting: ``A[piv] = L U``.

Two pivoting strategies produce the same factors up to rounding:

- `LUMethod.CROUT`: the Crout/Doolittle "left-looking" scheme that builds one
  column of the packed factors at a time,
- `LUMethod.GAUSSIAN_ELIMINATION`: classic right-looking elimination that
  updates the trailing sub-matrix after each pivot.

The matrix must have at least as many rows as columns. ``L`` is
``rows x cols`` unit lower trapezoidal and ``U`` is ``cols x cols`` upper
triangular.
"""

from __future__ import annotations

import logging
from enum import Enum

import numpy as np

from ...domain._errors import ShapeError, SingularMatrixError
from ..tensor import Tensor
from ._base import MatrixDecomposition
from ._builder import decomposition_control_path

logger = logging.getLogger(__name__)


class LUMethod(Enum):
    """Pivoting strategy of `LUDecomposition`."""

    CROUT = "crout"
    GAUSSIAN_ELIMINATION = "gaussian_elimination"


class LUDecomposition(MatrixDecomposition):
    """
    LU factorization with row pivots.

    Parameters
    ----------
    ref : Tensor
        Matrix with ``rows >= cols``.
    method : LUMethod, optional
        Pivoting strategy. Defaults to `LUMethod.CROUT`.

    Raises
    ------
    ShapeError
        If `ref` is not a matrix or has fewer rows than columns.

    Attributes
    ----------
    pivot_sign : int
        ``+1`` or ``-1``: parity of the row permutation.
    """

    def __init__(self, ref: Tensor, method: LUMethod = LUMethod.CROUT) -> None:
        super().__init__(ref)
        if self.rows < self.cols:
            raise ShapeError(
                "For LU decomposition, number of rows must be greater or equal "
                f"with number of columns, got {ref.shape}.",
                ref.shape,
            )
        self.variant = LUMethod(method)
        self._lu = self._matrix()
        self._piv = np.arange(self.rows)
        self.pivot_sign = 1
        self._factorize()
        logger.debug(
            "LU (%s) of %s matrix: non_singular=%s",
            self.variant.value,
            ref.shape,
            self.is_non_singular(),
        )

    @property
    def method(self) -> LUMethod:
        return self.variant

    def _factorize(self) -> None:
        """Overwrite `_lu` with the packed factors and record the pivots."""

    def _swap_rows(self, p: int, j: int) -> None:
        self._lu[[p, j], :] = self._lu[[j, p], :]
        self._piv[[p, j]] = self._piv[[j, p]]
        self.pivot_sign = -self.pivot_sign

    def is_non_singular(self) -> bool:
        """Whether every diagonal element of ``U`` is non-zero."""
        return bool(np.all(np.diagonal(self._lu)[: self.cols] != 0.0))

    def l(self) -> Tensor:
        """Unit lower trapezoidal factor, ``rows x cols``."""
        lower = np.tril(self._lu[:, : self.cols], -1)
        lower[np.arange(self.cols), np.arange(self.cols)] = 1.0
        return self._tensor(lower)

    def u(self) -> Tensor:
        """Upper triangular factor, ``cols x cols``."""
        return self._tensor(np.triu(self._lu[: self.cols, : self.cols]))

    def pivots(self) -> list[int]:
        """Row permutation: row ``i`` of ``L U`` is row ``pivots()[i]`` of A."""
        return [int(p) for p in self._piv]

    def det(self) -> float:
        """
        Determinant of a square matrix.

        A singular matrix has a zero on the diagonal of ``U`` and therefore a
        determinant of exactly 0.

        Raises
        ------
        ShapeError
            If the matrix is not square.
        """
        if self.rows != self.cols:
            raise ShapeError(
                "The determinant can be computed only for square matrices, got "
                f"{self._ref.shape}.",
                self._ref.shape,
            )
        if not self.is_non_singular():
            return 0.0
        return float(self.pivot_sign * np.prod(np.diagonal(self._lu)))

    def solve(self, b: Tensor) -> Tensor:
        """
        Solve ``A X = b`` by forward and back substitution.

        Parameters
        ----------
        b : Tensor
            Vector of length n or matrix with n rows.

        Returns
        -------
        Tensor
            Same rank as `b`.

        Raises
        ------
        ShapeError
            If A is not square or the rows of `b` do not match.
        SingularMatrixError
            If `is_non_singular()` is False.
        """
        if self.rows != self.cols:
            raise ShapeError(
                f"LU solve requires a square matrix, got {self._ref.shape}.",
                self._ref.shape,
            )
        x, vector = self._rhs(b, self.rows)
        if not self.is_non_singular():
            raise SingularMatrixError(self._ref.shape)
        lu = self._lu
        n = self.cols
        x = x[self._piv]
        # L Y = B[piv]
        for k in range(n):
            x[k + 1 : n] -= np.outer(lu[k + 1 : n, k], x[k])
        # U X = Y
        for k in range(n - 1, -1, -1):
            x[k] /= lu[k, k]
            x[:k] -= np.outer(lu[:k, k], x[k])
        return self._solution(x, vector)


@decomposition_control_path(LUDecomposition, LUDecomposition._factorize, LUMethod.CROUT)
def _factorize_crout(self: LUDecomposition) -> None:
    lu = self._lu
    m, n = lu.shape
    for j in range(n):
        col = lu[:, j].copy()
        for i in range(m):
            kmax = min(i, j)
            col[i] -= lu[i, :kmax] @ col[:kmax]
            lu[i, j] = col[i]
        p = j + int(np.argmax(np.abs(col[j:])))
        if p != j:
            self._swap_rows(p, j)
        if lu[j, j] != 0.0:
            lu[j + 1 :, j] /= lu[j, j]


@decomposition_control_path(
    LUDecomposition, LUDecomposition._factorize, LUMethod.GAUSSIAN_ELIMINATION
)
def _factorize_gaussian(self: LUDecomposition) -> None:
    lu = self._lu
    m, n = lu.shape
    for k in range(n):
        p = k + int(np.argmax(np.abs(lu[k:, k])))
        if p != k:
            self._swap_rows(p, k)
        if lu[k, k] != 0.0:
            lu[k + 1 :, k] /= lu[k, k]
            lu[k + 1 :, k + 1 :] -= np.outer(lu[k + 1 :, k], lu[k, k + 1 :])

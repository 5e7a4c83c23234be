"""
Cholesky decomposition ``A = L L^T`` (left) or ``A = R^T R`` (right).

The left variant builds the lower factor row by row from the lower triangle
of A; the right variant builds the upper factor column by column from the
upper triangle. Both also check the symmetry of A, so `is_spd()` is true only
for a symmetric matrix whose every pivot is strictly positive.
"""

from __future__ import annotations

import logging
import math
from enum import Enum

import numpy as np

from ...domain._errors import NotPositiveDefiniteError
from ..tensor import Tensor
from ._base import MatrixDecomposition
from ._builder import decomposition_control_path

logger = logging.getLogger(__name__)


class CholeskySide(Enum):
    """Which triangular factor is computed."""

    LEFT = "left"
    RIGHT = "right"


class CholeskyDecomposition(MatrixDecomposition):
    """
    Cholesky factorization of a symmetric positive definite matrix.

    Parameters
    ----------
    ref : Tensor
        Matrix to factorize. For a non-square matrix the leading
        ``min(rows, cols)`` square block is factorized and `is_spd()` is
        False.
    side : CholeskySide, optional
        `LEFT` computes ``L`` with ``A = L L^T``; `RIGHT` computes ``R`` with
        ``A = R^T R``. Both expose `l()` and `r()`.

    Notes
    -----
    The factorization never raises on a non-SPD input: a non-positive pivot
    is replaced by 0 and `is_spd()` reports False. `solve` and `inverse` then
    raise `NotPositiveDefiniteError`.
    """

    def __init__(self, ref: Tensor, side: CholeskySide = CholeskySide.LEFT) -> None:
        super().__init__(ref)
        self.variant = CholeskySide(side)
        self._n = min(self.rows, self.cols)
        self._spd = self.rows == self.cols
        self._factor = np.zeros((self._n, self._n), dtype=self._np_dtype)
        self._factorize()
        logger.debug(
            "Cholesky (%s) of %s matrix: spd=%s", self.variant.value, ref.shape, self._spd
        )

    def _factorize(self) -> None:
        """Fill `_factor` (lower for LEFT, upper for RIGHT) and the SPD flag."""

    def _factor_lower(self) -> np.ndarray:
        """Lower factor ``L``."""

    def is_spd(self) -> bool:
        return self._spd

    @property
    def side(self) -> CholeskySide:
        return self.variant

    def l(self) -> Tensor:
        """Lower triangular factor ``L`` (``A = L L^T``)."""
        return self._tensor(self._factor_lower())

    def r(self) -> Tensor:
        """Upper triangular factor ``R = L^T`` (``A = R^T R``)."""
        return self._tensor(self._factor_lower().T)

    def solve(self, b: Tensor) -> Tensor:
        """
        Solve ``A X = b``.

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
            If the row count of `b` differs from the matrix.
        NotPositiveDefiniteError
            If `is_spd()` is False.
        """
        x, vector = self._rhs(b, self.rows)
        if not self._spd:
            raise NotPositiveDefiniteError(self._ref.shape)
        lower = self._factor_lower()
        n = self._n
        # L Y = B
        for k in range(n):
            x[k] -= lower[k, :k] @ x[:k]
            x[k] /= lower[k, k]
        # L^T X = Y
        for k in range(n - 1, -1, -1):
            x[k] -= lower[k + 1 :, k] @ x[k + 1 :]
            x[k] /= lower[k, k]
        return self._solution(x, vector)


@decomposition_control_path(CholeskyDecomposition, CholeskyDecomposition._factorize, CholeskySide.LEFT)
def _factorize_left(self: CholeskyDecomposition) -> None:
    a = self._matrix()
    lower = self._factor
    for j in range(self._n):
        d = 0.0
        for k in range(j):
            s = a[j, k] - lower[k, :k] @ lower[j, :k]
            s = s / lower[k, k] if lower[k, k] != 0.0 else 0.0
            lower[j, k] = s
            d += s * s
            self._spd = self._spd and a[k, j] == a[j, k]
        d = a[j, j] - d
        self._spd = self._spd and d > 0.0
        lower[j, j] = math.sqrt(max(d, 0.0))


@decomposition_control_path(CholeskyDecomposition, CholeskyDecomposition._factorize, CholeskySide.RIGHT)
def _factorize_right(self: CholeskyDecomposition) -> None:
    a = self._matrix()
    upper = self._factor
    for j in range(self._n):
        d = 0.0
        for k in range(j):
            s = a[k, j] - upper[:k, k] @ upper[:k, j]
            s = s / upper[k, k] if upper[k, k] != 0.0 else 0.0
            upper[k, j] = s
            d += s * s
            self._spd = self._spd and a[k, j] == a[j, k]
        d = a[j, j] - d
        self._spd = self._spd and d > 0.0
        upper[j, j] = math.sqrt(max(d, 0.0))


@decomposition_control_path(CholeskyDecomposition, CholeskyDecomposition._factor_lower, CholeskySide.LEFT)
def _factor_lower_left(self: CholeskyDecomposition) -> np.ndarray:
    return self._factor.copy()


@decomposition_control_path(CholeskyDecomposition, CholeskyDecomposition._factor_lower, CholeskySide.RIGHT)
def _factor_lower_right(self: CholeskyDecomposition) -> np.ndarray:
    return self._factor.T.copy()

"""
Shared plumbing of the matrix decompositions.

Every decomposition is computed eagerly in its constructor on a private NumPy
copy of the reference matrix (in the reference dtype). The reference tensor is
never written. Factorization itself never raises on numeric degeneracy; the
diagnostic flags (`is_spd`, `is_non_singular`, `is_full_rank`) report it and
only the operations that need a non-degenerate factorization (`solve`,
`inverse`) raise.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from ...domain._errors import ShapeError
from ..tensor import Tensor

logger = logging.getLogger(__name__)


class MatrixDecomposition(ABC):
    """
    Base class holding the reference matrix and result conversion helpers.

    Parameters
    ----------
    ref : Tensor
        Rank-2 matrix to decompose.

    Raises
    ------
    ShapeError
        If `ref` is not a matrix.
    """

    variant: Any = None

    def __init__(self, ref: Tensor) -> None:
        if ref.rank != 2:
            raise ShapeError(
                f"{type(self).__name__} requires a matrix, got shape {ref.shape}.",
                ref.shape,
            )
        self._ref = ref
        self._of = ref.manager.of_type(ref.dtype)
        self._np_dtype = np.dtype(ref.dtype.numpy_name)

    @property
    def ref(self) -> Tensor:
        """The decomposed matrix (never modified)."""
        return self._ref

    @property
    def rows(self) -> int:
        return self._ref.dim(0)

    @property
    def cols(self) -> int:
        return self._ref.dim(1)

    def _matrix(self) -> np.ndarray:
        return self._ref.to_numpy()

    def _tensor(self, values: np.ndarray) -> Tensor:
        return self._of.from_array(values)

    def _rhs(self, b: Tensor, rows: int) -> tuple[np.ndarray, bool]:
        """
        Right-hand side as a 2-D array copy, plus whether it was a vector.

        Raises
        ------
        ShapeError
            If `b` is not rank 1 or 2, or its row count differs from `rows`.
        """
        if b.rank not in (1, 2):
            raise ShapeError(
                f"Right-hand side must be a vector or a matrix, got shape {b.shape}.",
                b.shape,
            )
        if b.dim(0) != rows:
            raise ShapeError(
                f"Matrix row dimensions must agree: {self._ref.shape} and {b.shape}.",
                self._ref.shape,
                b.shape,
            )
        values = np.array(b.to_numpy(), dtype=self._np_dtype)
        if b.rank == 1:
            return values.reshape(rows, 1), True
        return values, False

    def _solution(self, x: np.ndarray, vector: bool) -> Tensor:
        return self._tensor(x[:, 0] if vector else x)

    def inverse(self) -> Tensor:
        """Solution of ``A X = I`` (see `solve`)."""
        return self.solve(self._of.eye(self.rows))

    @abstractmethod
    def solve(self, b: Tensor) -> Tensor:
        """Solve ``A X = b`` using the factorization."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(shape={list(self._ref.dims)}, variant={self.variant})"

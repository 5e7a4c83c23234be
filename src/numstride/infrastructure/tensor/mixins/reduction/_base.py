"""
Reduction mixin defining sums, products, statistics and extrema.

With ``axis=None`` a reduction folds every element into a Python float. With
an integer axis it returns a new tensor whose shape is the input shape with
that axis removed (a rank-1 input therefore reduces to a rank-0 tensor).

The ``nan_*`` variants skip NaN elements; a slice made only of NaN values
reduces to NaN for ``nan_max`` / ``nan_min`` / ``nan_mean`` and to the
neutral element for ``nan_sum`` / ``nan_prod``.

``softmax``, ``logsoftmax`` and ``normalize_`` are built on the same
reductions but keep the input shape, rescaling each slice along the axis.
"""

from __future__ import annotations

import math
import warnings
from abc import ABC
from typing import Callable, Optional, Union

import numpy as np

from .....domain._errors import ShapeError
from .....domain._tensor import ITensor

Reduced = Union[float, "ITensor"]


class TensorMixinReduction(ABC):
    """
    Mixin providing reduction operations.

    Notes
    -----
    - Accumulation happens in the tensor dtype, as NumPy does.
    - ``max``, ``min``, ``argmax`` and ``argmin`` of an empty tensor raise
      `ShapeError` since they have no neutral element.
    """

    def _reduce(self, fn: Callable, axis: Optional[int], **kwargs) -> Reduced:
        view = self._view()
        if axis is None:
            return float(fn(view, **kwargs))
        axis = self.shape.axis(axis)
        return self._of().from_array(fn(view, axis=axis, **kwargs))

    def _reduce_nonempty(self, fn: Callable, axis: Optional[int], name: str) -> Reduced:
        empty = self.size == 0 if axis is None else self.shape.dim(axis) == 0
        if empty:
            raise ShapeError(f"{name} of an empty tensor is undefined.", self.shape)
        return self._reduce_nan(fn, axis)

    def _reduce_nan(self, fn: Callable, axis: Optional[int], **kwargs) -> Reduced:
        # all-NaN slices are a legitimate input here; silence NumPy's warning
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", RuntimeWarning)
            return self._reduce(fn, axis, **kwargs)

    # ------------------------------------------------------------------
    # sums and products
    # ------------------------------------------------------------------
    def sum(self, axis: Optional[int] = None) -> Reduced:
        """
        Sum of elements.

        Parameters
        ----------
        axis : int, optional
            Axis to reduce. `None` reduces everything to a float.

        Returns
        -------
        float | ITensor
            The total, or a tensor of partial sums without `axis`.
        """
        return self._reduce(np.sum, axis)

    def prod(self, axis: Optional[int] = None) -> Reduced:
        return self._reduce(np.prod, axis)

    def nan_sum(self, axis: Optional[int] = None) -> Reduced:
        return self._reduce_nan(np.nansum, axis)

    def nan_prod(self, axis: Optional[int] = None) -> Reduced:
        return self._reduce_nan(np.nanprod, axis)

    # ------------------------------------------------------------------
    # statistics
    # ------------------------------------------------------------------
    def mean(self, axis: Optional[int] = None) -> Reduced:
        """Arithmetic mean. The mean of an empty tensor is NaN."""
        return self._reduce_nan(np.mean, axis)

    def nan_mean(self, axis: Optional[int] = None) -> Reduced:
        return self._reduce_nan(np.nanmean, axis)

    def var(self, axis: Optional[int] = None, ddof: int = 0) -> Reduced:
        """
        Variance ``sum((x - mean)^2) / (n - ddof)``.

        Parameters
        ----------
        axis : int, optional
            Axis to reduce, or `None` for all elements.
        ddof : int, optional
            Delta degrees of freedom. ``1`` gives the sample variance.
        """
        return self._reduce_nan(np.var, axis, ddof=ddof)

    def std(self, axis: Optional[int] = None, ddof: int = 0) -> Reduced:
        return self._reduce_nan(np.std, axis, ddof=ddof)

    # ------------------------------------------------------------------
    # extrema
    # ------------------------------------------------------------------
    def max(self, axis: Optional[int] = None) -> Reduced:
        return self._reduce_nonempty(np.max, axis, "max")

    def min(self, axis: Optional[int] = None) -> Reduced:
        return self._reduce_nonempty(np.min, axis, "min")

    def nan_max(self, axis: Optional[int] = None) -> Reduced:
        return self._reduce_nonempty(np.nanmax, axis, "nan_max")

    def nan_min(self, axis: Optional[int] = None) -> Reduced:
        return self._reduce_nonempty(np.nanmin, axis, "nan_min")

    def argmax(self) -> tuple[int, ...]:
        """
        Multi-index of the first maximum in C order.

        Raises
        ------
        ShapeError
            If the tensor is empty.
        """
        if self.size == 0:
            raise ShapeError("argmax of an empty tensor is undefined.", self.shape)
        flat = int(np.argmax(self._view()))
        return tuple(int(i) for i in np.unravel_index(flat, self.shape.dims))

    def argmin(self) -> tuple[int, ...]:
        if self.size == 0:
            raise ShapeError("argmin of an empty tensor is undefined.", self.shape)
        flat = int(np.argmin(self._view()))
        return tuple(int(i) for i in np.unravel_index(flat, self.shape.dims))

    # ------------------------------------------------------------------
    # counts and norms
    # ------------------------------------------------------------------
    def nan_count(self) -> int:
        return int(np.count_nonzero(np.isnan(self._view())))

    def zero_count(self) -> int:
        return int(self.size - np.count_nonzero(self._view()))

    def norm(self, p: float = 2.0) -> float:
        """
        Entry-wise p-norm ``(sum |x|^p)^(1/p)``.

        ``p = inf`` gives the largest absolute value; ``p = 1`` the sum of
        absolute values.

        Raises
        ------
        ValueError
            If ``p <= 0``.
        """
        if p <= 0:
            raise ValueError(f"norm order must be positive, got {p}.")
        view = np.abs(self._view())
        if view.size == 0:
            return 0.0
        if math.isinf(p):
            return float(np.max(view))
        if p == 1:
            return float(np.sum(view))
        if p == 2:
            return float(np.sqrt(np.sum(view * view)))
        return float(np.sum(view**p) ** (1.0 / p))

    def normalize_(self, p: float = 2.0, axis: Optional[int] = None) -> "ITensor":
        """
        Divide by the p-norm of the whole tensor, or of each slice along
        `axis`, in place. Slices with a zero norm are left unchanged.

        Raises
        ------
        ValueError
            If ``p <= 0``.
        """
        if p <= 0:
            raise ValueError(f"norm order must be positive, got {p}.")
        view = self._view()
        if view.size == 0:
            return self
        ax = None if axis is None else self.shape.axis(axis)
        mag = np.abs(view)
        if math.isinf(p):
            norms = np.max(mag, axis=ax, keepdims=True)
        else:
            norms = np.sum(mag**p, axis=ax, keepdims=True) ** (1.0 / p)
        norms[norms == 0] = 1.0
        np.divide(view, norms, out=view)
        return self

    # ------------------------------------------------------------------
    # softmax
    # ------------------------------------------------------------------
    def _shifted(self, axis: Optional[int]):
        view = self._view()
        ax = None if axis is None else self.shape.axis(axis)
        return view, ax, view - np.max(view, axis=ax, keepdims=True)

    def softmax_(self, axis: Optional[int] = None) -> "ITensor":
        """
        ``exp(x) / sum(exp(x))`` over all elements or along `axis`, in place.

        The maximum is subtracted first, so large inputs do not overflow.
        """
        if self.size == 0:
            return self
        view, ax, shifted = self._shifted(axis)
        np.exp(shifted, out=shifted)
        np.divide(shifted, np.sum(shifted, axis=ax, keepdims=True), out=view)
        return self

    def softmax(self, axis: Optional[int] = None) -> "ITensor":
        return self.copy().softmax_(axis)

    def logsoftmax_(self, axis: Optional[int] = None) -> "ITensor":
        """``x - max - log(sum(exp(x - max)))`` over all elements or along `axis`."""
        if self.size == 0:
            return self
        view, ax, shifted = self._shifted(axis)
        logsum = np.log(np.sum(np.exp(shifted), axis=ax, keepdims=True))
        np.subtract(shifted, logsum, out=view)
        return self

    def logsoftmax(self, axis: Optional[int] = None) -> "ITensor":
        return self.copy().logsoftmax_(axis)

"""
Memory mixin: copies, reshaping and non-copying views.

Methods documented as *views* return a tensor that shares storage with
``self``; writing through either one is visible in the other. Methods
documented as *copies* always allocate a fresh dense buffer.
"""

from __future__ import annotations

from abc import ABC
from typing import Optional, Sequence

import numpy as np

from .....domain._errors import IndexOutOfRangeError, ShapeError
from .....domain._layout import StrideLayout
from .....domain._order import Order
from .....domain._shape import Shape, ShapeLike
from .....domain._tensor import ITensor
from ...._config import get_config


class TensorMixinMemory(ABC):
    """
    Mixin providing copy and view operations.
    """

    # ------------------------------------------------------------------
    # copies
    # ------------------------------------------------------------------
    def copy(self, order: Optional[Order] = Order.C) -> "ITensor":
        """
        Dense copy in the requested order (copy).

        Parameters
        ----------
        order : Order, optional
            C or F. `Order.S` keeps the storage order of a dense source and
            falls back to C otherwise.
        """
        if order is Order.S:
            order = self.layout.storage_fast_order()
        out = self._of().zeros(self.shape, Order.auto_fc(order))
        np.copyto(out._view(), self._view())
        return out

    def assign_(self, other: "ITensor") -> "ITensor":
        """
        Copy the values of `other` into this tensor (in place).

        Raises
        ------
        ShapeError
            If the shapes differ.
        """
        if other.shape != self.shape:
            raise ShapeError(
                f"assign: incompatible shapes {self.shape} and {other.shape}.",
                self.shape,
                other.shape,
            )
        np.copyto(self._view(), other._view(), casting="same_kind")
        return self

    def reshape(self, shape: ShapeLike, order: Optional[Order] = Order.C) -> "ITensor":
        """
        Tensor with a new shape and the same elements.

        Elements are read from ``self`` and placed into the new shape in
        `order` (C: last axis fastest, F: first axis fastest). The result is a
        view when ``self`` is dense in that order, otherwise a copy.

        Raises
        ------
        ShapeError
            If the new shape does not have the same number of elements.
        """
        shape = Shape.of(shape)
        if shape.size != self.size:
            raise ShapeError(
                f"Cannot reshape {self.shape} ({self.size} elements) into {shape} "
                f"({shape.size} elements).",
                self.shape,
                shape,
            )
        order = Order.auto_fc(order)
        layout = self.layout
        if self.size > 0:
            if order is Order.C and layout.is_c_dense():
                return self._wrap(StrideLayout.of_dense(shape, layout.offset, Order.C))
            if order is Order.F and layout.is_f_dense():
                return self._wrap(StrideLayout.of_dense(shape, layout.offset, Order.F))
        values = np.reshape(self._view(), shape.dims, order=order.value)
        return self._of().from_array(values, order)

    def ravel(self, order: Optional[Order] = Order.C) -> "ITensor":
        """Rank-1 tensor of all elements in `order`; a view when possible."""
        return self.reshape((self.size,), order)

    def flatten(self, order: Optional[Order] = Order.C) -> "ITensor":
        """Rank-1 copy of all elements in `order` (copy)."""
        order = Order.auto_fc(order)
        return self._of().from_array(np.ravel(self._view(), order=order.value), order)

    def take(self, axis: int, indices: Sequence[int]) -> "ITensor":
        """
        Select entries along `axis` by index, repeats allowed (copy).

        Raises
        ------
        IndexOutOfRangeError
            If an index is outside ``[0, dim(axis))``.
        """
        axis = self.shape.axis(axis)
        dim = self.shape.dim(axis)
        indices = [int(i) for i in indices]
        for i in indices:
            if not 0 <= i < dim:
                raise IndexOutOfRangeError((i,), self.shape)
        return self._of().from_array(np.take(self._view(), indices, axis=axis))

    def repeat(
        self, axis: int, repeat: int, stack: bool = False, order: Optional[Order] = None
    ) -> "ITensor":
        """
        Concatenate (or stack) `repeat` copies of this tensor along `axis` (copy).
        """
        copies = [self] * repeat
        of = self._of()
        return of.stack(axis, copies, order) if stack else of.concat(axis, copies, order)

    def sort_(self, axis: int = -1, ascending: bool = True) -> "ITensor":
        """Sort the values of every slice along `axis` in place (stable)."""
        if self.rank == 0:
            return self
        axis = self.shape.axis(axis)
        view = self._view()
        values = np.sort(view, axis=axis, kind="stable")
        if not ascending:
            values = np.flip(values, axis=axis)
        np.copyto(view, values)
        return self

    def sort(self, axis: int = -1, ascending: bool = True) -> "ITensor":
        return self.copy().sort_(axis, ascending)

    def argsort(self, axis: int = -1, ascending: bool = True) -> np.ndarray:
        """
        Integer positions that sort each slice along `axis` (stable).

        Ties keep their original relative order in both directions.

        Returns
        -------
        numpy.ndarray
            Array of ``int64`` with the shape of the tensor.
        """
        if self.rank == 0:
            return np.zeros((), dtype=np.int64)
        axis = self.shape.axis(axis)
        view = self._view()
        keys = view if ascending else np.negative(view)
        return np.argsort(keys, axis=axis, kind="stable").astype(np.int64)

    def deep_equals(self, other: "ITensor", tol: Optional[float] = None) -> bool:
        """
        Whether `other` has the same shape and element-wise equal values.

        Parameters
        ----------
        other : ITensor
            Tensor to compare with; non-tensors compare unequal.
        tol : float, optional
            Absolute tolerance. Defaults to the configured equality tolerance.
            NaN compares equal to NaN.
        """
        if not isinstance(other, TensorMixinMemory) or other.shape != self.shape:
            return False
        if tol is None:
            tol = get_config().equality_tolerance
        return bool(
            np.allclose(self._view(), other._view(), rtol=0.0, atol=tol, equal_nan=True)
        )

    # ------------------------------------------------------------------
    # views
    # ------------------------------------------------------------------
    def t(self) -> "ITensor":
        """Transpose: all axes reversed (view)."""
        return self._wrap(self.layout.revert())

    @property
    def T(self) -> "ITensor":
        return self.t()

    def move_axis(self, src: int, dst: int) -> "ITensor":
        return self._wrap(self.layout.move_axis(src, dst))

    def swap_axis(self, a: int, b: int) -> "ITensor":
        return self._wrap(self.layout.swap_axis(a, b))

    def squeeze(self, axis: Optional[int] = None) -> "ITensor":
        """Drop unit axes, or only `axis` when it has size 1 (view)."""
        return self._wrap(self.layout.squeeze(axis))

    def unsqueeze(self, axis: int) -> "ITensor":
        """Insert a unit axis at `axis` (view)."""
        return self._wrap(self.layout.unsqueeze(axis))

    def expand(self, axis: int, dim: int) -> "ITensor":
        """
        Repeat a unit axis `dim` times without copying (view).

        The expanded axis gets a zero stride, so all its entries alias the
        same element. Writing into such a view is allowed but every write hits
        the shared element.

        Raises
        ------
        ShapeError
            If the axis does not have size 1.
        """
        axis = self.shape.axis(axis)
        if self.shape.dim(axis) != 1:
            raise ShapeError(
                f"Only unit axes can be expanded; axis {axis} of {self.shape} has "
                f"size {self.shape.dim(axis)}.",
                self.shape,
            )
        dims = list(self.shape.dims)
        strides = list(self.layout.strides)
        dims[axis] = int(dim)
        strides[axis] = 0
        return self._wrap(StrideLayout(dims, self.layout.offset, strides))

    def narrow(self, axis: int, start: int, end: int, keepdim: bool = True) -> "ITensor":
        """
        Restrict `axis` to ``[start, end)`` (view).

        With ``keepdim=False`` a length-1 result axis is dropped.
        """
        return self._wrap(self.layout.narrow(axis, start, end, keepdim))

    def narrow_all(self, starts: Sequence[int], ends: Sequence[int]) -> "ITensor":
        return self._wrap(self.layout.narrow_all(starts, ends))

    def permute(self, *perm: int) -> "ITensor":
        """
        Reorder axes (view). Accepts ``permute(1, 0)`` or ``permute((1, 0))``.
        """
        if len(perm) == 1 and not isinstance(perm[0], int):
            perm = tuple(perm[0])
        return self._wrap(self.layout.permute(perm))

    def split(self, axis: int, *starts: int, keepdim: bool = True) -> list["ITensor"]:
        """
        Cut `axis` into consecutive views.

        Each start index opens a segment that runs to the next start index,
        or to the end of the axis for the last one. Elements before the first
        start are not part of any segment.

        Raises
        ------
        ShapeError
            If the starts are not non-decreasing or fall outside
            ``[0, dim(axis)]``.
        """
        axis = self.shape.axis(axis)
        dim = self.shape.dim(axis)
        if not starts:
            starts = (0,)
        prev = 0
        for s in starts:
            if not prev <= s <= dim:
                raise ShapeError(
                    f"Invalid split starts {list(starts)} for axis {axis} of size {dim}.",
                    self.shape,
                )
            prev = s
        ends = list(starts[1:]) + [dim]
        return [self.narrow(axis, s, e, keepdim) for s, e in zip(starts, ends)]

    def chunk(self, axis: int, step: int, keepdim: bool = True) -> list["ITensor"]:
        """
        Cut `axis` into views of `step` entries; the last may be shorter.
        """
        if step <= 0:
            raise ValueError(f"chunk step must be positive, got {step}.")
        dim = self.shape.dim(axis)
        return self.split(axis, *range(0, max(dim, 1), step), keepdim=keepdim)

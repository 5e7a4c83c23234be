"""
Strided memory layout.

A `StrideLayout` maps a multi-index of a tensor to a linear position in a flat
buffer::

    pointer(i_0, ..., i_{r-1}) = offset + sum(i_k * strides[k])

The layout itself never owns data, so every transformation in this module
(transpose, axis moves, squeeze/unsqueeze, narrowing, permutation) produces a
new layout over the *same* buffer. Tensors built from these layouts are views
that alias the storage of their source.

A layout is *C ordered* when its strides are exactly the row-major strides of
its shape up to a common unit, *F ordered* for the column-major counterpart,
and *dense* when it is C ordered with a unit last stride or F ordered with a
unit first stride (no gaps in the buffer).
"""

from __future__ import annotations

import operator
from typing import Optional, Sequence

from ._errors import ShapeError
from ._order import Order
from ._shape import Shape, ShapeLike


class StrideLayout:
    """
    Shape, offset and per-axis strides describing a strided view of a buffer.

    Parameters
    ----------
    shape : ShapeLike
        Logical dimensions.
    offset : int
        Base position in the underlying buffer.
    strides : Sequence[int]
        Number of buffer elements to advance when the corresponding index grows
        by one. Must have the same length as the shape.

    Raises
    ------
    ShapeError
        If the strides do not match the rank or the offset is negative.
    """

    __slots__ = ("_shape", "_offset", "_strides", "_c_ordered", "_f_ordered")

    def __init__(self, shape: ShapeLike, offset: int, strides: Sequence[int]) -> None:
        self._shape = Shape.of(shape)
        self._offset = operator.index(offset)
        self._strides = tuple(operator.index(s) for s in strides)
        if len(self._strides) != self._shape.rank:
            raise ShapeError(
                f"Strides {self._strides} do not match rank of shape {self._shape}.",
                self._shape,
            )
        if self._offset < 0:
            raise ShapeError(f"Layout offset must be non-negative, got {offset}.")
        self._c_ordered = self._check_c_order()
        self._f_ordered = self._check_f_order()

    # ------------------------------------------------------------------
    # construction
    # ------------------------------------------------------------------
    @classmethod
    def of(cls, shape: ShapeLike, offset: int, strides: Sequence[int]) -> "StrideLayout":
        return cls(shape, offset, strides)

    @classmethod
    def of_dense(
        cls, shape: ShapeLike, offset: int = 0, order: Optional[Order] = Order.C
    ) -> "StrideLayout":
        """
        Build a dense layout for a shape in C or F order.

        `Order.S` and `None` resolve to C.
        """
        shape = Shape.of(shape)
        return cls(shape, offset, cls.dense_strides(shape, order))

    @staticmethod
    def dense_strides(shape: ShapeLike, order: Optional[Order] = Order.C) -> tuple[int, ...]:
        """
        Canonical dense strides for a shape.

        Parameters
        ----------
        shape : ShapeLike
            Logical dimensions.
        order : Order, optional
            `Order.C` (last axis contiguous) or `Order.F` (first axis
            contiguous).

        Returns
        -------
        tuple[int, ...]
            One stride per axis.
        """
        dims = Shape.of(shape).dims
        order = Order.auto_fc(order)
        strides = [1] * len(dims)
        if order is Order.C:
            for i in range(len(dims) - 2, -1, -1):
                strides[i] = strides[i + 1] * dims[i + 1]
        else:
            for i in range(1, len(dims)):
                strides[i] = strides[i - 1] * dims[i - 1]
        return tuple(strides)

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------
    @property
    def shape(self) -> Shape:
        return self._shape

    @property
    def dims(self) -> tuple[int, ...]:
        return self._shape.dims

    @property
    def rank(self) -> int:
        return self._shape.rank

    @property
    def size(self) -> int:
        return self._shape.size

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def strides(self) -> tuple[int, ...]:
        return self._strides

    def dim(self, axis: int) -> int:
        return self._shape.dim(axis)

    def stride(self, axis: int) -> int:
        if not self._strides:
            return 1
        return self._strides[self._shape.axis(axis)]

    def is_c_ordered(self) -> bool:
        return self._c_ordered

    def is_f_ordered(self) -> bool:
        return self._f_ordered

    def is_c_dense(self) -> bool:
        """C ordered with unit stride on the fastest non-unit axis."""
        inner = self._inner_stride(reversed(range(self.rank)))
        return self._c_ordered and inner in (None, 1)

    def is_f_dense(self) -> bool:
        """F ordered with unit stride on the fastest non-unit axis."""
        inner = self._inner_stride(range(self.rank))
        return self._f_ordered and inner in (None, 1)

    def is_dense(self) -> bool:
        return self.is_c_dense() or self.is_f_dense()

    def _inner_stride(self, axes) -> Optional[int]:
        for i in axes:
            if self.dims[i] != 1:
                return self._strides[i]
        return None

    def storage_fast_order(self) -> Order:
        """
        Order in which the buffer is traversed with the smallest jumps.

        Returns `Order.C` or `Order.F` for layouts matching a canonical
        order, `Order.S` otherwise. Layouts of rank below 2 report C.
        """
        if self.rank < 2:
            return Order.C
        if self._c_ordered:
            return Order.C
        if self._f_ordered:
            return Order.F
        return Order.S

    # axes of size 1 never move the pointer, so their strides are ignored
    def _check_c_order(self) -> bool:
        return self._check_nested(reversed(range(self.rank)))

    def _check_f_order(self) -> bool:
        return self._check_nested(range(self.rank))

    def _check_nested(self, axes) -> bool:
        """Whether each non-unit axis steps over the whole previous one."""
        span = None
        for i in axes:
            dim = self.dims[i]
            if dim == 1:
                continue
            if span is not None and self._strides[i] != span:
                return False
            span = self._strides[i] * dim
        return True

    # ------------------------------------------------------------------
    # index arithmetic
    # ------------------------------------------------------------------
    def pointer(self, index: Sequence[int]) -> int:
        """
        Linear buffer position of a multi-index. No bounds checking.
        """
        pointer = self._offset
        for i, s in zip(index, self._strides):
            pointer += i * s
        return pointer

    def max_pointer(self) -> int:
        """
        Largest buffer position reachable through this layout.

        Only meaningful for layouts with a non-zero size.
        """
        return self._offset + sum((d - 1) * s for d, s in zip(self.dims, self._strides))

    def index(self, pointer: int) -> tuple[int, ...]:
        """
        Multi-index addressed by a buffer position.

        Valid for non-overlapping layouts. Axes are resolved from the largest
        stride to the smallest.

        Raises
        ------
        ShapeError
            If no multi-index of this layout maps to `pointer`.
        """
        rest = pointer - self._offset
        axes = sorted(
            range(self.rank),
            key=lambda a: (self._strides[a], self.dims[a]),
            reverse=True,
        )
        index = [0] * self.rank
        for axis in axes:
            if self.dims[axis] == 1 or self._strides[axis] == 0:
                continue
            p = rest // self._strides[axis]
            if p >= self.dims[axis]:
                break
            index[axis] = p
            rest -= p * self._strides[axis]
        if rest != 0:
            raise ShapeError(
                f"Pointer {pointer} is not addressed by layout {self}.", self._shape
            )
        return tuple(index)

    def loop_layout(self, order: Order, compact: bool = True) -> tuple[tuple[int, ...], tuple[int, ...]]:
        """
        Dims and strides reordered fastest-axis-first for a traversal order.

        Parameters
        ----------
        order : Order
            C visits the last axis fastest, F the first axis, S the axis with
            the smallest stride.
        compact : bool, optional
            Drop unit axes and merge neighbouring axes whose strides chain
            (``dims[k] * strides[k] == strides[k + 1]``), which exposes the
            longest runs that can be walked with a single step.

        Returns
        -------
        tuple[tuple[int, ...], tuple[int, ...]]
            ``(dims, strides)``, fastest axis first.
        """
        dims, strides = self.dims, self._strides
        if order is Order.C:
            axes = list(range(self.rank - 1, -1, -1))
        elif order is Order.F:
            axes = list(range(self.rank))
        else:
            axes = sorted(range(self.rank), key=lambda a: (strides[a], dims[a]))
        loop_dims = [dims[a] for a in axes]
        loop_strides = [strides[a] for a in axes]
        if not compact or self.size == 0:
            return tuple(loop_dims), tuple(loop_strides)

        out_dims: list[int] = []
        out_strides: list[int] = []
        for d, s in zip(loop_dims, loop_strides):
            if d == 1:
                continue
            if out_dims and out_dims[-1] * out_strides[-1] == s:
                out_dims[-1] *= d
                continue
            out_dims.append(d)
            out_strides.append(s)
        return tuple(out_dims), tuple(out_strides)

    # ------------------------------------------------------------------
    # views
    # ------------------------------------------------------------------
    def revert(self) -> "StrideLayout":
        """Transpose: reverse the axis order (and the strides with it)."""
        return StrideLayout(
            tuple(reversed(self.dims)), self._offset, tuple(reversed(self._strides))
        )

    def squeeze(self, axis: Optional[int] = None) -> "StrideLayout":
        """
        Remove unit axes.

        With an axis, only that axis is removed, and only if it has size 1;
        otherwise the layout is returned unchanged.
        """
        if axis is None:
            if self._shape.unit_dim_count() == 0:
                return self
            keep = [i for i, d in enumerate(self.dims) if d != 1]
        else:
            axis = self._shape.axis(axis)
            if self.dims[axis] != 1:
                return self
            keep = [i for i in range(self.rank) if i != axis]
        return StrideLayout(
            tuple(self.dims[i] for i in keep),
            self._offset,
            tuple(self._strides[i] for i in keep),
        )

    def unsqueeze(self, axis: int) -> "StrideLayout":
        """
        Insert a unit axis at position `axis` (``0 <= axis <= rank``).

        The stride of the new axis is chosen so a C or F ordered layout keeps
        its ordering flag.
        """
        rank = self.rank
        if axis < 0:
            axis += rank + 1
        if not 0 <= axis <= rank:
            raise ShapeError(
                f"Unsqueeze axis {axis} is out of range [0, {rank}].", self._shape
            )
        if rank == 0:
            new_stride = 1
        elif self._c_ordered:
            new_stride = 1 if axis == rank else self._strides[axis] * self.dims[axis]
        elif self._f_ordered:
            new_stride = 1 if axis == 0 else self._strides[axis - 1] * self.dims[axis - 1]
        else:
            new_stride = 1
        dims = list(self.dims)
        strides = list(self._strides)
        dims.insert(axis, 1)
        strides.insert(axis, new_stride)
        return StrideLayout(tuple(dims), self._offset, tuple(strides))

    def move_axis(self, src: int, dst: int) -> "StrideLayout":
        """Move axis `src` to position `dst`, shifting the axes in between."""
        src = self._shape.axis(src)
        dst = self._shape.axis(dst)
        if src == dst:
            return self
        dims = list(self.dims)
        strides = list(self._strides)
        d, s = dims.pop(src), strides.pop(src)
        dims.insert(dst, d)
        strides.insert(dst, s)
        return StrideLayout(tuple(dims), self._offset, tuple(strides))

    def swap_axis(self, a: int, b: int) -> "StrideLayout":
        a = self._shape.axis(a)
        b = self._shape.axis(b)
        if a == b:
            return self
        dims = list(self.dims)
        strides = list(self._strides)
        dims[a], dims[b] = dims[b], dims[a]
        strides[a], strides[b] = strides[b], strides[a]
        return StrideLayout(tuple(dims), self._offset, tuple(strides))

    def narrow(self, axis: int, start: int, end: int, keepdim: bool = True) -> "StrideLayout":
        """
        Restrict an axis to the half-open range ``[start, end)``.

        Strides are unchanged; only the offset and the axis size move.

        Parameters
        ----------
        axis : int
            Axis to restrict.
        start, end : int
            Range bounds, ``0 <= start <= end <= dim(axis)``.
        keepdim : bool, optional
            When False and the range has length 1, the axis is squeezed.

        Raises
        ------
        ShapeError
            If the axis or the range is invalid.
        """
        axis = self._shape.axis(axis)
        if not 0 <= start <= end <= self.dims[axis]:
            raise ShapeError(
                f"Invalid range [{start}, {end}) for axis {axis} of shape {self._shape}.",
                self._shape,
            )
        dims = list(self.dims)
        dims[axis] = end - start
        offset = self._offset + start * self._strides[axis] if end > start else self._offset
        result = StrideLayout(tuple(dims), offset, self._strides)
        return result if keepdim else result.squeeze(axis)

    def narrow_all(self, starts: Sequence[int], ends: Sequence[int]) -> "StrideLayout":
        """Narrow every axis at once."""
        if len(starts) != self.rank or len(ends) != self.rank:
            raise ShapeError(
                f"narrow_all needs {self.rank} starts and ends, got "
                f"{len(starts)} and {len(ends)}.",
                self._shape,
            )
        layout = self
        for axis, (start, end) in enumerate(zip(starts, ends)):
            layout = layout.narrow(axis, start, end)
        return layout

    def permute(self, perm: Sequence[int]) -> "StrideLayout":
        """
        Reorder axes: axis ``k`` of the result is axis ``perm[k]`` of this layout.

        Raises
        ------
        ShapeError
            If `perm` is not a permutation of ``range(rank)``.
        """
        perm = tuple(perm)
        if sorted(perm) != list(range(self.rank)):
            raise ShapeError(
                f"{list(perm)} is not a permutation of the axes of shape {self._shape}.",
                self._shape,
            )
        return StrideLayout(
            tuple(self.dims[p] for p in perm),
            self._offset,
            tuple(self._strides[p] for p in perm),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StrideLayout):
            return NotImplemented
        return (
            self._shape == other._shape
            and self._offset == other._offset
            and self._strides == other._strides
        )

    def __hash__(self) -> int:
        return hash((self._shape, self._offset, self._strides))

    def __repr__(self) -> str:
        return (
            f"StrideLayout(shape={list(self.dims)}, offset={self._offset}, "
            f"strides={list(self._strides)})"
        )

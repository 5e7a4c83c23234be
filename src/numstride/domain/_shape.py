"""
Tensor shape value type.

A `Shape` is an immutable, ordered sequence of non-negative dimension sizes.
Its rank is the number of dimensions and its size is the product of the
dimensions (the empty shape describes a scalar and has size 1).

Besides being a value type, `Shape` knows how to map a multi-index to its
dense linear position (and back) in either C or F order. These are the
canonical positions used by sequential fills and by order-aware traversal.
"""

from __future__ import annotations

import operator
from typing import Iterable, Iterator, Sequence, Union

from ._errors import IndexOutOfRangeError, ShapeError
from ._order import Order

ShapeLike = Union["Shape", Sequence[int], int]


class Shape:
    """
    Immutable sequence of dimension sizes.

    Parameters
    ----------
    dims : Iterable[int]
        Dimension sizes. Each must be a non-negative integer.

    Raises
    ------
    ShapeError
        If a dimension is negative or not an integer.
    """

    __slots__ = ("_dims", "_size")

    def __init__(self, dims: Iterable[int] = ()) -> None:
        dims = tuple(dims)
        checked = []
        for d in dims:
            try:
                d = operator.index(d)
            except TypeError:
                raise ShapeError(
                    f"Shape dimensions must be integers, got {d!r}.", dims
                ) from None
            if d < 0:
                raise ShapeError(
                    f"Shape dimensions must be non-negative, got {d}.", dims
                )
            checked.append(d)
        self._dims = tuple(checked)
        size = 1
        for d in self._dims:
            size *= d
        self._size = size

    @classmethod
    def of(cls, *dims: ShapeLike) -> "Shape":
        """
        Build a shape from varargs, a sequence, or an existing shape.

        ``Shape.of(2, 3)``, ``Shape.of((2, 3))`` and ``Shape.of(Shape.of(2, 3))``
        are equivalent.
        """
        if len(dims) == 1:
            single = dims[0]
            if isinstance(single, Shape):
                return single
            if not isinstance(single, int) and hasattr(single, "__iter__"):
                return cls(single)
        return cls(dims)

    @classmethod
    def scalar(cls) -> "Shape":
        return cls(())

    @property
    def dims(self) -> tuple[int, ...]:
        return self._dims

    @property
    def rank(self) -> int:
        return len(self._dims)

    @property
    def size(self) -> int:
        return self._size

    def axis(self, axis: int) -> int:
        """
        Normalize an axis index, allowing negative values.

        Raises
        ------
        ShapeError
            If the axis is outside ``[-rank, rank)``.
        """
        rank = len(self._dims)
        if not -rank <= axis < rank:
            raise ShapeError(
                f"Axis {axis} is out of range for shape {self} of rank {rank}.",
                self,
            )
        return axis + rank if axis < 0 else axis

    def dim(self, axis: int) -> int:
        return self._dims[self.axis(axis)]

    def unit_dim_count(self) -> int:
        return sum(1 for d in self._dims if d == 1)

    def position(self, order: Order, index: Sequence[int]) -> int:
        """
        Dense linear position of a multi-index.

        Parameters
        ----------
        order : Order
            `Order.C` or `Order.F`.
        index : Sequence[int]
            Multi-index; its length must equal the rank.

        Returns
        -------
        int
            Position in ``[0, size)``.
        """
        self._check_index(index)
        pos = 0
        if order is Order.C:
            for i, d in zip(index, self._dims):
                pos = pos * d + i
            return pos
        if order is Order.F:
            for i, d in zip(reversed(tuple(index)), reversed(self._dims)):
                pos = pos * d + i
            return pos
        raise ValueError(f"Position requires C or F order, got {order}.")

    def index(self, order: Order, position: int) -> tuple[int, ...]:
        """
        Inverse of `position`: the multi-index at a dense linear position.
        """
        if not 0 <= position < self._size:
            raise ShapeError(
                f"Position {position} is out of range for shape {self}.", self
            )
        index = [0] * len(self._dims)
        if order is Order.C:
            axes = range(len(self._dims) - 1, -1, -1)
        elif order is Order.F:
            axes = range(len(self._dims))
        else:
            raise ValueError(f"Index requires C or F order, got {order}.")
        for axis in axes:
            position, index[axis] = divmod(position, self._dims[axis])
        return tuple(index)

    def _check_index(self, index: Sequence[int]) -> None:
        if len(index) != len(self._dims):
            raise ShapeError(
                f"Index {tuple(index)} has rank {len(index)}, shape {self} "
                f"has rank {len(self._dims)}.",
                self,
            )
        for i, d in zip(index, self._dims):
            if not 0 <= i < d:
                raise IndexOutOfRangeError(index, self)

    # value semantics
    def __eq__(self, other: object) -> bool:
        if isinstance(other, Shape):
            return self._dims == other._dims
        if isinstance(other, tuple):
            return self._dims == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._dims)

    def __len__(self) -> int:
        return len(self._dims)

    def __iter__(self) -> Iterator[int]:
        return iter(self._dims)

    def __getitem__(self, item):
        return self._dims[item]

    def __repr__(self) -> str:
        return f"Shape{list(self._dims)}"

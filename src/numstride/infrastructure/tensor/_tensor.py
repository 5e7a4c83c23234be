"""
Concrete strided Tensor implementation (NumPy backend).

A `Tensor` is a `StrideLayout` over a shared `Storage`, created and owned by
an `OfType` factory of a `TensorManager`. Element access goes through the
layout's pointer arithmetic; bulk kernels run on a NumPy view of the buffer
built from the same layout, so strided views never need to be materialized
before an operation.

Operations are grouped in mixins (unary, arithmetic, reduction, memory,
linear algebra); this module adds construction, identity, element access and
iteration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterator, Optional

import numpy as np

from ...domain._dtype import DType
from ...domain._errors import IndexOutOfRangeError, ShapeError
from ...domain._layout import StrideLayout
from ...domain._order import Order
from ...domain._shape import Shape
from ._iterators import ChunkIterator, PointerIterator, pointer_array, value_iterator
from ._storage import Storage
from .mixins import (
    TensorMixinArithmetic,
    TensorMixinLinalg,
    TensorMixinMemory,
    TensorMixinReduction,
    TensorMixinUnary,
)

if TYPE_CHECKING:
    from ._manager import OfType, TensorManager


class Tensor(
    TensorMixinUnary,
    TensorMixinArithmetic,
    TensorMixinReduction,
    TensorMixinMemory,
    TensorMixinLinalg,
):
    """
    Strided multi-dimensional array of DOUBLE or FLOAT elements.

    Parameters
    ----------
    manager : TensorManager
        Manager that created the tensor; supplies factories for results and
        the worker pool for parallel kernels.
    layout : StrideLayout
        Mapping from multi-indices to buffer positions.
    storage : Storage
        Flat buffer, possibly shared with other tensors.

    Raises
    ------
    ShapeError
        If the layout reaches outside the storage.

    Notes
    -----
    Tensors are normally created through ``manager.of_type(dtype)``
    factories, not by calling this constructor.
    """

    __slots__ = ("_manager", "_layout", "_storage")

    def __init__(self, manager: "TensorManager", layout: StrideLayout, storage: Storage) -> None:
        storage.check_layout(layout)
        self._manager = manager
        self._layout = layout
        self._storage = storage

    # ------------------------------------------------------------------
    # host hooks used by the mixins
    # ------------------------------------------------------------------
    def _view(self) -> np.ndarray:
        return self._storage.view(self._layout)

    def _of(self) -> "OfType":
        return self._manager.of_type(self._storage.dtype)

    def _wrap(self, layout: StrideLayout) -> "Tensor":
        return Tensor(self._manager, layout, self._storage)

    # ------------------------------------------------------------------
    # identity
    # ------------------------------------------------------------------
    @property
    def manager(self) -> "TensorManager":
        return self._manager

    @property
    def dtype(self) -> DType:
        return self._storage.dtype

    @property
    def layout(self) -> StrideLayout:
        return self._layout

    @property
    def storage(self) -> Storage:
        return self._storage

    @property
    def shape(self) -> Shape:
        return self._layout.shape

    @property
    def dims(self) -> tuple[int, ...]:
        return self._layout.dims

    @property
    def rank(self) -> int:
        return self._layout.rank

    @property
    def size(self) -> int:
        return self._layout.size

    def dim(self, axis: int) -> int:
        return self._layout.dim(axis)

    def numel(self) -> int:
        return self._layout.size

    def is_scalar(self) -> bool:
        return self.rank == 0

    def is_vector(self) -> bool:
        return self.rank == 1

    def is_matrix(self) -> bool:
        return self.rank == 2

    def shares_storage(self, other: "Tensor") -> bool:
        """Whether `other` views the same buffer as this tensor."""
        return self._storage is other._storage

    # ------------------------------------------------------------------
    # element access
    # ------------------------------------------------------------------
    def pointer(self, *index: int) -> int:
        """
        Buffer position of an element.

        Raises
        ------
        ShapeError
            If the index rank differs from the tensor rank.
        IndexOutOfRangeError
            If a component is outside its axis.
        """
        if len(index) != self.rank:
            raise ShapeError(
                f"Index {index} has rank {len(index)}, tensor {self.shape} has rank "
                f"{self.rank}.",
                self.shape,
            )
        for i, d in zip(index, self._layout.dims):
            if not 0 <= i < d:
                raise IndexOutOfRangeError(index, self.shape)
        return self._layout.pointer(index)

    def get(self, *index: int) -> float:
        return self._storage.get(self.pointer(*index))

    def set(self, value: float, *index: int) -> None:
        self._storage.set(self.pointer(*index), value)

    def inc(self, value: float, *index: int) -> None:
        """Add `value` to one element in place."""
        self._storage.inc(self.pointer(*index), value)

    def ptr_get(self, pointer: int) -> float:
        return self._storage.get(pointer)

    def ptr_set(self, pointer: int, value: float) -> None:
        self._storage.set(pointer, value)

    def ptr_inc(self, pointer: int, value: float) -> None:
        self._storage.inc(pointer, value)

    def item(self) -> float:
        """
        Value of a single-element tensor.

        Raises
        ------
        ShapeError
            If the tensor does not hold exactly one element.
        """
        if self.size != 1:
            raise ShapeError(
                f"item() requires a single-element tensor, got shape {self.shape}.",
                self.shape,
            )
        return float(self._view().reshape(-1)[0])

    def to_numpy(self) -> np.ndarray:
        """NumPy copy of the contents with the logical shape."""
        return np.array(self._view(), copy=True)

    def __array__(self, dtype: Any = None, copy: Any = None) -> np.ndarray:
        out = self.to_numpy()
        return out if dtype is None else out.astype(dtype)

    # ------------------------------------------------------------------
    # iteration
    # ------------------------------------------------------------------
    def iterator(self, order: Order = Order.S) -> Iterator[float]:
        """Fresh iterator over element values in traversal `order`."""
        return value_iterator(self._storage.buffer, self._layout, order)

    def ptr_iterator(self, order: Order = Order.S) -> PointerIterator:
        """Fresh iterator over buffer positions in traversal `order`."""
        return PointerIterator(self._layout, order)

    def chunk_iterator(self, order: Order = Order.S) -> ChunkIterator:
        """
        Fresh iterator over the starting pointers of the element runs.

        Each chunk covers ``loop_size`` elements spaced ``loop_step`` apart.
        """
        return ChunkIterator(self._layout, order)

    def __iter__(self) -> Iterator[float]:
        return self.iterator(Order.C)

    def apply_(self, fn: Callable[[int, int], float], order: Order = Order.C) -> "Tensor":
        """
        Overwrite every element with ``fn(i, pointer)``.

        `i` counts visited elements in traversal `order` and `pointer` is the
        buffer position being written.
        """
        buffer = self._storage.buffer
        for i, p in enumerate(pointer_array(self._layout, order).tolist()):
            buffer[p] = fn(i, p)
        return self

    def __repr__(self) -> str:
        return (
            f"Tensor(dtype={self.dtype!r}, shape={list(self.dims)}, "
            f"layout={self._layout!r})"
        )

    def __str__(self) -> str:
        return np.array2string(self._view())

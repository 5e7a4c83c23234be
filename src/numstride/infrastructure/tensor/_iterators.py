"""
Traversal helpers over strided layouts.

Both iterators are built from `StrideLayout.loop_layout`, which lists the axes
fastest first. The innermost (fastest) axis becomes a *loop*: `loop_size`
elements spaced `loop_step` apart. Every combination of the remaining axes
contributes one *chunk* starting pointer.

Each iterator is finite and single-use; tensors create a fresh one on every
call.
"""

from __future__ import annotations

from typing import Iterator

import numpy as np

from ...domain._layout import StrideLayout
from ...domain._order import Order


def pointer_array(layout: StrideLayout, order: Order) -> np.ndarray:
    """
    Buffer positions of all elements of `layout`, in traversal order.

    Parameters
    ----------
    layout : StrideLayout
        Layout to traverse.
    order : Order
        C, F or S (storage-fast) traversal.

    Returns
    -------
    np.ndarray
        1-D int64 array of length ``layout.size``.
    """
    if layout.size == 0:
        return np.empty(0, dtype=np.int64)
    dims, strides = layout.loop_layout(order, compact=True)
    pointers = np.array([layout.offset], dtype=np.int64)
    # slowest axis first, so the fastest axis ends up innermost after ravel
    for d, s in zip(reversed(dims), reversed(strides)):
        pointers = (pointers[:, None] + np.arange(d, dtype=np.int64) * s).reshape(-1)
    return pointers


class ChunkIterator:
    """
    Iterates the starting pointers of the contiguous-step runs of a layout.

    Attributes
    ----------
    loop_size : int
        Elements per chunk.
    loop_step : int
        Buffer distance between consecutive elements of a chunk.
    chunk_count : int
        Number of chunks.
    """

    def __init__(self, layout: StrideLayout, order: Order = Order.S) -> None:
        if layout.size == 0:
            self.loop_size = 0
            self.loop_step = 1
            self._starts = np.empty(0, dtype=np.int64)
        else:
            dims, strides = layout.loop_layout(order, compact=True)
            if dims:
                self.loop_size, self.loop_step = dims[0], strides[0]
                rest = StrideLayout(
                    tuple(reversed(dims[1:])), layout.offset, tuple(reversed(strides[1:]))
                )
                self._starts = pointer_array(rest, Order.C)
            else:
                self.loop_size, self.loop_step = 1, 1
                self._starts = np.array([layout.offset], dtype=np.int64)
        self.chunk_count = int(self._starts.shape[0])
        self._pos = 0

    def is_contiguous(self) -> bool:
        """Whether each chunk occupies adjacent buffer positions."""
        return self.loop_step == 1

    def __iter__(self) -> "ChunkIterator":
        return self

    def __next__(self) -> int:
        if self._pos >= self.chunk_count:
            raise StopIteration
        start = int(self._starts[self._pos])
        self._pos += 1
        return start

    def __len__(self) -> int:
        return self.chunk_count - self._pos


class PointerIterator:
    """
    Iterates buffer pointers of every element in a traversal order.

    `position()` reports how many pointers were produced so far, which is the
    logical index of the element last returned plus one.
    """

    def __init__(self, layout: StrideLayout, order: Order = Order.S) -> None:
        self._pointers = pointer_array(layout, order)
        self._pos = 0

    def position(self) -> int:
        return self._pos

    def __iter__(self) -> "PointerIterator":
        return self

    def __next__(self) -> int:
        if self._pos >= self._pointers.shape[0]:
            raise StopIteration
        p = int(self._pointers[self._pos])
        self._pos += 1
        return p

    def __len__(self) -> int:
        return int(self._pointers.shape[0]) - self._pos


def value_iterator(buffer: np.ndarray, layout: StrideLayout, order: Order) -> Iterator[float]:
    """Yield element values of `layout` over `buffer` in traversal order."""
    for value in buffer[pointer_array(layout, order)]:
        yield float(value)

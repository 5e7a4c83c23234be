"""
Flat element buffer shared by a tensor and all of its views.

`Storage` owns a contiguous 1-D NumPy array. Tensors never own memory
directly; they pair a `StrideLayout` with a `Storage`, so views created by
transposing, narrowing or permuting simply share the same `Storage` instance.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from ...domain._dtype import DType
from ...domain._errors import ShapeError
from ...domain._layout import StrideLayout


class Storage:
    """
    Contiguous 1-D buffer of one element type.

    Parameters
    ----------
    dtype : DType
        Element type of the buffer.
    buffer : np.ndarray
        Backing array. Must be 1-D, C-contiguous and already of the NumPy
        dtype matching `dtype`; use `wrap` to coerce arbitrary input.
    """

    __slots__ = ("_dtype", "_buffer")

    def __init__(self, dtype: DType, buffer: np.ndarray) -> None:
        if buffer.ndim != 1 or not buffer.flags.c_contiguous:
            raise ValueError("Storage buffer must be a contiguous 1-D array.")
        if buffer.dtype != np.dtype(dtype.numpy_name):
            raise TypeError(
                f"Storage buffer dtype {buffer.dtype} does not match {dtype!r}."
            )
        self._dtype = dtype
        self._buffer = buffer

    @classmethod
    def allocate(cls, dtype: DType, size: int) -> "Storage":
        """Zero-filled storage of `size` elements."""
        return cls(dtype, np.zeros(int(size), dtype=dtype.numpy_name))

    @classmethod
    def wrap(cls, dtype: DType, values: Any) -> "Storage":
        """
        Storage over existing data.

        A contiguous 1-D NumPy array of the right dtype is used as is (no
        copy), so later writes through the storage are visible to the caller.
        Anything else is converted into a fresh buffer.
        """
        np_dtype = np.dtype(dtype.numpy_name)
        if (
            isinstance(values, np.ndarray)
            and values.ndim == 1
            and values.dtype == np_dtype
            and values.flags.c_contiguous
            and values.flags.writeable
        ):
            return cls(dtype, values)
        return cls(dtype, np.array(values, dtype=np_dtype).reshape(-1))

    @property
    def dtype(self) -> DType:
        return self._dtype

    @property
    def buffer(self) -> np.ndarray:
        return self._buffer

    @property
    def size(self) -> int:
        return int(self._buffer.shape[0])

    def get(self, pointer: int) -> float:
        return float(self._buffer[pointer])

    def set(self, pointer: int, value: float) -> None:
        self._buffer[pointer] = value

    def inc(self, pointer: int, value: float) -> None:
        self._buffer[pointer] += value

    def fill(self, value: float) -> None:
        self._buffer.fill(value)

    def check_layout(self, layout: StrideLayout) -> None:
        """
        Verify that every position reachable through `layout` is in bounds.

        Raises
        ------
        ShapeError
            If the layout addresses memory outside the buffer.
        """
        if layout.size == 0:
            return
        low = layout.offset
        high = layout.offset
        for d, s in zip(layout.dims, layout.strides):
            if s < 0:
                low += (d - 1) * s
            else:
                high += (d - 1) * s
        if low < 0 or high >= self.size:
            raise ShapeError(
                f"Layout {layout} addresses positions [{low}, {high}] outside a "
                f"buffer of {self.size} elements.",
                layout.shape,
            )

    def view(self, layout: StrideLayout) -> np.ndarray:
        """
        Writable NumPy view of the buffer through `layout`.

        The returned array aliases the storage; writing into it mutates every
        tensor sharing this storage.
        """
        if layout.size == 0:
            return np.empty(layout.dims, dtype=self._buffer.dtype)
        itemsize = self._buffer.itemsize
        return np.ndarray(
            shape=layout.dims,
            dtype=self._buffer.dtype,
            buffer=self._buffer,
            offset=layout.offset * itemsize,
            strides=tuple(s * itemsize for s in layout.strides),
        )

    def __repr__(self) -> str:
        return f"Storage(dtype={self._dtype!r}, size={self.size})"

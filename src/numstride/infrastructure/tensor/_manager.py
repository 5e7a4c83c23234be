"""
Tensor factories.

`TensorManager` is the entry point for creating tensors. It owns the
`KernelExecutor` used by parallel kernels and one `OfType` factory per
supported dtype. Every tensor keeps a reference to the manager that created
it, so results of operations are allocated by the same manager and share its
worker pool.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional, Sequence, Union

import numpy as np

from ...domain._dtype import DType
from ...domain._errors import ShapeError
from ...domain._layout import StrideLayout
from ...domain._order import Order
from ...domain._shape import Shape, ShapeLike
from .._config import get_config, resolve_order
from .._parallel import KernelExecutor
from ._iterators import pointer_array
from ._storage import Storage
from ._tensor import Tensor

logger = logging.getLogger(__name__)

RandomLike = Union[None, int, np.random.Generator]


class OfType:
    """
    Factory of tensors of one dtype.

    Obtained through `TensorManager.of_type`; not meant to be constructed
    directly. Factory methods that take an `order` resolve `None` (and
    `Order.S`) to the configured default order.
    """

    def __init__(self, manager: "TensorManager", dtype: DType) -> None:
        self._manager = manager
        self._dtype = dtype
        self._np_dtype = np.dtype(dtype.numpy_name)

    @property
    def dtype(self) -> DType:
        return self._dtype

    @property
    def manager(self) -> "TensorManager":
        return self._manager

    def _dense(self, shape: Shape, order: Order, storage: Storage) -> Tensor:
        return Tensor(self._manager, StrideLayout.of_dense(shape, 0, order), storage)

    # ------------------------------------------------------------------
    # constant fills
    # ------------------------------------------------------------------
    def zeros(self, shape: ShapeLike, order: Optional[Order] = None) -> Tensor:
        shape = Shape.of(shape)
        return self._dense(shape, resolve_order(order), Storage.allocate(self._dtype, shape.size))

    def full(self, shape: ShapeLike, value: float, order: Optional[Order] = None) -> Tensor:
        """Tensor of `shape` with every element set to `value`."""
        out = self.zeros(shape, order)
        out.storage.fill(value)
        return out

    def scalar(self, value: float) -> Tensor:
        """Rank-0 tensor holding `value`."""
        return self.full(Shape.scalar(), value)

    def eye(self, n: int, order: Optional[Order] = None) -> Tensor:
        """Identity matrix of size ``n x n``."""
        out = self.zeros((n, n), order)
        np.fill_diagonal(out._view(), 1)
        return out

    # ------------------------------------------------------------------
    # generated fills
    # ------------------------------------------------------------------
    def seq(self, shape: ShapeLike, order: Optional[Order] = None) -> Tensor:
        """
        Tensor whose elements count ``0, 1, 2, ...`` in C order.

        The value of an element is its C-order position regardless of the
        storage `order`, so ``seq(s, C)`` and ``seq(s, F)`` compare equal and
        differ only in memory layout.
        """
        out = self.zeros(shape, order)
        out.storage.buffer[pointer_array(out.layout, Order.C)] = np.arange(
            out.size, dtype=self._np_dtype
        )
        return out

    def random(
        self, shape: ShapeLike, random: RandomLike = None, order: Optional[Order] = None
    ) -> Tensor:
        """
        Uniform ``[0, 1)`` values.

        Parameters
        ----------
        shape : ShapeLike
            Result shape.
        random : numpy.random.Generator | int | None, optional
            Source of randomness: a generator (advanced in place), a seed, or
            `None` for fresh OS entropy.
        order : Order, optional
            Storage order of the result. Values are drawn in this traversal
            order, so the same seed with a different order places the same
            sequence along a different path.
        """
        order = resolve_order(order)
        rng = random if isinstance(random, np.random.Generator) else np.random.default_rng(random)
        out = self.zeros(shape, order)
        values = rng.random(out.size)
        out.storage.buffer[pointer_array(out.layout, order)] = values
        return out

    # ------------------------------------------------------------------
    # wrapping existing data
    # ------------------------------------------------------------------
    def stride(
        self,
        shape: ShapeLike,
        offset: int,
        strides: Sequence[int],
        buffer: Any,
    ) -> Tensor:
        """
        Tensor over an explicit layout of a flat buffer.

        A contiguous 1-D NumPy array of the matching dtype is wrapped without
        copying, so the tensor and the array alias each other. Any other
        buffer is copied first.

        Raises
        ------
        ShapeError
            If the layout addresses positions outside the buffer.
        """
        layout = StrideLayout.of(shape, offset, strides)
        return Tensor(self._manager, layout, Storage.wrap(self._dtype, buffer))

    def wrap(self, buffer: Any, shape: Optional[ShapeLike] = None, order: Optional[Order] = None) -> Tensor:
        """Dense tensor over a flat buffer, without copying when possible."""
        storage = Storage.wrap(self._dtype, buffer)
        shape = Shape.of(storage.size) if shape is None else Shape.of(shape)
        if shape.size != storage.size:
            raise ShapeError(
                f"Buffer of {storage.size} elements cannot be viewed as {shape}.", shape
            )
        return self._dense(shape, resolve_order(order), storage)

    def from_array(self, values: Any, order: Optional[Order] = None) -> Tensor:
        """
        Dense copy of array-like data (nested lists, NumPy arrays, scalars).
        """
        array = np.asarray(values, dtype=self._np_dtype)
        out = self.zeros(array.shape, order)
        np.copyto(out._view(), array)
        return out

    def cast(self, tensor: Tensor, order: Optional[Order] = None) -> Tensor:
        """Dense copy of `tensor` converted to this dtype."""
        out = self.zeros(tensor.shape, order)
        np.copyto(out._view(), tensor._view(), casting="unsafe")
        return out

    # ------------------------------------------------------------------
    # joining
    # ------------------------------------------------------------------
    def concat(self, axis: int, tensors: Sequence[Tensor], order: Optional[Order] = None) -> Tensor:
        """
        Join tensors along an existing axis (copy).

        Raises
        ------
        ShapeError
            If the list is empty, ranks differ, or any dimension other than
            `axis` differs.
        """
        tensors = list(tensors)
        if not tensors:
            raise ShapeError("concat requires at least one tensor.")
        first = tensors[0]
        axis = first.shape.axis(axis)
        for t in tensors[1:]:
            if t.rank != first.rank or any(
                a != b for i, (a, b) in enumerate(zip(first.dims, t.dims)) if i != axis
            ):
                raise ShapeError(
                    f"Tensors are not valid for concatenation along axis {axis}: "
                    f"{[tuple(x.dims) for x in tensors]}.",
                    *(x.shape for x in tensors),
                )
        dims = list(first.dims)
        dims[axis] = sum(t.dim(axis) for t in tensors)
        out = self.zeros(dims, order)
        start = 0
        for t in tensors:
            end = start + t.dim(axis)
            out.narrow(axis, start, end).assign_(t)
            start = end
        return out

    def stack(self, axis: int, tensors: Sequence[Tensor], order: Optional[Order] = None) -> Tensor:
        """
        Join same-shaped tensors along a new axis inserted at `axis` (copy).

        Raises
        ------
        ShapeError
            If the list is empty, the shapes differ, or `axis` is outside
            ``[0, rank]``.
        """
        tensors = list(tensors)
        if not tensors:
            raise ShapeError("stack requires at least one tensor.")
        first = tensors[0]
        for t in tensors[1:]:
            if t.shape != first.shape:
                raise ShapeError(
                    "Tensors are not valid for stack, they have to have the same "
                    f"dimensions: {[tuple(x.dims) for x in tensors]}.",
                    *(x.shape for x in tensors),
                )
        if not 0 <= axis <= first.rank:
            raise ShapeError(
                f"Stack axis {axis} is out of range [0, {first.rank}].", first.shape
            )
        dims = list(first.dims)
        dims.insert(axis, len(tensors))
        out = self.zeros(dims, order)
        for i, t in enumerate(tensors):
            out.narrow(axis, i, i + 1).squeeze(axis).assign_(t)
        return out

    def __repr__(self) -> str:
        return f"OfType({self._dtype!r})"


class TensorManager:
    """
    Owner of tensor factories and the kernel worker pool.

    Parameters
    ----------
    workers : int, optional
        Worker threads for parallel kernels. Defaults to the configured value.
    parallel_threshold : int, optional
        Minimum output size for splitting a kernel. Defaults to the configured
        value.

    Examples
    --------
    >>> with TensorManager(workers=4) as tm:
    ...     a = tm.of_double().random((512, 512), 42)
    ...     b = a.mm(a.t())
    """

    def __init__(self, workers: Optional[int] = None, parallel_threshold: Optional[int] = None) -> None:
        config = get_config()
        self._executor = KernelExecutor(
            config.workers if workers is None else workers,
            config.parallel_threshold if parallel_threshold is None else parallel_threshold,
        )
        self._of_types = {dt: OfType(self, dt) for dt in DType}
        logger.debug("Created tensor manager with %r", self._executor)

    @property
    def executor(self) -> KernelExecutor:
        return self._executor

    @property
    def workers(self) -> int:
        return self._executor.workers

    def of_type(self, dtype: Any) -> OfType:
        """Factory for `dtype` (a `DType` or any name `DType.parse` accepts)."""
        return self._of_types[DType.parse(dtype)]

    def of_double(self) -> OfType:
        return self._of_types[DType.DOUBLE]

    def of_float(self) -> OfType:
        return self._of_types[DType.FLOAT]

    # dtype-generic joins use the dtype of the first tensor
    def concat(self, axis: int, tensors: Sequence[Tensor], order: Optional[Order] = None) -> Tensor:
        tensors = list(tensors)
        if not tensors:
            raise ShapeError("concat requires at least one tensor.")
        return self.of_type(tensors[0].dtype).concat(axis, tensors, order)

    def stack(self, axis: int, tensors: Sequence[Tensor], order: Optional[Order] = None) -> Tensor:
        tensors = list(tensors)
        if not tensors:
            raise ShapeError("stack requires at least one tensor.")
        return self.of_type(tensors[0].dtype).stack(axis, tensors, order)

    def close(self) -> None:
        """Shut down the worker pool. Tensors stay usable; the pool restarts lazily."""
        self._executor.shutdown()

    def __enter__(self) -> "TensorManager":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"TensorManager(workers={self.workers})"


_default_lock = threading.Lock()
_default_manager: Optional[TensorManager] = None


def default_manager() -> TensorManager:
    """Process-wide manager built from the active configuration on first use."""
    global _default_manager
    with _default_lock:
        if _default_manager is None:
            _default_manager = TensorManager()
        return _default_manager

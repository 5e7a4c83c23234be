"""
Tensor interface definitions.

This module defines the domain-level interface for strided tensors using
structural typing. Domain code (function interfaces, utilities) types against
`ITensor` so it never has to import the NumPy-backed implementation.
"""

from __future__ import annotations

from typing import Any, Iterator, Optional, Protocol, Union, runtime_checkable

from ._dtype import DType
from ._layout import StrideLayout
from ._order import Order
from ._shape import Shape

Number = Union[int, float]


@runtime_checkable
class ITensor(Protocol):
    """
    Strided tensor interface.

    An `ITensor` is a view (layout) over a flat buffer of one element type.
    Several tensors may alias the same buffer; see `shares_storage`.
    """

    # ---------------------------------------------------------------------
    # Core identity
    # ---------------------------------------------------------------------
    @property
    def dtype(self) -> DType: ...

    @property
    def layout(self) -> StrideLayout: ...

    @property
    def shape(self) -> Shape: ...

    @property
    def rank(self) -> int: ...

    @property
    def size(self) -> int: ...

    def dim(self, axis: int) -> int: ...

    def shares_storage(self, other: "ITensor") -> bool:
        """Whether both tensors view the same underlying buffer."""
        ...

    # ---------------------------------------------------------------------
    # Element access
    # ---------------------------------------------------------------------
    def get(self, *index: int) -> float:
        """
        Read one element.

        Raises
        ------
        ShapeError
            If the index rank does not match or an index is out of range.
        """
        ...

    def set(self, value: Number, *index: int) -> None: ...

    def item(self) -> float: ...

    def to_numpy(self) -> Any:
        """Return a NumPy copy of the tensor contents."""
        ...

    def iterator(self, order: Order = Order.S) -> Iterator[float]: ...

    # ---------------------------------------------------------------------
    # Copies and views
    # ---------------------------------------------------------------------
    def copy(self, order: Order = Order.C) -> "ITensor": ...

    def reshape(self, shape: Any, order: Optional[Order] = None) -> "ITensor": ...

    def t(self) -> "ITensor": ...

    def narrow(
        self, axis: int, start: int, end: int, keepdim: bool = True
    ) -> "ITensor": ...

    # ---------------------------------------------------------------------
    # Arithmetic
    # ---------------------------------------------------------------------
    def add(self, other: Union["ITensor", Number]) -> "ITensor": ...

    def sub(self, other: Union["ITensor", Number]) -> "ITensor": ...

    def mul(self, other: Union["ITensor", Number]) -> "ITensor": ...

    def div(self, other: Union["ITensor", Number]) -> "ITensor": ...

    def add_(self, other: Union["ITensor", Number]) -> "ITensor": ...

    def sum(self, axis: Optional[int] = None) -> Union[float, "ITensor"]: ...

    def mm(self, other: "ITensor", order: Order = Order.C) -> "ITensor": ...

    def deep_equals(self, other: "ITensor", tol: Optional[float] = None) -> bool: ...

"""
Traversal and storage orders.

`Order.C` is row-major (last axis varies fastest), `Order.F` is column-major
(first axis varies fastest) and `Order.S` means "whatever order the existing
storage is fastest to traverse in". Only C and F describe dense layouts;
`S` is resolved to one of them when a new buffer is allocated.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union


class Order(Enum):
    """Element traversal / storage order."""

    C = "C"
    F = "F"
    S = "S"

    @staticmethod
    def parse(value: Union["Order", str]) -> "Order":
        """
        Convert a string such as ``"C"`` or ``"f"`` into an `Order`.

        Raises
        ------
        ValueError
            If the value does not name an order.
        """
        if isinstance(value, Order):
            return value
        try:
            return Order(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown order: {value!r}") from None

    @staticmethod
    def auto_fc(order: Optional["Order"], default: "Order" = None) -> "Order":
        """
        Resolve an order to a dense one (C or F).

        Parameters
        ----------
        order : Optional[Order]
            Requested order. `None` and `Order.S` resolve to `default`.
        default : Order, optional
            Dense order used for `None` / `S`. Defaults to `Order.C`.

        Returns
        -------
        Order
            Either `Order.C` or `Order.F`.
        """
        if default is None or default is Order.S:
            default = Order.C
        if order is None or order is Order.S:
            return default
        return order

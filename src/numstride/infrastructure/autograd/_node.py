"""
Autograd graph nodes.

A `Node` wraps a `Tensor` value and optionally carries a gradient of the same
shape plus the backward edges recorded when it was produced by a
differentiable operation. Leaf nodes are built with `variable` (tracked) or
`constant` (never receives a gradient).

Gradients accumulate: `add_grad` sums into the stored gradient and the engine
only ever adds contributions. Gradients persist across backward passes until
`zero_grad` is called.
"""

from __future__ import annotations

import itertools
import numbers
from typing import List, Optional, Union

from ...domain._errors import ShapeError
from ...domain._order import Order
from ...domain._shape import Shape
from ..tensor import Tensor
from . import _ops as _fn
from ._context import BackEdge

_ids = itertools.count()


class Node:
    """
    Graph node holding a value, an optional gradient and backward edges.

    Parameters
    ----------
    value : Tensor
        The forward value.
    name : str, optional
        Display name used in error messages and serialized records.
        Defaults to ``"node<N>"`` with a process-unique counter.
    requires_grad : bool, optional
        Whether the backward pass must compute a gradient for this node.

    Notes
    -----
    Operations always record edges to their operands. Whether a gradient is
    actually computed for an operand is decided by the engine from the
    `requires_grad` flags of the graph's leaves.
    """

    __slots__ = ("_name", "_value", "_grad", "_requires_grad", "_back_edges")

    def __init__(
        self, value: Tensor, name: Optional[str] = None, requires_grad: bool = False
    ) -> None:
        if not isinstance(value, Tensor):
            raise TypeError(f"Node value must be a Tensor, got {type(value).__name__}.")
        self._name = name if name is not None else f"node{next(_ids)}"
        self._value = value
        self._grad: Optional[Tensor] = None
        self._requires_grad = bool(requires_grad)
        self._back_edges: List[BackEdge] = []

    # ------------------------------------------------------------------
    # state
    # ------------------------------------------------------------------
    @property
    def name(self) -> str:
        return self._name

    @property
    def value(self) -> Tensor:
        return self._value

    @value.setter
    def value(self, value: Tensor) -> None:
        if not isinstance(value, Tensor):
            raise TypeError(f"Node value must be a Tensor, got {type(value).__name__}.")
        self._value = value

    @property
    def grad(self) -> Optional[Tensor]:
        """The accumulated gradient, or None when none was computed."""
        return self._grad

    def set_grad(self, grad: Optional[Tensor]) -> None:
        """
        Replace the gradient.

        Raises
        ------
        ShapeError
            If `grad` does not have the shape of the value.
        """
        if grad is not None and grad.shape != self._value.shape:
            raise ShapeError(
                f"Gradient of node {self._name} must have shape "
                f"{self._value.shape}, got {grad.shape}.",
                self._value.shape,
                grad.shape,
            )
        self._grad = grad

    def add_grad(self, grad: Tensor) -> None:
        """
        Accumulate `grad` into the stored gradient.

        The first contribution is copied, so later accumulation never writes
        into a tensor owned by somebody else.
        """
        if grad.shape != self._value.shape:
            raise ShapeError(
                f"Gradient contribution for node {self._name} has shape "
                f"{grad.shape}, expected {self._value.shape}.",
                self._value.shape,
                grad.shape,
            )
        if self._grad is None:
            self._grad = grad.copy()
        else:
            self._grad.add_(grad)

    def zero_grad(self) -> None:
        self._grad = None

    def seed_grad(self, fill: float = 1.0) -> "Node":
        """Set the gradient to a tensor of the value's shape filled with `fill`."""
        self._grad = self._value._of().full(self._value.shape, fill)
        return self

    @property
    def requires_grad(self) -> bool:
        return self._requires_grad

    @requires_grad.setter
    def requires_grad(self, flag: bool) -> None:
        self._requires_grad = bool(flag)

    @property
    def back_edges(self) -> List[BackEdge]:
        return self._back_edges

    @property
    def shape(self) -> Shape:
        return self._value.shape

    @property
    def rank(self) -> int:
        return self._value.rank

    def dim(self, axis: int) -> int:
        return self._value.dim(axis)

    @property
    def size(self) -> int:
        return self._value.size

    def backward(self, retain_graph: bool = False) -> None:
        """
        Run a backward pass rooted at this node.

        The node must already carry a seed gradient (see `seed_grad`).
        """
        from ._engine import backward

        backward(self, retain_graph=retain_graph)

    # ------------------------------------------------------------------
    # differentiable operations
    # ------------------------------------------------------------------
    def _lift(self, other: Union["Node", Tensor, float]) -> "Node":
        if isinstance(other, Node):
            return other
        if isinstance(other, Tensor):
            return constant(other)
        if isinstance(other, numbers.Real):
            return constant(self._value._of().scalar(float(other)))
        raise TypeError(f"Unsupported operand of type {type(other).__name__}.")

    def identity(self) -> "Node":
        return _fn.apply(_fn.Identity, (self,))

    def add(self, other) -> "Node":
        return _fn.apply(_fn.Add, (self, self._lift(other)))

    def sub(self, other) -> "Node":
        return _fn.apply(_fn.Sub, (self, self._lift(other)))

    def mul(self, other) -> "Node":
        return _fn.apply(_fn.Mul, (self, self._lift(other)))

    def div(self, other) -> "Node":
        return _fn.apply(_fn.Div, (self, self._lift(other)))

    def neg(self) -> "Node":
        return _fn.apply(_fn.Neg, (self,))

    def exp(self) -> "Node":
        return _fn.apply(_fn.Exp, (self,))

    def log(self, eps: float = 0.0) -> "Node":
        """``log(x + eps)``."""
        return _fn.apply(_fn.Log, (self,), float(eps))

    def sqr(self) -> "Node":
        return _fn.apply(_fn.Sqr, (self,))

    def sqrt(self) -> "Node":
        return _fn.apply(_fn.Sqrt, (self,))

    def pow(self, p: float) -> "Node":
        return _fn.apply(_fn.Pow, (self,), float(p))

    def sin(self) -> "Node":
        return _fn.apply(_fn.Sin, (self,))

    def cos(self) -> "Node":
        return _fn.apply(_fn.Cos, (self,))

    def tanh(self) -> "Node":
        return _fn.apply(_fn.Tanh, (self,))

    def sigmoid(self) -> "Node":
        return _fn.apply(_fn.Sigmoid, (self,))

    def maximum(self, threshold: float) -> "Node":
        """Elementwise ``max(x, threshold)``."""
        return _fn.apply(_fn.Maximum, (self,), float(threshold))

    def relu(self) -> "Node":
        return self.maximum(0.0)

    def softmax(self, axis: Optional[int] = None) -> "Node":
        return _fn.apply(_fn.Softmax, (self,), axis)

    def logsoftmax(self, axis: Optional[int] = None) -> "Node":
        return _fn.apply(_fn.LogSoftmax, (self,), axis)

    def sum(self, axis: Optional[int] = None) -> "Node":
        """Sum of all elements (rank-0 node) or along `axis`."""
        return _fn.apply(_fn.Sum, (self,), axis)

    def mean(self, axis: Optional[int] = None) -> "Node":
        return _fn.apply(_fn.Mean, (self,), axis)

    def std(self, axis: Optional[int] = None, ddof: int = 0, eps: float = 1e-3) -> "Node":
        """
        Standard deviation smoothed by `eps` under the square root.

        Raises
        ------
        ShapeError
            If the reduced axes hold no more than `ddof` elements.
        """
        return _fn.apply(_fn.Std, (self,), axis, int(ddof), float(eps))

    def standardize(
        self, axis: Optional[int] = None, ddof: int = 0, eps: float = 1e-3
    ) -> "Node":
        """``(x - mean) / std`` over all elements or along `axis`."""
        return _fn.apply(_fn.Standardize, (self,), axis, int(ddof), float(eps))

    def vdot(self, other: "Node") -> "Node":
        return _fn.apply(_fn.Vdot, (self, self._lift(other)))

    def mv(self, other: "Node") -> "Node":
        return _fn.apply(_fn.Mv, (self, self._lift(other)))

    def mm(self, other: "Node") -> "Node":
        return _fn.apply(_fn.Mm, (self, self._lift(other)))

    def bvtm(self, other: "Node") -> "Node":
        """Batched ``v^T M`` for ``(b, k)`` and ``(b, k, n)`` operands."""
        return _fn.apply(_fn.Bvtm, (self, self._lift(other)))

    def reshape(self, shape, order: Order = Order.C) -> "Node":
        return _fn.apply(_fn.Reshape, (self,), shape, order)

    def narrow(self, axis: int, start: int, end: int) -> "Node":
        return _fn.apply(_fn.Narrow, (self,), axis, start, end)

    def t(self) -> "Node":
        return _fn.apply(_fn.Transpose, (self,))

    def split(self, axis: int, *starts: int) -> List["Node"]:
        """
        Split along `axis` into consecutive ranges beginning at `starts`.

        Each part is a differentiable `narrow` of this node.
        """
        dim = self._value.dim(axis)
        bounds = list(starts) or [0]
        if any(b < 0 or b > dim for b in bounds) or bounds != sorted(bounds):
            raise ShapeError(
                f"split: starts {tuple(bounds)} must be non-decreasing within "
                f"[0, {dim}].",
                self._value.shape,
            )
        ends = bounds[1:] + [dim]
        return [self.narrow(axis, s, e) for s, e in zip(bounds, ends)]

    # ------------------------------------------------------------------
    # operator protocol
    # ------------------------------------------------------------------
    def __add__(self, other) -> "Node":
        return self.add(other)

    def __radd__(self, other) -> "Node":
        return self._lift(other).add(self)

    def __sub__(self, other) -> "Node":
        return self.sub(other)

    def __rsub__(self, other) -> "Node":
        return self._lift(other).sub(self)

    def __mul__(self, other) -> "Node":
        return self.mul(other)

    def __rmul__(self, other) -> "Node":
        return self._lift(other).mul(self)

    def __truediv__(self, other) -> "Node":
        return self.div(other)

    def __rtruediv__(self, other) -> "Node":
        return self._lift(other).div(self)

    def __neg__(self) -> "Node":
        return self.neg()

    def __pow__(self, p: float) -> "Node":
        return self.pow(p)

    def __matmul__(self, other: "Node") -> "Node":
        if self.rank == 1 and other.rank == 1:
            return self.vdot(other)
        if self.rank == 2 and other.rank == 1:
            return self.mv(other)
        return self.mm(other)

    def __repr__(self) -> str:
        grad = "None" if self._grad is None else "set"
        return (
            f"Node(name={self._name!r}, shape={self.shape}, "
            f"requires_grad={self._requires_grad}, grad={grad}, "
            f"edges={len(self._back_edges)})"
        )


def variable(value: Tensor, name: Optional[str] = None, requires_grad: bool = True) -> Node:
    """Leaf node whose gradient is tracked by default."""
    return Node(value, name=name, requires_grad=requires_grad)


def constant(value: Tensor, name: Optional[str] = None) -> Node:
    """Leaf node that never requires a gradient."""
    return Node(value, name=name, requires_grad=False)


"""Per-operation records shared by the backward edges of a node."""

from typing import TYPE_CHECKING, Any, Sequence, Type
from dataclasses import dataclass, field

from ...domain._function import Function
from ..tensor import Tensor

if TYPE_CHECKING:
    from ._node import Node


@dataclass
class Context:
    """
    Per-invocation record of a differentiable operation.

    A `Context` is created for every application of a `Function` and is
    shared by all backward edges of the produced node.

    Attributes
    ----------
    parents : Sequence[Node]
        The operand nodes, in the order given to `Function.forward`.
    saved_tensors : list[Tensor]
        Values captured during the forward pass (operands, outputs, cached
        intermediates) that the gradient formula needs.
    saved_meta : dict[str, Any]
        Non-tensor metadata required for backward (shapes, axes, ranges).
    """

    parents: Sequence["Node"]
    saved_tensors: list[Tensor] = field(default_factory=list)
    saved_meta: dict[str, Any] = field(default_factory=dict)

    def save_for_backward(self, *tensors: Tensor) -> None:
        """
        Save tensors for use during the backward computation.
        """
        self.saved_tensors.extend(tensors)


@dataclass(frozen=True, eq=False)
class BackEdge:
    """
    Backward edge from a produced node to one of its operands.

    The edge is a tagged variant: `fn` is the `Function` subclass whose
    `backward` computes the gradient contribution, `ctx` holds the data it
    needs, and `slot` is the operand position.

    Attributes
    ----------
    target : Node
        The operand node receiving the gradient contribution.
    fn : Type[Function]
        Gradient formula tag.
    ctx : Context
        Forward-pass record shared by the sibling edges.
    slot : int
        Operand position of `target`.
    """

    target: "Node"
    fn: Type[Function]
    ctx: Context
    slot: int

    def contribution(self, grad_out: Tensor) -> Tensor:
        """Gradient flowing to `target` given the producer's gradient."""
        return self.fn.backward(self.ctx, grad_out, self.slot)

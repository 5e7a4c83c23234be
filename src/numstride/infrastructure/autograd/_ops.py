"""
Application of differentiable functions to nodes.

`apply` runs a `Function` forward on the operand values and records one
`BackEdge` per operand on the produced node.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence, Type

from ...domain._function import Function
from ._context import BackEdge, Context
from ._functions import (
    Add,
    Bvtm,
    Cos,
    Div,
    Exp,
    Identity,
    Log,
    LogSoftmax,
    Maximum,
    Mean,
    Mm,
    Mul,
    Mv,
    Narrow,
    Neg,
    Pow,
    Reshape,
    Sigmoid,
    Sin,
    Softmax,
    Sqr,
    Sqrt,
    Standardize,
    Std,
    Sub,
    Sum,
    Tanh,
    Transpose,
    Vdot,
)

if TYPE_CHECKING:
    from ._node import Node


def apply(fn: Type[Function], nodes: Sequence["Node"], *params) -> "Node":
    """
    Apply `fn` to `nodes` and return the produced node.

    Parameters
    ----------
    fn : Type[Function]
        The differentiable operation.
    nodes : Sequence[Node]
        Operand nodes; their values are passed to `fn.forward` in order.
    *params
        Non-differentiable parameters appended after the operand values.

    Returns
    -------
    Node
        A non-leaf node with one backward edge per operand. Its
        `requires_grad` flag is False; the engine derives whether it needs a
        gradient from the leaves.
    """
    from ._node import Node, _ids

    ctx = Context(parents=tuple(nodes))
    value = fn.forward(ctx, *(n.value for n in nodes), *params)
    out = Node(value, name=f"{fn.__name__.lower()}{next(_ids)}")
    out.back_edges.extend(
        BackEdge(target=n, fn=fn, ctx=ctx, slot=slot) for slot, n in enumerate(nodes)
    )
    return out


__all__ = [
    "apply",
    Add.__name__,
    Bvtm.__name__,
    Cos.__name__,
    Div.__name__,
    Exp.__name__,
    Identity.__name__,
    Log.__name__,
    LogSoftmax.__name__,
    Maximum.__name__,
    Mean.__name__,
    Mm.__name__,
    Mul.__name__,
    Mv.__name__,
    Narrow.__name__,
    Neg.__name__,
    Pow.__name__,
    Reshape.__name__,
    Sigmoid.__name__,
    Sin.__name__,
    Softmax.__name__,
    Sqr.__name__,
    Sqrt.__name__,
    Standardize.__name__,
    Std.__name__,
    Sub.__name__,
    Sum.__name__,
    Tanh.__name__,
    Transpose.__name__,
    Vdot.__name__,
]

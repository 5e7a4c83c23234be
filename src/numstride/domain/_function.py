"""
Autograd function interface definitions.

A `Function` is a stateless differentiable operation. Its `forward` computes
an output value from input values and records whatever the gradient formula
needs on a per-invocation context; its `backward` maps the gradient of the
output to the gradient contribution for ONE input, selected by slot.

The autograd engine stores the `Function` subclass itself as the tag of every
backward edge, so the set of gradient formulas is closed and discoverable.
"""

from abc import ABC, abstractmethod
from typing import Any, Union

from ._tensor import ITensor


class Function(ABC):
    """
    Abstract base class for differentiable operations.

    Subclasses implement both `forward` and `backward` as static methods. The
    `ctx` argument is created per call, so one `Function` class can appear in
    any number of graphs at once.
    """

    @staticmethod
    @abstractmethod
    def forward(ctx, *inputs: Union[ITensor, Any]) -> ITensor:
        """
        Perform the forward computation.

        Parameters
        ----------
        ctx : Context
            Mutable context used to store tensors and metadata required by
            `backward`.
        *inputs : Tensor | Any
            Operand values, followed by any non-tensor parameters.

        Returns
        -------
        Tensor
            The output value.
        """
        ...

    @staticmethod
    @abstractmethod
    def backward(ctx, grad_out: ITensor, slot: int) -> ITensor:
        """
        Gradient contribution of the output gradient to one input.

        Parameters
        ----------
        ctx : Context
            The context populated during `forward`.
        grad_out : Tensor
            Gradient of the final result with respect to this operation's
            output.
        slot : int
            Position of the input (in the `forward` operand list) whose
            contribution is requested.

        Returns
        -------
        Tensor
            A tensor with the shape of that input. It is added to the input's
            gradient by the engine.
        """
        ...

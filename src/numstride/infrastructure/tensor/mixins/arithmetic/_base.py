"""
Binary arithmetic mixin: add, sub, mul, div, fused multiply-add and the
Python operator protocol.

Shape validation happens before any element is written, so a failing
in-place call leaves the tensor untouched.
"""

from __future__ import annotations

import numbers
from abc import ABC
from typing import Callable, Union

import numpy as np

from .....domain._errors import ShapeError
from .....domain._tensor import ITensor

Operand = Union["ITensor", float, int]


class TensorMixinArithmetic(ABC):
    """
    Mixin providing elementwise binary operations.

    Each operation comes as ``op(other)`` (new dense tensor) and ``op_(other)``
    (in place, returns ``self``). An operand overlapping ``self`` is copied
    before the row-parallel update, so ``t.add_(t.t())`` on a square matrix
    gives the same result for any worker count.
    """

    def _operand(self, other: Operand, op: str):
        """
        Normalize the right-hand operand into a NumPy view or a scalar.

        Raises
        ------
        ShapeError
            If a tensor operand has a different, non-scalar shape.
        TypeError
            If the operand is neither a tensor nor a real number.
        """
        if isinstance(other, TensorMixinArithmetic):
            if other.rank == 0:
                return other.item()
            if other.shape != self.shape:
                raise ShapeError(
                    f"{op}: incompatible shapes {self.shape} and {other.shape}.",
                    self.shape,
                    other.shape,
                )
            return other._view()
        if isinstance(other, numbers.Real):
            return other
        raise TypeError(
            f"{op}: unsupported operand of type {type(other).__name__}."
        )

    def _apply_binary_(self, ufunc: Callable, other: Operand, op: str) -> "ITensor":
        operand = self._operand(other, op)
        view = self._view()
        if view.ndim == 0 or view.size == 0:
            ufunc(view, operand, out=view)
            return self
        is_array = isinstance(operand, np.ndarray)
        if is_array and np.may_share_memory(view, operand):
            # row chunks would read values already overwritten by other chunks
            operand = operand.copy()

        def run(start: int, end: int) -> None:
            part = view[start:end]
            ufunc(part, operand[start:end] if is_array else operand, out=part)

        self.manager.executor.run_rows(view.shape[0], view.size, run)
        return self

    def add_(self, other: Operand) -> "ITensor":
        return self._apply_binary_(np.add, other, "add")

    def add(self, other: Operand) -> "ITensor":
        """Elementwise sum with a tensor of the same shape or a scalar."""
        return self.copy().add_(other)

    def sub_(self, other: Operand) -> "ITensor":
        return self._apply_binary_(np.subtract, other, "sub")

    def sub(self, other: Operand) -> "ITensor":
        return self.copy().sub_(other)

    def mul_(self, other: Operand) -> "ITensor":
        return self._apply_binary_(np.multiply, other, "mul")

    def mul(self, other: Operand) -> "ITensor":
        return self.copy().mul_(other)

    def div_(self, other: Operand) -> "ITensor":
        return self._apply_binary_(np.true_divide, other, "div")

    def div(self, other: Operand) -> "ITensor":
        """
        Elementwise true division.

        Division by zero yields infinities or NaN, never an exception.
        """
        return self.copy().div_(other)

    def fma_(self, a: float, other: Operand) -> "ITensor":
        """
        Fused multiply-add in place: ``self += a * other``.

        Parameters
        ----------
        a : float
            Scale applied to `other`.
        other : ITensor | float
            Tensor of the same shape, or a scalar.
        """
        operand = self._operand(other, "fma") * a
        view = self._view()
        np.add(view, operand, out=view)
        return self

    # ------------------------------------------------------------------
    # operator protocol
    # ------------------------------------------------------------------
    def __add__(self, other: Operand) -> "ITensor":
        return self.add(other)

    def __radd__(self, other: Operand) -> "ITensor":
        return self.add(other)

    def __iadd__(self, other: Operand) -> "ITensor":
        return self.add_(other)

    def __sub__(self, other: Operand) -> "ITensor":
        return self.sub(other)

    def __rsub__(self, other: Operand) -> "ITensor":
        return self.neg().add_(other)

    def __isub__(self, other: Operand) -> "ITensor":
        return self.sub_(other)

    def __mul__(self, other: Operand) -> "ITensor":
        return self.mul(other)

    def __rmul__(self, other: Operand) -> "ITensor":
        return self.mul(other)

    def __imul__(self, other: Operand) -> "ITensor":
        return self.mul_(other)

    def __truediv__(self, other: Operand) -> "ITensor":
        return self.div(other)

    def __rtruediv__(self, other: Operand) -> "ITensor":
        out = self._of().full(self.shape, other)
        return out.div_(self)

    def __itruediv__(self, other: Operand) -> "ITensor":
        return self.div_(other)

    def __neg__(self) -> "ITensor":
        return self.neg()

    def __matmul__(self, other: "ITensor") -> "ITensor":
        return self.matmul(other)

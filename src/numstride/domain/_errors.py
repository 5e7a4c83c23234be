"""
Error taxonomy for numstride.

This module defines the exceptions raised by the tensor engine, the
decomposition engine and the autograd engine. Every error is raised
synchronously at the point of violation and carries enough context
(operand shapes, the failing diagnostic flag, the offending node) to
diagnose the problem without re-running with instrumentation.

Notes
-----
- Shape-related errors derive from `ValueError` so that generic callers
  catching `ValueError` keep working.
- Decomposition errors derive from `ArithmeticError`; they are only raised by
  operations that depend on a non-degenerate factorization (`solve`,
  `inverse`), never by the factorization step itself.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


class ShapeError(ValueError):
    """
    Raised when operand shapes, ranks or axes are incompatible.

    Covers rank mismatch, incompatible elementwise or matmul shapes, reshape
    size mismatch and axis indices outside the valid range.

    Attributes
    ----------
    shapes : tuple
        The shapes (or dims tuples) involved in the failed operation.
    """

    def __init__(self, message: str, *shapes: Any) -> None:
        """
        Initialize the ShapeError.

        Parameters
        ----------
        message : str
            Human-readable description of the violation.
        *shapes : Any
            Shapes of the operands involved, kept for diagnostics.
        """
        super().__init__(message)
        self.shapes = tuple(shapes)


class IndexOutOfRangeError(ShapeError, IndexError):
    """
    Raised when a multi-index does not address an element of a tensor.

    Attributes
    ----------
    index : tuple[int, ...]
        The offending multi-index.
    """

    def __init__(self, index: Sequence[int], shape: Any) -> None:
        super().__init__(
            f"Index {tuple(index)} is out of range for shape {shape}.", shape
        )
        self.index = tuple(index)


class DecompositionError(ArithmeticError):
    """
    Base class for errors raised when a degenerate factorization is used.

    Attributes
    ----------
    shape : Any
        Shape of the factorized matrix.
    """

    def __init__(self, message: str, shape: Any) -> None:
        super().__init__(message)
        self.shape = shape


class SingularMatrixError(DecompositionError):
    """
    Raised by LU `solve` / `inverse` when a zero pivot was found.
    """

    def __init__(self, shape: Any, message: Optional[str] = None) -> None:
        super().__init__(
            message or f"Matrix of shape {shape} is singular (zero pivot in U).",
            shape,
        )


class NotPositiveDefiniteError(DecompositionError):
    """
    Raised by Cholesky `solve` / `inverse` when the SPD flag is false.
    """

    def __init__(self, shape: Any, message: Optional[str] = None) -> None:
        super().__init__(
            message
            or f"Matrix of shape {shape} is not symmetric positive definite "
            "(is_spd() is False).",
            shape,
        )


class RankDeficientError(DecompositionError):
    """
    Raised by QR `solve` / `inverse` when the full-rank flag is false.

    Attributes
    ----------
    zero_columns : tuple[int, ...]
        Columns whose Householder diagonal value is zero.
    """

    def __init__(self, shape: Any, zero_columns: Sequence[int] = ()) -> None:
        super().__init__(
            f"Matrix of shape {shape} is rank deficient "
            f"(zero R diagonal at columns {list(zero_columns)}).",
            shape,
        )
        self.zero_columns = tuple(zero_columns)


class GraphCycleError(RuntimeError):
    """
    Raised when the autograd graph reachable from the root is not a DAG.

    Attributes
    ----------
    node : str
        Display name of a node found on the cycle.
    """

    def __init__(self, node: str, message: Optional[str] = None) -> None:
        super().__init__(
            message
            or f"Cycle detected in the compute graph at node {node}; "
            "back-propagation requires a DAG."
        )
        self.node = node


class GradientPreconditionError(RuntimeError):
    """
    Raised when `backward` is called on a root without a valid seed gradient.

    Attributes
    ----------
    node : str
        Display name of the root node.
    expected : Any
        Shape of the root value.
    actual : Any
        Shape of the seed gradient, or None when the seed is missing.
    """

    def __init__(self, node: str, expected: Any, actual: Any = None) -> None:
        if actual is None:
            message = (
                f"Root node {node} has no seed gradient; set a gradient of "
                f"shape {expected} before calling backward."
            )
        else:
            message = (
                f"Seed gradient of root node {node} has shape {actual}, "
                f"expected {expected}."
            )
        super().__init__(message)
        self.node = node
        self.expected = expected
        self.actual = actual

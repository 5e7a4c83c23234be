from ._dtype import DType
from ._errors import (
    DecompositionError,
    GradientPreconditionError,
    GraphCycleError,
    IndexOutOfRangeError,
    NotPositiveDefiniteError,
    RankDeficientError,
    ShapeError,
    SingularMatrixError,
)
from ._function import Function
from ._layout import StrideLayout
from ._order import Order
from ._shape import Shape
from ._tensor import ITensor

__all__ = [
    DType.__name__,
    DecompositionError.__name__,
    GradientPreconditionError.__name__,
    GraphCycleError.__name__,
    IndexOutOfRangeError.__name__,
    NotPositiveDefiniteError.__name__,
    RankDeficientError.__name__,
    ShapeError.__name__,
    SingularMatrixError.__name__,
    Function.__name__,
    StrideLayout.__name__,
    Order.__name__,
    Shape.__name__,
    ITensor.__name__,
]

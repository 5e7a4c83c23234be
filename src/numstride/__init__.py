"""
numstride: strided tensors, dense matrix decompositions and reverse-mode
automatic differentiation.

Public API
----------
- Domain types: ``Shape``, ``StrideLayout``, ``Order``, ``DType`` and the
  error taxonomy.
- ``Tensor``, ``TensorManager``, ``default_manager``.
- ``CholeskyDecomposition``, ``LUDecomposition``, ``QRDecomposition``.
- ``Node``, ``variable``, ``constant``, ``backward``.
"""

import logging

from .domain import (
    DType,
    DecompositionError,
    GradientPreconditionError,
    GraphCycleError,
    IndexOutOfRangeError,
    NotPositiveDefiniteError,
    Order,
    RankDeficientError,
    Shape,
    ShapeError,
    SingularMatrixError,
    StrideLayout,
)
from .infrastructure import EngineConfig, config_context, get_config, set_config
from .infrastructure.autograd import Node, backward, constant, variable
from .infrastructure.decomposition import (
    CholeskyDecomposition,
    CholeskySide,
    LUDecomposition,
    LUMethod,
    QRDecomposition,
)
from .infrastructure.tensor import Tensor, TensorManager, default_manager

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    DType.__name__,
    DecompositionError.__name__,
    GradientPreconditionError.__name__,
    GraphCycleError.__name__,
    IndexOutOfRangeError.__name__,
    NotPositiveDefiniteError.__name__,
    Order.__name__,
    RankDeficientError.__name__,
    Shape.__name__,
    ShapeError.__name__,
    SingularMatrixError.__name__,
    StrideLayout.__name__,
    EngineConfig.__name__,
    config_context.__name__,
    get_config.__name__,
    set_config.__name__,
    Node.__name__,
    backward.__name__,
    constant.__name__,
    variable.__name__,
    CholeskyDecomposition.__name__,
    CholeskySide.__name__,
    LUDecomposition.__name__,
    LUMethod.__name__,
    QRDecomposition.__name__,
    Tensor.__name__,
    TensorManager.__name__,
    default_manager.__name__,
]

"""
Tensor behavior split into mixins.

Each subpackage contributes one family of operations to the concrete
`Tensor` class. Mixins rely only on the host class providing:

- ``_view()``: a writable NumPy view through the tensor layout,
- ``_of()``: the `OfType` factory of the tensor dtype,
- ``_wrap(layout)``: a new tensor sharing the same storage,
- ``manager``, ``layout``, ``shape``, ``rank``, ``size`` and ``dtype``.
"""

from .arithmetic import TensorMixinArithmetic
from .linalg import TensorMixinLinalg
from .memory import TensorMixinMemory
from .reduction import TensorMixinReduction
from .unary import TensorMixinUnary

__all__ = [
    TensorMixinArithmetic.__name__,
    TensorMixinLinalg.__name__,
    TensorMixinMemory.__name__,
    TensorMixinReduction.__name__,
    TensorMixinUnary.__name__,
]

"""
Elementwise binary arithmetic.

Operands are either a tensor of exactly the same shape, a rank-0 tensor, or
a Python / NumPy scalar. There is no general broadcasting.

Public API
----------
- ``TensorMixinArithmetic``
"""

from ._base import TensorMixinArithmetic

__all__ = [
    TensorMixinArithmetic.__name__,
]

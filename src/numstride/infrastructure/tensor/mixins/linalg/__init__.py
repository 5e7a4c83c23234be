"""
Vector and matrix operations, plus shortcuts into the decomposition engine.

Public API
----------
- ``TensorMixinLinalg``
"""

from ._base import TensorMixinLinalg

__all__ = [
    TensorMixinLinalg.__name__,
]

"""
Elementwise unary operations.

Every operation exists in two flavors: ``op_()`` mutates the tensor in place
(and writes through to any tensor sharing its storage) and returns it, while
``op()`` returns a fresh dense copy and leaves the tensor untouched.

Public API
----------
- ``TensorMixinUnary``
"""

from ._base import TensorMixinUnary

__all__ = [
    TensorMixinUnary.__name__,
]

"""
Reductions over all elements or along one axis.

Public API
----------
- ``TensorMixinReduction``
"""

from ._base import TensorMixinReduction

__all__ = [
    TensorMixinReduction.__name__,
]

"""
Copies, assignment and layout views.

Public API
----------
- ``TensorMixinMemory``
"""

from ._base import TensorMixinMemory

__all__ = [
    TensorMixinMemory.__name__,
]

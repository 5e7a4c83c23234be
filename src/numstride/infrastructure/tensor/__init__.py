"""
Strided tensors over shared flat buffers.

Public API
----------
- ``Tensor``: strided view over a `Storage`.
- ``TensorManager`` / ``OfType``: factories.
- ``default_manager``: process-wide manager.
- ``Storage``, ``ChunkIterator``, ``PointerIterator``.
"""

from ._iterators import ChunkIterator, PointerIterator
from ._manager import OfType, TensorManager, default_manager
from ._storage import Storage
from ._tensor import Tensor

__all__ = [
    ChunkIterator.__name__,
    PointerIterator.__name__,
    OfType.__name__,
    TensorManager.__name__,
    default_manager.__name__,
    Storage.__name__,
    Tensor.__name__,
]

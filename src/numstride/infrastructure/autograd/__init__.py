"""
Reverse-mode automatic differentiation over tensors.

Public API
----------
- ``Node``, ``variable``, ``constant``: graph nodes and leaf constructors.
- ``backward``, ``ComputeGraph``: the backward pass.
- ``Context``, ``BackEdge``: per-operation records.
- ``apply``: run a `Function` on nodes.
- ``write_nodes``, ``read_nodes_``: node value persistence.
"""

from ._context import BackEdge, Context
from ._engine import ComputeGraph, backward
from ._node import Node, constant, variable
from ._ops import apply
from ._serialization import read_nodes_, write_nodes

__all__ = [
    BackEdge.__name__,
    Context.__name__,
    ComputeGraph.__name__,
    backward.__name__,
    Node.__name__,
    constant.__name__,
    variable.__name__,
    apply.__name__,
    read_nodes_.__name__,
    write_nodes.__name__,
]

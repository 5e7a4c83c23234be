"""
Reverse-mode backward pass.

`backward(root)` builds a disposable `ComputeGraph` over the nodes reachable
from `root` and propagates the root's seed gradient to every node that needs
one:

1. coverage: iterative depth-first search over backward edges, rejecting
   cycles;
2. successor map: for each covered node, the covered nodes that consumed it;
3. ordering: Kahn's algorithm seeded with the root, emitting a node only
   after all of its consumers;
4. needs-grad: a node needs a gradient if it requires one or depends on a
   node that does;
5. execution: in root-first order, every edge into a node that needs a
   gradient adds its contribution to that node;
6. cleanup: backward edges are dropped unless `retain_graph` is set.

Nodes are addressed by integer indices into the graph's arena; object
identity is only used once, to intern a node on first sight.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Set

from ...domain._errors import GradientPreconditionError, GraphCycleError
from ._node import Node

logger = logging.getLogger(__name__)

_WHITE, _GRAY, _BLACK = 0, 1, 2


class ComputeGraph:
    """
    Traversal state for one backward pass.

    Attributes
    ----------
    nodes : list[Node]
        Covered nodes; index 0 is the root.
    deps : list[list[int]]
        Unique dependency indices of each node, in edge order.
    successors : list[set[int]]
        Indices of the covered nodes consuming each node.
    order : list[int]
        Root-first topological order.
    needs_grad : list[bool]
        Whether the pass computes a gradient for each node.
    """

    def __init__(self, root: Node) -> None:
        self.nodes: List[Node] = []
        self.deps: List[List[int]] = []
        self._index: Dict[int, int] = {}
        self._cover(root)
        self.successors = self._successors()
        self.order = self._topological_order()
        self.needs_grad = self._needs_grad()

    def __len__(self) -> int:
        return len(self.nodes)

    def index(self, node: Node) -> int:
        return self._index[id(node)]

    def _intern(self, node: Node) -> int:
        idx = len(self.nodes)
        self._index[id(node)] = idx
        self.nodes.append(node)
        self.deps.append([])
        return idx

    def _cover(self, root: Node) -> None:
        colors = [_GRAY]
        self._intern(root)
        stack = [(0, iter(root.back_edges))]
        seen_deps: List[Set[int]] = [set()]
        while stack:
            idx, edges = stack[-1]
            edge = next(edges, None)
            if edge is None:
                colors[idx] = _BLACK
                stack.pop()
                continue
            target = edge.target
            t = self._index.get(id(target))
            if t is None:
                t = self._intern(target)
                colors.append(_WHITE)
                seen_deps.append(set())
            if t not in seen_deps[idx]:
                seen_deps[idx].add(t)
                self.deps[idx].append(t)
            if colors[t] == _GRAY:
                raise GraphCycleError(target.name)
            if colors[t] == _WHITE:
                colors[t] = _GRAY
                stack.append((t, iter(target.back_edges)))

    def _successors(self) -> List[Set[int]]:
        successors: List[Set[int]] = [set() for _ in self.nodes]
        for idx, deps in enumerate(self.deps):
            for d in deps:
                successors[d].add(idx)
        return successors

    def _topological_order(self) -> List[int]:
        pending = [len(s) for s in self.successors]
        frontier = [0] if pending[0] == 0 else []
        order: List[int] = []
        while frontier:
            idx = frontier.pop()
            order.append(idx)
            for d in self.deps[idx]:
                pending[d] -= 1
                if pending[d] == 0:
                    frontier.append(d)
        if len(order) != len(self.nodes):
            stuck = next(i for i, p in enumerate(pending) if p > 0)
            raise GraphCycleError(self.nodes[stuck].name)
        return order

    def _needs_grad(self) -> List[bool]:
        needs = [False] * len(self.nodes)
        for idx in reversed(self.order):
            if self.nodes[idx].requires_grad:
                needs[idx] = True
            if needs[idx]:
                for s in self.successors[idx]:
                    needs[s] = True
        return needs


def _check_seed(root: Node) -> None:
    grad = root.grad
    if grad is None:
        raise GradientPreconditionError(root.name, root.shape)
    if grad.shape != root.shape:
        raise GradientPreconditionError(root.name, root.shape, grad.shape)


def backward(root: Node, retain_graph: bool = False) -> ComputeGraph:
    """
    Propagate the seed gradient of `root` through its graph.

    Parameters
    ----------
    root : Node
        Node carrying a seed gradient of exactly its value's shape.
    retain_graph : bool, optional
        Keep backward edges so another pass can run over the same graph.

    Returns
    -------
    ComputeGraph
        The traversal state, useful for inspection.

    Raises
    ------
    GradientPreconditionError
        If the root has no seed gradient or its shape differs.
    GraphCycleError
        If a node is reachable from itself.
    """
    _check_seed(root)
    graph = ComputeGraph(root)
    logger.debug(
        "backward from %s: %d nodes covered, %d need gradients",
        root.name,
        len(graph),
        sum(graph.needs_grad),
    )

    for idx in graph.order:
        node = graph.nodes[idx]
        grad = node.grad
        if grad is None:
            continue
        for edge in node.back_edges:
            if graph.needs_grad[graph.index(edge.target)]:
                edge.target.add_grad(edge.contribution(grad))

    if not retain_graph:
        for node in graph.nodes:
            node.back_edges.clear()
    return graph

"""
Save and load node values through a text stream.

Each node becomes one JSON line ``{"name", "value", "grad"}`` where the value
and the optional gradient are base64 payloads (see `numstride.infrastructure
.encoding`). Records are written and read in the order of the node list the
caller passes, so the same list must be used on both sides.
"""

from __future__ import annotations

import json
import logging
from typing import Iterable, Sequence, TextIO

from ...domain._errors import ShapeError
from ..encoding import payload_to_ndarray, tensor_to_payload
from ._node import Node

logger = logging.getLogger(__name__)


def write_nodes(stream: TextIO, nodes: Iterable[Node], include_grad: bool = False) -> int:
    """
    Write one record per node to `stream`.

    Parameters
    ----------
    stream : TextIO
        Writable text stream.
    nodes : Iterable[Node]
        Nodes to persist, in order.
    include_grad : bool, optional
        Also write gradients (``null`` for nodes without one).

    Returns
    -------
    int
        Number of records written.
    """
    count = 0
    for node in nodes:
        grad = node.grad if include_grad else None
        record = {
            "name": node.name,
            "value": tensor_to_payload(node.value),
            "grad": None if grad is None else tensor_to_payload(grad),
        }
        stream.write(json.dumps(record))
        stream.write("\n")
        count += 1
    logger.debug("wrote %d node records (include_grad=%s)", count, include_grad)
    return count


def read_nodes_(stream: TextIO, nodes: Sequence[Node], include_grad: bool = False) -> None:
    """
    Load values (and optionally gradients) written by `write_nodes` in place.

    Raises
    ------
    ValueError
        If the stream ends early or a record's name does not match the node.
    ShapeError
        If a stored value does not have the node's shape.
    """
    for node in nodes:
        line = stream.readline()
        if not line.strip():
            raise ValueError(f"Stream ended before the record for node {node.name}.")
        record = json.loads(line)
        if record.get("name") != node.name:
            raise ValueError(
                f"Record for node {record.get('name')!r} found where "
                f"{node.name!r} was expected."
            )

        values = payload_to_ndarray(record["value"])
        if node.shape != values.shape:
            raise ShapeError(
                f"Stored value of node {node.name} has shape {list(values.shape)}, "
                f"expected {node.shape}.",
                node.shape,
                values.shape,
            )
        of = node.value._of()
        node.value.assign_(of.from_array(values))

        if include_grad:
            grad = record.get("grad")
            node.set_grad(None if grad is None else of.from_array(payload_to_ndarray(grad)))
    logger.debug("read %d node records (include_grad=%s)", len(nodes), include_grad)

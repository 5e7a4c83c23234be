from __future__ import annotations

import base64
from typing import Any, Dict

import numpy as np

from ...domain._dtype import DType


def bytes_to_b64_str(b: bytes) -> str:
    """
    Encode raw bytes into a base64 ASCII string (JSON-safe).
    """
    return base64.b64encode(b).decode("ascii")


def b64_str_to_bytes(s: str) -> bytes:
    """
    Decode a base64 ASCII string back into raw bytes.
    """
    return base64.b64decode(s.encode("ascii"))


def tensor_to_payload(tensor: Any) -> Dict[str, Any]:
    """
    Serialize a tensor's values into a JSON-safe payload.

    The values are always written in C order with an explicit little-endian
    dtype, independent of the tensor's own storage order.

    Returns
    -------
    dict
        {
          "b64": "<base64>",
          "dtype": "<numstride dtype id>",
          "shape": [...],
          "order": "C"
        }
    """
    arr = np.array(tensor.to_numpy(), order="C")
    np_dtype = np.dtype(tensor.dtype.numpy_name).newbyteorder("<")
    return {
        "b64": bytes_to_b64_str(arr.astype(np_dtype, copy=False).tobytes(order="C")),
        "dtype": tensor.dtype.id,
        "shape": list(arr.shape),
        "order": "C",
    }


def payload_to_ndarray(payload: Dict[str, Any]) -> np.ndarray:
    """
    Deserialize a payload produced by `tensor_to_payload` into an owning
    NumPy array of the native byte order.

    Raises
    ------
    ValueError
        If the payload names an unknown dtype or its byte length does not
        match its shape.
    """
    dtype = DType.parse(str(payload["dtype"]))
    shape = tuple(int(x) for x in payload["shape"])
    raw = b64_str_to_bytes(str(payload["b64"]))

    np_dtype = np.dtype(dtype.numpy_name).newbyteorder("<")
    count = 1
    for d in shape:
        count *= d
    if len(raw) != count * np_dtype.itemsize:
        raise ValueError(
            f"Payload holds {len(raw)} bytes, expected {count * np_dtype.itemsize} "
            f"for shape {list(shape)} of {dtype.id}."
        )
    arr = np.frombuffer(raw, dtype=np_dtype).reshape(shape)
    return np.array(arr, dtype=dtype.numpy_name, copy=True, order="C")

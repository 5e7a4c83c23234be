from ._b64 import payload_to_ndarray, tensor_to_payload

__all__ = [
    payload_to_ndarray.__name__,
    tensor_to_payload.__name__,
]

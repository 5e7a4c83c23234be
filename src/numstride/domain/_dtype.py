"""
Element type descriptors.

The tensor engine supports a small closed set of floating point element
types. `DType` describes them without importing NumPy; the infrastructure
layer maps `DType.numpy_name` to a concrete `numpy.dtype`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class DType(Enum):
    """
    Supported tensor element types.

    Attributes
    ----------
    id : str
        Short identifier (``"double"`` or ``"float"``).
    numpy_name : str
        Name of the matching NumPy dtype.
    byte_count : int
        Size of one element in bytes.
    """

    DOUBLE = ("double", "float64", 8)
    FLOAT = ("float", "float32", 4)

    def __init__(self, id_: str, numpy_name: str, byte_count: int) -> None:
        self.id = id_
        self.numpy_name = numpy_name
        self.byte_count = byte_count

    @property
    def is_floating(self) -> bool:
        return True

    @staticmethod
    def parse(value: Any) -> "DType":
        """
        Resolve a dtype from a `DType`, an id, or a NumPy dtype name.

        Parameters
        ----------
        value : Any
            ``DType.DOUBLE``, ``"double"``, ``"float64"``, ``np.float32``, ...

        Returns
        -------
        DType
            The matching descriptor.

        Raises
        ------
        ValueError
            If the value does not name a supported dtype.
        """
        if isinstance(value, DType):
            return value
        name = getattr(value, "__name__", None) or str(value)
        name = name.strip().lower()
        for dt in DType:
            if name in (dt.id, dt.numpy_name, dt.name.lower()):
                return dt
        if name in ("f8", "<f8", "d"):
            return DType.DOUBLE
        if name in ("f4", "<f4", "f"):
            return DType.FLOAT
        raise ValueError(f"Unsupported dtype: {value!r}")

    def __repr__(self) -> str:
        return f"DType.{self.name}"

"""
Matrix decompositions: Cholesky, LU and Householder QR.

All decompositions are eager and read-only with respect to the decomposed
matrix. Degenerate inputs are reported through flags rather than exceptions;
`solve` and `inverse` raise the matching `DecompositionError` subclass.
"""

from ._base import MatrixDecomposition
from ._cholesky import CholeskyDecomposition, CholeskySide
from ._lu import LUDecomposition, LUMethod
from ._qr import QRDecomposition

__all__ = [
    MatrixDecomposition.__name__,
    CholeskyDecomposition.__name__,
    CholeskySide.__name__,
    LUDecomposition.__name__,
    LUMethod.__name__,
    QRDecomposition.__name__,
]

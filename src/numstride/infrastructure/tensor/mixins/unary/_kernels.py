"""
Elementwise kernels that NumPy does not ship as a single ufunc.

Each kernel follows the ufunc convention ``kernel(x, out=...)`` so the unary
mixin can treat them uniformly.
"""

import numpy as np


def sigmoid(x: np.ndarray, out: np.ndarray) -> np.ndarray:
    """Logistic function ``1 / (1 + exp(-x))``."""
    np.negative(x, out=out)
    np.exp(out, out=out)
    np.add(out, 1, out=out)
    np.reciprocal(out, out=out)
    return out


def clamp(x: np.ndarray, lo, hi, out: np.ndarray) -> np.ndarray:
    if lo is not None:
        np.maximum(x, lo, out=out)
        x = out
    if hi is not None:
        np.minimum(x, hi, out=out)
    elif lo is None and out is not x:
        np.copyto(out, x)
    return out


def fill_nan(x: np.ndarray, value, out: np.ndarray) -> np.ndarray:
    np.copyto(out, value, where=np.isnan(x))
    return out


def nan_to_num(x: np.ndarray, nan, posinf, neginf, out: np.ndarray) -> np.ndarray:
    np.copyto(out, np.nan_to_num(x, nan=nan, posinf=posinf, neginf=neginf))
    return out

"""
Unary operation mixin implementing elementwise Tensor math.

The in-place variants run the NumPy ufunc on the strided view of the tensor
with ``out=`` pointing back at the same view, so no temporary buffer is
allocated. When the manager runs with several workers and the tensor is
large enough, the work is split by rows of the leading axis.

The copy variants are ``copy()`` followed by the in-place variant.
"""

from __future__ import annotations

from abc import ABC
from typing import Callable, Optional

import numpy as np

from .....domain._tensor import ITensor
from . import _kernels


class TensorMixinUnary(ABC):
    """
    Mixin providing elementwise unary operations.

    Notes
    -----
    - Results keep the dtype of the tensor. Domain errors (``log`` of a
      negative value, ``sqrt`` of a negative value, ...) follow IEEE-754 and
      produce NaN or infinities instead of raising.
    - In-place variants return ``self`` to allow chaining.
    """

    def _apply_unary_(self, kernel: Callable, *args) -> "ITensor":
        view = self._view()
        if view.ndim == 0 or view.size == 0:
            kernel(view, *args, out=view)
            return self

        def run(start: int, end: int) -> None:
            part = view[start:end]
            kernel(part, *args, out=part)

        self.manager.executor.run_rows(view.shape[0], view.size, run)
        return self

    # ------------------------------------------------------------------
    # sign / magnitude
    # ------------------------------------------------------------------
    def neg_(self) -> "ITensor":
        return self._apply_unary_(np.negative)

    def neg(self) -> "ITensor":
        """Elementwise ``-x`` as a new tensor."""
        return self.copy().neg_()

    def abs_(self) -> "ITensor":
        return self._apply_unary_(np.absolute)

    def abs(self) -> "ITensor":
        return self.copy().abs_()

    def sqr_(self) -> "ITensor":
        return self._apply_unary_(np.square)

    def sqr(self) -> "ITensor":
        """Elementwise square ``x * x``."""
        return self.copy().sqr_()

    def sqrt_(self) -> "ITensor":
        return self._apply_unary_(np.sqrt)

    def sqrt(self) -> "ITensor":
        return self.copy().sqrt_()

    # ------------------------------------------------------------------
    # exponentials and logarithms
    # ------------------------------------------------------------------
    def exp_(self) -> "ITensor":
        return self._apply_unary_(np.exp)

    def exp(self) -> "ITensor":
        """
        Elementwise natural exponential.

        Returns
        -------
        ITensor
            A dense tensor with ``exp`` applied to every element.
        """
        return self.copy().exp_()

    def expm1_(self) -> "ITensor":
        return self._apply_unary_(np.expm1)

    def expm1(self) -> "ITensor":
        """Elementwise ``exp(x) - 1``, accurate for small ``x``."""
        return self.copy().expm1_()

    def log_(self) -> "ITensor":
        return self._apply_unary_(np.log)

    def log(self) -> "ITensor":
        """
        Elementwise natural logarithm.

        Non-positive inputs produce ``-inf`` or NaN following NumPy semantics.
        """
        return self.copy().log_()

    def log1p_(self) -> "ITensor":
        return self._apply_unary_(np.log1p)

    def log1p(self) -> "ITensor":
        """Elementwise ``log(1 + x)``, accurate for small ``x``."""
        return self.copy().log1p_()

    # ------------------------------------------------------------------
    # trigonometric and hyperbolic
    # ------------------------------------------------------------------
    def sin_(self) -> "ITensor":
        return self._apply_unary_(np.sin)

    def sin(self) -> "ITensor":
        return self.copy().sin_()

    def cos_(self) -> "ITensor":
        return self._apply_unary_(np.cos)

    def cos(self) -> "ITensor":
        return self.copy().cos_()

    def tan_(self) -> "ITensor":
        return self._apply_unary_(np.tan)

    def tan(self) -> "ITensor":
        return self.copy().tan_()

    def asin_(self) -> "ITensor":
        return self._apply_unary_(np.arcsin)

    def asin(self) -> "ITensor":
        return self.copy().asin_()

    def acos_(self) -> "ITensor":
        return self._apply_unary_(np.arccos)

    def acos(self) -> "ITensor":
        return self.copy().acos_()

    def atan_(self) -> "ITensor":
        return self._apply_unary_(np.arctan)

    def atan(self) -> "ITensor":
        return self.copy().atan_()

    def sinh_(self) -> "ITensor":
        return self._apply_unary_(np.sinh)

    def sinh(self) -> "ITensor":
        return self.copy().sinh_()

    def cosh_(self) -> "ITensor":
        return self._apply_unary_(np.cosh)

    def cosh(self) -> "ITensor":
        return self.copy().cosh_()

    def tanh_(self) -> "ITensor":
        return self._apply_unary_(np.tanh)

    def tanh(self) -> "ITensor":
        return self.copy().tanh_()

    def sigmoid_(self) -> "ITensor":
        return self._apply_unary_(_kernels.sigmoid)

    def sigmoid(self) -> "ITensor":
        """
        Elementwise logistic function ``1 / (1 + exp(-x))``.

        Large negative inputs overflow ``exp(-x)`` to ``inf`` and yield 0.
        """
        return self.copy().sigmoid_()

    # ------------------------------------------------------------------
    # rounding
    # ------------------------------------------------------------------
    def floor_(self) -> "ITensor":
        return self._apply_unary_(np.floor)

    def floor(self) -> "ITensor":
        return self.copy().floor_()

    def ceil_(self) -> "ITensor":
        return self._apply_unary_(np.ceil)

    def ceil(self) -> "ITensor":
        return self.copy().ceil_()

    def rint_(self) -> "ITensor":
        return self._apply_unary_(np.rint)

    def rint(self) -> "ITensor":
        """Round to the nearest integer value, ties to even."""
        return self.copy().rint_()

    # ------------------------------------------------------------------
    # parameterized
    # ------------------------------------------------------------------
    def clamp_(self, min: Optional[float] = None, max: Optional[float] = None) -> "ITensor":
        """
        Limit every element to ``[min, max]`` in place.

        Parameters
        ----------
        min, max : float, optional
            Bounds; `None` leaves that side unbounded.

        Raises
        ------
        ValueError
            If both bounds are given and ``min > max``.
        """
        if min is not None and max is not None and min > max:
            raise ValueError(f"clamp bounds are inverted: min={min} > max={max}.")
        return self._apply_unary_(_kernels.clamp, min, max)

    def clamp(self, min: Optional[float] = None, max: Optional[float] = None) -> "ITensor":
        return self.copy().clamp_(min, max)

    def pow_(self, p: float) -> "ITensor":
        return self._apply_unary_(np.power, p)

    def pow(self, p: float) -> "ITensor":
        """Elementwise power ``x ** p``."""
        return self.copy().pow_(p)

    def fill_(self, value: float) -> "ITensor":
        """Set every element to `value`."""
        self._view()[...] = value
        return self

    def fill_nan_(self, value: float) -> "ITensor":
        """Replace NaN elements with `value`."""
        return self._apply_unary_(_kernels.fill_nan, value)

    def nan_to_num_(
        self,
        nan: float = 0.0,
        posinf: Optional[float] = None,
        neginf: Optional[float] = None,
    ) -> "ITensor":
        """
        Replace NaN and infinite elements in place.

        Infinities default to the largest finite value of the dtype with the
        matching sign.
        """
        return self._apply_unary_(_kernels.nan_to_num, nan, posinf, neginf)

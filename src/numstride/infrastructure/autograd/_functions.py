"""
Differentiable operations.

Each class is a stateless `Function`: `forward` computes the output value from
operand values and records on the context what `backward` needs; `backward`
returns the gradient contribution for one operand slot. Binary elementwise
operations accept operands of equal shape, or a rank-0 operand that is
broadcast against the other one; the gradient flowing to a broadcast rank-0
operand is the sum of the output gradient.
"""

from __future__ import annotations

import numpy as np

from ...domain._errors import ShapeError
from ...domain._function import Function
from ...domain._order import Order
from ..tensor import Tensor
from ._context import Context


def _expand_scalar(a: Tensor, b: Tensor) -> Tensor:
    """`a` itself, or `a` broadcast to the shape of `b` when only `a` is rank-0."""
    if a.rank == 0 and b.rank > 0:
        return a._of().full(b.shape, a.item())
    return a


def _reduce_to(grad: Tensor, shape) -> Tensor:
    """Contribution for an operand of `shape` from a gradient of the output."""
    if grad.shape == shape:
        return grad
    if len(shape) == 0:
        return grad._of().scalar(grad.sum())
    raise ShapeError(
        f"Gradient of shape {grad.shape} does not reduce to operand shape {shape}.",
        shape,
        grad.shape,
    )


def _save_shapes(ctx: Context, a: Tensor, b: Tensor) -> None:
    ctx.saved_meta["shapes"] = (a.shape, b.shape)


class Identity(Function):
    @staticmethod
    def forward(ctx: Context, x: Tensor) -> Tensor:
        return x.copy()

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        return grad_out.copy()


class Add(Function):
    @staticmethod
    def forward(ctx: Context, a: Tensor, b: Tensor) -> Tensor:
        _save_shapes(ctx, a, b)
        return _expand_scalar(a, b).add(b)

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        return _reduce_to(grad_out.copy(), ctx.saved_meta["shapes"][slot])


class Sub(Function):
    @staticmethod
    def forward(ctx: Context, a: Tensor, b: Tensor) -> Tensor:
        _save_shapes(ctx, a, b)
        return _expand_scalar(a, b).sub(b)

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        g = grad_out.copy() if slot == 0 else grad_out.neg()
        return _reduce_to(g, ctx.saved_meta["shapes"][slot])


class Mul(Function):
    """``a * b``; ``d/da = b``, ``d/db = a``."""

    @staticmethod
    def forward(ctx: Context, a: Tensor, b: Tensor) -> Tensor:
        _save_shapes(ctx, a, b)
        ctx.save_for_backward(a, b)
        return _expand_scalar(a, b).mul(b)

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        a, b = ctx.saved_tensors
        other = b if slot == 0 else a
        return _reduce_to(grad_out.mul(other), ctx.saved_meta["shapes"][slot])


class Div(Function):
    """``a / b``; ``d/da = 1 / b``, ``d/db = -a / b^2``."""

    @staticmethod
    def forward(ctx: Context, a: Tensor, b: Tensor) -> Tensor:
        _save_shapes(ctx, a, b)
        ctx.save_for_backward(a, b)
        return _expand_scalar(a, b).div(b)

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        a, b = ctx.saved_tensors
        if slot == 0:
            g = grad_out.div(b)
        else:
            g = grad_out.mul(a).div_(b.sqr()).neg_()
        return _reduce_to(g, ctx.saved_meta["shapes"][slot])


class Neg(Function):
    @staticmethod
    def forward(ctx: Context, x: Tensor) -> Tensor:
        return x.neg()

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        return grad_out.neg()


class Exp(Function):
    @staticmethod
    def forward(ctx: Context, x: Tensor) -> Tensor:
        out = x.exp()
        ctx.save_for_backward(out)
        return out

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        (out,) = ctx.saved_tensors
        return grad_out.mul(out)


class Log(Function):
    """``log(x + eps)``; ``eps`` keeps the argument away from zero."""

    @staticmethod
    def forward(ctx: Context, x: Tensor, eps: float = 0.0) -> Tensor:
        if eps:
            x = x.add(eps)
        ctx.save_for_backward(x)
        return x.log()

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        (x,) = ctx.saved_tensors
        return grad_out.div(x)


class Sqr(Function):
    @staticmethod
    def forward(ctx: Context, x: Tensor) -> Tensor:
        ctx.save_for_backward(x)
        return x.sqr()

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        (x,) = ctx.saved_tensors
        return grad_out.mul(x).mul_(2.0)


class Sqrt(Function):
    @staticmethod
    def forward(ctx: Context, x: Tensor) -> Tensor:
        out = x.sqrt()
        ctx.save_for_backward(out)
        return out

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        (out,) = ctx.saved_tensors
        return grad_out.div(out).mul_(0.5)


class Pow(Function):
    """``x ** p`` for a constant exponent ``p``."""

    @staticmethod
    def forward(ctx: Context, x: Tensor, p: float) -> Tensor:
        ctx.save_for_backward(x)
        ctx.saved_meta["p"] = p
        return x.pow(p)

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        (x,) = ctx.saved_tensors
        p = ctx.saved_meta["p"]
        return grad_out.mul(x.pow(p - 1.0).mul_(p))


class Sin(Function):
    @staticmethod
    def forward(ctx: Context, x: Tensor) -> Tensor:
        ctx.save_for_backward(x)
        return x.sin()

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        (x,) = ctx.saved_tensors
        return grad_out.mul(x.cos())


class Cos(Function):
    @staticmethod
    def forward(ctx: Context, x: Tensor) -> Tensor:
        ctx.save_for_backward(x)
        return x.cos()

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        (x,) = ctx.saved_tensors
        return grad_out.mul(x.sin().neg_())


class Tanh(Function):
    """``d tanh(x) / dx = 1 - tanh(x)^2``."""

    @staticmethod
    def forward(ctx: Context, x: Tensor) -> Tensor:
        out = x.tanh()
        ctx.save_for_backward(out)
        return out

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        (out,) = ctx.saved_tensors
        return grad_out.mul(out.sqr().neg_().add_(1.0))


class Sigmoid(Function):
    """``d s(x) / dx = s(x) (1 - s(x))``."""

    @staticmethod
    def forward(ctx: Context, x: Tensor) -> Tensor:
        out = x.sigmoid()
        ctx.save_for_backward(out)
        return out

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        (out,) = ctx.saved_tensors
        return grad_out.mul(out).mul_(out.neg().add_(1.0))


def _spread(grad_out: Tensor, shape, axis, scale: float = 1.0) -> Tensor:
    """Broadcast the gradient of a reduction back to the reduced shape."""
    if axis is None:
        return grad_out._of().full(shape, grad_out.item() * scale)
    spread = grad_out.unsqueeze(axis).expand(axis, shape[axis]).copy()
    return spread.mul_(scale) if scale != 1.0 else spread


class Sum(Function):
    """Sum of all elements (rank-0 output) or along one axis."""

    @staticmethod
    def forward(ctx: Context, x: Tensor, axis=None) -> Tensor:
        ctx.saved_meta["shape"] = x.shape
        ctx.saved_meta["axis"] = None if axis is None else x.shape.axis(axis)
        if axis is None:
            return x._of().scalar(x.sum())
        return x.sum(axis)

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        return _spread(grad_out, ctx.saved_meta["shape"], ctx.saved_meta["axis"])


class Mean(Function):
    """Mean of all elements (rank-0 output) or along one axis."""

    @staticmethod
    def forward(ctx: Context, x: Tensor, axis=None) -> Tensor:
        shape = x.shape
        ctx.saved_meta["shape"] = shape
        ctx.saved_meta["axis"] = None if axis is None else shape.axis(axis)
        count = shape.size if axis is None else shape.dim(axis)
        ctx.saved_meta["count"] = count
        if axis is None:
            return x._of().scalar(x.mean())
        return x.mean(axis)

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        meta = ctx.saved_meta
        return _spread(grad_out, meta["shape"], meta["axis"], 1.0 / max(meta["count"], 1))


class Vdot(Function):
    """Inner product of two vectors, producing a rank-0 value."""

    @staticmethod
    def forward(ctx: Context, a: Tensor, b: Tensor) -> Tensor:
        ctx.save_for_backward(a, b)
        return a._of().scalar(a.vdot(b))

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        a, b = ctx.saved_tensors
        return (b if slot == 0 else a).mul(grad_out.item())


class Mv(Function):
    """``A v``: ``dA = g v^T``, ``dv = A^T g``."""

    @staticmethod
    def forward(ctx: Context, a: Tensor, v: Tensor) -> Tensor:
        ctx.save_for_backward(a, v)
        return a.mv(v)

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        a, v = ctx.saved_tensors
        if slot == 0:
            return grad_out.outer(v)
        return a.t().mv(grad_out)


class Mm(Function):
    """``A B``: ``dA = g B^T``, ``dB = A^T g``."""

    @staticmethod
    def forward(ctx: Context, a: Tensor, b: Tensor) -> Tensor:
        ctx.save_for_backward(a, b)
        return a.mm(b)

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        a, b = ctx.saved_tensors
        if slot == 0:
            return grad_out.mm(b.t())
        return a.t().mm(grad_out)


class Reshape(Function):
    @staticmethod
    def forward(ctx: Context, x: Tensor, shape, order: Order = Order.C) -> Tensor:
        ctx.saved_meta["shape"] = x.shape
        ctx.saved_meta["order"] = order
        return x.reshape(shape, order).copy()

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        return grad_out.reshape(ctx.saved_meta["shape"], ctx.saved_meta["order"]).copy()


class Narrow(Function):
    """Range of one axis; the gradient is scattered back into zeros."""

    @staticmethod
    def forward(ctx: Context, x: Tensor, axis: int, start: int, end: int) -> Tensor:
        ctx.saved_meta["shape"] = x.shape
        ctx.saved_meta["range"] = (x.shape.axis(axis), start, end)
        return x.narrow(axis, start, end).copy()

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        axis, start, end = ctx.saved_meta["range"]
        grad = grad_out._of().zeros(ctx.saved_meta["shape"])
        grad.narrow(axis, start, end).assign_(grad_out)
        return grad


class Transpose(Function):
    @staticmethod
    def forward(ctx: Context, x: Tensor) -> Tensor:
        return x.t().copy()

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        return grad_out.t().copy()


class Maximum(Function):
    """``max(x, threshold)``; the gradient passes only where ``x > threshold``."""

    @staticmethod
    def forward(ctx: Context, x: Tensor, threshold: float) -> Tensor:
        ctx.save_for_backward(x)
        ctx.saved_meta["threshold"] = threshold
        return x.clamp(min=threshold)

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        (x,) = ctx.saved_tensors
        mask = x.to_numpy() > ctx.saved_meta["threshold"]
        return grad_out._of().from_array(np.where(mask, grad_out.to_numpy(), 0.0))


def _keepdims(grad_out: Tensor, axis) -> np.ndarray:
    """Output gradient shaped to broadcast against the reduced input."""
    if axis is None:
        return np.asarray(grad_out.item())
    return np.expand_dims(grad_out.to_numpy(), axis)


def _deviations(x: Tensor, axis, ddof: int, eps: float):
    """Centered values, smoothed standard deviation (keepdims) and divisor."""
    values = x.to_numpy()
    count = values.size if axis is None else values.shape[axis]
    denom = count - ddof
    if denom <= 0:
        raise ShapeError(
            f"std needs more than {ddof} elements along the reduced axes, "
            f"got {count}.",
            x.shape,
        )
    d = values - np.mean(values, axis=axis, keepdims=True)
    s = np.sqrt(np.sum(d * d, axis=axis, keepdims=True) / denom + eps)
    return d, s, denom


class Std(Function):
    """
    ``sqrt(sum((x - mean)^2) / (n - ddof) + eps)`` over all elements or along
    one axis. ``eps`` keeps the gradient finite for constant input.
    """

    @staticmethod
    def forward(ctx: Context, x: Tensor, axis=None, ddof: int = 0, eps: float = 1e-3) -> Tensor:
        axis = None if axis is None else x.shape.axis(axis)
        d, s, denom = _deviations(x, axis, ddof, eps)
        ctx.saved_meta.update(axis=axis, d=d, s=s, denom=denom)
        of = x._of()
        if axis is None:
            return of.scalar(float(s.reshape(())))
        return of.from_array(np.squeeze(s, axis=axis))

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        meta = ctx.saved_meta
        g = _keepdims(grad_out, meta["axis"])
        return grad_out._of().from_array(g * meta["d"] / (meta["denom"] * meta["s"]))


class Standardize(Function):
    """``(x - mean) / std`` with `Std` smoothing, keeping the input shape."""

    @staticmethod
    def forward(ctx: Context, x: Tensor, axis=None, ddof: int = 0, eps: float = 1e-3) -> Tensor:
        axis = None if axis is None else x.shape.axis(axis)
        d, s, denom = _deviations(x, axis, ddof, eps)
        y = d / s
        ctx.saved_meta.update(axis=axis, y=y, s=s, denom=denom)
        return x._of().from_array(y)

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        meta = ctx.saved_meta
        axis, y, s = meta["axis"], meta["y"], meta["s"]
        g = grad_out.to_numpy()
        centered = g - np.mean(g, axis=axis, keepdims=True)
        coupling = y * np.sum(g * y, axis=axis, keepdims=True) / meta["denom"]
        return grad_out._of().from_array((centered - coupling) / s)


class Softmax(Function):
    """``dx = y * (g - sum(g * y))`` with ``y`` the softmax output."""

    @staticmethod
    def forward(ctx: Context, x: Tensor, axis=None) -> Tensor:
        ctx.saved_meta["axis"] = None if axis is None else x.shape.axis(axis)
        out = x.softmax(axis)
        ctx.save_for_backward(out)
        return out

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        (out,) = ctx.saved_tensors
        axis = ctx.saved_meta["axis"]
        y, g = out.to_numpy(), grad_out.to_numpy()
        dx = y * (g - np.sum(g * y, axis=axis, keepdims=True))
        return grad_out._of().from_array(dx)


class LogSoftmax(Function):
    """``dx = g - softmax(x) * sum(g)``."""

    @staticmethod
    def forward(ctx: Context, x: Tensor, axis=None) -> Tensor:
        ctx.saved_meta["axis"] = None if axis is None else x.shape.axis(axis)
        out = x.logsoftmax(axis)
        ctx.save_for_backward(out)
        return out

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        (out,) = ctx.saved_tensors
        axis = ctx.saved_meta["axis"]
        g = grad_out.to_numpy()
        dx = g - np.exp(out.to_numpy()) * np.sum(g, axis=axis, keepdims=True)
        return grad_out._of().from_array(dx)


class Bvtm(Function):
    """
    Batched ``v^T M``: ``(b, k) x (b, k, n) -> (b, n)``.

    ``dv[i] = M[i] g[i]`` and ``dM[i] = v[i] g[i]^T``.
    """

    @staticmethod
    def forward(ctx: Context, v: Tensor, m: Tensor) -> Tensor:
        ctx.save_for_backward(v, m)
        return v.bvtm(m)

    @staticmethod
    def backward(ctx: Context, grad_out: Tensor, slot: int) -> Tensor:
        v, m = ctx.saved_tensors
        if slot == 0:
            return m.bmv(grad_out)
        outer = np.einsum("bk,bn->bkn", v.to_numpy(), grad_out.to_numpy())
        return grad_out._of().from_array(outer)

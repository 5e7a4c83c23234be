"""
Engine configuration.

`EngineConfig` collects the process-wide knobs of the tensor engine. Values are
read from environment variables the first time `get_config()` is called and
can be replaced programmatically with `set_config` or temporarily with
`config_context`. Explicit constructor arguments (e.g. the `workers` argument
of `TensorManager`) always take precedence over the active configuration.

Environment variables
---------------------
NUMSTRIDE_DEFAULT_ORDER
    Dense order (``C`` or ``F``) used when a factory call does not name one.
NUMSTRIDE_WORKERS
    Number of worker threads used by parallel kernels (``1`` disables).
NUMSTRIDE_PARALLEL_THRESHOLD
    Minimum number of output elements before a kernel is split across
    workers.
NUMSTRIDE_EQUALITY_TOLERANCE
    Default absolute tolerance of `Tensor.deep_equals`.
"""

from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Iterator, Mapping, Optional

from ..domain._order import Order

logger = logging.getLogger(__name__)

ENV_DEFAULT_ORDER = "NUMSTRIDE_DEFAULT_ORDER"
ENV_WORKERS = "NUMSTRIDE_WORKERS"
ENV_PARALLEL_THRESHOLD = "NUMSTRIDE_PARALLEL_THRESHOLD"
ENV_EQUALITY_TOLERANCE = "NUMSTRIDE_EQUALITY_TOLERANCE"


@dataclass(frozen=True)
class EngineConfig:
    """
    Immutable engine settings.

    Attributes
    ----------
    default_order : Order
        Dense order used by factories when none is requested. Must be C or F.
    workers : int
        Worker threads for parallel kernels. ``1`` runs everything on the
        calling thread.
    parallel_threshold : int
        Minimum output size for a kernel to be split across workers.
    equality_tolerance : float
        Default absolute tolerance used by `deep_equals`.
    """

    default_order: Order = Order.C
    workers: int = 1
    parallel_threshold: int = 65536
    equality_tolerance: float = 1e-12

    def __post_init__(self) -> None:
        if self.default_order not in (Order.C, Order.F):
            raise ValueError(
                f"default_order must be Order.C or Order.F, got {self.default_order}."
            )
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}.")
        if self.parallel_threshold < 1:
            raise ValueError(
                f"parallel_threshold must be >= 1, got {self.parallel_threshold}."
            )
        if self.equality_tolerance < 0:
            raise ValueError(
                f"equality_tolerance must be >= 0, got {self.equality_tolerance}."
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """
        Build a configuration from environment variables.

        Unset variables keep their defaults.

        Parameters
        ----------
        environ : Mapping[str, str], optional
            Source mapping. Defaults to `os.environ`.

        Raises
        ------
        ValueError
            If a variable is set to a value that cannot be parsed; the message
            names the variable.
        """
        environ = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        raw = environ.get(ENV_DEFAULT_ORDER)
        if raw:
            try:
                values["default_order"] = Order.parse(raw)
            except ValueError:
                raise ValueError(f"{ENV_DEFAULT_ORDER}: invalid order {raw!r}") from None

        for name, key, conv in (
            (ENV_WORKERS, "workers", int),
            (ENV_PARALLEL_THRESHOLD, "parallel_threshold", int),
            (ENV_EQUALITY_TOLERANCE, "equality_tolerance", float),
        ):
            raw = environ.get(name)
            if raw is None or raw.strip() == "":
                continue
            try:
                values[key] = conv(raw)
            except ValueError:
                raise ValueError(f"{name}: cannot parse {raw!r}") from None

        try:
            config = cls(**values)
        except ValueError as e:
            raise ValueError(f"Invalid engine configuration from environment: {e}") from e
        logger.debug("Loaded engine configuration from environment: %s", config)
        return config


_lock = threading.Lock()
_active: Optional[EngineConfig] = None


def get_config() -> EngineConfig:
    """Return the active configuration, loading it from the environment once."""
    global _active
    with _lock:
        if _active is None:
            _active = EngineConfig.from_env()
        return _active


def set_config(config: Optional[EngineConfig] = None, **overrides: Any) -> EngineConfig:
    """
    Replace the active configuration.

    Parameters
    ----------
    config : EngineConfig, optional
        New configuration. Defaults to the current one.
    **overrides
        Field overrides applied on top of `config`.

    Returns
    -------
    EngineConfig
        The previous configuration, so callers can restore it.
    """
    global _active
    previous = get_config()
    new = config if config is not None else previous
    if overrides:
        new = replace(new, **overrides)
    with _lock:
        _active = new
    return previous


@contextmanager
def config_context(**overrides: Any) -> Iterator[EngineConfig]:
    """
    Temporarily override configuration fields.

    Example
    -------
    >>> with config_context(default_order=Order.F):
    ...     t = tm.of_double().zeros((2, 3))
    """
    previous = set_config(**overrides)
    try:
        yield get_config()
    finally:
        set_config(previous)


def resolve_order(order: Optional[Order]) -> Order:
    """Resolve `None` / `Order.S` to the configured dense default order."""
    return Order.auto_fc(order, get_config().default_order)

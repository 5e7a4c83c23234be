"""
State-based method dispatch ("control paths") via decorators.

A class declares a *base* method whose signature is the canonical one, then
registers several implementations of it, each keyed by:

    (ClassName, MethodName, StateVal)

At call time the installed wrapper reads the instance's state attribute and
forwards the call (including `self`) to the implementation registered for the
current value. The decomposition engine uses this to pick the Cholesky side
and the LU pivoting strategy without if/elif chains in every method.

Notes
-----
- The first registration replaces the base method on the class with the
  dispatching wrapper; later registrations only extend the mapping.
- Registrations live in a closure-local mapping owned by one
  `create_path_builder()` call. Different builders do not share mappings.
"""

from typing import (
    Any,
    Callable,
    Dict,
    Hashable,
    Optional,
    Type,
    Union,
)
from typing_extensions import ParamSpec, TypeVar
from collections import namedtuple
from functools import wraps

P = ParamSpec("P")
R = TypeVar("R")

_MISSING = object()


def create_path_builder(
    state_attr: str = "_state",
) -> Callable[
    [
        Type,
        Callable[P, R],
        Hashable,
        Optional[Union[Type[Exception], Callable[[Callable[P, R], Any], None]]],
    ],
    Callable[[Callable[P, R]], Callable[P, R]],
]:
    """
    Create a "path builder" used to register stateful control paths.

    Usage::

        path = create_path_builder("variant")

        class Solver:
            def __init__(self, variant):
                self.variant = variant

            def run(self, x: int) -> int: ...

        @path(Solver, Solver.run, "fast")
        def _run_fast(self: Solver, x: int) -> int:
            ...

        @path(Solver, Solver.run, "exact")
        def _run_exact(self: Solver, x: int) -> int:
            ...

    Parameters
    ----------
    state_attr : str, optional
        Name of the instance attribute read at call time to select the
        implementation.

    Returns
    -------
    Callable
        ``templator(cls, method, state, trap_exception=None) -> decorator``.
    """

    MethodKey = namedtuple("MethodKey", ["ClassName", "MethodName", "StateVal"])

    methods_map: Dict[MethodKey, Callable] = {}
    installed: set = set()

    def templator(
        cls: Type,
        method: Callable[P, R],
        state: Hashable,
        trap_exception: Optional[
            Union[Type[Exception], Callable[[Callable[P, R], Any], None]]
        ] = None,
    ) -> Callable[[Callable[P, R]], Callable[P, R]]:
        """
        Build a decorator that registers one control path implementation.

        Parameters
        ----------
        cls : Type
            Class owning the dispatched method.
        method : Callable[P, R]
            The base method. Its metadata is copied onto the wrapper.
        state : Hashable
            State value selecting the decorated implementation.
        trap_exception : Optional[Union[Type[Exception], Callable]]
            What to do when no implementation matches the current state:

            - `None`: raise `NotImplementedError`.
            - an exception class: raise it with a descriptive message.
            - any other callable: call ``trap_exception(method, state)`` and
              then raise `NotImplementedError`.

        Raises
        ------
        TypeError
            If `state` is not hashable.
        """
        try:
            hash(state)
        except TypeError:
            raise TypeError(
                f"The argument for 'state' must be hashable. Got {state!r}"
            ) from None

        smk = MethodKey(cls.__name__, method.__name__, state)

        def decorator(sub_method: Callable[P, R]) -> Callable[P, R]:
            methods_map[smk] = sub_method

            wrapper_key = (cls, method.__name__)
            if wrapper_key in installed:
                return sub_method

            @wraps(method)
            def wrapper(self: Any, *args: P.args, **kwargs: P.kwargs) -> Any:
                current = getattr(self, state_attr, _MISSING)
                if current is _MISSING:
                    raise NotImplementedError(
                        "{} is missing attribute {}".format(type(self), repr(state_attr))
                    )
                key = MethodKey(cls.__name__, method.__name__, current)
                if sm := methods_map.get(key):
                    return sm(self, *args, **kwargs)
                message = "Missing control path ({}={}) for {}".format(
                    state_attr, repr(current), method.__qualname__
                )
                if trap_exception is None:
                    raise NotImplementedError(message)
                if isinstance(trap_exception, type) and issubclass(
                    trap_exception, BaseException
                ):
                    raise trap_exception(message)
                trap_exception(method, current)
                raise NotImplementedError(message)

            setattr(cls, method.__name__, wrapper)
            installed.add(wrapper_key)
            return sub_method

        return decorator

    return templator

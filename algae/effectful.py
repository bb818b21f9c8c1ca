"""
The ``@effectful`` decorator.

Turns a generator function into a function returning a
:class:`~algae.computation.Computation`. Inside the body, ``yield op``
performs an operation and evaluates to the handler's reply, checked against
the operation's declared result type.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Generator
from functools import update_wrapper
from typing import TYPE_CHECKING, Any, Generic, ParamSpec, TypeVar, overload

from algae.computation import Computation

if TYPE_CHECKING:
    from algae.root import Root

P = ParamSpec("P")
T = TypeVar("T")


def _body(func: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]) -> Generator[Any, Any, Any]:
    gen_or_value = func(*args, **kwargs)
    if not inspect.isgenerator(gen_or_value):
        return gen_or_value
    return (yield from gen_or_value)


class EffectfulFunction(Generic[P, T]):
    """Callable returning a fresh, unstarted computation on every call."""

    def __init__(self, func: Callable[P, Any], *, root: Root | None = None) -> None:
        update_wrapper(self, func)
        self.func = func
        self.root = root

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> Computation[T]:
        return Computation(
            _body(self.func, args, kwargs),
            root=self.root,
            name=getattr(self.func, "__qualname__", None),
        )

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        bound = self.func.__get__(instance, owner)
        return EffectfulFunction(bound, root=self.root)

    @property
    def original_func(self) -> Callable[P, Any]:
        """Expose the user-defined function for downstream tooling."""

        return self.func

    def __repr__(self) -> str:
        return f"<effectful {getattr(self.func, '__qualname__', self.func)!r}>"


@overload
def effectful(func: Callable[P, Generator[Any, Any, T]]) -> EffectfulFunction[P, T]: ...


@overload
def effectful(func: Callable[P, T]) -> EffectfulFunction[P, T]: ...


@overload
def effectful(*, root: Root) -> Callable[[Callable[P, Any]], EffectfulFunction[P, Any]]: ...


def effectful(func: Callable[P, Any] | None = None, *, root: Root | None = None) -> Any:
    """
    Decorator that turns a generator function into a computation factory.

    Usage:
        @effectful
        def greet() -> EffectGenerator[str]:
            yield Print("What's your name?")
            name = yield ReadLine()
            return f"Hello, {name}!"

        greet()            # Computation[str], not started yet
        greet().handle(console).run()

    Pass ``root=`` to wrap every performed operation into that root; an
    operation outside it fails the run with ``UnhandledOperationError``.

    A plain (non-generator) function becomes a computation that performs
    nothing. Nested effectful calls are inlined with ``yield from``::

        @effectful
        def twice() -> EffectGenerator[tuple[str, str]]:
            first = yield from greet()
            second = yield from greet()
            return first, second
    """

    if func is None:
        return lambda f: EffectfulFunction(f, root=root)
    return EffectfulFunction(func, root=root)


__all__ = ["EffectfulFunction", "effectful"]

"""
Handlers: the implementations behind operations.

A handler is any object with ``handle(operation)`` (or a plain callable taking
the operation). It returns the reply value, a ready-made
:class:`~algae.reply.Reply`, or :data:`PASS` to decline the operation so the
next handler in a :class:`HandlerChain` can try.

Handlers may keep state (counters, logs, mock tables); that is how tests
replace real I/O with deterministic behavior.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any, Protocol, runtime_checkable

from algae.errors import IncompleteHandlerError, UnhandledOperationError
from algae.operations import Family, Operation
from algae.root import Root

logger = logging.getLogger(__name__)


class _Pass:
    __slots__ = ()

    def __repr__(self) -> str:
        return "PASS"

    def __reduce__(self) -> str:
        return "PASS"


PASS: Any = _Pass()
"""Returned by a handler that does not handle the operation it was given."""


@runtime_checkable
class Handler(Protocol):
    def handle(self, operation: Operation) -> Any: ...


class FunctionHandler:
    """Adapts ``func(operation) -> value`` to the :class:`Handler` protocol."""

    def __init__(self, func: Callable[[Operation], Any]) -> None:
        self.func = func

    def handle(self, operation: Operation) -> Any:
        return self.func(operation)

    def __repr__(self) -> str:
        return f"FunctionHandler({getattr(self.func, '__qualname__', self.func)!r})"


def as_handler(handler: Any) -> Handler:
    if isinstance(handler, Handler):
        return handler
    if callable(handler):
        return FunctionHandler(handler)
    raise TypeError(
        "handler must define handle(operation) or be a callable taking the operation, "
        f"got {type(handler).__name__}"
    )


class HandlerChain:
    """Ordered handlers; the first one that does not return :data:`PASS` wins.

    Chains pushed into a chain are flattened, so nesting never changes the
    order in which handlers are consulted.
    """

    def __init__(self, handlers: Iterable[Any] = ()) -> None:
        self._handlers: list[Handler] = []
        self.extend(handlers)

    def push(self, handler: Any) -> HandlerChain:
        resolved = as_handler(handler)
        if isinstance(resolved, HandlerChain):
            self._handlers.extend(resolved._handlers)
        else:
            self._handlers.append(resolved)
        return self

    def extend(self, handlers: Iterable[Any]) -> HandlerChain:
        for handler in handlers:
            self.push(handler)
        return self

    def handle(self, operation: Operation) -> Any:
        for handler in self._handlers:
            answer = handler.handle(operation)
            if answer is not PASS:
                return answer
        logger.debug("No handler in chain accepted %s", operation.qualified_name)
        return PASS

    def __len__(self) -> int:
        return len(self._handlers)

    def __iter__(self) -> Iterator[Handler]:
        return iter(self._handlers)

    def __repr__(self) -> str:
        return f"HandlerChain({self._handlers!r})"


class MatchHandler:
    """Dispatch on the operation's class.

    Keys may be operation classes or whole families; the most specific match
    along the operation's MRO wins. Unmatched operations are declined.

    Usage:
        handler = MatchHandler({
            Print: lambda op: None,
            ReadLine: lambda op: "Alice",
        })
    """

    def __init__(self, cases: Mapping[type[Operation], Callable[[Any], Any]]) -> None:
        for key in cases:
            if not (isinstance(key, type) and issubclass(key, Operation)):
                raise TypeError(f"MatchHandler keys must be operation classes, got {key!r}")
        self._cases = dict(cases)

    def handle(self, operation: Operation) -> Any:
        for klass in type(operation).__mro__:
            case = self._cases.get(klass)
            if case is not None:
                return case(operation)
        return PASS


class FamilyRouter:
    """Route each operation to the sub-handler registered for its root variant.

    Coverage is checked when the router is built: every variant tag of
    ``root`` needs a route, so a missing family fails before anything runs.
    Routes may be keyed by tag name, by family class, or by sub-root.
    """

    def __init__(self, root: Root, routes: Mapping[Any, Any]) -> None:
        self.root = root
        self._routes: dict[str, Handler] = {}
        for key, handler in routes.items():
            tag = self._tag_for(key)
            if tag in self._routes:
                raise ValueError(f"Root {root.name!r}: variant {tag!r} is routed twice")
            self._routes[tag] = as_handler(handler)

        missing = set(root.tags) - set(self._routes)
        if missing:
            raise IncompleteHandlerError(root.name, missing)

    def _tag_for(self, key: Any) -> str:
        if isinstance(key, str):
            tag = key
        elif isinstance(key, Root):
            tag = key.name
        elif isinstance(key, type) and issubclass(key, Family):
            tag = key.family_name
        else:
            raise TypeError(f"Route keys must be tags, families or roots, got {key!r}")

        source = self.root.variants.get(tag)
        if source is None or (not isinstance(key, str) and source is not key):
            raise ValueError(f"{key!r} does not name a variant of root {self.root.name!r}")
        return tag

    def handle(self, operation: Operation) -> Any:
        path = self.root.route(operation)
        if path is None:
            raise UnhandledOperationError(
                operation, f"{operation.family_name!r} is not part of root {self.root.name!r}"
            )
        return self._routes[path[0]].handle(operation)

    def __repr__(self) -> str:
        return f"FamilyRouter({self.root.name!r}, {sorted(self._routes)})"


__all__ = [
    "PASS",
    "FamilyRouter",
    "FunctionHandler",
    "Handler",
    "HandlerChain",
    "MatchHandler",
    "as_handler",
]

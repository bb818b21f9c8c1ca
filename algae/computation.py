"""
The suspension engine.

A :class:`Computation` wraps a generator that yields operations. Each
``advance`` runs the generator up to its next ``yield`` (a suspension point)
or to its ``return`` (completion). Replies go back in through the generator's
``send``, so every suspension costs one frame of the driving loop no matter
how many suspensions came before it.

State machine::

    PENDING -> RUNNING -> SUSPENDED -> RUNNING -> ... -> COMPLETED
                            |
                            +-> CLOSED (discarded without resuming)

Any failure inside the body, or any engine error while resuming, ends in
FAILED. COMPLETED, FAILED and CLOSED are terminal.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator, Iterable
from collections.abc import Generator as GeneratorABC
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar, cast

from algae.errors import (
    DoubleResumeError,
    EffectRuntimeError,
    InvalidResumeError,
)
from algae.operations import Operation, Perform
from algae.request import EffectRequest

if TYPE_CHECKING:
    from algae.driver import Handled
    from algae.reply import Reply
    from algae.root import Root

T = TypeVar("T")

logger = logging.getLogger(__name__)

_NO_REPLY: Any = object()

EffectGenerator = Generator[Operation | Perform, Any, T]


class ComputationState(Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUSPENDED = "suspended"
    COMPLETED = "completed"
    FAILED = "failed"
    CLOSED = "closed"
    DELEGATED = "delegated"


_TERMINAL = frozenset(
    {
        ComputationState.COMPLETED,
        ComputationState.FAILED,
        ComputationState.CLOSED,
        ComputationState.DELEGATED,
    }
)


@dataclass(frozen=True)
class Suspended:
    """The computation yielded ``request`` and is paused until it gets a reply."""

    request: EffectRequest


@dataclass(frozen=True)
class Completed(Generic[T]):
    """The computation finished with ``value``."""

    value: T


Step = Suspended | Completed[Any]


def _to_generator(program: Any) -> Generator[Any, Any, Any]:
    if isinstance(program, GeneratorABC):
        return cast(Generator[Any, Any, Any], program)
    if callable(program):
        result = program()
        if isinstance(result, GeneratorABC):
            return cast(Generator[Any, Any, Any], result)
        raise TypeError(f"Callable did not return a generator, got {type(result).__name__}")
    raise TypeError(f"Cannot convert {type(program).__name__} to generator")


def _pure_generator(value: T) -> Generator[Any, Any, T]:
    return value
    yield  # pragma: no cover - makes this a generator


class Computation(Generic[T]):
    """A suspendable unit of work producing ``T`` after zero or more suspensions.

    Only one ``advance`` may be in flight at a time; a computation is meant
    for single-threaded, cooperative use.
    """

    def __init__(
        self,
        program: Generator[Any, Any, T] | Callable[[], Generator[Any, Any, T]],
        *,
        root: Root | None = None,
        name: str | None = None,
    ) -> None:
        self._program: Any = program
        self._gen: Generator[Any, Any, T] | None = None
        self._root = root
        self._state = ComputationState.PENDING
        self._pending: EffectRequest | None = None
        self._result: T | None = None
        self._advancing = False
        self.name = name or getattr(program, "__qualname__", None) or type(program).__name__

    @classmethod
    def pure(cls, value: T, *, name: str | None = None) -> Computation[T]:
        """A computation that performs nothing and completes with ``value``."""

        return cls(_pure_generator(value), name=name or "pure")

    @property
    def state(self) -> ComputationState:
        return self._state

    @property
    def root(self) -> Root | None:
        return self._root

    @property
    def pending(self) -> EffectRequest | None:
        """The request the computation is suspended on, if any."""

        return self._pending

    @property
    def done(self) -> bool:
        return self._state in _TERMINAL

    @property
    def result(self) -> T:
        if self._state is not ComputationState.COMPLETED:
            raise InvalidResumeError(
                f"Computation {self.name!r} has no result (state: {self._state.value})"
            )
        return cast(T, self._result)

    def advance(self, reply: Reply[Any] | Any = _NO_REPLY) -> Step:
        """Run until the next suspension or until completion.

        Without ``reply`` this starts the computation, or resumes it with the
        reply already placed in the pending request. With ``reply`` the
        pending request is filled first; ``advance(None)`` replies with unit.
        """

        if self._advancing:
            raise InvalidResumeError(
                f"Computation {self.name!r} is already being advanced; "
                "reentrant or concurrent advance() is not supported"
            )
        self._advancing = True
        try:
            return self._advance(reply)
        finally:
            self._advancing = False

    def _advance(self, reply: Any) -> Step:
        state = self._state

        if state is ComputationState.PENDING:
            if reply is not _NO_REPLY:
                raise InvalidResumeError(
                    f"Computation {self.name!r} has not started; no suspension is pending"
                )
            self._gen = _to_generator(self._program)
            self._program = None
            return self._run(None)

        if state is ComputationState.SUSPENDED:
            request = cast(EffectRequest, self._pending)
            try:
                if reply is not _NO_REPLY:
                    request.respond(reply)
                value = request._take_reply()
            except EffectRuntimeError:
                self._abort()
                raise
            self._pending = None
            return self._run(value)

        if state is ComputationState.COMPLETED and reply is not _NO_REPLY:
            raise DoubleResumeError(
                f"Computation {self.name!r} already completed; no suspension is pending"
            )
        raise InvalidResumeError(f"Computation {self.name!r} cannot be advanced (state: {state.value})")

    def _run(self, value: Any) -> Step:
        gen = cast(Generator[Any, Any, T], self._gen)
        self._state = ComputationState.RUNNING
        try:
            yielded = gen.send(value)
        except StopIteration as stop:
            self._gen = None
            self._result = stop.value
            self._state = ComputationState.COMPLETED
            return Completed(stop.value)
        except BaseException:
            self._gen = None
            self._state = ComputationState.FAILED
            raise

        try:
            request = self._make_request(yielded)
        except (EffectRuntimeError, TypeError):
            self._abort()
            raise

        self._pending = request
        self._state = ComputationState.SUSPENDED
        logger.debug("%s suspended on %s", self.name, request.operation.qualified_name)
        return Suspended(request)

    def _make_request(self, yielded: Any) -> EffectRequest:
        if isinstance(yielded, Perform):
            operation, expected = yielded.operation, yielded.expect
        elif isinstance(yielded, Operation):
            operation, expected = yielded, yielded.returns
        else:
            hint = ""
            if isinstance(yielded, (Computation, GeneratorABC)):
                hint = " (use `yield from` to run a nested computation inline)"
            raise TypeError(
                f"Computation {self.name!r} yielded {type(yielded).__name__}; "
                f"effectful code must yield operations{hint}"
            )
        variant = self._root.inject(operation) if self._root is not None else None
        return EffectRequest(operation, expected, variant)

    def _abort(self) -> None:
        self._pending = None
        self._state = ComputationState.FAILED
        gen, self._gen = self._gen, None
        if gen is None:
            return
        try:
            gen.close()
        except Exception:
            logger.warning("Error while closing aborted computation %r", self.name, exc_info=True)

    def close(self) -> None:
        """Discard the computation, releasing its suspended frame.

        ``finally`` blocks and context managers inside the body run now. Closing
        a finished computation does nothing.
        """

        if self._state is ComputationState.RUNNING:
            raise InvalidResumeError(f"Computation {self.name!r} cannot close itself while running")
        if self._state in _TERMINAL:
            return
        gen, self._gen = self._gen, None
        self._pending = None
        self._program = None
        self._state = ComputationState.CLOSED
        if gen is not None:
            gen.close()

    def __enter__(self) -> Computation[T]:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __iter__(self) -> Generator[Any, Any, T]:
        """Inline this computation into another with ``yield from``."""

        if self._state is not ComputationState.PENDING:
            raise InvalidResumeError(
                f"Only an unstarted computation can be inlined (state: {self._state.value})"
            )
        gen = _to_generator(self._program)
        self._program = None
        self._state = ComputationState.DELEGATED
        return gen

    def handle(self, handler: Any) -> Handled[T]:
        """Start a handler chain: ``comp.handle(a).handle(b).run()``."""

        from algae.driver import Handled

        return Handled(self).handle(handler)

    def handle_all(self, handlers: Iterable[Any]) -> Handled[T]:
        from algae.driver import Handled

        return Handled(self).handle_all(handlers)

    def begin_chain(self) -> Handled[T]:
        from algae.driver import Handled

        return Handled(self)

    def __repr__(self) -> str:
        return f"Computation({self.name!r}, state={self._state.value})"


__all__ = [
    "Completed",
    "Computation",
    "ComputationState",
    "EffectGenerator",
    "Step",
    "Suspended",
]

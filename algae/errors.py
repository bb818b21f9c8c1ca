"""Runtime errors raised by the algae effect engine.

Every error here is fatal to the run that triggers it. The engine never
retries or swallows them; domain failures belong in an operation's declared
result type instead.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from algae.operations import Operation


def _describe(operation: Any) -> str:
    qualified = getattr(operation, "qualified_name", None)
    if qualified is not None:
        return qualified
    return type(operation).__name__


class EffectRuntimeError(RuntimeError):
    """Base class for every error raised by the engine itself."""


class TypeMismatchError(EffectRuntimeError):
    """A reply's type tag does not match the type expected at the suspension point."""

    def __init__(self, operation: Operation | None, expected: str, actual: str) -> None:
        self.operation = operation
        self.expected = expected
        self.actual = actual
        where = f" for {_describe(operation)}" if operation is not None else ""
        super().__init__(
            f"Type mismatch{where}: expected {expected}, got {actual}\n"
            "Hint: the handler returned a value that does not match the "
            "operation's declared result type"
        )


class InvalidResumeError(EffectRuntimeError):
    """A computation was advanced in a state that does not allow it."""


class DoubleResumeError(InvalidResumeError):
    """A suspension was resumed (or its reply slot filled) more than once."""


class UnfilledReplyError(EffectRuntimeError):
    """Resumption was attempted before the request's reply slot was filled."""

    def __init__(self, operation: Operation) -> None:
        self.operation = operation
        super().__init__(f"Reply slot for {_describe(operation)} was never filled")


class ReplyConsumedError(EffectRuntimeError):
    """A reply carrier was read a second time."""


class UnhandledOperationError(EffectRuntimeError):
    """No handler covers the operation."""

    def __init__(self, operation: Any, detail: str | None = None) -> None:
        self.operation = operation
        message = f"No handler for {_describe(operation)}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class IncompleteHandlerError(UnhandledOperationError):
    """A composed handler does not cover every variant of its root (definition time)."""

    def __init__(self, root_name: str, missing: Iterable[str]) -> None:
        self.operation = None
        self.root_name = root_name
        self.missing = tuple(sorted(missing))
        EffectRuntimeError.__init__(
            self,
            f"Handler for root {root_name!r} does not cover: {', '.join(self.missing)}",
        )


class DuplicateRootDefinitionError(EffectRuntimeError):
    """Two roots (or two families inside one root) share a declared name."""

    def __init__(self, name: str, detail: str | None = None) -> None:
        self.name = name
        message = f"Duplicate definition of {name!r}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class RegistrySealedError(EffectRuntimeError):
    """A root was declared after its registry was sealed."""


class StepLimitExceededError(EffectRuntimeError):
    """The driver handled more suspensions than its configured ``max_steps``."""

    def __init__(self, max_steps: int) -> None:
        self.max_steps = max_steps
        super().__init__(f"Computation exceeded max_steps={max_steps}")


__all__ = [
    "DoubleResumeError",
    "DuplicateRootDefinitionError",
    "EffectRuntimeError",
    "IncompleteHandlerError",
    "InvalidResumeError",
    "RegistrySealedError",
    "ReplyConsumedError",
    "StepLimitExceededError",
    "TypeMismatchError",
    "UnfilledReplyError",
    "UnhandledOperationError",
]

"""Effect requests: an operation paired with a fillable reply slot."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from algae.errors import DoubleResumeError, UnfilledReplyError
from algae.operations import Operation
from algae.reply import Reply, type_name

if TYPE_CHECKING:
    from algae.root import Variant


class EffectRequest:
    """A suspended computation's request for a reply.

    The reply slot is filled at most once, and the computation resumes at most
    once per request.

    Attributes:
        operation: The operation being performed.
        expected: The result type the suspension point expects.
        variant: The operation wrapped into the computation's root, if any.
    """

    __slots__ = ("operation", "expected", "variant", "_reply", "_resumed")

    def __init__(self, operation: Operation, expected: Any, variant: Variant | None = None) -> None:
        self.operation = operation
        self.expected = expected
        self.variant = variant
        self._reply: Reply[Any] | None = None
        self._resumed = False

    @property
    def filled(self) -> bool:
        return self._reply is not None

    @property
    def resumed(self) -> bool:
        return self._resumed

    @property
    def reply(self) -> Reply[Any] | None:
        return self._reply

    def fill(self, reply: Reply[Any]) -> None:
        if not isinstance(reply, Reply):
            raise TypeError(f"fill() needs a Reply, got {type(reply).__name__}")
        if self._resumed:
            raise DoubleResumeError(
                f"Request for {self.operation.qualified_name} was already resumed"
            )
        if self._reply is not None:
            raise DoubleResumeError(
                f"Reply slot for {self.operation.qualified_name} is already filled"
            )
        self._reply = reply

    def respond(self, value: Any) -> None:
        """Box ``value`` in a :class:`Reply` and fill the slot with it."""

        self.fill(value if isinstance(value, Reply) else Reply.of(value))

    def _take_reply(self) -> Any:
        if self._resumed:
            raise DoubleResumeError(
                f"Request for {self.operation.qualified_name} was already resumed"
            )
        if self._reply is None:
            raise UnfilledReplyError(self.operation)
        self._resumed = True
        return self._reply.take(self.expected, self.operation)

    def __repr__(self) -> str:
        state = "resumed" if self._resumed else ("filled" if self.filled else "pending")
        return (
            f"EffectRequest({self.operation!r}, expected={type_name(self.expected)}, {state})"
        )


__all__ = ["EffectRequest"]

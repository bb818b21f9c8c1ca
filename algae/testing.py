"""Deterministic handlers for tests."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from algae.handlers import PASS
from algae.operations import Operation


class _Script:
    __slots__ = ("values",)

    def __init__(self, values: list[Any]) -> None:
        self.values = deque(values)


def sequence(*values: Any) -> _Script:
    """Reply with ``values`` in order, one per call; running out is an error."""

    return _Script(list(values))


@dataclass
class MockHandler:
    """Scripted handler that records every operation it answers.

    ``responses`` maps an operation class (or a whole family) to one of:

    * a plain value, returned on every call;
    * :func:`sequence` of values, consumed one per call;
    * a callable taking the operation.

    Usage:
        mock = MockHandler({Print: None, ReadLine: sequence("Alice", "Bob")})
        greet().handle(mock).run()
        assert mock.calls == [Print("What's your name?"), ReadLine()]

    With ``strict=False`` unknown operations are declined with ``PASS``;
    otherwise they raise ``LookupError``.
    """

    responses: Mapping[type[Operation], Any] = field(default_factory=dict)
    strict: bool = True
    calls: list[Operation] = field(default_factory=list)

    def handle(self, operation: Operation) -> Any:
        response = self._lookup(operation)
        if response is PASS:
            if self.strict:
                raise LookupError(f"MockHandler has no response for {operation.qualified_name}")
            return PASS

        self.calls.append(operation)
        if isinstance(response, _Script):
            if not response.values:
                raise LookupError(
                    f"MockHandler ran out of scripted responses for {operation.qualified_name}"
                )
            return response.values.popleft()
        if callable(response) and not isinstance(response, type):
            return response(operation)
        return response

    def _lookup(self, operation: Operation) -> Any:
        for klass in type(operation).__mro__:
            if klass in self.responses:
                return self.responses[klass]
        return PASS

    def calls_of(self, op_type: type[Operation]) -> list[Operation]:
        return [call for call in self.calls if isinstance(call, op_type)]

    def reset(self) -> None:
        self.calls.clear()


def recording(func: Callable[[Operation], Any]) -> MockHandler:
    """A non-strict mock answering every operation with ``func``."""

    return MockHandler({Operation: func}, strict=False)


__all__ = ["MockHandler", "recording", "sequence"]

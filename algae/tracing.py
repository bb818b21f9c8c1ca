"""Handler wrapper that records and logs every operation it answers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from loguru import logger as loguru_logger

from algae.handlers import PASS, Handler, as_handler
from algae.operations import Operation
from algae.reply import Reply

loguru_logger = loguru_logger.bind(component="algae.trace")


@dataclass(frozen=True)
class TraceEntry:
    step: int
    operation: Operation
    handled: bool
    value: Any = None


class TracingHandler:
    """Wrap ``inner`` and keep a trace of the operations it sees.

    Declined operations are traced too (``handled=False``), which makes the
    wrapper useful inside a :class:`~algae.handlers.HandlerChain` to see which
    link answered what.
    """

    def __init__(self, inner: Any, *, label: str | None = None) -> None:
        self.inner: Handler = as_handler(inner)
        self.label = label or type(self.inner).__name__
        self.entries: list[TraceEntry] = []

    def handle(self, operation: Operation) -> Any:
        answer = self.inner.handle(operation)
        step = len(self.entries) + 1
        if answer is PASS:
            self.entries.append(TraceEntry(step, operation, handled=False))
            loguru_logger.debug(
                "[{}] #{} {} declined", self.label, step, operation.qualified_name
            )
            return answer

        shown = answer
        if isinstance(answer, Reply):
            shown = f"<reply {answer.type_tag.__name__}>"
        self.entries.append(TraceEntry(step, operation, handled=True, value=shown))
        loguru_logger.debug(
            "[{}] #{} {} -> {!r}", self.label, step, operation.qualified_name, shown
        )
        return answer

    @property
    def operations(self) -> list[Operation]:
        return [entry.operation for entry in self.entries if entry.handled]

    def clear(self) -> None:
        self.entries.clear()


__all__ = ["TraceEntry", "TracingHandler"]

"""
The synchronous run loop.

:func:`drive` advances a computation, hands each suspended request to the
handler, boxes the answer in a reply and resumes, until the computation
completes. The loop never recurses, so the driving stack stays flat however
many operations a computation performs.

The loop blocks while a handler blocks and imposes no timeout; callers that
need a deadline enforce it around :func:`drive`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Generic, TypeVar, cast

from algae.result import Err, Ok, Result
from algae.computation import Completed, Computation, Suspended
from algae.config import DEFAULT_CONFIG, DriveConfig
from algae.errors import StepLimitExceededError, UnhandledOperationError
from algae.handlers import PASS, HandlerChain, as_handler

T = TypeVar("T")

logger = logging.getLogger(__name__)


def drive(
    computation: Computation[T],
    handler: Any,
    *,
    config: DriveConfig | None = None,
) -> T:
    """Run ``computation`` to completion, answering its operations with ``handler``.

    The handler is invoked exactly once per suspension and never after the
    computation completes. If anything fails (an engine error, a handler
    exception, an operation nobody handles) the computation is closed before
    the error propagates.

    Args:
        computation: The computation to run. It must not have been started.
        handler: Object with ``handle(operation)`` or a callable.
        config: Optional :class:`~algae.config.DriveConfig`.

    Returns:
        The computation's final result.
    """

    config = config or DEFAULT_CONFIG
    resolved = as_handler(handler)
    steps = 0

    try:
        step = computation.advance()
        while isinstance(step, Suspended):
            if config.max_steps is not None and steps >= config.max_steps:
                raise StepLimitExceededError(config.max_steps)
            steps += 1

            request = step.request
            answer = resolved.handle(request.operation)
            if answer is PASS:
                raise UnhandledOperationError(request.operation)
            if config.log_effects:
                logger.debug("effect: %r -> %r", request.operation, answer)

            request.respond(answer)
            step = computation.advance()
    except BaseException:
        computation.close()
        raise

    return cast(Completed[T], step).value


def run_checked(
    computation: Computation[T],
    handler: Any,
    *,
    config: DriveConfig | None = None,
) -> Result[T]:
    """Like :func:`drive`, but report an unhandled operation as ``Err``.

    Every other error still propagates.
    """

    try:
        return Ok(drive(computation, handler, config=config))
    except UnhandledOperationError as exc:
        logger.debug("run_checked: %s", exc)
        return Err(exc)


class Handled(Generic[T]):
    """A computation with a chain of handlers attached.

    Usage:
        result = (
            greet()
            .handle(ConsoleHandler())
            .handle(LoggerHandler())
            .run_checked()
        )
    """

    def __init__(self, computation: Computation[T]) -> None:
        self.computation = computation
        self.chain = HandlerChain()

    def handle(self, handler: Any) -> Handled[T]:
        self.chain.push(handler)
        return self

    def handle_all(self, handlers: Iterable[Any]) -> Handled[T]:
        self.chain.extend(handlers)
        return self

    def run(self, *, config: DriveConfig | None = None) -> T:
        return drive(self.computation, self.chain, config=config)

    def run_checked(self, *, config: DriveConfig | None = None) -> Result[T]:
        return run_checked(self.computation, self.chain, config=config)


__all__ = ["Handled", "drive", "run_checked"]

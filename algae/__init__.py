"""
algae - one-shot algebraic effects for Python.

Computations describe side effects as operations, suspend at each one, and
resume exactly once with a handler's typed reply. Handlers decide what the
operations actually do, so the same computation runs against real I/O or
against deterministic test doubles.

Example:
    >>> from dataclasses import dataclass
    >>> from algae import Family, effectful, drive
    >>>
    >>> class Console(Family):
    ...     pass
    >>>
    >>> @dataclass(frozen=True)
    ... class Print(Console, returns=None):
    ...     message: str
    >>>
    >>> @dataclass(frozen=True)
    ... class ReadLine(Console, returns=str):
    ...     pass
    >>>
    >>> @effectful
    ... def greet():
    ...     yield Print("What's your name?")
    ...     name = yield ReadLine()
    ...     return f"Hello, {name}!"
    >>>
    >>> def console(op):
    ...     return "Alice" if isinstance(op, ReadLine) else None
    >>>
    >>> drive(greet(), console)
    'Hello, Alice!'
"""

from algae.result import Err, Ok, Result
from algae.computation import (
    Completed,
    Computation,
    ComputationState,
    EffectGenerator,
    Step,
    Suspended,
)
from algae.config import DriveConfig
from algae.driver import Handled, drive, run_checked
from algae.effectful import EffectfulFunction, effectful
from algae.errors import (
    DoubleResumeError,
    DuplicateRootDefinitionError,
    EffectRuntimeError,
    IncompleteHandlerError,
    InvalidResumeError,
    RegistrySealedError,
    ReplyConsumedError,
    StepLimitExceededError,
    TypeMismatchError,
    UnfilledReplyError,
    UnhandledOperationError,
)
from algae.handlers import (
    PASS,
    FamilyRouter,
    FunctionHandler,
    Handler,
    HandlerChain,
    MatchHandler,
    as_handler,
)
from algae.operations import Family, Operation, Perform, family, perform
from algae.reply import Reply, type_name
from algae.request import EffectRequest
from algae.root import Root, RootRegistry, Variant

__all__ = [
    # Operations
    "Family",
    "Operation",
    "Perform",
    "family",
    "perform",
    # Engine
    "Completed",
    "Computation",
    "ComputationState",
    "EffectGenerator",
    "EffectRequest",
    "Reply",
    "Step",
    "Suspended",
    "effectful",
    "EffectfulFunction",
    "type_name",
    # Handlers and driving
    "PASS",
    "DriveConfig",
    "FamilyRouter",
    "FunctionHandler",
    "Handled",
    "Handler",
    "HandlerChain",
    "MatchHandler",
    "as_handler",
    "drive",
    "run_checked",
    # Roots
    "Root",
    "RootRegistry",
    "Variant",
    # Results
    "Err",
    "Ok",
    "Result",
    # Errors
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

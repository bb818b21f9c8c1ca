"""
Operation and effect-family declarations.

An *operation* describes a side-effecting action without implementing it.
Operations are grouped into *families*; each family contributes one variant
tag when it is placed into a root (see :mod:`algae.root`).

Example:
    >>> from dataclasses import dataclass
    >>> from algae import Family
    >>>
    >>> class Console(Family):
    ...     '''Terminal input/output.'''
    >>>
    >>> @dataclass(frozen=True)
    ... class Print(Console, returns=None):
    ...     message: str
    >>>
    >>> @dataclass(frozen=True)
    ... class ReadLine(Console, returns=str):
    ...     pass
"""

from __future__ import annotations

import dataclasses
import sys
from dataclasses import dataclass
from typing import Any, ClassVar

from frozendict import frozendict

_UNSET: Any = object()
NoneType = type(None)


def normalize_type(tp: Any) -> Any:
    """Treat ``None`` as the unit type, the way annotations do."""

    return NoneType if tp is None else tp


def _family_of(cls: type) -> type[Family] | None:
    for klass in cls.__mro__[1:]:
        if klass.__dict__.get("_family_marker", False):
            return None
        if "family_name" in klass.__dict__ and issubclass(klass, Family):
            return klass  # type: ignore[return-value]
    return None


class Operation:
    """Base class for every operation.

    Concrete operations are frozen dataclasses whose fields form the payload.
    The declared result type lives on the class as ``returns``; it is the type
    the engine expects the handler's reply to carry.
    """

    __slots__ = ()

    family_name: ClassVar[str]
    action_name: ClassVar[str]
    returns: ClassVar[Any]

    def __init_subclass__(cls, *, returns: Any = _UNSET, name: str | None = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)

        if cls.__dict__.get("_family_marker", False):
            return

        if any(base.__dict__.get("_family_marker", False) for base in cls.__bases__):
            if returns is not _UNSET:
                raise TypeError(f"Family {cls.__name__} cannot declare a result type")
            cls.family_name = name or cls.__name__
            cls._operations = {}
            return

        family = _family_of(cls)
        if family is None:
            raise TypeError(
                f"Operation {cls.__name__} must subclass an effect family, "
                "e.g. `class Console(Family): ...`"
            )

        if returns is _UNSET:
            returns = cls.__dict__.get("returns", _UNSET)
        if returns is _UNSET:
            inherited = getattr(cls, "returns", _UNSET)
            if inherited is _UNSET or "action_name" not in dir(cls):
                raise TypeError(
                    f"Operation {family.family_name}.{cls.__name__} must declare its "
                    f"result type, e.g. `class {cls.__name__}({family.__name__}, returns=str)`"
                )
            returns = inherited

        cls.returns = normalize_type(returns)
        cls.action_name = name or cls.__name__

        registered = family._operations.get(cls.action_name)
        if registered is not None and not _same_declaration(registered, cls):
            raise TypeError(
                f"Family {family.family_name!r} already declares an operation "
                f"named {cls.action_name!r}"
            )
        family._operations[cls.action_name] = cls

    def __new__(cls, *args: Any, **kwargs: Any) -> Operation:
        if cls.__dict__.get("_family_marker", False) or "_operations" in cls.__dict__:
            raise TypeError(f"{cls.__name__} is an effect family, not an operation")
        return super().__new__(cls)

    @property
    def qualified_name(self) -> str:
        return f"{self.family_name}.{self.action_name}"

    @property
    def payload(self) -> Any:
        """The operation's payload: ``None``, the single field value, or a tuple."""

        if not dataclasses.is_dataclass(self):
            return None
        values = tuple(getattr(self, f.name) for f in dataclasses.fields(self))
        if not values:
            return None
        if len(values) == 1:
            return values[0]
        return values


def _same_declaration(a: type, b: type) -> bool:
    # dataclass(slots=True) re-creates the class under the same name
    return a.__module__ == b.__module__ and a.__qualname__ == b.__qualname__


class Family(Operation):
    """Marker base for effect families.

    Subclass it once per family; subclass the family once per operation.
    Pass ``name=`` to use a tag other than the class name.
    """

    _family_marker: ClassVar[bool] = True
    _operations: ClassVar[dict[str, type[Operation]]]

    @classmethod
    def operations(cls) -> frozendict[str, type[Operation]]:
        """Operations declared so far, keyed by action name."""

        return frozendict(cls._operations)


def family(family_name: str, /, **actions: tuple[Any, Any]) -> type[Family]:
    """Declare a family and its operations in one call.

    Each keyword maps an action name to ``(payload_type, result_type)``. A
    payload type of ``None`` declares an operation without payload; otherwise
    the payload is stored in a ``value`` field.

    Example:
        >>> Math = family("Math", Add=(tuple[int, int], int), Reset=(None, None))
        >>> Math.Add((1, 2)).payload
        (1, 2)
    """

    module = sys._getframe(1).f_globals.get("__name__", __name__)
    fam = type(family_name, (Family,), {"__module__": module, "__qualname__": family_name})

    for action, declaration in actions.items():
        try:
            payload_type, result_type = declaration
        except (TypeError, ValueError):
            raise TypeError(
                f"{family_name}.{action} must be declared as (payload_type, result_type), "
                f"got {declaration!r}"
            ) from None
        fields = [] if payload_type is None else [("value", payload_type)]
        op_cls = dataclasses.make_dataclass(
            action,
            fields,
            bases=(fam,),
            namespace={
                "returns": result_type,
                "__module__": module,
                "__qualname__": f"{family_name}.{action}",
            },
            frozen=True,
        )
        op_cls.__module__ = module
        setattr(fam, action, op_cls)

    return fam


@dataclass(frozen=True)
class Perform:
    """An operation performed with an explicit call-site result type."""

    operation: Operation
    expect: Any


def perform(operation: Operation, expect: Any = _UNSET) -> Perform:
    """Perform ``operation`` expecting ``expect`` instead of its declared type.

    Usage:
        count = yield perform(Counter.Get(), int)
    """

    if not isinstance(operation, Operation):
        raise TypeError(f"perform() needs an Operation, got {type(operation).__name__}")
    if expect is _UNSET:
        expect = operation.returns
    return Perform(operation=operation, expect=normalize_type(expect))


__all__ = [
    "Family",
    "NoneType",
    "Operation",
    "Perform",
    "family",
    "normalize_type",
    "perform",
]

"""
Type-erased reply carrier.

Handlers answer every operation through one uniform signature, so the value
they produce travels as a :class:`Reply` that remembers the value's concrete
type. The computation checks that tag against the type expected at the
suspension point when it extracts the value.
"""

from __future__ import annotations

import types
from typing import Any, Generic, TypeVar, Union, get_args, get_origin

from beartype.door import is_bearable

from algae.errors import ReplyConsumedError, TypeMismatchError
from algae.operations import NoneType, Operation, normalize_type

T = TypeVar("T")

_UNION_ORIGINS: tuple[Any, ...] = (Union, types.UnionType)


def type_name(tp: Any) -> str:
    """Readable identifier for a type or typing construct."""

    tp = normalize_type(tp)
    if tp is NoneType:
        return "None"
    if isinstance(tp, type) and get_origin(tp) is None:
        if tp.__module__ == "builtins":
            return tp.__qualname__
        return f"{tp.__module__}.{tp.__qualname__}"
    return repr(tp).replace("typing.", "")


def type_matches(type_tag: type, value: Any, expected: Any) -> bool:
    """Return ``True`` when a reply tagged ``type_tag`` satisfies ``expected``.

    Plain classes compare against the tag: the tag must be the expected class
    or a nominal subclass of it, except that ``bool`` never stands in for
    ``int``. Unions match when any member matches. Any other typing construct
    (``list[int]``, ``Literal[...]``, ...) is checked against the value itself.
    """

    expected = normalize_type(expected)
    if expected is Any or expected is object:
        return True

    origin = get_origin(expected)
    if origin in _UNION_ORIGINS:
        return any(type_matches(type_tag, value, member) for member in get_args(expected))

    if origin is None and isinstance(expected, type):
        if type_tag is expected:
            return True
        if type_tag is bool and expected is int:
            return False
        try:
            return issubclass(type_tag, expected)
        except TypeError:
            # non-method protocols refuse issubclass(); fall through to the value check
            pass

    return is_bearable(value, expected)


class Reply(Generic[T]):
    """A handler's answer plus the runtime type it was produced with.

    A reply is consumed by the first successful :meth:`take`; reading it
    again raises :class:`~algae.errors.ReplyConsumedError`.
    """

    __slots__ = ("_value", "_type_tag", "_consumed")

    def __init__(self, value: T) -> None:
        self._value: T | None = value
        self._type_tag: type = type(value)
        self._consumed = False

    @classmethod
    def of(cls, value: T) -> Reply[T]:
        return cls(value)

    @classmethod
    def unit(cls) -> Reply[None]:
        return cls(None)

    @property
    def type_tag(self) -> type:
        return self._type_tag

    @property
    def consumed(self) -> bool:
        return self._consumed

    def matches(self, expected: Any) -> bool:
        if self._consumed:
            return False
        return type_matches(self._type_tag, self._value, expected)

    def take(self, expected: Any = Any, operation: Operation | None = None) -> T:
        """Extract the value, checking it against ``expected``."""

        if self._consumed:
            what = f" for {operation.qualified_name}" if operation is not None else ""
            raise ReplyConsumedError(f"Reply{what} was already consumed")
        if not type_matches(self._type_tag, self._value, expected):
            raise TypeMismatchError(operation, type_name(expected), type_name(self._type_tag))
        value = self._value
        self._value = None
        self._consumed = True
        return value  # type: ignore[return-value]

    def __repr__(self) -> str:
        if self._consumed:
            return f"Reply(<consumed {type_name(self._type_tag)}>)"
        return f"Reply({self._value!r}: {type_name(self._type_tag)})"


__all__ = ["Reply", "type_matches", "type_name"]

"""``Ok``/``Err`` outcome of :func:`algae.driver.run_checked`."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class Result(Generic[T]):
    __slots__ = ()

    def is_ok(self) -> bool:
        return isinstance(self, Ok)

    def is_err(self) -> bool:
        return isinstance(self, Err)

    def err(self) -> Exception | None:
        return self.error if isinstance(self, Err) else None

    def unwrap(self) -> T:
        """The run's value; re-raises the error of an ``Err``."""

        if isinstance(self, Err):
            raise self.error
        return self.value  # type: ignore[attr-defined]

    def unwrap_or(self, default: U) -> T | U:
        return self.value if isinstance(self, Ok) else default


@dataclass(frozen=True)
class Ok(Result[T]):
    value: T


@dataclass(frozen=True)
class Err(Result[T]):
    error: Exception


__all__ = ["Err", "Ok", "Result"]

"""Typed success-or-failure value returned by planners and services."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")


@dataclass(frozen=True)
class Result(Generic[T, E]):
    """Carries either a value or an error, never both."""

    _value: Optional[T] = None
    _error: Optional[E] = None
    ok: bool = True

    @classmethod
    def success(cls, value: T) -> "Result[T, E]":
        return cls(_value=value, ok=True)

    @classmethod
    def failure(cls, error: E) -> "Result[T, E]":
        return cls(_error=error, ok=False)

    @property
    def is_success(self) -> bool:
        return self.ok

    @property
    def is_failure(self) -> bool:
        return not self.ok

    @property
    def value(self) -> T:
        if not self.ok:
            raise ValueError("Result is a failure and carries no value")
        return self._value  # type: ignore[return-value]

    @property
    def error(self) -> E:
        if self.ok:
            raise ValueError("Result is a success and carries no error")
        return self._error  # type: ignore[return-value]

    def map(self, fn: Callable[[T], U]) -> "Result[U, E]":
        if self.ok:
            return Result.success(fn(self.value))
        return Result.failure(self.error)

    def map_error(self, fn: Callable[[E], U]) -> "Result[T, U]":
        if self.ok:
            return Result.success(self.value)
        return Result.failure(fn(self.error))

    def if_success(self, fn: Callable[[T], None]) -> "Result[T, E]":
        if self.ok:
            fn(self.value)
        return self

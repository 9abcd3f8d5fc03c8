"""Success/failure values returned across the facade boundary.

Facade operations never raise for network or protocol problems; they
return a ``Result`` so callers can chain handlers without try/except::

    (await subsonic.get_starred2()).on_success(store_starred).on_failure(log_error)
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from .exceptions import NotInitializedError, is_unsupported_endpoint

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or the exception that prevented producing it."""

    value: Optional[T] = None
    error: Optional[BaseException] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: BaseException) -> "Result[T]":
        return cls(error=error)

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @property
    def is_not_initialized(self) -> bool:
        return isinstance(self.error, NotInitializedError)

    @property
    def is_unsupported_endpoint(self) -> bool:
        return is_unsupported_endpoint(self.error)

    def get_or_none(self) -> Optional[T]:
        return self.value if self.is_success else None

    def get_or_raise(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value

    def map(self, fn: Callable[[T], R]) -> "Result[R]":
        if self.error is not None:
            return Result.failure(self.error)
        try:
            return Result.success(fn(self.value))
        except Exception as e:
            return Result.failure(e)

    def on_success(self, fn: Callable[[T], Any]) -> "Result[T]":
        if self.error is None:
            fn(self.value)
        return self

    def on_failure(self, fn: Callable[[BaseException], Any]) -> "Result[T]":
        if self.error is not None:
            fn(self.error)
        return self

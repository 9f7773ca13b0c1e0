"""Tagged results for the recoverable primary/fallback paths."""

from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from .exceptions import OperationCancelledError

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either a value (``ok``) or the error that prevented one."""

    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: BaseException) -> "Outcome[T]":
        return cls(error=error)


def attempt(fn: Callable[..., T], *args: Any, **kwargs: Any) -> Outcome[T]:
    """Run ``fn`` and capture any failure as an Outcome.

    Cancellation is not a recoverable failure and is re-raised.
    """
    try:
        return Outcome.success(fn(*args, **kwargs))
    except OperationCancelledError:
        raise
    except Exception as e:
        return Outcome.failure(e)


def with_fallback(primary: Callable[[], Outcome[T]], fallback: Callable[[BaseException], T]) -> T:
    """Run ``primary``; on error, return ``fallback(error)``, which must not fail."""
    outcome = primary()
    if outcome.ok:
        return outcome.value
    return fallback(outcome.error)

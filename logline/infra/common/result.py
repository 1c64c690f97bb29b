"""Result type for steps that must report failure instead of raising.

Used at the edge of the logging pipeline, where an exception would reach the
request it is observing.

Usage:
    result = Result.attempt(json.dumps, record)

    if result.success:
        emit(result.data)
    else:
        emit(f"Could not format: {record!r}")
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an operation that may fail.

    Attributes:
        success: Whether the operation succeeded
        data: The result data (None on failure)
        error: Error message (None on success)
        error_type: Name of the exception class that caused the failure
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_type: str | None = None

    @classmethod
    def ok(cls, data: T) -> Result[T]:
        """Create a successful result.

        Args:
            data: The result data

        Returns:
            Result with success=True
        """
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, error_type: str | None = None) -> Result[T]:
        """Create a failure result.

        Args:
            error: Human-readable error message
            error_type: Exception class name, if the failure came from one

        Returns:
            Result with success=False
        """
        return cls(success=False, error=error, error_type=error_type)

    @classmethod
    def attempt(
        cls,
        func: Callable[..., T],
        *args: Any,
        catch: tuple[type[Exception], ...] = (TypeError, ValueError),
        **kwargs: Any,
    ) -> Result[T]:
        """Call ``func`` and capture the listed exceptions as a failure.

        Args:
            func: Callable to invoke
            *args: Positional arguments for func
            catch: Exception types turned into a failed result
            **kwargs: Keyword arguments for func

        Returns:
            Result holding the return value, or the captured error
        """
        try:
            return cls.ok(func(*args, **kwargs))
        except catch as exc:
            return cls.fail(error=str(exc), error_type=type(exc).__name__)

    def unwrap_or(self, default: T) -> T:
        """Return the data on success, otherwise ``default``."""
        if self.success:
            return self.data  # type: ignore[return-value]
        return default

    def __bool__(self) -> bool:
        """Allow using result in boolean context."""
        return self.success

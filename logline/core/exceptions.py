"""Custom exception classes for the request logger."""

from __future__ import annotations

from typing import Any


class LoglineError(Exception):
    """Base exception for the request logger.

    All custom exceptions should inherit from this class.

    Attributes:
        detail: Human-readable error message.
        extra: Additional context-specific information about the error.
    """

    def __init__(self, detail: str, extra: dict[str, Any] | None = None) -> None:
        """Initialize the exception.

        Args:
            detail: Human-readable error message.
            extra: Additional context about the error.
        """
        self.detail = detail
        self.extra = extra or {}
        super().__init__(detail)


class ConfigurationError(LoglineError):
    """Raised at setup time when request logging options are invalid.

    Configuration is validated once, before any request is served.

    Example:
        raise ConfigurationError(
            detail="Invalid request logging options",
            extra={"errors": [{"loc": ("format",), "msg": "..."}]}
        )
    """

    @classmethod
    def from_validation_error(cls, exc: Exception) -> ConfigurationError:
        """Build a configuration error from a pydantic ValidationError.

        Args:
            exc: The validation error raised by a settings model.

        Returns:
            ConfigurationError carrying the individual field errors.
        """
        errors = exc.errors() if hasattr(exc, "errors") else []
        fields = ", ".join(".".join(str(part) for part in err.get("loc", ())) for err in errors)
        detail = f"Invalid request logging options: {fields}" if fields else str(exc)
        return cls(detail=detail, extra={"errors": errors})

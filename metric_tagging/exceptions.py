"""Exception hierarchy for metric tagging.

All exceptions inherit from MetricTaggingError so callers can catch any
library error at a single point. Argument errors also inherit from the
matching builtin so idiomatic ``except TypeError`` / ``except ValueError``
handlers keep working.

Exception Hierarchy:
    MetricTaggingError (base)
    ├── NullArgumentError
    ├── InvalidArgumentError
    └── ConfigurationError
        ├── InvalidConfigValueError
        └── MissingConfigError

Example:
    >>> try:
    ...     name = TaggedName.build("requests").tagged("tenant")
    ... except InvalidArgumentError as e:
    ...     logger.error(f"Bad tag pairs: {e}")
"""

from __future__ import annotations

from typing import Any


class MetricTaggingError(Exception):
    """Base exception for all metric tagging errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
        cause: Optional original exception that caused this error.

    Example:
        >>> try:
        ...     raise MetricTaggingError("Something went wrong", details={"key": "value"})
        ... except MetricTaggingError as e:
        ...     print(f"Error: {e.message}, Details: {e.details}")
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional error context.
            cause: Optional original exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """Return string representation with details if present."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"cause={self.cause!r})"
        )

    def with_context(self, **kwargs: Any) -> MetricTaggingError:
        """Create a new exception with additional context details.

        Args:
            **kwargs: Additional context to add to details.

        Returns:
            New exception instance with merged details.
        """
        merged_details = {**self.details, **kwargs}
        return MetricTaggingError(self.message, details=merged_details, cause=self.cause)


# =============================================================================
# Argument Errors
# =============================================================================


class NullArgumentError(MetricTaggingError, TypeError):
    """Raised when a required argument is None.

    Attributes:
        argument: Name of the missing argument.
    """

    def __init__(
        self,
        argument: str,
        *,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize null argument error.

        Args:
            argument: Name of the missing argument.
            message: Optional override for the default message.
            details: Optional dictionary with additional error context.
        """
        details = details or {}
        details["argument"] = argument
        super().__init__(message or f"{argument} missing", details=details)
        self.argument = argument


class InvalidArgumentError(MetricTaggingError, ValueError):
    """Raised when an argument is present but malformed.

    Attributes:
        argument: Name of the offending argument.
        value: The rejected value, if useful for diagnosis.
    """

    def __init__(
        self,
        message: str,
        *,
        argument: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if argument:
            details["argument"] = argument
        if value is not None:
            details["value"] = value
        super().__init__(message, details=details)
        self.argument = argument
        self.value = value


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(MetricTaggingError):
    """Exception for configuration-related errors.

    Raised when there are issues with configuration values, missing required
    configuration, or invalid configuration files.

    Attributes:
        config_key: Optional key that caused the configuration error.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize configuration error.

        Args:
            message: Human-readable error description.
            config_key: Optional key that caused the configuration error.
            details: Optional dictionary with additional error context.
            cause: Optional original exception that caused this error.
        """
        details = details or {}
        if config_key:
            details["config_key"] = config_key
        super().__init__(message, details=details, cause=cause)
        self.config_key = config_key


class InvalidConfigValueError(ConfigurationError):
    """Exception for invalid configuration values.

    Attributes:
        config_key: The configuration key with invalid value.
        value: The invalid value that was provided.
        expected: Description of what was expected.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str,
        value: Any = None,
        expected: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        details = details or {}
        details["value"] = value
        if expected:
            details["expected"] = expected
        super().__init__(message, config_key=config_key, details=details, cause=cause)
        self.value = value
        self.expected = expected


class MissingConfigError(ConfigurationError):
    """Exception for missing required configuration."""

    def __init__(
        self,
        config_key: str,
        *,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        message = f"Required configuration key '{config_key}' is missing"
        super().__init__(message, config_key=config_key, details=details, cause=cause)

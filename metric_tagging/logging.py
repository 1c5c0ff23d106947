"""Logging utilities for metric tagging.

Structured logging in the same shape as the rest of the library:

- Structured fields passed as keyword arguments
- The current TagScope tags attached to every record as context
- Text and JSON formatters
- Forwarding to the standard library ``logging`` module by default, so host
  applications control output with their usual configuration

Example:
    >>> from metric_tagging.logging import get_logger, configure_logging
    >>> logger = get_logger(__name__)
    >>> logger.debug("Built metric name", name="requests[tenant:acme]")
    >>> configure_logging(level="DEBUG", format="json")
"""

from __future__ import annotations

import json
import logging
import sys
from abc import abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from metric_tagging.scope import TagScope


# =============================================================================
# Levels
# =============================================================================


class LogLevel(Enum):
    """Log severity levels, numerically equal to the stdlib levels."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50

    def to_stdlib(self) -> int:
        """Convert to stdlib logging level."""
        return self.value

    @classmethod
    def from_stdlib(cls, level: int) -> LogLevel:
        """Create from stdlib logging level."""
        for log_level in cls:
            if log_level.value == level:
                return log_level
        return cls.INFO

    @classmethod
    def from_string(cls, level: str) -> LogLevel:
        """Create from string representation."""
        try:
            return cls[level.upper()]
        except KeyError:
            return cls.INFO


# =============================================================================
# Log Record
# =============================================================================


@dataclass(slots=True)
class LogRecord:
    """Structured log record.

    Attributes:
        level: Log severity level.
        message: Log message.
        logger_name: Name of the logger.
        timestamp: When the log was created.
        context: TagScope tags of the unit that emitted the record.
        extra: Additional structured fields.
        exc_info: Exception information if any.
    """

    level: LogLevel
    message: str
    logger_name: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    context: dict[str, str] = field(default_factory=TagScope.snapshot)
    extra: dict[str, Any] = field(default_factory=dict)
    exc_info: BaseException | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {
            "level": self.level.name,
            "message": self.message,
            "logger": self.logger_name,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.context:
            result["tags"] = dict(self.context)
        result.update(self.extra)
        if self.exc_info:
            result["exception"] = str(self.exc_info)
            result["exception_type"] = type(self.exc_info).__name__
        return result


# =============================================================================
# Protocols
# =============================================================================


@runtime_checkable
class LogHandler(Protocol):
    """Protocol for log handlers."""

    @abstractmethod
    def handle(self, record: LogRecord) -> None:
        """Handle a log record."""
        ...

    @abstractmethod
    def flush(self) -> None:
        """Flush any buffered output."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the handler and release resources."""
        ...


@runtime_checkable
class LogFormatter(Protocol):
    """Protocol for log formatters."""

    @abstractmethod
    def format(self, record: LogRecord) -> str:
        """Format a log record."""
        ...


# =============================================================================
# Formatters
# =============================================================================


class TextFormatter:
    """Plain text log formatter.

    Example output:
        2024-01-15T10:30:45.123456+00:00 [INFO] metric_tagging.naming: Message | tenant=acme | name=x
    """

    def __init__(
        self,
        include_context: bool = True,
        include_extra: bool = True,
        timestamp_format: str | None = None,
    ) -> None:
        """Initialize the formatter.

        Args:
            include_context: Whether to include scope tags in output.
            include_extra: Whether to include extra fields.
            timestamp_format: Custom timestamp format (None for ISO).
        """
        self.include_context = include_context
        self.include_extra = include_extra
        self.timestamp_format = timestamp_format

    def format(self, record: LogRecord) -> str:
        if self.timestamp_format:
            timestamp = record.timestamp.strftime(self.timestamp_format)
        else:
            timestamp = record.timestamp.isoformat()

        parts = [
            timestamp,
            f"[{record.level.name}]",
            f"{record.logger_name}:",
            record.message,
        ]

        if self.include_context and record.context:
            context_str = " ".join(f"{k}={v}" for k, v in sorted(record.context.items()))
            parts.append(f"| {context_str}")

        if self.include_extra and record.extra:
            extra_str = " ".join(f"{k}={v}" for k, v in record.extra.items())
            parts.append(f"| {extra_str}")

        if record.exc_info:
            parts.append(f"| exception={record.exc_info!r}")

        return " ".join(parts)


class JSONFormatter:
    """JSON log formatter for structured logging systems."""

    def __init__(self, indent: int | None = None) -> None:
        self._indent = indent

    def format(self, record: LogRecord) -> str:
        return json.dumps(record.to_dict(), indent=self._indent, default=str)


# =============================================================================
# Handlers
# =============================================================================


class StreamHandler:
    """Handler that writes formatted records to a stream (stderr by default)."""

    def __init__(
        self,
        stream: Any = None,
        formatter: LogFormatter | None = None,
        level: LogLevel = LogLevel.DEBUG,
    ) -> None:
        """Initialize the handler.

        Args:
            stream: Output stream (default: sys.stderr).
            formatter: Log formatter to use.
            level: Minimum log level to handle.
        """
        self._stream = stream or sys.stderr
        self._formatter = formatter or TextFormatter()
        self._level = level
        self._closed = False

    def handle(self, record: LogRecord) -> None:
        if self._closed or record.level.value < self._level.value:
            return
        self._stream.write(self._formatter.format(record) + "\n")

    def flush(self) -> None:
        if not self._closed and hasattr(self._stream, "flush"):
            self._stream.flush()

    def close(self) -> None:
        self.flush()
        self._closed = True


class StdlibHandler:
    """Handler forwarding records to ``logging.getLogger(record.logger_name)``.

    Structured fields and scope tags travel in the stdlib record's ``extra``
    under ``fields`` and ``tags``.
    """

    def handle(self, record: LogRecord) -> None:
        stdlib_logger = logging.getLogger(record.logger_name)
        level = record.level.to_stdlib()
        if not stdlib_logger.isEnabledFor(level):
            return
        exc_info = None
        if record.exc_info is not None:
            exc_info = (type(record.exc_info), record.exc_info, record.exc_info.__traceback__)
        stdlib_logger.log(
            level,
            record.message,
            exc_info=exc_info,
            extra={"fields": dict(record.extra), "tags": dict(record.context)},
        )

    def flush(self) -> None:
        pass

    def close(self) -> None:
        pass


class NullHandler:
    """Handler that discards all records."""

    def handle(self, record: LogRecord) -> None:
        pass

    def flush(self) -> None:
        pass

    def close(self) -> None:
        pass


# =============================================================================
# Logger Implementation
# =============================================================================


class TaggingLogger:
    """Structured logger used throughout the library.

    Example:
        >>> logger = TaggingLogger("metric_tagging.naming")
        >>> logger.debug("Built metric name", name="requests")
    """

    def __init__(
        self,
        name: str,
        level: LogLevel = LogLevel.DEBUG,
        handlers: list[LogHandler] | None = None,
    ) -> None:
        """Initialize the logger.

        Args:
            name: Logger name (typically __name__).
            level: Minimum log level.
            handlers: Log handlers.
        """
        self.name = name
        self.level = level
        self._handlers: list[LogHandler] = handlers or []
        self._disabled = False

    @property
    def handlers(self) -> list[LogHandler]:
        return list(self._handlers)

    def add_handler(self, handler: LogHandler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def remove_handler(self, handler: LogHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def is_enabled_for(self, level: LogLevel) -> bool:
        return not self._disabled and level.value >= self.level.value

    def _log(
        self,
        level: LogLevel,
        message: str,
        exc_info: BaseException | None = None,
        **kwargs: Any,
    ) -> None:
        if not self.is_enabled_for(level):
            return

        record = LogRecord(
            level=level,
            message=message,
            logger_name=self.name,
            extra=kwargs,
            exc_info=exc_info,
        )
        for handler in self._handlers:
            handler.handle(record)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log at DEBUG level."""
        self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log at INFO level."""
        self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log at WARNING level."""
        self._log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, exc_info: BaseException | None = None, **kwargs: Any) -> None:
        """Log at ERROR level."""
        self._log(LogLevel.ERROR, message, exc_info=exc_info, **kwargs)

    def log(self, level: LogLevel, message: str, **kwargs: Any) -> None:
        """Log at arbitrary level."""
        self._log(level, message, **kwargs)


# =============================================================================
# Logger Registry
# =============================================================================


class LoggerRegistry:
    """Registry handing out one TaggingLogger per name.

    New loggers share the registry's handlers and level. Until
    ``configure`` is called, records are forwarded to stdlib logging.
    """

    def __init__(self) -> None:
        self._loggers: dict[str, TaggingLogger] = {}
        self._root_handlers: list[LogHandler] = [StdlibHandler()]
        self._root_level: LogLevel = LogLevel.DEBUG

    def get_logger(self, name: str, level: LogLevel | None = None) -> TaggingLogger:
        """Get or create a logger by name."""
        if name in self._loggers:
            return self._loggers[name]

        logger = TaggingLogger(
            name=name,
            level=level or self._root_level,
            handlers=list(self._root_handlers),
        )
        self._loggers[name] = logger
        return logger

    def configure(
        self,
        level: LogLevel = LogLevel.INFO,
        handlers: list[LogHandler] | None = None,
        format: str = "text",
    ) -> None:
        """Configure the level and handlers of every logger.

        Args:
            level: Minimum log level.
            handlers: Handlers to use. Defaults to a stderr StreamHandler.
            format: Format for the default handler ('text' or 'json').
        """
        self._root_level = level
        if handlers is not None:
            self._root_handlers = list(handlers)
        else:
            formatter: LogFormatter = JSONFormatter() if format == "json" else TextFormatter()
            self._root_handlers = [StreamHandler(formatter=formatter, level=level)]

        for logger in self._loggers.values():
            logger.level = level
            logger._handlers = list(self._root_handlers)

    def set_level(self, level: LogLevel) -> None:
        """Set the level of every existing and future logger."""
        self._root_level = level
        for logger in self._loggers.values():
            logger.level = level

    def disable(self) -> None:
        """Disable all logging."""
        for logger in self._loggers.values():
            logger._disabled = True

    def enable(self) -> None:
        """Enable all logging."""
        for logger in self._loggers.values():
            logger._disabled = False


# Global registry
_registry = LoggerRegistry()


def get_logger(name: str, level: LogLevel | None = None) -> TaggingLogger:
    """Get a logger by name.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Namer configured", prefix="billing")
    """
    return _registry.get_logger(name, level)


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    handlers: list[LogHandler] | None = None,
    format: str = "text",
) -> None:
    """Configure global logging settings.

    Example:
        >>> configure_logging(level="DEBUG", format="json")
    """
    if isinstance(level, str):
        level = LogLevel.from_string(level)
    _registry.configure(level=level, handlers=handlers, format=format)


def get_registry() -> LoggerRegistry:
    """Return the global logger registry."""
    return _registry

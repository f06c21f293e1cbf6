"""Structured logging for dbadmin components.

Classes:
    StructuredLogger: Structured logging interface with scoped context
    LogContext: Thread-local context carried into every event
    ContextFilter: Filter copying context onto stdlib log records

Example:
    >>> logger = StructuredLogger("config.store")
    >>> with logger.context(path="settings.json"):
    ...     logger.info("Configuration loaded", server_count=3)
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Generator

import structlog

from ..core.exceptions import ValidationFailedError
from ..core.utils import ValidationUtils


class LogContext:
    """Thread-local key/value context for log events.

    Example:
        >>> context = LogContext()
        >>> context.set("server_id", "3f2c")
        >>> context.get_all()
        {'server_id': '3f2c'}
    """

    def __init__(self) -> None:
        self._local = threading.local()

    def _data(self) -> Dict[str, Any]:
        if not hasattr(self._local, "context"):
            self._local.context = {}
        return self._local.context

    def set(self, key: str, value: Any) -> None:
        self._data()[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self._data().get(key, default)

    def get_all(self) -> Dict[str, Any]:
        return self._data().copy()

    def update(self, context: Dict[str, Any]) -> None:
        self._data().update(context)

    def clear(self) -> None:
        self._data().clear()


class ContextFilter(logging.Filter):
    """Logging filter that adds context information to stdlib records."""

    def __init__(self, context: LogContext) -> None:
        super().__init__()
        self._context = context

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self._context.get_all().items():
            # Never shadow LogRecord attributes
            if not hasattr(record, key):
                setattr(record, key, value)

        if not hasattr(record, "component"):
            record.component = record.name

        return True


class StructuredLogger:
    """Structured logger with scoped context.

    Every event carries the thread-local context set through ``context()``
    or ``bind()`` in addition to its own keyword data. Secrets must never be
    passed as event data; callers log ids and counts only.

    Attributes:
        name: Logger name

    Example:
        >>> logger = StructuredLogger("database.export")
        >>> with logger.context(database="shop"):
        ...     logger.warning("Table skipped", table="orders", reason="QUERY_EXECUTION_FAILED")
    """

    def __init__(self, name: str, *, level: str = "INFO") -> None:
        """Initialize structured logger.

        Args:
            name: Logger name (dotted component path)
            level: Initial log level
        """
        self.name = name
        self._logger = structlog.get_logger(name)
        self._context = LogContext()

        self._stdlib_logger = logging.getLogger(name)
        self._stdlib_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        self._stdlib_logger.addFilter(ContextFilter(self._context))

    def _prepare_event_dict(self, **kwargs: Any) -> Dict[str, Any]:
        event_dict = self._context.get_all()
        event_dict.update(kwargs)
        return event_dict

    @contextmanager
    def context(self, **context_data: Any) -> Generator[None, None, None]:
        """Temporarily add context data to every event logged in the block.

        Args:
            **context_data: Context data to add

        Example:
            >>> with logger.context(server_id="3f2c", operation="browse"):
            ...     logger.info("Rows fetched", count=100)
        """
        old_context = self._context.get_all()
        try:
            self._context.update(context_data)
            yield
        finally:
            self._context.clear()
            self._context.update(old_context)

    def bind(self, **context_data: Any) -> "StructuredLogger":
        """Create a new logger carrying the current context plus ``context_data``."""
        bound_logger = StructuredLogger(self.name, level=self.get_level())
        bound_context = self._context.get_all()
        bound_context.update(context_data)
        bound_logger._context.update(bound_context)
        return bound_logger

    def set_level(self, level: str) -> None:
        """Set logging level.

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

        Raises:
            ValidationFailedError: If the level is not a known level name
        """
        if not ValidationUtils.validate_identifier(level):
            raise ValidationFailedError(
                f"Invalid log level: {level}",
                code="INVALID_LOG_LEVEL",
            )

        log_level = getattr(logging, level.upper(), None)
        if not isinstance(log_level, int):
            raise ValidationFailedError(
                f"Unknown log level: {level}",
                code="UNKNOWN_LOG_LEVEL",
            )

        self._stdlib_logger.setLevel(log_level)

    def get_level(self) -> str:
        """Get the effective logging level name."""
        return logging.getLevelName(self._stdlib_logger.getEffectiveLevel())

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(message, **self._prepare_event_dict(**kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(message, **self._prepare_event_dict(**kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(message, **self._prepare_event_dict(**kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.error(message, **self._prepare_event_dict(**kwargs))

    def critical(self, message: str, **kwargs: Any) -> None:
        self._logger.critical(message, **self._prepare_event_dict(**kwargs))

    def exception(self, message: str, exc_info: bool = True, **kwargs: Any) -> None:
        """Log an error event with the active exception's traceback."""
        self._logger.error(message, exc_info=exc_info, **self._prepare_event_dict(**kwargs))

    def get_context(self) -> Dict[str, Any]:
        """Get current context data."""
        return self._context.get_all()

    def clear_context(self) -> None:
        self._context.clear()

    def __repr__(self) -> str:
        return f"StructuredLogger(name={self.name!r}, level={self.get_level()!r})"

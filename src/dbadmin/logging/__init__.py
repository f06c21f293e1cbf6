"""dbadmin structured logging.

structlog-backed loggers with scoped context, operation timing, and
JSON or text output to the console and a rotating file.

Example:
    >>> from dbadmin.logging import get_logger, get_performance_logger
    >>> logger = get_logger("config.store")
    >>> logger.info("Configuration saved", server_count=3)
    >>>
    >>> perf_logger = get_performance_logger("database.export")
    >>> with perf_logger.measure("export_table", table="orders"):
    ...     pass
"""

from .factory import (
    LoggerConfig,
    LoggerFactory,
    configure_logging,
    get_factory,
    get_logger,
    get_performance_logger,
    shutdown_logging,
)
from .formatters import JSONFormatter, TextFormatter, get_formatter
from .handlers import ConsoleHandler, RotatingFileHandler
from .performance import OperationStats, PerformanceLogger, TimingContext, TimingMetrics
from .structured import ContextFilter, LogContext, StructuredLogger

__all__ = [
    # Factory and configuration
    "LoggerConfig",
    "LoggerFactory",
    "configure_logging",
    "get_factory",
    "get_logger",
    "get_performance_logger",
    "shutdown_logging",

    # Formatters
    "JSONFormatter",
    "TextFormatter",
    "get_formatter",

    # Handlers
    "ConsoleHandler",
    "RotatingFileHandler",

    # Performance logging
    "PerformanceLogger",
    "OperationStats",
    "TimingContext",
    "TimingMetrics",

    # Structured logging
    "StructuredLogger",
    "LogContext",
    "ContextFilter",
]

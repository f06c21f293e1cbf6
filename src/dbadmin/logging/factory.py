"""Logger factory and configuration for dbadmin.

Classes:
    LoggerFactory: Logger creation and logging system configuration
    LoggerConfig: Settings applied by the factory

Functions:
    configure_logging: Configure the logging system globally
    get_logger: Get a structured logger from the global factory
    get_performance_logger: Get a performance logger from the global factory

Example:
    >>> from dbadmin.logging import configure_logging, get_logger
    >>> configure_logging(level="INFO", format="json")
    >>> logger = get_logger("config.store")
    >>> logger.info("Configuration loaded", server_count=3)
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog

from .formatters import get_formatter
from .handlers import ConsoleHandler, RotatingFileHandler
from .performance import PerformanceLogger
from .structured import StructuredLogger
from ..core.exceptions import ValidationFailedError

if TYPE_CHECKING:
    from ..config.models import LoggingConfig


@dataclass
class LoggerConfig:
    """Settings applied by the logger factory.

    Attributes:
        level: Log level
        format: Log format (json, text)
        console_output: Enable console output
        file_path: Log file path; file output is enabled when set
        max_file_size: Maximum file size before rotation
        backup_count: Number of rotated files to keep
    """
    level: str = "INFO"
    format: str = "json"
    console_output: bool = True
    file_path: Optional[str] = None
    max_file_size: int = 10485760
    backup_count: int = 5


class LoggerFactory:
    """Factory for creating loggers and configuring stdlib logging plus structlog.

    Attributes:
        config: Active logger configuration
        initialized: Whether the logging system has been configured

    Example:
        >>> factory = LoggerFactory()
        >>> factory.configure_from_config(settings.logging)
        >>> logger = factory.get_logger("database.gateway")
    """

    _VALID_KEYS = frozenset({"level", "format", "console_output", "file_path", "max_file_size", "backup_count"})

    def __init__(self, config: Optional[LoggerConfig] = None) -> None:
        self.config = config or LoggerConfig()
        self.initialized = False
        self._loggers: Dict[str, StructuredLogger] = {}
        self._performance_loggers: Dict[str, PerformanceLogger] = {}

    def configure_from_config(self, logging_config: "LoggingConfig") -> None:
        """Configure the factory from a ``LoggingConfig`` model.

        Args:
            logging_config: Logging section of the application settings
        """
        self.config = LoggerConfig(
            level=logging_config.level,
            format=logging_config.format,
            console_output=logging_config.console_output,
            file_path=str(logging_config.file_path) if logging_config.file_path else None,
            max_file_size=logging_config.max_file_size,
            backup_count=logging_config.backup_count,
        )
        self._configure_logging_system(force=True)

    def configure_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """Configure the factory from a dictionary; unknown keys are ignored."""
        for key, value in config_dict.items():
            if key in self._VALID_KEYS:
                setattr(self.config, key, value)
        self._configure_logging_system(force=True)

    def _configure_logging_system(self, *, force: bool = False) -> None:
        if self.initialized and not force:
            return

        self._configure_stdlib_logging()
        self._configure_structlog()
        self.initialized = True

    def _level_number(self) -> int:
        return getattr(logging, self.config.level.upper(), logging.INFO)

    def _configure_stdlib_logging(self) -> None:
        root_logger = logging.getLogger()
        root_logger.setLevel(self._level_number())
        root_logger.handlers.clear()

        if self.config.console_output:
            console_handler = ConsoleHandler()
            console_handler.setLevel(self._level_number())
            console_handler.setFormatter(get_formatter(self.config.format))
            root_logger.addHandler(console_handler)

        if self.config.file_path:
            file_handler = RotatingFileHandler(
                Path(self.config.file_path),
                maxBytes=self.config.max_file_size,
                backupCount=self.config.backup_count,
            )
            file_handler.setLevel(self._level_number())
            file_handler.setFormatter(get_formatter(self.config.format))
            root_logger.addHandler(file_handler)

    def _configure_structlog(self) -> None:
        processors = [
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
        ]

        if self.config.format.lower() == "json":
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer(colors=False))

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            context_class=dict,
            cache_logger_on_first_use=True,
        )

    def get_logger(self, name: str, *, level: Optional[str] = None) -> StructuredLogger:
        """Get or create a structured logger.

        Args:
            name: Logger name (dotted component path)
            level: Override the configured level

        Returns:
            StructuredLogger instance, cached per name and level
        """
        self._configure_logging_system()

        cache_key = f"{name}_{level}"
        if cache_key not in self._loggers:
            self._loggers[cache_key] = StructuredLogger(name, level=level or self.config.level)
        return self._loggers[cache_key]

    def get_performance_logger(self, name: str, *, auto_log: bool = True) -> PerformanceLogger:
        """Get or create a performance logger named ``perf.<name>``."""
        self._configure_logging_system()

        cache_key = f"{name}_{auto_log}"
        if cache_key not in self._performance_loggers:
            self._performance_loggers[cache_key] = PerformanceLogger(
                name,
                auto_log=auto_log,
                logger=self.get_logger(f"perf.{name}"),
            )
        return self._performance_loggers[cache_key]

    def set_level(self, level: str, logger_name: Optional[str] = None) -> None:
        """Set the level of one logger, or of every logger when ``logger_name`` is None.

        Raises:
            ValidationFailedError: If the level name is unknown
        """
        if not isinstance(getattr(logging, level.upper(), None), int):
            raise ValidationFailedError(f"Invalid log level: {level}", code="INVALID_LOG_LEVEL")

        if logger_name:
            logging.getLogger(logger_name).setLevel(getattr(logging, level.upper()))
            return

        self.config.level = level
        for logger in self._loggers.values():
            logger.set_level(level)
        logging.getLogger().setLevel(getattr(logging, level.upper()))

    def shutdown(self) -> None:
        """Drop cached loggers and flush stdlib handlers."""
        self._loggers.clear()
        self._performance_loggers.clear()
        logging.shutdown()
        self.initialized = False

    def __repr__(self) -> str:
        return (
            f"LoggerFactory("
            f"level={self.config.level!r}, "
            f"format={self.config.format!r}, "
            f"initialized={self.initialized})"
        )


_global_factory = LoggerFactory()


def configure_logging(
    *,
    level: str = "INFO",
    format: str = "json",
    console_output: bool = True,
    file_path: Optional[str] = None,
    **kwargs: Any
) -> None:
    """Configure the dbadmin logging system globally.

    Example:
        >>> configure_logging(level="DEBUG", format="text", file_path="logs/dbadmin.log")
    """
    _global_factory.configure_from_dict({
        "level": level,
        "format": format,
        "console_output": console_output,
        "file_path": file_path,
        **kwargs
    })


def get_logger(name: str, *, level: Optional[str] = None) -> StructuredLogger:
    """Get or create a structured logger using the global factory."""
    return _global_factory.get_logger(name, level=level)


def get_performance_logger(name: str, *, auto_log: bool = True) -> PerformanceLogger:
    """Get or create a performance logger using the global factory.

    Example:
        >>> perf_logger = get_performance_logger("database.export")
        >>> with perf_logger.measure("export_table", table="orders"):
        ...     ...
    """
    return _global_factory.get_performance_logger(name, auto_log=auto_log)


def get_factory() -> LoggerFactory:
    return _global_factory


def shutdown_logging() -> None:
    _global_factory.shutdown()

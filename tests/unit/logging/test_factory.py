"""Tests for logging factory module."""

import logging

import pytest

from dbadmin.core.exceptions import ValidationFailedError
from dbadmin.logging.factory import (
    LoggerConfig,
    LoggerFactory,
    configure_logging,
    get_factory,
    get_logger,
    get_performance_logger,
)
from dbadmin.logging.formatters import JSONFormatter, TextFormatter
from dbadmin.logging.handlers import ConsoleHandler, RotatingFileHandler
from dbadmin.logging.performance import PerformanceLogger
from dbadmin.logging.structured import StructuredLogger


class TestLoggerConfig:
    """Test cases for LoggerConfig class."""

    def test_logger_config_defaults(self):
        config = LoggerConfig()

        assert config.level == "INFO"
        assert config.format == "json"
        assert config.console_output is True
        assert config.file_path is None
        assert config.max_file_size == 10485760  # 10MB
        assert config.backup_count == 5


class TestLoggerFactory:
    """Test cases for LoggerFactory class."""

    def test_get_logger_configures_once_and_caches(self, logger_factory):
        first = logger_factory.get_logger("config.store")
        second = logger_factory.get_logger("config.store")

        assert isinstance(first, StructuredLogger)
        assert first is second
        assert logger_factory.initialized is True

    def test_get_logger_with_level(self, logger_factory):
        logger = logger_factory.get_logger("config.level", level="ERROR")

        assert logger.get_level() == "ERROR"

    def test_console_handler_installed_by_default(self, logger_factory):
        logger_factory.get_logger("config.console")

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], ConsoleHandler)
        assert isinstance(handlers[0].formatter, JSONFormatter)

    def test_configure_from_config(self, logger_factory, sample_logging_config, temp_log_file):
        logger_factory.configure_from_config(sample_logging_config)

        handlers = logging.getLogger().handlers
        assert logger_factory.config.level == "DEBUG"
        assert logger_factory.config.file_path == str(temp_log_file)
        assert len(handlers) == 1
        assert isinstance(handlers[0], RotatingFileHandler)
        assert isinstance(handlers[0].formatter, TextFormatter)
        assert handlers[0].backupCount == 3
        assert temp_log_file.parent.exists()

    def test_configure_from_dict_ignores_unknown_keys(self, logger_factory):
        logger_factory.configure_from_dict({"level": "WARNING", "format": "text", "colour": True})

        assert logger_factory.config.level == "WARNING"
        assert logger_factory.config.format == "text"
        assert not hasattr(logger_factory.config, "colour")
        assert logging.getLogger().level == logging.WARNING

    def test_get_performance_logger(self, logger_factory):
        perf_logger = logger_factory.get_performance_logger("database.export")

        assert isinstance(perf_logger, PerformanceLogger)
        assert perf_logger.logger.name == "perf.database.export"
        assert logger_factory.get_performance_logger("database.export") is perf_logger

    def test_set_level_for_all_loggers(self, logger_factory):
        logger = logger_factory.get_logger("config.all")

        logger_factory.set_level("ERROR")

        assert logger.get_level() == "ERROR"
        assert logger_factory.config.level == "ERROR"

    def test_set_level_for_one_logger(self, logger_factory):
        logger_factory.set_level("DEBUG", "database.rows")

        assert logging.getLogger("database.rows").level == logging.DEBUG

    def test_set_invalid_level(self, logger_factory):
        with pytest.raises(ValidationFailedError) as exc_info:
            logger_factory.set_level("LOUD")

        assert exc_info.value.code == "INVALID_LOG_LEVEL"

    def test_shutdown_clears_cache(self, logger_factory):
        logger = logger_factory.get_logger("config.shutdown")

        logger_factory.shutdown()

        assert logger_factory.initialized is False
        assert logger_factory.get_logger("config.shutdown") is not logger

    def test_repr(self, logger_factory):
        assert repr(logger_factory) == "LoggerFactory(level='INFO', format='json', initialized=False)"


class TestGlobalFunctions:
    """Test module-level helpers backed by the global factory."""

    def test_get_logger_uses_global_factory(self):
        logger = get_logger("global.test")

        assert get_factory().get_logger("global.test") is logger

    def test_get_performance_logger(self):
        assert isinstance(get_performance_logger("global.perf"), PerformanceLogger)

    def test_configure_logging(self, temp_log_file):
        configure_logging(level="DEBUG", format="text", console_output=False, file_path=str(temp_log_file))

        get_logger("global.file").info("written to file")

        handlers = logging.getLogger().handlers
        assert any(isinstance(handler, RotatingFileHandler) for handler in handlers)
        assert get_factory().config.format == "text"

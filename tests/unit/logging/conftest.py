"""Logging-specific test configuration and fixtures."""

import logging
import tempfile
from pathlib import Path

import pytest

from dbadmin.config.models import LoggingConfig
from dbadmin.logging.factory import LoggerFactory


@pytest.fixture
def temp_log_file():
    """Create temporary log file path for testing."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir) / "logs" / "dbadmin.log"


@pytest.fixture
def sample_logging_config(temp_log_file):
    """Create sample logging configuration."""
    return LoggingConfig(
        level="DEBUG",
        format="text",
        file_path=temp_log_file,
        console_output=False,
        max_file_size=1048576,  # 1MB
        backup_count=3,
    )


@pytest.fixture
def logger_factory():
    """Create clean logger factory for testing."""
    factory = LoggerFactory()
    yield factory
    factory.shutdown()


@pytest.fixture
def log_record():
    """Build a stdlib log record carrying extra event data."""
    def _record(msg="Configuration saved", level=logging.INFO, **extra):
        record = logging.LogRecord("config.store", level, __file__, 10, msg, None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    return _record


@pytest.fixture(autouse=True)
def cleanup_global_logging():
    """Clean up global logging state after each test."""
    yield

    from dbadmin.logging.factory import _global_factory
    _global_factory.shutdown()

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        handler.close()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.WARNING)

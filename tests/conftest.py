"""Pytest configuration and shared fixtures.

This module provides pytest configuration and shared fixtures for all tests
in the dbadmin test suite. ``FakeConnection`` stands in for an aiomysql
connection: statements are answered from rules registered with ``on()`` and
every executed statement is recorded with its parameters.
"""

import tempfile
from pathlib import Path
from typing import Any, Callable, Generator, List, Optional, Sequence, Tuple, Union
from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog

# Configure test logging to suppress noise during tests
structlog.configure(
    processors=[structlog.testing.LogCapture()],
    wrapper_class=structlog.testing.ReturnLogger,
    logger_factory=structlog.testing.ReturnLoggerFactory(),
    cache_logger_on_first_use=True,
)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def mock_logger():
    """Mock structured logger for testing."""
    logger = MagicMock()
    logger.bind.return_value = logger
    logger.info = MagicMock()
    logger.error = MagicMock()
    logger.warning = MagicMock()
    logger.debug = MagicMock()
    logger.critical = MagicMock()
    return logger


@pytest.fixture
def fixed_random():
    """Deterministic random source returning a repeating byte pattern."""
    def _random(size: int) -> bytes:
        return bytes((index * 7 + 3) % 256 for index in range(size))

    return _random


@pytest.fixture
def sample_profile_data() -> dict:
    """Sample server profile fields."""
    return {
        "name": "local",
        "db_type": "mysql",
        "host": "127.0.0.1",
        "port": 3306,
        "user": "root",
        "password": "s3cret",
        "database": "shop",
    }


@pytest.fixture
def sample_settings_data(temp_dir: Path) -> dict:
    """Sample application settings data."""
    return {
        "settings_file": str(temp_dir / "settings.json"),
        "default_row_limit": 50,
        "gateway": {
            "connect_timeout": 5,
            "charset": "utf8mb4",
        },
        "logging": {
            "level": "DEBUG",
            "format": "json",
            "console_output": False,
        },
    }


@pytest.fixture
def settings_yaml(temp_dir: Path, sample_settings_data: dict) -> Path:
    """Create temporary YAML settings file."""
    import yaml

    config_path = temp_dir / "dbadmin.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_settings_data, f)
    return config_path


Result = Tuple[Sequence[str], Sequence[tuple]]


class FakeCursor:
    """Async cursor returning scripted results."""

    def __init__(self, connection: "FakeConnection") -> None:
        self._connection = connection
        self.description = None
        self._rows: List[tuple] = []

    async def __aenter__(self) -> "FakeCursor":
        return self

    async def __aexit__(self, *exc_info: Any) -> bool:
        self._connection.cursors_closed += 1
        return False

    async def execute(self, sql: str, params: Any = None) -> int:
        self._connection.executed.append((sql, params))
        columns, rows = self._connection.answer(sql, params)
        self.description = [(name, None, None, None, None, None, None) for name in columns] or None
        self._rows = list(rows)
        return len(self._rows)

    async def fetchall(self) -> Tuple[tuple, ...]:
        return tuple(self._rows)


class FakeConnection:
    """Connection double answering statements by substring match.

    Rules are checked in registration order. A rule answers with columns and
    rows, raises ``error``, or delegates to ``handler(sql, params)``. ``USE``
    statements succeed unless a rule says otherwise.
    """

    def __init__(self) -> None:
        self.rules: List[Tuple[str, Union[Result, Exception, Callable]]] = []
        self.executed: List[Tuple[str, Any]] = []
        self.cursors_closed = 0
        self.closed = False
        self.ping = AsyncMock()

    def on(
        self,
        fragment: str,
        columns: Sequence[str] = (),
        rows: Sequence[tuple] = (),
        *,
        error: Optional[Exception] = None,
        handler: Optional[Callable] = None,
    ) -> "FakeConnection":
        if handler is not None:
            self.rules.append((fragment, handler))
        elif error is not None:
            self.rules.append((fragment, error))
        else:
            self.rules.append((fragment, (list(columns), list(rows))))
        return self

    def answer(self, sql: str, params: Any) -> Result:
        for fragment, result in self.rules:
            if fragment in sql:
                if isinstance(result, Exception):
                    raise result
                if callable(result):
                    return result(sql, params)
                return result
        if sql.startswith("USE "):
            return [], []
        raise AssertionError(f"Unexpected statement: {sql}")

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def close(self) -> None:
        self.closed = True

    def statements(self) -> List[str]:
        return [sql for sql, _ in self.executed]


@pytest.fixture
def conn() -> FakeConnection:
    return FakeConnection()


# Pytest markers for different test categories
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, isolated)"
    )
    config.addinivalue_line(
        "markers", "database: marks tests exercising the database layer"
    )


# Auto-mark tests based on their location
def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        test_path = Path(str(item.fspath)).relative_to(Path(str(config.rootdir)) / "tests")

        if test_path.parts[0] == "unit":
            item.add_marker(pytest.mark.unit)

        if "database" in test_path.parts:
            item.add_marker(pytest.mark.database)

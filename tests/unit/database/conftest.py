"""Database layer test fixtures."""

import pytest


@pytest.fixture
def column_rows():
    """SHOW COLUMNS rows: Field, Type, Null, Key, Default, Extra."""
    return [
        ("id", "int", "NO", "PRI", None, "auto_increment"),
        ("name", "varchar(64)", "YES", "", None, ""),
        ("status", "enum('new','done')", "NO", "MUL", "new", ""),
    ]

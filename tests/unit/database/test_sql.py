"""Unit tests for SQL identifier helpers."""

import pytest

from dbadmin.core.exceptions import ValidationFailedError
from dbadmin.database.sql import (
    SYSTEM_SCHEMAS,
    key_predicate,
    quote_for_params,
    quote_identifier,
    use_statement,
)


class TestQuoteIdentifier:

    @pytest.mark.parametrize("name,expected", [
        ("orders", "`orders`"),
        ("order items", "`order items`"),
        ("odd`name", "`odd``name`"),
        ("``", "``````"),
        ("日本", "`日本`"),
    ])
    def test_quoting(self, name, expected):
        assert quote_identifier(name) == expected

    def test_injection_attempt_stays_inside_identifier(self):
        quoted = quote_identifier("x`; DROP TABLE users; --")

        assert quoted == "`x``; DROP TABLE users; --`"
        # the only unpaired backticks are the outer ones
        assert quoted[1:-1].replace("``", "").count("`") == 0

    @pytest.mark.parametrize("name", ["", None, "bad\x00name", 42])
    def test_rejected(self, name):
        with pytest.raises(ValidationFailedError) as exc_info:
            quote_identifier(name)

        assert exc_info.value.code == "INVALID_IDENTIFIER"


def test_quote_for_params_doubles_percent():
    assert quote_for_params("100%_done") == "`100%%_done`"


def test_use_statement():
    assert use_statement("shop") == "USE `shop`"


def test_key_predicate():
    assert key_predicate(["id"]) == "`id` = %s"
    assert key_predicate(["id", "lang`x"]) == "`id` = %s AND `lang``x` = %s"


def test_system_schemas():
    assert set(SYSTEM_SCHEMAS) == {"information_schema", "mysql", "performance_schema", "sys"}

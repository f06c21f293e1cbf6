"""Unit tests for shared engine plumbing."""

import datetime
import decimal

import aiomysql
import pytest

from dbadmin.core.exceptions import QueryError
from dbadmin.database.base import BaseEngine, query_error, to_text


class TestToText:

    @pytest.mark.parametrize("value,expected", [
        (None, None),
        ("text", "text"),
        (b"bytes", "bytes"),
        (b"\xff\xfeok", "\ufffd\ufffdok"),
        (42, "42"),
        (1.5, "1.5"),
        (decimal.Decimal("12.50"), "12.50"),
        (decimal.Decimal("1E+2"), "100"),
        (datetime.date(2024, 1, 31), "2024-01-31"),
        (datetime.datetime(2024, 1, 31, 8, 5, 3), "2024-01-31 08:05:03"),
        (datetime.timedelta(hours=26, minutes=3, seconds=4), "26:03:04"),
        (-datetime.timedelta(minutes=90), "-01:30:00"),
        (datetime.timedelta(seconds=1, microseconds=500), "00:00:01.000500"),
        ({"b", "a"}, "a,b"),
    ])
    def test_conversion(self, value, expected):
        assert to_text(value) == expected


class TestQueryError:

    @pytest.mark.parametrize("mysql_code,expected", [
        (1146, "TABLE_NOT_FOUND"),
        (1049, "DATABASE_NOT_FOUND"),
        (1064, "SQL_SYNTAX_ERROR"),
        (1142, "INSUFFICIENT_PERMISSIONS"),
        (1305, "QUERY_EXECUTION_FAILED"),
    ])
    def test_codes(self, mysql_code, expected):
        error = query_error(aiomysql.ProgrammingError(mysql_code, "message"), "SELECT 1", table="t")

        assert error.code == expected
        assert error.context == {"mysql_error_code": mysql_code, "statement": "SELECT", "table": "t"}

    def test_error_without_code(self):
        error = query_error(aiomysql.InterfaceError("closed"), "  show tables")

        assert error.context["mysql_error_code"] == 0
        assert error.context["statement"] == "SHOW"


class TestBaseEngine:

    @pytest.mark.asyncio
    async def test_execute_selects_schema_first(self, conn):
        conn.on("SELECT x", ["x"], [(1,)])

        columns, rows = await BaseEngine()._execute(conn, "SELECT x FROM t", database="shop")

        assert columns == ["x"]
        assert rows == [(1,)]
        assert conn.statements() == ["USE `shop`", "SELECT x FROM t"]
        assert conn.cursors_closed == 1

    @pytest.mark.asyncio
    async def test_execute_wraps_driver_errors(self, conn):
        cause = aiomysql.ProgrammingError(1146, "Table 'shop.t' doesn't exist")
        conn.on("SELECT", error=cause)

        with pytest.raises(QueryError) as exc_info:
            await BaseEngine()._execute(conn, "SELECT * FROM t", database="shop")

        assert exc_info.value.cause is cause
        assert exc_info.value.context["database"] == "shop"
        assert conn.cursors_closed == 1

    @pytest.mark.asyncio
    async def test_fetch_scalar(self, conn):
        conn.on("VERSION", ["v"], [(b"8.0.36",)])
        conn.on("EMPTY", ["v"], [])

        engine = BaseEngine()

        assert await engine._fetch_scalar(conn, "SELECT VERSION()") == "8.0.36"
        assert await engine._fetch_scalar(conn, "SELECT EMPTY") is None

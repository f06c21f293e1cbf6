"""Shared plumbing for the introspection, row access and export engines.

Engines never own a connection: every operation receives an open aiomysql
connection from the caller, runs its statements on a cursor scoped to that
operation and releases the cursor before returning.
"""

import datetime
import decimal
from typing import Any, List, Optional, Sequence, Tuple

import aiomysql

from .sql import use_statement
from ..core.exceptions import ErrorCodes, QueryError
from ..logging import get_logger, get_performance_logger

# MySQL server error numbers with a dedicated error code
_QUERY_ERROR_CODES = {
    1049: ErrorCodes.DATABASE_NOT_FOUND,
    1146: ErrorCodes.TABLE_NOT_FOUND,
    1064: ErrorCodes.SQL_SYNTAX_ERROR,
    1044: ErrorCodes.INSUFFICIENT_PERMISSIONS,
    1142: ErrorCodes.INSUFFICIENT_PERMISSIONS,
    1227: ErrorCodes.INSUFFICIENT_PERMISSIONS,
}

Params = Optional[Sequence[Any]]


def query_error(error: Exception, sql: str, **context: Any) -> QueryError:
    """Wrap a driver error into a ``QueryError`` keeping the MySQL error number."""
    mysql_code = error.args[0] if error.args and isinstance(error.args[0], int) else 0
    return QueryError(
        f"MySQL query failed: {error}",
        code=_QUERY_ERROR_CODES.get(mysql_code, ErrorCodes.QUERY_EXECUTION_FAILED),
        context={"mysql_error_code": mysql_code, "statement": sql.split(None, 1)[0].upper(), **context},
        cause=error,
    )


def _format_time(value: datetime.timedelta) -> str:
    # MySQL TIME columns arrive as timedelta; render them as [-]HH:MM:SS[.ffffff]
    total = abs(value)
    hours, remainder = divmod(total.days * 86400 + total.seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    text = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    if total.microseconds:
        text += f".{total.microseconds:06d}"
    return ("-" if value < datetime.timedelta(0) else "") + text


def to_text(value: Any) -> Optional[str]:
    """Render a column value as display text.

    None stays None. Binary values are decoded as UTF-8 with invalid bytes
    replaced, so no opaque bytes leave an engine.
    """
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, str):
        return value
    if isinstance(value, datetime.timedelta):
        return _format_time(value)
    if isinstance(value, datetime.datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, decimal.Decimal):
        return format(value, "f")
    if isinstance(value, (set, frozenset)):
        return ",".join(sorted(str(item) for item in value))
    return str(value)


class BaseEngine:
    """Base class for engines operating on caller-owned connections.

    Subclasses set ``logger_name`` and get a structured logger plus a
    performance logger under that name.
    """

    logger_name = "database"

    def __init__(self) -> None:
        self.logger = get_logger(self.logger_name)
        self.perf_logger = get_performance_logger(self.logger_name)

    async def _execute(
        self,
        conn: aiomysql.Connection,
        sql: str,
        params: Params = None,
        *,
        database: Optional[str] = None,
    ) -> Tuple[List[str], List[tuple]]:
        """Run one statement and return column names and raw rows.

        When ``database`` is given, the schema is selected with USE on the
        same cursor first.

        Raises:
            QueryError: If the driver reports an error
        """
        try:
            async with conn.cursor() as cursor:
                if database is not None:
                    await cursor.execute(use_statement(database))
                await cursor.execute(sql, params)
                rows = await cursor.fetchall()
                columns = [desc[0] for desc in cursor.description] if cursor.description else []
        except aiomysql.Error as e:
            raise query_error(e, sql, database=database) from e
        return columns, list(rows or [])

    async def _fetch_scalar(self, conn: aiomysql.Connection, sql: str, params: Params = None) -> Optional[str]:
        """Return the first column of the first row as text, or None when there is no row."""
        _, rows = await self._execute(conn, sql, params)
        if not rows:
            return None
        return to_text(rows[0][0])

    async def _fetch_column(
        self,
        conn: aiomysql.Connection,
        sql: str,
        params: Params = None,
        *,
        database: Optional[str] = None,
    ) -> List[str]:
        """Return the first column of every row as text."""
        _, rows = await self._execute(conn, sql, params, database=database)
        return [to_text(row[0]) or "" for row in rows]

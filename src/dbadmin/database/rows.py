"""Row access: bounded browsing, full scans and primary-key point lookups."""

from typing import List, Sequence

import aiomysql

from .base import BaseEngine, to_text
from .models import Row, RowSet
from .sql import key_predicate, quote_for_params, quote_identifier
from ..config.models import DEFAULT_ROW_LIMIT
from ..core.exceptions import ErrorCodes, RowNotFoundError, ValidationFailedError


def _to_rowset(columns: List[str], raw_rows: List[tuple]) -> RowSet:
    rows: List[Row] = [
        {name: to_text(value) for name, value in zip(columns, raw)}
        for raw in raw_rows
    ]
    return RowSet(columns=list(columns), rows=rows)


class RowAccessEngine(BaseEngine):
    """Reads table rows on a caller-owned connection.

    Values come back as text with SQL NULL as None. Rows are returned in
    whatever order the server produces; no ORDER BY is added.
    """

    logger_name = "database.rows"

    async def fetch_rows(self, conn: aiomysql.Connection, database: str, table: str, limit: int = DEFAULT_ROW_LIMIT) -> RowSet:
        """Fetch at most ``limit`` rows. A non-positive limit means the default of 100."""
        if limit is None or limit <= 0:
            limit = DEFAULT_ROW_LIMIT
        sql = f"SELECT * FROM {quote_identifier(table)} LIMIT {int(limit)}"

        with self.perf_logger.measure("fetch_rows", database=database, table=table, limit=limit):
            columns, raw_rows = await self._execute(conn, sql, database=database)
        return _to_rowset(columns, raw_rows)

    async def fetch_all_rows(self, conn: aiomysql.Connection, database: str, table: str) -> RowSet:
        """Fetch every row of ``table`` without a cap."""
        sql = f"SELECT * FROM {quote_identifier(table)}"

        with self.perf_logger.measure("fetch_all_rows", database=database, table=table):
            columns, raw_rows = await self._execute(conn, sql, database=database)
        return _to_rowset(columns, raw_rows)

    async def fetch_row_by_key(
        self,
        conn: aiomysql.Connection,
        database: str,
        table: str,
        pk_columns: Sequence[str],
        pk_values: Sequence[str],
    ) -> Row:
        """Fetch the first row whose key columns equal ``pk_values``.

        Raises:
            ValidationFailedError: If the column and value lists differ in length or are empty
            RowNotFoundError: If no row matches
        """
        if not pk_columns or len(pk_columns) != len(pk_values):
            raise ValidationFailedError(
                "Primary key columns and values must be non-empty and of equal length",
                code=ErrorCodes.KEY_VALUE_MISMATCH,
                context={"columns": len(pk_columns), "values": len(pk_values)},
            )

        sql = f"SELECT * FROM {quote_for_params(table)} WHERE {key_predicate(pk_columns)} LIMIT 1"
        with self.perf_logger.measure("fetch_row_by_key", database=database, table=table):
            columns, raw_rows = await self._execute(conn, sql, list(pk_values), database=database)

        if not raw_rows:
            raise RowNotFoundError(
                f"Row not found in {table}",
                context={"database": database, "table": table, "columns": list(pk_columns)},
            )
        return _to_rowset(columns, raw_rows[:1]).rows[0]

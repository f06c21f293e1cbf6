"""CSV export of whole tables.

Tables are written one after another into a single CSV stream, separated by
one blank record. Records go through a text layer whose codec is the target
encoding, so transcoding happens while streaming into the binary sink.

Example:
    >>> engine = ExportEngine()
    >>> with open(export_filename("shop"), "wb") as sink:
    ...     result = await engine.export(conn, "shop", ["orders"], sink, ExportOptions())
"""

import csv
import io
from typing import BinaryIO, Optional, Sequence, Tuple

import aiomysql

from .base import BaseEngine
from .introspection import IntrospectionEngine
from .models import ExportOptions, ExportResult
from .rows import RowAccessEngine
from ..core.exceptions import QueryError


def export_filename(database: str) -> str:
    """Suggested download name for an export of ``database``."""
    return f"{database}_export.csv"


class ExportEngine(BaseEngine):
    """Streams table contents as CSV into a binary sink."""

    logger_name = "database.export"

    def __init__(
        self,
        introspection: Optional[IntrospectionEngine] = None,
        rows: Optional[RowAccessEngine] = None,
    ) -> None:
        super().__init__()
        self.introspection = introspection or IntrospectionEngine()
        self.rows = rows or RowAccessEngine()

    async def export(
        self,
        conn: aiomysql.Connection,
        database: str,
        tables: Sequence[str],
        sink: BinaryIO,
        options: Optional[ExportOptions] = None,
    ) -> ExportResult:
        """Write ``tables`` of ``database`` to ``sink`` in the given order.

        A table whose rows or columns cannot be fetched is skipped and
        reported in ``ExportResult.skipped_tables``; a table without rows is
        reported in ``ExportResult.empty_tables``. Neither appears in the
        output. The sink is left open.
        """
        options = options or ExportOptions()
        result = ExportResult()
        # errors="replace" writes "?" for characters the target codec lacks
        stream = io.TextIOWrapper(
            sink,
            encoding=options.encoding.value,
            errors="replace",
            newline="",
            write_through=True,
        )
        writer = csv.writer(
            stream,
            delimiter=options.delimiter,
            lineterminator="\n",
            quoting=csv.QUOTE_MINIMAL,
        )

        try:
            with self.perf_logger.measure("export", database=database, tables=len(tables)) as timer:
                for table in tables:
                    try:
                        row_set = await self.rows.fetch_all_rows(conn, database, table)
                        if not row_set.rows:
                            result.empty_tables.append(table)
                            continue
                        columns = await self.introspection.list_columns(conn, database, table)
                    except QueryError as e:
                        self.logger.warning(
                            "Skipping table in export",
                            database=database,
                            table=table,
                            error_code=e.code,
                        )
                        result.skipped_tables[table] = e.code
                        continue

                    if result.tables_written:
                        writer.writerow([])
                    column_names = [column.name for column in columns]
                    if options.include_headers:
                        writer.writerow(column_names)
                    for record in row_set.records(column_names):
                        writer.writerow(["" if value is None else value for value in record])
                        result.rows_written += 1
                    result.tables_written.append(table)
            stream.flush()
        finally:
            # leave the caller's sink open
            stream.detach()

        self.logger.info(
            "Export completed",
            database=database,
            tables_written=len(result.tables_written),
            rows_written=result.rows_written,
            duration_ms=timer.duration_ms,
            empty_tables=len(result.empty_tables),
            skipped_tables=len(result.skipped_tables),
        )
        return result

    async def export_bytes(
        self,
        conn: aiomysql.Connection,
        database: str,
        tables: Sequence[str],
        options: Optional[ExportOptions] = None,
    ) -> Tuple[bytes, ExportResult]:
        """Export into memory and return the encoded bytes with the result."""
        buffer = io.BytesIO()
        result = await self.export(conn, database, tables, buffer, options)
        return buffer.getvalue(), result

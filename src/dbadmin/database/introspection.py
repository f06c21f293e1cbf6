"""Schema and server introspection for MySQL/MariaDB.

Every method takes an open connection owned by the caller. Schema-scoped
queries select the schema with ``USE`` first and nothing is cached between
calls.
"""

from typing import List, Optional

import aiomysql

from .base import BaseEngine, to_text
from .models import ColumnInfo, SchemaDescriptor, ServerInfo, UserPrivilege
from .sql import SYSTEM_SCHEMAS, quote_identifier
from ..core.exceptions import ErrorCodes, QueryError

_SCHEMATA_QUERY = """
    SELECT SCHEMA_NAME
    FROM information_schema.SCHEMATA
    ORDER BY SCHEMA_NAME
"""

_USER_SCHEMATA_QUERY = """
    SELECT SCHEMA_NAME
    FROM information_schema.SCHEMATA
    WHERE SCHEMA_NAME NOT IN ({placeholders})
    ORDER BY SCHEMA_NAME
""".format(placeholders=", ".join(["%s"] * len(SYSTEM_SCHEMAS)))

_TABLES_QUERY = """
    SELECT TABLE_NAME
    FROM information_schema.TABLES
    WHERE TABLE_SCHEMA = %s
    ORDER BY TABLE_NAME
"""

_PRIMARY_KEY_QUERY = """
    SELECT COLUMN_NAME
    FROM information_schema.KEY_COLUMN_USAGE
    WHERE TABLE_SCHEMA = %s
      AND TABLE_NAME = %s
      AND CONSTRAINT_NAME = 'PRIMARY'
    ORDER BY ORDINAL_POSITION
"""

_USERS_QUERY = "SELECT User, Host FROM mysql.user ORDER BY User, Host"

# (field, statement, column index); each probe runs on its own
_SERVER_PROBES = (
    ("version", "SELECT VERSION()", 0),
    ("version_comment", "SELECT @@version_comment", 0),
    ("protocol_version", "SELECT @@protocol_version", 0),
    ("connection_id", "SELECT CONNECTION_ID()", 0),
    ("current_user", "SELECT CURRENT_USER()", 0),
    ("character_set_server", "SELECT @@character_set_server", 0),
    ("collation_server", "SELECT @@collation_server", 0),
    ("character_set_connection", "SELECT @@character_set_connection", 0),
    ("collation_connection", "SELECT @@collation_connection", 0),
    ("ssl_cipher", "SHOW STATUS LIKE 'Ssl_cipher'", 1),
)


class IntrospectionEngine(BaseEngine):
    """Lists databases, tables, columns, keys and server metadata."""

    logger_name = "database.introspection"

    async def list_databases(self, conn: aiomysql.Connection, include_system: bool = False) -> List[str]:
        """Database names visible to the session, sorted.

        System schemas are left out unless ``include_system`` is set.
        """
        with self.perf_logger.measure("list_databases", include_system=include_system):
            if include_system:
                return await self._fetch_column(conn, _SCHEMATA_QUERY)
            return await self._fetch_column(conn, _USER_SCHEMATA_QUERY, SYSTEM_SCHEMAS)

    async def list_tables(self, conn: aiomysql.Connection, database: str) -> List[str]:
        """Table names of ``database``, sorted."""
        with self.perf_logger.measure("list_tables", database=database):
            return await self._fetch_column(conn, _TABLES_QUERY, (database,), database=database)

    async def list_columns(self, conn: aiomysql.Connection, database: str, table: str) -> List[ColumnInfo]:
        """Columns of ``table`` in declaration order."""
        sql = f"SHOW COLUMNS FROM {quote_identifier(table)}"
        with self.perf_logger.measure("list_columns", database=database, table=table):
            _, rows = await self._execute(conn, sql, database=database)

        return [
            ColumnInfo(
                name=to_text(row[0]) or "",
                data_type=to_text(row[1]) or "",
                is_nullable=to_text(row[2]) == "YES",
                key=to_text(row[3]) or "",
                default=to_text(row[4]),
                extra=to_text(row[5]) or "",
            )
            for row in rows
        ]

    async def get_create_statement(self, conn: aiomysql.Connection, database: str, table: str) -> str:
        """The ``CREATE TABLE`` statement reported by the server.

        Raises:
            QueryError: If the table does not exist (code TABLE_NOT_FOUND)
        """
        sql = f"SHOW CREATE TABLE {quote_identifier(table)}"
        _, rows = await self._execute(conn, sql, database=database)
        if not rows or len(rows[0]) < 2:
            raise QueryError(
                f"No CREATE statement returned for table {table}",
                code=ErrorCodes.TABLE_NOT_FOUND,
                context={"database": database, "table": table},
            )
        return to_text(rows[0][1]) or ""

    async def list_primary_key_columns(self, conn: aiomysql.Connection, database: str, table: str) -> List[str]:
        """Primary key columns in key ordinal order; empty when there is no primary key."""
        return await self._fetch_column(conn, _PRIMARY_KEY_QUERY, (database, table), database=database)

    async def describe_schema(self, conn: aiomysql.Connection, database: str) -> SchemaDescriptor:
        return SchemaDescriptor(database=database, tables=await self.list_tables(conn, database))

    async def get_server_info(self, conn: aiomysql.Connection) -> ServerInfo:
        """Collect server identification.

        Each value comes from its own statement. A statement that fails
        leaves its field empty and does not stop the others.
        """
        info = ServerInfo()
        for field_name, sql, index in _SERVER_PROBES:
            value = await self._probe(conn, sql, index)
            if value is not None:
                setattr(info, field_name, value)
        return info

    async def _probe(self, conn: aiomysql.Connection, sql: str, index: int) -> Optional[str]:
        try:
            _, rows = await self._execute(conn, sql)
        except QueryError as e:
            self.logger.debug("Server probe failed", statement=sql, error_code=e.code)
            return None
        if not rows or len(rows[0]) <= index:
            return None
        return to_text(rows[0][index])

    async def list_user_privileges(self, conn: aiomysql.Connection) -> List[UserPrivilege]:
        """Accounts from ``mysql.user`` with the number of grants each holds.

        Accounts whose grants cannot be read are skipped.

        Raises:
            QueryError: If ``mysql.user`` cannot be read
        """
        _, users = await self._execute(conn, _USERS_QUERY)

        privileges: List[UserPrivilege] = []
        for row in users:
            user, host = to_text(row[0]) or "", to_text(row[1]) or ""
            try:
                grants = await self.list_user_grants(conn, user, host)
            except QueryError as e:
                self.logger.debug("Skipping account without readable grants", user=user, host=host, error_code=e.code)
                continue
            privileges.append(UserPrivilege(user=user, host=host, grant_count=len(grants)))
        return privileges

    async def list_user_grants(self, conn: aiomysql.Connection, user: str, host: str) -> List[str]:
        """The ``SHOW GRANTS`` lines for ``user@host``.

        User and host are bound as string literals, never spliced.
        """
        return await self._fetch_column(conn, "SHOW GRANTS FOR %s@%s", (user, host))

"""Administration facade over the profile store and the database engines.

``DatabaseAdmin`` is what a request handler calls. Each database operation
resolves the stored profile, opens one connection through the gateway,
checks caller-supplied names against what the server reports, runs the
engines and closes the connection before returning.

Example:
    >>> admin = DatabaseAdmin.from_settings(AppSettings.from_file("dbadmin.yaml"))
    >>> server = admin.add_server(name="local", host="127.0.0.1", user="root", password="pw")
    >>> await admin.list_tables(server.id, "shop")
"""

from typing import Any, BinaryIO, Iterable, List, Optional, Sequence

import aiomysql
from pydantic import ValidationError

from .config.models import DEFAULT_ROW_LIMIT, AppSettings, ServerProfile
from .config.store import ConfigurationStore
from .core.exceptions import ErrorCodes, ServerNotFoundError, ValidationFailedError
from .database.export import ExportEngine
from .database.gateway import ConnectionGateway
from .database.introspection import IntrospectionEngine
from .database.models import (
    ExportOptions,
    ExportResult,
    Row,
    RowSet,
    ServerInfo,
    TableDescription,
    UserPrivilege,
)
from .database.rows import RowAccessEngine
from .logging import get_factory, get_logger


def _build_profile(fields: dict) -> ServerProfile:
    # ids are assigned by the store, never taken from callers
    data = {name: value for name, value in fields.items() if name != "id"}
    try:
        return ServerProfile.model_validate(data)
    except ValidationError as e:
        raise ValidationFailedError(
            "Invalid server profile",
            context={"errors": [error["msg"] for error in e.errors()]},
            cause=e,
        ) from e


def _require_known(name: str, known: Iterable[str], kind: str, **context: Any) -> None:
    if name not in set(known):
        raise ValidationFailedError(
            f"Unknown {kind}: {name}",
            code=ErrorCodes.UNKNOWN_IDENTIFIER,
            context={kind: name, **context},
        )


class DatabaseAdmin:
    """Orchestrates profile management and per-request database work.

    Attributes:
        store: Profile store, persisted after every mutation
        gateway: Connection gateway
        introspection: Introspection engine
        rows: Row access engine
        exporter: CSV export engine
        default_row_limit: Limit used by ``browse_table`` when none is given
    """

    def __init__(
        self,
        store: ConfigurationStore,
        gateway: Optional[ConnectionGateway] = None,
        *,
        introspection: Optional[IntrospectionEngine] = None,
        rows: Optional[RowAccessEngine] = None,
        exporter: Optional[ExportEngine] = None,
        default_row_limit: int = DEFAULT_ROW_LIMIT,
    ) -> None:
        self.store = store
        self.gateway = gateway or ConnectionGateway()
        self.introspection = introspection or IntrospectionEngine()
        self.rows = rows or RowAccessEngine()
        self.exporter = exporter or ExportEngine(self.introspection, self.rows)
        self.default_row_limit = default_row_limit
        self.logger = get_logger("service")

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "DatabaseAdmin":
        """Configure logging, load the profile store and wire the engines."""
        get_factory().configure_from_config(settings.logging)

        store = ConfigurationStore(settings.settings_file)
        store.load()
        return cls(
            store,
            ConnectionGateway(settings.gateway),
            default_row_limit=settings.default_row_limit,
        )

    # Profile management

    def list_servers(self) -> List[ServerProfile]:
        return self.store.get_servers()

    def get_server(self, server_id: str) -> ServerProfile:
        return self.store.require_server(server_id)

    def add_server(self, **fields: Any) -> ServerProfile:
        """Create a profile with a fresh id and persist the store.

        Raises:
            ValidationFailedError: If the fields do not form a valid profile
            PersistenceError: If the store cannot be saved
        """
        profile = _build_profile(fields)
        self.store.add_server(profile)
        self.store.save()
        self.logger.info("Server added", server_id=profile.id, host=profile.host)
        return profile

    def update_server(self, server_id: str, **fields: Any) -> ServerProfile:
        """Replace every field of an existing profile and persist the store.

        Fields that are not given take their defaults; the id is kept.
        """
        profile = _build_profile(fields).with_id(server_id)
        if not self.store.update_server(server_id, profile):
            raise ServerNotFoundError(
                f"Server not found: {server_id}",
                context={"server_id": server_id},
            )
        self.store.save()
        self.logger.info("Server updated", server_id=server_id)
        return profile

    def delete_server(self, server_id: str) -> None:
        if not self.store.delete_server(server_id):
            raise ServerNotFoundError(
                f"Server not found: {server_id}",
                context={"server_id": server_id},
            )
        self.store.save()
        self.logger.info("Server deleted", server_id=server_id)

    # Connections

    async def test_connection(self, server_id: str) -> None:
        """Open a connection to the stored server and ping it.

        Raises:
            ServerNotFoundError: If the profile does not exist
            ConnectionFailedError: If connecting or pinging fails
        """
        profile = self.store.require_server(server_id)
        await self.gateway.check_connection(
            profile.host,
            profile.port,
            profile.user,
            profile.password.get_secret_value(),
        )

    async def probe_databases(
        self, host: str, port: int, user: str, password: str, include_system: bool = False
    ) -> List[str]:
        """List databases on a server that has no stored profile yet."""
        async with self.gateway.open(host, port, user, password) as conn:
            return await self.introspection.list_databases(conn, include_system)

    # Introspection

    async def list_databases(self, server_id: str, include_system: bool = False) -> List[str]:
        profile = self.store.require_server(server_id)
        async with self.gateway.open_profile(profile) as conn:
            return await self.introspection.list_databases(conn, include_system)

    async def list_tables(self, server_id: str, database: str) -> List[str]:
        profile = self.store.require_server(server_id)
        async with self.gateway.open_profile(profile) as conn:
            await self._check_database(conn, database)
            return await self.introspection.list_tables(conn, database)

    async def describe_table(self, server_id: str, database: str, table: str) -> TableDescription:
        """Columns, primary key columns and CREATE statement of one table."""
        profile = self.store.require_server(server_id)
        async with self.gateway.open_profile(profile) as conn:
            await self._check_table(conn, database, table)
            columns = await self.introspection.list_columns(conn, database, table)
            primary_keys = await self.introspection.list_primary_key_columns(conn, database, table)
            create_statement = await self.introspection.get_create_statement(conn, database, table)

        return TableDescription(
            database=database,
            table=table,
            columns=columns,
            primary_keys=primary_keys,
            create_statement=create_statement,
        )

    async def server_info(self, server_id: str) -> ServerInfo:
        profile = self.store.require_server(server_id)
        async with self.gateway.open_profile(profile) as conn:
            return await self.introspection.get_server_info(conn)

    async def list_user_privileges(self, server_id: str) -> List[UserPrivilege]:
        profile = self.store.require_server(server_id)
        async with self.gateway.open_profile(profile) as conn:
            return await self.introspection.list_user_privileges(conn)

    async def list_user_grants(self, server_id: str, user: str, host: str) -> List[str]:
        profile = self.store.require_server(server_id)
        async with self.gateway.open_profile(profile) as conn:
            return await self.introspection.list_user_grants(conn, user, host)

    # Rows

    async def browse_table(
        self, server_id: str, database: str, table: str, limit: Optional[int] = None
    ) -> RowSet:
        """Fetch up to ``limit`` rows; ``default_row_limit`` applies when omitted."""
        profile = self.store.require_server(server_id)
        async with self.gateway.open_profile(profile) as conn:
            await self._check_table(conn, database, table)
            return await self.rows.fetch_rows(
                conn, database, table, self.default_row_limit if limit is None else limit
            )

    async def get_row(
        self,
        server_id: str,
        database: str,
        table: str,
        pk_columns: Sequence[str],
        pk_values: Sequence[str],
    ) -> Row:
        """Point lookup by primary key values.

        Raises:
            ValidationFailedError: If a name is unknown or the key lists do not match
            RowNotFoundError: If no row matches
        """
        profile = self.store.require_server(server_id)
        async with self.gateway.open_profile(profile) as conn:
            await self._check_table(conn, database, table)
            columns = [column.name for column in await self.introspection.list_columns(conn, database, table)]
            for column in pk_columns:
                _require_known(column, columns, "column", database=database, table=table)
            return await self.rows.fetch_row_by_key(conn, database, table, pk_columns, pk_values)

    # Export

    async def export_tables(
        self,
        server_id: str,
        database: str,
        tables: Sequence[str],
        sink: BinaryIO,
        options: Optional[ExportOptions] = None,
    ) -> ExportResult:
        """Export ``tables`` of ``database`` as CSV into ``sink``.

        Raises:
            ValidationFailedError: If no tables are selected or a name is unknown
        """
        profile = self.store.require_server(server_id)
        if not tables:
            raise ValidationFailedError(
                "No tables selected for export",
                context={"server_id": server_id, "database": database},
            )
        async with self.gateway.open_profile(profile) as conn:
            await self._check_database(conn, database)
            known_tables = await self.introspection.list_tables(conn, database)
            for table in tables:
                _require_known(table, known_tables, "table", database=database)
            return await self.exporter.export(conn, database, tables, sink, options)

    # Identifier checks

    async def _check_database(self, conn: aiomysql.Connection, database: str) -> None:
        databases = await self.introspection.list_databases(conn, include_system=True)
        _require_known(database, databases, "database")

    async def _check_table(self, conn: aiomysql.Connection, database: str, table: str) -> None:
        await self._check_database(conn, database)
        tables = await self.introspection.list_tables(conn, database)
        _require_known(table, tables, "table", database=database)

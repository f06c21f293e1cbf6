"""Connection gateway for MySQL/MariaDB servers.

Opens one aiomysql connection per request and guarantees it is closed on
every exit path. There is no pooling and no retry.

Classes:
    ConnectionGateway: Scoped connection factory

Example:
    >>> gateway = ConnectionGateway(GatewayConfig(connect_timeout=5))
    >>> async with gateway.open_profile(profile) as conn:
    ...     databases = await introspection.list_databases(conn)
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncContextManager, AsyncIterator, Dict, Optional

import aiomysql

from ..config.models import GatewayConfig, ServerProfile
from ..core.base import BaseComponent
from ..core.exceptions import ConnectionFailedError, ErrorCodes
from ..logging import get_logger, get_performance_logger

# MySQL client/server error numbers seen while connecting
_ACCESS_DENIED = 1045
_CONNECTION_ERRORS = {2003, 2005}


class ConnectionGateway(BaseComponent[GatewayConfig]):
    """Opens scoped connections from profiles or explicit parameters."""

    component_name = "ConnectionGateway"

    def __init__(self, config: Optional[GatewayConfig] = None) -> None:
        super().__init__(config or GatewayConfig())
        self.logger = get_logger("database.gateway")
        self.perf_logger = get_performance_logger("database.gateway")

    def validate_config(self) -> bool:
        return self.config.connect_timeout > 0 and bool(self.config.charset)

    @asynccontextmanager
    async def open(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        database: Optional[str] = None,
    ) -> AsyncIterator[aiomysql.Connection]:
        """Open a connection for the duration of the ``async with`` block.

        Without ``database`` no schema is selected on the session.

        Raises:
            ConnectionFailedError: If the connection cannot be established
        """
        conn = await self._connect(host, port, user, password, database)
        try:
            yield conn
        finally:
            conn.close()

    def open_profile(
        self, profile: ServerProfile, database: Optional[str] = None
    ) -> AsyncContextManager[aiomysql.Connection]:
        """Open a connection using the credentials of ``profile``."""
        return self.open(
            profile.host,
            profile.port,
            profile.user,
            profile.password.get_secret_value(),
            database,
        )

    async def _connect(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        database: Optional[str],
    ) -> aiomysql.Connection:
        context: Dict[str, Any] = {"host": host, "port": port, "user": user}
        kwargs: Dict[str, Any] = {
            "host": host,
            "port": port,
            "user": user,
            "password": password,
            "charset": self.config.charset,
            "autocommit": self.config.autocommit,
            "connect_timeout": self.config.connect_timeout,
        }
        if database:
            kwargs["db"] = database
            context["database"] = database

        try:
            with self.perf_logger.measure("connect", host=host, port=port):
                return await aiomysql.connect(**kwargs)
        except aiomysql.OperationalError as e:
            error_code = e.args[0] if e.args else 0
            if error_code == _ACCESS_DENIED:
                code = ErrorCodes.AUTH_FAILED
            elif isinstance(e.__cause__, (asyncio.TimeoutError, TimeoutError)):
                code = ErrorCodes.CONNECTION_TIMEOUT
            elif error_code in _CONNECTION_ERRORS:
                code = ErrorCodes.CONNECTION_REFUSED
            else:
                code = ErrorCodes.NETWORK_UNREACHABLE
            self.logger.warning("Connection failed", code=code, mysql_error_code=error_code, **context)
            raise ConnectionFailedError(
                f"MySQL connection failed: {e}",
                code=code,
                context={**context, "mysql_error_code": error_code},
                cause=e,
            ) from e
        except (asyncio.TimeoutError, TimeoutError) as e:
            self.logger.warning("Connection timed out", **context)
            raise ConnectionFailedError(
                f"MySQL connection timed out after {self.config.connect_timeout}s",
                code=ErrorCodes.CONNECTION_TIMEOUT,
                context=context,
                cause=e,
            ) from e
        except (aiomysql.Error, OSError) as e:
            self.logger.warning("Connection failed", error_type=type(e).__name__, **context)
            raise ConnectionFailedError(
                f"MySQL connection failed: {e}",
                code=ErrorCodes.NETWORK_UNREACHABLE,
                context=context,
                cause=e,
            ) from e

    async def ping(self, conn: aiomysql.Connection) -> None:
        """Check that ``conn`` is alive.

        Raises:
            ConnectionFailedError: If the server does not answer (code PING_FAILED)
        """
        try:
            await conn.ping(reconnect=False)
        except (aiomysql.Error, OSError) as e:
            raise ConnectionFailedError(
                f"MySQL ping failed: {e}",
                code=ErrorCodes.PING_FAILED,
                cause=e,
            ) from e

    async def check_connection(self, host: str, port: int, user: str, password: str) -> None:
        """Open a connection without a schema and ping it.

        Raises:
            ConnectionFailedError: If connecting or pinging fails
        """
        async with self.open(host, port, user, password) as conn:
            await self.ping(conn)
        self.logger.info("Connection test succeeded", host=host, port=port, user=user)

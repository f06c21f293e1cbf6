"""dbadmin - MySQL/MariaDB administration core.

Keeps an encrypted list of server profiles and, per request, opens a
connection to inspect schemas, browse rows, look up rows by primary key and
export tables as CSV.

Modules:
    core: Exceptions, locks and component base class
    config: Settings models, credential encryption and the profile store
    logging: Structured logging framework
    database: Connection gateway and engines
    service: Administration facade

Example:
    >>> from dbadmin import AppSettings, DatabaseAdmin
    >>> admin = DatabaseAdmin.from_settings(AppSettings.from_file("dbadmin.yaml"))
    >>> for server in admin.list_servers():
    ...     print(server.name, server.connection_string)
"""

from . import core, config, logging, database
from .config import AppSettings, ConfigurationStore, ServerProfile
from .service import DatabaseAdmin

__version__ = "0.1.0"
__title__ = "dbadmin"
__description__ = "MySQL/MariaDB administration core"
__license__ = "MIT"

__all__ = [
    "core",
    "config",
    "logging",
    "database",
    "AppSettings",
    "ConfigurationStore",
    "DatabaseAdmin",
    "ServerProfile",
    "__version__",
    "__title__",
    "__description__",
    "__license__",
]

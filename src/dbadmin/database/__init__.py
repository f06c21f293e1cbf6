"""
dbadmin database layer.

Connection gateway plus the engines that run on a connection the caller
owns: introspection, row access and CSV export.

Key Features:
- Scoped aiomysql connections, closed on every exit path
- Schema, column, key and server metadata
- Bounded browsing and primary-key point lookups
- Multi-table CSV export with UTF-8, Shift_JIS and EUC-JP output
"""

from .models import (
    ColumnInfo,
    ExportOptions,
    ExportResult,
    Row,
    RowSet,
    SchemaDescriptor,
    ServerInfo,
    TableDescription,
    TextEncoding,
    UserPrivilege,
)

from .gateway import ConnectionGateway
from .introspection import IntrospectionEngine
from .rows import RowAccessEngine
from .export import ExportEngine, export_filename
from .sql import SYSTEM_SCHEMAS, quote_identifier

__all__ = [
    # Models
    "ColumnInfo",
    "ExportOptions",
    "ExportResult",
    "Row",
    "RowSet",
    "SchemaDescriptor",
    "ServerInfo",
    "TableDescription",
    "TextEncoding",
    "UserPrivilege",

    # Components
    "ConnectionGateway",
    "IntrospectionEngine",
    "RowAccessEngine",
    "ExportEngine",

    # Helpers
    "SYSTEM_SCHEMAS",
    "export_filename",
    "quote_identifier",
]

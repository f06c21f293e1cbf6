"""Database models for dbadmin."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional

from ..core.exceptions import ErrorCodes, ValidationFailedError

# Values as they leave the engines: text, or None for SQL NULL
Row = Dict[str, Optional[str]]


class TextEncoding(str, Enum):
    """Target encodings for CSV export, valued by Python codec name."""

    UTF8 = "utf-8"
    SHIFT_JIS = "shift_jis"
    EUC_JP = "euc_jp"

    @classmethod
    def from_name(cls, name: str) -> "TextEncoding":
        """Resolve a user-supplied encoding name.

        Accepts the codec names plus the short forms ``utf8``, ``sjis`` and
        ``eucjp``; an empty name means UTF-8.

        Raises:
            ValidationFailedError: If the name is not supported
        """
        normalized = (name or "utf-8").strip().lower().replace("_", "-")
        aliases = {
            "utf-8": cls.UTF8,
            "utf8": cls.UTF8,
            "shift-jis": cls.SHIFT_JIS,
            "sjis": cls.SHIFT_JIS,
            "euc-jp": cls.EUC_JP,
            "eucjp": cls.EUC_JP,
        }
        if normalized not in aliases:
            raise ValidationFailedError(
                f"Unsupported encoding: {name}",
                context={"encoding": name},
            )
        return aliases[normalized]


@dataclass
class ColumnInfo:
    """One column as reported by SHOW COLUMNS."""
    name: str
    data_type: str
    is_nullable: bool
    key: str = ""
    default: Optional[str] = None
    extra: str = ""

    @property
    def is_primary_key(self) -> bool:
        return self.key == "PRI"


@dataclass
class RowSet:
    """Column names plus rows keyed by column name.

    Every non-NULL value is already text; SQL NULL is None.
    """
    columns: List[str]
    rows: List[Row] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)

    def records(self, columns: Optional[List[str]] = None) -> Iterator[List[Optional[str]]]:
        """Yield each row as a list of values in ``columns`` order (default: own columns)."""
        order = columns if columns is not None else self.columns
        for row in self.rows:
            yield [row.get(name) for name in order]


@dataclass
class SchemaDescriptor:
    """A database together with its tables."""
    database: str
    tables: List[str] = field(default_factory=list)


@dataclass
class TableDescription:
    """Structure of one table."""
    database: str
    table: str
    columns: List[ColumnInfo]
    primary_keys: List[str]
    create_statement: str


@dataclass
class ServerInfo:
    """Server identification gathered from independent probes.

    A probe that fails leaves its field empty.
    """
    version: str = ""
    version_comment: str = ""
    protocol_version: str = ""
    connection_id: str = ""
    current_user: str = ""
    character_set_server: str = ""
    collation_server: str = ""
    character_set_connection: str = ""
    collation_connection: str = ""
    ssl_cipher: str = ""


@dataclass
class UserPrivilege:
    """An account with the number of GRANT statements it holds."""
    user: str
    host: str
    grant_count: int

    @property
    def privileges(self) -> str:
        return f"{self.grant_count} grants"


@dataclass
class ExportOptions:
    """CSV export settings.

    ``delimiter`` accepts the two-character escape ``\\t`` for a tab.
    ``encoding`` may be given as a ``TextEncoding`` or a name accepted by
    ``TextEncoding.from_name``.
    """
    delimiter: str = ","
    include_headers: bool = True
    encoding: TextEncoding = TextEncoding.UTF8

    def __post_init__(self) -> None:
        if self.delimiter == "\\t":
            self.delimiter = "\t"
        if len(self.delimiter) != 1 or self.delimiter in ("\r", "\n", '"'):
            raise ValidationFailedError(
                "Delimiter must be a single character other than a quote or line break",
                code=ErrorCodes.VALIDATION_FAILED,
                context={"delimiter": self.delimiter},
            )
        if not isinstance(self.encoding, TextEncoding):
            self.encoding = TextEncoding.from_name(self.encoding)


@dataclass
class ExportResult:
    """Outcome of an export.

    Attributes:
        tables_written: Tables present in the output, in order
        rows_written: Data records written (headers excluded)
        empty_tables: Tables omitted because they hold no rows
        skipped_tables: Tables omitted because a fetch failed, mapped to the error code
    """
    tables_written: List[str] = field(default_factory=list)
    rows_written: int = 0
    empty_tables: List[str] = field(default_factory=list)
    skipped_tables: Dict[str, str] = field(default_factory=dict)

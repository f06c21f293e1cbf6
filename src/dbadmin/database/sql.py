"""SQL text helpers for dynamic identifiers.

Database, table and column names cannot be bound as parameters, so they
are spliced into statements as backtick-quoted identifiers. Values are
always bound.

Example:
    >>> quote_identifier("order`items")
    '`order``items`'
    >>> key_predicate(["id", "lang"])
    '`id` = %s AND `lang` = %s'
"""

from typing import Sequence

from ..core.exceptions import ErrorCodes, ValidationFailedError

# Names excluded from database listings unless explicitly requested
SYSTEM_SCHEMAS = ("information_schema", "mysql", "performance_schema", "sys")


def quote_identifier(name: str) -> str:
    """Quote ``name`` for use as a MySQL identifier.

    Embedded backticks are doubled so the name can never terminate the
    quoted identifier.

    Raises:
        ValidationFailedError: If the name is empty or contains a NUL byte
    """
    if not isinstance(name, str) or not name:
        raise ValidationFailedError(
            "Identifier must be a non-empty string",
            code=ErrorCodes.INVALID_IDENTIFIER,
            context={"identifier": repr(name)},
        )
    if "\x00" in name:
        raise ValidationFailedError(
            "Identifier contains a NUL byte",
            code=ErrorCodes.INVALID_IDENTIFIER,
            context={"identifier": repr(name)},
        )
    return "`" + name.replace("`", "``") + "`"


def quote_for_params(name: str) -> str:
    """Quote ``name`` for a statement that is also given bound parameters.

    The driver applies %-formatting to such statements, so a literal percent
    sign inside the identifier has to be doubled.
    """
    return quote_identifier(name).replace("%", "%%")


def use_statement(database: str) -> str:
    return f"USE {quote_identifier(database)}"


def key_predicate(columns: Sequence[str]) -> str:
    """Build ``col = %s AND ...`` for a point lookup on ``columns``.

    The result is meant for a parameterized statement; see ``quote_for_params``.
    """
    return " AND ".join(f"{quote_for_params(column)} = %s" for column in columns)

"""dbadmin exception hierarchy.

This module defines the structured exceptions raised by the credential store
and the database engines. Every exception carries an error code and a context
dictionary so that a calling layer can render a localized message without
parsing free text.

Classes:
    DbAdminException: Base exception for all dbadmin operations
    ConfigurationError: Configuration related errors
    ConfigCorruptError: Persisted configuration cannot be parsed
    PersistenceError: Configuration cannot be written
    AuthenticationFailedError: Ciphertext token failed to decrypt
    ConnectionFailedError: Database connection could not be opened
    QueryError: Metadata or data statement failed
    RowNotFoundError: Point lookup matched no row
    ServerNotFoundError: Unknown server profile id
    ValidationFailedError: Input data failed validation

Example:
    >>> try:
    ...     async with gateway.open_profile(profile) as conn:
    ...         ...
    ... except ConnectionFailedError as e:
    ...     logger.error("Connection failed", error_code=e.code, context=e.context)
"""

from typing import Any, Dict, Optional


class DbAdminException(Exception):
    """Base exception for all dbadmin operations.

    Attributes:
        code: Unique error code for categorization
        context: Additional context information about the error
        cause: Original exception that caused this error (if any)

    Example:
        >>> raise DbAdminException(
        ...     "Operation failed",
        ...     code="OPERATION_FAILED",
        ...     context={"server_id": "3f2c..."}
        ... )
    """

    default_code: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        """Initialize dbadmin exception.

        Args:
            message: Human-readable error description
            code: Unique error code (defaults to the class default or class name)
            context: Additional context information
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message: str = message
        self.code: str = code or self.default_code or self.__class__.__name__
        self.context: Dict[str, Any] = context or {}
        self.cause: Optional[BaseException] = cause

    def __str__(self) -> str:
        """Return formatted error message with code."""
        return f"{self.code}: {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation of the exception."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"context={self.context!r}, "
            f"cause={self.cause!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigurationError(DbAdminException):
    """Configuration related errors."""


class ConfigCorruptError(ConfigurationError):
    """Persisted configuration exists but cannot be parsed or validated."""

    default_code = "CONFIG_CORRUPT"


class PersistenceError(ConfigurationError):
    """Configuration could not be encrypted or written to disk.

    The target file is left untouched when this is raised.
    """

    default_code = "PERSISTENCE_FAILED"


class ValidationFailedError(DbAdminException):
    """Input data failed validation.

    Raised for mismatched key/value counts, missing required fields,
    duplicate ids and identifiers that were not produced by introspection.
    """

    default_code = "VALIDATION_FAILED"


class SecurityError(DbAdminException):
    """Security related errors."""


class AuthenticationFailedError(SecurityError):
    """Ciphertext token is malformed, too short or failed tag verification.

    Callers treat this as "not decryptable", not as a hard fault.
    """

    default_code = "DECRYPTION_FAILED"


class ConnectionFailedError(DbAdminException):
    """Database connection could not be established or is unusable."""

    default_code = "CONNECTION_FAILED"


class QueryError(DbAdminException):
    """Metadata or data statement failed."""

    default_code = "QUERY_EXECUTION_FAILED"


class NotFoundError(DbAdminException):
    """Requested entity does not exist."""


class RowNotFoundError(NotFoundError):
    """Point lookup matched no row."""

    default_code = "ROW_NOT_FOUND"


class ServerNotFoundError(NotFoundError):
    """No server profile with the requested id."""

    default_code = "SERVER_NOT_FOUND"


class ErrorCodes:
    """Common error codes for dbadmin exceptions."""

    # Configuration errors
    CONFIG_CORRUPT = "CONFIG_CORRUPT"
    CONFIG_INVALID = "CONFIG_INVALID"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"
    ENCRYPTION_FAILED = "ENCRYPTION_FAILED"
    DECRYPTION_FAILED = "DECRYPTION_FAILED"

    # Connection errors
    CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"
    CONNECTION_REFUSED = "CONNECTION_REFUSED"
    AUTH_FAILED = "AUTH_FAILED"
    NETWORK_UNREACHABLE = "NETWORK_UNREACHABLE"
    PING_FAILED = "PING_FAILED"

    # Query errors
    QUERY_EXECUTION_FAILED = "QUERY_EXECUTION_FAILED"
    TABLE_NOT_FOUND = "TABLE_NOT_FOUND"
    DATABASE_NOT_FOUND = "DATABASE_NOT_FOUND"
    SQL_SYNTAX_ERROR = "SQL_SYNTAX_ERROR"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"

    # Lookup errors
    ROW_NOT_FOUND = "ROW_NOT_FOUND"
    SERVER_NOT_FOUND = "SERVER_NOT_FOUND"

    # Validation errors
    VALIDATION_FAILED = "VALIDATION_FAILED"
    DUPLICATE_ID = "DUPLICATE_ID"
    KEY_VALUE_MISMATCH = "KEY_VALUE_MISMATCH"
    INVALID_IDENTIFIER = "INVALID_IDENTIFIER"
    UNKNOWN_IDENTIFIER = "UNKNOWN_IDENTIFIER"


def create_error_from_exception(
    exc: Exception,
    message: Optional[str] = None,
    code: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
) -> DbAdminException:
    """Create dbadmin exception from generic exception.

    Args:
        exc: Original exception to convert
        message: Override message (uses original if not provided)
        code: Error code to assign
        context: Additional context information

    Returns:
        Appropriate dbadmin exception type

    Example:
        >>> try:
        ...     path.write_text(data)
        ... except OSError as e:
        ...     raise create_error_from_exception(e, code=ErrorCodes.PERSISTENCE_FAILED)
    """
    exception_mapping = {
        ConnectionRefusedError: ConnectionFailedError,
        TimeoutError: ConnectionFailedError,
        OSError: PersistenceError,
        ValueError: ValidationFailedError,
        TypeError: ValidationFailedError,
    }

    exception_class = DbAdminException
    for exc_type in type(exc).__mro__:
        if exc_type in exception_mapping:
            exception_class = exception_mapping[exc_type]
            break

    return exception_class(
        message or str(exc),
        code=code,
        context=context or {},
        cause=exc,
    )

"""dbadmin core infrastructure.

This package provides the foundational pieces shared by the credential store
and the database engines: the exception hierarchy, the reader/writer lock,
the component base class and small utilities.

Modules:
    base: Component base class
    exceptions: Exception hierarchy
    locks: Reader/writer lock
    utils: Utility functions

Example:
    >>> from dbadmin.core import ReadWriteLock
    >>> from dbadmin.core.exceptions import ValidationFailedError
"""

from .base import BaseComponent
from .exceptions import (
    AuthenticationFailedError,
    ConfigCorruptError,
    ConfigurationError,
    ConnectionFailedError,
    DbAdminException,
    ErrorCodes,
    NotFoundError,
    PersistenceError,
    QueryError,
    RowNotFoundError,
    SecurityError,
    ServerNotFoundError,
    ValidationFailedError,
    create_error_from_exception,
)
from .locks import ReadWriteLock
from .utils import FormatUtils, ValidationUtils

__all__ = [
    # Base classes
    "BaseComponent",
    "ReadWriteLock",

    # Exceptions
    "DbAdminException",
    "ConfigurationError",
    "ConfigCorruptError",
    "PersistenceError",
    "ValidationFailedError",
    "SecurityError",
    "AuthenticationFailedError",
    "ConnectionFailedError",
    "QueryError",
    "NotFoundError",
    "RowNotFoundError",
    "ServerNotFoundError",
    "ErrorCodes",
    "create_error_from_exception",

    # Utilities
    "ValidationUtils",
    "FormatUtils",
]

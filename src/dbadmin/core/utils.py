"""Utility functions for dbadmin operations.

Classes:
    ValidationUtils: Small validation predicates
    FormatUtils: Human-readable formatting helpers

Example:
    >>> ValidationUtils.validate_hex("ab" * 32, length=32)
    True
    >>> FormatUtils.format_duration(61)
    '1m 1s'
"""

import re
from typing import Union


class ValidationUtils:
    """Utility class for validation operations."""

    IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
    HEX_PATTERN = re.compile(r"^[0-9a-fA-F]*$")

    @classmethod
    def validate_identifier(cls, identifier: str, *, allow_empty: bool = False) -> bool:
        """Validate identifier string.

        Args:
            identifier: String to validate as identifier
            allow_empty: Whether to allow empty strings

        Returns:
            True if identifier is valid

        Example:
            >>> ValidationUtils.validate_identifier("INFO")
            True
            >>> ValidationUtils.validate_identifier("1nfo")
            False
        """
        if not identifier:
            return allow_empty

        return bool(cls.IDENTIFIER_PATTERN.match(identifier))

    @classmethod
    def validate_hex(cls, value: str, *, length: int) -> bool:
        """Validate a hex string that decodes to exactly ``length`` bytes.

        Args:
            value: Hex string to validate
            length: Expected decoded length in bytes

        Returns:
            True if value is valid hex of the expected length
        """
        if not value or len(value) != length * 2:
            return False
        return bool(cls.HEX_PATTERN.match(value))


class FormatUtils:
    """Utility class for formatting operations."""

    @staticmethod
    def format_duration(seconds: Union[int, float]) -> str:
        """Format duration into human-readable string.

        Args:
            seconds: Duration in seconds

        Returns:
            Formatted duration string

        Example:
            >>> FormatUtils.format_duration(0.25)
            '250.00ms'
            >>> FormatUtils.format_duration(61)
            '1m 1s'
        """
        if seconds == 0:
            return "0s"

        abs_seconds = abs(seconds)
        sign = "-" if seconds < 0 else ""

        if abs_seconds < 1:
            return f"{sign}{abs_seconds * 1000:.2f}ms"

        minutes = int(abs_seconds // 60)
        secs = abs_seconds % 60
        parts = []
        if minutes > 0:
            parts.append(f"{minutes}m")
        if secs > 0 or not parts:
            parts.append(f"{int(secs)}s" if secs == int(secs) else f"{secs:.2f}s")
        return sign + " ".join(parts)

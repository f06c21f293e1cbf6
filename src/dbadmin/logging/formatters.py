"""Log formatters for dbadmin.

Classes:
    JSONFormatter: One JSON object per record
    TextFormatter: Human-readable single-line format

Both formatters mask record attributes whose names mark them as secrets
(``password``, ``encryption_key``, ...) so a stray keyword argument can never
put a credential into a log file.

Example:
    >>> handler.setFormatter(get_formatter("json"))
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

# LogRecord attributes that are not event data
_STANDARD_FIELDS = frozenset({
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName", "taskName",
    "processName", "process", "message", "exc_info", "exc_text",
    "stack_info",
})

SECRET_FIELDS = frozenset({"password", "passwd", "secret", "token", "encryption_key", "key_hex"})
MASK = "***"


def _extra_fields(record: logging.LogRecord, exclude: frozenset) -> Dict[str, Any]:
    extras: Dict[str, Any] = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_FIELDS or key in exclude:
            continue
        extras[key] = MASK if key.lower() in SECRET_FIELDS else value
    return extras


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured log output.

    Example:
        {"message": "Configuration saved", "timestamp": "2026-10-18T10:30:45.123456",
         "level": "INFO", "logger": "config.store", "server_count": 3}
    """

    def __init__(
        self,
        *,
        timestamp_format: str = "iso",
        include_location: bool = False,
        exclude_fields: Optional[list] = None,
    ) -> None:
        """Initialize JSON formatter.

        Args:
            timestamp_format: "iso" or "unix"
            include_location: Include module, function and line number
            exclude_fields: Record attributes to leave out
        """
        super().__init__()
        self.timestamp_format = timestamp_format
        self.include_location = include_location
        self.exclude_fields = frozenset(exclude_fields or [])

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {"message": record.getMessage()}

        if self.timestamp_format == "unix":
            log_data["timestamp"] = record.created
        else:
            log_data["timestamp"] = datetime.fromtimestamp(record.created).isoformat()

        log_data["level"] = record.levelname
        log_data["logger"] = record.name

        if self.include_location:
            log_data["module"] = record.module
            log_data["function"] = record.funcName
            log_data["line"] = record.lineno

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        log_data.update(_extra_fields(record, self.exclude_fields))

        try:
            return json.dumps(log_data, default=str, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            return json.dumps({
                "message": record.getMessage(),
                "level": record.levelname,
                "timestamp": datetime.fromtimestamp(record.created).isoformat(),
                "error": f"JSON serialization failed: {e}",
            })


class TextFormatter(logging.Formatter):
    """Human-readable text formatter.

    Example:
        2026-10-18 10:30:45.123 [WARNING] database.export: Table skipped (table=orders)
    """

    def __init__(self, *, include_extras: bool = True, max_line_length: Optional[int] = None) -> None:
        super().__init__()
        self.include_extras = include_extras
        self.max_line_length = max_line_length

    def format(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created)
        parts = [
            dt.strftime("%Y-%m-%d %H:%M:%S.") + f"{dt.microsecond:06d}"[:3],
            f"[{record.levelname}]",
            f"{record.name}:",
            record.getMessage(),
        ]

        if self.include_extras:
            extras = [
                f"{key}={value}" if isinstance(value, str) else f"{key}={value!r}"
                for key, value in _extra_fields(record, frozenset()).items()
            ]
            if extras:
                parts.append("(" + ", ".join(extras) + ")")

        formatted = " ".join(parts)

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        if self.max_line_length and len(formatted) > self.max_line_length:
            formatted = formatted[:self.max_line_length - 3] + "..."

        return formatted


def get_formatter(format_type: str, **kwargs: Any) -> logging.Formatter:
    """Get formatter instance by type.

    Args:
        format_type: "json" or "text"
        **kwargs: Formatter arguments

    Raises:
        ValueError: If format_type is not supported
    """
    format_type = format_type.lower()
    if format_type == "json":
        return JSONFormatter(**kwargs)
    if format_type == "text":
        return TextFormatter(**kwargs)
    raise ValueError(f"Unsupported formatter type: {format_type}")

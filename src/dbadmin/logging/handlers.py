"""Log handlers for dbadmin.

Classes:
    ConsoleHandler: Stream handler routing errors to stderr
    RotatingFileHandler: Size-rotated file handler creating its directory

Example:
    >>> handler = RotatingFileHandler("logs/dbadmin.log", maxBytes=10485760, backupCount=5)
    >>> logging.getLogger().addHandler(handler)
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional, TextIO, Union


class ConsoleHandler(logging.StreamHandler):
    """Console handler writing ERROR and above to stderr, the rest to stdout."""

    def __init__(self, *, use_stderr_for_errors: bool = True) -> None:
        super().__init__(sys.stdout)
        self.use_stderr_for_errors = use_stderr_for_errors

    def emit(self, record: logging.LogRecord) -> None:
        if self.use_stderr_for_errors and record.levelno >= logging.ERROR:
            original_stream = self.stream
            self.stream = sys.stderr
            try:
                super().emit(record)
            finally:
                self.stream = original_stream
        else:
            super().emit(record)


class RotatingFileHandler(logging.handlers.RotatingFileHandler):
    """Rotating file handler that creates parent directories and restricts permissions.

    Log files carry host names and user names of registered servers, so
    they are created owner-readable only unless ``file_mode`` says otherwise.
    """

    def __init__(
        self,
        filename: Union[str, Path],
        *,
        maxBytes: int = 10485760,
        backupCount: int = 5,
        encoding: str = "utf-8",
        delay: bool = False,
        create_dirs: bool = True,
        file_mode: Optional[int] = 0o600,
    ) -> None:
        """Initialize rotating file handler.

        Args:
            filename: Log file path
            maxBytes: Maximum file size before rotation
            backupCount: Number of backup files to keep
            encoding: File encoding
            delay: Delay file opening until first emit
            create_dirs: Create parent directories if needed
            file_mode: Permissions applied when the file is opened (None keeps umask)
        """
        self.file_mode = file_mode

        filename_path = Path(filename)
        if create_dirs and not filename_path.parent.exists():
            filename_path.parent.mkdir(parents=True, exist_ok=True)

        super().__init__(
            str(filename_path),
            maxBytes=maxBytes,
            backupCount=backupCount,
            encoding=encoding,
            delay=delay,
        )

    def _open(self) -> TextIO:
        stream = super()._open()
        if self.file_mode is not None:
            try:
                os.chmod(self.baseFilename, self.file_mode)
            except OSError:
                # Not the owner; keep the existing mode
                pass
        return stream

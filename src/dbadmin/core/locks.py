"""Reader/writer lock for shared in-memory state.

Classes:
    ReadWriteLock: Many concurrent readers or one exclusive writer

Example:
    >>> lock = ReadWriteLock()
    >>> with lock.read_locked():
    ...     snapshot = list(items)
    >>> with lock.write_locked():
    ...     items.append(item)
"""

import threading
from contextlib import contextmanager
from typing import Generator


class ReadWriteLock:
    """Reader/writer lock with writer preference.

    Readers proceed concurrently with other readers. A writer waits for
    active readers to drain and blocks new readers while it is waiting, so a
    steady stream of readers cannot starve it. The lock is not reentrant.
    """

    def __init__(self) -> None:
        self._condition = threading.Condition(threading.Lock())
        self._active_readers = 0
        self._waiting_writers = 0
        self._writer_active = False

    def acquire_read(self) -> None:
        """Block until shared access is granted."""
        with self._condition:
            while self._writer_active or self._waiting_writers:
                self._condition.wait()
            self._active_readers += 1

    def release_read(self) -> None:
        """Release shared access."""
        with self._condition:
            if self._active_readers <= 0:
                raise RuntimeError("release_read() called without a matching acquire_read()")
            self._active_readers -= 1
            if self._active_readers == 0:
                self._condition.notify_all()

    def acquire_write(self) -> None:
        """Block until exclusive access is granted."""
        with self._condition:
            self._waiting_writers += 1
            try:
                while self._writer_active or self._active_readers:
                    self._condition.wait()
            finally:
                self._waiting_writers -= 1
            self._writer_active = True

    def release_write(self) -> None:
        """Release exclusive access."""
        with self._condition:
            if not self._writer_active:
                raise RuntimeError("release_write() called without a matching acquire_write()")
            self._writer_active = False
            self._condition.notify_all()

    @contextmanager
    def read_locked(self) -> Generator[None, None, None]:
        """Context manager holding shared access for the block."""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Generator[None, None, None]:
        """Context manager holding exclusive access for the block."""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    def __repr__(self) -> str:
        return (
            f"ReadWriteLock(readers={self._active_readers}, "
            f"writer_active={self._writer_active}, "
            f"waiting_writers={self._waiting_writers})"
        )

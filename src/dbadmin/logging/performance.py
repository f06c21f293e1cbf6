"""Timing of metadata queries, row reads and exports.

Every engine owns a ``PerformanceLogger``; wrapping a database round trip in
``measure`` logs its duration at DEBUG (WARNING when it raises) and folds it
into per-operation statistics.

Classes:
    TimingMetrics: One timed call
    OperationStats: Running totals for one operation name
    TimingContext: Context manager timing a block
    PerformanceLogger: Named set of operation statistics

Example:
    >>> perf_logger = PerformanceLogger("database.export")
    >>> with perf_logger.measure("export", database="shop") as timer:
    ...     await exporter.export(conn, "shop", ["orders"], sink)
    >>> perf_logger.stats("export").calls
    1
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, Optional

from .structured import StructuredLogger
from ..core.utils import FormatUtils


@dataclass
class TimingMetrics:
    """One timed call.

    Attributes:
        operation: Operation name
        start_time: ``perf_counter`` value at entry
        end_time: ``perf_counter`` value at exit, None while running
        duration: Seconds elapsed, None while running
        metadata: Fields logged with the timing
        success: False when the block raised
        error: Text of the exception raised by the block
    """
    operation: str
    start_time: float
    end_time: Optional[float] = None
    duration: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    success: bool = True
    error: Optional[str] = None

    def complete(self, success: bool = True, error: Optional[str] = None) -> None:
        self.end_time = time.perf_counter()
        self.duration = self.end_time - self.start_time
        self.success = success
        self.error = error

    @property
    def duration_ms(self) -> Optional[float]:
        return None if self.duration is None else self.duration * 1000

    @property
    def is_complete(self) -> bool:
        return self.end_time is not None


@dataclass
class OperationStats:
    """Running totals for one operation name."""
    operation: str
    calls: int = 0
    failures: int = 0
    total_duration: float = 0.0
    max_duration: float = 0.0
    last_error: Optional[str] = None

    def record(self, timing: TimingMetrics) -> None:
        """Add a finished timing; a timing still running is ignored."""
        if timing.duration is None:
            return
        self.calls += 1
        self.total_duration += timing.duration
        self.max_duration = max(self.max_duration, timing.duration)
        if not timing.success:
            self.failures += 1
            self.last_error = timing.error

    @property
    def mean_duration(self) -> float:
        return self.total_duration / self.calls if self.calls else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "calls": self.calls,
            "failures": self.failures,
            "total_duration": self.total_duration,
            "mean_duration": self.mean_duration,
            "max_duration": self.max_duration,
            "last_error": self.last_error,
        }


class TimingContext:
    """Times the enclosed block, ``await`` expressions included.

    On exit the duration is logged at DEBUG, or at WARNING with the
    exception type when the block raised. The exception is never swallowed.
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[StructuredLogger] = None,
        metadata: Optional[Dict[str, Any]] = None,
        auto_log: bool = True,
    ) -> None:
        self.operation = operation
        self.logger = logger
        self.metadata = metadata or {}
        self.auto_log = auto_log
        self.timing: Optional[TimingMetrics] = None

    @property
    def duration(self) -> Optional[float]:
        return self.timing.duration if self.timing else None

    @property
    def duration_ms(self) -> Optional[float]:
        return self.timing.duration_ms if self.timing else None

    def __enter__(self) -> "TimingContext":
        self.timing = TimingMetrics(self.operation, time.perf_counter(), metadata=self.metadata)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.timing.complete(success=exc_type is None, error=str(exc_val) if exc_val else None)
        if self.logger is None or not self.auto_log:
            return

        if exc_type is None:
            self.logger.debug(
                "Operation completed",
                operation=self.operation,
                duration_ms=self.timing.duration_ms,
                **self.metadata
            )
        else:
            self.logger.warning(
                "Operation failed",
                operation=self.operation,
                duration_ms=self.timing.duration_ms,
                error_type=exc_type.__name__,
                **self.metadata
            )


class PerformanceLogger:
    """Times operations of one component and keeps statistics per operation.

    Attributes:
        name: Component name, also used for the ``perf.<name>`` logger
        logger: Structured logger receiving the timings
    """

    def __init__(
        self,
        name: str,
        *,
        auto_log: bool = True,
        track_stats: bool = True,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self.name = name
        self.auto_log = auto_log
        self.track_stats = track_stats
        self.logger = logger or StructuredLogger(f"perf.{name}")
        self._stats: Dict[str, OperationStats] = {}

    @contextmanager
    def measure(self, operation: str, **metadata: Any) -> Generator[TimingContext, None, None]:
        """Time the enclosed block under ``operation``.

        Args:
            operation: Operation name
            **metadata: Fields logged with the timing (database, table, ...)

        Yields:
            The running ``TimingContext``
        """
        timer = TimingContext(operation, self.logger, metadata, self.auto_log)
        try:
            with timer:
                yield timer
        finally:
            if self.track_stats and timer.timing is not None:
                self._stats.setdefault(operation, OperationStats(operation)).record(timer.timing)

    def stats(self, operation: str) -> OperationStats:
        """Statistics for ``operation``; all zero when it never ran."""
        return self._stats.get(operation, OperationStats(operation))

    def operations(self) -> Dict[str, OperationStats]:
        return dict(self._stats)

    def reset(self, operation: Optional[str] = None) -> None:
        if operation is None:
            self._stats.clear()
        else:
            self._stats.pop(operation, None)

    def log_summary(self) -> None:
        """Log one INFO line with the totals over all operations."""
        calls = sum(stats.calls for stats in self._stats.values())
        failures = sum(stats.failures for stats in self._stats.values())
        total = sum(stats.total_duration for stats in self._stats.values())
        self.logger.info(
            "Performance summary",
            operations=len(self._stats),
            calls=calls,
            failures=failures,
            total_duration=FormatUtils.format_duration(total),
        )

    def __repr__(self) -> str:
        return f"PerformanceLogger(name={self.name!r}, operations={len(self._stats)})"

"""
Timing of database operations.

Each :class:`~auditcord.database.database.Database` method runs inside
``measure(<operation>)``. Durations are aggregated per operation name and
operations slower than the threshold are logged as warnings.
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator

from auditcord.util.logger import get_logger

logger = get_logger("database_perf_mon")


@dataclass
class OperationTiming:
    """Running aggregate of one operation's durations, in seconds."""

    count: int = 0
    total_time: float = 0.0
    min_time: float = 0.0
    max_time: float = 0.0

    def add(self, duration: float) -> None:
        self.min_time = duration if self.count == 0 else min(self.min_time, duration)
        self.max_time = max(self.max_time, duration)
        self.count += 1
        self.total_time += duration

    def as_dict(self) -> Dict[str, float]:
        return {
            "count": self.count,
            "total_time": self.total_time,
            "avg_time": self.total_time / self.count if self.count else 0.0,
            "min_time": self.min_time,
            "max_time": self.max_time,
        }


class DatabasePerformanceMonitor:
    """Aggregates operation timings and flags slow operations."""

    def __init__(self, slow_query_threshold_ms: float = 100.0):
        self.slow_threshold = slow_query_threshold_ms / 1000.0
        self._timings: Dict[str, OperationTiming] = {}

    def track(self, operation: str, duration: float) -> None:
        """Record one execution of ``operation`` lasting ``duration`` seconds."""
        self._timings.setdefault(operation, OperationTiming()).add(duration)
        if duration > self.slow_threshold:
            logger.warning("[PERFORMANCE] Slow database operation %s: %.2fms", operation, duration * 1000)

    @contextmanager
    def measure(self, operation: str) -> Iterator[None]:
        """Time the enclosed block, including blocks that raise."""
        started = time.perf_counter()
        try:
            yield
        finally:
            self.track(operation, time.perf_counter() - started)

    def get_statistics(self) -> Dict[str, Dict[str, float]]:
        return {operation: timing.as_dict() for operation, timing in self._timings.items()}

    def reset(self) -> None:
        self._timings.clear()

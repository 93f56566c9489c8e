"""
In-process counters for cache traffic and rate-limit decisions.

Kept separate from the stores so the no-op and networked variants report
through the same object, and so tests can assert on blocked-call counts.
"""

from typing import Dict

from auditcord.util.logger import get_logger

logger = get_logger("cache_metrics")


class CacheMetrics:
    """Monotonic counters for cache hits, misses, errors and rate-limit blocks."""

    COUNTERS = ("hits", "misses", "errors", "rate_limit_allowed", "rate_limit_blocks")

    def __init__(self) -> None:
        self._counters: Dict[str, int] = {name: 0 for name in self.COUNTERS}

    def incr(self, name: str, amount: int = 1) -> None:
        self._counters[name] = self._counters.get(name, 0) + amount

    def record_hit(self) -> None:
        self.incr("hits")

    def record_miss(self) -> None:
        self.incr("misses")

    def record_error(self) -> None:
        self.incr("errors")

    def record_rate_limit_allowed(self) -> None:
        self.incr("rate_limit_allowed")

    def record_rate_limit_block(self) -> None:
        self.incr("rate_limit_blocks")

    def get(self, name: str) -> int:
        return self._counters.get(name, 0)

    def get_statistics(self) -> Dict[str, int]:
        """Return a copy of every counter."""
        return dict(self._counters)

    def reset(self) -> None:
        """Reset all counters to zero."""
        for name in list(self._counters):
            self._counters[name] = 0
        logger.debug("[CACHE METRICS] Counters reset")

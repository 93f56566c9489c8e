"""Cache backend used when no cache URL is configured."""

from __future__ import annotations

from typing import Optional

from auditcord.cache.cache_metrics import CacheMetrics


class NoopCacheStore:
    """
    Always-miss store.

    Reads miss, writes are discarded and every counter increment reports 1,
    so anything rate limited through it is always under its limit.
    """

    def __init__(self, metrics: CacheMetrics | None = None) -> None:
        self.metrics = metrics or CacheMetrics()

    async def get(self, key: str) -> Optional[bytes]:
        self.metrics.record_miss()
        return None

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        return None

    async def delete(self, key: str) -> None:
        return None

    async def increment_with_window(self, key: str, window_seconds: int) -> int:
        return 1

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        return None

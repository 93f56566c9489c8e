"""
In-process TTL store.

Implements the same fixed-window contract as the redis store inside a
single process. Expiry is checked on access against an injectable clock, so
tests can move time forward without sleeping, and writes sweep every expired
key at most once per ``sweep_interval`` seconds so keys that are never read
again do not accumulate.
"""

from __future__ import annotations

import time
from typing import Callable, Dict, Optional, Tuple

from auditcord.cache.cache_metrics import CacheMetrics
from auditcord.errors import CacheError
from auditcord.util.logger import get_logger

logger = get_logger("memory_store")


class MemoryCacheStore:
    """
    Dictionary-backed cache with per-key expiry.

    Entries are stored as ``(expires_at, value)``. Coroutines never await
    between reading and writing an entry, so every operation is atomic with
    respect to other tasks on the same event loop.
    """

    def __init__(
        self,
        metrics: CacheMetrics | None = None,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 60.0,
    ) -> None:
        """
        Args:
            metrics: Shared counters; a fresh instance is created if omitted.
            clock: Monotonic seconds source used for expiry.
            sweep_interval: Minimum seconds between full expiry sweeps.
        """
        self.metrics = metrics or CacheMetrics()
        self._clock = clock
        self._entries: Dict[str, Tuple[float, bytes]] = {}
        self._sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval

    def _sweep_expired(self) -> None:
        now = self._clock()
        if now < self._next_sweep:
            return
        self._next_sweep = now + self._sweep_interval

        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("[MEMORY CACHE] Swept %d expired key(s)", len(expired))

    def _live_entry(self, key: str) -> Optional[Tuple[float, bytes]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry[0]:
            del self._entries[key]
            logger.debug("[MEMORY CACHE] Expired key: %s", key)
            return None
        return entry

    async def get(self, key: str) -> Optional[bytes]:
        entry = self._live_entry(key)
        if entry is None:
            self.metrics.record_miss()
            return None
        self.metrics.record_hit()
        return entry[1]

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            self.metrics.record_error()
            raise CacheError(f"SET for key `{key}` needs a positive TTL, got {ttl_seconds}")
        self._sweep_expired()
        self._entries[key] = (self._clock() + ttl_seconds, bytes(value))

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def increment_with_window(self, key: str, window_seconds: int) -> int:
        if window_seconds <= 0:
            self.metrics.record_error()
            raise CacheError(f"INCR window for key `{key}` must be positive, got {window_seconds}")

        self._sweep_expired()
        entry = self._live_entry(key)
        if entry is None:
            self._entries[key] = (self._clock() + window_seconds, b"1")
            return 1

        expires_at, raw = entry
        try:
            count = int(raw) + 1
        except ValueError as exc:
            self.metrics.record_error()
            raise CacheError(f"value at key `{key}` is not an integer") from exc

        self._entries[key] = (expires_at, str(count).encode())
        return count

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

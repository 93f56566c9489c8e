"""
Counter/KV store contract and backend selection.

Every backend offers the same five coroutines:

- ``get(key)`` returns the stored bytes or ``None`` (a miss is not an error)
- ``set(key, value, ttl_seconds)`` upserts the value and resets its TTL
- ``delete(key)`` removes the key; a missing key is not an error
- ``increment_with_window(key, window_seconds)`` bumps a fixed-window counter
- ``ping()`` raises :class:`~auditcord.errors.CacheUnavailable` when down

``increment_with_window`` returns 1 and arms a fresh TTL when the key was
absent or expired; otherwise it returns the previous count plus one and
leaves the TTL alone, so a window only resets once it has fully elapsed.
Backend failures surface as :class:`~auditcord.errors.CacheError`.
"""

from __future__ import annotations

from typing import Optional, Protocol

from auditcord.cache.cache_metrics import CacheMetrics
from auditcord.util.logger import get_logger

logger = get_logger("cache_store")


class CacheStore(Protocol):
    """Structural type implemented by every Counter/KV backend."""

    metrics: CacheMetrics

    async def get(self, key: str) -> Optional[bytes]: ...

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def increment_with_window(self, key: str, window_seconds: int) -> int: ...

    async def ping(self) -> None: ...

    async def close(self) -> None: ...


def create_cache_store(
    url: str | None,
    *,
    max_connections: int = 10,
    metrics: CacheMetrics | None = None,
) -> CacheStore:
    """
    Pick the backend for a configured cache URL.

    Args:
        url: ``redis://``/``rediss://``/``unix://`` for the networked store,
            ``memory://`` for the in-process store, ``None`` or empty for
            the no-op store.
        max_connections: Pool size for the networked store.
        metrics: Shared counters; a fresh instance is created if omitted.

    Raises:
        ValueError: If the URL scheme is not recognised.
    """
    metrics = metrics or CacheMetrics()

    if not url:
        from auditcord.cache.noop_store import NoopCacheStore

        logger.info("[CACHE] No cache URL configured; using the no-op store")
        return NoopCacheStore(metrics=metrics)

    scheme = url.split("://", 1)[0].lower()
    if scheme == "memory":
        from auditcord.cache.memory_store import MemoryCacheStore

        logger.info("[CACHE] Using the in-process memory store")
        return MemoryCacheStore(metrics=metrics)

    if scheme in ("redis", "rediss", "unix"):
        from auditcord.cache.redis_store import RedisCacheStore

        logger.info("[CACHE] Using the redis store (pool size %d)", max_connections)
        return RedisCacheStore.from_url(url, max_connections=max_connections, metrics=metrics)

    raise ValueError(f"Unsupported cache URL scheme: {scheme!r}")

"""
Networked Counter/KV store backed by redis.

Connections come from a bounded ``redis.asyncio`` connection pool created
once per process. Transport failures are reported as
:class:`~auditcord.errors.CacheUnavailable`, every other redis failure as
:class:`~auditcord.errors.CacheError`.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from auditcord.cache.cache_metrics import CacheMetrics
from auditcord.errors import CacheError, CacheUnavailable
from auditcord.util.logger import get_logger

logger = get_logger("redis_store")

# EXPIRE takes a signed 64-bit seconds value
_MAX_EXPIRE_SECONDS = (1 << 63) - 1

# TTL reply for a key that exists but has no expiry
_NO_EXPIRY = -1


class RedisCacheStore:
    """Cache store that talks to a redis server through a pooled client."""

    def __init__(self, client: redis.Redis, metrics: CacheMetrics | None = None) -> None:
        """
        Args:
            client: A ``redis.asyncio.Redis`` client (normally pool-backed).
            metrics: Shared counters; a fresh instance is created if omitted.
        """
        self._client = client
        self.metrics = metrics or CacheMetrics()

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        max_connections: int = 10,
        metrics: CacheMetrics | None = None,
    ) -> "RedisCacheStore":
        """Create a store with its own bounded connection pool."""
        pool = redis.ConnectionPool.from_url(url, max_connections=max_connections)
        return cls(redis.Redis(connection_pool=pool), metrics=metrics)

    @asynccontextmanager
    async def _command(self, description: str) -> AsyncIterator[None]:
        """Translate redis exceptions raised inside the block."""
        try:
            yield
        except (RedisConnectionError, RedisTimeoutError) as exc:
            self.metrics.record_error()
            raise CacheUnavailable(f"redis connection failed during {description}: {exc}") from exc
        except RedisError as exc:
            self.metrics.record_error()
            raise CacheError(f"redis {description} failed: {exc}") from exc

    async def get(self, key: str) -> Optional[bytes]:
        async with self._command(f"GET for key `{key}`"):
            value = await self._client.get(key)

        if value is None:
            self.metrics.record_miss()
            return None
        self.metrics.record_hit()
        return value if isinstance(value, bytes) else str(value).encode()

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        async with self._command(f"SETEX for key `{key}`"):
            await self._client.set(key, value, ex=ttl_seconds)

    async def delete(self, key: str) -> None:
        async with self._command(f"DEL for key `{key}`"):
            await self._client.delete(key)

    async def increment_with_window(self, key: str, window_seconds: int) -> int:
        """
        INCR the key and EXPIRE it when the window starts.

        INCR and TTL run in one MULTI/EXEC pipeline. The TTL is armed when the
        count is 1, and again whenever the key is found without one (-1), so
        a failed EXPIRE is repaired by the next hit instead of leaving the
        counter without a window.
        """
        async with self._command(f"INCR for key `{key}`"):
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.incr(key, 1)
                pipe.ttl(key)
                raw_count, ttl = await pipe.execute()
        count = int(raw_count)

        if count == 1 or ttl == _NO_EXPIRY:
            if count != 1:
                logger.warning("[REDIS] Key %s had no TTL; re-arming %ds window", key, window_seconds)
            async with self._command(f"EXPIRE for key `{key}`"):
                await self._client.expire(key, min(int(window_seconds), _MAX_EXPIRE_SECONDS))

        return count

    async def ping(self) -> None:
        try:
            response = await self._client.ping()
        except RedisError as exc:
            self.metrics.record_error()
            raise CacheUnavailable(f"redis PING failed: {exc}") from exc

        if response is not True and response not in (b"PONG", "PONG"):
            raise CacheUnavailable(f"unexpected redis ping response: {response!r}")

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("[REDIS] Connection pool closed")

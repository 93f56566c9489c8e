"""
Fixed-window admission control per (feature, guild, channel, user).

Each call bumps a counter in the configured cache store. The first hit of a
window arms the window's TTL; calls are admitted while the count stays at
or below ``max_hits``. Cache failures fail open: a broken cache backend must
never take down the feature it guards.
"""

from __future__ import annotations

from auditcord.cache.cache_store import CacheStore
from auditcord.errors import CacheError
from auditcord.util.logger import get_logger

logger = get_logger("rate_limiter")

LLM_MENTION_FEATURE = "llm_mention"


def rate_limit_key(prefix: str, feature: str, guild_id: int, channel_id: int, user_id: int) -> str:
    """Build the counter key for one (feature, guild, channel, user) tuple."""
    return f"{prefix}:ratelimit:{feature}:{int(guild_id)}:{int(channel_id)}:{int(user_id)}"


class RateLimiter:
    """Decides whether a user may trigger a rate-limited feature right now."""

    def __init__(
        self,
        cache: CacheStore,
        *,
        window_seconds: int,
        max_hits: int,
        key_prefix: str = "auditcord",
    ) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if max_hits <= 0:
            raise ValueError("max_hits must be positive")

        self._cache = cache
        self.window_seconds = window_seconds
        self.max_hits = max_hits
        self.key_prefix = key_prefix

    async def within_limit(
        self,
        guild_id: int,
        channel_id: int,
        user_id: int,
        feature: str = LLM_MENTION_FEATURE,
    ) -> bool:
        """
        Count one hit and return whether it is admitted.

        Returns True for hits 1..max_hits of the current window and False for
        every hit above that. Returns True when the cache backend fails.
        """
        key = rate_limit_key(self.key_prefix, feature, guild_id, channel_id, user_id)

        try:
            count = await self._cache.increment_with_window(key, self.window_seconds)
        except CacheError as exc:
            logger.warning("[RATE LIMIT] Cache unavailable for %s, allowing request: %s", key, exc)
            return True

        if count > self.max_hits:
            self._cache.metrics.record_rate_limit_block()
            logger.debug(
                "[RATE LIMIT] Blocked %s (hit %d of %d in %ds window)",
                key, count, self.max_hits, self.window_seconds,
            )
            return False

        self._cache.metrics.record_rate_limit_allowed()
        return True

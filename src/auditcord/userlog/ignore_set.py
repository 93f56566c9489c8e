"""
Short-lived set of message identities whose deletion should not be logged.

The purge command registers the ids it is about to delete; the delete
handler checks membership and skips them. Entries carry their insertion
time and drop out after ``ttl_seconds``, which should cover the purge's own
duration plus event delivery lag. Expired entries are dropped whenever new
ones are added, and a matched entry is discarded once its deletion is seen.
"""

from __future__ import annotations

import time
from typing import Callable, Dict, Iterable

from auditcord.datatypes.activity_datatypes import MessageIdentity
from auditcord.util.logger import get_logger

logger = get_logger("ignore_set")


class ExpiringIgnoreSet:
    """Set of :class:`MessageIdentity` values with per-entry expiry."""

    def __init__(self, ttl_seconds: float = 10.0, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[MessageIdentity, float] = {}

    def add(self, identity: MessageIdentity) -> None:
        self.purge_expired()
        self._entries[identity] = self._clock()

    def add_many(self, identities: Iterable[MessageIdentity]) -> int:
        """Register several identities at once and return how many were added."""
        self.purge_expired()
        now = self._clock()
        count = 0
        for identity in identities:
            self._entries[identity] = now
            count += 1
        logger.debug("[IGNORE SET] Suppressing %d message(s) for %.1fs", count, self.ttl_seconds)
        return count

    def discard(self, identity: MessageIdentity) -> None:
        self._entries.pop(identity, None)

    def purge_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        cutoff = self._clock() - self.ttl_seconds
        expired = [identity for identity, added_at in self._entries.items() if added_at <= cutoff]
        for identity in expired:
            del self._entries[identity]
        return len(expired)

    def __contains__(self, identity: object) -> bool:
        added_at = self._entries.get(identity)  # type: ignore[arg-type]
        if added_at is None:
            return False
        if self._clock() - added_at >= self.ttl_seconds:
            del self._entries[identity]  # type: ignore[arg-type]
            return False
        return True

    def __len__(self) -> int:
        self.purge_expired()
        return len(self._entries)

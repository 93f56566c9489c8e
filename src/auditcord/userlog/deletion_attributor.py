"""
Best-effort attribution of a message deletion to the user who performed it.

Discord does not say who deleted a message. The guild audit log records
"message deleted" entries only when someone other than the author deletes,
and only with the target (author) and channel, not the message id. The
attributor therefore scans the most recent entries and accepts the first
one whose channel and target match and whose timestamp lies within a short
window of the message's own snowflake timestamp.

When nothing matches the author is assumed to have deleted the message
themselves. That is a display aid, not a security record: a moderator
deletion without a correlating audit entry is attributed to the author.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Protocol

from auditcord.datatypes.activity_datatypes import AuditEntry, MessageIdentity
from auditcord.datatypes.discord_datatypes import GuildID, UserID
from auditcord.util.logger import get_logger

logger = get_logger("deletion_attributor")

AUDIT_LOOKBACK_ENTRIES = 25
ATTRIBUTION_WINDOW_SECONDS = 20


class AuditTrail(Protocol):
    """Source of recent "message deleted" audit log entries, newest first."""

    async def fetch_message_deletions(self, guild_id: GuildID, limit: int) -> List[AuditEntry]: ...


def find_deleting_actor(
    entries: Iterable[AuditEntry],
    identity: MessageIdentity,
    author_id: UserID,
    message_created_at: datetime,
    window_seconds: int = ATTRIBUTION_WINDOW_SECONDS,
) -> Optional[UserID]:
    """Return the actor of the first entry correlating with the deletion."""
    for entry in entries:
        if entry.channel_id is None or entry.channel_id != identity.channel_id:
            continue
        if entry.target_id is None or entry.target_id != author_id:
            continue
        if abs((entry.created_at - message_created_at).total_seconds()) > window_seconds:
            continue
        return entry.actor_id
    return None


class DeletionAttributor:
    """Resolves ``deleted_by`` for deletion events using an :class:`AuditTrail`."""

    def __init__(
        self,
        audit_trail: AuditTrail,
        *,
        lookback_entries: int = AUDIT_LOOKBACK_ENTRIES,
        window_seconds: int = ATTRIBUTION_WINDOW_SECONDS,
    ) -> None:
        self._audit_trail = audit_trail
        self.lookback_entries = lookback_entries
        self.window_seconds = window_seconds

    async def attribute(self, identity: MessageIdentity, author_id: UserID) -> UserID:
        """Return the likely deleting user, falling back to ``author_id``."""
        entries = await self._audit_trail.fetch_message_deletions(identity.guild_id, self.lookback_entries)

        actor = find_deleting_actor(
            entries,
            identity,
            author_id,
            identity.message_id.created_at,
            self.window_seconds,
        )
        if actor is None:
            logger.debug(
                "[ATTRIBUTION] No audit entry for message %s in channel %s; assuming self-deletion",
                identity.message_id, identity.channel_id,
            )
            return author_id

        logger.debug("[ATTRIBUTION] Message %s deleted by %s", identity.message_id, actor)
        return actor

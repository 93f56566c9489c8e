"""
Userlog pipeline: snapshot bookkeeping, change classification, deletion
attribution and activity logging.

Each Discord notification is handled independently and may arrive out of
order. The service therefore never holds per-message locks:

- an update that arrives after its delete finds no snapshot and only
  establishes a new baseline,
- two concurrent updates of one message may both diff against the same
  stale snapshot; the later upsert wins and one event may be skipped.

Storage failures are logged and end the handler early; the affected event
is dropped, not retried. ``ValueOutOfRange`` is not caught.
"""

from __future__ import annotations

import time
from typing import Callable, Iterable, List, Optional

from auditcord.database.database import Database
from auditcord.datatypes.activity_datatypes import (
    ActivityEvent,
    ActivityFilters,
    EventKind,
    MessageIdentity,
    MessageSnapshot,
    ObservedMessage,
)
from auditcord.datatypes.discord_datatypes import ChannelID, UserID
from auditcord.errors import StorageError
from auditcord.repositories.activity_log_repo import QUERY_LIMIT_MAX
from auditcord.userlog.attachments import build_attachment_summary
from auditcord.userlog.deletion_attributor import DeletionAttributor
from auditcord.userlog.diff_classifier import classify_change
from auditcord.userlog.ignore_set import ExpiringIgnoreSet
from auditcord.util.logger import get_logger

logger = get_logger("activity_service")


def now_unix_secs() -> int:
    return int(time.time())


def _is_trackable(observed: ObservedMessage) -> bool:
    return observed.identity is not None and not observed.is_bot and not observed.is_webhook


class ActivityService:
    """Entry point for message create/update/delete notifications."""

    def __init__(
        self,
        database: Database,
        *,
        attributor: DeletionAttributor | None = None,
        ignore_set: ExpiringIgnoreSet | None = None,
        clock: Callable[[], int] = now_unix_secs,
    ) -> None:
        """
        Args:
            database: Initialized database coordinator.
            attributor: Resolves ``deleted_by``; without one the author is used.
            ignore_set: Identities whose deletion is not logged (purges).
            clock: Source of unix seconds for ``updated_at``/``created_at``.
        """
        self._db = database
        self._attributor = attributor
        self.ignore_set = ignore_set or ExpiringIgnoreSet()
        self._clock = clock

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def record_creation(self, observed: ObservedMessage) -> None:
        """Store the first snapshot of a new message. No event is logged."""
        if not _is_trackable(observed):
            return

        try:
            await self._db.upsert_message_snapshot(self._snapshot_of(observed))
        except StorageError:
            logger.exception("[USERLOG] Failed to upsert message snapshot on create")

    async def record_observation(self, observed: ObservedMessage) -> Optional[ActivityEvent]:
        """
        Diff an updated message against its snapshot and log the change.

        Returns the logged event, or None when nothing was logged.
        """
        if not _is_trackable(observed):
            return None

        identity = observed.identity
        assert identity is not None
        current = self._snapshot_of(observed)

        try:
            previous = await self._db.get_message_snapshot(identity)
        except StorageError:
            logger.exception("[USERLOG] Failed to get message snapshot on update")
            return None

        event = None
        kind = classify_change(previous, current.content, current.attachment_summary)
        if kind is not None:
            event = ActivityEvent(
                guild_id=identity.guild_id,
                channel_id=identity.channel_id,
                message_id=identity.message_id,
                author_id=observed.author_id,
                event_kind=kind,
                before_content=previous.content,
                after_content=current.content,
                attachment_summary=current.attachment_summary,
                created_at=current.updated_at,
            )
            try:
                await self._db.append_activity_event(event)
            except StorageError:
                logger.exception("[USERLOG] Failed to insert activity event on message update")
                return None

        try:
            await self._db.upsert_message_snapshot(current)
        except StorageError:
            logger.exception("[USERLOG] Failed to upsert message snapshot on update")

        return event

    async def record_deletion(self, identity: MessageIdentity) -> Optional[ActivityEvent]:
        """
        Log the deletion of a message and forget its snapshot.

        The last snapshot supplies the author and the "before" content. A
        deletion of an untracked message is still logged, without content or
        author. Identities in the ignore set only have their snapshot removed.
        """
        if identity in self.ignore_set:
            logger.debug("[USERLOG] Deletion of %s suppressed by ignore set", identity.message_id)
            self.ignore_set.discard(identity)
            await self._forget_snapshot(identity)
            return None

        try:
            previous = await self._db.get_message_snapshot(identity)
        except StorageError:
            logger.exception("[USERLOG] Failed to get message snapshot on delete")
            return None

        event = ActivityEvent(
            guild_id=identity.guild_id,
            channel_id=identity.channel_id,
            message_id=identity.message_id,
            event_kind=EventKind.DELETED,
            created_at=self._clock(),
        )
        if previous is not None:
            event.author_id = previous.author_id
            event.before_content = previous.content
            event.attachment_summary = previous.attachment_summary
            event.deleted_by = await self._resolve_deleted_by(identity, previous.author_id)

        try:
            await self._db.append_activity_event(event)
        except StorageError:
            logger.exception("[USERLOG] Failed to insert activity event on message delete")
            return None

        await self._forget_snapshot(identity)
        return event

    async def record_bulk_deletion(self, identities: Iterable[MessageIdentity]) -> List[ActivityEvent]:
        """Run :meth:`record_deletion` for every identity of a bulk delete."""
        events: List[ActivityEvent] = []
        for identity in identities:
            event = await self.record_deletion(identity)
            if event is not None:
                events.append(event)
        return events

    def suppress_deletions(self, identities: Iterable[MessageIdentity]) -> int:
        """Register ids about to be deleted by the bot itself (e.g. a purge)."""
        return self.ignore_set.add_many(identities)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def query_activity(
        self,
        guild_id: int,
        *,
        author_id: int | None = None,
        event_kind: EventKind | str | None = None,
        limit: int = QUERY_LIMIT_MAX,
    ) -> List[ActivityEvent]:
        """
        Return a guild's activity events, newest first.

        Raises:
            ValueError: If ``event_kind`` names no known kind.
            StorageError: If the query fails.
        """
        filters = ActivityFilters(
            author_id=UserID(author_id) if author_id is not None else None,
            event_kind=EventKind.parse(event_kind) if event_kind is not None else None,
            limit=limit,
        )
        return await self._db.query_activity_events(guild_id, filters)

    async def get_userlog_channel(self, guild_id: int) -> Optional[ChannelID]:
        return await self._db.get_userlog_channel(guild_id)

    async def set_userlog_channel(self, guild_id: int, channel_id: int) -> None:
        await self._db.set_userlog_channel(guild_id, channel_id)

    async def clear_userlog_channel(self, guild_id: int) -> None:
        await self._db.clear_userlog_channel(guild_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _snapshot_of(self, observed: ObservedMessage) -> MessageSnapshot:
        assert observed.identity is not None
        return MessageSnapshot(
            identity=observed.identity,
            author_id=observed.author_id,
            content=observed.content,
            attachment_summary=build_attachment_summary(observed.attachments),
            updated_at=self._clock(),
        )

    async def _resolve_deleted_by(self, identity: MessageIdentity, author_id: UserID) -> UserID:
        if self._attributor is None:
            return author_id
        return await self._attributor.attribute(identity, author_id)

    async def _forget_snapshot(self, identity: MessageIdentity) -> None:
        try:
            await self._db.delete_message_snapshot(identity)
        except StorageError:
            logger.exception("[USERLOG] Failed to delete message snapshot")

"""
Data structures for the message activity log.

Defines the message snapshot (working state), the activity event (historical
fact) and the small value types passed between the userlog pipeline stages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

import discord

from auditcord.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID


class EventKind(Enum):
    """Kind of a classified message transition."""

    EDITED = "edited"
    ATTACHMENT_REMOVED = "attachment_removed"
    DELETED = "deleted"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: "EventKind | str") -> "EventKind":
        """
        Resolve an event kind from an enum member or a user-supplied string.

        Matching is case-insensitive and accepts the older ``message_edit``,
        ``attachment_delete`` and ``message_delete`` names.

        Raises:
            ValueError: If the string names no known kind.
        """
        if isinstance(value, EventKind):
            return value
        key = str(value).strip().lower()
        kind = _EVENT_KIND_ALIASES.get(key)
        if kind is None:
            raise ValueError(f"Unknown event kind: {value!r}")
        return kind


_EVENT_KIND_ALIASES = {
    "edited": EventKind.EDITED,
    "message_edit": EventKind.EDITED,
    "attachment_removed": EventKind.ATTACHMENT_REMOVED,
    "attachment_delete": EventKind.ATTACHMENT_REMOVED,
    "deleted": EventKind.DELETED,
    "message_delete": EventKind.DELETED,
}


@dataclass(frozen=True, slots=True)
class MessageIdentity:
    """(guild, channel, message) coordinate shared by snapshots and events."""

    guild_id: GuildID
    channel_id: ChannelID
    message_id: MessageID

    @classmethod
    def of(cls, guild_id: int, channel_id: int, message_id: int) -> "MessageIdentity":
        return cls(GuildID(guild_id), ChannelID(channel_id), MessageID(message_id))


# Extensions rendered inline by the Discord client
MEDIA_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".mp4", ".webm", ".mov")


@dataclass(frozen=True, slots=True)
class AttachmentInfo:
    """One attachment as recorded in an attachment summary."""

    filename: str
    url: str
    is_media: bool = False

    @classmethod
    def create(cls, filename: str, url: str) -> "AttachmentInfo":
        """Build an entry, deriving ``is_media`` from the file extension."""
        return cls(filename, url, filename.lower().endswith(MEDIA_EXTENSIONS))


@dataclass(slots=True)
class ObservedMessage:
    """Message state as delivered by a create or update notification.

    Attributes:
        identity: Where the message lives; ``None`` for DMs.
        author_id: Author of the message.
        content: Raw message text.
        attachments: Attachments in display order.
        is_bot: True when the author is a bot account.
        is_webhook: True when the message was sent through a webhook.
        mentions_bot: True when the message mentions the running bot.
    """

    identity: Optional[MessageIdentity]
    author_id: UserID
    content: str
    attachments: List[AttachmentInfo] = field(default_factory=list)
    is_bot: bool = False
    is_webhook: bool = False
    mentions_bot: bool = False

    @classmethod
    def from_message(cls, message: discord.Message, bot_user_id: int | None = None) -> "ObservedMessage":
        """Build an observation from a py-cord message."""
        identity = None
        if message.guild is not None:
            identity = MessageIdentity(
                GuildID.from_guild(message.guild),
                ChannelID.from_channel(message.channel),
                MessageID.from_message(message),
            )

        mentions_bot = bot_user_id is not None and any(
            user.id == bot_user_id for user in message.mentions
        )

        return cls(
            identity=identity,
            author_id=UserID.from_user(message.author),
            content=message.content or "",
            attachments=[
                AttachmentInfo.create(a.filename, a.url)
                for a in message.attachments
            ],
            is_bot=bool(message.author.bot),
            is_webhook=message.webhook_id is not None,
            mentions_bot=mentions_bot,
        )


@dataclass(slots=True)
class MessageSnapshot:
    """Last-observed state of a tracked message.

    ``attachment_summary`` is the serialized attachment list (see
    :mod:`auditcord.userlog.attachments`), ``None`` when there were none.
    ``updated_at`` is in unix seconds.
    """

    identity: MessageIdentity
    author_id: UserID
    content: str
    attachment_summary: Optional[str]
    updated_at: int


@dataclass(slots=True)
class ActivityEvent:
    """An append-only record of one classified message transition.

    ``event_id`` is assigned by the store on insert and is ``None`` before.
    """

    guild_id: GuildID
    channel_id: ChannelID
    event_kind: EventKind
    created_at: int
    message_id: Optional[MessageID] = None
    author_id: Optional[UserID] = None
    before_content: Optional[str] = None
    after_content: Optional[str] = None
    attachment_summary: Optional[str] = None
    deleted_by: Optional[UserID] = None
    event_id: Optional[int] = None


@dataclass(slots=True)
class ActivityFilters:
    """Filters accepted by activity log queries."""

    author_id: Optional[UserID] = None
    event_kind: Optional[EventKind] = None
    limit: int = 200


@dataclass(frozen=True, slots=True)
class AuditEntry:
    """One "message deleted" entry from the guild audit log.

    Attributes:
        actor_id: User who performed the deletion.
        target_id: Author of the deleted message(s), if recorded.
        channel_id: Channel the deletion happened in, if recorded.
        created_at: When the entry was written.
    """

    actor_id: UserID
    target_id: Optional[UserID]
    channel_id: Optional[ChannelID]
    created_at: datetime

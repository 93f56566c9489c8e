"""
Persistent storage for activity events.

The ``activity_events`` table is insert-only: nothing in auditcord updates or
deletes a row once written.
"""

from __future__ import annotations

from typing import List

import aiosqlite

from auditcord.database.db_ids import (
    from_db_id,
    from_db_id_optional,
    to_db_int,
    to_db_int_optional,
)
from auditcord.datatypes.activity_datatypes import ActivityEvent, ActivityFilters, EventKind
from auditcord.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID
from auditcord.errors import MalformedRecord

# Hard ceiling on rows returned by one query
QUERY_LIMIT_MAX = 200

_SELECT_COLUMNS = (
    "id, guild_id, channel_id, message_id, author_user_id, event_kind, "
    "before_content, after_content, attachment_summary, deleted_by_user_id, created_at"
)


def clamp_limit(limit: int, maximum: int = QUERY_LIMIT_MAX) -> int:
    """Clamp a caller-supplied limit into ``[1, maximum]``."""
    return max(1, min(int(limit), maximum))


def _row_to_event(row: aiosqlite.Row | tuple) -> ActivityEvent:
    (
        event_id, guild_id, channel_id, message_id, author_id, kind,
        before_content, after_content, attachment_summary, deleted_by, created_at,
    ) = row

    try:
        event_kind = EventKind(kind)
    except ValueError as exc:
        raise MalformedRecord(f"activity event {event_id} has unknown kind {kind!r}") from exc

    if not isinstance(created_at, int) or created_at < 0:
        raise MalformedRecord(f"activity event {event_id} has invalid created_at {created_at!r}")

    return ActivityEvent(
        event_id=event_id,
        guild_id=from_db_id("guild_id", guild_id, GuildID),
        channel_id=from_db_id("channel_id", channel_id, ChannelID),
        message_id=from_db_id_optional("message_id", message_id, MessageID),
        author_id=from_db_id_optional("author_user_id", author_id, UserID),
        event_kind=event_kind,
        before_content=before_content,
        after_content=after_content,
        attachment_summary=attachment_summary,
        deleted_by=from_db_id_optional("deleted_by_user_id", deleted_by, UserID),
        created_at=created_at,
    )


class ActivityLogRepo:
    """Insert and filtered select for the ``activity_events`` table."""

    @staticmethod
    async def append(conn: aiosqlite.Connection, event: ActivityEvent) -> int:
        """Insert one event and return its assigned sequence id."""
        cursor = await conn.execute(
            """
            INSERT INTO activity_events (
                guild_id, channel_id, message_id, author_user_id, event_kind,
                before_content, after_content, attachment_summary,
                deleted_by_user_id, created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                to_db_int("guild_id", event.guild_id),
                to_db_int("channel_id", event.channel_id),
                to_db_int_optional("message_id", event.message_id),
                to_db_int_optional("author_user_id", event.author_id),
                event.event_kind.value,
                event.before_content,
                event.after_content,
                event.attachment_summary,
                to_db_int_optional("deleted_by_user_id", event.deleted_by),
                to_db_int("created_at", event.created_at),
            ),
        )
        event_id = cursor.lastrowid
        await cursor.close()
        return int(event_id) if event_id is not None else 0

    @staticmethod
    async def query(
        conn: aiosqlite.Connection,
        guild_id: int,
        filters: ActivityFilters,
        max_limit: int = QUERY_LIMIT_MAX,
    ) -> List[ActivityEvent]:
        """Return the newest events of a guild matching ``filters``."""
        clauses = ["guild_id = ?"]
        params: list = [to_db_int("guild_id", guild_id)]

        if filters.author_id is not None:
            clauses.append("author_user_id = ?")
            params.append(to_db_int("author_user_id", filters.author_id))
        if filters.event_kind is not None:
            clauses.append("event_kind = ?")
            params.append(filters.event_kind.value)

        params.append(clamp_limit(filters.limit, min(max_limit, QUERY_LIMIT_MAX)))

        async with conn.execute(
            f"SELECT {_SELECT_COLUMNS} FROM activity_events "
            f"WHERE {' AND '.join(clauses)} "
            "ORDER BY created_at DESC, id DESC LIMIT ?",
            params,
        ) as cursor:
            rows = await cursor.fetchall()

        return [_row_to_event(row) for row in rows]


# Module-level singleton
activity_log_repo = ActivityLogRepo()

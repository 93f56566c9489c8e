"""
Persistent storage for message snapshots.

One row per (guild, channel, message). The row is replaced on every
observation and removed when the message is deleted. Timestamps are INTEGER
unix seconds. This module stores and loads; it never compares snapshots.
"""

from __future__ import annotations

from typing import Optional

import aiosqlite

from auditcord.database.db_ids import from_db_id, to_db_int
from auditcord.datatypes.activity_datatypes import MessageIdentity, MessageSnapshot
from auditcord.datatypes.discord_datatypes import UserID
from auditcord.errors import MalformedRecord
from auditcord.util.logger import get_logger

logger = get_logger("snapshot_repo")


def _identity_params(identity: MessageIdentity) -> tuple[int, int, int]:
    return (
        to_db_int("guild_id", identity.guild_id),
        to_db_int("channel_id", identity.channel_id),
        to_db_int("message_id", identity.message_id),
    )


class SnapshotRepo:
    """Low-level CRUD for the ``message_snapshots`` table."""

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @staticmethod
    async def upsert(conn: aiosqlite.Connection, snapshot: MessageSnapshot) -> None:
        """Insert or replace the snapshot row for its identity."""
        guild_id, channel_id, message_id = _identity_params(snapshot.identity)
        author_id = to_db_int("author_user_id", snapshot.author_id)
        updated_at = to_db_int("updated_at", snapshot.updated_at)

        await conn.execute(
            """
            INSERT INTO message_snapshots (
                guild_id, channel_id, message_id, author_user_id,
                content, attachment_summary, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(guild_id, channel_id, message_id) DO UPDATE SET
                author_user_id     = excluded.author_user_id,
                content            = excluded.content,
                attachment_summary = excluded.attachment_summary,
                updated_at         = excluded.updated_at
            """,
            (
                guild_id,
                channel_id,
                message_id,
                author_id,
                snapshot.content,
                snapshot.attachment_summary,
                updated_at,
            ),
        )

    @staticmethod
    async def delete(conn: aiosqlite.Connection, identity: MessageIdentity) -> None:
        """Remove the snapshot row; a missing row is not an error."""
        await conn.execute(
            "DELETE FROM message_snapshots WHERE guild_id = ? AND channel_id = ? AND message_id = ?",
            _identity_params(identity),
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    async def get(conn: aiosqlite.Connection, identity: MessageIdentity) -> Optional[MessageSnapshot]:
        """Return the stored snapshot, or None if the message is not tracked."""
        async with conn.execute(
            "SELECT author_user_id, content, attachment_summary, updated_at "
            "FROM message_snapshots WHERE guild_id = ? AND channel_id = ? AND message_id = ?",
            _identity_params(identity),
        ) as cursor:
            row = await cursor.fetchone()

        if row is None:
            return None

        author_raw, content, attachment_summary, updated_at = row
        if not isinstance(content, str) or not isinstance(updated_at, int):
            raise MalformedRecord(f"snapshot row for {identity} has unexpected column types")

        return MessageSnapshot(
            identity=identity,
            author_id=from_db_id("author_user_id", author_raw, UserID),
            content=content,
            attachment_summary=attachment_summary,
            updated_at=updated_at,
        )


# Module-level singleton
snapshot_repo = SnapshotRepo()

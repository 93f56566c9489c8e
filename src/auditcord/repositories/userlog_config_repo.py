"""
Repository for the guild_userlog_config table.
"""

from __future__ import annotations

from typing import Optional

import aiosqlite

from auditcord.database.db_ids import from_db_id_optional, to_db_int
from auditcord.datatypes.discord_datatypes import ChannelID


class UserlogConfigRepository:
    """CRUD for the per-guild userlog destination channel."""

    async def get_channel(self, conn: aiosqlite.Connection, guild_id: int) -> Optional[ChannelID]:
        async with conn.execute(
            "SELECT userlog_channel_id FROM guild_userlog_config WHERE guild_id = ?",
            (to_db_int("guild_id", guild_id),),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return from_db_id_optional("userlog_channel_id", row[0], ChannelID)

    async def set_channel(self, conn: aiosqlite.Connection, guild_id: int, channel_id: int) -> None:
        await conn.execute(
            """
            INSERT INTO guild_userlog_config (guild_id, userlog_channel_id)
            VALUES (?, ?)
            ON CONFLICT(guild_id) DO UPDATE SET userlog_channel_id = excluded.userlog_channel_id
            """,
            (to_db_int("guild_id", guild_id), to_db_int("channel_id", channel_id)),
        )

    async def clear_channel(self, conn: aiosqlite.Connection, guild_id: int) -> None:
        await conn.execute(
            "DELETE FROM guild_userlog_config WHERE guild_id = ?",
            (to_db_int("guild_id", guild_id),),
        )

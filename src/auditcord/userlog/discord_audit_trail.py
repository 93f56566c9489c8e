"""
py-cord implementation of the audit trail used for deletion attribution.
"""

from __future__ import annotations

from typing import List

import discord

from auditcord.datatypes.activity_datatypes import AuditEntry
from auditcord.datatypes.discord_datatypes import ChannelID, GuildID, UserID
from auditcord.util.logger import get_logger

logger = get_logger("discord_audit_trail")


def audit_entry_from_discord(entry: discord.AuditLogEntry) -> AuditEntry | None:
    """Convert a py-cord audit log entry; entries without an actor are dropped."""
    if entry.user is None:
        return None

    target = getattr(entry, "target", None)
    channel = getattr(getattr(entry, "extra", None), "channel", None)

    return AuditEntry(
        actor_id=UserID(entry.user.id),
        target_id=UserID(target.id) if getattr(target, "id", None) is not None else None,
        channel_id=ChannelID(channel.id) if getattr(channel, "id", None) is not None else None,
        created_at=entry.created_at,
    )


class DiscordAuditTrail:
    """Reads "message deleted" entries from a guild's audit log."""

    def __init__(self, bot: discord.Client) -> None:
        self.bot = bot

    async def fetch_message_deletions(self, guild_id: GuildID, limit: int) -> List[AuditEntry]:
        """
        Return up to ``limit`` recent deletion entries, newest first.

        Missing guilds, missing VIEW_AUDIT_LOG permission and HTTP failures
        yield an empty list, which makes attribution fall back to the author.
        """
        guild = self.bot.get_guild(int(guild_id))
        if guild is None:
            logger.debug("[AUDIT TRAIL] Guild %s not cached", guild_id)
            return []

        entries: List[AuditEntry] = []
        try:
            async for raw_entry in guild.audit_logs(limit=limit, action=discord.AuditLogAction.message_delete):
                entry = audit_entry_from_discord(raw_entry)
                if entry is not None:
                    entries.append(entry)
        except discord.Forbidden:
            logger.debug("[AUDIT TRAIL] Missing audit log permission in guild %s", guild_id)
            return []
        except discord.HTTPException as exc:
            logger.warning("[AUDIT TRAIL] Failed to fetch audit log for guild %s: %s", guild_id, exc)
            return []

        return entries

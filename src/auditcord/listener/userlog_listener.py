"""Userlog listener Cog for Auditcord.

Translates raw message create/edit/delete gateway events into calls on the
:class:`~auditcord.userlog.activity_service.ActivityService`. Raw events are
used so that edits and deletions of messages outside the client cache are
still seen.
"""

import discord
from discord.ext import commands

from auditcord.datatypes.activity_datatypes import MessageIdentity, ObservedMessage
from auditcord.userlog.activity_service import ActivityService
from auditcord.util.logger import get_logger

logger = get_logger("userlog_listener_cog")


class UserlogListenerCog(commands.Cog):
    """Cog feeding message lifecycle events into the userlog pipeline."""

    def __init__(self, discord_bot_instance, activity_service: ActivityService):
        """
        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        activity_service:
            Pipeline receiving the translated events.
        """
        self.bot = discord_bot_instance
        self.activity_service = activity_service
        logger.info("[USERLOG LISTENER] Userlog listener cog loaded")

    def _bot_user_id(self) -> int | None:
        user = getattr(self.bot, "user", None)
        return user.id if user is not None else None

    async def _fetch_message(self, channel_id: int, message_id: int) -> discord.Message | None:
        """Fetch the current state of a message, or None if it is gone or hidden."""
        try:
            channel = self.bot.get_channel(channel_id) or await self.bot.fetch_channel(channel_id)
            return await channel.fetch_message(message_id)
        except (discord.NotFound, discord.Forbidden):
            return None
        except discord.HTTPException as exc:
            logger.warning("[USERLOG LISTENER] Failed to fetch message %s: %s", message_id, exc)
            return None

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message):
        """Record the baseline snapshot of a new guild message."""
        if message.guild is None:
            return
        await self.activity_service.record_creation(
            ObservedMessage.from_message(message, self._bot_user_id())
        )

    @commands.Cog.listener(name="on_raw_message_edit")
    async def on_raw_message_edit(self, payload: discord.RawMessageUpdateEvent):
        """Diff the edited message against its snapshot."""
        if payload.guild_id is None:
            return

        message = await self._fetch_message(payload.channel_id, payload.message_id)
        if message is None:
            return

        await self.activity_service.record_observation(
            ObservedMessage.from_message(message, self._bot_user_id())
        )

    @commands.Cog.listener(name="on_raw_message_delete")
    async def on_raw_message_delete(self, payload: discord.RawMessageDeleteEvent):
        """Log a single deletion."""
        if payload.guild_id is None:
            return
        await self.activity_service.record_deletion(
            MessageIdentity.of(payload.guild_id, payload.channel_id, payload.message_id)
        )

    @commands.Cog.listener(name="on_raw_bulk_message_delete")
    async def on_raw_bulk_message_delete(self, payload: discord.RawBulkMessageDeleteEvent):
        """Log every message of a bulk deletion; purge-suppressed ids are skipped."""
        if payload.guild_id is None:
            return
        identities = [
            MessageIdentity.of(payload.guild_id, payload.channel_id, message_id)
            for message_id in sorted(payload.message_ids)
        ]
        await self.activity_service.record_bulk_deletion(identities)


def setup(discord_bot_instance, activity_service: ActivityService) -> None:
    """Register the userlog listener cog with the bot."""
    discord_bot_instance.add_cog(UserlogListenerCog(discord_bot_instance, activity_service))

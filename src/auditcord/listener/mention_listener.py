"""Mention gate Cog for Auditcord.

Messages that mention the bot are handed to an external text-completion
callback, but only while the author is within the per-channel rate limit.
What the callback does with the prompt (generating and sending a reply) is
outside this package.
"""

from typing import Awaitable, Callable

import discord
from discord.ext import commands

from auditcord.ratelimit.rate_limiter import LLM_MENTION_FEATURE, RateLimiter
from auditcord.util.logger import get_logger

logger = get_logger("mention_listener_cog")

CompletionCallback = Callable[[discord.Message, str], Awaitable[None]]


def strip_bot_mention(content: str, bot_user_id: int) -> str:
    """Remove ``<@id>`` and ``<@!id>`` mentions of the bot and trim whitespace."""
    return content.replace(f"<@{bot_user_id}>", "").replace(f"<@!{bot_user_id}>", "").strip()


class MentionListenerCog(commands.Cog):
    """Cog gating mention-triggered completions behind the rate limiter."""

    def __init__(self, discord_bot_instance, rate_limiter: RateLimiter, completion: CompletionCallback):
        self.bot = discord_bot_instance
        self.rate_limiter = rate_limiter
        self.completion = completion
        logger.info("[MENTION LISTENER] Mention listener cog loaded")

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message):
        if message.guild is None or message.author.bot or message.webhook_id is not None:
            return

        bot_user = self.bot.user
        if bot_user is None or not any(user.id == bot_user.id for user in message.mentions):
            return

        allowed = await self.rate_limiter.within_limit(
            message.guild.id,
            message.channel.id,
            message.author.id,
            LLM_MENTION_FEATURE,
        )
        if not allowed:
            logger.debug(
                "[MENTION LISTENER] Rate limited %s in channel %s",
                message.author.id, message.channel.id,
            )
            return

        await self.completion(message, strip_bot_mention(message.content or "", bot_user.id))


def setup(discord_bot_instance, rate_limiter: RateLimiter, completion: CompletionCallback) -> None:
    """Register the mention listener cog with the bot."""
    discord_bot_instance.add_cog(MentionListenerCog(discord_bot_instance, rate_limiter, completion))

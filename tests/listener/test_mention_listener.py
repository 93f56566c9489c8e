from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from auditcord.cache.memory_store import MemoryCacheStore
from auditcord.listener import mention_listener
from auditcord.listener.mention_listener import MentionListenerCog, strip_bot_mention
from auditcord.ratelimit.rate_limiter import RateLimiter

BOT_ID = 999


def mention_message(content=f"<@{BOT_ID}> what is new?", mentions_bot=True, guild=True, bot=False, author_id=30):
    return SimpleNamespace(
        guild=SimpleNamespace(id=10) if guild else None,
        channel=SimpleNamespace(id=20),
        author=SimpleNamespace(id=author_id, bot=bot),
        content=content,
        webhook_id=None,
        mentions=[SimpleNamespace(id=BOT_ID)] if mentions_bot else [],
    )


@pytest.fixture
def completion():
    return AsyncMock()


@pytest.fixture
def rate_limiter(fake_clock):
    return RateLimiter(MemoryCacheStore(clock=fake_clock), window_seconds=60, max_hits=2)


@pytest.fixture
def fake_bot():
    return SimpleNamespace(user=SimpleNamespace(id=BOT_ID), add_cog=MagicMock())


@pytest.fixture
def cog(fake_bot, rate_limiter, completion):
    return MentionListenerCog(fake_bot, rate_limiter, completion)


def test_strip_bot_mention():
    assert strip_bot_mention(f"<@{BOT_ID}> hello", BOT_ID) == "hello"
    assert strip_bot_mention(f"hey <@!{BOT_ID}>", BOT_ID) == "hey"
    assert strip_bot_mention("<@1> hello", BOT_ID) == "<@1> hello"


@pytest.mark.asyncio
async def test_mention_invokes_completion(cog, completion):
    message = mention_message()

    await cog.on_message(message)

    completion.assert_awaited_once_with(message, "what is new?")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "message",
    [
        mention_message(mentions_bot=False),
        mention_message(guild=False),
        mention_message(bot=True),
    ],
)
async def test_ignored_messages(cog, completion, message):
    await cog.on_message(message)
    completion.assert_not_awaited()


@pytest.mark.asyncio
async def test_rate_limited_mentions_are_dropped(cog, completion, fake_clock):
    for _ in range(4):
        await cog.on_message(mention_message())
    assert completion.await_count == 2

    await cog.on_message(mention_message(author_id=31))
    assert completion.await_count == 3

    fake_clock.advance(60)
    await cog.on_message(mention_message())
    assert completion.await_count == 4


def test_setup_registers_cog(fake_bot, rate_limiter, completion):
    mention_listener.setup(fake_bot, rate_limiter, completion)
    assert isinstance(fake_bot.add_cog.call_args.args[0], MentionListenerCog)

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from auditcord import main
from auditcord.cache.memory_store import MemoryCacheStore
from auditcord.cache.noop_store import NoopCacheStore
from auditcord.configuration.app_configuration import CACHE_URL_ENV, AppConfig
from auditcord.errors import BackendUnavailable, CacheUnavailable
from auditcord.listener.mention_listener import MentionListenerCog
from auditcord.listener.userlog_listener import UserlogListenerCog


class FakeBot:
    def __init__(self, *args, **kwargs) -> None:
        self._start = AsyncMock(side_effect=asyncio.CancelledError())
        self._close = AsyncMock()
        self._closed = False
        self.user = SimpleNamespace(id=42)
        self.cogs = []

    async def start(self, token: str) -> None:
        await self._start(token)

    def is_closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        self._closed = True
        await self._close()

    def add_cog(self, cog) -> None:
        self.cogs.append(cog)

    def get_guild(self, guild_id):
        return None


@pytest.fixture
def app_config(tmp_path, monkeypatch):
    monkeypatch.delenv(CACHE_URL_ENV, raising=False)
    path = tmp_path / "app_config.yml"
    path.write_text(
        f"database:\n  path: {tmp_path / 'runtime.db'}\n"
        "cache:\n  url: memory://\n"
        "rate_limit:\n  window_seconds: 10\n  max_hits: 3\n",
        encoding="utf-8",
    )
    return AppConfig(path)


@pytest.mark.asyncio
async def test_build_runtime_wires_services(app_config):
    runtime = await main.build_runtime(app_config, FakeBot())
    try:
        assert isinstance(runtime.cache, MemoryCacheStore)
        assert runtime.rate_limiter.max_hits == 3
        assert runtime.rate_limiter.window_seconds == 10
        assert runtime.database.connection.is_open
        assert runtime.activity_service.ignore_set.ttl_seconds == 10.0
    finally:
        await main.shutdown_runtime(None, runtime)

    assert not runtime.database.connection.is_open


@pytest.mark.asyncio
async def test_build_runtime_tolerates_unreachable_cache(app_config, monkeypatch):
    cache = NoopCacheStore()
    cache.ping = AsyncMock(side_effect=CacheUnavailable("down"))
    monkeypatch.setattr(main, "create_cache_store", lambda url, **kwargs: cache)

    runtime = await main.build_runtime(app_config, FakeBot())
    try:
        assert runtime.cache is cache
    finally:
        await main.shutdown_runtime(None, runtime)


def test_load_cogs_without_completion_skips_mentions():
    bot = FakeBot()
    runtime = SimpleNamespace(activity_service=AsyncMock(), rate_limiter=MagicMock())

    main.load_cogs(bot, runtime, None)

    assert [type(cog) for cog in bot.cogs] == [UserlogListenerCog]


def test_load_cogs_with_completion_adds_mention_gate():
    bot = FakeBot()
    runtime = SimpleNamespace(activity_service=AsyncMock(), rate_limiter=MagicMock())

    main.load_cogs(bot, runtime, AsyncMock())

    assert [type(cog) for cog in bot.cogs] == [UserlogListenerCog, MentionListenerCog]


def test_build_intents_enables_message_content():
    intents = main.build_intents()
    assert intents.message_content
    assert intents.guilds
    assert intents.messages


@pytest.mark.asyncio
async def test_async_main_successful_shutdown(monkeypatch, app_config):
    monkeypatch.setattr(main, "load_environment", lambda: "token")
    monkeypatch.setattr(main, "AppConfig", lambda path: app_config)
    monkeypatch.setattr(main, "build_intents", lambda: "intents")
    monkeypatch.setattr(main, "discord", SimpleNamespace(Bot=FakeBot, LoginFailure=RuntimeError))
    shutdown_mock = AsyncMock()
    monkeypatch.setattr(main, "shutdown_runtime", shutdown_mock)

    result = await main.async_main()

    assert result == 0
    shutdown_mock.assert_awaited_once()
    await shutdown_mock.await_args.args[1].database.shutdown()


@pytest.mark.asyncio
async def test_async_main_database_failure(monkeypatch, app_config):
    monkeypatch.setattr(main, "load_environment", lambda: "token")
    monkeypatch.setattr(main, "AppConfig", lambda path: app_config)
    monkeypatch.setattr(main, "build_intents", lambda: "intents")
    monkeypatch.setattr(main, "discord", SimpleNamespace(Bot=FakeBot, LoginFailure=RuntimeError))
    monkeypatch.setattr(main, "build_runtime", AsyncMock(side_effect=BackendUnavailable("no disk")))

    assert await main.async_main() == 1


def test_load_environment_requires_token(monkeypatch, tmp_path):
    monkeypatch.setattr(main, "BASE_DIR", tmp_path)
    monkeypatch.delenv("DISCORD_BOT_TOKEN", raising=False)

    with pytest.raises(SystemExit):
        main.load_environment()


def test_load_environment_reads_dotenv(monkeypatch, tmp_path):
    monkeypatch.setattr(main, "BASE_DIR", tmp_path)
    monkeypatch.delenv("DISCORD_BOT_TOKEN", raising=False)
    (tmp_path / ".env").write_text("DISCORD_BOT_TOKEN=abc123\n", encoding="utf-8")

    assert main.load_environment() == "abc123"

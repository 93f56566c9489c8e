"""
Auditcord
=========

Discord companion bot that records message edits and deletions per guild
and rate limits mention-triggered language-model calls.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. AUDITCORD_HOME environment variable, if set.
    2. If running frozen (PyInstaller, Nuitka), the executable's directory.
    3. Otherwise the repository root (grandparent of the package directory).
    """
    if env_home := os.getenv("AUDITCORD_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()

import asyncio
from dataclasses import dataclass

import discord
from dotenv import load_dotenv

from auditcord.cache.cache_store import CacheStore, create_cache_store
from auditcord.configuration.app_configuration import AppConfig
from auditcord.database.database import Database
from auditcord.errors import CacheUnavailable, StorageError
from auditcord.listener import mention_listener, userlog_listener
from auditcord.listener.mention_listener import CompletionCallback
from auditcord.ratelimit.rate_limiter import RateLimiter
from auditcord.userlog.activity_service import ActivityService
from auditcord.userlog.deletion_attributor import DeletionAttributor
from auditcord.userlog.discord_audit_trail import DiscordAuditTrail
from auditcord.userlog.ignore_set import ExpiringIgnoreSet
from auditcord.util.logger import get_logger, handle_exception


logger = get_logger("main")


@dataclass
class Runtime:
    """Long-lived services shared by the cogs."""

    database: Database
    cache: CacheStore
    rate_limiter: RateLimiter
    activity_service: ActivityService


def load_environment() -> str:
    """Load ``.env`` and return the Discord bot token.

    Raises
    ------
    SystemExit
        If ``DISCORD_BOT_TOKEN`` is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Intents needed to see guild messages, their content and the audit log."""
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    return intents


async def build_runtime(config: AppConfig, bot: discord.Client) -> Runtime:
    """Open the database and cache backend and wire the services together.

    A cache backend that fails its ping is kept: rate limiting fails open
    until it comes back.
    """
    database = Database(config.database_path, query_limit_max=config.userlog.query_limit_max)
    await database.initialize()

    cache_settings = config.cache
    cache = create_cache_store(cache_settings.url, max_connections=cache_settings.max_connections)
    try:
        await cache.ping()
    except CacheUnavailable as exc:
        logger.warning("Cache backend unreachable at startup; rate limits will fail open: %s", exc)

    rate_limiter = RateLimiter(
        cache,
        window_seconds=config.rate_limit.window_seconds,
        max_hits=config.rate_limit.max_hits,
        key_prefix=cache_settings.key_prefix,
    )

    userlog_settings = config.userlog
    attributor = DeletionAttributor(
        DiscordAuditTrail(bot),
        lookback_entries=userlog_settings.audit_lookback_entries,
        window_seconds=userlog_settings.attribution_window_seconds,
    )
    activity_service = ActivityService(
        database,
        attributor=attributor,
        ignore_set=ExpiringIgnoreSet(userlog_settings.ignore_window_seconds),
    )
    return Runtime(database, cache, rate_limiter, activity_service)


def load_cogs(bot: discord.Bot, runtime: Runtime, completion: CompletionCallback | None) -> None:
    """Register the cogs. The mention gate needs a completion callback."""
    userlog_listener.setup(bot, runtime.activity_service)
    if completion is not None:
        mention_listener.setup(bot, runtime.rate_limiter, completion)
    else:
        logger.info("No completion callback configured; mention listener not loaded.")
    logger.info("All cogs loaded successfully.")


async def shutdown_runtime(bot: discord.Bot | None, runtime: Runtime | None) -> None:
    """Close the bot, cache pool and database, logging (not raising) failures."""
    if bot is not None and not bot.is_closed():
        await bot.close()

    if runtime is not None:
        try:
            await runtime.cache.close()
        except Exception as exc:
            logger.exception("Error while closing cache backend: %s", exc)
        await runtime.database.shutdown()

    logger.info("Shutdown complete.")


async def async_main(completion: CompletionCallback | None = None) -> int:
    """Bootstrap configuration, storage and the bot; return an exit code."""
    token = load_environment()
    config = AppConfig(BASE_DIR / "config" / "app_config.yml")

    bot = discord.Bot(intents=build_intents())
    try:
        runtime = await build_runtime(config, bot)
    except StorageError as exc:
        logger.critical("Failed to initialize database: %s", exc)
        return 1

    load_cogs(bot, runtime, completion)

    exit_code = 0
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    except discord.LoginFailure as exc:
        logger.critical("Discord login failed: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot, runtime)

    return exit_code


def main() -> int:
    """Console entrypoint."""
    os.chdir(BASE_DIR)
    sys.excepthook = handle_exception
    logger.info("Starting Auditcord…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0


if __name__ == "__main__":
    sys.exit(main())

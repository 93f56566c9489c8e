"""
Database coordinator for the userlog pipeline.

The Database class owns the connection and delegates to the repositories:

- snapshot_repo: last-known state of every tracked message
- activity_log_repo: append-only activity events
- userlog_config_repo: per-guild userlog destination channel
- db_perf_mon: timing of every operation

Write operations run inside a serialised transaction; reads share the
connection. Storage failures propagate as :class:`~auditcord.errors.StorageError`
and id range violations as :class:`~auditcord.errors.ValueOutOfRange`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from auditcord.database.db_connection import ConnectionManager
from auditcord.database.db_perf_mon import DatabasePerformanceMonitor
from auditcord.database.db_schema import SchemaManager
from auditcord.datatypes.activity_datatypes import (
    ActivityEvent,
    ActivityFilters,
    MessageIdentity,
    MessageSnapshot,
)
from auditcord.datatypes.discord_datatypes import ChannelID
from auditcord.repositories.activity_log_repo import QUERY_LIMIT_MAX, activity_log_repo
from auditcord.repositories.snapshot_repo import snapshot_repo
from auditcord.repositories.userlog_config_repo import UserlogConfigRepository
from auditcord.util.logger import get_logger

logger = get_logger("database")

# Database file path
DB_PATH = Path("./data/app.db").resolve()


class Database:
    """
    Central database coordinator.

    Lifecycle:
        1. ``await initialize()`` at program startup
        2. use the snapshot / activity / config methods
        3. ``await shutdown()`` at program end
    """

    def __init__(self, db_path: Path = DB_PATH, query_limit_max: int = QUERY_LIMIT_MAX):
        """
        Args:
            db_path: Path to the SQLite database file
            query_limit_max: Upper bound applied to activity query limits
        """
        self.db_path = db_path
        self.query_limit_max = query_limit_max
        self._initialized = False
        self._connection = ConnectionManager()
        self._userlog_config = UserlogConfigRepository()
        self.db_perf_mon = DatabasePerformanceMonitor()

    @property
    def connection(self) -> ConnectionManager:
        return self._connection

    async def initialize(self) -> None:
        """
        Open the connection and create the schema. Idempotent.

        Raises:
            BackendUnavailable: If the database file cannot be opened.
            StorageError: If schema creation fails.
        """
        if self._initialized:
            logger.debug("[DATABASE] Already initialized, skipping")
            return

        await self._connection.open(self.db_path)
        async with self._connection.transaction() as conn:
            await SchemaManager.initialize_schema(conn)

        self._initialized = True
        logger.info("[DATABASE] Database initialized at %s", self.db_path)

    async def shutdown(self) -> None:
        """Close the connection."""
        if not self._initialized:
            return

        await self._connection.close()
        self._initialized = False
        logger.info("[DATABASE] Database shutdown complete")

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    async def upsert_message_snapshot(self, snapshot: MessageSnapshot) -> None:
        """Insert or replace the snapshot for ``snapshot.identity``."""
        with self.db_perf_mon.measure("upsert_message_snapshot"):
            async with self._connection.transaction() as conn:
                await snapshot_repo.upsert(conn, snapshot)

    async def get_message_snapshot(self, identity: MessageIdentity) -> Optional[MessageSnapshot]:
        with self.db_perf_mon.measure("get_message_snapshot"):
            async with self._connection.read() as conn:
                return await snapshot_repo.get(conn, identity)

    async def delete_message_snapshot(self, identity: MessageIdentity) -> None:
        """Remove the snapshot; deleting an untracked message is a no-op."""
        with self.db_perf_mon.measure("delete_message_snapshot"):
            async with self._connection.transaction() as conn:
                await snapshot_repo.delete(conn, identity)

    # ------------------------------------------------------------------
    # Activity events
    # ------------------------------------------------------------------

    async def append_activity_event(self, event: ActivityEvent) -> int:
        """Insert an event, set its ``event_id`` and return the id."""
        with self.db_perf_mon.measure("append_activity_event"):
            async with self._connection.transaction() as conn:
                event.event_id = await activity_log_repo.append(conn, event)

        logger.debug(
            "[DATABASE] Logged %s event %d in guild %s channel %s",
            event.event_kind, event.event_id, event.guild_id, event.channel_id,
        )
        return event.event_id

    async def query_activity_events(self, guild_id: int, filters: ActivityFilters) -> List[ActivityEvent]:
        """Return matching events for a guild, newest first."""
        with self.db_perf_mon.measure("query_activity_events"):
            async with self._connection.read() as conn:
                return await activity_log_repo.query(conn, guild_id, filters, self.query_limit_max)

    # ------------------------------------------------------------------
    # Userlog configuration
    # ------------------------------------------------------------------

    async def get_userlog_channel(self, guild_id: int) -> Optional[ChannelID]:
        async with self._connection.read() as conn:
            return await self._userlog_config.get_channel(conn, guild_id)

    async def set_userlog_channel(self, guild_id: int, channel_id: int) -> None:
        async with self._connection.transaction() as conn:
            await self._userlog_config.set_channel(conn, guild_id, channel_id)
        logger.info("[DATABASE] Userlog channel for guild %s set to %s", guild_id, channel_id)

    async def clear_userlog_channel(self, guild_id: int) -> None:
        async with self._connection.transaction() as conn:
            await self._userlog_config.clear_channel(conn, guild_id)
        logger.info("[DATABASE] Userlog channel for guild %s cleared", guild_id)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def get_db_performance_stats(self) -> Dict[str, Dict[str, float]]:
        return self.db_perf_mon.get_statistics()

    def reset_db_performance_stats(self) -> None:
        self.db_perf_mon.reset()
        logger.info("[DATABASE] Performance statistics reset")

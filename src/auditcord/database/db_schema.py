"""
Database schema initialization and version tracking.

Creates the snapshot, activity event and userlog configuration tables
together with the indexes their queries rely on.
"""

import aiosqlite
from auditcord.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 1


class SchemaManager:
    """Creates tables and indexes; safe to run on every startup."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """
        Create or update all database tables and indexes.

        Args:
            db: Open database connection
        """
        await SchemaManager._create_tables(db)
        await SchemaManager._create_indexes(db)
        await SchemaManager._update_schema_version(db)
        await db.commit()
        logger.info("[SCHEMA] Database schema initialized (version %d)", SCHEMA_VERSION)

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        """Create all required database tables."""
        # Last-known state of every tracked message
        await db.execute("""
            CREATE TABLE IF NOT EXISTS message_snapshots (
                guild_id INTEGER NOT NULL,
                channel_id INTEGER NOT NULL,
                message_id INTEGER NOT NULL,
                author_user_id INTEGER NOT NULL,
                content TEXT NOT NULL DEFAULT '',
                attachment_summary TEXT,
                updated_at INTEGER NOT NULL,
                PRIMARY KEY (guild_id, channel_id, message_id)
            )
        """)

        # Append-only record of classified edits and deletions
        await db.execute("""
            CREATE TABLE IF NOT EXISTS activity_events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                guild_id INTEGER NOT NULL,
                channel_id INTEGER NOT NULL,
                message_id INTEGER,
                author_user_id INTEGER,
                event_kind TEXT NOT NULL,
                before_content TEXT,
                after_content TEXT,
                attachment_summary TEXT,
                deleted_by_user_id INTEGER,
                created_at INTEGER NOT NULL
            )
        """)

        # Per-guild destination channel for rendered activity events
        await db.execute("""
            CREATE TABLE IF NOT EXISTS guild_userlog_config (
                guild_id INTEGER PRIMARY KEY,
                userlog_channel_id INTEGER
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _create_indexes(db: aiosqlite.Connection) -> None:
        """Create indexes for the activity log filters."""
        await db.execute("CREATE INDEX IF NOT EXISTS idx_activity_events_guild_time ON activity_events(guild_id, created_at DESC, id DESC)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_activity_events_author ON activity_events(guild_id, author_user_id, created_at DESC)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_activity_events_kind ON activity_events(guild_id, event_kind, created_at DESC)")

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))

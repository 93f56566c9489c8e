"""
Database connection management: one long-lived aiosqlite connection.

Connection model
----------------
One connection is opened at startup and shared by every operation; pragmas
are applied once on open. WAL mode allows one writer alongside concurrent
readers.

Concurrency model
-----------------
SQLite is single-writer. Writes go through :meth:`ConnectionManager.transaction`,
which serialises writers with a semaphore and commits or rolls back as a
unit. Every statement inside is atomic on its own (``INSERT ... ON
CONFLICT`` upserts included), so concurrent handlers touching the same row
resolve last-write-wins without any per-row locking.

Errors
------
aiosqlite errors raised inside ``transaction()``/``read()`` are re-raised as
:class:`~auditcord.errors.StorageError`; failures to open or reach the
file become :class:`~auditcord.errors.BackendUnavailable`.

Usage
-----
    manager = ConnectionManager()
    await manager.open(DB_PATH)

    async with manager.read() as conn:
        cursor = await conn.execute("SELECT ...")

    async with manager.transaction() as conn:
        await conn.execute("INSERT ...")

    await manager.close()
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from auditcord.errors import BackendUnavailable, StorageError
from auditcord.util.logger import get_logger

logger = get_logger("database_connection")

# ── Pragmas applied once when the connection is opened ──────────────────────
_PRAGMAS = [
    "PRAGMA journal_mode = WAL",
    "PRAGMA foreign_keys = ON",
    "PRAGMA synchronous = NORMAL",
    "PRAGMA temp_store = MEMORY",
    "PRAGMA busy_timeout = 5000",
]

# OperationalError messages that mean the file itself is unreachable
_UNAVAILABLE_MARKERS = ("unable to open", "disk i/o error", "database is locked", "no such file")


def _translate(exc: aiosqlite.Error, action: str) -> StorageError:
    message = str(exc).lower()
    if isinstance(exc, aiosqlite.OperationalError) and any(m in message for m in _UNAVAILABLE_MARKERS):
        return BackendUnavailable(f"sqlite {action} failed: {exc}")
    return StorageError(f"sqlite {action} failed: {exc}")


class ConnectionManager:
    """
    Wrapper around a single aiosqlite connection.

    * Reads: ``async with read()``; WAL allows concurrent reads.
    * Writes: ``async with transaction()``; serialised by ``_write_sem``.
    """

    def __init__(self) -> None:
        self._conn: aiosqlite.Connection | None = None
        self._write_sem = asyncio.Semaphore(1)
        self._path: Path | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self, path: Path) -> None:
        """
        Open the database and apply pragmas.

        Raises:
            BackendUnavailable: If the file cannot be created or opened.
        """
        if self._conn is not None:
            logger.warning("[DB CONNECTION] open() called but connection already exists, ignoring")
            return

        self._path = path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            conn = await aiosqlite.connect(path)
        except (OSError, aiosqlite.Error) as exc:
            raise BackendUnavailable(f"cannot open sqlite database at {path}: {exc}") from exc

        try:
            for pragma in _PRAGMAS:
                await conn.execute(pragma)
            await conn.commit()
        except aiosqlite.Error as exc:
            await conn.close()
            raise _translate(exc, "pragma setup") from exc

        self._conn = conn
        logger.info("[DB CONNECTION] Opened connection to %s", path)

    async def close(self) -> None:
        """Flush the WAL and close the connection."""
        if self._conn is None:
            return

        try:
            await self._conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
            await self._conn.commit()
        except aiosqlite.Error:
            logger.exception("[DB CONNECTION] WAL checkpoint failed during close")
        finally:
            await self._conn.close()
            self._conn = None
            logger.info("[DB CONNECTION] Connection closed")

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def connection(self) -> aiosqlite.Connection:
        """
        The raw aiosqlite connection.

        Raises:
            BackendUnavailable: If the connection has not been opened yet.
        """
        if self._conn is None:
            raise BackendUnavailable("database connection is not open")
        return self._conn

    # ------------------------------------------------------------------
    # Transaction context (writes)
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Serialised write transaction. Commits on clean exit, rolls back on
        any exception and re-raises it (aiosqlite errors as StorageError).
        """
        conn = self.connection

        async with self._write_sem:
            try:
                yield conn
                await conn.commit()
            except aiosqlite.Error as exc:
                await conn.rollback()
                raise _translate(exc, "write") from exc
            except BaseException:
                await conn.rollback()
                raise

    # ------------------------------------------------------------------
    # Read context
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def read(self) -> AsyncIterator[aiosqlite.Connection]:
        """Read access to the shared connection; no semaphore is taken."""
        conn = self.connection
        try:
            yield conn
        except aiosqlite.Error as exc:
            raise _translate(exc, "read") from exc

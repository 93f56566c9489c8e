"""
Pytest configuration and fixtures for Auditcord tests.
"""

import os
import sys
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import discord
import pytest

# Add src directory to path so imports work without an editable install
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Keep session log files out of the working tree
os.environ.setdefault("AUDITCORD_LOG_DIR", tempfile.mkdtemp(prefix="auditcord-logs-"))

from auditcord.database.database import Database  # noqa: E402

GUILD_ID = 111111111111111111
CHANNEL_ID = 222222222222222222
AUTHOR_ID = 333333333333333333
MODERATOR_ID = 444444444444444444

# Fixed send time for the messages used in tests
MESSAGE_TIME = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def message_id_at(when: datetime, offset: int = 0) -> int:
    """Snowflake whose embedded timestamp is ``when``."""
    return discord.utils.time_snowflake(when) + offset


class FakeClock:
    """Manually advanced clock, callable like ``time.monotonic``."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUnixClock(FakeClock):
    """Integer unix-seconds clock for the activity service."""

    def __init__(self, start: int = 1_750_000_000) -> None:
        super().__init__(start)

    def __call__(self) -> int:
        return int(self.now)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def unix_clock():
    return FakeUnixClock()


@pytest.fixture
async def test_db(tmp_path):
    """Initialized database in a temporary directory."""
    db = Database(tmp_path / "test.db")
    await db.initialize()
    yield db
    await db.shutdown()

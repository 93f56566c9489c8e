"""
Tests for message snapshot persistence and the id range checks.
"""

import pytest

from auditcord.database.db_ids import I64_MAX, from_db_id, to_db_int
from auditcord.datatypes.activity_datatypes import MessageIdentity, MessageSnapshot
from auditcord.datatypes.discord_datatypes import UserID
from auditcord.errors import MalformedRecord, ValueOutOfRange

from conftest import AUTHOR_ID, CHANNEL_ID, GUILD_ID

IDENTITY = MessageIdentity.of(GUILD_ID, CHANNEL_ID, 555555555555555555)


def make_snapshot(identity=IDENTITY, content="hello", summary=None, updated_at=100):
    return MessageSnapshot(
        identity=identity,
        author_id=UserID(AUTHOR_ID),
        content=content,
        attachment_summary=summary,
        updated_at=updated_at,
    )


class TestSnapshotStore:

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, test_db):
        assert await test_db.get_message_snapshot(IDENTITY) is None

    @pytest.mark.asyncio
    async def test_upsert_then_get(self, test_db):
        await test_db.upsert_message_snapshot(make_snapshot(summary="a.png (https://cdn/a.png)"))

        stored = await test_db.get_message_snapshot(IDENTITY)
        assert stored is not None
        assert stored.identity == IDENTITY
        assert stored.author_id == AUTHOR_ID
        assert stored.content == "hello"
        assert stored.attachment_summary == "a.png (https://cdn/a.png)"
        assert stored.updated_at == 100

    @pytest.mark.asyncio
    async def test_upsert_replaces_existing_row(self, test_db):
        await test_db.upsert_message_snapshot(make_snapshot(content="first", summary="x (y)"))
        await test_db.upsert_message_snapshot(make_snapshot(content="second", summary=None, updated_at=200))

        stored = await test_db.get_message_snapshot(IDENTITY)
        assert stored.content == "second"
        assert stored.attachment_summary is None
        assert stored.updated_at == 200

        async with test_db.connection.read() as conn:
            async with conn.execute("SELECT COUNT(*) FROM message_snapshots") as cursor:
                (count,) = await cursor.fetchone()
        assert count == 1

    @pytest.mark.asyncio
    async def test_identities_are_independent(self, test_db):
        other = MessageIdentity.of(GUILD_ID, CHANNEL_ID + 1, 555555555555555555)
        await test_db.upsert_message_snapshot(make_snapshot(content="one"))
        await test_db.upsert_message_snapshot(make_snapshot(identity=other, content="two"))

        assert (await test_db.get_message_snapshot(IDENTITY)).content == "one"
        assert (await test_db.get_message_snapshot(other)).content == "two"

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, test_db):
        await test_db.upsert_message_snapshot(make_snapshot())

        await test_db.delete_message_snapshot(IDENTITY)
        await test_db.delete_message_snapshot(IDENTITY)

        assert await test_db.get_message_snapshot(IDENTITY) is None

    @pytest.mark.asyncio
    async def test_upsert_after_delete_starts_fresh(self, test_db):
        await test_db.upsert_message_snapshot(make_snapshot(content="a"))
        await test_db.upsert_message_snapshot(make_snapshot(content="b"))
        await test_db.delete_message_snapshot(IDENTITY)
        assert await test_db.get_message_snapshot(IDENTITY) is None

        await test_db.upsert_message_snapshot(make_snapshot(content="c", updated_at=300))
        stored = await test_db.get_message_snapshot(IDENTITY)
        assert stored.content == "c"
        assert stored.updated_at == 300

    @pytest.mark.asyncio
    async def test_id_above_signed_range_is_rejected(self, test_db):
        identity = MessageIdentity.of(GUILD_ID, CHANNEL_ID, I64_MAX + 1)

        with pytest.raises(ValueOutOfRange):
            await test_db.upsert_message_snapshot(make_snapshot(identity=identity))
        with pytest.raises(ValueOutOfRange):
            await test_db.get_message_snapshot(identity)

    @pytest.mark.asyncio
    async def test_malformed_row_is_reported(self, test_db):
        async with test_db.connection.transaction() as conn:
            await conn.execute(
                "INSERT INTO message_snapshots VALUES (?, ?, ?, ?, ?, ?, ?)",
                (GUILD_ID, CHANNEL_ID, 555555555555555555, -5, "x", None, 1),
            )

        with pytest.raises(MalformedRecord):
            await test_db.get_message_snapshot(IDENTITY)


class TestIdConversions:

    def test_to_db_int_bounds(self):
        assert to_db_int("id", I64_MAX) == I64_MAX
        with pytest.raises(ValueOutOfRange) as exc_info:
            to_db_int("message_id", I64_MAX + 1)
        assert exc_info.value.field == "message_id"

    def test_from_db_id_rejects_non_ids(self):
        assert from_db_id("user_id", 42, UserID) == UserID(42)
        for raw in (-1, "42", None, True, 1.5):
            with pytest.raises(MalformedRecord):
                from_db_id("user_id", raw, UserID)

"""
Tests for the Peloton connection store and posted-workout set.
"""

import pytest

from fitslack.features.peloton import PelotonConnectionRepository, PostedWorkoutRepository


class TestPelotonConnections:
    """Tests for PelotonConnectionRepository."""

    @pytest.mark.asyncio
    async def test_upsert_replaces_session(self, db):
        repo = PelotonConnectionRepository(db)
        await repo.upsert("pel-1", "sess-1", "rider", "U04HBADQP0B")
        await repo.upsert("pel-1", "sess-2", "rider", None)

        conn = await repo.get("pel-1")
        assert conn.session_id == "sess-2"
        assert conn.slack_user_id == "U04HBADQP0B"

    @pytest.mark.asyncio
    async def test_list_excludes_session(self, db):
        repo = PelotonConnectionRepository(db)
        await repo.upsert("pel-1", "sess-1", "rider", "U04HBADQP0B")

        rows = await repo.list_connections()

        assert rows[0]["peloton_user_id"] == "pel-1"
        assert rows[0]["username"] == "rider"
        assert "session_id" not in rows[0]

    @pytest.mark.asyncio
    async def test_list_with_session_skips_missing(self, db):
        repo = PelotonConnectionRepository(db)
        await repo.upsert("pel-1", "sess-1", "rider", "U04HBADQP0B")
        await repo.upsert("pel-2", None, "walker", "U0WALKER01")

        polled = await repo.list_with_session()
        assert [c.peloton_user_id for c in polled] == ["pel-1"]

    @pytest.mark.asyncio
    async def test_delete(self, db):
        repo = PelotonConnectionRepository(db)
        await repo.upsert("pel-1", "sess-1", "rider", "U04HBADQP0B")

        assert await repo.delete_connection("pel-1") is True
        assert await repo.delete_connection("pel-1") is False
        assert await repo.get("pel-1") is None


class TestPostedWorkouts:
    """Tests for the posted-workout dedupe set."""

    @pytest.mark.asyncio
    async def test_mark_posted_once(self, db):
        repo = PostedWorkoutRepository(db)

        assert await repo.was_posted("w1") is False
        assert await repo.mark_posted("w1", "U04HBADQP0B") is True
        assert await repo.mark_posted("w1", "U04HBADQP0B") is False
        assert await repo.was_posted("w1") is True

"""
Tests for the Peloton poller.

The Peloton API is an AsyncMock; the store is a real in-memory database.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from fitslack.features.peloton import (
    PelotonClient,
    PelotonConnectionRepository,
    PelotonFetchError,
    PelotonPoller,
    PelotonProvider,
    PollSummary,
    PostedWorkoutRepository,
    SessionExpiredError,
)
from fitslack.features.posting import ActivityPublisher
from fitslack.shared.slack import PostError

CHANNEL = "C0TEAMRUNS"
RIDER = "U0RIDER001"
WALKER = "U0WALKER01"

WORKOUTS = {
    "ride-1": {
        "id": "ride-1",
        "fitness_discipline": "cycling",
        "ride": {"title": "20 min Climb Ride"},
        "overall_summary": {"distance": 6.2},
    },
    "yoga-1": {"id": "yoga-1", "fitness_discipline": "yoga", "title": "Yoga Flow"},
    "walk-1": {
        "id": "walk-1",
        "fitness_discipline": "walking",
        "summaries": [{"slug": "distance", "value": 1.5}],
    },
}


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def peloton_client():
    client = AsyncMock(spec=PelotonClient)
    lists = {"pel-rider": ["ride-1", "yoga-1"], "pel-walker": ["walk-1"]}
    client.list_workouts.side_effect = (
        lambda session_id, user_id, limit: [{"id": w} for w in lists[user_id]]
    )
    client.get_workout_detail.side_effect = (
        lambda session_id, workout_id: dict(WORKOUTS[workout_id])
    )
    return client


@pytest.fixture
def poller(session_factory, peloton_client, slack):
    publisher = ActivityPublisher(slack, CHANNEL, pedometer_user_id="UPEDOMETER1")
    return PelotonPoller(
        session_factory,
        PelotonProvider(peloton_client),
        publisher,
        slack,
        base_url="https://fit.example.com",
        interval_minutes=5,
        workout_limit=10,
    )


@pytest_asyncio.fixture
async def connections(session_factory):
    async with session_factory() as db:
        repo = PelotonConnectionRepository(db)
        await repo.upsert("pel-rider", "sess-rider", "rider", RIDER)
        await repo.upsert("pel-walker", "sess-walker", "walker", WALKER)
        await db.commit()


def _channel_posts(slack) -> list[str]:
    return [c.args[1] for c in slack.post_message.await_args_list if c.args[0] == CHANNEL]


def _dms(slack, user_id) -> list[str]:
    return [c.args[1] for c in slack.post_message.await_args_list if c.args[0] == user_id]


# =============================================================================
# Tests
# =============================================================================

class TestPollCycle:
    """Tests for one full poll cycle."""

    @pytest.mark.asyncio
    async def test_posts_workouts_with_distance(self, poller, slack, session_factory, connections):
        summary = await poller.poll_once()

        assert summary.connections == 2
        assert summary.posted == 2
        assert summary.skipped == 1
        assert summary.errors == 0

        posts = _channel_posts(slack)
        assert len(posts) == 2
        ride_post = next(p for p in posts if "ride-1" in p)
        assert ride_post.splitlines() == [
            "<@UPEDOMETER1> +6.20 mile 🚴",
            f"<@{RIDER}>: 20 min Climb Ride",
            "https://members.onepeloton.com/members/rider/workouts/ride-1",
        ]

        async with session_factory() as db:
            posted = PostedWorkoutRepository(db)
            assert await posted.was_posted("ride-1")
            assert await posted.was_posted("walk-1")
            assert not await posted.was_posted("yoga-1")

    @pytest.mark.asyncio
    async def test_second_cycle_posts_nothing(self, poller, slack, peloton_client, connections):
        await poller.poll_once()
        slack.post_message.reset_mock()
        peloton_client.get_workout_detail.reset_mock()

        summary = await poller.poll_once()

        assert summary.posted == 0
        slack.post_message.assert_not_awaited()
        # Only the distance-less workout is fetched again
        peloton_client.get_workout_detail.assert_awaited_once_with("sess-rider", "yoga-1")

    @pytest.mark.asyncio
    async def test_no_connections(self, poller, slack):
        summary = await poller.poll_once()

        assert summary.connections == 0
        slack.post_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_connection_without_session_skipped(self, poller, peloton_client, session_factory):
        async with session_factory() as db:
            await PelotonConnectionRepository(db).upsert("pel-rider", None, "rider", RIDER)
            await db.commit()

        summary = await poller.poll_once()

        assert summary.connections == 0
        peloton_client.list_workouts.assert_not_awaited()


class TestSessionExpiry:
    """A 401 stops one connection and DMs a re-auth link once."""

    @pytest.mark.asyncio
    async def test_expired_list_notifies_once_and_continues(self, poller, slack, peloton_client, connections):
        walker_list = peloton_client.list_workouts.side_effect

        def list_workouts(session_id, user_id, limit):
            if user_id == "pel-rider":
                raise SessionExpiredError("Peloton session expired")
            return walker_list(session_id, user_id, limit)

        peloton_client.list_workouts.side_effect = list_workouts

        summary = await poller.poll_once()

        dms = _dms(slack, RIDER)
        assert len(dms) == 1
        assert "https://fit.example.com/auth/peloton/start?slack_user_id=U0RIDER001" in dms[0]
        assert summary.expired == 1
        # The walker is still processed
        assert summary.posted == 1
        assert len(_channel_posts(slack)) == 1

    @pytest.mark.asyncio
    async def test_expired_detail_escalates(self, poller, slack, peloton_client, connections):
        """Expiry during a detail fetch ends the connection's batch with one DM."""
        details = peloton_client.get_workout_detail.side_effect

        def get_detail(session_id, workout_id):
            if session_id == "sess-rider":
                raise SessionExpiredError("Peloton session expired")
            return details(session_id, workout_id)

        peloton_client.get_workout_detail.side_effect = get_detail

        summary = await poller.poll_once()

        assert len(_dms(slack, RIDER)) == 1
        assert summary.expired == 1
        # ride-1 fails fast; yoga-1 is never fetched
        rider_fetches = [
            c for c in peloton_client.get_workout_detail.await_args_list
            if c.args[0] == "sess-rider"
        ]
        assert len(rider_fetches) == 1

    @pytest.mark.asyncio
    async def test_dm_failure_is_swallowed(self, poller, slack, peloton_client, connections):
        peloton_client.list_workouts.side_effect = SessionExpiredError("expired")
        slack.post_message.side_effect = PostError("Slack post failed: not_in_channel", "not_in_channel")

        summary = await poller.poll_once()

        assert summary.expired == 2
        assert summary.posted == 0


class TestFailureIsolation:
    """Errors never escape a cycle."""

    @pytest.mark.asyncio
    async def test_workout_error_continues(self, poller, slack, peloton_client, session_factory, connections):
        details = peloton_client.get_workout_detail.side_effect

        def get_detail(session_id, workout_id):
            if workout_id == "ride-1":
                raise PelotonFetchError("Peloton API error: 500")
            return details(session_id, workout_id)

        peloton_client.get_workout_detail.side_effect = get_detail

        summary = await poller.poll_once()

        assert summary.errors == 1
        assert summary.skipped == 1
        assert summary.posted == 1
        async with session_factory() as db:
            assert not await PostedWorkoutRepository(db).was_posted("ride-1")

    @pytest.mark.asyncio
    async def test_malformed_list_entry_counts_one_error(self, poller, peloton_client, connections):
        walker_list = peloton_client.list_workouts.side_effect

        def list_workouts(session_id, user_id, limit):
            if user_id == "pel-rider":
                return ["garbage", {"id": "ride-1"}]
            return walker_list(session_id, user_id, limit)

        peloton_client.list_workouts.side_effect = list_workouts

        summary = await poller.poll_once()

        assert summary.errors == 1
        assert summary.posted == 2

    @pytest.mark.asyncio
    async def test_post_failure_not_recorded(self, poller, slack, session_factory, connections):
        slack.post_message.side_effect = PostError("Slack post failed: rate_limited", "rate_limited")

        summary = await poller.poll_once()

        assert summary.errors == 2
        assert summary.posted == 0
        async with session_factory() as db:
            assert await PostedWorkoutRepository(db).count() == 0

    @pytest.mark.asyncio
    async def test_connection_error_logged_and_next_polled(self, poller, slack, peloton_client, connections):
        walker_list = peloton_client.list_workouts.side_effect

        def list_workouts(session_id, user_id, limit):
            if user_id == "pel-rider":
                raise PelotonFetchError("Peloton API error: 503")
            return walker_list(session_id, user_id, limit)

        peloton_client.list_workouts.side_effect = list_workouts

        summary = await poller.poll_once()

        assert summary.errors == 1
        assert summary.expired == 0
        assert summary.posted == 1
        assert _dms(slack, RIDER) == []


class TestLoop:
    """Tests for start/stop and overlapping cycles."""

    @pytest.mark.asyncio
    async def test_overlapping_cycle_skipped(self, poller, peloton_client, connections):
        async with poller._lock:
            assert await poller.poll_once() is None
        peloton_client.list_workouts.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_start_runs_first_cycle_immediately(self, poller):
        poller.poll_once = AsyncMock(return_value=None)

        await poller.start()
        for _ in range(5):
            await asyncio.sleep(0)

        assert poller.running
        poller.poll_once.assert_awaited_once()

        await poller.stop()
        assert not poller.running

    @pytest.mark.asyncio
    async def test_ticks_during_slow_cycle_are_skipped(self, poller):
        """The schedule keeps ticking; ticks that land mid-cycle do nothing."""
        poller.interval_seconds = 0.02
        release = asyncio.Event()
        cycles = []

        async def slow_cycle():
            cycles.append(1)
            await release.wait()
            return PollSummary()

        poller._poll_all = slow_cycle

        await poller.start()
        await asyncio.sleep(0.15)
        assert len(cycles) == 1

        release.set()
        await asyncio.sleep(0.15)
        assert len(cycles) >= 2

        await poller.stop()
        assert not poller.running

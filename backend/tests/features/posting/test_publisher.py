"""
Tests for the channel post layout.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from fitslack.features.peloton import PelotonClient, PelotonProvider
from fitslack.features.posting import ActivityPublisher
from fitslack.features.strava import StravaClient, StravaProvider
from fitslack.shared.slack import PostError

CHANNEL = "C0TEAMRUNS"


@pytest.fixture
def strava_provider():
    return StravaProvider(AsyncMock(spec=StravaClient))


@pytest.fixture
def peloton_provider():
    return PelotonProvider(AsyncMock(spec=PelotonClient))


class TestFormatMessage:
    """Tests for ActivityPublisher.format_message."""

    def test_strava_linked_athlete(self, slack, strava_provider):
        publisher = ActivityPublisher(slack, CHANNEL, pedometer_user_id="UPEDOMETER1")
        conn = SimpleNamespace(slack_user_id="U04HBADQP0B", athlete_firstname="Ada", athlete_lastname="L")

        text = publisher.format_message(
            strava_provider, conn, {"id": 777, "name": "Lunch Run"}, 3.10686
        )

        assert text.splitlines() == [
            "<@UPEDOMETER1> +3.11 mile 🏃",
            "<@U04HBADQP0B>: Lunch Run",
            "https://www.strava.com/activities/777",
        ]

    def test_strava_unlinked_uses_name(self, slack, strava_provider):
        publisher = ActivityPublisher(slack, CHANNEL)
        conn = SimpleNamespace(slack_user_id=None, athlete_firstname="Ada", athlete_lastname="Lovelace")

        text = publisher.format_message(strava_provider, conn, {"id": 1}, 1.0)

        assert text.splitlines() == [
            "+1.00 mile 🏃",
            "*Ada Lovelace*: New Run",
            "https://www.strava.com/activities/1",
        ]

    def test_peloton(self, slack, peloton_provider):
        publisher = ActivityPublisher(slack, CHANNEL, pedometer_user_id="UPEDOMETER1")
        conn = SimpleNamespace(slack_user_id="U0WALKER01", username="walker")
        detail = {"id": "w1", "fitness_discipline": "walking", "title": "Power Walk"}

        text = publisher.format_message(peloton_provider, conn, detail, 2.0)

        assert text.splitlines() == [
            "<@UPEDOMETER1> +2.00 mile 🚶",
            "<@U0WALKER01>: Power Walk",
            "https://members.onepeloton.com/members/walker/workouts/w1",
        ]


class TestPublish:
    """Tests for ActivityPublisher.publish."""

    @pytest.mark.asyncio
    async def test_posts_to_channel(self, slack, strava_provider):
        publisher = ActivityPublisher(slack, CHANNEL)
        conn = SimpleNamespace(slack_user_id="U04HBADQP0B")

        ts = await publisher.publish(strava_provider, conn, {"id": 5, "name": "Run"}, 1.5)

        assert ts == "1700000000.000100"
        channel, text = slack.post_message.await_args.args
        assert channel == CHANNEL
        assert text.startswith("+1.50 mile")

    @pytest.mark.asyncio
    async def test_post_error_propagates(self, slack, strava_provider):
        slack.post_message.side_effect = PostError("Slack post failed: not_in_channel", "not_in_channel")
        publisher = ActivityPublisher(slack, CHANNEL)
        conn = SimpleNamespace(slack_user_id=None, athlete_firstname=None, athlete_lastname=None)

        with pytest.raises(PostError):
            await publisher.publish(strava_provider, conn, {"id": 5}, 1.0)

"""
Activity publisher.

Formats a completed workout and posts it to the team channel.
"""

import logging
from typing import Any, Optional

from fitslack.shared.formatters import format_distance_line
from fitslack.shared.slack import SlackClient
from .provider import FitnessProvider

logger = logging.getLogger(__name__)


class ActivityPublisher:
    """
    Posts workouts to Slack.

    Message layout:
        <@pedometer> +3.11 mile 🏃
        <@U123>: Morning Run
        https://www.strava.com/activities/777
    """

    def __init__(
        self,
        slack: SlackClient,
        channel_id: Optional[str],
        pedometer_user_id: Optional[str] = None
    ):
        self.slack = slack
        self.channel_id = channel_id
        self.pedometer_user_id = pedometer_user_id

    def format_message(
        self,
        provider: FitnessProvider,
        connection: Any,
        detail: dict,
        miles: float
    ) -> str:
        distance_line = format_distance_line(
            miles,
            emoji=provider.activity_emoji(detail),
            pedometer_user_id=self.pedometer_user_id,
        )
        return (
            f"{distance_line}\n"
            f"{provider.display_name(connection)}: {provider.activity_title(detail)}\n"
            f"{provider.build_post_url(connection, detail)}"
        )

    async def publish(
        self,
        provider: FitnessProvider,
        connection: Any,
        detail: dict,
        miles: float
    ) -> str:
        """
        Post workout to the channel.

        Returns:
            Slack message timestamp

        Raises:
            PostError: If Slack rejects the message
        """
        text = self.format_message(provider, connection, detail, miles)
        ts = await self.slack.post_message(self.channel_id, text)
        logger.info(f"Slack post ok: provider={provider.name} ts={ts}")
        return ts

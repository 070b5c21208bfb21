"""
Strava implementation of the fitness provider capability.
"""

from typing import Optional

from fitslack.features.posting import FitnessProvider
from fitslack.shared.formatters import format_athlete_name, miles_from_meters, slack_mention
from .client import StravaClient
from .models import StravaConnection

# Only this activity type is posted
POSTED_ACTIVITY_TYPE = "Run"


class StravaProvider(FitnessProvider):
    """Reads activities with the connection's (already refreshed) access token."""

    name = "strava"
    ACTIVITY_URL = "https://www.strava.com/activities/{activity_id}"

    def __init__(self, client: StravaClient):
        self.client = client

    async def fetch_recent_activities(
        self,
        connection: StravaConnection,
        limit: int
    ) -> list[dict]:
        return await self.client.get_activities(connection.access_token, per_page=limit)

    async def fetch_activity_detail(
        self,
        connection: StravaConnection,
        activity_id: int
    ) -> dict:
        return await self.client.get_activity(connection.access_token, activity_id)

    def extract_distance(self, detail: dict) -> Optional[float]:
        """Strava reports meters; converted to miles."""
        meters = detail.get("distance")
        if not meters or meters <= 0:
            return None
        return miles_from_meters(meters)

    def build_post_url(self, connection: StravaConnection, detail: dict) -> str:
        return self.ACTIVITY_URL.format(activity_id=detail.get("id"))

    def is_postable(self, detail: dict) -> bool:
        return detail.get("type") == POSTED_ACTIVITY_TYPE

    def display_name(self, connection: StravaConnection) -> str:
        if connection.slack_user_id:
            return slack_mention(connection.slack_user_id)
        name = format_athlete_name(
            connection.athlete_firstname, connection.athlete_lastname
        )
        return f"*{name}*"

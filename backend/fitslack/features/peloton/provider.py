"""
Peloton implementation of the fitness provider capability.
"""

from typing import Any, Optional

from fitslack.features.posting import FitnessProvider
from fitslack.shared.formatters import workout_emoji
from .client import PelotonClient
from .models import PelotonConnection


def _positive(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if value > 0 else None


class PelotonProvider(FitnessProvider):
    """Reads workouts with the connection's session cookie."""

    name = "peloton"
    WORKOUT_URL = "https://members.onepeloton.com/members/{username}/workouts/{workout_id}"

    def __init__(self, client: PelotonClient):
        self.client = client

    async def fetch_recent_activities(
        self,
        connection: PelotonConnection,
        limit: int
    ) -> list[dict]:
        return await self.client.list_workouts(
            connection.session_id, connection.peloton_user_id, limit
        )

    async def fetch_activity_detail(
        self,
        connection: PelotonConnection,
        activity_id: str
    ) -> dict:
        return await self.client.get_workout_detail(connection.session_id, activity_id)

    def extract_distance(self, detail: dict) -> Optional[float]:
        """
        Distance in miles.

        Looks at overall_summary.distance (or the top-level distance when
        there is no overall_summary), then the "distance" entry of the
        summaries list. Workouts without distance (yoga, strength) give None.
        """
        summary = detail.get("overall_summary") or detail
        distance = _positive(summary.get("distance"))
        if distance is not None:
            return distance

        for entry in detail.get("summaries") or []:
            if isinstance(entry, dict) and entry.get("slug") == "distance":
                return _positive(entry.get("value"))

        return None

    def build_post_url(self, connection: PelotonConnection, detail: dict) -> str:
        return self.WORKOUT_URL.format(
            username=connection.username, workout_id=detail.get("id")
        )

    def activity_title(self, detail: dict) -> str:
        ride = detail.get("ride") or {}
        return ride.get("title") or detail.get("title") or "Peloton Workout"

    def activity_emoji(self, detail: dict) -> str:
        return workout_emoji(detail.get("fitness_discipline"))

"""
Fitness provider capability.

Each vendor (Strava, Peloton) implements this once; the webhook
pipeline, the poller and the publisher are written against it.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from fitslack.shared.formatters import DEFAULT_EMOJI, slack_mention


class FitnessProvider(ABC):
    """
    Abstract vendor capability.

    ``connection`` is the vendor's stored connection row; each provider
    reads the credential it needs from it (Strava access token, Peloton
    session ID).
    """

    name: str = "provider"

    @abstractmethod
    async def fetch_recent_activities(self, connection: Any, limit: int) -> list[dict]:
        """Recent activity/workout summaries, newest first."""
        ...

    @abstractmethod
    async def fetch_activity_detail(self, connection: Any, activity_id: Any) -> dict:
        """Full activity/workout payload."""
        ...

    @abstractmethod
    def extract_distance(self, detail: dict) -> Optional[float]:
        """Distance in miles, or None when the payload has no usable distance."""
        ...

    @abstractmethod
    def build_post_url(self, connection: Any, detail: dict) -> str:
        """Public URL of the activity on the vendor's site."""
        ...

    def activity_title(self, detail: dict) -> str:
        return detail.get("name") or "New Run"

    def activity_emoji(self, detail: dict) -> str:
        return DEFAULT_EMOJI

    def display_name(self, connection: Any) -> str:
        """Who did the workout: Slack mention when linked."""
        slack_user_id = getattr(connection, "slack_user_id", None)
        if slack_user_id:
            return slack_mention(slack_user_id)
        return "*Someone*"

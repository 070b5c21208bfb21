"""
Slack message sender.

Posts messages via Slack Web API (chat.postMessage) for workout posts
and direct-message notifications.
"""

import logging
from typing import Optional

import httpx

from fitslack.shared.exceptions import VendorError

logger = logging.getLogger(__name__)


class SlackError(VendorError):
    """Base Slack error."""
    pass


class PostError(SlackError):
    """Slack rejected the message (ok: false) or could not be reached."""

    def __init__(self, message: str, slack_error: Optional[str] = None):
        super().__init__(message)
        self.slack_error = slack_error


class SlackClient:
    """
    Async Slack message sender.

    Unlike fire-and-forget notifiers, every failure raises PostError so
    callers can decide whether an activity counts as posted.

    Usage:
        slack = SlackClient(bot_token="xoxb-...")
        ts = await slack.post_message("C0123", "hello")
    """

    API_URL = "https://slack.com/api"

    def __init__(
        self,
        bot_token: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.bot_token = bot_token
        self.timeout = timeout
        self._transport = transport

        if not self.bot_token:
            logger.info("SlackClient has no token: SLACK_BOT_TOKEN not set")

    @property
    def enabled(self) -> bool:
        """Check if client is configured."""
        return bool(self.bot_token)

    async def post_message(self, channel: str, text: str) -> str:
        """
        Post message to a Slack channel or user (DM).

        Args:
            channel: Channel ID, or user ID for a direct message
            text: Message text (Slack mrkdwn)

        Returns:
            Message timestamp ("ts") from Slack

        Raises:
            PostError: If Slack reports ok: false or the request fails
        """
        if not self.enabled:
            raise PostError("Slack bot token not configured", "not_configured")
        if not channel:
            raise PostError("No Slack channel given", "channel_not_found")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self.API_URL}/chat.postMessage",
                    headers={"Authorization": f"Bearer {self.bot_token}"},
                    json={"channel": channel, "text": text},
                )
        except httpx.TimeoutException as e:
            raise PostError(f"Slack timeout posting to {channel}", "timeout") from e
        except httpx.HTTPError as e:
            raise PostError(f"Slack request failed: {e}", "request_failed") from e

        try:
            data = response.json()
        except ValueError:
            data = {"ok": False, "error": f"http_{response.status_code}"}

        if not data.get("ok"):
            error = data.get("error", "unknown_error")
            raise PostError(f"Slack post failed: {error}", error)

        logger.debug(f"Slack message posted to {channel}: ts={data.get('ts')}")
        return data.get("ts", "")

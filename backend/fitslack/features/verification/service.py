"""
Verification Service.

Issues single-use tokens, sends the DM links and consumes tokens for
both flows:
- standalone: Slack-only ledger (required before Peloton)
- Strava-linked: token stored on the Strava connection
"""

import logging
import secrets
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from fitslack.features.strava.models import StravaConnection
from fitslack.features.strava.repository import StravaConnectionRepository
from fitslack.shared.exceptions import NotFoundError, ValidationError
from fitslack.shared.formatters import is_valid_slack_user_id
from fitslack.shared.slack import SlackClient
from .models import VerifiedSlackUser
from .repository import VerifiedSlackUserRepository

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


def generate_verification_token() -> str:
    """32 random bytes, hex encoded (64 chars)."""
    return secrets.token_hex(TOKEN_BYTES)


def require_slack_user_id(slack_user_id: str | None) -> str:
    """
    Validate a user-supplied Slack member ID.

    Raises:
        ValidationError: If missing or not shaped like 'U04HBADQP0B'
    """
    value = (slack_user_id or "").strip()
    if not is_valid_slack_user_id(value):
        raise ValidationError(
            "Please enter a valid Slack Member ID "
            "(starts with U followed by letters/numbers)."
        )
    return value


@dataclass
class VerificationStart:
    """Result of a standalone verification request."""
    slack_user_id: str
    already_verified: bool


class VerificationService:
    """
    Verification flows.

    Usage:
        service = VerificationService(db, slack, base_url)
        await service.start_standalone("U04HBADQP0B")
        user = await service.complete_standalone(token)
    """

    def __init__(self, db: AsyncSession, slack: SlackClient, base_url: str):
        self.db = db
        self.slack = slack
        self.base_url = base_url.rstrip("/")
        self.ledger = VerifiedSlackUserRepository(db)
        self.connections = StravaConnectionRepository(db)

    # -------------------------------------------------------------------------
    # Standalone flow
    # -------------------------------------------------------------------------

    async def start_standalone(self, slack_user_id: str | None) -> VerificationStart:
        """
        Issue a token and DM the verify link.

        Raises:
            ValidationError: Malformed Slack ID
            PostError: DM could not be delivered
        """
        slack_user_id = require_slack_user_id(slack_user_id)

        if await self.ledger.is_verified(slack_user_id):
            return VerificationStart(slack_user_id, already_verified=True)

        token = generate_verification_token()
        await self.ledger.upsert(slack_user_id, token)
        await self.db.commit()

        verify_url = f"{self.base_url}/verify/slack/{token}"
        text = (
            "Hi! You've requested to verify your Slack account for the fitness tracker.\n\n"
            "Click this link to complete verification:\n\n"
            f"{verify_url}\n\n"
            "Once verified, you can connect Strava or Peloton to auto-post your workouts."
        )
        await self.slack.post_message(slack_user_id, text)
        logger.info(f"Sent standalone verification DM to {slack_user_id}")

        return VerificationStart(slack_user_id, already_verified=False)

    async def complete_standalone(self, token: str) -> VerifiedSlackUser:
        """
        Consume a standalone token.

        Raises:
            NotFoundError: Unknown or already used token
        """
        user = await self.ledger.get_by_token(token)
        if not user or not await self.ledger.consume(token):
            raise NotFoundError("Invalid or expired verification link.")
        await self.db.commit()

        logger.info(f"Slack user verified: {user.slack_user_id}")
        return user

    async def is_verified(self, slack_user_id: str) -> bool:
        return await self.ledger.is_verified(slack_user_id)

    # -------------------------------------------------------------------------
    # Strava-linked flow
    # -------------------------------------------------------------------------

    async def send_strava_link(self, slack_user_id: str, token: str) -> None:
        """
        DM the verify link for a Strava connection.

        Raises:
            PostError: DM could not be delivered
        """
        verify_url = f"{self.base_url}/verify/{token}"
        text = (
            "Hi! You've connected your Strava account to the running tracker.\n\n"
            "To complete setup and start auto-posting your runs, please click this "
            "link to verify your Slack account:\n\n"
            f"{verify_url}\n\n"
            "(If you didn't request this, you can ignore this message.)"
        )
        await self.slack.post_message(slack_user_id, text)
        logger.info(f"Sent Strava verification DM to {slack_user_id}")

    async def complete_strava(self, token: str) -> StravaConnection:
        """
        Consume a Strava-linked token.

        Raises:
            NotFoundError: Unknown or already used token
        """
        conn = await self.connections.get_by_verification_token(token)
        if not conn or not await self.connections.mark_verified(token):
            raise NotFoundError("Invalid or expired verification link.")
        await self.db.commit()

        logger.info(f"Strava athlete {conn.athlete_id} verified Slack {conn.slack_user_id}")
        return conn

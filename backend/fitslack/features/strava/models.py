"""
Strava-related database models.

Models:
- StravaConnection: OAuth credentials + Slack link per athlete
- PostedActivity: Append-only dedupe set of activities posted to Slack
- PendingActivity: Activities held until the athlete verifies Slack
"""

from sqlalchemy import BigInteger, Boolean, Column, DateTime, String, Text

from fitslack.models.base import Base, utcnow


class StravaConnection(Base):
    """
    Strava athlete connection.

    One row per athlete. Tokens rotate on every refresh; the Slack link
    and verification token are only written by the OAuth callback and
    the verification flow.
    """

    __tablename__ = "strava_connections"

    athlete_id = Column(BigInteger, primary_key=True, autoincrement=False)

    # OAuth tokens
    refresh_token = Column(Text, nullable=False)
    access_token = Column(Text, nullable=True)
    expires_at = Column(BigInteger, nullable=True)  # Unix timestamp

    # Profile (display only)
    athlete_firstname = Column(String(100), nullable=True)
    athlete_lastname = Column(String(100), nullable=True)

    # Slack link
    slack_user_id = Column(String(32), nullable=True)
    verified = Column(Boolean, nullable=False, default=False)
    verification_token = Column(String(64), nullable=True, index=True)

    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    @property
    def awaiting_verification(self) -> bool:
        """Linked to Slack but the link was never confirmed."""
        return bool(self.slack_user_id) and not self.verified

    def __repr__(self):
        return f"<StravaConnection athlete_id={self.athlete_id} slack={self.slack_user_id}>"


class PostedActivity(Base):
    """
    Activity already posted to Slack.

    Write-once. Existence of a row is the only idempotency signal.
    """

    __tablename__ = "posted_activities"

    activity_id = Column(BigInteger, primary_key=True, autoincrement=False)
    athlete_id = Column(BigInteger, nullable=True)
    posted_at = Column(DateTime(timezone=True), default=utcnow)

    def __repr__(self):
        return f"<PostedActivity {self.activity_id} athlete={self.athlete_id}>"


class PendingActivity(Base):
    """Webhook event held because the athlete's Slack link is unverified."""

    __tablename__ = "pending_activities"

    activity_id = Column(BigInteger, primary_key=True, autoincrement=False)
    athlete_id = Column(BigInteger, nullable=False, index=True)
    received_at = Column(DateTime(timezone=True), default=utcnow)

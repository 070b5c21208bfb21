"""
Verification models.

Models:
- VerifiedSlackUser: Standalone Slack verification ledger (no Strava needed)
"""

from sqlalchemy import Boolean, Column, DateTime, String

from fitslack.models.base import Base, utcnow


class VerifiedSlackUser(Base):
    """
    Slack account that proved control via a DM link.

    The token is cleared once consumed and can never verify again.
    """

    __tablename__ = "verified_slack_users"

    slack_user_id = Column(String(32), primary_key=True)
    verification_token = Column(String(64), nullable=True, index=True)
    verified = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<VerifiedSlackUser {self.slack_user_id} verified={self.verified}>"

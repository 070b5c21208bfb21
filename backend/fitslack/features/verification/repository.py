"""
Verification ledger repository.
"""

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from fitslack.models.base import utcnow
from fitslack.shared.repository import BaseRepository
from .models import VerifiedSlackUser


class VerifiedSlackUserRepository(BaseRepository[VerifiedSlackUser]):
    """Repository for standalone Slack verification."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, VerifiedSlackUser)

    async def upsert(self, slack_user_id: str, verification_token: str | None) -> None:
        """
        Create or re-issue a verification token.

        A None token keeps the stored one. The verified flag is untouched.
        """
        await self.upsert_row(
            {
                "slack_user_id": slack_user_id,
                "verification_token": verification_token,
                "updated_at": utcnow(),
            },
            key="slack_user_id",
            coalesce=("verification_token",),
        )

    async def get(self, slack_user_id: str) -> VerifiedSlackUser | None:
        return await self.get_by_id(slack_user_id)

    async def get_by_token(self, token: str) -> VerifiedSlackUser | None:
        if not token:
            return None
        return await self.get_by(verification_token=token)

    async def consume(self, token: str) -> bool:
        """
        Mark the token's owner verified and clear the token atomically.

        Returns:
            True if a row was verified, False if the token is unknown or used
        """
        if not token:
            return False
        result = await self.db.execute(
            update(VerifiedSlackUser)
            .where(VerifiedSlackUser.verification_token == token)
            .values(verified=True, verification_token=None, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()
        return (result.rowcount or 0) > 0

    async def is_verified(self, slack_user_id: str) -> bool:
        """False when no row exists."""
        if not slack_user_id:
            return False
        user = await self.get(slack_user_id)
        return bool(user and user.verified)

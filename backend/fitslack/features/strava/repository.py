"""
Strava repositories.

Data access layer for Strava connections and the posted/pending
activity sets.
"""

from typing import Optional

from sqlalchemy import delete, desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fitslack.shared.repository import BaseRepository
from fitslack.models.base import utcnow
from .models import StravaConnection, PostedActivity, PendingActivity


# Columns a token refresh never carries; NULL must not clear them.
COALESCED_COLUMNS = ("slack_user_id", "verification_token")


class StravaConnectionRepository(BaseRepository[StravaConnection]):
    """Repository for Strava athlete connections."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, StravaConnection)

    async def upsert(
        self,
        athlete_id: int,
        refresh_token: str,
        access_token: Optional[str] = None,
        expires_at: Optional[int] = None,
        athlete_firstname: Optional[str] = None,
        athlete_lastname: Optional[str] = None,
        slack_user_id: Optional[str] = None,
        verification_token: Optional[str] = None,
    ) -> None:
        """
        Insert or update a connection by athlete ID.

        slack_user_id and verification_token are coalesced: passing None
        keeps the stored value. All other fields are overwritten.
        """
        await self.upsert_row(
            {
                "athlete_id": athlete_id,
                "refresh_token": refresh_token,
                "access_token": access_token,
                "expires_at": expires_at,
                "athlete_firstname": athlete_firstname,
                "athlete_lastname": athlete_lastname,
                "slack_user_id": slack_user_id,
                "verification_token": verification_token,
                "updated_at": utcnow(),
            },
            key="athlete_id",
            coalesce=COALESCED_COLUMNS,
        )

    async def get(self, athlete_id: int) -> StravaConnection | None:
        """
        Get connection for athlete.

        Returns:
            StravaConnection if found, None otherwise
        """
        return await self.get_by_id(athlete_id)

    async def list_connections(self) -> list[dict]:
        """
        List connections, most recently updated first.

        Tokens are not included.
        """
        result = await self.db.execute(
            select(
                StravaConnection.athlete_id,
                StravaConnection.athlete_firstname,
                StravaConnection.athlete_lastname,
                StravaConnection.slack_user_id,
                StravaConnection.verified,
                StravaConnection.updated_at,
            ).order_by(desc(StravaConnection.updated_at))
        )
        return [dict(row) for row in result.mappings().all()]

    async def get_by_verification_token(self, token: str) -> StravaConnection | None:
        if not token:
            return None
        return await self.get_by(verification_token=token)

    async def mark_verified(self, token: str) -> bool:
        """
        Set verified and clear the token in one statement.

        A second call with the same token matches no row.

        Returns:
            True if a connection was verified
        """
        if not token:
            return False
        result = await self.db.execute(
            update(StravaConnection)
            .where(StravaConnection.verification_token == token)
            .values(verified=True, verification_token=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()
        return (result.rowcount or 0) > 0

    async def reset_verification(self, athlete_id: int) -> None:
        """Drop trust in the current Slack link (used before re-linking)."""
        await self.db.execute(
            update(StravaConnection)
            .where(StravaConnection.athlete_id == athlete_id)
            .values(verified=False, verification_token=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()


class PostedActivityRepository(BaseRepository[PostedActivity]):
    """Repository for the posted-activity dedupe set."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, PostedActivity)

    async def was_posted(self, activity_id: int) -> bool:
        return await self.count(activity_id=activity_id) > 0

    async def mark_posted(self, activity_id: int, athlete_id: int) -> bool:
        """
        Record activity as posted. Re-recording is a no-op.

        Returns:
            True if the record was new
        """
        return await self.insert_ignore(
            {
                "activity_id": activity_id,
                "athlete_id": athlete_id,
                "posted_at": utcnow(),
            },
            key="activity_id",
        )


class PendingActivityRepository(BaseRepository[PendingActivity]):
    """Repository for activities held until Slack verification."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, PendingActivity)

    async def hold(self, activity_id: int, athlete_id: int) -> bool:
        return await self.insert_ignore(
            {
                "activity_id": activity_id,
                "athlete_id": athlete_id,
                "received_at": utcnow(),
            },
            key="activity_id",
        )

    async def list_for_athlete(self, athlete_id: int) -> list[int]:
        """Held activity IDs for athlete, oldest first."""
        result = await self.db.execute(
            select(PendingActivity.activity_id)
            .where(PendingActivity.athlete_id == athlete_id)
            .order_by(PendingActivity.received_at)
        )
        return list(result.scalars().all())

    async def release(self, activity_id: int) -> None:
        await self.db.execute(
            delete(PendingActivity).where(PendingActivity.activity_id == activity_id)
        )
        await self.db.flush()

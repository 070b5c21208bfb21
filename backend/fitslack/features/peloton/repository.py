"""
Peloton repositories.

Data access layer for Peloton connections and posted workouts.
"""

from typing import Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitslack.models.base import utcnow
from fitslack.shared.repository import BaseRepository
from .models import PelotonConnection, PostedWorkout


class PelotonConnectionRepository(BaseRepository[PelotonConnection]):
    """Repository for Peloton connections."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, PelotonConnection)

    async def upsert(
        self,
        peloton_user_id: str,
        session_id: Optional[str],
        username: Optional[str] = None,
        slack_user_id: Optional[str] = None,
    ) -> None:
        """Insert or update by Peloton user ID. A None Slack ID keeps the stored one."""
        await self.upsert_row(
            {
                "peloton_user_id": peloton_user_id,
                "session_id": session_id,
                "username": username,
                "slack_user_id": slack_user_id,
                "updated_at": utcnow(),
            },
            key="peloton_user_id",
            coalesce=("slack_user_id",),
        )

    async def get(self, peloton_user_id: str) -> PelotonConnection | None:
        return await self.get_by_id(peloton_user_id)

    async def list_connections(self) -> list[dict]:
        """
        List connections, most recently updated first.

        Session IDs are not included.
        """
        result = await self.db.execute(
            select(
                PelotonConnection.peloton_user_id,
                PelotonConnection.slack_user_id,
                PelotonConnection.username,
                PelotonConnection.updated_at,
            ).order_by(desc(PelotonConnection.updated_at))
        )
        return [dict(row) for row in result.mappings().all()]

    async def list_with_session(self) -> list[PelotonConnection]:
        """Full rows for every connection holding a session, for polling."""
        result = await self.db.execute(
            select(PelotonConnection)
            .where(PelotonConnection.session_id.is_not(None))
            .order_by(desc(PelotonConnection.updated_at))
        )
        return list(result.scalars().all())

    async def delete_connection(self, peloton_user_id: str) -> bool:
        """
        Remove a connection (admin action).

        Returns:
            True if a connection was deleted
        """
        conn = await self.get(peloton_user_id)
        if not conn:
            return False
        await self.delete(conn)
        return True


class PostedWorkoutRepository(BaseRepository[PostedWorkout]):
    """Repository for the posted-workout dedupe set."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, PostedWorkout)

    async def was_posted(self, workout_id: str) -> bool:
        return await self.count(workout_id=workout_id) > 0

    async def mark_posted(self, workout_id: str, slack_user_id: Optional[str]) -> bool:
        return await self.insert_ignore(
            {
                "workout_id": workout_id,
                "slack_user_id": slack_user_id,
                "posted_at": utcnow(),
            },
            key="workout_id",
        )

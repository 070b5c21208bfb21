"""
Base repository with common CRUD operations.

Provides generic database operations for all feature repositories.
Uses SQLAlchemy async session for non-blocking database access.

Usage:
    class PelotonConnectionRepository(BaseRepository[PelotonConnection]):
        def __init__(self, db: AsyncSession):
            super().__init__(db, PelotonConnection)

        async def get_by_slack_user_id(self, slack_user_id: str) -> PelotonConnection | None:
            return await self.get_by(slack_user_id=slack_user_id)
"""

from typing import Any, Generic, Iterable, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base repository for database operations.

    Provides common CRUD methods that can be inherited by feature repositories.
    All methods are async for use with AsyncSession. Repositories flush;
    callers own the transaction and commit.
    """

    def __init__(self, db: AsyncSession, model: Type[T]):
        """
        Initialize repository.

        Args:
            db: Async database session
            model: SQLAlchemy model class
        """
        self.db = db
        self.model = model

    async def get_by_id(self, id: str | int) -> T | None:
        """
        Get entity by primary key.

        Returns:
            Entity if found, None otherwise
        """
        return await self.db.get(self.model, id, populate_existing=True)

    async def get_by(self, **kwargs) -> T | None:
        """
        Get single entity by arbitrary field values.

        Args:
            **kwargs: Field name-value pairs to filter by

        Returns:
            First matching entity or None
        """
        query = select(self.model).execution_options(populate_existing=True)
        for key, value in kwargs.items():
            query = query.where(getattr(self.model, key) == value)
        result = await self.db.execute(query.limit(1))
        return result.scalars().first()

    async def delete(self, entity: T) -> None:
        """
        Delete entity.

        Args:
            entity: Entity to delete
        """
        await self.db.delete(entity)
        await self.db.flush()

    async def count(self, **kwargs) -> int:
        """
        Count entities matching criteria.

        Args:
            **kwargs: Field name-value pairs to filter by

        Returns:
            Number of matching entities
        """
        query = select(func.count()).select_from(self.model)
        for key, value in kwargs.items():
            query = query.where(getattr(self.model, key) == value)
        result = await self.db.execute(query)
        return result.scalar() or 0

    # -------------------------------------------------------------------------
    # Conflict-aware inserts
    # -------------------------------------------------------------------------

    def _insert(self):
        """Dialect-specific INSERT that supports ON CONFLICT clauses."""
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(self.model)
        if dialect == "sqlite":
            return sqlite.insert(self.model)
        raise NotImplementedError(f"Upsert not supported for dialect {dialect}")

    async def upsert_row(
        self,
        values: dict[str, Any],
        key: str,
        coalesce: Iterable[str] = (),
    ) -> None:
        """
        Insert a row or update it when the primary key already exists.

        Columns listed in ``coalesce`` keep their stored value when the
        incoming value is NULL. Every other column is overwritten.

        Args:
            values: Column values for the row
            key: Primary key column used as the conflict target
            coalesce: Columns that must not be cleared by a NULL
        """
        coalesce = set(coalesce)
        table = self.model.__table__
        stmt = self._insert().values(**values)

        update_set = {}
        for column in values:
            if column == key:
                continue
            if column in coalesce:
                update_set[column] = func.coalesce(
                    stmt.excluded[column], table.c[column]
                )
            else:
                update_set[column] = stmt.excluded[column]

        stmt = stmt.on_conflict_do_update(index_elements=[key], set_=update_set)
        await self.db.execute(stmt)
        await self.db.flush()

    async def insert_ignore(self, values: dict[str, Any], key: str) -> bool:
        """
        Insert a row unless the primary key already exists.

        Returns:
            True if a new row was written
        """
        stmt = self._insert().values(**values).on_conflict_do_nothing(
            index_elements=[key]
        )
        result = await self.db.execute(stmt)
        await self.db.flush()
        return (result.rowcount or 0) > 0

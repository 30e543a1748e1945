"""
Shared CRUD helpers for the job-store models.

Model-specific CRUD singletons subclass BaseCRUD for the id-based basics
and add their own queries. Methods run inside the caller's AsyncSession
and only flush; the caller decides when to commit.

Dependencies: sqlalchemy
System role: Foundation for all database CRUD operations
"""

from typing import Any, Generic, Iterable, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ai_orchestrator.boundary.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseCRUD(Generic[ModelT]):
    """Id-keyed create / read / update for one mapped model."""

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    async def create(self, session: AsyncSession, **values: Any) -> ModelT:
        """Add a row and flush so its id and column defaults are populated."""
        row = self.model(**values)
        session.add(row)
        await session.flush()
        return row

    async def get_by_id(self, session: AsyncSession, id: UUID) -> ModelT | None:
        """
        Load one row by primary key.

        populate_existing makes a row already in the session reflect the
        database, which matters after bulk UPDATE statements.
        """
        return await session.get(self.model, id, populate_existing=True)

    async def get_by_ids(self, session: AsyncSession, ids: Iterable[UUID]) -> Sequence[ModelT]:
        """Rows whose id is in ids, in no particular order; missing ids are skipped."""
        wanted = list(ids)
        if not wanted:
            return []
        result = await session.execute(select(self.model).where(self.model.id.in_(wanted)))
        return result.scalars().all()

    async def update_by_id(self, session: AsyncSession, id: UUID, **values: Any) -> ModelT | None:
        """
        Set columns on one row.

        Returns:
            The updated row, or None when no row has this id
        """
        result = await session.execute(
            update(self.model).where(self.model.id == id).values(**values).returning(self.model)
        )
        return result.scalar_one_or_none()

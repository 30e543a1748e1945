"""
Taxonomy CRUD operations.

Key lookups, node/synonym reads for the sync payload, and writes to the
denormalized learning/sync job cache on the taxonomy row.

Dependencies: sqlalchemy, ai_orchestrator.boundary.db.models
System role: Taxonomy persistence for the job adapters
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ai_orchestrator.boundary.db.CRUD.ai_job_crud import truncate_error
from ai_orchestrator.boundary.db.CRUD.base_crud import BaseCRUD
from ai_orchestrator.boundary.db.models.ai_job_model import JobKind, JobStatus
from ai_orchestrator.boundary.db.models.taxonomy_model import (
    TaxonomyModel,
    TaxonomyNodeModel,
    TaxonomySynonymModel,
)

# Cache column prefix per job kind that mirrors into the taxonomy row.
_CACHE_PREFIX = {
    JobKind.LEARNING: "last_learning",
    JobKind.TAXONOMY_SYNC: "last_ai_sync",
}

_UNSET = object()


class TaxonomyCRUD(BaseCRUD[TaxonomyModel]):
    """CRUD operations for TaxonomyModel and its nodes/synonyms."""

    def __init__(self) -> None:
        super().__init__(TaxonomyModel)

    async def get_by_key(
        self,
        session: AsyncSession,
        key: str,
    ) -> TaxonomyModel | None:
        """
        Retrieve taxonomy by its unique key.

        Args:
            session: Async database session
            key: Taxonomy key

        Returns:
            TaxonomyModel if found, None otherwise
        """
        stmt = select(TaxonomyModel).where(TaxonomyModel.key == key)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_nodes(
        self,
        session: AsyncSession,
        taxonomy_id: UUID,
    ) -> Sequence[TaxonomyNodeModel]:
        """Nodes of a taxonomy ordered by (level, code)."""
        stmt = (
            select(TaxonomyNodeModel)
            .where(TaxonomyNodeModel.taxonomy_id == taxonomy_id)
            .order_by(TaxonomyNodeModel.level.asc(), TaxonomyNodeModel.code.asc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_synonyms(
        self,
        session: AsyncSession,
        taxonomy_id: UUID,
    ) -> list[tuple[int, str]]:
        """(node_code, synonym) pairs for a taxonomy."""
        stmt = (
            select(TaxonomyNodeModel.code, TaxonomySynonymModel.synonym)
            .join(TaxonomyNodeModel, TaxonomySynonymModel.node_id == TaxonomyNodeModel.id)
            .where(TaxonomySynonymModel.taxonomy_id == taxonomy_id)
            .order_by(TaxonomyNodeModel.code.asc(), TaxonomySynonymModel.synonym.asc())
        )
        result = await session.execute(stmt)
        return [(code, synonym) for code, synonym in result.all()]

    async def update_job_cache(
        self,
        session: AsyncSession,
        taxonomy_id: UUID,
        kind: JobKind,
        job_id: UUID,
        status: JobStatus,
        error: str | None = None,
        at: datetime | None | object = _UNSET,
        unless_superseded: bool = False,
    ) -> TaxonomyModel | None:
        """
        Mirror a learning or sync job's state into the taxonomy row.

        Kinds without a cache on the taxonomy are ignored.

        Args:
            session: Async database session
            taxonomy_id: Taxonomy to update
            kind: Job kind whose cache columns to write
            job_id: Job being mirrored
            status: Job status to record
            error: Error detail (cleared when None)
            at: Timestamp for last_*_at; left untouched when omitted
            unless_superseded: Skip the write when the cache already points
                at a different job (a newer request of the same kind)

        Returns:
            Updated taxonomy, None when nothing was written
        """
        prefix = _CACHE_PREFIX.get(kind)
        if prefix is None:
            return None
        values = {
            f"{prefix}_job_id": job_id,
            f"{prefix}_status": status.value,
            f"{prefix}_error": truncate_error(error),
        }
        if at is not _UNSET:
            values[f"{prefix}_at"] = at
        if not unless_superseded:
            return await self.update_by_id(session, taxonomy_id, **values)

        cached_job_id = getattr(TaxonomyModel, f"{prefix}_job_id")
        stmt = (
            update(TaxonomyModel)
            .where(TaxonomyModel.id == taxonomy_id)
            .where(or_(cached_job_id.is_(None), cached_job_id == job_id))
            .values(**values)
            .returning(TaxonomyModel)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def reset_learning_counter(
        self,
        session: AsyncSession,
        taxonomy_id: UUID,
        learned_at: datetime,
    ) -> TaxonomyModel | None:
        """Record a successful learning run and zero the new-annotation counter."""
        return await self.update_by_id(
            session,
            taxonomy_id,
            last_learning_at=learned_at,
            new_annotations_since_last_learning=0,
        )


taxonomy_crud = TaxonomyCRUD()

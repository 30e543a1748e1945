"""
Sentence CRUD operations.

Dependencies: sqlalchemy, ai_orchestrator.boundary.db.models
System role: Record selection for labeling jobs
"""

from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ai_orchestrator.boundary.db.CRUD.base_crud import BaseCRUD
from ai_orchestrator.boundary.db.models.sentence_model import SentenceModel, SentenceStatus


class SentenceCRUD(BaseCRUD[SentenceModel]):
    """CRUD operations for SentenceModel."""

    def __init__(self) -> None:
        super().__init__(SentenceModel)

    async def get_ids_matching(
        self,
        session: AsyncSession,
        sentence_ids: Iterable[UUID] | None = None,
        import_ids: Iterable[str] | None = None,
        only_unsubmitted: bool = False,
    ) -> list[UUID]:
        """
        Resolve a record filter to sentence ids ordered by (import_order, id).

        Args:
            session: Async database session
            sentence_ids: Restrict to these sentences
            import_ids: Restrict to these imports
            only_unsubmitted: Only sentences still pending review

        Returns:
            Matching sentence ids in import order
        """
        stmt = select(SentenceModel.id)
        if sentence_ids:
            stmt = stmt.where(SentenceModel.id.in_(list(sentence_ids)))
        if import_ids:
            stmt = stmt.where(SentenceModel.import_id.in_(list(import_ids)))
        if only_unsubmitted:
            stmt = stmt.where(SentenceModel.status == SentenceStatus.PENDING)
        stmt = stmt.order_by(SentenceModel.import_order.asc(), SentenceModel.id.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())


sentence_crud = SentenceCRUD()

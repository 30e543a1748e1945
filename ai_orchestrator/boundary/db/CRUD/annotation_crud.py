"""
Annotation and AI suggestion CRUD operations.

Dependencies: sqlalchemy, ai_orchestrator.boundary.db.models
System role: Label reads for learning and suggestion writes for labeling
"""

from collections import defaultdict
from datetime import datetime
from typing import Iterable, Mapping
from uuid import UUID

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from ai_orchestrator.boundary.db.base import utcnow
from ai_orchestrator.boundary.db.CRUD.base_crud import BaseCRUD
from ai_orchestrator.boundary.db.models.annotation_model import (
    AnnotationSource,
    SentenceAISuggestionModel,
    SentenceAnnotationModel,
)
from ai_orchestrator.boundary.db.models.sentence_model import SentenceModel, SentenceStatus


class AnnotationCRUD(BaseCRUD[SentenceAnnotationModel]):
    """CRUD operations for SentenceAnnotationModel."""

    def __init__(self) -> None:
        super().__init__(SentenceAnnotationModel)

    async def get_learning_candidates(
        self,
        session: AsyncSession,
        taxonomy_id: UUID,
        updated_after: datetime | None = None,
        sentence_ids: Iterable[UUID] | None = None,
        import_ids: Iterable[str] | None = None,
        only_unsubmitted: bool = False,
    ) -> list[tuple[SentenceModel, list[SentenceAnnotationModel]]]:
        """
        User annotations grouped per sentence, for a learning request.

        Args:
            session: Async database session
            taxonomy_id: Taxonomy the annotations belong to
            updated_after: Only annotations changed after this instant
            sentence_ids: Restrict to these sentences
            import_ids: Restrict to these imports
            only_unsubmitted: Only sentences still pending review

        Returns:
            (sentence, annotations) pairs in import order
        """
        stmt = (
            select(SentenceModel, SentenceAnnotationModel)
            .join(SentenceAnnotationModel, SentenceAnnotationModel.sentence_id == SentenceModel.id)
            .where(SentenceAnnotationModel.taxonomy_id == taxonomy_id)
            .where(SentenceAnnotationModel.source == AnnotationSource.USER)
        )
        if updated_after is not None:
            stmt = stmt.where(SentenceAnnotationModel.updated_at > updated_after)
        if sentence_ids:
            stmt = stmt.where(SentenceModel.id.in_(list(sentence_ids)))
        if import_ids:
            stmt = stmt.where(SentenceModel.import_id.in_(list(import_ids)))
        if only_unsubmitted:
            stmt = stmt.where(SentenceModel.status == SentenceStatus.PENDING)
        stmt = stmt.order_by(
            SentenceModel.import_order.asc(),
            SentenceModel.id.asc(),
            SentenceAnnotationModel.level.asc(),
        )

        result = await session.execute(stmt)
        grouped: dict[UUID, list[SentenceAnnotationModel]] = defaultdict(list)
        sentences: dict[UUID, SentenceModel] = {}
        for sentence, annotation in result.all():
            sentences.setdefault(sentence.id, sentence)
            grouped[sentence.id].append(annotation)
        return [(sentences[sid], grouped[sid]) for sid in sentences]


class SuggestionCRUD(BaseCRUD[SentenceAISuggestionModel]):
    """CRUD operations for SentenceAISuggestionModel."""

    def __init__(self) -> None:
        super().__init__(SentenceAISuggestionModel)

    async def replace_for_sentences(
        self,
        session: AsyncSession,
        taxonomy_id: UUID,
        suggestions: Mapping[UUID, list[dict]],
    ) -> int:
        """
        Replace every stored suggestion of the given sentences in one taxonomy.

        Args:
            session: Async database session
            taxonomy_id: Taxonomy of the suggestions
            suggestions: sentence_id -> [{"level", "node_code", "confidence_score"}]

        Returns:
            Number of suggestion rows inserted
        """
        if not suggestions:
            return 0

        await session.execute(
            delete(SentenceAISuggestionModel)
            .where(SentenceAISuggestionModel.taxonomy_id == taxonomy_id)
            .where(SentenceAISuggestionModel.sentence_id.in_(list(suggestions.keys())))
        )

        now = utcnow()
        rows = []
        for sentence_id, items in suggestions.items():
            seen_levels = set()
            for item in items:
                if item["level"] in seen_levels:
                    continue
                seen_levels.add(item["level"])
                rows.append(
                    {
                        "sentence_id": sentence_id,
                        "taxonomy_id": taxonomy_id,
                        "level": item["level"],
                        "node_code": str(item["node_code"]),
                        "confidence_score": float(item.get("confidence_score") or 0.0),
                        "suggested_at": now,
                    }
                )
        if rows:
            await session.execute(insert(SentenceAISuggestionModel), rows)
        return len(rows)

    async def get_for_sentence(
        self,
        session: AsyncSession,
        sentence_id: UUID,
        taxonomy_id: UUID,
    ) -> list[SentenceAISuggestionModel]:
        stmt = (
            select(SentenceAISuggestionModel)
            .where(SentenceAISuggestionModel.sentence_id == sentence_id)
            .where(SentenceAISuggestionModel.taxonomy_id == taxonomy_id)
            .order_by(SentenceAISuggestionModel.level.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())


annotation_crud = AnnotationCRUD()
suggestion_crud = SuggestionCRUD()

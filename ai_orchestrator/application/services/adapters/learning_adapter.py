"""
Learning job adapter.

Sends user annotations made since the last successful learning run to the
external model.

Dependencies: ai_orchestrator.application.services.adapters.base_adapter
System role: Learning job kind
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ai_orchestrator.application.services.adapters.base_adapter import (
    MonitoredJobAdapter,
    parse_uuid_list,
)
from ai_orchestrator.boundary.ai_service.poll_result import PollResult
from ai_orchestrator.boundary.db.base import utcnow
from ai_orchestrator.boundary.db.CRUD.annotation_crud import annotation_crud
from ai_orchestrator.boundary.db.CRUD.taxonomy_crud import taxonomy_crud
from ai_orchestrator.boundary.db.models.ai_job_model import AIJobModel, JobKind
from ai_orchestrator.boundary.db.models.taxonomy_model import TaxonomyModel
from ai_orchestrator.core.exceptions import DataError, ValidationError
from ai_orchestrator.core.payload_builder import build_field_map

NO_NEW_ANNOTATIONS_MESSAGE = "No new annotations found for learning"


class LearningJobAdapter(MonitoredJobAdapter):
    """Learning job kind: POST /learn, status /learn/{handle}/status."""

    kind = JobKind.LEARNING
    submit_path = "/learn"
    display_name = "Learning"

    async def request(
        self,
        taxonomy_key: str,
        sentence_ids: list[str] | None = None,
        import_ids: list[str] | None = None,
        only_unsubmitted: bool = False,
        created_by: str | None = None,
    ) -> AIJobModel:
        """
        Request a learning run for a taxonomy.

        Without explicit sentence ids the taxonomy must have accumulated
        enough new annotations since the last successful run.

        Args:
            taxonomy_key: Active taxonomy to learn
            sentence_ids: Restrict to these sentences (skips the threshold)
            import_ids: Restrict to these imports
            only_unsubmitted: Only sentences still pending review
            created_by: Requester identifier

        Returns:
            AIJobModel: The created job (pending, processing, or failed)

        Raises:
            TaxonomyNotFoundError: Unknown or inactive taxonomy
            ValidationError: Not enough new annotations
            DataError: No matching annotations
            ConfigurationError: AI service not configured
        """
        parsed_ids = parse_uuid_list(sentence_ids, "sentence_ids")

        async with self._session_factory() as session:
            taxonomy = await self._load_taxonomy(session, taxonomy_key)

            minimum = self._settings.learning_min_new_annotations
            if not parsed_ids and taxonomy.new_annotations_since_last_learning < minimum:
                raise ValidationError(
                    f"At least {minimum} new annotations are required before sending for learning",
                    field="new_annotations_since_last_learning",
                )

            candidates = await annotation_crud.get_learning_candidates(
                session,
                taxonomy.id,
                updated_after=taxonomy.last_learning_at,
                sentence_ids=parsed_ids or None,
                import_ids=import_ids or None,
                only_unsubmitted=only_unsubmitted,
            )

        if not candidates:
            raise DataError(NO_NEW_ANNOTATIONS_MESSAGE)

        self._client.ensure_configured()

        return await self._enqueue(
            taxonomy.id,
            created_by=created_by,
            filter_criteria={
                "sentence_ids": [str(i) for i in parsed_ids],
                "import_ids": list(import_ids or []),
                "only_unsubmitted": only_unsubmitted,
            },
            payload={"sentence_count": len(candidates)},
        )

    async def build_request(
        self,
        session: AsyncSession,
        job: AIJobModel,
        taxonomy: TaxonomyModel,
    ) -> dict[str, Any]:
        criteria = job.filter_criteria or {}
        candidates = await annotation_crud.get_learning_candidates(
            session,
            taxonomy.id,
            updated_after=taxonomy.last_learning_at,
            sentence_ids=parse_uuid_list(criteria.get("sentence_ids"), "sentence_ids") or None,
            import_ids=criteria.get("import_ids") or None,
            only_unsubmitted=bool(criteria.get("only_unsubmitted")),
        )
        if not candidates:
            raise DataError(NO_NEW_ANNOTATIONS_MESSAGE)

        return {
            "taxonomyKey": taxonomy.key,
            "sentences": [
                {
                    "sentenceId": str(sentence.id),
                    "fields": build_field_map(sentence),
                    "annotations": [
                        {"level": annotation.level, "nodeCode": annotation.node_code}
                        for annotation in annotations
                    ],
                    "source": "user",
                }
                for sentence, annotations in candidates
            ],
        }

    def submitted_payload(self, request: dict[str, Any]) -> dict[str, Any]:
        return {"sentence_count": len(request.get("sentences") or [])}

    async def on_success(
        self,
        session: AsyncSession,
        job: AIJobModel,
        result: PollResult,
    ) -> None:
        await taxonomy_crud.reset_learning_counter(session, job.taxonomy_id, utcnow())

"""
AI job service.

API-level collaborator: creates bulk labeling jobs from a record filter,
cancels jobs of any kind, and reports job status across kinds.

Dependencies: ai_orchestrator.boundary.db.CRUD, ai_orchestrator.application.services
System role: Job management orchestration for the HTTP API
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import async_sessionmaker

from ai_orchestrator.application.services.adapters.base_adapter import parse_uuid_list
from ai_orchestrator.application.services.batch_runner import BatchJobRunner
from ai_orchestrator.application.services.queue_coordinator import QueueCoordinator
from ai_orchestrator.boundary.db.CRUD.ai_job_crud import ai_job_crud
from ai_orchestrator.boundary.db.CRUD.sentence_crud import sentence_crud
from ai_orchestrator.boundary.db.CRUD.taxonomy_crud import taxonomy_crud
from ai_orchestrator.boundary.db.models.ai_job_model import (
    MONITORED_KINDS,
    AIJobModel,
    JobKind,
    JobStatus,
)
from ai_orchestrator.configs.orchestration import OrchestrationSettings
from ai_orchestrator.core.exceptions import (
    DataError,
    JobNotFoundError,
    TaxonomyNotFoundError,
    ValidationError,
)
from ai_orchestrator.observability.log_utils import job_log_context

logger = logging.getLogger(__name__)

CANCELLED_BY_USER_MESSAGE = "Cancelled by user"


def _isoformat(value) -> str | None:
    return value.isoformat() if value is not None else None


def job_to_dict(job: AIJobModel) -> dict:
    """Serialize a job row for API responses."""
    progress = 0
    if job.total_units:
        progress = round(job.processed_units * 100 / job.total_units)

    return {
        "id": str(job.id),
        "kind": job.kind.value,
        "status": job.status.value,
        "taxonomy_id": str(job.taxonomy_id),
        "created_by": job.created_by,
        "total_units": job.total_units,
        "processed_units": job.processed_units,
        "failed_units": job.failed_units,
        "progress": progress,
        "error_message": job.error_message,
        "external_job_id": job.external_job_id,
        "payload": job.payload or {},
        "started_at": _isoformat(job.started_at),
        "completed_at": _isoformat(job.completed_at),
        "created_at": _isoformat(job.created_at),
        "updated_at": _isoformat(job.updated_at),
    }


class JobService:
    """
    AI job service orchestrator.

    Provides abstraction over the job store for creating labeling jobs and
    for cancel / status operations that apply to every job kind.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        runner: BatchJobRunner,
        coordinator: QueueCoordinator,
        settings: OrchestrationSettings,
    ) -> None:
        """
        Initialize job service.

        Args:
            session_factory: Async session factory
            runner: Bulk labeling runner (triggered after creation)
            coordinator: Queue coordinator (advanced after monitored cancels)
            settings: Default batch size
        """
        self._session_factory = session_factory
        self._runner = runner
        self._coordinator = coordinator
        self._settings = settings

    async def create_labeling_job(
        self,
        taxonomy_key: str,
        sentence_ids: list[str] | None = None,
        import_ids: list[str] | None = None,
        only_unsubmitted: bool = False,
        created_by: str | None = None,
    ) -> dict:
        """
        Create a bulk labeling job and wake the runner.

        The matching sentence ids are frozen into the job at creation, in
        (import_order, id) order.

        Args:
            taxonomy_key: Active taxonomy to label against
            sentence_ids: Restrict to these sentences
            import_ids: Restrict to these imports
            only_unsubmitted: Only sentences still pending review
            created_by: Requester identifier

        Returns:
            dict: Created job

        Raises:
            ValidationError: Missing taxonomy key or malformed ids
            TaxonomyNotFoundError: Unknown or inactive taxonomy
            DataError: No sentence matches the filter
        """
        if not taxonomy_key:
            raise ValidationError("Taxonomy key is required", field="taxonomy_key")
        parsed_ids = parse_uuid_list(sentence_ids, "sentence_ids")

        async with self._session_factory() as session:
            taxonomy = await taxonomy_crud.get_by_key(session, taxonomy_key)
            if taxonomy is None or not taxonomy.is_active:
                raise TaxonomyNotFoundError(taxonomy_key)

            matched = await sentence_crud.get_ids_matching(
                session,
                sentence_ids=parsed_ids or None,
                import_ids=import_ids or None,
                only_unsubmitted=only_unsubmitted,
            )
            if not matched:
                raise DataError("No sentences found for the given criteria")

            job = await ai_job_crud.create(
                session,
                kind=JobKind.BULK_LABELING,
                status=JobStatus.PENDING,
                taxonomy_id=taxonomy.id,
                created_by=created_by,
                total_units=len(matched),
                processed_units=0,
                failed_units=0,
                batch_size=self._settings.labeling_batch_size,
                filter_criteria={
                    "sentence_ids": [str(i) for i in matched],
                    "import_ids": list(import_ids or []),
                    "only_unsubmitted": only_unsubmitted,
                },
            )
            await session.commit()

        logger.info(
            f"{__name__}:create_labeling_job - Labeling job created",
            extra=job_log_context(job),
        )

        self._runner.trigger()
        return job_to_dict(job)

    async def cancel_job(self, job_id: UUID) -> dict:
        """
        Cancel a job of any kind.

        Terminal jobs are returned unchanged. A cancelled labeling job is
        noticed by the runner before its next batch; for monitored kinds the
        queue is advanced immediately.

        Args:
            job_id: Job UUID

        Returns:
            dict: Job after the cancel attempt

        Raises:
            JobNotFoundError: If the job does not exist
        """
        async with self._session_factory() as session:
            job = await ai_job_crud.get_by_id(session, job_id)
            if job is None:
                raise JobNotFoundError(str(job_id))
            if job.status.is_terminal:
                return job_to_dict(job)

            error = CANCELLED_BY_USER_MESSAGE if job.kind in MONITORED_KINDS else None
            cancelled = await ai_job_crud.mark_cancelled(session, job_id, error_message=error)
            if cancelled is None:
                await session.refresh(job)
                return job_to_dict(job)

            await taxonomy_crud.update_job_cache(
                session,
                cancelled.taxonomy_id,
                cancelled.kind,
                cancelled.id,
                JobStatus.CANCELLED,
                error=error,
                unless_superseded=True,
            )
            await session.commit()

        logger.info(
            f"{__name__}:cancel_job - Job cancelled",
            extra={"job_id": str(job_id), "kind": cancelled.kind.value},
        )

        if cancelled.kind in MONITORED_KINDS:
            await self._coordinator.process_next_queued()
        return job_to_dict(cancelled)

    async def list_active_jobs(self) -> list[dict]:
        """All pending and processing jobs across kinds, oldest first."""
        async with self._session_factory() as session:
            jobs = await ai_job_crud.list_active(session)
        return [job_to_dict(job) for job in jobs]

    async def get_job_status(self, job_id: UUID) -> dict:
        """
        Get job status details for polling.

        Raises:
            JobNotFoundError: If the job does not exist
        """
        async with self._session_factory() as session:
            job = await ai_job_crud.get_by_id(session, job_id)
        if job is None:
            raise JobNotFoundError(str(job_id))
        return job_to_dict(job)

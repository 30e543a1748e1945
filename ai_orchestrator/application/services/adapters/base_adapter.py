"""
Base adapter for monitored AI job kinds.

A monitored job is submitted once to the external service and then watched
by a background poll task. This module holds the shared request / start /
completion flow; subclasses supply the payload and kind-specific effects.

Dependencies: sqlalchemy, ai_orchestrator.boundary, ai_orchestrator.application
System role: Shared lifecycle for learning, taxonomy sync and external training
"""

import logging
from abc import ABC, abstractmethod
from functools import partial
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ai_orchestrator.application.services.queue_coordinator import JobRef, QueueCoordinator
from ai_orchestrator.boundary.ai_service.client import AIJobClient
from ai_orchestrator.boundary.ai_service.poll_result import PollResult
from ai_orchestrator.boundary.db.base import utcnow
from ai_orchestrator.boundary.db.CRUD.ai_job_crud import ai_job_crud
from ai_orchestrator.boundary.db.CRUD.taxonomy_crud import taxonomy_crud
from ai_orchestrator.boundary.db.models.ai_job_model import AIJobModel, JobKind, JobStatus
from ai_orchestrator.boundary.db.models.taxonomy_model import TaxonomyModel
from ai_orchestrator.configs.orchestration import OrchestrationSettings
from ai_orchestrator.core.exceptions import (
    DataError,
    TaxonomyNotFoundError,
    ValidationError,
    error_text,
)
from ai_orchestrator.observability.log_utils import job_log_context

logger = logging.getLogger(__name__)


def parse_uuid_list(values: list[str] | None, field: str) -> list[UUID]:
    """Parse client-supplied id strings, rejecting malformed ones."""
    parsed = []
    for value in values or []:
        try:
            parsed.append(UUID(str(value)))
        except ValueError as e:
            raise ValidationError(f"Invalid id: {value}", field=field) from e
    return parsed


class MonitoredJobAdapter(ABC):
    """
    Request / start / complete lifecycle of one monitored job kind.

    Subclasses set `kind`, `submit_path` and `display_name` and implement
    build_request(). `start` is registered with the coordinator as the
    kind's starter.
    """

    kind: JobKind
    submit_path: str
    display_name: str

    def __init__(
        self,
        session_factory: async_sessionmaker,
        client: AIJobClient,
        coordinator: QueueCoordinator,
        settings: OrchestrationSettings,
    ) -> None:
        self._session_factory = session_factory
        self._client = client
        self._coordinator = coordinator
        self._settings = settings

    def status_path(self, handle: str) -> str:
        return f"{self.submit_path}/{handle}/status"

    async def _load_taxonomy(
        self,
        session: AsyncSession,
        taxonomy_key: str,
        require_active: bool = True,
    ) -> TaxonomyModel:
        if not taxonomy_key:
            raise ValidationError("Taxonomy key is required", field="taxonomy_key")
        taxonomy = await taxonomy_crud.get_by_key(session, taxonomy_key)
        if taxonomy is None or (require_active and not taxonomy.is_active):
            raise TaxonomyNotFoundError(taxonomy_key)
        return taxonomy

    @abstractmethod
    async def build_request(
        self,
        session: AsyncSession,
        job: AIJobModel,
        taxonomy: TaxonomyModel,
    ) -> dict[str, Any]:
        """Build the submit body for a claimed job."""

    def submitted_payload(self, request: dict[str, Any]) -> dict[str, Any]:
        """Extra values merged into the job's payload column after submit."""
        return {}

    async def on_success(
        self,
        session: AsyncSession,
        job: AIJobModel,
        result: PollResult,
    ) -> None:
        """Kind-specific effects of a successful remote job."""

    async def _enqueue(
        self,
        taxonomy_id: UUID,
        created_by: str | None = None,
        filter_criteria: dict | None = None,
        payload: dict | None = None,
    ) -> AIJobModel:
        """
        Create a pending job and start it if the system is idle.

        Returns:
            AIJobModel: The job as stored after the start attempt

        Raises:
            Exception: Whatever the starter raised (the job is already failed)
        """
        was_active = await self._coordinator.has_active_job()

        async with self._session_factory() as session:
            job = await ai_job_crud.create(
                session,
                kind=self.kind,
                status=JobStatus.PENDING,
                taxonomy_id=taxonomy_id,
                created_by=created_by,
                filter_criteria=filter_criteria or {},
                payload=payload or {},
            )
            await taxonomy_crud.update_job_cache(
                session, taxonomy_id, self.kind, job.id, JobStatus.PENDING
            )
            await session.commit()

        logger.info(
            f"{__name__}:_enqueue - {self.display_name} job created",
            extra=job_log_context(job, queued=was_active),
        )

        if was_active:
            await self._coordinator.process_next_queued()
        else:
            try:
                await self._coordinator.start_job(JobRef.from_model(job))
            except Exception:
                await self._coordinator.process_next_queued()
                raise

        async with self._session_factory() as session:
            return await ai_job_crud.get_by_id(session, job.id)

    async def start(self, job_id: UUID) -> bool:
        """
        Claim a pending job, submit it, and hand it to a background monitor.

        Args:
            job_id: Pending job to start

        Returns:
            bool: False if the job was no longer pending

        Raises:
            Exception: Submission errors, after the job was marked failed
        """
        async with self._session_factory() as session:
            job = await ai_job_crud.claim(session, job_id)
            if job is None:
                await session.commit()
                return False
            await taxonomy_crud.update_job_cache(
                session, job.taxonomy_id, self.kind, job.id, JobStatus.PROCESSING
            )
            await session.commit()

        try:
            async with self._session_factory() as session:
                taxonomy = await taxonomy_crud.get_by_id(session, job.taxonomy_id)
                if taxonomy is None:
                    raise DataError("Taxonomy is not available")
                request = await self.build_request(session, job, taxonomy)
            handle = await self._client.submit(self.submit_path, request)
        except Exception as e:
            await self._mark_failed(job, error_text(e))
            raise

        async with self._session_factory() as session:
            await ai_job_crud.update_by_id(
                session,
                job.id,
                external_job_id=handle,
                payload={**(job.payload or {}), **self.submitted_payload(request)},
            )
            await session.commit()

        task = self._client.fire_and_forget_monitor(
            handle, self.status_path(handle), partial(self.handle_completion, job.id)
        )
        self._coordinator.track_monitor(job.id, task)

        logger.info(
            f"{__name__}:start - {self.display_name} job submitted",
            extra={"job_id": str(job.id), "handle": handle},
        )
        return True

    async def handle_completion(self, job_id: UUID, result: PollResult) -> None:
        """
        Persist a monitor's outcome, then let the next queued job run.

        Results for jobs that are already terminal (e.g. cancelled) are
        discarded.
        """
        try:
            async with self._session_factory() as session:
                job = await ai_job_crud.get_by_id(session, job_id)
                if job is None or job.status.is_terminal:
                    logger.info(
                        f"{__name__}:handle_completion - Job already finished, discarding result",
                        extra={"job_id": str(job_id), "success": result.success},
                    )
                elif result.success:
                    updated = await ai_job_crud.mark_completed(session, job_id)
                    if updated is not None:
                        await taxonomy_crud.update_job_cache(
                            session,
                            updated.taxonomy_id,
                            self.kind,
                            updated.id,
                            JobStatus.COMPLETED,
                            at=utcnow(),
                            unless_superseded=True,
                        )
                        await self.on_success(session, updated, result)
                else:
                    error = result.error or f"{self.display_name} job failed"
                    updated = await ai_job_crud.mark_failed(session, job_id, error)
                    if updated is not None:
                        await taxonomy_crud.update_job_cache(
                            session,
                            updated.taxonomy_id,
                            self.kind,
                            updated.id,
                            JobStatus.FAILED,
                            error=error,
                            unless_superseded=True,
                        )
                await session.commit()
            logger.info(
                f"{__name__}:handle_completion - {self.display_name} job finished",
                extra={"job_id": str(job_id), "success": result.success, "error": result.error},
            )
        finally:
            await self._coordinator.process_next_queued()

    async def _mark_failed(self, job: AIJobModel, error: str) -> None:
        async with self._session_factory() as session:
            updated = await ai_job_crud.mark_failed(session, job.id, error)
            if updated is not None:
                await taxonomy_crud.update_job_cache(
                    session,
                    job.taxonomy_id,
                    self.kind,
                    job.id,
                    JobStatus.FAILED,
                    error=error,
                    unless_superseded=True,
                )
            await session.commit()
        logger.error(
            f"{__name__}:_mark_failed - {self.display_name} job failed to start",
            extra={"job_id": str(job.id), "error": error},
        )

"""
Stuck-job watchdog.

Recovers jobs stranded in processing: bulk labeling jobs whose runner died
are returned to pending, and monitored jobs that lost their poll task are
failed so they stop blocking the single-flight queue.

Dependencies: sqlalchemy, ai_orchestrator.boundary.db
System role: Recovery of orphaned processing jobs
"""

import logging
from datetime import timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import async_sessionmaker

from ai_orchestrator.application.services.queue_coordinator import QueueCoordinator
from ai_orchestrator.boundary.db.base import utcnow
from ai_orchestrator.boundary.db.CRUD.ai_job_crud import ai_job_crud
from ai_orchestrator.boundary.db.CRUD.taxonomy_crud import taxonomy_crud
from ai_orchestrator.boundary.db.models.ai_job_model import (
    MONITORED_KINDS,
    JobKind,
    JobStatus,
)
from ai_orchestrator.configs.orchestration import OrchestrationSettings

logger = logging.getLogger(__name__)

STUCK_JOB_MESSAGE = "Job was stuck and has been reset"
ORPHANED_MONITOR_MESSAGE = (
    "Job result was never received (the monitoring process stopped); please retry"
)


class StuckJobWatchdog:
    """
    Recovers processing jobs that nobody is driving anymore.

    The stuck threshold cannot tell a slow job from a dead one; a labeling
    job still running past it is reset and later resumed from its persisted
    progress.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        coordinator: QueueCoordinator,
        settings: OrchestrationSettings,
    ) -> None:
        self._session_factory = session_factory
        self._coordinator = coordinator
        self._settings = settings

    async def recover_stuck_jobs(self) -> list[UUID]:
        """
        Reset bulk labeling jobs processing for longer than the stuck threshold.

        Returns:
            list[UUID]: Ids of the jobs returned to pending
        """
        cutoff = utcnow() - timedelta(seconds=self._settings.stuck_job_threshold_seconds)

        async with self._session_factory() as session:
            reset_ids = await ai_job_crud.reset_stuck(
                session, JobKind.BULK_LABELING, cutoff, STUCK_JOB_MESSAGE
            )
            await session.commit()

        if reset_ids:
            logger.warning(
                f"{__name__}:recover_stuck_jobs - Reset stuck labeling jobs",
                extra={"count": len(reset_ids), "job_ids": [str(i) for i in reset_ids]},
            )
        return reset_ids

    async def recover_orphaned_monitors(self) -> list[UUID]:
        """
        Fail monitored jobs that outlived their poll deadline without a live monitor.

        Returns:
            list[UUID]: Ids of the jobs marked failed
        """
        cutoff = utcnow() - timedelta(
            seconds=self._settings.job_poll_timeout_seconds + self._settings.orphan_grace_seconds
        )
        recovered: list[UUID] = []

        async with self._session_factory() as session:
            candidates = await ai_job_crud.get_processing_started_before(
                session, MONITORED_KINDS, cutoff
            )
            for job in candidates:
                if self._coordinator.has_live_monitor(job.id):
                    continue
                failed = await ai_job_crud.mark_failed(session, job.id, ORPHANED_MONITOR_MESSAGE)
                if failed is None:
                    continue
                await taxonomy_crud.update_job_cache(
                    session,
                    job.taxonomy_id,
                    job.kind,
                    job.id,
                    JobStatus.FAILED,
                    error=ORPHANED_MONITOR_MESSAGE,
                    unless_superseded=True,
                )
                recovered.append(job.id)
            await session.commit()

        if recovered:
            logger.warning(
                f"{__name__}:recover_orphaned_monitors - Failed orphaned monitored jobs",
                extra={"count": len(recovered), "job_ids": [str(i) for i in recovered]},
            )
        return recovered

"""
AI job orchestrator container.

Builds and wires the coordinator, runner, watchdog, kind adapters and the
external client around one session factory, and owns their startup and
shutdown.

Dependencies: ai_orchestrator.application.services, ai_orchestrator.boundary
System role: Composition root for the orchestration core
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import async_sessionmaker

from ai_orchestrator.application.services.adapters import (
    ExternalTrainingAdapter,
    LearningJobAdapter,
    TaxonomySyncAdapter,
)
from ai_orchestrator.application.services.batch_runner import BatchJobRunner
from ai_orchestrator.application.services.job_service import JobService
from ai_orchestrator.application.services.queue_coordinator import QueueCoordinator
from ai_orchestrator.application.services.stuck_job_watchdog import StuckJobWatchdog
from ai_orchestrator.boundary.ai_service.client import AIJobClient
from ai_orchestrator.boundary.db.models.ai_job_model import JobKind
from ai_orchestrator.configs import Settings, get_settings
from ai_orchestrator.core.runner_state import RunnerStateMachine
from ai_orchestrator.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)


class AIJobOrchestrator:
    """
    Container for the orchestration services of one process.

    Only one orchestrator may run against a database at a time; the
    single-flight guarantee relies on in-process locks.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        settings: Settings | None = None,
        client: AIJobClient | None = None,
    ) -> None:
        """
        Initialize and wire all services.

        Args:
            session_factory: Async session factory for the job store
            settings: Application settings (defaults to get_settings())
            client: External job client (built from settings when omitted)
        """
        self.settings = settings or get_settings()
        orchestration = self.settings.orchestration

        self.session_factory = session_factory
        self.client = client or AIJobClient(
            self.settings.ai_service,
            poll_interval_seconds=orchestration.job_poll_interval_seconds,
            poll_timeout_seconds=orchestration.job_poll_timeout_seconds,
        )
        self.coordinator = QueueCoordinator(
            session_factory,
            RunnerStateMachine(orchestration.runner_lock_stale_seconds),
        )
        self.watchdog = StuckJobWatchdog(session_factory, self.coordinator, orchestration)
        self.coordinator.register_recovery(self.watchdog.recover_orphaned_monitors)
        self.runner = BatchJobRunner(
            session_factory, self.client, self.coordinator, self.watchdog, orchestration
        )

        adapter_args = (session_factory, self.client, self.coordinator, orchestration)
        self.learning = LearningJobAdapter(*adapter_args)
        self.taxonomy_sync = TaxonomySyncAdapter(*adapter_args)
        self.external_training = ExternalTrainingAdapter(*adapter_args)

        self.job_service = JobService(
            session_factory, self.runner, self.coordinator, orchestration
        )

        self.coordinator.register_starter(JobKind.BULK_LABELING, self.runner.start_queued)
        self.coordinator.register_starter(JobKind.LEARNING, self.learning.start)
        self.coordinator.register_starter(JobKind.TAXONOMY_SYNC, self.taxonomy_sync.start)
        self.coordinator.register_starter(JobKind.EXTERNAL_TRAINING, self.external_training.start)
        self._recovery_task: asyncio.Task | None = None

    async def start(self) -> None:
        """
        Recover orphaned work and resume the queue.

        A monitored job left processing by a previous process is only failed
        once it outlives the poll deadline plus grace. If anything is still
        processing after startup, a re-check is scheduled for that moment so
        jobs queued behind it do not wait for the next request.
        """
        await self.watchdog.recover_orphaned_monitors()
        await self.watchdog.recover_stuck_jobs()
        await self.coordinator.process_next_queued()
        self.runner.trigger()
        if await self.coordinator.has_processing_job():
            self._schedule_recovery_check()
        logger.info(f"{__name__}:start - AI job orchestrator started")

    def _schedule_recovery_check(self) -> None:
        orchestration = self.settings.orchestration
        delay = orchestration.job_poll_timeout_seconds + orchestration.orphan_grace_seconds

        async def _recheck() -> None:
            await asyncio.sleep(delay)
            try:
                await self.coordinator.process_next_queued()
            except Exception as e:
                log_exception_with_context(
                    logger, f"{__name__}:_recheck - Orphan re-check failed", e
                )

        self._recovery_task = asyncio.create_task(_recheck(), name="ai-orphan-recheck")

    async def shutdown(self, drain_timeout: float | None = 5.0) -> None:
        """
        Stop background work and release the HTTP client.

        Monitors get drain_timeout seconds to deliver their results before
        they are cancelled; cancelled monitored jobs are later failed by
        orphan recovery.
        """
        recovery = self._recovery_task
        if recovery is not None and not recovery.done():
            recovery.cancel()
            await asyncio.gather(recovery, return_exceptions=True)
        await self.runner.shutdown()
        drained = await self.coordinator.drain(drain_timeout)
        if not drained:
            logger.warning(
                f"{__name__}:shutdown - Cancelling monitors that did not finish in time",
                extra={"count": self.coordinator.monitor_count},
            )
        await self.coordinator.shutdown()
        await self.client.aclose()
        logger.info(f"{__name__}:shutdown - AI job orchestrator stopped")

"""
Single-flight queue coordinator.

Enforces that at most one AI job of any kind is processing at a time and
hands the oldest pending job to its kind-specific starter whenever the
slot frees up. Also owns the runner lock state machine and the registry
of in-flight monitor tasks.

Dependencies: asyncio, sqlalchemy, ai_orchestrator.boundary.db
System role: Global FIFO dispatch across job kinds
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import async_sessionmaker

from ai_orchestrator.boundary.db.CRUD.ai_job_crud import ai_job_crud
from ai_orchestrator.boundary.db.models.ai_job_model import (
    ACTIVE_STATUSES,
    AIJobModel,
    JobKind,
    JobStatus,
)
from ai_orchestrator.core.runner_state import RunnerStateMachine

logger = logging.getLogger(__name__)

# Starter contract: claim and launch the job; return False if it could not
# be claimed (no longer pending). Raise after marking the job failed.
JobStarter = Callable[[UUID], Awaitable[bool | None]]

# Runs before every dispatch; frees the slot held by jobs nobody drives.
RecoveryHook = Callable[[], Awaitable[object]]

_KIND_ORDER = {kind: index for index, kind in enumerate(JobKind)}


@dataclass(frozen=True)
class JobRef:
    """Identity of a queued job as seen by the dispatcher."""

    id: UUID
    kind: JobKind
    started_at: datetime

    @classmethod
    def from_model(cls, job: AIJobModel) -> "JobRef":
        return cls(id=job.id, kind=job.kind, started_at=job.started_at)


class QueueCoordinator:
    """
    System-wide single-flight dispatcher.

    All "is anything processing? then claim" decisions in this process go
    through dispatch_lock. Starters run while the lock is held, so they must
    not call process_next_queued themselves.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        runner_state: RunnerStateMachine,
    ) -> None:
        """
        Initialize coordinator.

        Args:
            session_factory: Async session factory for job store reads
            runner_state: Lock state machine of the batch runner
        """
        self._session_factory = session_factory
        self.runner_state = runner_state
        self.dispatch_lock = asyncio.Lock()
        self._starters: dict[JobKind, JobStarter] = {}
        self._recovery_hooks: list[RecoveryHook] = []
        self._monitors: dict[UUID, asyncio.Task] = {}

    def register_starter(self, kind: JobKind, starter: JobStarter) -> None:
        """Register the coroutine that starts jobs of one kind."""
        self._starters[kind] = starter

    def register_recovery(self, hook: RecoveryHook) -> None:
        """Register a coroutine run under the dispatch lock before each dispatch."""
        self._recovery_hooks.append(hook)

    async def has_active_job(self) -> bool:
        """True iff any job of any kind is pending or processing."""
        async with self._session_factory() as session:
            return await ai_job_crud.any_with_status(session, ACTIVE_STATUSES)

    async def has_processing_job(self) -> bool:
        """True iff any job of any kind is processing."""
        async with self._session_factory() as session:
            return await ai_job_crud.any_with_status(session, [JobStatus.PROCESSING])

    async def next_pending_job(self) -> JobRef | None:
        """
        Oldest pending job across all kinds.

        Ties on started_at are broken by kind order (bulk labeling, learning,
        taxonomy sync, external training).

        Returns:
            JobRef | None: Next job to run, None when the queue is empty
        """
        async with self._session_factory() as session:
            candidates = await ai_job_crud.get_oldest_pending_by_kind(session)
        if not candidates:
            return None
        oldest = min(candidates, key=lambda job: (job.started_at, _KIND_ORDER[job.kind]))
        return JobRef.from_model(oldest)

    async def _invoke_starter(self, ref: JobRef) -> bool:
        starter = self._starters.get(ref.kind)
        if starter is None:
            logger.warning(
                f"{__name__}:_invoke_starter - No starter registered for job kind",
                extra={"job_id": str(ref.id), "kind": ref.kind.value},
            )
            return False
        started = await starter(ref.id)
        return started is not False

    async def process_next_queued(self) -> JobRef | None:
        """
        Start the oldest pending job if nothing is processing.

        A starter that raises has already marked its job failed; the error is
        logged and the following pending job is tried so one broken job never
        stalls the queue.

        Recovery hooks run first, so a processing job whose driver is gone
        does not hold the slot.

        Returns:
            JobRef | None: The job handed to its starter, None if nothing started
        """
        async with self.dispatch_lock:
            for hook in self._recovery_hooks:
                await hook()

            attempted: set[UUID] = set()
            while True:
                if await self.has_processing_job():
                    return None

                ref = await self.next_pending_job()
                if ref is None or ref.id in attempted:
                    return None
                attempted.add(ref.id)

                try:
                    started = await self._invoke_starter(ref)
                except Exception as e:
                    logger.error(
                        f"{__name__}:process_next_queued - Starter failed, moving on",
                        exc_info=True,
                        extra={"job_id": str(ref.id), "kind": ref.kind.value, "error": str(e)},
                    )
                    continue

                if not started:
                    continue

                logger.info(
                    f"{__name__}:process_next_queued - Started queued job",
                    extra={"job_id": str(ref.id), "kind": ref.kind.value},
                )
                return ref

    async def start_job(self, ref: JobRef) -> bool:
        """
        Start one specific pending job if nothing is processing.

        Starter errors propagate to the caller.

        Args:
            ref: Job to start

        Returns:
            bool: True if the starter ran, False if the job stays queued
        """
        async with self.dispatch_lock:
            if await self.has_processing_job():
                logger.info(
                    f"{__name__}:start_job - Another job is processing, job stays queued",
                    extra={"job_id": str(ref.id), "kind": ref.kind.value},
                )
                return False
            return await self._invoke_starter(ref)

    def track_monitor(self, job_id: UUID, task: asyncio.Task) -> None:
        """Keep a reference to a monitor task until it finishes."""
        self._monitors[job_id] = task

        def _forget(finished: asyncio.Task) -> None:
            if self._monitors.get(job_id) is finished:
                del self._monitors[job_id]

        task.add_done_callback(_forget)

    def has_live_monitor(self, job_id: UUID) -> bool:
        task = self._monitors.get(job_id)
        return task is not None and not task.done()

    @property
    def monitor_count(self) -> int:
        return sum(1 for task in self._monitors.values() if not task.done())

    async def drain(self, timeout: float | None = None) -> bool:
        """
        Wait for in-flight monitors to finish.

        Args:
            timeout: Seconds to wait (None waits indefinitely)

        Returns:
            bool: True if every monitor finished within the timeout
        """
        pending = [task for task in self._monitors.values() if not task.done()]
        if not pending:
            return True
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        return not still_running

    async def shutdown(self) -> None:
        """Cancel and await every in-flight monitor task."""
        tasks = [task for task in self._monitors.values() if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(
                f"{__name__}:shutdown - Cancelled monitor tasks",
                extra={"count": len(tasks)},
            )
        self._monitors.clear()

"""
AI job CRUD operations.

Status-filtered scans ordered by started_at, conditional claims, and the
terminal transitions used by the runner, the adapters and the watchdog.

Dependencies: sqlalchemy, ai_orchestrator.boundary.db.models
System role: Job persistence for the single-flight queue
"""

from datetime import datetime
from typing import Iterable, Sequence
from uuid import UUID

from sqlalchemy import exists, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ai_orchestrator.boundary.db.base import utcnow
from ai_orchestrator.boundary.db.CRUD.base_crud import BaseCRUD
from ai_orchestrator.boundary.db.models.ai_job_model import (
    ACTIVE_STATUSES,
    AIJobModel,
    JobKind,
    JobStatus,
)

MAX_ERROR_LENGTH = 2000


def truncate_error(message: str | None) -> str | None:
    """Clip an error message to the persisted column budget."""
    if message is None:
        return None
    return message[:MAX_ERROR_LENGTH]


class AIJobCRUD(BaseCRUD[AIJobModel]):
    """
    CRUD operations for AIJobModel.

    Transitions out of an active status are conditional writes: they return
    None when the row was no longer in the expected status, so callers never
    overwrite a concurrent cancel or claim.
    """

    def __init__(self) -> None:
        super().__init__(AIJobModel)

    async def get_oldest(
        self,
        session: AsyncSession,
        statuses: Iterable[JobStatus],
        kind: JobKind | None = None,
    ) -> AIJobModel | None:
        """
        Retrieve the job with the earliest started_at in the given statuses.

        Args:
            session: Async database session
            statuses: Statuses to match
            kind: Restrict to one job kind (None for all kinds)

        Returns:
            Oldest matching job, None if nothing matches
        """
        stmt = select(AIJobModel).where(AIJobModel.status.in_(list(statuses)))
        if kind is not None:
            stmt = stmt.where(AIJobModel.kind == kind)
        stmt = stmt.order_by(AIJobModel.started_at.asc(), AIJobModel.created_at.asc()).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_oldest_pending_by_kind(
        self,
        session: AsyncSession,
    ) -> list[AIJobModel]:
        """Oldest pending job of each kind (at most one per kind)."""
        jobs = []
        for kind in JobKind:
            job = await self.get_oldest(session, [JobStatus.PENDING], kind=kind)
            if job is not None:
                jobs.append(job)
        return jobs

    async def any_with_status(
        self,
        session: AsyncSession,
        statuses: Iterable[JobStatus],
    ) -> bool:
        """True iff at least one job of any kind is in one of statuses."""
        stmt = select(exists().where(AIJobModel.status.in_(list(statuses))))
        result = await session.execute(stmt)
        return bool(result.scalar())

    async def list_active(self, session: AsyncSession) -> Sequence[AIJobModel]:
        """All pending or processing jobs, oldest first."""
        stmt = (
            select(AIJobModel)
            .where(AIJobModel.status.in_(list(ACTIVE_STATUSES)))
            .order_by(AIJobModel.started_at.asc(), AIJobModel.created_at.asc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_status(self, session: AsyncSession, id: UUID) -> JobStatus | None:
        """Read only the status column of one job."""
        stmt = select(AIJobModel.status).where(AIJobModel.id == id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def _transition(
        self,
        session: AsyncSession,
        id: UUID,
        from_statuses: Iterable[JobStatus],
        **values,
    ) -> AIJobModel | None:
        stmt = (
            update(AIJobModel)
            .where(AIJobModel.id == id)
            .where(AIJobModel.status.in_(list(from_statuses)))
            .values(**values)
            .returning(AIJobModel)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def claim(
        self,
        session: AsyncSession,
        id: UUID,
        **extra,
    ) -> AIJobModel | None:
        """
        Move a pending job to processing.

        Resets started_at to now and clears error_message. Only succeeds
        while the row is still pending.

        Args:
            session: Async database session
            id: Job UUID
            **extra: Additional columns to set in the same write

        Returns:
            Claimed job, None if it was no longer pending
        """
        return await self._transition(
            session,
            id,
            [JobStatus.PENDING],
            status=JobStatus.PROCESSING,
            started_at=utcnow(),
            completed_at=None,
            error_message=None,
            **extra,
        )

    async def update_progress(
        self,
        session: AsyncSession,
        id: UUID,
        processed_units: int,
        failed_units: int,
    ) -> AIJobModel | None:
        """
        Persist cumulative batch progress of a processing job.

        Clears any transient retry note left by an earlier attempt. A batch
        that finishes after the job was cancelled is still counted.
        """
        return await self._transition(
            session,
            id,
            [JobStatus.PROCESSING, JobStatus.CANCELLED],
            processed_units=processed_units,
            failed_units=failed_units,
            error_message=None,
        )

    async def record_transient_error(
        self,
        session: AsyncSession,
        id: UUID,
        message: str,
    ) -> AIJobModel | None:
        """Write a retry note onto a processing job without changing status."""
        return await self._transition(
            session,
            id,
            [JobStatus.PROCESSING],
            error_message=truncate_error(message),
        )

    async def mark_completed(
        self,
        session: AsyncSession,
        id: UUID,
        **extra,
    ) -> AIJobModel | None:
        """Finish an active job successfully; None if it was already terminal."""
        return await self._transition(
            session,
            id,
            ACTIVE_STATUSES,
            status=JobStatus.COMPLETED,
            completed_at=utcnow(),
            error_message=None,
            **extra,
        )

    async def mark_failed(
        self,
        session: AsyncSession,
        id: UUID,
        error_message: str,
        **extra,
    ) -> AIJobModel | None:
        """Fail an active job with a truncated error; None if already terminal."""
        return await self._transition(
            session,
            id,
            ACTIVE_STATUSES,
            status=JobStatus.FAILED,
            completed_at=utcnow(),
            error_message=truncate_error(error_message),
            **extra,
        )

    async def mark_cancelled(
        self,
        session: AsyncSession,
        id: UUID,
        error_message: str | None = None,
    ) -> AIJobModel | None:
        """Cancel an active job; None if it was already terminal."""
        return await self._transition(
            session,
            id,
            ACTIVE_STATUSES,
            status=JobStatus.CANCELLED,
            completed_at=utcnow(),
            error_message=truncate_error(error_message),
        )

    async def reset_stuck(
        self,
        session: AsyncSession,
        kind: JobKind,
        started_before: datetime,
        message: str,
    ) -> list[UUID]:
        """
        Return processing jobs of a kind that started before a cutoff to pending.

        Args:
            session: Async database session
            kind: Job kind to recover
            started_before: Cutoff for started_at
            message: error_message written onto each reset job

        Returns:
            Ids of the reset jobs
        """
        stmt = (
            update(AIJobModel)
            .where(AIJobModel.kind == kind)
            .where(AIJobModel.status == JobStatus.PROCESSING)
            .where(AIJobModel.started_at < started_before)
            .values(status=JobStatus.PENDING, error_message=truncate_error(message))
            .returning(AIJobModel.id)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def get_processing_started_before(
        self,
        session: AsyncSession,
        kinds: Iterable[JobKind],
        started_before: datetime,
    ) -> Sequence[AIJobModel]:
        """Processing jobs of the given kinds whose started_at precedes a cutoff."""
        stmt = (
            select(AIJobModel)
            .where(AIJobModel.kind.in_(list(kinds)))
            .where(AIJobModel.status == JobStatus.PROCESSING)
            .where(AIJobModel.started_at < started_before)
            .order_by(AIJobModel.started_at.asc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()


ai_job_crud = AIJobCRUD()

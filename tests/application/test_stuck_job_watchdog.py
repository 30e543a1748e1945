"""
Test suite for StuckJobWatchdog.

System role: Verification of recovery for jobs nobody is driving
"""

import asyncio
from datetime import timedelta

import pytest

from ai_orchestrator.application.services.stuck_job_watchdog import (
    ORPHANED_MONITOR_MESSAGE,
    STUCK_JOB_MESSAGE,
)
from ai_orchestrator.boundary.db.base import utcnow
from ai_orchestrator.boundary.db.models import JobKind, JobStatus


class TestRecoverStuckJobs:
    """Test suite for StuckJobWatchdog.recover_stuck_jobs()."""

    @pytest.mark.asyncio
    async def test_should_reset_labeling_jobs_past_threshold(
        self, orchestrator, make_taxonomy, make_job, get_job
    ) -> None:
        # Arrange
        taxonomy = await make_taxonomy()
        stuck = await make_job(
            taxonomy,
            status=JobStatus.PROCESSING,
            started_at=utcnow() - timedelta(hours=2),
            processed_units=40,
        )
        running = await make_job(taxonomy, status=JobStatus.PROCESSING)

        # Act
        reset = await orchestrator.watchdog.recover_stuck_jobs()

        # Assert
        assert reset == [stuck.id]
        recovered = await get_job(stuck.id)
        assert recovered.status is JobStatus.PENDING
        assert recovered.error_message == STUCK_JOB_MESSAGE
        assert recovered.processed_units == 40
        assert (await get_job(running.id)).status is JobStatus.PROCESSING


class TestRecoverOrphanedMonitors:
    """Test suite for StuckJobWatchdog.recover_orphaned_monitors()."""

    @pytest.mark.asyncio
    async def test_should_fail_monitored_job_without_live_monitor(
        self, orchestrator, make_taxonomy, make_job, get_job, get_taxonomy
    ) -> None:
        # Arrange
        taxonomy = await make_taxonomy()
        orphan = await make_job(
            taxonomy,
            kind=JobKind.TAXONOMY_SYNC,
            status=JobStatus.PROCESSING,
            started_at=utcnow() - timedelta(hours=1),
        )

        # Act
        recovered = await orchestrator.watchdog.recover_orphaned_monitors()

        # Assert
        assert recovered == [orphan.id]
        failed = await get_job(orphan.id)
        assert failed.status is JobStatus.FAILED
        assert failed.error_message == ORPHANED_MONITOR_MESSAGE
        cached = await get_taxonomy(taxonomy.id)
        assert cached.last_ai_sync_status == "failed"
        assert cached.last_ai_sync_error == ORPHANED_MONITOR_MESSAGE

    @pytest.mark.asyncio
    async def test_should_keep_jobs_with_live_monitor_or_recent_start(
        self, orchestrator, make_taxonomy, make_job, get_job
    ) -> None:
        # Arrange
        taxonomy = await make_taxonomy()
        watched = await make_job(
            taxonomy,
            kind=JobKind.LEARNING,
            status=JobStatus.PROCESSING,
            started_at=utcnow() - timedelta(hours=1),
        )
        recent = await make_job(
            taxonomy, kind=JobKind.EXTERNAL_TRAINING, status=JobStatus.PROCESSING
        )
        monitor = asyncio.create_task(asyncio.sleep(30))
        orchestrator.coordinator.track_monitor(watched.id, monitor)

        # Act
        recovered = await orchestrator.watchdog.recover_orphaned_monitors()

        # Assert
        assert recovered == []
        assert (await get_job(watched.id)).status is JobStatus.PROCESSING
        assert (await get_job(recent.id)).status is JobStatus.PROCESSING


class TestRecoveryQueueHandoff:
    """Test suite for starting queued work once recovery frees the slot."""

    @pytest.mark.asyncio
    async def test_runner_should_start_job_queued_behind_orphan(
        self, orchestrator, fake_client, make_taxonomy, make_job, get_job, settle
    ) -> None:
        # Arrange
        taxonomy = await make_taxonomy()
        orphan = await make_job(
            taxonomy,
            kind=JobKind.TAXONOMY_SYNC,
            status=JobStatus.PROCESSING,
            started_at=utcnow() - timedelta(hours=1),
        )
        queued = await make_job(taxonomy, kind=JobKind.TAXONOMY_SYNC)

        # Act
        orchestrator.runner.trigger()
        await settle()

        # Assert
        assert (await get_job(orphan.id)).status is JobStatus.FAILED
        assert (await get_job(queued.id)).status is JobStatus.COMPLETED
        assert [path for path, _ in fake_client.submissions] == ["/taxonomies"]

    @pytest.mark.asyncio
    async def test_new_request_should_not_queue_behind_orphan(
        self, orchestrator, make_taxonomy, make_job, get_job, settle
    ) -> None:
        # Arrange
        taxonomy = await make_taxonomy("topics")
        orphan = await make_job(
            taxonomy,
            kind=JobKind.LEARNING,
            status=JobStatus.PROCESSING,
            started_at=utcnow() - timedelta(hours=1),
        )

        # Act
        job = await orchestrator.taxonomy_sync.request("topics")
        await settle()

        # Assert
        assert job.external_job_id == "remote-1"
        assert (await get_job(orphan.id)).status is JobStatus.FAILED
        assert (await get_job(job.id)).status is JobStatus.COMPLETED

"""
Test suite for AIJobOrchestrator startup and shutdown.

System role: Verification of crash recovery and queue resumption on boot
"""

import asyncio
from datetime import timedelta

import pytest

from ai_orchestrator.application.orchestrator import AIJobOrchestrator
from ai_orchestrator.application.services.stuck_job_watchdog import ORPHANED_MONITOR_MESSAGE
from ai_orchestrator.boundary.db.base import utcnow
from ai_orchestrator.boundary.db.models import JobKind, JobStatus


class TestOrchestratorStart:
    """Test suite for AIJobOrchestrator.start()."""

    @pytest.mark.asyncio
    async def test_should_resume_stuck_labeling_job_from_progress(
        self, orchestrator, fake_client, make_taxonomy, make_sentences, make_job, get_job, settle
    ) -> None:
        # Arrange
        taxonomy = await make_taxonomy()
        sentences = await make_sentences(3)
        job = await make_job(
            taxonomy,
            status=JobStatus.PROCESSING,
            started_at=utcnow() - timedelta(hours=2),
            total_units=3,
            processed_units=1,
            filter_criteria={"sentence_ids": [str(s.id) for s in sentences]},
        )

        # Act
        await orchestrator.start()
        await settle()

        # Assert
        assert fake_client.batch_sizes == [2]
        submitted = [s["sentenceId"] for s in fake_client.submissions[0][1]["sentences"]]
        assert submitted == [str(s.id) for s in sentences[1:]]
        finished = await get_job(job.id)
        assert finished.status is JobStatus.COMPLETED
        assert finished.processed_units == 3

    @pytest.mark.asyncio
    async def test_should_fail_orphans_then_start_next_pending_job(
        self, orchestrator, fake_client, make_taxonomy, make_job, get_job, settle
    ) -> None:
        # Arrange
        taxonomy = await make_taxonomy()
        orphan = await make_job(
            taxonomy,
            kind=JobKind.LEARNING,
            status=JobStatus.PROCESSING,
            started_at=utcnow() - timedelta(minutes=30),
        )
        queued = await make_job(taxonomy, kind=JobKind.TAXONOMY_SYNC)

        # Act
        await orchestrator.start()
        await settle()

        # Assert
        failed = await get_job(orphan.id)
        assert failed.status is JobStatus.FAILED
        assert failed.error_message == ORPHANED_MONITOR_MESSAGE
        assert (await get_job(queued.id)).status is JobStatus.COMPLETED
        assert [path for path, _ in fake_client.submissions] == ["/taxonomies"]

    @pytest.mark.asyncio
    async def test_recent_orphan_should_be_rechecked_after_its_deadline(
        self,
        session_factory,
        test_settings,
        orchestration_settings,
        fake_client,
        make_taxonomy,
        make_job,
        get_job,
    ) -> None:
        # Arrange
        settings = test_settings.model_copy(
            update={
                "orchestration": orchestration_settings.model_copy(
                    update={"orphan_grace_seconds": 0}
                )
            }
        )
        orchestrator = AIJobOrchestrator(session_factory, settings, fake_client)
        taxonomy = await make_taxonomy()
        orphan = await make_job(
            taxonomy, kind=JobKind.TAXONOMY_SYNC, status=JobStatus.PROCESSING
        )
        queued = await make_job(taxonomy, kind=JobKind.TAXONOMY_SYNC)

        try:
            # Act
            await orchestrator.start()
            held_at_start = (await get_job(orphan.id)).status
            for _ in range(50):
                if (await get_job(queued.id)).status is JobStatus.COMPLETED:
                    break
                await asyncio.sleep(0.1)

            # Assert
            assert held_at_start is JobStatus.PROCESSING
            assert (await get_job(orphan.id)).status is JobStatus.FAILED
            assert (await get_job(queued.id)).status is JobStatus.COMPLETED
        finally:
            await orchestrator.shutdown(drain_timeout=0)

    @pytest.mark.asyncio
    async def test_start_with_empty_queue_should_leave_runner_idle(
        self, orchestrator, fake_client, settle
    ) -> None:
        # Act
        await orchestrator.start()
        await settle()

        # Assert
        assert fake_client.submissions == []
        assert orchestrator.runner.is_running is False


class TestOrchestratorShutdown:
    """Test suite for AIJobOrchestrator.shutdown()."""

    @pytest.mark.asyncio
    async def test_should_cancel_monitors_that_do_not_drain(
        self, session_factory, test_settings, fake_client, make_taxonomy, get_job
    ) -> None:
        # Arrange
        orchestrator = AIJobOrchestrator(session_factory, test_settings, fake_client)
        await make_taxonomy("topics")
        gate = asyncio.Event()
        polling = asyncio.Event()

        async def hold(handle: str, status_path: str) -> None:
            polling.set()
            await gate.wait()

        fake_client.on_poll = hold
        job = await orchestrator.taxonomy_sync.request("topics")
        await asyncio.wait_for(polling.wait(), timeout=5)

        # Act
        await orchestrator.shutdown(drain_timeout=0)

        # Assert
        assert orchestrator.coordinator.monitor_count == 0
        assert (await get_job(job.id)).status is JobStatus.PROCESSING

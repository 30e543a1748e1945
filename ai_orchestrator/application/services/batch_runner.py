"""
Batch job runner for bulk labeling.

Drives bulk labeling jobs one batch at a time: submits each batch to the
external service, waits for its result, stores the returned suggestions,
and persists cumulative progress. Batches are retried with a fixed delay;
cancellation is checked before every batch; after each job the queue
coordinator is asked to start whatever is queued next.

Dependencies: asyncio, tenacity, sqlalchemy, ai_orchestrator.boundary
System role: Long-lived worker loop for the bulk labeling job kind
"""

import asyncio
import enum
import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import async_sessionmaker
from tenacity import (
    AsyncRetrying,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from ai_orchestrator.application.services.queue_coordinator import QueueCoordinator
from ai_orchestrator.application.services.stuck_job_watchdog import StuckJobWatchdog
from ai_orchestrator.boundary.ai_service.client import AIJobClient
from ai_orchestrator.boundary.db.CRUD.ai_job_crud import ai_job_crud
from ai_orchestrator.boundary.db.CRUD.annotation_crud import suggestion_crud
from ai_orchestrator.boundary.db.CRUD.sentence_crud import sentence_crud
from ai_orchestrator.boundary.db.CRUD.taxonomy_crud import taxonomy_crud
from ai_orchestrator.boundary.db.models.ai_job_model import AIJobModel, JobKind, JobStatus
from ai_orchestrator.boundary.db.models.taxonomy_model import TaxonomyModel
from ai_orchestrator.configs.orchestration import OrchestrationSettings
from ai_orchestrator.core.exceptions import (
    BatchFailedError,
    ConfigurationError,
    JobTimeoutError,
    error_text,
)
from ai_orchestrator.core.payload_builder import build_field_map
from ai_orchestrator.core.runner_state import RunnerPhase
from ai_orchestrator.observability.log_utils import job_log_context, log_exception_with_context

logger = logging.getLogger(__name__)

LABEL_SUBMIT_PATH = "/label"
TAXONOMY_UNAVAILABLE_MESSAGE = "Taxonomy is not available"
NO_SENTENCES_MESSAGE = "No sentences to process"


class _Outcome(enum.Enum):
    DONE = "done"
    YIELDED = "yielded"


def parse_label_response(
    response: dict[str, Any],
    batch_ids: list[str],
) -> tuple[dict[str, list[dict]], set[str]]:
    """
    Split a labeling result into per-sentence suggestions and failed ids.

    Accepts `sentenceId` or `sentence_id` on suggestions and errors. A batch
    sentence is failed if it is listed under `errors` or missing from
    `suggestions`. Ids outside the batch are ignored.

    Args:
        response: Result object of a finished labeling job
        batch_ids: Sentence ids submitted in the batch

    Returns:
        (suggestions, failed_ids): suggestions maps sentence id to
        [{"level", "node_code", "confidence_score"}]
    """
    in_batch = set(batch_ids)
    suggestions: dict[str, list[dict]] = {}

    for item in response.get("suggestions") or []:
        if not isinstance(item, dict):
            continue
        sentence_id = item.get("sentenceId") or item.get("sentence_id")
        annotations = item.get("annotations")
        if not sentence_id or not isinstance(annotations, list):
            continue
        sentence_id = str(sentence_id)
        if sentence_id not in in_batch:
            continue

        parsed = []
        for annotation in annotations:
            if not isinstance(annotation, dict):
                continue
            level = annotation.get("level")
            node_code = annotation.get("nodeCode")
            if level is None or node_code is None:
                continue
            confidence = annotation.get("confidence")
            parsed.append(
                {
                    "level": int(level),
                    "node_code": str(node_code),
                    "confidence_score": float(confidence)
                    if isinstance(confidence, (int, float))
                    else 0.0,
                }
            )
        suggestions[sentence_id] = parsed

    failed_ids: set[str] = set()
    for item in response.get("errors") or []:
        if not isinstance(item, dict):
            continue
        sentence_id = item.get("sentenceId") or item.get("sentence_id")
        if sentence_id and str(sentence_id) in in_batch:
            failed_ids.add(str(sentence_id))

    failed_ids.update(sentence_id for sentence_id in batch_ids if sentence_id not in suggestions)
    return suggestions, failed_ids


class BatchJobRunner:
    """
    Bulk labeling loop with an in-process single-loop guard.

    trigger() is the only entrypoint and is safe to call redundantly: while
    a live loop holds the runner lock it is a no-op; a stale loop is
    cancelled and replaced.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        client: AIJobClient,
        coordinator: QueueCoordinator,
        watchdog: StuckJobWatchdog,
        settings: OrchestrationSettings,
    ) -> None:
        """
        Initialize runner.

        Args:
            session_factory: Async session factory; one session per step
            client: External job service client
            coordinator: Single-flight coordinator (owns the runner lock)
            watchdog: Stuck-job recovery run at the top of every iteration
            settings: Batch size, retry and restart tuning
        """
        self._session_factory = session_factory
        self._client = client
        self._coordinator = coordinator
        self._watchdog = watchdog
        self._settings = settings
        self._state = coordinator.runner_state
        self._task: asyncio.Task | None = None
        self._restart_task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self) -> bool:
        """
        Start the labeling loop unless a live loop already runs.

        Returns:
            bool: True if a new loop task was started
        """
        was_stale = self._state.phase is RunnerPhase.STALE
        generation = self._state.try_acquire()
        if generation is None:
            logger.debug(f"{__name__}:trigger - Runner already active, ignoring trigger")
            return False

        previous = self._task
        if was_stale and previous is not None and not previous.done():
            previous.cancel()

        self._task = asyncio.create_task(
            self._run_loop(generation), name=f"ai-batch-runner-{generation}"
        )
        logger.info(
            f"{__name__}:trigger - Started labeling loop",
            extra={"generation": generation, "replaced_stale": was_stale},
        )
        return True

    async def start_queued(self, job_id: UUID) -> bool:
        """Starter registered with the coordinator for bulk labeling jobs."""
        self.trigger()
        return True

    async def wait_idle(self) -> None:
        """Wait until no loop (or scheduled restart) remains."""
        while True:
            task = self._task
            if task is not None and not task.done():
                await asyncio.wait({task})
                continue
            restart = self._restart_task
            if restart is not None and not restart.done():
                await asyncio.wait({restart})
                continue
            return

    async def shutdown(self) -> None:
        """Cancel the loop and any scheduled restart."""
        tasks = [t for t in (self._restart_task, self._task) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run_loop(self, generation: int) -> None:
        crashed = False
        try:
            while self._state.is_current(generation):
                await self._watchdog.recover_stuck_jobs()
                await self._watchdog.recover_orphaned_monitors()

                job = await self._next_labeling_job()
                if job is None:
                    break

                outcome = await self._process_job_safely(job, generation)
                if outcome is _Outcome.YIELDED or not self._state.is_current(generation):
                    break

                self._state.heartbeat(generation)
                await self._coordinator.process_next_queued()
        except asyncio.CancelledError:
            logger.info(
                f"{__name__}:_run_loop - Labeling loop cancelled",
                extra={"generation": generation},
            )
            raise
        except Exception as e:
            crashed = True
            log_exception_with_context(
                logger,
                f"{__name__}:_run_loop - Labeling loop crashed",
                e,
                generation=generation,
            )
        finally:
            released = self._state.release(generation)

        if not released:
            return
        if crashed:
            self._schedule_restart()
        else:
            # Recovery may have freed the slot for a queued job of another kind.
            await self._coordinator.process_next_queued()

    def _schedule_restart(self) -> None:
        delay = self._settings.runner_restart_delay_seconds

        async def _restart() -> None:
            await asyncio.sleep(delay)
            try:
                if await self._next_labeling_job() is not None:
                    self.trigger()
            except Exception as e:
                log_exception_with_context(
                    logger, f"{__name__}:_restart - Runner restart check failed", e
                )

        self._restart_task = asyncio.create_task(_restart(), name="ai-batch-runner-restart")

    async def _next_labeling_job(self) -> AIJobModel | None:
        async with self._session_factory() as session:
            job = await ai_job_crud.get_oldest(
                session, [JobStatus.PROCESSING], kind=JobKind.BULK_LABELING
            )
            if job is None:
                job = await ai_job_crud.get_oldest(
                    session, [JobStatus.PENDING], kind=JobKind.BULK_LABELING
                )
            return job

    async def _process_job_safely(self, job: AIJobModel, generation: int) -> _Outcome:
        try:
            return await self._process_job(job, generation)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:_process_job_safely - Unexpected error while processing job",
                e,
                job_id=str(job.id),
            )
            await self._fail_job(job.id, f"Unexpected error: {error_text(e)}")
            return _Outcome.DONE

    async def _process_job(self, job: AIJobModel, generation: int) -> _Outcome:
        async with self._session_factory() as session:
            taxonomy = await taxonomy_crud.get_by_id(session, job.taxonomy_id)

        if taxonomy is None or not taxonomy.is_active:
            await self._fail_job(job.id, TAXONOMY_UNAVAILABLE_MESSAGE)
            return _Outcome.DONE

        sentence_ids = job.sentence_ids
        if not sentence_ids:
            await self._fail_job(job.id, NO_SENTENCES_MESSAGE)
            return _Outcome.DONE

        if job.status is JobStatus.PENDING:
            claimed = await self._claim(job.id)
            if claimed is None:
                logger.info(
                    f"{__name__}:_process_job - Another job goes first, yielding",
                    extra={"job_id": str(job.id)},
                )
                return _Outcome.YIELDED
            job = claimed

        await self._run_batches(job, taxonomy, sentence_ids, generation)
        return _Outcome.DONE

    async def _claim(self, job_id: UUID) -> AIJobModel | None:
        """Claim a pending job only if nothing processes and it is first in line."""
        async with self._coordinator.dispatch_lock:
            if await self._coordinator.has_processing_job():
                return None
            next_ref = await self._coordinator.next_pending_job()
            if next_ref is None or next_ref.id != job_id:
                return None
            async with self._session_factory() as session:
                claimed = await ai_job_crud.claim(session, job_id)
                await session.commit()
        if claimed is not None:
            logger.info(
                f"{__name__}:_claim - Labeling job claimed",
                extra=job_log_context(claimed),
            )
        return claimed

    async def _run_batches(
        self,
        job: AIJobModel,
        taxonomy: TaxonomyModel,
        sentence_ids: list[str],
        generation: int,
    ) -> None:
        total = len(sentence_ids)
        batch_size = job.batch_size or self._settings.labeling_batch_size
        processed = min(job.processed_units, total)
        failed = job.failed_units

        for offset in range(processed, total, batch_size):
            if not self._state.is_current(generation):
                return

            status = await self._read_status(job.id)
            if status is JobStatus.CANCELLED:
                logger.info(
                    f"{__name__}:_run_batches - Job cancelled, stopping",
                    extra={"job_id": str(job.id), "processed_units": processed},
                )
                return
            if status is not JobStatus.PROCESSING:
                logger.info(
                    f"{__name__}:_run_batches - Job left processing, stopping",
                    extra={"job_id": str(job.id), "status": getattr(status, "value", status)},
                )
                return

            batch_ids = sentence_ids[offset : offset + batch_size]
            batch_index = offset // batch_size

            try:
                batch_failed = await self._run_batch(
                    job, taxonomy, batch_ids, batch_index, processed, failed, generation
                )
            except ConfigurationError as e:
                await self._fail_job(job.id, error_text(e), processed, failed)
                return
            except Exception as e:
                attempts = self._settings.batch_max_retries
                await self._fail_job(
                    job.id,
                    f"Batch {batch_index} failed after {attempts} attempts: {error_text(e)}",
                    processed,
                    failed,
                )
                return

            processed += len(batch_ids)
            failed += batch_failed
            self._state.heartbeat(generation)

        async with self._session_factory() as session:
            completed = await ai_job_crud.mark_completed(
                session, job.id, processed_units=total, failed_units=failed
            )
            await session.commit()

        if completed is not None:
            logger.info(
                f"{__name__}:_run_batches - Labeling job completed",
                extra=job_log_context(completed, failed_units=failed),
            )

    async def _run_batch(
        self,
        job: AIJobModel,
        taxonomy: TaxonomyModel,
        batch_ids: list[str],
        batch_index: int,
        processed: int,
        failed: int,
        generation: int,
    ) -> int:
        """
        Run one batch with retries; returns the number of failed sentences.

        The runner lock is refreshed before every attempt, so a batch that
        keeps retrying is not mistaken for a dead loop.
        """
        async with self._session_factory() as session:
            sentences = await sentence_crud.get_by_ids(session, [UUID(i) for i in batch_ids])
        by_id = {str(sentence.id): sentence for sentence in sentences}

        payload_sentences = []
        for sentence_id in batch_ids:
            sentence = by_id.get(sentence_id)
            if sentence is None:
                continue
            fields = build_field_map(sentence)
            if not fields:
                continue
            payload_sentences.append({"sentence_id": sentence_id, "fields": fields})

        if not payload_sentences:
            await self._persist_batch(job, {}, processed + len(batch_ids), failed)
            return 0

        payload = {
            "taxonomyKey": taxonomy.key,
            "batchId": f"{job.id}-{batch_index}",
            "sentences": payload_sentences,
        }
        attempts = self._settings.batch_max_retries

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_fixed(self._settings.batch_retry_delay_seconds),
            retry=retry_if_not_exception_type((ConfigurationError, asyncio.CancelledError)),
            reraise=True,
        ):
            with attempt:
                number = attempt.retry_state.attempt_number
                self._state.heartbeat(generation)
                try:
                    return await self._submit_batch(
                        job, payload, batch_ids, batch_index, processed, failed
                    )
                except ConfigurationError:
                    raise
                except Exception as e:
                    logger.warning(
                        f"{__name__}:_run_batch - Batch {batch_index} of job {job.id} failed "
                        f"(attempt {number}/{attempts}): {error_text(e)}",
                        extra={"job_id": str(job.id), "batch_index": batch_index},
                    )
                    if number < attempts:
                        await self._record_retry(
                            job.id,
                            f"Batch {batch_index} failed (attempt {number}/{attempts}), retrying...",
                        )
                    raise

        raise BatchFailedError(f"Batch {batch_index} was not attempted", batch_index=batch_index)

    async def _submit_batch(
        self,
        job: AIJobModel,
        payload: dict[str, Any],
        batch_ids: list[str],
        batch_index: int,
        processed: int,
        failed: int,
    ) -> int:
        handle = await self._client.submit(LABEL_SUBMIT_PATH, payload)
        result = await self._client.poll_until_terminal(
            handle, f"{LABEL_SUBMIT_PATH}/{handle}/status"
        )

        if not result.success:
            if result.timed_out:
                raise JobTimeoutError(result.error or "AI labeling job timed out")
            raise BatchFailedError(
                result.error or "AI labeling job failed", batch_index=batch_index
            )

        suggestions, failed_ids = parse_label_response(result.result, batch_ids)
        await self._persist_batch(
            job, suggestions, processed + len(batch_ids), failed + len(failed_ids)
        )
        return len(failed_ids)

    async def _persist_batch(
        self,
        job: AIJobModel,
        suggestions: dict[str, list[dict]],
        processed: int,
        failed: int,
    ) -> None:
        """Store suggestions and cumulative progress in one transaction."""
        async with self._session_factory() as session:
            if suggestions:
                await suggestion_crud.replace_for_sentences(
                    session,
                    job.taxonomy_id,
                    {UUID(sentence_id): items for sentence_id, items in suggestions.items()},
                )
            await ai_job_crud.update_progress(session, job.id, processed, failed)
            await session.commit()

    async def _read_status(self, job_id: UUID) -> JobStatus | None:
        async with self._session_factory() as session:
            return await ai_job_crud.get_status(session, job_id)

    async def _record_retry(self, job_id: UUID, message: str) -> None:
        async with self._session_factory() as session:
            await ai_job_crud.record_transient_error(session, job_id, message)
            await session.commit()

    async def _fail_job(
        self,
        job_id: UUID,
        message: str,
        processed: int | None = None,
        failed: int | None = None,
    ) -> None:
        extra = {}
        if processed is not None:
            extra["processed_units"] = processed
        if failed is not None:
            extra["failed_units"] = failed

        async with self._session_factory() as session:
            updated = await ai_job_crud.mark_failed(session, job_id, message, **extra)
            await session.commit()

        if updated is not None:
            logger.error(
                f"{__name__}:_fail_job - Labeling job failed",
                extra={"job_id": str(job_id), "error": message},
            )

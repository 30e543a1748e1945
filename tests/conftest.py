"""
Shared test fixtures and configuration for entire test suite.

Provides: In-memory async database, scripted AI service client, seed data
factories, and a fully wired orchestrator with fast timings
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import uuid
from datetime import datetime
from typing import Any, Awaitable, Callable

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from ai_orchestrator.application.orchestrator import AIJobOrchestrator
from ai_orchestrator.boundary.ai_service.client import AIJobClient
from ai_orchestrator.boundary.ai_service.poll_result import PollResult
from ai_orchestrator.boundary.db.base import Base
from ai_orchestrator.boundary.db.connection import get_async_session_factory
from ai_orchestrator.boundary.db.models import (
    AIJobModel,
    AnnotationSource,
    JobKind,
    JobStatus,
    SentenceAnnotationModel,
    SentenceModel,
    TaxonomyModel,
    TaxonomyNodeModel,
    TaxonomySynonymModel,
)
from ai_orchestrator.configs import (
    AIServiceSettings,
    OrchestrationSettings,
    Settings,
)

TEST_API_URL = "https://ai.example.test"
TEST_API_KEY = "test-key"


def label_success(payload: dict[str, Any]) -> PollResult:
    """Successful labeling result suggesting one node per submitted sentence."""
    return PollResult(
        success=True,
        data={
            "status": "success",
            "result": {
                "suggestions": [
                    {
                        "sentenceId": item["sentence_id"],
                        "annotations": [{"level": 1, "nodeCode": "10", "confidence": 0.9}],
                    }
                    for item in payload.get("sentences", [])
                ],
            },
        },
    )


class FakeAIClient(AIJobClient):
    """
    AIJobClient with scripted submit and poll outcomes.

    poll_script entries are consumed one per poll: a PollResult is returned,
    an Exception is raised, None falls through to the default (success;
    labeling batches echo one suggestion per sentence). Monitors use the
    inherited fire_and_forget_monitor, so completion handlers run for real.
    """

    def __init__(self, settings: AIServiceSettings | None = None) -> None:
        super().__init__(
            settings or AIServiceSettings(api_url=TEST_API_URL, api_key=TEST_API_KEY),
            poll_interval_seconds=0,
            poll_timeout_seconds=1,
        )
        self.submissions: list[tuple[str, dict[str, Any]]] = []
        self.polled: list[str] = []
        self.submit_errors: list[Exception | None] = []
        self.poll_script: list[PollResult | Exception | None] = []
        self.on_poll: Callable[[str, str], Awaitable[None]] | None = None

    async def submit(self, path: str, payload: dict[str, Any]) -> str:
        self.ensure_configured()
        if self.submit_errors:
            error = self.submit_errors.pop(0)
            if error is not None:
                raise error
        self.submissions.append((path, payload))
        return f"remote-{len(self.submissions)}"

    async def poll_until_terminal(self, handle: str, status_path: str) -> PollResult:
        self.polled.append(status_path)
        if self.on_poll is not None:
            await self.on_poll(handle, status_path)

        outcome = self.poll_script.pop(0) if self.poll_script else None
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is not None:
            return outcome

        index = int(handle.rsplit("-", 1)[1]) - 1
        path, payload = self.submissions[index]
        if path == "/label":
            return label_success(payload)
        return PollResult(success=True, data={"status": "completed"})

    @property
    def batch_sizes(self) -> list[int]:
        return [len(payload["sentences"]) for path, payload in self.submissions if path == "/label"]


@pytest.fixture
async def db_engine(tmp_path):
    """
    Create a file-backed SQLite async engine with all tables.

    Background tasks (runner loop, monitors) open sessions concurrently with
    the test body, so each session gets its own connection.

    Yields:
        AsyncEngine: Engine shared by every session of the test
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'orchestrator.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Session factory configured like production (no expire on commit)."""
    return get_async_session_factory(db_engine)


@pytest.fixture
async def test_async_db(session_factory):
    """Single session for CRUD-level tests."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def orchestration_settings() -> OrchestrationSettings:
    """Orchestration tuning with zero delays for fast tests."""
    return OrchestrationSettings(
        labeling_batch_size=100,
        learning_min_new_annotations=2,
        job_poll_interval_seconds=0,
        job_poll_timeout_seconds=1,
        batch_max_retries=3,
        batch_retry_delay_seconds=0,
        stuck_job_threshold_seconds=3600,
        runner_lock_stale_seconds=1800,
        orphan_grace_seconds=300,
        runner_restart_delay_seconds=0,
    )


@pytest.fixture
def test_settings(orchestration_settings) -> Settings:
    return Settings(
        ai_service=AIServiceSettings(api_url=TEST_API_URL, api_key=TEST_API_KEY),
        orchestration=orchestration_settings,
    )


@pytest.fixture
def fake_client() -> FakeAIClient:
    return FakeAIClient()


@pytest.fixture
async def orchestrator(session_factory, test_settings, fake_client):
    """
    Fully wired orchestrator backed by the in-memory database.

    Yields:
        AIJobOrchestrator: Not started; tests drive it directly
    """
    instance = AIJobOrchestrator(session_factory, settings=test_settings, client=fake_client)
    yield instance
    await instance.shutdown(drain_timeout=0)


@pytest.fixture
def make_taxonomy(session_factory):
    """Factory creating a taxonomy with two nodes and one synonym."""

    async def _make(key: str = "topics", is_active: bool = True, **values) -> TaxonomyModel:
        async with session_factory() as session:
            taxonomy = TaxonomyModel(
                key=key,
                display_name=values.pop("display_name", key.title()),
                is_active=is_active,
                **values,
            )
            session.add(taxonomy)
            await session.flush()

            root = TaxonomyNodeModel(
                taxonomy_id=taxonomy.id, code=10, level=1, label="Root", is_leaf=False
            )
            leaf = TaxonomyNodeModel(
                taxonomy_id=taxonomy.id,
                code=11,
                level=2,
                label="Leaf",
                definition="A leaf node",
                parent_code=10,
                is_leaf=True,
            )
            session.add_all([root, leaf])
            await session.flush()
            session.add(TaxonomySynonymModel(taxonomy_id=taxonomy.id, node_id=leaf.id, synonym="tip"))
            await session.commit()
            return taxonomy

    return _make


@pytest.fixture
def make_sentences(session_factory):
    """Factory creating sentences in import order."""

    async def _make(
        count: int,
        import_id: str = "import-1",
        start_order: int = 0,
        **values,
    ) -> list[SentenceModel]:
        async with session_factory() as session:
            sentences = [
                SentenceModel(
                    import_id=import_id,
                    import_order=start_order + i,
                    field1=values.get("field1", f"Sentence {start_order + i}"),
                    field2=values.get("field2"),
                    field_mapping=values.get("field_mapping", {"1": "text"}),
                    **{k: v for k, v in values.items() if k not in ("field1", "field2", "field_mapping")},
                )
                for i in range(count)
            ]
            session.add_all(sentences)
            await session.commit()
            return sentences

    return _make


@pytest.fixture
def make_annotation(session_factory):
    """Factory creating one sentence annotation."""

    async def _make(
        sentence: SentenceModel,
        taxonomy: TaxonomyModel,
        level: int = 1,
        node_code: str = "10",
        source: AnnotationSource = AnnotationSource.USER,
    ) -> SentenceAnnotationModel:
        async with session_factory() as session:
            annotation = SentenceAnnotationModel(
                sentence_id=sentence.id,
                taxonomy_id=taxonomy.id,
                level=level,
                node_code=node_code,
                source=source,
            )
            session.add(annotation)
            await session.commit()
            return annotation

    return _make


@pytest.fixture
def make_job(session_factory):
    """Factory inserting an AI job row directly."""

    async def _make(
        taxonomy: TaxonomyModel,
        kind: JobKind = JobKind.BULK_LABELING,
        status: JobStatus = JobStatus.PENDING,
        started_at: datetime | None = None,
        **values,
    ) -> AIJobModel:
        async with session_factory() as session:
            job = AIJobModel(kind=kind, status=status, taxonomy_id=taxonomy.id, **values)
            if started_at is not None:
                job.started_at = started_at
            session.add(job)
            await session.commit()
            return job

    return _make


@pytest.fixture
def get_job(session_factory):
    """Read a job row in a fresh session."""

    async def _get(job_id: uuid.UUID | str) -> AIJobModel | None:
        async with session_factory() as session:
            return await session.get(AIJobModel, uuid.UUID(str(job_id)))

    return _get


@pytest.fixture
def get_taxonomy(session_factory):
    """Read a taxonomy row in a fresh session."""

    async def _get(taxonomy_id: uuid.UUID) -> TaxonomyModel | None:
        async with session_factory() as session:
            return await session.get(TaxonomyModel, taxonomy_id)

    return _get


@pytest.fixture
def settle(orchestrator):
    """Wait until no labeling loop or monitor task of the orchestrator remains."""

    async def _settle(timeout: float = 5.0) -> None:
        for _ in range(50):
            await orchestrator.runner.wait_idle()
            if orchestrator.coordinator.monitor_count == 0 and not orchestrator.runner.is_running:
                return
            await orchestrator.coordinator.drain(timeout)
        raise AssertionError("orchestrator did not settle")

    return _settle


@pytest.fixture
def job_id() -> uuid.UUID:
    """Generate a test job ID."""
    return uuid.uuid4()


@pytest.fixture
def unconfigured_client() -> FakeAIClient:
    """Scripted client whose service address and credential are missing."""
    return FakeAIClient(AIServiceSettings(api_url=None, api_key=None))

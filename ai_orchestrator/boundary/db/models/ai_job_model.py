"""
AI job ORM model.

One table for every orchestrated job kind (bulk labeling, learning,
taxonomy sync, external training). Kind-specific data lives in the
filter_criteria and payload JSON columns.

Dependencies: sqlalchemy, ai_orchestrator.boundary.db.base
System role: Job record store for the single-flight queue
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ai_orchestrator.boundary.db.base import Base, TimestampMixin, UUIDMixin, utcnow


class JobKind(str, enum.Enum):
    """
    Orchestrated job kinds, in tie-break order for the global queue.

    BULK_LABELING: Batched AI suggestions for a frozen set of sentences
    LEARNING: Send new user annotations to the model for learning
    TAXONOMY_SYNC: Push the taxonomy node graph and synonyms to the service
    EXTERNAL_TRAINING: Train from an already-uploaded training file
    """

    BULK_LABELING = "bulk_labeling"
    LEARNING = "learning"
    TAXONOMY_SYNC = "taxonomy_sync"
    EXTERNAL_TRAINING = "external_training"


class JobStatus(str, enum.Enum):
    """
    Job execution states.

    PENDING: Queued, waiting for the single-flight slot
    PROCESSING: Holding the slot; work is in flight
    COMPLETED: Finished successfully (terminal)
    FAILED: Finished with an error; see error_message (terminal)
    CANCELLED: Stopped on request (terminal)
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


ACTIVE_STATUSES = (JobStatus.PENDING, JobStatus.PROCESSING)
TERMINAL_STATUSES = (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED)
MONITORED_KINDS = (JobKind.LEARNING, JobKind.TAXONOMY_SYNC, JobKind.EXTERNAL_TRAINING)


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class AIJobModel(Base, UUIDMixin, TimestampMixin):
    """
    AI job ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        kind: Job kind; fixed for the record's lifetime
        status: Current execution state
        taxonomy_id: Taxonomy the job operates on
        created_by: Opaque identifier of the requester
        started_at: Queue position while pending; claim time once processing
        completed_at: Set when the job reaches a terminal status
        total_units: Sentences in scope (bulk labeling)
        processed_units: Sentences attempted so far (bulk labeling)
        failed_units: Sentences the service could not label (bulk labeling)
        batch_size: Batch size captured at creation (bulk labeling)
        filter_criteria: Frozen sentence ids and originating filter
        external_job_id: Handle returned by the external service
        payload: Kind-specific request data
        error_message: Last failure or transient retry note

    Workflow:
        1. Created PENDING (queued) by the job service or a kind adapter
        2. Claimed PROCESSING by the runner or the coordinator's starter
        3. Finished COMPLETED / FAILED, or CANCELLED by request
        4. The watchdog may reset a stuck PROCESSING labeling job to PENDING
    """

    __tablename__ = "ai_jobs"
    __table_args__ = (
        Index("ix_ai_jobs_status_started_at", "status", "started_at"),
        Index("ix_ai_jobs_kind_status", "kind", "status"),
    )

    kind: Mapped[JobKind] = mapped_column(
        Enum(JobKind, native_enum=False, values_callable=_enum_values, length=32),
        nullable=False,
    )

    status: Mapped[JobStatus] = mapped_column(
        Enum(JobStatus, native_enum=False, values_callable=_enum_values, length=32),
        nullable=False,
        default=JobStatus.PENDING,
    )

    taxonomy_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("taxonomies.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    created_by: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        default=None,
    )

    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    total_units: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processed_units: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed_units: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    batch_size: Mapped[int] = mapped_column(Integer, nullable=False, default=100)

    filter_criteria: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        doc="Frozen sentence ids (bulk labeling) or annotation scope (learning)",
    )

    external_job_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        default=None,
        doc="Handle returned by the external service on submit",
    )

    payload: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        doc="Kind-specific request data",
    )

    error_message: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        default=None,
    )

    @property
    def sentence_ids(self) -> list[str]:
        """Frozen sentence ids for a bulk labeling job."""
        return list((self.filter_criteria or {}).get("sentence_ids") or [])

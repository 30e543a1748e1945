"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin, utcnow: Model building blocks
  - get_async_engine(), get_async_session_factory(): Async connection management
  - AIJobModel, JobKind, JobStatus: Unified job record and its enums
  - ai_job_crud, taxonomy_crud, sentence_crud, annotation_crud, suggestion_crud:
    CRUD operation singletons

Dependencies: sqlalchemy, ai_orchestrator.configs
System role: Relational job store and collaborator records
"""

from ai_orchestrator.boundary.db.base import Base, TimestampMixin, UUIDMixin, utcnow
from ai_orchestrator.boundary.db.connection import (
    get_async_engine,
    get_async_session_factory,
)
from ai_orchestrator.boundary.db.CRUD import (
    ai_job_crud,
    annotation_crud,
    sentence_crud,
    suggestion_crud,
    taxonomy_crud,
)
from ai_orchestrator.boundary.db.models import AIJobModel, JobKind, JobStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "utcnow",
    "get_async_engine",
    "get_async_session_factory",
    "ai_job_crud",
    "annotation_crud",
    "sentence_crud",
    "suggestion_crud",
    "taxonomy_crud",
    "AIJobModel",
    "JobKind",
    "JobStatus",
]

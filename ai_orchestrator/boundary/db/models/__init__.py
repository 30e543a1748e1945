"""
Database models package.

Exports:
  - AIJobModel, JobKind, JobStatus: Unified job record and its enums
  - TaxonomyModel, TaxonomyNodeModel, TaxonomySynonymModel: Taxonomy graph
  - SentenceModel, SentenceStatus: Imported records
  - SentenceAnnotationModel, SentenceAISuggestionModel, AnnotationSource: Labels

Dependencies: sqlalchemy, ai_orchestrator.boundary.db.base
System role: Database model definitions for domain entities
"""

from ai_orchestrator.boundary.db.models.ai_job_model import (
    ACTIVE_STATUSES,
    MONITORED_KINDS,
    TERMINAL_STATUSES,
    AIJobModel,
    JobKind,
    JobStatus,
)
from ai_orchestrator.boundary.db.models.annotation_model import (
    AnnotationSource,
    SentenceAISuggestionModel,
    SentenceAnnotationModel,
)
from ai_orchestrator.boundary.db.models.sentence_model import SentenceModel, SentenceStatus
from ai_orchestrator.boundary.db.models.taxonomy_model import (
    TaxonomyModel,
    TaxonomyNodeModel,
    TaxonomySynonymModel,
)

__all__ = [
    "ACTIVE_STATUSES",
    "MONITORED_KINDS",
    "TERMINAL_STATUSES",
    "AIJobModel",
    "JobKind",
    "JobStatus",
    "AnnotationSource",
    "SentenceAISuggestionModel",
    "SentenceAnnotationModel",
    "SentenceModel",
    "SentenceStatus",
    "TaxonomyModel",
    "TaxonomyNodeModel",
    "TaxonomySynonymModel",
]

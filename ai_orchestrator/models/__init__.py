"""Pydantic API schemas."""

from ai_orchestrator.models.job import (
    ActiveJobsResponse,
    CreateLabelingJobRequest,
    ExternalTrainingRequest,
    JobResponse,
    LearningRequest,
    TaxonomySyncRequest,
)

__all__ = [
    "ActiveJobsResponse",
    "CreateLabelingJobRequest",
    "ExternalTrainingRequest",
    "JobResponse",
    "LearningRequest",
    "TaxonomySyncRequest",
]

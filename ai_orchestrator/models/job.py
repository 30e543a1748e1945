"""
AI job request/response schemas.

Dependencies: pydantic
System role: Job API contracts
"""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class CreateLabelingJobRequest(BaseModel):
    """Request schema for starting a bulk labeling job."""

    taxonomy_key: str = Field(min_length=1, description="Active taxonomy to label against")
    sentence_ids: list[str] | None = Field(default=None, description="Restrict to these sentences")
    import_ids: list[str] | None = Field(default=None, description="Restrict to these imports")
    only_unsubmitted: bool = Field(default=False, description="Only sentences pending review")
    created_by: str | None = None


class LearningRequest(BaseModel):
    """Request schema for sending new annotations for learning."""

    taxonomy_key: str = Field(min_length=1)
    sentence_ids: list[str] | None = None
    import_ids: list[str] | None = None
    only_unsubmitted: bool = False
    created_by: str | None = None


class TaxonomySyncRequest(BaseModel):
    """Optional body for a taxonomy sync request."""

    created_by: str | None = None


class ExternalTrainingRequest(BaseModel):
    """Request schema for training from an uploaded file."""

    taxonomy_key: str = Field(min_length=1)
    training_data_url: str = Field(min_length=1)
    file_name: str = Field(min_length=1)
    record_count: int = Field(ge=1)
    created_by: str | None = None


class JobResponse(BaseModel):
    """Response schema for one AI job of any kind."""

    id: uuid.UUID
    kind: str
    status: str
    taxonomy_id: uuid.UUID
    created_by: str | None = None
    total_units: int = 0
    processed_units: int = 0
    failed_units: int = 0
    progress: int = Field(default=0, description="Progress percentage (0-100)")
    error_message: str | None = None
    external_job_id: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ActiveJobsResponse(BaseModel):
    """Response schema for the active jobs listing."""

    jobs: list[JobResponse]
    has_active: bool

"""
AI labeling API endpoints.

Routes: POST /ai-labeling/jobs, GET /ai-labeling/jobs/{id},
POST /ai-labeling/learn, POST /ai-labeling/external-training/start

Dependencies: ai_orchestrator.application.services, ai_orchestrator.models
System role: Labeling and learning job HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from ai_orchestrator.api.deps import (
    get_external_training_adapter,
    get_job_service,
    get_learning_adapter,
)
from ai_orchestrator.api.routers.router_utils import to_http_exception
from ai_orchestrator.application.services.adapters import (
    ExternalTrainingAdapter,
    LearningJobAdapter,
)
from ai_orchestrator.application.services.job_service import JobService, job_to_dict
from ai_orchestrator.core.exceptions import OrchestratorException
from ai_orchestrator.models.job import (
    CreateLabelingJobRequest,
    ExternalTrainingRequest,
    JobResponse,
    LearningRequest,
)

router = APIRouter(prefix="/ai-labeling", tags=["ai-labeling"])


@router.post("/jobs", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def create_labeling_job(
    request: CreateLabelingJobRequest,
    job_service: JobService = Depends(get_job_service),
) -> dict:
    """
    Start bulk AI labeling for the matching sentences.

    The job is queued behind any active job and processed in batches.
    Poll GET /ai-labeling/jobs/{id} for progress.

    Raises:
        HTTPException(400): Invalid filter or no sentence matched
        HTTPException(404): Unknown or inactive taxonomy
    """
    try:
        return await job_service.create_labeling_job(
            taxonomy_key=request.taxonomy_key,
            sentence_ids=request.sentence_ids,
            import_ids=request.import_ids,
            only_unsubmitted=request.only_unsubmitted,
            created_by=request.created_by,
        )
    except OrchestratorException as e:
        raise to_http_exception(e) from e


@router.get("/jobs/{job_id}", response_model=JobResponse)
async def get_job_status(
    job_id: UUID,
    job_service: JobService = Depends(get_job_service),
) -> dict:
    """
    Get job status and progress for frontend polling.

    Example Response:
        {
            "id": "123e4567-e89b-12d3-a456-426614174000",
            "kind": "bulk_labeling",
            "status": "processing",
            "total_units": 250,
            "processed_units": 100,
            "failed_units": 2,
            "progress": 40,
            ...
        }

    Raises:
        HTTPException(404): Job not found
    """
    try:
        return await job_service.get_job_status(job_id)
    except OrchestratorException as e:
        raise to_http_exception(e) from e


@router.post("/learn", response_model=JobResponse, status_code=status.HTTP_202_ACCEPTED)
async def send_for_learning(
    request: LearningRequest,
    adapter: LearningJobAdapter = Depends(get_learning_adapter),
) -> dict:
    """Send user annotations made since the last learning run to the AI service."""
    try:
        job = await adapter.request(
            taxonomy_key=request.taxonomy_key,
            sentence_ids=request.sentence_ids,
            import_ids=request.import_ids,
            only_unsubmitted=request.only_unsubmitted,
            created_by=request.created_by,
        )
    except OrchestratorException as e:
        raise to_http_exception(e) from e
    return job_to_dict(job)


@router.post(
    "/external-training/start",
    response_model=JobResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def start_external_training(
    request: ExternalTrainingRequest,
    adapter: ExternalTrainingAdapter = Depends(get_external_training_adapter),
) -> dict:
    """Train the AI service from an already uploaded training file."""
    try:
        job = await adapter.request(
            taxonomy_key=request.taxonomy_key,
            training_data_url=request.training_data_url,
            file_name=request.file_name,
            record_count=request.record_count,
            created_by=request.created_by,
        )
    except OrchestratorException as e:
        raise to_http_exception(e) from e
    return job_to_dict(job)

"""
AI job management endpoints.

Routes: GET /ai-jobs/active, POST /ai-jobs/{id}/cancel

Dependencies: ai_orchestrator.application.services.job_service
System role: Cross-kind job listing and cancellation
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from ai_orchestrator.api.deps import get_job_service
from ai_orchestrator.api.routers.router_utils import to_http_exception
from ai_orchestrator.application.services.job_service import JobService
from ai_orchestrator.core.exceptions import OrchestratorException
from ai_orchestrator.models.job import ActiveJobsResponse, JobResponse

router = APIRouter(prefix="/ai-jobs", tags=["ai-jobs"])


@router.get("/active", response_model=ActiveJobsResponse)
async def list_active_jobs(
    job_service: JobService = Depends(get_job_service),
) -> dict:
    """Pending and processing jobs of every kind, oldest first."""
    jobs = await job_service.list_active_jobs()
    return {"jobs": jobs, "has_active": bool(jobs)}


@router.post("/{job_id}/cancel", response_model=JobResponse)
async def cancel_job(
    job_id: UUID,
    job_service: JobService = Depends(get_job_service),
) -> dict:
    """
    Cancel a job of any kind.

    Already finished jobs are returned unchanged.

    Raises:
        HTTPException(404): Job not found
    """
    try:
        return await job_service.cancel_job(job_id)
    except OrchestratorException as e:
        raise to_http_exception(e) from e

"""
Taxonomy AI endpoints.

Routes: POST /taxonomies/{key}/sync-ai

Dependencies: ai_orchestrator.application.services.adapters
System role: Taxonomy push to the AI service
"""

from fastapi import APIRouter, Depends, status

from ai_orchestrator.api.deps import get_taxonomy_sync_adapter
from ai_orchestrator.api.routers.router_utils import to_http_exception
from ai_orchestrator.application.services.adapters import TaxonomySyncAdapter
from ai_orchestrator.application.services.job_service import job_to_dict
from ai_orchestrator.core.exceptions import OrchestratorException
from ai_orchestrator.models.job import JobResponse, TaxonomySyncRequest

router = APIRouter(prefix="/taxonomies", tags=["taxonomies"])


@router.post("/{key}/sync-ai", response_model=JobResponse, status_code=status.HTTP_202_ACCEPTED)
async def sync_taxonomy(
    key: str,
    request: TaxonomySyncRequest | None = None,
    adapter: TaxonomySyncAdapter = Depends(get_taxonomy_sync_adapter),
) -> dict:
    """
    Push the taxonomy definition to the AI service.

    The sync waits in the queue while any other AI job is active.

    Raises:
        HTTPException(400): AI service not configured
        HTTPException(404): Taxonomy not found
    """
    created_by = request.created_by if request else None
    try:
        job = await adapter.request(key, created_by=created_by)
    except OrchestratorException as e:
        raise to_http_exception(e) from e
    return job_to_dict(job)

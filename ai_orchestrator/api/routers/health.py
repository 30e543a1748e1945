"""
Health check API endpoints.

Routes: GET /health, GET /health/orchestrator

Dependencies: fastapi
System role: Health check HTTP API
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ai_orchestrator.api.deps import get_orchestrator
from ai_orchestrator.application.orchestrator import AIJobOrchestrator


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    message: str


class OrchestratorHealthResponse(HealthResponse):
    """Orchestrator health with background work counters."""

    runner_active: bool
    runner_phase: str
    monitors: int
    ai_service_configured: bool


router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check."""
    return HealthResponse(status="healthy", message="Server Healthy")


@router.get("/orchestrator", response_model=OrchestratorHealthResponse)
async def health_check_orchestrator(
    orchestrator: AIJobOrchestrator = Depends(get_orchestrator),
) -> OrchestratorHealthResponse:
    """Runner and monitor state of the job orchestrator."""
    return OrchestratorHealthResponse(
        status="healthy",
        message="Orchestrator running",
        runner_active=orchestrator.runner.is_running,
        runner_phase=orchestrator.coordinator.runner_state.phase.value,
        monitors=orchestrator.coordinator.monitor_count,
        ai_service_configured=orchestrator.settings.ai_service.is_configured,
    )

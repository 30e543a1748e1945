"""
Dependency injection container.

Factory functions for FastAPI dependencies. Services come from the
AIJobOrchestrator stored on app.state by the application lifespan.

Dependencies: fastapi, ai_orchestrator.application
System role: DI container for service injection
"""

from fastapi import Depends, Request

from ai_orchestrator.application.orchestrator import AIJobOrchestrator
from ai_orchestrator.application.services.adapters import (
    ExternalTrainingAdapter,
    LearningJobAdapter,
    TaxonomySyncAdapter,
)
from ai_orchestrator.application.services.job_service import JobService


def get_orchestrator(request: Request) -> AIJobOrchestrator:
    """Orchestrator created at startup."""
    return request.app.state.orchestrator


def get_job_service(
    orchestrator: AIJobOrchestrator = Depends(get_orchestrator),
) -> JobService:
    return orchestrator.job_service


def get_learning_adapter(
    orchestrator: AIJobOrchestrator = Depends(get_orchestrator),
) -> LearningJobAdapter:
    return orchestrator.learning


def get_taxonomy_sync_adapter(
    orchestrator: AIJobOrchestrator = Depends(get_orchestrator),
) -> TaxonomySyncAdapter:
    return orchestrator.taxonomy_sync


def get_external_training_adapter(
    orchestrator: AIJobOrchestrator = Depends(get_orchestrator),
) -> ExternalTrainingAdapter:
    return orchestrator.external_training

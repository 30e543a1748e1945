"""API-specific dependencies."""

# Re-export common dependencies
from .dependencies import (
    get_external_training_adapter,
    get_job_service,
    get_learning_adapter,
    get_orchestrator,
    get_taxonomy_sync_adapter,
)

__all__ = [
    "get_external_training_adapter",
    "get_job_service",
    "get_learning_adapter",
    "get_orchestrator",
    "get_taxonomy_sync_adapter",
]

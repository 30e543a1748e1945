"""
Monitored job kind adapters.

Exports:
  - MonitoredJobAdapter: Shared request / start / completion flow
  - LearningJobAdapter, TaxonomySyncAdapter, ExternalTrainingAdapter
"""

from ai_orchestrator.application.services.adapters.base_adapter import MonitoredJobAdapter
from ai_orchestrator.application.services.adapters.external_training_adapter import (
    ExternalTrainingAdapter,
)
from ai_orchestrator.application.services.adapters.learning_adapter import LearningJobAdapter
from ai_orchestrator.application.services.adapters.taxonomy_sync_adapter import (
    TaxonomySyncAdapter,
)

__all__ = [
    "MonitoredJobAdapter",
    "ExternalTrainingAdapter",
    "LearningJobAdapter",
    "TaxonomySyncAdapter",
]

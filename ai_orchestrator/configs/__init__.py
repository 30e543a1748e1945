"""
Configuration management module.

Provides centralized, type-safe configuration using Pydantic Settings.
All config modules support environment variable mapping with validation.
"""

from ai_orchestrator.configs.ai_service import AIServiceSettings
from ai_orchestrator.configs.database import DatabaseSettings
from ai_orchestrator.configs.orchestration import OrchestrationSettings
from ai_orchestrator.configs.settings import Settings, get_settings

__all__ = [
    "AIServiceSettings",
    "DatabaseSettings",
    "OrchestrationSettings",
    "Settings",
    "get_settings",
]

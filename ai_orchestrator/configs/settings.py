"""
Unified application settings.

Groups the database, external service and orchestration settings under
one object; get_settings() is the cached accessor used at startup and by
the orchestrator when no settings are injected.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from ai_orchestrator.configs.ai_service import AIServiceSettings
from ai_orchestrator.configs.base import BaseSettings
from ai_orchestrator.configs.database import DatabaseSettings
from ai_orchestrator.configs.orchestration import OrchestrationSettings


class Settings(BaseSettings):
    """Application settings; each group reads its own env prefix."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    ai_service: AIServiceSettings = Field(default_factory=AIServiceSettings)
    orchestration: OrchestrationSettings = Field(default_factory=OrchestrationSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get the process-wide settings, read from the environment once.

    Tests build Settings directly instead of going through this cache.
    """
    return Settings()

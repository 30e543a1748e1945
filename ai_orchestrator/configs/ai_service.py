"""
External AI labeling service configuration.

Address and credential of the external job service used by every job kind.
Both values are optional so the application can boot unconfigured; job
submission raises ConfigurationError until they are set.

Dependencies: pydantic, pydantic_settings
System role: External job service connection settings
"""

from pydantic import Field

from ai_orchestrator.configs.base import BaseSettings, env_config


class AIServiceSettings(BaseSettings):
    """AI labeling service endpoint configuration."""

    model_config = env_config("AI_LABELING_")

    api_url: str | None = Field(
        default=None,
        description="Base URL of the external AI labeling service",
    )
    api_key: str | None = Field(
        default=None,
        description="Bearer token for the external AI labeling service",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        description="Per-request HTTP timeout for submit and status calls",
    )

    @property
    def is_configured(self) -> bool:
        """True when both the service address and credential are present."""
        return bool(self.api_url) and bool(self.api_key)

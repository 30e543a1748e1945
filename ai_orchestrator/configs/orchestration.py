"""
Job orchestration tuning.

Batch sizing, retry policy, polling cadence, and staleness thresholds for
the runner, watchdog, and monitored job kinds.

Dependencies: pydantic, pydantic_settings
System role: Orchestration behaviour configuration
"""

from pydantic import Field

from ai_orchestrator.configs.base import BaseSettings, env_config


class OrchestrationSettings(BaseSettings):
    """Orchestration configuration for AI jobs."""

    model_config = env_config("AI_")

    labeling_batch_size: int = Field(
        default=100,
        ge=1,
        description="Sentences submitted per bulk labeling batch",
    )
    learning_min_new_annotations: int = Field(
        default=500,
        ge=0,
        description="New user annotations required before a learning job may be requested",
    )
    job_poll_interval_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Delay between status polls of an external job",
    )
    job_poll_timeout_seconds: float = Field(
        default=600.0,
        gt=0,
        description="Hard limit for an external job to reach a terminal state",
    )
    batch_max_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts per labeling batch before the job fails",
    )
    batch_retry_delay_seconds: float = Field(
        default=10.0,
        ge=0,
        description="Fixed delay between labeling batch attempts",
    )
    stuck_job_threshold_seconds: float = Field(
        default=3600.0,
        gt=0,
        description="Processing labeling jobs older than this are reset to pending",
    )
    runner_lock_stale_seconds: float = Field(
        default=1800.0,
        gt=0,
        description="Age after which the runner's running flag may be overridden",
    )
    orphan_grace_seconds: float = Field(
        default=300.0,
        ge=0,
        description="Slack added to the poll timeout before an unmonitored job is failed",
    )
    runner_restart_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Delay before re-triggering the runner after a loop-level crash",
    )

"""
Core domain layer: exceptions, payload mapping, and the runner lock.

Dependencies: None outside the standard library
System role: Framework-free orchestration building blocks
"""

from ai_orchestrator.core.exceptions import (
    BatchFailedError,
    ConfigurationError,
    DataError,
    JobNotFoundError,
    JobTimeoutError,
    OrchestratorException,
    RemoteError,
    TaxonomyNotFoundError,
    ValidationError,
    error_text,
)
from ai_orchestrator.core.payload_builder import build_field_map
from ai_orchestrator.core.runner_state import RunnerPhase, RunnerStateMachine

__all__ = [
    "BatchFailedError",
    "ConfigurationError",
    "DataError",
    "JobNotFoundError",
    "JobTimeoutError",
    "OrchestratorException",
    "RemoteError",
    "TaxonomyNotFoundError",
    "ValidationError",
    "error_text",
    "build_field_map",
    "RunnerPhase",
    "RunnerStateMachine",
]

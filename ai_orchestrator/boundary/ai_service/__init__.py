"""
External AI job service boundary.

Exports:
  - AIJobClient: submit / poll / background monitor
  - PollResult, RemoteJobState, normalize_state: Poll outcome types
"""

from ai_orchestrator.boundary.ai_service.client import AIJobClient
from ai_orchestrator.boundary.ai_service.poll_result import (
    PollResult,
    RemoteJobState,
    normalize_state,
)

__all__ = ["AIJobClient", "PollResult", "RemoteJobState", "normalize_state"]

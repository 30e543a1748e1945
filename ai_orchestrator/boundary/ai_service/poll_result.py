"""
Poll outcome types for the external AI job service.

Dependencies: dataclasses, enum
System role: Value objects passed from the job client to completion handlers
"""

import enum
from dataclasses import dataclass, field
from typing import Any

SUCCESS_STATES = frozenset({"success", "succeeded", "completed", "complete", "done"})
FAILURE_STATES = frozenset({"failed", "failure", "error", "cancelled", "canceled"})


class RemoteJobState(str, enum.Enum):
    """Normalized state of a remote job."""

    SUCCESS = "success"
    FAILURE = "failure"
    RUNNING = "running"


def normalize_state(raw: Any) -> RemoteJobState:
    """
    Map a service-reported status onto success/failure/running.

    Matching is case-insensitive; anything unrecognized counts as running.
    """
    value = str(raw or "").strip().lower()
    if value in SUCCESS_STATES:
        return RemoteJobState.SUCCESS
    if value in FAILURE_STATES:
        return RemoteJobState.FAILURE
    return RemoteJobState.RUNNING


def extract_error(data: dict[str, Any]) -> str:
    """Pull an error message from a failed status payload."""
    error = data.get("error")
    if not error and isinstance(data.get("result"), dict):
        error = data["result"].get("error")
    if isinstance(error, dict):
        error = error.get("message") or str(error)
    return str(error) if error else "AI job failed"


@dataclass
class PollResult:
    """
    Terminal outcome of polling a remote job.

    Attributes:
        success: True when the remote job reported success
        data: Raw status payload of the terminal response
        error: Failure description (None on success)
        timed_out: True when the poll deadline passed first
    """

    success: bool
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    timed_out: bool = False

    @property
    def result(self) -> dict[str, Any]:
        """The nested result object when present, else the whole payload."""
        nested = self.data.get("result")
        return nested if isinstance(nested, dict) else self.data

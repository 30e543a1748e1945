"""
Exception hierarchy for the AI job orchestrator.

Provides layered exception structure for orchestration failures.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class OrchestratorException(Exception):
    """Base exception for all orchestrator errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(OrchestratorException):
    """Raised when the external AI service address or credential is missing."""


class RemoteError(OrchestratorException):
    """Raised when the external AI service answers with a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize remote error.

        Args:
            message: Error message
            status_code: HTTP status returned by the service
            body: Response body text (possibly truncated)
            details: Additional context
        """
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        self.status_code = status_code
        self.body = body
        super().__init__(message, details)


class JobTimeoutError(OrchestratorException):
    """Raised when an external job does not reach a terminal state in time."""


class BatchFailedError(OrchestratorException):
    """Raised when the external service reports a labeling batch as failed."""

    def __init__(
        self,
        message: str,
        batch_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize batch failure.

        Args:
            message: Error message reported by the service
            batch_index: Zero-based index of the failed batch
            details: Additional context
        """
        details = details or {}
        if batch_index is not None:
            details["batch_index"] = batch_index
        super().__init__(message, details)


class DataError(OrchestratorException):
    """Raised when a job's inputs make it impossible to run (retry cannot help)."""


class ValidationError(OrchestratorException):
    """Raised when a job request fails validation."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class JobNotFoundError(OrchestratorException):
    """Raised when a job cannot be found."""

    def __init__(self, job_id: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize job not found error.

        Args:
            job_id: ID of the missing job
            details: Additional context
        """
        details = details or {}
        details["job_id"] = job_id
        super().__init__(f"Job not found: {job_id}", details)


class TaxonomyNotFoundError(OrchestratorException):
    """Raised when a taxonomy is missing or inactive."""

    def __init__(self, taxonomy_key: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize taxonomy not found error.

        Args:
            taxonomy_key: Key of the missing taxonomy
            details: Additional context
        """
        details = details or {}
        details["taxonomy_key"] = taxonomy_key
        super().__init__(f"Taxonomy not found: {taxonomy_key}", details)


def error_text(error: BaseException) -> str:
    """Message of an error without the details suffix of domain exceptions."""
    if isinstance(error, OrchestratorException):
        return error.message
    return str(error) or type(error).__name__

"""
Logging utilities for job-scoped structured logging.

Builds the `extra` context attached to job log records and logs failures
without risking a second error inside an error path.

Dependencies: logging (stdlib)
System role: Logging helper functions
"""

import logging
from typing import Any

from ai_orchestrator.boundary.db.models.ai_job_model import AIJobModel


def safe_log_value(value: Any, max_length: int = 500) -> str:
    """
    Convert a value to a bounded string for a log record.

    Collections are summarized by size rather than rendered.
    """
    try:
        if value is None:
            return "None"
        if isinstance(value, (list, tuple, set)):
            text = f"{type(value).__name__}({len(value)} items)"
        elif isinstance(value, dict):
            text = f"dict({len(value)} keys)"
        else:
            text = str(value)
    except Exception as e:
        return f"<unable to log: {type(e).__name__}>"

    if len(text) > max_length:
        return text[:max_length] + f"... (truncated, {len(text)} total)"
    return text


def job_log_context(job: AIJobModel, **extra: Any) -> dict[str, str]:
    """
    Structured context identifying a job.

    Args:
        job: Job row (attributes must already be loaded)
        **extra: Additional key-value pairs

    Returns:
        dict: Values safe to pass as logging `extra`
    """
    context = {
        "job_id": job.id,
        "job_kind": job.kind.value if job.kind is not None else None,
        "job_status": job.status.value if job.status is not None else None,
        "taxonomy_id": job.taxonomy_id,
        "processed_units": job.processed_units,
        "total_units": job.total_units,
    }
    context.update(extra)
    return {key: safe_log_value(value) for key, value in context.items()}


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context: Any,
) -> None:
    """
    Log an exception with traceback, error type and safe context.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance
        **context: Additional context
    """
    safe_context = {key: safe_log_value(value) for key, value in context.items()}
    safe_context["error_type"] = type(exc).__name__
    safe_context["error_msg"] = safe_log_value(exc)
    logger.error(message, exc_info=exc, extra=safe_context)

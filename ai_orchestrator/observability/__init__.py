"""
Observability module.

Logging configuration, correlation IDs and structured logging helpers.
"""

from ai_orchestrator.observability.logger import (
    CorrelationIdFilter,
    configure_logging,
    correlation_id_var,
)
from ai_orchestrator.observability.log_utils import (
    job_log_context,
    log_exception_with_context,
    safe_log_value,
)

__all__ = [
    "CorrelationIdFilter",
    "configure_logging",
    "correlation_id_var",
    "job_log_context",
    "log_exception_with_context",
    "safe_log_value",
]

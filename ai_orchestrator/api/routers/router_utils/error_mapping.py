"""
Domain exception to HTTP error mapping.

Dependencies: fastapi, ai_orchestrator.core.exceptions
System role: Consistent error responses across job routers
"""

import logging

from fastapi import HTTPException

from ai_orchestrator.core.exceptions import (
    ConfigurationError,
    DataError,
    JobNotFoundError,
    OrchestratorException,
    RemoteError,
    TaxonomyNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def to_http_exception(exc: OrchestratorException) -> HTTPException:
    """
    Convert a domain exception into an HTTPException.

    400 for invalid requests or configuration, 404 for missing jobs or
    taxonomies, 502 for external service failures, 500 otherwise.
    """
    if isinstance(exc, (JobNotFoundError, TaxonomyNotFoundError)):
        return HTTPException(status_code=404, detail=exc.message)
    if isinstance(exc, (ValidationError, DataError, ConfigurationError)):
        return HTTPException(status_code=400, detail=exc.message)
    if isinstance(exc, RemoteError):
        return HTTPException(status_code=502, detail=exc.message)

    logger.error(
        f"{__name__}:to_http_exception - Unmapped orchestrator error",
        extra={"error_type": type(exc).__name__, "error_msg": exc.message},
    )
    return HTTPException(status_code=500, detail=exc.message)

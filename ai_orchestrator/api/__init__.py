"""
API routes module.

FastAPI routers for all HTTP endpoints.
"""

from fastapi import APIRouter

from .routers import (
    ai_jobs_router,
    ai_labeling_router,
    health_router,
    taxonomies_router,
)

api_router = APIRouter()

# Include all routers
api_router.include_router(health_router)
api_router.include_router(ai_labeling_router)
api_router.include_router(ai_jobs_router)
api_router.include_router(taxonomies_router)

__all__ = ["api_router"]

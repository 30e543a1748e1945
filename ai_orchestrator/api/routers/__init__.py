"""API routers."""

from .ai_jobs import router as ai_jobs_router
from .ai_labeling import router as ai_labeling_router
from .health import router as health_router
from .taxonomies import router as taxonomies_router

__all__ = [
    "ai_jobs_router",
    "ai_labeling_router",
    "health_router",
    "taxonomies_router",
]

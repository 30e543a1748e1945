"""
CRUD operations for database models.

Exports the base CRUD class and model-specific CRUD implementations with
pre-instantiated singletons for direct use.

Usage:
    from ai_orchestrator.boundary.db.CRUD import ai_job_crud, taxonomy_crud

    job = await ai_job_crud.get_by_id(session, job_id)
"""

from ai_orchestrator.boundary.db.CRUD.ai_job_crud import (
    MAX_ERROR_LENGTH,
    AIJobCRUD,
    ai_job_crud,
    truncate_error,
)
from ai_orchestrator.boundary.db.CRUD.annotation_crud import (
    AnnotationCRUD,
    SuggestionCRUD,
    annotation_crud,
    suggestion_crud,
)
from ai_orchestrator.boundary.db.CRUD.base_crud import BaseCRUD
from ai_orchestrator.boundary.db.CRUD.sentence_crud import SentenceCRUD, sentence_crud
from ai_orchestrator.boundary.db.CRUD.taxonomy_crud import TaxonomyCRUD, taxonomy_crud

__all__ = [
    "MAX_ERROR_LENGTH",
    "AIJobCRUD",
    "ai_job_crud",
    "truncate_error",
    "AnnotationCRUD",
    "SuggestionCRUD",
    "annotation_crud",
    "suggestion_crud",
    "BaseCRUD",
    "SentenceCRUD",
    "sentence_crud",
    "TaxonomyCRUD",
    "taxonomy_crud",
]

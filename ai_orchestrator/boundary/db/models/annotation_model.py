"""
Annotation and AI suggestion ORM models.

User annotations feed learning jobs; AI suggestions are written by bulk
labeling batches.

Dependencies: sqlalchemy, ai_orchestrator.boundary.db.base
System role: Label persistence for the learning and labeling job kinds
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from ai_orchestrator.boundary.db.base import Base, TimestampMixin, UUIDMixin, utcnow


class AnnotationSource(str, enum.Enum):
    """Origin of an annotation."""

    USER = "user"
    AI = "ai"


class SentenceAnnotationModel(Base, UUIDMixin, TimestampMixin):
    """
    Annotation of a sentence at one taxonomy level.

    Attributes:
        sentence_id: Annotated sentence
        taxonomy_id: Taxonomy the node code belongs to
        level: Taxonomy level
        node_code: Selected node code
        source: USER or AI
        created_by: Annotator identifier
    """

    __tablename__ = "sentence_annotations"
    __table_args__ = (
        Index("ix_sentence_annotations_taxonomy_updated", "taxonomy_id", "updated_at"),
    )

    sentence_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("sentences.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    taxonomy_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("taxonomies.id", ondelete="CASCADE"),
        nullable=False,
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    node_code: Mapped[str] = mapped_column(String(64), nullable=False)
    source: Mapped[AnnotationSource] = mapped_column(
        Enum(AnnotationSource, native_enum=False),
        nullable=False,
        default=AnnotationSource.USER,
    )
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True, default=None)


class SentenceAISuggestionModel(Base, UUIDMixin):
    """
    AI-suggested node for a sentence at one taxonomy level.

    Attributes:
        sentence_id: Sentence the suggestion applies to
        taxonomy_id: Taxonomy of the suggested node
        level: Taxonomy level
        node_code: Suggested node code
        confidence_score: Service-reported confidence (0 when absent)
        suggested_at: When the suggestion was stored
    """

    __tablename__ = "sentence_ai_suggestions"
    __table_args__ = (
        UniqueConstraint("sentence_id", "taxonomy_id", "level"),
        Index("ix_sentence_ai_suggestions_taxonomy_node", "taxonomy_id", "node_code"),
    )

    sentence_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("sentences.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    taxonomy_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("taxonomies.id", ondelete="CASCADE"),
        nullable=False,
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    node_code: Mapped[str] = mapped_column(String(64), nullable=False)
    confidence_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    suggested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

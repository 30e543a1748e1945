"""
Taxonomy ORM models.

Taxonomy header, its node graph, and node synonyms. The taxonomy row also
caches the state of its most recent learning and sync jobs for dashboards;
the ai_jobs table remains the source of truth.

Dependencies: sqlalchemy, ai_orchestrator.boundary.db.base
System role: Taxonomy persistence consumed by the job adapters
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ai_orchestrator.boundary.db.base import Base, TimestampMixin, UUIDMixin


class TaxonomyModel(Base, UUIDMixin, TimestampMixin):
    """
    Taxonomy ORM model.

    Attributes:
        key: Unique taxonomy key used by the external service
        display_name: Human-readable name
        description: Optional description
        max_depth: Maximum node level
        level_names: Optional display names per level
        is_active: Inactive taxonomies cannot run jobs
        last_learning_*: Cache of the most recent learning job
        new_annotations_since_last_learning: Counter gating learning requests
        last_ai_sync_*: Cache of the most recent taxonomy sync job
    """

    __tablename__ = "taxonomies"

    key: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    max_depth: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    level_names: Mapped[dict | list | None] = mapped_column(JSON, nullable=True, default=None)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    last_learning_job_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True, default=None)
    last_learning_status: Mapped[str | None] = mapped_column(String(32), nullable=True, default=None)
    last_learning_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    last_learning_error: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    new_annotations_since_last_learning: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    last_ai_sync_job_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True, default=None)
    last_ai_sync_status: Mapped[str | None] = mapped_column(String(32), nullable=True, default=None)
    last_ai_sync_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    last_ai_sync_error: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    nodes = relationship(
        "TaxonomyNodeModel",
        back_populates="taxonomy",
        cascade="all, delete-orphan",
    )


class TaxonomyNodeModel(Base, UUIDMixin):
    """
    Taxonomy node ORM model.

    Attributes:
        taxonomy_id: Owning taxonomy
        code: Node code, unique within the taxonomy
        level: Depth (1-based)
        label: Display label
        definition: Optional definition text
        parent_code: Code of the parent node (None for roots)
        is_leaf: Leaf marker when known
    """

    __tablename__ = "taxonomy_nodes"
    __table_args__ = (
        Index("ix_taxonomy_nodes_taxonomy_level", "taxonomy_id", "level"),
    )

    taxonomy_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("taxonomies.id", ondelete="CASCADE"),
        nullable=False,
    )
    code: Mapped[int] = mapped_column(Integer, nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    label: Mapped[str] = mapped_column(String(512), nullable=False)
    definition: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    parent_code: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    is_leaf: Mapped[bool | None] = mapped_column(Boolean, nullable=True, default=None)

    taxonomy = relationship("TaxonomyModel", back_populates="nodes")


class TaxonomySynonymModel(Base, UUIDMixin):
    """
    Synonym attached to a taxonomy node.

    Attributes:
        taxonomy_id: Owning taxonomy
        node_id: Node the synonym belongs to
        synonym: Alternative wording for the node
    """

    __tablename__ = "taxonomy_synonyms"

    taxonomy_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("taxonomies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    node_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("taxonomy_nodes.id", ondelete="CASCADE"),
        nullable=False,
    )
    synonym: Mapped[str] = mapped_column(String(512), nullable=False)

"""
Sentence ORM model.

Imported text record with up to five positional columns and a mapping from
column number to display name.

Dependencies: sqlalchemy, ai_orchestrator.boundary.db.base
System role: Record lookup for labeling and learning payloads
"""

import enum

from sqlalchemy import JSON, Enum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ai_orchestrator.boundary.db.base import Base, TimestampMixin, UUIDMixin


class SentenceStatus(str, enum.Enum):
    """
    Review state of a sentence.

    PENDING: Not yet submitted by an annotator
    SUBMITTED: Annotations submitted
    """

    PENDING = "pending"
    SUBMITTED = "submitted"


class SentenceModel(Base, UUIDMixin, TimestampMixin):
    """
    Sentence ORM model.

    Attributes:
        import_id: Identifier of the import batch the row came from
        import_order: Row position inside its import
        field1..field5: Positional text columns (field1 required)
        field_mapping: {"1": "Display name", ...}
        status: Review state
    """

    __tablename__ = "sentences"
    __table_args__ = (
        Index("ix_sentences_import_order", "import_id", "import_order"),
    )

    import_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    import_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    field1: Mapped[str] = mapped_column(Text, nullable=False)
    field2: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    field3: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    field4: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    field5: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    field_mapping: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    status: Mapped[SentenceStatus] = mapped_column(
        Enum(SentenceStatus, native_enum=False),
        nullable=False,
        default=SentenceStatus.PENDING,
        index=True,
    )

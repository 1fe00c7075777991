"""
File models.

Files are stored elsewhere; this records their metadata and which channels,
tasks or messages they are attached to.
"""

import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import String, BigInteger, Enum as SAEnum, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ceo_platform.db.base_model import BaseModel, UTCDateTime, utcnow

VALID_ENTITY_TYPES = ("channel", "task", "message")
VALID_LINK_TYPES = ("attachment", "reference")


class File(BaseModel):
    __tablename__ = "files"

    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(127), nullable=False)
    size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)
    storage_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    uploaded_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    uploaded_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)


class FileEntityLink(BaseModel):
    """Polymorphic link: (entity_type, entity_id) is not a real foreign key."""
    __tablename__ = "file_entity_links"

    file_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("files.id", ondelete="CASCADE"), nullable=False, index=True
    )
    entity_type: Mapped[str] = mapped_column(
        SAEnum(*VALID_ENTITY_TYPES, name="file_entity_type_enum"), nullable=False
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    link_type: Mapped[str] = mapped_column(
        SAEnum(*VALID_LINK_TYPES, name="file_link_type_enum"),
        nullable=False,
        default="attachment",
    )
    linked_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        UniqueConstraint("file_id", "entity_type", "entity_id", name="uq_file_entity_links"),
        Index("idx_file_entity_links_entity", "entity_type", "entity_id"),
    )

"""
Message model.

Channel history; replies point at their parent to form threads.
"""

import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import Text, Enum as SAEnum, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from ceo_platform.db.base_model import BaseModel, UTCDateTime

VALID_MESSAGE_TYPES = ("text", "voice", "system")


class Message(BaseModel):
    __tablename__ = "messages"

    channel_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("channels.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    message_type: Mapped[str] = mapped_column(
        SAEnum(*VALID_MESSAGE_TYPES, name="message_type_enum"),
        nullable=False,
        default="text",
    )
    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("messages.id", ondelete="SET NULL"), nullable=True, index=True
    )
    edited_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    __table_args__ = (
        Index("idx_messages_channel_created", "channel_id", "created_at"),
    )

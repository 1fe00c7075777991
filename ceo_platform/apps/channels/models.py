"""
Channel models.

Membership is a normalized relation with a unique (channel_id, user_id)
pair, so adding a member is a single idempotent insert.
"""

import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Enum as SAEnum, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ceo_platform.db.base_model import BaseModel, UTCDateTime, utcnow

VALID_CHANNEL_TYPES = (
    "direct",
    "group",
    "broadcast",
    "announcement",
    "department",
    "project",
    "initiative",
    "temporary",
)
VALID_MEMBER_ROLES = ("owner", "admin", "member", "viewer")


class Category(BaseModel):
    """Grouping shown as a section header in the channel list."""
    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(7), nullable=True)


class Channel(BaseModel):
    __tablename__ = "channels"

    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    channel_type: Mapped[str] = mapped_column(
        SAEnum(*VALID_CHANNEL_TYPES, name="channel_type_enum"),
        nullable=False,
        default="group",
    )
    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )


class ChannelMember(BaseModel):
    __tablename__ = "channel_members"

    channel_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("channels.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(
        SAEnum(*VALID_MEMBER_ROLES, name="channel_member_role_enum"),
        nullable=False,
        default="member",
    )
    joined_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("channel_id", "user_id", name="uq_channel_members_channel_user"),
    )


class ChannelReadStatus(BaseModel):
    """Where each user stopped reading a channel."""
    __tablename__ = "channel_read_status"

    channel_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("channels.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    last_read_message_id: Mapped[Optional[uuid.UUID]] = mapped_column(nullable=True)
    last_read_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("channel_id", "user_id", name="uq_channel_read_status_channel_user"),
        Index("idx_channel_read_status_channel_user", "channel_id", "user_id"),
    )

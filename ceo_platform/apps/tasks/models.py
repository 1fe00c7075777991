"""
Task models.
"""

import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Text, Enum as SAEnum, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from ceo_platform.db.base_model import BaseModel, UTCDateTime

VALID_TASK_STATUSES = ("todo", "in_progress", "review", "done")
VALID_TASK_PRIORITIES = ("low", "medium", "high", "urgent")


class Task(BaseModel):
    __tablename__ = "tasks"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        SAEnum(*VALID_TASK_STATUSES, name="task_status_enum"),
        nullable=False,
        default="todo",
        index=True,
    )
    priority: Mapped[str] = mapped_column(
        SAEnum(*VALID_TASK_PRIORITIES, name="task_priority_enum"),
        nullable=False,
        default="medium",
    )
    channel_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("channels.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    assignee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    due_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)


class TaskComment(BaseModel):
    __tablename__ = "task_comments"

    task_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        Index("idx_task_comments_task_id", "task_id", "created_at"),
    )

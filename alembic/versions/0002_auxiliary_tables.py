"""Auxiliary tables: read status, tasks, task comments, files, file links

Revision ID: 0002_auxiliary_tables
Revises: 0001_initial_schema
Create Date: 2026-10-19

file_entity_links also covers legacy attachments (link_type = 'attachment').
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "0002_auxiliary_tables"
down_revision: Union[str, None] = "0001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TASK_STATUS = sa.Enum("todo", "in_progress", "review", "done", name="task_status_enum")
TASK_PRIORITY = sa.Enum("low", "medium", "high", "urgent", name="task_priority_enum")
ENTITY_TYPE = sa.Enum("channel", "task", "message", name="file_entity_type_enum")
LINK_TYPE = sa.Enum("attachment", "reference", name="file_link_type_enum")


def audit_columns() -> list:
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    ]


def audit_indexes(table: str) -> None:
    op.create_index(f"ix_{table}_created_at", table, ["created_at"])
    op.create_index(f"ix_{table}_deleted_at", table, ["deleted_at"])


def upgrade() -> None:
    # --- channel_read_status ---
    op.create_table(
        "channel_read_status",
        *audit_columns(),
        sa.Column("channel_id", sa.Uuid(), sa.ForeignKey("channels.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("last_read_message_id", sa.Uuid(), nullable=True),
        sa.Column("last_read_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("channel_id", "user_id", name="uq_channel_read_status_channel_user"),
    )
    audit_indexes("channel_read_status")
    op.create_index("idx_channel_read_status_channel_user", "channel_read_status", ["channel_id", "user_id"])

    # --- tasks ---
    op.create_table(
        "tasks",
        *audit_columns(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", TASK_STATUS, nullable=False, server_default="todo"),
        sa.Column("priority", TASK_PRIORITY, nullable=False, server_default="medium"),
        sa.Column("channel_id", sa.Uuid(), sa.ForeignKey("channels.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_by", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("assignee_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    audit_indexes("tasks")
    op.create_index("ix_tasks_status", "tasks", ["status"])
    op.create_index("ix_tasks_channel_id", "tasks", ["channel_id"])
    op.create_index("ix_tasks_assignee_id", "tasks", ["assignee_id"])

    # --- task_comments ---
    op.create_table(
        "task_comments",
        *audit_columns(),
        sa.Column("task_id", sa.Uuid(), sa.ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
    )
    audit_indexes("task_comments")
    op.create_index("idx_task_comments_task_id", "task_comments", ["task_id", "created_at"])

    # --- files ---
    op.create_table(
        "files",
        *audit_columns(),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("mime_type", sa.String(127), nullable=False),
        sa.Column("size_bytes", sa.BigInteger(), nullable=False),
        sa.Column("storage_url", sa.String(1000), nullable=False),
        sa.Column("uploaded_by", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    audit_indexes("files")

    # --- file_entity_links ---
    op.create_table(
        "file_entity_links",
        *audit_columns(),
        sa.Column("file_id", sa.Uuid(), sa.ForeignKey("files.id", ondelete="CASCADE"), nullable=False),
        sa.Column("entity_type", ENTITY_TYPE, nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("link_type", LINK_TYPE, nullable=False, server_default="attachment"),
        sa.Column("linked_by", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.UniqueConstraint("file_id", "entity_type", "entity_id", name="uq_file_entity_links"),
    )
    audit_indexes("file_entity_links")
    op.create_index("ix_file_entity_links_file_id", "file_entity_links", ["file_id"])
    op.create_index("idx_file_entity_links_entity", "file_entity_links", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_table("file_entity_links")
    op.drop_table("files")
    op.drop_table("task_comments")
    op.drop_table("tasks")
    op.drop_table("channel_read_status")

    bind = op.get_bind()
    for enum in (LINK_TYPE, ENTITY_TYPE, TASK_PRIORITY, TASK_STATUS):
        enum.drop(bind, checkfirst=True)

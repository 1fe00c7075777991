"""Initial schema: users, categories, channels, channel_members, messages

Revision ID: 0001_initial_schema
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

USER_ROLE = sa.Enum("ceo", "manager", "staff", name="user_role_enum")
CHANNEL_TYPE = sa.Enum(
    "direct", "group", "broadcast", "announcement", "department", "project", "initiative", "temporary",
    name="channel_type_enum",
)
MEMBER_ROLE = sa.Enum("owner", "admin", "member", "viewer", name="channel_member_role_enum")
MESSAGE_TYPE = sa.Enum("text", "voice", "system", name="message_type_enum")


def audit_columns() -> list:
    """id + timestamps + soft-delete marker shared by every table."""
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
    # --- users ---
    op.create_table(
        "users",
        *audit_columns(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(512), nullable=True),
        sa.Column("role", USER_ROLE, nullable=False, server_default="staff"),
        sa.Column("department", sa.String(100), nullable=True),
        sa.Column("job_title", sa.String(150), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=True),
        sa.Column("language_preference", sa.String(10), nullable=True),
        sa.Column("avatar_url", sa.String(1000), nullable=True),
        sa.Column("email_verified", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("failed_login_attempts", sa.Integer(), server_default="0", nullable=False),
        sa.Column("account_locked_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_active", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("login_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
    )
    audit_indexes("users")
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_department", "users", ["department"])
    # Email is unique among active accounts only.
    op.create_index(
        "uq_users_email_active",
        "users",
        [sa.text("lower(email)")],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
        sqlite_where=sa.text("deleted_at IS NULL"),
    )

    # --- categories ---
    op.create_table(
        "categories",
        *audit_columns(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("color", sa.String(7), nullable=True),
        sa.UniqueConstraint("name", name="uq_categories_name"),
    )
    audit_indexes("categories")

    # --- channels ---
    op.create_table(
        "channels",
        *audit_columns(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("channel_type", CHANNEL_TYPE, nullable=False, server_default="group"),
        sa.Column("category_id", sa.Uuid(), sa.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_by", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    )
    audit_indexes("channels")
    op.create_index("ix_channels_name", "channels", ["name"])
    op.create_index("ix_channels_category_id", "channels", ["category_id"])

    # --- channel_members (replaces the per-channel member array) ---
    op.create_table(
        "channel_members",
        *audit_columns(),
        sa.Column("channel_id", sa.Uuid(), sa.ForeignKey("channels.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", MEMBER_ROLE, nullable=False, server_default="member"),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("channel_id", "user_id", name="uq_channel_members_channel_user"),
    )
    audit_indexes("channel_members")
    op.create_index("ix_channel_members_user_id", "channel_members", ["user_id"])

    # --- messages ---
    op.create_table(
        "messages",
        *audit_columns(),
        sa.Column("channel_id", sa.Uuid(), sa.ForeignKey("channels.id", ondelete="CASCADE"), nullable=False),
        sa.Column("sender_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("message_type", MESSAGE_TYPE, nullable=False, server_default="text"),
        sa.Column("parent_id", sa.Uuid(), sa.ForeignKey("messages.id", ondelete="SET NULL"), nullable=True),
        sa.Column("edited_at", sa.DateTime(timezone=True), nullable=True),
    )
    audit_indexes("messages")
    op.create_index("ix_messages_sender_id", "messages", ["sender_id"])
    op.create_index("ix_messages_parent_id", "messages", ["parent_id"])
    op.create_index("idx_messages_channel_created", "messages", ["channel_id", "created_at"])


def downgrade() -> None:
    op.drop_table("messages")
    op.drop_table("channel_members")
    op.drop_table("channels")
    op.drop_table("categories")
    op.drop_index("uq_users_email_active", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum in (MESSAGE_TYPE, MEMBER_ROLE, CHANNEL_TYPE, USER_ROLE):
        enum.drop(bind, checkfirst=True)

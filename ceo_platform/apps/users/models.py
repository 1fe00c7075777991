"""
User ORM model.

Accounts with role-based permissions, lockout counters and an
optimistic-concurrency version column.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, Boolean, Integer, Index, Enum as SAEnum, func
from sqlalchemy.orm import Mapped, mapped_column

from ceo_platform.db.base_model import BaseModel, UTCDateTime

VALID_ROLES = ("ceo", "manager", "staff")

ROLE_PERMISSIONS: dict[str, list[str]] = {
    "ceo": ["*"],
    "manager": [
        "users:read",
        "channels:read",
        "channels:create",
        "channels:update",
        "channels:manage_members",
        "messages:write",
        "tasks:read",
        "tasks:create",
        "tasks:update",
        "tasks:assign",
        "files:write",
    ],
    "staff": [
        "users:read",
        "channels:read",
        "messages:write",
        "tasks:read",
        "tasks:update",
        "files:write",
    ],
}


class User(BaseModel):
    """
    User account.

    Email is unique among active rows only, so a soft-deleted account
    does not block a new one with the same address.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    role: Mapped[str] = mapped_column(
        SAEnum(*VALID_ROLES, name="user_role_enum"),
        nullable=False,
        default="staff",
        index=True,
    )

    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    job_title: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    timezone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    language_preference: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    failed_login_attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    account_locked_until: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    last_active: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    last_login: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    login_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def permissions(self) -> list[str]:
        return ROLE_PERMISSIONS.get(self.role, [])

    def has_permission(self, permission: str) -> bool:
        granted = self.permissions
        return "*" in granted or permission in granted


Index(
    "uq_users_email_active",
    func.lower(User.email),
    unique=True,
    postgresql_where=User.deleted_at.is_(None),
    sqlite_where=User.deleted_at.is_(None),
)

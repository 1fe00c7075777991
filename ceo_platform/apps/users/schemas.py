"""
User Pydantic schemas.

Input validation and output serialization for user routes.
"""

from datetime import datetime
from typing import List, Optional
import uuid
from pydantic import BaseModel, EmailStr, Field, field_validator

from ceo_platform.apps.users.models import VALID_ROLES


# ── Request Schemas ───────────────────────────────────────────────────────────

class UserCreate(BaseModel):
    """Create an account (admin command / seed only; no self-registration)."""
    email: EmailStr
    name: str = Field(..., min_length=2, max_length=255)
    password: Optional[str] = Field(default=None, min_length=8, max_length=128)
    role: str = Field(default="staff")
    department: Optional[str] = Field(default=None, max_length=100)
    job_title: Optional[str] = Field(default=None, max_length=150)
    email_verified: bool = False

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        if v not in VALID_ROLES:
            raise ValueError(f"Role must be one of: {', '.join(VALID_ROLES)}")
        return v


class ProfileUpdate(BaseModel):
    """Self-service profile changes. Unset fields are left alone."""
    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    department: Optional[str] = Field(default=None, max_length=100)
    job_title: Optional[str] = Field(default=None, max_length=150)
    phone: Optional[str] = Field(default=None, max_length=32)
    timezone: Optional[str] = Field(default=None, max_length=64)
    language_preference: Optional[str] = Field(default=None, min_length=2, max_length=10)
    avatar_url: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Name cannot be cleared")
        return v


# ── Response Schemas ──────────────────────────────────────────────────────────

class UserResponse(BaseModel):
    """Public user data (no credentials or lockout counters)."""
    id: uuid.UUID
    email: str
    name: str
    role: str
    permissions: List[str]
    department: Optional[str] = None
    job_title: Optional[str] = None
    phone: Optional[str] = None
    timezone: Optional[str] = None
    language_preference: Optional[str] = None
    avatar_url: Optional[str] = None
    email_verified: bool
    last_active: Optional[datetime] = None
    last_login: Optional[datetime] = None
    login_count: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AdminUserResponse(UserResponse):
    """Extended view for administrators: delete and restore routes, admin CLI."""
    failed_login_attempts: int
    account_locked_until: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    version: int

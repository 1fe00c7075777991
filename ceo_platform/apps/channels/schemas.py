"""
Channel Pydantic schemas.
"""

from datetime import datetime
from typing import Optional
import uuid
from pydantic import BaseModel, Field, field_validator

from ceo_platform.apps.channels.models import VALID_CHANNEL_TYPES, VALID_MEMBER_ROLES


def _check_choice(value: str, choices: tuple, label: str) -> str:
    if value not in choices:
        raise ValueError(f"{label} must be one of: {', '.join(choices)}")
    return value


# ── Request Schemas ───────────────────────────────────────────────────────────

class ChannelCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    channel_type: str = Field(default="group")
    category_id: Optional[uuid.UUID] = None

    @field_validator("channel_type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        return _check_choice(v, VALID_CHANNEL_TYPES, "Channel type")


class MemberAdd(BaseModel):
    user_id: uuid.UUID
    role: str = Field(default="member")

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        return _check_choice(v, VALID_MEMBER_ROLES, "Member role")


class MarkReadRequest(BaseModel):
    message_id: Optional[uuid.UUID] = None


# ── Response Schemas ──────────────────────────────────────────────────────────

class ChannelResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    channel_type: str
    category_id: Optional[uuid.UUID] = None
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MemberResponse(BaseModel):
    user_id: uuid.UUID
    name: str
    email: str
    user_role: str
    role: str
    joined_at: datetime


class ReadStatusResponse(BaseModel):
    channel_id: uuid.UUID
    last_read_message_id: Optional[uuid.UUID] = None
    last_read_at: datetime
    unread_count: int

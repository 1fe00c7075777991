"""
Message Pydantic schemas.
"""

from datetime import datetime
from typing import Optional
import uuid
from pydantic import BaseModel, Field, field_validator

from ceo_platform.apps.messages.models import VALID_MESSAGE_TYPES


class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10_000)
    message_type: str = Field(default="text")
    parent_id: Optional[uuid.UUID] = None

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message content cannot be blank")
        return v

    @field_validator("message_type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        # "system" messages are generated server-side only.
        allowed = [t for t in VALID_MESSAGE_TYPES if t != "system"]
        if v not in allowed:
            raise ValueError(f"Message type must be one of: {', '.join(allowed)}")
        return v


class MessageResponse(BaseModel):
    id: uuid.UUID
    channel_id: uuid.UUID
    sender_id: Optional[uuid.UUID] = None
    content: str
    message_type: str
    parent_id: Optional[uuid.UUID] = None
    edited_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}

"""
File Pydantic schemas.
"""

from datetime import datetime
from typing import Optional
import uuid
from pydantic import BaseModel, Field, field_validator

from ceo_platform.apps.files.models import VALID_ENTITY_TYPES, VALID_LINK_TYPES


class FileCreate(BaseModel):
    """Metadata for a file already placed in storage."""
    filename: str = Field(..., min_length=1, max_length=255)
    mime_type: str = Field(..., min_length=3, max_length=127)
    size_bytes: int = Field(..., ge=0)
    storage_url: str = Field(..., min_length=1, max_length=1000)


class FileLinkCreate(BaseModel):
    entity_type: str
    entity_id: uuid.UUID
    link_type: str = Field(default="attachment")

    @field_validator("entity_type")
    @classmethod
    def validate_entity_type(cls, v: str) -> str:
        if v not in VALID_ENTITY_TYPES:
            raise ValueError(f"Entity type must be one of: {', '.join(VALID_ENTITY_TYPES)}")
        return v

    @field_validator("link_type")
    @classmethod
    def validate_link_type(cls, v: str) -> str:
        if v not in VALID_LINK_TYPES:
            raise ValueError(f"Link type must be one of: {', '.join(VALID_LINK_TYPES)}")
        return v


class FileResponse(BaseModel):
    id: uuid.UUID
    filename: str
    mime_type: str
    size_bytes: int
    storage_url: str
    uploaded_by: Optional[uuid.UUID] = None
    uploaded_at: datetime

    model_config = {"from_attributes": True}


class LinkedFileResponse(FileResponse):
    entity_type: str
    link_type: str


class FileLinkResponse(BaseModel):
    id: uuid.UUID
    file_id: uuid.UUID
    entity_type: str
    entity_id: uuid.UUID
    link_type: str
    created_at: datetime

    model_config = {"from_attributes": True}

"""Document and folder I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DocumentRead(BaseModel):
    """Schema for reading a document from the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    meeting_id: Optional[str] = None
    folder_slug: str
    file_name: str
    original_name: str
    url: str
    content_type: str
    size_bytes: int
    version: int
    description: Optional[str] = None
    uploaded_by_user_id: Optional[str] = None
    uploaded_at: datetime
    role_ids: List[str] = Field(default_factory=list, description="Roles allowed to see the document")


class DocumentUpdate(BaseModel):
    """Partial update. ``role_ids`` None keeps access; an empty list clears it."""

    original_name: Optional[str] = Field(default=None, max_length=260)
    description: Optional[str] = None
    folder_slug: Optional[str] = None
    role_ids: Optional[List[str]] = None


class FolderCreate(BaseModel):
    name: str = Field(max_length=100)


class FolderRead(BaseModel):
    id: Optional[str] = None
    name: str
    slug: str
    document_count: int = 0
    created_at: Optional[datetime] = None

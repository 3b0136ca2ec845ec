"""
Document storage entity models.

Documents live in a folder (by slug, ``"root"`` when unfiled) and may be attached to a
meeting. Visibility is controlled by ``DocumentRoleAccess`` rows: a document with no
rows is visible to everyone, otherwise only to members of the listed roles.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Text
from sqlmodel import Field

from ..base import Base, created_at_field, id_field, utc_now

ROOT_FOLDER_SLUG = "root"


class Folder(Base, table=True):
    """Named document folder.

    Table: folders
    """

    __tablename__ = "folders"

    id: str = id_field()
    name: str = Field(max_length=60)
    slug: str = Field(max_length=80, unique=True, index=True)
    created_at: datetime = created_at_field()


class Document(Base, table=True):
    """Uploaded document.

    Table: documents
    """

    __tablename__ = "documents"

    id: str = id_field()
    meeting_id: Optional[str] = Field(default=None, foreign_key="meetings.id", index=True, max_length=36)
    folder_slug: str = Field(default=ROOT_FOLDER_SLUG, max_length=80, index=True)
    file_name: str = Field(max_length=260)
    original_name: str = Field(max_length=260)
    url: str = Field(max_length=1024)
    content_type: str = Field(default="application/octet-stream", max_length=200)
    size_bytes: int = Field(default=0, sa_type=BigInteger)
    version: int = Field(default=1)
    description: Optional[str] = Field(default=None, sa_type=Text)
    uploaded_by_user_id: Optional[str] = Field(default=None, max_length=36)
    uploaded_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True), index=True)


class DocumentRoleAccess(Base, table=True):
    """Grants a role visibility of a document.

    Table: document_role_access
    """

    __tablename__ = "document_role_access"

    document_id: str = Field(foreign_key="documents.id", primary_key=True, max_length=36)
    role_id: str = Field(foreign_key="roles.id", primary_key=True, max_length=36, index=True)

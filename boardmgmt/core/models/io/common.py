"""
Shared I/O models.

Error envelope, paging wrapper and small reference types reused by several
resource modules.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

ItemType = TypeVar("ItemType")


class ErrorBody(BaseModel):
    """Machine-readable error information."""

    code: str = Field(description="Stable error code, e.g. 'validation_error'")
    message: str = Field(description="Human-readable error message")
    details: Optional[Any] = Field(default=None, description="Additional context, e.g. field errors")


class ErrorResponse(BaseModel):
    """Envelope returned for every failed request."""

    success: bool = False
    error: ErrorBody
    trace_id: str = Field(description="Request id for correlating logs")
    timestamp: datetime


class Page(BaseModel, Generic[ItemType]):
    """One page of a listing."""

    items: List[ItemType]
    total: int = Field(description="Total matching items across all pages")
    page: int
    page_size: int


class IdResponse(BaseModel):
    id: str


class CountResponse(BaseModel):
    count: int


class MinimalUser(BaseModel):
    """User reference embedded in other resources."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: Optional[str] = None


class HealthStatus(BaseModel):
    status: str = Field(description="'ok' when the check passed, 'unavailable' otherwise")
    database: Optional[str] = Field(default=None, description="Database reachability, readiness check only")


class VersionInfo(BaseModel):
    name: str
    version: str
    api: str = Field(description="Mounted API version prefix")

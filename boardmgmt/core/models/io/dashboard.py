"""Dashboard I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from boardmgmt.core.models.domain.enums import MeetingStatus


class DashboardStats(BaseModel):
    """Headline counters for the signed-in user."""

    upcoming_meetings: int = 0
    active_documents: int = 0
    pending_votes: int = Field(default=0, description="Open polls the user may vote in and has not voted")
    unread_messages: int = 0


class RecentMeeting(BaseModel):
    id: str
    title: str
    scheduled_at: datetime
    location: str
    status: MeetingStatus
    attendee_count: int = 0


class RecentDocument(BaseModel):
    id: str
    original_name: str
    folder_slug: str
    content_type: str
    size_bytes: int
    url: str
    uploaded_at: datetime


class ActivityItem(BaseModel):
    """One entry of the merged activity timeline."""

    type: str = Field(description="document | meeting | vote | message")
    id: str
    title: str
    description: Optional[str] = None
    occurred_at: datetime


class StatsDetailItem(BaseModel):
    """One row behind a dashboard counter.

    ``at`` is the meeting start, document upload time, poll deadline or message
    send time depending on the counter.
    """

    id: str
    title: str
    subtitle: Optional[str] = Field(default=None, description="Location, folder or sender name")
    at: datetime
    status: Optional[str] = None

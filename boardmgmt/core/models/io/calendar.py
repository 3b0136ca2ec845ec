"""Calendar I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class CalendarEvent(BaseModel):
    """Event shown on the calendar, either a local meeting or an external provider event."""

    id: str
    title: str
    start: datetime
    end: Optional[datetime] = None
    location: Optional[str] = None
    join_url: Optional[str] = None
    meeting_id: Optional[str] = None
    source: str = Field(default="local", description="local, Microsoft365 or Zoom")


class CalendarAttendeeWrite(BaseModel):
    email: str
    name: Optional[str] = None
    is_required: bool = True


class CalendarEventCreate(BaseModel):
    """
    Schema for booking a meeting straight from the calendar.

    The meeting is stored locally and mirrored to ``provider``. Attendees whose
    email matches a user account are linked to it.
    """

    title: str = Field(max_length=200)
    description: Optional[str] = None
    starts_at: datetime
    ends_at: Optional[datetime] = None
    location: Optional[str] = Field(default=None, max_length=500)
    provider: str = Field(default="Microsoft365", description="Microsoft365 or Zoom")
    mailbox: Optional[str] = Field(default=None, description="Organizer mailbox for Microsoft365")
    attendees: List[CalendarAttendeeWrite] = Field(default_factory=list)


class CalendarEventMove(BaseModel):
    """New time slot for a meeting dragged on the calendar."""

    starts_at: datetime
    ends_at: Optional[datetime] = None

"""
Meeting I/O models.

Schemas for meetings, attendees, agenda items and transcripts.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from boardmgmt.core.models.domain.enums import MeetingStatus, MeetingType


class AttendeeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: Optional[str] = None
    name: str
    role: Optional[str] = None
    email: Optional[str] = None
    is_required: bool
    is_confirmed: bool
    row_version: int = Field(description="Send back unchanged when updating the attendee")


class AttendeeUpdate(BaseModel):
    """Attendee update guarded by the row version the client last read."""

    row_version: int
    is_confirmed: Optional[bool] = None
    is_required: Optional[bool] = None
    role: Optional[str] = Field(default=None, max_length=100)


class AgendaItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    meeting_id: str
    title: str
    description: Optional[str] = None
    order: int


class AgendaItemCreate(BaseModel):
    title: str = Field(max_length=200)
    description: Optional[str] = None
    order: Optional[int] = Field(default=None, description="Appended after the last item when omitted")


class MeetingWrite(BaseModel):
    """
    Schema for creating or replacing a meeting.

    Attendees come from ``attendee_user_ids`` (linked user accounts) or, when that list
    is empty, from free-text ``attendees`` entries of the form ``"Name (Role)"``.
    """

    title: str = Field(max_length=200, examples=["Q3 Board Meeting"])
    description: Optional[str] = None
    type: Optional[MeetingType] = None
    scheduled_at: datetime
    end_at: Optional[datetime] = None
    location: Optional[str] = Field(default=None, max_length=500)
    status: Optional[MeetingStatus] = None
    external_calendar: Optional[str] = Field(default=None, description="Microsoft365 or Zoom")
    external_calendar_mailbox: Optional[str] = None
    attendee_user_ids: List[str] = Field(default_factory=list)
    attendees: List[str] = Field(default_factory=list)


class MeetingRead(BaseModel):
    """Schema for reading a meeting with its attendees and agenda."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: Optional[str] = None
    type: Optional[MeetingType] = None
    scheduled_at: datetime
    end_at: Optional[datetime] = None
    location: str
    status: MeetingStatus
    external_calendar: Optional[str] = None
    external_calendar_mailbox: Optional[str] = None
    external_event_id: Optional[str] = None
    online_join_url: Optional[str] = None
    created_at: datetime
    attendee_count: int = 0
    attendees: List[AttendeeRead] = Field(default_factory=list)
    agenda_items: List[AgendaItemRead] = Field(default_factory=list)


class MeetingSelectItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    scheduled_at: datetime


class TranscriptIngest(BaseModel):
    """WebVTT transcript to attach to a meeting."""

    provider: str = Field(description="Microsoft365 or Zoom")
    provider_transcript_id: str = Field(max_length=256)
    vtt: str = Field(description="Raw WebVTT text")


class UtteranceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start_seconds: float
    end_seconds: float
    text: str
    speaker_name: Optional[str] = None
    speaker_email: Optional[str] = None
    user_id: Optional[str] = None


class TranscriptRead(BaseModel):
    id: str
    meeting_id: str
    provider: str
    provider_transcript_id: str
    created_at: datetime
    utterances: List[UtteranceRead] = Field(default_factory=list)

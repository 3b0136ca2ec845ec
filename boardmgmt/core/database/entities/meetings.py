"""
Meeting entity models.

This module contains meetings, their attendees and agenda items. Attendees carry a
``row_version`` counter used for optimistic concurrency when they are updated
individually (confirmation, required flag, role).
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, Text
from sqlmodel import Field

from boardmgmt.core.models.domain.enums import MeetingStatus, MeetingType

from ..base import Base, created_at_field, datetime_field, id_field


class Meeting(Base, table=True):
    """Scheduled board or committee meeting.

    Table: meetings
    """

    __tablename__ = "meetings"
    __table_args__ = (Index("ix_meetings_scheduled_at_status", "scheduled_at", "status"),)

    id: str = id_field()
    title: str = Field(max_length=200)
    description: Optional[str] = Field(default=None, sa_type=Text)
    type: Optional[MeetingType] = Field(default=None, sa_type=Integer)
    scheduled_at: datetime = Field(sa_type=DateTime(timezone=True))
    end_at: Optional[datetime] = datetime_field()
    location: str = Field(default="TBD", max_length=500)
    status: MeetingStatus = Field(default=MeetingStatus.scheduled, sa_type=Integer)

    # External calendar linkage
    external_calendar: Optional[str] = Field(default=None, max_length=64)
    external_calendar_mailbox: Optional[str] = Field(default=None, max_length=320)
    external_event_id: Optional[str] = Field(default=None, max_length=512, index=True)
    online_join_url: Optional[str] = Field(default=None, max_length=2048)
    host_identity: Optional[str] = Field(default=None, max_length=320)

    created_at: datetime = created_at_field()
    updated_at: Optional[datetime] = datetime_field()

    def __repr__(self) -> str:
        return f"Meeting(id={self.id}, title={self.title}, scheduled_at={self.scheduled_at})"


class MeetingAttendee(Base, table=True):
    """Invitee of a meeting, optionally linked to a user account.

    Table: meeting_attendees
    """

    __tablename__ = "meeting_attendees"
    __table_args__ = (Index("ix_meeting_attendees_meeting_user", "meeting_id", "user_id"),)

    id: str = id_field()
    meeting_id: str = Field(foreign_key="meetings.id", index=True, max_length=36)
    user_id: Optional[str] = Field(default=None, foreign_key="users.id", index=True, max_length=36)
    name: str = Field(max_length=200)
    role: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None, max_length=320)
    is_required: bool = Field(default=True)
    is_confirmed: bool = Field(default=False)
    row_version: int = Field(default=1, description="Optimistic concurrency token")


class AgendaItem(Base, table=True):
    """Ordered agenda entry of a meeting.

    Table: agenda_items
    """

    __tablename__ = "agenda_items"
    __table_args__ = (Index("ix_agenda_items_meeting_order", "meeting_id", "order"),)

    id: str = id_field()
    meeting_id: str = Field(foreign_key="meetings.id", max_length=36)
    title: str = Field(max_length=200)
    description: Optional[str] = Field(default=None, sa_type=Text)
    order: int = Field(default=0)

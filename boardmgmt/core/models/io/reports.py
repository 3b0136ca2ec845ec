"""Report I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ReportGenerateRequest(BaseModel):
    """Schema for generating a report."""

    type: str = Field(default="attendance", description="attendance | voting | documents | performance | custom")
    period: str = Field(default="last-month", description="last-month | last-quarter | last-year | custom")
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    format: str = Field(default="html", description="Only html files are rendered")


class ReportRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    type: str
    generated_at: datetime
    generated_by_user_id: Optional[str] = None
    file_url: Optional[str] = None
    format: Optional[str] = None
    period_label: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class MonthlyAttendance(BaseModel):
    month: str = Field(description="YYYY-MM")
    meetings: int = 0
    confirmed_attendees: int = 0


class MonthlyVoting(BaseModel):
    month: str
    polls: int = 0
    ballots: int = 0
    participation_rate: float = Field(default=0.0, description="Percentage, one decimal")


class MonthlyDocuments(BaseModel):
    month: str
    count: int = 0
    bytes: int = 0


class PerformanceMetrics(BaseModel):
    meetings_scheduled: int = 0
    meetings_completed: int = 0
    average_agenda_items: float = 0.0
    average_documents_per_meeting: float = 0.0
    average_attendees: float = 0.0
    polls_per_meeting: float = 0.0


class ReportsDashboard(BaseModel):
    """Month-bucketed metrics for the reports page."""

    months: List[str]
    attendance: List[MonthlyAttendance]
    voting: List[MonthlyVoting]
    documents: List[MonthlyDocuments]
    performance: PerformanceMetrics
    recent_reports: List[ReportRead]

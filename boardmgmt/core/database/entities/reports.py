"""Generated report entity model."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, created_at_field, datetime_field, id_field


class GeneratedReport(Base, table=True):
    """Record of a report file produced by the report generator.

    Table: generated_reports
    """

    __tablename__ = "generated_reports"

    id: str = id_field()
    name: str = Field(max_length=200)
    type: str = Field(max_length=100, description="attendance | voting | documents | performance | custom")
    generated_at: datetime = created_at_field(index=True)
    generated_by_user_id: Optional[str] = Field(default=None, foreign_key="users.id", max_length=36)
    file_url: Optional[str] = Field(default=None, max_length=1024)
    format: Optional[str] = Field(default=None, max_length=100, description="pdf | excel | powerpoint | html")
    period_label: Optional[str] = Field(default=None, max_length=120)
    start_date: Optional[datetime] = datetime_field()
    end_date: Optional[datetime] = datetime_field()

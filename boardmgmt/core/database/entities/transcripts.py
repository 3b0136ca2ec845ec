"""Meeting transcript entity models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, created_at_field, id_field


class Transcript(Base, table=True):
    """Transcript imported for a meeting from a calendar provider.

    Table: transcripts
    """

    __tablename__ = "transcripts"

    id: str = id_field()
    meeting_id: str = Field(foreign_key="meetings.id", index=True, max_length=36)
    provider: str = Field(max_length=64, description="Microsoft365 or Zoom")
    provider_transcript_id: str = Field(max_length=256, description="Teams transcript id or Zoom file id")
    created_at: datetime = created_at_field()


class TranscriptUtterance(Base, table=True):
    """One spoken segment of a transcript.

    Table: transcript_utterances
    """

    __tablename__ = "transcript_utterances"

    id: str = id_field()
    transcript_id: str = Field(foreign_key="transcripts.id", index=True, max_length=36)
    start_seconds: float = Field(default=0.0)
    end_seconds: float = Field(default=0.0)
    text: str = Field(max_length=4000)
    speaker_name: Optional[str] = Field(default=None, max_length=256)
    speaker_email: Optional[str] = Field(default=None, max_length=320)
    user_id: Optional[str] = Field(default=None, max_length=36)

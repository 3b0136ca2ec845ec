"""Transcript repository."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..entities.transcripts import Transcript, TranscriptUtterance
from .base import SQLModelRepository


class TranscriptRepository(SQLModelRepository[Transcript]):
    """Repository for meeting transcripts and their utterances."""

    order_by = (Transcript.created_at,)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Transcript)

    async def for_meeting(self, meeting_id: str) -> List[Transcript]:
        stmt = select(Transcript).where(Transcript.meeting_id == meeting_id).order_by(Transcript.created_at)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def utterances_for(self, transcript_ids: Sequence[str]) -> Dict[str, List[TranscriptUtterance]]:
        if not transcript_ids:
            return {}
        stmt = (
            select(TranscriptUtterance)
            .where(TranscriptUtterance.transcript_id.in_(list(transcript_ids)))
            .order_by(TranscriptUtterance.start_seconds)
        )
        result = await self.session.execute(stmt)
        grouped: Dict[str, List[TranscriptUtterance]] = {}
        for utterance in result.scalars().all():
            grouped.setdefault(utterance.transcript_id, []).append(utterance)
        return grouped

    async def delete_for_meeting(self, meeting_id: str) -> None:
        ids = select(Transcript.id).where(Transcript.meeting_id == meeting_id)
        await self.session.execute(delete(TranscriptUtterance).where(TranscriptUtterance.transcript_id.in_(ids)))
        await self.session.execute(delete(Transcript).where(Transcript.meeting_id == meeting_id))

    async def find(self, meeting_id: str, provider: str, provider_transcript_id: str) -> Optional[Transcript]:
        stmt = select(Transcript).where(
            Transcript.meeting_id == meeting_id,
            Transcript.provider == provider,
            Transcript.provider_transcript_id == provider_transcript_id,
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def delete_utterances(self, transcript_id: str) -> None:
        await self.session.execute(delete(TranscriptUtterance).where(TranscriptUtterance.transcript_id == transcript_id))

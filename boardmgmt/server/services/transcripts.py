"""
Meeting transcripts.

WebVTT transcripts are parsed into utterances. Speakers are linked to users by
email first and otherwise by matching the attendee name. Ingesting the same
provider transcript again replaces its utterances.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.database.entities.transcripts import Transcript, TranscriptUtterance
from boardmgmt.core.database.repositories import MeetingRepository, TranscriptRepository, UserRepository
from boardmgmt.core.exceptions import NotFoundError, ValidationFailedError
from boardmgmt.core.logging_config import get_logger
from boardmgmt.core.models.domain.calendars import CalendarProviders
from boardmgmt.core.models.domain.transcripts import parse_vtt
from boardmgmt.core.models.io.meetings import TranscriptRead, UtteranceRead

logger = get_logger(__name__)

MAX_UTTERANCE_LENGTH = 4000


class TranscriptService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.meetings = MeetingRepository(session)
        self.transcripts = TranscriptRepository(session)
        self.users = UserRepository(session)

    async def ingest_vtt(self, meeting_id: str, provider: str, provider_transcript_id: str, vtt_text: str) -> TranscriptRead:
        """Store a WebVTT transcript for a meeting and return it with its utterances."""
        meeting = await self.meetings.get_by_id(meeting_id)
        if meeting is None:
            raise NotFoundError("Meeting not found.")
        if not CalendarProviders.is_supported(provider):
            raise ValidationFailedError.for_field("provider", f"Unsupported provider: '{provider}'.")
        if not (provider_transcript_id or "").strip():
            raise ValidationFailedError.for_field("provider_transcript_id", "Transcript id is required.")

        cues = parse_vtt(vtt_text or "")
        attendees = await self.meetings.attendees(meeting_id)
        by_name: Dict[str, Optional[str]] = {a.name.strip().lower(): a.user_id for a in attendees if a.name}
        email_to_user: Dict[str, str] = {}
        for cue in cues:
            if cue.speaker_email and cue.speaker_email.lower() not in email_to_user:
                user = await self.users.get_by_email(cue.speaker_email)
                if user is not None:
                    email_to_user[cue.speaker_email.lower()] = user.id

        transcript = await self.transcripts.find(meeting_id, provider, provider_transcript_id)
        if transcript is None:
            transcript = await self.transcripts.create(
                Transcript(meeting_id=meeting_id, provider=provider, provider_transcript_id=provider_transcript_id)
            )
        else:
            await self.transcripts.delete_utterances(transcript.id)

        utterances: List[TranscriptUtterance] = []
        for cue in cues:
            user_id = None
            if cue.speaker_email:
                user_id = email_to_user.get(cue.speaker_email.lower())
            if user_id is None and cue.speaker_name:
                user_id = by_name.get(cue.speaker_name.strip().lower())
            utterances.append(
                TranscriptUtterance(
                    transcript_id=transcript.id,
                    start_seconds=cue.start,
                    end_seconds=cue.end,
                    text=cue.text[:MAX_UTTERANCE_LENGTH],
                    speaker_name=cue.speaker_name,
                    speaker_email=cue.speaker_email,
                    user_id=user_id,
                )
            )
        await self.transcripts.add_all(utterances)
        await self.session.commit()
        logger.info(f"Stored {len(utterances)} utterance(s) for meeting {meeting_id} from {provider}")
        return self._to_read(transcript, utterances)

    async def list_transcripts(self, meeting_id: str) -> List[TranscriptRead]:
        if await self.meetings.get_by_id(meeting_id) is None:
            raise NotFoundError("Meeting not found.")
        transcripts = await self.transcripts.for_meeting(meeting_id)
        utterances = await self.transcripts.utterances_for([t.id for t in transcripts])
        return [self._to_read(t, utterances.get(t.id, [])) for t in transcripts]

    @staticmethod
    def _to_read(transcript: Transcript, utterances: List[TranscriptUtterance]) -> TranscriptRead:
        return TranscriptRead(
            id=transcript.id,
            meeting_id=transcript.meeting_id,
            provider=transcript.provider,
            provider_transcript_id=transcript.provider_transcript_id,
            created_at=transcript.created_at,
            utterances=[UtteranceRead.model_validate(u) for u in utterances],
        )

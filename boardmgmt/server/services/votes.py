"""
Voting use cases.

Polls are yes/no, approve/reject or multiple choice. Each user holds at most one
ballot per poll; voting again replaces it until the deadline passes.
"""

from __future__ import annotations

from collections import Counter
from typing import Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.database.base import as_utc, utc_now
from boardmgmt.core.database.entities.votes import DEFAULT_VOTING_WINDOW, VoteBallot, VoteOption, VotePoll
from boardmgmt.core.database.repositories import MeetingRepository, UserRepository, VoteRepository
from boardmgmt.core.exceptions import (
    InvalidOperationError,
    NotFoundError,
    UnauthorizedError,
    ValidationFailedError,
)
from boardmgmt.core.logging_config import get_logger
from boardmgmt.core.models.domain.enums import VoteChoice, VoteEligibility, VoteType
from boardmgmt.core.models.io.votes import (
    BallotSubmit,
    IndividualVote,
    VoteCreate,
    VoteDetail,
    VoteOptionRead,
    VoteOptionResult,
    VoteResults,
    VoteSummary,
)

logger = get_logger(__name__)

RECENT_POLLS_LIMIT = 50


def tally(poll: VotePoll, options: Sequence[VoteOption], ballots: Sequence[VoteBallot]) -> VoteResults:
    """Count ballots; choice totals stay zero for multiple-choice polls."""
    results = VoteResults(total=len(ballots))
    if VoteType(poll.type) == VoteType.multiple_choice:
        per_option = Counter(b.option_id for b in ballots if b.option_id)
        results.options = [
            VoteOptionResult(id=o.id, text=o.text, order=o.order, count=per_option.get(o.id, 0)) for o in options
        ]
        return results
    per_choice = Counter(VoteChoice(b.choice) for b in ballots if b.choice is not None)
    results.yes = per_choice.get(VoteChoice.yes, 0)
    results.no = per_choice.get(VoteChoice.no, 0)
    results.abstain = per_choice.get(VoteChoice.abstain, 0)
    return results


class VoteService:
    """Create polls, collect ballots and report results."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.votes = VoteRepository(session)
        self.meetings = MeetingRepository(session)
        self.users = UserRepository(session)

    async def create(self, user_id: str, payload: VoteCreate) -> VoteDetail:
        title = (payload.title or "").strip()
        if not title:
            raise ValidationFailedError.for_field("title", "Title is required.")
        if payload.eligibility == VoteEligibility.meeting_attendees and not payload.meeting_id:
            raise ValidationFailedError.for_field("meeting_id", "Meeting is required when attendees vote.")
        if payload.meeting_id and await self.meetings.get_by_id(payload.meeting_id) is None:
            raise NotFoundError("Meeting not found.")
        if payload.agenda_item_id:
            if not payload.meeting_id or await self.meetings.get_agenda_item(
                payload.meeting_id, payload.agenda_item_id
            ) is None:
                raise NotFoundError("Agenda item not found.")

        option_texts: List[str] = []
        if payload.type == VoteType.multiple_choice:
            seen = set()
            for text in payload.options:
                clean = (text or "").strip()
                if clean and clean.lower() not in seen:
                    seen.add(clean.lower())
                    option_texts.append(clean)
            if len(option_texts) < 2:
                raise ValidationFailedError.for_field("options", "At least two distinct options are required.")

        poll = await self.votes.create(
            VotePoll(
                title=title,
                description=payload.description,
                type=payload.type,
                allow_abstain=payload.allow_abstain,
                anonymous=payload.anonymous,
                deadline=payload.deadline or utc_now() + DEFAULT_VOTING_WINDOW,
                eligibility=payload.eligibility,
                meeting_id=payload.meeting_id,
                agenda_item_id=payload.agenda_item_id,
                created_by_user_id=user_id,
            )
        )
        if option_texts:
            await self.votes.add_all([VoteOption(vote_id=poll.id, text=t, order=i) for i, t in enumerate(option_texts)])
        if payload.eligibility == VoteEligibility.specific_users:
            listed = [uid for uid in payload.specific_user_ids if uid]
            await self.votes.add_eligible_users(poll.id, [*listed, user_id])

        await self.session.commit()
        logger.info(f"Poll {poll.id} created by {user_id} ({VoteType(poll.type).name})")
        return await self.detail(poll.id, user_id)

    async def is_eligible(self, poll: VotePoll, user_id: Optional[str]) -> bool:
        if not user_id:
            return False
        eligibility = VoteEligibility(poll.eligibility)
        if eligibility == VoteEligibility.public:
            return True
        if eligibility == VoteEligibility.specific_users:
            return await self.votes.is_listed(poll.id, user_id)
        if poll.meeting_id:
            return await self.meetings.is_attendee(poll.meeting_id, user_id)
        return False

    async def submit_ballot(self, vote_id: str, user_id: str, payload: BallotSubmit) -> VoteSummary:
        poll = await self.votes.get_by_id(vote_id)
        if poll is None:
            raise NotFoundError("Vote not found.")
        if not poll.is_open(utc_now()):
            raise InvalidOperationError("Voting closed")
        if not await self.is_eligible(poll, user_id):
            raise UnauthorizedError("You are not eligible to vote on this poll.")

        choice: Optional[VoteChoice] = None
        option_id: Optional[str] = None
        if VoteType(poll.type) == VoteType.multiple_choice:
            if not payload.option_id or await self.votes.get_option(poll.id, payload.option_id) is None:
                raise ValidationFailedError.for_field("option_id", "Select one of the poll's options.")
            option_id = payload.option_id
        else:
            if payload.choice is None:
                raise ValidationFailedError.for_field("choice", "A choice is required.")
            if payload.choice == VoteChoice.abstain and not poll.allow_abstain:
                raise ValidationFailedError.for_field("choice", "Abstaining is not allowed on this poll.")
            choice = payload.choice

        ballot = await self.votes.get_ballot(poll.id, user_id)
        if ballot is None:
            ballot = VoteBallot(vote_id=poll.id, user_id=user_id)
        ballot.choice = choice
        ballot.option_id = option_id
        ballot.voted_at = utc_now()
        self.session.add(ballot)
        await self.session.commit()
        logger.debug(f"Ballot recorded on poll {poll.id} by {user_id}")
        return (await self._summaries([poll], user_id))[0]

    async def _visible(self, user_id: Optional[str], **window) -> List[VotePoll]:
        attended = await self.meetings.meeting_ids_attended_by(user_id) if user_id else []
        return await self.votes.visible_polls(user_id, attended, **window)

    async def active(self, user_id: Optional[str]) -> List[VoteSummary]:
        polls = await self._visible(user_id, open_at=utc_now())
        return await self._summaries(polls, user_id)

    async def recent(self, user_id: Optional[str]) -> List[VoteSummary]:
        polls = await self._visible(user_id, closed_before=utc_now(), limit=RECENT_POLLS_LIMIT)
        return await self._summaries(polls, user_id)

    async def _summaries(self, polls: Sequence[VotePoll], user_id: Optional[str]) -> List[VoteSummary]:
        ballots = await self.votes.ballots_for([p.id for p in polls])
        by_poll: Dict[str, List[VoteBallot]] = {}
        for ballot in ballots:
            by_poll.setdefault(ballot.vote_id, []).append(ballot)
        now = utc_now()
        summaries = []
        for poll in polls:
            options = await self.votes.options(poll.id) if VoteType(poll.type) == VoteType.multiple_choice else []
            summaries.append(self._summary(poll, options, by_poll.get(poll.id, []), user_id, now))
        return summaries

    @staticmethod
    def _summary(
        poll: VotePoll,
        options: Sequence[VoteOption],
        ballots: Sequence[VoteBallot],
        user_id: Optional[str],
        now,
    ) -> VoteSummary:
        mine = next((b for b in ballots if user_id and b.user_id == user_id), None)
        return VoteSummary(
            id=poll.id,
            title=poll.title,
            description=poll.description,
            type=VoteType(poll.type),
            deadline=as_utc(poll.deadline),
            is_open=poll.is_open(now),
            eligibility=VoteEligibility(poll.eligibility),
            results=tally(poll, options, ballots),
            already_voted=mine is not None,
            my_choice=VoteChoice(mine.choice) if mine and mine.choice is not None else None,
            my_option_id=mine.option_id if mine else None,
        )

    async def detail(self, vote_id: str, user_id: Optional[str]) -> VoteDetail:
        poll = await self.votes.get_by_id(vote_id)
        if poll is None or (user_id is None and VoteEligibility(poll.eligibility) != VoteEligibility.public):
            raise NotFoundError("Vote not found.")
        options = await self.votes.options(poll.id)
        ballots = await self.votes.ballots(poll.id)
        summary = self._summary(poll, options, ballots, user_id, utc_now())

        can_vote = summary.is_open and not summary.already_voted and await self.is_eligible(poll, user_id)
        detail = VoteDetail(
            **summary.model_dump(),
            meeting_id=poll.meeting_id,
            agenda_item_id=poll.agenda_item_id,
            anonymous=poll.anonymous,
            allow_abstain=poll.allow_abstain,
            can_vote=can_vote,
            created_by_user_id=poll.created_by_user_id or None,
            options=[VoteOptionRead.model_validate(o) for o in options],
        )
        if not poll.anonymous and ballots:
            users = await self.users.get_many([b.user_id for b in ballots])
            option_text = {o.id: o.text for o in options}
            individual = []
            for ballot in ballots:
                user = users.get(ballot.user_id)
                name = user.name if user else ballot.user_id
                if ballot.option_id:
                    label = option_text.get(ballot.option_id, "")
                else:
                    label = VoteChoice(ballot.choice).label if ballot.choice is not None else ""
                individual.append(
                    IndividualVote(user_id=ballot.user_id, user_name=name, label=label, voted_at=as_utc(ballot.voted_at))
                )
            detail.individual_votes = individual
        return detail

    async def delete(self, vote_id: str) -> None:
        poll = await self.votes.get_by_id(vote_id)
        if poll is None:
            raise NotFoundError("Vote not found.")
        await self.votes.delete_children(poll.id)
        await self.votes.delete(poll.id)
        await self.session.commit()
        logger.info(f"Poll {vote_id} deleted")

"""Unit tests for ballot eligibility and tallies."""

from datetime import datetime, timedelta, timezone

import pytest

from boardmgmt.core.exceptions import InvalidOperationError, UnauthorizedError
from boardmgmt.core.models.domain.enums import VoteChoice, VoteEligibility
from boardmgmt.core.models.io.meetings import MeetingWrite
from boardmgmt.core.models.io.votes import BallotSubmit, VoteCreate
from boardmgmt.server.services.meetings import MeetingService
from boardmgmt.server.services.votes import VoteService

pytestmark = pytest.mark.asyncio


async def _attendee_poll(session, make_user):
    chair = await make_user("chair@board.local")
    attendee = await make_user("attendee@board.local")
    absent = await make_user("absent@board.local")
    meeting = await MeetingService(session).create(
        MeetingWrite(
            title="AGM",
            scheduled_at=datetime.now(timezone.utc) + timedelta(days=1),
            attendee_user_ids=[chair.id, attendee.id],
        )
    )
    poll = await VoteService(session).create(
        chair.id,
        VoteCreate(title="Approve minutes", eligibility=VoteEligibility.meeting_attendees, meeting_id=meeting.id),
    )
    return poll, chair.id, attendee.id, absent.id


async def test_only_meeting_attendees_may_vote(seeded, make_user):
    poll, chair_id, attendee_id, absent_id = await _attendee_poll(seeded, make_user)
    votes = VoteService(seeded)

    summary = await votes.submit_ballot(poll.id, attendee_id, BallotSubmit(choice=VoteChoice.yes))
    assert summary.already_voted
    assert summary.my_choice == VoteChoice.yes

    with pytest.raises(UnauthorizedError):
        await votes.submit_ballot(poll.id, absent_id, BallotSubmit(choice=VoteChoice.no))


async def test_tally_counts_each_choice(seeded, make_user):
    poll, chair_id, attendee_id, _ = await _attendee_poll(seeded, make_user)
    votes = VoteService(seeded)
    await votes.submit_ballot(poll.id, chair_id, BallotSubmit(choice=VoteChoice.abstain))
    await votes.submit_ballot(poll.id, attendee_id, BallotSubmit(choice=VoteChoice.yes))

    detail = await votes.detail(poll.id, chair_id)
    assert (detail.results.total, detail.results.yes, detail.results.no, detail.results.abstain) == (2, 1, 0, 1)
    assert sorted(v.label for v in detail.individual_votes) == ["Abstain", "Yes"]


async def test_past_deadline_closes_voting(seeded, make_user):
    creator = await make_user("creator@board.local")
    poll = await VoteService(seeded).create(
        creator.id,
        VoteCreate(
            title="Late",
            eligibility=VoteEligibility.public,
            deadline=datetime.now(timezone.utc) - timedelta(minutes=1),
        ),
    )
    assert not poll.is_open
    with pytest.raises(InvalidOperationError, match="Voting closed"):
        await VoteService(seeded).submit_ballot(poll.id, creator.id, BallotSubmit(choice=VoteChoice.yes))

"""
Voting Endpoints.

Polls (yes/no, approve/reject, multiple choice) and ballots. Listing and viewing
polls works without a token, in which case only public polls are returned.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from boardmgmt.core.models.domain.permissions import AppModule, Permission
from boardmgmt.core.models.io.common import ErrorResponse
from boardmgmt.core.models.io.votes import BallotSubmit, VoteCreate, VoteDetail, VoteSummary
from boardmgmt.server.services.deps import CurrentUserDep, OptionalUserDep, SessionDep, require_permission
from boardmgmt.server.services.votes import VoteService

router = APIRouter()


@router.get(
    "/active",
    response_model=List[VoteSummary],
    summary="Active Polls",
    description="Open polls visible to the caller with live results.",
)
async def active_votes(session: SessionDep, user: OptionalUserDep) -> List[VoteSummary]:
    return await VoteService(session).active(user.id if user else None)


@router.get(
    "/recent",
    response_model=List[VoteSummary],
    summary="Recently Closed Polls",
    description="The latest closed polls visible to the caller.",
)
async def recent_votes(session: SessionDep, user: OptionalUserDep) -> List[VoteSummary]:
    return await VoteService(session).recent(user.id if user else None)


@router.get(
    "/{vote_id}",
    response_model=VoteDetail,
    summary="Get Poll",
    description="Poll details, results and, for non-anonymous polls, who voted what.",
    responses={404: {"model": ErrorResponse, "description": "Poll not found"}},
)
async def get_vote(vote_id: str, session: SessionDep, user: OptionalUserDep) -> VoteDetail:
    return await VoteService(session).detail(vote_id, user.id if user else None)


@router.post(
    "",
    response_model=VoteDetail,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(AppModule.votes, Permission.create))],
    summary="Create Poll",
    responses={400: {"model": ErrorResponse, "description": "Invalid poll definition"}},
)
async def create_vote(payload: VoteCreate, session: SessionDep, user: CurrentUserDep) -> VoteDetail:
    """
    Create a poll.

    - **eligibility**: `Public`, `MeetingAttendees` (needs **meeting_id**) or `SpecificUsers`
    - **options**: At least two distinct entries for multiple-choice polls
    - **deadline**: Defaults to three days from now
    """
    return await VoteService(session).create(user.id, payload)


@router.post(
    "/{vote_id}/ballots",
    response_model=VoteSummary,
    summary="Cast Ballot",
    description="Vote or change an earlier vote while the poll is open.",
    response_description="The poll summary including the caller's choice.",
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid choice"},
        401: {"model": ErrorResponse, "description": "Caller is not eligible"},
        409: {"model": ErrorResponse, "description": "Voting closed"},
    },
)
async def submit_ballot(vote_id: str, payload: BallotSubmit, session: SessionDep, user: CurrentUserDep) -> VoteSummary:
    return await VoteService(session).submit_ballot(vote_id, user.id, payload)


@router.delete(
    "/{vote_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission(AppModule.votes, Permission.delete))],
    summary="Delete Poll",
)
async def delete_vote(vote_id: str, session: SessionDep) -> None:
    await VoteService(session).delete(vote_id)

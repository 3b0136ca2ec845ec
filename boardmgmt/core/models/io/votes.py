"""
Vote I/O models.

Schemas for creating polls, submitting ballots and reading poll summaries and
details with tallied results.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from boardmgmt.core.models.domain.enums import VoteChoice, VoteEligibility, VoteType


class VoteCreate(BaseModel):
    """Schema for creating a poll."""

    title: str = Field(max_length=160, examples=["Approve FY25 budget"])
    description: Optional[str] = Field(default=None, max_length=2000)
    type: VoteType = VoteType.yes_no
    allow_abstain: bool = True
    anonymous: bool = False
    deadline: Optional[datetime] = Field(default=None, description="Defaults to three days from now")
    eligibility: VoteEligibility = VoteEligibility.meeting_attendees
    meeting_id: Optional[str] = None
    agenda_item_id: Optional[str] = None
    options: List[str] = Field(default_factory=list, description="Choices of a multiple-choice poll")
    specific_user_ids: List[str] = Field(default_factory=list)


class BallotSubmit(BaseModel):
    """A choice for yes/no and approve/reject polls, an option id for multiple-choice polls."""

    choice: Optional[VoteChoice] = None
    option_id: Optional[str] = None


class VoteOptionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    text: str
    order: int


class VoteOptionResult(VoteOptionRead):
    count: int = 0


class VoteResults(BaseModel):
    total: int = 0
    yes: int = 0
    no: int = 0
    abstain: int = 0
    options: List[VoteOptionResult] = Field(default_factory=list)


class VoteSummary(BaseModel):
    """Poll with tallied results and the caller's own ballot."""

    id: str
    title: str
    description: Optional[str] = None
    type: VoteType
    deadline: datetime
    is_open: bool
    eligibility: VoteEligibility
    results: VoteResults
    already_voted: bool = False
    my_choice: Optional[VoteChoice] = None
    my_option_id: Optional[str] = None


class IndividualVote(BaseModel):
    user_id: str
    user_name: str
    label: str
    voted_at: datetime


class VoteDetail(VoteSummary):
    """Full poll view; ``individual_votes`` stays empty for anonymous polls."""

    meeting_id: Optional[str] = None
    agenda_item_id: Optional[str] = None
    anonymous: bool = False
    allow_abstain: bool = True
    can_vote: bool = False
    created_by_user_id: Optional[str] = None
    options: List[VoteOptionRead] = Field(default_factory=list)
    individual_votes: List[IndividualVote] = Field(default_factory=list)

"""
Voting entity models.

A ``VotePoll`` collects one ``VoteBallot`` per user. For multiple-choice polls the
ballot references a ``VoteOption`` and leaves ``choice`` empty; for the other poll
types the ballot carries a ``VoteChoice`` and no option.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, UniqueConstraint
from sqlmodel import Field

from boardmgmt.core.models.domain.enums import VoteChoice, VoteEligibility, VoteType

from ..base import Base, as_utc, created_at_field, id_field, utc_now

DEFAULT_VOTING_WINDOW = timedelta(days=3)


def _default_deadline() -> datetime:
    return utc_now() + DEFAULT_VOTING_WINDOW


class VotePoll(Base, table=True):
    """Poll with a deadline and an eligibility rule.

    Table: vote_polls
    """

    __tablename__ = "vote_polls"
    __table_args__ = (Index("ix_vote_polls_creator_created", "created_by_user_id", "created_at"),)

    id: str = id_field()
    meeting_id: Optional[str] = Field(default=None, foreign_key="meetings.id", index=True, max_length=36)
    agenda_item_id: Optional[str] = Field(default=None, foreign_key="agenda_items.id", index=True, max_length=36)
    title: str = Field(max_length=160)
    description: Optional[str] = Field(default=None, max_length=2000)
    type: VoteType = Field(default=VoteType.yes_no, sa_type=Integer)
    allow_abstain: bool = Field(default=True)
    anonymous: bool = Field(default=False)
    created_at: datetime = created_at_field()
    deadline: datetime = Field(default_factory=_default_deadline, sa_type=DateTime(timezone=True), index=True)
    eligibility: VoteEligibility = Field(default=VoteEligibility.meeting_attendees, sa_type=Integer)
    created_by_user_id: str = Field(default="", max_length=450)

    def is_open(self, now: datetime) -> bool:
        return as_utc(now) <= as_utc(self.deadline)


class VoteOption(Base, table=True):
    """Choice of a multiple-choice poll.

    Table: vote_options
    """

    __tablename__ = "vote_options"
    __table_args__ = (UniqueConstraint("vote_id", "order", name="uq_vote_options_vote_order"),)

    id: str = id_field()
    vote_id: str = Field(foreign_key="vote_polls.id", index=True, max_length=36)
    text: str = Field(max_length=200)
    order: int = Field(default=0)


class VoteBallot(Base, table=True):
    """A user's ballot on a poll.

    Table: vote_ballots
    """

    __tablename__ = "vote_ballots"
    __table_args__ = (UniqueConstraint("vote_id", "user_id", name="uq_vote_ballots_vote_user"),)

    id: str = id_field()
    vote_id: str = Field(foreign_key="vote_polls.id", index=True, max_length=36)
    user_id: str = Field(max_length=450, index=True)
    choice: Optional[VoteChoice] = Field(default=None, sa_type=Integer)
    option_id: Optional[str] = Field(default=None, foreign_key="vote_options.id", max_length=36)
    voted_at: datetime = created_at_field()


class VoteEligibleUser(Base, table=True):
    """Explicit eligibility entry for polls restricted to specific users.

    Table: vote_eligible_users
    """

    __tablename__ = "vote_eligible_users"
    __table_args__ = (UniqueConstraint("vote_id", "user_id", name="uq_vote_eligible_users_vote_user"),)

    id: str = id_field()
    vote_id: str = Field(foreign_key="vote_polls.id", index=True, max_length=36)
    user_id: str = Field(max_length=450, index=True)

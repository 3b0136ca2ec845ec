"""
Vote repository.

Data access for polls, their options, ballots and explicit eligibility lists.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.models.domain.enums import VoteEligibility

from ..entities.votes import VoteBallot, VoteEligibleUser, VoteOption, VotePoll
from .base import QueryBuilder, SQLModelRepository


class VoteRepository(SQLModelRepository[VotePoll]):
    """Repository for vote polls and their child rows."""

    order_by = (VotePoll.deadline,)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, VotePoll)

    async def visible_polls(
        self,
        user_id: Optional[str],
        attended_meeting_ids: Sequence[str],
        open_at: Optional[datetime] = None,
        closed_before: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[VotePoll]:
        """Polls a user may see, either still open at ``open_at`` or closed before ``closed_before``.

        Anonymous callers (``user_id`` None) only see public polls.
        """
        stmt = select(VotePoll)
        if open_at is not None:
            stmt = stmt.where(VotePoll.deadline >= open_at).order_by(VotePoll.deadline)
        if closed_before is not None:
            stmt = stmt.where(VotePoll.deadline < closed_before).order_by(VotePoll.deadline.desc())

        if user_id is None:
            stmt = stmt.where(VotePoll.eligibility == int(VoteEligibility.public))
        else:
            listed = select(VoteEligibleUser.vote_id).where(VoteEligibleUser.user_id == user_id)
            criteria = [
                VotePoll.eligibility == int(VoteEligibility.public),
                VotePoll.created_by_user_id == user_id,
                (VotePoll.eligibility == int(VoteEligibility.specific_users)) & VotePoll.id.in_(listed),
            ]
            if attended_meeting_ids:
                criteria.append(
                    (VotePoll.eligibility == int(VoteEligibility.meeting_attendees))
                    & VotePoll.meeting_id.in_(list(attended_meeting_ids))
                )
            stmt = stmt.where(or_(*criteria))

        stmt = QueryBuilder.apply_pagination(stmt, limit, None)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def open_polls(self, now: datetime) -> List[VotePoll]:
        result = await self.session.execute(select(VotePoll).where(VotePoll.deadline >= now))
        return list(result.scalars().all())

    async def created_between(self, start: datetime, end: datetime) -> List[VotePoll]:
        stmt = select(VotePoll).where(VotePoll.created_at >= start, VotePoll.created_at < end)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def recent_created(self, limit: int) -> List[VotePoll]:
        stmt = select(VotePoll).order_by(VotePoll.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    async def options(self, vote_id: str) -> List[VoteOption]:
        stmt = select(VoteOption).where(VoteOption.vote_id == vote_id).order_by(VoteOption.order)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_option(self, vote_id: str, option_id: str) -> Optional[VoteOption]:
        stmt = select(VoteOption).where(VoteOption.id == option_id, VoteOption.vote_id == vote_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    # ------------------------------------------------------------------
    # Ballots
    # ------------------------------------------------------------------

    async def ballots(self, vote_id: str) -> List[VoteBallot]:
        stmt = select(VoteBallot).where(VoteBallot.vote_id == vote_id).order_by(VoteBallot.voted_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def ballots_for(self, vote_ids: Sequence[str]) -> List[VoteBallot]:
        if not vote_ids:
            return []
        result = await self.session.execute(select(VoteBallot).where(VoteBallot.vote_id.in_(list(vote_ids))))
        return list(result.scalars().all())

    async def get_ballot(self, vote_id: str, user_id: str) -> Optional[VoteBallot]:
        stmt = select(VoteBallot).where(VoteBallot.vote_id == vote_id, VoteBallot.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def voted_poll_ids(self, user_id: str, vote_ids: Sequence[str]) -> List[str]:
        if not vote_ids:
            return []
        stmt = select(VoteBallot.vote_id).where(
            VoteBallot.user_id == user_id, VoteBallot.vote_id.in_(list(vote_ids))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Eligibility
    # ------------------------------------------------------------------

    async def eligible_user_ids(self, vote_id: str) -> List[str]:
        stmt = select(VoteEligibleUser.user_id).where(VoteEligibleUser.vote_id == vote_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def is_listed(self, vote_id: str, user_id: str) -> bool:
        stmt = (
            select(func.count())
            .select_from(VoteEligibleUser)
            .where(VoteEligibleUser.vote_id == vote_id, VoteEligibleUser.user_id == user_id)
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one()) > 0

    async def add_eligible_users(self, vote_id: str, user_ids: Iterable[str]) -> None:
        self.session.add_all([VoteEligibleUser(vote_id=vote_id, user_id=uid) for uid in dict.fromkeys(user_ids)])
        await self.session.flush()

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    async def delete_children(self, vote_id: str) -> None:
        await self.session.execute(delete(VoteBallot).where(VoteBallot.vote_id == vote_id))
        await self.session.execute(delete(VoteEligibleUser).where(VoteEligibleUser.vote_id == vote_id))
        await self.session.execute(delete(VoteOption).where(VoteOption.vote_id == vote_id))

    async def detach_meeting(self, meeting_id: str, agenda_item_ids: Sequence[str] = ()) -> None:
        """Unlink polls from a meeting (and its agenda items) that is about to be deleted."""
        await self.session.execute(
            update(VotePoll)
            .where(VotePoll.meeting_id == meeting_id)
            .values(meeting_id=None, agenda_item_id=None)
            .execution_options(synchronize_session=False)
        )
        if agenda_item_ids:
            await self.session.execute(
                update(VotePoll)
                .where(VotePoll.agenda_item_id.in_(list(agenda_item_ids)))
                .values(agenda_item_id=None)
                .execution_options(synchronize_session=False)
            )

    async def detach_agenda_item(self, agenda_item_id: str) -> None:
        await self.session.execute(
            update(VotePoll)
            .where(VotePoll.agenda_item_id == agenda_item_id)
            .values(agenda_item_id=None)
            .execution_options(synchronize_session=False)
        )

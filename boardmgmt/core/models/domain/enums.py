"""Domain enums for meetings, votes, messages and chat."""

from __future__ import annotations

from enum import Enum, IntEnum


class MeetingStatus(IntEnum):
    """Lifecycle status of a meeting."""

    draft = 0
    scheduled = 1
    completed = 2
    cancelled = 3


class MeetingType(IntEnum):
    board = 0
    committee = 1
    emergency = 2


class VoteType(IntEnum):
    """
    Kind of poll.

    Yes/No and Approve/Reject polls take a ``VoteChoice``; multiple-choice polls
    take one of the poll's options instead.
    """

    yes_no = 0
    approve_reject = 1
    multiple_choice = 2


class VoteEligibility(IntEnum):
    """Who may cast a ballot on a poll."""

    public = 0  # Any authenticated user.
    meeting_attendees = 1  # Attendees of the poll's meeting.
    specific_users = 2  # Users listed on the poll (creator always included).


class VoteChoice(IntEnum):
    yes = 1
    no = 2
    abstain = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()


class MessagePriority(IntEnum):
    low = 0
    normal = 1
    high = 2
    urgent = 3


class MessageStatus(IntEnum):
    draft = 0
    sent = 1


class ConversationType(str, Enum):
    """Chat conversation kind."""

    channel = "channel"
    direct = "direct"


class ConversationMemberRole(str, Enum):
    admin = "admin"
    member = "member"


class ReportPeriod(str, Enum):
    """Named report periods understood by the report generator."""

    last_month = "last-month"
    last_quarter = "last-quarter"
    last_year = "last-year"
    custom = "custom"


class StatsKind(str, Enum):
    """Dashboard counters that can be drilled into."""

    meetings = "meetings"
    documents = "documents"
    votes = "votes"
    messages = "messages"

"""Domain enums, permission flags and pure helpers."""

from .calendars import CalendarProviders, MailboxIdentifier
from .enums import (
    ConversationMemberRole,
    ConversationType,
    MeetingStatus,
    MeetingType,
    MessagePriority,
    MessageStatus,
    ReportPeriod,
    VoteChoice,
    VoteEligibility,
    VoteType,
)
from .permissions import (
    DEFAULT_ROLE_PERMISSIONS,
    AppModule,
    AppRoles,
    DocumentAccess,
    Permission,
    to_access_mask,
    to_roles,
)
from .text import normalize_subject, slugify
from .transcripts import VttCue, parse_vtt

__all__ = [
    "AppModule",
    "AppRoles",
    "CalendarProviders",
    "ConversationMemberRole",
    "ConversationType",
    "DEFAULT_ROLE_PERMISSIONS",
    "DocumentAccess",
    "MailboxIdentifier",
    "MeetingStatus",
    "MeetingType",
    "MessagePriority",
    "MessageStatus",
    "Permission",
    "ReportPeriod",
    "VoteChoice",
    "VoteEligibility",
    "VoteType",
    "VttCue",
    "normalize_subject",
    "parse_vtt",
    "slugify",
    "to_access_mask",
    "to_roles",
]

"""
Database entity models.

This package contains all database entity models organized by business domain.
Importing it registers every table with ``Base.metadata``.

Modules:
- identity: Users, roles, memberships and role permission masks
- departments: Organizational departments
- meetings: Meetings, attendees and agenda items
- transcripts: Meeting transcripts and utterances
- documents: Folders, documents and document role access
- votes: Polls, options, ballots and eligibility lists
- messages: Internal messages, recipients and attachments
- chat: Conversations, members, chat messages, attachments and reactions
- reports: Generated report records
"""

from . import (
    chat,
    departments,
    documents,
    identity,
    meetings,
    messages,
    reports,
    transcripts,
    votes,
)

__all__ = [
    "chat",
    "departments",
    "documents",
    "identity",
    "meetings",
    "messages",
    "reports",
    "transcripts",
    "votes",
]

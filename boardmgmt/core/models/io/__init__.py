"""
I/O models for API requests and responses.

This package contains Pydantic-based I/O schemas that define the contract
between API endpoints and clients. These models are separate from database
entities to allow independent evolution of API contracts.

Modules:
- common: Error envelope, paging and user references
- auth: Registration, login and profile
- users, roles, departments: Administration
- meetings, calendar: Meetings, attendees, agenda, transcripts and calendar events
- documents: Documents and folders
- votes: Polls, ballots and results
- messages: Internal messages
- chat: Conversations and chat messages
- dashboard, reports: Aggregated views
"""

from .auth import LoginRequest, LoginResponse, MeResponse, RegisterRequest
from .common import CountResponse, ErrorBody, ErrorResponse, IdResponse, MinimalUser, Page
from .documents import DocumentRead, DocumentUpdate, FolderCreate, FolderRead
from .meetings import AttendeeRead, AttendeeUpdate, MeetingRead, MeetingWrite
from .votes import BallotSubmit, VoteCreate, VoteDetail, VoteSummary

__all__ = [
    "AttendeeRead",
    "AttendeeUpdate",
    "BallotSubmit",
    "CountResponse",
    "DocumentRead",
    "DocumentUpdate",
    "ErrorBody",
    "ErrorResponse",
    "FolderCreate",
    "FolderRead",
    "IdResponse",
    "LoginRequest",
    "LoginResponse",
    "MeResponse",
    "MeetingRead",
    "MeetingWrite",
    "MinimalUser",
    "Page",
    "RegisterRequest",
    "VoteCreate",
    "VoteDetail",
    "VoteSummary",
]

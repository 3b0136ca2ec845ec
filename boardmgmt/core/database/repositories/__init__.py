"""
Data access layer.

One repository per aggregate. Repositories add, flush and query; services own the
transaction and commit once per use case.
"""

from .base import BaseRepository, QueryBuilder, SQLModelRepository
from .chat import ChatMessageRepository, ConversationRepository
from .departments import DepartmentRepository
from .documents import DocumentRepository
from .folders import FolderRepository
from .meetings import MeetingRepository
from .messages import MessageRepository
from .reports import ReportRepository
from .roles import RoleRepository
from .transcripts import TranscriptRepository
from .users import UserRepository
from .votes import VoteRepository

__all__ = [
    "BaseRepository",
    "ChatMessageRepository",
    "ConversationRepository",
    "DepartmentRepository",
    "DocumentRepository",
    "FolderRepository",
    "MeetingRepository",
    "MessageRepository",
    "QueryBuilder",
    "ReportRepository",
    "RoleRepository",
    "SQLModelRepository",
    "TranscriptRepository",
    "UserRepository",
    "VoteRepository",
]

"""Initial schema and seed data for BoardMgmt

Revision ID: 20261019_000000
Revises: None
Create Date: 2026-10-19 00:00:00.000000

This is the initial migration that creates all tables and seeds default data
for the BoardMgmt service. This includes:
- Identity tables (users, roles, user roles, role permissions) and departments
- Meetings, attendees, agenda items and transcripts
- Folders, documents and document role access
- Polls, options, ballots and eligibility lists
- Internal messages and chat
- Generated reports
- Built-in roles with their permission matrix, default folders and departments

The administrator account is not seeded here because its password hash depends
on runtime configuration; it is created on startup when SEED_ON_STARTUP is set.

Revision format: YYYYMMDD_HHMMSS_description

"""

import uuid
from datetime import datetime, timezone
from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op
from boardmgmt.core.models.domain.permissions import DEFAULT_ROLE_PERMISSIONS, AppRoles

# revision identifiers, used by Alembic.
revision: str = "20261019_000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DEFAULT_FOLDERS = [
    ("Board Meetings", "board-meetings"),
    ("Financial Reports", "financial"),
    ("Legal Documents", "legal"),
    ("Policies", "policies"),
]

DEFAULT_DEPARTMENTS = [
    ("Executive", "Executive leadership"),
    ("Finance", "Finance & accounting"),
    ("Legal", "Legal & compliance"),
    ("Operations", "Operations & IT"),
    ("Human Resources", "HR"),
    ("Marketing", "Marketing & comms"),
]


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), nullable=False)


def _tz(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    """Create all tables and seed initial data."""

    # Identity
    op.create_table(
        "departments",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_departments_name", "name", unique=True),
    )

    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(200), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("display_name", sa.String(200), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("department_id", sa.String(36), sa.ForeignKey("departments.id"), nullable=True),
        _tz("created_at", nullable=False),
        _tz("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_users_email", "email", unique=True),
        sa.Index("ix_users_department_id", "department_id"),
    )

    op.create_table(
        "roles",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_roles_name", "name", unique=True),
    )

    op.create_table(
        "user_roles",
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("role_id", sa.String(36), sa.ForeignKey("roles.id"), nullable=False),
        sa.PrimaryKeyConstraint("user_id", "role_id"),
        sa.Index("ix_user_roles_role_id", "role_id"),
    )

    op.create_table(
        "role_permissions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("role_id", sa.String(36), sa.ForeignKey("roles.id"), nullable=False),
        sa.Column("module", sa.Integer(), nullable=False),
        sa.Column("allowed", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("role_id", "module", name="uq_role_permissions_role_module"),
        sa.Index("ix_role_permissions_role_id", "role_id"),
    )

    # Meetings
    op.create_table(
        "meetings",
        _id(),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.Integer(), nullable=True),
        _tz("scheduled_at", nullable=False),
        _tz("end_at"),
        sa.Column("location", sa.String(500), nullable=False),
        sa.Column("status", sa.Integer(), nullable=False),
        sa.Column("external_calendar", sa.String(64), nullable=True),
        sa.Column("external_calendar_mailbox", sa.String(320), nullable=True),
        sa.Column("external_event_id", sa.String(512), nullable=True),
        sa.Column("online_join_url", sa.String(2048), nullable=True),
        sa.Column("host_identity", sa.String(320), nullable=True),
        _tz("created_at", nullable=False),
        _tz("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_meetings_scheduled_at_status", "scheduled_at", "status"),
        sa.Index("ix_meetings_external_event_id", "external_event_id"),
    )

    op.create_table(
        "meeting_attendees",
        _id(),
        sa.Column("meeting_id", sa.String(36), sa.ForeignKey("meetings.id"), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("role", sa.String(100), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("is_required", sa.Boolean(), nullable=False),
        sa.Column("is_confirmed", sa.Boolean(), nullable=False),
        sa.Column("row_version", sa.Integer(), nullable=False, server_default="1"),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_meeting_attendees_meeting_id", "meeting_id"),
        sa.Index("ix_meeting_attendees_user_id", "user_id"),
        sa.Index("ix_meeting_attendees_meeting_user", "meeting_id", "user_id"),
    )

    op.create_table(
        "agenda_items",
        _id(),
        sa.Column("meeting_id", sa.String(36), sa.ForeignKey("meetings.id"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_agenda_items_meeting_order", "meeting_id", "order"),
    )

    op.create_table(
        "transcripts",
        _id(),
        sa.Column("meeting_id", sa.String(36), sa.ForeignKey("meetings.id"), nullable=False),
        sa.Column("provider", sa.String(64), nullable=False),
        sa.Column("provider_transcript_id", sa.String(256), nullable=False),
        _tz("created_at", nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_transcripts_meeting_id", "meeting_id"),
    )

    op.create_table(
        "transcript_utterances",
        _id(),
        sa.Column("transcript_id", sa.String(36), sa.ForeignKey("transcripts.id"), nullable=False),
        sa.Column("start_seconds", sa.Float(), nullable=False),
        sa.Column("end_seconds", sa.Float(), nullable=False),
        sa.Column("text", sa.String(4000), nullable=False),
        sa.Column("speaker_name", sa.String(256), nullable=True),
        sa.Column("speaker_email", sa.String(320), nullable=True),
        sa.Column("user_id", sa.String(36), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_transcript_utterances_transcript_id", "transcript_id"),
    )

    # Documents
    op.create_table(
        "folders",
        _id(),
        sa.Column("name", sa.String(60), nullable=False),
        sa.Column("slug", sa.String(80), nullable=False),
        _tz("created_at", nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_folders_slug", "slug", unique=True),
    )

    op.create_table(
        "documents",
        _id(),
        sa.Column("meeting_id", sa.String(36), sa.ForeignKey("meetings.id"), nullable=True),
        sa.Column("folder_slug", sa.String(80), nullable=False),
        sa.Column("file_name", sa.String(260), nullable=False),
        sa.Column("original_name", sa.String(260), nullable=False),
        sa.Column("url", sa.String(1024), nullable=False),
        sa.Column("content_type", sa.String(200), nullable=False),
        sa.Column("size_bytes", sa.BigInteger(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("uploaded_by_user_id", sa.String(36), nullable=True),
        _tz("uploaded_at", nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_documents_meeting_id", "meeting_id"),
        sa.Index("ix_documents_folder_slug", "folder_slug"),
        sa.Index("ix_documents_uploaded_at", "uploaded_at"),
    )

    op.create_table(
        "document_role_access",
        sa.Column("document_id", sa.String(36), sa.ForeignKey("documents.id"), nullable=False),
        sa.Column("role_id", sa.String(36), sa.ForeignKey("roles.id"), nullable=False),
        sa.PrimaryKeyConstraint("document_id", "role_id"),
        sa.Index("ix_document_role_access_role_id", "role_id"),
    )

    # Votes
    op.create_table(
        "vote_polls",
        _id(),
        sa.Column("meeting_id", sa.String(36), sa.ForeignKey("meetings.id"), nullable=True),
        sa.Column("agenda_item_id", sa.String(36), sa.ForeignKey("agenda_items.id"), nullable=True),
        sa.Column("title", sa.String(160), nullable=False),
        sa.Column("description", sa.String(2000), nullable=True),
        sa.Column("type", sa.Integer(), nullable=False),
        sa.Column("allow_abstain", sa.Boolean(), nullable=False),
        sa.Column("anonymous", sa.Boolean(), nullable=False),
        _tz("created_at", nullable=False),
        _tz("deadline", nullable=False),
        sa.Column("eligibility", sa.Integer(), nullable=False),
        sa.Column("created_by_user_id", sa.String(450), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_vote_polls_meeting_id", "meeting_id"),
        sa.Index("ix_vote_polls_agenda_item_id", "agenda_item_id"),
        sa.Index("ix_vote_polls_deadline", "deadline"),
        sa.Index("ix_vote_polls_creator_created", "created_by_user_id", "created_at"),
    )

    op.create_table(
        "vote_options",
        _id(),
        sa.Column("vote_id", sa.String(36), sa.ForeignKey("vote_polls.id"), nullable=False),
        sa.Column("text", sa.String(200), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("vote_id", "order", name="uq_vote_options_vote_order"),
        sa.Index("ix_vote_options_vote_id", "vote_id"),
    )

    op.create_table(
        "vote_ballots",
        _id(),
        sa.Column("vote_id", sa.String(36), sa.ForeignKey("vote_polls.id"), nullable=False),
        sa.Column("user_id", sa.String(450), nullable=False),
        sa.Column("choice", sa.Integer(), nullable=True),
        sa.Column("option_id", sa.String(36), sa.ForeignKey("vote_options.id"), nullable=True),
        _tz("voted_at", nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("vote_id", "user_id", name="uq_vote_ballots_vote_user"),
        sa.Index("ix_vote_ballots_vote_id", "vote_id"),
        sa.Index("ix_vote_ballots_user_id", "user_id"),
    )

    op.create_table(
        "vote_eligible_users",
        _id(),
        sa.Column("vote_id", sa.String(36), sa.ForeignKey("vote_polls.id"), nullable=False),
        sa.Column("user_id", sa.String(450), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("vote_id", "user_id", name="uq_vote_eligible_users_vote_user"),
        sa.Index("ix_vote_eligible_users_vote_id", "vote_id"),
        sa.Index("ix_vote_eligible_users_user_id", "user_id"),
    )

    # Internal messages
    op.create_table(
        "messages",
        _id(),
        sa.Column("sender_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("subject", sa.String(300), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("read_receipt_requested", sa.Boolean(), nullable=False),
        sa.Column("is_confidential", sa.Boolean(), nullable=False),
        sa.Column("status", sa.Integer(), nullable=False),
        _tz("sent_at"),
        _tz("created_at", nullable=False),
        _tz("updated_at", nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_messages_sender_id", "sender_id"),
        sa.Index("ix_messages_status", "status"),
        sa.Index("ix_messages_sent_at", "sent_at"),
    )

    op.create_table(
        "message_recipients",
        _id(),
        sa.Column("message_id", sa.String(36), sa.ForeignKey("messages.id"), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        _tz("read_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("message_id", "user_id", name="uq_message_recipients_message_user"),
        sa.Index("ix_message_recipients_message_id", "message_id"),
        sa.Index("ix_message_recipients_user_id", "user_id"),
    )

    op.create_table(
        "message_attachments",
        _id(),
        sa.Column("message_id", sa.String(36), sa.ForeignKey("messages.id"), nullable=False),
        sa.Column("file_name", sa.String(260), nullable=False),
        sa.Column("content_type", sa.String(200), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("storage_path", sa.String(1024), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_message_attachments_message_id", "message_id"),
    )

    # Chat
    op.create_table(
        "conversations",
        _id(),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("name", sa.String(120), nullable=True),
        sa.Column("is_private", sa.Boolean(), nullable=False),
        _tz("created_at", nullable=False),
        _tz("updated_at", nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "conversation_members",
        _id(),
        sa.Column("conversation_id", sa.String(36), sa.ForeignKey("conversations.id"), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("role", sa.String(16), nullable=False),
        _tz("joined_at", nullable=False),
        _tz("last_read_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("conversation_id", "user_id", name="uq_conversation_members_conv_user"),
        sa.Index("ix_conversation_members_conversation_id", "conversation_id"),
        sa.Index("ix_conversation_members_user_id", "user_id"),
    )

    op.create_table(
        "chat_messages",
        _id(),
        sa.Column("conversation_id", sa.String(36), sa.ForeignKey("conversations.id"), nullable=False),
        sa.Column("sender_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("thread_root_id", sa.String(36), nullable=True),
        sa.Column("body_html", sa.Text(), nullable=False),
        _tz("created_at", nullable=False),
        _tz("edited_at"),
        _tz("deleted_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_chat_messages_conv_created", "conversation_id", "created_at"),
        sa.Index("ix_chat_messages_sender_id", "sender_id"),
        sa.Index("ix_chat_messages_thread_root_id", "thread_root_id"),
    )

    op.create_table(
        "chat_attachments",
        _id(),
        sa.Column("message_id", sa.String(36), sa.ForeignKey("chat_messages.id"), nullable=False),
        sa.Column("file_name", sa.String(260), nullable=False),
        sa.Column("content_type", sa.String(200), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("storage_path", sa.String(1024), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_chat_attachments_message_id", "message_id"),
    )

    op.create_table(
        "chat_reactions",
        _id(),
        sa.Column("message_id", sa.String(36), sa.ForeignKey("chat_messages.id"), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("emoji", sa.String(32), nullable=False),
        _tz("created_at", nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("message_id", "user_id", "emoji", name="uq_chat_reactions_message_user_emoji"),
        sa.Index("ix_chat_reactions_message_id", "message_id"),
    )

    # Reports
    op.create_table(
        "generated_reports",
        _id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("type", sa.String(100), nullable=False),
        _tz("generated_at", nullable=False),
        sa.Column("generated_by_user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("file_url", sa.String(1024), nullable=True),
        sa.Column("format", sa.String(100), nullable=True),
        sa.Column("period_label", sa.String(120), nullable=True),
        _tz("start_date"),
        _tz("end_date"),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_generated_reports_generated_at", "generated_at"),
    )

    _seed()


def _seed() -> None:
    """Seed built-in roles with their permission matrix, default folders and departments."""
    now = datetime.now(timezone.utc)

    roles_table = sa.table("roles", sa.column("id", sa.String), sa.column("name", sa.String))
    permissions_table = sa.table(
        "role_permissions",
        sa.column("role_id", sa.String),
        sa.column("module", sa.Integer),
        sa.column("allowed", sa.Integer),
    )
    folders_table = sa.table(
        "folders",
        sa.column("id", sa.String),
        sa.column("name", sa.String),
        sa.column("slug", sa.String),
        sa.column("created_at", sa.DateTime(timezone=True)),
    )
    departments_table = sa.table(
        "departments",
        sa.column("id", sa.String),
        sa.column("name", sa.String),
        sa.column("description", sa.String),
        sa.column("is_active", sa.Boolean),
    )

    role_ids = {name: str(uuid.uuid4()) for name in AppRoles.all()}
    op.bulk_insert(roles_table, [{"id": role_id, "name": name} for name, role_id in role_ids.items()])
    op.bulk_insert(
        permissions_table,
        [
            {"role_id": role_ids[name], "module": int(module), "allowed": mask}
            for name, matrix in DEFAULT_ROLE_PERMISSIONS.items()
            for module, mask in matrix.items()
            if mask
        ],
    )
    op.bulk_insert(
        folders_table,
        [{"id": str(uuid.uuid4()), "name": name, "slug": slug, "created_at": now} for name, slug in DEFAULT_FOLDERS],
    )
    op.bulk_insert(
        departments_table,
        [
            {"id": str(uuid.uuid4()), "name": name, "description": description, "is_active": True}
            for name, description in DEFAULT_DEPARTMENTS
        ],
    )


def downgrade() -> None:
    """Drop all tables created in upgrade."""
    op.drop_table("generated_reports")
    op.drop_table("chat_reactions")
    op.drop_table("chat_attachments")
    op.drop_table("chat_messages")
    op.drop_table("conversation_members")
    op.drop_table("conversations")
    op.drop_table("message_attachments")
    op.drop_table("message_recipients")
    op.drop_table("messages")
    op.drop_table("vote_eligible_users")
    op.drop_table("vote_ballots")
    op.drop_table("vote_options")
    op.drop_table("vote_polls")
    op.drop_table("document_role_access")
    op.drop_table("documents")
    op.drop_table("folders")
    op.drop_table("transcript_utterances")
    op.drop_table("transcripts")
    op.drop_table("agenda_items")
    op.drop_table("meeting_attendees")
    op.drop_table("meetings")
    op.drop_table("role_permissions")
    op.drop_table("user_roles")
    op.drop_table("roles")
    op.drop_table("users")
    op.drop_table("departments")

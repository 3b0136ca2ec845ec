"""
Document and folder use cases.

Documents are visible to everyone when they carry no role access rows, otherwise
only to members of one of the listed roles. Uploads without explicit roles get the
default audience (administrators and board members).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.database.base import utc_now
from boardmgmt.core.database.entities.documents import ROOT_FOLDER_SLUG, Document, Folder
from boardmgmt.core.database.repositories import (
    DocumentRepository,
    FolderRepository,
    MeetingRepository,
    RoleRepository,
)
from boardmgmt.core.exceptions import InvalidOperationError, NotFoundError, ValidationFailedError
from boardmgmt.core.logging_config import get_logger
from boardmgmt.core.models.domain.permissions import AppModule, DocumentAccess, Permission, to_roles
from boardmgmt.core.models.domain.text import slugify
from boardmgmt.core.models.io.documents import DocumentRead, DocumentUpdate, FolderRead

from .file_storage import FileStorage, UploadedFile, get_file_storage
from .permissions import PermissionService

logger = get_logger(__name__)

MAX_FOLDER_NAME_LENGTH = 60


def date_preset_start(preset: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """Lower bound for ``today``/``week``/``month``; unknown presets mean no bound."""
    if not preset or not preset.strip():
        return None
    now = now or utc_now()
    key = preset.strip().lower()
    if key == "today":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if key == "week":
        return now - timedelta(days=7)
    if key == "month":
        return now - timedelta(days=30)
    return None


def to_document_read(document: Document, role_ids: Sequence[str] = ()) -> DocumentRead:
    read = DocumentRead.model_validate(document)
    read.role_ids = list(role_ids)
    return read


@dataclass
class DocumentDownload:
    path: Path
    content_type: str
    file_name: str


class DocumentService:
    """Upload, edit, list and download documents on behalf of a user."""

    def __init__(
        self,
        session: AsyncSession,
        user_id: Optional[str],
        storage: Optional[FileStorage] = None,
    ) -> None:
        self.session = session
        self.user_id = user_id
        self.storage = storage or get_file_storage()
        self.documents = DocumentRepository(session)
        self.folders = FolderRepository(session)
        self.meetings = MeetingRepository(session)
        self.roles = RoleRepository(session)
        self.permissions = PermissionService(session, user_id)

    async def _default_role_ids(self) -> List[str]:
        roles = await self.roles.get_by_names(to_roles(DocumentAccess.default()))
        return [role.id for role in roles]

    async def _checked_role_ids(self, role_ids: Sequence[str]) -> List[str]:
        """Distinct non-blank role ids, all of which must exist."""
        wanted = [rid for rid in dict.fromkeys(role_ids) if rid]
        found = await self.roles.existing_ids(wanted)
        unknown = [rid for rid in wanted if rid not in found]
        if unknown:
            raise ValidationFailedError.for_field("role_ids", f"Unknown role id(s): {', '.join(unknown)}.")
        return found

    async def _resolve_folder(self, folder_slug: Optional[str]) -> str:
        slug = (folder_slug or ROOT_FOLDER_SLUG).strip() or ROOT_FOLDER_SLUG
        if slug != ROOT_FOLDER_SLUG and not await self.folders.slug_exists(slug):
            raise NotFoundError(f"Folder '{slug}' not found.")
        return slug

    async def upload(
        self,
        files: Sequence[UploadedFile],
        folder_slug: Optional[str] = None,
        meeting_id: Optional[str] = None,
        description: Optional[str] = None,
        role_ids: Optional[Sequence[str]] = None,
    ) -> List[DocumentRead]:
        """Store each file and create one document per file."""
        if not files:
            raise ValidationFailedError.for_field("files", "At least one file is required.")
        slug = await self._resolve_folder(folder_slug)
        if meeting_id and await self.meetings.get_by_id(meeting_id) is None:
            raise NotFoundError("Meeting not found.")

        access = await self._checked_role_ids(role_ids or []) or await self._default_role_ids()

        created: List[DocumentRead] = []
        for upload in files:
            stored = await self.storage.save(upload)
            document = await self.documents.create(
                Document(
                    meeting_id=meeting_id or None,
                    folder_slug=slug,
                    file_name=stored.file_name,
                    original_name=upload.file_name,
                    url=stored.url,
                    content_type=stored.content_type,
                    size_bytes=stored.size,
                    description=description,
                    uploaded_by_user_id=self.user_id,
                )
            )
            await self.documents.set_access(document.id, access)
            created.append(to_document_read(document, access))
        await self.session.commit()
        logger.info(f"User {self.user_id} uploaded {len(created)} document(s) to '{slug}'")
        return created

    async def update(self, document_id: str, payload: DocumentUpdate) -> DocumentRead:
        await self.permissions.ensure_mine(AppModule.documents, Permission.update)
        document = await self.documents.get_by_id(document_id)
        if document is None:
            raise NotFoundError("Document not found.")

        access = await self._checked_role_ids(payload.role_ids) if payload.role_ids is not None else None
        if payload.original_name is not None:
            name = payload.original_name.strip()
            if not name:
                raise ValidationFailedError.for_field("original_name", "Name cannot be empty.")
            document.original_name = name
        if payload.description is not None:
            document.description = payload.description
        if payload.folder_slug is not None:
            document.folder_slug = await self._resolve_folder(payload.folder_slug)
        await self.documents.update(document)

        if access is not None:
            await self.documents.set_access(document.id, access)
        role_ids = await self.documents.access_role_ids(document.id)
        await self.session.commit()
        return to_document_read(document, role_ids)

    async def replace_file(self, document_id: str, upload: UploadedFile) -> DocumentRead:
        """Swap the stored blob of a document and bump its version."""
        await self.permissions.ensure_mine(AppModule.documents, Permission.update)
        document = await self.documents.get_by_id(document_id)
        if document is None:
            raise NotFoundError("Document not found.")

        stored = await self.storage.save(upload)
        old_url = document.url
        document.file_name = stored.file_name
        document.original_name = upload.file_name
        document.url = stored.url
        document.content_type = stored.content_type
        document.size_bytes = stored.size
        document.version += 1
        document.uploaded_at = utc_now()
        await self.documents.update(document)
        role_ids = await self.documents.access_role_ids(document.id)
        await self.session.commit()
        await self.storage.delete(old_url)
        logger.info(f"Document {document_id} replaced, now version {document.version}")
        return to_document_read(document, role_ids)

    async def delete(self, document_id: str) -> None:
        await self.permissions.ensure_mine(AppModule.documents, Permission.delete)
        document = await self.documents.get_by_id(document_id)
        if document is None:
            return
        url = document.url
        await self.documents.clear_access(document.id)
        await self.documents.delete(document.id)
        await self.session.commit()
        await self.storage.delete(url)
        logger.info(f"Document {document_id} deleted by {self.user_id}")

    async def list(
        self,
        folder_slug: Optional[str] = None,
        doc_type: Optional[str] = None,
        search: Optional[str] = None,
        date_preset: Optional[str] = None,
        meeting_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[DocumentRead]:
        documents = await self.documents.search_visible(
            await self.permissions.role_ids(),
            folder_slug=folder_slug,
            doc_type=doc_type,
            search=search.strip() if search else None,
            uploaded_from=date_preset_start(date_preset),
            meeting_id=meeting_id,
            limit=limit,
        )
        access = await self.documents.access_role_ids_for([d.id for d in documents])
        return [to_document_read(d, access.get(d.id, [])) for d in documents]

    async def _get_visible(self, document_id: str) -> Document:
        document = await self.documents.get_by_id(document_id)
        if document is None or not await self.documents.is_visible(document_id, await self.permissions.role_ids()):
            raise NotFoundError("Document not found.")
        return document

    async def get(self, document_id: str) -> DocumentRead:
        document = await self._get_visible(document_id)
        return to_document_read(document, await self.documents.access_role_ids(document.id))

    async def download(self, document_id: str) -> DocumentDownload:
        document = await self._get_visible(document_id)
        return DocumentDownload(
            path=self.storage.open(document.url),
            content_type=document.content_type,
            file_name=document.original_name,
        )


class FolderService:
    """Document folders addressed by slug."""

    def __init__(self, session: AsyncSession, user_id: Optional[str] = None) -> None:
        self.session = session
        self.folders = FolderRepository(session)
        self.documents = DocumentRepository(session)
        self.permissions = PermissionService(session, user_id)

    async def create(self, name: str) -> FolderRead:
        clean = (name or "").strip()
        if not clean or len(clean) > MAX_FOLDER_NAME_LENGTH:
            raise ValidationFailedError.for_field(
                "name", f"Folder name must be 1 to {MAX_FOLDER_NAME_LENGTH} characters."
            )
        slug = slugify(clean)
        if not slug or slug == ROOT_FOLDER_SLUG:
            raise ValidationFailedError.for_field("name", "Folder name does not produce a usable slug.")
        if await self.folders.slug_exists(slug):
            raise InvalidOperationError(f"A folder with slug '{slug}' already exists.")

        folder = await self.folders.create(Folder(name=clean, slug=slug))
        await self.session.commit()
        logger.info(f"Folder '{slug}' created")
        return FolderRead(id=folder.id, name=folder.name, slug=folder.slug, created_at=folder.created_at)

    async def list(self) -> List[FolderRead]:
        """Folders with counts of documents the caller can see, plus the root folder."""
        counts: Dict[str, int] = await self.documents.count_visible_by_folder(await self.permissions.role_ids())
        items = [FolderRead(name="Root", slug=ROOT_FOLDER_SLUG, document_count=counts.get(ROOT_FOLDER_SLUG, 0))]
        for folder in await self.folders.list():
            items.append(
                FolderRead(
                    id=folder.id,
                    name=folder.name,
                    slug=folder.slug,
                    document_count=counts.get(folder.slug, 0),
                    created_at=folder.created_at,
                )
            )
        return items

    async def delete(self, slug: str) -> None:
        folder = await self.folders.get_by_slug(slug)
        if folder is None:
            raise NotFoundError(f"Folder '{slug}' not found.")
        if await self.documents.count_in_folder(slug) > 0:
            raise InvalidOperationError("Folder is not empty.")
        await self.folders.delete(folder.id)
        await self.session.commit()
        logger.info(f"Folder '{slug}' deleted")

"""
Document Endpoints.

Uploading, listing, editing and downloading board documents. Visibility is
restricted by document role access; edits and deletes additionally require the
Documents update or delete permission.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse

from boardmgmt.core.models.domain.permissions import AppModule, Permission
from boardmgmt.core.models.io.common import ErrorResponse
from boardmgmt.core.models.io.documents import DocumentRead, DocumentUpdate
from boardmgmt.server.services.deps import CurrentUserDep, SessionDep, read_uploads, require_permission
from boardmgmt.server.services.documents import DocumentService

router = APIRouter()


@router.get(
    "",
    response_model=List[DocumentRead],
    dependencies=[Depends(require_permission(AppModule.documents, Permission.view))],
    summary="List Documents",
    description="Documents visible to the caller, newest first.",
    response_description="Visible documents.",
)
async def list_documents(
    session: SessionDep,
    user: CurrentUserDep,
    folder: Optional[str] = None,
    doc_type: Optional[str] = Query(default=None, alias="type"),
    search: Optional[str] = None,
    date: Optional[str] = None,
    meeting_id: Optional[str] = None,
) -> List[DocumentRead]:
    """
    List documents.

    - **folder**: Folder slug, `root` for unfiled documents
    - **type**: `pdf`, `word`, `excel` or `powerpoint`
    - **search**: Matches the original file name or description
    - **date**: `today`, `week` or `month`
    """
    return await DocumentService(session, user.id).list(
        folder_slug=folder, doc_type=doc_type, search=search, date_preset=date, meeting_id=meeting_id
    )


@router.get(
    "/{document_id}",
    response_model=DocumentRead,
    dependencies=[Depends(require_permission(AppModule.documents, Permission.view))],
    summary="Get Document",
    responses={404: {"model": ErrorResponse, "description": "Document not found or not visible"}},
)
async def get_document(document_id: str, session: SessionDep, user: CurrentUserDep) -> DocumentRead:
    return await DocumentService(session, user.id).get(document_id)


@router.get(
    "/{document_id}/download",
    response_class=FileResponse,
    dependencies=[Depends(require_permission(AppModule.documents, Permission.view))],
    summary="Download Document",
    description="Stream the stored file with its original name.",
    responses={404: {"model": ErrorResponse, "description": "Document or file not found"}},
)
async def download_document(document_id: str, session: SessionDep, user: CurrentUserDep) -> FileResponse:
    download = await DocumentService(session, user.id).download(document_id)
    return FileResponse(download.path, media_type=download.content_type, filename=download.file_name)


@router.post(
    "",
    response_model=List[DocumentRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(AppModule.documents, Permission.create))],
    summary="Upload Documents",
    description="Upload one or more files as multipart form data.",
    response_description="One document per uploaded file.",
    responses={
        400: {"model": ErrorResponse, "description": "No files or invalid file name"},
        404: {"model": ErrorResponse, "description": "Folder or meeting not found"},
    },
)
async def upload_documents(
    session: SessionDep,
    user: CurrentUserDep,
    files: List[UploadFile] = File(...),
    folder_slug: Optional[str] = Form(default=None),
    meeting_id: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    role_ids: Optional[List[str]] = Form(default=None),
) -> List[DocumentRead]:
    """
    Upload documents.

    - **role_ids**: Roles allowed to see the documents; Admin and BoardMember when omitted
    """
    return await DocumentService(session, user.id).upload(
        await read_uploads(files),
        folder_slug=folder_slug,
        meeting_id=meeting_id,
        description=description,
        role_ids=role_ids,
    )


@router.put(
    "/{document_id}",
    response_model=DocumentRead,
    summary="Update Document",
    description="Rename, describe, move or change the access roles of a document.",
    responses={
        401: {"model": ErrorResponse, "description": "Missing Documents update permission"},
        404: {"model": ErrorResponse, "description": "Document not found"},
    },
)
async def update_document(
    document_id: str, payload: DocumentUpdate, session: SessionDep, user: CurrentUserDep
) -> DocumentRead:
    """
    Update document metadata.

    Omitting **role_ids** keeps the current access; an empty list makes the document visible to everyone.
    """
    return await DocumentService(session, user.id).update(document_id, payload)


@router.put(
    "/{document_id}/file",
    response_model=DocumentRead,
    summary="Replace Document File",
    description="Upload a new file for the document and bump its version.",
)
async def replace_document_file(
    document_id: str, session: SessionDep, user: CurrentUserDep, file: UploadFile = File(...)
) -> DocumentRead:
    uploads = await read_uploads([file])
    return await DocumentService(session, user.id).replace_file(document_id, uploads[0])


@router.delete(
    "/{document_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Document",
    description="Delete the document and its stored file. Deleting a missing document succeeds.",
)
async def delete_document(document_id: str, session: SessionDep, user: CurrentUserDep) -> None:
    await DocumentService(session, user.id).delete(document_id)

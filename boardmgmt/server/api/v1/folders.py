"""
Document Folder Endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from boardmgmt.core.models.domain.permissions import AppModule, Permission
from boardmgmt.core.models.io.common import ErrorResponse
from boardmgmt.core.models.io.documents import FolderCreate, FolderRead
from boardmgmt.server.services.deps import CurrentUserDep, SessionDep, require_permission
from boardmgmt.server.services.documents import FolderService

router = APIRouter()


@router.get(
    "",
    response_model=List[FolderRead],
    dependencies=[Depends(require_permission(AppModule.folders, Permission.view))],
    summary="List Folders",
    description="The root folder followed by all folders, with counts of documents visible to the caller.",
)
async def list_folders(session: SessionDep, user: CurrentUserDep) -> List[FolderRead]:
    return await FolderService(session, user.id).list()


@router.post(
    "",
    response_model=FolderRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(AppModule.folders, Permission.create))],
    summary="Create Folder",
    responses={
        400: {"model": ErrorResponse, "description": "Name empty or too long"},
        409: {"model": ErrorResponse, "description": "A folder with the same slug exists"},
    },
)
async def create_folder(payload: FolderCreate, session: SessionDep) -> FolderRead:
    return await FolderService(session).create(payload.name)


@router.delete(
    "/{slug}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission(AppModule.folders, Permission.delete))],
    summary="Delete Folder",
    responses={409: {"model": ErrorResponse, "description": "Folder still contains documents"}},
)
async def delete_folder(slug: str, session: SessionDep) -> None:
    await FolderService(session).delete(slug)

"""
Role Management Endpoints.

Roles and their per-module permission bitmasks. Guarded by the Settings module.
"""

from typing import Dict, List

from fastapi import APIRouter, Depends, status

from boardmgmt.core.models.domain.permissions import AppModule, Permission
from boardmgmt.core.models.io.common import ErrorResponse, IdResponse
from boardmgmt.core.models.io.roles import RoleCreate, RolePermissionsUpdate, RoleRead, RoleUpdate
from boardmgmt.server.services.deps import SessionDep, require_permission
from boardmgmt.server.services.roles import RoleService

router = APIRouter()


@router.get(
    "",
    response_model=List[RoleRead],
    dependencies=[Depends(require_permission(AppModule.settings, Permission.view))],
    summary="List Roles",
    description="All roles with their permission matrix.",
)
async def list_roles(session: SessionDep) -> List[RoleRead]:
    return await RoleService(session).get_roles()


@router.get(
    "/names",
    response_model=List[str],
    dependencies=[Depends(require_permission(AppModule.settings, Permission.view))],
    summary="List Role Names",
)
async def list_role_names(session: SessionDep) -> List[str]:
    return await RoleService(session).get_role_names()


@router.post(
    "",
    response_model=IdResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(AppModule.settings, Permission.create))],
    summary="Create Role",
    description="Create a role. Creating a role whose name already exists returns the existing id.",
    response_description="Id of the role.",
)
async def create_role(payload: RoleCreate, session: SessionDep) -> IdResponse:
    return IdResponse(id=await RoleService(session).create(payload.name))


@router.put(
    "/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission(AppModule.settings, Permission.update))],
    summary="Update Role",
    description="Rename a role and, when given, replace its permission matrix.",
    responses={
        400: {"model": ErrorResponse, "description": "Name already taken"},
        404: {"model": ErrorResponse, "description": "Role not found"},
    },
)
async def update_role(role_id: str, payload: RoleUpdate, session: SessionDep) -> None:
    await RoleService(session).rename_with_permissions(role_id, payload.name, payload.permissions)


@router.delete(
    "/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission(AppModule.settings, Permission.delete))],
    summary="Delete Role",
    description="Delete a role together with its permissions and user assignments.",
)
async def delete_role(role_id: str, session: SessionDep) -> None:
    await RoleService(session).delete(role_id)


@router.get(
    "/{role_id}/permissions",
    response_model=Dict[int, int],
    dependencies=[Depends(require_permission(AppModule.settings, Permission.view))],
    summary="Get Role Permissions",
    response_description="Module id to permission bitmask.",
)
async def get_role_permissions(role_id: str, session: SessionDep) -> Dict[int, int]:
    return await RoleService(session).get_role_permissions(role_id)


@router.put(
    "/{role_id}/permissions",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission(AppModule.settings, Permission.update))],
    summary="Set Role Permissions",
    description="Replace the whole permission matrix of a role. Masks are clamped to the known flags.",
)
async def set_role_permissions(role_id: str, payload: RolePermissionsUpdate, session: SessionDep) -> None:
    """
    Replace role permissions.

    - **permissions**: Module id to bitmask, e.g. `{"2": 7}` for Meetings view/create/update
    """
    await RoleService(session).set_role_permissions(role_id, payload.permissions)

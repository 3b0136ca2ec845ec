"""
Current User Endpoints.

Profile and effective permissions of the authenticated caller.
"""

from typing import Dict

from fastapi import APIRouter

from boardmgmt.core.models.io.auth import MeResponse
from boardmgmt.server.services.auth import AuthService
from boardmgmt.server.services.deps import CurrentUserDep, SessionDep
from boardmgmt.server.services.permissions import PermissionService

router = APIRouter()


@router.get(
    "",
    response_model=MeResponse,
    summary="Get Current User",
    description="Profile, role names and permission matrix of the authenticated user.",
    response_description="The current user.",
)
async def get_me(session: SessionDep, user: CurrentUserDep) -> MeResponse:
    return await AuthService(session).me(user.id)


@router.get(
    "/permissions",
    response_model=Dict[int, int],
    summary="Get My Permissions",
    description="Module id to permission bitmask, OR-ed over all roles of the current user.",
    response_description="Permission matrix.",
)
async def get_my_permissions(session: SessionDep, user: CurrentUserDep) -> Dict[int, int]:
    """
    Effective permissions.

    Modules without any granted permission are omitted.
    """
    return await PermissionService(session, user.id).get_matrix()

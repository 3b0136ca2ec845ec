"""
User Management Endpoints.

Searching, editing, activating and deleting user accounts. All routes require the
matching permission on the Users module.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from boardmgmt.core.models.domain.permissions import AppModule, Permission
from boardmgmt.core.models.io.common import CountResponse, ErrorResponse, Page
from boardmgmt.core.models.io.users import (
    AssignRoleRequest,
    UserActiveUpdate,
    UserCreate,
    UserRead,
    UserTypeaheadItem,
    UserUpdate,
)
from boardmgmt.server.services.deps import SessionDep, require_permission
from boardmgmt.server.services.roles import RoleService
from boardmgmt.server.services.users import MAX_PAGE_SIZE, UserService

router = APIRouter()

can_view = Depends(require_permission(AppModule.users, Permission.view))
can_create = Depends(require_permission(AppModule.users, Permission.create))
can_update = Depends(require_permission(AppModule.users, Permission.update))
can_delete = Depends(require_permission(AppModule.users, Permission.delete))


@router.get(
    "",
    response_model=Page[UserRead],
    dependencies=[can_view],
    summary="List Users",
    description="Search users by name or email with optional role, department and activity filters.",
    response_description="One page of users ordered by name.",
)
async def list_users(
    session: SessionDep,
    q: Optional[str] = None,
    active_only: bool = False,
    roles: Optional[List[str]] = Query(default=None),
    department_id: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=MAX_PAGE_SIZE),
) -> Page[UserRead]:
    """
    List users.

    - **q**: Matches first name, last name, display name or email
    - **roles**: Repeatable; users holding any of the roles are returned
    - **department_id**: Restrict to one department
    """
    return await UserService(session).list(
        q=q, active_only=active_only, roles=roles, department_id=department_id, page=page, page_size=page_size
    )


@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[can_create],
    summary="Create User",
    description="Create an account with a chosen existing role. Public sign-up only grants BoardMember.",
    responses={400: {"model": ErrorResponse, "description": "Invalid input, unknown role or email already registered"}},
)
async def create_user(payload: UserCreate, session: SessionDep) -> UserRead:
    return await UserService(session).create(payload)


@router.get(
    "/typeahead",
    response_model=List[UserTypeaheadItem],
    dependencies=[can_view],
    summary="User Typeahead",
    description="Small list of active users for recipient and attendee pickers.",
)
async def typeahead(session: SessionDep, q: Optional[str] = None, take: int = 10) -> List[UserTypeaheadItem]:
    return await UserService(session).typeahead(q, take)


@router.get(
    "/active-count",
    response_model=CountResponse,
    dependencies=[can_view],
    summary="Count Active Users",
)
async def active_count(session: SessionDep) -> CountResponse:
    return CountResponse(count=await UserService(session).active_count())


@router.get(
    "/{user_id}",
    response_model=UserRead,
    dependencies=[can_view],
    summary="Get User",
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
)
async def get_user(user_id: str, session: SessionDep) -> UserRead:
    return await UserService(session).get(user_id)


@router.patch(
    "/{user_id}",
    response_model=UserRead,
    dependencies=[can_update],
    summary="Update User",
    description="Partially update a user. Supplying a role replaces all of the user's roles.",
    response_description="The updated user.",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input or email already in use"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def update_user(user_id: str, payload: UserUpdate, session: SessionDep) -> UserRead:
    """
    Update a user.

    Only fields present in the body are changed. A new password is re-hashed.
    """
    return await UserService(session).update(user_id, **payload.model_dump(exclude_unset=True))


@router.patch(
    "/{user_id}/active",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[can_update],
    summary="Activate or Deactivate User",
    description="Inactive users can no longer log in or use existing tokens.",
)
async def set_active(user_id: str, payload: UserActiveUpdate, session: SessionDep) -> None:
    await UserService(session).set_active(user_id, payload.is_active)


@router.post(
    "/{user_id}/role",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[can_update],
    summary="Assign Role",
    description="Add a role to the user by name. The role is created when it does not exist yet.",
)
async def assign_role(user_id: str, payload: AssignRoleRequest, session: SessionDep) -> None:
    await RoleService(session).assign_role(user_id, payload.role)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[can_delete],
    summary="Delete User",
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
)
async def delete_user(user_id: str, session: SessionDep) -> None:
    await UserService(session).delete(user_id)

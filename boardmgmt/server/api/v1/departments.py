"""
Department Endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, status

from boardmgmt.core.models.domain.permissions import AppModule, Permission
from boardmgmt.core.models.io.common import ErrorResponse
from boardmgmt.core.models.io.departments import DepartmentCreate, DepartmentRead, DepartmentUpdate
from boardmgmt.server.services.departments import DepartmentService
from boardmgmt.server.services.deps import SessionDep, require_permission

router = APIRouter()


@router.get(
    "",
    response_model=List[DepartmentRead],
    dependencies=[Depends(require_permission(AppModule.settings, Permission.view))],
    summary="List Departments",
    description="Departments with their user counts, optionally filtered by name.",
)
async def list_departments(
    session: SessionDep, q: Optional[str] = None, active_only: bool = False
) -> List[DepartmentRead]:
    return await DepartmentService(session).list(q=q, active_only=active_only)


@router.post(
    "",
    response_model=DepartmentRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(AppModule.settings, Permission.create))],
    summary="Create Department",
    responses={400: {"model": ErrorResponse, "description": "Name missing or already used"}},
)
async def create_department(payload: DepartmentCreate, session: SessionDep) -> DepartmentRead:
    return await DepartmentService(session).create(payload.name, payload.description, payload.is_active)


@router.put(
    "/{department_id}",
    response_model=DepartmentRead,
    dependencies=[Depends(require_permission(AppModule.settings, Permission.update))],
    summary="Update Department",
    responses={404: {"model": ErrorResponse, "description": "Department not found"}},
)
async def update_department(department_id: str, payload: DepartmentUpdate, session: SessionDep) -> DepartmentRead:
    return await DepartmentService(session).update(department_id, **payload.model_dump(exclude_unset=True))


@router.delete(
    "/{department_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission(AppModule.settings, Permission.delete))],
    summary="Delete Department",
    description="Delete a department. Its users are detached rather than deleted.",
)
async def delete_department(department_id: str, session: SessionDep) -> None:
    await DepartmentService(session).delete(department_id)

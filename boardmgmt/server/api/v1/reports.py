"""
Report Endpoints.

Monthly metrics for the reports page and generation of downloadable HTML reports.
"""

from typing import List

from fastapi import APIRouter, Depends, Query, Request, status

from boardmgmt.core.models.domain.permissions import AppModule, Permission
from boardmgmt.core.models.io.common import IdResponse
from boardmgmt.core.models.io.reports import ReportGenerateRequest, ReportRead, ReportsDashboard
from boardmgmt.server.core.config import settings
from boardmgmt.server.services.deps import CurrentUserDep, SessionDep, require_permission
from boardmgmt.server.services.reports import ReportService

router = APIRouter()


@router.get(
    "/dashboard",
    response_model=ReportsDashboard,
    dependencies=[Depends(require_permission(AppModule.reports, Permission.view))],
    summary="Reports Dashboard",
    description="Attendance, voting and document series per month plus overall performance metrics.",
)
async def reports_dashboard(session: SessionDep, months: int = Query(default=6, ge=1, le=36)) -> ReportsDashboard:
    return await ReportService(session).dashboard(months)


@router.get(
    "/recent",
    response_model=List[ReportRead],
    dependencies=[Depends(require_permission(AppModule.reports, Permission.view))],
    summary="Recent Reports",
)
async def recent_reports(session: SessionDep, take: int = Query(default=10, ge=1, le=100)) -> List[ReportRead]:
    return await ReportService(session).recent(take)


@router.post(
    "/generate",
    response_model=IdResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission(AppModule.reports, Permission.create))],
    summary="Generate Report",
    description="Render a report for a named or custom period and store it under /uploads/reports.",
    response_description="Id of the generated report.",
)
async def generate_report(
    payload: ReportGenerateRequest, request: Request, session: SessionDep, user: CurrentUserDep
) -> IdResponse:
    """
    Generate a report.

    - **period**: `last-month`, `last-quarter`, `last-year` or `custom` with **start**/**end**
    """
    base_url = settings.public_base_url or str(request.base_url)
    return IdResponse(id=await ReportService(session).generate(user.id, payload, base_url=base_url))

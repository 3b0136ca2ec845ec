"""
Dashboard Endpoints.

Counters and recent items for the landing page of the signed-in user.
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from boardmgmt.core.models.domain.enums import StatsKind
from boardmgmt.core.models.domain.permissions import AppModule, Permission
from boardmgmt.core.models.io.common import Page
from boardmgmt.core.models.io.dashboard import (
    ActivityItem,
    DashboardStats,
    RecentDocument,
    RecentMeeting,
    StatsDetailItem,
)
from boardmgmt.server.services.dashboard import DashboardService
from boardmgmt.server.services.deps import CurrentUserDep, SessionDep, require_permission

router = APIRouter(dependencies=[Depends(require_permission(AppModule.dashboard, Permission.view))])


@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Dashboard Counters",
    description="Upcoming meetings, documents, pending votes and unread messages for the caller.",
)
async def stats(session: SessionDep, user: CurrentUserDep) -> DashboardStats:
    return await DashboardService(session, user.id).stats()


@router.get(
    "/stats/detail",
    response_model=Page[StatsDetailItem],
    summary="Counter Drill-down",
    description="The rows behind one dashboard counter: upcoming meetings, visible documents, "
    "the caller's pending votes or unread messages.",
)
async def stats_detail(
    session: SessionDep,
    user: CurrentUserDep,
    kind: StatsKind = Query(...),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=100),
) -> Page[StatsDetailItem]:
    return await DashboardService(session, user.id).stats_detail(kind, page, page_size)


@router.get("/recent-meetings", response_model=List[RecentMeeting], summary="Next Meetings")
async def recent_meetings(
    session: SessionDep, user: CurrentUserDep, take: int = Query(default=5, ge=1, le=50)
) -> List[RecentMeeting]:
    return await DashboardService(session, user.id).recent_meetings(take)


@router.get("/recent-documents", response_model=List[RecentDocument], summary="Latest Documents")
async def recent_documents(
    session: SessionDep, user: CurrentUserDep, take: int = Query(default=5, ge=1, le=50)
) -> List[RecentDocument]:
    return await DashboardService(session, user.id).recent_documents(take)


@router.get(
    "/recent-activity",
    response_model=List[ActivityItem],
    summary="Activity Feed",
    description="Document uploads, scheduled meetings, new polls and sent messages, newest first.",
)
async def recent_activity(
    session: SessionDep, user: CurrentUserDep, take: int = Query(default=10, ge=1, le=100)
) -> List[ActivityItem]:
    return await DashboardService(session, user.id).recent_activity(take)

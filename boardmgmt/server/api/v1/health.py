"""
Liveness, readiness and version endpoints.

``/health`` answers as long as the process serves requests. ``/health/ready``
also runs a trivial query so orchestrators hold traffic until the database is
reachable.
"""

from fastapi import APIRouter, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from boardmgmt.core.logging_config import get_logger
from boardmgmt.core.models.io.common import HealthStatus, VersionInfo
from boardmgmt.server.core import constant
from boardmgmt.server.services.deps import SessionDep

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthStatus, response_model_exclude_none=True, summary="Liveness")
async def health_check() -> HealthStatus:
    return HealthStatus(status="ok")


@router.get(
    "/health/ready",
    response_model=HealthStatus,
    summary="Readiness",
    description="Liveness plus a database round trip. Returns 503 while the database is unreachable.",
    responses={503: {"model": HealthStatus, "description": "Database unreachable"}},
)
async def readiness(response: Response, session: SessionDep) -> HealthStatus:
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning(f"Readiness check failed: {e}")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthStatus(status="unavailable", database="unreachable")
    return HealthStatus(status="ok", database="ok")


@router.get("/version", response_model=VersionInfo, summary="API Version")
async def version() -> VersionInfo:
    return VersionInfo(name=constant.PROJECT_NAME, version=constant.VERSION, api=constant.API_V1_STR)

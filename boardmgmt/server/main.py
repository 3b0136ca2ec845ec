"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request logging), registers the exception handlers and includes all API routers.
Uploaded files are served from the ``/uploads`` static mount.
"""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from boardmgmt.core.database import init_db
from boardmgmt.core.logging_config import get_logger, setup_logging

from .api.v1 import (
    auth,
    calendar,
    chat,
    dashboard,
    departments,
    documents,
    folders,
    health,
    me,
    meetings,
    messages,
    realtime,
    reports,
    roles,
    users,
    votes,
)
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import RequestLoggingMiddleware

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Creates the schema when auto-create is enabled and seeds default roles,
    permissions, the administrator and folders when seeding is enabled.
    """
    # Startup
    try:
        logger.info("Starting up BoardMgmt Server...")
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    # Shutdown
    logger.info("Shutting down BoardMgmt Server...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    BoardMgmt Server API

    Backend for board governance: members and roles, meetings with agendas and
    transcripts, documents, voting, internal messages, chat and reports.
    """,
    version=constant.VERSION,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=settings.cors.allow_methods,
    allow_headers=settings.cors.allow_headers,
)

setup_exception_handlers(app)


app.include_router(health.router, tags=["health"])
app.include_router(auth.router, prefix=f"{constant.API_V1_STR}/auth", tags=["auth"])
app.include_router(me.router, prefix=f"{constant.API_V1_STR}/me", tags=["me"])
app.include_router(users.router, prefix=f"{constant.API_V1_STR}/users", tags=["users"])
app.include_router(roles.router, prefix=f"{constant.API_V1_STR}/roles", tags=["roles"])
app.include_router(departments.router, prefix=f"{constant.API_V1_STR}/departments", tags=["departments"])
app.include_router(meetings.router, prefix=f"{constant.API_V1_STR}/meetings", tags=["meetings"])
app.include_router(calendar.router, prefix=f"{constant.API_V1_STR}/calendar", tags=["calendar"])
app.include_router(documents.router, prefix=f"{constant.API_V1_STR}/documents", tags=["documents"])
app.include_router(folders.router, prefix=f"{constant.API_V1_STR}/folders", tags=["folders"])
app.include_router(votes.router, prefix=f"{constant.API_V1_STR}/votes", tags=["votes"])
app.include_router(messages.router, prefix=f"{constant.API_V1_STR}/messages", tags=["messages"])
app.include_router(chat.router, prefix=f"{constant.API_V1_STR}/chat", tags=["chat"])
app.include_router(dashboard.router, prefix=f"{constant.API_V1_STR}/dashboard", tags=["dashboard"])
app.include_router(reports.router, prefix=f"{constant.API_V1_STR}/reports", tags=["reports"])
app.include_router(realtime.router, prefix=f"{constant.API_V1_STR}/realtime", tags=["realtime"])

Path(settings.uploads_root).mkdir(parents=True, exist_ok=True)
app.mount(constant.UPLOADS_URL_PREFIX, StaticFiles(directory=settings.uploads_root), name="uploads")

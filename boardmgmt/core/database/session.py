"""
Global database session and engine management.

This module manages the global AsyncEngine and async_sessionmaker instances
that are used throughout the application for database access.
"""

from __future__ import annotations

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from boardmgmt.core.logging_config import get_logger
from boardmgmt.server.core.config import settings

from .utils import create_all, create_engine, create_sessionmaker

logger = get_logger(__name__)

# Create global engine and session factory
engine = create_engine(settings.database_url)
async_session_maker = create_sessionmaker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Yields:
        AsyncSession: An asynchronous SQLAlchemy session.
    """
    async with async_session_maker() as session:
        yield session


async def init_db() -> None:
    """
    Initialize the database.

    In production the schema is owned by Alembic migrations and this function only
    seeds defaults when ``SEED_ON_STARTUP`` is set. For local development
    ``DATABASE_AUTO_CREATE`` creates the tables from ORM metadata first.
    """
    if settings.database_auto_create:
        logger.info("Creating tables from ORM metadata")
        await create_all(engine)

    if settings.seed_on_startup:
        from boardmgmt.server.services.seeding import seed_defaults

        async with async_session_maker() as session:
            await seed_defaults(session)

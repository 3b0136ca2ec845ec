"""
Base database models and utilities.

This module provides the foundational database components used across
all entities in the centralized database layer using SQLModel.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import ConfigDict
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class Base(SQLModel):
    """Base class for all SQLModel entities."""

    model_config = ConfigDict(arbitrary_types_allowed=True)


def new_id() -> str:
    """Primary key generator for string UUID ids."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from backends that drop the offset (SQLite)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def id_field(**kwargs) -> str:
    return Field(default_factory=new_id, primary_key=True, max_length=36, **kwargs)


def created_at_field(**kwargs) -> datetime:
    return Field(default_factory=utc_now, sa_type=DateTime(timezone=True), **kwargs)


def datetime_field(default=None, **kwargs) -> Optional[datetime]:
    return Field(default=default, sa_type=DateTime(timezone=True), **kwargs)

"""Department entity model."""

from __future__ import annotations

from typing import Optional

from sqlmodel import Field

from ..base import Base, id_field


class Department(Base, table=True):
    """Organizational department users can belong to.

    Table: departments
    """

    __tablename__ = "departments"

    id: str = id_field()
    name: str = Field(max_length=100, unique=True, index=True)
    description: Optional[str] = Field(default=None, max_length=500)
    is_active: bool = Field(default=True)

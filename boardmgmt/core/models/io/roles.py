"""Role and permission I/O models."""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, Field


class RoleRead(BaseModel):
    """Role with its module permission masks."""

    id: str
    name: str
    permissions: Dict[int, int] = Field(default_factory=dict, description="Module id to permission bitmask")


class RoleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class RoleUpdate(BaseModel):
    """Rename a role and, optionally, replace its permissions in the same transaction."""

    name: str = Field(min_length=1, max_length=100)
    permissions: Optional[Dict[int, int]] = None


class RolePermissionsUpdate(BaseModel):
    permissions: Dict[int, int] = Field(description="Module id to permission bitmask; zero masks are dropped")

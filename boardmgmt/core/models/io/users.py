"""User administration I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserRead(BaseModel):
    """Schema for reading a user from the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: str
    last_name: str
    display_name: Optional[str] = None
    name: str
    is_active: bool
    department_id: Optional[str] = None
    roles: List[str] = Field(default_factory=list)
    created_at: datetime


class UserCreate(BaseModel):
    """Account created by a user administrator."""

    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=6, max_length=200)
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)
    role: str = Field(default="BoardMember", min_length=1, max_length=100, description="Existing role name")
    department_id: Optional[str] = None


class UserUpdate(BaseModel):
    """Partial update; omitted fields keep their value."""

    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    display_name: Optional[str] = Field(default=None, max_length=200)
    email: Optional[str] = Field(default=None, max_length=320)
    password: Optional[str] = Field(default=None, min_length=6, max_length=200)
    role: Optional[str] = Field(default=None, description="Replaces all roles with this one")
    department_id: Optional[str] = None
    is_active: Optional[bool] = None


class UserActiveUpdate(BaseModel):
    is_active: bool


class AssignRoleRequest(BaseModel):
    role: str = Field(min_length=1, max_length=100)


class UserTypeaheadItem(BaseModel):
    id: str
    name: str
    email: str

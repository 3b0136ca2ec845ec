"""Authentication I/O models."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """Schema for self-registration. New accounts get the BoardMember role."""

    email: str = Field(min_length=3, max_length=320, examples=["jane.doe@board.local"])
    password: str = Field(min_length=6, max_length=200)
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)


class LoginRequest(BaseModel):
    email: str
    password: str


class AuthUser(BaseModel):
    """Identity part of the login response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: str
    last_name: str
    display_name: Optional[str] = None
    name: str


class LoginResponse(BaseModel):
    """Bearer token with the caller's roles and aggregated permission matrix."""

    token: str
    user: AuthUser
    roles: List[str]
    permissions: Dict[int, int] = Field(description="Module id to permission bitmask")


class MeResponse(BaseModel):
    """Profile of the authenticated user."""

    id: str
    email: str
    first_name: str
    last_name: str
    display_name: Optional[str] = None
    name: str
    department_id: Optional[str] = None
    roles: List[str]
    permissions: Dict[int, int]

"""
Identity entity models.

Users, roles, user-role membership and the per-role module permission masks.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from boardmgmt.core.models.domain.text import full_name

from ..base import Base, created_at_field, datetime_field, id_field


class User(Base, table=True):
    """Application user.

    Table: users
    """

    __tablename__ = "users"

    id: str = id_field()
    email: str = Field(max_length=320, unique=True, index=True)
    password_hash: str = Field(max_length=200)
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)
    display_name: Optional[str] = Field(default=None, max_length=200)
    is_active: bool = Field(default=True)
    department_id: Optional[str] = Field(default=None, foreign_key="departments.id", index=True, max_length=36)
    created_at: datetime = created_at_field()
    updated_at: Optional[datetime] = datetime_field()

    @property
    def full_name(self) -> str:
        return full_name(self.first_name, self.last_name)

    @property
    def name(self) -> str:
        """Best human-readable name: display name, then full name, then email."""
        return (self.display_name or "").strip() or self.full_name or self.email

    def __repr__(self) -> str:
        return f"User(id={self.id}, email={self.email})"


class Role(Base, table=True):
    """Named role.

    Table: roles
    """

    __tablename__ = "roles"

    id: str = id_field()
    name: str = Field(max_length=100, unique=True, index=True)


class UserRole(Base, table=True):
    """Membership of a user in a role.

    Table: user_roles
    """

    __tablename__ = "user_roles"

    user_id: str = Field(foreign_key="users.id", primary_key=True, max_length=36)
    role_id: str = Field(foreign_key="roles.id", primary_key=True, max_length=36, index=True)


class RolePermission(Base, table=True):
    """Permission mask a role holds for one application module.

    Table: role_permissions
    """

    __tablename__ = "role_permissions"
    __table_args__ = (UniqueConstraint("role_id", "module", name="uq_role_permissions_role_module"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    role_id: str = Field(foreign_key="roles.id", index=True, max_length=36)
    module: int = Field(description="AppModule value")
    allowed: int = Field(default=0, description="Permission bitmask")

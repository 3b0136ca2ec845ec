"""
Permission primitives.

Permissions are stored per role and per application module as an integer bitmask.
A user's effective mask for a module is the bitwise OR of the masks of all of their
roles. Document visibility uses a separate, coarser flag set (``DocumentAccess``) that
maps onto role names.
"""

from __future__ import annotations

from enum import IntEnum, IntFlag
from typing import Dict, Iterable, List


class Permission(IntFlag):
    """Actions a role may perform inside a module."""

    none = 0
    view = 1
    create = 2
    update = 4
    delete = 8
    page = 16
    clone = 32

    @classmethod
    def all(cls) -> "Permission":
        return cls.view | cls.create | cls.update | cls.delete | cls.page | cls.clone

    @classmethod
    def normalize(cls, mask: int) -> int:
        """Drop bits that do not correspond to a defined permission."""
        return int(mask) & int(cls.all())


class AppModule(IntEnum):
    """Application areas that carry their own permission mask."""

    users = 1
    meetings = 2
    documents = 3
    folders = 4
    votes = 5
    dashboard = 6
    settings = 7
    reports = 8
    messages = 9


class AppRoles:
    """Built-in role names."""

    admin = "Admin"
    board_member = "BoardMember"
    committee_member = "CommitteeMember"
    observer = "Observer"
    secretary = "Secretary"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.admin, cls.board_member, cls.committee_member, cls.observer, cls.secretary]


class DocumentAccess(IntFlag):
    """Audience flags for documents, one bit per built-in role group."""

    none = 0
    board_members = 1
    committee_members = 2
    observers = 4
    administrators = 8
    all = 15

    @classmethod
    def default(cls) -> "DocumentAccess":
        return cls.administrators | cls.board_members


_ACCESS_TO_ROLE = {
    DocumentAccess.board_members: AppRoles.board_member,
    DocumentAccess.committee_members: AppRoles.committee_member,
    DocumentAccess.observers: AppRoles.observer,
    DocumentAccess.administrators: AppRoles.admin,
}


def to_roles(access: DocumentAccess | int) -> List[str]:
    """Role names covered by an access mask, in flag order."""
    access = DocumentAccess(int(access) & int(DocumentAccess.all))
    return [role for flag, role in _ACCESS_TO_ROLE.items() if access & flag]


def to_access_mask(role_names: Iterable[str]) -> DocumentAccess:
    """Access mask covering the given role names; unknown names are ignored."""
    wanted = {name.lower() for name in role_names}
    mask = DocumentAccess.none
    for flag, role in _ACCESS_TO_ROLE.items():
        if role.lower() in wanted:
            mask |= flag
    return mask


def format_permission_claims(matrix: Dict[int, int]) -> List[str]:
    """Render a module→mask matrix as ``"{module}:{mask}"`` token claims, skipping empty masks."""
    return [f"{int(module)}:{int(mask)}" for module, mask in sorted(matrix.items()) if mask]


def parse_permission_claims(claims: Iterable[str]) -> Dict[int, int]:
    """Inverse of :func:`format_permission_claims`; malformed entries are skipped."""
    matrix: Dict[int, int] = {}
    for claim in claims:
        module, sep, mask = str(claim).partition(":")
        if not sep or not module.isdigit() or not mask.isdigit():
            continue
        matrix[int(module)] = matrix.get(int(module), 0) | Permission.normalize(int(mask))
    return matrix


_READ = Permission.view | Permission.page
_EDIT = _READ | Permission.create | Permission.update | Permission.delete

# Seeded role permission matrix: role name -> {module: mask}
DEFAULT_ROLE_PERMISSIONS: Dict[str, Dict[AppModule, int]] = {
    AppRoles.admin: {module: int(Permission.all()) for module in AppModule},
    AppRoles.secretary: {
        AppModule.dashboard: int(_READ),
        AppModule.meetings: int(_EDIT),
        AppModule.documents: int(_EDIT),
        AppModule.folders: int(_EDIT),
        AppModule.votes: int(_EDIT),
        AppModule.reports: int(_READ),
        AppModule.messages: int(_READ | Permission.create | Permission.update),
        AppModule.users: int(_READ),
        AppModule.settings: int(_READ),
    },
    AppRoles.board_member: {
        AppModule.dashboard: int(_READ),
        AppModule.meetings: int(_READ),
        AppModule.documents: int(_READ),
        AppModule.folders: int(_READ),
        AppModule.votes: int(_READ | Permission.create),
        AppModule.reports: int(_READ),
        AppModule.messages: int(_READ | Permission.create),
    },
    AppRoles.committee_member: {
        AppModule.dashboard: int(_READ),
        AppModule.meetings: int(_READ),
        AppModule.documents: int(_READ),
        AppModule.folders: int(_READ),
        AppModule.votes: int(_READ),
        AppModule.reports: int(_READ),
        AppModule.messages: int(_READ | Permission.create),
    },
    AppRoles.observer: {
        AppModule.dashboard: int(_READ),
        AppModule.meetings: int(_READ),
        AppModule.reports: int(_READ),
    },
}

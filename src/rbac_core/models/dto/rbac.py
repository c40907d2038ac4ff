"""Payloads returned by access-control mutations."""

from uuid import UUID

from pydantic import BaseModel


class PermissionDeleteSummary(BaseModel):
    """Rows removed by a permission delete cascade."""

    permission_id: UUID
    name: str
    resource_permissions_removed: int
    role_permissions_removed: int


class ResourceAssignmentSummary(BaseModel):
    """Outcome of replacing a permission's resource set."""

    permission_id: UUID
    resource_ids: list[UUID]
    added: int = 0
    removed: int = 0


class RolePermissionGrantSummary(BaseModel):
    """Outcome of granting permissions to a role."""

    role_id: UUID
    assigned: int = 0
    skipped: int = 0


class RoleRevocationSummary(BaseModel):
    """Outcome of removing a role from a user."""

    user_id: UUID
    role_id: UUID
    removed: int


class RolePermissionsClearedSummary(BaseModel):
    """Outcome of removing every grant of a role."""

    role_id: UUID
    removed: int


class RoleDeleteSummary(BaseModel):
    """A deleted role and the rows removed with it."""

    role_id: UUID
    name: str
    priority: int
    permissions_removed: int
    expired_assignments_removed: int

"""Role domain models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class Role(BaseModel):
    """Role domain model."""

    id: UUID
    name: str
    priority: int
    created_by: UUID | None = None
    updated_by: UUID | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        """Pydantic config."""

        from_attributes = True


class RoleSummary(Role):
    """Role with the number of users holding it and the scope of its grants."""

    user_count: int = 0
    permission_count: int = 0
    resource_count: int = 0


class RoleRef(BaseModel):
    """Minimal reference to a role."""

    id: UUID
    name: str
    priority: int


class RoleGrant(BaseModel):
    """A permission granted to a role and the resources it is scoped to."""

    permission_id: UUID
    permission_name: str
    resources: list[str] = []


class RoleMember(BaseModel):
    """A user actively holding a role."""

    user_id: UUID
    name: str | None = None
    email: str
    assigned_by: UUID | None = None
    expires_at: datetime | None = None
    assigned_at: datetime


class RoleDetail(Role):
    """Role with its grants and active members."""

    permissions: list[RoleGrant] = []
    users: list[RoleMember] = []

"""User domain models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from rbac_core.models.domain.assignment import RoleAssignmentInfo


class UserWithRoles(BaseModel):
    """A user with the roles they actively hold."""

    id: UUID
    name: str | None = None
    email: str
    email_verified: bool = False
    created_at: datetime
    updated_at: datetime
    roles: list[RoleAssignmentInfo] = []
    effective_priority: int

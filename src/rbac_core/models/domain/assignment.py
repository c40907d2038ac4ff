"""User-role assignment domain models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class RoleAssignment(BaseModel):
    """A stored user-role assignment, active or not."""

    id: UUID
    user_id: UUID
    role_id: UUID
    assigned_by: UUID | None = None
    expires_at: datetime | None = None
    created_at: datetime

    class Config:
        """Pydantic config."""

        from_attributes = True


class RoleAssignmentInfo(BaseModel):
    """One of a user's active roles."""

    role_id: UUID
    role_name: str
    priority: int
    assigned_by: UUID | None = None
    expires_at: datetime | None = None
    assigned_at: datetime

"""Resource domain models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class Resource(BaseModel):
    """Resource domain model."""

    id: UUID
    name: str
    created_by: UUID | None = None
    updated_by: UUID | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        """Pydantic config."""

        from_attributes = True


class ResourceSummary(Resource):
    """Resource with the number of permissions attached to it."""

    permission_count: int = 0

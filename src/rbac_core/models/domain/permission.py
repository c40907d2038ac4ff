"""Permission domain models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from rbac_core.models.domain.role import RoleRef


class Permission(BaseModel):
    """Permission domain model."""

    id: UUID
    name: str
    created_by: UUID | None = None
    updated_by: UUID | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        """Pydantic config."""

        from_attributes = True


class ResourceRef(BaseModel):
    """Minimal reference to a resource."""

    id: UUID
    name: str


class PermissionWithResources(Permission):
    """Permission with the resources it applies to."""

    resources: list[ResourceRef] = []


class GrantedPermission(BaseModel):
    """An (action, resource) pair a user is authorized for.

    Hashable so resolved grants can be collected in a set.
    """

    action: str
    resource: str

    class Config:
        """Pydantic config."""

        frozen = True

    @property
    def legacy_name(self) -> str:
        """Combined ``resource.action`` form."""
        return f"{self.resource}.{self.action}"


class PermissionSummary(PermissionWithResources):
    """Permission with its resources and the roles granted it on any of them."""

    roles: list[RoleRef] = []
    resource_count: int = 0
    role_count: int = 0


class PermissionResourceLink(BaseModel):
    """A resource a permission applies to, with the pair that links them."""

    resource_permission_id: UUID
    resource_id: UUID
    resource_name: str
    assigned_at: datetime


class PermissionDetail(Permission):
    """Permission with its resource pairs and the roles holding it."""

    resources: list[PermissionResourceLink] = []
    roles: list[RoleRef] = []

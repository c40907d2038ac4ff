"""Paginated listing payloads."""

import math

from pydantic import BaseModel

from rbac_core.models.domain.permission import PermissionSummary
from rbac_core.models.domain.role import RoleSummary
from rbac_core.models.domain.user import UserWithRoles


class PageInfo(BaseModel):
    """Position of a page within a filtered listing."""

    total: int
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def build(cls, total: int, page: int, page_size: int) -> "PageInfo":
        """Derive the page count from the filtered total."""
        return cls(
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size),
        )


class RoleListResponse(BaseModel):
    """A page of roles."""

    items: list[RoleSummary]
    pagination: PageInfo


class PermissionListResponse(BaseModel):
    """A page of permissions."""

    items: list[PermissionSummary]
    pagination: PageInfo


class UserListResponse(BaseModel):
    """A page of users with their active roles."""

    items: list[UserWithRoles]
    pagination: PageInfo

"""Data Transfer Objects package."""

from rbac_core.models.dto.listing import (
    PageInfo,
    PermissionListResponse,
    RoleListResponse,
    UserListResponse,
)
from rbac_core.models.dto.operation import ErrorDescriptor, OperationResult
from rbac_core.models.dto.rbac import (
    PermissionDeleteSummary,
    ResourceAssignmentSummary,
    RoleDeleteSummary,
    RolePermissionGrantSummary,
    RolePermissionsClearedSummary,
    RoleRevocationSummary,
)

__all__ = [
    "ErrorDescriptor",
    "OperationResult",
    "PageInfo",
    "PermissionDeleteSummary",
    "PermissionListResponse",
    "ResourceAssignmentSummary",
    "RoleDeleteSummary",
    "RoleListResponse",
    "RolePermissionGrantSummary",
    "RolePermissionsClearedSummary",
    "RoleRevocationSummary",
    "UserListResponse",
]

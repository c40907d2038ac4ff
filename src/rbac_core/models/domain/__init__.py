"""Domain models package."""

from rbac_core.models.domain.assignment import RoleAssignment, RoleAssignmentInfo
from rbac_core.models.domain.permission import (
    GrantedPermission,
    Permission,
    PermissionDetail,
    PermissionResourceLink,
    PermissionSummary,
    PermissionWithResources,
    ResourceRef,
)
from rbac_core.models.domain.resource import Resource, ResourceSummary
from rbac_core.models.domain.role import (
    Role,
    RoleDetail,
    RoleGrant,
    RoleMember,
    RoleRef,
    RoleSummary,
)
from rbac_core.models.domain.user import UserWithRoles

__all__ = [
    "GrantedPermission",
    "Permission",
    "PermissionDetail",
    "PermissionResourceLink",
    "PermissionSummary",
    "PermissionWithResources",
    "Resource",
    "ResourceRef",
    "ResourceSummary",
    "Role",
    "RoleAssignment",
    "RoleAssignmentInfo",
    "RoleDetail",
    "RoleGrant",
    "RoleMember",
    "RoleRef",
    "RoleSummary",
    "UserWithRoles",
]

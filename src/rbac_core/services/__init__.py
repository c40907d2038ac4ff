"""Services package."""

from rbac_core.services.assignment_service import AssignmentService
from rbac_core.services.cache_service import CacheService, CacheTags, InvalidationSink
from rbac_core.services.permission_resolver import PermissionResolver, decode_legacy_permission
from rbac_core.services.permission_service import PermissionService
from rbac_core.services.priority_resolver import PriorityResolver
from rbac_core.services.rbac_service import RbacService
from rbac_core.services.resource_service import ResourceService
from rbac_core.services.role_service import RoleService
from rbac_core.services.user_service import UserService

__all__ = [
    "AssignmentService",
    "CacheService",
    "CacheTags",
    "InvalidationSink",
    "PermissionResolver",
    "PermissionService",
    "PriorityResolver",
    "RbacService",
    "ResourceService",
    "RoleService",
    "UserService",
    "decode_legacy_permission",
]

"""Repositories package."""

from rbac_core.repositories.base import BaseRepository
from rbac_core.repositories.permission_repository import PermissionRepository
from rbac_core.repositories.resource_permission_repository import ResourcePermissionRepository
from rbac_core.repositories.resource_repository import ResourceRepository
from rbac_core.repositories.role_permission_repository import RolePermissionRepository
from rbac_core.repositories.role_repository import RoleRepository
from rbac_core.repositories.user_repository import UserRepository
from rbac_core.repositories.user_role_repository import UserRoleRepository

__all__ = [
    "BaseRepository",
    "PermissionRepository",
    "ResourcePermissionRepository",
    "ResourceRepository",
    "RolePermissionRepository",
    "RoleRepository",
    "UserRepository",
    "UserRoleRepository",
]

"""SQLAlchemy ORM models package."""

from rbac_core.models.orm.base import Base
from rbac_core.models.orm.permission import PermissionORM
from rbac_core.models.orm.resource import ResourceORM
from rbac_core.models.orm.resource_permission import ResourcePermissionORM
from rbac_core.models.orm.role import RoleORM
from rbac_core.models.orm.role_permission import RolePermissionORM
from rbac_core.models.orm.user import UserORM
from rbac_core.models.orm.user_role import UserRoleORM

__all__ = [
    "Base",
    "UserORM",
    "RoleORM",
    "PermissionORM",
    "ResourceORM",
    "ResourcePermissionORM",
    "RolePermissionORM",
    "UserRoleORM",
]

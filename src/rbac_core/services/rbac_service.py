"""Access-control façade.

Single entry point for every role, permission, resource and assignment
mutation. Each mutation runs in its own transaction in the underlying
service and comes back as an :class:`OperationResult`: the payload plus the
cache tags it made stale, or an error descriptor with a reason code. Tags are
also pushed to the invalidation sink when one is configured.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import TypeVar
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_core.exceptions import AccessControlError
from rbac_core.models.domain.assignment import RoleAssignmentInfo
from rbac_core.models.domain.permission import GrantedPermission, PermissionDetail
from rbac_core.models.domain.resource import ResourceSummary
from rbac_core.models.domain.role import RoleDetail
from rbac_core.models.dto.listing import PermissionListResponse, RoleListResponse, UserListResponse
from rbac_core.models.dto.operation import OperationResult
from rbac_core.models.dto.rbac import RolePermissionsClearedSummary, RoleRevocationSummary
from rbac_core.services.assignment_service import AssignmentService, assignment_tags
from rbac_core.services.cache_service import CacheTags, InvalidationSink
from rbac_core.services.permission_resolver import PermissionResolver
from rbac_core.services.permission_service import PermissionService
from rbac_core.services.priority_resolver import PriorityResolver
from rbac_core.services.resource_service import ResourceService
from rbac_core.services.role_service import RoleService
from rbac_core.services.user_service import UserService
from rbac_core.utils.secure_logging import log_warning
from rbac_core.utils.store_errors import translate_store_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RbacService:
    """Façade over the access-control services."""

    def __init__(self, session: AsyncSession, sink: InvalidationSink | None = None) -> None:
        """Initialize service with database session and optional invalidation sink."""
        self.session = session
        self.sink = sink
        self.roles = RoleService(session)
        self.permissions = PermissionService(session)
        self.resources = ResourceService(session)
        self.assignments = AssignmentService(session)
        self.users = UserService(session)
        self.priority_resolver = PriorityResolver(session)
        self.permission_resolver = PermissionResolver(session)

    async def _mutate(
        self,
        operation: str,
        action: Awaitable[T],
        tags_for: Callable[[T], list[str]],
    ) -> OperationResult:
        try:
            data = await action
        except AccessControlError as e:
            logger.info("%s rejected (%s): %s", operation, e.reason, e.message)
            return OperationResult.fail(e)

        result = OperationResult.ok(data, tags_for(data))
        await self._publish(result.tags)
        return result

    async def _publish(self, tags: list[str]) -> None:
        if self.sink is None:
            return
        for tag in tags:
            try:
                await self.sink.invalidate(tag)
            except Exception as e:
                # The mutation is committed; stale entries expire on their own TTL
                log_warning(logger, f"Failed to invalidate cache tag {tag}", e)

    async def _read(self, operation: str, action: Awaitable[T]) -> T:
        try:
            return await action
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise translate_store_error(e, operation) from e

    # =========================================================================
    # Authorization checks
    # =========================================================================

    async def has_permission(self, actor_id: UUID | None, action: str, resource_name: str) -> bool:
        """Check whether the actor may perform ``action`` on ``resource_name``.

        Raises:
            StoreError: If the store fails; treat as a denial
        """
        return await self._read(
            "has_permission",
            self.permission_resolver.has_permission(actor_id, action, resource_name),
        )

    async def resolve_permissions(self, actor_id: UUID | None) -> set[GrantedPermission]:
        """Get every (action, resource) pair the actor holds."""
        return await self._read("resolve_permissions", self.permission_resolver.resolve_permissions(actor_id))

    async def has_permissions(
        self,
        actor_id: UUID | None,
        actions: list[str],
        resource_name: str | None = None,
        require_all: bool = False,
    ) -> bool:
        """Check several actions with ANY / ALL semantics."""
        return await self._read(
            "has_permissions",
            self.permission_resolver.has_permissions(actor_id, actions, resource_name, require_all),
        )

    async def has_role(self, actor_id: UUID | None, role_names: list[str], require_all: bool = False) -> bool:
        """Check whether the actor actively holds the named role(s)."""
        return await self._read("has_role", self.permission_resolver.has_role(actor_id, role_names, require_all))

    async def has_legacy_permission(self, actor_id: UUID | None, combined_name: str) -> bool:
        """Check a permission given as ``resource.action``."""
        return await self._read(
            "has_legacy_permission",
            self.permission_resolver.has_legacy_permission(actor_id, combined_name),
        )

    async def can_modify_user(self, actor_id: UUID | None, target_user_id: UUID) -> bool:
        """Check whether the actor outranks the target user (or is the target)."""
        return await self._read(
            "can_modify_user",
            self.permission_resolver.can_modify_user(actor_id, target_user_id),
        )

    async def effective_priority(self, user_id: UUID | None) -> int:
        """Get a user's effective priority."""
        return await self._read("effective_priority", self.priority_resolver.effective_priority(user_id))

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_roles(
        self,
        page: int = 1,
        page_size: int = 20,
        search: str | None = None,
        priority_min: int | None = None,
        priority_max: int | None = None,
        has_users: bool | None = None,
    ) -> RoleListResponse:
        """List a page of roles with user, permission and resource counts."""
        return await self._read(
            "list_roles",
            self.roles.list_roles(page, page_size, search, priority_min, priority_max, has_users),
        )

    async def get_role(self, role_id: UUID) -> RoleDetail:
        """Get a role with grants and members.

        Raises:
            RoleNotFoundError: If the role does not exist
        """
        return await self._read("get_role", self.roles.get_role(role_id))

    async def list_permissions(
        self,
        page: int = 1,
        page_size: int = 20,
        search: str | None = None,
        resource_id: UUID | None = None,
    ) -> PermissionListResponse:
        """List a page of permissions with their resources and roles."""
        return await self._read(
            "list_permissions",
            self.permissions.list_permissions(page, page_size, search, resource_id),
        )

    async def get_permission(self, permission_id: UUID) -> PermissionDetail:
        """Get a permission with its resource pairs and roles.

        Raises:
            PermissionNotFoundError: If the permission does not exist
        """
        return await self._read("get_permission", self.permissions.get_permission(permission_id))

    async def list_resources(self) -> list[ResourceSummary]:
        """List resources with permission counts."""
        return await self._read("list_resources", self.resources.list_resources())

    async def list_users_with_roles(
        self,
        page: int = 1,
        page_size: int = 50,
        search: str | None = None,
    ) -> UserListResponse:
        """List a page of users with their active roles."""
        return await self._read(
            "list_users_with_roles",
            self.users.list_users_with_roles(page, page_size, search),
        )

    async def get_user_roles(self, user_id: UUID) -> list[RoleAssignmentInfo]:
        """Get a user's active roles by priority, then name."""
        return await self._read("get_user_roles", self.priority_resolver.active_roles(user_id))

    # =========================================================================
    # Roles
    # =========================================================================

    async def create_role(
        self,
        name: str,
        priority: int | None = None,
        created_by: UUID | None = None,
    ) -> OperationResult:
        """Create a role."""
        return await self._mutate(
            "create_role",
            self.roles.create_role(name, priority, created_by),
            lambda role: [CacheTags.ROLES, CacheTags.role(role.id)],
        )

    async def update_role(
        self,
        role_id: UUID,
        name: str | None = None,
        priority: int | None = None,
        updated_by: UUID | None = None,
    ) -> OperationResult:
        """Rename a role and/or change its priority."""
        return await self._mutate(
            "update_role",
            self.roles.update_role(role_id, name, priority, updated_by),
            lambda role: [CacheTags.ROLES, CacheTags.role(role.id), CacheTags.USERS],
        )

    async def delete_role(self, role_id: UUID, deleted_by: UUID | None = None) -> OperationResult:
        """Delete a role nobody holds, reporting the grants removed with it.

        The protected role is always refused.
        """
        return await self._mutate(
            "delete_role",
            self.roles.delete_role(role_id, deleted_by),
            lambda summary: [CacheTags.ROLES, CacheTags.role(summary.role_id), CacheTags.USERS],
        )

    async def clear_role_permissions(self, role_id: UUID, actor_id: UUID | None = None) -> OperationResult:
        """Remove every grant of a role."""

        async def clear() -> RolePermissionsClearedSummary:
            removed = await self.roles.clear_role_permissions(role_id, actor_id)
            return RolePermissionsClearedSummary(role_id=role_id, removed=removed)

        return await self._mutate(
            "clear_role_permissions",
            clear(),
            lambda summary: [CacheTags.ROLES, CacheTags.role(summary.role_id), CacheTags.PERMISSIONS],
        )

    # =========================================================================
    # Permissions
    # =========================================================================

    async def create_permission(self, name: str, created_by: UUID | None = None) -> OperationResult:
        """Create a permission."""
        return await self._mutate(
            "create_permission",
            self.permissions.create_permission(name, created_by),
            lambda permission: [CacheTags.PERMISSIONS, CacheTags.permission(permission.id)],
        )

    async def update_permission(
        self,
        permission_id: UUID,
        name: str,
        updated_by: UUID | None = None,
    ) -> OperationResult:
        """Rename a permission."""
        return await self._mutate(
            "update_permission",
            self.permissions.update_permission(permission_id, name, updated_by),
            lambda permission: [
                CacheTags.PERMISSIONS,
                CacheTags.permission(permission.id),
                CacheTags.ROLES,
                CacheTags.RESOURCES,
            ],
        )

    async def delete_permission(self, permission_id: UUID) -> OperationResult:
        """Delete a permission with its resource pairs and role grants."""
        return await self._mutate(
            "delete_permission",
            self.permissions.delete_permission(permission_id),
            lambda summary: [
                CacheTags.PERMISSIONS,
                CacheTags.permission(summary.permission_id),
                CacheTags.ROLES,
                CacheTags.RESOURCES,
            ],
        )

    async def assign_resources_to_permission(
        self,
        permission_id: UUID,
        resource_ids: list[UUID],
        assigned_by: UUID | None = None,
    ) -> OperationResult:
        """Replace the set of resources a permission applies to."""
        return await self._mutate(
            "assign_resources_to_permission",
            self.permissions.assign_resources_to_permission(permission_id, resource_ids, assigned_by),
            lambda summary: [
                CacheTags.PERMISSIONS,
                CacheTags.permission(summary.permission_id),
                CacheTags.RESOURCES,
                CacheTags.ROLES,
            ],
        )

    async def assign_permissions_to_role(
        self,
        role_id: UUID,
        permission_ids: list[UUID],
        resource_ids: list[UUID] | None = None,
        assigned_by: UUID | None = None,
    ) -> OperationResult:
        """Grant permissions to a role."""
        return await self._mutate(
            "assign_permissions_to_role",
            self.permissions.assign_permissions_to_role(role_id, permission_ids, resource_ids, assigned_by),
            lambda summary: [
                CacheTags.ROLES,
                CacheTags.role(summary.role_id),
                CacheTags.PERMISSIONS,
                CacheTags.RESOURCES,
            ],
        )

    # =========================================================================
    # Resources
    # =========================================================================

    async def create_resource(self, name: str, created_by: UUID | None = None) -> OperationResult:
        """Create a resource."""
        return await self._mutate(
            "create_resource",
            self.resources.create_resource(name, created_by),
            lambda resource: [CacheTags.RESOURCES, CacheTags.resource(resource.id)],
        )

    async def update_resource(
        self,
        resource_id: UUID,
        name: str,
        updated_by: UUID | None = None,
    ) -> OperationResult:
        """Rename a resource."""
        return await self._mutate(
            "update_resource",
            self.resources.update_resource(resource_id, name, updated_by),
            lambda resource: [
                CacheTags.RESOURCES,
                CacheTags.resource(resource.id),
                CacheTags.PERMISSIONS,
                CacheTags.ROLES,
            ],
        )

    async def delete_resource(self, resource_id: UUID) -> OperationResult:
        """Delete a resource no permission applies to."""
        return await self._mutate(
            "delete_resource",
            self.resources.delete_resource(resource_id),
            lambda resource: [CacheTags.RESOURCES, CacheTags.resource(resource.id)],
        )

    # =========================================================================
    # Assignments
    # =========================================================================

    async def assign_role_to_user(
        self,
        user_id: UUID,
        role_id: UUID,
        assigned_by: UUID | None = None,
        expires_at: datetime | None = None,
    ) -> OperationResult:
        """Assign a role to a user, optionally until ``expires_at``."""
        return await self._mutate(
            "assign_role_to_user",
            self.assignments.assign(user_id, role_id, assigned_by, expires_at),
            lambda assignment: assignment_tags(assignment.user_id, assignment.role_id),
        )

    async def remove_role_from_user(self, user_id: UUID, role_id: UUID) -> OperationResult:
        """Remove a role from a user. Removing a role the user does not hold succeeds."""

        async def revoke() -> RoleRevocationSummary:
            removed = await self.assignments.revoke(user_id, role_id)
            return RoleRevocationSummary(user_id=user_id, role_id=role_id, removed=removed)

        return await self._mutate(
            "remove_role_from_user",
            revoke(),
            lambda summary: assignment_tags(summary.user_id, summary.role_id),
        )


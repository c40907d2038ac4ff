"""Role management service."""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from rbac_core.config import get_settings
from rbac_core.exceptions import (
    HasDependentsError,
    InsufficientPrivilegeError,
    ProtectedRoleError,
    RoleAlreadyExistsError,
    RoleHasUsersError,
    RoleNotFoundError,
    ValidationError,
)
from rbac_core.models.domain.role import Role, RoleDetail, RoleGrant, RoleMember, RoleSummary
from rbac_core.models.dto.listing import PageInfo, RoleListResponse
from rbac_core.models.dto.rbac import RoleDeleteSummary
from rbac_core.models.orm.role import RoleORM
from rbac_core.repositories.role_permission_repository import RolePermissionRepository
from rbac_core.repositories.role_repository import RoleRepository
from rbac_core.services.hierarchy_guard import (
    check_role_create,
    check_role_management,
    check_role_update,
)
from rbac_core.services.priority_resolver import PriorityResolver
from rbac_core.utils.clock import utc_now
from rbac_core.utils.store_errors import store_transaction
from rbac_core.utils.validation import (
    optional_id,
    optional_search,
    require_id,
    require_name,
    validate_page,
    validate_priority,
)

logger = logging.getLogger(__name__)


class RoleService:
    """Service for role CRUD under the hierarchy rule.

    Every mutation takes an optional acting user. When given, the actor's
    effective priority is checked by the hierarchy guard; when None the
    caller is trusted.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service with database session."""
        self.session = session
        self.settings = get_settings()
        self.role_repo = RoleRepository(session)
        self.grant_repo = RolePermissionRepository(session)
        self.priority_resolver = PriorityResolver(session)

    async def _get_role(self, role_id: UUID) -> RoleORM:
        role = await self.role_repo.get(role_id)
        if role is None:
            raise RoleNotFoundError(str(role_id))
        return role

    def _enforce(self, error: InsufficientPrivilegeError | None) -> None:
        if error is not None:
            logger.warning("Hierarchy check rejected: %s", error.message)
            raise error

    async def create_role(
        self,
        name: str,
        priority: int | None = None,
        created_by: UUID | None = None,
    ) -> Role:
        """Create a role.

        Args:
            name: Role name, unique and case-sensitive
            priority: Role priority; defaults to the configured default (100)
            created_by: Acting user

        Returns:
            Created role

        Raises:
            ValidationError: If the name or priority is invalid
            RoleAlreadyExistsError: If the name is taken
            InsufficientPrivilegeError: If the actor does not outrank the priority
        """
        name = require_name(name, "Role")
        if priority is None:
            priority = self.settings.default_role_priority
        priority = validate_priority(priority, self.settings.no_role_priority)
        created_by = optional_id(created_by, "created_by")

        async with store_transaction(
            self.session, "create_role", on_conflict=lambda: RoleAlreadyExistsError(name)
        ):
            if await self.role_repo.get_by_name(name) is not None:
                raise RoleAlreadyExistsError(name)

            if created_by is not None:
                actor_priority = await self.priority_resolver.effective_priority(created_by)
                self._enforce(check_role_create(actor_priority, priority))

            role = await self.role_repo.create(
                name=name,
                priority=priority,
                created_by=created_by,
                updated_by=created_by,
            )

        logger.info("Created role %s with priority %d", role.name, role.priority)
        return Role.model_validate(role)

    async def update_role(
        self,
        role_id: UUID,
        name: str | None = None,
        priority: int | None = None,
        updated_by: UUID | None = None,
    ) -> Role:
        """Rename a role and/or change its priority.

        A priority change requires the actor to outrank both the current and
        the requested priority. Without an acting user the stored
        ``updated_by`` is kept.

        Raises:
            ValidationError: If neither field is given or a value is invalid
            RoleNotFoundError: If the role does not exist
            RoleAlreadyExistsError: If another role has the name
            InsufficientPrivilegeError: If the hierarchy check fails
        """
        role_id = require_id(role_id, "role_id")
        if name is None and priority is None:
            raise ValidationError("At least one field (name or priority) must be provided for update")
        if name is not None:
            name = require_name(name, "Role")
        if priority is not None:
            priority = validate_priority(priority, self.settings.no_role_priority)
        updated_by = optional_id(updated_by, "updated_by")

        async with store_transaction(
            self.session, "update_role", on_conflict=lambda: RoleAlreadyExistsError(name)
        ):
            role = await self._get_role(role_id)

            if name is not None and await self.role_repo.get_by_name(name, exclude_id=role_id):
                raise RoleAlreadyExistsError(name)

            if priority is not None and updated_by is not None:
                actor_priority = await self.priority_resolver.effective_priority(updated_by)
                self._enforce(check_role_update(actor_priority, role.priority, priority))

            changes: dict = {}
            if updated_by is not None:
                changes["updated_by"] = updated_by
            if name is not None:
                changes["name"] = name
            if priority is not None:
                changes["priority"] = priority
            role = await self.role_repo.update(role, **changes)

        logger.info("Updated role %s", role.id)
        return Role.model_validate(role)

    async def delete_role(self, role_id: UUID, deleted_by: UUID | None = None) -> RoleDeleteSummary:
        """Delete a role that nobody holds.

        The protected super administrator role is always refused. The role's
        own grants and lapsed assignments are removed with it.

        Returns:
            The deleted role with the number of grants and lapsed
            assignments removed alongside it

        Raises:
            RoleNotFoundError: If the role does not exist
            ProtectedRoleError: If the role is the protected role
            InsufficientPrivilegeError: If the actor does not outrank the role
            RoleHasUsersError: If users actively hold the role
        """
        role_id = require_id(role_id, "role_id")
        deleted_by = optional_id(deleted_by, "deleted_by")

        async with store_transaction(
            self.session,
            "delete_role",
            on_dependency=lambda: HasDependentsError(
                "Cannot delete role because it is still referenced", relation="user_roles"
            ),
        ):
            role = await self._get_role(role_id)

            if role.name == self.settings.protected_role_name:
                raise ProtectedRoleError(role.name)

            if deleted_by is not None:
                actor_priority = await self.priority_resolver.effective_priority(deleted_by)
                self._enforce(check_role_management(actor_priority, role.priority, "delete"))

            now = utc_now()
            user_count = await self.role_repo.count_active_users(role_id, now)
            if user_count > 0:
                raise RoleHasUsersError(role.name, user_count)

            grants_removed = await self.grant_repo.delete_for_role(role_id)
            lapsed_removed = await self.role_repo.delete_expired_assignments(role_id, now)
            summary = RoleDeleteSummary(
                role_id=role.id,
                name=role.name,
                priority=role.priority,
                permissions_removed=grants_removed,
                expired_assignments_removed=lapsed_removed,
            )
            await self.role_repo.delete(role_id)

        logger.info("Deleted role %s with %d grant(s)", summary.name, grants_removed)
        return summary

    async def clear_role_permissions(self, role_id: UUID, actor_id: UUID | None = None) -> int:
        """Remove every grant of a role.

        Returns:
            Number of grants removed
        """
        role_id = require_id(role_id, "role_id")
        actor_id = optional_id(actor_id, "actor_id")

        async with store_transaction(self.session, "clear_role_permissions"):
            role = await self._get_role(role_id)
            if actor_id is not None:
                actor_priority = await self.priority_resolver.effective_priority(actor_id)
                self._enforce(check_role_management(actor_priority, role.priority))
            removed = await self.grant_repo.delete_for_role(role_id)

        logger.info("Cleared %d permission(s) from role %s", removed, role_id)
        return removed

    async def list_roles(
        self,
        page: int = 1,
        page_size: int = 20,
        search: str | None = None,
        priority_min: int | None = None,
        priority_max: int | None = None,
        has_users: bool | None = None,
    ) -> RoleListResponse:
        """List roles by priority then name, one page at a time.

        Args:
            page: Page number (1-indexed)
            page_size: Roles per page
            search: Case-insensitive substring of the role name
            priority_min: Lowest priority value to include
            priority_max: Highest priority value to include
            has_users: Keep only roles with (True) or without (False) active users

        Returns:
            RoleListResponse with active user, permission and resource counts

        Raises:
            ValidationError: If a pagination or filter value is invalid
        """
        page, page_size = validate_page(page, page_size)
        search = optional_search(search)
        for field, value in (("priority_min", priority_min), ("priority_max", priority_max)):
            if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
                raise ValidationError(f"{field} must be an integer", {"field": field})
        if has_users is not None and not isinstance(has_users, bool):
            raise ValidationError("has_users must be a boolean", {"field": "has_users"})

        rows, total = await self.role_repo.search_with_counts(
            utc_now(),
            search=search,
            priority_min=priority_min,
            priority_max=priority_max,
            has_users=has_users,
            offset=(page - 1) * page_size,
            limit=page_size,
        )
        items = [
            RoleSummary(
                **Role.model_validate(role).model_dump(),
                user_count=user_count,
                permission_count=permission_count,
                resource_count=resource_count,
            )
            for role, user_count, permission_count, resource_count in rows
        ]
        return RoleListResponse(items=items, pagination=PageInfo.build(total, page, page_size))

    async def get_role(self, role_id: UUID) -> RoleDetail:
        """Get a role with its grants grouped by permission and its active users.

        Raises:
            RoleNotFoundError: If the role does not exist
        """
        role = await self._get_role(require_id(role_id, "role_id"))

        grants: dict[UUID, RoleGrant] = {}
        for permission_id, permission_name, resource_name in await self.role_repo.get_grants(role.id):
            grant = grants.setdefault(
                permission_id,
                RoleGrant(permission_id=permission_id, permission_name=permission_name),
            )
            grant.resources.append(resource_name)

        members = await self.role_repo.get_active_members(role.id, utc_now())
        return RoleDetail(
            **Role.model_validate(role).model_dump(),
            permissions=list(grants.values()),
            users=[RoleMember(**member) for member in members],
        )

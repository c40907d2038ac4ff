"""Permission management service.

A permission is an action name. It becomes grantable once it is paired with
resources, and roles are granted those pairs, never the bare permission.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from rbac_core.exceptions import (
    PermissionAlreadyExistsError,
    PermissionNotFoundError,
    ResourceNotFoundError,
    RoleNotFoundError,
    ValidationError,
)
from rbac_core.models.domain.permission import (
    Permission,
    PermissionDetail,
    PermissionResourceLink,
    PermissionSummary,
    ResourceRef,
)
from rbac_core.models.domain.role import RoleRef
from rbac_core.models.dto.listing import PageInfo, PermissionListResponse
from rbac_core.models.dto.rbac import (
    PermissionDeleteSummary,
    ResourceAssignmentSummary,
    RolePermissionGrantSummary,
)
from rbac_core.models.orm.permission import PermissionORM
from rbac_core.repositories.permission_repository import PermissionRepository
from rbac_core.repositories.resource_permission_repository import ResourcePermissionRepository
from rbac_core.repositories.resource_repository import ResourceRepository
from rbac_core.repositories.role_permission_repository import RolePermissionRepository
from rbac_core.repositories.role_repository import RoleRepository
from rbac_core.services.hierarchy_guard import check_role_management
from rbac_core.services.priority_resolver import PriorityResolver
from rbac_core.utils.store_errors import store_transaction
from rbac_core.utils.validation import (
    optional_id,
    optional_search,
    require_id,
    require_ids,
    require_name,
    validate_page,
)

logger = logging.getLogger(__name__)


class PermissionService:
    """Service for permissions, their resource pairs and role grants."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service with database session."""
        self.session = session
        self.permission_repo = PermissionRepository(session)
        self.resource_repo = ResourceRepository(session)
        self.pair_repo = ResourcePermissionRepository(session)
        self.grant_repo = RolePermissionRepository(session)
        self.role_repo = RoleRepository(session)
        self.priority_resolver = PriorityResolver(session)

    async def _get_permission(self, permission_id: UUID) -> PermissionORM:
        permission = await self.permission_repo.get(permission_id)
        if permission is None:
            raise PermissionNotFoundError(str(permission_id))
        return permission

    async def _require_resources(self, resource_ids: list[UUID]) -> None:
        found = {resource.id for resource in await self.resource_repo.get_many(resource_ids)}
        missing = [resource_id for resource_id in resource_ids if resource_id not in found]
        if missing:
            raise ResourceNotFoundError(missing)

    async def create_permission(self, name: str, created_by: UUID | None = None) -> Permission:
        """Create a permission.

        Raises:
            ValidationError: If the name is blank
            PermissionAlreadyExistsError: If the name is taken (case-sensitive)
        """
        name = require_name(name, "Permission")
        created_by = optional_id(created_by, "created_by")

        async with store_transaction(
            self.session, "create_permission", on_conflict=lambda: PermissionAlreadyExistsError(name)
        ):
            if await self.permission_repo.get_by_name(name) is not None:
                raise PermissionAlreadyExistsError(name)
            permission = await self.permission_repo.create(
                name=name, created_by=created_by, updated_by=created_by
            )

        logger.info("Created permission %s", permission.name)
        return Permission.model_validate(permission)

    async def update_permission(
        self,
        permission_id: UUID,
        name: str,
        updated_by: UUID | None = None,
    ) -> Permission:
        """Rename a permission.

        Raises:
            ValidationError: If the name is blank
            PermissionNotFoundError: If the permission does not exist
            PermissionAlreadyExistsError: If another permission has the name
        """
        permission_id = require_id(permission_id, "permission_id")
        name = require_name(name, "Permission")
        updated_by = optional_id(updated_by, "updated_by")

        async with store_transaction(
            self.session, "update_permission", on_conflict=lambda: PermissionAlreadyExistsError(name)
        ):
            permission = await self._get_permission(permission_id)
            if await self.permission_repo.get_by_name(name, exclude_id=permission_id):
                raise PermissionAlreadyExistsError(name)
            changes: dict = {"name": name}
            if updated_by is not None:
                changes["updated_by"] = updated_by
            permission = await self.permission_repo.update(permission, **changes)

        logger.info("Updated permission %s", permission.id)
        return Permission.model_validate(permission)

    async def delete_permission(self, permission_id: UUID) -> PermissionDeleteSummary:
        """Delete a permission together with everything built on it.

        Role grants go first, then the resource pairs, then the permission,
        all in one transaction.

        Returns:
            Counts of removed pairs and grants

        Raises:
            PermissionNotFoundError: If the permission does not exist
        """
        permission_id = require_id(permission_id, "permission_id")

        async with store_transaction(self.session, "delete_permission"):
            permission = await self._get_permission(permission_id)
            name = permission.name
            grants_removed = await self.grant_repo.delete_for_permission(permission_id)
            pairs_removed = await self.pair_repo.delete_for_permission(permission_id)
            await self.permission_repo.delete(permission_id)

        logger.info(
            "Deleted permission %s with %d resource pair(s) and %d role grant(s)",
            name,
            pairs_removed,
            grants_removed,
        )
        return PermissionDeleteSummary(
            permission_id=permission_id,
            name=name,
            resource_permissions_removed=pairs_removed,
            role_permissions_removed=grants_removed,
        )

    async def assign_resources_to_permission(
        self,
        permission_id: UUID,
        resource_ids: list[UUID],
        assigned_by: UUID | None = None,
    ) -> ResourceAssignmentSummary:
        """Replace the set of resources a permission applies to.

        Pairs outside the new set are removed along with their role grants.
        Pairs already in place are kept, so roles holding them keep their
        grants. Missing pairs are inserted, tolerating concurrent inserts of
        the same pair. An empty set changes nothing.

        Raises:
            PermissionNotFoundError: If the permission does not exist
            ResourceNotFoundError: If any resource does not exist
        """
        permission_id = require_id(permission_id, "permission_id")
        resource_ids = require_ids(resource_ids, "resource_ids")
        assigned_by = optional_id(assigned_by, "assigned_by")

        async with store_transaction(self.session, "assign_resources_to_permission"):
            await self._get_permission(permission_id)
            if not resource_ids:
                return ResourceAssignmentSummary(permission_id=permission_id, resource_ids=[])

            await self._require_resources(resource_ids)

            existing = await self.pair_repo.get_for_permission(permission_id)
            wanted = set(resource_ids)
            stale_ids = [pair.id for pair in existing if pair.resource_id not in wanted]
            await self.grant_repo.delete_for_pairs(stale_ids)
            removed = await self.pair_repo.delete_by_ids(stale_ids)

            present = {pair.resource_id for pair in existing}
            to_add = [(resource_id, permission_id) for resource_id in resource_ids if resource_id not in present]
            await self.pair_repo.add_pairs(to_add, created_by=assigned_by)

        logger.info(
            "Permission %s now applies to %d resource(s) (+%d/-%d)",
            permission_id,
            len(resource_ids),
            len(to_add),
            removed,
        )
        return ResourceAssignmentSummary(
            permission_id=permission_id,
            resource_ids=resource_ids,
            added=len(to_add),
            removed=removed,
        )

    async def assign_permissions_to_role(
        self,
        role_id: UUID,
        permission_ids: list[UUID],
        resource_ids: list[UUID] | None = None,
        assigned_by: UUID | None = None,
    ) -> RolePermissionGrantSummary:
        """Grant permissions to a role.

        With explicit resources, every (permission, resource) combination is
        granted and missing pairs are created. Without, every existing pair
        of each permission is granted.

        Returns:
            Counts of new grants and grants that already existed

        Raises:
            ValidationError: If no permission is given
            RoleNotFoundError: If the role does not exist
            PermissionNotFoundError: If any permission does not exist
            ResourceNotFoundError: If any resource does not exist
            InsufficientPrivilegeError: If the actor does not outrank the role
        """
        role_id = require_id(role_id, "role_id")
        permission_ids = require_ids(permission_ids, "permission_ids")
        if not permission_ids:
            raise ValidationError("Permission IDs array is required", {"field": "permission_ids"})
        resource_ids = require_ids(resource_ids, "resource_ids")
        assigned_by = optional_id(assigned_by, "assigned_by")

        async with store_transaction(self.session, "assign_permissions_to_role"):
            role = await self.role_repo.get(role_id)
            if role is None:
                raise RoleNotFoundError(str(role_id))

            found = {permission.id for permission in await self.permission_repo.get_many(permission_ids)}
            missing = [permission_id for permission_id in permission_ids if permission_id not in found]
            if missing:
                raise PermissionNotFoundError(str(missing[0]))

            if assigned_by is not None:
                actor_priority = await self.priority_resolver.effective_priority(assigned_by)
                error = check_role_management(actor_priority, role.priority)
                if error is not None:
                    raise error

            if resource_ids:
                await self._require_resources(resource_ids)
                await self.pair_repo.add_pairs(
                    [(resource_id, permission_id) for permission_id in permission_ids for resource_id in resource_ids],
                    created_by=assigned_by,
                )
                pairs = await self.pair_repo.get_for_permissions(permission_ids, resource_ids)
            else:
                pairs = await self.pair_repo.get_for_permissions(permission_ids)

            already_granted = await self.grant_repo.get_pair_ids_for_role(role_id)
            pair_ids = [pair.id for pair in pairs]
            new_ids = [pair_id for pair_id in pair_ids if pair_id not in already_granted]
            await self.grant_repo.grant(role_id, new_ids, created_by=assigned_by)

        summary = RolePermissionGrantSummary(
            role_id=role_id,
            assigned=len(new_ids),
            skipped=len(pair_ids) - len(new_ids),
        )
        logger.info(
            "Granted permissions to role %s: %d new, %d already existed",
            role.name,
            summary.assigned,
            summary.skipped,
        )
        return summary

    async def list_permissions(
        self,
        page: int = 1,
        page_size: int = 20,
        search: str | None = None,
        resource_id: UUID | None = None,
    ) -> PermissionListResponse:
        """List permissions by name with their resources and roles.

        Args:
            page: Page number (1-indexed)
            page_size: Permissions per page
            search: Case-insensitive substring of the permission name
            resource_id: Keep only permissions that apply to this resource

        Returns:
            PermissionListResponse with resource and role counts

        Raises:
            ValidationError: If a pagination or filter value is invalid
        """
        page, page_size = validate_page(page, page_size)
        search = optional_search(search)
        resource_id = optional_id(resource_id, "resource_id")

        permissions, total = await self.permission_repo.search(
            search=search,
            resource_id=resource_id,
            offset=(page - 1) * page_size,
            limit=page_size,
        )
        permission_ids = [permission.id for permission in permissions]
        resources = await self.permission_repo.get_resources_for(permission_ids)
        roles = await self.permission_repo.get_roles_for(permission_ids)

        items = []
        for permission in permissions:
            refs = [
                ResourceRef(id=ref_id, name=ref_name)
                for ref_id, ref_name in resources.get(permission.id, [])
            ]
            holders = [
                RoleRef(id=role_id, name=role_name, priority=priority)
                for role_id, role_name, priority in roles.get(permission.id, [])
            ]
            items.append(
                PermissionSummary(
                    **Permission.model_validate(permission).model_dump(),
                    resources=refs,
                    roles=holders,
                    resource_count=len(refs),
                    role_count=len(holders),
                )
            )
        return PermissionListResponse(items=items, pagination=PageInfo.build(total, page, page_size))

    async def get_permission(self, permission_id: UUID) -> PermissionDetail:
        """Get a permission with its resource pairs and the roles holding it.

        Raises:
            PermissionNotFoundError: If the permission does not exist
        """
        permission = await self._get_permission(require_id(permission_id, "permission_id"))
        links = await self.permission_repo.get_resource_links(permission.id)
        roles = await self.permission_repo.get_roles_for([permission.id])
        return PermissionDetail(
            **Permission.model_validate(permission).model_dump(),
            resources=[PermissionResourceLink(**link) for link in links],
            roles=[
                RoleRef(id=role_id, name=role_name, priority=priority)
                for role_id, role_name, priority in roles.get(permission.id, [])
            ],
        )

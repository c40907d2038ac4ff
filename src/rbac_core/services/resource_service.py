"""Resource management service."""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from rbac_core.exceptions import (
    HasDependentsError,
    ResourceAlreadyExistsError,
    ResourceHasPermissionsError,
    ResourceNotFoundError,
)
from rbac_core.models.domain.resource import Resource, ResourceSummary
from rbac_core.models.orm.resource import ResourceORM
from rbac_core.repositories.resource_permission_repository import ResourcePermissionRepository
from rbac_core.repositories.resource_repository import ResourceRepository
from rbac_core.utils.store_errors import store_transaction
from rbac_core.utils.validation import optional_id, require_id, require_name

logger = logging.getLogger(__name__)


class ResourceService:
    """Service for resources. Names are unique regardless of case."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service with database session."""
        self.session = session
        self.resource_repo = ResourceRepository(session)
        self.pair_repo = ResourcePermissionRepository(session)

    async def _get_resource(self, resource_id: UUID) -> ResourceORM:
        resource = await self.resource_repo.get(resource_id)
        if resource is None:
            raise ResourceNotFoundError([resource_id])
        return resource

    async def create_resource(self, name: str, created_by: UUID | None = None) -> Resource:
        """Create a resource.

        Raises:
            ValidationError: If the name is blank
            ResourceAlreadyExistsError: If the name is taken, ignoring case
        """
        name = require_name(name, "Resource")
        created_by = optional_id(created_by, "created_by")

        async with store_transaction(
            self.session, "create_resource", on_conflict=lambda: ResourceAlreadyExistsError(name)
        ):
            if await self.resource_repo.get_by_name(name) is not None:
                raise ResourceAlreadyExistsError(name)
            resource = await self.resource_repo.create(
                name=name, created_by=created_by, updated_by=created_by
            )

        logger.info("Created resource %s", resource.name)
        return Resource.model_validate(resource)

    async def update_resource(
        self,
        resource_id: UUID,
        name: str,
        updated_by: UUID | None = None,
    ) -> Resource:
        """Rename a resource. Changing only the case of its own name is allowed.

        Raises:
            ValidationError: If the name is blank
            ResourceNotFoundError: If the resource does not exist
            ResourceAlreadyExistsError: If another resource has the name
        """
        resource_id = require_id(resource_id, "resource_id")
        name = require_name(name, "Resource")
        updated_by = optional_id(updated_by, "updated_by")

        async with store_transaction(
            self.session, "update_resource", on_conflict=lambda: ResourceAlreadyExistsError(name)
        ):
            resource = await self._get_resource(resource_id)
            if await self.resource_repo.get_by_name(name, exclude_id=resource_id):
                raise ResourceAlreadyExistsError(name)
            changes: dict = {"name": name}
            if updated_by is not None:
                changes["updated_by"] = updated_by
            resource = await self.resource_repo.update(resource, **changes)

        logger.info("Updated resource %s", resource.id)
        return Resource.model_validate(resource)

    async def delete_resource(self, resource_id: UUID) -> Resource:
        """Delete a resource that no permission applies to.

        Returns:
            The deleted resource

        Raises:
            ResourceNotFoundError: If the resource does not exist
            ResourceHasPermissionsError: If permissions are still attached
        """
        resource_id = require_id(resource_id, "resource_id")

        async with store_transaction(
            self.session,
            "delete_resource",
            on_dependency=lambda: HasDependentsError(
                "Cannot delete resource because permissions still reference it",
                relation="resource_permissions",
            ),
        ):
            resource = await self._get_resource(resource_id)
            snapshot = Resource.model_validate(resource)

            count = await self.pair_repo.count_for_resource(resource_id)
            if count > 0:
                raise ResourceHasPermissionsError(resource.name, count)

            await self.resource_repo.delete(resource_id)

        logger.info("Deleted resource %s", snapshot.name)
        return snapshot

    async def list_resources(self) -> list[ResourceSummary]:
        """List resources by name with their permission counts."""
        rows = await self.resource_repo.list_with_permission_counts()
        return [
            ResourceSummary(**Resource.model_validate(resource).model_dump(), permission_count=count)
            for resource, count in rows
        ]

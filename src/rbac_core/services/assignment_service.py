"""Time-bounded user-role assignments."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from rbac_core.exceptions import (
    DuplicateAssignmentError,
    RoleNotFoundError,
    UserNotFoundError,
)
from rbac_core.models.domain.assignment import RoleAssignment
from rbac_core.models.orm.user_role import UserRoleORM
from rbac_core.repositories.role_repository import RoleRepository
from rbac_core.repositories.user_repository import UserRepository
from rbac_core.repositories.user_role_repository import UserRoleRepository
from rbac_core.services.cache_service import CacheTags
from rbac_core.services.hierarchy_guard import check_role_assignment
from rbac_core.services.priority_resolver import PriorityResolver
from rbac_core.utils.clock import as_utc, utc_now
from rbac_core.utils.store_errors import store_transaction
from rbac_core.utils.validation import optional_id, require_id

logger = logging.getLogger(__name__)


def is_active(assignment: UserRoleORM, now: datetime) -> bool:
    """Check whether a stored assignment is active at ``now``."""
    return assignment.expires_at is None or as_utc(assignment.expires_at) > now


def assignment_tags(user_id: UUID, role_id: UUID) -> list[str]:
    """Cache tags made stale by assigning or revoking a role."""
    return [CacheTags.USERS, CacheTags.user(user_id), CacheTags.ROLES, CacheTags.role(role_id)]


class AssignmentService:
    """Creates and revokes role assignments.

    An expired assignment stays in storage but is inert. Re-assigning the
    same role replaces it in the same transaction.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service with database session."""
        self.session = session
        self.user_repo = UserRepository(session)
        self.role_repo = RoleRepository(session)
        self.user_role_repo = UserRoleRepository(session)
        self.priority_resolver = PriorityResolver(session)

    async def assign(
        self,
        user_id: UUID,
        role_id: UUID,
        assigned_by: UUID | None = None,
        expires_at: datetime | None = None,
    ) -> RoleAssignment:
        """Assign a role to a user.

        Checks run in order: user exists, role exists, no active identical
        assignment, and, when an assigner is given, the assigner outranks the
        role. Without an assigner the call is trusted (bootstrap, system jobs).

        Args:
            user_id: User receiving the role
            role_id: Role to assign
            assigned_by: Acting user, checked against the hierarchy
            expires_at: End of validity; naive values are read as UTC

        Returns:
            The stored assignment

        Raises:
            ValidationError: If an ID is malformed
            UserNotFoundError: If the user does not exist
            RoleNotFoundError: If the role does not exist
            DuplicateAssignmentError: If the user already holds the role
            InsufficientPrivilegeError: If the assigner does not outrank the role
        """
        user_id = require_id(user_id, "user_id")
        role_id = require_id(role_id, "role_id")
        assigned_by = optional_id(assigned_by, "assigned_by")
        if expires_at is not None:
            expires_at = as_utc(expires_at)

        async with store_transaction(
            self.session,
            "assign_role",
            on_conflict=lambda: DuplicateAssignmentError(user_id, role_id),
        ):
            if not await self.user_repo.exists(user_id):
                raise UserNotFoundError(str(user_id))

            role = await self.role_repo.get(role_id)
            if role is None:
                raise RoleNotFoundError(str(role_id))

            now = utc_now()
            existing = await self.user_role_repo.get_pair(user_id, role_id)
            if existing is not None and is_active(existing, now):
                raise DuplicateAssignmentError(user_id, role_id)

            if assigned_by is not None:
                actor_priority = await self.priority_resolver.effective_priority(assigned_by)
                error = check_role_assignment(actor_priority, role.priority, role.name)
                if error is not None:
                    raise error

            if existing is not None:
                # Lapsed row for the same pair
                await self.user_role_repo.delete(existing.id)

            assignment = await self.user_role_repo.create(
                user_id=user_id,
                role_id=role_id,
                assigned_by=assigned_by,
                expires_at=expires_at,
            )

        logger.info("Assigned role %s to user %s", role.name, user_id)
        return RoleAssignment.model_validate(assignment)

    async def revoke(self, user_id: UUID, role_id: UUID) -> int:
        """Remove a role from a user, active or expired.

        Returns:
            Number of assignments deleted (0 when there was none)
        """
        user_id = require_id(user_id, "user_id")
        role_id = require_id(role_id, "role_id")

        async with store_transaction(self.session, "revoke_role"):
            removed = await self.user_role_repo.delete_pair(user_id, role_id)

        if removed:
            logger.info("Revoked role %s from user %s", role_id, user_id)
        return removed

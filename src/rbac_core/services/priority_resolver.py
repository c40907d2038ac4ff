"""Effective priority of a user."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from rbac_core.config import get_settings
from rbac_core.models.domain.assignment import RoleAssignmentInfo
from rbac_core.repositories.user_role_repository import UserRoleRepository
from rbac_core.utils.clock import utc_now
from rbac_core.utils.validation import optional_id, require_id


class PriorityResolver:
    """Resolves a user's effective priority from their active role assignments.

    Activity is evaluated against the clock on every call; nothing is cached.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize resolver with database session."""
        self.session = session
        self.user_role_repo = UserRoleRepository(session)

    @property
    def no_role_priority(self) -> int:
        """Priority of a user without any active role."""
        return get_settings().no_role_priority

    async def effective_priority(self, user_id: UUID | None) -> int:
        """Get the lowest priority value across the user's active roles.

        Args:
            user_id: User UUID. None or an unknown user is treated as role-less.

        Returns:
            Effective priority, or the no-role sentinel

        Raises:
            ValidationError: If user_id is given but is not a valid UUID
        """
        user_id = optional_id(user_id, "user_id")
        if user_id is None:
            return self.no_role_priority

        priority = await self.user_role_repo.get_min_active_priority(user_id, utc_now())
        return self.no_role_priority if priority is None else priority

    async def active_roles(self, user_id: UUID) -> list[RoleAssignmentInfo]:
        """Get the user's active roles ordered by priority, then name."""
        rows = await self.user_role_repo.get_active_roles(require_id(user_id, "user_id"), utc_now())
        return [RoleAssignmentInfo(**row) for row in rows]

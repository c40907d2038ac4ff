"""Permission resolution for authenticated callers.

Grants are structured (action, resource) pairs reached through
Role -> RolePermission -> ResourcePermission -> Permission/Resource. The
combined ``resource.action`` naming is accepted only at the boundary through
:func:`decode_legacy_permission`.

Every check fails closed: a missing actor, an unknown user or a user without
active roles holds nothing. No role name bypasses the lookup, ``super_admin``
included. Store failures propagate; callers must treat them as indeterminate
and deny.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from rbac_core.models.domain.permission import GrantedPermission
from rbac_core.repositories.role_permission_repository import RolePermissionRepository
from rbac_core.services.hierarchy_guard import can_grant
from rbac_core.services.priority_resolver import PriorityResolver
from rbac_core.utils.clock import utc_now
from rbac_core.utils.validation import optional_id, require_id

logger = logging.getLogger(__name__)


def decode_legacy_permission(combined_name: str | None) -> tuple[str, str] | None:
    """Split a legacy ``resource.action`` name into (action, resource).

    The action is the part after the last dot.

    Returns:
        (action, resource), or None if the name is malformed
    """
    if not combined_name:
        return None
    resource, sep, action = combined_name.strip().rpartition(".")
    if not sep or not resource.strip() or not action.strip():
        return None
    return action.strip(), resource.strip()


class PermissionResolver:
    """Answers "may this caller do X on Y" questions."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize resolver with database session."""
        self.session = session
        self.grant_repo = RolePermissionRepository(session)
        self.priority_resolver = PriorityResolver(session)

    async def has_permission(self, actor_id: UUID | None, action: str, resource_name: str) -> bool:
        """Check whether the actor holds ``action`` on ``resource_name``.

        Args:
            actor_id: Authenticated caller, or None
            action: Permission name (exact match)
            resource_name: Resource name (case-insensitive match)

        Returns:
            True only if an active role grants the pair

        Raises:
            ValidationError: If actor_id is given but is not a valid UUID
        """
        actor_id = optional_id(actor_id, "actor_id")
        if actor_id is None or not action or not resource_name:
            return False
        granted = await self.grant_repo.get_granted_actions(actor_id, [action], resource_name, utc_now())
        return action in granted

    async def resolve_permissions(self, actor_id: UUID | None) -> set[GrantedPermission]:
        """Get every (action, resource) pair the actor holds right now."""
        actor_id = optional_id(actor_id, "actor_id")
        if actor_id is None:
            return set()
        pairs = await self.grant_repo.get_user_grants(actor_id, utc_now())
        return {GrantedPermission(action=action, resource=resource) for action, resource in pairs}

    async def has_permissions(
        self,
        actor_id: UUID | None,
        actions: list[str],
        resource_name: str | None = None,
        require_all: bool = False,
    ) -> bool:
        """Check several actions at once.

        Args:
            actor_id: Authenticated caller, or None
            actions: Permission names to check
            resource_name: Resource to check them on. When None, an action
                counts as held if it is granted on any resource.
            require_all: Require every action (True) or at least one (False)

        Returns:
            Check result. A missing actor holds nothing, even for an empty
            action list; for a known actor an empty list is satisfied.
        """
        actor_id = optional_id(actor_id, "actor_id")
        if actor_id is None:
            return False
        if not actions:
            return True

        if resource_name is None:
            granted = {grant.action for grant in await self.resolve_permissions(actor_id)}
        else:
            granted = await self.grant_repo.get_granted_actions(
                actor_id, list(actions), resource_name, utc_now()
            )

        if require_all:
            return all(action in granted for action in actions)
        return any(action in granted for action in actions)

    async def has_role(
        self,
        actor_id: UUID | None,
        role_names: list[str],
        require_all: bool = False,
    ) -> bool:
        """Check whether the actor actively holds the named role(s).

        Role names match exactly. A missing actor holds no role; otherwise an
        empty list is satisfied.
        """
        actor_id = optional_id(actor_id, "actor_id")
        if actor_id is None:
            return False
        if not role_names:
            return True

        held = {role.role_name for role in await self.priority_resolver.active_roles(actor_id)}
        if require_all:
            return all(name in held for name in role_names)
        return any(name in held for name in role_names)

    async def can_modify_user(self, actor_id: UUID | None, target_user_id: UUID) -> bool:
        """Check whether the actor outranks another user.

        Users may always act on themselves; otherwise the actor's effective
        priority must be strictly lower than the target's.
        """
        actor_id = optional_id(actor_id, "actor_id")
        target_user_id = require_id(target_user_id, "target_user_id")
        if actor_id is None:
            return False
        if actor_id == target_user_id:
            return True

        actor_priority = await self.priority_resolver.effective_priority(actor_id)
        target_priority = await self.priority_resolver.effective_priority(target_user_id)
        return can_grant(actor_priority, target_priority)

    async def has_legacy_permission(self, actor_id: UUID | None, combined_name: str) -> bool:
        """Check a permission given in the legacy ``resource.action`` form."""
        decoded = decode_legacy_permission(combined_name)
        if decoded is None:
            logger.warning("Rejected malformed legacy permission name %r", combined_name)
            return False
        action, resource_name = decoded
        return await self.has_permission(actor_id, action, resource_name)

"""Security package."""

from rbac_core.security.auth import get_current_actor_id, require_permission

__all__ = [
    "get_current_actor_id",
    "require_permission",
]

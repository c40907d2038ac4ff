"""Domain-specific exceptions for the access-control core.

Every exception carries a human-readable ``message``, a ``details`` dict and
a machine-checkable ``reason`` code so callers can branch without parsing
message text.
"""

from typing import Any


class AccessControlError(Exception):
    """Base exception for all access-control errors."""

    reason: str = "error"

    def __init__(self, message: str = "An error occurred", details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(AccessControlError):
    """Raised when input is missing or malformed. Detected before any store I/O."""

    reason = "validation"


# =============================================================================
# Not Found Errors
# =============================================================================


class NotFoundError(AccessControlError):
    """Base class for missing entity errors."""

    reason = "not_found"


class UserNotFoundError(NotFoundError):
    """Raised when a user cannot be found."""

    def __init__(self, user_id: str | None = None) -> None:
        details = {"user_id": str(user_id)} if user_id else {}
        super().__init__("User not found", details)


class RoleNotFoundError(NotFoundError):
    """Raised when a role cannot be found."""

    def __init__(self, role_id: str | None = None) -> None:
        details = {"role_id": str(role_id)} if role_id else {}
        super().__init__("Role not found", details)


class PermissionNotFoundError(NotFoundError):
    """Raised when a permission cannot be found."""

    def __init__(self, permission_id: str | None = None) -> None:
        details = {"permission_id": str(permission_id)} if permission_id else {}
        super().__init__("Permission not found", details)


class ResourceNotFoundError(NotFoundError):
    """Raised when one or more resources cannot be found."""

    def __init__(self, resource_ids: list[str] | None = None) -> None:
        details = {"resource_ids": [str(r) for r in resource_ids]} if resource_ids else {}
        super().__init__("Resource not found", details)


# =============================================================================
# Conflict Errors
# =============================================================================


class ConflictError(AccessControlError):
    """Base class for uniqueness conflicts."""

    reason = "duplicate"


class RoleAlreadyExistsError(ConflictError):
    """Raised when a role name is already taken."""

    def __init__(self, name: str | None = None) -> None:
        details = {"name": name} if name else {}
        super().__init__("Role with this name already exists", details)


class PermissionAlreadyExistsError(ConflictError):
    """Raised when a permission name is already taken."""

    def __init__(self, name: str | None = None) -> None:
        details = {"name": name} if name else {}
        super().__init__("Permission with this name already exists", details)


class ResourceAlreadyExistsError(ConflictError):
    """Raised when a resource name is already taken (case-insensitive)."""

    def __init__(self, name: str | None = None) -> None:
        details = {"name": name} if name else {}
        super().__init__("A resource with this name already exists", details)


class DuplicateAssignmentError(ConflictError):
    """Raised when a user already holds an active assignment of the role."""

    def __init__(self, user_id: str | None = None, role_id: str | None = None) -> None:
        details: dict[str, Any] = {}
        if user_id:
            details["user_id"] = str(user_id)
        if role_id:
            details["role_id"] = str(role_id)
        super().__init__("User already has this role assigned", details)


# =============================================================================
# Privilege Errors
# =============================================================================


class InsufficientPrivilegeError(AccessControlError):
    """Raised when the hierarchy guard rejects a privilege-escalating operation."""

    reason = "insufficient_privilege"

    def __init__(
        self,
        message: str,
        actor_priority: int,
        target_priority: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.actor_priority = actor_priority
        self.target_priority = target_priority
        merged = {"actor_priority": actor_priority, "target_priority": target_priority}
        merged.update(details or {})
        super().__init__(message, merged)


class ProtectedRoleError(AccessControlError):
    """Raised when an operation targets the protected super administrator role."""

    reason = "protected_role"

    def __init__(self, role_name: str) -> None:
        super().__init__(f'Role "{role_name}" is protected and cannot be deleted', {"role_name": role_name})


# =============================================================================
# Dependency Errors
# =============================================================================


class HasDependentsError(AccessControlError):
    """Raised when a delete is blocked by dependent rows."""

    reason = "has_dependents"

    def __init__(
        self,
        message: str = "Cannot delete: it is referenced by other records",
        count: int | None = None,
        relation: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if count is not None:
            details["count"] = count
        if relation:
            details["relation"] = relation
        super().__init__(message, details)


class RoleHasUsersError(HasDependentsError):
    """Raised when deleting a role that still has active user assignments."""

    def __init__(self, role_name: str, count: int) -> None:
        super().__init__(
            f'Cannot delete role "{role_name}" because it is assigned to {count} user(s). '
            "Please remove the role from all users first.",
            count=count,
            relation="user_roles",
        )


class ResourceHasPermissionsError(HasDependentsError):
    """Raised when deleting a resource that still has associated permissions."""

    def __init__(self, resource_name: str, count: int) -> None:
        super().__init__(
            f'Cannot delete resource "{resource_name}" because it has {count} associated '
            "permission(s). Please remove all associated permissions first.",
            count=count,
            relation="resource_permissions",
        )


# =============================================================================
# Store Errors
# =============================================================================


class StoreError(AccessControlError):
    """Raised for unmapped failures of the data store (connectivity, timeouts, ...)."""

    reason = "store_error"

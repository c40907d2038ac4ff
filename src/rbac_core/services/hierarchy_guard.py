"""Hierarchy guard: the strict-less-than priority rule.

Lower priority values are more privileged. An actor may only create, modify,
delete or hand out a role that ranks strictly below them. Equality is always
rejected, so nobody can mint their own privilege level.

The guard does no I/O. Callers resolve the actor's effective priority and the
role's priority first, then decide whether to raise the returned error.
"""

from rbac_core.exceptions import InsufficientPrivilegeError


def can_grant(actor_priority: int, target_priority: int) -> bool:
    """Return True iff the actor outranks the target priority."""
    return actor_priority < target_priority


def check_role_create(actor_priority: int, requested_priority: int) -> InsufficientPrivilegeError | None:
    """Check that an actor may create a role with the requested priority.

    Returns:
        None if allowed, otherwise the error describing the violation
    """
    if can_grant(actor_priority, requested_priority):
        return None
    return InsufficientPrivilegeError(
        "Insufficient privileges: Cannot create role with equal or higher priority "
        f"than your own ({actor_priority}). Requested priority: {requested_priority}",
        actor_priority=actor_priority,
        target_priority=requested_priority,
    )


def check_role_update(
    actor_priority: int,
    current_priority: int,
    requested_priority: int,
) -> InsufficientPrivilegeError | None:
    """Check that an actor may move a role from its current to a new priority.

    The actor must outrank both the role's current standing and the new one.

    Returns:
        None if allowed, otherwise the error describing the violation
    """
    if can_grant(actor_priority, current_priority) and can_grant(actor_priority, requested_priority):
        return None
    # Report whichever bound failed; the current one first
    target = current_priority if not can_grant(actor_priority, current_priority) else requested_priority
    return InsufficientPrivilegeError(
        "Insufficient privileges: Cannot update role priority. "
        f"Your highest priority: {actor_priority}, Role priority: {current_priority}, "
        f"New priority: {requested_priority}",
        actor_priority=actor_priority,
        target_priority=target,
        details={"current_priority": current_priority, "requested_priority": requested_priority},
    )


def check_role_assignment(
    actor_priority: int,
    role_priority: int,
    role_name: str | None = None,
) -> InsufficientPrivilegeError | None:
    """Check that an actor may assign a role to a user (themselves included).

    Returns:
        None if allowed, otherwise the error describing the violation
    """
    if can_grant(actor_priority, role_priority):
        return None
    label = f'"{role_name}" ' if role_name else ""
    return InsufficientPrivilegeError(
        f"Insufficient privileges: Cannot assign role {label}with priority {role_priority} "
        f"(your highest priority: {actor_priority})",
        actor_priority=actor_priority,
        target_priority=role_priority,
    )


def check_role_management(
    actor_priority: int,
    role_priority: int,
    action: str = "modify",
) -> InsufficientPrivilegeError | None:
    """Check that an actor may delete a role or change its grants.

    Args:
        actor_priority: Actor's effective priority
        role_priority: Priority of the existing role
        action: Verb used in the message ("delete", "modify", ...)

    Returns:
        None if allowed, otherwise the error describing the violation
    """
    if can_grant(actor_priority, role_priority):
        return None
    return InsufficientPrivilegeError(
        f"Insufficient privileges: Cannot {action} role with equal or higher priority "
        f"than your own ({actor_priority}). Role priority: {role_priority}",
        actor_priority=actor_priority,
        target_priority=role_priority,
    )

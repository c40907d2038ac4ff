"""Input validation for access-control operations.

All checks run before any store I/O and raise ValidationError.
"""

from typing import Any
from uuid import UUID

from rbac_core.exceptions import ValidationError

MAX_NAME_LENGTH = 100
MAX_PAGE_SIZE = 100


def require_name(value: Any, entity: str, max_length: int = MAX_NAME_LENGTH) -> str:
    """Validate and trim an entity name.

    Args:
        value: Raw name
        entity: Entity label used in the message ("Role", "Permission", ...)
        max_length: Maximum length after trimming

    Returns:
        Trimmed name

    Raises:
        ValidationError: If the name is missing, blank or too long
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{entity} name is required", {"field": "name"})

    name = value.strip()
    if len(name) > max_length:
        raise ValidationError(
            f"{entity} name must be at most {max_length} characters",
            {"field": "name", "max_length": max_length},
        )
    return name


def require_id(value: Any, field: str) -> UUID:
    """Coerce an identifier to a UUID.

    Raises:
        ValidationError: If the value is missing or not a valid UUID
    """
    if isinstance(value, UUID):
        return value
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required", {"field": field})
    try:
        return UUID(str(value))
    except ValueError:
        raise ValidationError(f"{field} is not a valid identifier", {"field": field}) from None


def optional_id(value: Any, field: str) -> UUID | None:
    """Coerce an optional identifier to a UUID, keeping None."""
    if value is None:
        return None
    return require_id(value, field)


def require_ids(values: Any, field: str) -> list[UUID]:
    """Coerce a list of identifiers, dropping duplicates but keeping order."""
    if values is None:
        return []
    if isinstance(values, (str, bytes)) or not hasattr(values, "__iter__"):
        raise ValidationError(f"{field} must be a list of identifiers", {"field": field})
    return list(dict.fromkeys(require_id(value, field) for value in values))


def validate_priority(value: Any, no_role_priority: int) -> int:
    """Validate a role priority.

    Priorities are positive integers strictly below the no-role sentinel, so a
    caller without roles never outranks a real role.

    Raises:
        ValidationError: If the priority is not an integer in range
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("Priority must be an integer", {"field": "priority"})
    if value < 1:
        raise ValidationError("Priority must be a positive number", {"field": "priority"})
    if value >= no_role_priority:
        raise ValidationError(
            f"Priority must be lower than {no_role_priority}",
            {"field": "priority", "max": no_role_priority - 1},
        )
    return value


def validate_page(page: Any, page_size: Any, max_page_size: int = MAX_PAGE_SIZE) -> tuple[int, int]:
    """Validate 1-indexed pagination arguments.

    Returns:
        (page, page_size)

    Raises:
        ValidationError: If either value is not a positive integer or the
            page size exceeds ``max_page_size``
    """
    for field, value in (("page", page), ("page_size", page_size)):
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValidationError(f"{field} must be a positive integer", {"field": field})
    if page_size > max_page_size:
        raise ValidationError(
            f"page_size must be at most {max_page_size}",
            {"field": "page_size", "max": max_page_size},
        )
    return page, page_size


def optional_search(value: Any, max_length: int = MAX_NAME_LENGTH) -> str | None:
    """Trim a free-text search term. Blank terms mean no filter."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("search must be text", {"field": "search"})
    term = value.strip()
    if len(term) > max_length:
        raise ValidationError(
            f"search must be at most {max_length} characters",
            {"field": "search", "max_length": max_length},
        )
    return term or None


def escape_like_wildcards(value: str) -> str:
    """Escape SQL LIKE wildcards so they match literally.

    Use with ``escape="\\\\"`` on the ``like``/``ilike`` call.

    Example:
        >>> escape_like_wildcards("test%value")
        'test\\\\%value'
    """
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

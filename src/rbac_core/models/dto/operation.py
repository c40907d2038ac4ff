"""Structured results returned by mutation operations."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from rbac_core.exceptions import AccessControlError

T = TypeVar("T")


class ErrorDescriptor(BaseModel):
    """Failure description rendered by the administrative caller."""

    message: str
    reason: str
    details: dict[str, Any] = {}

    @classmethod
    def from_exception(cls, exc: AccessControlError) -> "ErrorDescriptor":
        """Build a descriptor from a domain exception."""
        return cls(message=exc.message, reason=exc.reason, details=exc.details)


class OperationResult(BaseModel, Generic[T]):
    """Outcome of a mutation.

    On success ``data`` holds the payload and ``tags`` lists the cache tags the
    mutation made stale. On failure ``error`` is set and ``tags`` is empty.
    """

    success: bool
    data: T | None = None
    tags: list[str] = []
    error: ErrorDescriptor | None = None

    @classmethod
    def ok(cls, data: Any = None, tags: list[str] | None = None) -> "OperationResult":
        """Successful result."""
        return cls(success=True, data=data, tags=list(dict.fromkeys(tags or [])))

    @classmethod
    def fail(cls, exc: AccessControlError) -> "OperationResult":
        """Failed result."""
        return cls(success=False, error=ErrorDescriptor.from_exception(exc))

    @property
    def reason(self) -> str | None:
        """Machine reason code of a failed result."""
        return self.error.reason if self.error else None

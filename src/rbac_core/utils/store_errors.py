"""Translation of data store failures into domain errors."""

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_core.exceptions import (
    AccessControlError,
    ConflictError,
    HasDependentsError,
    StoreError,
)
from rbac_core.utils.secure_logging import log_error, sanitize_exception_message

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


def _sqlstate(error: SQLAlchemyError) -> str | None:
    """Extract the SQLSTATE code from the driver exception, if the driver exposes one."""
    orig = getattr(error, "orig", None)
    for attr in ("pgcode", "sqlstate"):
        code = getattr(orig, attr, None)
        if code:
            return str(code)
    return None


def is_unique_violation(error: SQLAlchemyError) -> bool:
    """Check whether the error is a unique-constraint violation."""
    if not isinstance(error, IntegrityError):
        return False
    code = _sqlstate(error)
    if code is not None:
        return code == UNIQUE_VIOLATION
    message = str(error.orig).lower()
    return "unique" in message or "duplicate" in message


def is_foreign_key_violation(error: SQLAlchemyError) -> bool:
    """Check whether the error is a foreign-key violation."""
    if not isinstance(error, IntegrityError):
        return False
    code = _sqlstate(error)
    if code is not None:
        return code == FOREIGN_KEY_VIOLATION
    return "foreign key" in str(error.orig).lower()


def translate_store_error(
    error: SQLAlchemyError,
    operation: str,
    on_conflict: Callable[[], AccessControlError] | None = None,
    on_dependency: Callable[[], AccessControlError] | None = None,
) -> AccessControlError:
    """Map a store exception to the matching domain error.

    Args:
        error: Exception raised by SQLAlchemy or the driver
        operation: Short operation name used in the log line
        on_conflict: Factory for the conflict error of this operation
        on_dependency: Factory for the dependency error of this operation

    Returns:
        Conflict error for unique violations, dependency error for
        foreign-key violations, StoreError for anything else
    """
    if is_unique_violation(error):
        return on_conflict() if on_conflict else ConflictError("Record already exists")
    if is_foreign_key_violation(error):
        return on_dependency() if on_dependency else HasDependentsError()

    log_error(logger, f"Store failure during {operation}", error)
    return StoreError(sanitize_exception_message(error), {"operation": operation})


@asynccontextmanager
async def store_transaction(
    session: AsyncSession,
    operation: str,
    on_conflict: Callable[[], AccessControlError] | None = None,
    on_dependency: Callable[[], AccessControlError] | None = None,
) -> AsyncIterator[None]:
    """Run a mutation as one unit of work.

    Commits when the block completes. Any domain error or store failure rolls
    the whole transaction back; store failures are re-raised translated.

    Args:
        session: Session holding the transaction
        operation: Short operation name used in logs
        on_conflict: Factory for the conflict error of this operation
        on_dependency: Factory for the dependency error of this operation
    """
    try:
        yield
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        raise translate_store_error(e, operation, on_conflict, on_dependency) from e
    except Exception:
        await session.rollback()
        raise

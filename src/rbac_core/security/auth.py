"""Request gate for FastAPI applications.

Callers are authenticated elsewhere; the bearer token is only verified here
to read the caller's user id from ``sub``. Tokens are never issued.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_core.config import get_settings
from rbac_core.database import get_db
from rbac_core.exceptions import StoreError
from rbac_core.services.permission_resolver import PermissionResolver
from rbac_core.utils.secure_logging import log_error

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token.

    Args:
        token: JWT token string

    Returns:
        Token payload

    Raises:
        HTTPException: If token is invalid or expired
    """
    settings = get_settings()

    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        ) from e


async def get_current_actor_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
) -> UUID:
    """Get the authenticated caller's user id from the bearer token.

    Raises:
        HTTPException: 401 if no token is given or it does not name a user
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    payload = decode_token(credentials.credentials)
    try:
        return UUID(str(payload["sub"]))
    except (KeyError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        ) from e


def require_permission(action: str, resource: str) -> Callable[..., Awaitable[UUID]]:
    """Build a dependency that admits only callers holding ``action`` on ``resource``.

    Usage::

        @router.post("/brands", dependencies=[Depends(require_permission("create", "brands"))])

    A failing permission lookup is indeterminate and is answered with 503,
    never with access.

    Args:
        action: Permission name
        resource: Resource name

    Returns:
        FastAPI dependency returning the caller's user id
    """

    async def permission_dependency(
        actor_id: Annotated[UUID, Depends(get_current_actor_id)],
        db: Annotated[AsyncSession, Depends(get_db)],
    ) -> UUID:
        resolver = PermissionResolver(db)
        try:
            allowed = await resolver.has_permission(actor_id, action, resource)
        except (SQLAlchemyError, StoreError) as e:
            log_error(logger, f"Permission check failed for {resource}.{action}", e)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Service temporarily unavailable",
            ) from e

        if not allowed:
            logger.info("Denied %s on %s for user %s", action, resource, actor_id)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return actor_id

    return permission_dependency

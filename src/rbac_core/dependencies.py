"""Dependency injection factories for FastAPI."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_core.database import get_db
from rbac_core.services.cache_service import CacheService, get_cache_service
from rbac_core.services.rbac_service import RbacService


def get_rbac_service(
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache_service),
) -> RbacService:
    """Get RbacService instance wired to the Redis invalidation sink."""
    return RbacService(db, sink=cache)

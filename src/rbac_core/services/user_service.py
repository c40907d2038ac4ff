"""Read-only views of users and the roles they hold."""

from sqlalchemy.ext.asyncio import AsyncSession

from rbac_core.config import get_settings
from rbac_core.models.domain.assignment import RoleAssignmentInfo
from rbac_core.models.domain.user import UserWithRoles
from rbac_core.models.dto.listing import PageInfo, UserListResponse
from rbac_core.repositories.user_repository import UserRepository
from rbac_core.repositories.user_role_repository import UserRoleRepository
from rbac_core.utils.clock import utc_now
from rbac_core.utils.validation import optional_search, validate_page


class UserService:
    """Lists users with their active roles. Users themselves are never modified here."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service with database session."""
        self.session = session
        self.settings = get_settings()
        self.user_repo = UserRepository(session)
        self.user_role_repo = UserRoleRepository(session)

    async def list_users_with_roles(
        self,
        page: int = 1,
        page_size: int = 50,
        search: str | None = None,
    ) -> UserListResponse:
        """List users, newest first, with the roles they hold right now.

        Args:
            page: Page number (1-indexed)
            page_size: Users per page
            search: Case-insensitive substring of the name or email

        Returns:
            UserListResponse whose items carry active roles by priority and
            the resulting effective priority

        Raises:
            ValidationError: If a pagination or filter value is invalid
        """
        page, page_size = validate_page(page, page_size)
        search = optional_search(search)

        users, total = await self.user_repo.search(
            search=search,
            offset=(page - 1) * page_size,
            limit=page_size,
        )
        roles_by_user = await self.user_role_repo.get_active_roles_for_users(
            [user.id for user in users], utc_now()
        )

        items = []
        for user in users:
            roles = [RoleAssignmentInfo(**row) for row in roles_by_user.get(user.id, [])]
            items.append(
                UserWithRoles(
                    id=user.id,
                    name=user.name,
                    email=user.email,
                    email_verified=user.email_verified,
                    created_at=user.created_at,
                    updated_at=user.updated_at,
                    roles=roles,
                    effective_priority=min(
                        (role.priority for role in roles), default=self.settings.no_role_priority
                    ),
                )
            )
        return UserListResponse(items=items, pagination=PageInfo.build(total, page, page_size))

#!/usr/bin/env python
"""Grant the super administrator role to an existing user.

The identity system owns users, so the user must already exist. The role
is assigned without an assigner, which bypasses the hierarchy check and is
only meant for bootstrapping.
"""

import argparse
import asyncio
import logging

from rbac_core.config import get_settings
from rbac_core.database import get_engine, get_session_maker
from rbac_core.exceptions import AccessControlError
from rbac_core.repositories.role_repository import RoleRepository
from rbac_core.repositories.user_repository import UserRepository
from rbac_core.services.assignment_service import AssignmentService

logger = logging.getLogger(__name__)


async def create_super_admin(email: str) -> bool:
    """Assign the protected role to the user with ``email``."""
    settings = get_settings()

    async with get_session_maker()() as session:
        user = await UserRepository(session).get_by_email(email)
        if user is None:
            print(f"User {email} not found")
            return False

        role = await RoleRepository(session).get_by_name(settings.protected_role_name)
        if role is None:
            print(f"Role {settings.protected_role_name} not found. Run migrations first.")
            return False

        try:
            await AssignmentService(session).assign(user.id, role.id)
        except AccessControlError as e:
            print(f"Could not assign {role.name} to {email}: {e.message}")
            return False

    await get_engine().dispose()
    print(f"{role.name} assigned to {email}")
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Grant the super administrator role to a user")
    parser.add_argument("--email", required=True, help="Email address of an existing user")
    args = parser.parse_args()

    logging.basicConfig(level=get_settings().log_level)
    ok = asyncio.run(create_super_admin(args.email))
    raise SystemExit(0 if ok else 1)


if __name__ == "__main__":
    main()

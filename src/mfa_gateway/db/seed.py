"""
mfa_gateway.db.seed

Bootstrap provisioning for a fresh deployment.

Responsibilities:
- Create the initial administrator from settings when no administrator exists yet.
- Leave the descriptor empty; it is enrolled on that administrator's first login.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mfa_gateway.auth.passwords import PasswordHasher
from mfa_gateway.db.models import Administrator, Role
from mfa_gateway.db.repositories.principals import PrincipalRepo
from mfa_gateway.observability.logging import get_logger
from mfa_gateway.settings import Settings

log = get_logger(__name__)


async def seed_initial_admin(
    session_factory: async_sessionmaker[AsyncSession], settings: Settings
) -> Administrator | None:
    if not settings.initial_admin_email or not settings.initial_admin_password:
        return None

    async with session_factory() as session:
        existing = await PrincipalRepo(session).count_by_role(Role.admin)
        if existing:
            log.info("seed.admin_exists", count=existing)
            return None

        hasher = PasswordHasher.from_settings(settings)
        admin = await PrincipalRepo(session).create_admin(
            email=settings.initial_admin_email,
            name=settings.initial_admin_name,
            password_hash=hasher.hash(settings.initial_admin_password),
        )
        await session.commit()

    log.info("seed.admin_created", principal_id=str(admin.id))
    return admin

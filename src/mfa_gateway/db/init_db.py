"""
mfa_gateway.db.init_db

Schema bootstrap for dev/test.

Responsibilities:
- Create the `principals` and `audit_events` tables when absent.
- Leave production schema changes to Alembic.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from mfa_gateway.db import models  # noqa: F401  # ensure models are registered on Base.metadata
from mfa_gateway.db.base import Base
from mfa_gateway.observability.logging import get_logger

log = get_logger(__name__)


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    log.info("db.initialized", tables=sorted(Base.metadata.tables), dialect=engine.dialect.name)

"""
mfa_gateway.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`).
- Provide readiness probe (`/readyz`): the principal store and the audit table must both answer,
  since no login decision can be made (or recorded) without them.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mfa_gateway.api.deps import db_session
from mfa_gateway.db.models import AuditEvent, Principal

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(session: AsyncSession = Depends(db_session)) -> dict[str, object]:
    await session.execute(select(Principal.id).limit(1))
    await session.execute(select(AuditEvent.id).limit(1))
    return {"status": "ready", "checks": ["principal_store", "audit_log"]}

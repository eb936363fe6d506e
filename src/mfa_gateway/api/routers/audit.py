"""
mfa_gateway.api.routers.audit

Administrator audit queries.

Responsibilities:
- Paginated suspicious-activity and full event listings (newest first).
- Per-principal recent history.
- Aggregate counts for the admin dashboard.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from mfa_gateway.api.deps import audit_log_dep, db_session, settings_dep
from mfa_gateway.auth.deps import require_role
from mfa_gateway.db.models import AuditKind, Role
from mfa_gateway.db.repositories.principals import PrincipalRepo
from mfa_gateway.services.audit_log import AuditLog, AuditPage
from mfa_gateway.settings import Settings

router = APIRouter(
    prefix="/v1/audit",
    tags=["audit"],
    dependencies=[Depends(require_role(Role.admin))],
)


class AuditEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    principal_id: uuid.UUID | None
    kind: AuditKind
    suspicious: bool
    detail: str
    latitude: float | None = None
    longitude: float | None = None
    accuracy: float | None = None
    created_at: datetime


class AuditPageOut(BaseModel):
    events: list[AuditEventOut]
    page: int
    page_size: int
    total: int
    total_pages: int


class AuditStatsOut(BaseModel):
    total_staff: int
    total_events: int
    suspicious_events: int
    counts_by_kind: dict[str, int]
    success_rate: float


@router.get("/suspicious", response_model=AuditPageOut)
async def suspicious_events(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1),
    audit: AuditLog = Depends(audit_log_dep),
    settings: Settings = Depends(settings_dep),
) -> AuditPageOut:
    result = await audit.suspicious(
        page=page, page_size=min(page_size, settings.audit_page_size_max)
    )
    return _page_out(result)


@router.get("/events", response_model=AuditPageOut)
async def all_events(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1),
    audit: AuditLog = Depends(audit_log_dep),
    settings: Settings = Depends(settings_dep),
) -> AuditPageOut:
    result = await audit.all_events(
        page=page, page_size=min(page_size, settings.audit_page_size_max)
    )
    return _page_out(result)


@router.get("/principals/{principal_id}", response_model=list[AuditEventOut])
async def principal_history(
    principal_id: uuid.UUID,
    limit: int = Query(default=50, ge=1),
    audit: AuditLog = Depends(audit_log_dep),
    settings: Settings = Depends(settings_dep),
) -> list[AuditEventOut]:
    events = await audit.recent_for_principal(
        principal_id, limit=min(limit, settings.audit_page_size_max)
    )
    return [AuditEventOut.model_validate(ev) for ev in events]


@router.get("/stats", response_model=AuditStatsOut)
async def stats(
    audit: AuditLog = Depends(audit_log_dep),
    session: AsyncSession = Depends(db_session),
) -> AuditStatsOut:
    counts = await audit.counts_by_kind()
    total = sum(counts.values())
    suspicious = sum(n for kind, n in counts.items() if kind.suspicious)
    success_rate = round((total - suspicious) / total * 100, 2) if total else 100.0
    return AuditStatsOut(
        total_staff=await PrincipalRepo(session).count_by_role(Role.staff),
        total_events=total,
        suspicious_events=suspicious,
        counts_by_kind={kind.value: n for kind, n in counts.items()},
        success_rate=success_rate,
    )


def _page_out(result: AuditPage) -> AuditPageOut:
    return AuditPageOut(
        events=[AuditEventOut.model_validate(ev) for ev in result.events],
        page=result.page,
        page_size=result.page_size,
        total=result.total,
        total_pages=result.total_pages,
    )


# --- Module Notes -----------------------------------------------------------
# Requested page sizes above `audit_page_size_max` are clamped rather than rejected.

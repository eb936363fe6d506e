"""
mfa_gateway.db.repositories.audit

Repository for `AuditEvent` entities.

Responsibilities:
- Append audit events (never update or delete).
- Query the trail newest-first: per principal, suspicious-only, or everything (paginated).
- Aggregate counts per kind for the admin dashboard.
"""

from __future__ import annotations

import uuid

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mfa_gateway.db.models import AuditEvent, AuditKind


class AuditRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(
        self,
        *,
        principal_id: uuid.UUID | None,
        kind: AuditKind,
        detail: str,
        latitude: float | None = None,
        longitude: float | None = None,
        accuracy: float | None = None,
    ) -> AuditEvent:
        ev = AuditEvent(
            principal_id=principal_id,
            kind=kind,
            suspicious=kind.suspicious,
            detail=detail,
            latitude=latitude,
            longitude=longitude,
            accuracy=accuracy,
        )
        self._session.add(ev)
        await self._session.flush()
        return ev

    async def recent_for_principal(
        self, principal_id: uuid.UUID, *, limit: int = 50
    ) -> list[AuditEvent]:
        stmt = (
            select(AuditEvent)
            .where(AuditEvent.principal_id == principal_id)
            .order_by(desc(AuditEvent.created_at), desc(AuditEvent.id))
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def page(
        self, *, page: int, page_size: int, suspicious_only: bool = False
    ) -> tuple[list[AuditEvent], int]:
        # Pages are 1-based; ordering is newest-first with the sequence id as tiebreaker.
        count_stmt = select(func.count()).select_from(AuditEvent)
        stmt = select(AuditEvent)
        if suspicious_only:
            count_stmt = count_stmt.where(AuditEvent.suspicious.is_(True))
            stmt = stmt.where(AuditEvent.suspicious.is_(True))
        stmt = (
            stmt.order_by(desc(AuditEvent.created_at), desc(AuditEvent.id))
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        total = int((await self._session.execute(count_stmt)).scalar_one())
        events = list((await self._session.execute(stmt)).scalars().all())
        return events, total

    async def counts_by_kind(self) -> dict[AuditKind, int]:
        stmt = select(AuditEvent.kind, func.count()).group_by(AuditEvent.kind)
        return {kind: int(n) for kind, n in (await self._session.execute(stmt)).all()}


# --- Module Notes -----------------------------------------------------------
# Writes go through `services.audit_log.AuditLog`, which owns the per-event transaction.

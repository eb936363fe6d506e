"""
mfa_gateway.services.audit_log

Audit sink for the login pipeline.

Responsibilities:
- Append one AuditEvent per decision, committed in its own transaction so it is durable
  before the response leaves the service (and independent of the request session).
- Never fail the surrounding request: write failures are reported as structured log events.
- Serve the read queries used by the admin endpoints.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mfa_gateway.db.models import AuditEvent, AuditKind
from mfa_gateway.db.repositories.audit import AuditRepo
from mfa_gateway.observability.logging import get_logger
from mfa_gateway.verification.geofence import GeoPoint

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class AuditPage:
    events: list[AuditEvent]
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size


class AuditLog:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def record(
        self,
        principal_id: uuid.UUID | None,
        kind: AuditKind,
        detail: str,
        geo: GeoPoint | None = None,
    ) -> None:
        try:
            async with self._session_factory() as session:
                await AuditRepo(session).add(
                    principal_id=principal_id,
                    kind=kind,
                    detail=detail,
                    latitude=geo.latitude if geo else None,
                    longitude=geo.longitude if geo else None,
                    accuracy=geo.accuracy if geo else None,
                )
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            # Operational telemetry only; the caller's decision stands.
            log.error(
                "audit.write_failed",
                kind=kind.value,
                principal_id=str(principal_id) if principal_id else None,
                error=type(e).__name__,
            )
            return
        log.info(
            "audit.recorded",
            kind=kind.value,
            suspicious=kind.suspicious,
            principal_id=str(principal_id) if principal_id else None,
        )

    async def recent_for_principal(
        self, principal_id: uuid.UUID, *, limit: int
    ) -> list[AuditEvent]:
        async with self._session_factory() as session:
            return await AuditRepo(session).recent_for_principal(principal_id, limit=limit)

    async def suspicious(self, *, page: int, page_size: int) -> AuditPage:
        async with self._session_factory() as session:
            events, total = await AuditRepo(session).page(
                page=page, page_size=page_size, suspicious_only=True
            )
        return AuditPage(events=events, page=page, page_size=page_size, total=total)

    async def all_events(self, *, page: int, page_size: int) -> AuditPage:
        async with self._session_factory() as session:
            events, total = await AuditRepo(session).page(page=page, page_size=page_size)
        return AuditPage(events=events, page=page, page_size=page_size, total=total)

    async def counts_by_kind(self) -> dict[AuditKind, int]:
        async with self._session_factory() as session:
            return await AuditRepo(session).counts_by_kind()


# --- Module Notes -----------------------------------------------------------
# The sink is shared by concurrent requests; it holds no state besides the session factory.

"""
mfa_gateway.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions and the audit sink.
- Encapsulate app.state access patterns (settings/engine/sessionmaker/audit log).
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mfa_gateway.services.audit_log import AuditLog
from mfa_gateway.services.login_service import LoginService
from mfa_gateway.settings import Settings


def settings_dep(request: Request) -> Settings:
    # The app factory pins its Settings instance; tests build apps with their own.
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # Created in the lifespan of `mfa_gateway.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Writes are committed by the repository that makes them.
    async with session_factory() as session:
        yield session


def audit_log_dep(request: Request) -> AuditLog:
    return request.app.state.audit_log  # type: ignore[attr-defined]


def login_service(
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    audit: AuditLog = Depends(audit_log_dep),
) -> LoginService:
    return LoginService(session=session, settings=settings, audit=audit)

"""
mfa_gateway.api.app

FastAPI app factory for the MFA gateway.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Initialize and dispose shared infrastructure (DB engine, session factory, audit sink).
- Provision the bootstrap administrator on startup.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from mfa_gateway import __version__
from mfa_gateway.api.routers.audit import router as audit_router
from mfa_gateway.api.routers.biometric import router as biometric_router
from mfa_gateway.api.routers.health import router as health_router
from mfa_gateway.api.routers.login import router as login_router
from mfa_gateway.db.init_db import init_db
from mfa_gateway.db.seed import seed_initial_admin
from mfa_gateway.db.session import create_engine, create_sessionmaker
from mfa_gateway.observability.logging import configure_logging, get_logger
from mfa_gateway.observability.middleware import RequestContextMiddleware
from mfa_gateway.services.audit_log import AuditLog
from mfa_gateway.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        app.state.audit_log = AuditLog(app.state.sessionmaker)
        if settings.env in ("dev", "test"):
            # Prod schemas are managed with Alembic migrations.
            await init_db(engine)
        await seed_initial_admin(app.state.sessionmaker, settings)
        try:
            yield
        finally:
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="MFA Login Gateway",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(login_router)
    app.include_router(biometric_router)
    app.include_router(audit_router)

    return app


# --- Module Notes -----------------------------------------------------------
# Composition root: every request-scoped collaborator is reached through `api.deps` from the
# objects placed on app.state here.

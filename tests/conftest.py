"""
tests.conftest

Shared fixtures: a file-backed SQLite app per test, an ASGI client, and provisioning helpers.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Any

import httpx
import numpy as np
import pytest
import pytest_asyncio
from fastapi import FastAPI

from mfa_gateway.api.app import create_app
from mfa_gateway.auth.passwords import PasswordHasher
from mfa_gateway.db.models import Administrator, Staff
from mfa_gateway.db.repositories.principals import PrincipalRepo
from mfa_gateway.services.login_service import build_matcher
from mfa_gateway.settings import Settings

STAFF_EMAIL = "dr.rao@clinic.test"
ADMIN_EMAIL = "ops@clinic.test"
PASSWORD = "correct horse battery"

# Fixed reference point used across the geofence scenarios.
CLINIC_LAT = 10.0
CLINIC_LON = 78.0

DIMENSIONS = 128


def base_vector() -> list[float]:
    rng = np.random.default_rng(7)
    return [float(x) for x in rng.uniform(-0.2, 0.2, DIMENSIONS).astype(np.float32)]


def shifted(vector: Sequence[float], distance: float) -> list[float]:
    # Moving one coordinate by `distance` moves the whole vector exactly that far.
    out = list(vector)
    out[0] = out[0] + distance
    return out


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        log_level="WARNING",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'mfa.db'}",
        password_time_cost=1,
        password_memory_cost=8,
        password_parallelism=1,
        geofence_max_distance_meters=100.0,
    )


@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncIterator[FastAPI]:
    app = create_app(settings=settings)
    # httpx ASGITransport does not manage lifespan; run it explicitly.
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def provision(app: FastAPI, settings: Settings):
    hasher = PasswordHasher.from_settings(settings)
    matcher = build_matcher(settings)

    async def _staff(
        *,
        email: str = STAFF_EMAIL,
        password: str = PASSWORD,
        latitude: float | None = CLINIC_LAT,
        longitude: float | None = CLINIC_LON,
        descriptor: Sequence[float] | None = None,
    ) -> Staff:
        async with app.state.sessionmaker() as session:
            staff = await PrincipalRepo(session).create_staff(
                email=email,
                name="Dr. Rao",
                password_hash=hasher.hash(password),
                reference_latitude=latitude,
                reference_longitude=longitude,
            )
            if descriptor is not None:
                staff.descriptor = matcher.encode(descriptor)
            await session.commit()
        return staff

    async def _admin(
        *,
        email: str = ADMIN_EMAIL,
        password: str = PASSWORD,
        descriptor: Sequence[float] | None = None,
    ) -> Administrator:
        async with app.state.sessionmaker() as session:
            admin = await PrincipalRepo(session).create_admin(
                email=email,
                name="Ops",
                password_hash=hasher.hash(password),
                department="IT",
            )
            if descriptor is not None:
                admin.descriptor = matcher.encode(descriptor)
            await session.commit()
        return admin

    class _Provision:
        staff = staticmethod(_staff)
        admin = staticmethod(_admin)

    return _Provision


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def admin_session_token(client: httpx.AsyncClient, email: str = ADMIN_EMAIL) -> str:
    # Administrators without a stored descriptor receive a session at the credentials step.
    r = await client.post(
        "/v1/login/credentials",
        json={"email": email, "password": PASSWORD, "role": "admin"},
    )
    assert r.status_code == 200, r.text
    token = r.json()["session_token"]
    assert token
    return token


async def audit_kinds(app: FastAPI, principal_id: Any) -> list[str]:
    events = await app.state.audit_log.recent_for_principal(principal_id, limit=100)
    return [ev.kind.value for ev in events]

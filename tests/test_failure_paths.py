"""
tests.test_failure_paths

Failure handling around the pipeline: blank identifiers, store outages and audit sink failures.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from fastapi import FastAPI
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from conftest import ADMIN_EMAIL, PASSWORD, STAFF_EMAIL, base_vector, bearer
from mfa_gateway.api.deps import db_session
from mfa_gateway.db.models import AuditKind, Role
from mfa_gateway.observability.logging import REDACTED, redact_sensitive
from mfa_gateway.orchestrator.errors import NotFound
from mfa_gateway.services.login_service import LoginService


class _UnreachableSession:
    """Stands in for a request session whose database connection is gone."""

    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT principals", {}, ConnectionRefusedError("connection refused"))

    async def get(self, *args, **kwargs):
        raise OperationalError("SELECT principals", {}, ConnectionRefusedError("connection refused"))


async def _unreachable_session() -> AsyncIterator[_UnreachableSession]:
    yield _UnreachableSession()


async def _stage_token(client) -> str:
    r = await client.post(
        "/v1/login/credentials",
        json={"email": STAFF_EMAIL, "password": PASSWORD, "role": "staff"},
    )
    assert r.status_code == 200, r.text
    return r.json()["stage_token"]


async def test_blank_email_is_rejected_at_the_boundary(client, app: FastAPI, provision) -> None:
    await provision.staff()
    token = await _stage_token(client)

    r = await client.post(
        "/v1/login/credentials",
        json={"email": "   ", "password": PASSWORD, "role": "staff"},
    )
    assert r.status_code == 422

    r = await client.post(
        "/v1/login/biometric",
        json={"email": "   ", "role": "staff", "descriptor": base_vector()},
        headers=bearer(token),
    )
    assert r.status_code == 422

    # Surrounding whitespace is not part of the identifier.
    r = await client.post(
        "/v1/login/credentials",
        json={"email": f"  {STAFF_EMAIL} ", "password": PASSWORD, "role": "staff"},
    )
    assert r.status_code == 200, r.text


async def test_blank_email_inside_the_pipeline_is_audited(
    client, app: FastAPI, provision, settings
) -> None:
    await provision.staff()
    token = await _stage_token(client)

    async with app.state.sessionmaker() as session:
        service = LoginService(session=session, settings=settings, audit=app.state.audit_log)
        with pytest.raises(NotFound):
            await service.check_credentials(email="   ", password=PASSWORD, role=Role.staff)
        with pytest.raises(NotFound):
            await service.submit_biometric(
                token=token, email=" ", role=Role.staff, descriptor=None
            )

    page = await app.state.audit_log.suspicious(page=1, page_size=10)
    assert page.total == 2
    assert all(ev.kind == AuditKind.login_fail and ev.principal_id is None for ev in page.events)


async def test_store_outage_is_retryable_and_audited(client, app: FastAPI) -> None:
    app.dependency_overrides[db_session] = _unreachable_session
    try:
        r = await client.post(
            "/v1/login/credentials",
            json={"email": STAFF_EMAIL, "password": PASSWORD, "role": "staff"},
        )
    finally:
        app.dependency_overrides.clear()

    assert r.status_code == 503
    assert r.headers["retry-after"] == "5"
    assert r.json() == {"detail": "Service temporarily unavailable, retry later"}

    page = await app.state.audit_log.all_events(page=1, page_size=10)
    assert [ev.kind for ev in page.events] == [AuditKind.login_error]
    assert page.events[0].principal_id is None
    assert page.events[0].suspicious is False


async def test_audit_write_failure_does_not_change_the_decision(
    client, app: FastAPI, provision
) -> None:
    await provision.staff()
    await provision.admin()
    async with app.state.engine.begin() as conn:
        await conn.execute(text("DROP TABLE audit_events"))

    r = await client.post(
        "/v1/login/credentials",
        json={"email": STAFF_EMAIL, "password": "guess", "role": "staff"},
    )
    assert r.status_code == 401
    assert r.json() == {"detail": "Invalid credentials"}

    r = await client.post(
        "/v1/login/credentials",
        json={"email": ADMIN_EMAIL, "password": PASSWORD, "role": "admin"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["session_token"]


def test_credential_material_is_redacted_from_log_events() -> None:
    event = {
        "event": "login.rejected",
        "password": "hunter2",
        "descriptor": [0.1, 0.2],
        "stage_token": "eyJ...",
        "principal_id": "abc",
    }
    out = redact_sensitive(None, "info", event)
    assert out["password"] == out["descriptor"] == out["stage_token"] == REDACTED
    assert out["principal_id"] == "abc"

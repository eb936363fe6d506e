"""
tests.test_enrollment

Concurrent first-enrollment converges on a single stored descriptor.
"""

from __future__ import annotations

import asyncio

from fastapi import FastAPI

from conftest import PASSWORD, STAFF_EMAIL, audit_kinds, base_vector, bearer
from mfa_gateway.db.repositories.principals import PrincipalRepo
from mfa_gateway.services.login_service import build_matcher


async def _stage_token(client) -> str:
    r = await client.post(
        "/v1/login/credentials",
        json={"email": STAFF_EMAIL, "password": PASSWORD, "role": "staff"},
    )
    assert r.status_code == 200, r.text
    return r.json()["stage_token"]


async def test_concurrent_first_biometric_stores_once(client, app: FastAPI, provision, settings) -> None:
    staff = await provision.staff()
    v = base_vector()
    tokens = [await _stage_token(client) for _ in range(2)]

    responses = await asyncio.gather(
        *(
            client.post(
                "/v1/login/biometric",
                json={"email": STAFF_EMAIL, "role": "staff", "descriptor": v},
                headers=bearer(t),
            )
            for t in tokens
        )
    )
    assert [r.status_code for r in responses] == [200, 200]
    assert all(r.json()["next_stage"] == "geofence" for r in responses)

    kinds = await audit_kinds(app, staff.id)
    assert kinds.count("FACE_DATA_STORED") == 1
    assert kinds.count("FACE_VERIFY_SUCCESS") == 1

    async with app.state.sessionmaker() as session:
        stored = await PrincipalRepo(session).get(staff.id)
    assert stored is not None
    assert build_matcher(settings).compare(stored.descriptor, v, threshold=1e-9)


async def test_conditional_enrollment_keeps_the_first_descriptor(app: FastAPI, provision) -> None:
    staff = await provision.staff()

    async with app.state.sessionmaker() as session:
        repo = PrincipalRepo(session)
        assert await repo.enroll_descriptor(staff.id, "first") is True
        assert await repo.enroll_descriptor(staff.id, "second") is False
        principal = await repo.get(staff.id)
        assert principal is not None
        assert principal.descriptor == "first"

"""
tests.test_settings

Production configuration guard.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from mfa_gateway.settings import DEV_JWT_SECRET, Settings

_EXPLICIT = {
    "jwt_secret": "a-real-deployment-secret",
    "password_time_cost": 3,
    "password_memory_cost": 65536,
    "descriptor_match_threshold": 0.6,
    "geofence_max_distance_meters": 100.0,
    "stage_token_ttl_minutes": 10,
    "session_token_ttl_hours": 12,
}


def test_dev_defaults_are_usable() -> None:
    s = Settings(env="dev")
    assert s.jwt_secret == DEV_JWT_SECRET
    assert s.descriptor_match_threshold == 0.6
    assert s.geofence_max_distance_meters == 100.0


def test_prod_refuses_implicit_defaults() -> None:
    with pytest.raises(ValidationError, match="jwt_secret"):
        Settings(env="prod")


def test_prod_refuses_dev_secret() -> None:
    with pytest.raises(ValidationError, match="development signing secret"):
        Settings(env="prod", **{**_EXPLICIT, "jwt_secret": DEV_JWT_SECRET})


def test_prod_accepts_explicit_values() -> None:
    s = Settings(env="prod", **_EXPLICIT)
    assert s.env == "prod"
    assert "a-real-deployment-secret" not in repr(s)


def test_env_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MFA_GEOFENCE_MAX_DISTANCE_METERS", "250")
    assert Settings().geofence_max_distance_meters == 250.0

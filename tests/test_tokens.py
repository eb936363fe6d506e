"""
tests.test_tokens

Stage/session token scope separation.
"""

from __future__ import annotations

import uuid
from datetime import timedelta

import pytest

from mfa_gateway.auth.jwt import JwtConfig, JwtValidationError, TokenIssuer, issue_token
from mfa_gateway.auth.models import LoginStage, TokenScope
from mfa_gateway.db.models import Role, Staff
from mfa_gateway.settings import Settings

STAGE = frozenset({TokenScope.stage})
SESSION = frozenset({TokenScope.session})


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer.from_settings(Settings(env="test"))


@pytest.fixture
def staff() -> Staff:
    return Staff(
        id=uuid.uuid4(),
        email="dr.rao@clinic.test",
        name="Dr. Rao",
        role=Role.staff,
        password_hash="$argon2id$placeholder",
    )


def test_stage_token_round_trip(issuer: TokenIssuer, staff: Staff) -> None:
    token = issuer.issue_stage_token(staff, stage=LoginStage.geofence)
    claims = issuer.validate(token, scopes=STAGE)
    assert claims.subject == staff.id
    assert claims.email == staff.email
    assert claims.role == Role.staff
    assert claims.scope == TokenScope.stage
    assert claims.stage == LoginStage.geofence


def test_stage_token_is_not_a_session(issuer: TokenIssuer, staff: Staff) -> None:
    token = issuer.issue_stage_token(staff, stage=LoginStage.biometric)
    with pytest.raises(JwtValidationError):
        issuer.validate(token, scopes=SESSION)


def test_session_token_is_not_a_stage_token(issuer: TokenIssuer, staff: Staff) -> None:
    token = issuer.issue_session_token(staff)
    assert issuer.validate(token, scopes=SESSION).stage is None
    with pytest.raises(JwtValidationError):
        issuer.validate(token, scopes=STAGE)


def test_expired_token_is_rejected(issuer: TokenIssuer, staff: Staff) -> None:
    expired = TokenIssuer(cfg=issuer._cfg, session_ttl=timedelta(seconds=-5))
    token = expired.issue_session_token(staff)
    with pytest.raises(JwtValidationError):
        issuer.validate(token, scopes=SESSION)


def test_foreign_signature_is_rejected(issuer: TokenIssuer, staff: Staff) -> None:
    other = TokenIssuer.from_settings(Settings(env="test", jwt_secret="some-other-secret"))
    token = other.issue_session_token(staff)
    with pytest.raises(JwtValidationError):
        issuer.validate(token, scopes=SESSION)


def test_stage_scope_without_stage_claim_is_rejected(issuer: TokenIssuer, staff: Staff) -> None:
    cfg = JwtConfig(alg="HS256", issuer="mfa-gateway", audience="mfa-api", secret=issuer._cfg.secret)
    token = issue_token(
        cfg=cfg,
        subject=str(staff.id),
        claims={"email": staff.email, "role": "staff", "scope": "stage"},
        ttl=timedelta(minutes=5),
    )
    with pytest.raises(JwtValidationError):
        issuer.validate(token, scopes=STAGE)

"""
mfa_gateway.auth.jwt

JWT issuing and validation for the two credential classes.

Responsibilities:
- Issue short-lived stage tokens (scope=stage, bound to one login step) and long-lived session
  tokens (scope=session).
- Decode and validate tokens with strict claim requirements, enforcing the expected scope.

Note:
- A single deployment-wide HS256 secret signs everything; rotation is handled outside.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from mfa_gateway.auth.models import LoginStage, TokenClaims, TokenScope
from mfa_gateway.db.models import Principal, Role
from mfa_gateway.settings import Settings


@dataclass(frozen=True, slots=True)
class JwtConfig:
    # Algorithm/issuer/audience are enforced during decoding.
    alg: str
    issuer: str
    audience: str
    secret: str


class JwtValidationError(Exception):
    pass


def issue_token(
    *,
    cfg: JwtConfig,
    subject: str,
    claims: dict[str, Any],
    ttl: timedelta,
) -> str:
    now = datetime.now(tz=UTC)
    payload: dict[str, Any] = {
        **claims,
        "iss": cfg.issuer,
        "aud": cfg.audience,
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, cfg.secret, algorithm=cfg.alg)


def decode_and_validate(*, cfg: JwtConfig, token: str) -> dict[str, Any]:
    try:
        # jwt.decode enforces signature + registered claims (issuer/audience/exp, etc.).
        return jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            issuer=cfg.issuer,
            audience=cfg.audience,
            options={
                "require": ["exp", "iat", "iss", "aud", "sub"],
            },
        )
    except InvalidTokenError as e:
        raise JwtValidationError(str(e)) from e


class TokenIssuer:
    def __init__(
        self,
        *,
        cfg: JwtConfig,
        stage_ttl: timedelta = timedelta(minutes=15),
        session_ttl: timedelta = timedelta(hours=24),
    ) -> None:
        self._cfg = cfg
        self.stage_ttl = stage_ttl
        self.session_ttl = session_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenIssuer:
        return cls(
            cfg=JwtConfig(
                alg=settings.jwt_alg,
                issuer=settings.jwt_issuer,
                audience=settings.jwt_audience,
                secret=settings.jwt_secret,
            ),
            stage_ttl=timedelta(minutes=settings.stage_token_ttl_minutes),
            session_ttl=timedelta(hours=settings.session_token_ttl_hours),
        )

    def issue_stage_token(self, principal: Principal, *, stage: LoginStage) -> str:
        return issue_token(
            cfg=self._cfg,
            subject=str(principal.id),
            claims={
                "email": principal.email,
                "role": principal.role.value,
                "scope": TokenScope.stage.value,
                "stage": stage.value,
            },
            ttl=self.stage_ttl,
        )

    def issue_session_token(self, principal: Principal) -> str:
        return issue_token(
            cfg=self._cfg,
            subject=str(principal.id),
            claims={
                "email": principal.email,
                "role": principal.role.value,
                "scope": TokenScope.session.value,
            },
            ttl=self.session_ttl,
        )

    def validate(self, token: str, *, scopes: frozenset[TokenScope]) -> TokenClaims:
        payload = decode_and_validate(cfg=self._cfg, token=token)
        try:
            claims = TokenClaims(
                subject=uuid.UUID(str(payload["sub"])),
                email=str(payload["email"]),
                role=Role(payload["role"]),
                scope=TokenScope(payload["scope"]),
                stage=LoginStage(payload["stage"]) if payload.get("stage") else None,
            )
        except (KeyError, ValueError) as e:
            raise JwtValidationError(f"malformed claims: {e}") from e

        if claims.scope not in scopes:
            raise JwtValidationError(f"scope {claims.scope} not accepted here")
        if claims.scope == TokenScope.stage and claims.stage is None:
            raise JwtValidationError("stage token without stage claim")
        return claims


# --- Module Notes -----------------------------------------------------------
# Token issuance is a pure function of the signing secret and the claims; no state is kept.

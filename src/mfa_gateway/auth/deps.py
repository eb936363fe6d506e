"""
mfa_gateway.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert a session bearer token into typed `TokenClaims`.
- Enforce role checks via reusable dependency factories.
- Extract raw bearer tokens for the login steps (validated later with their own scope rules).
"""

from __future__ import annotations

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from mfa_gateway.api.deps import settings_dep
from mfa_gateway.auth.jwt import JwtValidationError, TokenIssuer
from mfa_gateway.auth.models import TokenClaims, TokenScope
from mfa_gateway.db.models import Role
from mfa_gateway.settings import Settings

_bearer = HTTPBearer(auto_error=False)

_SESSION_ONLY = frozenset({TokenScope.session})


def bearer_token(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str | None:
    if creds is None or not creds.credentials:
        return None
    return creds.credentials


def get_session_claims(
    token: str | None = Depends(bearer_token),
    settings: Settings = Depends(settings_dep),
) -> TokenClaims:
    if token is None:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    try:
        # Stage tokens are rejected here: only a completed login grants API access.
        return TokenIssuer.from_settings(settings).validate(token, scopes=_SESSION_ONLY)
    except JwtValidationError as e:
        raise HTTPException(
            status_code=HTTP_401_UNAUTHORIZED, detail="Invalid or expired token"
        ) from e


def require_role(*allowed: Role):
    allowed_set = frozenset(allowed)

    def _dep(claims: TokenClaims = Depends(get_session_claims)) -> TokenClaims:
        if claims.role not in allowed_set:
            raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Insufficient role")
        return claims

    return _dep


# --- Module Notes -----------------------------------------------------------
# Login steps take the raw token via `bearer_token`; LoginService validates it so that every
# rejection is audited. Other endpoints use `get_session_claims` / `require_role`.

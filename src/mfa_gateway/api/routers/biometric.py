"""
mfa_gateway.api.routers.biometric

Biometric enrollment status for the signed-in principal.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_401_UNAUTHORIZED

from mfa_gateway.api.deps import db_session
from mfa_gateway.auth.deps import get_session_claims
from mfa_gateway.auth.models import TokenClaims
from mfa_gateway.db.repositories.principals import PrincipalRepo

router = APIRouter(prefix="/v1/biometric", tags=["biometric"])


class BiometricStatusOut(BaseModel):
    has_descriptor: bool


@router.get("/status", response_model=BiometricStatusOut)
async def biometric_status(
    claims: TokenClaims = Depends(get_session_claims),
    session: AsyncSession = Depends(db_session),
) -> BiometricStatusOut:
    principal = await PrincipalRepo(session).get(claims.subject)
    if principal is None or principal.email != claims.email:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    return BiometricStatusOut(has_descriptor=principal.has_descriptor)

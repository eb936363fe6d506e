"""
mfa_gateway.api.routers.login

Login step endpoints.

Responsibilities:
- Accept the three login steps (credentials, biometric, geofence) and delegate to LoginService.
- Classify transport inputs (descriptor as array or text, optional location) before the service.
- Map pipeline rejections to HTTP with generic client messages.
"""

from __future__ import annotations

import uuid
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, StringConstraints
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from mfa_gateway.api.deps import login_service
from mfa_gateway.auth.deps import bearer_token
from mfa_gateway.db.models import Principal, Role, Staff
from mfa_gateway.orchestrator.errors import LoginError
from mfa_gateway.services.login_service import LoginOutcome, LoginService
from mfa_gateway.verification.descriptors import DescriptorInput, as_descriptor_input
from mfa_gateway.verification.geofence import GeoPoint

router = APIRouter(prefix="/v1/login", tags=["login"])

# Seconds a client should wait before retrying after a principal store outage.
_RETRY_AFTER_SECONDS = "5"

# Surrounding whitespace is dropped; a blank identifier is a 422 before any lookup.
ContactId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=320)]


class LocationIn(BaseModel):
    latitude: float
    longitude: float
    accuracy: float | None = None


class CredentialsIn(BaseModel):
    email: ContactId
    password: str = Field(min_length=1)
    role: Role
    # Array of numbers or text (JSON / base64 JSON); element checks happen in the matcher.
    descriptor: list[Any] | str | None = None


class BiometricIn(BaseModel):
    email: ContactId
    role: Role
    descriptor: list[Any] | str | None = None


class GeofenceIn(BaseModel):
    email: ContactId
    role: Role
    password: str = Field(min_length=1)
    location: LocationIn | None = None


class PrincipalOut(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    role: Role
    has_descriptor: bool
    department: str | None = None
    leave_granted: int | None = None
    leave_used: int | None = None
    leave_remaining: int | None = None


class LoginStepOut(BaseModel):
    success: bool = True
    principal_id: uuid.UUID
    has_descriptor: bool
    next_stage: str
    stage_token: str | None = None
    session_token: str | None = None
    principal: PrincipalOut | None = None


class SessionOut(BaseModel):
    success: bool = True
    session_token: str
    principal: PrincipalOut


@router.post("/credentials", response_model=LoginStepOut)
async def login_credentials(
    body: CredentialsIn,
    service: LoginService = Depends(login_service),
) -> LoginStepOut:
    try:
        outcome = await service.check_credentials(
            email=body.email,
            password=body.password,
            role=body.role,
            descriptor=_descriptor(body.descriptor),
        )
    except LoginError as e:
        raise _http_error(e) from e
    return _step_out(outcome)


@router.post("/biometric", response_model=LoginStepOut)
async def login_biometric(
    body: BiometricIn,
    token: str | None = Depends(bearer_token),
    service: LoginService = Depends(login_service),
) -> LoginStepOut:
    try:
        outcome = await service.submit_biometric(
            token=token,
            email=body.email,
            role=body.role,
            descriptor=_descriptor(body.descriptor),
        )
    except LoginError as e:
        raise _http_error(e) from e
    return _step_out(outcome)


@router.post("/geofence", response_model=SessionOut)
async def login_geofence(
    body: GeofenceIn,
    token: str | None = Depends(bearer_token),
    service: LoginService = Depends(login_service),
) -> SessionOut:
    location = None
    if body.location is not None:
        location = GeoPoint(
            latitude=body.location.latitude,
            longitude=body.location.longitude,
            accuracy=body.location.accuracy,
        )
    try:
        outcome = await service.confirm_location(
            token=token,
            email=body.email,
            role=body.role,
            password=body.password,
            location=location,
        )
    except LoginError as e:
        raise _http_error(e) from e
    if not outcome.session_token:
        raise HTTPException(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR, detail="Authentication failed"
        )
    return SessionOut(
        session_token=outcome.session_token,
        principal=principal_out(outcome.principal, has_descriptor=outcome.has_descriptor),
    )


def principal_out(principal: Principal, *, has_descriptor: bool | None = None) -> PrincipalOut:
    out = PrincipalOut(
        id=principal.id,
        email=principal.email,
        name=principal.name,
        role=principal.role,
        has_descriptor=principal.has_descriptor if has_descriptor is None else has_descriptor,
        department=getattr(principal, "department", None),
    )
    if isinstance(principal, Staff):
        granted = principal.leave_granted or 0
        used = principal.leave_used or 0
        out.leave_granted = granted
        out.leave_used = used
        out.leave_remaining = granted - used
    return out


def _descriptor(raw: list[Any] | str | None) -> DescriptorInput | None:
    if raw is None:
        return None
    return as_descriptor_input(raw)


def _step_out(outcome: LoginOutcome) -> LoginStepOut:
    # Identity is only echoed back once a session exists.
    summary = None
    if outcome.session_token:
        summary = principal_out(outcome.principal, has_descriptor=outcome.has_descriptor)
    return LoginStepOut(
        principal_id=outcome.principal.id,
        has_descriptor=outcome.has_descriptor,
        next_stage=outcome.next_stage.value,
        stage_token=outcome.stage_token,
        session_token=outcome.session_token,
        principal=summary,
    )


def _http_error(e: LoginError) -> HTTPException:
    headers = {"Retry-After": _RETRY_AFTER_SECONDS} if e.retryable else None
    return HTTPException(status_code=e.status_code, detail=e.public_message, headers=headers)


# --- Module Notes -----------------------------------------------------------
# A RawVector/EncodedText that cannot be decoded still reaches the service, which records
# FACE_DATA_INVALID against the principal before refusing with 400.

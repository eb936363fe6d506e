from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NoReturn

from mfa_gateway.auth.jwt import TokenIssuer
from mfa_gateway.auth.models import LoginStage, TokenScope
from mfa_gateway.auth.passwords import PasswordHasher
from mfa_gateway.db.models import AuditKind, Principal, Role, Staff
from mfa_gateway.db.repositories.principals import PrincipalStore
from mfa_gateway.observability.logging import get_logger
from mfa_gateway.orchestrator.errors import (
    BiometricMismatch,
    ConfigurationMissing,
    CredentialMismatch,
    GeofenceViolation,
    InvalidDescriptorFormat,
    MissingLocation,
    NotFound,
    TokenExpiredOrScopeMismatch,
)
from mfa_gateway.orchestrator.state import LoginState
from mfa_gateway.services.audit_log import AuditLog
from mfa_gateway.verification.descriptors import Descriptor, DescriptorMatcher
from mfa_gateway.verification.geofence import GeofenceValidator, haversine_distance

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class LoginDeps:
    principals: PrincipalStore
    hasher: PasswordHasher
    matcher: DescriptorMatcher
    geofence: GeofenceValidator
    tokens: TokenIssuer
    audit: AuditLog


async def entry_node(state: LoginState, *, deps: LoginDeps) -> dict[str, Any]:
    if state.get("stage") not in (
        LoginStage.credentials,
        LoginStage.biometric,
        LoginStage.geofence,
    ):
        raise ValueError(f"unknown login stage: {state.get('stage')!r}")
    if not str(state.get("email") or "").strip():
        await deps.audit.record(
            None, AuditKind.login_fail, f"Blank contact identifier at {state['stage']} stage"
        )
        raise NotFound("blank contact identifier")
    Role(state["role"])
    return {}


async def credentials_node(state: LoginState, *, deps: LoginDeps) -> dict[str, Any]:
    role = Role(state["role"])
    principal = await deps.principals.get_by_email(state["email"])

    # Unknown account and wrong-role account are indistinguishable to the client.
    if principal is None or principal.role != role:
        await deps.audit.record(
            None,
            AuditKind.login_fail,
            f"Login attempt for unknown {role.value} account {state['email']}",
        )
        raise NotFound(f"no {role.value} principal for contact identifier")

    secret = state.get("secret") or ""
    if not deps.hasher.verify(secret, principal.password_hash):
        await deps.audit.record(principal.id, AuditKind.login_fail, "Invalid password attempt")
        raise CredentialMismatch("password mismatch")

    if deps.hasher.needs_rehash(principal.password_hash):
        await deps.principals.update_password_hash(principal.id, deps.hasher.hash(secret))
        log.info("login.password_rehashed", principal_id=str(principal.id))

    log.info("login.credentials_ok", principal_id=str(principal.id), role=role.value)
    update: dict[str, Any] = {
        "principal": principal,
        "has_descriptor": principal.has_descriptor,
    }
    if role == Role.staff:
        await deps.audit.record(
            principal.id,
            AuditKind.credentials_verified,
            "Password verified; biometric stage pending",
        )
        update["stage_token"] = deps.tokens.issue_stage_token(
            principal, stage=LoginStage.biometric
        )
        update["next_stage"] = LoginStage.biometric.value
    return update


async def admin_biometric_node(state: LoginState, *, deps: LoginDeps) -> dict[str, Any]:
    """
    Administrators skip the geofence and never need an extra round trip on first login: a
    supplied descriptor is enrolled on the spot. Once enrolled, every login re-verifies it.
    """

    principal = state["principal"]
    if state.get("descriptor_invalid"):
        await _reject_invalid_descriptor(deps, principal, "Unreadable descriptor at admin login")

    descriptor = state.get("descriptor")
    if descriptor is None:
        if not principal.has_descriptor:
            log.info("login.admin_enrollment_deferred", principal_id=str(principal.id))
            return {"enrolled": False}
        await deps.audit.record(
            principal.id,
            AuditKind.credentials_verified,
            "Password verified; biometric stage pending",
        )
        return {
            "next_stage": LoginStage.biometric.value,
            "stage_token": deps.tokens.issue_stage_token(principal, stage=LoginStage.biometric),
        }

    enrolled = await _enroll_or_verify(deps, principal, descriptor)
    if not enrolled:
        await _record_face_verified(deps, principal)
    return {"enrolled": enrolled, "has_descriptor": True}


async def bind_token_node(state: LoginState, *, deps: LoginDeps) -> dict[str, Any]:
    claims = state.get("claims")
    requested = LoginStage(state["stage"])
    problem: str | None = None
    principal: Principal | None = None

    if claims is None:
        problem = "no token"
    elif claims.scope == TokenScope.stage and claims.stage != requested:
        problem = f"stage token for {claims.stage} presented to {requested}"
    elif requested == LoginStage.geofence and claims.scope != TokenScope.stage:
        problem = "session token presented to geofence stage"
    elif claims.email != state["email"] or claims.role != Role(state["role"]):
        problem = "token identity does not match request identity"
    else:
        principal = await deps.principals.get(claims.subject)
        if principal is None or principal.email != claims.email or principal.role != claims.role:
            problem = "token subject does not resolve to the same principal"
            principal = None

    if problem is not None or principal is None:
        await deps.audit.record(
            principal.id if principal else None,
            AuditKind.token_rejected,
            f"Token rejected at {requested} stage: {problem}",
        )
        raise TokenExpiredOrScopeMismatch(problem or "principal unresolved")

    return {"principal": principal, "has_descriptor": principal.has_descriptor}


async def biometric_node(state: LoginState, *, deps: LoginDeps) -> dict[str, Any]:
    principal = state["principal"]
    claims = state.get("claims")
    if claims is None:
        raise TokenExpiredOrScopeMismatch("biometric step without validated claims")

    descriptor = state.get("descriptor")
    if state.get("descriptor_invalid") or descriptor is None:
        await _reject_invalid_descriptor(deps, principal, "Missing or unreadable descriptor")

    enrolled = await _enroll_or_verify(deps, principal, descriptor)
    if not enrolled:
        await _record_face_verified(deps, principal)

    if claims.scope == TokenScope.session:
        return {"enrolled": enrolled, "has_descriptor": True, "next_stage": LoginStage.none.value}

    if principal.role == Role.staff:
        return {
            "enrolled": enrolled,
            "has_descriptor": True,
            "next_stage": LoginStage.geofence.value,
            "stage_token": deps.tokens.issue_stage_token(principal, stage=LoginStage.geofence),
        }

    return {"enrolled": enrolled, "has_descriptor": True}


async def geofence_node(state: LoginState, *, deps: LoginDeps) -> dict[str, Any]:
    principal = state["principal"]
    if not isinstance(principal, Staff):
        await deps.audit.record(
            principal.id, AuditKind.token_rejected, "Geofence stage requested by non-staff"
        )
        raise TokenExpiredOrScopeMismatch("geofence stage is staff-only")

    # Final confirmation of the secret before a session credential is minted.
    if not deps.hasher.verify(state.get("secret") or "", principal.password_hash):
        await deps.audit.record(
            principal.id, AuditKind.login_fail, "Invalid password at final confirmation"
        )
        raise CredentialMismatch("password mismatch at geofence stage")

    location = state.get("location")
    if location is None:
        await deps.audit.record(
            principal.id, AuditKind.location_verify_fail, "Location data missing"
        )
        raise MissingLocation("no location submitted")

    reference = deps.geofence.reference_for(
        principal.reference_latitude, principal.reference_longitude
    )
    if reference is None or not deps.geofence.is_configured:
        log.error("geofence.not_configured", principal_id=str(principal.id))
        await deps.audit.record(
            principal.id,
            AuditKind.location_verify_fail,
            "Geofence reference or radius not configured",
            location,
        )
        raise ConfigurationMissing("geofence reference or max distance unset")

    if not deps.geofence.is_within_range(location, reference):
        detail = "Location outside permitted range"
        if location.is_valid:
            distance = haversine_distance(location, reference)
            detail = f"{detail} ({distance:.1f} m > {deps.geofence.max_distance_meters} m)"
        await deps.audit.record(principal.id, AuditKind.location_verify_fail, detail, location)
        raise GeofenceViolation("outside geofence")

    log.info("login.geofence_ok", principal_id=str(principal.id))
    return {}


async def issue_session_node(state: LoginState, *, deps: LoginDeps) -> dict[str, Any]:
    principal = state["principal"]
    token = deps.tokens.issue_session_token(principal)
    await deps.audit.record(
        principal.id, AuditKind.login_success, "Login successful", state.get("location")
    )
    log.info("login.session_issued", principal_id=str(principal.id), role=principal.role.value)
    return {"session_token": token, "stage_token": None, "next_stage": LoginStage.none.value}


async def _enroll_or_verify(deps: LoginDeps, principal: Principal, descriptor: Descriptor) -> bool:
    """Returns True if `descriptor` was enrolled, False if it was verified against storage."""

    if not principal.has_descriptor:
        if not deps.matcher.fits_deployment(descriptor):
            await _reject_invalid_descriptor(
                deps,
                principal,
                f"Descriptor has {descriptor.dimensions} dimensions, "
                f"expected {deps.matcher.dimensions}",
            )
        if await deps.principals.enroll_descriptor(principal.id, deps.matcher.encode(descriptor)):
            await deps.audit.record(
                principal.id, AuditKind.face_data_stored, "Face descriptor enrolled"
            )
            return True
        # A concurrent first login enrolled first; fall through and verify against it.
        log.info("login.enrollment_race_lost", principal_id=str(principal.id))

    if not deps.matcher.compare(principal.descriptor, descriptor):
        await deps.audit.record(principal.id, AuditKind.face_verify_fail, "Face verification failed")
        raise BiometricMismatch("descriptor distance above threshold")
    return False


async def _record_face_verified(deps: LoginDeps, principal: Principal) -> None:
    await deps.audit.record(
        principal.id, AuditKind.face_verify_success, "Face verified successfully"
    )


async def _reject_invalid_descriptor(
    deps: LoginDeps, principal: Principal, detail: str
) -> NoReturn:
    await deps.audit.record(principal.id, AuditKind.face_data_invalid, detail)
    raise InvalidDescriptorFormat(detail)


def route_by_stage(state: LoginState) -> str:
    if state["stage"] == LoginStage.credentials:
        return "credentials"
    return "bind_token"


def route_after_credentials(state: LoginState) -> str:
    if state.get("stage_token"):
        return "await_client"
    return "admin_biometric"


def route_after_admin_biometric(state: LoginState) -> str:
    if state.get("stage_token"):
        return "await_client"
    return "issue_session"


def route_after_bind(state: LoginState) -> str:
    if state["stage"] == LoginStage.geofence:
        return "geofence"
    return "biometric"


def route_after_biometric(state: LoginState) -> str:
    # Staff continue to the geofence in a separate request; session-token calls stop here.
    if state.get("next_stage") in (LoginStage.geofence, LoginStage.none):
        return "await_client"
    return "issue_session"

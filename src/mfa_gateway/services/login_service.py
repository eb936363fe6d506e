"""
mfa_gateway.services.login_service

Login pipeline service (boundary + graph runner).

Responsibilities:
- Resolve transport inputs once (descriptor sum type, location, bearer token) before the graph.
- Run the LangGraph state machine for each login step.
- Guarantee an audit entry for failures raised outside graph nodes (bad tokens, store outages).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from mfa_gateway.auth.jwt import JwtValidationError, TokenIssuer
from mfa_gateway.auth.models import LoginStage, TokenClaims, TokenScope
from mfa_gateway.auth.passwords import PasswordHasher
from mfa_gateway.db.models import AuditKind, Principal, Role
from mfa_gateway.db.repositories.principals import PrincipalRepo
from mfa_gateway.observability.logging import get_logger
from mfa_gateway.orchestrator.errors import (
    LoginError,
    StoreUnavailable,
    TokenExpiredOrScopeMismatch,
)
from mfa_gateway.orchestrator.graph import build_graph
from mfa_gateway.orchestrator.nodes import LoginDeps
from mfa_gateway.orchestrator.state import LoginState
from mfa_gateway.services.audit_log import AuditLog
from mfa_gateway.settings import Settings
from mfa_gateway.verification.descriptors import DescriptorInput, DescriptorMatcher
from mfa_gateway.verification.geofence import GeofenceValidator, GeoPoint

log = get_logger(__name__)

_STEP_SCOPES: dict[LoginStage, frozenset[TokenScope]] = {
    LoginStage.biometric: frozenset({TokenScope.stage, TokenScope.session}),
    LoginStage.geofence: frozenset({TokenScope.stage}),
}


@dataclass(frozen=True, slots=True)
class LoginOutcome:
    principal: Principal
    has_descriptor: bool
    next_stage: LoginStage
    stage_token: str | None = None
    session_token: str | None = None
    enrolled: bool = False


def build_matcher(settings: Settings) -> DescriptorMatcher:
    return DescriptorMatcher(
        threshold=settings.descriptor_match_threshold,
        dimensions=settings.descriptor_dimensions,
    )


def build_geofence(settings: Settings) -> GeofenceValidator:
    default_reference = None
    if (
        settings.geofence_reference_latitude is not None
        and settings.geofence_reference_longitude is not None
    ):
        default_reference = GeoPoint(
            latitude=settings.geofence_reference_latitude,
            longitude=settings.geofence_reference_longitude,
        )
    return GeofenceValidator(
        max_distance_meters=settings.geofence_max_distance_meters,
        default_reference=default_reference,
    )


class LoginService:
    def __init__(
        self,
        *,
        session: AsyncSession,
        settings: Settings,
        audit: AuditLog,
    ) -> None:
        self._session = session
        self._settings = settings
        self._audit = audit
        self._tokens = TokenIssuer.from_settings(settings)
        self._matcher = build_matcher(settings)

        self._deps = LoginDeps(
            principals=PrincipalRepo(session),
            hasher=PasswordHasher.from_settings(settings),
            matcher=self._matcher,
            geofence=build_geofence(settings),
            tokens=self._tokens,
            audit=audit,
        )

    async def check_credentials(
        self,
        *,
        email: str,
        password: str,
        role: Role,
        descriptor: DescriptorInput | None = None,
    ) -> LoginOutcome:
        state: LoginState = {
            "stage": LoginStage.credentials.value,
            "email": email,
            "role": role.value,
            "secret": password,
            **self._resolve_descriptor(descriptor),
        }
        return await self._run(state)

    async def submit_biometric(
        self,
        *,
        token: str | None,
        email: str,
        role: Role,
        descriptor: DescriptorInput | None,
    ) -> LoginOutcome:
        claims = await self._claims(token, LoginStage.biometric)
        state: LoginState = {
            "stage": LoginStage.biometric.value,
            "email": email,
            "role": role.value,
            "claims": claims,
            **self._resolve_descriptor(descriptor),
        }
        return await self._run(state)

    async def confirm_location(
        self,
        *,
        token: str | None,
        email: str,
        role: Role,
        password: str,
        location: GeoPoint | None,
    ) -> LoginOutcome:
        claims = await self._claims(token, LoginStage.geofence)
        state: LoginState = {
            "stage": LoginStage.geofence.value,
            "email": email,
            "role": role.value,
            "secret": password,
            "claims": claims,
            "location": location,
        }
        return await self._run(state)

    def _resolve_descriptor(self, raw: DescriptorInput | None) -> dict[str, Any]:
        # The one place a transport descriptor becomes a vector; nodes never see raw input.
        if raw is None:
            return {"descriptor": None, "descriptor_invalid": False}
        decoded = self._matcher.decode(raw)
        return {"descriptor": decoded, "descriptor_invalid": decoded is None}

    async def _claims(self, token: str | None, stage: LoginStage) -> TokenClaims:
        if not token:
            await self._audit.record(
                None, AuditKind.token_rejected, f"Missing token at {stage} stage"
            )
            raise TokenExpiredOrScopeMismatch("missing token")
        try:
            return self._tokens.validate(token, scopes=_STEP_SCOPES[stage])
        except JwtValidationError as e:
            await self._audit.record(
                None, AuditKind.token_rejected, f"Token rejected at {stage} stage: {e}"
            )
            raise TokenExpiredOrScopeMismatch(str(e)) from e

    async def _run(self, state: LoginState) -> LoginOutcome:
        graph = build_graph(deps=self._deps)
        try:
            final: LoginState = await graph.ainvoke(state)
        except StoreUnavailable as e:
            await self._audit.record(
                _principal_ref(state),
                AuditKind.login_error,
                f"Principal store unavailable at {state['stage']} stage",
            )
            log.warning("login.store_unavailable", stage=state["stage"], error=e.detail)
            raise
        except LoginError as e:
            log.info(
                "login.rejected",
                stage=state["stage"],
                role=state["role"],
                reason=type(e).__name__,
            )
            raise

        principal = final["principal"]
        return LoginOutcome(
            principal=principal,
            has_descriptor=bool(final.get("has_descriptor", principal.has_descriptor)),
            next_stage=LoginStage(final.get("next_stage", LoginStage.none.value)),
            stage_token=final.get("stage_token"),
            session_token=final.get("session_token"),
            enrolled=bool(final.get("enrolled", False)),
        )


def _principal_ref(state: LoginState) -> uuid.UUID | None:
    claims = state.get("claims")
    return claims.subject if claims is not None else None


# --- Module Notes -----------------------------------------------------------
# One LoginService per request; it shares only the principal store session and the audit sink.

"""
mfa_gateway.orchestrator.errors

Domain exceptions raised by the login pipeline.

Responsibilities:
- Name every way a login step can be refused.
- Carry the HTTP status and the generic client-facing message for each kind.

Client messages never reveal which check failed beyond the stage, never distinguish "no such
account" from "wrong role", and never include stored or submitted biometric data.
"""

from __future__ import annotations

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_404_NOT_FOUND,
    HTTP_503_SERVICE_UNAVAILABLE,
)


class LoginError(Exception):
    status_code: int = HTTP_401_UNAUTHORIZED
    public_message: str = "Authentication failed"
    retryable: bool = False

    def __init__(self, detail: str = "") -> None:
        # `detail` is internal (logs/audit only); clients only ever see `public_message`.
        super().__init__(detail or self.public_message)
        self.detail = detail or self.public_message


class NotFound(LoginError):
    status_code = HTTP_404_NOT_FOUND
    public_message = "Invalid credentials"


class CredentialMismatch(LoginError):
    public_message = "Invalid credentials"


class BiometricMismatch(CredentialMismatch):
    public_message = "Face verification failed"


class InvalidDescriptorFormat(LoginError):
    status_code = HTTP_400_BAD_REQUEST
    public_message = "Invalid face descriptor format"


class GeofenceViolation(LoginError):
    public_message = "Location verification failed"


class MissingLocation(GeofenceViolation):
    status_code = HTTP_400_BAD_REQUEST
    public_message = "Location data required"


class ConfigurationMissing(GeofenceViolation):
    """Geofence reference or radius is not configured; the check fails closed."""


class TokenExpiredOrScopeMismatch(LoginError):
    public_message = "Invalid or expired token"


class StoreUnavailable(LoginError):
    status_code = HTTP_503_SERVICE_UNAVAILABLE
    public_message = "Service temporarily unavailable, retry later"
    retryable = True


# --- Module Notes -----------------------------------------------------------
# Routers translate these into HTTPException; only StoreUnavailable carries retry guidance.

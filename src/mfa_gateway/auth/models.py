"""
mfa_gateway.auth.models

Auth domain models.

Responsibilities:
- Define token scopes and login stages.
- Define the validated claim set (`TokenClaims`) that endpoints and the orchestrator consume.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass

from mfa_gateway.db.models import Role


class TokenScope(enum.StrEnum):
    # Stage tokens only unlock the next step of an in-progress login.
    stage = "stage"
    session = "session"


class LoginStage(enum.StrEnum):
    credentials = "credentials"
    biometric = "biometric"
    geofence = "geofence"
    # Reported as `next_stage` once a session token has been issued.
    none = "none"


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """
    Validated token identity.

    `role` is the role at issuance and is authoritative for the token's lifetime.
    """

    subject: uuid.UUID
    email: str
    role: Role
    scope: TokenScope
    stage: LoginStage | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin


# --- Module Notes -----------------------------------------------------------
# Keep this model minimal; it crosses the API, service and orchestrator layers.

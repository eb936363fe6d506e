"""
mfa_gateway.orchestrator.state

Typed state schema used by the LangGraph login state machine.

Responsibilities:
- Define the contract between nodes (inputs/outputs) for one login step.
- Carry the explicit login context (validated token claims + collected inputs) between nodes
  instead of any ambient/global storage.
"""

from __future__ import annotations

from typing import TypedDict

from mfa_gateway.auth.models import TokenClaims
from mfa_gateway.db.models import Principal
from mfa_gateway.verification.descriptors import Descriptor
from mfa_gateway.verification.geofence import GeoPoint


class LoginState(TypedDict, total=False):
    # Request: which step the client is performing, and as whom.
    stage: str
    email: str
    role: str
    # Never logged, never returned; only handed to the password hasher.
    secret: str | None

    # Inputs resolved at the API boundary.
    descriptor: Descriptor | None
    descriptor_invalid: bool
    location: GeoPoint | None

    # Stage/session token presented for steps after credentials.
    claims: TokenClaims | None

    # Resolved principal and outcome.
    principal: Principal
    has_descriptor: bool
    enrolled: bool
    next_stage: str
    stage_token: str | None
    session_token: str | None


# --- Module Notes -----------------------------------------------------------
# State lives for a single graph invocation; the stage token is what carries progress across
# HTTP requests.

"""
mfa_gateway.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (signing secret, bootstrap admin password).
- Refuse to start in prod when security-relevant values were not supplied explicitly.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_JWT_SECRET = "dev-secret-change-me"

# Values that must come from the environment in prod; defaults below are for dev/test only.
_PROD_REQUIRED_FIELDS: tuple[str, ...] = (
    "jwt_secret",
    "password_time_cost",
    "password_memory_cost",
    "descriptor_match_threshold",
    "geofence_max_distance_meters",
    "stage_token_ttl_minutes",
    "session_token_ttl_hours",
)


class Settings(BaseSettings):
    """
    Enterprise pattern:
    - Strict env-driven configuration
    - Defaults safe for local dev
    - Single settings object injected across layers
    """

    model_config = SettingsConfigDict(env_prefix="MFA_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "mfa-gateway"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Tokens
    jwt_alg: str = "HS256"
    jwt_issuer: str = "mfa-gateway"
    jwt_audience: str = "mfa-api"
    jwt_secret: str = Field(default=DEV_JWT_SECRET, repr=False)
    stage_token_ttl_minutes: int = Field(default=15, ge=1, le=60)
    session_token_ttl_hours: int = Field(default=24, ge=1, le=24 * 7)

    # Password hashing cost factor (argon2id)
    password_time_cost: int = Field(default=3, ge=1)
    password_memory_cost: int = Field(default=65536, ge=8)
    password_parallelism: int = Field(default=4, ge=1)

    # Face descriptor matching
    descriptor_match_threshold: float = Field(default=0.6, gt=0.0)
    descriptor_dimensions: int | None = Field(default=None, ge=1)

    # Geofence. Staff carry their own reference point; this one is the deployment fallback.
    geofence_reference_latitude: float | None = Field(default=None, ge=-90.0, le=90.0)
    geofence_reference_longitude: float | None = Field(default=None, ge=-180.0, le=180.0)
    geofence_max_distance_meters: float | None = Field(default=100.0, gt=0.0)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./mfa.db"

    # Bootstrap administrator (created on startup when absent)
    initial_admin_email: str | None = None
    initial_admin_password: str | None = Field(default=None, repr=False)
    initial_admin_name: str = "Administrator"

    # Audit queries
    audit_page_size_max: int = Field(default=100, ge=1)

    @model_validator(mode="after")
    def _require_explicit_prod_values(self) -> Settings:
        if self.env != "prod":
            return self
        missing = [f for f in _PROD_REQUIRED_FIELDS if f not in self.model_fields_set]
        if missing:
            raise ValueError(f"prod requires explicit configuration for: {', '.join(missing)}")
        if self.jwt_secret == DEV_JWT_SECRET:
            raise ValueError("prod must not use the development signing secret")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Every collaborator of the login pipeline (hasher, matcher, geofence, token issuer) is built
# from this object; none of them read the environment directly.

"""
mfa_gateway.db.models

Core persistence schema for the login gateway.

Responsibilities:
- Define ORM models for the two principal classes (single-table inheritance on `role`):
  - Staff: geofenced principal with a fixed reference location and a leave balance
  - Administrator: no geofence, biometric re-verification only
- Define the append-only AuditEvent record and its enumerated kinds.
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, Enum, Float, Index, Integer, String, Text, Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column, validates

from mfa_gateway.db.base import Base


def _utcnow() -> datetime:
    # Persist naive UTC timestamps for simplicity; production systems may use tz-aware types.
    return datetime.now(tz=UTC).replace(tzinfo=None)


class Role(enum.StrEnum):
    # Stored in DB and carried in token claims; treat as stable API contract.
    staff = "staff"
    admin = "admin"


class AuditKind(enum.StrEnum):
    login_success = "LOGIN_SUCCESS"
    login_fail = "LOGIN_FAIL"
    credentials_verified = "CREDENTIALS_VERIFIED"
    face_verify_success = "FACE_VERIFY_SUCCESS"
    face_verify_fail = "FACE_VERIFY_FAIL"
    face_data_stored = "FACE_DATA_STORED"
    face_data_invalid = "FACE_DATA_INVALID"
    location_verify_fail = "LOCATION_VERIFY_FAIL"
    token_rejected = "TOKEN_REJECTED"
    login_error = "LOGIN_ERROR"

    @property
    def suspicious(self) -> bool:
        return self in SUSPICIOUS_KINDS


SUSPICIOUS_KINDS: frozenset[AuditKind] = frozenset(
    {AuditKind.login_fail, AuditKind.face_verify_fail, AuditKind.location_verify_fail}
)


class Principal(Base):
    __tablename__ = "principals"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    role: Mapped[Role] = mapped_column(Enum(Role), nullable=False, index=True)

    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    # Transport-encoded descriptor (see verification.descriptors.DescriptorMatcher.encode).
    descriptor: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    # Load subclass columns with the base row; lazy loads are unavailable under asyncio.
    __mapper_args__ = {"polymorphic_on": "role", "with_polymorphic": "*"}

    @validates("password_hash")
    def _validate_password_hash(self, _: str, value: str) -> str:
        if not value:
            raise ValueError("password_hash must not be empty")
        return value

    @property
    def has_descriptor(self) -> bool:
        return bool(self.descriptor)


class Staff(Principal):
    reference_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    reference_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    leave_granted: Mapped[int | None] = mapped_column(Integer, nullable=True, default=20)
    leave_used: Mapped[int | None] = mapped_column(Integer, nullable=True, default=0)

    __mapper_args__ = {"polymorphic_identity": Role.staff}


class Administrator(Principal):
    department: Mapped[str | None] = mapped_column(String(128), nullable=True)

    __mapper_args__ = {"polymorphic_identity": Role.admin}


class AuditEvent(Base):
    __tablename__ = "audit_events"

    # Integer sequence gives a total order for events written within the same clock tick.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    principal_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), nullable=True, index=True
    )

    kind: Mapped[AuditKind] = mapped_column(Enum(AuditKind), nullable=False, index=True)
    # Classified once at write time; readers never re-derive it from `kind`.
    suspicious: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    detail: Mapped[str] = mapped_column(Text, nullable=False, default="")

    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    accuracy: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, index=True)

    __table_args__ = (
        Index("ix_audit_principal_created", "principal_id", "created_at"),
        Index("ix_audit_suspicious_created", "suspicious", "created_at"),
    )


# --- Module Notes -----------------------------------------------------------
# Principal rows are created by provisioning (see db.seed); this service only mutates the
# descriptor on first enrollment and the password hash on cost-factor rehash.

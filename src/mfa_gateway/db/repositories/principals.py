"""
mfa_gateway.db.repositories.principals

Principal store: the only persistence surface the login pipeline depends on.

Responsibilities:
- Look up principals by contact identifier (email) or id.
- Atomically record a first-enrollment descriptor (conditional on none being stored).
- Persist a re-hashed password when the hashing cost factor changes.
- Translate backend connectivity failures into `StoreUnavailable`.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

from sqlalchemy import func, select, update
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from mfa_gateway.db.models import Administrator, Principal, Role, Staff
from mfa_gateway.orchestrator.errors import StoreUnavailable


class PrincipalStore(Protocol):
    async def get_by_email(self, email: str) -> Principal | None: ...

    async def get(self, principal_id: uuid.UUID) -> Principal | None: ...

    async def enroll_descriptor(self, principal_id: uuid.UUID, encoded: str) -> bool: ...

    async def update_password_hash(self, principal_id: uuid.UUID, password_hash: str) -> None: ...


@contextmanager
def _store_errors() -> Iterator[None]:
    try:
        yield
    except (OperationalError, InterfaceError, TimeoutError) as e:
        raise StoreUnavailable(f"principal store unavailable: {type(e).__name__}") from e


class PrincipalRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_email(self, email: str) -> Principal | None:
        stmt = select(Principal).where(Principal.email == email)
        with _store_errors():
            return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get(self, principal_id: uuid.UUID) -> Principal | None:
        with _store_errors():
            return await self._session.get(Principal, principal_id)

    async def enroll_descriptor(self, principal_id: uuid.UUID, encoded: str) -> bool:
        """
        Store `encoded` only if no descriptor is stored yet; commit immediately.

        Returns False when another enrollment won the race; the caller then verifies against
        the stored descriptor instead, so concurrent first logins converge on one value.
        """

        stmt = (
            update(Principal)
            .where(Principal.id == principal_id, Principal.descriptor.is_(None))
            .values(descriptor=encoded)
            .execution_options(synchronize_session=False)
        )
        with _store_errors():
            result = await self._session.execute(stmt)
            await self._session.commit()
        won = result.rowcount == 1
        with _store_errors():
            principal = await self._session.get(Principal, principal_id)
            if principal is not None:
                await self._session.refresh(principal, attribute_names=["descriptor"])
        return won

    async def update_password_hash(self, principal_id: uuid.UUID, password_hash: str) -> None:
        if not password_hash:
            raise ValueError("password_hash must not be empty")
        stmt = (
            update(Principal)
            .where(Principal.id == principal_id)
            .values(password_hash=password_hash)
            .execution_options(synchronize_session=False)
        )
        with _store_errors():
            await self._session.execute(stmt)
            await self._session.commit()

    async def count_by_role(self, role: Role) -> int:
        stmt = select(func.count()).select_from(Principal).where(Principal.role == role)
        with _store_errors():
            return int((await self._session.execute(stmt)).scalar_one())

    async def create_staff(
        self,
        *,
        email: str,
        name: str,
        password_hash: str,
        reference_latitude: float | None,
        reference_longitude: float | None,
        leave_granted: int = 20,
    ) -> Staff:
        staff = Staff(
            email=email,
            name=name,
            role=Role.staff,
            password_hash=password_hash,
            reference_latitude=reference_latitude,
            reference_longitude=reference_longitude,
            leave_granted=leave_granted,
            leave_used=0,
        )
        self._session.add(staff)
        await self._session.flush()
        return staff

    async def create_admin(
        self,
        *,
        email: str,
        name: str,
        password_hash: str,
        department: str | None = None,
    ) -> Administrator:
        admin = Administrator(
            email=email,
            name=name,
            role=Role.admin,
            password_hash=password_hash,
            department=department,
        )
        self._session.add(admin)
        await self._session.flush()
        return admin


# --- Module Notes -----------------------------------------------------------
# Writes commit on their own so that the audit sink (separate connection) never waits on a
# transaction held open by the request session.

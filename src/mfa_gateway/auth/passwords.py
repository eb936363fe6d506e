"""
mfa_gateway.auth.passwords

Password hashing (argon2id via argon2-cffi).

Responsibilities:
- Produce salted one-way digests with a deployment-tunable cost factor.
- Verify secrets against digests without ever raising on malformed input.
"""

from __future__ import annotations

from argon2 import PasswordHasher as _Argon2
from argon2.exceptions import InvalidHashError, VerificationError

from mfa_gateway.settings import Settings


class PasswordHasher:
    def __init__(self, *, time_cost: int, memory_cost: int, parallelism: int) -> None:
        self._argon2 = _Argon2(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> PasswordHasher:
        return cls(
            time_cost=settings.password_time_cost,
            memory_cost=settings.password_memory_cost,
            parallelism=settings.password_parallelism,
        )

    def hash(self, secret: str) -> str:
        if not secret:
            raise ValueError("secret must not be empty")
        return self._argon2.hash(secret)

    def verify(self, secret: str, digest: str) -> bool:
        # argon2 compares in constant time; every failure mode collapses to False.
        if not secret or not digest:
            return False
        try:
            return self._argon2.verify(digest, secret)
        except (VerificationError, InvalidHashError):
            return False

    def needs_rehash(self, digest: str) -> bool:
        try:
            return self._argon2.check_needs_rehash(digest)
        except (InvalidHashError, ValueError):
            return False


# --- Module Notes -----------------------------------------------------------
# Callers never pick iteration counts; raising the cost in settings upgrades stored hashes on
# the next successful login (see orchestrator.nodes.credentials_node).

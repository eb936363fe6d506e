"""
tests.test_passwords

argon2 hashing wrapper.
"""

from __future__ import annotations

import pytest

from mfa_gateway.auth.passwords import PasswordHasher


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(time_cost=1, memory_cost=8, parallelism=1)


def test_hash_is_salted_and_verifies(hasher: PasswordHasher) -> None:
    a = hasher.hash("s3cret")
    b = hasher.hash("s3cret")
    assert a != b
    assert hasher.verify("s3cret", a)
    assert hasher.verify("s3cret", b)


def test_wrong_or_malformed_inputs_are_false(hasher: PasswordHasher) -> None:
    digest = hasher.hash("s3cret")
    assert hasher.verify("S3cret", digest) is False
    assert hasher.verify("", digest) is False
    assert hasher.verify("s3cret", "") is False
    assert hasher.verify("s3cret", "not-a-hash") is False


def test_empty_secret_cannot_be_hashed(hasher: PasswordHasher) -> None:
    with pytest.raises(ValueError):
        hasher.hash("")


def test_cost_change_requires_rehash(hasher: PasswordHasher) -> None:
    digest = hasher.hash("s3cret")
    assert hasher.needs_rehash(digest) is False
    stronger = PasswordHasher(time_cost=2, memory_cost=16, parallelism=1)
    assert stronger.needs_rehash(digest) is True
    assert stronger.verify("s3cret", digest)

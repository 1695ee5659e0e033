"""Password hashing tests."""

import pytest

from nexusadmin.auth.password import (
    hash_password,
    hash_password_async,
    verify_password,
    verify_password_async,
)


def test_hash_is_bcrypt_and_salted():
    h1 = hash_password("Abcdef1", rounds=4)
    h2 = hash_password("Abcdef1", rounds=4)
    assert h1.startswith("$2b$04$")
    assert h1 != h2
    assert "Abcdef1" not in h1


def test_verify_roundtrip():
    h = hash_password("Abcdef1", rounds=4)
    assert verify_password("Abcdef1", h)
    assert not verify_password("abcdef1", h)


def test_malformed_hash_never_matches():
    assert verify_password("Abcdef1", "not-a-bcrypt-hash") is False
    assert verify_password("Abcdef1", "") is False


def test_passwords_truncated_at_72_bytes():
    base = "a" * 72
    h = hash_password(base + "tail-one", rounds=4)
    assert verify_password(base + "tail-two", h)


@pytest.mark.asyncio
async def test_async_wrappers():
    h = await hash_password_async("Abcdef1", 4)
    assert await verify_password_async("Abcdef1", h)
    assert not await verify_password_async("wrong-password", h)

"""Session token codec tests."""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from nexusadmin.auth.jwt import (
    EXPIRED_MESSAGE,
    INVALID_MESSAGE,
    TokenCodec,
    TokenExpiredError,
    TokenInvalidError,
)
from nexusadmin.db.models import UserRole

SECRET = "unit-test-secret"


@pytest.fixture()
def codec():
    return TokenCodec(SECRET, expire_minutes=60)


def test_issue_then_verify(codec):
    user_id = str(uuid.uuid4())
    claims = codec.verify(codec.issue(user_id, UserRole.MANAGER))
    assert claims.user_id == user_id
    assert claims.role == UserRole.MANAGER


def test_payload_shape(codec):
    token = codec.issue("u-1", UserRole.STAFF)
    payload = jwt.decode(token, SECRET, algorithms=["HS256"])
    assert set(payload) == {"userId", "role", "iat", "exp"}
    assert payload["exp"] - payload["iat"] == 60 * 60


def test_expired_token(codec):
    issued = datetime.now(timezone.utc) - timedelta(hours=2)
    token = codec.issue("u-1", UserRole.STAFF, now=issued)
    with pytest.raises(TokenExpiredError) as exc:
        codec.verify(token)
    assert str(exc.value) == EXPIRED_MESSAGE


def test_escalated_role_payload_rejected(codec):
    head, _, sig = codec.issue("u-1", UserRole.STAFF).split(".")
    _, admin_body, _ = codec.issue("u-1", UserRole.ADMIN).split(".")
    forged = ".".join([head, admin_body, sig])
    with pytest.raises(TokenInvalidError) as exc:
        codec.verify(forged)
    assert str(exc.value) == INVALID_MESSAGE


def test_wrong_secret(codec):
    token = TokenCodec("other-secret").issue("u-1", UserRole.ADMIN)
    with pytest.raises(TokenInvalidError):
        codec.verify(token)


def test_garbage_token(codec):
    with pytest.raises(TokenInvalidError):
        codec.verify("not.a.jwt")


def test_unknown_role_rejected(codec):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"userId": "u-1", "role": "SUPERUSER", "iat": now, "exp": now + timedelta(minutes=5)},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(TokenInvalidError):
        codec.verify(token)


def test_missing_user_id_rejected(codec):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"role": "ADMIN", "iat": now, "exp": now + timedelta(minutes=5)},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(TokenInvalidError):
        codec.verify(token)


def test_missing_exp_rejected(codec):
    token = jwt.encode(
        {"userId": "u-1", "role": "ADMIN", "iat": datetime.now(timezone.utc)},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(TokenInvalidError):
        codec.verify(token)

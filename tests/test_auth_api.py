"""Auth API tests: the invite lifecycle over HTTP and the authorization gate.

Learn: These go through the real gate. Tokens are minted by logging in
(or with the auth_headers fixture, which signs with the app's codec), so
JWT verification and the live-user re-read run on every request.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from nexusadmin.db.models import UserRole, UserStatus

from conftest import DEFAULT_PASSWORD


# ═══════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_success(client, make_user):
    user = await make_user(email="login@example.com", role=UserRole.STAFF)
    r = await client.post(
        "/api/auth/login", json={"email": "login@example.com", "password": DEFAULT_PASSWORD}
    )
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Login successful"
    assert body["data"]["user"]["id"] == str(user.id)
    assert body["data"]["user"]["role"] == "STAFF"
    assert "passwordHash" not in body["data"]["user"]
    assert "password_hash" not in body["data"]["user"]
    assert body["data"]["token"]

    me = await client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {body['data']['token']}"}
    )
    assert me.status_code == 200
    assert me.json()["data"]["user"]["id"] == str(user.id)
    assert me.json()["data"]["user"]["email"] == "login@example.com"


@pytest.mark.asyncio
async def test_login_failures_are_indistinguishable(client, make_user):
    await make_user(email="real@example.com")
    attempts = [
        {"email": "real@example.com", "password": "Wrong-pass1"},
        {"email": "ghost@example.com", "password": DEFAULT_PASSWORD},
        {"email": "REAL@example.com", "password": "also-wrong"},
    ]
    messages = set()
    for body in attempts:
        r = await client.post("/api/auth/login", json=body)
        assert r.status_code == 401
        assert r.json()["success"] is False
        messages.add(r.json()["message"])
    assert messages == {"Invalid email or password"}


@pytest.mark.asyncio
async def test_login_deactivated_account(client, make_user):
    await make_user(email="off@example.com", status=UserStatus.INACTIVE)
    r = await client.post(
        "/api/auth/login", json={"email": "off@example.com", "password": DEFAULT_PASSWORD}
    )
    assert r.status_code == 401
    assert "deactivated" in r.json()["message"]


@pytest.mark.asyncio
async def test_login_validation(client):
    r = await client.post("/api/auth/login", json={"email": "not-an-email", "password": "abc"})
    assert r.status_code == 400
    body = r.json()
    assert body["message"] == "Validation failed"
    fields = {e["field"] for e in body["errors"]}
    assert fields == {"email", "password"}


# ═══════════════════════════════════════════════════════════
# Invite → verify → register → login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_full_invite_flow(client, admin_headers, notifier):
    r = await client.post(
        "/api/auth/invite",
        json={"email": "new@x.com", "role": "MANAGER"},
        headers=admin_headers,
    )
    assert r.status_code == 201
    data = r.json()["data"]
    token = data["inviteToken"]
    assert len(token) == 64
    assert data["invite"]["email"] == "new@x.com"
    assert data["invite"]["role"] == "MANAGER"
    assert data["inviteLink"].endswith(f"/register?token={token}")
    assert notifier.invites[0]["token"] == token

    # Preview
    r = await client.get(f"/api/auth/verify-invite/{token}")
    assert r.status_code == 200
    preview = r.json()["data"]
    assert preview["email"] == "new@x.com"
    assert preview["role"] == "MANAGER"
    assert "expiresAt" in preview

    # Register
    r = await client.post(
        "/api/auth/register-via-invite",
        json={"token": token, "name": "A B", "password": "Abcdef1"},
    )
    assert r.status_code == 201
    registered = r.json()["data"]
    assert registered["user"]["email"] == "new@x.com"
    assert registered["user"]["role"] == "MANAGER"
    assert registered["user"]["status"] == "ACTIVE"
    assert registered["user"]["invitedAt"] is not None
    assert notifier.welcomes == [{"email": "new@x.com", "name": "A B"}]

    # The token from registration works immediately
    r = await client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {registered['token']}"}
    )
    assert r.status_code == 200
    assert r.json()["data"]["user"]["email"] == "new@x.com"

    # Single use
    r = await client.post(
        "/api/auth/register-via-invite",
        json={"token": token, "name": "A B", "password": "Abcdef1"},
    )
    assert r.status_code == 400
    assert r.json()["message"] == "This invitation has already been used"

    r = await client.get(f"/api/auth/verify-invite/{token}")
    assert r.status_code == 400

    # Login with the new credentials
    r = await client.post("/api/auth/login", json={"email": "new@x.com", "password": "Abcdef1"})
    assert r.status_code == 200
    assert r.json()["data"]["user"]["role"] == "MANAGER"


@pytest.mark.asyncio
async def test_duplicate_pending_invite(client, admin_headers):
    body = {"email": "dup@example.com", "role": "STAFF"}
    r1 = await client.post("/api/auth/invite", json=body, headers=admin_headers)
    assert r1.status_code == 201
    r2 = await client.post("/api/auth/invite", json=body, headers=admin_headers)
    assert r2.status_code == 409
    assert r2.json()["message"] == "A pending invitation already exists for this email"


@pytest.mark.asyncio
async def test_invite_existing_user(client, admin, admin_headers):
    r = await client.post(
        "/api/auth/invite",
        json={"email": admin.email, "role": "STAFF"},
        headers=admin_headers,
    )
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_invite_requires_admin(client, make_user, auth_headers):
    manager = await make_user(role=UserRole.MANAGER)
    r = await client.post(
        "/api/auth/invite",
        json={"email": "x@example.com", "role": "STAFF"},
        headers=auth_headers(manager),
    )
    assert r.status_code == 403
    assert r.json()["message"] == "You do not have permission to perform this action."

    r = await client.post("/api/auth/invite", json={"email": "x@example.com", "role": "STAFF"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_invite_rejects_unknown_role(client, admin_headers):
    r = await client.post(
        "/api/auth/invite",
        json={"email": "x@example.com", "role": "OWNER"},
        headers=admin_headers,
    )
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "role"


@pytest.mark.asyncio
async def test_verify_unknown_invite(client):
    r = await client.get(f"/api/auth/verify-invite/{'0' * 64}")
    assert r.status_code == 404
    assert r.json()["message"] == "Invalid invitation token"


@pytest.mark.asyncio
async def test_verify_malformed_invite_token(client):
    r = await client.get("/api/auth/verify-invite/short")
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_verify_unknown_token_of_right_length(client):
    r = await client.get(f"/api/auth/verify-invite/{'A' * 64}")
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Invalid invitation token"}


@pytest.mark.asyncio
async def test_register_unknown_token_of_right_length(client):
    r = await client.post(
        "/api/auth/register-via-invite",
        json={"token": "Z" * 64, "name": "Nobody", "password": "Abcdef1"},
    )
    assert r.status_code == 404
    assert r.json()["message"] == "Invalid invitation token"


@pytest.mark.asyncio
async def test_register_short_token_message(client):
    r = await client.post(
        "/api/auth/register-via-invite",
        json={"token": "abc", "name": "Nobody", "password": "Abcdef1"},
    )
    assert r.status_code == 400
    assert r.json()["errors"] == [
        {"field": "token", "message": "Invalid invite token format"}
    ]


@pytest.mark.asyncio
async def test_register_weak_password(client, admin_headers):
    r = await client.post(
        "/api/auth/invite",
        json={"email": "weak@example.com", "role": "STAFF"},
        headers=admin_headers,
    )
    token = r.json()["data"]["inviteToken"]

    r = await client.post(
        "/api/auth/register-via-invite",
        json={"token": token, "name": "Weak", "password": "abcdefg"},
    )
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "password"
    assert r.json()["errors"][0]["message"] == (
        "Password must contain at least one uppercase letter, "
        "one lowercase letter, and one number"
    )

    # Invite is still usable after a validation failure
    r = await client.get(f"/api/auth/verify-invite/{token}")
    assert r.status_code == 200


# ═══════════════════════════════════════════════════════════
# Authorization gate
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_me_requires_token(client):
    r = await client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json()["message"] == "No token provided. Please log in."
    assert r.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_me_rejects_non_bearer_scheme(client, admin):
    r = await client.get("/api/auth/me", headers={"Authorization": "Basic abc"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_me_invalid_token(client):
    r = await client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid token. Please log in again."


@pytest.mark.asyncio
async def test_me_expired_token(client, admin):
    past = datetime.now(timezone.utc) - timedelta(days=30)
    token = jwt.encode(
        {"userId": str(admin.id), "role": "ADMIN", "iat": past, "exp": past + timedelta(days=7)},
        "test-secret",
        algorithm="HS256",
    )
    r = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["message"] == "Token has expired. Please log in again."


@pytest.mark.asyncio
async def test_token_for_deleted_user(client, app):
    token = app.state.token_codec.issue("00000000-0000-0000-0000-000000000001", UserRole.ADMIN)
    r = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["message"] == "User no longer exists."


@pytest.mark.asyncio
async def test_deactivation_takes_effect_immediately(client, make_user, auth_headers, admin_headers):
    staff = await make_user(role=UserRole.STAFF)
    headers = auth_headers(staff)

    r = await client.get("/api/auth/me", headers=headers)
    assert r.status_code == 200

    r = await client.patch(
        f"/api/users/{staff.id}/status", json={"status": "INACTIVE"}, headers=admin_headers
    )
    assert r.status_code == 200

    # Same unexpired token, now refused
    r = await client.get("/api/auth/me", headers=headers)
    assert r.status_code == 401
    assert "deactivated" in r.json()["message"]


@pytest.mark.asyncio
async def test_me_returns_current_user(client, admin, admin_headers):
    r = await client.get("/api/auth/me", headers=admin_headers)
    assert r.status_code == 200
    user = r.json()["data"]["user"]
    assert user["id"] == str(admin.id)
    assert user["email"] == "admin@example.com"
    assert user["role"] == "ADMIN"
    assert {"createdAt", "updatedAt", "status", "name"} <= set(user)


@pytest.mark.asyncio
async def test_admin_or_manager_preset(app, client, make_user, auth_headers):
    from fastapi import Depends, Request

    from nexusadmin.auth.dependencies import require_admin_or_manager

    async def whoami(request: Request):
        return {"role": request.state.identity.role.value}

    app.add_api_route(
        "/api/_managers", whoami, methods=["GET"], dependencies=[Depends(require_admin_or_manager)]
    )

    manager = await make_user(role=UserRole.MANAGER)
    staff = await make_user(role=UserRole.STAFF)

    r = await client.get("/api/_managers", headers=auth_headers(manager))
    assert r.status_code == 200
    assert r.json() == {"role": "MANAGER"}

    r = await client.get("/api/_managers", headers=auth_headers(staff))
    assert r.status_code == 403

"""Auth API: login, invites, invite registration, current user.

Learn: Routes for the identity lifecycle:
- POST /auth/login                → email/password → {user, token}
- POST /auth/invite               → ADMIN creates an invite (link returned once)
- GET  /auth/verify-invite/{token} → preview a pending invite
- POST /auth/register-via-invite  → consume invite → {user, token}
- GET  /auth/me                   → current user info

Routes handle HTTP concerns (status codes, envelope); AuthService handles
the business rules. Errors propagate as AppError and are rendered by the
handlers in errors.py.
"""

from fastapi import APIRouter, Depends, Path, Request

from nexusadmin.auth.invite_tokens import INVITE_TOKEN_LENGTH
from nexusadmin.auth.dependencies import CurrentIdentity, get_current_user, require_admin
from nexusadmin.errors import success
from nexusadmin.schemas.auth import (
    AuthPayload,
    InviteCreated,
    InviteCreateRequest,
    InvitePreview,
    InviteRead,
    LoginRequest,
    RegisterViaInviteRequest,
)
from nexusadmin.services.auth_service import AuthService

router = APIRouter(prefix="/auth")


def _svc(request: Request) -> AuthService:
    return request.app.state.auth_service


# ─── Login ───────────────────────────────────────────────


@router.post("/login")
async def login(body: LoginRequest, svc: AuthService = Depends(_svc)):
    result = await svc.login(body.email, body.password)
    payload = AuthPayload(user=result.user, token=result.token)
    return success("Login successful", payload.dump())


# ─── Invites ─────────────────────────────────────────────


@router.post("/invite", status_code=201)
async def create_invite(
    body: InviteCreateRequest,
    identity: CurrentIdentity = Depends(require_admin),
    svc: AuthService = Depends(_svc),
):
    """Create an invitation. The raw token is only returned here."""
    invite = await svc.create_invite(body.email, body.role)
    payload = InviteCreated(
        invite=InviteRead.model_validate(invite),
        invite_token=invite.token,
        invite_link=svc.invite_link(invite.token),
    )
    return success("Invitation created successfully", payload.dump())


@router.get("/verify-invite/{token}")
async def verify_invite(
    token: str = Path(
        ...,
        min_length=INVITE_TOKEN_LENGTH,
        max_length=INVITE_TOKEN_LENGTH,
        description="64-char hex invite token",
    ),
    svc: AuthService = Depends(_svc),
):
    invite = await svc.verify_invite(token)
    return success("Invitation is valid", InvitePreview.model_validate(invite).dump())


@router.post("/register-via-invite", status_code=201)
async def register_via_invite(
    body: RegisterViaInviteRequest,
    svc: AuthService = Depends(_svc),
):
    result = await svc.register_via_invite(body.token, body.name, body.password)
    payload = AuthPayload(user=result.user, token=result.token)
    return success("Registration successful", payload.dump())


# ─── Current user ───────────────────────────────────────


@router.get("/me")
async def get_me(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: AuthService = Depends(_svc),
):
    user = await svc.get_current_user(identity.user_id)
    return success("User retrieved successfully", {"user": user.dump()})

"""FastAPI auth dependencies: the authorization gate.

Learn: These are used as Depends() in route handlers (or on whole routers)
to extract and validate the current identity from the request.

Two checks, composed:
1. get_current_user  → Bearer JWT → verify → re-read the live user
2. require_roles(...) → role ∈ allowed set, else 403

Step 1 re-reads the user on every request because tokens are stateless:
deactivating an account must take effect on the very next call, even
though the user still holds an unexpired token.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Request

from nexusadmin.auth.jwt import TokenError
from nexusadmin.db.models import UserRole, UserStatus
from nexusadmin.errors import ForbiddenError, UnauthorizedError
from nexusadmin.stores.users import UserStore

NO_TOKEN_MESSAGE = "No token provided. Please log in."
USER_GONE_MESSAGE = "User no longer exists."
DEACTIVATED_MESSAGE = "Your account has been deactivated. Please contact an administrator."
FORBIDDEN_MESSAGE = "You do not have permission to perform this action."


@dataclass(frozen=True)
class CurrentIdentity:
    """The authenticated principal for this request."""

    user_id: str
    role: UserRole

    def has_role(self, *roles: UserRole) -> bool:
        return self.role in roles


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise UnauthorizedError(NO_TOKEN_MESSAGE)
    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer" or not token.strip():
        raise UnauthorizedError(NO_TOKEN_MESSAGE)
    return token.strip()


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> CurrentIdentity:
    """Resolve the request's identity, or raise 401."""
    token = _bearer_token(authorization)

    codec = request.app.state.token_codec
    try:
        claims = codec.verify(token)
    except TokenError as e:
        raise UnauthorizedError(str(e))

    async with request.app.state.session_factory() as db:
        user = await UserStore(db).get_by_id(claims.user_id)

    if not user:
        raise UnauthorizedError(USER_GONE_MESSAGE)
    if user.status != UserStatus.ACTIVE:
        raise UnauthorizedError(DEACTIVATED_MESSAGE)

    identity = CurrentIdentity(user_id=str(user.id), role=claims.role)
    request.state.identity = identity
    return identity


def require_roles(*allowed: UserRole):
    """Dependency factory: 403 unless the identity's role is in `allowed`.

    Usage:
        @router.patch("/x", dependencies=[Depends(require_roles(UserRole.ADMIN))])
        async def handler(identity: CurrentIdentity = Depends(require_admin)): ...
    """
    allowed_set = frozenset(allowed)

    async def _check(
        identity: CurrentIdentity = Depends(get_current_user),
    ) -> CurrentIdentity:
        if identity.role not in allowed_set:
            raise ForbiddenError(FORBIDDEN_MESSAGE)
        return identity

    return _check


require_admin = require_roles(UserRole.ADMIN)
require_admin_or_manager = require_roles(UserRole.ADMIN, UserRole.MANAGER)

"""Auth service: login, invites, invite registration, current user.

Learn: This is the orchestrator for the identity lifecycle. It composes
the leaf utilities (bcrypt, invite token generator, JWT codec) with the
user and invite stores.

Unlike the per-request services elsewhere, AuthService is built once at
startup and shared: it holds only read-only collaborators (settings,
codec, notifier, session factory). Each public method opens its own
session, so every operation commits or rolls back as a unit.

Invite lifecycle:
    created (pending) ──register──▶ accepted   (exactly once, irreversible)
            │
            └── now > expires_at ──▶ expired   (rejected, never deleted)
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nexusadmin.auth.invite_tokens import generate_invite_token
from nexusadmin.auth.jwt import TokenCodec
from nexusadmin.auth.password import hash_password_async, verify_password_async
from nexusadmin.config import Settings
from nexusadmin.db.models import Invite, UserRole, UserStatus, utcnow
from nexusadmin.errors import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
)
from nexusadmin.schemas.user import UserRead
from nexusadmin.services.notifier import Notifier, dispatch_notification
from nexusadmin.stores.invites import DuplicateTokenError, InviteStore
from nexusadmin.stores.users import USER_EXISTS_MESSAGE, UserStore, normalize_email

logger = structlog.get_logger()

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
DEACTIVATED_MESSAGE = "Your account has been deactivated. Please contact an administrator."
PENDING_INVITE_MESSAGE = "A pending invitation already exists for this email"
INVALID_INVITE_MESSAGE = "Invalid invitation token"
INVITE_USED_MESSAGE = "This invitation has already been used"
INVITE_EXPIRED_MESSAGE = "This invitation has expired. Please request a new one."

# Regenerate on the (theoretical) token collision before giving up
TOKEN_ATTEMPTS = 3


@dataclass(frozen=True)
class AuthResult:
    user: UserRead
    token: str


class AuthService:
    """Business logic for authentication and invite-based onboarding."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        codec: TokenCodec,
        notifier: Notifier,
        settings: Settings,
    ):
        self.session_factory = session_factory
        self.codec = codec
        self.notifier = notifier
        self.settings = settings

    # ─── Login ──────────────────────────────────────────

    async def login(self, email: str, password: str) -> AuthResult:
        """Email/password → user projection + session token.

        Unknown email and wrong password share one message so the response
        does not reveal which addresses have accounts. A deactivated account
        gets its own message (and therefore does reveal existence).
        """
        email = normalize_email(email)
        async with self.session_factory() as db:
            user = await UserStore(db).get_by_email(email)

            if not user:
                logger.info("auth.login_failed", reason="unknown_email")
                raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

            if user.status != UserStatus.ACTIVE:
                logger.info("auth.login_failed", reason="inactive", user_id=str(user.id))
                raise UnauthorizedError(DEACTIVATED_MESSAGE)

            if not await verify_password_async(password, user.password_hash):
                logger.info("auth.login_failed", reason="bad_password", user_id=str(user.id))
                raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

            logger.info("auth.login", user_id=str(user.id), role=user.role.value)
            return AuthResult(
                user=UserRead.model_validate(user),
                token=self.codec.issue(str(user.id), user.role),
            )

    # ─── Invites ────────────────────────────────────────

    async def create_invite(self, email: str, role: UserRole) -> Invite:
        """Create a pending invite and send the invite email.

        Caller must already be authorized as ADMIN (checked by the gate).
        The pending-invite check is not atomic with the insert: two
        concurrent requests for one email can both succeed.
        """
        email = normalize_email(email)
        async with self.session_factory() as db:
            users = UserStore(db)
            invites = InviteStore(db)

            if await users.get_by_email(email):
                raise ConflictError(USER_EXISTS_MESSAGE)

            if await invites.find_pending_by_email(email):
                raise ConflictError(PENDING_INVITE_MESSAGE)

            expires_at = utcnow() + timedelta(hours=self.settings.invite_token_expire_hours)
            invite = await self._insert_invite(invites, email, role, expires_at)
            await db.commit()

        logger.info(
            "invite.created",
            invite_id=str(invite.id),
            email=invite.email,
            role=invite.role.value,
            expires_at=invite.expires_at.isoformat(),
        )

        await dispatch_notification(
            self.notifier.send_invite(
                invite.email, invite.token, invite.role.value, self.invite_link(invite.token)
            ),
            kind="invite",
            invite_id=str(invite.id),
        )
        return invite

    async def _insert_invite(
        self,
        invites: InviteStore,
        email: str,
        role: UserRole,
        expires_at: datetime,
    ) -> Invite:
        for attempt in range(1, TOKEN_ATTEMPTS + 1):
            try:
                return await invites.create(
                    email=email,
                    role=role,
                    token=generate_invite_token(),
                    expires_at=expires_at,
                )
            except DuplicateTokenError:
                logger.warning("invite.token_collision", attempt=attempt)
        raise ConflictError("Could not allocate a unique invitation token")

    async def verify_invite(self, token: str) -> Invite:
        """Return the invite if it is pending. Read-only."""
        async with self.session_factory() as db:
            return await self._verify_invite(InviteStore(db), token)

    async def _verify_invite(self, invites: InviteStore, token: str) -> Invite:
        invite = await invites.get_by_token(token)

        if not invite:
            raise NotFoundError(INVALID_INVITE_MESSAGE)

        # "used" wins over "expired"
        if invite.is_accepted():
            raise BadRequestError(INVITE_USED_MESSAGE)

        if invite.is_expired():
            raise BadRequestError(INVITE_EXPIRED_MESSAGE)

        return invite

    async def register_via_invite(self, token: str, name: str, password: str) -> AuthResult:
        """Consume an invite: create the user, mark accepted, log them in.

        User creation and invite acceptance commit in one transaction, so an
        invite is never marked used without its account (or vice versa).
        """
        async with self.session_factory() as db:
            users = UserStore(db)
            invites = InviteStore(db)

            invite = await self._verify_invite(invites, token)

            if await users.get_by_email(invite.email):
                raise ConflictError(USER_EXISTS_MESSAGE)

            password_hash = await hash_password_async(password, self.settings.bcrypt_rounds)

            user = await users.create(
                name=name,
                email=invite.email,
                password_hash=password_hash,
                role=invite.role,
                status=UserStatus.ACTIVE,
                invited_at=invite.created_at,
            )
            await invites.mark_accepted(invite)
            await db.commit()

            result = AuthResult(
                user=UserRead.model_validate(user),
                token=self.codec.issue(str(user.id), user.role),
            )

        logger.info(
            "invite.accepted",
            invite_id=str(invite.id),
            user_id=str(result.user.id),
            role=result.user.role.value,
        )

        await dispatch_notification(
            self.notifier.send_welcome(result.user.email, result.user.name),
            kind="welcome",
            user_id=str(result.user.id),
        )
        return result

    def invite_link(self, token: str) -> str:
        return f"{self.settings.frontend_url.rstrip('/')}/register?token={token}"

    # ─── Current user ───────────────────────────────────

    async def get_current_user(self, user_id: str) -> UserRead:
        async with self.session_factory() as db:
            user = await UserStore(db).get_by_id(user_id)
            if not user:
                raise NotFoundError("User not found")
            return UserRead.model_validate(user)

    # ─── Seeding ────────────────────────────────────────

    async def create_user(
        self,
        *,
        name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.STAFF,
        status: UserStatus = UserStatus.ACTIVE,
        invited_at: Optional[datetime] = None,
    ) -> UserRead:
        """Create a user directly (admin seeding). Hashes explicitly first."""
        password_hash = await hash_password_async(password, self.settings.bcrypt_rounds)
        async with self.session_factory() as db:
            user = await UserStore(db).create(
                name=name,
                email=email,
                password_hash=password_hash,
                role=role,
                status=status,
                invited_at=invited_at,
            )
            await db.commit()
            logger.info("user.created", user_id=str(user.id), role=user.role.value)
            return UserRead.model_validate(user)

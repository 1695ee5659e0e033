"""Invite store: persistence for onboarding invites.

Learn: The only uniqueness constraint here is on the token. A collision
is astronomically unlikely with 256-bit tokens, but the store still
reports it as DuplicateTokenError so the service can regenerate instead
of failing the request.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from nexusadmin.db.models import Invite, UserRole, utcnow
from nexusadmin.stores.users import normalize_email


class DuplicateTokenError(Exception):
    """Raised when an invite token collides with an existing one."""


class InviteStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_token(self, token: str) -> Optional[Invite]:
        result = await self.db.execute(select(Invite).where(Invite.token == token))
        return result.scalars().first()

    async def find_pending_by_email(
        self, email: str, now: Optional[datetime] = None
    ) -> Optional[Invite]:
        """Return an unaccepted, unexpired invite for email, if any."""
        result = await self.db.execute(
            select(Invite)
            .where(
                Invite.email == normalize_email(email),
                Invite.accepted_at.is_(None),
                Invite.expires_at > (now or utcnow()),
            )
            .order_by(Invite.created_at.desc())
        )
        return result.scalars().first()

    async def create(
        self,
        *,
        email: str,
        role: UserRole,
        token: str,
        expires_at: datetime,
    ) -> Invite:
        invite = Invite(
            email=normalize_email(email),
            role=role,
            token=token,
            expires_at=expires_at,
        )
        self.db.add(invite)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateTokenError(token)
        return invite

    async def mark_accepted(self, invite: Invite, when: Optional[datetime] = None) -> Invite:
        invite.accepted_at = when or utcnow()
        await self.db.flush()
        return invite

"""Credential store: persistence for user records.

Learn: Same shape as an event store: a thin class over one AsyncSession.
Services decide *what* to do; the store only knows how to read and write
rows. It flushes but never commits: the caller owns the transaction.

Email is normalized (strip + lowercase) on every read and write, so
"Alice@X.com" and "alice@x.com" are the same account. Uniqueness is the
database's job (users.email UNIQUE); an IntegrityError here means a
concurrent request won the race, and surfaces as ConflictError.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from nexusadmin.db.models import User, UserRole, UserStatus
from nexusadmin.errors import ConflictError

USER_EXISTS_MESSAGE = "A user with this email already exists"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: uuid.UUID | str) -> Optional[User]:
        try:
            key = user_id if isinstance(user_id, uuid.UUID) else uuid.UUID(str(user_id))
        except ValueError:
            return None
        return await self.db.get(User, key)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == normalize_email(email))
        )
        return result.scalars().first()

    async def create(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: UserRole = UserRole.STAFF,
        status: UserStatus = UserStatus.ACTIVE,
        invited_at: Optional[datetime] = None,
    ) -> User:
        user = User(
            name=name,
            email=normalize_email(email),
            password_hash=password_hash,
            role=role,
            status=status,
            invited_at=invited_at,
        )
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(USER_EXISTS_MESSAGE)
        return user

    async def save(self, user: User) -> User:
        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def list_page(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
    ) -> tuple[list[User], int]:
        """Newest first. Search is case-insensitive on name or email."""
        conditions = []
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        if role:
            conditions.append(User.role == role)
        if status:
            conditions.append(User.status == status)

        q = (
            select(User)
            .where(*conditions)
            .order_by(User.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        count_q = select(func.count()).select_from(User).where(*conditions)

        items = list((await self.db.execute(q)).scalars().all())
        total = (await self.db.execute(count_q)).scalar_one()
        return items, total

    async def count(self, status: Optional[UserStatus] = None) -> int:
        q = select(func.count()).select_from(User)
        if status:
            q = q.where(User.status == status)
        return (await self.db.execute(q)).scalar_one()

    async def count_by_role(self) -> list[tuple[UserRole, int]]:
        result = await self.db.execute(
            select(User.role, func.count()).group_by(User.role).order_by(User.role)
        )
        return [(row[0], row[1]) for row in result.all()]

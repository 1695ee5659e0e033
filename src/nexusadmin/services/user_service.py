"""User management service: listing, role/status changes, stats.

Learn: All of these operations are ADMIN-only (enforced by the route's
gate). The service adds the self-service guards the gate cannot express:
an admin may not change their own role or deactivate their own account,
since either could leave the system without an active admin.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nexusadmin.db.models import UserRole, UserStatus
from nexusadmin.errors import BadRequestError, NotFoundError
from nexusadmin.schemas.common import Pagination
from nexusadmin.schemas.user import RoleCount, UserRead, UserStats
from nexusadmin.stores.users import UserStore

logger = structlog.get_logger()


class UserService:
    """Business logic for user administration."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def list_users(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
    ) -> tuple[list[UserRead], Pagination]:
        async with self.session_factory() as db:
            users, total = await UserStore(db).list_page(
                page=page, limit=limit, search=search, role=role, status=status
            )
            return (
                [UserRead.model_validate(u) for u in users],
                Pagination.build(page, limit, total),
            )

    async def get_user(self, user_id: uuid.UUID) -> UserRead:
        async with self.session_factory() as db:
            user = await UserStore(db).get_by_id(user_id)
            if not user:
                raise NotFoundError("User not found")
            return UserRead.model_validate(user)

    async def update_user_role(
        self, user_id: uuid.UUID, role: UserRole, acting_user_id: str
    ) -> UserRead:
        if str(user_id) == str(acting_user_id):
            raise BadRequestError("You cannot change your own role")

        async with self.session_factory() as db:
            store = UserStore(db)
            user = await store.get_by_id(user_id)
            if not user:
                raise NotFoundError("User not found")

            previous = user.role
            user.role = role
            await store.save(user)
            await db.commit()

            logger.info(
                "user.role_changed",
                user_id=str(user.id),
                from_role=previous.value,
                to_role=role.value,
                by=str(acting_user_id),
            )
            return UserRead.model_validate(user)

    async def update_user_status(
        self, user_id: uuid.UUID, status: UserStatus, acting_user_id: str
    ) -> UserRead:
        if str(user_id) == str(acting_user_id) and status == UserStatus.INACTIVE:
            raise BadRequestError("You cannot deactivate your own account")

        async with self.session_factory() as db:
            store = UserStore(db)
            user = await store.get_by_id(user_id)
            if not user:
                raise NotFoundError("User not found")

            user.status = status
            await store.save(user)
            await db.commit()

            logger.info(
                "user.status_changed",
                user_id=str(user.id),
                status=status.value,
                by=str(acting_user_id),
            )
            return UserRead.model_validate(user)

    async def user_stats(self) -> UserStats:
        async with self.session_factory() as db:
            store = UserStore(db)
            return UserStats(
                total=await store.count(),
                active=await store.count(UserStatus.ACTIVE),
                inactive=await store.count(UserStatus.INACTIVE),
                by_role=[
                    RoleCount(role=role, count=count)
                    for role, count in await store.count_by_role()
                ],
            )

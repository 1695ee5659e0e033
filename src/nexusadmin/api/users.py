"""User administration API. Every route is ADMIN-only (applied at mount)."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from nexusadmin.auth.dependencies import CurrentIdentity, require_admin
from nexusadmin.db.models import UserRole, UserStatus
from nexusadmin.errors import success
from nexusadmin.schemas.common import paginated
from nexusadmin.schemas.user import UserRoleUpdate, UserStatusUpdate
from nexusadmin.services.user_service import UserService

router = APIRouter(prefix="/users")


def _svc(request: Request) -> UserService:
    return request.app.state.user_service


@router.get("")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    role: Optional[UserRole] = Query(None),
    status: Optional[UserStatus] = Query(None),
    svc: UserService = Depends(_svc),
):
    users, pagination = await svc.list_users(
        page=page,
        limit=limit,
        search=search.strip() if search else None,
        role=role,
        status=status,
    )
    return success("Users retrieved successfully", paginated(users, pagination))


# Declared before /{user_id} so "stats" is not parsed as an id
@router.get("/stats")
async def user_stats(svc: UserService = Depends(_svc)):
    stats = await svc.user_stats()
    return success("User stats retrieved successfully", {"stats": stats.dump()})


@router.get("/{user_id}")
async def get_user(user_id: uuid.UUID, svc: UserService = Depends(_svc)):
    user = await svc.get_user(user_id)
    return success("User retrieved successfully", {"user": user.dump()})


@router.patch("/{user_id}/role")
async def update_user_role(
    user_id: uuid.UUID,
    body: UserRoleUpdate,
    identity: CurrentIdentity = Depends(require_admin),
    svc: UserService = Depends(_svc),
):
    user = await svc.update_user_role(user_id, body.role, identity.user_id)
    return success("User role updated successfully", {"user": user.dump()})


@router.patch("/{user_id}/status")
async def update_user_status(
    user_id: uuid.UUID,
    body: UserStatusUpdate,
    identity: CurrentIdentity = Depends(require_admin),
    svc: UserService = Depends(_svc),
):
    user = await svc.update_user_status(user_id, body.status, identity.user_id)
    verb = "activated" if user.status == UserStatus.ACTIVE else "deactivated"
    return success(f"User {verb} successfully", {"user": user.dump()})

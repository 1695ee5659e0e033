"""Pydantic schemas for users.

Learn: UserRead is the only shape a user ever leaves the service layer in.
It is built from the ORM row and has no password field, so the hash is
excluded by construction rather than stripped after the fact.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from nexusadmin.db.models import UserRole, UserStatus
from nexusadmin.schemas.common import APIModel


class UserRead(APIModel):
    id: uuid.UUID
    name: str
    email: str
    role: UserRole
    status: UserStatus
    invited_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class UserRoleUpdate(BaseModel):
    role: UserRole


class UserStatusUpdate(BaseModel):
    status: UserStatus


class RoleCount(APIModel):
    role: UserRole
    count: int


class UserStats(APIModel):
    total: int
    active: int
    inactive: int
    by_role: list[RoleCount]

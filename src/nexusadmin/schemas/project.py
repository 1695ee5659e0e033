"""Pydantic schemas for projects."""

import uuid
from datetime import datetime
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, BeforeValidator, Field

from nexusadmin.db.models import ProjectStatus
from nexusadmin.schemas.common import APIModel


def _strip(value):
    return value.strip() if isinstance(value, str) else value


Stripped = Annotated[str, BeforeValidator(_strip)]


class ProjectCreate(BaseModel):
    name: Stripped = Field(min_length=2, max_length=100)
    description: Stripped = Field(default="", max_length=500)


class ProjectUpdate(BaseModel):
    name: Optional[Stripped] = Field(default=None, min_length=2, max_length=100)
    description: Optional[Stripped] = Field(default=None, max_length=500)
    # DELETED is reachable only through the delete endpoint
    status: Optional[Literal["ACTIVE", "ARCHIVED"]] = None


class ProjectCreator(APIModel):
    id: uuid.UUID
    name: str
    email: str


class ProjectRead(APIModel):
    id: uuid.UUID
    name: str
    description: str
    status: ProjectStatus
    is_deleted: bool
    creator: ProjectCreator = Field(serialization_alias="createdBy")
    created_at: datetime
    updated_at: datetime


class ProjectStats(APIModel):
    total: int
    active: int
    archived: int
    deleted: int

"""Pydantic schemas for login, invites, and invite registration.

Learn: Request schemas are the validation step of the pipeline
(validate → hash → persist). Anything that fails here never reaches the
service; the error handler turns it into a 400 with per-field messages.
"""

import re
import uuid
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, EmailStr, Field, field_validator

from nexusadmin.auth.invite_tokens import INVITE_TOKEN_LENGTH
from nexusadmin.db.models import UserRole
from nexusadmin.schemas.common import APIModel
from nexusadmin.schemas.user import UserRead


_PASSWORD_CLASSES = (
    re.compile(r"[a-z]"),
    re.compile(r"[A-Z]"),
    re.compile(r"\d"),
)


def _normalize_email(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


NormalizedEmail = Annotated[EmailStr, BeforeValidator(_normalize_email)]


# ─── Requests ───────────────────────────────────────────


class LoginRequest(BaseModel):
    email: NormalizedEmail
    password: str = Field(min_length=6)


class InviteCreateRequest(BaseModel):
    email: NormalizedEmail
    role: UserRole


class RegisterViaInviteRequest(BaseModel):
    token: str
    name: str = Field(min_length=2, max_length=50)
    password: str = Field(min_length=6)

    @field_validator("token")
    @classmethod
    def check_token_format(cls, value: str) -> str:
        if len(value) != INVITE_TOKEN_LENGTH:
            raise ValueError("Invalid invite token format")
        return value

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("password")
    @classmethod
    def check_password_strength(cls, value: str) -> str:
        if not all(pattern.search(value) for pattern in _PASSWORD_CLASSES):
            raise ValueError(
                "Password must contain at least one uppercase letter, "
                "one lowercase letter, and one number"
            )
        return value


# ─── Responses ──────────────────────────────────────────


class InviteRead(APIModel):
    id: uuid.UUID
    email: str
    role: UserRole
    expires_at: datetime


class InviteCreated(APIModel):
    invite: InviteRead
    invite_token: str
    invite_link: str


class InvitePreview(APIModel):
    email: str
    role: UserRole
    expires_at: datetime


class AuthPayload(APIModel):
    user: UserRead
    token: str

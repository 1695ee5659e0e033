"""SQLAlchemy ORM models: single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Uniqueness lives here (users.email, invites.token) so
concurrent duplicate inserts fail at the store, not in application code.

Key concepts:
- UUID primary keys, portable across Postgres and SQLite (sa.Uuid)
- Enums stored as their string values
- No ORM event hooks: password hashing is an explicit service step
- Timestamps are timezone-aware UTC; UTCDateTime repairs the naive values
  SQLite hands back
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, String, TypeDecorator, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class UTCDateTime(TypeDecorator):
    """DateTime(timezone=True) that always hands back aware UTC values."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_result_value(self, value, dialect):
        return as_utc(value)


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    STAFF = "STAFF"


class UserStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class ProjectStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"
    DELETED = "DELETED"


def _enum(cls: type[enum.Enum]) -> Enum:
    return Enum(
        cls,
        native_enum=False,
        length=20,
        values_callable=lambda members: [m.value for m in members],
    )


# ══════════════════════════════════════════════════════════════
# Identity
# ══════════════════════════════════════════════════════════════


class User(Base):
    """A human account.

    Learn: password_hash is write-only from the outside. Nothing that
    leaves the service layer carries it; the UserRead schema has no such
    field, so serialization cannot leak it.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        _enum(UserRole), nullable=False, default=UserRole.STAFF
    )
    status: Mapped[UserStatus] = mapped_column(
        _enum(UserStatus), nullable=False, default=UserStatus.ACTIVE
    )
    invited_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow
    )

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE


class Invite(Base):
    """A single-use, time-boxed right to register with a given email + role.

    Learn: Pending = accepted_at is NULL and expires_at is in the future.
    There is no unique constraint on email: "one pending
    invite per email" is a service-level check, and expired/accepted rows
    stay in the table.
    """

    __tablename__ = "invites"
    __table_args__ = (
        Index("ix_invites_email_accepted", "email", "accepted_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(_enum(UserRole), nullable=False)
    token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow
    )

    def is_accepted(self) -> bool:
        return self.accepted_at is not None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) > as_utc(self.expires_at)


# ══════════════════════════════════════════════════════════════
# Projects
# ══════════════════════════════════════════════════════════════


class Project(Base):
    """A project record. Deletion is soft: is_deleted + status=DELETED."""

    __tablename__ = "projects"
    __table_args__ = (
        Index("ix_projects_deleted_status", "is_deleted", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    status: Mapped[ProjectStatus] = mapped_column(
        _enum(ProjectStatus), nullable=False, default=ProjectStatus.ACTIVE
    )
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow
    )

    creator: Mapped["User"] = relationship(lazy="joined")

"""User table model."""

from __future__ import annotations

from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field

from .common import TimestampMixin, enum_values


class UserRole(str, Enum):
    """Roles a user or a project membership can hold."""

    ADMIN = "admin"
    MEMBER = "member"


class User(TimestampMixin, table=True):
    """Persistent user profile; ``id`` is the session provider's subject id."""

    __tablename__ = "users"
    __table_args__ = (sa.Index("ix_users_email", "email"),)

    id: str = Field(sa_column=sa.Column(sa.String(length=64), primary_key=True))
    user_name: str = Field(sa_column=sa.Column(sa.String(length=255), nullable=False))
    email: str = Field(sa_column=sa.Column(sa.String(length=320), nullable=False, unique=True))
    role: UserRole = Field(
        default=UserRole.MEMBER,
        sa_column=sa.Column(
            sa.Enum(UserRole, name="user_role", native_enum=False, values_callable=enum_values),
            nullable=False,
            server_default=UserRole.MEMBER.value,
        ),
    )
    project_id: str | None = Field(
        default=None,
        sa_column=sa.Column(
            sa.String(length=36),
            sa.ForeignKey("project.id", ondelete="SET NULL"),
            nullable=True,
        ),
    )
    is_active: bool = Field(
        default=True,
        sa_column=sa.Column(sa.Boolean(), nullable=False, server_default=sa.true()),
    )


__all__ = ["User", "UserRole"]

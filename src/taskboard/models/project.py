"""Project and project membership table models."""

from __future__ import annotations

from uuid import uuid4

import sqlalchemy as sa
from sqlmodel import Field

from .common import TimestampMixin, enum_values
from .user import UserRole


def _new_project_id() -> str:
    return str(uuid4())


class Project(TimestampMixin, table=True):
    """Persistent project; ``code`` is the shareable join code."""

    __tablename__ = "project"

    id: str = Field(
        default_factory=_new_project_id,
        sa_column=sa.Column(sa.String(length=36), primary_key=True),
    )
    name: str = Field(sa_column=sa.Column(sa.String(length=255), nullable=False))
    code: str = Field(sa_column=sa.Column(sa.String(length=20), nullable=False, unique=True))


class ProjectMember(TimestampMixin, table=True):
    """Many-to-many link between users and projects with a per-project role."""

    __tablename__ = "project_members"
    __table_args__ = (
        sa.UniqueConstraint("project_id", "user_id", name="uq_project_members_project_user"),
        sa.Index("ix_project_members_user_id", "user_id"),
    )

    id: int | None = Field(default=None, primary_key=True)
    project_id: str = Field(
        sa_column=sa.Column(
            sa.String(length=36),
            sa.ForeignKey("project.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    user_id: str = Field(
        sa_column=sa.Column(
            sa.String(length=64),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    role: UserRole = Field(
        default=UserRole.MEMBER,
        sa_column=sa.Column(
            sa.Enum(UserRole, name="member_role", native_enum=False, values_callable=enum_values),
            nullable=False,
            server_default=UserRole.MEMBER.value,
        ),
    )
    is_active: bool = Field(
        default=True,
        sa_column=sa.Column(sa.Boolean(), nullable=False, server_default=sa.true()),
    )


__all__ = ["Project", "ProjectMember"]

"""Project and membership schemas."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models import UserRole

PROJECT_CODE_PATTERN = re.compile(r"^[A-Z0-9-]{3,20}$")


class ProjectRecord(BaseModel):
    """Project row as stored by the remote store."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    code: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProjectCreate(BaseModel):
    """Payload for creating a project; ``code`` is generated when omitted."""

    name: str = Field(min_length=1, max_length=255)
    code: str | None = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Project name must not be blank.")
        return stripped

    @field_validator("code")
    @classmethod
    def _validate_code(cls, value: str | None) -> str | None:
        if value is None:
            return None
        if not PROJECT_CODE_PATTERN.match(value):
            raise ValueError("Project code must be 3-20 characters of A-Z, 0-9 and '-'.")
        return value


class ProjectMemberRecord(BaseModel):
    """Membership row linking a user to a project."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: str
    user_id: str
    role: UserRole = UserRole.MEMBER
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProjectMemberView(BaseModel):
    """Roster entry: a member's user profile joined with their project role."""

    model_config = ConfigDict(frozen=True)

    id: str
    membership_id: int
    user_name: str
    email: str
    role: UserRole
    is_active: bool = True


__all__ = [
    "PROJECT_CODE_PATTERN",
    "ProjectCreate",
    "ProjectMemberRecord",
    "ProjectMemberView",
    "ProjectRecord",
]

"""Identity and user record schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..models import UserRole


class Identity(BaseModel):
    """Profile of an authenticated user as held by the identity cache."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    user_name: str
    email: str
    role: UserRole = UserRole.MEMBER
    project_id: str | None = None
    is_active: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


class UserRecord(Identity):
    """User row as stored by the remote store."""

    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_identity(self) -> Identity:
        return Identity.model_validate(self.model_dump(include=set(Identity.model_fields)))


class UserCreate(BaseModel):
    """Payload for provisioning a user profile after sign-up."""

    id: str = Field(min_length=1)
    user_name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    role: UserRole = UserRole.MEMBER
    is_active: bool = True


__all__ = ["Identity", "UserCreate", "UserRecord"]

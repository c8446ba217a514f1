# app/schemas/user.py
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

# Every value users.role may hold. Only resident/admin/supadmin carry a tier.
RoleValue = Literal["resident", "admin", "supadmin", "field_officer", "partner"]


class UserProfile(SQLModel):
    """Public profile fields returned by GET /user/profile."""

    user_id: int
    full_name: str | None = None
    email: str
    username: str | None = None
    avatar_url: str | None = None
    role: str


class ProfileResponse(SQLModel):
    profile: UserProfile


class UserRead(UserProfile):
    """Full user row as seen by the user themselves and by admins."""

    auth_id: str
    is_active: bool
    created_at: datetime


class UserUpdate(SQLModel):
    """
    Partial profile update for authenticated users.
    Role, email and activation are not editable here.
    """

    model_config = ConfigDict(extra="forbid")

    full_name: str | None = Field(default=None, max_length=200)
    username: str | None = Field(default=None, max_length=100)
    avatar_url: str | None = None

    @field_validator("full_name", "username")
    @classmethod
    def normalize_text(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("value cannot be empty")
        return v


class UserRoleUpdate(SQLModel):
    """
    Supadmin-only role update schema.
    """

    model_config = ConfigDict(extra="forbid")
    role: RoleValue


class UserActiveUpdate(SQLModel):
    """
    Admin-only activation toggle.
    """

    model_config = ConfigDict(extra="forbid")
    is_active: bool

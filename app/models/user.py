# app/models/user.py
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class ApplicationUser(SQLModel, table=True):
    """
    Application profile for a CleanJamaica user.

    Identity:
      - auth_id: Supabase auth.users.id (JWT "sub"), one row per account

    Role:
      - "resident" | "admin" | "supadmin"
      - "field_officer" | "partner" are reserved and carry no access tier

    This table is *not* responsible for passwords or sessions; Supabase Auth
    owns those. A deactivated row (is_active=False) keeps its role but loses
    every access tier.
    """

    __tablename__ = "users"

    user_id: int | None = Field(default=None, primary_key=True)

    auth_id: str = Field(
        unique=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    email: str = Field(
        unique=True,
        index=True,
        description="Email from Supabase auth.users",
    )

    full_name: str | None = Field(default=None, max_length=200)
    username: str | None = Field(default=None, max_length=100)
    avatar_url: str | None = Field(default=None)

    role: str = Field(
        default="resident",
        index=True,
        description="Application role: resident | admin | supadmin | field_officer | partner",
    )

    is_active: bool = Field(default=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

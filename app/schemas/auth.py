# app/schemas/auth.py
from pydantic import ConfigDict
from sqlmodel import SQLModel, Field


class Identity(SQLModel):
    """
    A Supabase Auth account as seen by this backend.

    Never mutated here; only produced by the identity gateway after the
    provider has confirmed a token or credentials.
    """

    auth_id: str
    email: str | None = None
    email_confirmed: bool = False
    full_name: str | None = None


class LoginResult(SQLModel):
    """Tokens and identity returned by a successful password sign-in."""

    access_token: str
    refresh_token: str
    expires_in: int | None = None
    identity: Identity


# ---------- Requests ----------
#
# Fields are optional so that missing values reach the service layer and
# come back as MISSING_FIELDS / MISSING_EMAIL. Unknown keys (the web form
# sends `action`) are ignored.


class _CamelModel(SQLModel):
    model_config = ConfigDict(populate_by_name=True)


class RegisterRequest(_CamelModel):
    email: str | None = None
    password: str | None = None
    full_name: str | None = Field(default=None, alias="fullName")


class LoginRequest(_CamelModel):
    email: str | None = None
    password: str | None = None


class ResendVerificationRequest(_CamelModel):
    email: str | None = None


# ---------- Responses ----------


class AuthUserRead(_CamelModel):
    id: str
    email: str | None = None
    full_name: str | None = Field(default=None, alias="fullName")
    email_verified: bool = Field(default=False, alias="emailVerified")


class ProfileSummary(_CamelModel):
    """Denormalized profile the client caches with its session."""

    user_id: int = Field(alias="userId")
    full_name: str | None = Field(default=None, alias="fullName")
    username: str | None = None
    role: str
    is_active: bool = Field(alias="isActive")


class SessionTokens(_CamelModel):
    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")
    expires_in: int | None = Field(default=None, alias="expiresIn")


class AuthMessage(_CamelModel):
    success: bool = True
    code: str
    message: str


class RegisterResponse(AuthMessage):
    user: AuthUserRead


class LoginResponse(AuthMessage):
    user: AuthUserRead
    profile: ProfileSummary | None = None
    session: SessionTokens


class SessionInfo(_CamelModel):
    """Result of GET /auth/session for a guarded caller."""

    user: AuthUserRead
    profile: ProfileSummary

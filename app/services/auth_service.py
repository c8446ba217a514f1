# app/services/auth_service.py
import logging
import re

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.errors import EmailTaken, StoreUnavailable, ValidationError
from app.core.identity import IdentityGateway, mask_email, normalize_email
from app.core.roles import Role
from app.models.user import ApplicationUser
from app.repositories.user_repo import UserRepository
from app.schemas.auth import (
    AuthMessage,
    AuthUserRead,
    Identity,
    LoginRequest,
    LoginResponse,
    ProfileSummary,
    RegisterRequest,
    RegisterResponse,
    ResendVerificationRequest,
    SessionInfo,
    SessionTokens,
)

logger = logging.getLogger(__name__)

PASSWORD_MIN_LEN = 8
FULL_NAME_MIN_LEN = 2


def _auth_user(identity: Identity) -> AuthUserRead:
    return AuthUserRead(
        id=identity.auth_id,
        email=identity.email,
        full_name=identity.full_name,
        email_verified=identity.email_confirmed,
    )


def profile_summary(user: ApplicationUser) -> ProfileSummary:
    return ProfileSummary(
        user_id=user.user_id,
        full_name=user.full_name,
        username=user.username,
        role=user.role,
        is_active=user.is_active,
    )


def username_from_name(full_name: str) -> str:
    """'Jane  Brown' -> 'jane_brown'"""
    return re.sub(r"\s+", "_", full_name.strip().lower())


class AuthService:
    """
    Account lifecycle: sign-up, login, logout, verification resend.

    Responsibilities:
      - validate caller input before anything reaches Supabase
      - keep the users table in step with Supabase Auth accounts
      - shape responses for the auth routes
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    def register(
        self,
        session: Session,
        gateway: IdentityGateway,
        payload: RegisterRequest,
    ) -> RegisterResponse:
        """
        Create a Supabase account plus its resident profile row.

        Rules:
          - email, password, fullName are all required
          - password >= 8 chars, fullName >= 2 chars
          - an email already in `users` is rejected before calling Supabase
        """
        email = (payload.email or "").strip()
        password = payload.password or ""
        full_name = (payload.full_name or "").strip()

        if not email or not password.strip() or not full_name:
            raise ValidationError("All fields are required", code="MISSING_FIELDS")

        email = normalize_email(email)

        if len(password) < PASSWORD_MIN_LEN:
            raise ValidationError(
                f"Password must be at least {PASSWORD_MIN_LEN} characters",
                code="WEAK_PASSWORD",
            )
        if len(full_name) < FULL_NAME_MIN_LEN:
            raise ValidationError(
                f"Full name must be at least {FULL_NAME_MIN_LEN} characters",
                code="INVALID_NAME",
            )

        if self.repo.get_by_email(session, email) is not None:
            raise EmailTaken()

        identity = gateway.sign_up(email, password, full_name)

        try:
            self.repo.create(
                session,
                ApplicationUser(
                    auth_id=identity.auth_id,
                    email=email,
                    full_name=full_name,
                    username=username_from_name(full_name),
                    role=Role.RESIDENT.value,
                    is_active=True,
                ),
            )
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Profile creation failed for %s: %s", mask_email(email), e)
            raise StoreUnavailable(
                "Profile creation failed", code="PROFILE_ERROR"
            ) from e

        return RegisterResponse(
            code="SIGNUP_SUCCESS",
            message="Account created! Check your email to verify your account.",
            user=AuthUserRead(
                id=identity.auth_id,
                email=email,
                full_name=full_name,
                email_verified=False,
            ),
        )

    def login(
        self,
        session: Session,
        gateway: IdentityGateway,
        payload: LoginRequest,
    ) -> LoginResponse:
        """
        Password login.

        A missing profile row does not fail login (the account may predate
        its profile); the response simply carries profile=None and every
        guarded route will answer PROFILE_NOT_FOUND.
        """
        if not (payload.email or "").strip() or not (payload.password or "").strip():
            raise ValidationError(
                "Email and password are required", code="MISSING_FIELDS"
            )

        result = gateway.log_in(payload.email, payload.password)

        user = self.repo.get_by_auth_id(session, result.identity.auth_id)
        if user is None:
            logger.warning("No profile for auth id %s", result.identity.auth_id)

        return LoginResponse(
            code="LOGIN_SUCCESS",
            message="Login successful",
            user=_auth_user(result.identity),
            profile=profile_summary(user) if user else None,
            session=SessionTokens(
                access_token=result.access_token,
                refresh_token=result.refresh_token,
                expires_in=result.expires_in,
            ),
        )

    def logout(self, gateway: IdentityGateway, access_token: str) -> Identity:
        """Revoke the caller's session at Supabase (best-effort revoke)."""
        identity = gateway.log_out(access_token)
        logger.info("Logged out %s", identity.auth_id)
        return identity

    def resend_verification(
        self,
        gateway: IdentityGateway,
        payload: ResendVerificationRequest,
    ) -> AuthMessage:
        gateway.resend_verification(payload.email)
        return AuthMessage(
            code="VERIFICATION_SENT",
            message="Verification email sent successfully. Check your inbox!",
        )

    def session_info(self, identity: Identity, user: ApplicationUser) -> SessionInfo:
        return SessionInfo(user=_auth_user(identity), profile=profile_summary(user))

# app/core/identity.py
"""
Identity gateway: the single seam between this backend and Supabase Auth.

Nothing else in the application talks to the identity provider. Every
provider failure is translated into one of the errors in
`app.core.errors` so callers never see supabase/httpx exceptions.
"""
import logging
import re
from typing import Callable

import httpx
from jose import JWTError, jwt
from supabase import AuthError, AuthRetryableError, Client

from app.core.config import Settings
from app.core.errors import (
    EmailInvalid,
    EmailNotVerified,
    EmailTaken,
    InvalidCredentials,
    InvalidSession,
    NoSession,
    ProviderError,
    UserNotFound,
    ValidationError,
)
from app.schemas.auth import Identity, LoginResult

logger = logging.getLogger(__name__)

# local@domain.tld, no whitespace
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Supabase Auth error codes
_EMAIL_TAKEN_CODES = {"email_exists", "user_already_exists"}
_EMAIL_NOT_CONFIRMED_CODES = {"email_not_confirmed"}

LIST_USERS_PAGE_SIZE = 100


def mask_email(email: str) -> str:
    """Log-safe form of an email address."""
    return f"{email[:5]}***"


def normalize_email(email: str | None) -> str:
    """
    Strip + lowercase an email and check its shape.

    Raises:
        ValidationError(MISSING_EMAIL): if empty.
        EmailInvalid: if it does not look like local@domain.tld.
    """
    if not email or not email.strip():
        raise ValidationError("Email is required", code="MISSING_EMAIL")
    email = email.strip()
    if not EMAIL_RE.match(email):
        raise EmailInvalid()
    return email.lower()


def _identity_from_user(user) -> Identity:
    metadata = getattr(user, "user_metadata", None) or {}
    return Identity(
        auth_id=str(user.id),
        email=user.email,
        email_confirmed=bool(getattr(user, "email_confirmed_at", None)),
        full_name=metadata.get("full_name"),
    )


class IdentityGateway:
    """
    Supabase Auth operations used by the API.

    Args:
        admin_client: factory for the service-role client (token checks,
            admin user operations). Called lazily so a missing service key
            only fails the requests that need it.
        public_client: factory for a fresh anon-key client, one per login.
        settings: application settings (JWT pre-check secret/algorithm).
    """

    def __init__(
        self,
        admin_client: Callable[[], Client],
        public_client: Callable[[], Client],
        settings: Settings,
    ):
        self._admin_client = admin_client
        self._public_client = public_client
        self.settings = settings

    # ---- sign up / verification ----

    def sign_up(self, email: str, password: str, full_name: str) -> Identity:
        """
        Create a provider account (unconfirmed) and send the verification
        invite. A failed invite does not fail sign-up.

        Raises:
            EmailInvalid, EmailTaken, ProviderError
        """
        email = normalize_email(email)
        admin = self._admin_client()

        try:
            response = admin.auth.admin.create_user(
                {
                    "email": email,
                    "password": password,
                    "email_confirm": False,
                    "user_metadata": {"full_name": full_name},
                }
            )
        except (AuthRetryableError, httpx.HTTPError) as e:
            raise ProviderError(details=str(e)) from e
        except AuthError as e:
            if getattr(e, "code", None) in _EMAIL_TAKEN_CODES or "already" in str(e).lower():
                raise EmailTaken() from e
            raise ProviderError("Account creation failed", details=str(e)) from e

        if response is None or response.user is None:
            raise ProviderError("Account creation failed")

        identity = _identity_from_user(response.user)
        logger.info("Created auth account %s for %s", identity.auth_id, mask_email(email))

        try:
            admin.auth.admin.invite_user_by_email(email)
        except (AuthError, httpx.HTTPError) as e:
            logger.warning("Verification invite failed for %s: %s", mask_email(email), e)

        return identity

    def resend_verification(self, email: str) -> None:
        """
        Re-send the verification invite to an existing account.

        Raises:
            EmailInvalid, UserNotFound, ProviderError
        """
        email = normalize_email(email)
        admin = self._admin_client()

        if not self._account_exists(admin, email):
            raise UserNotFound()

        try:
            admin.auth.admin.invite_user_by_email(email)
        except (AuthError, httpx.HTTPError) as e:
            raise ProviderError("Failed to send email", details=str(e)) from e

        logger.info("Verification email re-sent to %s", mask_email(email))

    def _account_exists(self, admin: Client, email: str) -> bool:
        page = 1
        while True:
            try:
                users = admin.auth.admin.list_users(page=page, per_page=LIST_USERS_PAGE_SIZE)
            except (AuthError, httpx.HTTPError) as e:
                raise ProviderError("Failed to verify user", details=str(e)) from e
            if not users:
                return False
            if any((u.email or "").lower() == email for u in users):
                return True
            if len(users) < LIST_USERS_PAGE_SIZE:
                return False
            page += 1

    # ---- sessions ----

    def log_in(self, email: str, password: str) -> LoginResult:
        """
        Password sign-in.

        Raises:
            EmailInvalid, InvalidCredentials, EmailNotVerified, ProviderError
        """
        email = normalize_email(email)
        client = self._public_client()

        try:
            response = client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except (AuthRetryableError, httpx.HTTPError) as e:
            raise ProviderError(details=str(e)) from e
        except AuthError as e:
            if getattr(e, "code", None) in _EMAIL_NOT_CONFIRMED_CODES:
                raise EmailNotVerified() from e
            logger.info("Sign-in rejected for %s: %s", mask_email(email), e)
            raise InvalidCredentials() from e

        if response.user is None:
            raise InvalidCredentials("Authentication failed")

        identity = _identity_from_user(response.user)
        if not identity.email_confirmed:
            raise EmailNotVerified()
        if response.session is None:
            raise InvalidCredentials("Authentication failed")

        return LoginResult(
            access_token=response.session.access_token,
            refresh_token=response.session.refresh_token,
            expires_in=response.session.expires_in,
            identity=identity,
        )

    def verify_token(self, access_token: str | None) -> Identity:
        """
        Map a bearer token to an identity. The provider's answer is the
        only one trusted; the optional local JWT check can reject early
        but never accept on its own.

        Raises:
            NoSession: empty token.
            InvalidSession: rejected or expired token.
            ProviderError: provider unreachable / timed out.
        """
        if not access_token:
            raise NoSession()

        if self.settings.SUPABASE_JWT_SECRET:
            try:
                jwt.decode(
                    access_token,
                    self.settings.SUPABASE_JWT_SECRET,
                    algorithms=[self.settings.SUPABASE_JWT_ALG],
                    options={"verify_aud": False},
                )
            except JWTError as e:
                raise InvalidSession(details="Invalid or expired token") from e

        try:
            response = self._admin_client().auth.get_user(access_token)
        except (AuthRetryableError, httpx.HTTPError) as e:
            raise ProviderError(details=str(e)) from e
        except AuthError as e:
            raise InvalidSession() from e

        if response is None or response.user is None:
            raise InvalidSession()
        return _identity_from_user(response.user)

    def log_out(self, access_token: str | None) -> Identity:
        """
        Revoke the session behind `access_token`.

        The token is verified first (NoSession / InvalidSession). A failed
        revoke is logged and swallowed: the caller clears its local session
        either way.
        """
        identity = self.verify_token(access_token)
        try:
            self._admin_client().auth.admin.sign_out(access_token)
        except (AuthError, httpx.HTTPError) as e:
            logger.warning("Session revoke failed for %s: %s", identity.auth_id, e)
        return identity

# app/core/auth.py
"""
Request guard for protected routes.

Every protected endpoint depends on `require_tier(...)` (or one of the
`require_*` shortcuts), which runs, in order and without retries:

  1. get_access_token     - Authorization: Bearer <token>   -> NO_SESSION (401)
  2. get_identity         - token confirmed by Supabase     -> INVALID_SESSION (401)
  3. get_application_user - users row for the auth id       -> PROFILE_NOT_FOUND (404)
  4. tier check           - effective role ranks high enough -> FORBIDDEN (403)

and hands the route an `AuthContext`. Routes must not re-verify.
The guard performs no writes and keeps no state between requests.
"""
import logging
from dataclasses import dataclass
from functools import lru_cache

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from app.core.config import get_settings
from app.core.errors import Forbidden, NoSession
from app.core.identity import IdentityGateway
from app.core.roles import Role, Tier, effective_role, has_tier
from app.core.supabase_client import supabase_admin, supabase_public
from app.database import get_session
from app.models.user import ApplicationUser
from app.repositories.user_repo import UserRepository
from app.schemas.auth import Identity
from app.services.role_service import RoleResolver

logger = logging.getLogger(__name__)

# HTTP Bearer scheme:
# - auto_error=False => a missing or non-Bearer Authorization header yields
#   None, so we can answer with our own NO_SESSION error body.
bearer_scheme = HTTPBearer(auto_error=False)

role_resolver = RoleResolver(UserRepository())


@lru_cache
def get_identity_gateway() -> IdentityGateway:
    """Shared identity gateway backed by the Supabase clients."""
    return IdentityGateway(
        admin_client=supabase_admin,
        public_client=supabase_public,
        settings=get_settings(),
    )


@dataclass(frozen=True)
class AuthContext:
    """What a guarded route knows about its caller."""

    identity: Identity
    user: ApplicationUser
    access_token: str

    @property
    def role(self) -> Role | None:
        return effective_role(self.user)


def get_access_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """
    Extract the bearer token.

    Raises:
        NoSession(401): header missing, not "Bearer <token>", or empty.
    """
    if credentials is None or not credentials.credentials:
        raise NoSession()
    return credentials.credentials


def get_identity(
    token: str = Depends(get_access_token),
    gateway: IdentityGateway = Depends(get_identity_gateway),
) -> Identity:
    """Confirm the token with Supabase Auth."""
    return gateway.verify_token(token)


def get_application_user(
    identity: Identity = Depends(get_identity),
    session: Session = Depends(get_session),
) -> ApplicationUser:
    """Resolve the application profile of a verified identity."""
    return role_resolver.resolve_role(session, identity.auth_id)


def require_tier(required: Tier):
    """
    Build a dependency that only lets callers at `required` tier or above
    through.

    Deactivated users and roles without a tier are always rejected.
    """

    def dependency(
        token: str = Depends(get_access_token),
        identity: Identity = Depends(get_identity),
        user: ApplicationUser = Depends(get_application_user),
    ) -> AuthContext:
        role = effective_role(user)
        if not has_tier(role, required):
            logger.info(
                "Denied user %s (role=%s, active=%s): %s tier required",
                user.user_id,
                user.role,
                user.is_active,
                required.name.lower(),
            )
            if not user.is_active:
                raise Forbidden("Account is deactivated")
            raise Forbidden(f"{required.name.capitalize()} access required")
        return AuthContext(identity=identity, user=user, access_token=token)

    return dependency


require_resident = require_tier(Tier.RESIDENT)
require_admin = require_tier(Tier.ADMIN)
require_supadmin = require_tier(Tier.SUPADMIN)

# app/services/user_service.py
import logging

from sqlmodel import Session

from app.core.errors import Forbidden, NotFoundError, ProfileNotFound, ValidationError
from app.core.roles import is_supadmin_tier
from app.models.user import ApplicationUser
from app.repositories.user_repo import UserRepository
from app.schemas.user import UserActiveUpdate, UserRoleUpdate, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    """
    Business logic for application users.

    Responsibilities:
      - profile lookups and self-service edits
      - admin user management (activation, roles)
      - keep admins from locking themselves (or their superiors) out
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    # ----- Profile -----

    def get_profile(self, session: Session, auth_id: str | None) -> ApplicationUser:
        """
        Profile for a Supabase auth id.

        Raises:
            ValidationError(MISSING_AUTH_ID): if auth_id is empty.
            ProfileNotFound: if no row matches.
        """
        if not auth_id or not auth_id.strip():
            raise ValidationError("Missing authId parameter", code="MISSING_AUTH_ID")

        user = self.repo.get_by_auth_id(session, auth_id.strip())
        if user is None:
            raise ProfileNotFound("Failed to load your profile")
        return user

    def update_me(
        self,
        session: Session,
        current_user: ApplicationUser,
        payload: UserUpdate,
    ) -> ApplicationUser:
        """Partial update of the caller's own display fields."""
        if payload.full_name is not None:
            current_user.full_name = payload.full_name
        if payload.username is not None:
            current_user.username = payload.username
        if payload.avatar_url is not None:
            current_user.avatar_url = payload.avatar_url

        return self.repo.update(session, current_user)

    # ----- Admin operations -----

    def list_users(
        self, session: Session, skip: int, limit: int
    ) -> list[ApplicationUser]:
        """List users with pagination (admin only)."""
        return self.repo.list(session, skip=skip, limit=limit)

    def get_user(self, session: Session, user_id: int) -> ApplicationUser:
        """
        Get a user by id (admin only).

        Raises:
            NotFoundError(USER_NOT_FOUND): if not found.
        """
        user = self.repo.get_by_id(session, user_id)
        if not user:
            raise NotFoundError("User not found", code="USER_NOT_FOUND")
        return user

    def set_active(
        self,
        session: Session,
        actor: ApplicationUser,
        user_id: int,
        payload: UserActiveUpdate,
    ) -> ApplicationUser:
        """
        Activate / deactivate a user (admin only).

        Deactivation takes effect on the user's next request: the guard
        denies every tier to inactive rows, no token revocation needed.
        """
        user = self.get_user(session, user_id)

        if user.user_id == actor.user_id and not payload.is_active:
            raise ValidationError(
                "You cannot deactivate your own account",
                code="CANNOT_DEACTIVATE_SELF",
            )
        if is_supadmin_tier(user.role) and not is_supadmin_tier(actor.role):
            raise Forbidden("Only a supadmin can change a supadmin account")

        user.is_active = payload.is_active
        logger.info(
            "User %s set user %s active=%s", actor.user_id, user.user_id, user.is_active
        )
        return self.repo.update(session, user)

    def update_role(
        self,
        session: Session,
        actor: ApplicationUser,
        user_id: int,
        payload: UserRoleUpdate,
    ) -> ApplicationUser:
        """
        Change a user's role (supadmin only).

        Role validation is enforced by the schema (Literal).
        """
        user = self.get_user(session, user_id)

        if user.user_id == actor.user_id:
            raise ValidationError(
                "You cannot change your own role", code="CANNOT_CHANGE_OWN_ROLE"
            )

        logger.info(
            "User %s changed role of user %s: %s -> %s",
            actor.user_id,
            user.user_id,
            user.role,
            payload.role,
        )
        user.role = payload.role
        return self.repo.update(session, user)

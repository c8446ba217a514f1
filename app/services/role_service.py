# app/services/role_service.py
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.errors import ProfileNotFound, StoreUnavailable
from app.models.user import ApplicationUser
from app.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)


class RoleResolver:
    """
    Maps a verified Supabase identity to its application user (and role).

    Never provisions rows: an identity without a profile is not
    registered with the application and resolution fails.
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    def resolve_role(self, session: Session, auth_id: str) -> ApplicationUser:
        """
        Look up the user row for `auth_id`.

        Inactive rows are returned as-is; access decisions handle them.

        Raises:
            ProfileNotFound: no row for this auth id.
            StoreUnavailable: the database query failed.
        """
        try:
            user = self.repo.get_by_auth_id(session, auth_id)
        except SQLAlchemyError as e:
            logger.error("User lookup failed for %s: %s", auth_id, e)
            raise StoreUnavailable(details="User lookup failed") from e

        if user is None:
            raise ProfileNotFound()
        return user

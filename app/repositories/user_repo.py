# app/repositories/user_repo.py
from sqlmodel import Session, select

from app.models.user import ApplicationUser


class UserRepository:
    """
    Data access layer for ApplicationUser.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic
    """

    # ----- Lookups -----

    def get_by_id(self, session: Session, user_id: int) -> ApplicationUser | None:
        """Return a user by primary key, or None if not found."""
        return session.get(ApplicationUser, user_id)

    def get_by_auth_id(self, session: Session, auth_id: str) -> ApplicationUser | None:
        """Return the user linked to a Supabase auth id, or None."""
        stmt = select(ApplicationUser).where(ApplicationUser.auth_id == auth_id)
        return session.exec(stmt).first()

    def get_by_email(self, session: Session, email: str) -> ApplicationUser | None:
        """Return a user by unique email, or None if not found."""
        stmt = select(ApplicationUser).where(ApplicationUser.email == email)
        return session.exec(stmt).first()

    def list(
        self, session: Session, skip: int = 0, limit: int = 50
    ) -> list[ApplicationUser]:
        """
        Paginated user listing, oldest first.

        Args:
            skip: offset rows (for paging)
            limit: max number of rows returned
        """
        stmt = (
            select(ApplicationUser)
            .order_by(ApplicationUser.user_id)
            .offset(skip)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    # ----- Writes -----

    def create(self, session: Session, user: ApplicationUser) -> ApplicationUser:
        """Insert a new user and return the persisted row."""
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    def update(self, session: Session, user: ApplicationUser) -> ApplicationUser:
        """Persist changes to an existing user."""
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

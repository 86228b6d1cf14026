# portal/repositories/user_repo.py
import uuid

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from portal.models.user import User


class EmailAlreadyExistsError(Exception):
    """Insert rejected by the unique constraint on users.email."""

    def __init__(self, email: str):
        super().__init__(f"Email already exists: {email}")
        self.email = email


class UserRepository:
    """
    Data access layer for User.

    Responsibilities:
      - Pure DB operations (create + queries)
      - No FastAPI, no HTTP, no business logic
    """

    def get_by_id(self, session: Session, user_id: uuid.UUID) -> User | None:
        """Return a User by primary key, or None if not found."""
        return session.get(User, user_id)

    def get_by_email(self, session: Session, email: str) -> User | None:
        """Return a User by unique email, or None if not found."""
        stmt = select(User).where(User.email == email)
        return session.exec(stmt).first()

    def list_newest_first(self, session: Session) -> list[User]:
        """Full-table read, newest `created_at` first."""
        stmt = select(User).order_by(User.created_at.desc())
        return list(session.exec(stmt).all())

    def create(self, session: Session, user: User) -> User:
        """
        Insert a new User and return the persisted row.

        Raises:
            EmailAlreadyExistsError: if another row already has this email.
        """
        session.add(user)
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            if self.get_by_email(session, user.email) is not None:
                raise EmailAlreadyExistsError(user.email)
            raise
        session.refresh(user)
        return user

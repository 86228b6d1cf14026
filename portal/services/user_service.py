# portal/services/user_service.py
import logging

from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlmodel import Session

from portal.core.config import Settings
from portal.core.security import hash_password, verify_password
from portal.models.user import User
from portal.repositories.user_repo import UserRepository
from portal.schemas.user import TestUserCreate

logger = logging.getLogger(__name__)

_email_adapter = TypeAdapter(EmailStr)


class UserValidationError(ValueError):
    """Input rejected by the strict validation rules."""


class UserService:
    """
    Business logic for User.

    Responsibilities:
      - hash passwords before they reach the repository
      - apply the opt-in input validation rules
      - orchestrate repository operations
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    def validate_test_user(self, settings: Settings, payload: TestUserCreate) -> None:
        """
        Strict rules, only when STRICT_USER_VALIDATION is on:
          - email must parse as an email address
          - password at least MIN_PASSWORD_LENGTH characters

        Raises:
            UserValidationError: on the first rule that fails.
        """
        if not settings.STRICT_USER_VALIDATION:
            return
        try:
            _email_adapter.validate_python(payload.email)
        except ValidationError:
            raise UserValidationError(f"Invalid email address: {payload.email}")
        if len(payload.password) < settings.MIN_PASSWORD_LENGTH:
            raise UserValidationError(
                f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters"
            )

    def create_test_user(
        self,
        session: Session,
        settings: Settings,
        payload: TestUserCreate,
    ) -> User:
        """
        Create a user with a bcrypt-hashed password.

        Raises:
            UserValidationError: strict validation failed.
            EmailAlreadyExistsError: email is taken.
        """
        self.validate_test_user(settings, payload)
        user = User(
            name=payload.name,
            email=payload.email,
            password=hash_password(payload.password),
            role=payload.role,
        )
        user = self.repo.create(session, user)
        logger.info("created user %s (%s)", user.id, user.role.value)
        return user

    def list_users(self, session: Session) -> list[User]:
        return self.repo.list_newest_first(session)

    def authenticate(self, session: Session, email: str, password: str) -> User | None:
        """
        Check an email/password pair.

        Returns None for unknown emails, OAuth-only accounts (no password),
        and wrong passwords alike.
        """
        user = self.repo.get_by_email(session, email)
        if user is None or not user.password:
            return None
        if not verify_password(password, user.password):
            return None
        return user

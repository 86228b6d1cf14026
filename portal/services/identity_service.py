# portal/services/identity_service.py
import logging

from sqlmodel import Session

from portal.core.google_oauth import GoogleProfile
from portal.models.user import Role, User
from portal.repositories.user_repo import EmailAlreadyExistsError, UserRepository

logger = logging.getLogger(__name__)


def _default_name_from_email(email: str) -> str:
    """
    Derive a display name from email when the provider profile has none.
    """
    if "@" in email:
        return email.split("@", 1)[0]
    return email


class IdentityService:
    """
    Maps an authenticated Google profile to a local User.

    Only called after the OAuth handshake succeeded; handshake failures are
    rejected earlier by the `authenticate_google` dependency.
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    def resolve(self, session: Session, profile: GoogleProfile) -> tuple[User, bool]:
        """
        Find the user by email, or auto-provision one.

        New accounts get no password and role EMPLOYEE (admins are promoted
        out of band).

        Returns:
            (user, created)
        """
        user = self.repo.get_by_email(session, profile.email)
        if user is not None:
            return user, False

        user = User(
            name=profile.name or _default_name_from_email(profile.email),
            email=profile.email,
            password=None,
            role=Role.EMPLOYEE,
        )
        try:
            user = self.repo.create(session, user)
        except EmailAlreadyExistsError:
            # Two callbacks for the same new account raced; the other one won
            existing = self.repo.get_by_email(session, profile.email)
            if existing is None:
                raise
            return existing, False

        logger.info("provisioned user %s from google login", user.id)
        return user, True

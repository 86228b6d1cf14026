# portal/core/auth.py
import logging
import uuid

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from portal.core.config import Settings
from portal.core.google_oauth import GoogleOAuthClient, GoogleProfile, OAuthError
from portal.core.security import InvalidTokenError, decode_access_token, verify_oauth_state
from portal.database import get_session
from portal.models.user import User
from portal.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "token"

repo = UserRepository()

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so the cookie can be used instead, or the request treated as anonymous.
bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """The Settings the running app was built with."""
    return request.app.state.settings


def get_oauth_client(request: Request) -> GoogleOAuthClient:
    """The Google client constructed once at app wiring time."""
    return request.app.state.oauth_client


def authenticate_google(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    oauth: GoogleOAuthClient = Depends(get_oauth_client),
    settings: Settings = Depends(get_app_settings),
) -> GoogleProfile:
    """
    Complete the Google handshake for the callback route.

    Any failure (provider error, missing code, bad state, rejected code
    exchange) stops the request here with 401, so the route handler never
    runs. No session is created.
    """
    if error:
        logger.warning("google login rejected by provider: %s", error)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    if not code or not state:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    try:
        verify_oauth_state(settings, state)
    except InvalidTokenError as exc:
        logger.warning("google login with invalid state: %s", exc)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    try:
        return oauth.fetch_profile(code)
    except OAuthError as exc:
        logger.warning("google login failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> User | None:
    """
    Resolve the current user from the access token.

    Flow:
      1. Take the token from the Authorization header, else the `token` cookie.
      2. No token => anonymous => return None.
      3. Decode JWT => extract 'sub' (user id).
      4. Load the user; a deleted or unknown id counts as anonymous.

    Raises:
        HTTPException(401): if the token is invalid/expired or malformed.
    """
    token = credentials.credentials if credentials else request.cookies.get(TOKEN_COOKIE)
    if not token:
        return None

    try:
        payload = decode_access_token(settings, token)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    try:
        user_id = uuid.UUID(payload.get("sub", ""))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid sub in token",
        )

    return repo.get_by_id(session, user_id)


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    """
    Enforce authentication.

    Raises:
        HTTPException(401): if user is None.
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user

# portal/routers/auth.py
import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse, RedirectResponse
from sqlmodel import Session

from portal.core.auth import (
    TOKEN_COOKIE,
    authenticate_google,
    get_app_settings,
    get_oauth_client,
    require_auth,
)
from portal.core.config import Settings
from portal.core.google_oauth import GoogleOAuthClient, GoogleProfile
from portal.core.security import create_access_token, create_oauth_state
from portal.database import get_session
from portal.models.user import User
from portal.repositories.user_repo import UserRepository
from portal.schemas.user import ErrorResponse, LoginRequest, LoginResponse, UserRead
from portal.services.identity_service import IdentityService
from portal.services.user_service import UserService

logger = logging.getLogger(__name__)

# Google redirects back here; the path is registered with the provider
callback_router = APIRouter(tags=["OAuth"])

router = APIRouter(prefix="/api/auth", tags=["Auth"])

repo = UserRepository()
identity = IdentityService(repo)
service = UserService(repo)


def _set_token_cookie(response: Response, settings: Settings, user: User) -> None:
    token = create_access_token(settings, user.id, user.role.value)
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        max_age=settings.JWT_EXPIRES_MINUTES * 60,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


@callback_router.get("/auth/google/callback")
def google_callback(
    profile: GoogleProfile = Depends(authenticate_google),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
):
    """
    Finish Google login.

    Only reached after a successful handshake. Finds or creates the user,
    sets the access token cookie and redirects to the frontend with the
    user's id and role.
    """
    try:
        user, created = identity.resolve(session, profile)
    except Exception as exc:
        logger.exception("google login: could not resolve user")
        return JSONResponse(status_code=500, content={"error": str(exc)})

    query = urlencode({"id": str(user.id), "role": user.role.value})
    response = RedirectResponse(url=f"{settings.CLIENT_URL}/oauth-success?{query}", status_code=302)
    _set_token_cookie(response, settings, user)
    logger.info("google login ok: user=%s new=%s", user.id, created)
    return response


@router.get("/google")
def google_login(
    oauth: GoogleOAuthClient = Depends(get_oauth_client),
    settings: Settings = Depends(get_app_settings),
):
    """Redirect the browser to Google's consent screen."""
    state = create_oauth_state(settings)
    return RedirectResponse(url=oauth.authorization_url(state), status_code=302)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse}},
)
def login(
    payload: LoginRequest,
    response: Response,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
):
    """
    Email/password login.

    OAuth-only accounts have no password and cannot log in here.
    """
    user = service.authenticate(session, payload.email, payload.password)
    if user is None:
        return JSONResponse(status_code=401, content={"error": "Invalid email or password"})

    _set_token_cookie(response, settings, user)
    return LoginResponse(message="Login successful", user=UserRead.model_validate(user))


@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(require_auth)):
    """Return the authenticated user's profile."""
    return UserRead.model_validate(current_user)


@router.post("/logout")
def logout(response: Response):
    """Drop the access token cookie. Tokens are stateless, nothing else to revoke."""
    response.delete_cookie(TOKEN_COOKIE)
    return {"message": "Logged out"}

# portal/core/google_oauth.py
"""
Google OAuth 2.0 client (authorization code flow).

Responsibilities:
  - Build the consent URL the browser is redirected to.
  - Exchange the callback `code` for an access token.
  - Fetch the user's profile (id, email, name) from Google userinfo.

Stateless: nothing is stored between the redirect and the callback.
"""
import logging
from dataclasses import dataclass
from urllib.parse import urlencode

import httpx

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"

GOOGLE_SCOPES = ["openid", "profile", "email"]


class OAuthError(Exception):
    """The provider rejected the handshake or returned an unusable profile."""


@dataclass(frozen=True)
class GoogleProfile:
    provider_id: str
    email: str
    name: str | None = None


class GoogleOAuthClient:
    """
    Thin wrapper over Google's OAuth endpoints.

    `transport` lets tests plug in an `httpx.MockTransport`.
    """

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        callback_url: str,
        transport: httpx.BaseTransport | None = None,
        timeout: float = 10.0,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.callback_url = callback_url
        self._http = httpx.Client(transport=transport, timeout=timeout)

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.callback_url,
            "response_type": "code",
            "scope": " ".join(GOOGLE_SCOPES),
            "state": state,
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    def fetch_profile(self, code: str) -> GoogleProfile:
        """
        Exchange `code` for tokens, then read the user's profile.

        Raises:
            OAuthError: on any HTTP failure or a profile without an email.
        """
        try:
            token_resp = self._http.post(
                GOOGLE_TOKEN_URL,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "grant_type": "authorization_code",
                    "redirect_uri": self.callback_url,
                },
                headers={"Accept": "application/json"},
            )
            token_resp.raise_for_status()
            access_token = token_resp.json()["access_token"]

            userinfo_resp = self._http.get(
                GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            userinfo_resp.raise_for_status()
            info = userinfo_resp.json()
        except httpx.HTTPStatusError as exc:
            logger.error("google oauth request failed: status=%s", exc.response.status_code)
            raise OAuthError(f"Google OAuth request failed: {exc}") from exc
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.error("google oauth error: %s", exc)
            raise OAuthError(f"Google OAuth error: {exc}") from exc

        email = info.get("email")
        if not email:
            raise OAuthError("Google profile has no email")

        return GoogleProfile(
            provider_id=str(info.get("sub", "")),
            email=email,
            name=info.get("name"),
        )

    def close(self) -> None:
        self._http.close()

"""
Pytest configuration. Every test gets a fresh app over in-memory SQLite and a
fake Google provider served through httpx.MockTransport.
"""
import os
from urllib.parse import parse_qsl

# Set before portal.main is imported anywhere so the module-level app never
# points at a file database
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, select

from portal.core.config import Settings
from portal.core.google_oauth import GoogleOAuthClient
from portal.core.security import create_oauth_state
from portal.main import create_app
from portal.models.user import User

CLIENT_URL = "http://localhost:5173"


class FakeGoogle:
    """
    Stand-in for Google's token and userinfo endpoints.

    Register a profile under an authorization code with `issue_code`; any
    other code is rejected with invalid_grant.
    """

    def __init__(self):
        self.profiles: dict[str, dict] = {}
        self.token_requests = 0

    def issue_code(self, code: str, email: str | None, name: str | None = "Jane Doe") -> str:
        profile = {"sub": f"google-{code}"}
        if email is not None:
            profile["email"] = email
        if name is not None:
            profile["name"] = name
        self.profiles[code] = profile
        return code

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "oauth2.googleapis.com" and request.url.path == "/token":
            self.token_requests += 1
            form = dict(parse_qsl(request.content.decode()))
            code = form.get("code", "")
            if code not in self.profiles:
                return httpx.Response(400, json={"error": "invalid_grant"})
            return httpx.Response(200, json={"access_token": f"at-{code}", "token_type": "Bearer"})

        if request.url.path == "/v1/userinfo":
            auth = request.headers.get("Authorization", "")
            code = auth.removeprefix("Bearer at-")
            if code not in self.profiles:
                return httpx.Response(401, json={"error": "invalid_token"})
            return httpx.Response(200, json=self.profiles[code])

        return httpx.Response(404)


def make_settings(**overrides) -> Settings:
    values = {
        "DATABASE_URL": "sqlite:///:memory:",
        "CLIENT_URL": CLIENT_URL,
        "GOOGLE_CLIENT_ID": "test-client-id",
        "GOOGLE_CLIENT_SECRET": "test-client-secret",
        "GOOGLE_CALLBACK_URL": "http://testserver/auth/google/callback",
        "JWT_SECRET": "test-jwt-secret",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def google():
    return FakeGoogle()


@pytest.fixture
def make_client(google):
    """Factory: build an app with custom settings and enter its lifespan."""
    clients = []

    def _make(**overrides) -> TestClient:
        settings = make_settings(**overrides)
        oauth = GoogleOAuthClient(
            client_id=settings.GOOGLE_CLIENT_ID,
            client_secret=settings.GOOGLE_CLIENT_SECRET,
            callback_url=settings.GOOGLE_CALLBACK_URL,
            transport=httpx.MockTransport(google.handler),
        )
        test_client = TestClient(create_app(settings, oauth_client=oauth))
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield _make

    for test_client in clients:
        test_client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def oauth_state(client):
    return create_oauth_state(client.app.state.settings)


@pytest.fixture
def stored_users(client):
    """Read the users table directly, bypassing the API."""

    def _read() -> list[User]:
        with Session(client.app.state.database.engine) as session:
            return list(session.exec(select(User)).all())

    return _read

"""Tests for POST /test-user and GET /users."""
from datetime import datetime, timedelta, timezone

from sqlmodel import Session, SQLModel

from portal.core.security import verify_password
from portal.models.user import Role, User

PROJECTION_KEYS = {"id", "name", "email", "role", "createdAt"}


def test_create_test_user_with_all_defaults(client, stored_users):
    r = client.post("/test-user")
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "User created successfully"
    assert set(body["user"]) == PROJECTION_KEYS
    assert body["user"]["name"] == "Test User"
    assert body["user"]["email"] == "testuser@gmail.com"
    assert body["user"]["role"] == "EMPLOYEE"

    [user] = stored_users()
    assert str(user.id) == body["user"]["id"]
    assert verify_password("Test@12345", user.password)


def test_create_test_user_with_empty_json_object(client):
    r = client.post("/test-user", json={})
    assert r.status_code == 200
    assert r.json()["user"]["email"] == "testuser@gmail.com"


def test_create_test_user_with_custom_fields(client, stored_users):
    r = client.post(
        "/test-user",
        json={"name": "Alice", "email": "alice@example.com", "password": "s3cret!pw", "role": "ADMIN"},
    )
    assert r.status_code == 200
    user = r.json()["user"]
    assert user["name"] == "Alice"
    assert user["email"] == "alice@example.com"
    assert user["role"] == "ADMIN"
    assert "password" not in user

    [stored] = stored_users()
    assert stored.role == Role.ADMIN
    assert stored.password != "s3cret!pw"
    assert verify_password("s3cret!pw", stored.password)


def test_create_test_user_from_urlencoded_form(client):
    r = client.post("/test-user", data={"name": "Form User", "email": "form@example.com"})
    assert r.status_code == 200
    assert r.json()["user"]["name"] == "Form User"
    assert r.json()["user"]["role"] == "EMPLOYEE"


def test_duplicate_email_returns_conflict(client, stored_users):
    first = client.post("/test-user", json={"email": "dup@example.com"})
    second = client.post("/test-user", json={"email": "dup@example.com", "name": "Other"})
    assert first.status_code == 200
    assert second.status_code == 409
    assert second.json() == {"error": "Email already exists"}

    matching = [u for u in stored_users() if u.email == "dup@example.com"]
    assert len(matching) == 1
    assert matching[0].name == "Test User"


def test_unknown_role_is_rejected(client, stored_users):
    r = client.post("/test-user", json={"role": "SUPERUSER"})
    assert r.status_code == 422
    assert stored_users() == []


def test_malformed_json_is_rejected(client, stored_users):
    r = client.post("/test-user", content=b"{not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 422
    assert stored_users() == []


def test_permissive_by_default_accepts_odd_email_and_short_password(client):
    r = client.post("/test-user", json={"email": "not-an-email", "password": "x"})
    assert r.status_code == 200


def test_strict_validation_rejects_bad_email(make_client):
    strict = make_client(STRICT_USER_VALIDATION=True)
    r = strict.post("/test-user", json={"email": "not-an-email"})
    assert r.status_code == 400
    assert "email" in r.json()["error"].lower()


def test_strict_validation_rejects_short_password(make_client):
    strict = make_client(STRICT_USER_VALIDATION=True, MIN_PASSWORD_LENGTH=12)
    r = strict.post("/test-user", json={"email": "ok@example.com", "password": "short"})
    assert r.status_code == 400
    assert "12" in r.json()["error"]

    ok = strict.post("/test-user", json={"email": "ok@example.com", "password": "long-enough-pw"})
    assert ok.status_code == 200


def test_created_users_show_up_in_listing_without_password(client):
    for i in range(3):
        client.post("/test-user", json={"email": f"user{i}@example.com", "password": f"pw-{i}-secret"})

    r = client.get("/users")
    assert r.status_code == 200
    users = r.json()
    assert len(users) == 3
    for user in users:
        assert set(user) == PROJECTION_KEYS
    assert sorted(u["email"] for u in users) == [f"user{i}@example.com" for i in range(3)]
    assert "pw-" not in r.text


def test_listing_is_newest_first_regardless_of_insert_order(client):
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    offsets = {"b@example.com": 2, "a@example.com": 0, "d@example.com": 5, "c@example.com": 3}
    with Session(client.app.state.database.engine) as session:
        for email, days in offsets.items():
            session.add(User(name=email, email=email, created_at=base + timedelta(days=days)))
        session.commit()

    r = client.get("/users")
    assert r.status_code == 200
    emails = [u["email"] for u in r.json()]
    assert emails == ["d@example.com", "c@example.com", "b@example.com", "a@example.com"]


def test_listing_empty_store(client):
    r = client.get("/users")
    assert r.status_code == 200
    assert r.json() == []


def test_store_failure_returns_500_with_message(client):
    SQLModel.metadata.drop_all(client.app.state.database.engine)

    listed = client.get("/users")
    assert listed.status_code == 500
    assert "users" in listed.json()["error"]

    created = client.post("/test-user")
    assert created.status_code == 500
    assert "users" in created.json()["error"]

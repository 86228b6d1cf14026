# portal/models/user.py
import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlmodel import Field, SQLModel


class Role(str, Enum):
    """Application role. Every account starts as EMPLOYEE."""

    EMPLOYEE = "EMPLOYEE"
    ADMIN = "ADMIN"


class User(SQLModel, table=True):
    """
    Persistent user account.

    Created either by POST /test-user (with a bcrypt-hashed password) or on
    first Google login (no password). Never updated or deleted here.

    `password` only ever holds a bcrypt hash and is never returned to clients;
    responses use `UserRead`.
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(description="Display name")

    email: str = Field(
        unique=True,
        index=True,
        description="Login identity; unique across all accounts",
    )

    # NULL for OAuth-only accounts
    password: str | None = Field(default=None, description="bcrypt hash")

    role: Role = Field(default=Role.EMPLOYEE, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )

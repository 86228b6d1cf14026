# portal/schemas/user.py
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from portal.models.user import Role


class UserRead(BaseModel):
    """
    Non-sensitive projection returned to clients.

    Never includes the password hash. Serialized with camelCase `createdAt`.
    """

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    role: Role
    created_at: datetime = Field(serialization_alias="createdAt")


class TestUserCreate(BaseModel):
    """
    Body of POST /test-user. Every field is optional.

    Defaults when omitted:
      - name:     "Test User"
      - email:    "testuser@gmail.com"
      - password: "Test@12345"
      - role:     "EMPLOYEE"

    Email format and password strength are not checked here; see
    `UserService.create_test_user` for the opt-in rules.
    """

    model_config = ConfigDict(extra="ignore")

    name: str = "Test User"
    email: str = "testuser@gmail.com"
    password: str = "Test@12345"
    role: Role = Role.EMPLOYEE


class TestUserCreated(BaseModel):
    message: str
    user: UserRead


class LoginRequest(BaseModel):
    """Email/password login for accounts created with a password."""

    email: str
    password: str


class LoginResponse(BaseModel):
    message: str
    user: UserRead


class ErrorResponse(BaseModel):
    error: str

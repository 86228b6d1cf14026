# portal/routers/users.py
import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlmodel import Session

from portal.core.auth import get_app_settings
from portal.core.config import Settings
from portal.database import get_session
from portal.repositories.user_repo import EmailAlreadyExistsError, UserRepository
from portal.schemas.user import ErrorResponse, TestUserCreate, TestUserCreated, UserRead
from portal.services.user_service import UserService, UserValidationError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])

repo = UserRepository()
service = UserService(repo)

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def _body_error(loc: tuple, msg: str, input_value) -> RequestValidationError:
    return RequestValidationError([{"type": "value_error", "loc": loc, "msg": msg, "input": input_value}])


async def read_test_user_payload(request: Request) -> TestUserCreate:
    """
    Parse POST /test-user from a JSON or URL-encoded/form body.

    A missing or empty body means "use every default".
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(_FORM_TYPES):
        form = await request.form()
        data = {key: value for key, value in form.items() if isinstance(value, str)}
    else:
        raw = await request.body()
        if not raw.strip():
            data = {}
        else:
            try:
                data = json.loads(raw)
            except ValueError:
                raise _body_error(("body",), "JSON decode error", None)

    if not isinstance(data, dict):
        raise _body_error(("body",), "Body must be a JSON object", data)

    try:
        return TestUserCreate.model_validate(data)
    except ValidationError as exc:
        errors = [
            {**err, "loc": ("body", *err["loc"])}
            for err in exc.errors(include_url=False, include_context=False)
        ]
        raise RequestValidationError(errors)


@router.post(
    "/test-user",
    response_model=TestUserCreated,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def create_test_user(
    payload: TestUserCreate = Depends(read_test_user_payload),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
):
    """
    Create a user with a hashed password.

    Only the non-sensitive projection is returned.
    """
    try:
        user = service.create_test_user(session, settings, payload)
    except UserValidationError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})
    except EmailAlreadyExistsError as exc:
        logger.warning("test user rejected: %s", exc)
        return JSONResponse(status_code=409, content={"error": "Email already exists"})
    except Exception as exc:
        logger.exception("failed to create test user")
        return JSONResponse(status_code=500, content={"error": str(exc)})

    return TestUserCreated(
        message="User created successfully",
        user=UserRead.model_validate(user),
    )


@router.get(
    "/users",
    response_model=list[UserRead],
    responses={500: {"model": ErrorResponse}},
)
def list_users(session: Session = Depends(get_session)):
    """
    List all users, newest first. No pagination.
    """
    try:
        users = service.list_users(session)
    except Exception as exc:
        logger.exception("failed to list users")
        return JSONResponse(status_code=500, content={"error": str(exc)})
    return [UserRead.model_validate(user) for user in users]

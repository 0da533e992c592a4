"""Authentication endpoints: login, register, refresh, password change, me."""

from typing import Any

from fastapi import APIRouter, Depends, status

from profman.core.auth import AuthService
from profman.core.errors import ProfmanError, UnauthorizedError
from profman.core.users import User
from profman.utils.validators import is_student_login
from profman.web.deps import authenticate, get_auth_service
from profman.web.responses import envelope
from profman.web.schemas import ChangePasswordRequest, LoginRequest, RefreshRequest, UserCreate

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login")
def login(body: LoginRequest, auth: AuthService = Depends(get_auth_service)) -> dict[str, Any]:
    """Password login; an all-digit password is a student number login."""
    try:
        if is_student_login(body.email, body.password):
            result = auth.auto_login_student(body.email, body.password)
        else:
            result = auth.login(body.email, body.password)
    except UnauthorizedError:
        raise
    except ProfmanError as e:
        # e.g. a student number already registered under another email
        raise UnauthorizedError(e.message, code="LOGIN_FAILED") from e
    return envelope(result.to_dict())


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(body: UserCreate, auth: AuthService = Depends(get_auth_service)) -> dict[str, Any]:
    user = auth.register(
        email=body.email,
        password=body.password,
        display_name=body.display_name,
        role=body.role,
        student_number=body.student_number,
    )
    return envelope({"user": user.to_public_dict()}, "User created successfully")


@router.post("/refresh")
def refresh(body: RefreshRequest, auth: AuthService = Depends(get_auth_service)) -> dict[str, Any]:
    return envelope({"accessToken": auth.refresh(body.refresh_token)})


@router.post("/change-password")
def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(authenticate),
    auth: AuthService = Depends(get_auth_service),
) -> dict[str, Any]:
    auth.change_password(user.id, body.old_password, body.new_password)
    return envelope(message="Password changed successfully")


@router.get("/me")
def me(user: User = Depends(authenticate)) -> dict[str, Any]:
    """The authenticated user."""
    return envelope({"user": user.to_public_dict()})

"""Authentication flows: register, login, student auto-login, refresh,
password change."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from profman.core.errors import NotFoundError, UnauthorizedError, ValidationError
from profman.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    verify_password,
)
from profman.core.users import User, UserService

logger = structlog.get_logger(__name__)


@dataclass
class AuthResult:
    """Tokens issued on a successful login."""

    user: User
    access_token: str
    refresh_token: str
    requires_password_change: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "user": self.user.to_public_dict(),
            "accessToken": self.access_token,
            "refreshToken": self.refresh_token,
            "requiresPasswordChange": self.requires_password_change,
        }


def _issue(user: User, requires_password_change: bool = False) -> AuthResult:
    document = user.to_dict()
    return AuthResult(
        user=user,
        access_token=create_access_token(document),
        refresh_token=create_refresh_token(document),
        requires_password_change=requires_password_change,
    )


class AuthService:
    """Password and token based authentication."""

    def __init__(self, users: UserService | None = None):
        self.users = users or UserService()

    def register(
        self,
        email: str,
        password: str,
        display_name: str,
        role: str,
        student_number: str | None = None,
    ) -> User:
        """Self-service registration; duplicate email or student number -> 409."""
        return self.users.create_user(
            email=email,
            password=password,
            display_name=display_name,
            role=role,
            student_number=student_number,
        )

    def login(self, email: str, password: str) -> AuthResult:
        """Email + password login.

        Raises:
            UnauthorizedError: Unknown email, wrong password, or the account
                is inactive/deleted
        """
        user = self.users.find_by_email(email)
        if user is None:
            raise UnauthorizedError("Invalid credentials", code="LOGIN_FAILED")
        if not user.is_usable:
            raise UnauthorizedError("Account is inactive or deleted", code="LOGIN_FAILED")
        if not verify_password(password, user.password_hash):
            raise UnauthorizedError("Invalid credentials", code="LOGIN_FAILED")

        logger.info("auth.login", user_id=user.id, role=user.role)
        return _issue(user, bool(user.requires_password_change))

    def auto_login_student(self, email: str, student_number: str) -> AuthResult:
        """Log a student in with their student number, creating the account
        on first use.

        A newly created student must change the password.
        """
        user = self.users.find_by_email(email)
        if user is not None:
            if not user.is_usable:
                raise UnauthorizedError("Account is inactive or deleted", code="LOGIN_FAILED")
            if not verify_password(student_number, user.password_hash):
                raise UnauthorizedError("Invalid credentials", code="LOGIN_FAILED")
            logger.info("auth.student_login", user_id=user.id)
            return _issue(user, bool(user.requires_password_change))

        user = self.users.create_user(
            email=email,
            password=student_number,
            display_name=email.split("@")[0] or "Student",
            role="student",
            student_number=student_number,
            requires_password_change=True,
        )
        logger.info("auth.student_auto_created", user_id=user.id)
        return _issue(user, requires_password_change=True)

    def refresh(self, refresh_token: str) -> str:
        """Exchange a refresh token for a new access token.

        Raises:
            UnauthorizedError: Bad token, or the user is gone or inactive
        """
        payload = decode_token(refresh_token, expected_type="refresh")
        try:
            user = self.users.get(payload["userId"])
        except NotFoundError as e:
            raise UnauthorizedError("User not found") from e
        if not user.is_usable:
            raise UnauthorizedError("Account is inactive or deleted")
        return create_access_token(user.to_dict())

    def change_password(self, user_id: str, old_password: str, new_password: str) -> None:
        """Raises ValidationError when the current password is wrong."""
        user = self.users.get(user_id)
        if not verify_password(old_password, user.password_hash):
            raise ValidationError("Current password is incorrect")

        self.users.update_user(user_id, {"password": new_password, "requiresPasswordChange": False})
        logger.info("auth.password_changed", user_id=user_id)

"""FastAPI dependencies: authentication, role checks and services."""

from __future__ import annotations

from typing import Callable

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from profman.core.auth import AuthService
from profman.core.branches import BranchService
from profman.core.errors import ForbiddenError, UnauthorizedError
from profman.core.exams import ExamService
from profman.core.quizzes import QuizService
from profman.core.security import decode_token
from profman.core.subjects import SubjectService
from profman.core.users import User, UserService
from profman.db import USERS, get_store
from profman.integrations.google_drive import GoogleDriveService
from profman.integrations.google_sheets import GoogleSheetsService

bearer_scheme = HTTPBearer(auto_error=False)


def authenticate(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> User:
    """Resolve the bearer access token to an active user.

    Raises:
        UnauthorizedError: Missing token, unknown user or inactive account
        InvalidTokenError / TokenExpiredError: Bad or expired token
    """
    if credentials is None:
        raise UnauthorizedError("Access token required")

    payload = decode_token(credentials.credentials, expected_type="access")
    document = get_store().get(USERS, payload["userId"])
    if document is None:
        raise UnauthorizedError("User not found")

    user = User.from_dict(document)
    if not user.is_usable:
        raise UnauthorizedError("Account is inactive or deleted")
    return user


def require_roles(*roles: str) -> Callable[..., User]:
    """Dependency factory allowing only the given roles."""

    def checker(user: User = Depends(authenticate)) -> User:
        if user.role not in roles:
            raise ForbiddenError("Insufficient permissions")
        return user

    return checker


admin_only = require_roles("admin")
professor_or_admin = require_roles("professor", "admin")
any_role = require_roles("admin", "professor", "student")


def ensure_self_or_staff(user: User, student_id: str) -> None:
    """Students may only read their own records."""
    if user.role == "student" and user.id != student_id:
        raise ForbiddenError("Insufficient permissions")


# Service providers (overridable in tests via app.dependency_overrides)


def get_user_service() -> UserService:
    return UserService()


def get_auth_service() -> AuthService:
    return AuthService()


def get_subject_service() -> SubjectService:
    return SubjectService()


def get_branch_service() -> BranchService:
    return BranchService()


def get_quiz_service() -> QuizService:
    return QuizService()


def get_drive_service() -> GoogleDriveService:
    return GoogleDriveService()


def get_exam_service(drive: GoogleDriveService = Depends(get_drive_service)) -> ExamService:
    return ExamService(drive=drive)


def get_sheets_service(drive: GoogleDriveService = Depends(get_drive_service)) -> GoogleSheetsService:
    return GoogleSheetsService(drive=drive)

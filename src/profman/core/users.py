"""User accounts.

Responsibilities:
- User record (admin, professor, student)
- Admin user management: list/filter/search, create, update, soft delete,
  restore, permanent delete
- Role listings (professors, students)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

import structlog

from profman.core.errors import ConflictError
from profman.core.records import Page, Record, matches_search, now_iso, paginate
from profman.core.security import hash_password
from profman.core.service import DocumentService
from profman.db import USERS

logger = structlog.get_logger(__name__)

Role = Literal["admin", "professor", "student"]
ROLES: tuple[str, ...] = ("admin", "professor", "student")

USER_SEARCH_KEYS = ("email", "displayName", "studentNumber")

# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class User(Record):
    """A user account document."""

    id: str
    email: str
    display_name: str
    role: Role
    password_hash: str | None = None
    student_number: str | None = None
    is_active: bool = True
    is_deleted: bool = False
    deleted_at: str | None = None
    requires_password_change: bool | None = None
    google_drive: dict[str, Any] | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def is_usable(self) -> bool:
        """Active and not deleted."""
        return self.is_active and not self.is_deleted

    def to_public_dict(self) -> dict[str, Any]:
        """Wire form: no password hash, no Drive tokens."""
        result = self.to_dict()
        result.pop("passwordHash", None)
        drive = result.pop("googleDrive", None)
        if drive:
            result["googleDrive"] = {
                "driveId": drive.get("driveId"),
                "connectedAt": drive.get("connectedAt"),
            }
        return result


# =============================================================================
# SERVICE
# =============================================================================


class UserService(DocumentService[User]):
    """Admin-side user management."""

    collection = USERS
    record_type = User
    entity_name = "User"

    def find_by_email(self, email: str) -> User | None:
        matches = self._all(email=email)
        return User.from_dict(matches[0]) if matches else None

    def find_by_student_number(self, student_number: str) -> User | None:
        matches = self._all(studentNumber=student_number)
        return User.from_dict(matches[0]) if matches else None

    def list_users(
        self,
        page: int = 1,
        limit: int = 10,
        role: str | None = None,
        is_active: bool | None = None,
        is_deleted: bool | None = None,
        include_deleted: bool = False,
        search: str | None = None,
    ) -> Page:
        """Filter, search and paginate users.

        Deleted users are hidden unless include_deleted is set or
        is_deleted is requested explicitly.
        """
        filters: dict[str, Any] = {}
        if role:
            filters["role"] = role
        if is_active is not None:
            filters["isActive"] = is_active

        documents = self._all(**filters)
        if is_deleted is not None:
            documents = [d for d in documents if bool(d.get("isDeleted")) == is_deleted]
        elif not include_deleted:
            documents = [d for d in documents if not d.get("isDeleted")]

        documents = [d for d in documents if matches_search(d, search, USER_SEARCH_KEYS)]
        result = paginate(documents, page, limit)
        result.items = [User.from_dict(d) for d in result.items]
        return result

    def create_user(
        self,
        email: str,
        display_name: str,
        role: str,
        password: str | None = None,
        student_number: str | None = None,
        requires_password_change: bool | None = None,
    ) -> User:
        """Create a user.

        Raises:
            ConflictError: If the email (or a student's number) is taken
        """
        if self.find_by_email(email) is not None:
            raise ConflictError("User with this email already exists", code="USER_EXISTS")
        if role == "student" and student_number:
            if self.find_by_student_number(student_number) is not None:
                raise ConflictError("Student with this number already exists", code="USER_EXISTS")

        now = now_iso()
        user = User(
            id=self.store.new_id(),
            email=email,
            display_name=display_name,
            role=role,  # type: ignore[arg-type]
            password_hash=hash_password(password) if password else None,
            student_number=student_number,
            requires_password_change=requires_password_change,
            created_at=now,
            updated_at=now,
        )
        self.store.insert(self.collection, user.to_dict(), doc_id=user.id)
        logger.info("user.created", user_id=user.id, role=role)
        return user

    def update_user(self, user_id: str, updates: dict[str, Any]) -> User:
        """Apply camelCase field updates; a `password` key is re-hashed.

        Raises:
            NotFoundError: If the user doesn't exist
            ConflictError: If the new email belongs to someone else
        """
        fields = {k: v for k, v in updates.items() if v is not None}
        password = fields.pop("password", None)
        if password:
            fields["passwordHash"] = hash_password(password)

        new_email = fields.get("email")
        if new_email:
            owner = self.find_by_email(new_email)
            if owner is not None and owner.id != user_id:
                raise ConflictError("User with this email already exists", code="USER_EXISTS")

        user = self._update(user_id, fields)
        logger.info("user.updated", user_id=user_id, fields=sorted(fields))
        return user

    def users_by_role(self, role: str) -> list[User]:
        """Non-deleted users with the given role."""
        return [User.from_dict(d) for d in self._all(role=role, isDeleted=False)]

    def get_professors(self) -> list[User]:
        return self.users_by_role("professor")

    def get_students(self) -> list[User]:
        return self.users_by_role("student")

"""Admin user management endpoints (admin only)."""

from typing import Any

from fastapi import APIRouter, Depends, Query, status

from profman.core.users import User, UserService
from profman.web.deps import admin_only, get_user_service
from profman.web.responses import envelope, page_data
from profman.web.schemas import Role, UserCreate, UserUpdate, payload

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(admin_only)])


def _public(user: User) -> dict[str, Any]:
    return user.to_public_dict()


@router.get("/users")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    role: Role | None = None,
    is_active: bool | None = Query(None, alias="isActive"),
    is_deleted: bool | None = Query(None, alias="isDeleted"),
    include_deleted: bool = Query(False, alias="includeDeleted"),
    search: str | None = None,
    users: UserService = Depends(get_user_service),
) -> dict[str, Any]:
    result = users.list_users(
        page=page,
        limit=limit,
        role=role,
        is_active=is_active,
        is_deleted=is_deleted,
        include_deleted=include_deleted,
        search=search,
    )
    return envelope(page_data("users", result, _public))


@router.get("/users/{user_id}")
def get_user(user_id: str, users: UserService = Depends(get_user_service)) -> dict[str, Any]:
    return envelope({"user": users.get(user_id).to_public_dict()})


@router.post("/users", status_code=status.HTTP_201_CREATED)
def create_user(body: UserCreate, users: UserService = Depends(get_user_service)) -> dict[str, Any]:
    user = users.create_user(
        email=body.email,
        display_name=body.display_name,
        role=body.role,
        password=body.password,
        student_number=body.student_number,
    )
    return envelope({"user": user.to_public_dict()}, "User created successfully")


@router.patch("/users/{user_id}")
def update_user(
    user_id: str, body: UserUpdate, users: UserService = Depends(get_user_service)
) -> dict[str, Any]:
    user = users.update_user(user_id, payload(body))
    return envelope({"user": user.to_public_dict()}, "User updated successfully")


@router.delete("/users/{user_id}")
def delete_user(user_id: str, users: UserService = Depends(get_user_service)) -> dict[str, Any]:
    """Soft delete."""
    users.soft_delete(user_id)
    return envelope(message="User deleted successfully")


@router.post("/restore/{user_id}")
def restore_user(user_id: str, users: UserService = Depends(get_user_service)) -> dict[str, Any]:
    users.restore(user_id)
    return envelope(message="User restored successfully")


@router.delete("/users/{user_id}/permanent")
def permanent_delete_user(user_id: str, users: UserService = Depends(get_user_service)) -> dict[str, Any]:
    users.permanent_delete(user_id)
    return envelope(message="User permanently deleted successfully")


@router.get("/professors")
def list_professors(users: UserService = Depends(get_user_service)) -> dict[str, Any]:
    return envelope({"professors": [_public(u) for u in users.get_professors()]})


@router.get("/students")
def list_students(users: UserService = Depends(get_user_service)) -> dict[str, Any]:
    return envelope({"students": [_public(u) for u in users.get_students()]})

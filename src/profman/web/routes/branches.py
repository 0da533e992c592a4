"""Branch (course section) endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, Query, status

from profman.core.branches import BranchService
from profman.core.errors import ValidationError
from profman.core.users import User
from profman.web.deps import admin_only, authenticate, get_branch_service, professor_or_admin
from profman.web.responses import envelope, page_data, records
from profman.web.schemas import BranchCloneRequest, BranchCreate, BranchUpdate, payload

router = APIRouter(prefix="/api/branches", tags=["branches"])


@router.get("/active")
def active_branches(branches: BranchService = Depends(get_branch_service)) -> dict[str, Any]:
    return envelope({"branches": records(branches.active_branches())})


@router.get("", dependencies=[Depends(admin_only)])
def list_branches(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    subject_id: str | None = Query(None, alias="subjectId"),
    professor_id: str | None = Query(None, alias="professorId"),
    is_active: bool | None = Query(None, alias="isActive"),
    include_deleted: bool = Query(False, alias="includeDeleted"),
    search: str | None = None,
    branches: BranchService = Depends(get_branch_service),
) -> dict[str, Any]:
    result = branches.list_branches(
        page=page,
        limit=limit,
        subject_id=subject_id,
        professor_id=professor_id,
        is_active=is_active,
        search=search,
        include_deleted=include_deleted,
    )
    return envelope(page_data("branches", result))


@router.get("/professor/{professor_id}", dependencies=[Depends(professor_or_admin)])
def branches_by_professor(
    professor_id: str, branches: BranchService = Depends(get_branch_service)
) -> dict[str, Any]:
    return envelope({"branches": records(branches.branches_by_professor(professor_id))})


@router.get("/subject/{subject_id}", dependencies=[Depends(professor_or_admin)])
def branches_by_subject(
    subject_id: str, branches: BranchService = Depends(get_branch_service)
) -> dict[str, Any]:
    return envelope({"branches": records(branches.branches_by_subject(subject_id))})


@router.post("", status_code=status.HTTP_201_CREATED)
def create_branch(
    body: BranchCreate,
    user: User = Depends(professor_or_admin),
    branches: BranchService = Depends(get_branch_service),
) -> dict[str, Any]:
    """Create a branch; professors default to owning it themselves."""
    professor_id = body.professor_id or (user.id if user.role == "professor" else None)
    if not professor_id:
        raise ValidationError(
            "Validation failed", details=[{"field": "professorId", "message": "Professor ID is required"}]
        )
    branch = branches.create_branch(
        subject_id=body.subject_id,
        professor_id=professor_id,
        title=body.title,
        description=body.description,
        week_structure=payload(body).get("weekStructure", []),
    )
    return envelope({"branch": branch.to_dict()}, "Branch created successfully")


@router.get("/{branch_id}", dependencies=[Depends(authenticate)])
def get_branch(branch_id: str, branches: BranchService = Depends(get_branch_service)) -> dict[str, Any]:
    return envelope({"branch": branches.get(branch_id).to_dict()})


@router.patch("/{branch_id}", dependencies=[Depends(professor_or_admin)])
def update_branch(
    branch_id: str, body: BranchUpdate, branches: BranchService = Depends(get_branch_service)
) -> dict[str, Any]:
    branch = branches.update_branch(branch_id, payload(body))
    return envelope({"branch": branch.to_dict()}, "Branch updated successfully")


@router.delete("/{branch_id}", dependencies=[Depends(professor_or_admin)])
def delete_branch(branch_id: str, branches: BranchService = Depends(get_branch_service)) -> dict[str, Any]:
    branches.soft_delete(branch_id)
    return envelope(message="Branch deleted successfully")


@router.post("/{branch_id}/restore", dependencies=[Depends(admin_only)])
def restore_branch(branch_id: str, branches: BranchService = Depends(get_branch_service)) -> dict[str, Any]:
    branches.restore(branch_id)
    return envelope(message="Branch restored successfully")


@router.delete("/{branch_id}/permanent", dependencies=[Depends(admin_only)])
def permanent_delete_branch(
    branch_id: str, branches: BranchService = Depends(get_branch_service)
) -> dict[str, Any]:
    branches.permanent_delete(branch_id)
    return envelope(message="Branch permanently deleted successfully")


@router.post("/{branch_id}/clone", status_code=status.HTTP_201_CREATED, dependencies=[Depends(professor_or_admin)])
def clone_branch(
    branch_id: str, body: BranchCloneRequest, branches: BranchService = Depends(get_branch_service)
) -> dict[str, Any]:
    branch = branches.clone_branch(branch_id, body.professor_id, body.title)
    return envelope({"branch": branch.to_dict()}, "Branch cloned successfully")

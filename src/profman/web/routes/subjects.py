"""Subject catalogue endpoints.

Public: active subjects and lookup by code. Everything else requires a
token; writes and professor assignment are admin only.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, status

from profman.core.errors import NotFoundError
from profman.core.subjects import SubjectService
from profman.core.users import User
from profman.web.deps import admin_only, authenticate, get_subject_service, professor_or_admin
from profman.web.responses import envelope, page_data, records
from profman.web.schemas import AssignProfessorsRequest, SubjectCreate, SubjectUpdate, payload

router = APIRouter(prefix="/api/subjects", tags=["subjects"])


@router.get("/active")
def active_subjects(subjects: SubjectService = Depends(get_subject_service)) -> dict[str, Any]:
    return envelope({"subjects": records(subjects.active_subjects())})


@router.get("/code/{code}")
def subject_by_code(code: str, subjects: SubjectService = Depends(get_subject_service)) -> dict[str, Any]:
    subject = subjects.find_by_code(code)
    if subject is None:
        raise NotFoundError("Subject not found")
    return envelope({"subject": subject.to_dict()})


@router.get("", dependencies=[Depends(professor_or_admin)])
def list_subjects(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    is_active: bool | None = Query(None, alias="isActive"),
    include_deleted: bool = Query(False, alias="includeDeleted"),
    search: str | None = None,
    subjects: SubjectService = Depends(get_subject_service),
) -> dict[str, Any]:
    result = subjects.list_subjects(
        page=page, limit=limit, is_active=is_active, search=search, include_deleted=include_deleted
    )
    return envelope(page_data("subjects", result))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_subject(
    body: SubjectCreate,
    user: User = Depends(admin_only),
    subjects: SubjectService = Depends(get_subject_service),
) -> dict[str, Any]:
    subject = subjects.create_subject(
        code=body.code,
        title=body.title,
        description=body.description,
        credits=body.credits,
        created_by=user.id,
    )
    return envelope({"subject": subject.to_dict()}, "Subject created successfully")


@router.get("/professor/{professor_id}", dependencies=[Depends(professor_or_admin)])
def subjects_by_professor(
    professor_id: str, subjects: SubjectService = Depends(get_subject_service)
) -> dict[str, Any]:
    return envelope({"subjects": records(subjects.subjects_by_professor(professor_id))})


@router.get("/assigned/{professor_id}", dependencies=[Depends(admin_only)])
def subjects_assigned_to(
    professor_id: str, subjects: SubjectService = Depends(get_subject_service)
) -> dict[str, Any]:
    return envelope({"subjects": records(subjects.subjects_assigned_to(professor_id))})


@router.post("/{subject_id}/assign")
def assign_professors(
    subject_id: str,
    body: AssignProfessorsRequest,
    user: User = Depends(admin_only),
    subjects: SubjectService = Depends(get_subject_service),
) -> dict[str, Any]:
    subject = subjects.assign_professors(subject_id, body.professor_ids, assigned_by=user.id)
    return envelope({"subject": subject.to_dict()}, "Subject assigned to professors successfully")


@router.get("/{subject_id}/assignments", dependencies=[Depends(admin_only)])
def subject_assignments(
    subject_id: str, subjects: SubjectService = Depends(get_subject_service)
) -> dict[str, Any]:
    return envelope({"assignments": records(subjects.get_assignments(subject_id))})


@router.delete("/{subject_id}/assignments/{professor_id}", dependencies=[Depends(admin_only)])
def remove_assignment(
    subject_id: str, professor_id: str, subjects: SubjectService = Depends(get_subject_service)
) -> dict[str, Any]:
    subjects.remove_assignment(subject_id, professor_id)
    return envelope(message="Professor assignment removed successfully")


@router.get("/{subject_id}", dependencies=[Depends(authenticate)])
def get_subject(subject_id: str, subjects: SubjectService = Depends(get_subject_service)) -> dict[str, Any]:
    return envelope({"subject": subjects.get(subject_id).to_dict()})


@router.patch("/{subject_id}", dependencies=[Depends(admin_only)])
def update_subject(
    subject_id: str, body: SubjectUpdate, subjects: SubjectService = Depends(get_subject_service)
) -> dict[str, Any]:
    subject = subjects.update_subject(subject_id, payload(body))
    return envelope({"subject": subject.to_dict()}, "Subject updated successfully")


@router.delete("/{subject_id}", dependencies=[Depends(admin_only)])
def delete_subject(subject_id: str, subjects: SubjectService = Depends(get_subject_service)) -> dict[str, Any]:
    subjects.soft_delete(subject_id)
    return envelope(message="Subject deleted successfully")


@router.post("/{subject_id}/restore", dependencies=[Depends(admin_only)])
def restore_subject(subject_id: str, subjects: SubjectService = Depends(get_subject_service)) -> dict[str, Any]:
    subjects.restore(subject_id)
    return envelope(message="Subject restored successfully")


@router.delete("/{subject_id}/permanent", dependencies=[Depends(admin_only)])
def permanent_delete_subject(
    subject_id: str, subjects: SubjectService = Depends(get_subject_service)
) -> dict[str, Any]:
    subjects.permanent_delete(subject_id)
    return envelope(message="Subject permanently deleted successfully")

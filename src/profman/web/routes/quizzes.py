"""Quiz endpoints: CRUD, attempts and auto-graded submission."""

from typing import Any

from fastapi import APIRouter, Depends, Query, status

from profman.core.quizzes import QuizService
from profman.core.users import User
from profman.web.deps import admin_only, any_role, ensure_self_or_staff, get_quiz_service, professor_or_admin
from profman.web.responses import envelope, page_data, records
from profman.web.schemas import QuizCreate, QuizSubmitRequest, QuizUpdate, payload

router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])


@router.get("", dependencies=[Depends(any_role)])
def list_quizzes(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = None,
    is_active: bool | None = Query(None, alias="isActive"),
    is_deleted: bool | None = Query(None, alias="isDeleted"),
    branch_id: str | None = Query(None, alias="branchId"),
    quizzes: QuizService = Depends(get_quiz_service),
) -> dict[str, Any]:
    result = quizzes.list_quizzes(
        page=page,
        limit=limit,
        search=search,
        is_active=is_active,
        is_deleted=is_deleted,
        branch_id=branch_id,
    )
    return envelope(page_data("quizzes", result))


@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(professor_or_admin)])
def create_quiz(body: QuizCreate, quizzes: QuizService = Depends(get_quiz_service)) -> dict[str, Any]:
    return envelope(quizzes.create_quiz(payload(body)).to_dict())


@router.get("/branch/{branch_id}", dependencies=[Depends(any_role)])
def quizzes_by_branch(branch_id: str, quizzes: QuizService = Depends(get_quiz_service)) -> dict[str, Any]:
    return envelope(records(quizzes.quizzes_by_branch(branch_id)))


@router.post("/submit", status_code=status.HTTP_201_CREATED)
def submit_quiz(
    body: QuizSubmitRequest,
    user: User = Depends(any_role),
    quizzes: QuizService = Depends(get_quiz_service),
) -> dict[str, Any]:
    """Grade and store an attempt for the calling user."""
    attempt = quizzes.submit_attempt(body.quiz_id, user.id, body.answers, body.time_spent)
    return envelope(attempt.to_dict())


@router.get("/attempts/student/{student_id}")
def attempts_by_student(
    student_id: str,
    quiz_id: str | None = Query(None, alias="quizId"),
    user: User = Depends(any_role),
    quizzes: QuizService = Depends(get_quiz_service),
) -> dict[str, Any]:
    ensure_self_or_staff(user, student_id)
    return envelope(records(quizzes.attempts_by_student(student_id, quiz_id)))


@router.get("/attempts/quiz/{quiz_id}", dependencies=[Depends(professor_or_admin)])
def attempts_by_quiz(quiz_id: str, quizzes: QuizService = Depends(get_quiz_service)) -> dict[str, Any]:
    return envelope(records(quizzes.attempts_by_quiz(quiz_id)))


@router.get("/attempts/best/{student_id}/{quiz_id}")
def best_attempt(
    student_id: str,
    quiz_id: str,
    user: User = Depends(any_role),
    quizzes: QuizService = Depends(get_quiz_service),
) -> dict[str, Any]:
    ensure_self_or_staff(user, student_id)
    return envelope(quizzes.best_attempt(student_id, quiz_id).to_dict())


@router.get("/{quiz_id}", dependencies=[Depends(any_role)])
def get_quiz(quiz_id: str, quizzes: QuizService = Depends(get_quiz_service)) -> dict[str, Any]:
    return envelope(quizzes.get(quiz_id).to_dict())


@router.patch("/{quiz_id}", dependencies=[Depends(professor_or_admin)])
def update_quiz(
    quiz_id: str, body: QuizUpdate, quizzes: QuizService = Depends(get_quiz_service)
) -> dict[str, Any]:
    return envelope(quizzes.update_quiz(quiz_id, payload(body)).to_dict())


@router.delete("/{quiz_id}", dependencies=[Depends(professor_or_admin)])
def delete_quiz(quiz_id: str, quizzes: QuizService = Depends(get_quiz_service)) -> dict[str, Any]:
    quizzes.soft_delete(quiz_id)
    return envelope(message="Quiz soft-deleted successfully")


@router.post("/{quiz_id}/restore", dependencies=[Depends(admin_only)])
def restore_quiz(quiz_id: str, quizzes: QuizService = Depends(get_quiz_service)) -> dict[str, Any]:
    quizzes.restore(quiz_id)
    return envelope(message="Quiz restored successfully")


@router.delete("/{quiz_id}/permanent", dependencies=[Depends(admin_only)])
def permanent_delete_quiz(quiz_id: str, quizzes: QuizService = Depends(get_quiz_service)) -> dict[str, Any]:
    quizzes.permanent_delete(quiz_id)
    return envelope(message="Quiz permanently deleted successfully")

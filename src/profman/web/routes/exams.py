"""Exam endpoints: CRUD, submissions, manual grading and file upload."""

from typing import Any

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from profman.core.exams import ExamService
from profman.core.users import User
from profman.web.deps import admin_only, any_role, get_exam_service, professor_or_admin
from profman.web.responses import envelope, records
from profman.web.schemas import ExamCreate, ExamSubmitRequest, ExamUpdate, GradeSubmissionRequest, payload

router = APIRouter(prefix="/api/exams", tags=["exams"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_exam(
    body: ExamCreate,
    user: User = Depends(professor_or_admin),
    exams: ExamService = Depends(get_exam_service),
) -> dict[str, Any]:
    exam = exams.create_exam(payload(body), professor_id=user.id)
    return envelope({"exam": exam.to_dict()}, "Exam created successfully")


@router.get("/professor")
def my_exams(
    is_active: bool | None = Query(None, alias="isActive"),
    user: User = Depends(any_role),
    exams: ExamService = Depends(get_exam_service),
) -> dict[str, Any]:
    """Exams owned by the caller."""
    return envelope({"exams": records(exams.exams_by_professor(user.id, is_active))})


@router.get("/branch/{branch_id}", dependencies=[Depends(any_role)])
def exams_by_branch(
    branch_id: str,
    is_active: bool | None = Query(None, alias="isActive"),
    exams: ExamService = Depends(get_exam_service),
) -> dict[str, Any]:
    return envelope({"exams": records(exams.exams_by_branch(branch_id, is_active))})


@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload_exam_file(
    file: UploadFile = File(...),
    user: User = Depends(professor_or_admin),
    exams: ExamService = Depends(get_exam_service),
) -> dict[str, Any]:
    content = await file.read()
    file_id = exams.upload_exam_file(
        user.id,
        content,
        file.filename or "upload",
        file.content_type or "application/octet-stream",
    )
    return envelope({"fileId": file_id}, "File uploaded successfully")


@router.patch("/submissions/{submission_id}/grade")
def grade_submission(
    submission_id: str,
    body: GradeSubmissionRequest,
    user: User = Depends(professor_or_admin),
    exams: ExamService = Depends(get_exam_service),
) -> dict[str, Any]:
    grades = [answer.model_dump(by_alias=True) for answer in body.answers]
    submission = exams.grade_submission(
        submission_id, grades, graded_by=user.id, overall_feedback=body.overall_feedback
    )
    return envelope({"submission": submission.to_dict()}, "Exam graded successfully")


@router.get("/{exam_id}", dependencies=[Depends(any_role)])
def get_exam(exam_id: str, exams: ExamService = Depends(get_exam_service)) -> dict[str, Any]:
    return envelope({"exam": exams.get(exam_id).to_dict()})


@router.patch("/{exam_id}", dependencies=[Depends(professor_or_admin)])
def update_exam(
    exam_id: str, body: ExamUpdate, exams: ExamService = Depends(get_exam_service)
) -> dict[str, Any]:
    exam = exams.update_exam(exam_id, payload(body))
    return envelope({"exam": exam.to_dict()}, "Exam updated successfully")


@router.delete("/{exam_id}", dependencies=[Depends(professor_or_admin)])
def delete_exam(exam_id: str, exams: ExamService = Depends(get_exam_service)) -> dict[str, Any]:
    exams.soft_delete(exam_id)
    return envelope(message="Exam deleted successfully")


@router.post("/{exam_id}/restore", dependencies=[Depends(admin_only)])
def restore_exam(exam_id: str, exams: ExamService = Depends(get_exam_service)) -> dict[str, Any]:
    exams.restore(exam_id)
    return envelope(message="Exam restored successfully")


@router.delete("/{exam_id}/permanent", dependencies=[Depends(admin_only)])
def permanent_delete_exam(exam_id: str, exams: ExamService = Depends(get_exam_service)) -> dict[str, Any]:
    exams.permanent_delete(exam_id)
    return envelope(message="Exam permanently deleted successfully")


@router.post("/{exam_id}/submit", status_code=status.HTTP_201_CREATED)
def submit_exam(
    exam_id: str,
    body: ExamSubmitRequest,
    user: User = Depends(any_role),
    exams: ExamService = Depends(get_exam_service),
) -> dict[str, Any]:
    answers = [answer.model_dump(by_alias=True) for answer in body.answers]
    submission = exams.submit(exam_id, user.id, user.display_name, answers)
    return envelope({"submission": submission.to_dict()}, "Exam submitted successfully")


@router.get("/{exam_id}/submissions", dependencies=[Depends(professor_or_admin)])
def exam_submissions(
    exam_id: str,
    student_id: str | None = Query(None, alias="studentId"),
    exams: ExamService = Depends(get_exam_service),
) -> dict[str, Any]:
    return envelope({"submissions": records(exams.submissions(exam_id, student_id))})

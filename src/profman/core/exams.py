"""Exams, submissions and exam file uploads."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

import structlog

from profman.core.errors import ConflictError, NotFoundError, ValidationError
from profman.core.exam_grader import apply_manual_grades, auto_score, letter_grade, percentage_of
from profman.core.records import Record, now_iso, parse_iso, utc_now
from profman.core.service import DocumentService
from profman.db import DELETE_FIELD, EXAM_SUBMISSIONS, EXAMS

logger = structlog.get_logger(__name__)

ExamQuestionType = Literal["multiple_choice", "true_false", "short_answer", "essay", "file_upload"]
SubmissionStatus = Literal["submitted", "graded"]

EXAM_FILES_FOLDER = "Exam Files"
MAX_UPLOAD_BYTES = 50 * 1024 * 1024

ALLOWED_UPLOAD_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "text/plain",
        "image/jpeg",
        "image/png",
        "image/gif",
        "video/mp4",
        "video/quicktime",
        "audio/mpeg",
        "audio/wav",
    }
)


@dataclass
class ExamQuestion(Record):
    id: str
    type: ExamQuestionType
    question: str
    points: float
    options: list[str] | None = None
    correct_answer: Any = None
    file_types: list[str] | None = None
    max_file_size: int | None = None  # MB
    is_required: bool = True


@dataclass
class Exam(Record):
    id: str
    branch_id: str
    professor_id: str
    title: str
    due_date: str
    total_points: float = 0
    description: str | None = None
    instructions: str | None = None
    time_limit: int | None = None
    allow_late_submission: bool = False
    max_attempts: int | None = None
    questions: list[ExamQuestion] = field(default_factory=list)
    is_active: bool = True
    is_deleted: bool = False
    deleted_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    nested = {"questions": ExamQuestion}


@dataclass
class ExamSubmission(Record):
    id: str
    exam_id: str
    student_id: str
    student_name: str
    answers: list[dict[str, Any]]
    total_points: float
    earned_points: float
    percentage: float
    grade: str
    submitted_at: str
    is_late: bool
    attempt_number: int
    status: SubmissionStatus = "submitted"
    feedback: str | None = None
    graded_by: str | None = None
    graded_at: str | None = None


def _number_questions(questions: list[dict[str, Any]], keep_ids: bool = False) -> list[dict[str, Any]]:
    """Give questions ids q1..qN (existing ids kept when keep_ids).

    New ids skip any id already taken in the list.
    """
    kept = [q.get("id") if keep_ids else None for q in questions]
    used = {question_id for question_id in kept if question_id}
    numbered = []
    index = 0
    for question, question_id in zip(questions, kept):
        if not question_id or question_id in {q["id"] for q in numbered}:
            index += 1
            while f"q{index}" in used:
                index += 1
            question_id = f"q{index}"
            used.add(question_id)
        numbered.append({**question, "id": question_id})
    return numbered


def _normalize_due_date(value: str) -> str:
    try:
        return parse_iso(value).isoformat()
    except ValueError as e:
        raise ValidationError(
            "Invalid due date", details=[{"field": "dueDate", "message": "Must be an ISO-8601 date"}]
        ) from e


class ExamService(DocumentService[Exam]):
    collection = EXAMS
    record_type = Exam
    entity_name = "Exam"

    def __init__(self, store=None, drive=None):
        super().__init__(store)
        self._drive = drive

    @property
    def drive(self):
        if self._drive is None:
            from profman.integrations.google_drive import GoogleDriveService

            self._drive = GoogleDriveService(store=self._store)
        return self._drive

    def create_exam(self, data: dict[str, Any], professor_id: str) -> Exam:
        """Create an exam owned by the calling professor."""
        questions = _number_questions(data.get("questions", []))
        total = data.get("totalPoints")
        if total is None:
            total = sum(q.get("points", 0) for q in questions)

        now = now_iso()
        document = {
            **{k: v for k, v in data.items() if v is not None},
            "id": self.store.new_id(),
            "professorId": professor_id,
            "questions": questions,
            "totalPoints": total,
            "dueDate": _normalize_due_date(data["dueDate"]),
            "isActive": True,
            "isDeleted": False,
            "createdAt": now,
            "updatedAt": now,
        }
        exam = Exam.from_dict(document)
        self.store.insert(self.collection, exam.to_dict(), doc_id=exam.id)
        logger.info("exam.created", exam_id=exam.id, professor_id=professor_id)
        return exam

    def _listing(self, is_active: bool | None, **filters: Any) -> list[Exam]:
        if is_active is not None:
            filters["isActive"] = is_active
        documents = self.store.query(
            self.collection, filters=filters, order_by="createdAt", descending=True
        )
        return [Exam.from_dict(d) for d in documents if not d.get("isDeleted")]

    def exams_by_branch(self, branch_id: str, is_active: bool | None = None) -> list[Exam]:
        return self._listing(is_active, branchId=branch_id)

    def exams_by_professor(self, professor_id: str, is_active: bool | None = None) -> list[Exam]:
        return self._listing(is_active, professorId=professor_id)

    def update_exam(self, exam_id: str, updates: dict[str, Any]) -> Exam:
        fields = {k: v for k, v in updates.items() if v is not None}
        if "questions" in fields:
            fields["questions"] = _number_questions(fields["questions"], keep_ids=True)
        if "dueDate" in fields:
            fields["dueDate"] = _normalize_due_date(fields["dueDate"])
        exam = self._update(exam_id, fields)
        logger.info("exam.updated", exam_id=exam_id)
        return exam

    # -------------------------------------------------------------------------
    # Submissions
    # -------------------------------------------------------------------------

    def submissions(self, exam_id: str, student_id: str | None = None) -> list[ExamSubmission]:
        """Submissions for an exam, newest first."""
        filters = {"examId": exam_id}
        if student_id:
            filters["studentId"] = student_id
        documents = self.store.query(
            EXAM_SUBMISSIONS, filters=filters, order_by="submittedAt", descending=True
        )
        return [ExamSubmission.from_dict(d) for d in documents]

    def submit(
        self, exam_id: str, student_id: str, student_name: str, answers: list[dict[str, Any]]
    ) -> ExamSubmission:
        """Record a submission with objective questions auto-scored.

        Raises:
            NotFoundError: If the exam doesn't exist or was deleted
            ConflictError: If the exam is closed, past due or out of attempts
        """
        document = self._get_document(exam_id)
        if document.get("isDeleted"):
            raise NotFoundError("Exam not found")
        if not document.get("isActive", True):
            raise ConflictError("Exam is not active")

        now = utc_now()
        is_late = now > parse_iso(document["dueDate"])
        if is_late and not document.get("allowLateSubmission"):
            raise ConflictError("Exam submission deadline has passed")

        previous = self.submissions(exam_id, student_id)
        max_attempts = document.get("maxAttempts")
        if max_attempts and len(previous) >= max_attempts:
            raise ConflictError("Maximum attempts reached")

        scored, earned = auto_score(document.get("questions", []), answers)
        total = document.get("totalPoints", 0)
        percentage = percentage_of(earned, total)

        submission = ExamSubmission(
            id=self.store.new_id(),
            exam_id=exam_id,
            student_id=student_id,
            student_name=student_name,
            answers=scored,
            total_points=total,
            earned_points=earned,
            percentage=percentage,
            grade=letter_grade(percentage),
            submitted_at=now.isoformat(),
            is_late=is_late,
            attempt_number=len(previous) + 1,
        )
        self.store.insert(EXAM_SUBMISSIONS, submission.to_dict(), doc_id=submission.id)
        logger.info(
            "exam.submitted",
            exam_id=exam_id,
            student_id=student_id,
            attempt=submission.attempt_number,
            is_late=is_late,
        )
        return submission

    def grade_submission(
        self,
        submission_id: str,
        grades: list[dict[str, Any]],
        graded_by: str,
        overall_feedback: str | None = None,
    ) -> ExamSubmission:
        """Apply manual grades and recompute the totals."""
        document = self.store.get(EXAM_SUBMISSIONS, submission_id)
        if document is None:
            raise NotFoundError("Submission not found")

        exam = self.store.get(self.collection, document["examId"]) or {}
        answers, earned = apply_manual_grades(exam.get("questions", []), document["answers"], grades)
        percentage = percentage_of(earned, document.get("totalPoints", 0))

        fields = {
            "answers": answers,
            "earnedPoints": earned,
            "percentage": percentage,
            "grade": letter_grade(percentage),
            "status": "graded",
            "gradedBy": graded_by,
            "gradedAt": now_iso(),
            "feedback": overall_feedback if overall_feedback is not None else DELETE_FIELD,
        }

        updated = self.store.update(EXAM_SUBMISSIONS, submission_id, fields)
        logger.info("exam.submission_graded", submission_id=submission_id, earned=earned)
        return ExamSubmission.from_dict(updated)

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    def upload_exam_file(self, user_id: str, content: bytes, file_name: str, mime_type: str) -> str:
        """Store a file in the user's Drive "Exam Files" folder.

        Returns:
            The Drive file id

        Raises:
            ValidationError: If the file is too large or of a disallowed type
        """
        if mime_type not in ALLOWED_UPLOAD_TYPES:
            raise ValidationError("File type not allowed")
        if len(content) > MAX_UPLOAD_BYTES:
            raise ValidationError("File exceeds the 50MB limit")

        folder_id = self.drive.create_folder(user_id, EXAM_FILES_FOLDER)
        uploaded = self.drive.upload_file(user_id, content, file_name, mime_type, folder_id)
        logger.info("exam.file_uploaded", user_id=user_id, file_id=uploaded["id"])
        return uploaded["id"]

"""Pydantic request schemas for the Web API.

Request bodies use camelCase on the wire; Python attributes are snake_case.
`payload(model)` turns a request model into the camelCase dict the
services consume.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from profman.core.quiz_grader import QUESTION_TYPES, normalize_question_type
from profman.utils.validators import check_password, check_subject_code

Role = Literal["admin", "professor", "student"]


class CamelModel(BaseModel):
    """Base model accepting camelCase (wire) or snake_case names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def payload(model: BaseModel) -> dict[str, Any]:
    """camelCase dict of the fields the client actually sent."""
    return model.model_dump(by_alias=True, exclude_unset=True)


# =============================================================================
# AUTH & USER SCHEMAS
# =============================================================================


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6)


class RefreshRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1)


class ChangePasswordRequest(CamelModel):
    old_password: str = Field(..., min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return check_password(value)


class UserCreate(CamelModel):
    """Body for registration and admin user creation."""

    email: EmailStr
    password: str
    display_name: str = Field(..., min_length=2, max_length=50)
    role: Role
    student_number: str | None = None

    @field_validator("password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return check_password(value)

    @model_validator(mode="after")
    def _student_needs_number(self) -> "UserCreate":
        if self.role == "student" and not self.student_number:
            raise ValueError("Student number is required for students")
        return self


class UserUpdate(CamelModel):
    email: EmailStr | None = None
    password: str | None = None
    display_name: str | None = Field(default=None, min_length=2, max_length=50)
    role: Role | None = None
    student_number: str | None = Field(default=None, min_length=3)
    is_active: bool | None = None

    @field_validator("password")
    @classmethod
    def _strong_password(cls, value: str | None) -> str | None:
        return check_password(value) if value is not None else None


# =============================================================================
# SUBJECT SCHEMAS
# =============================================================================


class SubjectCreate(CamelModel):
    code: str
    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(default="", max_length=500)
    credits: int = Field(default=3, ge=0, le=30)

    @field_validator("code")
    @classmethod
    def _valid_code(cls, value: str) -> str:
        return check_subject_code(value)


class SubjectUpdate(CamelModel):
    code: str | None = None
    title: str | None = Field(default=None, min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    credits: int | None = Field(default=None, ge=0, le=30)
    is_active: bool | None = None

    @field_validator("code")
    @classmethod
    def _valid_code(cls, value: str | None) -> str | None:
        return check_subject_code(value) if value is not None else None


class AssignProfessorsRequest(CamelModel):
    professor_ids: list[str] = Field(..., min_length=1)


# =============================================================================
# BRANCH SCHEMAS
# =============================================================================


class WeekResourceModel(CamelModel):
    type: Literal["video", "document", "link", "quiz", "assignment"]
    title: str = Field(..., min_length=1)
    url: str | None = None
    file_id: str | None = None
    description: str | None = None


class WeekAssignmentModel(CamelModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    due_date: str
    points: float = Field(..., ge=0)
    type: Literal["quiz", "exam", "assignment", "project"]


class WeekContentModel(CamelModel):
    week_number: int = Field(..., ge=1)
    title: str = Field(..., min_length=1)
    description: str = ""
    resources: list[WeekResourceModel] = Field(default_factory=list)
    assignments: list[WeekAssignmentModel] = Field(default_factory=list)


class BranchCreate(CamelModel):
    subject_id: str
    professor_id: str | None = None
    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(default="", max_length=1000)
    week_structure: list[WeekContentModel] = Field(default_factory=list)


class BranchUpdate(CamelModel):
    subject_id: str | None = None
    professor_id: str | None = None
    title: str | None = Field(default=None, min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    week_structure: list[WeekContentModel] | None = None
    is_active: bool | None = None


class BranchCloneRequest(CamelModel):
    professor_id: str
    title: str = Field(..., min_length=3, max_length=100)


# =============================================================================
# QUIZ SCHEMAS
# =============================================================================


class QuizQuestionModel(CamelModel):
    type: str
    question: str = Field(..., min_length=5, max_length=500)
    options: list[str] | None = None
    correct_answer: str | list[str] | bool | int | float
    points: float = Field(..., gt=0)
    tolerance: float | None = Field(default=None, ge=0)
    partial_credit: bool = False
    explanation: str | None = None

    @field_validator("type")
    @classmethod
    def _known_type(cls, value: str) -> str:
        canonical = normalize_question_type(value)
        if canonical not in QUESTION_TYPES:
            raise ValueError("Invalid question type")
        return canonical

    @model_validator(mode="after")
    def _options_for_choice(self) -> "QuizQuestionModel":
        if self.type in ("multiple_choice", "multiple_select") and len(self.options or []) < 2:
            raise ValueError("At least 2 options are required for choice questions")
        return self


class QuizCreate(CamelModel):
    branch_id: str
    week_number: int | None = Field(default=None, ge=1, le=15)
    title: str = Field(..., min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    questions: list[QuizQuestionModel] = Field(..., min_length=1)
    time_limit: int | None = Field(default=None, ge=1, le=180)
    attempts_allowed: int = Field(default=-1, ge=-1)


class QuizUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    week_number: int | None = Field(default=None, ge=1, le=15)
    questions: list[QuizQuestionModel] | None = Field(default=None, min_length=1)
    time_limit: int | None = Field(default=None, ge=1, le=180)
    attempts_allowed: int | None = Field(default=None, ge=-1)
    is_active: bool | None = None


class QuizSubmitRequest(CamelModel):
    quiz_id: str
    answers: dict[str, Any]
    time_spent: int = Field(default=0, ge=0)


# =============================================================================
# EXAM SCHEMAS
# =============================================================================


class ExamQuestionModel(CamelModel):
    id: str | None = None
    type: Literal["multiple_choice", "true_false", "short_answer", "essay", "file_upload"]
    question: str = Field(..., min_length=1)
    points: float = Field(..., ge=0)
    options: list[str] | None = None
    correct_answer: Any = None
    file_types: list[str] | None = None
    max_file_size: int | None = Field(default=None, ge=1)
    is_required: bool = True


class ExamCreate(CamelModel):
    branch_id: str
    title: str = Field(..., min_length=3, max_length=200)
    description: str | None = None
    instructions: str | None = None
    total_points: float | None = Field(default=None, ge=0)
    time_limit: int | None = Field(default=None, ge=1)
    due_date: str
    allow_late_submission: bool = False
    max_attempts: int | None = Field(default=None, ge=1)
    questions: list[ExamQuestionModel] = Field(..., min_length=1)


class ExamUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=3, max_length=200)
    description: str | None = None
    instructions: str | None = None
    total_points: float | None = Field(default=None, ge=0)
    time_limit: int | None = Field(default=None, ge=1)
    due_date: str | None = None
    is_active: bool | None = None
    allow_late_submission: bool | None = None
    max_attempts: int | None = Field(default=None, ge=1)
    questions: list[ExamQuestionModel] | None = None


class ExamAnswerModel(CamelModel):
    question_id: str
    answer: Any = None


class ExamSubmitRequest(CamelModel):
    answers: list[ExamAnswerModel]


class GradeAnswerModel(CamelModel):
    question_id: str
    points: float
    feedback: str | None = None


class GradeSubmissionRequest(CamelModel):
    answers: list[GradeAnswerModel]
    overall_feedback: str | None = None


# =============================================================================
# DRIVE & SHEETS SCHEMAS
# =============================================================================


class CreateFolderRequest(CamelModel):
    folder_name: str = Field(..., min_length=1)
    parent_folder_id: str | None = None


class GradebookStudent(CamelModel):
    student_number: str | None = None
    display_name: str | None = None
    email: str | None = None


class CreateGradebookRequest(CamelModel):
    branch_id: str | None = None
    branch_title: str = Field(..., min_length=1)
    students: list[GradebookStudent] = Field(default_factory=list)


class StudentScore(CamelModel):
    student_id: str
    student_name: str
    total_points: float
    earned_points: float
    percentage: float
    grade: str


class UpdateScoresRequest(CamelModel):
    spreadsheet_id: str
    student_scores: list[StudentScore]


class QuizResultRow(CamelModel):
    student_id: str
    student_name: str
    score: float
    total_points: float
    percentage: float
    completed_at: str | None = None


class AddQuizResultsRequest(CamelModel):
    spreadsheet_id: str
    quiz_title: str = Field(..., min_length=1)
    results: list[QuizResultRow]

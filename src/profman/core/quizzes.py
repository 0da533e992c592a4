"""Quizzes and auto-graded quiz attempts."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

import structlog

from profman.core.errors import ConflictError, NotFoundError
from profman.core.quiz_grader import grade_quiz, normalize_question_type
from profman.core.records import Page, Record, matches_search, now_iso, paginate
from profman.core.service import DocumentService
from profman.db import QUIZ_ATTEMPTS, QUIZZES

logger = structlog.get_logger(__name__)

UNLIMITED_ATTEMPTS = -1

QUIZ_SEARCH_KEYS = ("title", "description")


@dataclass
class QuizQuestion(Record):
    id: str
    type: str
    question: str
    correct_answer: Any
    points: float
    options: list[str] | None = None
    tolerance: float | None = None
    partial_credit: bool = False
    explanation: str | None = None


@dataclass
class Quiz(Record):
    id: str
    branch_id: str
    title: str
    questions: list[QuizQuestion] = field(default_factory=list)
    total_points: float = 0
    week_number: int | None = None
    description: str | None = None
    time_limit: int | None = None
    attempts_allowed: int = UNLIMITED_ATTEMPTS
    is_active: bool = True
    is_deleted: bool = False
    deleted_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    nested = {"questions": QuizQuestion}


@dataclass
class QuizAttempt(Record):
    id: str
    quiz_id: str
    student_id: str
    answers: dict[str, Any]
    results: list[dict[str, Any]]
    score: float
    total_points: float
    percentage: int
    time_spent: int = 0
    is_completed: bool = True
    submitted_at: str | None = None
    graded_at: str | None = None


def build_questions(questions: list[dict[str, Any]]) -> tuple[list[dict[str, Any]], float]:
    """Assign fresh ids and canonical types; return (questions, total points)."""
    built = []
    for question in questions:
        built.append(
            {
                **question,
                "id": str(uuid.uuid4()),
                "type": normalize_question_type(question["type"]),
            }
        )
    return built, sum(q.get("points", 0) for q in built)


class QuizService(DocumentService[Quiz]):
    collection = QUIZZES
    record_type = Quiz
    entity_name = "Quiz"

    def list_quizzes(
        self,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
        is_active: bool | None = None,
        is_deleted: bool | None = None,
        branch_id: str | None = None,
    ) -> Page:
        filters: dict[str, Any] = {}
        if is_active is not None:
            filters["isActive"] = is_active
        if branch_id:
            filters["branchId"] = branch_id

        documents = self._all(**filters)
        if is_deleted is None:
            documents = [d for d in documents if not d.get("isDeleted")]
        else:
            documents = [d for d in documents if bool(d.get("isDeleted")) == is_deleted]
        documents = [d for d in documents if matches_search(d, search, QUIZ_SEARCH_KEYS)]
        result = paginate(documents, page, limit)
        result.items = [Quiz.from_dict(d) for d in result.items]
        return result

    def quizzes_by_branch(self, branch_id: str) -> list[Quiz]:
        documents = self._all(branchId=branch_id, isActive=True, isDeleted=False)
        return [Quiz.from_dict(d) for d in documents]

    def create_quiz(self, data: dict[str, Any]) -> Quiz:
        """Create a quiz from a camelCase payload with a `questions` list."""
        questions, total = build_questions(data.get("questions", []))
        now = now_iso()
        document = {
            **{k: v for k, v in data.items() if v is not None},
            "id": self.store.new_id(),
            "questions": questions,
            "totalPoints": total,
            "attemptsAllowed": data.get("attemptsAllowed", UNLIMITED_ATTEMPTS),
            "isActive": True,
            "isDeleted": False,
            "createdAt": now,
            "updatedAt": now,
        }
        quiz = Quiz.from_dict(document)
        self.store.insert(self.collection, quiz.to_dict(), doc_id=quiz.id)
        logger.info("quiz.created", quiz_id=quiz.id, questions=len(questions))
        return quiz

    def update_quiz(self, quiz_id: str, updates: dict[str, Any]) -> Quiz:
        """A new question list gets fresh ids and a new total."""
        fields = {k: v for k, v in updates.items() if v is not None}
        if "questions" in fields:
            fields["questions"], fields["totalPoints"] = build_questions(fields["questions"])
        quiz = self._update(quiz_id, fields)
        logger.info("quiz.updated", quiz_id=quiz_id)
        return quiz

    # -------------------------------------------------------------------------
    # Attempts
    # -------------------------------------------------------------------------

    def submit_attempt(
        self, quiz_id: str, student_id: str, answers: dict[str, Any], time_spent: int = 0
    ) -> QuizAttempt:
        """Grade and store a student's attempt.

        Raises:
            NotFoundError: If the quiz doesn't exist or isn't open
            ConflictError: If the student has used all allowed attempts
        """
        document = self._get_document(quiz_id)
        if document.get("isDeleted") or not document.get("isActive", True):
            raise NotFoundError("Quiz not found")

        allowed = document.get("attemptsAllowed", UNLIMITED_ATTEMPTS)
        if allowed != UNLIMITED_ATTEMPTS:
            used = len(self.store.query(QUIZ_ATTEMPTS, filters={"quizId": quiz_id, "studentId": student_id}))
            if used >= allowed:
                raise ConflictError("Maximum attempts reached for this quiz")

        grade = grade_quiz(document.get("questions", []), answers)
        now = now_iso()
        attempt = QuizAttempt(
            id=self.store.new_id(),
            quiz_id=quiz_id,
            student_id=student_id,
            answers=answers,
            results=[r.to_dict() for r in grade.results],
            score=grade.score,
            total_points=grade.total_points,
            percentage=grade.percentage,
            time_spent=time_spent,
            submitted_at=now,
            graded_at=now,
        )
        self.store.insert(QUIZ_ATTEMPTS, attempt.to_dict(), doc_id=attempt.id)
        logger.info(
            "quiz.attempt_graded",
            quiz_id=quiz_id,
            student_id=student_id,
            score=grade.score,
            percentage=grade.percentage,
        )
        return attempt

    def attempts_by_student(self, student_id: str, quiz_id: str | None = None) -> list[QuizAttempt]:
        """Newest first."""
        filters = {"studentId": student_id}
        if quiz_id:
            filters["quizId"] = quiz_id
        documents = self.store.query(QUIZ_ATTEMPTS, filters=filters, order_by="submittedAt", descending=True)
        return [QuizAttempt.from_dict(d) for d in documents]

    def attempts_by_quiz(self, quiz_id: str) -> list[QuizAttempt]:
        documents = self.store.query(
            QUIZ_ATTEMPTS, filters={"quizId": quiz_id}, order_by="submittedAt", descending=True
        )
        return [QuizAttempt.from_dict(d) for d in documents]

    def best_attempt(self, student_id: str, quiz_id: str) -> QuizAttempt:
        """Highest-scoring attempt; the earliest wins a tie."""
        attempts = self.attempts_by_student(student_id, quiz_id)
        if not attempts:
            raise NotFoundError("No attempts found")
        best = attempts[-1]
        for attempt in reversed(attempts):
            if attempt.score > best.score:
                best = attempt
        return best

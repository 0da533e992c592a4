"""Quiz auto-grading.

Deterministic comparison per question type:
- multiple_choice: trimmed string equality (int answers read as option index)
- multiple_select: exact set match, or proportional partial credit
- true_false: normalised booleans
- short_answer: case-insensitive, trimmed equality
- numeric: |answer - correct| <= tolerance
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

QUESTION_TYPES = ("multiple_choice", "multiple_select", "numeric", "short_answer", "true_false")

# Short names accepted on input
TYPE_ALIASES = {
    "mcq": "multiple_choice",
    "multi": "multiple_select",
    "short-text": "short_answer",
    "tf": "true_false",
}

DEFAULT_TOLERANCE = 0.01

# Absorbs binary rounding, e.g. abs(3.15 - 3.14) > 0.01
FLOAT_EPSILON = 1e-9


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class QuestionResult:
    """Grade for a single question."""

    question_id: str
    is_correct: bool
    points_awarded: float
    points_possible: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "questionId": self.question_id,
            "isCorrect": self.is_correct,
            "pointsAwarded": self.points_awarded,
            "pointsPossible": self.points_possible,
        }


@dataclass
class QuizGrade:
    """Summary of an auto-graded attempt."""

    score: float
    total_points: float
    percentage: int
    results: list[QuestionResult]


# =============================================================================
# NORMALISATION
# =============================================================================


def normalize_question_type(question_type: str) -> str:
    """Map aliases (mcq, multi, short-text, tf) to canonical type names."""
    return TYPE_ALIASES.get(question_type, question_type)


def _normalize_bool(value: Any) -> bool | None:
    """Normalize a true/false answer, or None if unreadable."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        stripped = value.strip().lower()
        if stripped in ("true", "1", "yes"):
            return True
        if stripped in ("false", "0", "no"):
            return False
    return None


def _normalize_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _option_text(value: Any, options: list[str] | None) -> str | None:
    """Resolve an option index to its text; strings pass through trimmed."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        if options and 0 <= value < len(options):
            return options[value].strip()
        return str(value)
    return str(value).strip()


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


# =============================================================================
# GRADING
# =============================================================================


def _grade_multiple_select(question: dict[str, Any], answer: Any, points: float) -> float:
    correct = question.get("correctAnswer")
    if not isinstance(answer, list) or not isinstance(correct, list):
        return 0.0

    correct_set = {str(c).strip() for c in correct}
    selected = {str(a).strip() for a in answer}

    if not question.get("partialCredit"):
        return points if selected == correct_set else 0.0

    # Any wrong selection voids the question
    if selected - correct_set or not correct_set:
        return 0.0
    return points * len(selected & correct_set) / len(correct_set)


def points_for_answer(question: dict[str, Any], answer: Any) -> float:
    """Points awarded for one answer to one question document."""
    points = question.get("points", 0)
    if answer is None:
        return 0.0

    question_type = normalize_question_type(question.get("type", ""))
    correct = question.get("correctAnswer")

    if question_type == "multiple_choice":
        options = question.get("options")
        given = _option_text(answer, options)
        expected = _option_text(correct, options)
        return points if given is not None and given == expected else 0.0

    if question_type == "multiple_select":
        return _grade_multiple_select(question, answer, points)

    if question_type == "true_false":
        given_bool = _normalize_bool(answer)
        return points if given_bool is not None and given_bool == _normalize_bool(correct) else 0.0

    if question_type == "short_answer":
        if not isinstance(answer, str) or correct is None:
            return 0.0
        return points if answer.strip().lower() == str(correct).strip().lower() else 0.0

    if question_type == "numeric":
        given_num = _normalize_number(answer)
        expected_num = _normalize_number(correct)
        if given_num is None or expected_num is None:
            return 0.0
        tolerance = question.get("tolerance")
        if tolerance is None:
            tolerance = DEFAULT_TOLERANCE
        return points if abs(given_num - expected_num) <= float(tolerance) + FLOAT_EPSILON else 0.0

    logger.warning("quiz_grader.unknown_question_type", type=question.get("type"))
    return 0.0


def grade_quiz(questions: list[dict[str, Any]], answers: dict[str, Any]) -> QuizGrade:
    """Grade answers ({questionId: answer}) against quiz question documents."""
    results = []
    for question in questions:
        possible = question.get("points", 0)
        awarded = points_for_answer(question, answers.get(question["id"]))
        results.append(
            QuestionResult(
                question_id=question["id"],
                is_correct=possible > 0 and awarded == possible,
                points_awarded=awarded,
                points_possible=possible,
            )
        )

    score = sum(r.points_awarded for r in results)
    total = sum(r.points_possible for r in results)
    percentage = round_half_up(score / total * 100) if total > 0 else 0
    return QuizGrade(score=score, total_points=total, percentage=percentage, results=results)

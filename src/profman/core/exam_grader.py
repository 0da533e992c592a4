"""Exam grading.

Responsibilities:
- Auto-score objective answers (multiple_choice, true_false) at submission
- Apply professor-entered points and feedback per question
- Percentage and letter grade from earned points
"""

from __future__ import annotations

from typing import Any

from profman.core.errors import ValidationError

AUTO_GRADED_TYPES = ("multiple_choice", "true_false")

# (minimum percentage, letter), highest first
LETTER_GRADES: list[tuple[float, str]] = [
    (97, "A+"),
    (93, "A"),
    (90, "A-"),
    (87, "B+"),
    (83, "B"),
    (80, "B-"),
    (77, "C+"),
    (73, "C"),
    (70, "C-"),
    (67, "D+"),
    (63, "D"),
    (60, "D-"),
]


def letter_grade(percentage: float) -> str:
    """Map a percentage to a letter grade; below 60 is F."""
    for minimum, letter in LETTER_GRADES:
        if percentage >= minimum:
            return letter
    return "F"


def percentage_of(earned: float, total: float) -> float:
    return earned / total * 100 if total > 0 else 0.0


def _answers_match(given: Any, correct: Any) -> bool:
    if correct is None or correct == "" or correct == []:
        return False
    if isinstance(given, str) and isinstance(correct, str):
        return given.strip() == correct.strip()
    return given == correct


def auto_score(
    questions: list[dict[str, Any]], answers: list[dict[str, Any]]
) -> tuple[list[dict[str, Any]], float]:
    """Score submitted answers against exam questions.

    Objective answers equal to the correct answer earn the question's
    points; every other known question scores 0 until graded by hand.
    Answers to unknown questions are kept as given.

    Returns:
        (answers with `points` set, total earned points)
    """
    by_id = {q["id"]: q for q in questions}
    scored = []
    earned = 0.0

    for answer in answers:
        question = by_id.get(answer.get("questionId"))
        if question is None:
            scored.append(dict(answer))
            continue

        points = 0
        if question.get("type") in AUTO_GRADED_TYPES and _answers_match(
            answer.get("answer"), question.get("correctAnswer")
        ):
            points = question.get("points", 0)
        earned += points
        scored.append({**answer, "points": points})

    return scored, earned


def apply_manual_grades(
    questions: list[dict[str, Any]],
    answers: list[dict[str, Any]],
    grades: list[dict[str, Any]],
) -> tuple[list[dict[str, Any]], float]:
    """Replace points and feedback with professor-entered grades.

    Raises:
        ValidationError: If points fall outside 0..question points

    Returns:
        (updated answers, total earned points)
    """
    max_points = {q["id"]: q.get("points", 0) for q in questions}
    by_question = {g["questionId"]: g for g in grades}

    problems = []
    for grade in grades:
        points = grade.get("points", 0)
        limit = max_points.get(grade["questionId"])
        field = f"answers.{grade['questionId']}.points"
        if points < 0:
            problems.append({"field": field, "message": "Points must not be negative"})
        elif limit is not None and points > limit:
            problems.append({"field": field, "message": f"Points must be at most {limit}"})
    if problems:
        raise ValidationError("Invalid grade points", details=problems)

    updated = []
    for answer in answers:
        grade = by_question.get(answer.get("questionId"))
        if grade is not None:
            answer = {**answer, "points": grade.get("points", 0)}
            answer.pop("feedback", None)
            if grade.get("feedback") is not None:
                answer["feedback"] = grade["feedback"]
        updated.append(answer)

    earned = sum(a.get("points") or 0 for a in updated)
    return updated, earned

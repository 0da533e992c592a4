"""Tests for quiz auto-grading."""

import pytest

from profman.core.quiz_grader import (
    grade_quiz,
    normalize_question_type,
    points_for_answer,
    round_half_up,
)


def _question(qtype, correct, points=2, **extra):
    return {"id": "q", "type": qtype, "question": "?", "correctAnswer": correct, "points": points, **extra}


class TestQuestionTypes:
    """Tests for type names and aliases."""

    @pytest.mark.parametrize(
        "alias, canonical",
        [("mcq", "multiple_choice"), ("multi", "multiple_select"), ("short-text", "short_answer"), ("tf", "true_false")],
    )
    def test_aliases_map_to_canonical(self, alias, canonical):
        assert normalize_question_type(alias) == canonical

    def test_canonical_names_unchanged(self):
        assert normalize_question_type("numeric") == "numeric"

    def test_alias_type_is_graded(self):
        question = _question("tf", True)
        assert points_for_answer(question, "yes") == 2


class TestMultipleChoice:
    def test_trimmed_match(self):
        assert points_for_answer(_question("multiple_choice", "def"), "  def ") == 2

    def test_wrong_answer(self):
        assert points_for_answer(_question("multiple_choice", "def"), "func") == 0

    def test_integer_answer_is_option_index(self):
        question = _question("multiple_choice", "def", options=["func", "def", "fn"])
        assert points_for_answer(question, 1) == 2
        assert points_for_answer(question, 0) == 0

    def test_missing_answer_scores_zero(self):
        assert points_for_answer(_question("multiple_choice", "def"), None) == 0


class TestTrueFalse:
    @pytest.mark.parametrize("answer", [True, "true", "1", "yes", " TRUE "])
    def test_truthy_forms(self, answer):
        assert points_for_answer(_question("true_false", True), answer) == 2

    @pytest.mark.parametrize("answer", [False, "false", "0", "no"])
    def test_falsy_forms_against_string_correct(self, answer):
        assert points_for_answer(_question("true_false", "false"), answer) == 2

    def test_unreadable_answer(self):
        assert points_for_answer(_question("true_false", True), "maybe") == 0


class TestShortAnswer:
    def test_case_insensitive(self):
        assert points_for_answer(_question("short_answer", "Paris"), "  paris ") == 2

    def test_non_string_answer(self):
        assert points_for_answer(_question("short_answer", "42"), 42) == 0


class TestNumeric:
    def test_within_default_tolerance(self):
        assert points_for_answer(_question("numeric", 3.14), 3.145) == 2

    def test_on_tolerance_boundary(self):
        assert points_for_answer(_question("numeric", 3.14, tolerance=0.01), 3.15) == 2

    def test_outside_tolerance(self):
        assert points_for_answer(_question("numeric", 3.14, tolerance=0.01), 3.2) == 0

    def test_zero_tolerance_is_exact(self):
        question = _question("numeric", 3.5, tolerance=0)
        assert points_for_answer(question, 3.5) == 2
        assert points_for_answer(question, 3.51) == 0

    def test_string_numbers_parse(self):
        assert points_for_answer(_question("numeric", "10"), " 10.0 ") == 2

    def test_unparseable_answer(self):
        assert points_for_answer(_question("numeric", 10), "ten") == 0


class TestMultipleSelect:
    """All-or-nothing and partial credit."""

    def test_exact_set_scores_full(self):
        question = _question("multiple_select", ["a", "c"], points=4)
        assert points_for_answer(question, ["c", "a"]) == 4

    def test_subset_without_partial_credit_scores_zero(self):
        question = _question("multiple_select", ["a", "c"], points=4)
        assert points_for_answer(question, ["a"]) == 0

    def test_partial_credit_is_fraction_selected(self):
        question = _question("multiple_select", ["a", "b", "c", "d"], points=4, partialCredit=True)
        assert points_for_answer(question, ["a", "b", "c"]) == pytest.approx(3.0)

    def test_partial_credit_false_positive_scores_zero(self):
        question = _question("multiple_select", ["a", "b"], points=4, partialCredit=True)
        assert points_for_answer(question, ["a", "x"]) == 0

    def test_non_list_answer(self):
        question = _question("multiple_select", ["a"], points=4)
        assert points_for_answer(question, "a") == 0


class TestGradeQuiz:
    """Tests for whole-quiz grading."""

    def test_score_and_percentage(self):
        questions = [
            {"id": "q1", "type": "multiple_choice", "correctAnswer": "A", "points": 1},
            {"id": "q2", "type": "true_false", "correctAnswer": True, "points": 1},
            {"id": "q3", "type": "numeric", "correctAnswer": 5, "points": 1},
        ]
        grade = grade_quiz(questions, {"q1": "A", "q2": True, "q3": 7})
        assert grade.score == 2
        assert grade.total_points == 3
        assert grade.percentage == 67
        assert [r.is_correct for r in grade.results] == [True, True, False]

    def test_unanswered_questions_score_zero(self):
        questions = [{"id": "q1", "type": "short_answer", "correctAnswer": "x", "points": 3}]
        grade = grade_quiz(questions, {})
        assert grade.score == 0
        assert grade.results[0].to_dict() == {
            "questionId": "q1",
            "isCorrect": False,
            "pointsAwarded": 0.0,
            "pointsPossible": 3,
        }

    def test_zero_total_points(self):
        assert grade_quiz([], {}).percentage == 0

    def test_round_half_up(self):
        assert round_half_up(62.5) == 63
        assert round_half_up(62.4) == 62

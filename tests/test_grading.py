"""判分规则测试"""

import pytest

from englishhub.app.models.exam import GradingMethod
from englishhub.app.models.question import Question, QuestionSkill, QuestionType
from englishhub.app.models.submission import SubmissionStatus
from englishhub.app.services import grading


def _question(type: QuestionType, correct_answer: str | None = "A", points: float = 1.0):
    return Question(
        id=1,
        creator_id=1,
        skill=QuestionSkill.READING,
        type=type,
        content_text="Q",
        correct_answer=correct_answer,
        points=points,
    )


class TestAnswerMatching:
    """答案比对"""

    @pytest.mark.parametrize(
        "given, expected",
        [("A", "A"), (" a ", "A"), ("went", "WENT"), ("Went\n", "went")],
    )
    def test_trimmed_case_insensitive_match(self, given, expected):
        assert grading.is_answer_correct(given, expected)

    @pytest.mark.parametrize("given", [None, "", "   "])
    def test_blank_answer_is_never_correct(self, given):
        assert not grading.is_answer_correct(given, "A")

    def test_blank_key_is_never_correct(self):
        assert not grading.is_answer_correct("", "")
        assert not grading.is_answer_correct("A", None)

    def test_wrong_answer(self):
        assert not grading.is_answer_correct("C", "B")


class TestGradeObjective:
    """客观题判分"""

    def test_correct_choice_awards_full_points(self):
        question = _question(QuestionType.MULTIPLE_CHOICE, "B", points=2.5)
        assert grading.grade_objective(question, "b") == (True, 2.5)

    def test_wrong_fill_in_blank_scores_zero(self):
        question = _question(QuestionType.FILL_IN_BLANK, "went")
        assert grading.grade_objective(question, "goed") == (False, 0.0)

    @pytest.mark.parametrize("type", [QuestionType.ESSAY, QuestionType.MATCHING])
    def test_subjective_items_stay_pending(self, type):
        question = _question(type, None)
        assert grading.grade_objective(question, "some text") == (None, None)


class TestResolveStatus:
    """交卷后状态"""

    def test_auto_without_pending_completes(self):
        assert (
            grading.resolve_status(GradingMethod.AUTO, 0) == SubmissionStatus.COMPLETED
        )

    def test_hybrid_with_pending_goes_to_grading(self):
        assert (
            grading.resolve_status(GradingMethod.HYBRID, 1) == SubmissionStatus.GRADING
        )

    def test_manual_always_goes_to_grading(self):
        assert (
            grading.resolve_status(GradingMethod.MANUAL, 0) == SubmissionStatus.GRADING
        )


class TestSummary:
    """答卷汇总"""

    def test_counts_add_up_to_total(self):
        summary = grading.summarize(
            [(1, True, 1.0), (1, False, 0.0), (2, None, None), (1, True, 1.0)]
        )
        assert summary.total_questions == 4
        assert (
            summary.correct_answers + summary.wrong_answers + summary.pending_answers
            == summary.total_questions
        )
        assert summary.pending_answers == 1
        assert summary.score == 2.0
        assert summary.max_score == 5.0
        assert summary.percentage == 40.0

    def test_percentage_rounds_to_two_decimals(self):
        assert grading.percentage(1, 3) == 33.33

    def test_percentage_of_empty_exam_is_zero(self):
        assert grading.percentage(0, 0) == 0.0

    def test_passed_only_decided_once_completed(self):
        assert grading.is_passed(SubmissionStatus.GRADING, 100, 60) is None
        assert grading.is_passed(SubmissionStatus.COMPLETED, 60, 60) is True
        assert grading.is_passed(SubmissionStatus.COMPLETED, 50, 60) is False

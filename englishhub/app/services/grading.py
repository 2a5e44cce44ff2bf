"""判分规则

纯函数，不访问数据库：答案规范化、客观题判分、答卷汇总与状态判定。
"""

from collections.abc import Iterable
from dataclasses import dataclass

from englishhub.app.models.exam import GradingMethod
from englishhub.app.models.question import Question
from englishhub.app.models.submission import SubmissionStatus


def normalize_answer(value: str | None) -> str:
    """去除首尾空白并统一大小写"""
    return (value or "").strip().upper()


def is_answer_correct(user_answer: str | None, correct_answer: str | None) -> bool:
    """空答案或空标准答案一律判错"""
    expected = normalize_answer(correct_answer)
    given = normalize_answer(user_answer)
    return bool(expected) and bool(given) and given == expected


def grade_objective(
    question: Question, answer_text: str | None
) -> tuple[bool | None, float | None]:
    """
    客观题自动判分

    Returns:
        (is_correct, score)；主观题返回 (None, None) 表示待教师批改
    """
    if not question.is_auto_gradable:
        return None, None
    correct = is_answer_correct(answer_text, question.correct_answer)
    return correct, (float(question.points) if correct else 0.0)


def resolve_status(grading_method: GradingMethod, pending_count: int) -> SubmissionStatus:
    """交卷/批改后的答卷状态：无待批改且非人工批改时直接完成"""
    if pending_count == 0 and grading_method != GradingMethod.MANUAL:
        return SubmissionStatus.COMPLETED
    return SubmissionStatus.GRADING


def percentage(score: float, max_score: float) -> float:
    if max_score <= 0:
        return 0.0
    return round(score / max_score * 100, 2)


def is_passed(
    status: SubmissionStatus, percent: float, pass_score: int
) -> bool | None:
    """批改完成前不判定是否通过"""
    if status != SubmissionStatus.COMPLETED:
        return None
    return percent >= pass_score


@dataclass
class ScoreSummary:
    """答卷汇总"""

    total_questions: int = 0
    correct_answers: int = 0
    wrong_answers: int = 0
    pending_answers: int = 0
    score: float = 0.0
    max_score: float = 0.0

    @property
    def percentage(self) -> float:
        return percentage(self.score, self.max_score)


def summarize(items: Iterable[tuple[float, bool | None, float | None]]) -> ScoreSummary:
    """
    汇总每题结果

    Args:
        items: (题目分值, is_correct, score)；score 为 None 表示待批改
    """
    summary = ScoreSummary()
    for points, correct, score in items:
        summary.total_questions += 1
        summary.max_score += float(points)
        if score is None:
            summary.pending_answers += 1
            continue
        summary.score += float(score)
        if correct:
            summary.correct_answers += 1
        else:
            summary.wrong_answers += 1
    summary.score = round(summary.score, 2)
    summary.max_score = round(summary.max_score, 2)
    return summary

"""答卷服务：开始作答、保存答案、交卷判分、教师批改与成绩查询"""

import logging
from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from englishhub.app.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from englishhub.app.core.utils import utc_now_naive
from englishhub.app.models.account import Account
from englishhub.app.models.exam import Exam, ExamStatus
from englishhub.app.models.notification import NotificationCategory, NotificationType
from englishhub.app.models.question import Question
from englishhub.app.models.submission import (
    ExamSubmission,
    SubmissionAnswer,
    SubmissionStatus,
)
from englishhub.app.schemas.submission import (
    AnswerResult,
    ExamResult,
    GradeRequest,
    InProgressSubmission,
    MySubmissionItem,
    SavedAnswer,
    SubmissionResponse,
    SubmitRequest,
)
from englishhub.app.services import grading
from englishhub.app.services.config_service import get_config_int
from englishhub.app.services.exam_service import ExamService
from englishhub.app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


def effective_pass_score(exam: Exam) -> int:
    """试卷未设置及格线时使用系统默认值"""
    if exam.pass_score is not None:
        return exam.pass_score
    return get_config_int("default_pass_score")


class SubmissionService:
    """答卷服务类"""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.exam_service = ExamService(session)

    # ==================== 查询辅助 ====================

    async def get_submission_by_id(self, submission_id: int) -> ExamSubmission | None:
        stmt = select(ExamSubmission).where(ExamSubmission.id == submission_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_submission_or_404(self, submission_id: int) -> ExamSubmission:
        submission = await self.get_submission_by_id(submission_id)
        if not submission:
            raise NotFoundError("Không tìm thấy bài làm")
        return submission

    async def get_own_submission(
        self, submission_id: int, learner: Account
    ) -> ExamSubmission:
        submission = await self.get_submission_or_404(submission_id)
        if submission.learner_id != learner.id:
            raise PermissionDeniedError("Đây không phải bài làm của bạn")
        return submission

    async def get_active_submission(
        self, exam_id: int, learner_id: int
    ) -> ExamSubmission | None:
        stmt = select(ExamSubmission).where(
            ExamSubmission.exam_id == exam_id,
            ExamSubmission.learner_id == learner_id,
            ExamSubmission.status == SubmissionStatus.IN_PROGRESS,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def _get_answers(self, submission_id: int) -> dict[int, SubmissionAnswer]:
        """question_id → 作答记录"""
        stmt = select(SubmissionAnswer).where(
            SubmissionAnswer.submission_id == submission_id
        )
        result = await self.session.execute(stmt)
        return {a.question_id: a for a in result.scalars().all()}

    @staticmethod
    def expires_at(submission: ExamSubmission, exam: Exam) -> datetime:
        return submission.started_at + timedelta(minutes=exam.duration_minutes)

    # ==================== 作答 ====================

    async def start(self, exam_id: int, learner: Account) -> ExamSubmission:
        """开始作答；已有作答中的答卷时直接返回"""
        exam = await self.exam_service.get_exam_or_404(exam_id)
        if exam.status != ExamStatus.PUBLISHED:
            raise PermissionDeniedError("Đề thi chưa được xuất bản")

        existing = await self.get_active_submission(exam_id, learner.id)
        if existing:
            return existing

        submission = ExamSubmission(exam_id=exam_id, learner_id=learner.id)
        self.session.add(submission)
        try:
            await self.session.flush()
        except IntegrityError:
            # 并发开始作答时由部分唯一索引兜底
            raise ConflictError("Bạn đang có một bài làm chưa nộp cho đề thi này")
        await self.session.refresh(submission)

        logger.info(
            f"开始作答: submission={submission.id}, exam={exam_id}, "
            f"learner={learner.id}"
        )
        return submission

    async def _upsert_answer(
        self,
        submission_id: int,
        question_id: int,
        answer_text: str | None,
        existing: dict[int, SubmissionAnswer],
    ) -> SubmissionAnswer:
        now = utc_now_naive()
        answer = existing.get(question_id)
        if answer:
            answer.answer_text = answer_text
            answer.updated_at = now
        else:
            answer = SubmissionAnswer(
                submission_id=submission_id,
                question_id=question_id,
                answer_text=answer_text,
                updated_at=now,
            )
            self.session.add(answer)
            existing[question_id] = answer
        return answer

    @staticmethod
    def _ensure_question_in_exam(exam: Exam, question_id: int) -> None:
        if question_id not in exam.list_question_ids:
            raise ValueError(f"Câu hỏi {question_id} không thuộc đề thi này")

    async def record_answer(
        self,
        submission_id: int,
        learner: Account,
        question_id: int,
        answer_text: str | None,
    ) -> SubmissionAnswer:
        """保存单题作答（仅作答中且未超时）"""
        submission = await self.get_own_submission(submission_id, learner)
        if submission.status != SubmissionStatus.IN_PROGRESS:
            raise ConflictError("Bài làm đã được nộp, không thể sửa câu trả lời")

        exam = await self.exam_service.get_exam_or_404(submission.exam_id)
        self._ensure_question_in_exam(exam, question_id)

        if utc_now_naive() > self.expires_at(submission, exam):
            logger.warning(f"答卷 {submission_id} 已超时，拒绝保存答案")
            raise ConflictError("Đã hết thời gian làm bài, vui lòng nộp bài")

        answers = await self._get_answers(submission_id)
        answer = await self._upsert_answer(
            submission_id, question_id, answer_text, answers
        )
        await self.session.flush()
        await self.session.refresh(answer)
        return answer

    async def submit(
        self, submission_id: int, learner: Account, data: SubmitRequest | None = None
    ) -> ExamSubmission:
        """
        交卷并判分

        作答中 → 已提交 的转换是带条件的原子更新，并发交卷只有一个成功。
        客观题立即判分；主观题待教师批改。超时后交卷附带的答案不计入。
        """
        submission = await self.get_own_submission(submission_id, learner)
        if submission.status != SubmissionStatus.IN_PROGRESS:
            raise ConflictError("Bài làm đã được nộp")

        exam = await self.exam_service.get_exam_or_404(submission.exam_id)
        answers = await self._get_answers(submission_id)

        final_answers = data.answers if data else None
        if final_answers and utc_now_naive() > self.expires_at(submission, exam):
            # 超时后只按时限内保存的答案判分
            logger.warning(
                f"答卷 {submission_id} 已超时，忽略交卷时附带的 {len(final_answers)} 条答案"
            )
            final_answers = None

        if final_answers:
            for question_id, answer_text in final_answers.items():
                self._ensure_question_in_exam(exam, question_id)
                await self._upsert_answer(
                    submission_id, question_id, answer_text, answers
                )
            await self.session.flush()

        now = utc_now_naive()
        stmt = (
            update(ExamSubmission)
            .where(
                ExamSubmission.id == submission_id,
                ExamSubmission.status == SubmissionStatus.IN_PROGRESS,
            )
            .values(status=SubmissionStatus.SUBMITTED, submitted_at=now)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            logger.warning(f"答卷 {submission_id} 重复交卷被拒绝")
            raise ConflictError("Bài làm đã được nộp")

        if data and data.time_spent_seconds is not None:
            time_spent = data.time_spent_seconds
        else:
            time_spent = max(int((now - submission.started_at).total_seconds()), 0)

        questions = await self.exam_service.get_exam_questions(exam)
        for question in questions:
            answer = answers.get(question.id)
            if answer is None:
                answer = await self._upsert_answer(
                    submission_id, question.id, None, answers
                )
            answer.is_correct, answer.score = grading.grade_objective(
                question, answer.answer_text
            )
            if answer.score is not None:
                answer.graded_at = now

        summary = self._summarize(questions, answers)
        submission.status = grading.resolve_status(
            exam.grading_method, summary.pending_answers
        )
        submission.submitted_at = now
        submission.time_spent_seconds = time_spent
        submission.total_score = summary.score
        submission.max_score = summary.max_score
        await self.session.flush()

        logger.info(
            f"交卷: submission={submission_id}, 得分 {summary.score}/{summary.max_score}, "
            f"待批改 {summary.pending_answers}, 状态 {submission.status.value}"
        )

        if submission.status == SubmissionStatus.GRADING:
            await NotificationService(self.session).notify(
                exam.creator_id,
                "Bài làm cần chấm",
                f"{learner.full_name} đã nộp bài \"{exam.title}\"",
                category=NotificationCategory.EXAM,
                sender_id=learner.id,
                related_id=submission_id,
                related_type="exam_submission",
            )

        await self.session.refresh(submission)
        return submission

    @staticmethod
    def _summarize(
        questions: list[Question], answers: dict[int, SubmissionAnswer]
    ) -> grading.ScoreSummary:
        items = []
        for question in questions:
            answer = answers.get(question.id)
            if answer is None:
                items.append((question.points, None, None))
            else:
                items.append((question.points, answer.is_correct, answer.score))
        return grading.summarize(items)

    # ==================== 批改 ====================

    async def grade(
        self, submission_id: int, grader: Account, data: GradeRequest
    ) -> ExamSubmission:
        """教师批改（试卷创建者或管理员），支持对已完成答卷重新批改"""
        submission = await self.get_submission_or_404(submission_id)
        exam = await self.exam_service.get_exam_or_404(submission.exam_id)
        if not self.exam_service.can_manage(exam, grader):
            raise PermissionDeniedError("Bạn không có quyền chấm bài này")
        if submission.status not in (
            SubmissionStatus.GRADING,
            SubmissionStatus.COMPLETED,
        ):
            raise ConflictError("Bài làm chưa ở trạng thái chờ chấm")

        questions = await self.exam_service.get_exam_questions(exam)
        by_id = {q.id: q for q in questions}
        answers = await self._get_answers(submission_id)
        now = utc_now_naive()

        for item in data.grades:
            question = by_id.get(item.question_id)
            answer = answers.get(item.question_id)
            if question is None or answer is None:
                raise ValueError(f"Câu hỏi {item.question_id} không thuộc bài làm này")
            if item.score > question.points:
                raise ValueError(
                    f"Điểm câu {item.question_id} vượt quá điểm tối đa {question.points:g}"
                )
            answer.score = float(item.score)
            answer.is_correct = item.score >= question.points
            answer.teacher_feedback = item.feedback
            answer.graded_at = now

        if data.general_feedback is not None:
            submission.teacher_general_feedback = data.general_feedback

        previous_status = submission.status
        summary = self._summarize(questions, answers)
        submission.total_score = summary.score
        submission.max_score = summary.max_score
        if summary.pending_answers == 0:
            submission.status = SubmissionStatus.COMPLETED
        await self.session.flush()

        logger.info(
            f"批改: submission={submission_id} by {grader.email}, "
            f"得分 {summary.score}/{summary.max_score}, 待批改 {summary.pending_answers}"
        )

        if (
            previous_status != SubmissionStatus.COMPLETED
            and submission.status == SubmissionStatus.COMPLETED
        ):
            await NotificationService(self.session).notify(
                submission.learner_id,
                "Đã có kết quả bài thi",
                f"Bài làm \"{exam.title}\" đã được chấm xong",
                type=NotificationType.SUCCESS,
                category=NotificationCategory.EXAM,
                sender_id=grader.id,
                related_id=submission_id,
                related_type="exam_submission",
            )

        await self.session.refresh(submission)
        return submission

    # ==================== 成绩 ====================

    async def _ensure_can_view(
        self, submission: ExamSubmission, exam: Exam, viewer: Account
    ) -> None:
        if submission.learner_id == viewer.id:
            return
        if not self.exam_service.can_manage(exam, viewer):
            raise PermissionDeniedError("Bạn không có quyền xem bài làm này")

    async def get_in_progress(
        self, submission: ExamSubmission, exam: Exam
    ) -> InProgressSubmission:
        answers = await self._get_answers(submission.id)
        return InProgressSubmission(
            **SubmissionResponse.model_validate(submission).model_dump(),
            expires_at=self.expires_at(submission, exam),
            answers=[
                SavedAnswer.model_validate(answers[qid])
                for qid in exam.list_question_ids
                if qid in answers
            ],
        )

    async def get_submission_view(
        self, submission_id: int, viewer: Account
    ) -> ExamResult | InProgressSubmission:
        """作答中返回已保存答案；交卷后返回成绩单"""
        submission = await self.get_submission_or_404(submission_id)
        exam = await self.exam_service.get_exam_or_404(submission.exam_id)
        await self._ensure_can_view(submission, exam, viewer)

        if submission.status == SubmissionStatus.IN_PROGRESS:
            return await self.get_in_progress(submission, exam)
        return await self.build_result(submission, exam)

    async def get_result(self, submission_id: int, viewer: Account) -> ExamResult:
        """成绩单；交卷前不公开标准答案"""
        submission = await self.get_submission_or_404(submission_id)
        exam = await self.exam_service.get_exam_or_404(submission.exam_id)
        await self._ensure_can_view(submission, exam, viewer)
        if submission.status == SubmissionStatus.IN_PROGRESS:
            raise ConflictError("Bài làm chưa được nộp")
        return await self.build_result(submission, exam)

    async def build_result(self, submission: ExamSubmission, exam: Exam) -> ExamResult:
        questions = await self.exam_service.get_exam_questions(exam)
        answers = await self._get_answers(submission.id)
        summary = self._summarize(questions, answers)
        pass_score = effective_pass_score(exam)

        details = []
        for question in questions:
            answer = answers.get(question.id)
            details.append(
                AnswerResult(
                    question_id=question.id,
                    question_type=question.type,
                    question_text=question.content_text,
                    options=question.options,
                    user_answer=answer.answer_text if answer else None,
                    correct_answer=question.correct_answer,
                    explanation=question.explanation,
                    is_correct=answer.is_correct if answer else None,
                    score=answer.score if answer else None,
                    max_score=question.points,
                    teacher_feedback=answer.teacher_feedback if answer else None,
                )
            )

        return ExamResult(
            submission_id=submission.id,
            exam_id=exam.id,
            exam_title=exam.title,
            status=submission.status,
            total_questions=summary.total_questions,
            correct_answers=summary.correct_answers,
            wrong_answers=summary.wrong_answers,
            pending_answers=summary.pending_answers,
            score=summary.score,
            max_score=summary.max_score,
            percentage=summary.percentage,
            pass_score=pass_score,
            passed=grading.is_passed(submission.status, summary.percentage, pass_score),
            time_spent_seconds=submission.time_spent_seconds,
            started_at=submission.started_at,
            submitted_at=submission.submitted_at,
            teacher_general_feedback=submission.teacher_general_feedback,
            answers=details,
        )

    async def get_learner_submissions(self, learner_id: int) -> list[MySubmissionItem]:
        """学员的全部答卷（最新在前）"""
        stmt = (
            select(ExamSubmission, Exam)
            .join(Exam, Exam.id == ExamSubmission.exam_id)
            .where(ExamSubmission.learner_id == learner_id)
            .order_by(ExamSubmission.started_at.desc(), ExamSubmission.id.desc())
        )
        result = await self.session.execute(stmt)

        items = []
        for submission, exam in result.all():
            percent = grading.percentage(submission.total_score, submission.max_score)
            items.append(
                MySubmissionItem(
                    id=submission.id,
                    exam_id=exam.id,
                    exam_title=exam.title,
                    status=submission.status,
                    score=submission.total_score,
                    max_score=submission.max_score,
                    percentage=percent,
                    passed=grading.is_passed(
                        submission.status, percent, effective_pass_score(exam)
                    ),
                    time_spent_seconds=submission.time_spent_seconds,
                    started_at=submission.started_at,
                    submitted_at=submission.submitted_at,
                )
            )
        return items

    async def get_exam_submissions(
        self, exam_id: int, account: Account
    ) -> list[ExamSubmission]:
        """某份试卷的全部答卷（创建者或管理员）"""
        await self.exam_service.get_manageable_exam(exam_id, account)
        stmt = (
            select(ExamSubmission)
            .where(ExamSubmission.exam_id == exam_id)
            .order_by(ExamSubmission.started_at.desc(), ExamSubmission.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

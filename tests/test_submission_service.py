"""答卷生命周期测试"""

from datetime import timedelta

import pytest
from conftest import make_account, make_exam, make_question
from sqlalchemy import select

from englishhub.app.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from englishhub.app.models.account import AccountRole
from englishhub.app.models.exam import GradingMethod
from englishhub.app.models.notification import Notification
from englishhub.app.models.question import QuestionType
from englishhub.app.models.submission import SubmissionAnswer, SubmissionStatus
from englishhub.app.schemas.submission import AnswerGrade, GradeRequest, SubmitRequest
from englishhub.app.services.submission_service import SubmissionService


@pytest.fixture
def service(session):
    return SubmissionService(session)


async def _setup(session, correct_answers=("A", "B"), **exam_kwargs):
    teacher = await make_account(session, AccountRole.TEACHER)
    learner = await make_account(session, AccountRole.LEARNER)
    questions = [
        await make_question(session, teacher, correct_answer=answer)
        for answer in correct_answers
    ]
    exam = await make_exam(session, teacher, questions, **exam_kwargs)
    return teacher, learner, questions, exam


class TestStart:
    """开始作答"""

    @pytest.mark.asyncio
    async def test_start_creates_in_progress_submission(self, session, service):
        _, learner, _, exam = await _setup(session)

        submission = await service.start(exam.id, learner)

        assert submission.status == SubmissionStatus.IN_PROGRESS
        assert submission.submitted_at is None
        assert submission.learner_id == learner.id

    @pytest.mark.asyncio
    async def test_starting_twice_returns_same_attempt(self, session, service):
        _, learner, _, exam = await _setup(session)

        first = await service.start(exam.id, learner)
        second = await service.start(exam.id, learner)

        assert first.id == second.id

    @pytest.mark.asyncio
    async def test_unpublished_exam_cannot_be_started(self, session, service):
        _, learner, _, exam = await _setup(session, published=False)

        with pytest.raises(PermissionDeniedError):
            await service.start(exam.id, learner)

    @pytest.mark.asyncio
    async def test_unknown_exam(self, session, service):
        learner = await make_account(session, AccountRole.LEARNER)

        with pytest.raises(NotFoundError):
            await service.start(9999, learner)

    @pytest.mark.asyncio
    async def test_new_attempt_allowed_after_submit(self, session, service):
        _, learner, _, exam = await _setup(session)
        first = await service.start(exam.id, learner)
        await service.submit(first.id, learner)

        second = await service.start(exam.id, learner)

        assert second.id != first.id
        assert second.status == SubmissionStatus.IN_PROGRESS


class TestRecordAnswer:
    """保存作答"""

    @pytest.mark.asyncio
    async def test_answer_is_upserted(self, session, service):
        _, learner, questions, exam = await _setup(session)
        submission = await service.start(exam.id, learner)

        await service.record_answer(submission.id, learner, questions[0].id, "B")
        await service.record_answer(submission.id, learner, questions[0].id, "A")

        result = await session.execute(
            select(SubmissionAnswer).where(
                SubmissionAnswer.submission_id == submission.id
            )
        )
        answers = result.scalars().all()
        assert len(answers) == 1
        assert answers[0].answer_text == "A"
        assert answers[0].score is None

    @pytest.mark.asyncio
    async def test_question_outside_exam_is_rejected(self, session, service):
        teacher, learner, _, exam = await _setup(session)
        other = await make_question(session, teacher)
        submission = await service.start(exam.id, learner)

        with pytest.raises(ValueError):
            await service.record_answer(submission.id, learner, other.id, "A")

    @pytest.mark.asyncio
    async def test_recording_after_submit_is_rejected(self, session, service):
        _, learner, questions, exam = await _setup(session)
        submission = await service.start(exam.id, learner)
        await service.submit(submission.id, learner)

        with pytest.raises(ConflictError):
            await service.record_answer(submission.id, learner, questions[0].id, "A")

    @pytest.mark.asyncio
    async def test_other_learner_cannot_answer(self, session, service):
        _, learner, questions, exam = await _setup(session)
        intruder = await make_account(session, AccountRole.LEARNER)
        submission = await service.start(exam.id, learner)

        with pytest.raises(PermissionDeniedError):
            await service.record_answer(submission.id, intruder, questions[0].id, "A")

    @pytest.mark.asyncio
    async def test_time_limit_blocks_answers_but_not_submit(self, session, service):
        _, learner, questions, exam = await _setup(session, duration_minutes=30)
        submission = await service.start(exam.id, learner)
        submission.started_at = submission.started_at - timedelta(minutes=31)
        await session.flush()

        with pytest.raises(ConflictError):
            await service.record_answer(submission.id, learner, questions[0].id, "A")

        submitted = await service.submit(submission.id, learner)
        assert submitted.status == SubmissionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_answers_sent_with_late_submit_are_ignored(self, session, service):
        _, learner, questions, exam = await _setup(
            session, correct_answers=("A",), duration_minutes=30
        )
        submission = await service.start(exam.id, learner)
        submission.started_at = submission.started_at - timedelta(minutes=90)
        await session.flush()

        submitted = await service.submit(
            submission.id, learner, SubmitRequest(answers={questions[0].id: "A"})
        )
        result = await service.get_result(submission.id, learner)

        assert submitted.status == SubmissionStatus.COMPLETED
        assert submitted.total_score == 0
        assert result.passed is False
        assert result.answers[0].user_answer is None
        assert result.answers[0].is_correct is False

    @pytest.mark.asyncio
    async def test_late_submit_keeps_answers_saved_in_time(self, session, service):
        _, learner, questions, exam = await _setup(session, duration_minutes=30)
        submission = await service.start(exam.id, learner)
        await service.record_answer(submission.id, learner, questions[0].id, "A")
        submission.started_at = submission.started_at - timedelta(minutes=31)
        await session.flush()

        submitted = await service.submit(
            submission.id, learner, SubmitRequest(answers={questions[1].id: "B"})
        )
        result = await service.get_result(submission.id, learner)

        assert submitted.total_score == 1
        assert result.answers[0].user_answer == "A"
        assert result.answers[1].user_answer is None

    @pytest.mark.asyncio
    async def test_stored_timestamps_stay_naive(self, session, service):
        _, learner, _, exam = await _setup(session)
        submission = await service.start(exam.id, learner)
        await session.refresh(submission)

        assert submission.started_at.tzinfo is None
        assert service.expires_at(submission, exam).tzinfo is None


class TestSubmit:
    """交卷判分"""

    @pytest.mark.asyncio
    async def test_all_correct_auto_exam_scores_100(self, session, service):
        _, learner, questions, exam = await _setup(session, correct_answers=("A", "B", "D"))
        submission = await service.start(exam.id, learner)

        await service.submit(
            submission.id,
            learner,
            SubmitRequest(answers={q.id: q.correct_answer for q in questions}),
        )
        result = await service.get_result(submission.id, learner)

        assert result.status == SubmissionStatus.COMPLETED
        assert result.percentage == 100
        assert result.passed is True

    @pytest.mark.asyncio
    async def test_half_correct_is_below_default_threshold(self, session, service):
        _, learner, questions, exam = await _setup(session, correct_answers=("A", "B"))
        submission = await service.start(exam.id, learner)

        await service.submit(
            submission.id,
            learner,
            SubmitRequest(answers={questions[0].id: "A", questions[1].id: "C"}),
        )
        result = await service.get_result(submission.id, learner)

        assert result.score == 1
        assert result.max_score == 2
        assert result.percentage == 50
        assert result.pass_score == 60
        assert result.passed is False
        assert result.correct_answers + result.wrong_answers == result.total_questions

    @pytest.mark.asyncio
    async def test_exam_pass_score_overrides_default(self, session, service):
        _, learner, questions, exam = await _setup(session, pass_score=50)
        submission = await service.start(exam.id, learner)

        await service.submit(
            submission.id,
            learner,
            SubmitRequest(answers={questions[0].id: "a", questions[1].id: "x"}),
        )
        result = await service.get_result(submission.id, learner)

        assert result.pass_score == 50
        assert result.passed is True

    @pytest.mark.asyncio
    async def test_unanswered_questions_count_as_wrong(self, session, service):
        _, learner, questions, exam = await _setup(session)
        submission = await service.start(exam.id, learner)
        await service.record_answer(submission.id, learner, questions[0].id, "A")

        submitted = await service.submit(submission.id, learner)
        result = await service.get_result(submission.id, learner)

        assert submitted.total_score == 1
        assert result.total_questions == 2
        assert result.wrong_answers == 1
        assert result.answers[1].user_answer is None
        assert result.answers[1].is_correct is False

    @pytest.mark.asyncio
    async def test_second_submit_is_conflict(self, session, service):
        _, learner, _, exam = await _setup(session)
        submission = await service.start(exam.id, learner)
        await service.submit(submission.id, learner)

        with pytest.raises(ConflictError):
            await service.submit(submission.id, learner)

    @pytest.mark.asyncio
    async def test_client_time_spent_is_kept(self, session, service):
        _, learner, _, exam = await _setup(session)
        submission = await service.start(exam.id, learner)

        submitted = await service.submit(
            submission.id, learner, SubmitRequest(time_spent_seconds=754)
        )

        assert submitted.time_spent_seconds == 754
        assert submitted.submitted_at is not None


class TestConcurrentSubmit:
    """并发交卷只有一个成功"""

    @pytest.mark.asyncio
    async def test_stale_session_loses_the_race(self, session_factory):
        async with session_factory() as setup_session:
            _, learner, questions, exam = await _setup(setup_session)
            submission = await SubmissionService(setup_session).start(exam.id, learner)
            await setup_session.commit()

        async with session_factory() as first, session_factory() as second:
            first_service = SubmissionService(first)
            second_service = SubmissionService(second)
            # 两个会话都在交卷前读到了作答中的答卷
            await first_service.get_own_submission(submission.id, learner)
            await second_service.get_own_submission(submission.id, learner)

            await first_service.submit(submission.id, learner)
            await first.commit()

            with pytest.raises(ConflictError):
                await second_service.submit(submission.id, learner)
            await second.rollback()


class TestManualGrading:
    """主观题与教师批改"""

    async def _hybrid_setup(self, session, grading_method=GradingMethod.HYBRID):
        teacher = await make_account(session, AccountRole.TEACHER)
        learner = await make_account(session, AccountRole.LEARNER)
        choice = await make_question(session, teacher, correct_answer="A")
        essay = await make_question(
            session, teacher, type=QuestionType.ESSAY, correct_answer=None, points=4
        )
        exam = await make_exam(
            session, teacher, [choice, essay], grading_method=grading_method
        )
        return teacher, learner, choice, essay, exam

    @pytest.mark.asyncio
    async def test_hybrid_with_essay_goes_to_grading(self, session, service):
        teacher, learner, choice, essay, exam = await self._hybrid_setup(session)
        submission = await service.start(exam.id, learner)

        submitted = await service.submit(
            submission.id,
            learner,
            SubmitRequest(answers={choice.id: "A", essay.id: "My holiday was great."}),
        )
        result = await service.get_result(submission.id, learner)

        assert submitted.status == SubmissionStatus.GRADING
        assert result.pending_answers == 1
        assert result.passed is None
        assert result.correct_answers + result.wrong_answers + result.pending_answers == 2

        notifications = await session.execute(
            select(Notification).where(Notification.account_id == teacher.id)
        )
        assert len(notifications.scalars().all()) == 1

    @pytest.mark.asyncio
    async def test_grading_essay_completes_submission(self, session, service):
        teacher, learner, choice, essay, exam = await self._hybrid_setup(session)
        submission = await service.start(exam.id, learner)
        await service.submit(
            submission.id,
            learner,
            SubmitRequest(answers={choice.id: "A", essay.id: "Essay"}),
        )

        graded = await service.grade(
            submission.id,
            teacher,
            GradeRequest(
                grades=[AnswerGrade(question_id=essay.id, score=3, feedback="Good")],
                general_feedback="Keep practising",
            ),
        )
        result = await service.get_result(submission.id, learner)

        assert graded.status == SubmissionStatus.COMPLETED
        assert result.score == 4
        assert result.max_score == 5
        assert result.percentage == 80
        assert result.passed is True
        assert result.pending_answers == 0
        assert result.teacher_general_feedback == "Keep practising"
        essay_result = next(a for a in result.answers if a.question_id == essay.id)
        assert essay_result.teacher_feedback == "Good"
        assert essay_result.is_correct is False

    @pytest.mark.asyncio
    async def test_score_above_points_is_rejected(self, session, service):
        teacher, learner, choice, essay, exam = await self._hybrid_setup(session)
        submission = await service.start(exam.id, learner)
        await service.submit(submission.id, learner)

        with pytest.raises(ValueError):
            await service.grade(
                submission.id,
                teacher,
                GradeRequest(grades=[AnswerGrade(question_id=essay.id, score=5)]),
            )

    @pytest.mark.asyncio
    async def test_only_exam_creator_or_admin_grades(self, session, service):
        _, learner, _, essay, exam = await self._hybrid_setup(session)
        other_teacher = await make_account(session, AccountRole.TEACHER)
        admin = await make_account(session, AccountRole.ADMIN)
        submission = await service.start(exam.id, learner)
        await service.submit(submission.id, learner)
        request = GradeRequest(grades=[AnswerGrade(question_id=essay.id, score=4)])

        with pytest.raises(PermissionDeniedError):
            await service.grade(submission.id, other_teacher, request)

        graded = await service.grade(submission.id, admin, request)
        assert graded.status == SubmissionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_manual_exam_waits_for_teacher_confirmation(self, session, service):
        teacher, learner, choice, _, exam = await self._hybrid_setup(
            session, grading_method=GradingMethod.MANUAL
        )
        essayless = await make_exam(
            session, teacher, [choice], grading_method=GradingMethod.MANUAL
        )
        submission = await service.start(essayless.id, learner)

        submitted = await service.submit(
            submission.id, learner, SubmitRequest(answers={choice.id: "A"})
        )
        assert submitted.status == SubmissionStatus.GRADING
        assert submitted.total_score == 1

        confirmed = await service.grade(submission.id, teacher, GradeRequest())
        assert confirmed.status == SubmissionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_in_progress_submission_cannot_be_graded(self, session, service):
        teacher, learner, _, _, exam = await self._hybrid_setup(session)
        submission = await service.start(exam.id, learner)

        with pytest.raises(ConflictError):
            await service.grade(submission.id, teacher, GradeRequest())


class TestResultAccess:
    """成绩查看权限"""

    @pytest.mark.asyncio
    async def test_result_hidden_before_submit(self, session, service):
        _, learner, _, exam = await _setup(session)
        submission = await service.start(exam.id, learner)

        with pytest.raises(ConflictError):
            await service.get_result(submission.id, learner)

        view = await service.get_submission_view(submission.id, learner)
        assert view.status == SubmissionStatus.IN_PROGRESS
        assert not hasattr(view, "correct_answers")

    @pytest.mark.asyncio
    async def test_other_learner_cannot_read_result(self, session, service):
        _, learner, _, exam = await _setup(session)
        intruder = await make_account(session, AccountRole.LEARNER)
        submission = await service.start(exam.id, learner)
        await service.submit(submission.id, learner)

        with pytest.raises(PermissionDeniedError):
            await service.get_result(submission.id, intruder)

    @pytest.mark.asyncio
    async def test_my_submissions_newest_first(self, session, service):
        _, learner, questions, exam = await _setup(session)
        first = await service.start(exam.id, learner)
        await service.submit(
            first.id, learner, SubmitRequest(answers={q.id: "A" for q in questions})
        )
        first.started_at = first.started_at - timedelta(hours=1)
        await session.flush()
        second = await service.start(exam.id, learner)

        items = await service.get_learner_submissions(learner.id)

        assert [item.id for item in items] == [second.id, first.id]
        assert items[1].percentage == 50
        assert items[1].passed is False
        assert items[0].passed is None

"""
学习进度服务

学员逐课时记录学习情况，选课记录上的 progress_percent 由已完成课时数
重新计算：完成课时数 * 100 // 课程课时总数，全部完成时选课状态为 completed。
课程增删课时后，该课程所有选课记录的进度一并重算。
"""

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from englishhub.app.core.exceptions import NotFoundError, PermissionDeniedError
from englishhub.app.core.utils import utc_now_naive
from englishhub.app.models.account import Account
from englishhub.app.models.course import (
    Enrollment,
    EnrollmentStatus,
    Lesson,
    LessonProgress,
)
from englishhub.app.schemas.course import CourseProgress, LessonProgressResponse

logger = logging.getLogger(__name__)


class ProgressService:
    """学习进度服务类"""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _get_enrollment(self, learner_id: int, course_id: int) -> Enrollment:
        stmt = select(Enrollment).where(
            Enrollment.learner_id == learner_id,
            Enrollment.course_id == course_id,
        )
        result = await self.session.execute(stmt)
        enrollment = result.scalar_one_or_none()
        if not enrollment:
            raise PermissionDeniedError("Bạn chưa đăng ký khóa học này")
        return enrollment

    async def _progress_rows(self, enrollment_id: int) -> list[LessonProgress]:
        stmt = (
            select(LessonProgress)
            .where(LessonProgress.enrollment_id == enrollment_id)
            .order_by(LessonProgress.lesson_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def recalculate(self, enrollment: Enrollment) -> tuple[int, int]:
        """重算一条选课记录的进度，返回 (已完成课时数, 课时总数)"""
        total_stmt = (
            select(func.count())
            .select_from(Lesson)
            .where(Lesson.course_id == enrollment.course_id)
        )
        total = (await self.session.execute(total_stmt)).scalar() or 0

        completed_stmt = (
            select(func.count())
            .select_from(LessonProgress)
            .join(Lesson, Lesson.id == LessonProgress.lesson_id)
            .where(
                LessonProgress.enrollment_id == enrollment.id,
                LessonProgress.is_completed.is_(True),
                Lesson.course_id == enrollment.course_id,
            )
        )
        completed = (await self.session.execute(completed_stmt)).scalar() or 0

        enrollment.progress_percent = completed * 100 // total if total else 0
        if enrollment.status != EnrollmentStatus.DROPPED:
            enrollment.status = (
                EnrollmentStatus.COMPLETED
                if total and completed == total
                else EnrollmentStatus.ACTIVE
            )
        await self.session.flush()
        return completed, total

    async def recalculate_course(self, course_id: int) -> int:
        """课时变化后重算整门课程的选课进度，返回重算条数"""
        result = await self.session.execute(
            select(Enrollment).where(Enrollment.course_id == course_id)
        )
        enrollments = list(result.scalars().all())
        for enrollment in enrollments:
            await self.recalculate(enrollment)
        return len(enrollments)

    async def delete_for_lesson(self, lesson_id: int) -> None:
        await self.session.execute(
            delete(LessonProgress).where(LessonProgress.lesson_id == lesson_id)
        )

    async def delete_for_enrollments(self, enrollment_ids) -> None:
        """删除一批选课记录下的学习记录（enrollment_ids 可以是子查询）"""
        await self.session.execute(
            delete(LessonProgress).where(LessonProgress.enrollment_id.in_(enrollment_ids))
        )

    async def record_lesson(
        self, learner: Account, lesson_id: int, is_completed: bool = True
    ) -> CourseProgress:
        """记录一次课时学习；同一课时重复提交时更新原记录"""
        lesson = await self.session.get(Lesson, lesson_id)
        if not lesson:
            raise NotFoundError("Không tìm thấy bài học")
        enrollment = await self._get_enrollment(learner.id, lesson.course_id)

        stmt = select(LessonProgress).where(
            LessonProgress.enrollment_id == enrollment.id,
            LessonProgress.lesson_id == lesson_id,
        )
        result = await self.session.execute(stmt)
        progress = result.scalar_one_or_none()

        now = utc_now_naive()
        if progress is None:
            progress = LessonProgress(enrollment_id=enrollment.id, lesson_id=lesson_id)
            self.session.add(progress)

        if is_completed and not progress.is_completed:
            progress.completed_at = now
        elif not is_completed:
            progress.completed_at = None
        progress.is_completed = is_completed
        progress.last_viewed_at = now
        await self.session.flush()

        previous_status = enrollment.status
        await self.recalculate(enrollment)
        if (
            previous_status != EnrollmentStatus.COMPLETED
            and enrollment.status == EnrollmentStatus.COMPLETED
        ):
            logger.info(f"学员 {learner.id} 完成课程 {enrollment.course_id}")

        return await self.build_progress(enrollment)

    async def get_course_progress(
        self, learner: Account, course_id: int
    ) -> CourseProgress:
        enrollment = await self._get_enrollment(learner.id, course_id)
        return await self.build_progress(enrollment)

    async def build_progress(self, enrollment: Enrollment) -> CourseProgress:
        completed, total = await self.recalculate(enrollment)
        rows = await self._progress_rows(enrollment.id)
        return CourseProgress(
            course_id=enrollment.course_id,
            enrollment_id=enrollment.id,
            completed_lessons=completed,
            total_lessons=total,
            progress_percent=enrollment.progress_percent,
            status=enrollment.status,
            lessons=[LessonProgressResponse.model_validate(row) for row in rows],
        )

"""课程服务：课程、课时、选课与审核"""

import logging
from decimal import Decimal

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from englishhub.app.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from englishhub.app.core.utils import utc_now_naive
from englishhub.app.models.account import Account, AccountRole
from englishhub.app.models.base import ApprovalStatus
from englishhub.app.models.course import (
    EFFECTIVE_STATUS_FILTERS,
    Course,
    CourseLevel,
    Enrollment,
    Lesson,
)
from englishhub.app.models.course_review import CourseReview
from englishhub.app.models.notification import NotificationCategory, NotificationType
from englishhub.app.schemas.course import (
    AdminCourseCreate,
    CourseCreate,
    CourseDeleteResult,
    CourseDetail,
    CourseResponse,
    CourseUpdate,
    LessonCreate,
    LessonResponse,
    LessonUpdate,
)
from englishhub.app.services.notification_service import NotificationService
from englishhub.app.services.progress_service import ProgressService
from englishhub.app.services.review import ensure_transition, rejection_reason_or_default

logger = logging.getLogger(__name__)

# 允许修改的课程字段
COURSE_UPDATABLE_FIELDS = (
    "title",
    "description",
    "price",
    "level",
    "category",
    "thumbnail_url",
)


class CourseService:
    """课程服务类"""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ==================== 课程 ====================

    async def create_course(
        self, data: CourseCreate | AdminCourseCreate, account: Account
    ) -> Course:
        """创建课程：教师创建为草稿，管理员创建直接上架"""
        is_admin = account.role == AccountRole.ADMIN
        if is_admin:
            teacher_id = getattr(data, "teacher_id", None)
            if teacher_id is not None:
                await self._ensure_teacher(teacher_id)
        else:
            teacher_id = account.id

        course = Course(
            teacher_id=teacher_id,
            created_by=account.id,
            title=data.title,
            description=data.description,
            thumbnail_url=data.thumbnail_url,
            price=Decimal(str(data.price)),
            level=data.level,
            category=data.category,
            approval_status=(
                ApprovalStatus.APPROVED if is_admin else ApprovalStatus.DRAFT
            ),
        )
        self.session.add(course)
        await self.session.flush()
        await self.session.refresh(course)
        logger.info(
            f"课程创建: id={course.id} by {account.email} "
            f"({course.approval_status.value})"
        )
        return course

    async def _ensure_teacher(self, teacher_id: int) -> Account:
        stmt = select(Account).where(
            Account.id == teacher_id, Account.role == AccountRole.TEACHER
        )
        result = await self.session.execute(stmt)
        teacher = result.scalar_one_or_none()
        if not teacher:
            raise ValueError("Giáo viên không tồn tại")
        return teacher

    async def get_course_by_id(self, course_id: int) -> Course | None:
        """根据 ID 获取课程"""
        stmt = select(Course).where(Course.id == course_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_course_or_404(self, course_id: int) -> Course:
        course = await self.get_course_by_id(course_id)
        if not course:
            raise NotFoundError("Không tìm thấy khóa học")
        return course

    @staticmethod
    def can_manage(course: Course, account: Account | None) -> bool:
        """课程所有者或管理员"""
        if account is None:
            return False
        return account.role == AccountRole.ADMIN or course.teacher_id == account.id

    async def get_manageable_course(self, course_id: int, account: Account) -> Course:
        course = await self.get_course_or_404(course_id)
        if not self.can_manage(course, account):
            raise PermissionDeniedError("Bạn không có quyền quản lý khóa học này")
        return course

    async def list_courses(
        self,
        *,
        is_free: bool | None = None,
        level: CourseLevel | None = None,
        category: str | None = None,
        is_published: str = "true",
        teacher_id: int | None = None,
        page: int = 1,
        limit: int = 12,
    ) -> tuple[list[Course], int]:
        """
        课程列表

        Args:
            is_free: True 只看免费课程，False 只看付费课程
            is_published: "true" / "false" / "all"
            teacher_id: 只看某位教师的课程
        """
        conditions = []
        if is_free is True:
            conditions.append(Course.price == 0)
        elif is_free is False:
            conditions.append(Course.price > 0)
        if level:
            conditions.append(Course.level == level)
        if category:
            conditions.append(Course.category == category)
        if is_published == "true":
            conditions.append(Course.approval_status == ApprovalStatus.APPROVED)
        elif is_published == "false":
            conditions.append(Course.approval_status != ApprovalStatus.APPROVED)
        if teacher_id is not None:
            conditions.append(Course.teacher_id == teacher_id)

        return await self._paginate(conditions, page, limit)

    async def list_courses_admin(
        self,
        *,
        status: str | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Course], int]:
        """管理后台课程列表，按展示状态筛选"""
        conditions = []
        if status:
            approval = EFFECTIVE_STATUS_FILTERS.get(status)
            if approval is None:
                raise ValueError(f"Trạng thái lọc không hợp lệ: {status}")
            conditions.append(Course.approval_status == approval)
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(Course.title.ilike(pattern), Course.description.ilike(pattern))
            )
        return await self._paginate(conditions, page, limit)

    async def _paginate(
        self, conditions: list, page: int, limit: int
    ) -> tuple[list[Course], int]:
        count_stmt = select(func.count()).select_from(Course).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar() or 0

        stmt = (
            select(Course)
            .where(*conditions)
            .order_by(Course.created_at.desc(), Course.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def get_course_stats(self) -> dict[str, int]:
        """全局课程统计（不受筛选影响）"""
        stmt = select(Course.approval_status, func.count()).group_by(
            Course.approval_status
        )
        result = await self.session.execute(stmt)
        counts = {approval: count for approval, count in result.all()}
        return {
            "total": sum(counts.values()),
            "pending": counts.get(ApprovalStatus.PENDING_REVIEW, 0),
            "published": counts.get(ApprovalStatus.APPROVED, 0),
            "draft": counts.get(ApprovalStatus.DRAFT, 0),
            "rejected": counts.get(ApprovalStatus.REJECTED, 0),
        }

    async def get_course_detail(
        self, course_id: int, viewer: Account | None = None
    ) -> CourseDetail:
        """课程详情；未上架课程只对所有者和管理员可见"""
        course = await self.get_course_or_404(course_id)
        if not course.is_published and not self.can_manage(course, viewer):
            raise NotFoundError("Không tìm thấy khóa học")

        teacher_name = None
        if course.teacher_id is not None:
            teacher = await self.session.get(Account, course.teacher_id)
            teacher_name = teacher.full_name if teacher else None

        lessons = await self.list_lessons(course_id)
        enrollment_count = await self.count_enrollments(course_id)

        return CourseDetail(
            **CourseResponse.model_validate(course).model_dump(),
            teacher_name=teacher_name,
            lessons=[LessonResponse.model_validate(lesson) for lesson in lessons],
            total_lessons=len(lessons),
            total_duration_minutes=sum(lesson.duration_minutes for lesson in lessons),
            enrollment_count=enrollment_count,
        )

    async def update_course(
        self, course_id: int, data: CourseUpdate, account: Account
    ) -> Course:
        """更新课程，只允许修改展示字段"""
        course = await self.get_manageable_course(course_id, account)

        update_data = data.model_dump(exclude_unset=True)
        for field in COURSE_UPDATABLE_FIELDS:
            if field not in update_data:
                continue
            value = update_data[field]
            if field == "title" and value is None:
                continue
            if field == "price":
                if value is None:
                    continue
                value = Decimal(str(value))
            setattr(course, field, value)

        course.updated_at = utc_now_naive()
        await self.session.flush()
        await self.session.refresh(course)
        return course

    async def delete_course(
        self, course_id: int, account: Account, force: bool = False
    ) -> CourseDeleteResult:
        """
        删除课程

        有学员选课且未确认时不删除，返回 require_confirmation；
        force=True 时连同课时、选课、学习记录与课程评价一并删除。
        """
        course = await self.get_manageable_course(course_id, account)
        enrollment_count = await self.count_enrollments(course_id)

        if enrollment_count > 0 and not force:
            return CourseDeleteResult(
                deleted=False,
                require_confirmation=True,
                enrollment_count=enrollment_count,
                message=(
                    f"Khóa học có {enrollment_count} học viên đã đăng ký. "
                    "Xác nhận để xóa cả dữ liệu đăng ký."
                ),
            )

        await ProgressService(self.session).delete_for_enrollments(
            select(Enrollment.id).where(Enrollment.course_id == course_id)
        )
        await self.session.execute(
            delete(CourseReview).where(CourseReview.course_id == course_id)
        )
        await self.session.execute(delete(Lesson).where(Lesson.course_id == course_id))
        await self.session.execute(
            delete(Enrollment).where(Enrollment.course_id == course_id)
        )
        await self.session.delete(course)
        await self.session.flush()

        logger.info(
            f"课程已删除: id={course_id} by {account.email}, "
            f"连带选课 {enrollment_count} 条"
        )
        return CourseDeleteResult(
            deleted=True,
            enrollment_count=enrollment_count,
            message="Đã xóa khóa học",
        )

    # ==================== 审核 ====================

    async def submit_for_review(self, course_id: int, account: Account) -> Course:
        """教师提交审核（草稿或被驳回的课程，至少一节课时）"""
        course = await self.get_course_or_404(course_id)
        if course.teacher_id != account.id:
            raise PermissionDeniedError("Chỉ giáo viên sở hữu mới được gửi duyệt")

        ensure_transition(course.approval_status, ApprovalStatus.PENDING_REVIEW)
        if await self._count_lessons(course_id) == 0:
            raise ValueError("Khóa học cần ít nhất 1 bài học trước khi gửi duyệt")

        course.approval_status = ApprovalStatus.PENDING_REVIEW
        course.updated_at = utc_now_naive()
        await self.session.flush()

        await NotificationService(self.session).notify_admins(
            "Khóa học chờ duyệt",
            f"Khóa học \"{course.title}\" vừa được gửi duyệt",
            category=NotificationCategory.COURSE_REVIEW,
            sender_id=account.id,
            related_id=course.id,
            related_type="course",
        )
        logger.info(f"课程提交审核: id={course.id} by {account.email}")
        await self.session.refresh(course)
        return course

    async def approve_course(self, course_id: int, admin: Account) -> Course:
        course = await self.get_course_or_404(course_id)
        ensure_transition(course.approval_status, ApprovalStatus.APPROVED)

        course.approval_status = ApprovalStatus.APPROVED
        course.rejection_reason = None
        course.updated_at = utc_now_naive()
        await self.session.flush()

        if course.teacher_id is not None:
            await NotificationService(self.session).notify(
                course.teacher_id,
                "Khóa học đã được duyệt",
                f"Khóa học \"{course.title}\" đã được duyệt và xuất bản",
                type=NotificationType.SUCCESS,
                category=NotificationCategory.COURSE_REVIEW,
                sender_id=admin.id,
                related_id=course.id,
                related_type="course",
            )
        logger.info(f"课程审核通过: id={course.id} by {admin.email}")
        await self.session.refresh(course)
        return course

    async def reject_course(
        self, course_id: int, admin: Account, reason: str | None = None
    ) -> Course:
        course = await self.get_course_or_404(course_id)
        ensure_transition(course.approval_status, ApprovalStatus.REJECTED)

        course.approval_status = ApprovalStatus.REJECTED
        course.rejection_reason = rejection_reason_or_default(reason)
        course.updated_at = utc_now_naive()
        await self.session.flush()

        if course.teacher_id is not None:
            await NotificationService(self.session).notify(
                course.teacher_id,
                "Khóa học bị từ chối",
                f"Khóa học \"{course.title}\" bị từ chối: {course.rejection_reason}",
                type=NotificationType.WARNING,
                category=NotificationCategory.COURSE_REVIEW,
                sender_id=admin.id,
                related_id=course.id,
                related_type="course",
            )
        logger.info(
            f"课程审核驳回: id={course.id} by {admin.email}, "
            f"原因: {course.rejection_reason}"
        )
        await self.session.refresh(course)
        return course

    # ==================== 课时 ====================

    async def list_lessons(self, course_id: int) -> list[Lesson]:
        """课时按 order_index, id 排序"""
        stmt = (
            select(Lesson)
            .where(Lesson.course_id == course_id)
            .order_by(Lesson.order_index, Lesson.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def _count_lessons(self, course_id: int) -> int:
        stmt = (
            select(func.count()).select_from(Lesson).where(Lesson.course_id == course_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def add_lesson(
        self, course_id: int, data: LessonCreate, account: Account
    ) -> Lesson:
        """新增课时；未指定顺序时排在最后"""
        await self.get_manageable_course(course_id, account)

        order_index = data.order_index
        if order_index is None:
            stmt = select(func.max(Lesson.order_index)).where(
                Lesson.course_id == course_id
            )
            current_max = (await self.session.execute(stmt)).scalar()
            order_index = 0 if current_max is None else current_max + 1

        lesson = Lesson(
            course_id=course_id,
            title=data.title,
            description=data.description,
            content_type=data.content_type,
            content_url=data.content_url,
            duration_minutes=data.duration_minutes,
            order_index=order_index,
            is_free=data.is_free,
        )
        self.session.add(lesson)
        await self.session.flush()
        await self.session.refresh(lesson)
        await ProgressService(self.session).recalculate_course(course_id)
        return lesson

    async def _get_lesson(self, course_id: int, lesson_id: int) -> Lesson:
        stmt = select(Lesson).where(
            Lesson.id == lesson_id, Lesson.course_id == course_id
        )
        result = await self.session.execute(stmt)
        lesson = result.scalar_one_or_none()
        if not lesson:
            raise NotFoundError("Không tìm thấy bài học")
        return lesson

    async def update_lesson(
        self, course_id: int, lesson_id: int, data: LessonUpdate, account: Account
    ) -> Lesson:
        await self.get_manageable_course(course_id, account)
        lesson = await self._get_lesson(course_id, lesson_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field in ("title", "content_type", "is_free"):
                continue
            setattr(lesson, field, value)

        await self.session.flush()
        await self.session.refresh(lesson)
        return lesson

    async def delete_lesson(
        self, course_id: int, lesson_id: int, account: Account
    ) -> None:
        await self.get_manageable_course(course_id, account)
        lesson = await self._get_lesson(course_id, lesson_id)
        progress_service = ProgressService(self.session)
        await progress_service.delete_for_lesson(lesson_id)
        await self.session.delete(lesson)
        await self.session.flush()
        await progress_service.recalculate_course(course_id)

    # ==================== 选课 ====================

    async def count_enrollments(self, course_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(Enrollment)
            .where(Enrollment.course_id == course_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def enroll(self, learner: Account, course_id: int) -> Enrollment:
        """学员选课：只能选已上架课程，且只能选一次"""
        course = await self.get_course_or_404(course_id)
        if not course.is_published:
            raise ValueError("Khóa học chưa được xuất bản")

        stmt = select(Enrollment).where(
            Enrollment.learner_id == learner.id,
            Enrollment.course_id == course_id,
        )
        result = await self.session.execute(stmt)
        if result.scalar_one_or_none():
            raise ConflictError("Bạn đã đăng ký khóa học này")

        enrollment = Enrollment(learner_id=learner.id, course_id=course_id)
        self.session.add(enrollment)
        try:
            await self.session.flush()
        except IntegrityError:
            raise ConflictError("Bạn đã đăng ký khóa học này")
        await self.session.refresh(enrollment)

        if course.teacher_id is not None:
            await NotificationService(self.session).notify(
                course.teacher_id,
                "Học viên mới",
                f"{learner.full_name} đã đăng ký khóa học \"{course.title}\"",
                category=NotificationCategory.ENROLLMENT,
                sender_id=learner.id,
                related_id=course.id,
                related_type="course",
            )
        return enrollment

    async def get_learner_enrollments(
        self, learner_id: int
    ) -> list[tuple[Enrollment, Course]]:
        """学员的选课记录（最近选的在前）"""
        stmt = (
            select(Enrollment, Course)
            .join(Course, Course.id == Enrollment.course_id)
            .where(Enrollment.learner_id == learner_id)
            .order_by(Enrollment.enrolled_at.desc(), Enrollment.id.desc())
        )
        result = await self.session.execute(stmt)
        return [(enrollment, course) for enrollment, course in result.all()]

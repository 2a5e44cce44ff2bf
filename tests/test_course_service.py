"""课程服务测试：上架状态、审核流转、删除确认与筛选"""

from decimal import Decimal

import pytest
from conftest import make_account
from sqlalchemy import func, select

from englishhub.app.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from englishhub.app.models.account import AccountRole
from englishhub.app.models.base import ApprovalStatus
from englishhub.app.models.course import Course, Enrollment, Lesson
from englishhub.app.models.notification import Notification, NotificationCategory
from englishhub.app.schemas.course import (
    AdminCourseCreate,
    CourseCreate,
    CourseResponse,
    CourseUpdate,
    LessonCreate,
)
from englishhub.app.services.course_service import CourseService


@pytest.fixture
def service(session):
    return CourseService(session)


async def _draft_course(service, teacher, **kwargs) -> Course:
    data = {"title": "IELTS Writing Task 2", "price": 0, **kwargs}
    return await service.create_course(CourseCreate(**data), teacher)


class TestEffectiveStatus:
    """展示状态只由审核状态决定"""

    @pytest.mark.parametrize(
        "approval, effective, label",
        [
            (ApprovalStatus.APPROVED, "published", "Đã duyệt"),
            (ApprovalStatus.PENDING_REVIEW, "pending", "Chờ duyệt"),
            (ApprovalStatus.DRAFT, "draft", "Nháp"),
            (ApprovalStatus.REJECTED, "rejected", "Từ chối"),
        ],
    )
    def test_label_follows_approval_status(self, approval, effective, label):
        course = Course(title="x", approval_status=approval, price=Decimal("10"))

        assert course.effective_status == effective
        assert course.status_label == label
        assert course.is_published is (approval == ApprovalStatus.APPROVED)

    def test_course_type_from_price(self):
        assert Course(title="x", price=Decimal("0")).course_type == "free"
        assert Course(title="x", price=Decimal("199000")).course_type == "paid"


class TestCreateAndList:
    """创建与列表"""

    @pytest.mark.asyncio
    async def test_teacher_course_starts_as_draft(self, session, service):
        teacher = await make_account(session, AccountRole.TEACHER)

        course = await _draft_course(service, teacher)

        assert course.approval_status == ApprovalStatus.DRAFT
        assert course.teacher_id == teacher.id
        assert course.is_published is False

    @pytest.mark.asyncio
    async def test_admin_course_starts_approved(self, session, service):
        admin = await make_account(session, AccountRole.ADMIN)
        teacher = await make_account(session, AccountRole.TEACHER)

        course = await service.create_course(
            AdminCourseCreate(title="TOEIC 750+", price=0, teacher_id=teacher.id), admin
        )

        assert course.approval_status == ApprovalStatus.APPROVED
        assert course.teacher_id == teacher.id
        assert course.created_by == admin.id

    @pytest.mark.asyncio
    async def test_free_course_is_listed_as_free(self, session, service):
        admin = await make_account(session, AccountRole.ADMIN)
        await service.create_course(AdminCourseCreate(title="Free", price=0), admin)
        await service.create_course(AdminCourseCreate(title="Paid", price=99), admin)

        free, free_total = await service.list_courses(is_free=True)
        paid, paid_total = await service.list_courses(is_free=False)

        assert free_total == 1 and paid_total == 1
        assert CourseResponse.model_validate(free[0]).course_type == "free"
        assert paid[0].course_type == "paid"

    @pytest.mark.asyncio
    async def test_public_listing_shows_published_only(self, session, service):
        admin = await make_account(session, AccountRole.ADMIN)
        teacher = await make_account(session, AccountRole.TEACHER)
        await service.create_course(AdminCourseCreate(title="Live", price=0), admin)
        await _draft_course(service, teacher)

        published, total = await service.list_courses()
        everything, all_total = await service.list_courses(is_published="all")

        assert total == 1 and published[0].title == "Live"
        assert all_total == 2

    @pytest.mark.asyncio
    async def test_pagination(self, session, service):
        admin = await make_account(session, AccountRole.ADMIN)
        for i in range(5):
            await service.create_course(AdminCourseCreate(title=f"C{i}", price=0), admin)

        page, total = await service.list_courses(page=2, limit=2)

        assert total == 5
        assert len(page) == 2

    @pytest.mark.asyncio
    async def test_update_only_touches_allowed_fields(self, session, service):
        teacher = await make_account(session, AccountRole.TEACHER)
        course = await _draft_course(service, teacher)

        updated = await service.update_course(
            course.id, CourseUpdate(title="New title", price=150000), teacher
        )

        assert updated.title == "New title"
        assert updated.price == Decimal("150000")
        assert updated.approval_status == ApprovalStatus.DRAFT

    @pytest.mark.asyncio
    async def test_other_teacher_cannot_update(self, session, service):
        owner = await make_account(session, AccountRole.TEACHER)
        other = await make_account(session, AccountRole.TEACHER)
        course = await _draft_course(service, owner)

        with pytest.raises(PermissionDeniedError):
            await service.update_course(course.id, CourseUpdate(title="x"), other)

    @pytest.mark.asyncio
    async def test_draft_detail_hidden_from_public(self, session, service):
        teacher = await make_account(session, AccountRole.TEACHER)
        course = await _draft_course(service, teacher)

        with pytest.raises(NotFoundError):
            await service.get_course_detail(course.id, None)

        detail = await service.get_course_detail(course.id, teacher)
        assert detail.teacher_name == teacher.full_name


class TestLessons:
    """课时"""

    @pytest.mark.asyncio
    async def test_lessons_are_ordered(self, session, service):
        teacher = await make_account(session, AccountRole.TEACHER)
        course = await _draft_course(service, teacher)
        await service.add_lesson(
            course.id, LessonCreate(title="Second", order_index=5), teacher
        )
        await service.add_lesson(
            course.id, LessonCreate(title="First", order_index=1, duration_minutes=10),
            teacher,
        )
        await service.add_lesson(course.id, LessonCreate(title="Last"), teacher)

        lessons = await service.list_lessons(course.id)
        detail = await service.get_course_detail(course.id, teacher)

        assert [lesson.title for lesson in lessons] == ["First", "Second", "Last"]
        assert lessons[-1].order_index == 6
        assert detail.total_lessons == 3
        assert detail.total_duration_minutes == 10


class TestApprovalWorkflow:
    """审核流转"""

    @pytest.mark.asyncio
    async def test_submit_requires_a_lesson(self, session, service):
        teacher = await make_account(session, AccountRole.TEACHER)
        course = await _draft_course(service, teacher)

        with pytest.raises(ValueError):
            await service.submit_for_review(course.id, teacher)

    @pytest.mark.asyncio
    async def test_full_cycle_with_resubmission(self, session, service):
        teacher = await make_account(session, AccountRole.TEACHER)
        admin = await make_account(session, AccountRole.ADMIN)
        course = await _draft_course(service, teacher)
        await service.add_lesson(course.id, LessonCreate(title="Intro"), teacher)

        pending = await service.submit_for_review(course.id, teacher)
        assert pending.approval_status == ApprovalStatus.PENDING_REVIEW

        rejected = await service.reject_course(course.id, admin, None)
        assert rejected.approval_status == ApprovalStatus.REJECTED
        assert rejected.rejection_reason == "Không đạt yêu cầu"

        await service.submit_for_review(course.id, teacher)
        approved = await service.approve_course(course.id, admin)
        assert approved.approval_status == ApprovalStatus.APPROVED
        assert approved.rejection_reason is None
        assert approved.is_published

        result = await session.execute(
            select(Notification).where(
                Notification.account_id == teacher.id,
                Notification.category == NotificationCategory.COURSE_REVIEW,
            )
        )
        assert len(result.scalars().all()) == 2

        admin_notes = await session.execute(
            select(func.count())
            .select_from(Notification)
            .where(Notification.account_id == admin.id)
        )
        assert admin_notes.scalar() == 2

    @pytest.mark.asyncio
    async def test_rejected_course_can_be_approved_directly(self, session, service):
        teacher = await make_account(session, AccountRole.TEACHER)
        admin = await make_account(session, AccountRole.ADMIN)
        course = await _draft_course(service, teacher)
        await service.add_lesson(course.id, LessonCreate(title="Intro"), teacher)
        await service.submit_for_review(course.id, teacher)
        await service.reject_course(course.id, admin, "Thiếu nội dung")

        approved = await service.approve_course(course.id, admin)

        assert approved.approval_status == ApprovalStatus.APPROVED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["approve", "reject"])
    async def test_draft_cannot_be_reviewed(self, session, service, action):
        teacher = await make_account(session, AccountRole.TEACHER)
        admin = await make_account(session, AccountRole.ADMIN)
        course = await _draft_course(service, teacher)

        with pytest.raises(ConflictError):
            if action == "approve":
                await service.approve_course(course.id, admin)
            else:
                await service.reject_course(course.id, admin)

    @pytest.mark.asyncio
    async def test_approved_course_cannot_be_resubmitted(self, session, service):
        admin = await make_account(session, AccountRole.ADMIN)
        teacher = await make_account(session, AccountRole.TEACHER)
        course = await service.create_course(
            AdminCourseCreate(title="Ready", price=0, teacher_id=teacher.id), admin
        )
        await service.add_lesson(course.id, LessonCreate(title="Intro"), admin)

        with pytest.raises(ConflictError):
            await service.submit_for_review(course.id, teacher)


class TestDeleteCourse:
    """删除课程需确认"""

    @pytest.mark.asyncio
    async def test_delete_with_enrollments_requires_confirmation(self, session, service):
        admin = await make_account(session, AccountRole.ADMIN)
        learner = await make_account(session, AccountRole.LEARNER)
        course = await service.create_course(
            AdminCourseCreate(title="Popular", price=0), admin
        )
        await service.add_lesson(course.id, LessonCreate(title="L1"), admin)
        await service.enroll(learner, course.id)

        first = await service.delete_course(course.id, admin)

        assert first.deleted is False
        assert first.require_confirmation is True
        assert first.enrollment_count == 1
        assert await service.get_course_by_id(course.id) is not None

        second = await service.delete_course(course.id, admin, force=True)

        assert second.deleted is True
        assert await service.get_course_by_id(course.id) is None
        for model in (Lesson, Enrollment):
            count = await session.execute(select(func.count()).select_from(model))
            assert count.scalar() == 0

    @pytest.mark.asyncio
    async def test_delete_without_enrollments_is_immediate(self, session, service):
        teacher = await make_account(session, AccountRole.TEACHER)
        course = await _draft_course(service, teacher)

        result = await service.delete_course(course.id, teacher)

        assert result.deleted is True
        assert result.require_confirmation is False


class TestEnrollment:
    """选课"""

    @pytest.mark.asyncio
    async def test_enroll_once(self, session, service):
        admin = await make_account(session, AccountRole.ADMIN)
        learner = await make_account(session, AccountRole.LEARNER)
        course = await service.create_course(AdminCourseCreate(title="A", price=0), admin)

        await service.enroll(learner, course.id)
        with pytest.raises(ConflictError):
            await service.enroll(learner, course.id)

        rows = await service.get_learner_enrollments(learner.id)
        assert len(rows) == 1
        assert rows[0][1].id == course.id

    @pytest.mark.asyncio
    async def test_unpublished_course_cannot_be_joined(self, session, service):
        teacher = await make_account(session, AccountRole.TEACHER)
        learner = await make_account(session, AccountRole.LEARNER)
        course = await _draft_course(service, teacher)

        with pytest.raises(ValueError):
            await service.enroll(learner, course.id)

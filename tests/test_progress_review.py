"""学习进度与课程评价测试"""

import pytest
from conftest import auth_headers, make_account
from sqlalchemy import func, select

from englishhub.app.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from englishhub.app.models.account import AccountRole
from englishhub.app.models.course import EnrollmentStatus, LessonProgress
from englishhub.app.models.course_review import CourseReview
from englishhub.app.models.notification import Notification, NotificationCategory
from englishhub.app.schemas.course import AdminCourseCreate, LessonCreate
from englishhub.app.schemas.course_review import ReviewCreate, ReviewUpdate
from englishhub.app.services.admin_service import AdminService
from englishhub.app.services.course_review_service import CourseReviewService
from englishhub.app.services.course_service import CourseService
from englishhub.app.services.progress_service import ProgressService

API = "/api/v1"


async def _course_with_lessons(session, lesson_count=2):
    """管理员创建的已上架课程，授课教师为 teacher"""
    admin = await make_account(session, AccountRole.ADMIN)
    teacher = await make_account(session, AccountRole.TEACHER)
    courses = CourseService(session)
    course = await courses.create_course(
        AdminCourseCreate(title="English Foundations", price=0, teacher_id=teacher.id),
        admin,
    )
    lessons = [
        await courses.add_lesson(course.id, LessonCreate(title=f"Unit {i}"), admin)
        for i in range(1, lesson_count + 1)
    ]
    return admin, teacher, course, lessons


async def _enrolled_learner(session, course):
    learner = await make_account(session, AccountRole.LEARNER)
    enrollment = await CourseService(session).enroll(learner, course.id)
    return learner, enrollment


class TestLessonProgress:
    """逐课时记录与进度重算"""

    @pytest.mark.asyncio
    async def test_progress_follows_completed_lessons(self, session):
        _, _, course, lessons = await _course_with_lessons(session)
        learner, enrollment = await _enrolled_learner(session, course)
        service = ProgressService(session)

        progress = await service.record_lesson(learner, lessons[0].id)
        assert progress.completed_lessons == 1
        assert progress.total_lessons == 2
        assert progress.progress_percent == 50
        assert progress.status == EnrollmentStatus.ACTIVE
        assert progress.lessons[0].completed_at is not None

        progress = await service.record_lesson(learner, lessons[1].id)
        assert progress.progress_percent == 100
        assert progress.status == EnrollmentStatus.COMPLETED
        assert enrollment.progress_percent == 100
        assert enrollment.status == EnrollmentStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_repeated_record_updates_same_row(self, session):
        _, _, course, lessons = await _course_with_lessons(session)
        learner, _ = await _enrolled_learner(session, course)
        service = ProgressService(session)

        first = await service.record_lesson(learner, lessons[0].id)
        second = await service.record_lesson(learner, lessons[0].id)

        count = await session.execute(select(func.count()).select_from(LessonProgress))
        assert count.scalar() == 1
        assert second.lessons[0].completed_at == first.lessons[0].completed_at

    @pytest.mark.asyncio
    async def test_unmarking_lesson_reopens_course(self, session):
        _, _, course, lessons = await _course_with_lessons(session, lesson_count=1)
        learner, _ = await _enrolled_learner(session, course)
        service = ProgressService(session)

        await service.record_lesson(learner, lessons[0].id)
        progress = await service.record_lesson(learner, lessons[0].id, is_completed=False)

        assert progress.progress_percent == 0
        assert progress.status == EnrollmentStatus.ACTIVE
        assert progress.lessons[0].is_completed is False
        assert progress.lessons[0].completed_at is None

    @pytest.mark.asyncio
    async def test_new_lesson_lowers_progress(self, session):
        admin, _, course, lessons = await _course_with_lessons(session)
        learner, enrollment = await _enrolled_learner(session, course)
        service = ProgressService(session)
        for lesson in lessons:
            await service.record_lesson(learner, lesson.id)
        assert enrollment.status == EnrollmentStatus.COMPLETED

        await CourseService(session).add_lesson(
            course.id, LessonCreate(title="Bonus unit"), admin
        )

        assert enrollment.progress_percent == 66
        assert enrollment.status == EnrollmentStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_deleting_remaining_lesson_completes_course(self, session):
        admin, _, course, lessons = await _course_with_lessons(session)
        learner, enrollment = await _enrolled_learner(session, course)
        service = ProgressService(session)
        await service.record_lesson(learner, lessons[0].id)

        await CourseService(session).delete_lesson(course.id, lessons[1].id, admin)

        progress = await service.get_course_progress(learner, course.id)
        assert progress.total_lessons == 1
        assert progress.progress_percent == 100
        assert enrollment.status == EnrollmentStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_learner_must_be_enrolled(self, session):
        _, _, course, lessons = await _course_with_lessons(session)
        outsider = await make_account(session, AccountRole.LEARNER)
        service = ProgressService(session)

        with pytest.raises(PermissionDeniedError):
            await service.record_lesson(outsider, lessons[0].id)
        with pytest.raises(PermissionDeniedError):
            await service.get_course_progress(outsider, course.id)
        with pytest.raises(NotFoundError):
            await service.record_lesson(outsider, 9999)


class TestCourseReviews:
    """课程评价"""

    @pytest.mark.asyncio
    async def test_enrolled_learner_reviews_once(self, session):
        _, teacher, course, _ = await _course_with_lessons(session)
        learner, _ = await _enrolled_learner(session, course)
        service = CourseReviewService(session)

        review = await service.create_review(
            learner, ReviewCreate(course_id=course.id, rating=4, comment="Dễ hiểu")
        )
        assert review.rating == 4

        with pytest.raises(ConflictError):
            await service.create_review(
                learner, ReviewCreate(course_id=course.id, rating=5)
            )

        notifications = await session.execute(
            select(Notification).where(Notification.account_id == teacher.id)
        )
        categories = [n.category for n in notifications.scalars().all()]
        assert NotificationCategory.FEEDBACK in categories

    @pytest.mark.asyncio
    async def test_review_requires_enrollment(self, session):
        _, _, course, _ = await _course_with_lessons(session)
        outsider = await make_account(session, AccountRole.LEARNER)

        with pytest.raises(PermissionDeniedError):
            await CourseReviewService(session).create_review(
                outsider, ReviewCreate(course_id=course.id, rating=3)
            )

    @pytest.mark.asyncio
    async def test_only_author_updates(self, session):
        _, _, course, _ = await _course_with_lessons(session)
        author, _ = await _enrolled_learner(session, course)
        other, _ = await _enrolled_learner(session, course)
        service = CourseReviewService(session)
        review = await service.create_review(
            author, ReviewCreate(course_id=course.id, rating=2)
        )

        with pytest.raises(PermissionDeniedError):
            await service.update_review(review.id, other, ReviewUpdate(rating=5))

        updated = await service.update_review(
            review.id, author, ReviewUpdate(rating=5, comment="Đã cải thiện")
        )
        assert updated.rating == 5
        assert updated.comment == "Đã cải thiện"

    @pytest.mark.asyncio
    async def test_delete_permissions(self, session):
        admin, teacher, course, _ = await _course_with_lessons(session)
        first, _ = await _enrolled_learner(session, course)
        second, _ = await _enrolled_learner(session, course)
        stranger_teacher = await make_account(session, AccountRole.TEACHER)
        service = CourseReviewService(session)
        review_a = await service.create_review(
            first, ReviewCreate(course_id=course.id, rating=1)
        )
        review_b = await service.create_review(
            second, ReviewCreate(course_id=course.id, rating=5)
        )

        with pytest.raises(PermissionDeniedError):
            await service.delete_review(review_a.id, second)
        with pytest.raises(PermissionDeniedError):
            await service.delete_review(review_a.id, stranger_teacher)

        await service.delete_review(review_a.id, teacher)
        await service.delete_review(review_b.id, admin)

        with pytest.raises(NotFoundError):
            await service.get_review_or_404(review_a.id)
        count = await session.execute(select(func.count()).select_from(CourseReview))
        assert count.scalar() == 0

    @pytest.mark.asyncio
    async def test_course_listing_and_average(self, session):
        _, _, course, _ = await _course_with_lessons(session)
        service = CourseReviewService(session)

        empty = await service.list_course_reviews(course.id)
        assert empty.count == 0
        assert empty.average_rating == 0

        for rating in (5, 4, 4):
            learner, _ = await _enrolled_learner(session, course)
            await service.create_review(
                learner, ReviewCreate(course_id=course.id, rating=rating)
            )

        listing = await service.list_course_reviews(course.id)
        assert listing.count == 3
        assert listing.average_rating == 4.3
        assert listing.items[0].learner_name == "Test learner"

    @pytest.mark.asyncio
    async def test_my_reviews_carry_course_title(self, session):
        _, _, course, _ = await _course_with_lessons(session)
        learner, _ = await _enrolled_learner(session, course)
        service = CourseReviewService(session)
        await service.create_review(learner, ReviewCreate(course_id=course.id, rating=5))

        mine = await service.get_my_reviews(learner.id)

        assert len(mine) == 1
        assert mine[0].course_title == "English Foundations"


class TestCleanup:
    """删除课程或账户时清理学习记录与评价"""

    @pytest.mark.asyncio
    async def test_force_delete_course(self, session):
        admin, _, course, lessons = await _course_with_lessons(session)
        learner, _ = await _enrolled_learner(session, course)
        await ProgressService(session).record_lesson(learner, lessons[0].id)
        await CourseReviewService(session).create_review(
            learner, ReviewCreate(course_id=course.id, rating=5)
        )

        result = await CourseService(session).delete_course(course.id, admin, force=True)

        assert result.deleted is True
        for model in (LessonProgress, CourseReview):
            count = await session.execute(select(func.count()).select_from(model))
            assert count.scalar() == 0

    @pytest.mark.asyncio
    async def test_delete_learner_account(self, session):
        admin, _, course, lessons = await _course_with_lessons(session)
        learner, _ = await _enrolled_learner(session, course)
        await ProgressService(session).record_lesson(learner, lessons[0].id)
        await CourseReviewService(session).create_review(
            learner, ReviewCreate(course_id=course.id, rating=3)
        )

        await AdminService(session).delete_account(learner.id, admin)

        for model in (LessonProgress, CourseReview):
            count = await session.execute(select(func.count()).select_from(model))
            assert count.scalar() == 0


class TestProgressReviewApi:
    """学习进度与评价接口"""

    @pytest.mark.asyncio
    async def test_progress_and_review_flow(self, client, session):
        _, _, course, lessons = await _course_with_lessons(session)
        learner, _ = await _enrolled_learner(session, course)
        outsider = await make_account(session, AccountRole.LEARNER)
        await session.commit()
        headers = auth_headers(learner)

        response = await client.post(
            f"{API}/progress/lesson/{lessons[0].id}", headers=headers
        )
        assert response.status_code == 200
        assert response.json()["progress_percent"] == 50

        response = await client.post(
            f"{API}/progress/lesson/{lessons[1].id}",
            json={"is_completed": True},
            headers=headers,
        )
        assert response.json()["status"] == "completed"

        response = await client.get(f"{API}/progress/course/{course.id}", headers=headers)
        assert response.status_code == 200
        assert response.json()["completed_lessons"] == 2

        response = await client.get(
            f"{API}/progress/course/{course.id}", headers=auth_headers(outsider)
        )
        assert response.status_code == 403

        response = await client.post(
            f"{API}/reviews/",
            json={"course_id": course.id, "rating": 5, "comment": "Tuyệt vời"},
            headers=headers,
        )
        assert response.status_code == 201
        review_id = response.json()["id"]

        response = await client.post(
            f"{API}/reviews/",
            json={"course_id": course.id, "rating": 4},
            headers=headers,
        )
        assert response.status_code == 409

        response = await client.post(
            f"{API}/reviews/",
            json={"course_id": course.id, "rating": 6},
            headers=headers,
        )
        assert response.status_code == 422

        response = await client.put(
            f"{API}/reviews/{review_id}",
            json={"rating": 3},
            headers=auth_headers(outsider),
        )
        assert response.status_code == 403

        response = await client.get(f"{API}/reviews/course/{course.id}")
        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert body["average_rating"] == 5

        response = await client.get(f"{API}/reviews/my", headers=headers)
        assert response.json()[0]["course_title"] == "English Foundations"

        response = await client.delete(f"{API}/reviews/{review_id}", headers=headers)
        assert response.status_code == 200

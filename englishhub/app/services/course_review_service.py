"""课程评价服务"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from englishhub.app.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from englishhub.app.core.utils import utc_now_naive
from englishhub.app.models.account import Account, AccountRole
from englishhub.app.models.course import Course, Enrollment
from englishhub.app.models.course_review import CourseReview
from englishhub.app.models.notification import NotificationCategory
from englishhub.app.schemas.course_review import (
    CourseReviewItem,
    CourseReviewList,
    MyReviewItem,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
)
from englishhub.app.services.course_service import CourseService
from englishhub.app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class CourseReviewService:
    """课程评价服务类"""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_review_or_404(self, review_id: int) -> CourseReview:
        review = await self.session.get(CourseReview, review_id)
        if not review:
            raise NotFoundError("Không tìm thấy đánh giá")
        return review

    async def create_review(self, learner: Account, data: ReviewCreate) -> CourseReview:
        """发表评价：只能评价已选的课程，每门课一条"""
        course = await CourseService(self.session).get_course_or_404(data.course_id)

        stmt = select(Enrollment.id).where(
            Enrollment.learner_id == learner.id,
            Enrollment.course_id == course.id,
        )
        if (await self.session.execute(stmt)).scalar_one_or_none() is None:
            raise PermissionDeniedError("Bạn cần đăng ký khóa học trước khi đánh giá")

        stmt = select(CourseReview.id).where(
            CourseReview.learner_id == learner.id,
            CourseReview.course_id == course.id,
        )
        if (await self.session.execute(stmt)).scalar_one_or_none() is not None:
            raise ConflictError("Bạn đã đánh giá khóa học này")

        review = CourseReview(
            learner_id=learner.id,
            course_id=course.id,
            rating=data.rating,
            comment=data.comment,
        )
        self.session.add(review)
        try:
            await self.session.flush()
        except IntegrityError:
            raise ConflictError("Bạn đã đánh giá khóa học này")
        await self.session.refresh(review)

        if course.teacher_id is not None:
            await NotificationService(self.session).notify(
                course.teacher_id,
                "Đánh giá mới",
                f"{learner.full_name} đánh giá {data.rating}/5 cho khóa học \"{course.title}\"",
                category=NotificationCategory.FEEDBACK,
                sender_id=learner.id,
                related_id=course.id,
                related_type="course",
            )

        logger.info(
            f"课程评价: course={course.id}, learner={learner.id}, rating={data.rating}"
        )
        return review

    async def list_course_reviews(
        self, course_id: int, viewer: Account | None = None
    ) -> CourseReviewList:
        """课程评价列表（最新在前）与平均分"""
        course = await CourseService(self.session).get_course_or_404(course_id)
        if not course.is_published and not CourseService.can_manage(course, viewer):
            raise NotFoundError("Không tìm thấy khóa học")

        stmt = (
            select(CourseReview, Account.full_name)
            .outerjoin(Account, Account.id == CourseReview.learner_id)
            .where(CourseReview.course_id == course_id)
            .order_by(CourseReview.created_at.desc(), CourseReview.id.desc())
        )
        result = await self.session.execute(stmt)
        items = [
            CourseReviewItem(
                **ReviewResponse.model_validate(review).model_dump(),
                learner_name=learner_name,
            )
            for review, learner_name in result.all()
        ]

        average = (
            round(sum(item.rating for item in items) / len(items), 1) if items else 0.0
        )
        return CourseReviewList(
            course_id=course_id,
            count=len(items),
            average_rating=average,
            items=items,
        )

    async def get_my_reviews(self, learner_id: int) -> list[MyReviewItem]:
        stmt = (
            select(CourseReview, Course.title)
            .join(Course, Course.id == CourseReview.course_id)
            .where(CourseReview.learner_id == learner_id)
            .order_by(CourseReview.created_at.desc(), CourseReview.id.desc())
        )
        result = await self.session.execute(stmt)
        return [
            MyReviewItem(
                **ReviewResponse.model_validate(review).model_dump(),
                course_title=title,
            )
            for review, title in result.all()
        ]

    async def update_review(
        self, review_id: int, learner: Account, data: ReviewUpdate
    ) -> CourseReview:
        """只有评价者本人可以修改"""
        review = await self.get_review_or_404(review_id)
        if review.learner_id != learner.id:
            raise PermissionDeniedError("Bạn chỉ được sửa đánh giá của mình")

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("rating") is not None:
            review.rating = update_data["rating"]
        if "comment" in update_data:
            review.comment = update_data["comment"]
        review.updated_at = utc_now_naive()

        await self.session.flush()
        await self.session.refresh(review)
        return review

    async def delete_review(self, review_id: int, account: Account) -> None:
        """评价者本人、课程教师或管理员可以删除"""
        review = await self.get_review_or_404(review_id)

        if account.role == AccountRole.LEARNER:
            allowed = review.learner_id == account.id
        elif account.role == AccountRole.TEACHER:
            course = await self.session.get(Course, review.course_id)
            allowed = course is not None and course.teacher_id == account.id
        else:
            allowed = True
        if not allowed:
            raise PermissionDeniedError("Bạn không có quyền xóa đánh giá này")

        await self.session.delete(review)
        await self.session.flush()
        logger.info(f"课程评价已删除: id={review_id} by {account.email}")

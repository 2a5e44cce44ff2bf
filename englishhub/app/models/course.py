"""课程、课时与选课模型"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Column, Text, UniqueConstraint
from sqlmodel import Field, SQLModel

from englishhub.app.core.utils import utc_now_naive
from englishhub.app.models.base import ApprovalStatus, TimestampMixin, enum_column

# 课程展示状态 → 标签（只看 approval_status，不存 is_published）
STATUS_LABELS: dict[str, str] = {
    "published": "Đã duyệt",
    "pending": "Chờ duyệt",
    "draft": "Nháp",
    "rejected": "Từ chối",
}

_EFFECTIVE_STATUS: dict[ApprovalStatus, str] = {
    ApprovalStatus.APPROVED: "published",
    ApprovalStatus.PENDING_REVIEW: "pending",
    ApprovalStatus.REJECTED: "rejected",
    ApprovalStatus.DRAFT: "draft",
}

# 管理后台筛选参数 → 审核状态
EFFECTIVE_STATUS_FILTERS: dict[str, ApprovalStatus] = {
    status: approval for approval, status in _EFFECTIVE_STATUS.items()
}


class CourseLevel(str, Enum):
    """课程等级"""

    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"
    C2 = "C2"
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


class Course(TimestampMixin, SQLModel, table=True):
    """课程模型"""

    __tablename__ = "courses"

    id: int | None = Field(default=None, primary_key=True)
    teacher_id: int | None = Field(default=None, foreign_key="accounts.id", index=True)
    created_by: int | None = Field(default=None, foreign_key="accounts.id")
    title: str = Field(max_length=255, index=True)
    description: str | None = Field(default=None, sa_column=Column(Text))
    thumbnail_url: str | None = Field(default=None, max_length=2048)
    price: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    level: CourseLevel = Field(
        default=CourseLevel.B1, sa_type=enum_column(CourseLevel), index=True
    )
    category: str | None = Field(default=None, max_length=100, index=True)
    approval_status: ApprovalStatus = Field(
        default=ApprovalStatus.DRAFT,
        sa_type=enum_column(ApprovalStatus),
        index=True,
    )
    rejection_reason: str | None = Field(default=None, sa_column=Column(Text))

    @property
    def is_published(self) -> bool:
        """是否已上架，由审核状态推导"""
        return self.approval_status == ApprovalStatus.APPROVED

    @property
    def course_type(self) -> str:
        """免费 / 付费"""
        return "free" if Decimal(self.price or 0) == 0 else "paid"

    @property
    def effective_status(self) -> str:
        return _EFFECTIVE_STATUS.get(self.approval_status, "draft")

    @property
    def status_label(self) -> str:
        return STATUS_LABELS[self.effective_status]


class LessonContentType(str, Enum):
    """课时内容类型"""

    VIDEO = "video"
    PDF = "pdf"
    AUDIO = "audio"
    QUIZ = "quiz"
    LINK = "link"


class Lesson(SQLModel, table=True):
    """课时模型"""

    __tablename__ = "lessons"

    id: int | None = Field(default=None, primary_key=True)
    course_id: int = Field(foreign_key="courses.id", index=True)
    title: str = Field(max_length=255)
    description: str | None = Field(default=None, sa_column=Column(Text))
    content_type: LessonContentType = Field(
        default=LessonContentType.VIDEO, sa_type=enum_column(LessonContentType)
    )
    content_url: str | None = Field(default=None, max_length=2048)
    duration_minutes: int = Field(default=0)
    order_index: int = Field(default=0)
    is_free: bool = Field(default=False)


class EnrollmentStatus(str, Enum):
    """选课状态"""

    ACTIVE = "active"
    COMPLETED = "completed"
    DROPPED = "dropped"


class Enrollment(SQLModel, table=True):
    """学员选课模型"""

    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("learner_id", "course_id", name="uq_enrollments_learner_course"),
    )

    id: int | None = Field(default=None, primary_key=True)
    learner_id: int = Field(foreign_key="accounts.id", index=True)
    course_id: int = Field(foreign_key="courses.id", index=True)
    enrolled_at: datetime = Field(default_factory=utc_now_naive)
    progress_percent: int = Field(default=0)
    status: EnrollmentStatus = Field(
        default=EnrollmentStatus.ACTIVE, sa_type=enum_column(EnrollmentStatus)
    )


class LessonProgress(SQLModel, table=True):
    """学员在某一课时上的学习记录"""

    __tablename__ = "lesson_progress"
    __table_args__ = (
        UniqueConstraint(
            "enrollment_id", "lesson_id", name="uq_lesson_progress_enrollment_lesson"
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    enrollment_id: int = Field(foreign_key="enrollments.id", index=True)
    lesson_id: int = Field(foreign_key="lessons.id", index=True)
    is_completed: bool = Field(default=False)
    completed_at: datetime | None = Field(default=None)
    last_viewed_at: datetime = Field(default_factory=utc_now_naive)

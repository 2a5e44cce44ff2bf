"""课程评价模型"""

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Text, UniqueConstraint
from sqlmodel import Field, SQLModel

from englishhub.app.core.utils import utc_now_naive


class CourseReview(SQLModel, table=True):
    """学员对课程的评分与评论，每人每门课一条"""

    __tablename__ = "course_reviews"
    __table_args__ = (
        UniqueConstraint("learner_id", "course_id", name="uq_course_reviews_learner_course"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_course_reviews_rating"),
    )

    id: int | None = Field(default=None, primary_key=True)
    learner_id: int = Field(foreign_key="accounts.id", index=True)
    course_id: int = Field(foreign_key="courses.id", index=True)
    rating: int
    comment: str | None = Field(default=None, sa_column=Column(Text))
    created_at: datetime = Field(default_factory=utc_now_naive)
    updated_at: datetime = Field(default_factory=utc_now_naive)

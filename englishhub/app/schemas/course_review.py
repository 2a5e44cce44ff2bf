"""课程评价的请求/响应模型"""

from datetime import datetime

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    """发表评价"""

    course_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(default=None, max_length=2000)


class ReviewUpdate(BaseModel):
    """修改评价"""

    rating: int | None = Field(default=None, ge=1, le=5)
    comment: str | None = Field(default=None, max_length=2000)


class ReviewResponse(BaseModel):
    """评价响应"""

    id: int
    learner_id: int
    course_id: int
    rating: int
    comment: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CourseReviewItem(ReviewResponse):
    """课程页上的评价（带学员姓名）"""

    learner_name: str | None


class CourseReviewList(BaseModel):
    """某门课程的评价列表与平均分"""

    course_id: int
    count: int
    average_rating: float
    items: list[CourseReviewItem]


class MyReviewItem(ReviewResponse):
    """我的评价（带课程标题）"""

    course_title: str

"""课程相关的请求/响应模型"""

from datetime import datetime

from pydantic import BaseModel, Field

from englishhub.app.models.base import ApprovalStatus
from englishhub.app.models.course import CourseLevel, EnrollmentStatus, LessonContentType


class CourseCreate(BaseModel):
    """创建课程请求"""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    price: float = Field(default=0, ge=0)
    level: CourseLevel = CourseLevel.B1
    category: str | None = Field(default=None, max_length=100)
    thumbnail_url: str | None = Field(default=None, max_length=2048)


class AdminCourseCreate(CourseCreate):
    """管理员创建课程，可指定授课教师"""

    teacher_id: int | None = None


class CourseUpdate(BaseModel):
    """更新课程请求（只允许修改展示字段）"""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    level: CourseLevel | None = None
    category: str | None = Field(default=None, max_length=100)
    thumbnail_url: str | None = Field(default=None, max_length=2048)


class CourseResponse(BaseModel):
    """课程响应"""

    id: int
    teacher_id: int | None
    title: str
    description: str | None
    thumbnail_url: str | None
    price: float
    level: CourseLevel
    category: str | None
    approval_status: ApprovalStatus
    rejection_reason: str | None
    is_published: bool
    course_type: str
    effective_status: str
    status_label: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class LessonCreate(BaseModel):
    """新增课时请求"""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    content_type: LessonContentType = LessonContentType.VIDEO
    content_url: str | None = Field(default=None, max_length=2048)
    duration_minutes: int = Field(default=0, ge=0)
    order_index: int | None = Field(default=None, ge=0)
    is_free: bool = False


class LessonUpdate(BaseModel):
    """更新课时请求"""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    content_type: LessonContentType | None = None
    content_url: str | None = Field(default=None, max_length=2048)
    duration_minutes: int | None = Field(default=None, ge=0)
    order_index: int | None = Field(default=None, ge=0)
    is_free: bool | None = None


class LessonResponse(BaseModel):
    """课时响应"""

    id: int
    course_id: int
    title: str
    description: str | None
    content_type: LessonContentType
    content_url: str | None
    duration_minutes: int
    order_index: int
    is_free: bool

    model_config = {"from_attributes": True}


class CourseDetail(CourseResponse):
    """课程详情响应"""

    teacher_name: str | None
    lessons: list[LessonResponse]
    total_lessons: int
    total_duration_minutes: int
    enrollment_count: int


class Pagination(BaseModel):
    """分页信息"""

    page: int
    limit: int
    total: int
    total_pages: int


class CourseListResponse(BaseModel):
    """课程列表响应"""

    courses: list[CourseResponse]
    pagination: Pagination


class CourseDeleteResult(BaseModel):
    """删除课程结果；有学员时需二次确认"""

    deleted: bool
    require_confirmation: bool = False
    enrollment_count: int = 0
    message: str


class ReviewRejectRequest(BaseModel):
    """审核驳回请求"""

    reason: str | None = Field(default=None, max_length=2000)


class EnrollmentCreate(BaseModel):
    """选课请求"""

    course_id: int


class EnrollmentResponse(BaseModel):
    """选课响应"""

    id: int
    learner_id: int
    course_id: int
    enrolled_at: datetime
    progress_percent: int
    status: EnrollmentStatus

    model_config = {"from_attributes": True}


class MyEnrollmentItem(EnrollmentResponse):
    """我的课程"""

    course: CourseResponse


class LessonProgressUpdate(BaseModel):
    """记录课时学习进度"""

    is_completed: bool = True


class LessonProgressResponse(BaseModel):
    """单个课时的学习记录"""

    lesson_id: int
    is_completed: bool
    completed_at: datetime | None
    last_viewed_at: datetime

    model_config = {"from_attributes": True}


class CourseProgress(BaseModel):
    """学员在一门课程上的整体进度"""

    course_id: int
    enrollment_id: int
    completed_lessons: int
    total_lessons: int
    progress_percent: int
    status: EnrollmentStatus
    lessons: list[LessonProgressResponse]

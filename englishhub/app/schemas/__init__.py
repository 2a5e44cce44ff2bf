"""Pydantic 请求/响应模型"""

from englishhub.app.schemas.auth import (
    AccountInfo,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    TokenPayload,
)
from englishhub.app.schemas.course import (
    CourseCreate,
    CourseDeleteResult,
    CourseDetail,
    CourseListResponse,
    CourseResponse,
    CourseUpdate,
    EnrollmentResponse,
    CourseProgress,
    LessonCreate,
    LessonProgressResponse,
    LessonProgressUpdate,
    LessonResponse,
)
from englishhub.app.schemas.course_review import (
    CourseReviewList,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
)
from englishhub.app.schemas.exam import (
    ExamCreate,
    ExamDetail,
    ExamListResponse,
    ExamResponse,
    ExamUpdate,
)
from englishhub.app.schemas.notification import (
    NotificationListResponse,
    NotificationResponse,
)
from englishhub.app.schemas.question import (
    QuestionCreate,
    QuestionListResponse,
    QuestionPublic,
    QuestionResponse,
    QuestionUpdate,
)
from englishhub.app.schemas.submission import (
    AnswerRecord,
    ExamResult,
    GradeRequest,
    SubmissionResponse,
    SubmissionStart,
    SubmitRequest,
)

__all__ = [
    # Auth
    "AccountInfo",
    "LoginRequest",
    "LoginResponse",
    "RegisterRequest",
    "TokenPayload",
    # Course
    "CourseCreate",
    "CourseDeleteResult",
    "CourseDetail",
    "CourseListResponse",
    "CourseResponse",
    "CourseProgress",
    "CourseUpdate",
    "EnrollmentResponse",
    "LessonCreate",
    "LessonProgressResponse",
    "LessonProgressUpdate",
    "LessonResponse",
    # Course review
    "CourseReviewList",
    "ReviewCreate",
    "ReviewResponse",
    "ReviewUpdate",
    # Exam
    "ExamCreate",
    "ExamDetail",
    "ExamListResponse",
    "ExamResponse",
    "ExamUpdate",
    # Notification
    "NotificationListResponse",
    "NotificationResponse",
    # Question
    "QuestionCreate",
    "QuestionListResponse",
    "QuestionPublic",
    "QuestionResponse",
    "QuestionUpdate",
    # Submission
    "AnswerRecord",
    "ExamResult",
    "GradeRequest",
    "SubmissionResponse",
    "SubmissionStart",
    "SubmitRequest",
]

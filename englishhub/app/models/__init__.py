"""数据模型模块"""

from englishhub.app.models.account import Account, AccountRole
from englishhub.app.models.base import ApprovalStatus, CEFRLevel
from englishhub.app.models.course import (
    Course,
    CourseLevel,
    Enrollment,
    EnrollmentStatus,
    Lesson,
    LessonContentType,
    LessonProgress,
)
from englishhub.app.models.course_review import CourseReview
from englishhub.app.models.exam import Exam, ExamStatus, GradingMethod
from englishhub.app.models.notification import (
    Notification,
    NotificationCategory,
    NotificationType,
)
from englishhub.app.models.question import (
    MediaType,
    Question,
    QuestionSkill,
    QuestionType,
)
from englishhub.app.models.submission import (
    ExamSubmission,
    SubmissionAnswer,
    SubmissionStatus,
)
from englishhub.app.models.system_config import ConfigAuditLog, SystemConfig

__all__ = [
    "Account",
    "AccountRole",
    "ApprovalStatus",
    "CEFRLevel",
    "ConfigAuditLog",
    "Course",
    "CourseLevel",
    "CourseReview",
    "Enrollment",
    "EnrollmentStatus",
    "Exam",
    "ExamStatus",
    "ExamSubmission",
    "GradingMethod",
    "Lesson",
    "LessonContentType",
    "LessonProgress",
    "MediaType",
    "Notification",
    "NotificationCategory",
    "NotificationType",
    "Question",
    "QuestionSkill",
    "QuestionType",
    "SubmissionAnswer",
    "SubmissionStatus",
    "SystemConfig",
]

"""业务逻辑层"""

from englishhub.app.services.admin_service import AdminService
from englishhub.app.services.auth_service import AuthService
from englishhub.app.services.config_service import ConfigService
from englishhub.app.services.course_service import CourseService
from englishhub.app.services.course_review_service import CourseReviewService
from englishhub.app.services.exam_service import ExamService
from englishhub.app.services.notification_service import NotificationService
from englishhub.app.services.progress_service import ProgressService
from englishhub.app.services.question_service import QuestionService
from englishhub.app.services.submission_service import SubmissionService

__all__ = [
    "AdminService",
    "AuthService",
    "ConfigService",
    "CourseService",
    "CourseReviewService",
    "ExamService",
    "NotificationService",
    "ProgressService",
    "QuestionService",
    "SubmissionService",
]

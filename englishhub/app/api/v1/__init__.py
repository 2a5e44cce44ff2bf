"""API v1 路由"""

from fastapi import APIRouter

from englishhub.app.api.v1.endpoints import (
    admin,
    auth,
    config,
    course,
    course_review,
    enrollment,
    exam,
    notification,
    progress,
    question,
    submission,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["认证"])
api_router.include_router(course.router, prefix="/courses", tags=["课程"])
api_router.include_router(enrollment.router, prefix="/enrollments", tags=["选课"])
api_router.include_router(progress.router, prefix="/progress", tags=["学习进度"])
api_router.include_router(course_review.router, prefix="/reviews", tags=["课程评价"])
api_router.include_router(question.router, prefix="/questions", tags=["题库"])
api_router.include_router(exam.router, prefix="/exams", tags=["试卷"])
api_router.include_router(
    submission.router, prefix="/exam-submissions", tags=["答卷"]
)
api_router.include_router(
    notification.router, prefix="/notifications", tags=["通知"]
)
api_router.include_router(admin.router, prefix="/admin", tags=["管理员"])
api_router.include_router(config.router, prefix="/admin", tags=["系统配置"])

"""学习进度相关 API"""

from fastapi import APIRouter, HTTPException

from englishhub.app.api.v1.deps import CurrentLearner, SessionDep
from englishhub.app.core.exceptions import status_code_for
from englishhub.app.schemas.course import CourseProgress, LessonProgressUpdate
from englishhub.app.services.progress_service import ProgressService

router = APIRouter()


@router.get("/course/{course_id}", response_model=CourseProgress)
async def get_course_progress(
    course_id: int,
    session: SessionDep,
    learner: CurrentLearner,
) -> CourseProgress:
    """当前学员在某门课程的学习进度"""
    progress_service = ProgressService(session)
    try:
        return await progress_service.get_course_progress(learner, course_id)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.post("/lesson/{lesson_id}", response_model=CourseProgress)
async def record_lesson_progress(
    lesson_id: int,
    session: SessionDep,
    learner: CurrentLearner,
    data: LessonProgressUpdate | None = None,
) -> CourseProgress:
    """记录课时学习情况（默认标记为已完成），返回重算后的课程进度"""
    progress_service = ProgressService(session)
    is_completed = data.is_completed if data else True
    try:
        return await progress_service.record_lesson(learner, lesson_id, is_completed)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))

"""选课相关 API"""

from fastapi import APIRouter, HTTPException, status

from englishhub.app.api.v1.deps import CurrentLearner, SessionDep
from englishhub.app.core.exceptions import status_code_for
from englishhub.app.schemas.course import (
    CourseResponse,
    EnrollmentCreate,
    EnrollmentResponse,
    MyEnrollmentItem,
)
from englishhub.app.services.course_service import CourseService

router = APIRouter()


@router.post("/", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED)
async def enroll(
    data: EnrollmentCreate,
    session: SessionDep,
    learner: CurrentLearner,
) -> EnrollmentResponse:
    """学员选课"""
    course_service = CourseService(session)
    try:
        enrollment = await course_service.enroll(learner, data.course_id)
        return EnrollmentResponse.model_validate(enrollment)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.get("/my", response_model=list[MyEnrollmentItem])
async def my_enrollments(
    session: SessionDep,
    learner: CurrentLearner,
) -> list[MyEnrollmentItem]:
    """我的课程"""
    course_service = CourseService(session)
    rows = await course_service.get_learner_enrollments(learner.id)
    return [
        MyEnrollmentItem(
            **EnrollmentResponse.model_validate(enrollment).model_dump(),
            course=CourseResponse.model_validate(course),
        )
        for enrollment, course in rows
    ]

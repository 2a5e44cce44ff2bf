"""课程评价相关 API"""

from fastapi import APIRouter, HTTPException, status

from englishhub.app.api.v1.deps import (
    CurrentAccount,
    CurrentLearner,
    OptionalAccount,
    SessionDep,
)
from englishhub.app.core.exceptions import status_code_for
from englishhub.app.schemas.course_review import (
    CourseReviewList,
    MyReviewItem,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
)
from englishhub.app.services.course_review_service import CourseReviewService

router = APIRouter()


@router.post("/", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(
    data: ReviewCreate,
    session: SessionDep,
    learner: CurrentLearner,
) -> ReviewResponse:
    """评价已选的课程"""
    review_service = CourseReviewService(session)
    try:
        review = await review_service.create_review(learner, data)
        return ReviewResponse.model_validate(review)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.get("/my", response_model=list[MyReviewItem])
async def get_my_reviews(
    session: SessionDep,
    learner: CurrentLearner,
) -> list[MyReviewItem]:
    review_service = CourseReviewService(session)
    return await review_service.get_my_reviews(learner.id)


@router.get("/course/{course_id}", response_model=CourseReviewList)
async def list_course_reviews(
    course_id: int,
    session: SessionDep,
    viewer: OptionalAccount,
) -> CourseReviewList:
    """课程评价列表与平均分（公开）"""
    review_service = CourseReviewService(session)
    try:
        return await review_service.list_course_reviews(course_id, viewer)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.put("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: int,
    data: ReviewUpdate,
    session: SessionDep,
    learner: CurrentLearner,
) -> ReviewResponse:
    review_service = CourseReviewService(session)
    try:
        review = await review_service.update_review(review_id, learner, data)
        return ReviewResponse.model_validate(review)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.delete("/{review_id}")
async def delete_review(
    review_id: int,
    session: SessionDep,
    account: CurrentAccount,
) -> dict:
    """删除评价（本人、课程教师或管理员）"""
    review_service = CourseReviewService(session)
    try:
        await review_service.delete_review(review_id, account)
        return {"message": "Đã xóa đánh giá"}
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))

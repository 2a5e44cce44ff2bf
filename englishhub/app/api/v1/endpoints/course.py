"""课程与课时相关 API"""

from typing import Literal

from fastapi import APIRouter, HTTPException, Query, status

from englishhub.app.api.v1.deps import (
    CurrentAccount,
    CurrentStaff,
    CurrentTeacher,
    OptionalAccount,
    SessionDep,
)
from englishhub.app.core.exceptions import status_code_for
from englishhub.app.core.utils import total_pages
from englishhub.app.models.account import AccountRole
from englishhub.app.models.course import CourseLevel
from englishhub.app.schemas.course import (
    CourseCreate,
    CourseDeleteResult,
    CourseDetail,
    CourseListResponse,
    CourseResponse,
    CourseUpdate,
    LessonCreate,
    LessonResponse,
    LessonUpdate,
    Pagination,
)
from englishhub.app.services.course_service import CourseService

router = APIRouter()


@router.get("/", response_model=CourseListResponse)
async def list_courses(
    session: SessionDep,
    viewer: OptionalAccount,
    is_free: bool | None = None,
    level: CourseLevel | None = None,
    category: str | None = None,
    is_published: Literal["true", "false", "all"] = "true",
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
) -> CourseListResponse:
    """
    课程列表

    未上架课程只对管理员完整可见；教师只能看到自己的未上架课程，
    学员与匿名用户只能看到已上架课程。
    """
    teacher_id = None
    if is_published != "true":
        if viewer is None or viewer.role == AccountRole.LEARNER:
            is_published = "true"
        elif viewer.role == AccountRole.TEACHER:
            teacher_id = viewer.id

    course_service = CourseService(session)
    courses, total = await course_service.list_courses(
        is_free=is_free,
        level=level,
        category=category,
        is_published=is_published,
        teacher_id=teacher_id,
        page=page,
        limit=limit,
    )
    return CourseListResponse(
        courses=[CourseResponse.model_validate(c) for c in courses],
        pagination=Pagination(
            page=page, limit=limit, total=total, total_pages=total_pages(total, limit)
        ),
    )


@router.post("/", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
async def create_course(
    data: CourseCreate,
    session: SessionDep,
    account: CurrentStaff,
) -> CourseResponse:
    """创建课程（教师创建为草稿）"""
    course_service = CourseService(session)
    try:
        course = await course_service.create_course(data, account)
        return CourseResponse.model_validate(course)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.get("/{course_id}", response_model=CourseDetail)
async def get_course(
    course_id: int,
    session: SessionDep,
    viewer: OptionalAccount,
) -> CourseDetail:
    """课程详情（含课时）"""
    course_service = CourseService(session)
    try:
        return await course_service.get_course_detail(course_id, viewer)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.put("/{course_id}", response_model=CourseResponse)
async def update_course(
    course_id: int,
    data: CourseUpdate,
    session: SessionDep,
    account: CurrentStaff,
) -> CourseResponse:
    """更新课程"""
    course_service = CourseService(session)
    try:
        course = await course_service.update_course(course_id, data, account)
        return CourseResponse.model_validate(course)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.delete("/{course_id}", response_model=CourseDeleteResult)
async def delete_course(
    course_id: int,
    session: SessionDep,
    account: CurrentStaff,
    force: bool = False,
) -> CourseDeleteResult:
    """删除课程；有学员时需 force=true 确认"""
    course_service = CourseService(session)
    try:
        return await course_service.delete_course(course_id, account, force=force)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.post("/{course_id}/submit-review", response_model=CourseResponse)
async def submit_course_for_review(
    course_id: int,
    session: SessionDep,
    teacher: CurrentTeacher,
) -> CourseResponse:
    """提交课程审核"""
    course_service = CourseService(session)
    try:
        course = await course_service.submit_for_review(course_id, teacher)
        return CourseResponse.model_validate(course)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


# ==================== 课时 ====================


@router.get("/{course_id}/lessons", response_model=list[LessonResponse])
async def list_lessons(
    course_id: int,
    session: SessionDep,
    account: CurrentAccount,
) -> list[LessonResponse]:
    """课时列表（所有者或管理员）"""
    course_service = CourseService(session)
    try:
        await course_service.get_manageable_course(course_id, account)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))

    lessons = await course_service.list_lessons(course_id)
    return [LessonResponse.model_validate(lesson) for lesson in lessons]


@router.post(
    "/{course_id}/lessons",
    response_model=LessonResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_lesson(
    course_id: int,
    data: LessonCreate,
    session: SessionDep,
    account: CurrentStaff,
) -> LessonResponse:
    """新增课时"""
    course_service = CourseService(session)
    try:
        lesson = await course_service.add_lesson(course_id, data, account)
        return LessonResponse.model_validate(lesson)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.put("/{course_id}/lessons/{lesson_id}", response_model=LessonResponse)
async def update_lesson(
    course_id: int,
    lesson_id: int,
    data: LessonUpdate,
    session: SessionDep,
    account: CurrentStaff,
) -> LessonResponse:
    """更新课时"""
    course_service = CourseService(session)
    try:
        lesson = await course_service.update_lesson(course_id, lesson_id, data, account)
        return LessonResponse.model_validate(lesson)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.delete("/{course_id}/lessons/{lesson_id}")
async def delete_lesson(
    course_id: int,
    lesson_id: int,
    session: SessionDep,
    account: CurrentStaff,
) -> dict:
    """删除课时"""
    course_service = CourseService(session)
    try:
        await course_service.delete_lesson(course_id, lesson_id, account)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))
    return {"message": "Đã xóa bài học"}

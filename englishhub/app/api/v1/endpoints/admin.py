"""管理员相关 API"""

from typing import Literal

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel

from englishhub.app.api.v1.deps import CurrentAdmin, SessionDep
from englishhub.app.core.exceptions import status_code_for
from englishhub.app.core.utils import total_pages
from englishhub.app.models.account import AccountRole
from englishhub.app.schemas.auth import AccountInfo
from englishhub.app.schemas.course import (
    AdminCourseCreate,
    CourseDeleteResult,
    CourseResponse,
    CourseUpdate,
    Pagination,
    ReviewRejectRequest,
)
from englishhub.app.schemas.exam import ExamResponse
from englishhub.app.services.admin_service import AdminService
from englishhub.app.services.course_service import CourseService
from englishhub.app.services.exam_service import ExamService

router = APIRouter()


class AccountStatusUpdate(BaseModel):
    """启用/停用账户"""

    is_active: bool


# ==================== 统计与账户 ====================


@router.get("/stats")
async def get_stats(session: SessionDep, admin: CurrentAdmin) -> dict:
    """系统统计数据"""
    admin_service = AdminService(session)
    return await admin_service.get_system_stats()


@router.get("/accounts")
async def list_accounts(
    session: SessionDep,
    admin: CurrentAdmin,
    role: AccountRole | None = None,
    search: str | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
) -> dict:
    """账户列表"""
    admin_service = AdminService(session)
    accounts, total = await admin_service.list_accounts(role, search, skip, limit)
    return {
        "items": [
            {
                **AccountInfo.model_validate(a).model_dump(),
                "created_at": a.created_at.isoformat(),
            }
            for a in accounts
        ],
        "total": total,
        "skip": skip,
        "limit": limit,
    }


@router.patch("/accounts/{account_id}/status", response_model=AccountInfo)
async def set_account_status(
    account_id: int,
    data: AccountStatusUpdate,
    session: SessionDep,
    admin: CurrentAdmin,
) -> AccountInfo:
    """启用/停用账户"""
    admin_service = AdminService(session)
    try:
        account = await admin_service.set_account_status(
            account_id, data.is_active, admin
        )
        return AccountInfo.model_validate(account)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.delete("/accounts/{account_id}")
async def delete_account(
    account_id: int,
    session: SessionDep,
    admin: CurrentAdmin,
) -> dict:
    """删除账户"""
    admin_service = AdminService(session)
    try:
        await admin_service.delete_account(account_id, admin)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))
    return {"message": "Đã xóa tài khoản"}


@router.get("/pending-reviews")
async def pending_reviews(session: SessionDep, admin: CurrentAdmin) -> dict:
    """待审核的课程与试卷"""
    admin_service = AdminService(session)
    pending = await admin_service.get_pending_reviews()
    return {
        "courses": [CourseResponse.model_validate(c) for c in pending["courses"]],
        "exams": [ExamResponse.model_validate(e) for e in pending["exams"]],
        "total": len(pending["courses"]) + len(pending["exams"]),
    }


# ==================== 课程管理 ====================


@router.get("/courses")
async def list_courses(
    session: SessionDep,
    admin: CurrentAdmin,
    status_filter: Literal["published", "pending", "draft", "rejected"] | None = Query(
        None, alias="status"
    ),
    search: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> dict:
    """管理后台课程列表（按展示状态筛选，附全局统计）"""
    course_service = CourseService(session)
    courses, total = await course_service.list_courses_admin(
        status=status_filter, search=search, page=page, limit=limit
    )
    stats = await course_service.get_course_stats()
    return {
        "courses": [CourseResponse.model_validate(c) for c in courses],
        "pagination": Pagination(
            page=page, limit=limit, total=total, total_pages=total_pages(total, limit)
        ),
        "stats": stats,
    }


@router.post(
    "/courses", response_model=CourseResponse, status_code=status.HTTP_201_CREATED
)
async def create_course(
    data: AdminCourseCreate,
    session: SessionDep,
    admin: CurrentAdmin,
) -> CourseResponse:
    """管理员创建课程（直接上架）"""
    course_service = CourseService(session)
    try:
        course = await course_service.create_course(data, admin)
        return CourseResponse.model_validate(course)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.put("/courses/{course_id}", response_model=CourseResponse)
async def update_course(
    course_id: int,
    data: CourseUpdate,
    session: SessionDep,
    admin: CurrentAdmin,
) -> CourseResponse:
    course_service = CourseService(session)
    try:
        course = await course_service.update_course(course_id, data, admin)
        return CourseResponse.model_validate(course)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.delete("/courses/{course_id}", response_model=CourseDeleteResult)
async def delete_course(
    course_id: int,
    session: SessionDep,
    admin: CurrentAdmin,
    force: bool = False,
) -> CourseDeleteResult:
    """删除课程；有学员时需 force=true 确认"""
    course_service = CourseService(session)
    try:
        return await course_service.delete_course(course_id, admin, force=force)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.put("/courses/{course_id}/approve", response_model=CourseResponse)
async def approve_course(
    course_id: int,
    session: SessionDep,
    admin: CurrentAdmin,
) -> CourseResponse:
    """审核通过课程"""
    course_service = CourseService(session)
    try:
        course = await course_service.approve_course(course_id, admin)
        return CourseResponse.model_validate(course)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.put("/courses/{course_id}/reject", response_model=CourseResponse)
async def reject_course(
    course_id: int,
    session: SessionDep,
    admin: CurrentAdmin,
    data: ReviewRejectRequest | None = None,
) -> CourseResponse:
    """驳回课程"""
    course_service = CourseService(session)
    try:
        course = await course_service.reject_course(
            course_id, admin, data.reason if data else None
        )
        return CourseResponse.model_validate(course)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


# ==================== 试卷审核 ====================


@router.put("/exams/{exam_id}/approve", response_model=ExamResponse)
async def approve_exam(
    exam_id: int,
    session: SessionDep,
    admin: CurrentAdmin,
) -> ExamResponse:
    """审核通过并发布试卷"""
    exam_service = ExamService(session)
    try:
        exam = await exam_service.approve_exam(exam_id, admin)
        return ExamResponse.model_validate(exam)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.put("/exams/{exam_id}/reject", response_model=ExamResponse)
async def reject_exam(
    exam_id: int,
    session: SessionDep,
    admin: CurrentAdmin,
    data: ReviewRejectRequest | None = None,
) -> ExamResponse:
    """驳回试卷"""
    exam_service = ExamService(session)
    try:
        exam = await exam_service.reject_exam(
            exam_id, admin, data.reason if data else None
        )
        return ExamResponse.model_validate(exam)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))

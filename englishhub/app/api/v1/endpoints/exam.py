"""试卷相关 API"""

from fastapi import APIRouter, HTTPException, Query, status

from englishhub.app.api.v1.deps import (
    CurrentStaff,
    CurrentTeacher,
    OptionalAccount,
    SessionDep,
)
from englishhub.app.core.exceptions import status_code_for
from englishhub.app.models.base import ApprovalStatus
from englishhub.app.models.exam import ExamStatus
from englishhub.app.schemas.exam import (
    ExamCreate,
    ExamDetail,
    ExamListResponse,
    ExamResponse,
    ExamUpdate,
)
from englishhub.app.schemas.question import QuestionPublic, QuestionResponse
from englishhub.app.services.exam_service import ExamService

router = APIRouter()


@router.get("/", response_model=ExamListResponse)
async def list_exams(
    session: SessionDep,
    account: CurrentStaff,
    status_filter: ExamStatus | None = Query(None, alias="status"),
    approval_status: ApprovalStatus | None = None,
    search: str | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
) -> ExamListResponse:
    """试卷管理列表（教师看自己的，管理员看全部）"""
    exam_service = ExamService(session)
    exams, total = await exam_service.list_exams(
        account,
        status=status_filter,
        approval_status=approval_status,
        search=search,
        skip=skip,
        limit=limit,
    )
    return ExamListResponse(
        items=[ExamResponse.model_validate(e) for e in exams],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/published", response_model=ExamListResponse)
async def list_published_exams(
    session: SessionDep,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
) -> ExamListResponse:
    """已发布的试卷"""
    exam_service = ExamService(session)
    exams, total = await exam_service.list_published_exams(skip, limit)
    return ExamListResponse(
        items=[ExamResponse.model_validate(e) for e in exams],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.post("/", response_model=ExamResponse, status_code=status.HTTP_201_CREATED)
async def create_exam(
    data: ExamCreate,
    session: SessionDep,
    account: CurrentStaff,
) -> ExamResponse:
    """创建试卷"""
    exam_service = ExamService(session)
    try:
        exam = await exam_service.create_exam(data, account)
        return ExamResponse.model_validate(exam)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.get("/{exam_id}", response_model=ExamDetail)
async def get_exam(
    exam_id: int,
    session: SessionDep,
    viewer: OptionalAccount,
) -> ExamDetail:
    """试卷详情（学员视角不含答案）"""
    exam_service = ExamService(session)
    try:
        return await exam_service.get_exam_detail(exam_id, viewer)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.get(
    "/{exam_id}/questions",
    response_model=list[QuestionResponse | QuestionPublic],
)
async def get_exam_questions(
    exam_id: int,
    session: SessionDep,
    viewer: OptionalAccount,
) -> list[QuestionPublic]:
    """按顺序返回试卷题目"""
    exam_service = ExamService(session)
    try:
        detail = await exam_service.get_exam_detail(exam_id, viewer)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))
    return detail.questions


@router.put("/{exam_id}", response_model=ExamResponse)
async def update_exam(
    exam_id: int,
    data: ExamUpdate,
    session: SessionDep,
    account: CurrentStaff,
) -> ExamResponse:
    """更新试卷（题目列表重新校验）"""
    exam_service = ExamService(session)
    try:
        exam = await exam_service.update_exam(exam_id, data, account)
        return ExamResponse.model_validate(exam)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.delete("/{exam_id}")
async def delete_exam(
    exam_id: int,
    session: SessionDep,
    account: CurrentStaff,
) -> dict:
    """删除试卷及其答卷"""
    exam_service = ExamService(session)
    try:
        await exam_service.delete_exam(exam_id, account)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))
    return {"message": "Đã xóa đề thi"}


@router.post("/{exam_id}/submit-review", response_model=ExamResponse)
async def submit_exam_for_review(
    exam_id: int,
    session: SessionDep,
    teacher: CurrentTeacher,
) -> ExamResponse:
    """提交试卷审核"""
    exam_service = ExamService(session)
    try:
        exam = await exam_service.submit_for_review(exam_id, teacher)
        return ExamResponse.model_validate(exam)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))

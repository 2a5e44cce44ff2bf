"""题库相关 API"""

from fastapi import APIRouter, HTTPException, Query, status

from englishhub.app.api.v1.deps import CurrentStaff, OptionalAccount, SessionDep
from englishhub.app.core.exceptions import status_code_for
from englishhub.app.models.base import CEFRLevel
from englishhub.app.models.question import QuestionSkill, QuestionType
from englishhub.app.schemas.question import (
    QuestionCreate,
    QuestionListResponse,
    QuestionPublic,
    QuestionResponse,
    QuestionUpdate,
)
from englishhub.app.services.question_service import QuestionService, question_view

router = APIRouter()


@router.get("/", response_model=QuestionListResponse)
async def list_questions(
    session: SessionDep,
    viewer: OptionalAccount,
    skill: QuestionSkill | None = None,
    type: QuestionType | None = None,
    level: CEFRLevel | None = None,
    search: str | None = None,
    mine: bool = False,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
) -> QuestionListResponse:
    """题目列表；教师与管理员可见答案与解析"""
    reveal = viewer is not None and viewer.is_staff
    question_service = QuestionService(session)
    questions, total = await question_service.list_questions(
        skill=skill,
        type=type,
        level=level,
        creator_id=viewer.id if (mine and viewer) else None,
        search=search,
        skip=skip,
        limit=limit,
    )
    return QuestionListResponse(
        items=[question_view(q, reveal_answer=reveal) for q in questions],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.post("/", response_model=QuestionResponse, status_code=status.HTTP_201_CREATED)
async def create_question(
    data: QuestionCreate,
    session: SessionDep,
    account: CurrentStaff,
) -> QuestionResponse:
    """创建题目"""
    question_service = QuestionService(session)
    try:
        question = await question_service.create_question(data, account.id)
        return QuestionResponse.model_validate(question)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.get("/{question_id}", response_model=QuestionResponse | QuestionPublic)
async def get_question(
    question_id: int,
    session: SessionDep,
    viewer: OptionalAccount,
) -> QuestionPublic:
    """题目详情"""
    question_service = QuestionService(session)
    try:
        question = await question_service.get_question_or_404(question_id)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))
    return question_view(question, reveal_answer=viewer is not None and viewer.is_staff)


@router.put("/{question_id}", response_model=QuestionResponse)
async def update_question(
    question_id: int,
    data: QuestionUpdate,
    session: SessionDep,
    account: CurrentStaff,
) -> QuestionResponse:
    """更新题目（只能修改自己创建的，管理员不限）"""
    question_service = QuestionService(session)
    try:
        question = await question_service.update_question(question_id, data, account)
        return QuestionResponse.model_validate(question)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.delete("/{question_id}")
async def delete_question(
    question_id: int,
    session: SessionDep,
    account: CurrentStaff,
) -> dict:
    """删除题目；被试卷引用时拒绝"""
    question_service = QuestionService(session)
    try:
        await question_service.delete_question(question_id, account)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))
    return {"message": "Đã xóa câu hỏi"}

"""答卷相关 API"""

from fastapi import APIRouter, HTTPException

from englishhub.app.api.v1.deps import (
    CurrentAccount,
    CurrentLearner,
    CurrentStaff,
    SessionDep,
)
from englishhub.app.core.exceptions import status_code_for
from englishhub.app.schemas.submission import (
    AnswerRecord,
    ExamResult,
    GradeRequest,
    InProgressSubmission,
    MySubmissionItem,
    SavedAnswer,
    SubmissionResponse,
    SubmissionStart,
    SubmitRequest,
)
from englishhub.app.services.submission_service import SubmissionService

router = APIRouter()


@router.post("/", response_model=SubmissionResponse)
async def start_submission(
    data: SubmissionStart,
    session: SessionDep,
    learner: CurrentLearner,
) -> SubmissionResponse:
    """开始作答；已有作答中的答卷时返回该答卷"""
    submission_service = SubmissionService(session)
    try:
        submission = await submission_service.start(data.exam_id, learner)
        return SubmissionResponse.model_validate(submission)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.get("/my", response_model=list[MySubmissionItem])
async def my_submissions(
    session: SessionDep,
    learner: CurrentLearner,
) -> list[MySubmissionItem]:
    """我的答卷"""
    submission_service = SubmissionService(session)
    return await submission_service.get_learner_submissions(learner.id)


@router.get("/exam/{exam_id}", response_model=list[SubmissionResponse])
async def exam_submissions(
    exam_id: int,
    session: SessionDep,
    account: CurrentStaff,
) -> list[SubmissionResponse]:
    """某份试卷的全部答卷（创建者或管理员）"""
    submission_service = SubmissionService(session)
    try:
        submissions = await submission_service.get_exam_submissions(exam_id, account)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))
    return [SubmissionResponse.model_validate(s) for s in submissions]


@router.get("/{submission_id}", response_model=ExamResult | InProgressSubmission)
async def get_submission(
    submission_id: int,
    session: SessionDep,
    account: CurrentAccount,
) -> ExamResult | InProgressSubmission:
    """作答中返回已保存的答案，交卷后返回成绩单"""
    submission_service = SubmissionService(session)
    try:
        return await submission_service.get_submission_view(submission_id, account)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.put("/{submission_id}/answers", response_model=SavedAnswer)
async def record_answer(
    submission_id: int,
    data: AnswerRecord,
    session: SessionDep,
    learner: CurrentLearner,
) -> SavedAnswer:
    """保存单题作答"""
    submission_service = SubmissionService(session)
    try:
        answer = await submission_service.record_answer(
            submission_id, learner, data.question_id, data.answer
        )
        return SavedAnswer.model_validate(answer)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.put("/{submission_id}/submit", response_model=ExamResult)
async def submit(
    submission_id: int,
    session: SessionDep,
    learner: CurrentLearner,
    data: SubmitRequest | None = None,
) -> ExamResult:
    """交卷并返回成绩单"""
    submission_service = SubmissionService(session)
    try:
        await submission_service.submit(submission_id, learner, data)
        return await submission_service.get_result(submission_id, learner)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.put("/{submission_id}/grade", response_model=ExamResult)
async def grade(
    submission_id: int,
    data: GradeRequest,
    session: SessionDep,
    account: CurrentStaff,
) -> ExamResult:
    """教师批改"""
    submission_service = SubmissionService(session)
    try:
        await submission_service.grade(submission_id, account, data)
        return await submission_service.get_result(submission_id, account)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))

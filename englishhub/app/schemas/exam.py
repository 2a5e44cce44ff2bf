"""试卷相关的请求/响应模型"""

from datetime import datetime

from pydantic import BaseModel, Field

from englishhub.app.models.base import ApprovalStatus
from englishhub.app.models.exam import ExamStatus, GradingMethod
from englishhub.app.schemas.question import QuestionPublic, QuestionResponse


class ExamCreate(BaseModel):
    """创建试卷请求"""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    duration_minutes: int = Field(default=60, gt=0)
    pass_score: int | None = Field(default=None, ge=0, le=100)
    grading_method: GradingMethod = GradingMethod.AUTO
    list_question_ids: list[int] = Field(default_factory=list)
    status: ExamStatus = ExamStatus.DRAFT


class ExamUpdate(BaseModel):
    """更新试卷请求"""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    duration_minutes: int | None = Field(default=None, gt=0)
    pass_score: int | None = Field(default=None, ge=0, le=100)
    grading_method: GradingMethod | None = None
    list_question_ids: list[int] | None = None
    status: ExamStatus | None = None


class ExamResponse(BaseModel):
    """试卷响应"""

    id: int
    creator_id: int
    title: str
    description: str | None
    duration_minutes: int
    pass_score: int | None
    grading_method: GradingMethod
    status: ExamStatus
    approval_status: ApprovalStatus
    rejection_reason: str | None
    list_question_ids: list[int]
    created_at: datetime

    model_config = {"from_attributes": True}


class ExamDetail(ExamResponse):
    """试卷详情（含题目，学员视角不含答案）"""

    questions: list[QuestionResponse | QuestionPublic]


class ExamListResponse(BaseModel):
    """试卷列表响应"""

    items: list[ExamResponse]
    total: int
    skip: int
    limit: int

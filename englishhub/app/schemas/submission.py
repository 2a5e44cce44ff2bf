"""答卷相关的请求/响应模型"""

from datetime import datetime

from pydantic import BaseModel, Field

from englishhub.app.models.question import QuestionType
from englishhub.app.models.submission import SubmissionStatus


class SubmissionStart(BaseModel):
    """开始作答请求"""

    exam_id: int


class AnswerRecord(BaseModel):
    """保存单题作答"""

    question_id: int
    answer: str | None = None


class SubmitRequest(BaseModel):
    """交卷请求：可附带最终作答（question_id → 答案）"""

    answers: dict[int, str | None] | None = None
    time_spent_seconds: int | None = Field(default=None, ge=0)


class AnswerGrade(BaseModel):
    """教师对单题的评分"""

    question_id: int
    score: float = Field(..., ge=0)
    feedback: str | None = None


class GradeRequest(BaseModel):
    """教师批改请求"""

    grades: list[AnswerGrade] = Field(default_factory=list)
    general_feedback: str | None = None


class SubmissionResponse(BaseModel):
    """答卷响应"""

    id: int
    exam_id: int
    learner_id: int
    started_at: datetime
    submitted_at: datetime | None
    total_score: float
    max_score: float
    status: SubmissionStatus
    teacher_general_feedback: str | None
    time_spent_seconds: int

    model_config = {"from_attributes": True}


class SavedAnswer(BaseModel):
    """作答中的单题记录"""

    question_id: int
    answer_text: str | None
    updated_at: datetime

    model_config = {"from_attributes": True}


class AnswerResult(BaseModel):
    """单题判分结果"""

    question_id: int
    question_type: QuestionType
    question_text: str
    options: list[str] | None
    user_answer: str | None
    correct_answer: str | None
    explanation: str | None
    is_correct: bool | None
    score: float | None
    max_score: float
    teacher_feedback: str | None


class ExamResult(BaseModel):
    """成绩单（是否通过由服务端计算）"""

    submission_id: int
    exam_id: int
    exam_title: str
    status: SubmissionStatus
    total_questions: int
    correct_answers: int
    wrong_answers: int
    pending_answers: int
    score: float
    max_score: float
    percentage: float
    pass_score: int
    passed: bool | None
    time_spent_seconds: int
    started_at: datetime
    submitted_at: datetime | None
    teacher_general_feedback: str | None
    answers: list[AnswerResult]


class InProgressSubmission(SubmissionResponse):
    """作答中的答卷（含已保存答案与截止时间）"""

    expires_at: datetime
    answers: list[SavedAnswer]


class MySubmissionItem(BaseModel):
    """我的答卷列表项"""

    id: int
    exam_id: int
    exam_title: str | None
    status: SubmissionStatus
    score: float
    max_score: float
    percentage: float
    passed: bool | None
    time_spent_seconds: int
    started_at: datetime
    submitted_at: datetime | None

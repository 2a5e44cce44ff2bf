"""题库相关的请求/响应模型"""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from englishhub.app.models.base import CEFRLevel
from englishhub.app.models.question import (
    MediaType,
    QuestionSkill,
    QuestionType,
    option_label,
)


def check_choice_answer(options: list[str] | None, correct_answer: str | None) -> None:
    """单选题：至少两个选项，标准答案必须是选项字母之一"""
    if not options or len(options) < 2:
        raise ValueError("Câu hỏi trắc nghiệm cần ít nhất 2 lựa chọn")
    labels = {option_label(i) for i in range(len(options))}
    if (correct_answer or "").strip().upper() not in labels:
        raise ValueError(
            f"Đáp án đúng phải là một trong các lựa chọn: {', '.join(sorted(labels))}"
        )


class QuestionCreate(BaseModel):
    """创建题目请求"""

    skill: QuestionSkill
    type: QuestionType
    level: CEFRLevel = CEFRLevel.B1
    content_text: str = Field(..., min_length=1)
    options: list[str] | None = None
    correct_answer: str | None = None
    explanation: str | None = None
    media_url: str | None = Field(default=None, max_length=2048)
    media_type: MediaType = MediaType.NONE
    points: float = Field(default=1.0, gt=0)

    @model_validator(mode="after")
    def validate_answer(self) -> "QuestionCreate":
        if self.type == QuestionType.MULTIPLE_CHOICE:
            check_choice_answer(self.options, self.correct_answer)
            self.correct_answer = self.correct_answer.strip().upper()
        else:
            # 只有单选题保留选项
            self.options = None
        return self


class QuestionUpdate(BaseModel):
    """更新题目请求（题型/选项/答案的一致性在服务层合并后校验）"""

    skill: QuestionSkill | None = None
    type: QuestionType | None = None
    level: CEFRLevel | None = None
    content_text: str | None = Field(default=None, min_length=1)
    options: list[str] | None = None
    correct_answer: str | None = None
    explanation: str | None = None
    media_url: str | None = Field(default=None, max_length=2048)
    media_type: MediaType | None = None
    points: float | None = Field(default=None, gt=0)


class QuestionPublic(BaseModel):
    """学员可见的题目（不含答案与解析）"""

    id: int
    skill: QuestionSkill
    type: QuestionType
    level: CEFRLevel
    content_text: str
    options: list[str] | None
    media_url: str | None
    media_type: MediaType
    points: float

    model_config = {"from_attributes": True}


class QuestionResponse(QuestionPublic):
    """教师/管理员可见的完整题目"""

    creator_id: int
    correct_answer: str | None
    explanation: str | None
    created_at: datetime


class QuestionListResponse(BaseModel):
    """题目列表响应"""

    items: list[QuestionResponse | QuestionPublic]
    total: int
    skip: int
    limit: int

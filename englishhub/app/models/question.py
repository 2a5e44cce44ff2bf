"""题库模型"""

from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Column, Text
from sqlmodel import Field, SQLModel

from englishhub.app.core.utils import utc_now_naive
from englishhub.app.models.base import CEFRLevel, enum_column


class QuestionSkill(str, Enum):
    """题目考查技能"""

    LISTENING = "listening"
    READING = "reading"
    WRITING = "writing"
    GRAMMAR = "grammar"
    VOCABULARY = "vocabulary"


class QuestionType(str, Enum):
    """题型"""

    MULTIPLE_CHOICE = "multiple_choice"
    FILL_IN_BLANK = "fill_in_blank"
    ESSAY = "essay"
    MATCHING = "matching"


class MediaType(str, Enum):
    """附件类型"""

    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    NONE = "none"


# 可按标准答案直接比对的题型，其余题型需教师批改
AUTO_GRADABLE_TYPES = frozenset(
    {QuestionType.MULTIPLE_CHOICE, QuestionType.FILL_IN_BLANK}
)


def option_label(index: int) -> str:
    """选项下标 → 选项字母（0 → A）"""
    return chr(ord("A") + index)


class Question(SQLModel, table=True):
    """题目模型"""

    __tablename__ = "questions"

    id: int | None = Field(default=None, primary_key=True)
    creator_id: int = Field(foreign_key="accounts.id", index=True)
    skill: QuestionSkill = Field(sa_type=enum_column(QuestionSkill), index=True)
    type: QuestionType = Field(sa_type=enum_column(QuestionType), index=True)
    level: CEFRLevel = Field(
        default=CEFRLevel.B1, sa_type=enum_column(CEFRLevel), index=True
    )
    content_text: str = Field(sa_column=Column(Text, nullable=False))
    options: list[str] | None = Field(default=None, sa_column=Column(JSON))
    correct_answer: str | None = Field(default=None, sa_column=Column(Text))
    explanation: str | None = Field(default=None, sa_column=Column(Text))
    media_url: str | None = Field(default=None, max_length=2048)
    media_type: MediaType = Field(default=MediaType.NONE, sa_type=enum_column(MediaType))
    points: float = Field(default=1.0)
    created_at: datetime = Field(default_factory=utc_now_naive)

    @property
    def is_auto_gradable(self) -> bool:
        return self.type in AUTO_GRADABLE_TYPES

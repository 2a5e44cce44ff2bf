"""试卷模型"""

from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Column, Text
from sqlmodel import Field, SQLModel

from englishhub.app.core.utils import utc_now_naive
from englishhub.app.models.base import ApprovalStatus, enum_column


class GradingMethod(str, Enum):
    """批改方式"""

    AUTO = "auto"  # 客观题自动判分
    MANUAL = "manual"  # 教师批改
    HYBRID = "hybrid"  # 客观题自动，主观题教师批改


class ExamStatus(str, Enum):
    """试卷状态"""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class Exam(SQLModel, table=True):
    """试卷模型"""

    __tablename__ = "exams"

    id: int | None = Field(default=None, primary_key=True)
    creator_id: int = Field(foreign_key="accounts.id", index=True)
    title: str = Field(max_length=255, index=True)
    description: str | None = Field(default=None, sa_column=Column(Text))
    duration_minutes: int = Field(default=60)
    pass_score: int | None = Field(default=None)  # 百分制，None 时取系统默认值
    grading_method: GradingMethod = Field(
        default=GradingMethod.AUTO, sa_type=enum_column(GradingMethod)
    )
    status: ExamStatus = Field(
        default=ExamStatus.DRAFT, sa_type=enum_column(ExamStatus), index=True
    )
    approval_status: ApprovalStatus = Field(
        default=ApprovalStatus.DRAFT,
        sa_type=enum_column(ApprovalStatus),
        index=True,
    )
    rejection_reason: str | None = Field(default=None, sa_column=Column(Text))
    list_question_ids: list[int] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    created_at: datetime = Field(default_factory=utc_now_naive)

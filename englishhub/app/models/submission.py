"""答卷模型"""

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, Index, Integer, Text, UniqueConstraint, text
from sqlalchemy import ForeignKey as SAForeignKey
from sqlmodel import Field, SQLModel

from englishhub.app.core.utils import utc_now_naive
from englishhub.app.models.base import enum_column


class SubmissionStatus(str, Enum):
    """答卷状态"""

    IN_PROGRESS = "in_progress"  # 作答中
    SUBMITTED = "submitted"  # 已交卷，判分中
    GRADING = "grading"  # 等待教师批改
    COMPLETED = "completed"  # 批改完成


_ACTIVE_ONLY = text("status = 'in_progress'")


class ExamSubmission(SQLModel, table=True):
    """答卷模型：一名学员对一份试卷的一次作答"""

    __tablename__ = "exam_submissions"
    __table_args__ = (
        # 同一学员同一试卷最多一份作答中的答卷
        Index(
            "uq_exam_submissions_active",
            "exam_id",
            "learner_id",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    exam_id: int = Field(foreign_key="exams.id", index=True)
    learner_id: int = Field(foreign_key="accounts.id", index=True)
    started_at: datetime = Field(default_factory=utc_now_naive)
    submitted_at: datetime | None = Field(default=None)
    total_score: float = Field(default=0.0)
    max_score: float = Field(default=0.0)
    status: SubmissionStatus = Field(
        default=SubmissionStatus.IN_PROGRESS,
        sa_type=enum_column(SubmissionStatus),
        index=True,
    )
    teacher_general_feedback: str | None = Field(default=None, sa_column=Column(Text))
    time_spent_seconds: int = Field(default=0)


class SubmissionAnswer(SQLModel, table=True):
    """单题作答记录"""

    __tablename__ = "submission_answers"
    __table_args__ = (
        UniqueConstraint(
            "submission_id", "question_id", name="uq_submission_answers_question"
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    submission_id: int = Field(
        sa_column=Column(
            Integer,
            SAForeignKey("exam_submissions.id", ondelete="CASCADE"),
            index=True,
            nullable=False,
        ),
    )
    question_id: int = Field(foreign_key="questions.id", index=True)
    answer_text: str | None = Field(default=None, sa_column=Column(Text))
    is_correct: bool | None = Field(default=None)  # None 表示待批改
    score: float | None = Field(default=None)
    teacher_feedback: str | None = Field(default=None, sa_column=Column(Text))
    graded_at: datetime | None = Field(default=None)
    updated_at: datetime = Field(default_factory=utc_now_naive)

    @property
    def is_graded(self) -> bool:
        return self.score is not None

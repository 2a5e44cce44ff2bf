"""基础模型定义"""

from datetime import datetime
from enum import Enum

from sqlalchemy import Enum as SQLAEnum
from sqlmodel import Field, SQLModel

from englishhub.app.core.utils import utc_now_naive


def enum_column(enum_cls: type[Enum]) -> SQLAEnum:
    """以字符串值存储的枚举列（非数据库原生枚举）"""
    return SQLAEnum(
        enum_cls,
        values_callable=lambda obj: [e.value for e in obj],
        native_enum=False,
    )


class ApprovalStatus(str, Enum):
    """课程/试卷审核状态"""

    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class CEFRLevel(str, Enum):
    """CEFR 等级"""

    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"
    C2 = "C2"


class TimestampMixin(SQLModel):
    """时间戳混入类"""

    created_at: datetime = Field(
        default_factory=utc_now_naive,
        nullable=False,
    )
    updated_at: datetime = Field(
        default_factory=utc_now_naive,
        nullable=False,
        sa_column_kwargs={"onupdate": utc_now_naive},
    )

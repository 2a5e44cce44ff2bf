"""站内通知模型"""

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel

from englishhub.app.core.utils import utc_now_naive
from englishhub.app.models.base import enum_column


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationCategory(str, Enum):
    EXAM = "exam"
    COURSE_REVIEW = "course_review"
    EXAM_REVIEW = "exam_review"
    ENROLLMENT = "enrollment"
    FEEDBACK = "feedback"
    SYSTEM = "system"


class Notification(SQLModel, table=True):
    """站内通知"""

    __tablename__ = "notifications"

    id: int | None = Field(default=None, primary_key=True)
    account_id: int = Field(foreign_key="accounts.id", index=True)
    sender_id: int | None = Field(default=None, foreign_key="accounts.id")
    title: str = Field(max_length=255)
    message: str = Field(sa_column=Column(Text, nullable=False))
    type: NotificationType = Field(
        default=NotificationType.INFO, sa_type=enum_column(NotificationType)
    )
    category: NotificationCategory = Field(
        default=NotificationCategory.SYSTEM, sa_type=enum_column(NotificationCategory)
    )
    is_read: bool = Field(default=False, index=True)
    related_id: int | None = Field(default=None)
    related_type: str | None = Field(default=None, max_length=50)
    created_at: datetime = Field(default_factory=utc_now_naive)

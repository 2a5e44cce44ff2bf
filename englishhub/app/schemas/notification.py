"""通知相关的响应模型"""

from datetime import datetime

from pydantic import BaseModel

from englishhub.app.models.notification import NotificationCategory, NotificationType


class NotificationResponse(BaseModel):
    """通知响应"""

    id: int
    title: str
    message: str
    type: NotificationType
    category: NotificationCategory
    is_read: bool
    related_id: int | None
    related_type: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationListResponse(BaseModel):
    """通知列表响应"""

    items: list[NotificationResponse]
    total: int
    unread_count: int

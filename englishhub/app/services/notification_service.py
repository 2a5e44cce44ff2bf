"""站内通知服务"""

import logging

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from englishhub.app.core.exceptions import NotFoundError
from englishhub.app.models.account import Account, AccountRole
from englishhub.app.models.notification import (
    Notification,
    NotificationCategory,
    NotificationType,
)

logger = logging.getLogger(__name__)


class NotificationService:
    """通知服务类"""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def notify(
        self,
        account_id: int,
        title: str,
        message: str,
        *,
        type: NotificationType = NotificationType.INFO,
        category: NotificationCategory = NotificationCategory.SYSTEM,
        sender_id: int | None = None,
        related_id: int | None = None,
        related_type: str | None = None,
    ) -> Notification:
        """给单个账户发送通知"""
        notification = Notification(
            account_id=account_id,
            sender_id=sender_id,
            title=title,
            message=message,
            type=type,
            category=category,
            related_id=related_id,
            related_type=related_type,
        )
        self.session.add(notification)
        await self.session.flush()
        return notification

    async def notify_admins(
        self,
        title: str,
        message: str,
        *,
        category: NotificationCategory,
        sender_id: int | None = None,
        related_id: int | None = None,
        related_type: str | None = None,
    ) -> int:
        """通知所有启用中的管理员，返回发送条数"""
        stmt = select(Account.id).where(
            Account.role == AccountRole.ADMIN, Account.is_active
        )
        result = await self.session.execute(stmt)
        admin_ids = list(result.scalars().all())

        for admin_id in admin_ids:
            self.session.add(
                Notification(
                    account_id=admin_id,
                    sender_id=sender_id,
                    title=title,
                    message=message,
                    category=category,
                    related_id=related_id,
                    related_type=related_type,
                )
            )
        await self.session.flush()
        return len(admin_ids)

    async def list_notifications(
        self,
        account_id: int,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Notification], int, int]:
        """获取通知列表，返回 (列表, 总数, 未读数)"""
        conditions = [Notification.account_id == account_id]
        if unread_only:
            conditions.append(Notification.is_read.is_(False))

        count_stmt = select(func.count()).select_from(Notification).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar() or 0

        stmt = (
            select(Notification)
            .where(*conditions)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        items = list(result.scalars().all())

        return items, total, await self.unread_count(account_id)

    async def unread_count(self, account_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(Notification)
            .where(
                Notification.account_id == account_id,
                Notification.is_read.is_(False),
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def mark_read(self, notification_id: int, account_id: int) -> Notification:
        """标记单条已读（只能操作自己的通知）"""
        stmt = select(Notification).where(
            Notification.id == notification_id,
            Notification.account_id == account_id,
        )
        result = await self.session.execute(stmt)
        notification = result.scalar_one_or_none()
        if not notification:
            raise NotFoundError("Không tìm thấy thông báo")

        notification.is_read = True
        await self.session.flush()
        return notification

    async def mark_all_read(self, account_id: int) -> int:
        """全部标记已读，返回更新条数"""
        stmt = (
            update(Notification)
            .where(
                Notification.account_id == account_id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True)
        )
        result = await self.session.execute(stmt)
        logger.info(f"账户 {account_id} 已读通知 {result.rowcount} 条")
        return result.rowcount

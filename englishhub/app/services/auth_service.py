"""认证服务"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from englishhub.app.core.exceptions import PermissionDeniedError
from englishhub.app.core.security import (
    create_access_token,
    get_password_hash,
    verify_password,
)
from englishhub.app.models.account import Account, AccountRole
from englishhub.app.models.notification import NotificationCategory
from englishhub.app.schemas.auth import (
    AccountInfo,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
)
from englishhub.app.services.config_service import get_config_bool
from englishhub.app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_account_by_email(self, email: str) -> Account | None:
        stmt = select(Account).where(Account.email == email.lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_account_by_id(self, account_id: int) -> Account | None:
        stmt = select(Account).where(Account.id == account_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def register(self, data: RegisterRequest) -> Account:
        """注册学员或教师；教师默认需管理员启用"""
        if await self.get_account_by_email(data.email):
            raise ValueError("Email đã được sử dụng")

        role = AccountRole(data.role)
        is_active = True
        if role == AccountRole.TEACHER:
            is_active = get_config_bool("auto_approve_teachers")

        account = Account(
            email=data.email.lower(),
            hashed_password=get_password_hash(data.password),
            full_name=data.full_name,
            role=role,
            is_active=is_active,
        )
        self.session.add(account)
        await self.session.flush()
        await self.session.refresh(account)

        if role == AccountRole.TEACHER and not is_active:
            await NotificationService(self.session).notify_admins(
                "Giáo viên mới chờ duyệt",
                f"Tài khoản giáo viên {account.email} đang chờ kích hoạt",
                category=NotificationCategory.SYSTEM,
                sender_id=account.id,
                related_id=account.id,
                related_type="account",
            )

        logger.info(f"新账户注册: {account.email} ({role.value}, active={is_active})")
        return account

    async def login(self, data: LoginRequest) -> LoginResponse:
        account = await self.get_account_by_email(data.email)

        if not account or not verify_password(data.password, account.hashed_password):
            raise ValueError("Email hoặc mật khẩu không đúng")
        if not account.is_active:
            logger.warning(f"已停用账户尝试登录: {account.email}")
            raise PermissionDeniedError("Tài khoản chưa được kích hoạt hoặc đã bị khóa")

        access_token = create_access_token(account.id, account.role)
        return LoginResponse(
            access_token=access_token,
            role=account.role,
            user=AccountInfo.model_validate(account),
        )

"""API 依赖注入"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from englishhub.app.core.database import get_session
from englishhub.app.core.security import decode_access_token
from englishhub.app.models.account import Account, AccountRole
from englishhub.app.schemas.auth import TokenPayload
from englishhub.app.services.auth_service import AuthService

security = HTTPBearer(auto_error=False)
SessionDep = Annotated[AsyncSession, Depends(get_session)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> TokenPayload:
    if credentials is None:
        raise _unauthorized("Chưa đăng nhập")
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("Phiên đăng nhập không hợp lệ hoặc đã hết hạn")
    return payload


async def get_current_account(
    session: SessionDep,
    payload: TokenPayload = Depends(get_current_user_token),
) -> Account:
    auth_service = AuthService(session)
    account = await auth_service.get_account_by_id(payload.account_id)
    if not account:
        raise _unauthorized("Tài khoản không tồn tại")
    if not account.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Tài khoản chưa được kích hoạt hoặc đã bị khóa",
        )
    return account


async def get_optional_account(
    session: SessionDep,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Account | None:
    """公开接口：带有效 token 时识别身份，否则视为匿名"""
    if credentials is None:
        return None
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        return None
    account = await AuthService(session).get_account_by_id(payload.account_id)
    if not account or not account.is_active:
        return None
    return account


def _require_roles(*roles: AccountRole, detail: str):
    async def dependency(
        account: Account = Depends(get_current_account),
    ) -> Account:
        if account.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
        return account

    return dependency


get_current_learner = _require_roles(
    AccountRole.LEARNER, detail="Chức năng dành cho học viên"
)
get_current_staff = _require_roles(
    AccountRole.TEACHER, AccountRole.ADMIN, detail="Cần quyền giáo viên"
)
get_current_teacher = _require_roles(
    AccountRole.TEACHER, detail="Chức năng dành cho giáo viên"
)
get_current_admin = _require_roles(AccountRole.ADMIN, detail="Cần quyền quản trị viên")


CurrentAccount = Annotated[Account, Depends(get_current_account)]
OptionalAccount = Annotated[Account | None, Depends(get_optional_account)]
CurrentLearner = Annotated[Account, Depends(get_current_learner)]
CurrentTeacher = Annotated[Account, Depends(get_current_teacher)]
CurrentStaff = Annotated[Account, Depends(get_current_staff)]
CurrentAdmin = Annotated[Account, Depends(get_current_admin)]

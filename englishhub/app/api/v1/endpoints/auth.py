"""认证相关 API"""

from fastapi import APIRouter, HTTPException, status

from englishhub.app.api.v1.deps import CurrentAccount, SessionDep
from englishhub.app.core.exceptions import status_code_for
from englishhub.app.schemas.auth import (
    AccountInfo,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
)
from englishhub.app.services.auth_service import AuthService

router = APIRouter()


@router.post("/register", response_model=AccountInfo, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, session: SessionDep) -> AccountInfo:
    """注册学员或教师账户"""
    auth_service = AuthService(session)
    try:
        account = await auth_service.register(data)
        return AccountInfo.model_validate(account)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.post("/login", response_model=LoginResponse)
async def login(data: LoginRequest, session: SessionDep) -> LoginResponse:
    """登录"""
    auth_service = AuthService(session)
    try:
        return await auth_service.login(data)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))


@router.get("/me", response_model=AccountInfo)
async def get_me(account: CurrentAccount) -> AccountInfo:
    """获取当前账户信息"""
    return AccountInfo.model_validate(account)

"""认证相关的请求/响应模型"""

from typing import Literal

from pydantic import BaseModel, EmailStr, Field

from englishhub.app.models.account import AccountRole


class RegisterRequest(BaseModel):
    """注册请求（管理员账户只能通过脚本或后台创建）"""

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    full_name: str = Field(..., min_length=1, max_length=100)
    role: Literal["learner", "teacher"] = "learner"


class LoginRequest(BaseModel):
    """登录请求"""

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)


class AccountInfo(BaseModel):
    """账户信息"""

    id: int
    email: str
    full_name: str
    role: AccountRole
    is_active: bool

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    """登录响应"""

    access_token: str
    token_type: str = "bearer"
    role: AccountRole
    user: AccountInfo


class TokenPayload(BaseModel):
    """访问令牌载荷"""

    sub: str = Field(..., pattern=r"^\d+$")  # 账户 ID
    role: AccountRole
    exp: int  # 过期时间戳

    @property
    def account_id(self) -> int:
        return int(self.sub)

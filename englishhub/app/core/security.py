"""
账户密码与访问令牌

令牌载荷固定为 sub（账户 ID）、role（角色）和 exp（过期时间戳），
签发与解析都经过 TokenPayload，调用方不直接拼装 claims。
"""

import time
from datetime import UTC, datetime, timedelta

import bcrypt
from jose import JWTError, jwt
from pydantic import ValidationError

from englishhub.app.core.config import settings
from englishhub.app.models.account import AccountRole
from englishhub.app.schemas.auth import TokenPayload


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        hashed_password.encode("utf-8"),
    )


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def _token_lifetime() -> timedelta:
    return timedelta(minutes=settings.jwt_access_token_expire_minutes)


def create_access_token(
    account_id: int,
    role: AccountRole,
    expires_delta: timedelta | None = None,
) -> str:
    """为账户签发访问令牌"""
    expire = datetime.now(UTC) + (expires_delta or _token_lifetime())
    claims = {
        "sub": str(account_id),
        "role": AccountRole(role).value,
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenPayload | None:
    """解析令牌；签名错误、过期或载荷不完整时返回 None"""
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        return TokenPayload.model_validate(claims)
    except (JWTError, ValidationError):
        return None


def refresh_access_token(payload: TokenPayload) -> str | None:
    """剩余有效期不足一半时重新签发，否则返回 None"""
    remaining = payload.exp - time.time()
    if remaining >= _token_lifetime().total_seconds() * 0.5:
        return None
    return create_access_token(payload.account_id, payload.role)

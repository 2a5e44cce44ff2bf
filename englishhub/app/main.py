"""FastAPI 应用入口"""

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from starlette.middleware.base import BaseHTTPMiddleware

from englishhub.app.api.v1 import api_router
from englishhub.app.core.config import settings
from englishhub.app.core.database import async_session_factory, engine
from englishhub.app.core.exception_handlers import (
    domain_exception_handler,
    global_exception_handler,
    validation_exception_handler,
)
from englishhub.app.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from englishhub.app.core.security import decode_access_token, refresh_access_token
from englishhub.app.services.config_service import load_config_cache

# 配置日志
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


class JWTRefreshMiddleware(BaseHTTPMiddleware):
    """JWT 自动续期中间件：有效期过半时在响应头返回新 token"""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        if not (200 <= response.status_code < 300):
            return response

        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return response

        payload = decode_access_token(auth_header[7:])
        if payload is None:
            return response

        new_token = refresh_access_token(payload)
        if new_token:
            response.headers["X-New-Token"] = new_token

        return response


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """应用生命周期管理"""
    logger.info("正在启动 EnglishHub 后端服务...")

    # 从数据库加载业务配置到内存缓存
    async with async_session_factory() as session:
        await load_config_cache(session)

    logger.info("EnglishHub 后端服务启动完成")
    yield
    logger.info("正在关闭 EnglishHub 后端服务...")
    await engine.dispose()


app = FastAPI(
    title="EnglishHub API",
    description="Nền tảng học tiếng Anh trực tuyến: khóa học, ngân hàng câu hỏi, thi và chấm bài",
    version="0.1.0",
    lifespan=lifespan,
)

# JWT 自动续期中间件
app.add_middleware(JWTRefreshMiddleware)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-New-Token"],
)


# 全局异常处理
app.add_exception_handler(RequestValidationError, validation_exception_handler)
for _domain_error in (NotFoundError, PermissionDeniedError, ConflictError):
    app.add_exception_handler(_domain_error, domain_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)


# 健康检查 API
@app.get("/health", tags=["健康检查"])
async def health_check() -> dict:
    """基础健康检查"""
    return {"status": "healthy"}


@app.get("/health/detailed", tags=["健康检查"])
async def detailed_health_check() -> dict:
    """详细健康检查（数据库连接状态）"""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        logger.error(f"数据库连接失败: {e}")
        db_status = "disconnected"

    return {
        "status": "healthy" if db_status == "connected" else "unhealthy",
        "database": db_status,
        "timestamp": datetime.now(UTC).isoformat(),
    }


# 注册 API 路由
app.include_router(api_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "englishhub.app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )

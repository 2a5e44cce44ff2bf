"""系统配置管理 API"""

import logging

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel

from englishhub.app.api.v1.deps import CurrentAdmin, SessionDep
from englishhub.app.core.exceptions import status_code_for
from englishhub.app.services.config_service import CONFIG_DEFINITIONS, ConfigService

router = APIRouter()
logger = logging.getLogger(__name__)


class ConfigUpdateRequest(BaseModel):
    """配置更新请求：key → value"""

    configs: dict[str, str | int | bool]


@router.get("/config")
async def get_all_configs(
    session: SessionDep,
    admin: CurrentAdmin,
) -> dict:
    """获取所有业务配置（按分组）"""
    config_service = ConfigService(session)
    groups = await config_service.get_all_grouped()
    return {"groups": groups}


@router.put("/config")
async def update_configs(
    data: ConfigUpdateRequest,
    session: SessionDep,
    admin: CurrentAdmin,
) -> dict:
    """批量更新业务配置，每项变更写审计日志"""
    if not data.configs:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Vui lòng cung cấp cấu hình cần cập nhật",
        )

    # 过滤掉非法 key，避免前端误传
    valid_configs = {k: v for k, v in data.configs.items() if k in CONFIG_DEFINITIONS}
    if not valid_configs:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Không có cấu hình hợp lệ để cập nhật",
        )

    config_service = ConfigService(session)
    try:
        changed_keys = await config_service.update_configs(
            updates=valid_configs,
            account_id=admin.id,
            account_email=admin.email,
        )
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))

    return {
        "message": "Cập nhật cấu hình thành công",
        "changed_keys": sorted(changed_keys),
    }


@router.get("/config/audit-logs")
async def get_audit_logs(
    session: SessionDep,
    admin: CurrentAdmin,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
) -> dict:
    """获取配置变更审计日志"""
    config_service = ConfigService(session)
    logs, total = await config_service.get_audit_logs(skip, limit)
    return {
        "items": [
            {
                "id": log.id,
                "account_id": log.account_id,
                "account_email": log.account_email,
                "config_key": log.config_key,
                "old_value": log.old_value,
                "new_value": log.new_value,
                "created_at": log.created_at.isoformat(),
            }
            for log in logs
        ],
        "total": total,
        "skip": skip,
        "limit": limit,
    }

"""业务配置服务

设计思路：
- 配置存储在数据库 system_configs 表中，管理员可在后台在线修改
- 使用模块级内存缓存，读取时不查库
- 应用启动时从数据库加载缓存；管理员修改配置时同步刷新缓存
- 每次变更写一条审计日志
"""

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from englishhub.app.core.utils import utc_now_naive
from englishhub.app.models.system_config import ConfigAuditLog, SystemConfig

logger = logging.getLogger(__name__)


CONFIG_DEFINITIONS: dict[str, dict[str, Any]] = {
    # ---- 考试 ----
    "default_pass_score": {
        "group": "exam",
        "label": "Điểm đạt mặc định (%)",
        "type": "integer",
        "default": "60",
        "description": "Áp dụng cho đề thi không đặt điểm đạt riêng",
    },
    "max_exam_duration_minutes": {
        "group": "exam",
        "label": "Thời lượng tối đa (phút)",
        "type": "integer",
        "default": "300",
        "description": "Giới hạn thời lượng khi tạo hoặc sửa đề thi",
    },
    # ---- 账户 ----
    "auto_approve_teachers": {
        "group": "account",
        "label": "Tự động duyệt giáo viên",
        "type": "boolean",
        "default": "false",
        "description": "Tài khoản giáo viên mới được kích hoạt ngay khi đăng ký",
    },
}

# 配置分组名称，前端展示用
CONFIG_GROUP_LABELS = {
    "exam": "Cấu hình thi",
    "account": "Cấu hình tài khoản",
}

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "off"})


# ==================== 内存缓存 ====================
# 替换整个字典引用是原子操作，读取无需加锁。

_config_cache: dict[str, str] = {}


async def load_config_cache(session: AsyncSession) -> None:
    """
    从数据库加载全部配置到内存缓存。

    调用时机：
    - 应用启动时（lifespan）
    - 管理员修改配置后
    """
    global _config_cache

    result = await session.execute(select(SystemConfig))
    db_configs = result.scalars().all()

    # 先用默认值填充，再用数据库中的实际值覆盖
    new_cache: dict[str, str] = {
        key: defn["default"] for key, defn in CONFIG_DEFINITIONS.items()
    }
    for record in db_configs:
        if record.key in CONFIG_DEFINITIONS:
            new_cache[record.key] = record.value

    _config_cache = new_cache
    logger.info(f"配置缓存已加载，共 {len(new_cache)} 项")


def reset_config_cache() -> None:
    """清空缓存，回到默认值"""
    global _config_cache
    _config_cache = {}


def get_config(key: str) -> str:
    """从内存缓存中读取配置值，缓存未命中时返回定义中的默认值。"""
    if key in _config_cache:
        return _config_cache[key]

    definition = CONFIG_DEFINITIONS.get(key)
    if definition:
        return definition["default"]

    raise KeyError(f"未定义的配置项: {key}")


def get_config_int(key: str) -> int:
    """读取整数类型的配置值，非法值回退到默认值。"""
    value = get_config(key)
    try:
        return int(value)
    except (ValueError, TypeError):
        default = CONFIG_DEFINITIONS[key]["default"]
        logger.warning(f"配置项 {key} 的值 '{value}' 不是有效整数，回退到默认值 {default}")
        return int(default)


def get_config_bool(key: str) -> bool:
    """读取布尔类型的配置值"""
    return get_config(key).strip().lower() in _TRUE_VALUES


def _normalize_value(key: str, raw_value: Any) -> str:
    """按配置类型校验并规范化取值"""
    definition = CONFIG_DEFINITIONS[key]
    value = str(raw_value).strip()

    if definition["type"] == "integer":
        try:
            parsed = int(value)
        except (ValueError, TypeError):
            raise ValueError(f"「{definition['label']}」phải là số nguyên không âm")
        if parsed < 0:
            raise ValueError(f"「{definition['label']}」phải là số nguyên không âm")
        if key == "default_pass_score" and parsed > 100:
            raise ValueError(f"「{definition['label']}」không được vượt quá 100")
        return str(parsed)

    if definition["type"] == "boolean":
        lowered = value.lower()
        if lowered in _TRUE_VALUES:
            return "true"
        if lowered in _FALSE_VALUES:
            return "false"
        raise ValueError(f"「{definition['label']}」phải là true hoặc false")

    return value


# ==================== 配置管理服务 ====================


class ConfigService:
    """配置管理服务类：查询、更新和审计日志"""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_all_grouped(self) -> dict[str, dict]:
        """获取所有配置项，按分组返回。"""
        grouped: dict[str, dict] = {}

        for key, definition in CONFIG_DEFINITIONS.items():
            group = definition["group"]
            if group not in grouped:
                grouped[group] = {
                    "label": CONFIG_GROUP_LABELS.get(group, group),
                    "items": [],
                }

            grouped[group]["items"].append(
                {
                    "key": key,
                    "value": get_config(key),
                    "label": definition["label"],
                    "type": definition["type"],
                    "description": definition["description"],
                }
            )

        return grouped

    async def update_configs(
        self,
        updates: dict[str, Any],
        account_id: int,
        account_email: str,
    ) -> set[str]:
        """
        批量更新配置项，只写入值实际变化的项。

        Returns:
            实际发生变更的配置 key 集合
        """
        # 先整体校验，任何一项非法都不落库
        normalized: dict[str, str] = {}
        for key, raw_value in updates.items():
            if key not in CONFIG_DEFINITIONS:
                logger.warning(f"忽略未定义的配置项: {key}")
                continue
            normalized[key] = _normalize_value(key, raw_value)

        changed: dict[str, str] = {}
        for key, new_value in normalized.items():
            old_value = get_config(key)
            if old_value == new_value:
                continue

            stmt = select(SystemConfig).where(SystemConfig.key == key)
            result = await self.session.execute(stmt)
            record = result.scalar_one_or_none()

            if record:
                record.value = new_value
                record.updated_by = account_id
                record.updated_at = utc_now_naive()
            else:
                self.session.add(
                    SystemConfig(
                        key=key,
                        value=new_value,
                        group=CONFIG_DEFINITIONS[key]["group"],
                        updated_by=account_id,
                    )
                )

            self.session.add(
                ConfigAuditLog(
                    account_id=account_id,
                    account_email=account_email,
                    config_key=key,
                    old_value=old_value,
                    new_value=new_value,
                )
            )
            changed[key] = new_value

        await self.session.flush()

        if changed:
            global _config_cache
            base = _config_cache or {
                k: d["default"] for k, d in CONFIG_DEFINITIONS.items()
            }
            _config_cache = {**base, **changed}
            logger.info(f"配置已更新: {sorted(changed)} by {account_email}")

        return set(changed)

    async def get_audit_logs(
        self,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[ConfigAuditLog], int]:
        """获取配置变更审计日志（按时间倒序）"""
        count_stmt = select(func.count()).select_from(ConfigAuditLog)
        total = (await self.session.execute(count_stmt)).scalar() or 0

        stmt = (
            select(ConfigAuditLog)
            .order_by(ConfigAuditLog.created_at.desc(), ConfigAuditLog.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

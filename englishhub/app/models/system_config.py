"""业务配置项与变更审计"""

from datetime import datetime

from sqlmodel import Field, SQLModel

from englishhub.app.core.utils import utc_now_naive


class SystemConfig(SQLModel, table=True):
    """可由管理员在线修改的业务配置"""

    __tablename__ = "system_configs"

    id: int | None = Field(default=None, primary_key=True)
    key: str = Field(unique=True, index=True, max_length=100)
    value: str = Field(max_length=500)
    group: str = Field(max_length=50, index=True)
    updated_by: int | None = Field(default=None, foreign_key="accounts.id")
    updated_at: datetime = Field(default_factory=utc_now_naive)


class ConfigAuditLog(SQLModel, table=True):
    """每次配置值变化记一行"""

    __tablename__ = "config_audit_logs"

    id: int | None = Field(default=None, primary_key=True)
    # 账户删除后置空，保留 account_email 供追溯
    account_id: int | None = Field(default=None, foreign_key="accounts.id", index=True)
    account_email: str = Field(max_length=150)
    config_key: str = Field(max_length=100, index=True)
    old_value: str | None = Field(default=None, max_length=500)
    new_value: str = Field(max_length=500)
    created_at: datetime = Field(default_factory=utc_now_naive)

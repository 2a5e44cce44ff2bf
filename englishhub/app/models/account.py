"""账户模型"""

from enum import Enum

from sqlmodel import Field, SQLModel

from englishhub.app.models.base import TimestampMixin, enum_column


class AccountRole(str, Enum):
    """账户角色"""

    LEARNER = "learner"
    TEACHER = "teacher"
    ADMIN = "admin"


class Account(TimestampMixin, SQLModel, table=True):
    """账户模型（学员 / 教师 / 管理员共用）"""

    __tablename__ = "accounts"

    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=150)
    hashed_password: str = Field(max_length=255)
    full_name: str = Field(max_length=100)
    role: AccountRole = Field(
        default=AccountRole.LEARNER,
        sa_type=enum_column(AccountRole),
        index=True,
    )
    is_active: bool = Field(default=True)

    @property
    def is_staff(self) -> bool:
        """教师或管理员"""
        return self.role in (AccountRole.TEACHER, AccountRole.ADMIN)

"""
Pytest 配置与公共 Fixtures

服务层测试使用内存 SQLite（aiosqlite）；HTTP 测试通过 httpx.AsyncClient
直连 ASGI 应用，并把 get_session 依赖替换为测试数据库会话。
"""

import itertools
import os

# 必须在导入应用模块之前设置，Settings 在导入时读取环境变量
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import englishhub.app.models  # noqa: F401  注册全部表
from englishhub.app.core.database import build_session_factory, get_session
from englishhub.app.core.security import create_access_token, get_password_hash
from englishhub.app.models.account import Account, AccountRole
from englishhub.app.models.base import ApprovalStatus
from englishhub.app.models.exam import Exam, ExamStatus, GradingMethod
from englishhub.app.models.question import Question, QuestionSkill, QuestionType
from englishhub.app.services.config_service import reset_config_cache

_email_seq = itertools.count(1)


@pytest.fixture(autouse=True)
def clean_config_cache():
    """每个测试都从默认业务配置开始"""
    reset_config_cache()
    yield
    reset_config_cache()


@pytest_asyncio.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as db_session:
        yield db_session


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP 客户端；每个请求一个会话，成功提交、异常回滚"""
    from englishhub.app.main import app

    async def override_get_session():
        async with session_factory() as db_session:
            try:
                yield db_session
                await db_session.commit()
            except Exception:
                await db_session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


# ==================== 数据构造 ====================


async def make_account(
    session,
    role: AccountRole = AccountRole.LEARNER,
    email: str | None = None,
    password: str = "secret123",
    is_active: bool = True,
) -> Account:
    account = Account(
        email=email or f"{role.value}{next(_email_seq)}@example.com",
        hashed_password=get_password_hash(password),
        full_name=f"Test {role.value}",
        role=role,
        is_active=is_active,
    )
    session.add(account)
    await session.flush()
    await session.refresh(account)
    return account


async def make_question(
    session,
    creator: Account,
    type: QuestionType = QuestionType.MULTIPLE_CHOICE,
    correct_answer: str | None = "A",
    points: float = 1.0,
    options: list[str] | None = None,
) -> Question:
    if type == QuestionType.MULTIPLE_CHOICE and options is None:
        options = ["go", "goes", "went", "gone"]
    question = Question(
        creator_id=creator.id,
        skill=QuestionSkill.GRAMMAR,
        type=type,
        content_text="She ___ to school every day.",
        options=options if type == QuestionType.MULTIPLE_CHOICE else None,
        correct_answer=correct_answer,
        points=points,
    )
    session.add(question)
    await session.flush()
    await session.refresh(question)
    return question


async def make_exam(
    session,
    creator: Account,
    questions: list[Question],
    grading_method: GradingMethod = GradingMethod.AUTO,
    pass_score: int | None = None,
    duration_minutes: int = 60,
    published: bool = True,
) -> Exam:
    exam = Exam(
        creator_id=creator.id,
        title="Placement test",
        duration_minutes=duration_minutes,
        pass_score=pass_score,
        grading_method=grading_method,
        list_question_ids=[q.id for q in questions],
        status=ExamStatus.PUBLISHED if published else ExamStatus.DRAFT,
        approval_status=ApprovalStatus.APPROVED if published else ApprovalStatus.DRAFT,
    )
    session.add(exam)
    await session.flush()
    await session.refresh(exam)
    return exam


def auth_headers(account: Account) -> dict[str, str]:
    token = create_access_token(account.id, account.role)
    return {"Authorization": f"Bearer {token}"}

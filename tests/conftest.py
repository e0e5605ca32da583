"""테스트 인프라 — 인메모리 SQLite DB, 세션, httpx 클라이언트 픽스처.

Test infrastructure — In-memory SQLite database, session and httpx client
fixtures. Every test gets a fresh database: the schema is created on a
new StaticPool engine, so no truncation is needed between tests.
"""

import os

# 앱 임포트 전에 설정 — Configure before the application is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SMTP_FROM_EMAIL", "")
os.environ.setdefault("AXIOM_API_TOKEN", "")

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from yggdrasil.database import Base, get_db  # noqa: E402
from yggdrasil.main import app  # noqa: E402
from yggdrasil.models import *  # noqa: F401,F403,E402 — register all models with metadata
from yggdrasil.models.user import User  # noqa: E402
from yggdrasil.utils.jwt import create_access_token  # noqa: E402
from yggdrasil.utils.password import hash_password  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "password123"


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진 — 테스트마다 새 스키마."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(
    db: AsyncSession, engine: AsyncEngine, monkeypatch: pytest.MonkeyPatch
) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — DB 세션을 오버라이드합니다."""
    # The installed pytest11 plugin imports settings before this conftest sets
    # DATABASE_URL, so point the readiness check at the test engine.
    monkeypatch.setattr("yggdrasil.main.engine", engine)

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# 헬퍼 픽스처: 역할별 사용자
# ---------------------------------------------------------------------------
async def create_user(
    db: AsyncSession,
    role: str,
    email: str,
    first_name: str = "Test",
    last_name: str | None = None,
    **extra,
) -> User:
    """테스트 사용자를 생성합니다."""
    user = User(
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
        first_name=first_name,
        last_name=last_name or role.capitalize(),
        **extra,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin_user(db: AsyncSession) -> User:
    return await create_user(db, "admin", "admin@test.com", "Ada")


@pytest_asyncio.fixture
async def staff_user(db: AsyncSession) -> User:
    return await create_user(db, "staff", "staff@test.com", "Sam")


@pytest_asyncio.fixture
async def teacher_user(db: AsyncSession) -> User:
    return await create_user(db, "teacher", "teacher@test.com", "Tess")


@pytest_asyncio.fixture
async def student_user(db: AsyncSession) -> User:
    return await create_user(db, "student", "student@test.com", "Stu")


@pytest_asyncio.fixture
async def other_student(db: AsyncSession) -> User:
    return await create_user(db, "student", "student2@test.com", "Olga", "Other")


def make_token(user: User) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    return create_access_token({"sub": str(user.id), "email": user.email, "role": user.role})


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_token(admin_user: User) -> str:
    return make_token(admin_user)


@pytest.fixture
def staff_token(staff_user: User) -> str:
    return make_token(staff_user)


@pytest.fixture
def teacher_token(teacher_user: User) -> str:
    return make_token(teacher_user)


@pytest.fixture
def student_token(student_user: User) -> str:
    return make_token(student_user)


@pytest.fixture
def other_student_token(other_student: User) -> str:
    return make_token(other_student)

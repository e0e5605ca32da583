"""초기 데이터 시드 스크립트 — 역할별 계정, 샘플 강좌, 기사 생성.

Seed script — Creates one account per role plus a sample course and a
welcome article. Run it once to bootstrap a development database.

Usage:
    python -m yggdrasil.seed

Creates:
    - 4개 계정: admin, staff, teacher, student (비밀번호: password123)
      (4 accounts, one per role, password: password123)
    - 1개 게시된 강좌 (1 published course taught by the teacher)
    - 1개 고정 공지 기사 (1 pinned welcome article)
"""

import asyncio
from datetime import datetime, timezone

from sqlalchemy import select

from yggdrasil.database import Base, async_session, engine
from yggdrasil.models import Course, NewsArticle, User
from yggdrasil.utils.password import hash_password

SEED_PASSWORD = "password123"

SEED_USERS: list[tuple[str, str, str, str]] = [
    ("admin@yggdrasil.local", "admin", "Ada", "Admin"),
    ("staff@yggdrasil.local", "staff", "Sam", "Staff"),
    ("teacher@yggdrasil.local", "teacher", "Tess", "Teacher"),
    ("student@yggdrasil.local", "student", "Stu", "Student"),
]


async def seed() -> None:
    """데이터베이스를 초기 데이터로 시드합니다.

    Seed the database with initial data. Tables are created when missing.

    Idempotent: 이미 시드된 경우 건너뜁니다 (Skips if already seeded).
    """
    # 테이블 생성 — DDL 실행 (Create all tables from ORM metadata)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        # 관리자 계정이 있으면 건너뜀 — Skip when the admin account exists
        result = await db.execute(select(User).where(User.email == SEED_USERS[0][0]))
        if result.scalar_one_or_none():
            print("Already seeded. Skipping.")
            return

        users: dict[str, User] = {}
        for email, role, first_name, last_name in SEED_USERS:
            user = User(
                email=email,
                password_hash=hash_password(SEED_PASSWORD),
                role=role,
                first_name=first_name,
                last_name=last_name,
            )
            db.add(user)
            users[role] = user
        await db.flush()  # flush로 user.id 생성 (Flush to generate user ids)

        teacher: User = users["teacher"]
        db.add(Course(
            code="CS101",
            title="Introduction to Programming",
            description="Variables, control flow and functions.",
            category="computer-science",
            level="beginner",
            status="published",
            instructor_id=teacher.id,
            instructor_name=teacher.full_name,
            tags=["python", "basics"],
        ))

        admin: User = users["admin"]
        db.add(NewsArticle(
            title="Welcome to Yggdrasil",
            slug="welcome-to-yggdrasil",
            content="The learning platform is open. Check the course catalogue to get started.",
            summary="The platform is open.",
            category="announcements",
            tags=["welcome"],
            author_id=admin.id,
            author_name=admin.full_name,
            author_role=admin.role,
            is_published=True,
            is_pinned=True,
            published_at=datetime.now(timezone.utc),
        ))

        await db.commit()
        print("Seed complete:")
        for email, role, _, _ in SEED_USERS:
            print(f"  {role:<8} {email} / {SEED_PASSWORD}")


if __name__ == "__main__":
    asyncio.run(seed())

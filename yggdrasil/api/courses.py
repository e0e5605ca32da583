"""강좌 라우터 — 강좌 CRUD, 검색, 게시/보관, 수강 등록, 진도.

Course Router — Course CRUD, search, publish/archive, enrollment and
progress endpoints. Mounted at /api/courses.
"""

from typing import Annotated, Any, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.api.deps import get_current_user, require_educator, require_student, require_teacher
from yggdrasil.database import get_db
from yggdrasil.models.user import User
from yggdrasil.schemas.common import ApiResponse, PaginatedResponse
from yggdrasil.schemas.course import (
    CourseCreate,
    CourseLevel,
    CourseResponse,
    CourseStats,
    CourseStatus,
    CourseUpdate,
    EnrollmentResponse,
    ProgressUpdate,
    StudentEnrollment,
)
from yggdrasil.services.course_service import course_service
from yggdrasil.utils.responses import paginated_response, success_response

router: APIRouter = APIRouter()


@router.post("/", response_model=ApiResponse[CourseResponse], status_code=201)
async def create_course(
    data: CourseCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_educator)],
) -> ApiResponse[Any]:
    """강좌를 생성합니다 — 호출자가 담당 강사 (The caller becomes the instructor)."""
    result: CourseResponse = await course_service.create_course(db, current_user, data)
    await db.commit()
    return success_response(result, "Course created")


@router.get("/", response_model=PaginatedResponse[CourseResponse])
async def search_courses(
    db: Annotated[AsyncSession, Depends(get_db)],
    q: Annotated[str | None, Query(description="제목/설명/코드/태그 검색")] = None,
    category: Annotated[str | None, Query()] = None,
    level: Annotated[CourseLevel | None, Query()] = None,
    status: Annotated[CourseStatus | None, Query()] = "published",
    instructor: Annotated[UUID | None, Query()] = None,
    tags: Annotated[str | None, Query(description="쉼표 구분 태그 (Comma-separated, any match)")] = None,
    min_credits: Annotated[int | None, Query(alias="minCredits", ge=0)] = None,
    max_credits: Annotated[int | None, Query(alias="maxCredits", ge=0)] = None,
    has_available_spots: Annotated[bool | None, Query(alias="hasAvailableSpots")] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
    sort_by: Annotated[
        Literal["title", "startDate", "popularity", "createdAt"], Query(alias="sortBy")
    ] = "createdAt",
    sort_order: Annotated[Literal["asc", "desc"], Query(alias="sortOrder")] = "desc",
) -> PaginatedResponse[Any]:
    """강좌 검색.

    Search active courses. `offset` skips exactly that many rows; the
    page number in the pagination block is derived from it.
    """
    page: int = offset // limit + 1
    tag_list: list[str] | None = [t.strip() for t in tags.split(",") if t.strip()] if tags else None
    courses, total = await course_service.search_courses(
        db,
        q=q,
        category=category,
        level=level,
        status=status,
        instructor_id=instructor,
        tags=tag_list,
        min_credits=min_credits,
        max_credits=max_credits,
        has_available_spots=has_available_spots,
        sort_by=sort_by,
        sort_order=sort_order,
        offset=offset,
        limit=limit,
    )
    return paginated_response(courses, page, limit, total)


@router.get("/my/enrollments", response_model=ApiResponse[list[StudentEnrollment]])
async def my_enrollments(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_student)],
) -> ApiResponse[Any]:
    return success_response(await course_service.my_enrollments(db, current_user))


@router.get("/my/teaching", response_model=ApiResponse[list[CourseResponse]])
async def my_teaching(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_teacher)],
) -> ApiResponse[Any]:
    return success_response(await course_service.my_teaching(db, current_user))


@router.get("/{course_id}", response_model=ApiResponse[CourseResponse])
async def get_course(
    course_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ApiResponse[Any]:
    """강좌 상세 — 수강 인원, 잔여석 포함 (With enrolled count and available spots)."""
    return success_response(await course_service.get_course(db, course_id))


@router.put("/{course_id}", response_model=ApiResponse[CourseResponse])
async def update_course(
    course_id: UUID,
    data: CourseUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_educator)],
) -> ApiResponse[Any]:
    result: CourseResponse = await course_service.update_course(db, current_user, course_id, data)
    await db.commit()
    return success_response(result, "Course updated")


@router.delete("/{course_id}", response_model=ApiResponse[None])
async def delete_course(
    course_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_educator)],
) -> ApiResponse[Any]:
    """강좌 삭제 (소프트 삭제: is_active=False, status=archived)."""
    await course_service.delete_course(db, current_user, course_id)
    await db.commit()
    return success_response(message="Course deleted")


@router.post("/{course_id}/publish", response_model=ApiResponse[CourseResponse])
async def publish_course(
    course_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_educator)],
) -> ApiResponse[Any]:
    result: CourseResponse = await course_service.set_status(db, current_user, course_id, "published")
    await db.commit()
    return success_response(result, "Course published")


@router.post("/{course_id}/archive", response_model=ApiResponse[CourseResponse])
async def archive_course(
    course_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_educator)],
) -> ApiResponse[Any]:
    result: CourseResponse = await course_service.set_status(db, current_user, course_id, "archived")
    await db.commit()
    return success_response(result, "Course archived")


@router.post("/{course_id}/enroll", response_model=ApiResponse[EnrollmentResponse], status_code=201)
async def enroll(
    course_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_student)],
) -> ApiResponse[Any]:
    """수강 등록 (Enroll the calling student)."""
    result: EnrollmentResponse = await course_service.enroll(db, current_user, course_id)
    await db.commit()
    return success_response(result, "Enrolled successfully")


@router.delete("/{course_id}/enroll", response_model=ApiResponse[None])
async def unenroll(
    course_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_student)],
) -> ApiResponse[Any]:
    await course_service.unenroll(db, current_user, course_id)
    await db.commit()
    return success_response(message="Unenrolled successfully")


@router.put("/{course_id}/progress", response_model=ApiResponse[EnrollmentResponse])
async def update_progress(
    course_id: UUID,
    data: ProgressUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_student)],
) -> ApiResponse[Any]:
    """진도 업데이트 — 100이면 수료 (Progress 100 completes the enrollment)."""
    result: EnrollmentResponse = await course_service.update_progress(db, current_user, course_id, data)
    await db.commit()
    return success_response(result, "Progress updated")


@router.get("/{course_id}/stats", response_model=ApiResponse[CourseStats])
async def get_course_stats(
    course_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    return success_response(await course_service.get_stats(db, current_user, course_id))

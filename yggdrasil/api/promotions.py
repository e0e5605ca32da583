"""프로모션 라우터 — 프로모션 CRUD, 학생 배정, 이벤트 연결, 진급.

Promotion Router — Promotion CRUD, student assignment, event links and
semester progression. Mounted at /api/planning/promotions.

Permissions:
    - 조회: 인증된 모든 사용자 (Read: any authenticated user)
    - 관리: admin, staff (Manage: admin and staff)
    - /my: student
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.api.deps import get_current_user, require_admin_or_staff, require_student
from yggdrasil.database import get_db
from yggdrasil.models.user import User
from yggdrasil.schemas.common import ApiResponse
from yggdrasil.schemas.planning import (
    EventIds,
    Intake,
    PromotionCreate,
    PromotionDetail,
    PromotionResponse,
    PromotionStatus,
    PromotionUpdate,
    StudentIds,
    StudentPromotionView,
)
from yggdrasil.services.promotion_service import promotion_service
from yggdrasil.utils.responses import success_response

router: APIRouter = APIRouter(prefix="/promotions")


@router.get("/", response_model=ApiResponse[list[PromotionResponse]])
async def list_promotions(
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(get_current_user)],
    semester: Annotated[int | None, Query(ge=1, le=10)] = None,
    intake: Annotated[Intake | None, Query()] = None,
    academic_year: Annotated[str | None, Query(alias="academicYear")] = None,
    status: Annotated[PromotionStatus | None, Query()] = None,
    department: Annotated[str | None, Query()] = None,
) -> ApiResponse[Any]:
    """프로모션 목록 — 학기, 이름 순 (Sorted by semester then name)."""
    result = await promotion_service.list_promotions(
        db,
        semester=semester,
        intake=intake,
        academic_year=academic_year,
        status=status,
        department=department,
    )
    return success_response(result)


@router.post("/", response_model=ApiResponse[PromotionResponse], status_code=201)
async def create_promotion(
    data: PromotionCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> ApiResponse[Any]:
    result: PromotionResponse = await promotion_service.create_promotion(db, current_user, data)
    await db.commit()
    return success_response(result, "Promotion created")


@router.get("/my", response_model=ApiResponse[StudentPromotionView])
async def my_promotion(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_student)],
) -> ApiResponse[Any]:
    """학생 본인 프로모션 + 예정 이벤트 10개 (Own promotion and next 10 linked events)."""
    return success_response(await promotion_service.my_promotion(db, current_user))


@router.get("/{promotion_id}", response_model=ApiResponse[PromotionDetail])
async def get_promotion(
    promotion_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    return success_response(await promotion_service.get_promotion(db, promotion_id))


@router.put("/{promotion_id}", response_model=ApiResponse[PromotionResponse])
async def update_promotion(
    promotion_id: UUID,
    data: PromotionUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin_or_staff)],
) -> ApiResponse[Any]:
    result: PromotionResponse = await promotion_service.update_promotion(db, promotion_id, data)
    await db.commit()
    return success_response(result, "Promotion updated")


@router.delete("/{promotion_id}", response_model=ApiResponse[None])
async def delete_promotion(
    promotion_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin_or_staff)],
) -> ApiResponse[Any]:
    """프로모션 삭제 — 학생이 있으면 거부 (Refused while students are enrolled)."""
    await promotion_service.delete_promotion(db, promotion_id)
    await db.commit()
    return success_response(message="Promotion deleted")


# === 학생 배정 (Student assignment) ===

@router.post("/{promotion_id}/students", response_model=ApiResponse[PromotionResponse])
async def add_students(
    promotion_id: UUID,
    data: StudentIds,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin_or_staff)],
) -> ApiResponse[Any]:
    result: PromotionResponse = await promotion_service.add_students(db, promotion_id, data.student_ids)
    await db.commit()
    return success_response(result, "Students added")


@router.delete("/{promotion_id}/students/{student_id}", response_model=ApiResponse[PromotionResponse])
async def remove_student(
    promotion_id: UUID,
    student_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin_or_staff)],
) -> ApiResponse[Any]:
    result: PromotionResponse = await promotion_service.remove_student(db, promotion_id, student_id)
    await db.commit()
    return success_response(result, "Student removed")


@router.post("/{promotion_id}/students/{student_id}/progress", response_model=ApiResponse[PromotionResponse])
async def progress_student(
    promotion_id: UUID,
    student_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin_or_staff)],
) -> ApiResponse[Any]:
    """다음 학기 프로모션으로 진급 — 대상 프로모션 반환 (Returns the target promotion)."""
    result: PromotionResponse = await promotion_service.progress_student(db, promotion_id, student_id)
    await db.commit()
    return success_response(result, "Student progressed")


# === 이벤트 연결 (Event links) ===

@router.post("/{promotion_id}/events", response_model=ApiResponse[PromotionResponse])
async def link_events(
    promotion_id: UUID,
    data: EventIds,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin_or_staff)],
) -> ApiResponse[Any]:
    result: PromotionResponse = await promotion_service.link_events(db, promotion_id, data.event_ids)
    await db.commit()
    return success_response(result, "Events linked")


@router.delete("/{promotion_id}/events/{event_id}", response_model=ApiResponse[PromotionResponse])
async def unlink_event(
    promotion_id: UUID,
    event_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin_or_staff)],
) -> ApiResponse[Any]:
    result: PromotionResponse = await promotion_service.unlink_event(db, promotion_id, event_id)
    await db.commit()
    return success_response(result, "Event unlinked")

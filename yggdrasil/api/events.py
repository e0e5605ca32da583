"""캘린더 이벤트 라우터 — 이벤트 CRUD, 기간 검색, 참석 토글, 통계.

Calendar Event Router — Event CRUD, range search, attendance toggle and
stats. Mounted at /api/planning/events.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.api.deps import get_current_user, require_educator
from yggdrasil.database import get_db
from yggdrasil.models.user import User
from yggdrasil.schemas.common import ApiResponse, UTCDatetime
from yggdrasil.schemas.planning import AttendanceResult, EventCreate, EventResponse, EventStats, EventType, EventUpdate
from yggdrasil.services.calendar_service import calendar_service
from yggdrasil.utils.responses import success_response

router: APIRouter = APIRouter(prefix="/events")


@router.post("/", response_model=ApiResponse[EventResponse], status_code=201)
async def create_event(
    data: EventCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_educator)],
) -> ApiResponse[Any]:
    """이벤트 생성 — 회의 중복 시 409 (Overlapping meetings of one organizer yield 409)."""
    result: EventResponse = await calendar_service.create_event(db, current_user, data)
    await db.commit()
    return success_response(result, "Event created")


@router.get("/", response_model=ApiResponse[list[EventResponse]])
async def list_events(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    start: Annotated[UTCDatetime | None, Query()] = None,
    end: Annotated[UTCDatetime | None, Query()] = None,
    event_type: Annotated[EventType | None, Query(alias="type")] = None,
    linked_course: Annotated[UUID | None, Query(alias="linkedCourse")] = None,
    promotion_id: Annotated[UUID | None, Query(alias="promotionId")] = None,
) -> ApiResponse[Any]:
    """기간 겹침 검색 (Events overlapping [start, end])."""
    result = await calendar_service.list_events(
        db,
        current_user,
        start=start,
        end=end,
        event_type=event_type,
        linked_course_id=linked_course,
        promotion_id=promotion_id,
    )
    return success_response(result)


@router.get("/upcoming", response_model=ApiResponse[list[EventResponse]])
async def upcoming_events(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> ApiResponse[Any]:
    return success_response(await calendar_service.upcoming(db, current_user, limit))


@router.get("/stats", response_model=ApiResponse[EventStats])
async def event_stats(
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    return success_response(await calendar_service.get_stats(db))


@router.get("/{event_id}", response_model=ApiResponse[EventResponse])
async def get_event(
    event_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    return success_response(await calendar_service.get_event(db, current_user, event_id))


@router.put("/{event_id}", response_model=ApiResponse[EventResponse])
async def update_event(
    event_id: UUID,
    data: EventUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    """이벤트 수정 — 작성자, admin, staff (Creator, admin or staff)."""
    result: EventResponse = await calendar_service.update_event(db, current_user, event_id, data)
    await db.commit()
    return success_response(result, "Event updated")


@router.delete("/{event_id}", response_model=ApiResponse[None])
async def delete_event(
    event_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    await calendar_service.delete_event(db, current_user, event_id)
    await db.commit()
    return success_response(message="Event deleted")


@router.post("/{event_id}/attendance", response_model=ApiResponse[AttendanceResult])
async def toggle_attendance(
    event_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    """참석 토글 — 참석 또는 취소 (Join as accepted, or leave)."""
    result: AttendanceResult = await calendar_service.toggle_attendance(db, current_user, event_id)
    await db.commit()
    return success_response(result, "Attendance confirmed" if result.attending else "Attendance cancelled")

"""캘린더 서비스 — 이벤트 CRUD, 회의 충돌 검사, 참석 토글 비즈니스 로직.

Calendar Service — Business logic for calendar events: CRUD, meeting
conflict detection, attendance toggling and stats.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.models.planning import Event, EventAttendee
from yggdrasil.models.user import User
from yggdrasil.repositories.event_repository import event_repository
from yggdrasil.schemas.planning import AttendanceResult, EventCreate, EventResponse, EventStats, EventUpdate
from yggdrasil.utils.exceptions import BadRequestError, DuplicateError, ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)


class CalendarService:
    """캘린더 이벤트 서비스 (Calendar event service)."""

    async def _get_or_404(self, db: AsyncSession, event_id: UUID) -> Event:
        event: Event | None = await event_repository.get_by_id(db, event_id)
        if event is None:
            raise NotFoundError("Event not found")
        return event

    def _check_owner(self, user: User, event: Event) -> None:
        if not user.is_manager and event.created_by != user.id:
            raise ForbiddenError("You can only manage events you created")

    def _can_view(self, user: User, event: Event) -> bool:
        if event.is_public or user.is_manager or event.created_by == user.id:
            return True
        return any(a.user_id == user.id for a in event.attendees)

    async def _check_meeting_conflict(
        self,
        db: AsyncSession,
        organizer_id: UUID,
        event_type: str,
        start: datetime,
        end: datetime,
        exclude_id: UUID | None = None,
    ) -> None:
        if event_type != "meeting":
            return
        conflict: Event | None = await event_repository.find_meeting_conflict(db, organizer_id, start, end, exclude_id)
        if conflict is not None:
            raise DuplicateError(f"Meeting conflicts with \"{conflict.title}\"")

    async def create_event(self, db: AsyncSession, creator: User, data: EventCreate) -> EventResponse:
        """이벤트 생성.

        Create an event owned by the caller.

        Raises:
            BadRequestError: 종료 시각이 시작 시각 이전 (End not after start)
            DuplicateError: 같은 주최자의 회의와 겹침 (Overlaps another meeting of the caller)
        """
        if data.end_date <= data.start_date:
            raise BadRequestError("End date must be after start date")
        await self._check_meeting_conflict(db, creator.id, data.type, data.start_date, data.end_date)

        event: Event = await event_repository.create(db, {**data.model_dump(), "created_by": creator.id})
        logger.info("Event %s (%s) created by %s", event.title, event.type, creator.email)
        return EventResponse.model_validate(event)

    async def list_events(
        self,
        db: AsyncSession,
        user: User,
        start: datetime | None = None,
        end: datetime | None = None,
        event_type: str | None = None,
        linked_course_id: UUID | None = None,
        promotion_id: UUID | None = None,
    ) -> list[EventResponse]:
        """기간 겹침 검색 — 관리자가 아니면 공개/본인 이벤트만.

        Overlap search. Callers other than admin and staff only see public
        events and events they created or attend.
        """
        if start is not None and end is not None and end < start:
            raise BadRequestError("End must not be before start")
        events: Sequence[Event] = await event_repository.search(
            db,
            start=start,
            end=end,
            event_type=event_type,
            linked_course_id=linked_course_id,
            promotion_id=promotion_id,
            visible_to=None if user.is_manager else user.id,
        )
        return [EventResponse.model_validate(e) for e in events]

    async def upcoming(self, db: AsyncSession, user: User, limit: int) -> list[EventResponse]:
        events: Sequence[Event] = await event_repository.upcoming(
            db, datetime.now(timezone.utc), limit, visible_to=None if user.is_manager else user.id
        )
        return [EventResponse.model_validate(e) for e in events]

    async def get_event(self, db: AsyncSession, user: User, event_id: UUID) -> EventResponse:
        event: Event = await self._get_or_404(db, event_id)
        if not self._can_view(user, event):
            raise NotFoundError("Event not found")
        return EventResponse.model_validate(event)

    async def update_event(self, db: AsyncSession, user: User, event_id: UUID, data: EventUpdate) -> EventResponse:
        """이벤트 수정 (Creator, admin or staff; dates and meeting conflicts re-checked)."""
        event: Event = await self._get_or_404(db, event_id)
        self._check_owner(user, event)

        changes: dict[str, Any] = data.model_dump(exclude_unset=True)
        start: datetime = changes.get("start_date") or event.start_date
        end: datetime = changes.get("end_date") or event.end_date
        if end <= start:
            raise BadRequestError("End date must be after start date")
        await self._check_meeting_conflict(
            db, event.created_by or user.id, changes.get("type") or event.type, start, end, exclude_id=event.id
        )

        event = await event_repository.update(db, event, changes)
        return EventResponse.model_validate(event)

    async def delete_event(self, db: AsyncSession, user: User, event_id: UUID) -> None:
        event: Event = await self._get_or_404(db, event_id)
        self._check_owner(user, event)
        await event_repository.delete(db, event)
        logger.info("Event %s deleted by %s", event.title, user.email)

    async def toggle_attendance(self, db: AsyncSession, user: User, event_id: UUID) -> AttendanceResult:
        """참석 토글.

        Join the event as accepted, or leave it when already attending.

        Raises:
            BadRequestError: 정원 초과 (Event is full)
        """
        event: Event = await self._get_or_404(db, event_id)
        if not self._can_view(user, event):
            raise NotFoundError("Event not found")

        attendee: EventAttendee | None = await event_repository.get_attendee(db, event.id, user.id)
        if attendee is not None:
            await event_repository.remove_attendee(db, event, attendee)
            attending = False
        else:
            if event.capacity is not None and await event_repository.accepted_count(db, event.id) >= event.capacity:
                raise BadRequestError("Event is full")
            await event_repository.add_attendee(db, event, user.id)
            attending = True

        return AttendanceResult(
            event_id=event.id,
            attending=attending,
            attendee_count=await event_repository.accepted_count(db, event.id),
        )

    async def get_stats(self, db: AsyncSession) -> EventStats:
        by_type: dict[str, int] = await event_repository.count_by_type(db)
        return EventStats(
            total=sum(by_type.values()),
            upcoming=await event_repository.count_upcoming(db, datetime.now(timezone.utc)),
            by_type=by_type,
        )


# 싱글턴 인스턴스 — Singleton instance
calendar_service: CalendarService = CalendarService()

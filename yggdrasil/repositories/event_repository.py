"""이벤트 레포지토리 — 캘린더 범위 검색, 충돌 검사, 참석자.

Event Repository — Calendar range search, meeting conflicts and attendees.
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.models.planning import Event, EventAttendee, promotion_events
from yggdrasil.repositories.base import BaseRepository


def _visible_to(query: Select, user_id: UUID) -> Select:
    # 공개, 본인 작성, 참석 중 — Public, created by or attended by the user
    attending = select(EventAttendee.event_id).where(EventAttendee.user_id == user_id)
    return query.where(or_(
        Event.is_public == True,  # noqa: E712
        Event.created_by == user_id,
        Event.id.in_(attending),
    ))


class EventRepository(BaseRepository[Event]):
    """캘린더 이벤트 레포지토리 (Calendar event repository)."""

    def __init__(self) -> None:
        super().__init__(Event)

    async def search(
        self,
        db: AsyncSession,
        start: datetime | None = None,
        end: datetime | None = None,
        event_type: str | None = None,
        linked_course_id: UUID | None = None,
        promotion_id: UUID | None = None,
        visible_to: UUID | None = None,
    ) -> Sequence[Event]:
        """기간 겹침 기반 이벤트 검색.

        Search events overlapping [start, end]. An event overlaps when it
        starts before `end` and ends after `start`.

        Args:
            visible_to: 설정 시 공개 이벤트와 본인 이벤트만 반환
                        (When set, only public events or events created by / attended by this user)
        """
        query: Select = select(Event)
        if start is not None:
            query = query.where(Event.end_date >= start)
        if end is not None:
            query = query.where(Event.start_date <= end)
        if event_type is not None:
            query = query.where(Event.type == event_type)
        if linked_course_id is not None:
            query = query.where(Event.linked_course_id == linked_course_id)
        if promotion_id is not None:
            query = query.join(promotion_events, promotion_events.c.event_id == Event.id).where(
                promotion_events.c.promotion_id == promotion_id
            )
        if visible_to is not None:
            query = _visible_to(query, visible_to)
        result = await db.execute(query.order_by(Event.start_date))
        return result.scalars().all()

    async def upcoming(
        self,
        db: AsyncSession,
        now: datetime,
        limit: int = 10,
        visible_to: UUID | None = None,
    ) -> Sequence[Event]:
        """지금 이후 시작하는 이벤트 (Events starting from now)."""
        query: Select = select(Event).where(Event.start_date >= now)
        if visible_to is not None:
            query = _visible_to(query, visible_to)
        result = await db.execute(query.order_by(Event.start_date).limit(limit))
        return result.scalars().all()

    async def find_meeting_conflict(
        self,
        db: AsyncSession,
        organizer_id: UUID,
        start: datetime,
        end: datetime,
        exclude_id: UUID | None = None,
    ) -> Event | None:
        """같은 주최자의 겹치는 회의 (Overlapping meeting of the same organizer)."""
        query = select(Event).where(
            Event.type == "meeting",
            Event.created_by == organizer_id,
            Event.start_date < end,
            Event.end_date > start,
        )
        if exclude_id is not None:
            query = query.where(Event.id != exclude_id)
        result = await db.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def count_by_type(self, db: AsyncSession) -> dict[str, int]:
        result = await db.execute(select(Event.type, func.count()).group_by(Event.type))
        return {event_type: count for event_type, count in result.all()}

    async def count_upcoming(self, db: AsyncSession, now: datetime) -> int:
        query = select(func.count()).select_from(Event).where(Event.start_date >= now)
        return (await db.execute(query)).scalar() or 0

    # === 참석자 (Attendees) ===

    async def get_attendee(self, db: AsyncSession, event_id: UUID, user_id: UUID) -> EventAttendee | None:
        result = await db.execute(
            select(EventAttendee).where(EventAttendee.event_id == event_id, EventAttendee.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def accepted_count(self, db: AsyncSession, event_id: UUID) -> int:
        query = select(func.count()).select_from(EventAttendee).where(
            EventAttendee.event_id == event_id, EventAttendee.status == "accepted"
        )
        return (await db.execute(query)).scalar() or 0

    async def add_attendee(self, db: AsyncSession, event: Event, user_id: UUID) -> None:
        db.add(EventAttendee(event_id=event.id, user_id=user_id, status="accepted"))
        await db.flush()
        await db.refresh(event, ["attendees"])

    async def remove_attendee(self, db: AsyncSession, event: Event, attendee: EventAttendee) -> None:
        await db.execute(delete(EventAttendee).where(EventAttendee.id == attendee.id))
        await db.flush()
        await db.refresh(event, ["attendees"])


# 싱글턴 인스턴스 — Singleton instance
event_repository: EventRepository = EventRepository()

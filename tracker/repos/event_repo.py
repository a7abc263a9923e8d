from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import Protocol

from tracker.models.event import LearningEvent


def utcnow() -> datetime:
    return datetime.now(UTC)


class EventRepo(Protocol):
    async def append(self, event: LearningEvent) -> LearningEvent: ...
    async def list_for(self, user_id: str, course_id: str) -> list[LearningEvent]: ...
    async def recent_for(
        self, user_id: str, course_id: str, limit: int
    ) -> list[LearningEvent]: ...
    async def list_for_user(
        self,
        user_id: str,
        *,
        course_id: str | None = None,
        content_type: str | None = None,
        limit: int = 50,
    ) -> list[LearningEvent]: ...


class InMemoryEventRepo:
    """Append-only list; reads come back newest-first."""

    def __init__(self) -> None:
        self._events: list[LearningEvent] = []
        self._last_created_at: datetime | None = None

    async def append(self, event: LearningEvent) -> LearningEvent:
        # Keep created_at strictly increasing even if the clock stalls.
        created_at = event.created_at
        if self._last_created_at is not None and created_at <= self._last_created_at:
            created_at = self._last_created_at + timedelta(microseconds=1)
            event = replace(event, created_at=created_at)
        self._last_created_at = created_at
        self._events.append(event)
        return event

    async def list_for(self, user_id: str, course_id: str) -> list[LearningEvent]:
        return [
            e
            for e in reversed(self._events)
            if e.user_id == user_id and e.course_id == course_id
        ]

    async def recent_for(
        self, user_id: str, course_id: str, limit: int
    ) -> list[LearningEvent]:
        return (await self.list_for(user_id, course_id))[:limit]

    async def list_for_user(
        self,
        user_id: str,
        *,
        course_id: str | None = None,
        content_type: str | None = None,
        limit: int = 50,
    ) -> list[LearningEvent]:
        matches = [
            e
            for e in reversed(self._events)
            if e.user_id == user_id
            and (course_id is None or e.course_id == course_id)
            and (content_type is None or e.content_type.value == content_type)
        ]
        return matches[:limit]

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class ContentType(str, Enum):
    VIDEO = "video"
    READING = "reading"
    QUIZ = "quiz"


class EventType(str, Enum):
    WATCH = "watch"
    SCROLL = "scroll"
    SUBMIT = "submit"


# Each content type accepts exactly one observation kind.
ALLOWED_EVENT_TYPE: dict[ContentType, EventType] = {
    ContentType.VIDEO: EventType.WATCH,
    ContentType.READING: EventType.SCROLL,
    ContentType.QUIZ: EventType.SUBMIT,
}


def is_valid_pairing(content_type: str, event_type: str) -> bool:
    try:
        return ALLOWED_EVENT_TYPE[ContentType(content_type)] == EventType(event_type)
    except ValueError:
        return False


@dataclass(frozen=True, slots=True)
class LearningEvent:
    """One observed learning interaction.  Immutable and append-only.

    `created_at` is assigned by the event store, never by the client.
    `metadata` is carried through untouched; the progress engine does
    not read it.
    """

    id: UUID
    user_id: str
    course_id: str
    module_id: str
    content_id: str
    content_type: ContentType
    event_type: EventType
    created_at: datetime
    percentage: float = 0.0
    time_spent: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def location_key(self) -> tuple[str, str, str]:
        """Composite key matching an event to a course content item."""
        return (self.module_id, self.content_id, self.content_type.value)

    @staticmethod
    def new(
        *,
        user_id: str,
        course_id: str,
        module_id: str,
        content_id: str,
        content_type: ContentType,
        event_type: EventType,
        created_at: datetime,
        percentage: float = 0.0,
        time_spent: float = 0.0,
        metadata: dict[str, Any] | None = None,
    ) -> LearningEvent:
        return LearningEvent(
            id=uuid4(),
            user_id=user_id,
            course_id=course_id,
            module_id=module_id,
            content_id=content_id,
            content_type=content_type,
            event_type=event_type,
            created_at=created_at,
            percentage=percentage,
            time_spent=time_spent,
            metadata=dict(metadata or {}),
        )

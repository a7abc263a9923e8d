"""Learning event ingestion.

validate → append → recompute.  The append is the only step that can fail
the request; a failing recompute is logged and swallowed, the event stays
stored and is folded in by the next successful recompute.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager, nullcontext
from datetime import datetime
from typing import Any

from tracker.core.metrics import EVENTS_RECORDED, EVENTS_REJECTED
from tracker.models.event import (
    ALLOWED_EVENT_TYPE,
    ContentType,
    EventType,
    LearningEvent,
)
from tracker.repos.event_repo import EventRepo, utcnow
from tracker.services.errors import EventValidationError
from tracker.services.progress_engine import ProgressEngine

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = (
    "course_id",
    "module_id",
    "content_type",
    "content_id",
    "event_type",
)


def validate_event_fields(
    *,
    course_id: str | None,
    module_id: str | None,
    content_type: str | None,
    content_id: str | None,
    event_type: str | None,
    percentage: float | None = None,
    time_spent: float | None = None,
) -> tuple[ContentType, EventType]:
    """Check an incoming event before anything is stored.

    Returns the parsed (content_type, event_type) pair.

    Raises:
        EventValidationError: missing fields, unknown content type, an event
            type not allowed for the content type, or out-of-range numbers.
    """
    values = {
        "course_id": course_id,
        "module_id": module_id,
        "content_type": content_type,
        "content_id": content_id,
        "event_type": event_type,
    }
    missing = [name for name in _REQUIRED_FIELDS if not values[name]]
    if missing:
        raise EventValidationError(
            "Missing required fields: " + ", ".join(missing), reason="missing_fields"
        )

    try:
        parsed_content_type = ContentType(content_type)
    except ValueError:
        raise EventValidationError(
            f"Invalid content_type {content_type!r}; expected video, reading or quiz",
            reason="invalid_content_type",
        ) from None

    allowed = ALLOWED_EVENT_TYPE[parsed_content_type]
    if event_type != allowed.value:
        raise EventValidationError(
            f"Invalid event_type {event_type!r} for content_type {content_type!r}",
            reason="invalid_pairing",
        )

    if percentage is not None and not (
        math.isfinite(percentage) and 0 <= percentage <= 100
    ):
        raise EventValidationError(
            "percentage must be between 0 and 100", reason="out_of_range"
        )
    if time_spent is not None and not (math.isfinite(time_spent) and time_spent >= 0):
        raise EventValidationError(
            "time_spent must be a finite, non-negative number", reason="out_of_range"
        )

    return parsed_content_type, allowed


async def record_event(
    events: EventRepo,
    engine: ProgressEngine,
    *,
    user_id: str,
    course_id: str | None,
    module_id: str | None,
    content_type: str | None,
    content_id: str | None,
    event_type: str | None,
    percentage: float | None = None,
    time_spent: float | None = None,
    metadata: dict[str, Any] | None = None,
    clock: Callable[[], datetime] = utcnow,
    isolate: Callable[[], AbstractAsyncContextManager[Any]] = nullcontext,
) -> LearningEvent:
    """Validate and append one event, then recompute the pair's progress.

    `isolate` wraps the recompute so a failure there can be rolled back
    without losing the append (a SAVEPOINT when running on Postgres).
    """
    try:
        parsed_content_type, parsed_event_type = validate_event_fields(
            course_id=course_id,
            module_id=module_id,
            content_type=content_type,
            content_id=content_id,
            event_type=event_type,
            percentage=percentage,
            time_spent=time_spent,
        )
    except EventValidationError as e:
        EVENTS_REJECTED.labels(reason=e.reason).inc()
        logger.warning("Learning event rejected user=%s: %s", user_id, e.message)
        raise

    event = await events.append(
        LearningEvent.new(
            user_id=user_id,
            course_id=course_id,
            module_id=module_id,
            content_id=content_id,
            content_type=parsed_content_type,
            event_type=parsed_event_type,
            created_at=clock(),
            percentage=percentage or 0.0,
            time_spent=time_spent or 0.0,
            metadata=metadata,
        )
    )
    EVENTS_RECORDED.labels(content_type=parsed_content_type.value).inc()
    logger.debug(
        "Learning event stored id=%s %s/%s %s=%.1f%%",
        event.id,
        module_id,
        content_id,
        parsed_event_type.value,
        event.percentage,
        extra={"user_id": user_id, "course_id": course_id},
    )

    try:
        async with isolate():
            await engine.recompute(user_id, course_id)
    except Exception:
        logger.exception(
            "Progress recompute failed after event id=%s; event kept",
            event.id,
            extra={"user_id": user_id, "course_id": course_id},
        )

    return event

"""Progress aggregation engine.

Turns the append-only learning event log of one (user, course) pair into
a ProgressSnapshot:

  events ──group by (module_id, content_id, content_type)──▶ per content
         best percentage (max), time spent (sum), submitted (any submit),
         last updated (latest event), revisits (distinct UTC dates)
  contents ──▶ module completion % = round(100 × completed / total)
  modules  ──▶ course overall progress = round(mean of module %)

Every recompute is a full rebuild from the complete event history, never
an incremental update.  Because events are immutable and the fold is
pure, running it twice over the same events gives the same snapshot, and
a snapshot overwritten by a slower concurrent recompute is corrected by
the next one.

Known trade-off: time spent is a plain sum, so a client that retries the
same event (or reports overlapping sessions) is counted twice.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

from tracker.core.metrics import PROGRESS_RECOMPUTES, RECOMPUTE_DURATION
from tracker.models.course import ContentItem, CourseStructure
from tracker.models.event import EventType, LearningEvent
from tracker.models.progress import (
    ContentProgress,
    ModuleProgress,
    ProgressSnapshot,
    ProgressStatus,
)
from tracker.repos.course_repo import CourseRepo
from tracker.repos.event_repo import EventRepo, utcnow
from tracker.repos.snapshot_repo import SnapshotRepo
from tracker.services.errors import CourseNotFoundError, SnapshotNotFoundError
from tracker.services.status_resolver import (
    bucket_completion_percentage,
    resolve_content_status,
)

logger = logging.getLogger(__name__)

LocationKey = tuple[str, str, str]


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _content_progress(
    content: ContentItem, events: list[LearningEvent], now: datetime
) -> ContentProgress:
    best = max((e.percentage for e in events), default=0.0)
    time_spent = sum(e.time_spent for e in events)
    submitted = content.type == "quiz" and any(
        e.event_type is EventType.SUBMIT for e in events
    )
    last_updated = max((e.created_at for e in events), default=now)
    visit_days = {e.created_at.astimezone(UTC).date() for e in events}

    return ContentProgress(
        content_id=content.id,
        content_type=content.type,
        status=resolve_content_status(content.type, best, submitted),
        percentage=best,
        time_spent=time_spent,
        last_updated=last_updated,
        revisit_count=len(visit_days),
    )


def _module_progress(module_id: str, contents: list[ContentProgress]) -> ModuleProgress:
    total = len(contents)
    completed = sum(1 for c in contents if c.status is ProgressStatus.COMPLETED)
    percentage = (
        round_half_up(Decimal(100 * completed) / Decimal(total)) if total else 0
    )
    return ModuleProgress(
        module_id=module_id,
        contents=tuple(contents),
        completion_percentage=percentage,
        overall_status=bucket_completion_percentage(percentage),
    )


def build_snapshot(
    user_id: str,
    course: CourseStructure,
    events: Iterable[LearningEvent],
    now: datetime,
) -> ProgressSnapshot:
    """Fold all events of one (user, course) pair into a snapshot.

    Events whose (module_id, content_id, content_type) does not match a
    content item of the course are ignored for content progress but still
    count towards last activity.
    """
    events = list(events)
    by_location: dict[LocationKey, list[LearningEvent]] = defaultdict(list)
    for event in events:
        by_location[event.location_key].append(event)

    modules = []
    for module in course.modules:
        contents = [
            _content_progress(
                content, by_location.get((module.id, content.id, content.type), []), now
            )
            for content in module.contents
        ]
        modules.append(_module_progress(module.id, contents))

    overall = 0
    if modules:
        module_total = sum(m.completion_percentage for m in modules)
        overall = round_half_up(Decimal(module_total) / Decimal(len(modules)))

    return ProgressSnapshot(
        user_id=user_id,
        course_id=course.id,
        modules=tuple(modules),
        overall_progress=overall,
        total_time_spent=sum(c.time_spent for m in modules for c in m.contents),
        last_activity=max((e.created_at for e in events), default=now),
    )


def zeroed_snapshot(
    user_id: str, course: CourseStructure, now: datetime
) -> ProgressSnapshot:
    """Snapshot of a brand-new enrollment: nothing started."""
    return build_snapshot(user_id, course, (), now)


@dataclass(frozen=True, slots=True)
class ProgressView:
    snapshot: ProgressSnapshot
    recent_events: list[LearningEvent]


class ProgressEngine:
    """Recomputes and serves progress snapshots over pluggable repos."""

    def __init__(
        self,
        events: EventRepo,
        courses: CourseRepo,
        snapshots: SnapshotRepo,
        *,
        recent_events_limit: int = 10,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._events = events
        self._courses = courses
        self._snapshots = snapshots
        self._recent_events_limit = recent_events_limit
        self._clock = clock

    async def _require_course(self, course_id: str) -> CourseStructure:
        course = await self._courses.get(course_id)
        if course is None:
            raise CourseNotFoundError(course_id)
        return course

    async def recompute(self, user_id: str, course_id: str) -> ProgressSnapshot:
        """Rebuild the (user, course) snapshot from all events and upsert it.

        Raises:
            CourseNotFoundError: the course does not exist; nothing is written.
        """
        start = time.monotonic()
        try:
            course = await self._require_course(course_id)
            events = await self._events.list_for(user_id, course_id)
            snapshot = build_snapshot(user_id, course, events, self._clock())
            await self._snapshots.upsert(snapshot)
        except CourseNotFoundError:
            PROGRESS_RECOMPUTES.labels(result="course_not_found").inc()
            raise
        except Exception:
            PROGRESS_RECOMPUTES.labels(result="error").inc()
            raise

        duration = time.monotonic() - start
        PROGRESS_RECOMPUTES.labels(result="ok").inc()
        RECOMPUTE_DURATION.observe(duration)
        logger.info(
            "Progress recomputed user=%s course=%s events=%d overall=%d%% (%.1fms)",
            user_id,
            course_id,
            len(events),
            snapshot.overall_progress,
            duration * 1000,
            extra={"user_id": user_id, "course_id": course_id},
        )
        return snapshot

    async def get_or_init(self, user_id: str, course_id: str) -> ProgressView:
        """Return the stored snapshot, creating a zeroed one if none exists."""
        snapshot = await self._snapshots.get(user_id, course_id)
        if snapshot is None:
            course = await self._require_course(course_id)
            snapshot = zeroed_snapshot(user_id, course, self._clock())
            await self._snapshots.upsert(snapshot)
            logger.info(
                "Initialised empty progress user=%s course=%s",
                user_id,
                course_id,
                extra={"user_id": user_id, "course_id": course_id},
            )
        recent = await self._recent(user_id, course_id)
        return ProgressView(snapshot=snapshot, recent_events=recent)

    async def get_existing(self, user_id: str, course_id: str) -> ProgressView:
        """Like get_or_init, but never creates a snapshot."""
        snapshot = await self._snapshots.get(user_id, course_id)
        if snapshot is None:
            raise SnapshotNotFoundError(user_id, course_id)
        recent = await self._recent(user_id, course_id)
        return ProgressView(snapshot=snapshot, recent_events=recent)

    async def _recent(self, user_id: str, course_id: str) -> list[LearningEvent]:
        return await self._events.recent_for(
            user_id, course_id, self._recent_events_limit
        )

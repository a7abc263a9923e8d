from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import pytest
from prometheus_client import REGISTRY

from tracker.models.event import ContentType, EventType
from tracker.repos.course_repo import InMemoryCourseRepo, sample_course
from tracker.repos.event_repo import InMemoryEventRepo
from tracker.repos.snapshot_repo import InMemorySnapshotRepo
from tracker.services.errors import EventValidationError
from tracker.services.ingestion import record_event, validate_event_fields
from tracker.services.progress_engine import ProgressEngine

NOW = datetime(2026, 6, 1, 10, 0, tzinfo=UTC)

_VALID = {
    "course_id": "intro-to-data",
    "module_id": "m1",
    "content_type": "reading",
    "content_id": "m1-reading",
    "event_type": "scroll",
}


def _sample(name: str, labels: dict) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


# ---- validate_event_fields ----


def test_validate_returns_parsed_types() -> None:
    assert validate_event_fields(**_VALID, percentage=40) == (
        ContentType.READING,
        EventType.SCROLL,
    )


def test_validate_reports_every_missing_field() -> None:
    with pytest.raises(EventValidationError) as exc_info:
        validate_event_fields(
            course_id="c1",
            module_id="",
            content_type=None,
            content_id="x",
            event_type=None,
        )
    assert exc_info.value.reason == "missing_fields"
    assert exc_info.value.message == (
        "Missing required fields: module_id, content_type, event_type"
    )
    assert exc_info.value.code == "validation_error"


@pytest.mark.parametrize(
    ("overrides", "reason"),
    [
        ({"content_type": "podcast"}, "invalid_content_type"),
        ({"event_type": "watch"}, "invalid_pairing"),
        ({"event_type": "dance"}, "invalid_pairing"),
        ({"percentage": 100.5}, "out_of_range"),
        ({"time_spent": -1}, "out_of_range"),
        ({"time_spent": float("inf")}, "out_of_range"),
        ({"percentage": float("nan")}, "out_of_range"),
        ({"percentage": float("inf")}, "out_of_range"),
    ],
)
def test_validate_rejection_reasons(overrides: dict, reason: str) -> None:
    with pytest.raises(EventValidationError) as exc_info:
        validate_event_fields(**{**_VALID, **overrides})
    assert exc_info.value.reason == reason


def test_validate_accepts_boundaries() -> None:
    validate_event_fields(**_VALID, percentage=0, time_spent=0)
    validate_event_fields(**_VALID, percentage=100)


# ---- record_event ----


def _engine(events: InMemoryEventRepo) -> tuple[ProgressEngine, InMemorySnapshotRepo]:
    courses = InMemoryCourseRepo()
    courses.add(sample_course())
    snapshots = InMemorySnapshotRepo()
    return ProgressEngine(events, courses, snapshots, clock=lambda: NOW), snapshots


def test_record_event_appends_and_recomputes() -> None:
    events = InMemoryEventRepo()
    engine, snapshots = _engine(events)
    before = _sample("learning_events_recorded_total", {"content_type": "reading"})

    event = asyncio.run(
        record_event(
            events,
            engine,
            user_id="u1",
            **_VALID,
            percentage=95,
            time_spent=30,
            metadata={"page": 12},
            clock=lambda: NOW,
        )
    )

    assert event.created_at == NOW
    assert event.metadata == {"page": 12}
    assert events._events == [event]
    snapshot = asyncio.run(snapshots.get("u1", "intro-to-data"))
    assert snapshot.find_content("m1", "m1-reading").percentage == 95
    after = _sample("learning_events_recorded_total", {"content_type": "reading"})
    assert after - before == 1


def test_record_event_rejects_without_storing() -> None:
    events = InMemoryEventRepo()
    engine, snapshots = _engine(events)
    before = _sample("learning_events_rejected_total", {"reason": "invalid_pairing"})

    with pytest.raises(EventValidationError):
        asyncio.run(
            record_event(
                events, engine, user_id="u1", **{**_VALID, "event_type": "submit"}
            )
        )

    assert events._events == []
    assert snapshots._store == {}
    after = _sample("learning_events_rejected_total", {"reason": "invalid_pairing"})
    assert after - before == 1


def test_recompute_failure_keeps_event(caplog: pytest.LogCaptureFixture) -> None:
    class _BrokenEngine:
        async def recompute(self, user_id: str, course_id: str):
            raise RuntimeError("snapshot store unavailable")

    events = InMemoryEventRepo()
    broken = _BrokenEngine()
    with caplog.at_level(logging.ERROR, logger="tracker.services.ingestion"):
        event = asyncio.run(
            record_event(events, broken, user_id="u1", **_VALID)
        )

    assert events._events == [event]
    assert any("recompute failed" in r.getMessage() for r in caplog.records)


def test_unknown_course_event_is_kept() -> None:
    events = InMemoryEventRepo()
    engine, snapshots = _engine(events)

    asyncio.run(
        record_event(
            events, engine, user_id="u1", **{**_VALID, "course_id": "gone"}
        )
    )

    assert len(events._events) == 1
    assert snapshots._store == {}


def test_recompute_runs_inside_isolation_scope() -> None:
    entered: list[str] = []

    @asynccontextmanager
    async def isolate():
        entered.append("enter")
        yield
        entered.append("exit")

    events = InMemoryEventRepo()
    engine, _ = _engine(events)
    asyncio.run(
        record_event(events, engine, user_id="u1", **_VALID, isolate=isolate)
    )
    assert entered == ["enter", "exit"]

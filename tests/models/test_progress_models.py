from __future__ import annotations

import json
from datetime import UTC, datetime

from tracker.models.event import is_valid_pairing
from tracker.models.principal import Principal
from tracker.models.progress import (
    ContentProgress,
    ModuleProgress,
    ProgressSnapshot,
    ProgressStatus,
)

_AT = datetime(2026, 4, 2, 15, 30, tzinfo=UTC)


def _snapshot() -> ProgressSnapshot:
    video = ContentProgress(
        content_id="m1-video",
        content_type="video",
        status=ProgressStatus.COMPLETED,
        percentage=96.5,
        time_spent=310.0,
        last_updated=_AT,
        revisit_count=2,
    )
    return ProgressSnapshot(
        user_id="u1",
        course_id="intro-to-data",
        modules=(
            ModuleProgress(
                module_id="m1",
                contents=(video,),
                completion_percentage=100,
                overall_status=ProgressStatus.COMPLETED,
            ),
        ),
        overall_progress=100,
        total_time_spent=310.0,
        last_activity=_AT,
    )


def test_snapshot_survives_json_storage() -> None:
    """The JSONB column and the cache both store to_dict() output."""
    snapshot = _snapshot()
    stored = json.loads(json.dumps(snapshot.to_dict()))
    assert stored["modules"][0]["overall_status"] == "Completed"
    assert ProgressSnapshot.from_dict(stored) == snapshot


def test_snapshot_helpers() -> None:
    snapshot = _snapshot()
    assert snapshot.completed_modules == 1
    assert snapshot.find_content("m1", "m1-video").revisit_count == 2
    assert snapshot.find_content("m2", "m1-video") is None


def test_status_rank_orders_statuses() -> None:
    assert (
        ProgressStatus.NOT_STARTED.rank
        < ProgressStatus.IN_PROGRESS.rank
        < ProgressStatus.COMPLETED.rank
    )


def test_pairings() -> None:
    assert is_valid_pairing("video", "watch")
    assert is_valid_pairing("reading", "scroll")
    assert is_valid_pairing("quiz", "submit")
    assert not is_valid_pairing("video", "scroll")
    assert not is_valid_pairing("slides", "watch")


def test_principal_progress_visibility() -> None:
    learner = Principal(user_id="u1", roles=frozenset())
    instructor = Principal(user_id="t1", roles=frozenset({"instructor"}))
    assert learner.can_view_progress_of("u1")
    assert not learner.can_view_progress_of("u2")
    assert instructor.can_view_progress_of("u2")

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from tracker.api.dependencies import course_repo, event_repo, snapshot_repo
from tracker.main import app
from tracker.repos.course_repo import seed_sample_course
from tracker.services.cache import cache_service

# Ensure repo root is on sys.path so `import tracker` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def reset_event_store() -> None:
    """Clear the in-memory event log between tests."""
    event_repo._events.clear()
    event_repo._last_created_at = None


@pytest.fixture(autouse=True)
def reset_snapshot_store() -> None:
    snapshot_repo._store.clear()


@pytest.fixture(autouse=True)
def reset_courses() -> None:
    """Back to just the sample course, whatever a test added."""
    course_repo._by_id.clear()
    seed_sample_course(course_repo)


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Clear cache between tests."""
    if hasattr(cache_service, "_store"):
        cache_service._store.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def auth(user_id: str = "learner-1", roles: list[str] | None = None) -> dict[str, str]:
    """Identity headers as the gateway would forward them."""
    headers = {"X-User-Id": user_id}
    if roles:
        headers["X-User-Roles"] = ",".join(roles)
    return headers


def event_payload(**overrides) -> dict:
    """A valid video watch event on the sample course; override any field."""
    payload = {
        "course_id": "intro-to-data",
        "module_id": "m1",
        "content_type": "video",
        "content_id": "m1-video",
        "event_type": "watch",
        "percentage": 50,
        "time_spent": 120,
    }
    payload.update(overrides)
    return payload

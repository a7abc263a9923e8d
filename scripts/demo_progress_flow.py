"""Demo: ingest learning events and watch progress move, via TestClient.

Run with:
    python scripts/demo_progress_flow.py
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from tracker.main import app

COURSE_ID = "intro-to-data"
LEARNER = {"X-User-Id": "demo-learner"}
INSTRUCTOR = {"X-User-Id": "demo-instructor", "X-User-Roles": "instructor"}


def _event(module_id: str, content_id: str, content_type: str, **fields) -> dict:
    event_type = {"video": "watch", "reading": "scroll", "quiz": "submit"}
    return {
        "course_id": COURSE_ID,
        "module_id": module_id,
        "content_id": content_id,
        "content_type": content_type,
        "event_type": event_type[content_type],
        **fields,
    }


def _overall(client: TestClient) -> int:
    r = client.get(f"/v1/progress/me/{COURSE_ID}", headers=LEARNER)
    return r.json()["progress"]["overall_progress"]


def main() -> None:
    client = TestClient(app)

    # ── Step 1: first read creates an empty snapshot ────────────────
    print(f"1. GET  /v1/progress/me          → overall {_overall(client)}%")

    # ── Step 2: invalid pairing is rejected ─────────────────────────
    bad = _event("m1", "m1-video", "video", percentage=50)
    bad["event_type"] = "scroll"
    r = client.post("/v1/events", json=bad, headers=LEARNER)
    print(f"2. POST /v1/events (video+scroll) → {r.status_code}  {r.json()['detail']}")

    # ── Step 3: finish module 1 ─────────────────────────────────────
    for body in (
        _event("m1", "m1-video", "video", percentage=92, time_spent=410),
        _event("m1", "m1-reading", "reading", percentage=100, time_spent=600),
        _event("m1", "m1-quiz", "quiz", percentage=80, time_spent=120),
    ):
        r = client.post("/v1/events", json=body, headers=LEARNER)
        print(f"3. POST /v1/events ({body['content_id']:<10}) → {r.status_code}")
    print(f"   GET  /v1/progress/me          → overall {_overall(client)}%")

    # ── Step 4: start module 2 ──────────────────────────────────────
    client.post(
        "/v1/events",
        json=_event("m2", "m2-video", "video", percentage=35, time_spent=90),
        headers=LEARNER,
    )
    r = client.get(f"/v1/progress/me/{COURSE_ID}", headers=LEARNER)
    for module in r.json()["progress"]["modules"]:
        print(
            f"4. module {module['module_id']}: "
            f"{module['completion_percentage']}% {module['overall_status']}"
        )

    # ── Step 5: other users' progress ───────────────────────────────
    r = client.get(
        f"/v1/progress/demo-learner/{COURSE_ID}",
        headers={"X-User-Id": "someone-else"},
    )
    print(f"5. GET  other learner (learner)    → {r.status_code}")
    r = client.get(f"/v1/progress/demo-learner/{COURSE_ID}", headers=INSTRUCTOR)
    print(f"   GET  other learner (instructor) → {r.status_code}")


if __name__ == "__main__":
    main()

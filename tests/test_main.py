from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import auth, event_payload


def test_health_returns_ok(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_unknown_route_returns_404(client: TestClient) -> None:
    resp = client.get("/v1/nope", headers=auth())
    assert resp.status_code == 404


def test_malformed_body_returns_400_not_422(client: TestClient) -> None:
    resp = client.post(
        "/v1/events",
        json=event_payload(percentage="lots"),
        headers=auth(),
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "validation_error"
    assert isinstance(body["detail"], list)
    assert body["detail"][0]["loc"][-1] == "percentage"


def test_non_json_body_returns_400(client: TestClient) -> None:
    resp = client.post(
        "/v1/events",
        content="not json",
        headers={**auth(), "Content-Type": "application/json"},
    )
    assert resp.status_code == 400

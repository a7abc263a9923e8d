"""Tests for structured (JSON) logging output.

Log pipelines that expect JSON silently stop indexing plain text, so the
shape of the output is checked here rather than discovered in production.
"""

from __future__ import annotations

import json
import logging
import sys

from tracker.core.logging import _ContainerFormatter, _JsonFormatter


def _record(msg: str = "test message", level: int = logging.INFO, **kwargs):
    return logging.LogRecord(
        name=kwargs.pop("name", "test"),
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=kwargs.pop("args", ()),
        exc_info=kwargs.pop("exc_info", None),
    )


def test_json_formatter_produces_valid_json() -> None:
    record = _record("Hello %s", name="test.logger", args=("world",))
    parsed = json.loads(_JsonFormatter().format(record))
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "test.logger"
    assert parsed["message"] == "Hello world"
    assert "timestamp" in parsed


def test_json_formatter_includes_request_fields() -> None:
    record = _record()
    # Simulate what RequestContextMiddleware attaches
    record.request_id = "abc-123"  # type: ignore[attr-defined]
    record.method = "POST"  # type: ignore[attr-defined]
    record.path = "/v1/events"  # type: ignore[attr-defined]
    record.status_code = 201  # type: ignore[attr-defined]
    record.duration_ms = 12.5  # type: ignore[attr-defined]

    parsed = json.loads(_JsonFormatter().format(record))
    assert parsed["request_id"] == "abc-123"
    assert parsed["method"] == "POST"
    assert parsed["path"] == "/v1/events"
    assert parsed["status_code"] == 201
    assert parsed["duration_ms"] == 12.5


def test_json_formatter_includes_progress_fields() -> None:
    record = _record("Progress recomputed")
    record.user_id = "learner-1"  # type: ignore[attr-defined]
    record.course_id = "intro-to-data"  # type: ignore[attr-defined]

    parsed = json.loads(_JsonFormatter().format(record))
    assert parsed["user_id"] == "learner-1"
    assert parsed["course_id"] == "intro-to-data"


def test_json_formatter_omits_unset_fields() -> None:
    parsed = json.loads(_JsonFormatter().format(_record()))
    assert "course_id" not in parsed
    assert "status_code" not in parsed


def test_json_formatter_includes_exception_info() -> None:
    try:
        raise ValueError("test error")
    except ValueError:
        record = _record("Something failed", logging.ERROR, exc_info=sys.exc_info())
        output = _JsonFormatter().format(record)

    parsed = json.loads(output)
    assert "ValueError: test error" in parsed["exception"]


def test_container_formatter_is_plain_text() -> None:
    record = _record("server started", name="tracker.main")
    output = _ContainerFormatter().format(record)
    assert "INFO" in output
    assert "tracker.main" in output
    assert "server started" in output
    try:
        json.loads(output)
        raise AssertionError("Container format should not be valid JSON")
    except json.JSONDecodeError:
        pass  # expected

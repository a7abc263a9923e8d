from __future__ import annotations

import asyncio
import logging

import pytest

from tracker.services.cache import (
    cache_service,
    invalidate,
    progress_cache_key,
    read_cached,
    write_cached,
)


async def _unavailable(*args, **kwargs):
    raise ConnectionError("redis down")


def test_key_is_scoped_to_user_and_course() -> None:
    assert progress_cache_key("u1", "c1") == "progress:u1:c1"
    assert progress_cache_key("u1", "c1") != progress_cache_key("u2", "c1")


def test_helpers_pass_through_to_backend() -> None:
    async def run() -> tuple[str | None, str | None]:
        await write_cached("k", "v", 60)
        hit = await read_cached("k")
        await invalidate("k")
        return hit, await read_cached("k")

    assert asyncio.run(run()) == ("v", None)


def test_failed_read_is_a_miss(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setattr(cache_service, "get", _unavailable)
    with caplog.at_level(logging.WARNING, logger="tracker.services.cache"):
        assert asyncio.run(read_cached("k")) is None
    assert "Cache read failed" in caplog.text


def test_failed_write_and_invalidation_are_no_ops(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(cache_service, "set", _unavailable)
    monkeypatch.setattr(cache_service, "delete", _unavailable)

    asyncio.run(write_cached("k", "v", 60))
    asyncio.run(invalidate("k"))

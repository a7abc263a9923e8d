from __future__ import annotations

from typing import Protocol

from tracker.models.progress import ProgressSnapshot


class SnapshotRepo(Protocol):
    async def get(self, user_id: str, course_id: str) -> ProgressSnapshot | None: ...
    async def upsert(self, snapshot: ProgressSnapshot) -> None: ...


class InMemorySnapshotRepo:
    """One snapshot per (user_id, course_id); the dict key is the uniqueness rule."""

    def __init__(self) -> None:
        self._store: dict[tuple[str, str], ProgressSnapshot] = {}

    async def get(self, user_id: str, course_id: str) -> ProgressSnapshot | None:
        return self._store.get((user_id, course_id))

    async def upsert(self, snapshot: ProgressSnapshot) -> None:
        # Replace, never merge.
        self._store[(snapshot.user_id, snapshot.course_id)] = snapshot

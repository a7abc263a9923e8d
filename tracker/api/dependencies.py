from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import AbstractAsyncContextManager, nullcontext
from dataclasses import dataclass
from typing import Annotated, Any

from fastapi import Depends, Header, HTTPException, status

from tracker.core.config import SETTINGS
from tracker.db.engine import async_session_factory, session_scope
from tracker.models.principal import Principal
from tracker.repos.course_repo import (
    CourseRepo,
    InMemoryCourseRepo,
    seed_sample_course,
)
from tracker.repos.event_repo import EventRepo, InMemoryEventRepo
from tracker.repos.pg_course_repo import PgCourseRepo
from tracker.repos.pg_event_repo import PgEventRepo
from tracker.repos.pg_snapshot_repo import PgSnapshotRepo
from tracker.repos.snapshot_repo import InMemorySnapshotRepo, SnapshotRepo
from tracker.services.progress_engine import ProgressEngine

logger = logging.getLogger(__name__)

# --- Module-level in-memory stores (used when DATABASE_URL is unset) ---
event_repo = InMemoryEventRepo()
course_repo = InMemoryCourseRepo()
snapshot_repo = InMemorySnapshotRepo()
seed_sample_course(course_repo)


def require_user(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_roles: Annotated[str | None, Header()] = None,
) -> Principal:
    """Build the caller's Principal from gateway-forwarded identity headers.

    Authentication happens upstream; this service trusts X-User-Id and
    only checks that it is present.
    """
    if not x_user_id or not x_user_id.strip():
        logger.warning("Request without X-User-Id rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing user identity",
        )

    roles = frozenset(
        r.strip() for r in (x_user_roles or "").split(",") if r.strip()
    )
    return Principal(user_id=x_user_id.strip(), roles=roles)


@dataclass(frozen=True, slots=True)
class Stores:
    """Repositories for one request, plus its transaction hooks.

    `isolate` opens a SAVEPOINT on Postgres so a failed recompute can be
    undone without undoing the event append that preceded it.  `commit`
    makes the request's writes visible to other sessions; handlers call it
    before touching the cache.
    """

    events: EventRepo
    courses: CourseRepo
    snapshots: SnapshotRepo
    isolate: Callable[[], AbstractAsyncContextManager[Any]]
    commit: Callable[[], Awaitable[None]]


async def _in_memory_commit() -> None:
    """In-memory writes are visible as soon as they are made."""


async def get_stores() -> AsyncIterator[Stores]:
    if async_session_factory is None:
        yield Stores(
            events=event_repo,
            courses=course_repo,
            snapshots=snapshot_repo,
            isolate=nullcontext,
            commit=_in_memory_commit,
        )
        return

    async with session_scope() as session:
        yield Stores(
            events=PgEventRepo(session),
            courses=PgCourseRepo(session),
            snapshots=PgSnapshotRepo(session),
            isolate=session.begin_nested,
            commit=session.commit,
        )


def get_progress_engine(
    stores: Annotated[Stores, Depends(get_stores)],
) -> ProgressEngine:
    return ProgressEngine(
        stores.events,
        stores.courses,
        stores.snapshots,
        recent_events_limit=SETTINGS.recent_events_limit,
    )

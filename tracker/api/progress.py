"""Progress read endpoints.

  GET  /v1/progress/me/{course_id}
       read-through cache → snapshot store; a missing snapshot is
       initialised (all Not Started) so a new enrollment is visible at once
  GET  /v1/progress/{user_id}/{course_id}
       explicit lookup (own id, or instructor role); 404 if no snapshot
  POST /v1/progress/me/{course_id}/recompute
       full rebuild from the event log, e.g. after a failed recompute
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from tracker.api.dependencies import (
    Stores,
    get_progress_engine,
    get_stores,
    require_user,
)
from tracker.api.events import LearningEventOut, event_out
from tracker.core.config import SETTINGS
from tracker.core.metrics import CACHE_OPERATIONS
from tracker.models.principal import Principal
from tracker.models.progress import ProgressSnapshot
from tracker.services.cache import (
    invalidate,
    progress_cache_key,
    read_cached,
    write_cached,
)
from tracker.services.errors import CourseNotFoundError, SnapshotNotFoundError
from tracker.services.progress_engine import ProgressEngine, ProgressView

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/progress", tags=["progress"])


class ContentProgressOut(BaseModel):
    content_id: str
    content_type: str
    status: str
    percentage: float
    time_spent: float
    last_updated: datetime.datetime
    revisit_count: int


class ModuleProgressOut(BaseModel):
    module_id: str
    contents: list[ContentProgressOut]
    completion_percentage: int
    overall_status: str


class SnapshotOut(BaseModel):
    user_id: str
    course_id: str
    modules: list[ModuleProgressOut]
    overall_progress: int
    total_time_spent: float
    last_activity: datetime.datetime


class ProgressSummaryOut(BaseModel):
    overall_progress: int
    total_modules: int
    completed_modules: int
    total_time_spent: float
    last_activity: datetime.datetime


class ProgressOut(BaseModel):
    progress: SnapshotOut
    recent_events: list[LearningEventOut]
    summary: ProgressSummaryOut


def _snapshot_out(snapshot: ProgressSnapshot) -> SnapshotOut:
    return SnapshotOut.model_validate(snapshot.to_dict())


def _progress_out(view: ProgressView) -> ProgressOut:
    snapshot = view.snapshot
    return ProgressOut(
        progress=_snapshot_out(snapshot),
        recent_events=[event_out(e) for e in view.recent_events],
        summary=ProgressSummaryOut(
            overall_progress=snapshot.overall_progress,
            total_modules=len(snapshot.modules),
            completed_modules=snapshot.completed_modules,
            total_time_spent=snapshot.total_time_spent,
            last_activity=snapshot.last_activity,
        ),
    )


def _not_found(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


@router.get("/me/{course_id}", response_model=ProgressOut)
async def get_my_progress(
    course_id: str,
    principal: Annotated[Principal, Depends(require_user)],
    stores: Annotated[Stores, Depends(get_stores)],
    engine: Annotated[ProgressEngine, Depends(get_progress_engine)],
) -> ProgressOut:
    cache_key = progress_cache_key(principal.user_id, course_id)

    cached = await read_cached(cache_key)
    if cached is not None:
        CACHE_OPERATIONS.labels(operation="hit").inc()
        return ProgressOut.model_validate(json.loads(cached))
    CACHE_OPERATIONS.labels(operation="miss").inc()

    try:
        view = await engine.get_or_init(principal.user_id, course_id)
    except CourseNotFoundError as e:
        raise _not_found(e.message) from None

    body = _progress_out(view)
    # A freshly initialised snapshot must be committed before it is cached.
    await stores.commit()
    await write_cached(cache_key, body.model_dump_json(), SETTINGS.progress_cache_ttl)
    return body


@router.post("/me/{course_id}/recompute", response_model=SnapshotOut)
async def recompute_my_progress(
    course_id: str,
    principal: Annotated[Principal, Depends(require_user)],
    stores: Annotated[Stores, Depends(get_stores)],
    engine: Annotated[ProgressEngine, Depends(get_progress_engine)],
) -> SnapshotOut:
    try:
        snapshot = await engine.recompute(principal.user_id, course_id)
    except CourseNotFoundError as e:
        raise _not_found(e.message) from None

    await stores.commit()
    await invalidate(progress_cache_key(principal.user_id, course_id))
    return _snapshot_out(snapshot)


@router.get("/{user_id}/{course_id}", response_model=ProgressOut)
async def get_user_progress(
    user_id: str,
    course_id: str,
    principal: Annotated[Principal, Depends(require_user)],
    engine: Annotated[ProgressEngine, Depends(get_progress_engine)],
) -> ProgressOut:
    if not principal.can_view_progress_of(user_id):
        logger.warning(
            "Access denied: user=%s tried to read progress of user=%s",
            principal.user_id,
            user_id,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only view your own progress",
        )

    try:
        view = await engine.get_existing(user_id, course_id)
    except SnapshotNotFoundError as e:
        raise _not_found(e.message) from None

    return _progress_out(view)

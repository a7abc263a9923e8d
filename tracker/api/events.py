"""Learning event ingestion endpoint.

  Client -> POST /v1/events (video watch %, reading scroll %, quiz submit)
  -> validate (required fields, content_type/event_type pairing)
  -> append learning_event
  -> recompute progress snapshot for (user, course)   [failure logged only]
  -> commit, then invalidate cached progress
  -> 201 Created
"""

from __future__ import annotations

import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from tracker.api.dependencies import (
    Stores,
    get_progress_engine,
    get_stores,
    require_user,
)
from tracker.models.event import LearningEvent
from tracker.models.principal import Principal
from tracker.services.cache import invalidate, progress_cache_key
from tracker.services.errors import EventValidationError
from tracker.services.ingestion import record_event
from tracker.services.progress_engine import ProgressEngine

router = APIRouter(prefix="/v1/events", tags=["events"])


class LearningEventIn(BaseModel):
    # Required fields are checked by the ingestion service so that every
    # missing field is reported in one 400 response.
    course_id: str | None = None
    module_id: str | None = None
    content_type: str | None = None  # video|reading|quiz
    content_id: str | None = None
    event_type: str | None = None  # watch|scroll|submit
    percentage: float | None = None
    time_spent: float | None = None
    metadata: dict[str, Any] | None = None


class LearningEventOut(BaseModel):
    id: str
    course_id: str
    module_id: str
    content_id: str
    content_type: str
    event_type: str
    percentage: float
    time_spent: float
    created_at: datetime.datetime


class LearningEventList(BaseModel):
    events: list[LearningEventOut]
    count: int


class EventRecordedOut(BaseModel):
    id: str
    content_type: str
    event_type: str
    percentage: float
    created_at: datetime.datetime


def event_out(event: LearningEvent) -> LearningEventOut:
    return LearningEventOut(
        id=str(event.id),
        course_id=event.course_id,
        module_id=event.module_id,
        content_id=event.content_id,
        content_type=event.content_type.value,
        event_type=event.event_type.value,
        percentage=event.percentage,
        time_spent=event.time_spent,
        created_at=event.created_at,
    )


@router.post(
    "",
    response_model=EventRecordedOut,
    status_code=status.HTTP_201_CREATED,
)
async def ingest_learning_event(
    body: LearningEventIn,
    principal: Annotated[Principal, Depends(require_user)],
    stores: Annotated[Stores, Depends(get_stores)],
    engine: Annotated[ProgressEngine, Depends(get_progress_engine)],
) -> EventRecordedOut:
    try:
        event = await record_event(
            stores.events,
            engine,
            user_id=principal.user_id,
            course_id=body.course_id,
            module_id=body.module_id,
            content_type=body.content_type,
            content_id=body.content_id,
            event_type=body.event_type,
            percentage=body.percentage,
            time_spent=body.time_spent,
            metadata=body.metadata,
            isolate=stores.isolate,
        )
    except EventValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=e.message
        ) from None

    # Commit first: invalidating earlier would let a concurrent read re-cache
    # the snapshot this request is replacing.
    await stores.commit()
    await invalidate(progress_cache_key(principal.user_id, event.course_id))

    return EventRecordedOut(
        id=str(event.id),
        content_type=event.content_type.value,
        event_type=event.event_type.value,
        percentage=event.percentage,
        created_at=event.created_at,
    )


@router.get("", response_model=LearningEventList)
async def list_my_events(
    principal: Annotated[Principal, Depends(require_user)],
    stores: Annotated[Stores, Depends(get_stores)],
    course_id: str | None = None,
    content_type: str | None = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
) -> LearningEventList:
    """The caller's own events, newest first."""
    events = await stores.events.list_for_user(
        principal.user_id,
        course_id=course_id,
        content_type=content_type,
        limit=limit,
    )
    return LearningEventList(events=[event_out(e) for e in events], count=len(events))

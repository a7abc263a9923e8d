"""PostgreSQL implementation of EventRepo."""

from __future__ import annotations

from dataclasses import replace

from sqlalchemy import Insert, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.db.tables import LearningEventRow
from tracker.models.event import ContentType, EventType, LearningEvent


class PgEventRepo:
    """Satisfies the EventRepo Protocol using PostgreSQL via SQLAlchemy.

    Rows are only ever inserted.  `created_at` is stamped by the database
    clock (clock_timestamp) and read back, so timestamps from every API
    worker share one clock.  Reads order by (created_at, id) descending so
    ties on the timestamp still come back in a stable order.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def append(self, event: LearningEvent) -> LearningEvent:
        result = await self._session.execute(_insert_stmt(event))
        return replace(event, created_at=result.scalar_one())

    async def list_for(self, user_id: str, course_id: str) -> list[LearningEvent]:
        stmt = (
            select(LearningEventRow)
            .where(
                LearningEventRow.user_id == user_id,
                LearningEventRow.course_id == course_id,
            )
            .order_by(LearningEventRow.created_at.desc(), LearningEventRow.id.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_event(r) for r in rows]

    async def recent_for(
        self, user_id: str, course_id: str, limit: int
    ) -> list[LearningEvent]:
        stmt = (
            select(LearningEventRow)
            .where(
                LearningEventRow.user_id == user_id,
                LearningEventRow.course_id == course_id,
            )
            .order_by(LearningEventRow.created_at.desc(), LearningEventRow.id.desc())
            .limit(limit)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_event(r) for r in rows]

    async def list_for_user(
        self,
        user_id: str,
        *,
        course_id: str | None = None,
        content_type: str | None = None,
        limit: int = 50,
    ) -> list[LearningEvent]:
        stmt = select(LearningEventRow).where(LearningEventRow.user_id == user_id)
        if course_id is not None:
            stmt = stmt.where(LearningEventRow.course_id == course_id)
        if content_type is not None:
            stmt = stmt.where(LearningEventRow.content_type == content_type)
        stmt = stmt.order_by(
            LearningEventRow.created_at.desc(), LearningEventRow.id.desc()
        ).limit(limit)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_event(r) for r in rows]


def _row_to_event(row: LearningEventRow) -> LearningEvent:
    return LearningEvent(
        id=row.id,
        user_id=row.user_id,
        course_id=row.course_id,
        module_id=row.module_id,
        content_id=row.content_id,
        content_type=ContentType(row.content_type),
        event_type=EventType(row.event_type),
        created_at=row.created_at,
        percentage=row.percentage,
        time_spent=row.time_spent,
        metadata=dict(row.metadata_json or {}),
    )


def _insert_stmt(event: LearningEvent) -> Insert:
    """INSERT ... RETURNING created_at; the caller's clock reading is dropped.

    Built on the Core table so `metadata` is the column name, not the
    `metadata_json` mapped attribute.
    """
    table = LearningEventRow.__table__
    return (
        insert(table)
        .values(
            id=event.id,
            user_id=event.user_id,
            course_id=event.course_id,
            module_id=event.module_id,
            content_id=event.content_id,
            content_type=event.content_type.value,
            event_type=event.event_type.value,
            percentage=event.percentage,
            time_spent=event.time_spent,
            metadata=dict(event.metadata),
        )
        .returning(table.c.created_at)
    )

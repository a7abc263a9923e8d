"""PostgreSQL implementation of SnapshotRepo."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.db.tables import ProgressSnapshotRow
from tracker.models.progress import ModuleProgress, ProgressSnapshot


class PgSnapshotRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: str, course_id: str) -> ProgressSnapshot | None:
        stmt = select(ProgressSnapshotRow).where(
            ProgressSnapshotRow.user_id == user_id,
            ProgressSnapshotRow.course_id == course_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return ProgressSnapshot(
            user_id=row.user_id,
            course_id=row.course_id,
            modules=tuple(ModuleProgress.from_dict(m) for m in row.modules),
            overall_progress=row.overall_progress,
            total_time_spent=row.total_time_spent,
            last_activity=row.last_activity,
        )

    async def upsert(self, snapshot: ProgressSnapshot) -> None:
        values = {
            "modules": [m.to_dict() for m in snapshot.modules],
            "overall_progress": snapshot.overall_progress,
            "total_time_spent": snapshot.total_time_spent,
            "last_activity": snapshot.last_activity,
        }
        # INSERT ... ON CONFLICT DO UPDATE: concurrent first writes for the
        # same pair collapse onto the primary key, last writer wins.
        stmt = (
            pg_insert(ProgressSnapshotRow)
            .values(user_id=snapshot.user_id, course_id=snapshot.course_id, **values)
            .on_conflict_do_update(
                index_elements=["user_id", "course_id"],
                set_={**values, "updated_at": func.now()},
            )
        )
        await self._session.execute(stmt)

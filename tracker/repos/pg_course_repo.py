"""PostgreSQL implementation of CourseRepo (read-only)."""

from __future__ import annotations

from collections import defaultdict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.db.tables import CourseModuleRow, CourseRow, ModuleContentRow
from tracker.models.course import ContentItem, CourseStructure, ModuleStructure


class PgCourseRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, course_id: str) -> CourseStructure | None:
        stmt = select(CourseRow).where(CourseRow.id == course_id)
        course = (await self._session.execute(stmt)).scalar_one_or_none()
        if course is None:
            return None
        return (await self._load_structures([course]))[0]

    async def list_courses(self) -> list[CourseStructure]:
        courses = (
            (await self._session.execute(select(CourseRow).order_by(CourseRow.id)))
            .scalars()
            .all()
        )
        return await self._load_structures(list(courses))

    async def _load_structures(self, courses: list[CourseRow]) -> list[CourseStructure]:
        if not courses:
            return []
        course_ids = [c.id for c in courses]

        module_rows = (
            (
                await self._session.execute(
                    select(CourseModuleRow)
                    .where(CourseModuleRow.course_id.in_(course_ids))
                    .order_by(CourseModuleRow.position)
                )
            )
            .scalars()
            .all()
        )
        content_rows: list[ModuleContentRow] = []
        if module_rows:
            content_rows = list(
                (
                    await self._session.execute(
                        select(ModuleContentRow)
                        .where(ModuleContentRow.course_id.in_(course_ids))
                        .order_by(ModuleContentRow.position)
                    )
                )
                .scalars()
                .all()
            )
        return _assemble_structures(courses, list(module_rows), content_rows)


def _assemble_structures(
    courses: list[CourseRow],
    module_rows: list[CourseModuleRow],
    content_rows: list[ModuleContentRow],
) -> list[CourseStructure]:
    """Nest position-ordered module and content rows under their courses."""
    # Module ids repeat across courses, so contents are keyed by
    # (course_id, module_id).
    contents_by_module: dict[tuple[str, str], list[ContentItem]] = defaultdict(list)
    for row in content_rows:
        contents_by_module[(row.course_id, row.module_id)].append(
            ContentItem(
                id=row.id,
                type=row.type,
                title=row.title,
                position=row.position,
                media=dict(row.media or {}),
            )
        )

    modules_by_course: dict[str, list[ModuleStructure]] = defaultdict(list)
    for m in module_rows:
        modules_by_course[m.course_id].append(
            ModuleStructure(
                id=m.id,
                title=m.title,
                position=m.position,
                contents=tuple(contents_by_module[(m.course_id, m.id)]),
            )
        )

    return [
        CourseStructure(
            id=c.id,
            title=c.title,
            description=c.description or "",
            modules=tuple(modules_by_course[c.id]),
        )
        for c in courses
    ]

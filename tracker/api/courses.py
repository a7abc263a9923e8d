"""Read-only course structure endpoints.

Course authoring lives elsewhere; this service only reads the module and
content layout that progress is computed against.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from tracker.api.dependencies import Stores, get_stores, require_user
from tracker.models.course import CourseStructure
from tracker.models.principal import Principal

router = APIRouter(prefix="/v1/courses", tags=["courses"])


class ContentItemOut(BaseModel):
    id: str
    type: str
    title: str
    position: int
    media: dict[str, Any]


class ModuleOut(BaseModel):
    id: str
    title: str
    position: int
    contents: list[ContentItemOut]


class CourseOut(BaseModel):
    id: str
    title: str
    description: str
    module_count: int


class CourseDetailOut(CourseOut):
    modules: list[ModuleOut]


def _course_out(course: CourseStructure) -> CourseOut:
    return CourseOut(
        id=course.id,
        title=course.title,
        description=course.description,
        module_count=len(course.modules),
    )


@router.get("", response_model=list[CourseOut])
async def list_courses(
    _principal: Annotated[Principal, Depends(require_user)],
    stores: Annotated[Stores, Depends(get_stores)],
) -> list[CourseOut]:
    return [_course_out(c) for c in await stores.courses.list_courses()]


@router.get("/{course_id}", response_model=CourseDetailOut)
async def get_course(
    course_id: str,
    _principal: Annotated[Principal, Depends(require_user)],
    stores: Annotated[Stores, Depends(get_stores)],
) -> CourseDetailOut:
    course = await stores.courses.get(course_id)
    if course is None:
        raise HTTPException(status_code=404, detail="course not found")

    return CourseDetailOut(
        **_course_out(course).model_dump(),
        modules=[
            ModuleOut(
                id=m.id,
                title=m.title,
                position=m.position,
                contents=[
                    ContentItemOut(
                        id=c.id,
                        type=c.type,
                        title=c.title,
                        position=c.position,
                        media=dict(c.media),
                    )
                    for c in m.contents
                ],
            )
            for m in course.modules
        ],
    )

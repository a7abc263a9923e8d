from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ContentItem:
    id: str
    type: str  # video|reading|quiz
    title: str
    position: int
    # File/media details (paths, sizes, MIME types); opaque to progress
    media: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ModuleStructure:
    id: str
    title: str
    position: int
    contents: tuple[ContentItem, ...] = ()


@dataclass(frozen=True, slots=True)
class CourseStructure:
    """Read-only view of a course: ordered modules, each with ordered contents."""

    id: str
    title: str
    description: str = ""
    modules: tuple[ModuleStructure, ...] = ()

    @staticmethod
    def build(
        *,
        id: str,
        title: str,
        modules: list[ModuleStructure],
        description: str = "",
    ) -> CourseStructure:
        ordered = tuple(
            ModuleStructure(
                id=m.id,
                title=m.title,
                position=m.position,
                contents=tuple(sorted(m.contents, key=lambda c: c.position)),
            )
            for m in sorted(modules, key=lambda m: m.position)
        )
        return CourseStructure(
            id=id, title=title, description=description, modules=ordered
        )

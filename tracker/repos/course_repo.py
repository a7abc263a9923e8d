from __future__ import annotations

from typing import Protocol

from tracker.models.course import ContentItem, CourseStructure, ModuleStructure


class CourseRepo(Protocol):
    async def get(self, course_id: str) -> CourseStructure | None: ...
    async def list_courses(self) -> list[CourseStructure]: ...


class InMemoryCourseRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, CourseStructure] = {}

    async def get(self, course_id: str) -> CourseStructure | None:
        return self._by_id.get(course_id)

    async def list_courses(self) -> list[CourseStructure]:
        return list(self._by_id.values())

    def add(self, course: CourseStructure) -> None:
        # Seeding/admin only; the progress engine never writes courses.
        if course.id in self._by_id:
            raise ValueError("course already exists")
        self._by_id[course.id] = course


SAMPLE_COURSE_ID = "intro-to-data"


def sample_course() -> CourseStructure:
    """Two-module course used for local development and tests."""
    return CourseStructure.build(
        id=SAMPLE_COURSE_ID,
        title="Introduction to Data Analysis",
        description="Video lectures, readings and short quizzes.",
        modules=[
            ModuleStructure(
                id="m1",
                title="Getting started",
                position=1,
                contents=(
                    ContentItem(
                        id="m1-video",
                        type="video",
                        title="Welcome",
                        position=1,
                        media={"mime_type": "video/mp4", "file_size": 48_211_093},
                    ),
                    ContentItem(
                        id="m1-reading",
                        type="reading",
                        title="Course handbook",
                        position=2,
                        media={"mime_type": "application/pdf", "total_pages": 12},
                    ),
                    ContentItem(
                        id="m1-quiz", type="quiz", title="Check-in", position=3
                    ),
                ),
            ),
            ModuleStructure(
                id="m2",
                title="Tabular data",
                position=2,
                contents=(
                    ContentItem(
                        id="m2-video", type="video", title="DataFrames", position=1
                    ),
                    ContentItem(
                        id="m2-quiz", type="quiz", title="DataFrame quiz", position=2
                    ),
                ),
            ),
        ],
    )


def seed_sample_course(repo: InMemoryCourseRepo) -> None:
    """Seed the sample course if the repo is empty."""
    if not repo._by_id:
        repo.add(sample_course())

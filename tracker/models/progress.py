from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class ProgressStatus(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"

    @property
    def rank(self) -> int:
        """Position in the Not Started < In Progress < Completed order."""
        return _STATUS_RANK[self]


_STATUS_RANK = {
    ProgressStatus.NOT_STARTED: 0,
    ProgressStatus.IN_PROGRESS: 1,
    ProgressStatus.COMPLETED: 2,
}


@dataclass(frozen=True, slots=True)
class ContentProgress:
    content_id: str
    content_type: str
    status: ProgressStatus
    percentage: float
    time_spent: float
    last_updated: datetime
    revisit_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "content_id": self.content_id,
            "content_type": self.content_type,
            "status": self.status.value,
            "percentage": self.percentage,
            "time_spent": self.time_spent,
            "last_updated": self.last_updated.isoformat(),
            "revisit_count": self.revisit_count,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ContentProgress:
        return ContentProgress(
            content_id=data["content_id"],
            content_type=data["content_type"],
            status=ProgressStatus(data["status"]),
            percentage=data["percentage"],
            time_spent=data["time_spent"],
            last_updated=datetime.fromisoformat(data["last_updated"]),
            revisit_count=data["revisit_count"],
        )


@dataclass(frozen=True, slots=True)
class ModuleProgress:
    module_id: str
    contents: tuple[ContentProgress, ...]
    completion_percentage: int
    overall_status: ProgressStatus

    def to_dict(self) -> dict[str, Any]:
        return {
            "module_id": self.module_id,
            "contents": [c.to_dict() for c in self.contents],
            "completion_percentage": self.completion_percentage,
            "overall_status": self.overall_status.value,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ModuleProgress:
        return ModuleProgress(
            module_id=data["module_id"],
            contents=tuple(ContentProgress.from_dict(c) for c in data["contents"]),
            completion_percentage=data["completion_percentage"],
            overall_status=ProgressStatus(data["overall_status"]),
        )


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    """Projection / read model derived from the learning event log.

    One per (user_id, course_id).  Every recompute replaces it whole; the
    event log stays the source of truth.
    """

    user_id: str
    course_id: str
    modules: tuple[ModuleProgress, ...]
    overall_progress: int
    total_time_spent: float
    last_activity: datetime

    @property
    def completed_modules(self) -> int:
        return sum(
            1 for m in self.modules if m.overall_status is ProgressStatus.COMPLETED
        )

    def find_content(self, module_id: str, content_id: str) -> ContentProgress | None:
        for module in self.modules:
            if module.module_id != module_id:
                continue
            for content in module.contents:
                if content.content_id == content_id:
                    return content
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "course_id": self.course_id,
            "modules": [m.to_dict() for m in self.modules],
            "overall_progress": self.overall_progress,
            "total_time_spent": self.total_time_spent,
            "last_activity": self.last_activity.isoformat(),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ProgressSnapshot:
        return ProgressSnapshot(
            user_id=data["user_id"],
            course_id=data["course_id"],
            modules=tuple(ModuleProgress.from_dict(m) for m in data["modules"]),
            overall_progress=data["overall_progress"],
            total_time_spent=data["total_time_spent"],
            last_activity=datetime.fromisoformat(data["last_activity"]),
        )

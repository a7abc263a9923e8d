"""Status rules for content items and modules.

Two separate functions on purpose: a content item's status depends on its
type (a quiz only cares whether it was submitted), a module's status only
on its completion percentage.
"""

from __future__ import annotations

from tracker.models.progress import ProgressStatus

COMPLETION_THRESHOLD = 90
READING_START_THRESHOLD = 10


def resolve_content_status(
    content_type: str, percentage: float, submitted: bool
) -> ProgressStatus:
    """Map the best observed metrics of one content item to a status.

    - quiz:    Completed once submitted, otherwise Not Started
    - video:   >= 90 Completed, > 0 In Progress
    - reading: >= 90 Completed, > 10 In Progress
    Unknown content types are Not Started.
    """
    if content_type == "quiz":
        return ProgressStatus.COMPLETED if submitted else ProgressStatus.NOT_STARTED

    if content_type == "video":
        if percentage >= COMPLETION_THRESHOLD:
            return ProgressStatus.COMPLETED
        if percentage > 0:
            return ProgressStatus.IN_PROGRESS
        return ProgressStatus.NOT_STARTED

    if content_type == "reading":
        if percentage >= COMPLETION_THRESHOLD:
            return ProgressStatus.COMPLETED
        if percentage > READING_START_THRESHOLD:
            return ProgressStatus.IN_PROGRESS
        return ProgressStatus.NOT_STARTED

    return ProgressStatus.NOT_STARTED


def bucket_completion_percentage(percentage: int) -> ProgressStatus:
    """Module status from its completion percentage (0-100)."""
    if percentage >= 100:
        return ProgressStatus.COMPLETED
    if percentage > 0:
        return ProgressStatus.IN_PROGRESS
    return ProgressStatus.NOT_STARTED

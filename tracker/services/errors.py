from __future__ import annotations


class ProgressError(Exception):
    """Base progress error."""

    def __init__(self, message: str, code: str = "progress_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class EventValidationError(ProgressError):
    """Learning event rejected before storage.

    `reason` is the coarse category used for metrics; `message` is what
    the caller sees.
    """

    def __init__(self, message: str, reason: str = "invalid"):
        self.reason = reason
        super().__init__(message, "validation_error")


class CourseNotFoundError(ProgressError):
    def __init__(self, course_id: str):
        self.course_id = course_id
        super().__init__(f"course {course_id!r} not found", "course_not_found")


class SnapshotNotFoundError(ProgressError):
    def __init__(self, user_id: str, course_id: str):
        super().__init__(
            "No progress data available for this user and course",
            "progress_not_found",
        )
        self.user_id = user_id
        self.course_id = course_id

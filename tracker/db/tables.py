"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in tracker/models/.
Repos convert between SQLAlchemy rows and domain dataclasses; nothing
outside tracker/repos/pg_*.py touches these classes.
"""

from __future__ import annotations

import datetime
import uuid
from typing import Any

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from tracker.db.engine import Base

# --- Course structure (read-only to the progress engine) ---


class CourseRow(Base):
    __tablename__ = "courses"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")


class CourseModuleRow(Base):
    """Module ids are unique within their course only."""

    __tablename__ = "course_modules"

    course_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("courses.id"), primary_key=True
    )
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)


class ModuleContentRow(Base):
    """Content ids are unique within their module only."""

    __tablename__ = "module_contents"

    course_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    module_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False)  # video|reading|quiz
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    media: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default={})

    __table_args__ = (
        ForeignKeyConstraint(
            ["course_id", "module_id"],
            ["course_modules.course_id", "course_modules.id"],
        ),
    )


# --- Learning events (append-only) ---


class LearningEventRow(Base):
    __tablename__ = "learning_events"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    course_id: Mapped[str] = mapped_column(String(64), nullable=False)
    module_id: Mapped[str] = mapped_column(String(64), nullable=False)
    content_id: Mapped[str] = mapped_column(String(64), nullable=False)
    content_type: Mapped[str] = mapped_column(String(16), nullable=False)
    event_type: Mapped[str] = mapped_column(String(16), nullable=False)
    percentage: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    time_spent: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    metadata_json: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONB, nullable=False, default={}
    )
    # One database clock for all workers; now() would be frozen per transaction.
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.clock_timestamp(),
    )

    __table_args__ = (
        Index("ix_learning_events_subject", "user_id", "course_id", "created_at"),
        Index(
            "ix_learning_events_location",
            "user_id",
            "course_id",
            "module_id",
            "content_type",
        ),
    )


# --- Progress snapshot (projection, one row per user+course) ---


class ProgressSnapshotRow(Base):
    """Projection / read model derived from learning_events.

    The composite primary key is the uniqueness guarantee that keeps
    concurrent first writes for the same pair from creating two rows.
    """

    __tablename__ = "progress_snapshots"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    course_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("courses.id"), primary_key=True
    )
    modules: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, default=[]
    )
    overall_progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_time_spent: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0
    )
    last_activity: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

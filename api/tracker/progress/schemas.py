"""Pydantic schemas for derived progress view-state.

Models handed to the presentation layer:
- Lesson status rows for the current level
- Course track entries (one per level)
- Complete student overview for one render pass
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .engine import LevelState
from .models import ProgressRecord, ProgressStatus


# ==============================================================================
# Lesson Schemas
# ==============================================================================


class LessonStatusView(BaseModel):
    """One lesson of the current level with its status."""

    model_config = ConfigDict(from_attributes=True)

    lesson_id: Any
    lesson_number: int | None = None
    lesson_name: str | None = None
    status: ProgressStatus

    @classmethod
    def from_entity(
        cls,
        entity: ProgressRecord,
        lesson_number: int | None = None,
        lesson_name: str | None = None,
    ) -> "LessonStatusView":
        """Create view from record, preferring explicitly resolved fields."""
        return cls(
            lesson_id=entity.lesson_id,
            lesson_number=(
                lesson_number if lesson_number is not None else entity.lesson_number
            ),
            lesson_name=lesson_name or entity.lesson_name,
            status=entity.status,
        )


class LessonStatusCounts(BaseModel):
    """Per-status lesson counts for one level."""

    locked: int = 0
    in_progress: int = 0
    completed: int = 0

    @property
    def total(self) -> int:
        return self.locked + self.in_progress + self.completed

    @classmethod
    def from_counts(cls, counts: dict[ProgressStatus, int]) -> "LessonStatusCounts":
        """Create from an engine status count mapping."""
        return cls(**{status.value: count for status, count in counts.items()})


# ==============================================================================
# Course Track Schemas
# ==============================================================================


class LevelTrackEntry(BaseModel):
    """A level badge on the course track."""

    level_id: Any = None
    level_number: int
    level_name: str = ""
    state: LevelState
    completion_percentage: int = Field(ge=0, le=100, description="0-100")


# ==============================================================================
# Overview Schema (Complete View)
# ==============================================================================


class StudentProgressOverview(BaseModel):
    """Everything a dashboard renders for one student, from one snapshot."""

    student_id: Any = None
    current_level_number: int = Field(ge=1)
    current_level_name: str | None = None
    max_level_number: int = Field(ge=1)
    current_level_percentage: int = Field(ge=0, le=100)
    current_level_counts: LessonStatusCounts = Field(
        default_factory=LessonStatusCounts
    )
    current_level_lessons: list[LessonStatusView] = Field(
        default_factory=list,
        description="Empty when the current level has no progress rows yet",
    )
    levels: list[LevelTrackEntry] = Field(default_factory=list)
    track_fill_percentage: int = Field(0, ge=0, le=100)

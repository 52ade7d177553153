"""Progress resolution service layer.

Business logic for:
- Resolving one snapshot into the dashboard overview
- Applying configured resolution policy (ceiling, tie-break, membership)
- Detecting level drift between progress records and reassigned lessons
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from tracker.config.settings import Settings, get_settings
from tracker.core.logging import get_logger

from .engine import (
    LevelIndex,
    LevelMembership,
    TieBreakPolicy,
    compute_level_completion_percentage,
    compute_track_fill_percentage,
    count_lessons_by_status,
    resolve_current_level,
    resolve_current_level_lessons,
    resolve_level_state,
    sort_by_lesson_number,
)
from .models import (
    Lesson,
    Level,
    ProgressRecord,
    coerce_int,
    derive_max_level_number,
)
from .schemas import (
    LessonStatusCounts,
    LessonStatusView,
    LevelTrackEntry,
    StudentProgressOverview,
)


logger = get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class ProgressError(Exception):
    """Base progress error."""

    def __init__(self, message: str, code: str = "progress_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class LevelDriftError(ProgressError):
    """Progress records point at a level their lesson no longer belongs to."""

    def __init__(self, drift: list["LevelDrift"]):
        self.drift = drift
        super().__init__(
            f"{len(drift)} progress record(s) reference a stale level",
            "level_drift",
        )


# ==============================================================================
# Snapshot
# ==============================================================================


@dataclass(frozen=True)
class ProgressSnapshot:
    """One fetch of reference data and a student's progress rows.

    All values derived in a render pass must come from the same snapshot.
    """

    student_id: Any = None
    levels: tuple[Level, ...] = field(default_factory=tuple)
    lessons: tuple[Lesson, ...] = field(default_factory=tuple)
    records: tuple[ProgressRecord, ...] = field(default_factory=tuple)

    @classmethod
    def from_rows(
        cls,
        student_id: Any = None,
        level_rows: Iterable[Any] | None = None,
        lesson_rows: Iterable[Any] | None = None,
        progress_rows: Iterable[Any] | None = None,
    ) -> "ProgressSnapshot":
        """Build a snapshot from raw data-access rows."""
        return cls(
            student_id=student_id,
            levels=tuple(Level.from_row(row) for row in level_rows or ()),
            lessons=tuple(Lesson.from_row(row) for row in lesson_rows or ()),
            records=tuple(ProgressRecord.from_row(row) for row in progress_rows or ()),
        )


@dataclass
class LevelDrift:
    """A record whose stored level differs from its lesson's current level."""

    lesson_id: Any
    record_level_id: Any
    lesson_level_id: Any


def find_level_drift(snapshot: ProgressSnapshot) -> list[LevelDrift]:
    """List records whose ``level_id`` no longer matches their lesson."""
    index = LevelIndex(lessons=snapshot.lessons)
    drift = []
    for record in snapshot.records:
        if not isinstance(record, ProgressRecord) or record.level_id is None:
            continue
        lesson = index.lesson_for_record(record)
        if lesson is None:
            continue
        if lesson.level_id != record.level_id:
            drift.append(
                LevelDrift(
                    lesson_id=record.lesson_id,
                    record_level_id=record.level_id,
                    lesson_level_id=lesson.level_id,
                )
            )
    return drift


def _numbered_levels(levels: Iterable[Any]) -> list[tuple[int, Level]]:
    """Configured levels with a usable number, in level order."""
    numbered = []
    for level in levels or ():
        if not isinstance(level, Level):
            continue
        number = coerce_int(level.level_number)
        if number is not None:
            numbered.append((number, level))
    return sorted(numbered, key=lambda item: item[0])


def ensure_referential_integrity(snapshot: ProgressSnapshot) -> None:
    """Raise for write paths that must not leave stale level references.

    Raises:
        LevelDriftError: If any record references a stale level
    """
    drift = find_level_drift(snapshot)
    if drift:
        raise LevelDriftError(drift)


# ==============================================================================
# Progress Resolution Service
# ==============================================================================


class ProgressResolutionService:
    """Derives dashboard view-state with the configured resolution policy."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.tie_break = TieBreakPolicy(self.settings.progress_tie_break)
        self.membership = LevelMembership(self.settings.progress_level_membership)

    def build_index(self, snapshot: ProgressSnapshot) -> LevelIndex:
        """Lookup used by every operation on this snapshot."""
        return LevelIndex(snapshot.levels, snapshot.lessons, self.membership)

    def max_level_number(self, snapshot: ProgressSnapshot) -> int:
        """Level ceiling: configured levels when known, else the setting."""
        if self.settings.progress_derive_max_level and snapshot.levels:
            return derive_max_level_number(snapshot.levels)
        return self.settings.progress_max_level_number

    def current_level(
        self,
        snapshot: ProgressSnapshot,
        index: LevelIndex | None = None,
    ) -> int:
        """Current level number of the snapshot's student."""
        return resolve_current_level(
            snapshot.records,
            max_level_number=self.max_level_number(snapshot),
            tie_break=self.tie_break,
            index=index or self.build_index(snapshot),
        )

    def current_level_lessons(
        self,
        snapshot: ProgressSnapshot,
        current_level: int | None = None,
        index: LevelIndex | None = None,
    ) -> list[ProgressRecord]:
        """Records of the current level, lesson-ordered if configured."""
        index = index or self.build_index(snapshot)
        if current_level is None:
            current_level = self.current_level(snapshot, index)

        lessons = resolve_current_level_lessons(
            snapshot.records, current_level, index=index
        )
        if self.settings.progress_sort_lessons:
            lessons = sort_by_lesson_number(lessons, index)
        return lessons

    def level_completion_percentage(
        self,
        snapshot: ProgressSnapshot,
        level_number: int,
        index: LevelIndex | None = None,
    ) -> int:
        """Completion percentage of any level."""
        return compute_level_completion_percentage(
            snapshot.records,
            level_number,
            index=index or self.build_index(snapshot),
        )

    def build_overview(self, snapshot: ProgressSnapshot) -> StudentProgressOverview:
        """Resolve everything a dashboard renders from one snapshot."""
        drift = find_level_drift(snapshot)
        if drift:
            logger.warning(
                "progress_level_drift_detected",
                student_id=str(snapshot.student_id),
                records=len(drift),
                lesson_ids=[str(item.lesson_id) for item in drift],
                membership=self.membership.value,
            )

        index = self.build_index(snapshot)
        max_level = self.max_level_number(snapshot)
        current_level = self.current_level(snapshot, index)
        lessons = self.current_level_lessons(snapshot, current_level, index)

        current_views = []
        for record in lessons:
            lesson = index.lesson_for_record(record)
            current_views.append(
                LessonStatusView.from_entity(
                    record,
                    lesson_number=index.lesson_number_for_record(record),
                    lesson_name=lesson.lesson_name if lesson is not None else None,
                )
            )

        track = [
            LevelTrackEntry(
                level_id=level.id,
                level_number=number,
                level_name=level.level_name,
                state=resolve_level_state(number, current_level),
                completion_percentage=self.level_completion_percentage(
                    snapshot, number, index
                ),
            )
            for number, level in _numbered_levels(snapshot.levels)
        ]

        current = index.level_by_number(current_level)
        overview = StudentProgressOverview(
            student_id=snapshot.student_id,
            current_level_number=current_level,
            current_level_name=current.level_name if current is not None else None,
            max_level_number=max_level,
            current_level_percentage=self.level_completion_percentage(
                snapshot, current_level, index
            ),
            current_level_counts=LessonStatusCounts.from_counts(
                count_lessons_by_status(lessons)
            ),
            current_level_lessons=current_views,
            levels=track,
            track_fill_percentage=compute_track_fill_percentage(
                current_level, len(track)
            ),
        )

        logger.debug(
            "progress_resolved",
            student_id=str(snapshot.student_id),
            current_level=current_level,
            max_level=max_level,
            current_level_percentage=overview.current_level_percentage,
            lessons=len(current_views),
        )

        return overview

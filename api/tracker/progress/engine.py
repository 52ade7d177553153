"""Progress resolution engine.

Pure functions deriving dashboard view-state from one student's progress
records:
- Current level
- Lessons of the current level
- Completion percentage of any level
- Course track helpers (level state, progress-line fill)

Every function accepts None or any iterable of records, skips malformed
items and never raises. Nothing here performs I/O or mutates its inputs, so
it is safe to call from any thread or task. Pass the same snapshot to all
calls of one render pass so the derived values stay consistent.
"""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from .models import (
    DEFAULT_MAX_LEVEL_NUMBER,
    Lesson,
    Level,
    ProgressRecord,
    ProgressStatus,
    coerce_int,
    lookup,
)


class TieBreakPolicy(str, Enum):
    """How to pick the current level among several in_progress records."""

    # Source order of the snapshot; arbitrary but repeatable for a fixed input
    FIRST_SEEN = "first_seen"
    LOWEST_LEVEL = "lowest_level"


class LevelMembership(str, Enum):
    """Where a record's level is read from."""

    RECORD = "record"  # level stored on the progress record
    LESSON = "lesson"  # lesson's current level at read time


class LevelState(str, Enum):
    """Position of a level relative to the student's current level."""

    COMPLETED = "completed"
    CURRENT = "current"
    UPCOMING = "upcoming"


# ==============================================================================
# Level Index
# ==============================================================================


class LevelIndex:
    """Read-only lookup from records to level and lesson numbers.

    With ``LevelMembership.RECORD`` a record belongs to the level it was
    written with (joined ``level_number``, else its ``level_id``). With
    ``LevelMembership.LESSON`` the lesson's current ``level_id`` wins, falling
    back to the record's own level when the lesson is unknown.
    """

    def __init__(
        self,
        levels: Iterable[Level] | None = None,
        lessons: Iterable[Lesson] | None = None,
        membership: LevelMembership | str = LevelMembership.RECORD,
    ):
        self.membership = LevelMembership(membership)
        self._levels_by_id: dict[Any, Level] = {}
        self._levels_by_number: dict[int, Level] = {}
        self._lessons_by_id: dict[Any, Lesson] = {}

        for level in levels or ():
            if isinstance(level, Level):
                try:
                    self._levels_by_id[level.id] = level
                    self._levels_by_number.setdefault(level.level_number, level)
                except TypeError:
                    continue

        for lesson in lessons or ():
            if isinstance(lesson, Lesson):
                try:
                    self._lessons_by_id[lesson.id] = lesson
                except TypeError:
                    continue

    def level_by_number(self, level_number: int) -> Level | None:
        """Get the configured level with this number."""
        return lookup(self._levels_by_number, level_number)

    def lesson_for_record(self, record: ProgressRecord) -> Lesson | None:
        """Get the lesson a record points at, if it still exists."""
        return lookup(self._lessons_by_id, record.lesson_id)

    def level_number_for_record(self, record: ProgressRecord) -> int | None:
        """Resolve the level number a record counts toward."""
        if self.membership == LevelMembership.LESSON:
            lesson = self.lesson_for_record(record)
            if lesson is not None:
                level = lookup(self._levels_by_id, lesson.level_id)
                if level is not None:
                    return coerce_int(level.level_number)

        level_number = coerce_int(record.level_number)
        if level_number is not None:
            return level_number

        level = lookup(self._levels_by_id, record.level_id)
        return coerce_int(level.level_number) if level is not None else None

    def lesson_number_for_record(self, record: ProgressRecord) -> int | None:
        """Resolve the lesson number of a record."""
        lesson_number = coerce_int(record.lesson_number)
        if lesson_number is not None:
            return lesson_number

        lesson = self.lesson_for_record(record)
        return lesson.lesson_number if lesson is not None else None


# ==============================================================================
# Helper Functions
# ==============================================================================


def _valid_records(records: Iterable[Any] | None) -> list[ProgressRecord]:
    """Materialize records once, dropping anything that is not a record."""
    if records is None:
        return []
    try:
        return [record for record in records if isinstance(record, ProgressRecord)]
    except TypeError:
        return []


def _level_number(record: ProgressRecord, index: LevelIndex | None) -> int | None:
    if index is not None:
        return index.level_number_for_record(record)
    return coerce_int(record.level_number)


def _ceiling(max_level_number: Any) -> int:
    ceiling = coerce_int(max_level_number)
    if ceiling is None:
        return DEFAULT_MAX_LEVEL_NUMBER
    return max(ceiling, 1)


def round_half_up_percentage(part: int, total: int) -> int:
    """Integer percentage of part/total, rounding halves up."""
    if total <= 0:
        return 0
    value = Decimal(100 * part) / Decimal(total)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


# ==============================================================================
# Resolution Operations
# ==============================================================================


def resolve_current_level(
    records: Iterable[ProgressRecord] | None,
    *,
    max_level_number: int = DEFAULT_MAX_LEVEL_NUMBER,
    tie_break: TieBreakPolicy | str = TieBreakPolicy.FIRST_SEEN,
    index: LevelIndex | None = None,
) -> int:
    """Derive the level the student is working through.

    1. Any in_progress record decides the level (see ``tie_break``).
    2. Otherwise the level after the highest completed one, capped at
       ``max_level_number``.
    3. Otherwise level 1.

    Records whose level cannot be resolved are ignored. The result is always
    in ``[1, max_level_number]``.
    """
    ceiling = _ceiling(max_level_number)

    in_progress_levels: list[int] = []
    completed_levels: list[int] = []
    for record in _valid_records(records):
        level = _level_number(record, index)
        if level is None:
            continue
        if record.is_in_progress:
            in_progress_levels.append(level)
        elif record.is_completed:
            completed_levels.append(level)

    if in_progress_levels:
        if tie_break == TieBreakPolicy.LOWEST_LEVEL:
            level = min(in_progress_levels)
        else:
            level = in_progress_levels[0]
        return min(max(level, 1), ceiling)

    if completed_levels:
        return min(max(max(completed_levels) + 1, 1), ceiling)

    return 1


def resolve_current_level_lessons(
    records: Iterable[ProgressRecord] | None,
    current_level: int,
    *,
    index: LevelIndex | None = None,
) -> list[ProgressRecord]:
    """Records belonging to ``current_level``, in input order.

    Returns an empty list when the level has no progress rows yet. Use
    ``sort_by_lesson_number`` when lesson order matters.
    """
    target = coerce_int(current_level)
    if target is None:
        return []
    return [
        record
        for record in _valid_records(records)
        if _level_number(record, index) == target
    ]


def compute_level_completion_percentage(
    records: Iterable[ProgressRecord] | None,
    level_number: int,
    *,
    index: LevelIndex | None = None,
) -> int:
    """Percentage (0-100) of a level's records that are completed.

    A level without records is 0% complete. Independent of input order.
    """
    level_records = resolve_current_level_lessons(records, level_number, index=index)
    completed = sum(1 for record in level_records if record.is_completed)
    return round_half_up_percentage(completed, len(level_records))


def count_lessons_by_status(
    records: Iterable[ProgressRecord] | None,
) -> dict[ProgressStatus, int]:
    """Count records per status (every status present, possibly 0)."""
    counts = dict.fromkeys(ProgressStatus, 0)
    for record in _valid_records(records):
        counts[ProgressStatus.parse(record.status)] += 1
    return counts


def sort_by_lesson_number(
    records: Iterable[ProgressRecord] | None,
    index: LevelIndex | None = None,
) -> list[ProgressRecord]:
    """Order records by lesson number; unknown numbers go last, stably."""

    def sort_key(record: ProgressRecord) -> tuple[int, int]:
        if index is not None:
            number = index.lesson_number_for_record(record)
        else:
            number = coerce_int(record.lesson_number)
        return (0, number) if number is not None else (1, 0)

    return sorted(_valid_records(records), key=sort_key)


# ==============================================================================
# Course Track
# ==============================================================================


def resolve_level_state(level_number: int, current_level: int) -> LevelState:
    """Whether a level is behind, at, or ahead of the current level."""
    if level_number < current_level:
        return LevelState.COMPLETED
    if level_number == current_level:
        return LevelState.CURRENT
    return LevelState.UPCOMING


def compute_track_fill_percentage(current_level: int, level_count: int) -> int:
    """How far along the course track the current level sits (0-100)."""
    if level_count < 2:
        return 0
    fill = round_half_up_percentage(current_level - 1, level_count - 1)
    return min(max(fill, 0), 100)

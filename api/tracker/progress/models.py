"""Reference data and progress records for level-based courses.

Entities consumed by the progress resolution engine:
- Level: an ordered stage of the curriculum (level_number 1..N)
- Lesson: a unit of content belonging to exactly one level
- ProgressRecord: a student's status for one lesson

Rows come from the external data-access layer, usually joined as
``student_progress.*, lessons(*), levels(*)``. Parsing is lenient: missing
joins leave the joined fields empty (orphaned reference) and unknown
statuses degrade to ``locked``.
"""

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any


# Level ceiling used when no levels are configured
DEFAULT_MAX_LEVEL_NUMBER = 5


class ProgressStatus(str, Enum):
    """Lesson progress status for one student."""

    LOCKED = "locked"  # Not yet available
    IN_PROGRESS = "in_progress"  # Currently being worked on
    COMPLETED = "completed"  # Finished (regardless of path)

    @classmethod
    def parse(cls, value: Any) -> "ProgressStatus":
        """Parse a raw status value, defaulting to LOCKED."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.LOCKED


# ==============================================================================
# Helper Functions
# ==============================================================================


def _field(row: Any, name: str, default: Any = None) -> Any:
    """Read a field from a mapping or an attribute-style row."""
    if row is None:
        return default
    if isinstance(row, Mapping):
        return row.get(name, default)
    return getattr(row, name, default)


def coerce_int(value: Any) -> int | None:
    """Coerce a level/lesson number, returning None when not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def lookup(mapping: Mapping[Any, Any], key: Any) -> Any:
    """Get ``mapping[key]``, treating unhashable keys as missing."""
    try:
        return mapping.get(key)
    except TypeError:
        return None


# ==============================================================================
# Entity Classes
# ==============================================================================


class Level:
    """Curriculum level.

    Attributes:
        id: Level identifier
        level_number: Position in the curriculum (1..N, contiguous)
        level_name: Display name
    """

    def __init__(self, id: Any, level_number: int, level_name: str = ""):
        self.id = id
        self.level_number = level_number
        self.level_name = level_name

    @classmethod
    def from_row(cls, row: Any) -> "Level":
        """Create Level instance from a database row."""
        return cls(
            id=_field(row, "id"),
            level_number=coerce_int(_field(row, "level_number")) or 0,
            level_name=_field(row, "level_name") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "level_number": self.level_number,
            "level_name": self.level_name,
        }

    def __repr__(self) -> str:
        return f"<Level {self.level_number} {self.level_name!r}>"


class Lesson:
    """Lesson belonging to exactly one level.

    Attributes:
        id: Lesson identifier
        level_id: Owning level identifier
        lesson_number: Position within the level
        lesson_name: Display name
    """

    def __init__(
        self,
        id: Any,
        level_id: Any,
        lesson_number: int,
        lesson_name: str = "",
    ):
        self.id = id
        self.level_id = level_id
        self.lesson_number = lesson_number
        self.lesson_name = lesson_name

    @classmethod
    def from_row(cls, row: Any) -> "Lesson":
        """Create Lesson instance from a database row."""
        return cls(
            id=_field(row, "id"),
            level_id=_field(row, "level_id"),
            lesson_number=coerce_int(_field(row, "lesson_number")) or 0,
            lesson_name=_field(row, "lesson_name") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "level_id": self.level_id,
            "lesson_number": self.lesson_number,
            "lesson_name": self.lesson_name,
        }

    def __repr__(self) -> str:
        return f"<Lesson level={self.level_id} #{self.lesson_number}>"


class ProgressRecord:
    """A student's status for one lesson.

    ``level_id`` is written when the progress row is created and is trusted
    as authoritative; it can drift from ``Lesson.level_id`` if the lesson is
    later moved to another level.

    Attributes:
        student_id: Student identifier
        lesson_id: Lesson identifier
        level_id: Level identifier stored on the record
        status: Progress status
        id: Record identifier, when the source provides one
        level_number: Joined level number (None when orphaned)
        lesson_number: Joined lesson number (None when orphaned)
        lesson_name: Joined lesson name
    """

    def __init__(
        self,
        student_id: Any,
        lesson_id: Any,
        level_id: Any,
        status: ProgressStatus | str = ProgressStatus.LOCKED,
        id: Any = None,
        level_number: int | None = None,
        lesson_number: int | None = None,
        lesson_name: str | None = None,
    ):
        self.id = id
        self.student_id = student_id
        self.lesson_id = lesson_id
        self.level_id = level_id
        self.status = ProgressStatus.parse(status)
        self.level_number = level_number
        self.lesson_number = lesson_number
        self.lesson_name = lesson_name

    @property
    def is_completed(self) -> bool:
        """Check if lesson is completed."""
        return self.status == ProgressStatus.COMPLETED

    @property
    def is_in_progress(self) -> bool:
        """Check if lesson is in progress."""
        return self.status == ProgressStatus.IN_PROGRESS

    @classmethod
    def from_row(cls, row: Any) -> "ProgressRecord":
        """Create ProgressRecord from a (possibly joined) progress row.

        Joined level/lesson data is read from the ``levels`` and ``lessons``
        keys; flat ``level_number``/``lesson_number`` columns are accepted too.
        """
        level = _field(row, "levels")
        lesson = _field(row, "lessons")

        level_number = coerce_int(_field(level, "level_number"))
        if level_number is None:
            level_number = coerce_int(_field(row, "level_number"))

        lesson_number = coerce_int(_field(lesson, "lesson_number"))
        if lesson_number is None:
            lesson_number = coerce_int(_field(row, "lesson_number"))

        return cls(
            id=_field(row, "id"),
            student_id=_field(row, "student_id"),
            lesson_id=_field(row, "lesson_id"),
            level_id=_field(row, "level_id"),
            status=_field(row, "status"),
            level_number=level_number,
            lesson_number=lesson_number,
            lesson_name=_field(lesson, "lesson_name", _field(row, "lesson_name")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "student_id": self.student_id,
            "lesson_id": self.lesson_id,
            "level_id": self.level_id,
            "status": self.status.value,
            "level_number": self.level_number,
            "lesson_number": self.lesson_number,
            "lesson_name": self.lesson_name,
        }

    def __repr__(self) -> str:
        return (
            f"<ProgressRecord student={self.student_id} lesson={self.lesson_id} "
            f"level={self.level_number} {self.status.value}>"
        )


def derive_max_level_number(levels: Iterable[Level] | None) -> int:
    """Highest configured level number, or the default ceiling if none."""
    numbers = []
    for level in levels or ():
        if not isinstance(level, Level):
            continue
        number = coerce_int(level.level_number)
        if number is not None and number > 0:
            numbers.append(number)
    return max(numbers) if numbers else DEFAULT_MAX_LEVEL_NUMBER

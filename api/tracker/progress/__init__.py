"""Student progress resolution module.

Provides:
- Level, lesson and progress record entities
- Current level and current level lessons resolution
- Level completion percentages shared by every dashboard surface
- Snapshot-based overview service
"""

from .engine import (
    LevelIndex,
    LevelMembership,
    LevelState,
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
    DEFAULT_MAX_LEVEL_NUMBER,
    Lesson,
    Level,
    ProgressRecord,
    ProgressStatus,
    derive_max_level_number,
)
from .service import (
    LevelDrift,
    LevelDriftError,
    ProgressError,
    ProgressResolutionService,
    ProgressSnapshot,
    ensure_referential_integrity,
    find_level_drift,
)


__all__ = [
    "DEFAULT_MAX_LEVEL_NUMBER",
    "Lesson",
    "Level",
    "LevelDrift",
    "LevelDriftError",
    "LevelIndex",
    "LevelMembership",
    "LevelState",
    "ProgressError",
    "ProgressRecord",
    "ProgressResolutionService",
    "ProgressSnapshot",
    "ProgressStatus",
    "TieBreakPolicy",
    "compute_level_completion_percentage",
    "compute_track_fill_percentage",
    "count_lessons_by_status",
    "derive_max_level_number",
    "ensure_referential_integrity",
    "find_level_drift",
    "resolve_current_level",
    "resolve_current_level_lessons",
    "resolve_level_state",
    "sort_by_lesson_number",
]

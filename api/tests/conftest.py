"""Shared fixtures for progress resolution tests."""

import logging

import pytest
import structlog

from tracker.config.settings import Settings
from tracker.progress.models import Lesson, Level, ProgressRecord, ProgressStatus


STUDENT_ID = "student-1"


@pytest.fixture(autouse=True)
def reset_structlog():
    """Restore default structlog/stdlib logging after each test."""
    yield
    structlog.reset_defaults()
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        handler.close()
        root_logger.removeHandler(handler)


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None, environment="testing")


@pytest.fixture
def levels() -> list[Level]:
    """Five configured levels, deliberately out of order."""
    return [
        Level(id="lvl-3", level_number=3, level_name="Intermediate"),
        Level(id="lvl-1", level_number=1, level_name="Starter"),
        Level(id="lvl-2", level_number=2, level_name="Beginner"),
        Level(id="lvl-5", level_number=5, level_name="Expert"),
        Level(id="lvl-4", level_number=4, level_name="Advanced"),
    ]


@pytest.fixture
def lessons() -> list[Lesson]:
    """Two lessons per level for levels 1-3."""
    return [
        Lesson(
            id=f"lsn-{level}-{number}",
            level_id=f"lvl-{level}",
            lesson_number=number,
            lesson_name=f"Lesson {level}.{number}",
        )
        for level in (1, 2, 3)
        for number in (1, 2)
    ]


@pytest.fixture
def make_record():
    """Factory for progress records joined with their level number."""

    def _make(
        level_number: int | None,
        lesson_number: int | None = None,
        status: ProgressStatus | str = ProgressStatus.LOCKED,
        lesson_id: str | None = None,
        level_id: str | None = None,
    ) -> ProgressRecord:
        if lesson_id is None:
            lesson_id = f"lsn-{level_number}-{lesson_number or 1}"
        if level_id is None and level_number is not None:
            level_id = f"lvl-{level_number}"
        return ProgressRecord(
            student_id=STUDENT_ID,
            lesson_id=lesson_id,
            level_id=level_id,
            status=status,
            level_number=level_number,
            lesson_number=lesson_number,
        )

    return _make

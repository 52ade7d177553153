# Core infrastructure
from tracker.core.context import (
    ResolutionContext,
    get_context,
    get_request_id,
    get_student_id,
)
from tracker.core.logging import configure_structlog, get_logger


__all__ = [
    "ResolutionContext",
    "configure_structlog",
    "get_context",
    "get_logger",
    "get_request_id",
    "get_student_id",
]

"""Resolution context management using contextvars.

Each render pass gets a unique request ID and the student whose progress is
being resolved, so every log line emitted while building a dashboard can be
correlated without passing identifiers through every call.
"""

from contextvars import ContextVar
from typing import Any
from uuid import UUID, uuid4


request_id_var: ContextVar[str] = ContextVar("request_id", default="")
student_id_var: ContextVar[str | None] = ContextVar("student_id", default=None)


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def get_student_id() -> str | None:
    """Get the current student ID."""
    return student_id_var.get()


def get_context() -> dict[str, Any]:
    """Get all context variables as a dictionary."""
    context: dict[str, Any] = {}

    request_id = get_request_id()
    if request_id:
        context["request_id"] = request_id

    student_id = get_student_id()
    if student_id:
        context["student_id"] = student_id

    return context


class ResolutionContext:
    """Context manager for one render pass.

    Usage:
        with ResolutionContext(student_id=student.id):
            overview = service.build_overview(snapshot)
    """

    def __init__(
        self,
        request_id: str | None = None,
        student_id: str | UUID | None = None,
    ) -> None:
        self.request_id = request_id
        self.student_id = student_id
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> "ResolutionContext":
        """Enter context and set variables."""
        self._tokens["request_id"] = request_id_var.set(
            self.request_id or generate_request_id()
        )

        if self.student_id is not None:
            self._tokens["student_id"] = student_id_var.set(str(self.student_id))

        return self

    def __exit__(self, *_: object) -> None:
        """Exit context and restore previous values."""
        for var_name, token in self._tokens.items():
            if var_name == "request_id":
                request_id_var.reset(token)
            elif var_name == "student_id":
                student_id_var.reset(token)
        self._tokens.clear()

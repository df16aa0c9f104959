"""Error taxonomy for Reviewflow.

Every error raised by the review core derives from ReviewflowError so the
web layer can translate it into a response with a single handler. Storage
failures are deliberately absent: SQLAlchemy exceptions propagate
unchanged and are never retried.

Hierarchy:
    ReviewflowError
    ├── InvalidArgumentError          client error, never retried
    │   ├── InvalidPhaseError
    │   ├── InvalidProjectIdError
    │   ├── InvalidRoleError
    │   └── InvalidAnswerValueError
    ├── NotFoundError                 write path target is absent
    ├── TemplateMissingError          no template configured
    └── RevertNotPermittedError       retired team-leader revert
"""

from __future__ import annotations

from typing import Any

LEADER_REVERT_MESSAGE = (
    "TeamLeader revert is no longer supported. Only Reviewer can revert to Executor."
)


class ReviewflowError(Exception):
    """Base class for all Reviewflow domain errors.

    Attributes:
        code: Stable machine-readable error code.
        status_code: HTTP status the web layer responds with.
    """

    code: str = "reviewflow_error"
    status_code: int = 500

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)


class InvalidArgumentError(ReviewflowError):
    """Raised for malformed ids, out-of-range values and missing fields."""

    code = "invalid_argument"
    status_code = 400


class InvalidPhaseError(InvalidArgumentError):
    """Raised when a phase number is non-numeric or below 1."""

    code = "invalid_phase"

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"Invalid phase: {value!r}", value=value)


class InvalidProjectIdError(InvalidArgumentError):
    """Raised when a project id is absent or not a UUID."""

    code = "invalid_project_id"

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"Invalid project id: {value!r}", value=value)


class InvalidRoleError(InvalidArgumentError):
    """Raised when a role is not 'executor' or 'reviewer'."""

    code = "invalid_role"

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(
            f"Role must be 'executor' or 'reviewer', got {value!r}", value=value
        )


class InvalidAnswerValueError(InvalidArgumentError):
    """Raised when an answer falls outside the enumeration allowed for a role."""

    code = "invalid_answer_value"

    def __init__(self, field: str, value: Any, allowed: list[Any]) -> None:
        self.field = field
        self.value = value
        self.allowed = allowed
        super().__init__(
            f"{field} must be one of {allowed}, got {value!r}",
            field=field,
            value=value,
        )


class NotFoundError(ReviewflowError):
    """Raised when a write path requires a target that does not exist."""

    code = "not_found"
    status_code = 404


class TemplateMissingError(ReviewflowError):
    """Raised when a checklist must be materialized but no template exists."""

    code = "template_missing"
    status_code = 424

    def __init__(self, message: str = "Template not found. Please create a template first.") -> None:
        super().__init__(message)


class RevertNotPermittedError(ReviewflowError):
    """Raised for every revert attempt not made by the reviewer role."""

    code = "revert_not_permitted"
    status_code = 403

    def __init__(self, message: str = LEADER_REVERT_MESSAGE) -> None:
        super().__init__(message)

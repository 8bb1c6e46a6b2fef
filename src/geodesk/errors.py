"""Domain error taxonomy for Geodesk.

Every failure a caller can observe is one of these classes. The web layer
converts them into structured JSON responses:

    {"error": "Human-readable message", "code": "machine_code", ...details}

Classes:
    ValidationError: Missing or malformed input (400)
    UnauthenticatedError: No valid identity (401)
    ForbiddenError: Role or ownership mismatch (403)
    NotFoundError: Unknown identifier (404)
    ConflictError: State conflict (409)
    InvalidTransitionError: Requested status not reachable (409)
    QuoteAlreadyGeneratedError: Quote exists and status is quoted (409)
    StaleStateError: Row changed between read and write (409)
    DependencyError: Storage or provider failure (500)
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for all Geodesk domain errors.

    Attributes:
        status_code: HTTP status code for the error class
        default_message: Message used when none is supplied
        code: Machine-readable error code
        message: Human-readable message for this instance
        details: Extra fields merged into the error response
    """

    status_code: int = 500
    default_message: str = "An unexpected error occurred"
    code: str = "internal_error"

    def __init__(self, message: str | None = None, **details: Any) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Render the error as a response body."""
        return {"error": self.message, "code": self.code, **self.details}


class ValidationError(DomainError):
    status_code = 400
    default_message = "Invalid request"
    code = "validation_error"


class UnauthenticatedError(DomainError):
    status_code = 401
    default_message = "Unauthorized"
    code = "unauthenticated"


class ForbiddenError(DomainError):
    status_code = 403
    default_message = "Forbidden"
    code = "forbidden"


class NotFoundError(DomainError):
    status_code = 404
    default_message = "Not found"
    code = "not_found"


class ConflictError(DomainError):
    status_code = 409
    default_message = "Conflict"
    code = "conflict"


class InvalidTransitionError(ConflictError):
    """Raised when a status change is not in the transition table.

    Attributes:
        current: Status the project is in
        requested: Status that was requested
    """

    code = "invalid_transition"

    def __init__(self, current: str, requested: str, project_id: str | None = None) -> None:
        self.current = current
        self.requested = requested
        self.project_id = project_id
        super().__init__(
            f"Invalid transition from {current} to {requested}",
            current=current,
            requested=requested,
        )


class QuoteAlreadyGeneratedError(ConflictError):
    default_message = "Quote already generated"
    code = "quote_already_generated"


class StaleStateError(ConflictError):
    default_message = "Project was modified concurrently; reload and retry"
    code = "stale_state"


class DependencyError(DomainError):
    status_code = 500
    default_message = "A backing service failed"
    code = "dependency_error"

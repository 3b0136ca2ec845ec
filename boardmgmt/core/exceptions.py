"""
Domain exceptions.

Services raise these exceptions; ``boardmgmt.server.exception_handlers`` maps each
one to an HTTP status code and a stable machine-readable error code.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class BoardError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    code: str = "server_error"
    default_message: str = "An unexpected error occurred. Please try again."

    def __init__(self, message: Optional[str] = None, details: Any = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationFailedError(BoardError):
    """Input failed a business validation rule."""

    status_code = 400
    code = "validation_error"
    default_message = "One or more validation errors occurred."

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[Dict[str, List[str]]] = None,
    ) -> None:
        super().__init__(message, details=errors or None)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailedError":
        return cls(message, errors={field: [message]})


class UnauthorizedError(BoardError):
    """Caller is not authenticated or lacks the required permission."""

    status_code = 401
    code = "unauthorized"
    default_message = "Authentication is required to access this resource."


class NotFoundError(BoardError):
    """Requested resource does not exist or is not visible to the caller."""

    status_code = 404
    code = "not_found"
    default_message = "The requested resource was not found."


class ConcurrencyConflictError(BoardError):
    """Optimistic concurrency check failed."""

    status_code = 409
    code = "concurrency_conflict"
    default_message = "The resource was updated by another process."


class InvalidOperationError(BoardError):
    """Operation is not allowed in the resource's current state."""

    status_code = 409
    code = "invalid_operation"
    default_message = "The operation is not valid for the current state of the resource."


class ExternalServiceError(BoardError):
    """An outbound integration (Graph, Zoom, SMTP) failed."""

    status_code = 502
    code = "external_service_error"
    default_message = "An external service call failed."

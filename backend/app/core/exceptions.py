"""
Domain error taxonomy.

Services raise these at the point of violation; the API layer maps each kind
to a stable HTTP status (see app/api/errors.py). Nothing here is retried.
"""

from fastapi import status


class DomainError(Exception):
    """Base domain error with an HTTP-equivalent status and a short reason."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    status_name: str = "INTERNAL_SERVER_ERROR"
    reason: str = "Unexpected error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.status_name}: {self.message}"


class NotFoundError(DomainError):
    """Referenced entity does not exist or is not visible to the caller."""

    status_code = status.HTTP_404_NOT_FOUND
    status_name = "NOT_FOUND"
    reason = "The required object was not found."


class ConflictStateError(DomainError):
    """Operation is legal in general but forbidden by the target's current state."""

    status_code = status.HTTP_409_CONFLICT
    status_name = "CONFLICT"
    reason = "For the requested operation the conditions are not met."


class AlreadyExistsError(DomainError):
    """Duplicate or otherwise inadmissible participation request."""

    status_code = status.HTTP_409_CONFLICT
    status_name = "ALREADY_EXISTS"
    reason = "Integrity constraint has been violated."


class ValidationFailedError(DomainError):
    """Malformed input caught before it reaches domain state."""

    status_code = status.HTTP_400_BAD_REQUEST
    status_name = "BAD_REQUEST"
    reason = "Incorrectly made request."

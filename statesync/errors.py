"""
Service error taxonomy for statesync.

Every expected failure is raised as a ServiceError subclass carrying the HTTP
status and a stable error code. The API layer renders them in one place
(see api/main.py); anything that is not a ServiceError is treated as an
unexpected internal failure.
"""
from typing import Optional


class ServiceError(Exception):
    """Base class for failures that map to an HTTP response."""

    status_code: int = 400
    error_code: str = "VALIDATION_ERROR"
    reason: str = "Bad Request"

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ServiceError):
    """Missing or malformed input (400)."""
    status_code = 400
    error_code = "VALIDATION_ERROR"
    reason = "Bad Request"


class AuthenticationError(ServiceError):
    """Missing/invalid/expired token, bad credentials or bad TOTP code (401)."""
    status_code = 401
    error_code = "UNAUTHORIZED"
    reason = "Unauthorized"


class ConflictError(ServiceError):
    """Resource already exists. Reported as a bad request, not 409."""
    status_code = 400
    error_code = "CONFLICT"
    reason = "Bad Request"


class DuplicateEmailError(ConflictError):
    """An account with this email already exists."""


class NotFoundError(ServiceError):
    """Requested resource does not exist (404)."""
    status_code = 404
    error_code = "NOT_FOUND"
    reason = "Not Found"


class InternalError(ServiceError):
    """Unexpected failure in a downstream collaborator (500)."""
    status_code = 500
    error_code = "INTERNAL_ERROR"
    reason = "Internal Server Error"


__all__ = [
    "ServiceError",
    "ValidationError",
    "AuthenticationError",
    "ConflictError",
    "DuplicateEmailError",
    "NotFoundError",
    "InternalError",
]

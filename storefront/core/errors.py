"""
Error taxonomy shared by every service.

Each error carries a stable ``code`` and the HTTP status the API answers with.
Messages are safe to show to the caller; internal store or gateway detail is
logged by the raising service and never put in ``message``.
"""

from __future__ import annotations

from typing import Optional


class ServiceError(Exception):
    """Base class for failures surfaced to API callers."""

    code = "service_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(ServiceError):
    code = "authentication_error"
    status_code = 401


class AuthorizationError(ServiceError):
    code = "authorization_error"
    status_code = 403


class NotFoundError(ServiceError):
    code = "not_found"
    status_code = 404


class ValidationError(ServiceError):
    code = "validation_error"
    status_code = 400


class ConflictError(ServiceError):
    code = "conflict"
    status_code = 409


class ExternalServiceError(ServiceError):
    code = "external_service_error"
    status_code = 502


class AmbiguousOutcomeError(ServiceError):
    """The outcome of an external call is unknown and needs reconciliation."""

    code = "ambiguous_outcome"
    status_code = 504

    def __init__(self, message: str, reference: Optional[int] = None):
        super().__init__(message)
        self.reference = reference


class RateLimitError(ServiceError):
    code = "rate_limited"
    status_code = 429

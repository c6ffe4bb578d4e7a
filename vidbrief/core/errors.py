from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base class for all application errors."""

    status_code = 500
    code = "internal_error"

    def __init__(self, detail: str, *, data: Any | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.data = data


class InvalidRequestError(AppError):
    """Client sent a malformed or invalid request (400)."""

    status_code = 400
    code = "invalid_request"


class AuthenticationError(AppError):
    """Client is not authenticated or token is invalid/expired (401)."""

    status_code = 401
    code = "unauthorized"


class ForbiddenError(AppError):
    """Client is authenticated but not allowed to perform the action (403)."""

    status_code = 403
    code = "forbidden"


class InsufficientCreditsError(ForbiddenError):
    """Account has no credits left for a new generation (403)."""

    code = "insufficient_credits"


class NotFoundError(AppError):
    """Requested resource does not exist or is not owned by the caller (404)."""

    status_code = 404
    code = "not_found"


class ConflictError(AppError):
    """Resource already exists (409)."""

    status_code = 409
    code = "conflict"


class RequestTooLargeError(AppError):
    """Request body exceeds the configured limit (413)."""

    status_code = 413
    code = "request_too_large"


class RateLimitError(AppError):
    """Client has exceeded rate limits (429)."""

    status_code = 429
    code = "rate_limit_exceeded"


class PersistenceError(AppError):
    """Database read or write failed (500)."""

    status_code = 500
    code = "internal_error"


class ConfigurationError(AppError):
    """Server misconfiguration (500)."""

    status_code = 500
    code = "configuration_error"


class ExternalServiceError(AppError):
    """Upstream service failed or returned an invalid response (502)."""

    status_code = 502
    code = "external_service_error"


class NotReadyError(AppError):
    """Service is temporarily unavailable (503)."""

    status_code = 503
    code = "not_ready"

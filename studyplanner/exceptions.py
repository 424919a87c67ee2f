"""
Application exceptions.

Every exception carries the machine-readable ``error`` code that the API
returns as ``{"error": code}`` and the HTTP status it maps to.
"""
from fastapi import status


class AppError(Exception):
    error = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "", *, error: str | None = None, status_code: int | None = None):
        super().__init__(message or self.error)
        if error is not None:
            self.error = error
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    error = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(AppError):
    error = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(AppError):
    error = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    error = "conflict"
    status_code = status.HTTP_409_CONFLICT


class StorageUnavailable(AppError):
    """The database could not complete an operation. Never retried internally."""
    error = "storage_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class RefreshTokenError(AuthenticationError):
    """Base for refresh failures.

    All of them reach the client as the same ``invalid_refresh_token`` error;
    ``reason`` is kept for server-side logs and the audit trail.
    """
    error = "invalid_refresh_token"
    reason = "invalid"

    def __init__(self, message: str = "", *, user_id=None):
        super().__init__(message)
        self.user_id = user_id


class InvalidRefreshToken(RefreshTokenError):
    reason = "invalid"


class RefreshTokenReuseDetected(RefreshTokenError):
    reason = "reuse_detected"


class RefreshTokenExpired(RefreshTokenError):
    reason = "expired"
